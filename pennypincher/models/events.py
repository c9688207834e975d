"""
Ledger Event Models for PennyPincher

Every command that changes the ledger emits an event to the structured log.
This provides:
1. Traceability of settlements and reversals while debugging
2. A record of AI flow failures and storage problems
3. One consistent shape for everything the app logs

DESIGN DECISION: Events go to the local structured log only.
They are not persisted and are not an accounting audit trail.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from pennypincher.models.ledger import utcnow


class LedgerEventType(str, Enum):
    """Types of events we log."""
    # Ledger mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    SPLITS_UPDATED = "splits_updated"
    SPLIT_SETTLED = "split_settled"
    SETTLEMENT_NOT_MATCHED = "settlement_not_matched"
    PERSON_SETTLED_ALL = "person_settled_all"
    SETTLEMENT_REVERSED = "settlement_reversed"
    EXPENSE_CASCADE_DELETED = "expense_cascade_deleted"

    # AI flows
    FLOW_COMPLETED = "flow_completed"
    FLOW_FAILED = "flow_failed"

    # Import/export
    STATEMENT_IMPORTED = "statement_imported"
    BACKUP_EXPORTED = "backup_exported"
    BACKUP_IMPORTED = "backup_imported"

    # System events
    STORAGE_ERROR = "storage_error"


class EventSeverity(str, Enum):
    """Severity level for ledger events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """A single structured log event."""

    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )
    event_type: LedgerEventType
    severity: EventSeverity = EventSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'person', 'flow')"
    )
    entity_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build events with common patterns.

    Usage:
        event = LedgerEventBuilder.split_settled(expense_id, person_id, "40.00", income_id)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        kind: str,
        amount: str,
        split_count: int = 0,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Added {kind} of {amount}",
            details={
                "kind": kind,
                "amount": amount,
                "split_count": split_count,
            },
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        removed_count: int,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Deleted transaction ({removed_count} record(s) removed)",
            details={"removed_count": removed_count},
        )

    @staticmethod
    def splits_updated(expense_id: str, split_count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SPLITS_UPDATED,
            entity_type="transaction",
            entity_id=expense_id,
            description=f"Splits replaced ({split_count} people)",
            details={"split_count": split_count},
        )

    @staticmethod
    def split_settled(
        expense_id: str,
        person_id: str,
        amount: str,
        income_id: str,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SPLIT_SETTLED,
            entity_type="transaction",
            entity_id=expense_id,
            description=f"Split settled by {person_id}: {amount}",
            details={
                "person_id": person_id,
                "amount": amount,
                "income_id": income_id,
            },
        )

    @staticmethod
    def settlement_not_matched(
        expense_id: str,
        person_id: str,
        amount: str,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SETTLEMENT_NOT_MATCHED,
            severity=EventSeverity.WARNING,
            entity_type="transaction",
            entity_id=expense_id,
            description="No unsettled split matched the settlement; ledger unchanged",
            details={
                "person_id": person_id,
                "amount": amount,
            },
        )

    @staticmethod
    def person_settled_all(
        person_id: str,
        total_amount: str,
        expense_ids: list[str],
        income_id: str,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.PERSON_SETTLED_ALL,
            entity_type="person",
            entity_id=person_id,
            description=f"All debts settled: {total_amount} across {len(expense_ids)} expense(s)",
            details={
                "total_amount": total_amount,
                "expense_ids": expense_ids,
                "income_id": income_id,
            },
        )

    @staticmethod
    def settlement_reversed(
        income_id: str,
        expense_id: str,
        person_id: Optional[str],
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SETTLEMENT_REVERSED,
            entity_type="transaction",
            entity_id=income_id,
            description="Settlement deleted, split marked unsettled",
            details={
                "expense_id": expense_id,
                "person_id": person_id,
            },
        )

    @staticmethod
    def expense_cascade_deleted(
        expense_id: str,
        settlement_ids: list[str],
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_CASCADE_DELETED,
            entity_type="transaction",
            entity_id=expense_id,
            description=f"Expense deleted with {len(settlement_ids)} settlement(s)",
            details={"settlement_ids": settlement_ids},
        )

    @staticmethod
    def flow_completed(flow_name: str, details: Optional[dict] = None) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.FLOW_COMPLETED,
            entity_type="flow",
            entity_id=flow_name,
            description=f"AI flow completed: {flow_name}",
            details=details or {},
        )

    @staticmethod
    def flow_failed(flow_name: str, error_message: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.FLOW_FAILED,
            severity=EventSeverity.ERROR,
            entity_type="flow",
            entity_id=flow_name,
            description=f"AI flow failed: {flow_name}",
            error_message=error_message,
        )

    @staticmethod
    def statement_imported(count: int, skipped: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.STATEMENT_IMPORTED,
            description=f"Imported {count} statement transaction(s)",
            details={"imported": count, "skipped": skipped},
        )

    @staticmethod
    def backup_exported(transaction_count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.BACKUP_EXPORTED,
            description="Encrypted backup exported",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def backup_imported(transaction_count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.BACKUP_IMPORTED,
            description="Encrypted backup imported",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def storage_error(key: str, error_message: str, operation: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.STORAGE_ERROR,
            severity=EventSeverity.ERROR,
            entity_type="storage_key",
            entity_id=key,
            description=f"Storage {operation} failed for '{key}'",
            error_message=error_message,
            details={"operation": operation},
        )
