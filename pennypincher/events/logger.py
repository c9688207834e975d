"""
Ledger Event Logger

DESIGN DECISION: Every command that changes the ledger is logged.
This provides:
1. Traceability of settlements, reversals and cascades
2. Debugging capability when a balance looks wrong
3. Visibility into AI flow and storage failures

The event logger:
- Writes JSON lines through structlog
- Never raises; a logging problem must not break a ledger command
- Holds no state besides the bound logger
"""

from typing import Optional

import structlog

from pennypincher.models.events import (
    EventSeverity,
    LedgerEvent,
    LedgerEventBuilder,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def get_logger(name: Optional[str] = None):
    """Return a structlog logger bound to `name`."""
    return structlog.get_logger(name)


class LedgerEventLogger:
    """
    Central event logging service.

    Each log_* helper builds the event with LedgerEventBuilder
    and hands it to log().
    """

    def __init__(self, logger_name: str = "pennypincher"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: LedgerEvent) -> None:
        """Log an event at the level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity == EventSeverity.ERROR:
            self._logger.error("ledger_event", **log_dict)
        elif event.severity == EventSeverity.WARNING:
            self._logger.warning("ledger_event", **log_dict)
        elif event.severity == EventSeverity.DEBUG:
            self._logger.debug("ledger_event", **log_dict)
        else:
            self._logger.info("ledger_event", **log_dict)

    def log_transaction_added(
        self,
        transaction_id: str,
        kind: str,
        amount: str,
        split_count: int = 0,
    ) -> None:
        self.log(LedgerEventBuilder.transaction_added(
            transaction_id=transaction_id,
            kind=kind,
            amount=amount,
            split_count=split_count,
        ))

    def log_transaction_deleted(self, transaction_id: str, removed_count: int) -> None:
        self.log(LedgerEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            removed_count=removed_count,
        ))

    def log_splits_updated(self, expense_id: str, split_count: int) -> None:
        self.log(LedgerEventBuilder.splits_updated(expense_id, split_count))

    def log_split_settled(
        self,
        expense_id: str,
        person_id: str,
        amount: str,
        income_id: str,
    ) -> None:
        self.log(LedgerEventBuilder.split_settled(
            expense_id=expense_id,
            person_id=person_id,
            amount=amount,
            income_id=income_id,
        ))

    def log_settlement_not_matched(
        self,
        expense_id: str,
        person_id: str,
        amount: str,
    ) -> None:
        self.log(LedgerEventBuilder.settlement_not_matched(
            expense_id=expense_id,
            person_id=person_id,
            amount=amount,
        ))

    def log_person_settled_all(
        self,
        person_id: str,
        total_amount: str,
        expense_ids: list[str],
        income_id: str,
    ) -> None:
        self.log(LedgerEventBuilder.person_settled_all(
            person_id=person_id,
            total_amount=total_amount,
            expense_ids=expense_ids,
            income_id=income_id,
        ))

    def log_settlement_reversed(
        self,
        income_id: str,
        expense_id: str,
        person_id: Optional[str],
    ) -> None:
        self.log(LedgerEventBuilder.settlement_reversed(
            income_id=income_id,
            expense_id=expense_id,
            person_id=person_id,
        ))

    def log_expense_cascade_deleted(
        self,
        expense_id: str,
        settlement_ids: list[str],
    ) -> None:
        self.log(LedgerEventBuilder.expense_cascade_deleted(
            expense_id=expense_id,
            settlement_ids=settlement_ids,
        ))

    def log_flow_completed(self, flow_name: str, details: Optional[dict] = None) -> None:
        self.log(LedgerEventBuilder.flow_completed(flow_name, details))

    def log_flow_failed(self, flow_name: str, error_message: str) -> None:
        self.log(LedgerEventBuilder.flow_failed(flow_name, error_message))

    def log_statement_imported(self, count: int, skipped: int) -> None:
        self.log(LedgerEventBuilder.statement_imported(count, skipped))

    def log_backup_exported(self, transaction_count: int) -> None:
        self.log(LedgerEventBuilder.backup_exported(transaction_count))

    def log_backup_imported(self, transaction_count: int) -> None:
        self.log(LedgerEventBuilder.backup_imported(transaction_count))

    def log_storage_error(self, key: str, error_message: str, operation: str) -> None:
        self.log(LedgerEventBuilder.storage_error(
            key=key,
            error_message=error_message,
            operation=operation,
        ))
