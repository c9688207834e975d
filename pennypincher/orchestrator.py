"""
Main Orchestrator for PennyPincher

This module ties together all the components and defines the
end-to-end flows for every user command:
1. Record (validate -> create -> prepend -> save)
2. Settle / reverse (load -> engine -> save -> log)
3. AI-assisted input (model call -> user picks -> record)

DESIGN DECISION: The orchestrator is the ONLY place that touches storage.
The ledger engine stays pure: every command loads the full transaction
list, hands it to a pure function, and saves whatever comes back.

It also enforces the boundaries:
- Nothing is written unless validation passed
- An AI answer never writes by itself; actions are applied explicitly
- A failed model call leaves the ledger exactly as it was
"""

from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Iterable, Mapping, Optional

from pennypincher.agents import (
    AssistantAction,
    AssistantFlow,
    AssistantResponse,
    GeminiModelClient,
    ModelClient,
    ParsedStatement,
    ReceiptItem,
    ReceiptItemization,
    ReceiptItemizer,
    StatementParser,
    StatementTransaction,
    VoiceExpense,
    VoiceExpenseParser,
)
from pennypincher.config import LedgerSettings, StorageSettings, get_settings
from pennypincher.events import LedgerEventLogger, get_logger
from pennypincher.ledger import (
    GoalProgress,
    TransactionNotFoundError,
    add_category,
    add_person,
    add_transaction,
    add_transactions,
    compute_outstanding_balances,
    create_expense,
    create_income,
    create_payment_request,
    custom_splits,
    delete_goal,
    delete_transaction,
    equal_splits,
    find_transaction,
    goal_progress,
    new_transaction_id,
    related_settlements,
    remove_person,
    set_goal,
    settle_all_for_person,
    settle_split,
    unique_transaction_id,
    update_splits,
)
from pennypincher.ledger.transactions import EXPENSE_PREFIX, INCOME_PREFIX
from pennypincher.models.ledger import (
    OTHER_CATEGORY_ID,
    Category,
    CategoryGroup,
    CategoryIcon,
    Person,
    PersonBalance,
    SavingsGoal,
    Split,
    Transaction,
    TransactionDraft,
    TransactionKind,
    to_money,
    utcnow,
)
from pennypincher.queries import (
    CategoryTotal,
    MonthlySummary,
    TrendPeriod,
    TrendPoint,
    expenses_by_category,
    filter_transactions,
    monthly_summary,
    spending_trend,
    to_csv,
)
from pennypincher.services import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorageInterface,
    StorageUnavailableError,
    TransactionStore,
    VaultService,
    category_store,
    export_backup,
    goals_store,
    import_backup,
    people_store,
    vault_store,
)
from pennypincher.validation import TransactionValidator


class LedgerService:
    """
    Command surface of the application.

    Every mutating method follows the same shape:
    load the collection, apply a pure ledger function, save, log.
    Writes are last-write-wins; callers are expected to issue
    commands one at a time.
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        model_client: Optional[ModelClient] = None,
        storage_settings: Optional[StorageSettings] = None,
        ledger_settings: Optional[LedgerSettings] = None,
        event_logger: Optional[LedgerEventLogger] = None,
    ):
        settings = get_settings()
        self._storage_settings = storage_settings or settings.storage
        self._ledger_settings = ledger_settings or settings.ledger
        self._events = event_logger or LedgerEventLogger()

        self._transactions = TransactionStore(storage, event_logger=self._events)
        self._categories = category_store(storage, event_logger=self._events)
        self._people = people_store(storage, event_logger=self._events)
        self._goals = goals_store(storage, event_logger=self._events)
        self._vault = VaultService(
            vault_store(storage, event_logger=self._events),
            self._storage_settings.vault_key,
        )

        self._model_client = model_client

    # =========================================================================
    # READS
    # =========================================================================

    def transactions(self) -> list[Transaction]:
        return self._transactions.load(self._storage_settings.transactions_key)

    def categories(self) -> list[Category]:
        return self._categories.load(self._storage_settings.categories_key)

    def people(self) -> list[Person]:
        return self._people.load(self._storage_settings.people_key)

    def goals(self) -> list[SavingsGoal]:
        return self._goals.load(self._storage_settings.goals_key)

    @property
    def vault(self) -> VaultService:
        return self._vault

    def _save_transactions(self, transactions: list[Transaction]) -> None:
        self._transactions.save(self._storage_settings.transactions_key, transactions)

    # =========================================================================
    # RECORDING
    # =========================================================================

    def _validator(self) -> TransactionValidator:
        return TransactionValidator(
            people=self.people(),
            categories=self.categories(),
            max_note_length=self._ledger_settings.max_note_length,
        )

    def add_expense(
        self,
        amount,
        category_id: str,
        note: str = "",
        splits: Optional[list[Split]] = None,
        attachment_ref: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Transaction:
        """
        Validate and record an expense.

        Raises:
            SplitValidationError: The draft has error-level issues
        """
        self._validator().raise_for_errors(TransactionDraft(
            kind=TransactionKind.EXPENSE,
            amount=to_money(amount),
            category_id=category_id,
            note=note,
            splits=splits or [],
        ))

        now = now or utcnow()
        transactions = self.transactions()
        expense = create_expense(
            amount,
            category_id,
            note=note,
            splits=splits,
            attachment_ref=attachment_ref,
            now=now,
            transaction_id=unique_transaction_id(transactions, EXPENSE_PREFIX, now),
        )
        self._save_transactions(add_transaction(transactions, expense))
        self._events.log_transaction_added(
            expense.id, expense.kind.value, str(expense.amount), split_count=len(expense.splits or []),
        )
        return expense

    def add_income(
        self,
        amount,
        category_id: str,
        note: str = "",
        now: Optional[datetime] = None,
    ) -> Transaction:
        self._validator().raise_for_errors(TransactionDraft(
            kind=TransactionKind.INCOME,
            amount=to_money(amount),
            category_id=category_id,
            note=note,
        ))

        now = now or utcnow()
        transactions = self.transactions()
        income = create_income(
            amount,
            category_id,
            note=note,
            now=now,
            transaction_id=unique_transaction_id(transactions, INCOME_PREFIX, now),
        )
        self._save_transactions(add_transaction(transactions, income))
        self._events.log_transaction_added(income.id, income.kind.value, str(income.amount))
        return income

    def add_split_expense(
        self,
        amount,
        category_id: str,
        note: str = "",
        person_ids: Optional[Iterable[str]] = None,
        shares: Optional[Mapping[str, object]] = None,
        now: Optional[datetime] = None,
    ) -> Transaction:
        """
        Record an expense split with other people.

        Pass `person_ids` for an equal split (the owner keeps a share too)
        or `shares` for custom amounts per person.
        """
        if shares is not None:
            splits = custom_splits(shares)
        else:
            splits = equal_splits(amount, person_ids or [])
        return self.add_expense(amount, category_id, note=note, splits=splits, now=now)

    def request_payment(
        self,
        amount,
        person_id: str,
        note: str,
        category_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Transaction:
        """Record a payment request: an expense owed in full by one person."""
        now = now or utcnow()
        transactions = self.transactions()
        request = create_payment_request(
            amount,
            person_id,
            note,
            category_id or self._ledger_settings.settlement_category_id,
            now=now,
            transaction_id=unique_transaction_id(transactions, EXPENSE_PREFIX, now),
        )
        self._save_transactions(add_transaction(transactions, request))
        self._events.log_transaction_added(
            request.id, request.kind.value, str(request.amount), split_count=1,
        )
        return request

    def edit_splits(self, expense_id: str, splits: list[Split]) -> Transaction:
        """
        Replace the splits of an expense that nobody has settled yet.

        Raises:
            TransactionNotFoundError: No such expense
            SplitsLockedError: A split is already settled
            SplitValidationError: The new shares do not fit the amount
        """
        transactions = self.transactions()
        expense = find_transaction(transactions, expense_id)
        if expense is None or not expense.is_expense:
            raise TransactionNotFoundError(f"No expense with id '{expense_id}'")

        self._validator().raise_for_errors(TransactionDraft(
            kind=TransactionKind.EXPENSE,
            amount=expense.amount,
            category_id=expense.category_id,
            note=expense.note,
            splits=splits,
        ))

        updated = update_splits(transactions, expense_id, splits)
        self._save_transactions(updated)
        self._events.log_splits_updated(expense_id, len(splits))
        return find_transaction(updated, expense_id)

    # =========================================================================
    # SETTLEMENT
    # =========================================================================

    def outstanding_balances(self) -> list[PersonBalance]:
        return compute_outstanding_balances(
            self.transactions(),
            people=self.people(),
            categories=self.categories(),
            min_balance=self._ledger_settings.min_outstanding_balance,
        )

    def settle_split(
        self,
        expense_id: str,
        person_id: str,
        amount,
        now: Optional[datetime] = None,
    ) -> Optional[Transaction]:
        """
        Settle one person's share of one expense.

        Returns the settlement income, or None when no unsettled split of
        that person matches the amount. The miss is logged as a warning and
        nothing is written.
        """
        transactions = self.transactions()
        updated = settle_split(
            transactions,
            expense_id,
            person_id,
            amount,
            people=self.people(),
            categories=self.categories(),
            now=now,
            tolerance=self._ledger_settings.settlement_tolerance,
        )
        if updated is transactions:
            self._events.log_settlement_not_matched(expense_id, person_id, str(to_money(amount)))
            return None

        self._save_transactions(updated)
        income = updated[0]
        self._events.log_split_settled(expense_id, person_id, str(income.amount), income.id)
        return income

    def settle_all(self, person_id: str, now: Optional[datetime] = None) -> Optional[Transaction]:
        """
        Settle everything a person owes with one income.

        Returns None if the person owes nothing.
        """
        balance = next(
            (b for b in self.outstanding_balances() if b.person_id == person_id),
            None,
        )
        if balance is None:
            return None

        transactions = self.transactions()
        updated = settle_all_for_person(
            transactions,
            person_id,
            balance.total_owed,
            balance.unsettled_splits,
            person_name=balance.person_name,
            now=now,
            category_id=self._ledger_settings.settlement_category_id,
        )
        if updated is transactions:
            return None

        self._save_transactions(updated)
        income = updated[0]
        self._events.log_person_settled_all(
            person_id,
            str(income.amount),
            [split.expense_id for split in balance.unsettled_splits],
            income.id,
        )
        return income

    def delete_transaction(self, transaction_id: str) -> list[Transaction]:
        """
        Delete a transaction with the reversal/cascade rules applied.

        Returns the removed transactions (empty when the id is unknown).
        """
        transactions = self.transactions()
        target = find_transaction(transactions, transaction_id)
        if target is None:
            return []

        cascaded = related_settlements(transactions, transaction_id) if target.is_expense else []
        updated = delete_transaction(transactions, transaction_id)
        self._save_transactions(updated)

        if target.is_settlement:
            self._events.log_settlement_reversed(
                target.id, target.related_expense_id, target.related_person_id,
            )
        elif cascaded:
            self._events.log_expense_cascade_deleted(target.id, [tx.id for tx in cascaded])

        removed = [target, *cascaded]
        self._events.log_transaction_deleted(transaction_id, len(removed))
        return removed

    # =========================================================================
    # PEOPLE, CATEGORIES, GOALS
    # =========================================================================

    def add_person(
        self,
        name: str,
        tags: Optional[list[str]] = None,
        now: Optional[datetime] = None,
    ) -> Person:
        people, person = add_person(self.people(), name, tags=tags, now=now)
        self._people.save(self._storage_settings.people_key, people)
        return person

    def remove_person(self, person_id: str) -> None:
        self._people.save(
            self._storage_settings.people_key,
            remove_person(self.people(), person_id),
        )

    def add_category(
        self,
        name: str,
        group: CategoryGroup = CategoryGroup.MISCELLANEOUS,
        icon: CategoryIcon = CategoryIcon.PACKAGE,
    ) -> Category:
        categories, category = add_category(self.categories(), name, group=group, icon=icon)
        self._categories.save(self._storage_settings.categories_key, categories)
        return category

    def set_savings_goal(self, name: str, amount, month: str) -> SavingsGoal:
        goals = set_goal(self.goals(), name, amount, month)
        self._goals.save(self._storage_settings.goals_key, goals)
        return next(goal for goal in goals if goal.month == month)

    def delete_savings_goal(self, month: str) -> None:
        self._goals.save(self._storage_settings.goals_key, delete_goal(self.goals(), month))

    def savings_progress(self, month: str) -> Optional[GoalProgress]:
        return goal_progress(self.goals(), self.transactions(), month)

    # =========================================================================
    # SUMMARIES AND EXPORT
    # =========================================================================

    def monthly_summary(self, month: str) -> MonthlySummary:
        return monthly_summary(self.transactions(), month)

    def expenses_by_category(self, month: Optional[str] = None) -> list[CategoryTotal]:
        return expenses_by_category(self.transactions(), self.categories(), month=month)

    def spending_trend(self, period: TrendPeriod, today: Optional[date] = None) -> list[TrendPoint]:
        return spending_trend(self.transactions(), period, today or utcnow().date())

    def search(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        term: str = "",
    ) -> list[Transaction]:
        return filter_transactions(
            self.transactions(), self.categories(), date_from=date_from, date_to=date_to, search=term,
        )

    def export_csv(self, transactions: Optional[list[Transaction]] = None) -> str:
        if transactions is None:
            transactions = self.transactions()
        return to_csv(transactions, self.categories(), self.people())

    def export_backup(self, password: str) -> str:
        transactions = self.transactions()
        blob = export_backup(transactions, self.categories(), self.people(), password)
        self._events.log_backup_exported(len(transactions))
        return blob

    def import_backup(self, blob: str, password: str) -> None:
        """
        Replace expenses, categories and people with a backup's content.

        Nothing is written unless the whole backup decrypts and validates.
        """
        snapshot = import_backup(blob, password)
        self._save_transactions(snapshot.expenses)
        self._categories.save(self._storage_settings.categories_key, snapshot.categories)
        self._people.save(self._storage_settings.people_key, snapshot.people)
        self._events.log_backup_imported(len(snapshot.expenses))

    # =========================================================================
    # AI-ASSISTED INPUT
    # =========================================================================

    def _client(self) -> ModelClient:
        if self._model_client is None:
            self._model_client = GeminiModelClient()
        return self._model_client

    async def ask_assistant(self, query: str, now: Optional[datetime] = None) -> AssistantResponse:
        """Ask the assistant. Any returned action is NOT applied here."""
        flow = AssistantFlow(self._client(), event_logger=self._events)
        return await flow.ask(query, self.transactions(), self.categories(), self.people(), now=now)

    def apply_assistant_action(
        self,
        action: AssistantAction,
        now: Optional[datetime] = None,
    ) -> Transaction:
        params = action.parameters
        return self.add_expense(params.amount, params.category_id, note=params.note, now=now)

    async def parse_voice_expense(self, query: str, now: Optional[datetime] = None) -> VoiceExpense:
        flow = VoiceExpenseParser(self._client(), event_logger=self._events)
        return await flow.parse(query, self.categories(), now=now)

    async def itemize_receipt(self, photo_data_uri: str) -> ReceiptItemization:
        return await ReceiptItemizer(self._client(), event_logger=self._events).itemize(photo_data_uri)

    async def parse_statement(
        self,
        statement_data_uri: str,
        now: Optional[datetime] = None,
    ) -> ParsedStatement:
        flow = StatementParser(self._client(), event_logger=self._events)
        return await flow.parse(statement_data_uri, self.categories(), now=now)

    def log_receipt_items(
        self,
        items: list[ReceiptItem],
        category_ids: Optional[Mapping[int, str]] = None,
        attachment_ref: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[Transaction]:
        """
        Record the chosen receipt items as expenses, one per item.

        Items without a chosen category go to 'Other'. Items with a
        non-positive price are skipped. The receipt attachment is stored
        on the first recorded item only.
        """
        now = now or utcnow()
        category_ids = category_ids or {}
        prefix = new_transaction_id(EXPENSE_PREFIX, now)

        expenses = []
        for index, item in enumerate(items):
            if item.price <= 0:
                continue
            expenses.append(create_expense(
                item.price,
                category_ids.get(index) or OTHER_CATEGORY_ID,
                note=item.description,
                attachment_ref=attachment_ref if not expenses else None,
                now=now,
                transaction_id=f"{prefix}-{index}",
            ))

        if expenses:
            self._save_transactions(add_transactions(self.transactions(), expenses))
            for expense in expenses:
                self._events.log_transaction_added(expense.id, expense.kind.value, str(expense.amount))
        return expenses

    def import_statement(
        self,
        parsed: Iterable[StatementTransaction],
        selected: Optional[Iterable[int]] = None,
        category_ids: Optional[Mapping[int, str]] = None,
        now: Optional[datetime] = None,
    ) -> list[Transaction]:
        """
        Record the selected statement lines, dated on their statement day.

        `selected` holds indexes into `parsed` (all lines when omitted).
        `category_ids` overrides the suggested category per index; lines
        with neither fall back to 'Other'.
        """
        parsed = list(parsed)
        now = now or utcnow()
        chosen = set(range(len(parsed)) if selected is None else selected)
        category_ids = category_ids or {}
        millis = int(now.timestamp() * 1000)

        imported = []
        for index, line in enumerate(parsed):
            if index not in chosen:
                continue
            category_id = (
                category_ids.get(index) or line.suggested_category_id or OTHER_CATEGORY_ID
            )
            timestamp = datetime.combine(line.transaction_date, time(), tzinfo=timezone.utc)
            if line.kind == TransactionKind.INCOME:
                imported.append(create_income(
                    line.amount,
                    category_id,
                    note=line.description,
                    now=timestamp,
                    transaction_id=f"{INCOME_PREFIX}-{millis}-{index}",
                ))
            else:
                imported.append(create_expense(
                    line.amount,
                    category_id,
                    note=line.description,
                    now=timestamp,
                    transaction_id=f"{EXPENSE_PREFIX}-{millis}-{index}",
                ))

        if imported:
            self._save_transactions(add_transactions(self.transactions(), imported))
        self._events.log_statement_imported(len(imported), len(parsed) - len(imported))
        return imported


def create_app_components(
    data_dir: Optional[Path] = None,
    use_file_storage: bool = True,
    model_client: Optional[ModelClient] = None,
) -> LedgerService:
    """
    Factory function to create the application service.

    Args:
        data_dir: Overrides STORAGE_DATA_DIR
        use_file_storage: Set to False to keep everything in memory
        model_client: Defaults to Gemini, created on first AI call

    Returns:
        A ready LedgerService
    """
    settings = get_settings()
    event_logger = LedgerEventLogger()
    storage: KeyValueStorageInterface

    if use_file_storage:
        try:
            storage = JsonFileStorage(data_dir or settings.storage.data_dir)
        except StorageUnavailableError as e:
            # Data directory not usable - continue in memory
            get_logger("pennypincher").warning("storage_unavailable", error=str(e))
            storage = InMemoryStorage()
    else:
        storage = InMemoryStorage()

    return LedgerService(
        storage,
        model_client=model_client,
        event_logger=event_logger,
    )
