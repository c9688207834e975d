"""
AI Flows for PennyPincher

Four prompt wrappers, each a single model call with a structured output:

1. ASSISTANT:
   - CAN: Answer questions about the user's ledger in Markdown
   - CAN: Propose ONE expense to log, only when explicitly asked
   - CANNOT: Write to the ledger (the service applies the action)

2. RECEIPT ITEMIZER:
   - CAN: Read line items and a total from a receipt photo
   - CANNOT: Decide categories

3. VOICE PARSER:
   - CAN: Pull amount, category id and note out of a spoken sentence
   - MUST: Omit what it cannot find rather than guess

4. STATEMENT PARSER:
   - CAN: List the transactions of a bank/card statement (PDF or CSV)
   - MUST: Ignore balances and summary sections

The LLM is a TRANSLATOR, not an ORACLE. Every output is validated
against its schema; a non-conforming answer raises NoValidOutputError.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pennypincher.agents.model import FlowError, ModelClient
from pennypincher.events import LedgerEventLogger
from pennypincher.models.ledger import (
    Category,
    LedgerSnapshot,
    Person,
    Transaction,
    TransactionKind,
    to_money,
    utcnow,
)


def format_current_date(now: Optional[datetime] = None) -> str:
    """Human date given to the model as context, e.g. 'June 1, 2024'."""
    now = now or utcnow()
    return f"{now:%B} {now.day}, {now.year}"


def _money_or_none(v):
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return to_money(v)
    return v


# =============================================================================
# OUTPUT SCHEMAS
# =============================================================================

class LogExpenseParameters(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: Decimal = Field(..., gt=0, description="The numeric amount of the expense")
    category_id: str = Field(
        ...,
        alias="categoryId",
        description="The ID of the most relevant category for the expense"
    )
    note: str = Field(default="", description="A short, descriptive note for the expense")

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v):
        return _money_or_none(v)


class AssistantAction(BaseModel):
    """The only action the assistant may request."""

    name: Literal["logExpense"]
    parameters: LogExpenseParameters


class AssistantResponse(BaseModel):
    """Markdown answer, plus an action only for explicit logging requests."""

    answer: str
    action: Optional[AssistantAction] = None


class ReceiptItem(BaseModel):
    description: str
    price: Decimal

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v):
        return _money_or_none(v)


class ReceiptItemization(BaseModel):
    items: list[ReceiptItem] = Field(default_factory=list)
    total: Optional[Decimal] = None

    @field_validator("total", mode="before")
    @classmethod
    def coerce_total(cls, v):
        return _money_or_none(v)


class VoiceExpense(BaseModel):
    """Every field is optional: the model omits what it could not hear."""
    model_config = ConfigDict(populate_by_name=True)

    amount: Optional[Decimal] = None
    category_id: Optional[str] = Field(default=None, alias="categoryId")
    note: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v):
        return _money_or_none(v)

    @field_validator("category_id", mode="before")
    @classmethod
    def blank_category_to_none(cls, v):
        return v or None


class StatementTransaction(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: str
    amount: Decimal = Field(..., gt=0)
    transaction_date: date = Field(..., alias="date")
    kind: TransactionKind = Field(..., alias="type")
    suggested_category_id: str = Field(..., alias="suggestedCategoryId")

    @field_validator("amount", mode="before")
    @classmethod
    def positive_amount(cls, v):
        # Statements sometimes show debits as negative numbers
        v = _money_or_none(v)
        return abs(v) if isinstance(v, Decimal) else v


class ParsedStatement(BaseModel):
    transactions: list[StatementTransaction] = Field(default_factory=list)


# =============================================================================
# PROMPTS
# =============================================================================

ASSISTANT_PROMPT = """You are a financial assistant. Your primary job is to answer questions about a user's financial data. You can also log new expenses, but only when explicitly asked.

The current date is {current_date}.
User's data:
```json
{json_data}
```

User's request:
"{query}"

***IMPORTANT RULES***
1. Default to Answering: Your main goal is to provide helpful answers based on the data.
2. Strict Action Condition: You MUST ONLY use the 'action' field if the user's request contains clear, explicit keywords for creating a new expense. These keywords include "log", "add", "new expense", "charge", or "put".
3. DO NOT USE ACTION FOR QUESTIONS: For any request that is a question (e.g., "What was...", "How much did I spend...", "Show me..."), you MUST NOT use the 'action' field. Your response should only be in the 'answer' field.
4. Markdown Formatting: Format every answer in Markdown (lists for multiple items, bold for emphasis).
5. Confirmation Message: When you do use the 'action' field, the 'answer' field should contain a simple confirmation, like "Done. I've logged that for you."

Respond with ONLY a JSON object in this exact format:
{{"answer": "markdown text", "action": {{"name": "logExpense", "parameters": {{"amount": 25, "categoryId": "cat-3", "note": "gasoline"}}}}}}
Omit "action" entirely unless rule 2 applies."""

RECEIPT_PROMPT = """You are an expert receipt processing agent. Analyze the attached receipt image and extract all individual line items with their corresponding prices.

- Identify each distinct item purchased.
- Extract the price for each item as a number.
- If a total amount is clearly visible, extract it.

Respond with ONLY a JSON object in this exact format:
{"items": [{"description": "item name", "price": 4.5}], "total": 12.75}
Omit "total" if it is not visible."""

VOICE_PROMPT = """You are an intelligent expense logger. A user has spoken a query and you must extract the transaction details.

Current Date: {current_date}

Available categories:
```json
{categories_json}
```

User's query: "{query}"

1. Extract the numeric expense amount. Ignore currency symbols or names (like $, dollars, rupees).
2. Choose the most appropriate category from the list and return its 'id'. If no clear category matches, omit 'categoryId'.
3. Create a concise 'note' from the main subject of the expense (for "I spent 150 on coffee with friends" the note is "Coffee with friends").

Respond with ONLY a JSON object in this exact format:
{{"amount": 150, "categoryId": "cat-1", "note": "Coffee with friends"}}
If you cannot extract a value for a field, omit it."""

STATEMENT_PROMPT = """You are an expert financial statement analyst. Parse the attached statement (PDF or CSV) and extract all transactions.

Current Date: {current_date}

Available expense categories. Use these to suggest a category for each transaction:
```json
{categories_json}
```

For each transaction extract:
- description: the full transaction description
- amount: the transaction amount as a positive number
- date: formatted as YYYY-MM-DD; if the year is missing, infer it from the statement period or the current date
- type: "expense" (debit, withdrawal, payment) or "income" (credit, deposit)
- suggestedCategoryId: the most appropriate category id from the list; if unsure, use the id of the "Other" category

Ignore summary sections, opening/closing balances and any non-transactional text.

Respond with ONLY a JSON object in this exact format:
{{"transactions": [{{"description": "...", "amount": 12.5, "date": "2024-06-01", "type": "expense", "suggestedCategoryId": "cat-11"}}]}}"""


def _categories_json(categories: list[Category]) -> str:
    return json.dumps([c.model_dump(mode="json") for c in categories], indent=2)


# =============================================================================
# FLOWS
# =============================================================================

class _Flow:
    """Shared plumbing: one client call, logged on success and failure."""

    name = "flow"

    def __init__(
        self,
        client: ModelClient,
        event_logger: Optional[LedgerEventLogger] = None,
    ):
        self._client = client
        self._events = event_logger or LedgerEventLogger()

    async def _run(self, prompt: str, output_schema, media: Optional[str] = None):
        try:
            output = await self._client.invoke(self.name, prompt, output_schema, media=media)
        except FlowError as e:
            self._events.log_flow_failed(self.name, str(e))
            raise
        self._events.log_flow_completed(self.name)
        return output


class AssistantFlow(_Flow):
    """
    Conversational Q&A over the whole ledger.

    The full ledger is sent as JSON context. Any action in the output is
    only a proposal; LedgerService.apply_assistant_action() performs it.
    """

    name = "assistant"

    async def ask(
        self,
        query: str,
        transactions: list[Transaction],
        categories: list[Category],
        people: list[Person],
        now: Optional[datetime] = None,
    ) -> AssistantResponse:
        snapshot = LedgerSnapshot(expenses=transactions, categories=categories, people=people)
        prompt = ASSISTANT_PROMPT.format(
            current_date=format_current_date(now),
            json_data=json.dumps(snapshot.to_storage_dict(), indent=2),
            query=query,
        )
        return await self._run(prompt, AssistantResponse)


class ReceiptItemizer(_Flow):
    name = "itemize_receipt"

    async def itemize(self, photo_data_uri: str) -> ReceiptItemization:
        return await self._run(RECEIPT_PROMPT, ReceiptItemization, media=photo_data_uri)


class VoiceExpenseParser(_Flow):
    name = "log_expense_voice"

    async def parse(
        self,
        query: str,
        categories: list[Category],
        now: Optional[datetime] = None,
    ) -> VoiceExpense:
        prompt = VOICE_PROMPT.format(
            current_date=format_current_date(now),
            categories_json=_categories_json(categories),
            query=query,
        )
        return await self._run(prompt, VoiceExpense)


class StatementParser(_Flow):
    name = "statement_parser"

    async def parse(
        self,
        statement_data_uri: str,
        categories: list[Category],
        now: Optional[datetime] = None,
    ) -> ParsedStatement:
        prompt = STATEMENT_PROMPT.format(
            current_date=format_current_date(now),
            categories_json=_categories_json(categories),
        )
        return await self._run(prompt, ParsedStatement, media=statement_data_uri)
