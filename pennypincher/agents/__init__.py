"""AI agents package."""

from pennypincher.agents.flows import (
    AssistantAction,
    AssistantFlow,
    AssistantResponse,
    LogExpenseParameters,
    ParsedStatement,
    ReceiptItem,
    ReceiptItemization,
    ReceiptItemizer,
    StatementParser,
    StatementTransaction,
    VoiceExpense,
    VoiceExpenseParser,
    format_current_date,
)
from pennypincher.agents.model import (
    FlowError,
    GeminiModelClient,
    InvalidMediaError,
    ModelClient,
    ModelInvocationError,
    NoValidOutputError,
    extract_json_object,
    parse_data_uri,
    validate_output,
)

__all__ = [
    # Flows
    "AssistantFlow",
    "ReceiptItemizer",
    "StatementParser",
    "VoiceExpenseParser",
    "format_current_date",
    # Output schemas
    "AssistantAction",
    "AssistantResponse",
    "LogExpenseParameters",
    "ParsedStatement",
    "ReceiptItem",
    "ReceiptItemization",
    "StatementTransaction",
    "VoiceExpense",
    # Model client
    "GeminiModelClient",
    "ModelClient",
    "extract_json_object",
    "parse_data_uri",
    "validate_output",
    # Exceptions
    "FlowError",
    "InvalidMediaError",
    "ModelInvocationError",
    "NoValidOutputError",
]
