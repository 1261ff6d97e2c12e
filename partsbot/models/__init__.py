"""Models package."""
from partsbot.models.schemas import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    CompatibilityResult,
    ErrorResponse,
    InstallationResult,
    LLMResponse,
    ProductRecord,
    RetrievedResult,
    SearchArguments,
    SearchOutcome,
    ToolCall,
    TroubleshootingResult,
)

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "CompatibilityResult",
    "ErrorResponse",
    "InstallationResult",
    "LLMResponse",
    "ProductRecord",
    "RetrievedResult",
    "SearchArguments",
    "SearchOutcome",
    "ToolCall",
    "TroubleshootingResult",
]
