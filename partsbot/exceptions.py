"""
Error taxonomy for the assistant.

Provider-specific failures (openai, chromadb) are translated into these
types at the client boundary so the pipeline can decide, per type, whether
a failure is fatal to the turn or only to a single tool call.
"""
from typing import Optional


class AssistantError(Exception):
    """Base class for all assistant errors."""


class EmbeddingError(AssistantError):
    """The embedding endpoint failed or the text cannot be embedded."""


class ProductIndexError(AssistantError):
    """The product vector index is unreachable or misconfigured."""


class LanguageModelError(AssistantError):
    """The chat model call failed."""


class UnknownToolError(AssistantError):
    """The model requested a tool outside the supported set."""

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool call: {tool_name}")
        self.tool_name = tool_name


class ToolExecutionError(AssistantError):
    """A single tool call failed; sibling calls and the turn continue."""

    def __init__(self, tool_name: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.tool_name = tool_name
        self.cause = cause


class TurnTimeoutError(AssistantError):
    """The chat turn exceeded its wall-clock budget."""
