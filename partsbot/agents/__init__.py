"""
Tool calling for the parts assistant.

This package provides:
- The tool schema exposed to the language model
- The dispatcher that executes tool calls
- Prompts and context rendering
- Static fallback data for installation and troubleshooting
"""

from .prompts import SYSTEM_PROMPT
from .tools import TOOL_SCHEMAS, ToolCallOutcome, ToolDispatcher

__all__ = [
    "SYSTEM_PROMPT",
    "TOOL_SCHEMAS",
    "ToolCallOutcome",
    "ToolDispatcher",
]
