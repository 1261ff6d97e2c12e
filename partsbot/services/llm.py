"""
Abstract LLM service interface and implementations.

This module defines a package-agnostic interface for chat completions with
tool calling. Concrete implementations can be swapped out based on the chosen
LLM provider (e.g., DeepSeek, OpenAI).
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from partsbot.exceptions import LanguageModelError
from partsbot.models.schemas import LLMResponse, ToolCall

logger = logging.getLogger(__name__)


class LLMService(ABC):
    """
    Abstract base class for LLM operations.

    Implementations should handle:
    - API authentication
    - Tool schema formatting
    - Parsing of text and tool calls
    """

    @abstractmethod
    async def complete(
        self,
        messages: List[Dict[str, str]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> LLMResponse:
        """
        Run one chat completion.

        Args:
            messages: Chat messages as {"role", "content"} dicts
            tools: Optional tool schemas; the model decides whether to call them

        Returns:
            LLMResponse with the text content and any tool calls

        Raises:
            LanguageModelError: If the provider call fails
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the LLM service is available.

        Returns:
            True if service is available, False otherwise
        """
        pass


class DeepSeekLLMService(LLMService):
    """
    LLM service implementation for DeepSeek.

    DeepSeek uses OpenAI-compatible API, so we use the OpenAI client
    with a custom base URL.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "deepseek-chat",
        base_url: str = "https://api.deepseek.com",
        temperature: float = 0.7,
        max_tokens: int = 1500,
    ):
        """
        Initialize the DeepSeek LLM service.

        Args:
            api_key: DeepSeek API key
            model: Model identifier to use (default: deepseek-chat)
            base_url: OpenAI-compatible endpoint
            temperature: Sampling temperature
            max_tokens: Maximum length of the response
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        if api_key:
            self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        else:
            self.client = None

    @staticmethod
    def _format_tools(tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        formatted = []
        for tool in tools:
            if tool.get("type") == "function" and "function" not in tool:
                formatted.append({
                    "type": "function",
                    "function": {
                        "name": tool["name"],
                        "description": tool.get("description", ""),
                        "parameters": tool.get("parameters", {}),
                    },
                })
            else:
                formatted.append(tool)
        return formatted

    @staticmethod
    def _parse_tool_calls(raw_calls) -> List[ToolCall]:
        tool_calls = []
        for raw in raw_calls or []:
            try:
                args = json.loads(raw.function.arguments or "{}")
            except json.JSONDecodeError as e:
                logger.error(f"Error parsing arguments for tool {raw.function.name}: {e}")
                args = {}
            if not isinstance(args, dict):
                args = {}
            tool_calls.append(ToolCall(name=raw.function.name, args=args, id=raw.id))
        return tool_calls

    async def complete(
        self,
        messages: List[Dict[str, str]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> LLMResponse:
        if not self.client:
            raise LanguageModelError("DeepSeek API key not configured. Set LLM_API_KEY in .env")

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if tools:
            payload["tools"] = self._format_tools(tools)
            payload["tool_choice"] = "auto"

        logger.info(f"Calling {self.model}: {len(messages)} messages, tools={bool(tools)}")

        try:
            response = await self.client.chat.completions.create(**payload)
        except OpenAIError as e:
            logger.error(f"LLM API call failed: {type(e).__name__}: {e}")
            raise LanguageModelError(f"LLM API call failed: {e}") from e

        if not response.choices:
            raise LanguageModelError("LLM returned no choices")

        message = response.choices[0].message
        return LLMResponse(
            content=message.content or "",
            tool_calls=self._parse_tool_calls(message.tool_calls),
        )

    async def health_check(self) -> bool:
        """Check DeepSeek API availability."""
        if not self.client:
            return False
        try:
            await self.client.models.list()
            return True
        except OpenAIError:
            return False
