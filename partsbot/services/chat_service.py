"""
Chat service orchestration layer.

This module handles one chat turn end-to-end:
1. Scope pre-check on the user message
2. First LLM completion with the tool schema
3. Concurrent tool execution and context assembly
4. Final LLM completion grounded in the tool results
5. Scope post-check and grounding verification

The turn runs as a small state machine under a wall-clock budget.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from partsbot.agents import prompts
from partsbot.agents.tools import (
    CHECK_COMPATIBILITY,
    GET_INSTALLATION_STEPS,
    GET_TROUBLESHOOTING_TIPS,
    SEARCH_PRODUCTS,
    TOOL_SCHEMAS,
    ToolCallOutcome,
    ToolDispatcher,
)
from partsbot.exceptions import (
    EmbeddingError,
    ProductIndexError,
    ToolExecutionError,
    TurnTimeoutError,
    UnknownToolError,
)
from partsbot.models.schemas import (
    ChatMessage,
    RetrievedResult,
    SearchArguments,
    ToolCall,
)
from partsbot.rag.grounding import GroundingVerifier
from partsbot.rag.refiner import ResultRefiner
from partsbot.rag.scope_guard import ScopeGuard
from partsbot.services.llm import LLMService

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    """States of one chat turn."""
    AWAITING_FIRST_COMPLETION = "awaiting_first_completion"
    EXECUTING_TOOLS = "executing_tools"
    AWAITING_FINAL_COMPLETION = "awaiting_final_completion"
    DONE = "done"


@dataclass
class TurnResult:
    """Final answer of a turn plus the products retained for display."""
    content: str
    product_results: List[RetrievedResult] = field(default_factory=list)
    tool_outcomes: List[ToolCallOutcome] = field(default_factory=list)
    out_of_scope: bool = False


@dataclass
class _Turn:
    user_text: str
    messages: List[Dict[str, str]]
    state: TurnState = TurnState.AWAITING_FIRST_COMPLETION
    content: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)
    outcomes: List[ToolCallOutcome] = field(default_factory=list)
    context_sections: List[str] = field(default_factory=list)
    product_results: List[RetrievedResult] = field(default_factory=list)

    def retain(self, products: Sequence[RetrievedResult]) -> None:
        known = {p.part_number for p in self.product_results}
        for product in products:
            if product.part_number not in known:
                self.product_results.append(product)
                known.add(product.part_number)


class ChatService:
    """
    Orchestrates the chat workflow: scope check -> LLM -> tools -> LLM -> verification.
    """

    def __init__(
        self,
        llm_service: LLMService,
        dispatcher: ToolDispatcher,
        refiner: Optional[ResultRefiner] = None,
        scope_guard: Optional[ScopeGuard] = None,
        verifier: Optional[GroundingVerifier] = None,
        system_prompt: str = prompts.SYSTEM_PROMPT,
        history_window: int = 10,
        turn_timeout: float = 30.0,
    ):
        """
        Initialize the chat service.

        Args:
            llm_service: Language model client
            dispatcher: Executes tool calls requested by the model
            refiner: Narrows search results per call
            scope_guard: Domain pre- and post-checks
            verifier: Grounding check of the final answer
            system_prompt: Prepended when the conversation has no system message
            history_window: Number of recent non-system messages sent to the model
            turn_timeout: Wall-clock budget for one turn, in seconds
        """
        self.llm_service = llm_service
        self.dispatcher = dispatcher
        self.refiner = refiner or ResultRefiner()
        self.scope_guard = scope_guard or ScopeGuard()
        self.verifier = verifier or GroundingVerifier()
        self.system_prompt = system_prompt
        self.history_window = history_window
        self.turn_timeout = turn_timeout

    def build_llm_messages(
        self,
        messages: List[ChatMessage],
        part_number: Optional[str] = None,
        model_number: Optional[str] = None,
    ) -> List[Dict[str, str]]:
        """
        Assemble the message list sent to the model.

        Caller-provided system messages are kept; otherwise the default system
        prompt is prepended. Only the most recent history_window
        conversation messages are forwarded.
        """
        system = [{"role": m.role, "content": m.content} for m in messages if m.role == "system"]
        if not system:
            system = [{"role": "system", "content": self.system_prompt}]

        hint = prompts.detected_identifiers_hint(part_number, model_number)
        if hint:
            logger.info(f"Info for LLM: {hint!r}")
            system.append({"role": "system", "content": hint})

        conversation = [m for m in messages if m.role != "system"]
        if self.history_window > 0:
            conversation = conversation[-self.history_window:]
        return system + [{"role": m.role, "content": m.content} for m in conversation]

    async def handle_turn(
        self,
        messages: List[ChatMessage],
        part_number: Optional[str] = None,
        model_number: Optional[str] = None,
    ) -> TurnResult:
        """
        Handle a chat turn end-to-end.

        Args:
            messages: Conversation so far, ending with the user's message
            part_number: Part number detected by the UI, if any
            model_number: Model number detected by the UI, if any

        Returns:
            TurnResult with the final answer and retained products

        Raises:
            ValueError: If there is no user message
            LanguageModelError: If a completion fails
            TurnTimeoutError: If the turn exceeds its time budget
        """
        user_message = next((m for m in reversed(messages) if m.role == "user"), None)
        if user_message is None:
            raise ValueError("No user message found")

        if self.scope_guard.is_out_of_scope(user_message.content):
            return TurnResult(content=self.scope_guard.redirect_message, out_of_scope=True)

        turn = _Turn(
            user_text=user_message.content,
            messages=self.build_llm_messages(messages, part_number, model_number),
        )
        try:
            await asyncio.wait_for(self._run(turn), timeout=self.turn_timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Turn exceeded {self.turn_timeout}s in state {turn.state.value}")
            raise TurnTimeoutError(f"Turn exceeded {self.turn_timeout} seconds") from e

        if self.scope_guard.answer_out_of_scope(turn.content):
            return TurnResult(
                content=self.scope_guard.redirect_message,
                tool_outcomes=turn.outcomes,
                out_of_scope=True,
            )

        content = turn.content
        if turn.product_results:
            content = self.verifier.verify(content, turn.product_results)

        return TurnResult(
            content=content,
            product_results=turn.product_results,
            tool_outcomes=turn.outcomes,
        )

    async def _run(self, turn: _Turn) -> None:
        steps = {
            TurnState.AWAITING_FIRST_COMPLETION: self._first_completion,
            TurnState.EXECUTING_TOOLS: self._execute_tools,
            TurnState.AWAITING_FINAL_COMPLETION: self._final_completion,
        }
        while turn.state is not TurnState.DONE:
            await steps[turn.state](turn)

    async def _first_completion(self, turn: _Turn) -> None:
        response = await self.llm_service.complete(turn.messages, TOOL_SCHEMAS)
        turn.content = response.content
        turn.tool_calls = response.tool_calls
        turn.state = TurnState.EXECUTING_TOOLS if turn.tool_calls else TurnState.DONE

    async def _execute_tools(self, turn: _Turn) -> None:
        turn.outcomes = await self.dispatcher.execute_all(turn.tool_calls)
        for outcome in turn.outcomes:
            section = self._context_for(outcome, turn)
            if section:
                turn.context_sections.append(section)
        turn.state = TurnState.AWAITING_FINAL_COMPLETION if turn.context_sections else TurnState.DONE

    async def _final_completion(self, turn: _Turn) -> None:
        logger.info(f"Additional context: {len(turn.context_sections)} sections")
        context = {"role": "system", "content": prompts.context_message(turn.context_sections)}
        response = await self.llm_service.complete(turn.messages + [context])
        turn.content = response.content
        turn.state = TurnState.DONE

    def _context_for(self, outcome: ToolCallOutcome, turn: _Turn) -> Optional[str]:
        call = outcome.call
        if not outcome.ok:
            error = outcome.error
            if isinstance(error, UnknownToolError):
                return None
            if call.name == SEARCH_PRODUCTS and isinstance(error, ToolExecutionError) and isinstance(
                error.cause, (EmbeddingError, ProductIndexError)
            ):
                return prompts.NO_PRODUCTS_FOUND
            return prompts.tool_error(call.name, str(error))

        if call.name == SEARCH_PRODUCTS:
            return self._search_context(outcome, turn)
        if call.name == GET_INSTALLATION_STEPS:
            return prompts.format_installation(outcome.result)
        if call.name == CHECK_COMPATIBILITY:
            if outcome.result.product is not None:
                turn.retain([outcome.result.product])
            return prompts.format_compatibility(outcome.result)
        if call.name == GET_TROUBLESHOOTING_TIPS:
            return prompts.format_troubleshooting(outcome.result)
        return None

    def _search_context(self, outcome: ToolCallOutcome, turn: _Turn) -> str:
        args = outcome.result.args or SearchArguments()
        products = self.refiner.refine(outcome.result.results, args, turn.user_text)
        if not products:
            return prompts.NO_PRODUCTS_FOUND

        turn.retain(products)
        sections = [prompts.format_products(products)]

        if args.model_number:
            if any(p.model_compatibility_unknown for p in products):
                sections.append(prompts.unconfirmed_model_note(args.model_number, args.query))
            else:
                model_key = args.model_number.lower()
                exact = any(
                    model.lower() == model_key for p in products for model in p.compatible_models
                )
                if not exact:
                    sections.append(prompts.no_exact_model_match_note(args.model_number))

        return "\n\n".join(sections)

    async def health_check(self) -> dict:
        """
        Check health of all dependent services.

        Returns:
            Dictionary with health status of each service
        """
        index_health = await self.dispatcher.retrieval.index.health_check()
        llm_health = await self.llm_service.health_check()

        return {
            "product_index": index_health,
            "llm_service": llm_health,
            "overall": index_health and llm_health,
        }
