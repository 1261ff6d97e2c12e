"""
Tool schema exposed to the language model and the dispatcher that runs it.

Four read-only tools are available: product search, installation steps,
compatibility check and troubleshooting tips. Calls issued in the same turn
run concurrently and fail independently.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from partsbot.agents.fallback_data import (
    INSTALLATION_STEPS,
    TROUBLESHOOTING_TIPS,
    best_issue_match,
)
from partsbot.exceptions import (
    AssistantError,
    EmbeddingError,
    ProductIndexError,
    ToolExecutionError,
    UnknownToolError,
)
from partsbot.models.schemas import (
    CompatibilityResult,
    InstallationResult,
    SearchArguments,
    SearchOutcome,
    ToolCall,
    TroubleshootingResult,
)
from partsbot.rag.retrieval import RetrievalEngine

logger = logging.getLogger(__name__)

SEARCH_PRODUCTS = "search_products"
GET_INSTALLATION_STEPS = "get_installation_steps"
CHECK_COMPATIBILITY = "check_compatibility"
GET_TROUBLESHOOTING_TIPS = "get_troubleshooting_tips"

APPLIANCE_TYPES = ("refrigerator", "dishwasher")

# A part number is one token of letters, digits and dashes with at least one digit
PART_NUMBER_RE = re.compile(r"^(?=.*\d)[A-Z0-9\-]+$")

TOOL_SCHEMAS: List[Dict[str, Any]] = [
    {
        "type": "function",
        "name": SEARCH_PRODUCTS,
        "description": "Search for products based on part number, model compatibility, keywords, or description",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query, can include part numbers, model numbers, or descriptive terms",
                },
                "partNumber": {
                    "type": "string",
                    "description": "Specific part number to search for",
                },
                "modelNumber": {
                    "type": "string",
                    "description": "Appliance model number to check compatibility with",
                },
                "category": {
                    "type": "string",
                    "description": 'Product category (e.g., "refrigerator", "dishwasher")',
                    "enum": list(APPLIANCE_TYPES),
                },
                "brand": {
                    "type": "string",
                    "description": "Brand name to restrict the search to",
                },
                "limit": {
                    "type": "number",
                    "description": "Maximum number of results to return",
                    "default": 3,
                },
            },
            "required": ["query"],
        },
    },
    {
        "type": "function",
        "name": GET_INSTALLATION_STEPS,
        "description": "Get installation instructions for a specific part",
        "parameters": {
            "type": "object",
            "properties": {
                "partNumber": {
                    "type": "string",
                    "description": "Part number to get installation instructions for",
                },
            },
            "required": ["partNumber"],
        },
    },
    {
        "type": "function",
        "name": CHECK_COMPATIBILITY,
        "description": "Check if a part is compatible with a specific model",
        "parameters": {
            "type": "object",
            "properties": {
                "partNumber": {
                    "type": "string",
                    "description": "Part number to check compatibility for",
                },
                "modelNumber": {
                    "type": "string",
                    "description": "Model number to check compatibility with",
                },
            },
            "required": ["partNumber", "modelNumber"],
        },
    },
    {
        "type": "function",
        "name": GET_TROUBLESHOOTING_TIPS,
        "description": "Get troubleshooting tips for a specific issue",
        "parameters": {
            "type": "object",
            "properties": {
                "issue": {
                    "type": "string",
                    "description": "Description of the issue to troubleshoot",
                },
                "applianceType": {
                    "type": "string",
                    "description": "Type of appliance with the issue",
                    "enum": list(APPLIANCE_TYPES),
                },
                "modelNumber": {
                    "type": "string",
                    "description": "Model number of the appliance (optional)",
                },
            },
            "required": ["issue", "applianceType"],
        },
    },
]


@dataclass
class ToolCallOutcome:
    """Result or error of one tool call, attributed to its originating call."""
    call: ToolCall
    result: Any = None
    error: Optional[AssistantError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _required_str(args: Mapping[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Missing required argument '{key}'")
    return value.strip()


class ToolDispatcher:
    """Maps tool calls emitted by the model to retrieval operations."""

    def __init__(
        self,
        retrieval: RetrievalEngine,
        search_default_limit: int = 3,
        compatibility_limit: int = 5,
        troubleshooting_limit: int = 3,
        similarity_threshold: float = 0.3,
        installation_table: Optional[Mapping[str, List[str]]] = None,
        troubleshooting_table: Optional[Mapping[str, Mapping[str, List[str]]]] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            retrieval: Retrieval engine used by every tool
            search_default_limit: Result cap when the model gives no limit
            compatibility_limit: Candidates considered by a compatibility check
            troubleshooting_limit: Products consulted for troubleshooting tips
            similarity_threshold: Minimum Jaccard similarity for a fallback issue match
            installation_table: Fallback steps keyed by part number
            troubleshooting_table: Fallback tips keyed by appliance type, then issue
        """
        self.retrieval = retrieval
        self.search_default_limit = search_default_limit
        self.compatibility_limit = compatibility_limit
        self.troubleshooting_limit = troubleshooting_limit
        self.similarity_threshold = similarity_threshold
        self.installation_table = INSTALLATION_STEPS if installation_table is None else installation_table
        self.troubleshooting_table = (
            TROUBLESHOOTING_TIPS if troubleshooting_table is None else troubleshooting_table
        )

        self._handlers: Dict[str, Callable[[Mapping[str, Any]], Awaitable[Any]]] = {
            SEARCH_PRODUCTS: self._handle_search,
            GET_INSTALLATION_STEPS: self._handle_installation,
            CHECK_COMPATIBILITY: self._handle_compatibility,
            GET_TROUBLESHOOTING_TIPS: self._handle_troubleshooting,
        }

    @property
    def tool_names(self) -> List[str]:
        return list(self._handlers)

    async def execute(self, call: ToolCall) -> Any:
        """
        Execute one tool call.

        Raises:
            UnknownToolError: If the tool name is not supported
            ToolExecutionError: If the tool fails for any reason
        """
        handler = self._handlers.get(call.name)
        if handler is None:
            raise UnknownToolError(call.name)

        logger.info(f"Executing tool call: {call.name} {call.args}")
        try:
            return await handler(call.args)
        except ToolExecutionError:
            raise
        except Exception as e:
            raise ToolExecutionError(call.name, f"{type(e).__name__}: {e}", cause=e) from e

    async def _execute_isolated(self, call: ToolCall) -> ToolCallOutcome:
        try:
            result = await self.execute(call)
        except (UnknownToolError, ToolExecutionError) as e:
            logger.error(f"Error executing tool call {call.name}: {e}")
            return ToolCallOutcome(call=call, error=e)
        return ToolCallOutcome(call=call, result=result)

    async def execute_all(self, calls: List[ToolCall]) -> List[ToolCallOutcome]:
        """Run calls concurrently; outcomes are returned in call order."""
        outcomes = await asyncio.gather(*(self._execute_isolated(call) for call in calls))
        return list(outcomes)

    # ------------------------------------------------------------------
    # Tool handlers (raw model arguments)
    # ------------------------------------------------------------------

    async def _handle_search(self, args: Mapping[str, Any]) -> SearchOutcome:
        payload = dict(args)
        if not payload.get("limit"):
            payload["limit"] = self.search_default_limit
        return await self.search_products(SearchArguments.model_validate(payload))

    async def _handle_installation(self, args: Mapping[str, Any]) -> InstallationResult:
        return await self.get_installation_steps(_required_str(args, "partNumber"))

    async def _handle_compatibility(self, args: Mapping[str, Any]) -> CompatibilityResult:
        return await self.check_compatibility(
            _required_str(args, "partNumber"),
            _required_str(args, "modelNumber"),
        )

    async def _handle_troubleshooting(self, args: Mapping[str, Any]) -> TroubleshootingResult:
        model_number = args.get("modelNumber")
        return await self.get_troubleshooting_tips(
            _required_str(args, "issue"),
            _required_str(args, "applianceType"),
            model_number if isinstance(model_number, str) else None,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def search_products(self, args: SearchArguments) -> SearchOutcome:
        outcome = await self.retrieval.search(args)
        if outcome.results:
            logger.info(
                f"Found {len(outcome.results)} products: "
                f"{[(r.part_number, r.name) for r in outcome.results]}"
            )
        else:
            logger.info(f"No products found for query: {args.model_dump(exclude_none=True)}")
        return outcome

    async def _search_quietly(self, args: SearchArguments) -> SearchOutcome:
        """Primary-source lookup for tools that have a static fallback."""
        try:
            return await self.retrieval.search(args)
        except (EmbeddingError, ProductIndexError) as e:
            logger.warning(f"Product index lookup failed, using fallback data: {e}")
            return SearchOutcome()

    async def get_installation_steps(self, part_number: str) -> InstallationResult:
        """Installation steps from the catalog, then from the static table."""
        part_key = part_number.strip().upper()
        outcome = await self._search_quietly(
            SearchArguments(query=part_number, part_number=part_key, limit=1)
        )
        if outcome.results and outcome.results[0].installation_steps:
            logger.info(f"Found installation steps for part {part_number} in product index")
            return InstallationResult(
                part_number=part_number,
                steps=list(outcome.results[0].installation_steps),
                source="catalog",
            )

        steps = self.installation_table.get(part_key, [])
        if steps:
            logger.info(f"Found installation steps for part {part_number} in fallback data")
            return InstallationResult(part_number=part_number, steps=list(steps), source="fallback")

        logger.info(f"No installation steps found for part {part_number}")
        return InstallationResult(part_number=part_number)

    async def check_compatibility(self, part: str, model_number: str) -> CompatibilityResult:
        """
        Check whether a part (number or description) fits an appliance model.

        A product counts as compatible only when the model appears, by exact
        case-insensitive equality, in its compatible models.
        """
        candidate = part.strip().upper()
        search_args = SearchArguments(
            query=f"{part} {model_number}",
            model_number=model_number,
            part_number=candidate if PART_NUMBER_RE.match(candidate) else None,
            limit=self.compatibility_limit,
        )
        outcome = await self.retrieval.search(search_args)

        if not outcome.results:
            return CompatibilityResult(
                compatible=False,
                details=f"No compatibility information found for part {part} with model {model_number}.",
            )

        model_key = model_number.lower()
        for product in outcome.results:
            if any(model.lower() == model_key for model in product.compatible_models):
                return CompatibilityResult(
                    compatible=True,
                    details=f"Part {product.part_number} ({product.name}) is compatible with model {model_number}.",
                    product=product,
                )

        product = outcome.results[0]
        return CompatibilityResult(
            compatible=False,
            details=(
                f"Part {product.part_number} ({product.name}) is not listed as compatible "
                f"with model {model_number}."
            ),
            product=product,
        )

    async def get_troubleshooting_tips(
        self,
        issue: str,
        appliance_type: str,
        model_number: Optional[str] = None,
    ) -> TroubleshootingResult:
        """Tips from related catalog products, then from the static table."""
        appliance = appliance_type.strip().lower()
        query = f"{appliance} {issue}"
        if model_number:
            query = f"{query} {model_number}"

        outcome = await self._search_quietly(
            SearchArguments(
                query=query,
                category=appliance if appliance in APPLIANCE_TYPES else None,
                limit=self.troubleshooting_limit,
            )
        )

        tips: List[str] = []
        for product in outcome.results:
            for tip in product.troubleshooting_tips:
                if tip not in tips:
                    tips.append(tip)
        if tips:
            logger.info(f"Found {len(tips)} troubleshooting tips in product data")
            return TroubleshootingResult(tips=tips, source="catalog")

        known_issues = self.troubleshooting_table.get(appliance)
        if not known_issues:
            return TroubleshootingResult()

        match = best_issue_match(issue, known_issues, self.similarity_threshold)
        if match is None:
            logger.info(f"No fallback troubleshooting match for '{issue}' ({appliance})")
            return TroubleshootingResult()

        issue_key, similarity = match
        logger.info(f"Matched '{issue}' to fallback issue '{issue_key}' ({similarity:.2f})")
        return TroubleshootingResult(
            tips=list(known_issues[issue_key]),
            matched_issue=issue_key,
            source="fallback",
        )
