"""
Unit tests for ToolDispatcher

Tests tool execution including:
- Product search with default limits
- Compatibility checks by exact model membership
- Installation steps and troubleshooting tips with static fallbacks
- Unknown tools and per-call failure isolation
"""

import pytest

from partsbot.agents.fallback_data import INSTALLATION_STEPS, best_issue_match, jaccard_similarity
from partsbot.agents.tools import (
    CHECK_COMPATIBILITY,
    GET_INSTALLATION_STEPS,
    GET_TROUBLESHOOTING_TIPS,
    SEARCH_PRODUCTS,
    TOOL_SCHEMAS,
    ToolDispatcher,
)
from partsbot.exceptions import ProductIndexError, ToolExecutionError, UnknownToolError
from partsbot.models.schemas import SearchOutcome, ToolCall
from partsbot.rag.retrieval import RetrievalEngine
from tests.fakes import FailingProductIndex


@pytest.fixture
def empty_dispatcher(embedder, empty_index) -> ToolDispatcher:
    return ToolDispatcher(RetrievalEngine(embedder, empty_index))


@pytest.fixture
def failing_dispatcher(embedder) -> ToolDispatcher:
    return ToolDispatcher(RetrievalEngine(embedder, FailingProductIndex()))


@pytest.mark.unit
class TestSchema:
    """Test the tool schema exposed to the model"""

    def test_four_tools(self, dispatcher):
        """Test the schema and dispatcher agree on the tool set"""
        names = [tool["name"] for tool in TOOL_SCHEMAS]
        assert names == [SEARCH_PRODUCTS, GET_INSTALLATION_STEPS, CHECK_COMPATIBILITY, GET_TROUBLESHOOTING_TIPS]
        assert dispatcher.tool_names == names

    def test_required_arguments(self):
        """Test required arguments are declared per tool"""
        required = {tool["name"]: tool["parameters"].get("required", []) for tool in TOOL_SCHEMAS}
        assert required[CHECK_COMPATIBILITY] == ["partNumber", "modelNumber"]
        assert required[GET_TROUBLESHOOTING_TIPS] == ["issue", "applianceType"]


@pytest.mark.unit
class TestSearchProducts:
    """Test the search_products tool"""

    @pytest.mark.asyncio
    async def test_default_limit(self, dispatcher):
        """Test the configured default limit applies when none is given"""
        outcome = await dispatcher.execute(ToolCall(name=SEARCH_PRODUCTS, args={"query": "refrigerator"}))
        assert isinstance(outcome, SearchOutcome)
        assert len(outcome.results) == 3
        assert outcome.args.limit == 3

    @pytest.mark.asyncio
    async def test_camel_case_arguments(self, dispatcher):
        """Test model arguments arrive in camelCase"""
        outcome = await dispatcher.execute(
            ToolCall(name=SEARCH_PRODUCTS, args={"query": "ice maker", "partNumber": "DA97-07603B"})
        )
        assert [r.part_number for r in outcome.results] == ["DA97-07603B"]

    @pytest.mark.asyncio
    async def test_lower_case_part_number(self, dispatcher):
        """Test a lower-case part number finds the catalog record"""
        outcome = await dispatcher.execute(
            ToolCall(name=SEARCH_PRODUCTS, args={"query": "fan motor", "partNumber": "wpw10730972"})
        )
        assert [r.part_number for r in outcome.results] == ["WPW10730972"]
        assert outcome.args.part_number == "WPW10730972"


@pytest.mark.unit
class TestCheckCompatibility:
    """Test the check_compatibility tool"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "part, model",
        [("WR55X10942", "GSH25JSTASS"), ("wr55x10942", "gsh25jstass"), ("WR55X10942", "Gsh25JstAss")],
    )
    async def test_listed_model_is_compatible(self, dispatcher, part, model):
        """Test a listed model is compatible regardless of case"""
        result = await dispatcher.check_compatibility(part, model)
        assert result.compatible is True
        assert result.product.part_number == "WR55X10942"
        assert "is compatible with model" in result.details

    @pytest.mark.asyncio
    async def test_unlisted_model_not_compatible(self, dispatcher):
        """Test an unlisted model yields false with an explanation"""
        result = await dispatcher.check_compatibility("WR55X10942", "GSH99ZZZZZ")
        assert result.compatible is False
        assert result.details == (
            "Part WR55X10942 (GE Refrigerator Water Inlet Valve) is not listed as compatible "
            "with model GSH99ZZZZZ."
        )
        assert result.product.part_number == "WR55X10942"

    @pytest.mark.asyncio
    async def test_nothing_retrieved(self, empty_dispatcher):
        """Test a miss in the index explains that no information exists"""
        result = await empty_dispatcher.check_compatibility("WR55X10942", "GSH25JSTASS")
        assert result.compatible is False
        assert result.product is None
        assert result.details == "No compatibility information found for part WR55X10942 with model GSH25JSTASS."

    @pytest.mark.asyncio
    async def test_part_description(self, dispatcher):
        """Test a free-text part description is searched without a part filter"""
        result = await dispatcher.check_compatibility("evaporator fan motor", "LFSS2612TF0")
        assert result.compatible is True
        assert "LFSS2612TF0" in result.product.compatible_models

    @pytest.mark.asyncio
    async def test_one_word_description(self, dispatcher, product_index):
        """Test a single-word description is searched semantically, not as a part number"""
        result = await dispatcher.check_compatibility("gasket", "WRS325FDAM04")

        assert product_index.queries[0] is None
        assert result.product is not None
        assert result.compatible is True
        assert "WRS325FDAM04" in result.product.compatible_models


@pytest.mark.unit
class TestInstallationSteps:
    """Test the get_installation_steps tool"""

    @pytest.mark.asyncio
    async def test_steps_from_catalog(self, dispatcher, products_by_part):
        """Test steps come from the indexed record"""
        result = await dispatcher.get_installation_steps("WPW10730972")
        assert result.source == "catalog"
        assert result.steps == products_by_part["WPW10730972"].installation_steps

    @pytest.mark.asyncio
    async def test_steps_from_fallback_table(self, empty_dispatcher):
        """Test the static table answers when the index has nothing"""
        result = await empty_dispatcher.get_installation_steps("ps11752778")
        assert result.source == "fallback"
        assert result.steps == INSTALLATION_STEPS["PS11752778"]
        assert result.part_number == "ps11752778"

    @pytest.mark.asyncio
    async def test_fallback_when_index_fails(self, failing_dispatcher):
        """Test an unreachable index degrades to the static table"""
        result = await failing_dispatcher.get_installation_steps("PS11748915")
        assert result.source == "fallback"

    @pytest.mark.asyncio
    async def test_unknown_part(self, empty_dispatcher):
        """Test an unknown part yields no steps"""
        result = await empty_dispatcher.get_installation_steps("XYZ-000")
        assert result.steps == []
        assert result.source is None


@pytest.mark.unit
class TestTroubleshootingTips:
    """Test the get_troubleshooting_tips tool"""

    @pytest.mark.asyncio
    async def test_tips_from_catalog(self, dispatcher, embedder):
        """Test tips are collected from related products of the appliance"""
        result = await dispatcher.get_troubleshooting_tips("not draining", "Dishwasher", "WDT750SAHZ0")
        assert result.source == "catalog"
        assert result.tips
        assert len(result.tips) == len(set(result.tips))
        assert embedder.calls[-1] == "dishwasher not draining WDT750SAHZ0"

    @pytest.mark.asyncio
    async def test_similar_issue_from_fallback(self, empty_dispatcher):
        """Test a similar issue description matches the static table"""
        result = await empty_dispatcher.get_troubleshooting_tips("ice maker stopped working", "refrigerator")
        assert result.source == "fallback"
        assert result.matched_issue == "ice maker not working"
        assert result.tips

    @pytest.mark.asyncio
    async def test_dissimilar_issue(self, empty_dispatcher):
        """Test an unrelated issue yields no tips"""
        result = await empty_dispatcher.get_troubleshooting_tips("strange smell from vents", "dishwasher")
        assert result.tips == []

    @pytest.mark.asyncio
    async def test_unknown_appliance(self, empty_dispatcher):
        """Test an unsupported appliance yields no tips"""
        result = await empty_dispatcher.get_troubleshooting_tips("not cooling", "freezer")
        assert result.tips == []


@pytest.mark.unit
class TestFallbackMatching:
    """Test the word-overlap similarity used by fallbacks"""

    def test_jaccard(self):
        """Test the Jaccard index of word sets"""
        assert jaccard_similarity("ice maker not working", "ice maker stopped working") == pytest.approx(0.6)
        assert jaccard_similarity("", "") == 0.0

    def test_threshold_is_exclusive(self):
        """Test a similarity equal to the threshold is rejected"""
        known = {"door seal": ["tip"]}
        assert best_issue_match("door", known, threshold=0.5) is None
        assert best_issue_match("door seal", known, threshold=0.5) == ("door seal", 1.0)


@pytest.mark.unit
class TestExecution:
    """Test dispatch and failure isolation"""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, dispatcher):
        """Test an unsupported tool name is rejected"""
        with pytest.raises(UnknownToolError):
            await dispatcher.execute(ToolCall(name="order_part", args={}))

    @pytest.mark.asyncio
    async def test_missing_argument(self, dispatcher):
        """Test a missing required argument fails the call"""
        with pytest.raises(ToolExecutionError) as excinfo:
            await dispatcher.execute(ToolCall(name=CHECK_COMPATIBILITY, args={"partNumber": "WR55X10942"}))
        assert isinstance(excinfo.value.cause, ValueError)

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self, failing_dispatcher):
        """Test one failing call does not affect its siblings"""
        calls = [
            ToolCall(name=SEARCH_PRODUCTS, args={"query": "fan"}, id="1"),
            ToolCall(name="order_part", args={}, id="2"),
            ToolCall(name=GET_INSTALLATION_STEPS, args={"partNumber": "PS11752778"}, id="3"),
        ]
        outcomes = await failing_dispatcher.execute_all(calls)

        assert [o.call.id for o in outcomes] == ["1", "2", "3"]
        assert isinstance(outcomes[0].error, ToolExecutionError)
        assert isinstance(outcomes[0].error.cause, ProductIndexError)
        assert isinstance(outcomes[1].error, UnknownToolError)
        assert outcomes[2].ok
        assert outcomes[2].result.source == "fallback"
