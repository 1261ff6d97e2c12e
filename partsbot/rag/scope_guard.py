"""
Domain boundary checks for refrigerator and dishwasher support.

Two checkpoints, both pure pattern matches over lowercased text:
- pre-check on the raw user message (short-circuits the turn)
- post-check on the drafted answer (replaces an answer that drifted)

The term and pattern tables are constructor arguments so they can be
configured or replaced in tests.
"""

import logging
import re
from typing import Iterable, List, Pattern, Sequence

logger = logging.getLogger(__name__)

REDIRECT_MESSAGE = (
    "I'm sorry, I'm only able to assist with refrigerator and dishwasher parts at this time. "
    "I'd be happy to help you find parts, check compatibility, or troubleshoot issues with "
    "these specific appliances."
)

UNSUPPORTED_APPLIANCES = (
    "oven", "microwave", "washing machine", "washer", "dryer",
    "stove", "range", "air conditioner", "blender", "toaster",
)

SUPPORTED_APPLIANCES = ("refrigerator", "fridge", "dishwasher")

# {appliance} is replaced by the escaped appliance term
QUERY_PATTERN_TEMPLATES = (
    r"\b{appliance}\b",
    r"my\s+{appliance}",
    r"recommend.*\s+{appliance}",
    r"best\s+{appliance}",
)

# Appliances an answer must not recommend, describe or offer help with
ANSWER_APPLIANCES = ("oven", "microwave", "washer", "dryer", "stove")

# {appliances} is replaced by an alternation of ANSWER_APPLIANCES
ANSWER_PATTERN_TEMPLATES = (
    r"recommend.*\b({appliances})\b",
    r"best\s+({appliances})\b",
    r"information.*\b({appliances})\b",
    r"can.*help.*\b({appliances})\b",
)


class ScopeGuard:
    """Flags user messages and drafted answers about unsupported appliances."""

    def __init__(
        self,
        unsupported_appliances: Sequence[str] = UNSUPPORTED_APPLIANCES,
        supported_appliances: Sequence[str] = SUPPORTED_APPLIANCES,
        query_pattern_templates: Sequence[str] = QUERY_PATTERN_TEMPLATES,
        answer_appliances: Sequence[str] = ANSWER_APPLIANCES,
        answer_pattern_templates: Sequence[str] = ANSWER_PATTERN_TEMPLATES,
        redirect_message: str = REDIRECT_MESSAGE,
    ):
        self.redirect_message = redirect_message
        self._query_patterns = self._compile_query_patterns(unsupported_appliances, query_pattern_templates)
        self._supported_pattern = re.compile(
            r"(" + "|".join(re.escape(term) for term in supported_appliances) + r")"
        )
        self._answer_patterns = self._compile_answer_patterns(answer_appliances, answer_pattern_templates)

    @staticmethod
    def _compile_query_patterns(appliances: Iterable[str], templates: Iterable[str]) -> List[Pattern]:
        return [
            re.compile(template.format(appliance=re.escape(appliance.lower())))
            for appliance in appliances
            for template in templates
        ]

    @staticmethod
    def _compile_answer_patterns(appliances: Iterable[str], templates: Iterable[str]) -> List[Pattern]:
        alternation = "|".join(re.escape(appliance.lower()) for appliance in appliances)
        return [re.compile(template.format(appliances=alternation)) for template in templates]

    def mentions_supported_appliance(self, text: str) -> bool:
        return bool(self._supported_pattern.search(text.lower()))

    def is_out_of_scope(self, user_text: str) -> bool:
        """
        Pre-check on the raw user message.

        A message that also mentions a supported appliance is never flagged;
        it may be a comparison and the model handles it.
        """
        text = user_text.lower()
        if not any(pattern.search(text) for pattern in self._query_patterns):
            return False
        if self.mentions_supported_appliance(text):
            return False
        logger.info(f"Out-of-scope query: {user_text[:100]!r}")
        return True

    def answer_out_of_scope(self, answer_text: str) -> bool:
        """Post-check on a drafted answer."""
        text = answer_text.lower()
        flagged = any(pattern.search(text) for pattern in self._answer_patterns)
        if flagged:
            logger.warning("Drafted answer drifted to an unsupported appliance; redirecting")
        return flagged

