"""
Narrowing of raw search results to the most relevant subset.

Exact identifiers (part number, model number) dominate fuzzy semantic
ranking. The score-gap and similarity-band rules only compress a noisy list
when no identifier is available. Rules are tried in order and the first one
that yields a result wins.
"""

import logging
from typing import Iterable, List, Optional

from partsbot.models.schemas import RetrievedResult, SearchArguments

logger = logging.getLogger(__name__)

DEFAULT_STOPWORDS = frozenset({
    "the", "and", "with", "for", "this", "that", "what", "have", "does",
})


class ResultRefiner:
    """Selects the most relevant results of one search call."""

    def __init__(
        self,
        stopwords: Iterable[str] = DEFAULT_STOPWORDS,
        min_term_length: int = 4,
        score_gap_ratio: float = 1.5,
        score_band_ratio: float = 0.7,
    ):
        self.stopwords = frozenset(word.lower() for word in stopwords)
        self.min_term_length = min_term_length
        self.score_gap_ratio = score_gap_ratio
        self.score_band_ratio = score_band_ratio

    @staticmethod
    def fits_model(result: RetrievedResult, model_number: str) -> bool:
        """Case-insensitive substring match against the stored model strings."""
        needle = model_number.lower()
        return any(needle in model.lower() for model in result.compatible_models)

    def significant_terms(self, query: str) -> List[str]:
        return [
            term for term in query.lower().split()
            if len(term) >= self.min_term_length and term not in self.stopwords
        ]

    @staticmethod
    def _mentions_any(result: RetrievedResult, terms: List[str]) -> bool:
        fields = (result.name.lower(), result.subcategory.lower(), result.description.lower())
        return any(term in text for term in terms for text in fields)

    def _exact_part(self, results, args) -> Optional[List[RetrievedResult]]:
        if not args.part_number:
            return None
        exact = [r for r in results if r.part_number == args.part_number]
        return exact or None

    def _model_filter(self, results, args) -> Optional[List[RetrievedResult]]:
        if not args.model_number:
            return None
        compatible = [r for r in results if self.fits_model(r, args.model_number)]
        return compatible or None

    def _query_and_model(self, results, args) -> Optional[List[RetrievedResult]]:
        if not (args.query and args.model_number):
            return None
        terms = self.significant_terms(args.query)
        if not terms:
            return None
        matching = [
            r for r in results
            if self._mentions_any(r, terms) and self.fits_model(r, args.model_number)
        ]
        return matching or None

    def _score_heuristic(self, results) -> Optional[List[RetrievedResult]]:
        if len(results) < 2:
            return None
        ranked = sorted(results, key=lambda r: r.score or 0.0, reverse=True)
        top_score = ranked[0].score or 0.0
        second_score = ranked[1].score or 0.0

        if top_score > second_score * self.score_gap_ratio:
            return [ranked[0]]
        if len(ranked) > 2:
            return [r for r in ranked if (r.score or 0.0) >= top_score * self.score_band_ratio]
        return None

    def refine(
        self,
        results: List[RetrievedResult],
        args: SearchArguments,
        user_text: str = "",
    ) -> List[RetrievedResult]:
        """
        Narrow results for one search call.

        Args:
            results: Raw results of the search
            args: Arguments the search was issued with
            user_text: Latest user message, recorded for diagnostics

        Returns:
            Subset of results; the input unchanged when no rule applies
        """
        if not results:
            return []

        rules = (
            ("exact part", lambda: self._exact_part(results, args)),
            ("model filter", lambda: self._model_filter(results, args)),
            ("query and model", lambda: self._query_and_model(results, args)),
            ("score heuristic", lambda: self._score_heuristic(results)),
        )
        for rule_name, rule in rules:
            refined = rule()
            if refined is not None:
                logger.debug(
                    f"Refined {len(results)} -> {len(refined)} results by {rule_name} "
                    f"for message: {user_text[:80]!r}"
                )
                return refined

        return list(results)
