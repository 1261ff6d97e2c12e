"""
Product retrieval for the search tool.

Builds a filtered semantic query from structured search arguments, runs it
against the product index, and relaxes the model-compatibility constraint
when strict filtering finds nothing.
"""

import logging
from typing import List

from partsbot.models.schemas import RetrievedResult, SearchArguments, SearchOutcome
from partsbot.services.embedding import Embedder
from partsbot.services.vector_search import IndexFilter, IndexMatch, ProductIndex
from partsbot.utils.field_mapper import metadata_to_result

logger = logging.getLogger(__name__)

COMPATIBLE_MODELS_FIELD = "compatibleModels"


class RetrievalEngine:
    """Semantic product search with metadata filtering and a relaxed fallback."""

    def __init__(self, embedder: Embedder, index: ProductIndex):
        """
        Initialize with the embedder and product index.

        Args:
            embedder: Converts the query text to a vector
            index: Product index searched by similarity
        """
        self.embedder = embedder
        self.index = index

    @staticmethod
    def build_filter(args: SearchArguments) -> IndexFilter:
        """
        Build the strict metadata filter for a search.

        Model compatibility is only enforced in the index when both a part
        number and a model number are given, i.e. a direct "does this part
        fit this model" question.
        """
        index_filter = IndexFilter()
        if args.category:
            index_filter.equals["category"] = args.category
        if args.brand:
            index_filter.equals["brand"] = args.brand
        if args.part_number:
            index_filter.equals["partNumber"] = args.part_number
        if args.part_number and args.model_number:
            index_filter.contains[COMPATIBLE_MODELS_FIELD] = args.model_number
        return index_filter

    @staticmethod
    def _to_results(matches: List[IndexMatch], relaxed: bool) -> List[RetrievedResult]:
        return [
            metadata_to_result(match.metadata, match.score, model_compatibility_unknown=relaxed)
            for match in matches
        ]

    async def search(self, args: SearchArguments) -> SearchOutcome:
        """
        Run a product search.

        Args:
            args: Structured search arguments from a tool call

        Returns:
            SearchOutcome; an empty result list means "no match", not an error

        Raises:
            EmbeddingError: If the query is empty or cannot be embedded
            ProductIndexError: If the index cannot be queried
        """
        vector = await self.embedder.embed(args.query)
        strict_filter = self.build_filter(args)

        matches = await self.index.query(
            vector,
            top_k=args.limit,
            filter=None if strict_filter.is_empty() else strict_filter,
        )
        if matches:
            return SearchOutcome(results=self._to_results(matches, relaxed=False), args=args)

        if not (args.model_number and args.query and COMPATIBLE_MODELS_FIELD in strict_filter.contains):
            return SearchOutcome(args=args)

        logger.info(
            f"No exact matches for model {args.model_number}, "
            f"performing general search for '{args.query}'"
        )
        relaxed_filter = strict_filter.without_membership(COMPATIBLE_MODELS_FIELD)
        matches = await self.index.query(
            vector,
            top_k=args.limit,
            filter=None if relaxed_filter.is_empty() else relaxed_filter,
        )
        return SearchOutcome(
            results=self._to_results(matches, relaxed=True),
            relaxed=bool(matches),
            args=args,
        )
