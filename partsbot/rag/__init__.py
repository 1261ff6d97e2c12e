"""
Retrieval and grounding for the parts assistant.

This package provides:
- Filtered semantic product retrieval with a relaxed fallback
- Refinement of raw results to the most relevant subset
- Grounding verification of drafted answers
- Domain scope checks
- Catalog loading and indexing
"""

from .catalog import index_catalog, load_catalog
from .grounding import GroundingVerifier, render_product_answer
from .refiner import ResultRefiner
from .retrieval import RetrievalEngine
from .scope_guard import REDIRECT_MESSAGE, ScopeGuard

__all__ = [
    "GroundingVerifier",
    "REDIRECT_MESSAGE",
    "ResultRefiner",
    "RetrievalEngine",
    "ScopeGuard",
    "index_catalog",
    "load_catalog",
    "render_product_answer",
]
