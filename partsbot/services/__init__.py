"""Services package."""
from partsbot.services.embedding import Embedder, OpenAIEmbedder, build_product_document
from partsbot.services.llm import DeepSeekLLMService, LLMService
from partsbot.services.vector_search import (
    ChromaProductIndex,
    IndexFilter,
    IndexMatch,
    ProductIndex,
)

__all__ = [
    "ChromaProductIndex",
    "DeepSeekLLMService",
    "Embedder",
    "IndexFilter",
    "IndexMatch",
    "LLMService",
    "OpenAIEmbedder",
    "ProductIndex",
    "build_product_document",
]
