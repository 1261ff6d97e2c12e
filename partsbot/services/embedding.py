"""
Abstract embedding service interface and implementations.

The embedder turns text into a fixed-length vector. Concrete implementations
can be swapped out based on the chosen provider; the default uses the
OpenAI embeddings endpoint.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from openai import AsyncOpenAI, OpenAIError

from partsbot.exceptions import EmbeddingError
from partsbot.models.schemas import ProductRecord

logger = logging.getLogger(__name__)


class Embedder(ABC):
    """Abstract base class for text embedding."""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """
        Embed a single text.

        Raises:
            EmbeddingError: If the text is empty or the provider fails
        """
        pass

    @abstractmethod
    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Embed several texts in one request, preserving order."""
        pass


class OpenAIEmbedder(Embedder):
    """Embedder backed by the OpenAI embeddings API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "text-embedding-3-small",
        base_url: Optional[str] = None,
    ):
        """
        Initialize the embedder.

        Args:
            api_key: OpenAI API key
            model: Embedding model identifier
            base_url: Optional OpenAI-compatible endpoint
        """
        self.model = model
        if api_key:
            self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        else:
            self.client = None

    def _require_client(self) -> AsyncOpenAI:
        if self.client is None:
            raise EmbeddingError("Embedding API key not configured. Set EMBEDDING_API_KEY in .env")
        return self.client

    async def embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed an empty query")
        client = self._require_client()

        try:
            response = await client.embeddings.create(model=self.model, input=text)
        except OpenAIError as e:
            logger.error(f"Embedding request failed: {type(e).__name__}: {e}")
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        return list(response.data[0].embedding)

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        if any(not text or not text.strip() for text in texts):
            raise EmbeddingError("Cannot embed an empty text in a batch")
        client = self._require_client()

        try:
            response = await client.embeddings.create(model=self.model, input=texts)
        except OpenAIError as e:
            logger.error(f"Batch embedding request failed: {type(e).__name__}: {e}")
            raise EmbeddingError(f"Batch embedding request failed: {e}") from e

        ordered = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in ordered]


def build_product_document(product: ProductRecord) -> str:
    """
    Render the text that represents a product in the vector index.

    Args:
        product: Catalog record

    Returns:
        Multi-line text combining identifiers, description and guidance
    """
    lines = [
        f"Product: {product.name}",
        f"Part Number: {product.part_number}",
        f"Description: {product.description}",
        f"Category: {product.category}",
        f"Subcategory: {product.subcategory}",
        f"Brand: {product.brand}",
        f"Compatible Models: {', '.join(product.compatible_models)}",
    ]
    lines.extend(f"{key}: {value}" for key, value in product.specifications.items())
    if product.installation_steps:
        lines.append(f"Installation Steps: {'. '.join(product.installation_steps)}")
    if product.troubleshooting_tips:
        lines.append(f"Troubleshooting Tips: {'. '.join(product.troubleshooting_tips)}")
    return "\n".join(line for line in lines if line)
