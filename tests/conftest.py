"""
Pytest configuration and shared fixtures.

Builds the seed catalog into an in-memory product index so the pipeline can
be exercised without network access.
"""

from pathlib import Path
from typing import Dict, List

import pytest

from partsbot.agents.tools import ToolDispatcher
from partsbot.models.schemas import ProductRecord
from partsbot.rag.catalog import load_catalog
from partsbot.rag.retrieval import RetrievalEngine
from partsbot.services.chat_service import ChatService
from partsbot.services.embedding import build_product_document
from partsbot.services.llm import LLMService
from partsbot.utils.field_mapper import product_to_metadata
from tests.fakes import FakeEmbedder, InMemoryProductIndex

CATALOG_PATH = Path(__file__).parent.parent / "data" / "products.json"


@pytest.fixture(scope="session")
def catalog() -> List[ProductRecord]:
    return load_catalog(CATALOG_PATH)


@pytest.fixture
def products_by_part(catalog) -> Dict[str, ProductRecord]:
    return {product.part_number: product for product in catalog}


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def product_index(catalog, embedder) -> InMemoryProductIndex:
    index = InMemoryProductIndex()
    for product in catalog:
        index.records[product.id] = {
            "vector": embedder.vector(build_product_document(product)),
            "metadata": product_to_metadata(product),
        }
    return index


@pytest.fixture
def empty_index() -> InMemoryProductIndex:
    return InMemoryProductIndex()


@pytest.fixture
def retrieval(embedder, product_index) -> RetrievalEngine:
    return RetrievalEngine(embedder, product_index)


@pytest.fixture
def dispatcher(retrieval) -> ToolDispatcher:
    return ToolDispatcher(retrieval)


@pytest.fixture
def make_chat_service(dispatcher):
    """Factory building a ChatService around a scripted model."""

    def _make(llm: LLMService, **kwargs) -> ChatService:
        return ChatService(llm, kwargs.pop("dispatcher", dispatcher), **kwargs)

    return _make
