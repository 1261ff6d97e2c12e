"""
Catalog loading and index population.

Records are validated on load, embedded once as rich product documents and
upserted into the product index keyed by their id.
"""

import json
import logging
from pathlib import Path
from typing import List, Union

from partsbot.models.schemas import ProductRecord
from partsbot.services.embedding import Embedder, build_product_document
from partsbot.services.vector_search import ProductIndex
from partsbot.utils.field_mapper import product_to_metadata

logger = logging.getLogger(__name__)


def load_catalog(path: Union[str, Path]) -> List[ProductRecord]:
    """
    Load and validate the product catalog.

    Args:
        path: JSON file holding a list of product records

    Returns:
        Validated records in file order

    Raises:
        ValueError: If the file is not a list or part numbers repeat
    """
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, list):
        raise ValueError(f"Catalog {path} must contain a list of products")

    products = [ProductRecord.model_validate(item) for item in raw]

    seen = set()
    for product in products:
        if product.part_number in seen:
            raise ValueError(f"Duplicate part number in catalog: {product.part_number}")
        seen.add(product.part_number)

    logger.info(f"Loaded {len(products)} products from {path}")
    return products


async def index_catalog(
    products: List[ProductRecord],
    embedder: Embedder,
    index: ProductIndex,
    reset: bool = False,
) -> int:
    """
    Embed products and upsert them into the index.

    Args:
        products: Records to index
        embedder: Embedder for product documents
        index: Target product index
        reset: Clear the namespace before indexing

    Returns:
        Number of records indexed
    """
    if reset:
        logger.info("Clearing existing product data from the index...")
        await index.delete_all()

    if not products:
        return 0

    documents = [build_product_document(product) for product in products]
    vectors = await embedder.embed_batch(documents)

    for product, vector in zip(products, vectors):
        await index.upsert(product.id, vector, product_to_metadata(product))
        logger.info(f"Indexed product: {product.part_number} - {product.name}")

    return len(products)
