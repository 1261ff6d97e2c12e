"""
Populate the ChromaDB product index from the seed catalog.

This script:
1. Loads and validates the catalog JSON
2. Embeds each product as a rich text document
3. Upserts the vectors and metadata into the product collection

Usage:
    python scripts/index_products.py [--catalog data/products.json] [--reset]
"""

import argparse
import asyncio
import logging
import sys

from partsbot.config.settings import settings
from partsbot.rag.catalog import index_catalog, load_catalog
from partsbot.services.embedding import OpenAIEmbedder
from partsbot.services.vector_search import ChromaProductIndex

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Index the product catalog into ChromaDB")
    parser.add_argument("--catalog", default=settings.catalog_path, help="Path to the catalog JSON file")
    parser.add_argument("--reset", action="store_true", help="Clear the collection before indexing")
    return parser.parse_args()


async def run(catalog_path: str, reset: bool) -> int:
    products = load_catalog(catalog_path)
    embedder = OpenAIEmbedder(
        api_key=settings.embedding_api_key,
        model=settings.embedding_model,
        base_url=settings.embedding_base_url,
    )
    index = ChromaProductIndex(
        collection_name=settings.product_collection,
        persist_directory=settings.chroma_persist_directory,
        host=settings.chroma_host,
        port=settings.chroma_port,
        hnsw_space=settings.hnsw_space,
    )
    count = await index_catalog(products, embedder, index, reset=reset)
    logger.info(f"Collection '{settings.product_collection}' now holds {index.count()} products")
    return count


def main():
    """Execute the indexing pipeline."""
    args = parse_args()
    logger.info("=" * 80)
    logger.info("PARTSELECT PRODUCT INDEX POPULATION")
    logger.info("=" * 80)

    try:
        count = asyncio.run(run(args.catalog, args.reset))
    except Exception as e:
        logger.error(f"✗ Error during indexing: {e}")
        raise

    logger.info(f"✓ Indexed {count} products")


if __name__ == "__main__":
    main()
