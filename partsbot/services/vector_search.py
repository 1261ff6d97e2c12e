"""
Abstract product index interface and implementations.

This module defines a package-agnostic interface for vector similarity search
over product records with metadata filtering. Concrete implementations can be
swapped out based on the chosen vector database (e.g., Chroma, Pinecone,
Qdrant).
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import chromadb

from partsbot.exceptions import ProductIndexError

logger = logging.getLogger(__name__)

# Metadata key listing the fields stored as JSON strings
JSON_FIELDS_KEY = "_jsonFields"
# Separator between a list field name and one of its members in flag keys
MEMBER_SEPARATOR = "::"


@dataclass
class IndexFilter:
    """
    Metadata predicate for a similarity query.

    Attributes:
        equals: Field must equal the given value
        contains: List-valued field must contain the given member
    """
    equals: Dict[str, Any] = field(default_factory=dict)
    contains: Dict[str, str] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.equals and not self.contains

    def without_membership(self, field_name: str) -> "IndexFilter":
        """Return a copy with the membership predicate on field_name removed."""
        contains = {k: v for k, v in self.contains.items() if k != field_name}
        return IndexFilter(equals=dict(self.equals), contains=contains)


@dataclass
class IndexMatch:
    """Single nearest-neighbour hit."""
    id: str
    score: float
    metadata: Dict[str, Any]


class ProductIndex(ABC):
    """
    Abstract base class for the product vector index.

    Implementations should handle:
    - Connection to the vector database
    - Metadata filtering (equality and list membership)
    - Similarity search (higher score = more similar)
    """

    @abstractmethod
    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: Optional[IndexFilter] = None,
    ) -> List[IndexMatch]:
        """
        Return up to top_k nearest records that satisfy the filter.

        Raises:
            ProductIndexError: If the index cannot be queried
        """
        pass

    @abstractmethod
    async def upsert(self, id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None:
        """Insert or replace a record."""
        pass

    @abstractmethod
    async def delete(self, id: str) -> None:
        """Remove a record by id."""
        pass

    @abstractmethod
    async def delete_all(self) -> None:
        """Remove every record in the namespace."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True when the index is reachable."""
        pass


class ChromaProductIndex(ProductIndex):
    """
    ChromaDB-based product index.

    Chroma metadata only holds scalars, so list and dict fields are stored as
    JSON strings. Each member of a list field named in ``membership_fields``
    also gets its own boolean key (``compatibleModels::RF28HFEDBSR``), which
    turns list membership into an equality predicate Chroma can evaluate.
    Members are upper-cased, so membership is case-insensitive.
    """

    def __init__(
        self,
        collection_name: str = "products",
        persist_directory: str = "./chroma_data",
        host: Optional[str] = None,
        port: Optional[int] = None,
        hnsw_space: str = "cosine",
        membership_fields: Sequence[str] = ("compatibleModels",),
        client: Optional[Any] = None,
    ):
        """
        Initialize the ChromaDB product index.

        Args:
            collection_name: Collection acting as the namespace
            persist_directory: Local directory for persistent storage (if using local mode)
            host: ChromaDB server host (if using client/server mode)
            port: ChromaDB server port (if using client/server mode)
            hnsw_space: Distance metric for HNSW. Options: "cosine", "l2", "ip"
            membership_fields: List fields that can be used in membership filters
            client: Pre-built Chroma client (tests use an ephemeral client)
        """
        self.collection_name = collection_name
        self.hnsw_space = hnsw_space
        self.membership_fields = tuple(membership_fields)

        try:
            if client is not None:
                self.client = client
            elif host and port:
                self.client = chromadb.HttpClient(host=host, port=port)
            else:
                self.client = chromadb.PersistentClient(path=persist_directory)
            self.collection = self._get_or_create_collection()
        except Exception as e:
            raise ProductIndexError(f"Failed to initialize collection '{collection_name}': {e}") from e

        logger.info(f"Product index ready: collection '{collection_name}'")

    def _get_or_create_collection(self):
        return self.client.get_or_create_collection(
            name=self.collection_name,
            metadata={"hnsw:space": self.hnsw_space},
            embedding_function=None,
        )

    def _encode_metadata(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        encoded: Dict[str, Any] = {}
        json_fields = []
        for key, value in metadata.items():
            if value is None:
                continue
            if isinstance(value, (list, dict)):
                encoded[key] = json.dumps(value)
                json_fields.append(key)
                if key in self.membership_fields and isinstance(value, list):
                    for member in value:
                        encoded[f"{key}{MEMBER_SEPARATOR}{str(member).upper()}"] = True
            else:
                encoded[key] = value
        encoded[JSON_FIELDS_KEY] = ",".join(json_fields)
        return encoded

    @staticmethod
    def _decode_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
        json_fields = set(filter(None, str(metadata.get(JSON_FIELDS_KEY, "")).split(",")))
        decoded: Dict[str, Any] = {}
        for key, value in metadata.items():
            if key == JSON_FIELDS_KEY or MEMBER_SEPARATOR in key:
                continue
            decoded[key] = json.loads(value) if key in json_fields else value
        return decoded

    def _build_where(self, filter: Optional[IndexFilter]) -> Optional[Dict[str, Any]]:
        if filter is None or filter.is_empty():
            return None

        conditions = [{key: {"$eq": value}} for key, value in filter.equals.items()]
        for key, member in filter.contains.items():
            if key not in self.membership_fields:
                raise ProductIndexError(f"Field '{key}' does not support membership filters")
            conditions.append({f"{key}{MEMBER_SEPARATOR}{member.upper()}": {"$eq": True}})

        if len(conditions) == 1:
            return conditions[0]
        return {"$and": conditions}

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: Optional[IndexFilter] = None,
    ) -> List[IndexMatch]:
        where = self._build_where(filter)
        try:
            # ChromaDB client calls are synchronous; run them off the event loop
            results = await asyncio.to_thread(
                self.collection.query,
                query_embeddings=[list(vector)],
                n_results=top_k,
                where=where,
                include=["metadatas", "distances"],
            )
        except Exception as e:
            raise ProductIndexError(f"Vector search failed for collection '{self.collection_name}': {e}") from e

        matches = []
        if results["ids"] and len(results["ids"][0]) > 0:
            for doc_id, distance, metadata in zip(
                results["ids"][0],
                results["distances"][0],
                results["metadatas"][0],
            ):
                # Chroma returns cosine distance (lower is better)
                matches.append(
                    IndexMatch(
                        id=doc_id,
                        score=1.0 - distance,
                        metadata=self._decode_metadata(metadata or {}),
                    )
                )
        return matches

    async def upsert(self, id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(
                self.collection.upsert,
                ids=[id],
                embeddings=[list(vector)],
                metadatas=[self._encode_metadata(metadata)],
            )
        except Exception as e:
            raise ProductIndexError(f"Failed to upsert '{id}': {e}") from e

    async def delete(self, id: str) -> None:
        try:
            await asyncio.to_thread(self.collection.delete, ids=[id])
        except Exception as e:
            raise ProductIndexError(f"Failed to delete '{id}': {e}") from e
        logger.info(f"Deleted product {id} from '{self.collection_name}'")

    async def delete_all(self) -> None:
        try:
            await asyncio.to_thread(self.client.delete_collection, name=self.collection_name)
            self.collection = await asyncio.to_thread(self._get_or_create_collection)
        except Exception as e:
            raise ProductIndexError(f"Failed to clear collection '{self.collection_name}': {e}") from e
        logger.info(f"Deleted all products in '{self.collection_name}'")

    async def health_check(self) -> bool:
        """Check if ChromaDB connection is healthy."""
        try:
            await asyncio.to_thread(self.collection.count)
            return True
        except Exception:
            return False

    def count(self) -> int:
        """Number of records in the collection."""
        return self.collection.count()
