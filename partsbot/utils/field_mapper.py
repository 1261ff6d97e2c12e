"""
Field mapping utilities between catalog records and index metadata.

Index metadata uses the camelCase keys of the catalog file so a stored
record can be validated straight back into a ProductRecord.
"""
from typing import Any, Dict

from partsbot.models.schemas import ProductRecord, RetrievedResult


def product_to_metadata(product: ProductRecord) -> Dict[str, Any]:
    """
    Convert a catalog record into index metadata.

    None values are dropped because vector stores reject them.

    Args:
        product: Catalog record

    Returns:
        Metadata dict keyed by camelCase field names
    """
    return product.model_dump(by_alias=True, exclude_none=True)


def metadata_to_result(
    metadata: Dict[str, Any],
    score: float,
    model_compatibility_unknown: bool = False,
) -> RetrievedResult:
    """
    Build a RetrievedResult from stored metadata and a similarity score.

    Args:
        metadata: Metadata returned by the index for one match
        score: Similarity score of the match
        model_compatibility_unknown: Whether the compatibility filter was relaxed

    Returns:
        Validated RetrievedResult
    """
    payload = dict(metadata)
    payload["score"] = score
    payload["modelCompatibilityUnknown"] = model_compatibility_unknown
    return RetrievedResult.model_validate(payload)
