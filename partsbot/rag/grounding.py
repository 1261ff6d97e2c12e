"""
Grounding check of drafted answers against retrieved product records.

If the answer attaches a product type to a part number that contradicts the
part's own name or subcategory (e.g. calls an ice maker a water filter), the
drafted answer is discarded and replaced by a templated description built
from the record itself.
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence

from partsbot.models.schemas import ProductRecord

logger = logging.getLogger(__name__)

PRODUCT_TYPES = (
    "water filter", "ice maker", "drawer", "fan", "motor",
    "thermostat", "valve", "pump", "door", "seal", "gasket",
    "light", "bulb", "dispenser", "shelf", "element",
)

MAX_LISTED_MODELS = 3


def render_product_answer(product: ProductRecord) -> str:
    """
    Deterministic, factually grounded description of a product.

    Args:
        product: Record to describe

    Returns:
        Answer text built only from the record's fields
    """
    subcategory = f" ({product.subcategory})" if product.subcategory else ""
    if product.in_stock:
        stock_line = f"✅ This part is currently in stock ({product.stock_count} available)."
    else:
        stock_line = "❌ This part is currently out of stock."

    sections = [
        f"I found information about part number {product.part_number}:",
        f"This is a {product.brand} {product.name} for {product.category}s{subcategory}.",
        f"Price: ${product.price:.2f}\n{stock_line}",
        product.description,
    ]

    if product.compatible_models:
        models = ", ".join(product.compatible_models[:MAX_LISTED_MODELS])
        more = " and more" if len(product.compatible_models) > MAX_LISTED_MODELS else ""
        sections.append(f"This part is compatible with models: {models}{more}")

    sections.append("Would you like more information about this part or help with anything else?")
    return "\n\n".join(section for section in sections if section)


class GroundingVerifier:
    """Replaces answers that misstate a retrieved part's product type."""

    def __init__(self, product_types: Sequence[str] = PRODUCT_TYPES):
        self.product_types = tuple(term.lower() for term in product_types)

    def _own_types(self, product: ProductRecord) -> List[str]:
        own_text = f"{product.name} {product.subcategory}".lower()
        return [term for term in self.product_types if term in own_text]

    def find_mismatch(self, answer_text: str, product: ProductRecord) -> Optional[str]:
        """
        Return the wrong product type the answer attaches to this part, if any.

        Only terms in the same sentence after the part number count.
        """
        part = re.escape(product.part_number)
        if not re.search(rf"\b{part}\b", answer_text, re.IGNORECASE):
            return None

        own_types = self._own_types(product)
        for term in self.product_types:
            if term in own_types:
                continue
            pattern = rf"{part}[^.]*?\b{re.escape(term)}\b"
            if re.search(pattern, answer_text, re.IGNORECASE):
                return term
        return None

    def verify(self, answer_text: str, products: Iterable[ProductRecord]) -> str:
        """
        Check the drafted answer against retrieved records.

        Args:
            answer_text: Drafted natural-language answer
            products: Records retrieved during the turn

        Returns:
            The answer unchanged, or the templated answer for the first
            record it misdescribes
        """
        if not answer_text.strip():
            return answer_text

        for product in products:
            wrong_term = self.find_mismatch(answer_text, product)
            if wrong_term:
                logger.warning(
                    f"Part {product.part_number} incorrectly described as "
                    f"'{wrong_term}' instead of '{product.name}'"
                )
                return render_product_answer(product)
        return answer_text
