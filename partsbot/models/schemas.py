"""
Pydantic models for request/response schemas and domain objects.

Catalog records and tool payloads use camelCase on the wire (the catalog
file, the index metadata and the chat API all share that shape) and
snake_case attributes in Python.
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


class ProductRecord(CamelModel):
    """Immutable catalog entry for a replacement part."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "prod-003",
                "partNumber": "DA97-07603B",
                "name": "Samsung Refrigerator Ice Maker Assembly",
                "description": "Complete ice maker assembly replacement for Samsung refrigerators.",
                "price": 119.99,
                "originalPrice": 149.95,
                "discount": 20,
                "category": "refrigerator",
                "subcategory": "ice makers",
                "brand": "Samsung",
                "inStock": True,
                "stockCount": 18,
                "compatibleModels": ["RF28HFEDBSR", "RF263BEAESR"],
            }
        },
    )

    id: str = Field(..., description="Opaque unique identifier")
    part_number: str = Field(..., description="Vendor SKU, unique per record")
    name: str = Field(..., description="Precise product type, e.g. 'Ice Maker Assembly'")
    description: str = ""
    category: Literal["refrigerator", "dishwasher"]
    subcategory: str = ""
    brand: str = ""
    price: float = Field(..., ge=0)
    original_price: float = Field(..., ge=0)
    discount: float = Field(default=0, ge=0)
    in_stock: bool = False
    stock_count: int = Field(default=0, ge=0)
    compatible_models: List[str] = Field(default_factory=list)
    installation_steps: List[str] = Field(default_factory=list)
    troubleshooting_tips: List[str] = Field(default_factory=list)
    specifications: Dict[str, str] = Field(default_factory=dict)

    # Storefront display fields
    image_url: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    delivery_estimate: Optional[str] = None

    @model_validator(mode="after")
    def _check_discounted_price(self) -> "ProductRecord":
        if self.discount > 0 and self.price >= self.original_price:
            raise ValueError(
                f"Part {self.part_number} is discounted but price {self.price} "
                f"is not below original price {self.original_price}"
            )
        return self


class RetrievedResult(ProductRecord):
    """A catalog record returned by one semantic search call."""

    score: float = Field(..., description="Similarity score, higher is more similar")
    model_compatibility_unknown: bool = Field(
        default=False,
        description="Set only when the model compatibility filter was relaxed",
    )


class SearchArguments(CamelModel):
    """Arguments of one product search tool call."""

    query: str = ""
    part_number: Optional[str] = None
    model_number: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    limit: int = Field(default=3, gt=0)

    @field_validator("part_number")
    @classmethod
    def normalize_part_number(cls, value: Optional[str]) -> Optional[str]:
        """Catalog part numbers are upper-case; blank means no part filter."""
        if value is None:
            return None
        value = value.strip().upper()
        return value or None


class SearchOutcome(BaseModel):
    """Results of a Retrieval Engine search."""

    results: List[RetrievedResult] = Field(default_factory=list)
    relaxed: bool = False
    args: Optional[SearchArguments] = None


class InstallationResult(CamelModel):
    """Installation steps for a part."""

    part_number: str
    steps: List[str] = Field(default_factory=list)
    source: Optional[Literal["catalog", "fallback"]] = None


class CompatibilityResult(CamelModel):
    """Outcome of a part/model compatibility check."""

    compatible: bool
    details: str
    product: Optional[RetrievedResult] = None


class TroubleshootingResult(CamelModel):
    """Troubleshooting tips for an issue."""

    tips: List[str] = Field(default_factory=list)
    matched_issue: Optional[str] = None
    source: Optional[Literal["catalog", "fallback"]] = None


class ToolCall(BaseModel):
    """A structured operation requested by the language model."""

    name: str
    args: Dict[str, Any] = Field(default_factory=dict)
    id: Optional[str] = None


class LLMResponse(BaseModel):
    """Text and tool calls returned by one chat completion."""

    content: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)


class ChatMessage(CamelModel):
    """Single chat message exchanged with the UI."""

    id: Optional[str] = None
    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: Optional[int] = None


class ChatRequest(CamelModel):
    """Request model for the chat endpoint."""

    messages: List[ChatMessage] = Field(default_factory=list)
    part_number: Optional[str] = None
    model_number: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
        json_schema_extra={
            "example": {
                "messages": [
                    {
                        "role": "user",
                        "content": "Is part WPW10730972 compatible with model LFSS2612TF0?",
                    }
                ],
                "partNumber": "WPW10730972",
                "modelNumber": "LFSS2612TF0",
            }
        },
    )

    def last_user_message(self) -> Optional[ChatMessage]:
        """Return the most recent user message, if any."""
        for message in reversed(self.messages):
            if message.role == "user":
                return message
        return None


class ChatResponse(CamelModel):
    """Response model for the chat endpoint."""

    message: ChatMessage
    product_results: List[RetrievedResult] = Field(default_factory=list)


class ErrorResponse(CamelModel):
    """Body returned with non-200 status codes."""

    error: str
    message: Optional[ChatMessage] = None
