"""
Unit tests for the data models

Tests record validation and wire aliases including:
- Discount/price invariant
- camelCase serialization
- Chat request helpers
"""

import pytest
from pydantic import ValidationError

from partsbot.models.schemas import ChatRequest, ProductRecord, RetrievedResult, SearchArguments


def _record(**overrides) -> dict:
    data = {
        "id": "prod-test",
        "partNumber": "TEST-1",
        "name": "Test Dishwasher Pump",
        "description": "Pump for tests",
        "category": "dishwasher",
        "subcategory": "pumps",
        "brand": "Whirlpool",
        "price": 49.99,
        "originalPrice": 59.99,
        "discount": 17,
        "inStock": True,
        "stockCount": 4,
    }
    data.update(overrides)
    return data


@pytest.mark.unit
class TestProductRecord:
    """Test ProductRecord validation"""

    def test_valid_record_defaults(self):
        """Test optional list fields default to empty"""
        product = ProductRecord.model_validate(_record())
        assert product.part_number == "TEST-1"
        assert product.compatible_models == []
        assert product.specifications == {}

    def test_discount_requires_lower_price(self):
        """Test a discounted record must be cheaper than its original price"""
        with pytest.raises(ValidationError):
            ProductRecord.model_validate(_record(price=59.99, originalPrice=59.99, discount=10))

    def test_no_discount_allows_equal_prices(self):
        """Test zero discount places no constraint on price"""
        product = ProductRecord.model_validate(_record(price=59.99, originalPrice=59.99, discount=0))
        assert product.discount == 0

    def test_unsupported_category_rejected(self):
        """Test only refrigerator and dishwasher categories are accepted"""
        with pytest.raises(ValidationError):
            ProductRecord.model_validate(_record(category="oven"))

    def test_records_are_immutable(self):
        """Test catalog records cannot be mutated"""
        product = ProductRecord.model_validate(_record())
        with pytest.raises(ValidationError):
            product.price = 1.0

    def test_seed_catalog_satisfies_invariants(self, catalog):
        """Test every seed record is valid and keyed uniquely"""
        assert len(catalog) == 15
        assert len({p.part_number for p in catalog}) == 15
        for product in catalog:
            if product.discount > 0:
                assert product.price < product.original_price


@pytest.mark.unit
class TestSerialization:
    """Test camelCase wire format"""

    def test_retrieved_result_dumps_camel_case(self):
        """Test results serialize with camelCase keys"""
        result = RetrievedResult.model_validate({**_record(), "score": 0.9})
        dumped = result.model_dump(by_alias=True)
        assert dumped["partNumber"] == "TEST-1"
        assert dumped["modelCompatibilityUnknown"] is False
        assert dumped["score"] == 0.9

    def test_search_arguments_accept_both_spellings(self):
        """Test tool arguments validate from camelCase and snake_case"""
        camel = SearchArguments.model_validate({"query": "pump", "modelNumber": "WDT750SAHZ0"})
        snake = SearchArguments(query="pump", model_number="WDT750SAHZ0")
        assert camel == snake
        assert camel.limit == 3

    def test_search_part_number_normalized(self):
        """Test part numbers are upper-cased and blanks dropped"""
        assert SearchArguments(query="fan", part_number=" wpw10730972 ").part_number == "WPW10730972"
        assert SearchArguments.model_validate({"partNumber": "  "}).part_number is None

    def test_search_limit_must_be_positive(self):
        """Test a zero limit is rejected"""
        with pytest.raises(ValidationError):
            SearchArguments(query="pump", limit=0)


@pytest.mark.unit
class TestChatRequest:
    """Test ChatRequest helpers"""

    def test_last_user_message(self):
        """Test the most recent user message is returned"""
        request = ChatRequest.model_validate({
            "messages": [
                {"role": "user", "content": "first"},
                {"role": "assistant", "content": "reply"},
                {"role": "user", "content": "second"},
                {"role": "assistant", "content": "another reply"},
            ],
            "partNumber": "WPW10730972",
        })
        assert request.last_user_message().content == "second"
        assert request.part_number == "WPW10730972"

    def test_no_user_message(self):
        """Test None when the conversation has no user message"""
        request = ChatRequest(messages=[])
        assert request.last_user_message() is None
