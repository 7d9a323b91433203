"""
Unit Tests for ValueCodec

Payloads carry their own type tag so models come back as models.
"""

from decimal import Decimal

import orjson
import pytest

from tiered_cache.application.models import ProductDto, ProductPage, build_codec
from tiered_cache.application.models.catalog import CategoryDto
from tiered_cache.core.exceptions import SerializationError
from tiered_cache.infrastructure.cache.serialization import ValueCodec


@pytest.mark.unit
class TestValueCodec:
    @pytest.fixture
    def codec(self):
        return build_codec()

    def test_model_carries_type_tag(self, codec):
        payload = codec.encode(ProductDto(id=1, name="Lamp", price=Decimal("19.99")))

        document = orjson.loads(payload)
        assert document["@type"] == "ProductDto"
        assert document["value"]["name"] == "Lamp"

    def test_model_decodes_to_model(self, codec):
        product = ProductDto(id=1, name="Lamp", price=Decimal("19.99"))

        decoded = codec.decode(codec.encode(product))

        assert isinstance(decoded, ProductDto)
        assert decoded == product

    def test_page_of_models(self, codec):
        page = ProductPage(content=[ProductDto(id=1, name="Lamp")], total_elements=1)

        decoded = codec.decode(codec.encode(page))

        assert isinstance(decoded, ProductPage)
        assert isinstance(decoded.content[0], ProductDto)
        assert decoded.total_pages == 1

    def test_list_of_models(self, codec):
        categories = [CategoryDto(id=1, name="Lighting"), CategoryDto(id=2, name="Furniture")]

        payload = codec.encode(categories)

        assert orjson.loads(payload)["@type"] == "list:CategoryDto"
        assert codec.decode(payload) == categories

    def test_null_is_explicit(self, codec):
        payload = codec.encode(None)

        assert orjson.loads(payload) == {"@type": "null", "value": None}
        assert codec.decode(payload) is None

    def test_plain_json_values(self, codec):
        assert codec.decode(codec.encode({"a": [1, 2]})) == {"a": [1, 2]}
        assert codec.decode(codec.encode([])) == []

    def test_decoded_values_are_independent(self, codec):
        payload = codec.encode({"tags": ["a"]})

        first = codec.decode(payload)
        first["tags"].append("b")

        assert codec.decode(payload) == {"tags": ["a"]}

    def test_unregistered_model_rejected(self):
        with pytest.raises(SerializationError):
            ValueCodec().encode(ProductDto(id=1))

    def test_mixed_model_list_rejected(self, codec):
        with pytest.raises(SerializationError):
            codec.encode([ProductDto(id=1), CategoryDto(id=2)])

    def test_unencodable_value_rejected(self, codec):
        with pytest.raises(SerializationError):
            codec.encode({"when": object()})

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            '{"value": 1}',
            '{"@type": "Unknown", "value": {}}',
            '{"@type": "list:ProductDto", "value": {}}',
            '{"@type": "ProductDto", "value": {"price": "free"}}',
        ],
    )
    def test_corrupt_payloads_rejected(self, codec, payload):
        with pytest.raises(SerializationError):
            codec.decode(payload)

    @pytest.mark.parametrize("tag", ["json", "null", "list:Thing"])
    def test_reserved_tags_cannot_be_registered(self, tag):
        with pytest.raises(ValueError):
            ValueCodec().register(ProductDto, name=tag)

    def test_conflicting_registration_rejected(self):
        codec = ValueCodec([ProductDto])

        with pytest.raises(ValueError):
            codec.register(CategoryDto, name="ProductDto")
        assert codec.is_registered(ProductDto)
        assert not codec.is_registered(CategoryDto)
