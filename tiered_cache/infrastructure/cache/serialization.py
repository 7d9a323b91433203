"""
Self-Describing Value Codec

Every cached payload is an orjson document carrying its own type tag:

    {"@type": "json",               "value": {...}}
    {"@type": "null",               "value": null}
    {"@type": "ProductDto",         "value": {...}}
    {"@type": "list:CategoryDto",   "value": [{...}, ...]}

The tag lets heterogeneous value shapes share one physical store and lets
either tier rebuild the original pydantic model on read. Both tiers store
the encoded string, never the object, so a caller mutating a returned value
can never change cached state.
"""

from collections.abc import Iterable
from typing import Any

import orjson
from pydantic import BaseModel, ValidationError

from tiered_cache.core.exceptions import SerializationError

TYPE_FIELD = "@type"
VALUE_FIELD = "value"

_JSON_TAG = "json"
_NULL_TAG = "null"
_LIST_PREFIX = "list:"


class ValueCodec:
    """
    Encodes values to tagged JSON strings and back.

    Pydantic models must be registered before they can be cached; anything
    else must be natively JSON-serializable by orjson.

    Usage:
        codec = ValueCodec([ProductDto, ProductPage])
        payload = codec.encode(product)
        product_again = codec.decode(payload)
    """

    def __init__(self, models: Iterable[type[BaseModel]] = ()):
        self._by_name: dict[str, type[BaseModel]] = {}
        self._by_type: dict[type[BaseModel], str] = {}
        for model in models:
            self.register(model)

    def register(self, model: type[BaseModel], name: str | None = None) -> None:
        """Register a pydantic model under a stable type tag."""
        tag = name or model.__name__
        if tag in (_JSON_TAG, _NULL_TAG) or tag.startswith(_LIST_PREFIX):
            raise ValueError(f"type tag {tag!r} is reserved")
        existing = self._by_name.get(tag)
        if existing is not None and existing is not model:
            raise ValueError(f"type tag {tag!r} already registered for {existing.__name__}")
        self._by_name[tag] = model
        self._by_type[model] = tag

    def is_registered(self, model: type[BaseModel]) -> bool:
        return model in self._by_type

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def _tag_for(self, value: Any) -> tuple[str, Any]:
        if value is None:
            return _NULL_TAG, None

        if isinstance(value, BaseModel):
            tag = self._by_type.get(type(value))
            if tag is None:
                raise SerializationError(
                    f"Model {type(value).__name__} is not registered with the codec",
                    details={"type": type(value).__name__},
                )
            return tag, value.model_dump(mode="json")

        if isinstance(value, list) and value and all(isinstance(v, BaseModel) for v in value):
            item_types = {type(v) for v in value}
            if len(item_types) != 1:
                raise SerializationError(
                    "Lists of models must be homogeneous",
                    details={"types": sorted(t.__name__ for t in item_types)},
                )
            tag = self._by_type.get(item_types.pop())
            if tag is None:
                raise SerializationError(
                    f"Model {type(value[0]).__name__} is not registered with the codec",
                    details={"type": type(value[0]).__name__},
                )
            return f"{_LIST_PREFIX}{tag}", [v.model_dump(mode="json") for v in value]

        return _JSON_TAG, value

    def encode(self, value: Any) -> str:
        """
        Encode a value into its tagged string form.

        Raises:
            SerializationError: If the value cannot be represented
        """
        tag, payload = self._tag_for(value)
        try:
            return orjson.dumps({TYPE_FIELD: tag, VALUE_FIELD: payload}).decode("utf-8")
        except (orjson.JSONEncodeError, TypeError) as e:
            raise SerializationError.from_exception(
                e, message=f"Cannot encode value of type {type(value).__name__}"
            )

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode(self, payload: str | bytes) -> Any:
        """
        Decode a tagged payload back into a value.

        Raises:
            SerializationError: If the payload is corrupt or the tag unknown
        """
        try:
            document = orjson.loads(payload)
        except orjson.JSONDecodeError as e:
            raise SerializationError.from_exception(e, message="Cached payload is not valid JSON")

        if not isinstance(document, dict) or TYPE_FIELD not in document or VALUE_FIELD not in document:
            raise SerializationError("Cached payload is missing its type envelope")

        tag = document[TYPE_FIELD]
        value = document[VALUE_FIELD]

        if tag == _NULL_TAG:
            return None
        if tag == _JSON_TAG:
            return value

        try:
            if isinstance(tag, str) and tag.startswith(_LIST_PREFIX):
                model = self._model_for(tag[len(_LIST_PREFIX):])
                if not isinstance(value, list):
                    raise SerializationError("List payload is not a JSON array", details={"type": tag})
                return [model.model_validate(item) for item in value]
            return self._model_for(tag).model_validate(value)
        except ValidationError as e:
            raise SerializationError.from_exception(
                e, message=f"Cached payload does not match {tag}", type=tag
            )

    def _model_for(self, tag: Any) -> type[BaseModel]:
        model = self._by_name.get(tag) if isinstance(tag, str) else None
        if model is None:
            raise SerializationError(f"Unknown cached type tag: {tag!r}", details={"type": tag})
        return model

