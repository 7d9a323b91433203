"""
Source-of-Truth Exceptions

Errors raised by loaders and repositories. These are never cache errors: the
façade propagates them to the caller unchanged and never caches them.
"""

from typing import Any

from tiered_cache.core.exceptions.base import TieredCacheError


class EntityNotFoundError(TieredCacheError):
    """Raised when a requested entity does not exist in the source of truth."""

    def __init__(
        self,
        entity: str,
        identifier: Any,
        request_id: str | None = None,
    ):
        super().__init__(
            f"{entity} not found with id: {identifier}",
            request_id=request_id,
            details={"entity": entity, "identifier": identifier},
        )
        self.entity = entity
        self.identifier = identifier
