"""
User Service

Users get the shortest lifetimes of the catalogue (``users`` 7 min,
``user::list`` 5 min). Lookups by e-mail are cached in ``user::email``; any
user write evicts the e-mail entries of both the old and the new address.
"""

from tiered_cache.application.models.catalog import UserDto
from tiered_cache.application.models.pagination import UserPage
from tiered_cache.application.services.base import CachedCrudService
from tiered_cache.core.config.constants import Region
from tiered_cache.core.exceptions import EntityNotFoundError
from tiered_cache.infrastructure.cache.keys import CacheKey, build_named_key

_EMAIL_LOOKUP = "email"


class UserService(CachedCrudService[UserDto]):
    entity_name = "User"
    entity_region = Region.USERS
    list_region = Region.USER_LIST
    page_type = UserPage

    def email_key(self, email: str) -> CacheKey:
        return build_named_key(Region.USER_EMAIL, _EMAIL_LOOKUP, email)

    async def get_by_email(self, email: str) -> UserDto:
        """
        Raises:
            EntityNotFoundError: If no user has this e-mail
        """

        async def load() -> UserDto:
            user = await self._repository.find_one_by("email", email)
            if user is None:
                raise EntityNotFoundError(self.entity_name, email)
            return user

        return await self._cache.read_through(self.email_key(email), load)

    async def _invalidate_views(self, entity: UserDto, previous: UserDto | None = None) -> None:
        await super()._invalidate_views(entity, previous)
        emails = {u.email for u in (entity, previous) if u is not None and u.email}
        for email in sorted(emails):
            await self._cache.invalidate_key(self.email_key(email))
