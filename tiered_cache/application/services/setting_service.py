"""
Setting Service

Settings are read by id and by their configuration key. Both lookups live in
the ``settings`` region (``id:<id>`` and ``key:<key>``), so a write must also
drop the key-based entry, for the old key and the new one.
"""

from tiered_cache.application.models.catalog import SettingDto
from tiered_cache.application.models.pagination import SettingPage
from tiered_cache.application.services.base import CachedCrudService
from tiered_cache.core.config.constants import Region
from tiered_cache.core.exceptions import EntityNotFoundError
from tiered_cache.infrastructure.cache.keys import CacheKey, build_named_key

_KEY_LOOKUP = "key"


class SettingService(CachedCrudService[SettingDto]):
    entity_name = "Setting"
    entity_region = Region.SETTINGS
    list_region = Region.SETTING_LIST
    page_type = SettingPage

    def setting_key(self, key: str) -> CacheKey:
        return build_named_key(self.entity_region, _KEY_LOOKUP, key)

    async def get_by_key(self, key: str) -> SettingDto:
        """
        Raises:
            EntityNotFoundError: If no setting has this key
        """

        async def load() -> SettingDto:
            setting = await self._repository.find_one_by("key", key)
            if setting is None:
                raise EntityNotFoundError(self.entity_name, key)
            return setting

        return await self._cache.read_through(self.setting_key(key), load)

    async def get_value(self, key: str, default: str | None = None) -> str | None:
        """Value of a setting, or ``default`` when it does not exist."""
        try:
            setting = await self.get_by_key(key)
        except EntityNotFoundError:
            return default
        return setting.value

    async def _invalidate_views(self, entity: SettingDto, previous: SettingDto | None = None) -> None:
        await super()._invalidate_views(entity, previous)
        keys = {s.key for s in (entity, previous) if s is not None and s.key}
        for key in sorted(keys):
            await self._cache.invalidate_key(self.setting_key(key))
