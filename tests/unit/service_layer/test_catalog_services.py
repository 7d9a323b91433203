"""
Unit Tests for CategoryService, SettingService and UserService

Covers the secondary lookups (setting by key, user by e-mail) and the
whole-list read, and that writes evict those entries.
"""

import pytest

from tiered_cache.application.models import CategoryDto, SettingDto, UserDto
from tiered_cache.application.services import CategoryService, SettingService, UserService
from tiered_cache.core.exceptions import EntityNotFoundError


@pytest.mark.unit
class TestCategoryService:
    @pytest.fixture
    def service(self, category_repository, cache):
        return CategoryService(category_repository, cache)

    @pytest.mark.asyncio
    async def test_get_all_is_cached(self, service, category_repository):
        first = await service.get_all()
        second = await service.get_all()

        assert [c.name for c in second] == ["Lighting", "Furniture"]
        assert first == second
        assert category_repository.calls["find_all"] == 1

    @pytest.mark.asyncio
    async def test_create_refreshes_the_full_list(self, service, category_repository):
        await service.get_all()

        await service.create(CategoryDto(name="Outdoor"))
        categories = await service.get_all()

        assert [c.name for c in categories] == ["Lighting", "Furniture", "Outdoor"]
        assert category_repository.calls["find_all"] == 2


@pytest.mark.unit
class TestSettingService:
    @pytest.fixture
    def service(self, setting_repository, cache):
        return SettingService(setting_repository, cache)

    @pytest.mark.asyncio
    async def test_get_by_key_is_cached(self, service, setting_repository):
        setting = await service.get_by_key("site.title")
        await service.get_by_key("site.title")

        assert setting.value == "Core MVC"
        assert setting_repository.calls["find_one_by"] == 1

    def test_setting_key_layout(self, service):
        key = service.setting_key("site.title")

        assert (key.region, key.key) == ("settings", "key:site.title")

    @pytest.mark.asyncio
    async def test_get_value_falls_back_to_default(self, service, setting_repository):
        assert await service.get_value("shop.currency") == "USD"
        assert await service.get_value("missing.key", default="n/a") == "n/a"
        assert await service.get_value("missing.key") is None

        # One load for the currency, then two uncached misses
        assert setting_repository.calls["find_one_by"] == 3

    @pytest.mark.asyncio
    async def test_update_evicts_key_lookup(self, service):
        await service.get_by_key("site.title")

        await service.update(1, SettingDto(value="Storefront"))

        assert (await service.get_by_key("site.title")).value == "Storefront"

    @pytest.mark.asyncio
    async def test_renamed_key_no_longer_resolves(self, service):
        await service.get_by_key("site.title")

        await service.update(1, SettingDto(key="site.name"))

        with pytest.raises(EntityNotFoundError):
            await service.get_by_key("site.title")
        assert (await service.get_by_key("site.name")).id == 1

    @pytest.mark.asyncio
    async def test_delete_evicts_key_lookup(self, service):
        await service.get_by_key("shop.currency")

        await service.delete(2)

        assert await service.get_value("shop.currency", default="EUR") == "EUR"


@pytest.mark.unit
class TestUserService:
    @pytest.fixture
    def service(self, user_repository, cache):
        return UserService(user_repository, cache)

    @pytest.mark.asyncio
    async def test_get_by_email_is_cached(self, service, user_repository, cache):
        user = await service.get_by_email("ada@example.com")
        await service.get_by_email("ada@example.com")

        assert user.full_name == "Ada Lovelace"
        assert user_repository.calls["find_one_by"] == 1
        assert await cache.l2.get(service.email_key("ada@example.com")) is not None

    def test_email_lookups_have_their_own_region(self, service):
        key = service.email_key("ada@example.com")

        assert key.region == "user::email"
        assert key.key == "email:ada%40example.com"

    @pytest.mark.asyncio
    async def test_email_change_evicts_both_addresses(self, service):
        await service.get_by_email("ada@example.com")
        with pytest.raises(EntityNotFoundError):
            await service.get_by_email("countess@example.com")

        await service.update(1, UserDto(email="countess@example.com"))

        with pytest.raises(EntityNotFoundError):
            await service.get_by_email("ada@example.com")
        assert (await service.get_by_email("countess@example.com")).id == 1

    @pytest.mark.asyncio
    async def test_update_populates_user_entry(self, service, user_repository):
        await service.update(2, UserDto(full_name="Alan M. Turing"))

        user = await service.get_by_id(2)

        assert user.full_name == "Alan M. Turing"
        assert user.email == "alan@example.com"
        # _require inside update is the only repository read
        assert user_repository.calls["find_by_id"] == 1

    @pytest.mark.asyncio
    async def test_user_list_is_swept_on_create(self, service, user_repository):
        await service.get_all()

        await service.create(UserDto(uuid="u-3", email="grace@example.com", full_name="Grace Hopper"))

        assert len(await service.get_all()) == 3
        assert user_repository.calls["find_all"] == 2
