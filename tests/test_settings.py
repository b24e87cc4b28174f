"""
Tests for site settings loading
"""

from unittest.mock import AsyncMock, Mock

import pytest

from storefront.services.models import SiteSetting
from storefront.services.repositories import SettingsRepository
from storefront.services.settings import default_settings, load_site_settings


class TestLoadSiteSettings:

    @pytest.mark.asyncio
    async def test_no_repository_gives_defaults(self):
        assert await load_site_settings(None) == default_settings()

    @pytest.mark.asyncio
    async def test_rows_mapped_and_symbol_mirrors_currency(self):
        repo = Mock()
        repo.get_public_settings = AsyncMock(return_value=[
            SiteSetting(setting_key="currency", setting_value="EGP"),
            SiteSetting(setting_key="store_name", setting_value="العامر"),
        ])

        settings = await load_site_settings(repo)

        assert settings["currency"] == "EGP"
        assert settings["currency_symbol"] == "EGP"
        assert settings["store_name"] == "العامر"

    @pytest.mark.asyncio
    async def test_empty_currency_keeps_default(self):
        repo = Mock()
        repo.get_public_settings = AsyncMock(
            return_value=[SiteSetting(setting_key="currency", setting_value="")]
        )

        settings = await load_site_settings(repo)

        assert settings["currency_symbol"] == "ج.م"

    @pytest.mark.asyncio
    async def test_backend_failure_gives_defaults(self):
        repo = Mock()
        repo.get_public_settings = AsyncMock(side_effect=ConnectionError("unreachable"))

        assert await load_site_settings(repo) == default_settings()


class TestSettingsRepository:

    @pytest.mark.asyncio
    async def test_reads_public_rows(self, mock_supabase_client):
        table = mock_supabase_client.table.return_value
        table.execute.return_value = Mock(data=[
            {"setting_key": "currency", "setting_value": "ج.م", "setting_type": "text", "is_public": True},
        ])

        rows = await SettingsRepository(mock_supabase_client).get_public_settings()

        mock_supabase_client.table.assert_called_with("site_settings")
        table.eq.assert_called_with("is_public", True)
        assert rows[0].setting_key == "currency"
