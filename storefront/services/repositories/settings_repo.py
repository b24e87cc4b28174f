"""Settings Repository - public site settings."""
from typing import List

from storefront.services.models import SiteSetting

from .base import BaseRepository


class SettingsRepository(BaseRepository):

    async def get_public_settings(self) -> List[SiteSetting]:
        result = await self.client.table("site_settings").select("*").eq("is_public", True).execute()
        return [SiteSetting(**row) for row in result.data]
