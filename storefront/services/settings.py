"""Site settings with safe defaults (currency symbol and friends)."""
from typing import Any, Dict

from storefront.config import DEFAULT_CURRENCY_SYMBOL
from storefront.logging import get_logger

logger = get_logger(__name__)


def default_settings() -> Dict[str, Any]:
    return {"currency": DEFAULT_CURRENCY_SYMBOL, "currency_symbol": DEFAULT_CURRENCY_SYMBOL}


async def load_site_settings(repo) -> Dict[str, Any]:
    """
    Map public `site_settings` rows to {setting_key: setting_value}.

    `currency_symbol` mirrors the `currency` setting. Any backend failure
    returns the defaults.
    """
    settings = default_settings()
    if repo is None:
        return settings

    try:
        rows = await repo.get_public_settings()
    except Exception as e:
        logger.error(f"Failed to fetch site settings: {e}", exc_info=True)
        return settings

    for row in rows:
        settings[row.setting_key] = row.setting_value

    if not settings.get("currency"):
        settings["currency"] = DEFAULT_CURRENCY_SYMBOL
    settings["currency_symbol"] = settings["currency"]
    return settings
