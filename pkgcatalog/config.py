"""
Catalog configuration
=====================
Runtime settings read from `PKGCATALOG_*` environment variables.

Environment Variables:
    - PKGCATALOG_LOCALE: Locale override, e.g. "de-DE" (default: system locale)
    - PKGCATALOG_LOG_LEVEL: logly level (default: INFO)
    - PKGCATALOG_LOG_DIR: Directory for app.log (default: <repo>/logs)
    - PKGCATALOG_COMMAND_TIMEOUT_SEC: Backend subprocess timeout (default: 60)
    - PKGCATALOG_EXTRA_APPSTREAM_DIRS: JSON list of extra catalog directories
    - PKGCATALOG_INCLUDE_FLATPAK_APPSTREAM: Scan flatpak remote catalogs (default: true)
"""

from functools import lru_cache
from pathlib import Path
from typing import Final

from logly import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pkgcatalog.logging import LOG_DIR_PATH

FALLBACK_LOCALE: Final[str] = "en-US"


class CatalogSettings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="PKGCATALOG_", case_sensitive=False)

    locale: str | None = None
    log_level: str = "INFO"
    log_dir: Path = LOG_DIR_PATH

    # Backends
    command_timeout_sec: int = Field(default=60, gt=0)

    # Metadata store
    extra_appstream_dirs: list[Path] = Field(default_factory=list)
    include_flatpak_appstream: bool = True


@lru_cache
def get_settings() -> CatalogSettings:
    return CatalogSettings()


def resolve_locale(configured: str | None, system_locale: str | None) -> str:
    """Picks the locale for all localized lookups.

    Args:
        configured: Explicit override from settings.
        system_locale: Locale reported by the desktop (e.g. `QLocale.system()`).

    Returns:
        The first non-empty candidate, or "en-US".
    """
    for candidate in (configured, system_locale):
        # Qt reports "C" when no locale is configured at all.
        if candidate and candidate.strip() and candidate.strip() != "C":
            return candidate.strip()
    logger.warning(f"Failed to get system locale, falling back to {FALLBACK_LOCALE}")
    return FALLBACK_LOCALE
