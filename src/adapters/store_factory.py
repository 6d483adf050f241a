"""Data store factory: creates the right adapter based on config."""

from __future__ import annotations

from src.config import settings


def create_data_store():
    """Return the adapter matching the DATA_PROVIDER setting.

    The returned object implements every data port (preferences, calendar,
    profile, suggestion store and needs store).
    """
    provider = settings.DATA_PROVIDER.lower()

    if provider == "sqlite":
        from src.adapters.sqlite_store import SQLiteStore

        return SQLiteStore(db_path=settings.DATABASE_PATH)

    if provider == "rest":
        from src.adapters.rest_api import RestApiClient

        return RestApiClient(
            base_url=settings.API_BASE_URL,
            api_key=settings.API_KEY,
            timeout=settings.API_TIMEOUT_SECONDS,
        )

    raise ValueError(f"Unknown DATA_PROVIDER: {provider!r}")
