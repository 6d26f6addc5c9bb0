"""Database adapter factory.

Resolves connection settings from the runtime mode and ``db.toml``:

1. ``{prefix}DATABASE_URL`` env var, if set, overrides the profile URL
2. Profile named by ``profile_name``, else ``{prefix}DB_ENV``, else
   ``development``
3. ``TZ`` env var overrides the configured timezone

Adapters are not cached.  Callers construct one at startup and pass it
to the components that need it.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

from notifydb.adapters.postgres import AsyncPostgresAdapter
from notifydb.config.loader import load_db_config
from notifydb.config.models import DatabaseConfig, DatabaseProfile

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT = "development"


class ProfileNotFoundError(Exception):
    """Raised when no database profile matches the runtime mode."""

    pass


@dataclass(frozen=True)
class ConnectionSettings:
    """Everything needed to build an adapter for one runtime mode."""

    profile_name: str
    url: str
    timezone: str = "UTC"
    schema_name: str = "public"
    pool_size: int = 5
    max_overflow: int = 10


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get the runtime mode from ``{env_prefix}DB_ENV``.

    Args:
        env_prefix: Prefix for the env var lookup (e.g., ``"COURTBOT_"``
            reads ``COURTBOT_DB_ENV``).

    Returns:
        Profile name, ``"development"`` when unset.
    """
    return os.environ.get(f"{env_prefix}DB_ENV") or DEFAULT_ENVIRONMENT


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with ``[YOUR-PASSWORD]`` replaced by the URL-quoted
        ``db_password``.
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


def resolve_settings(
    profile_name: str | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
) -> ConnectionSettings:
    """Resolve connection settings for the active runtime mode.

    Args:
        profile_name: Profile to use.  Defaults to ``get_active_profile_name()``.
        env_prefix: Prefix for ``DB_ENV`` / ``DATABASE_URL`` lookups.
        config_path: Path to db.toml.

    Returns:
        ``ConnectionSettings``.

    Raises:
        ProfileNotFoundError: If neither a matching profile nor
            ``{env_prefix}DATABASE_URL`` is available.
        FileNotFoundError: If db.toml is missing and no URL override is set.
    """
    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix)

    env_url = os.environ.get(f"{env_prefix}DATABASE_URL")

    try:
        config = load_db_config(config_path)
    except FileNotFoundError:
        if not env_url:
            raise
        logger.debug("No db.toml found, using DATABASE_URL")
        config = DatabaseConfig(profiles={})

    profile = config.profiles.get(profile_name)
    if profile is None and not env_url:
        available = ", ".join(config.profiles) or "none"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in db.toml.\n"
            f"Available profiles: {available}"
        )

    if profile is None:
        profile = DatabaseProfile(url=env_url)

    return ConnectionSettings(
        profile_name=profile_name,
        url=env_url or resolve_url(profile),
        timezone=os.environ.get("TZ") or config.timezone,
        schema_name=config.schema_name,
        pool_size=profile.pool_size,
        max_overflow=profile.max_overflow,
    )


def create_adapter(settings: ConnectionSettings) -> AsyncPostgresAdapter:
    """Build an adapter from resolved settings."""
    return AsyncPostgresAdapter(
        settings.url,
        timezone=settings.timezone,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )


async def get_adapter(
    profile_name: str | None = None,
    env_prefix: str = "",
    database_url: str | None = None,
    config_path: Path | None = None,
    check_connection: bool = False,
) -> AsyncPostgresAdapter:
    """Create a database adapter.

    Args:
        profile_name: Profile from db.toml.  Ignored when *database_url*
            is given.
        env_prefix: Prefix for env var lookups.
        database_url: Explicit connection URL; skips config resolution.
        config_path: Path to db.toml.
        check_connection: Run ``SELECT 1`` before returning.

    Returns:
        ``AsyncPostgresAdapter`` owning a new connection pool.

    Raises:
        ProfileNotFoundError: If no configuration matches.

    Example:
        >>> adapter = await get_adapter(profile_name="test")
    """
    if database_url is not None:
        adapter = AsyncPostgresAdapter(database_url, timezone=os.environ.get("TZ"))
    else:
        settings = resolve_settings(profile_name, env_prefix, config_path)
        logger.debug(f"Using database profile '{settings.profile_name}'")
        adapter = create_adapter(settings)

    if check_connection:
        try:
            await adapter.test_connection()
        except Exception:
            await adapter.close()
            raise

    return adapter
