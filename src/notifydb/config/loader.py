"""Database configuration loader.

Reads ``db.toml``:

    [database]
    timezone = "America/Anchorage"
    schema = "public"

    [profiles.development]
    url = "postgresql://localhost/courtbot_dev"

    [profiles.test]
    url = "postgresql://localhost/courtbot_test"
"""

import os
import tomllib
from pathlib import Path

from notifydb.config.models import DatabaseConfig, DatabaseProfile

CONFIG_PATH_ENV = "NOTIFYDB_CONFIG"


def default_config_path() -> Path:
    """``$NOTIFYDB_CONFIG`` if set, else ``db.toml`` in the working directory."""
    return Path(os.environ.get(CONFIG_PATH_ENV, "db.toml"))


def load_db_config(config_path: Path | None = None) -> DatabaseConfig:
    """Load database configuration from TOML file.

    Args:
        config_path: Path to db.toml (default: ``default_config_path()``)

    Returns:
        DatabaseConfig with all profiles

    Raises:
        FileNotFoundError: If config file doesn't exist
        pydantic.ValidationError: If a profile is malformed
    """
    if config_path is None:
        config_path = default_config_path()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Database config not found: {config_path}\n"
            f"Create it or point {CONFIG_PATH_ENV} at one."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    profiles = {
        name: DatabaseProfile(**profile_data)
        for name, profile_data in data.get("profiles", {}).items()
    }

    database = data.get("database", {})

    return DatabaseConfig(
        profiles=profiles,
        timezone=database.get("timezone", "UTC"),
        schema_name=database.get("schema", "public"),
    )
