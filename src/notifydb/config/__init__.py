"""Configuration management: TOML loading and config models.

Usage:
    >>> from notifydb.config import load_db_config, DatabaseProfile, DatabaseConfig
"""

from notifydb.config.loader import load_db_config
from notifydb.config.models import DatabaseConfig, DatabaseProfile

__all__ = ["load_db_config", "DatabaseConfig", "DatabaseProfile"]
