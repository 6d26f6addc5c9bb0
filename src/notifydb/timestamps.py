"""Normalization of PostgreSQL ``timestamptz`` values.

PostgreSQL returns timestamps with an offset chosen by the server's
``TimeZone`` setting.  Values read through notifydb are instead returned as
ISO 8601 strings in the application's configured zone, with second
precision (``2017-03-01T10:00:00-09:00``).

``install_timestamptz_codec`` registers the conversion as an asyncpg text
codec on every connection the engine's pool opens, so it applies to every
query, including raw ``text()`` statements.
"""

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

_INFINITY = {"infinity", "-infinity"}


def get_zone(name: str | None) -> ZoneInfo:
    """Resolve a zone name, falling back to UTC when none is configured."""
    return ZoneInfo(name or "UTC")


def format_timestamptz(value: str | datetime, tz: ZoneInfo) -> str:
    """Convert a ``timestamptz`` to an ISO 8601 string in zone *tz*.

    Args:
        value: PostgreSQL text output (``2017-03-01 19:00:00+00``) or a
            ``datetime``.  Naive datetimes are taken as UTC.
        tz: Zone to express the result in.

    Returns:
        ISO 8601 string with offset, truncated to seconds.  ``infinity``
        and ``-infinity`` pass through unchanged, as does any value
        outside the range of ``datetime`` (BC dates, years past 9999).
    """
    raw = value
    try:
        if isinstance(value, str):
            if value in _INFINITY:
                return value
            value = datetime.fromisoformat(value)
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(tz).replace(microsecond=0).isoformat()
    except (ValueError, OverflowError):
        logger.debug(f"Returning out-of-range timestamptz unchanged: {raw}")
        return raw if isinstance(raw, str) else raw.isoformat()


def encode_timestamptz(value: str | datetime) -> str:
    """Encode a parameter for a ``timestamptz`` column as PostgreSQL text."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return value


def install_timestamptz_codec(engine: AsyncEngine, tz: ZoneInfo) -> None:
    """Register the ``timestamptz`` codec on each new pooled connection.

    Args:
        engine: Async engine using the asyncpg driver.
        tz: Zone timestamps are converted to when read.
    """

    def decode(raw: str) -> str:
        return format_timestamptz(raw, tz)

    @event.listens_for(engine.sync_engine, "connect")
    def _register(dbapi_connection, connection_record) -> None:
        dbapi_connection.run_async(
            lambda conn: conn.set_type_codec(
                "timestamptz",
                encoder=encode_timestamptz,
                decoder=decode,
                schema="pg_catalog",
                format="text",
            )
        )

    logger.debug(f"Installed timestamptz codec for zone {tz.key}")
