"""Settings service: key/value rows, validation and Stash connection config."""

import re
from datetime import datetime, timezone
from urllib.parse import urlsplit
from uuid import uuid4

import aiosqlite

from stash_playlists.config import settings as app_settings
from stash_playlists.logging import get_logger
from stash_playlists.models import (
    SETTING_DEFINITIONS,
    Setting,
    SettingDefinition,
    SettingType,
    StashConfig,
    get_setting_definition,
)

logger = get_logger('services.settings')


class StashConfigError(ValueError):
    """STASH_SERVER or STASH_API is missing or unusable."""


class SettingsValidationError(ValueError):
    """One or more submitted settings failed validation."""

    def __init__(self, errors: dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_setting(row: dict) -> Setting:
    return Setting(
        id=row["id"],
        key=row["key"],
        value=row["value"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def ensure_protocol(url: str) -> str:
    if re.match(r"^https?://", url, re.IGNORECASE):
        return url
    return f"http://{url}"


def join_url(base: str, suffix: str) -> str:
    return f"{base.rstrip('/')}/{suffix.lstrip('/')}"


def _is_valid_url(value: str) -> bool:
    parts = urlsplit(ensure_protocol(value.strip()))
    if not parts.hostname:
        return False
    try:
        parts.port
    except ValueError:
        return False
    return True


def normalize_server_url(value: str | None) -> str:
    raw = (value or "").strip()
    if not raw:
        raise StashConfigError("STASH_SERVER is missing in Settings")
    if not _is_valid_url(raw):
        raise StashConfigError(f'STASH_SERVER is not a valid URL: "{raw}"')
    return ensure_protocol(raw).rstrip("/")


def validate_setting(key: str, value: str) -> str | None:
    """
    Check a value against its setting definition.

    :param key: Setting key
    :type key: str
    :param value: Submitted value
    :type value: str
    :return: Error message, or None when valid or the key is not catalogued
    :rtype: str | None
    """
    definition = get_setting_definition(key)
    if definition is None:
        return None

    if not value.strip():
        if definition.required:
            return f"{definition.label} is required"
        return None

    if definition.type == SettingType.URL and not _is_valid_url(value):
        return "Please enter a valid URL (e.g., http://192.168.1.17:6969)"

    if definition.min_length is not None and len(value) < definition.min_length:
        return f"{definition.label} appears too short - please check it's correct"

    if definition.type == SettingType.NUMBER:
        try:
            number = int(value)
        except ValueError:
            return "Must be a number"
        low, high = definition.min_value, definition.max_value
        if low is not None and high is not None and not low <= number <= high:
            return f"Must be between {low}-{high}"
        if low is not None and number < low:
            return f"Must be at least {low}"
        if high is not None and number > high:
            return f"Must be at most {high}"

    if definition.type == SettingType.SELECT and definition.options and value not in definition.options:
        return f"Must be one of: {', '.join(definition.options)}"

    return None


def definitions_by_category() -> dict[str, list[SettingDefinition]]:
    grouped: dict[str, list[SettingDefinition]] = {}
    for definition in SETTING_DEFINITIONS:
        grouped.setdefault(definition.category, []).append(definition)
    return grouped


class SettingsService:
    """Service for the key/value settings table."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def _get_db(self) -> aiosqlite.Connection:
        db = await aiosqlite.connect(self.db_path)
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON")
        return db

    async def list_settings(self) -> list[Setting]:
        db = await self._get_db()
        try:
            cursor = await db.execute("SELECT * FROM settings ORDER BY key")
            rows = await cursor.fetchall()
            return [_row_to_setting(dict(r)) for r in rows]
        finally:
            await db.close()

    async def get_values(self, keys: list[str]) -> dict[str, str]:
        if not keys:
            return {}
        placeholders = ", ".join("?" for _ in keys)
        db = await self._get_db()
        try:
            cursor = await db.execute(
                f"SELECT key, value FROM settings WHERE key IN ({placeholders})",
                keys,
            )
            rows = await cursor.fetchall()
            return {row["key"]: (row["value"] or "").strip() for row in rows}
        finally:
            await db.close()

    async def update_settings(self, values: dict[str, str]) -> list[Setting]:
        errors = {
            key: error
            for key, value in values.items()
            if (error := validate_setting(key, value)) is not None
        }
        if errors:
            raise SettingsValidationError(errors)

        now = _now()
        db = await self._get_db()
        try:
            for key, value in values.items():
                await db.execute(
                    """INSERT INTO settings (id, key, value, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?)
                       ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at""",
                    (str(uuid4()), key, value, now, now),
                )
            await db.commit()
        finally:
            await db.close()

        logger.info(f"Updated settings: {', '.join(sorted(values))}")
        return await self.list_settings()

    async def get_stash_config(self) -> StashConfig:
        """
        Resolve the upstream server from the settings table.

        Environment values are used only for keys the table leaves blank.

        :return: Normalized connection details
        :rtype: StashConfig
        :raises StashConfigError: When the server URL or API key is unusable
        """
        values = await self.get_values(["STASH_SERVER", "STASH_API"])
        server = values.get("STASH_SERVER") or app_settings.STASH_SERVER
        api_key = values.get("STASH_API") or app_settings.STASH_API

        server_url = normalize_server_url(server)
        if not api_key:
            raise StashConfigError("STASH_API is missing in Settings")

        return StashConfig(
            server_url=server_url,
            graphql_url=join_url(server_url, "graphql"),
            api_key=api_key,
        )
