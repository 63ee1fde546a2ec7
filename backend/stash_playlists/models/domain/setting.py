"""Settings domain models and the catalogue of known settings."""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone

from stash_playlists.models.enums import SettingType


class Setting(BaseModel):
    """A key/value configuration row."""
    id: str
    key: str
    value: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SettingsUpdate(BaseModel):
    """Payload for writing several settings at once."""
    settings: dict[str, str]


class SettingDefinition(BaseModel):
    """Static description of a configurable setting."""
    key: str
    default_value: str
    type: SettingType
    category: str
    label: str
    description: str
    required: bool = False
    options: Optional[list[str]] = None
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    min_length: Optional[int] = None


class StashConfig(BaseModel):
    """Resolved connection details for the upstream Stash server."""
    server_url: str
    graphql_url: str
    api_key: str


STASH_INTEGRATION = "Stash Integration"
APPEARANCE = "Appearance"
PLAYBACK = "Playback"
SMART_PLAYLIST_REFRESH = "Smart Playlist Refresh"
BACKUP = "Database Backup"

SETTING_DEFINITIONS: list[SettingDefinition] = [
    SettingDefinition(
        key="STASH_SERVER",
        default_value="",
        type=SettingType.URL,
        category=STASH_INTEGRATION,
        label="Stash Server URL",
        description="The base URL of your Stash server (e.g., http://192.168.1.17:6969 or http://localhost:9999)",
        required=True,
    ),
    SettingDefinition(
        key="STASH_API",
        default_value="",
        type=SettingType.TEXT,
        category=STASH_INTEGRATION,
        label="Stash API Key",
        description="Your Stash API key, found under Settings > Security > Authentication in Stash",
        required=True,
        min_length=10,
    ),
    SettingDefinition(
        key="THEME_MODE",
        default_value="system",
        type=SettingType.SELECT,
        category=APPEARANCE,
        label="Theme",
        description="Preferred theme. System follows the device setting",
        options=["light", "dark", "system"],
    ),
    SettingDefinition(
        key="DEFAULT_CLIP_BEFORE",
        default_value="0",
        type=SettingType.NUMBER,
        category=PLAYBACK,
        label="Default Seconds Before Marker",
        description="Seconds before a marker at which smart playlist clips start",
        min_value=0,
        max_value=300,
    ),
    SettingDefinition(
        key="DEFAULT_CLIP_AFTER",
        default_value="0",
        type=SettingType.NUMBER,
        category=PLAYBACK,
        label="Default Seconds After Marker",
        description="Seconds after a marker at which smart playlist clips end",
        min_value=0,
        max_value=300,
    ),
    SettingDefinition(
        key="BACKUP_ENABLED",
        default_value="true",
        type=SettingType.SELECT,
        category=BACKUP,
        label="Enable Automatic Backups",
        description="Create daily backups of the database",
        options=["true", "false"],
    ),
    SettingDefinition(
        key="BACKUP_RETENTION_DAYS",
        default_value="7",
        type=SettingType.NUMBER,
        category=BACKUP,
        label="Backup Retention (Days)",
        description="How many daily backups to keep",
        min_value=1,
        max_value=365,
    ),
    SettingDefinition(
        key="BACKUP_HOUR",
        default_value="2",
        type=SettingType.NUMBER,
        category=BACKUP,
        label="Backup Time (Hour)",
        description="Hour of the day (0-23, server time) to run backups",
        min_value=0,
        max_value=23,
    ),
    SettingDefinition(
        key="SMART_PLAYLIST_REFRESH_ENABLED",
        default_value="false",
        type=SettingType.SELECT,
        category=SMART_PLAYLIST_REFRESH,
        label="Enable Automatic Refresh",
        description="Refresh smart playlists on a schedule",
        options=["true", "false"],
    ),
    SettingDefinition(
        key="SMART_PLAYLIST_REFRESH_INTERVAL",
        default_value="daily",
        type=SettingType.SELECT,
        category=SMART_PLAYLIST_REFRESH,
        label="Refresh Interval",
        description="How often smart playlists are refreshed",
        options=["hourly", "daily", "weekly"],
    ),
    SettingDefinition(
        key="SMART_PLAYLIST_REFRESH_HOUR",
        default_value="3",
        type=SettingType.NUMBER,
        category=SMART_PLAYLIST_REFRESH,
        label="Refresh Time (Hour)",
        description="Hour of the day (0-23, server time) for daily and weekly refreshes",
        min_value=0,
        max_value=23,
    ),
    SettingDefinition(
        key="SMART_PLAYLIST_REFRESH_DAY",
        default_value="0",
        type=SettingType.SELECT,
        category=SMART_PLAYLIST_REFRESH,
        label="Refresh Day (Weekly)",
        description="Day of the week for weekly refreshes, 0=Sunday through 6=Saturday",
        options=["0", "1", "2", "3", "4", "5", "6"],
    ),
]


def get_setting_definition(key: str) -> SettingDefinition | None:
    for definition in SETTING_DEFINITIONS:
        if definition.key == key:
            return definition
    return None
