"""
Enum definitions for the Stash Playlists API.
"""
from enum import Enum


class PlaylistType(str, Enum):
    """How a playlist is populated."""
    MANUAL = "MANUAL"
    SMART = "SMART"


class DraftState(str, Enum):
    """Editing state of a single marker draft."""
    CLEAN = "clean"
    DIRTY = "dirty"
    NEW = "new"
    SAVING = "saving"


class MarkerSort(str, Enum):
    """Sort orders offered by marker listings."""
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"
    START_ASC = "start-asc"
    START_DESC = "start-desc"
    RATING_DESC = "rating-desc"
    RATING_ASC = "rating-asc"


class SettingType(str, Enum):
    """Input type of a configurable setting."""
    TEXT = "text"
    URL = "url"
    SELECT = "select"
    NUMBER = "number"
