"""Result models for upstream service operations."""

from stash_playlists.models.results.stash import (
    StashResult,
    ConnectionTestResult,
    MarkerDeleted,
)

__all__ = [
    "StashResult",
    "ConnectionTestResult",
    "MarkerDeleted",
]
