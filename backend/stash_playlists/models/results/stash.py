"""
Result models for Stash service operations.
"""

from pydantic import BaseModel
from typing import Optional


class StashResult(BaseModel):
    """Base result for Stash operations."""
    success: bool


class ConnectionTestResult(StashResult):
    """Result of probing the configured Stash server."""
    error: Optional[str] = None
    details: Optional[str] = None
    version: Optional[str] = None
    server_url: Optional[str] = None
    graphql_url: Optional[str] = None


class MarkerDeleted(StashResult):
    id: str
