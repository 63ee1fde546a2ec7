"""Stash Playlists backend."""
