"""
Logging for the Stash Playlists API.

Every module logs under the ``stash_playlists`` namespace, so one level
setting covers every router and service.
"""

import logging
import sys

from stash_playlists.config import settings


def setup_logging() -> logging.Logger:
    """
    Send log records to stdout, at DEBUG when ``settings.DEBUG`` is on.

    Called once from the app lifespan before services are built.

    :return: The ``stash_playlists`` namespace logger
    :rtype: logging.Logger
    """
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    return logging.getLogger('stash_playlists')


def get_logger(name: str) -> logging.Logger:
    """
    Logger under the ``stash_playlists`` namespace, e.g. ``services.drafts``.

    :param name: Dotted suffix naming the router or service
    :type name: str
    :rtype: logging.Logger
    """
    return logging.getLogger(f'stash_playlists.{name}')
