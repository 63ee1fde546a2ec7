"""
Stash Playlists - FastAPI Backend
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import socketio

from stash_playlists.config import settings
from stash_playlists.database.db import init_db
from stash_playlists.logging import setup_logging, get_logger
from stash_playlists.routers import (
    actors,
    browse,
    items,
    playlists,
    scenes,
    stash_graphql,
)
from stash_playlists.routers import settings as settings_router
from stash_playlists.services.actors import ActorService
from stash_playlists.services.items import ItemService
from stash_playlists.services.marker_edit import MarkerEditService
from stash_playlists.services.notifier import SceneNotifier, scene_room
from stash_playlists.services.playlists import PlaylistService
from stash_playlists.services.settings import SettingsService
from stash_playlists.services.stash import StashService

logger = get_logger('main')

# Socket.IO server for marker refetch notifications
sio = socketio.AsyncServer(
    async_mode='asgi',
    cors_allowed_origins='*'
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Starting Stash Playlists API")

    await init_db(settings.DATABASE_PATH)
    logger.info("Database initialized")

    app.state.settings_service = SettingsService(db_path=settings.DATABASE_PATH)

    stash = StashService(config_provider=app.state.settings_service.get_stash_config)
    await stash.initialize()
    app.state.stash = stash

    app.state.actor_service = ActorService(db_path=settings.DATABASE_PATH)
    app.state.item_service = ItemService(db_path=settings.DATABASE_PATH)
    app.state.playlist_service = PlaylistService(db_path=settings.DATABASE_PATH)
    app.state.marker_edit_service = MarkerEditService(
        stash=stash,
        notifier=SceneNotifier(sio),
    )
    logger.info("Services initialized")

    yield

    logger.info("Shutting down application")
    await app.state.marker_edit_service.shutdown()
    await stash.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Stash Playlists API",
        description="Marker playlists and scene-marker editing for Stash",
        version="1.0.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(actors.router, prefix="/api/actors", tags=["Actors"])
    app.include_router(settings_router.router, prefix="/api/settings", tags=["Settings"])
    app.include_router(playlists.router, prefix="/api/playlists", tags=["Playlists"])
    app.include_router(items.router, prefix="/api/items", tags=["Items"])
    app.include_router(stash_graphql.router, prefix="/api/stash-graphql", tags=["Stash GraphQL"])
    app.include_router(scenes.router, prefix="/api/scenes", tags=["Marker Editing"])
    app.include_router(browse.router, prefix="/api", tags=["Browse"])

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": "stash-playlists",
            "stash_client_ready": app.state.stash.is_available if hasattr(app.state, 'stash') else False,
        }

    @app.get("/")
    async def root():
        return {
            "name": "Stash Playlists API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health"
        }

    return app


def create_asgi_app() -> socketio.ASGIApp:
    """FastAPI app wrapped with the Socket.IO server."""

    @sio.event
    async def connect(sid, environ):
        query_string = environ.get('QUERY_STRING', '')
        if 'sceneId=' in query_string:
            scene_id = query_string.split('sceneId=')[-1].split('&')[0]
            await sio.enter_room(sid, scene_room(scene_id))
            logger.debug(f"Client {sid[:8]}... joined scene room: {scene_id}")

    @sio.event
    async def disconnect(sid):
        logger.debug(f"Client {sid[:8]}... disconnected")

    return socketio.ASGIApp(sio, other_asgi_app=create_app())
