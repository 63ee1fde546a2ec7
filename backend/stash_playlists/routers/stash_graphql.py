"""Raw GraphQL proxy to the configured Stash server."""

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from stash_playlists.dependencies import StashServiceDep
from stash_playlists.logging import get_logger
from stash_playlists.services.settings import StashConfigError
from stash_playlists.services.stash import StashError

router = APIRouter()
logger = get_logger('routers.stash_graphql')


@router.post("")
async def proxy_graphql(request: Request, stash: StashServiceDep):
    body = await request.body()
    try:
        upstream = await stash.forward(body)
    except (StashConfigError, StashError) as exc:
        logger.error(f"Stash GraphQL proxy error: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to connect to Stash server", "details": str(exc)},
        )

    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type") or "application/json",
    )
