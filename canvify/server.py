from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import httpx
from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, StreamingResponse
from starlette.background import BackgroundTask

from . import __version__
from .api.api import SpotifyApi
from .api.constants import TOTP_SECRETS_REFRESH_INTERVAL, TOTP_SECRETS_URL
from .api.exceptions import CanvifyApiException, CanvifyNotReadyException
from .api.totp import SecretStore
from .constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_TOKEN_REFRESH_INTERVAL,
    ROUTE_PREFIXES,
)
from .enums import ArtworkSource
from .lyrics import LyricsFetcher
from .resolver import CanvasResolver
from .token_service import TokenService

logger = logging.getLogger(__name__)


@dataclass
class Config:
    sp_dc: str = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    token_refresh_interval: float = DEFAULT_TOKEN_REFRESH_INTERVAL
    secrets_refresh_interval: float = TOTP_SECRETS_REFRESH_INTERVAL
    secrets_url: str = TOTP_SECRETS_URL
    stream_canvas: bool = False
    fallback_redirect_url: str = None


@dataclass
class RequestStats:
    total: int = 0
    failed: int = 0

    def record(self, status_code: int) -> None:
        self.total += 1
        if status_code >= 400:
            self.failed += 1
        logger.debug(f"Requests - Total: {self.total} | Failed: {self.failed}")


@dataclass
class Services:
    spotify_api: SpotifyApi
    secret_store: SecretStore
    token_service: TokenService
    resolver: CanvasResolver
    lyrics_fetcher: LyricsFetcher
    stats: RequestStats = field(default_factory=RequestStats)


def create_services(
    config: Config,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Services:
    spotify_api = SpotifyApi(sp_dc=config.sp_dc, transport=transport)
    secret_store = SecretStore(
        transport=transport,
        secrets_url=config.secrets_url,
        refresh_interval=config.secrets_refresh_interval,
    )
    token_service = TokenService(
        spotify_api,
        secret_store,
        refresh_interval=config.token_refresh_interval,
    )
    return Services(
        spotify_api=spotify_api,
        secret_store=secret_store,
        token_service=token_service,
        resolver=CanvasResolver(spotify_api, token_service),
        lyrics_fetcher=LyricsFetcher(spotify_api, token_service),
    )


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _create_router(config: Config, services: Services) -> APIRouter:
    router = APIRouter()

    @router.get("/canvas")
    async def canvas(track_id: str = Query(None, alias="trackId")):
        if not track_id:
            return error_response(400, "Missing trackId")
        try:
            artwork = await services.resolver.resolve(track_id)
        except CanvifyNotReadyException as e:
            return error_response(500, str(e))

        if artwork.source == ArtworkSource.NOT_FOUND:
            return error_response(404, "No canvas or album art")
        if artwork.source == ArtworkSource.CANVAS and config.stream_canvas:
            try:
                media = await services.spotify_api.open_media_stream(artwork.url)
            except CanvifyApiException as e:
                logger.error(f"Failed to stream canvas for {track_id}: {e}")
                return error_response(500, "Failed to stream canvas")
            return StreamingResponse(
                media.aiter_bytes(),
                media_type="video/mp4",
                headers={"Cache-Control": "no-store"},
                background=BackgroundTask(media.aclose),
            )
        return RedirectResponse(artwork.url, status_code=302)

    @router.get("/lyric")
    async def lyric(track_id: str = Query(None, alias="trackId")):
        if not track_id:
            return error_response(400, "Missing trackId")
        try:
            lines = await services.lyrics_fetcher.fetch(track_id)
        except CanvifyNotReadyException as e:
            return error_response(500, str(e))
        except CanvifyApiException as e:
            logger.error(f"Failed to fetch lyrics for {track_id}: {e}")
            return error_response(500, "Failed to fetch lyrics")

        if lines is None:
            return error_response(404, "No lyrics found")
        return {
            "trackId": track_id,
            "lyrics": [line.to_dict() for line in lines],
        }

    return router


def create_app(
    config: Config,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    services = create_services(config, transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await services.token_service.start()
        try:
            yield
        finally:
            await services.token_service.stop()
            await services.spotify_api.close()

    app = FastAPI(title="Canvify", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def record_request(request: Request, call_next):
        response = await call_next(request)
        services.stats.record(response.status_code)
        return response

    router = _create_router(config, services)
    for prefix in ROUTE_PREFIXES:
        app.include_router(router, prefix=prefix)

    @app.get("/health")
    async def health():
        access_token = services.token_service.access_token
        return {
            "tokenReady": access_token is not None,
            "tokenMintedAt": access_token.minted_at if access_token else None,
            "totpVersion": services.secret_store.version,
            "totalRequests": services.stats.total,
            "failedRequests": services.stats.failed,
        }

    if config.fallback_redirect_url:

        @app.api_route("/{path:path}", methods=["GET", "HEAD", "POST"])
        async def fallback_redirect(path: str):
            logger.info(
                f"Unknown request path /{path}, redirecting to "
                f"{config.fallback_redirect_url}"
            )
            return RedirectResponse(config.fallback_redirect_url, status_code=302)

    return app
