from __future__ import annotations

import logging
from typing import Awaitable, Callable

from .api.api import SpotifyApi
from .api.canvaz import decode_canvaz_response, encode_canvaz_request
from .api.constants import TRACK_URI_TEMPLATE
from .api.exceptions import CanvifyApiException, CanvifyDecodeException
from .models import ResolvedArtwork
from .token_service import TokenService

logger = logging.getLogger(__name__)

ArtworkStrategy = Callable[[str, str], Awaitable[ResolvedArtwork | None]]


class CanvasResolver:
    """Resolves a track ID to its canvas video, falling back to album art.

    Strategies run in order, each at most once per call. The first one that
    yields a URL wins; failures are logged and the next strategy runs.
    """

    def __init__(
        self,
        spotify_api: SpotifyApi,
        token_service: TokenService,
    ) -> None:
        self.spotify_api = spotify_api
        self.token_service = token_service
        self.strategies: list[tuple[str, ArtworkStrategy]] = [
            ("canvas", self._get_canvas),
            ("album art", self._get_album_art),
        ]

    async def _get_canvas(self, track_id: str, access_token: str) -> ResolvedArtwork | None:
        request_body = encode_canvaz_request(TRACK_URI_TEMPLATE.format(track_id=track_id))
        response_body = await self.spotify_api.get_canvases(request_body, access_token)
        canvas_response = decode_canvaz_response(response_body)
        logger.debug(
            f"Canvas URLs for {track_id}: "
            f"{[canvas.url for canvas in canvas_response.canvases]}"
        )
        canvas_url = canvas_response.first_url()
        return ResolvedArtwork.canvas(canvas_url) if canvas_url else None

    async def _get_album_art(self, track_id: str, access_token: str) -> ResolvedArtwork | None:
        track = await self.spotify_api.get_track(track_id, access_token)
        try:
            images = (track.get("album") or {}).get("images") or []
            album_art_url = images[0].get("url") if images else None
        except (AttributeError, KeyError, TypeError) as e:
            raise CanvifyDecodeException(f"Malformed track metadata: {e}") from e
        if not album_art_url or not isinstance(album_art_url, str):
            return None
        return ResolvedArtwork.album_art(album_art_url)

    async def resolve(self, track_id: str) -> ResolvedArtwork:
        access_token = self.token_service.require_token()

        for name, strategy in self.strategies:
            try:
                artwork = await strategy(track_id, access_token)
            except CanvifyApiException as e:
                logger.warning(f"Failed to get {name} for {track_id}: {e}")
                continue
            if artwork is not None:
                logger.info(f"Resolved {name} for {track_id}: {artwork.url}")
                return artwork
            logger.warning(f"No {name} found for {track_id}")

        return ResolvedArtwork.not_found()
