from __future__ import annotations

import logging

from .api.api import SpotifyApi
from .api.exceptions import CanvifyDecodeException
from .models import LyricLine
from .token_service import TokenService

logger = logging.getLogger(__name__)


class LyricsFetcher:
    def __init__(
        self,
        spotify_api: SpotifyApi,
        token_service: TokenService,
    ) -> None:
        self.spotify_api = spotify_api
        self.token_service = token_service

    @staticmethod
    def parse_lines(raw_lyrics: dict) -> list[LyricLine]:
        try:
            lines = (raw_lyrics.get("lyrics") or {}).get("lines") or []
            return [
                LyricLine(
                    start_time_ms=int(line["startTimeMs"]),
                    words=line["words"],
                )
                for line in lines
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise CanvifyDecodeException(f"Malformed lyrics: {e}") from e

    async def fetch(self, track_id: str) -> list[LyricLine] | None:
        """Returns the lyric lines of a track, or None if it has none."""
        access_token = self.token_service.require_token()

        raw_lyrics = await self.spotify_api.get_lyrics(track_id, access_token)
        if raw_lyrics is None:
            return None

        lines = self.parse_lines(raw_lyrics)
        if not lines:
            return None

        logger.debug(f"Found {len(lines)} lyric line(s) for {track_id}")

        return lines
