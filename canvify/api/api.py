from __future__ import annotations

import logging

import httpx

from ..utils import safe_json
from .constants import (
    CANVAZ_API_URL,
    CLIENT_VERSION,
    HOME_PAGE_URL,
    LYRICS_API_URL,
    REQUEST_TIMEOUT,
    SERVER_TIME_URL,
    SESSION_TOKEN_PRODUCT_TYPE,
    SESSION_TOKEN_REASON,
    SESSION_TOKEN_URL,
    TRACK_METADATA_API_URL,
    USER_AGENT,
)
from .exceptions import CanvifyDecodeException, CanvifyRequestException

logger = logging.getLogger(__name__)


class SpotifyApi:
    def __init__(
        self,
        sp_dc: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.sp_dc = sp_dc
        self._initialize_client(transport)

    def _initialize_client(self, transport: httpx.AsyncBaseTransport | None) -> None:
        self.client = httpx.AsyncClient(
            transport=transport,
            timeout=REQUEST_TIMEOUT,
        )

        self.client.headers.update(
            {
                "accept": "application/json",
                "accept-language": "en-US",
                "origin": HOME_PAGE_URL,
                "referer": HOME_PAGE_URL,
                "user-agent": USER_AGENT,
                "spotify-app-version": CLIENT_VERSION,
                "app-platform": "WebPlayer",
            }
        )

        if self.sp_dc:
            self.client.cookies.update({"sp_dc": self.sp_dc})

    async def close(self) -> None:
        await self.client.aclose()

    @staticmethod
    def _authorization_headers(access_token: str) -> dict:
        return {"authorization": f"Bearer {access_token}"}

    async def _send(self, name: str, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise CanvifyRequestException(
                name=name,
                response_status_code=None,
                response_text=str(e),
            ) from e

    async def get_server_time(self) -> int:
        response = await self._send("Server time", "GET", SERVER_TIME_URL)
        server_time = safe_json(response)
        if (
            response.status_code != 200
            or not isinstance(server_time, dict)
            or "serverTime" not in server_time
        ):
            raise CanvifyRequestException(
                name="Server time",
                response_status_code=response.status_code,
                response_text=response.text,
            )

        logger.debug(f"Received server time: {server_time}")

        try:
            return int(float(server_time["serverTime"]) * 1000)
        except (OverflowError, TypeError, ValueError) as e:
            raise CanvifyDecodeException(
                f"Malformed server time: {server_time['serverTime']!r}"
            ) from e

    async def get_session_token(
        self,
        totp: str,
        totp_server: str,
        totp_version: str,
    ) -> dict:
        response = await self._send(
            "Session token",
            "GET",
            SESSION_TOKEN_URL,
            params={
                "reason": SESSION_TOKEN_REASON,
                "productType": SESSION_TOKEN_PRODUCT_TYPE,
                "totp": totp,
                "totpVer": totp_version,
                "totpServer": totp_server,
            },
        )
        session_info = safe_json(response)
        if (
            response.status_code != 200
            or not isinstance(session_info, dict)
            or not session_info.get("accessToken")
        ):
            raise CanvifyRequestException(
                name="Session token",
                response_status_code=response.status_code,
                response_text=response.text,
            )

        logger.debug(f"Received session info: {session_info}")

        return session_info

    async def get_canvases(self, request_body: bytes, access_token: str) -> bytes:
        response = await self._send(
            "Canvas",
            "POST",
            CANVAZ_API_URL,
            content=request_body,
            headers={
                **self._authorization_headers(access_token),
                "accept": "application/x-protobuf",
                "content-type": "application/x-protobuf",
            },
        )
        if response.status_code != 200:
            raise CanvifyRequestException(
                name="Canvas",
                response_status_code=response.status_code,
                response_text=response.text,
            )

        logger.debug(f"Received canvas response of {len(response.content)} bytes")

        return response.content

    async def get_track(self, track_id: str, access_token: str) -> dict:
        response = await self._send(
            "Track metadata",
            "GET",
            TRACK_METADATA_API_URL.format(track_id=track_id),
            headers=self._authorization_headers(access_token),
        )
        track = safe_json(response)
        if response.status_code != 200 or not isinstance(track, dict):
            raise CanvifyRequestException(
                name="Track metadata",
                response_status_code=response.status_code,
                response_text=response.text,
            )

        logger.debug(f"Received track: {track}")

        return track

    async def get_lyrics(self, track_id: str, access_token: str) -> dict | None:
        response = await self._send(
            "Lyrics",
            "GET",
            LYRICS_API_URL.format(track_id=track_id),
            params={
                "format": "json",
                "market": "from_token",
            },
            headers=self._authorization_headers(access_token),
        )
        if response.status_code == 404:
            return None
        lyrics = safe_json(response)
        if response.status_code != 200 or not isinstance(lyrics, dict):
            raise CanvifyRequestException(
                name="Lyrics",
                response_status_code=response.status_code,
                response_text=response.text,
            )

        logger.debug(f"Received lyrics: {lyrics}")

        return lyrics

    async def open_media_stream(self, url: str) -> httpx.Response:
        request = self.client.build_request("GET", url, headers={"accept": "*/*"})
        try:
            response = await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise CanvifyRequestException(
                name="Media stream",
                response_status_code=None,
                response_text=str(e),
            ) from e
        if response.status_code != 200:
            await response.aclose()
            raise CanvifyRequestException(
                name="Media stream",
                response_status_code=response.status_code,
                response_text="",
            )

        logger.debug(f"Opened media stream: {url}")

        return response
