"""Fake upstream Spotify endpoints for Canvify tests.

``FakeUpstream`` is an ``httpx.MockTransport`` handler whose responses can be
tweaked per test. It records every request it receives.
"""

import httpx

from canvify.api.canvaz import EntityCanvazResponse
from canvify.api.constants import TOTP_FALLBACK_CIPHERTEXT

SECRETS_PATH = "/Thereallo1026/spotify-secrets/refs/heads/main/secrets/secretDict.json"
SERVER_TIME_PATH = "/api/server-time"
TOKEN_PATH = "/api/token"
CANVAZ_PATH = "/canvaz-cache/v0/canvases"
TRACKS_PATH = "/v1/tracks/"
LYRICS_PATH = "/color-lyrics/v2/track/"
VIDEO_URL = "https://canvaz.scdn.co/upload/artist/video.cnvs.mp4"
ALBUM_ART_URL = "https://i.scdn.co/image/ab67616d0000b273cover"


def build_canvaz_response(*urls: str, ttl_in_seconds: int = 3600) -> bytes:
    message = EntityCanvazResponse(ttl_in_seconds=ttl_in_seconds)
    for index, url in enumerate(urls):
        message.canvases.add(
            id=f"canvas-{index}",
            url=url,
            file_id=f"file-{index}",
            type=1,
            entity_uri="spotify:track:4uLU6hMCjMI75M1A2tKUQC",
        )
    return message.SerializeToString()


class FakeUpstream:
    def __init__(self):
        self.secrets = {"61": list(TOTP_FALLBACK_CIPHERTEXT)}
        self.secrets_status = 200
        self.server_time = 1111111111
        self.server_time_status = 200
        self.access_token = "access-token-1"
        self.token_status = 200
        self.token_expiration = 1111114711000
        self.canvas_body = build_canvaz_response(VIDEO_URL)
        self.canvas_status = 200
        self.track = {"album": {"images": [{"url": ALBUM_ART_URL, "width": 640}]}}
        self.track_status = 200
        self.lyrics = {
            "lyrics": {
                "syncType": "LINE_SYNCED",
                "lines": [
                    {"startTimeMs": "1000", "words": "First line", "syllables": []},
                    {"startTimeMs": "4500", "words": "Second line", "syllables": []},
                ],
            }
        }
        self.lyrics_status = 200
        self.media_body = b"\x00\x00\x00\x18ftypmp42"
        self.failing_paths = set()
        self.requests = []

    def hits(self, path: str) -> int:
        return sum(1 for request in self.requests if request.url.path.startswith(path))

    def last_request(self, path: str) -> httpx.Request:
        return [
            request for request in self.requests if request.url.path.startswith(path)
        ][-1]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        for failing_path in self.failing_paths:
            if path.startswith(failing_path):
                raise httpx.ConnectError("connection refused", request=request)

        if path == SECRETS_PATH:
            return httpx.Response(self.secrets_status, json=self.secrets)
        if path == SERVER_TIME_PATH:
            return httpx.Response(
                self.server_time_status,
                json={"serverTime": self.server_time},
            )
        if path == TOKEN_PATH:
            return httpx.Response(
                self.token_status,
                json={
                    "clientId": "client-id",
                    "accessToken": self.access_token,
                    "accessTokenExpirationTimestampMs": self.token_expiration,
                    "isAnonymous": False,
                },
            )
        if path == CANVAZ_PATH:
            return httpx.Response(self.canvas_status, content=self.canvas_body)
        if path.startswith(TRACKS_PATH):
            return httpx.Response(self.track_status, json=self.track)
        if path.startswith(LYRICS_PATH):
            return httpx.Response(self.lyrics_status, json=self.lyrics)
        if str(request.url) == VIDEO_URL:
            return httpx.Response(200, content=self.media_body)
        return httpx.Response(404, text="Not found")


class FakeClock:
    def __init__(self, now: float = 1111111109.0):
        self.now = now

    def __call__(self) -> float:
        return self.now
