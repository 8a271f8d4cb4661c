from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from .api.api import SpotifyApi
from .api.exceptions import CanvifyConfigException, CanvifyNotReadyException
from .api.totp import SecretStore
from .constants import DEFAULT_TOKEN_REFRESH_INTERVAL
from .models import AccessToken
from .utils import CanvifyException

logger = logging.getLogger(__name__)


class TokenService:
    """Mints upstream bearer tokens from the session cookie.

    The current token is replaced by a single assignment, so readers see
    either the previous token or the new one. A failed refresh leaves the
    previous token in place.
    """

    def __init__(
        self,
        spotify_api: SpotifyApi,
        secret_store: SecretStore,
        refresh_interval: float = DEFAULT_TOKEN_REFRESH_INTERVAL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.spotify_api = spotify_api
        self.secret_store = secret_store
        self.refresh_interval = refresh_interval
        self.clock = clock
        self.access_token: AccessToken | None = None
        self._stop_event: asyncio.Event | None = None
        self._refresh_task: asyncio.Task | None = None

    @property
    def ready(self) -> bool:
        return self.access_token is not None

    def require_token(self) -> str:
        access_token = self.access_token
        if access_token is None:
            raise CanvifyNotReadyException()
        return access_token.value

    async def _get_server_time(self, local_time: int) -> int:
        try:
            return await self.spotify_api.get_server_time()
        except CanvifyException as e:
            logger.warning(f"Failed to get server time, using local time: {e}")
            return local_time

    async def refresh(self) -> AccessToken:
        if not self.spotify_api.sp_dc:
            raise CanvifyConfigException(
                "'sp_dc' session cookie is not configured. "
                "Set the SP_DC environment variable or pass --sp-dc."
            )

        await self.secret_store.ensure_fresh()
        totp = self.secret_store.current_seed()

        local_time = int(self.clock() * 1000)
        server_time = await self._get_server_time(local_time)

        session_info = await self.spotify_api.get_session_token(
            totp=totp.generate(timestamp=local_time),
            totp_server=totp.generate(timestamp=server_time),
            totp_version=totp.version,
        )

        expiration_ms = session_info.get("accessTokenExpirationTimestampMs")
        try:
            expires_at = float(expiration_ms) / 1000 if expiration_ms else None
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed token expiration: {expiration_ms!r}")
            expires_at = None
        access_token = AccessToken(
            value=session_info["accessToken"],
            minted_at=self.clock(),
            expires_at=expires_at,
            is_anonymous=session_info.get("isAnonymous"),
        )
        self.access_token = access_token

        logger.info("Spotify access token refreshed")

        return access_token

    async def refresh_safely(self) -> bool:
        """Run one refresh, logging instead of raising.

        Returns False when the failure is permanent (configuration error).
        """
        try:
            await self.refresh()
        except CanvifyConfigException as e:
            logger.critical(e)
            return False
        except CanvifyException as e:
            logger.error(f"Failed to refresh access token: {e}")
        return True

    async def _refresh_loop(self) -> None:
        while True:
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self.refresh_interval,
                )
                return
            except asyncio.TimeoutError:
                pass
            if not await self.refresh_safely():
                return

    async def start(self) -> None:
        self._stop_event = asyncio.Event()
        if not await self.refresh_safely():
            return
        self._refresh_task = asyncio.create_task(self._refresh_loop())

    async def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._refresh_task is not None:
            await self._refresh_task
            self._refresh_task = None
