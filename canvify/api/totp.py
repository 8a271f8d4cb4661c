from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import Callable, Collection

import httpx

from ..models import SecretVersion
from ..utils import safe_json
from .constants import (
    TOTP_DIGITS,
    TOTP_FALLBACK_CIPHERTEXT,
    TOTP_FALLBACK_VERSION,
    TOTP_PERIOD,
    TOTP_SECRETS_REFRESH_INTERVAL,
    TOTP_SECRETS_TIMEOUT,
    TOTP_SECRETS_URL,
    USER_AGENT,
)
from .exceptions import (
    CanvifyApiException,
    CanvifyDecodeException,
    CanvifyRequestException,
)

logger = logging.getLogger(__name__)


class Totp:
    def __init__(
        self,
        version: str,
        secret: bytes,
    ) -> None:
        self.version = version
        self.secret = secret

    @classmethod
    def from_secret_version(cls, secret_version: SecretVersion) -> "Totp":
        return cls(
            version=secret_version.version,
            secret=cls.derive(secret_version.raw_digits),
        )

    @staticmethod
    def derive(ciphertext: Collection[int]) -> bytes:
        return "".join(
            str(byte ^ ((i % 33) + 9)) for i, byte in enumerate(ciphertext)
        ).encode("utf-8")

    @property
    def secret_hex(self) -> str:
        return self.secret.hex()

    def generate(self, timestamp: int) -> str:
        counter = int(timestamp) // 1000 // TOTP_PERIOD
        counter_bytes = counter.to_bytes(8, "big")

        h = hmac.new(self.secret, counter_bytes, hashlib.sha1)
        hmac_result = h.digest()

        offset = hmac_result[-1] & 0x0F
        binary = (
            (hmac_result[offset] & 0x7F) << 24
            | (hmac_result[offset + 1] & 0xFF) << 16
            | (hmac_result[offset + 2] & 0xFF) << 8
            | (hmac_result[offset + 3] & 0xFF)
        )
        result = str(binary % (10**TOTP_DIGITS)).zfill(TOTP_DIGITS)

        logger.debug(f"Generated TOTP code: {result}")

        return result


class SecretStore:
    """Holds the current TOTP secret and keeps it in sync with the remote
    secret table.

    The table maps version labels to obfuscated digit sequences. The highest
    numeric version wins. Remote fetches happen at most once per
    ``refresh_interval`` seconds; when the very first fetch fails the baked-in
    fallback secret is used instead.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        secrets_url: str = TOTP_SECRETS_URL,
        refresh_interval: float = TOTP_SECRETS_REFRESH_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transport = transport
        self.secrets_url = secrets_url
        self.refresh_interval = refresh_interval
        self.clock = clock
        self._totp: Totp | None = None
        self._last_fetch_time: float | None = None

    @property
    def version(self) -> str | None:
        totp = self._totp
        return totp.version if totp else None

    @staticmethod
    def parse_secret_table(secrets: dict) -> SecretVersion:
        if not isinstance(secrets, dict) or not secrets:
            raise CanvifyDecodeException("TOTP secret table is empty")

        versions = [
            key for key in secrets if isinstance(key, str) and key.isdecimal()
        ]
        if not versions:
            raise CanvifyDecodeException(
                f"TOTP secret table has no numeric versions: {list(secrets)}"
            )

        try:
            version = max(versions, key=int)
        except ValueError as e:
            raise CanvifyDecodeException(
                f"TOTP secret table has unreadable versions: {versions}"
            ) from e
        raw_digits = secrets[version]
        if (
            not isinstance(raw_digits, list)
            or not raw_digits
            or not all(
                isinstance(digit, int) and not isinstance(digit, bool)
                for digit in raw_digits
            )
        ):
            raise CanvifyDecodeException(
                f"TOTP secret version {version} is malformed: {raw_digits!r}"
            )

        return SecretVersion(version=str(version), raw_digits=tuple(raw_digits))

    async def _get_latest_secret_version(self) -> SecretVersion:
        try:
            async with httpx.AsyncClient(
                transport=self.transport,
                timeout=TOTP_SECRETS_TIMEOUT,
                follow_redirects=True,
            ) as client:
                response = await client.get(
                    self.secrets_url,
                    headers={"user-agent": USER_AGENT},
                )
        except httpx.HTTPError as e:
            raise CanvifyRequestException(
                name="TOTP secrets",
                response_status_code=None,
                response_text=str(e),
            ) from e
        secrets = safe_json(response)
        if response.status_code != 200 or secrets is None:
            raise CanvifyRequestException(
                name="TOTP secrets",
                response_status_code=response.status_code,
                response_text=response.text,
            )

        logger.debug(f"Received TOTP secrets: {secrets}")

        return self.parse_secret_table(secrets)

    def _use_fallback(self) -> None:
        self._totp = Totp.from_secret_version(
            SecretVersion(
                version=TOTP_FALLBACK_VERSION,
                raw_digits=TOTP_FALLBACK_CIPHERTEXT,
            )
        )
        logger.warning(f"Using fallback TOTP secret version {TOTP_FALLBACK_VERSION}")

    async def ensure_fresh(self) -> None:
        now = self.clock()
        if (
            self._last_fetch_time is not None
            and now - self._last_fetch_time < self.refresh_interval
        ):
            return
        self._last_fetch_time = now

        logger.debug("Fetching TOTP secrets")
        try:
            secret_version = await self._get_latest_secret_version()
        except CanvifyApiException as e:
            logger.warning(f"Failed to fetch TOTP secrets: {e}")
            if self._totp is None:
                self._use_fallback()
            return

        if self._totp is None or secret_version.version != self._totp.version:
            self._totp = Totp.from_secret_version(secret_version)
            logger.info(f"TOTP secret updated to version {secret_version.version}")

    def current_seed(self) -> Totp:
        if self._totp is None:
            self._use_fallback()
        return self._totp
