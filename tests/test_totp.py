"""Tests for Totp and SecretStore in canvify/api/totp.py."""

import asyncio

import httpx

from canvify.api.constants import TOTP_FALLBACK_CIPHERTEXT
from canvify.api.totp import SecretStore, Totp
from canvify.models import SecretVersion

from .fakes import FakeClock

# RFC 6238 SHA1 test secret
RFC_SECRET = b"12345678901234567890"


class TestTotpDerive:
    def test_xor_with_index_key(self):
        assert Totp.derive([1, 2]) == b"88"

    def test_key_wraps_every_33_bytes(self):
        # index 33 reuses the key of index 0 (9), so every byte decodes to 0
        ciphertext = [(i % 33) + 9 for i in range(34)]
        assert Totp.derive(ciphertext) == b"0" * 34

    def test_deterministic(self):
        assert Totp.derive(TOTP_FALLBACK_CIPHERTEXT) == Totp.derive(
            TOTP_FALLBACK_CIPHERTEXT
        )

    def test_different_ciphertexts_differ(self):
        altered = list(TOTP_FALLBACK_CIPHERTEXT)
        altered[0] += 1
        assert Totp.derive(altered) != Totp.derive(TOTP_FALLBACK_CIPHERTEXT)

    def test_secret_is_decimal_text(self):
        assert Totp.derive(TOTP_FALLBACK_CIPHERTEXT).decode().isdigit()

    def test_secret_hex_is_hex_of_text(self):
        totp = Totp.from_secret_version(SecretVersion("7", (1, 2)))
        assert totp.secret_hex == "3838"
        assert totp.version == "7"


class TestTotpGenerate:
    def test_rfc6238_vectors(self):
        totp = Totp("1", RFC_SECRET)
        assert totp.generate(59_000) == "287082"
        assert totp.generate(1_111_111_109_000) == "081804"
        assert totp.generate(1_234_567_890_000) == "005924"

    def test_six_digits(self):
        totp = Totp.from_secret_version(
            SecretVersion("19", TOTP_FALLBACK_CIPHERTEXT)
        )
        code = totp.generate(1_700_000_000_000)
        assert len(code) == 6
        assert code.isdigit()

    def test_same_bucket_same_code(self):
        totp = Totp("1", RFC_SECRET)
        assert totp.generate(1_111_111_080_000) == totp.generate(1_111_111_109_999)

    def test_adjacent_buckets_differ(self):
        totp = Totp("1", RFC_SECRET)
        assert totp.generate(1_111_111_109_000) == "081804"
        assert totp.generate(1_111_111_111_000) == "050471"

    def test_repeated_calls_stable(self):
        totp = Totp("1", RFC_SECRET)
        assert totp.generate(59_000) == totp.generate(59_000)


class TestParseSecretTable:
    def test_picks_highest_numeric_version(self):
        secret_version = SecretStore.parse_secret_table(
            {"9": [1, 2], "10": [3, 4], "2": [5]}
        )
        assert secret_version == SecretVersion("10", (3, 4))

    def test_ignores_non_numeric_keys(self):
        secret_version = SecretStore.parse_secret_table(
            {"latest": [9, 9], "v20": [8], "19": [1, 2]}
        )
        assert secret_version.version == "19"


def _store(upstream, clock=None, refresh_interval=3600):
    return SecretStore(
        transport=httpx.MockTransport(upstream),
        refresh_interval=refresh_interval,
        clock=clock or FakeClock(0.0),
    )


class TestSecretStore:
    def test_fetches_latest_version(self, upstream):
        upstream.secrets = {"59": [1, 2], "61": [3, 4]}
        store = _store(upstream)
        asyncio.run(store.ensure_fresh())
        assert store.current_seed().version == "61"
        assert store.current_seed().secret == Totp.derive([3, 4])

    def test_rate_limited_within_interval(self, upstream):
        store = _store(upstream)
        asyncio.run(store.ensure_fresh())
        asyncio.run(store.ensure_fresh())
        assert len(upstream.requests) == 1

    def test_refetches_after_interval(self, upstream):
        clock = FakeClock(0.0)
        store = _store(upstream, clock=clock)
        asyncio.run(store.ensure_fresh())
        seed = store.current_seed()
        clock.now = 3600.0
        asyncio.run(store.ensure_fresh())
        assert len(upstream.requests) == 2
        assert store.current_seed() is seed

    def test_unchanged_version_still_rate_limited(self, upstream):
        clock = FakeClock(0.0)
        store = _store(upstream, clock=clock)
        asyncio.run(store.ensure_fresh())
        clock.now = 3600.0
        asyncio.run(store.ensure_fresh())
        clock.now = 3601.0
        asyncio.run(store.ensure_fresh())
        assert len(upstream.requests) == 2

    def test_new_version_replaces_seed(self, upstream):
        clock = FakeClock(0.0)
        store = _store(upstream, clock=clock)
        asyncio.run(store.ensure_fresh())
        upstream.secrets["62"] = [5, 6]
        clock.now = 3600.0
        asyncio.run(store.ensure_fresh())
        assert store.version == "62"

    def test_fetch_failure_uses_fallback(self, upstream):
        upstream.secrets_status = 500
        store = _store(upstream)
        asyncio.run(store.ensure_fresh())
        assert store.current_seed().version == "19"
        assert store.current_seed().secret == Totp.derive(TOTP_FALLBACK_CIPHERTEXT)

    def test_transport_error_uses_fallback(self, upstream):
        upstream.failing_paths.add("/")
        store = _store(upstream)
        asyncio.run(store.ensure_fresh())
        assert store.version == "19"

    def test_failure_is_rate_limited_too(self, upstream):
        upstream.secrets_status = 503
        store = _store(upstream)
        asyncio.run(store.ensure_fresh())
        asyncio.run(store.ensure_fresh())
        assert len(upstream.requests) == 1

    def test_empty_table_uses_fallback(self, upstream):
        upstream.secrets = {}
        store = _store(upstream)
        asyncio.run(store.ensure_fresh())
        assert store.version == "19"

    def test_only_non_numeric_keys_uses_fallback(self, upstream):
        upstream.secrets = {"latest": [1, 2, 3]}
        store = _store(upstream)
        asyncio.run(store.ensure_fresh())
        assert store.version == "19"

    def test_non_ascii_digit_keys_use_fallback(self, upstream):
        upstream.secrets = {"\u00b2": [1, 2]}
        store = _store(upstream)
        asyncio.run(store.ensure_fresh())
        assert store.version == "19"

    def test_non_ascii_digit_keys_are_skipped(self, upstream):
        upstream.secrets = {"\u00b2": [1, 2], "61": [3, 4]}
        store = _store(upstream)
        asyncio.run(store.ensure_fresh())
        assert store.version == "61"

    def test_malformed_digits_use_fallback(self, upstream):
        upstream.secrets = {"61": "not a list"}
        store = _store(upstream)
        asyncio.run(store.ensure_fresh())
        assert store.version == "19"

    def test_failure_keeps_previously_fetched_secret(self, upstream):
        clock = FakeClock(0.0)
        store = _store(upstream, clock=clock)
        asyncio.run(store.ensure_fresh())
        upstream.secrets_status = 500
        clock.now = 7200.0
        asyncio.run(store.ensure_fresh())
        assert store.version == "61"

    def test_current_seed_loads_fallback_lazily(self, upstream):
        store = _store(upstream)
        assert store.version is None
        assert store.current_seed().version == "19"
        assert upstream.requests == []
