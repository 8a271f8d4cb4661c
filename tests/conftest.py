"""Shared fixtures for Canvify tests."""

import httpx
import pytest

from .fakes import FakeClock, FakeUpstream


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def transport(upstream):
    return httpx.MockTransport(upstream)


@pytest.fixture
def clock():
    return FakeClock()
