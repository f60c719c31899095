"""
Shared fixtures.

The API module builds its engine on import, so the in-memory database
URL is set here before any test imports it.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"

import pytest


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()
