"""Shared fixtures: a controllable clock and a fresh in-memory store per test."""

import pytest

from activepaper.services.factory import create_test_store
from activepaper.services.store import ReadingStore

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that ticks 1 ms per reading so timestamps stay distinct."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now

    def advance(self, milliseconds: int) -> None:
        self.now += milliseconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def store(clock: FakeClock) -> ReadingStore:
    """Opened in-memory ReadingStore driven by the fake clock."""
    reading_store = create_test_store(clock=clock)
    await reading_store.open()
    yield reading_store
    await reading_store.close()


@pytest.fixture
async def document(store: ReadingStore):
    return await store.documents.get_or_create_document("paper.pdf", "/library/paper.pdf", total_pages=12)
