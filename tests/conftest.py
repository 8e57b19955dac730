"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Callable, Iterator, List

import pytest

from eiterm import Session


@pytest.fixture
def sample_payload() -> bytes:
    """Binary payload containing zero bytes."""
    return b"\x00ETF\x00payload\xff"


@pytest.fixture
def open_sessions() -> Iterator[Callable[[bytes], Session]]:
    """Factory for sessions that are closed at teardown."""
    sessions: List[Session] = []

    def factory(data: bytes) -> Session:
        session = Session(data)
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        session.close()
