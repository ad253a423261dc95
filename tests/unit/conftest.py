"""Pytest fixtures for unit tests.

This module provides fake collaborators (ballot source, vote sink) and
seeded users so VotingSession can be exercised without a portal or Redis.
"""

from typing import Any, Dict, List, Optional

import pytest

from kmpdu_voting import MemoryHistoryStore, Role, User, VotingSession
from kmpdu_voting.seed import seed_admin, seed_member, seed_positions

from .fakes import FakeBallotSource, FakeVoteSink


@pytest.fixture
def member() -> User:
    """Nairobi Branch member."""
    return seed_member()


@pytest.fixture
def mombasa_member() -> User:
    return User(
        id="usr_002",
        member_id="KMPDU-2024-00789",
        name="Dr. Hassan Ali",
        role=Role.MEMBER,
        branch="Mombasa Branch",
    )


@pytest.fixture
def admin() -> User:
    return seed_admin()


@pytest.fixture
def history_store() -> MemoryHistoryStore:
    return MemoryHistoryStore()


@pytest.fixture
def vote_sink() -> FakeVoteSink:
    return FakeVoteSink(response={
        "blockchainHash": "0xabc123",
        "verificationToken": "VRF-REMOTE-1",
    })


@pytest.fixture
def failing_sink() -> FakeVoteSink:
    return FakeVoteSink(error=ConnectionError("portal unreachable"))


@pytest.fixture
def make_session(history_store, vote_sink):
    """Factory building a signed-in session.

    Returns an async function; keyword arguments override the collaborators.
    """
    async def _make(user: Optional[User] = None, **kwargs) -> VotingSession:
        kwargs.setdefault("ballot_source", FakeBallotSource(ballot=[]))
        kwargs.setdefault("vote_sink", vote_sink)
        kwargs.setdefault("history_store", history_store)
        kwargs.setdefault("vote_timeout", 0.5)
        session = VotingSession(**kwargs)
        if user is not None:
            await session.initialize(user)
        return session

    return _make


@pytest.fixture
def seed_dump() -> List[Dict[str, Any]]:
    """Serialized seed positions for bit-for-bit comparisons."""
    return [p.model_dump() for p in seed_positions()]


@pytest.fixture
def dump_positions():
    """Serializer for a session ledger, comparable with seed_dump."""
    def _dump(session: VotingSession) -> List[Dict[str, Any]]:
        return [p.model_dump() for p in session.positions]

    return _dump
