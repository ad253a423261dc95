"""
Collaborator interfaces consumed by VotingSession.

Any object with matching methods can be injected; the shipped implementations
are PortalApiClient (ballot source and vote sink), RedisHistoryStore and
MemoryHistoryStore.
"""

from typing import Any, Dict, List, Optional, Protocol


class BallotSource(Protocol):
    async def get_ballot(self, member_id: str) -> Any:
        """Positions the member may vote on (a list, or an object with 'positions')."""
        ...

    async def get_elections(self) -> Any:
        """All elections, for admin sessions."""
        ...


class VoteSink(Protocol):
    async def cast_votes(self, user_id: str, votes: List[Dict[str, str]]) -> Optional[Dict[str, Any]]:
        """Submit votes; may return 'blockchainHash' and 'verificationToken'."""
        ...


class HistoryStore(Protocol):
    def load(self, member_id: str) -> Optional[Dict[str, Any]]:
        ...

    def save(self, member_id: str, voted_positions: Dict[str, bool]) -> None:
        ...

    def delete(self, member_id: str) -> None:
        ...
