"""
KMPDU election voting session core.

This package contains the in-process state container behind the member
and admin voting screens:
- VotingSession: eligibility, vote casting with offline fallback, receipts,
  level switching and superuseradmin overrides
- Data models (Position, Candidate, VoteReceipt, ...)
- Portal API client, vote history stores and notification centre
- Results views for dashboards
"""

from .api_client import PortalApiClient, PortalApiError
from .history_store import HistoryStoreError, MemoryHistoryStore, RedisHistoryStore
from .models import (
    Candidate,
    CastMode,
    CastResult,
    ForcedWinner,
    LevelSwitchResult,
    LevelSwitchStatus,
    Notification,
    NotificationType,
    PendingVote,
    Position,
    PositionStatus,
    PositionType,
    Role,
    SuperuseradminSettings,
    User,
    VoteLimit,
    VoteReceipt,
    VotingLevel,
)
from .notifications import NotificationCenter
from .results import election_stats, tally_position
from .seed import seed_positions
from .session import (
    IneligibleVoteError,
    UnauthenticatedError,
    VotingError,
    VotingSession,
    VotingSuspendedError,
)

__all__ = [
    'VotingSession',
    'VotingError',
    'IneligibleVoteError',
    'VotingSuspendedError',
    'UnauthenticatedError',
    'PortalApiClient',
    'PortalApiError',
    'HistoryStoreError',
    'MemoryHistoryStore',
    'RedisHistoryStore',
    'NotificationCenter',
    'Candidate',
    'CastMode',
    'CastResult',
    'ForcedWinner',
    'LevelSwitchResult',
    'LevelSwitchStatus',
    'Notification',
    'NotificationType',
    'PendingVote',
    'Position',
    'PositionStatus',
    'PositionType',
    'Role',
    'SuperuseradminSettings',
    'User',
    'VoteLimit',
    'VoteReceipt',
    'VotingLevel',
    'election_stats',
    'tally_position',
    'seed_positions',
]

__version__ = '1.0.0'
