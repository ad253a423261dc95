"""
Data models for the KMPDU voting session.

This module contains:
- Portal models (Position, Candidate, User, Notification, ...) parsed with
  pydantic from the portal's camelCase JSON or built directly in Python
- VoteReceipt: immutable proof-of-cast record
- CastResult / LevelSwitchResult / PendingVote: session result types
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class PositionType(str, Enum):
    """Scope of a contested office."""
    NATIONAL = "national"
    BRANCH = "branch"


class PositionStatus(str, Enum):
    """Lifecycle status of a position."""
    UPCOMING = "upcoming"
    ACTIVE = "active"
    CLOSED = "closed"


class Role(str, Enum):
    """Role of the signed-in user."""
    MEMBER = "member"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class VotingLevel(str, Enum):
    """Election level a member is currently browsing."""
    NATIONAL = "national"
    BRANCH = "branch"


class NotificationType(str, Enum):
    """Severity of a notification."""
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"
    ERROR = "error"


class CastMode(str, Enum):
    """How a vote cast was recorded."""
    CONFIRMED = "confirmed"
    OFFLINE_FALLBACK = "offline_fallback"


class PortalModel(BaseModel):
    """Base model accepting both camelCase (portal JSON) and snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Candidate(PortalModel):
    """A person contesting a position. Percentages live on the Position."""

    id: str
    name: str
    bio: str = ""
    photo: Optional[str] = None
    vote_count: int = Field(default=0, ge=0)


class Position(PortalModel):
    """A contested office and its candidates."""

    id: str
    title: str
    type: PositionType
    branch: Optional[str] = None
    candidates: List[Candidate] = Field(default_factory=list)
    eligible_voters: int = Field(default=0, ge=0)
    status: PositionStatus = PositionStatus.UPCOMING
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    winner_id: Optional[str] = None
    winner_votes: Optional[int] = None
    election_id: Optional[str] = None

    @model_validator(mode="after")
    def validate_branch(self):
        """Branch is required for branch positions and dropped for national ones."""
        if self.type == PositionType.BRANCH and not self.branch:
            raise ValueError(f"Branch position {self.id} must name its branch")
        if self.type == PositionType.NATIONAL:
            self.branch = None
        return self

    @computed_field(alias="totalVotes")
    @property
    def total_votes(self) -> int:
        return sum(candidate.vote_count for candidate in self.candidates)

    def candidate(self, candidate_id: str) -> Optional[Candidate]:
        for candidate in self.candidates:
            if candidate.id == candidate_id:
                return candidate
        return None

    def percentage(self, candidate_id: str) -> float:
        """Share of the position's votes held by a candidate (0 when no votes)."""
        candidate = self.candidate(candidate_id)
        total = self.total_votes
        if candidate is None or total == 0:
            return 0.0
        return candidate.vote_count / total * 100

    def percentages(self) -> Dict[str, float]:
        return {candidate.id: self.percentage(candidate.id) for candidate in self.candidates}

    def belongs_to_level(self, level: "VotingLevel", branch: Optional[str]) -> bool:
        """True for active positions on the given level (branch positions of the user's branch)."""
        if self.status != PositionStatus.ACTIVE:
            return False
        if level == VotingLevel.NATIONAL:
            return self.type == PositionType.NATIONAL
        return self.type == PositionType.BRANCH and self.branch == branch


class User(PortalModel):
    """Identity of the signed-in portal user."""

    id: str
    member_id: Optional[str] = None
    name: str = ""
    role: Role = Role.MEMBER
    branch: Optional[str] = None
    # Optional authoritative voted map from the profile; any shape is accepted here
    has_voted: Optional[Any] = None

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        """Accept upper-case roles and the legacy 'superuseradmin' spelling."""
        if isinstance(v, str):
            v = v.strip().lower()
            if v == "superuseradmin":
                return Role.SUPERADMIN
        return v

    @property
    def is_admin(self) -> bool:
        return self.role in (Role.ADMIN, Role.SUPERADMIN)

    @property
    def history_key(self) -> Optional[str]:
        return self.member_id


class Notification(PortalModel):
    """User-facing notification."""

    id: str
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    timestamp: datetime = Field(default_factory=datetime.now)
    read: bool = False


class VoteReceipt(PortalModel):
    """Proof-of-cast record. Never modified after issuance."""

    model_config = ConfigDict(frozen=True)

    id: str
    position_id: str
    position_title: str
    candidate_id: str
    candidate_name: str
    timestamp: datetime
    verification_token: str
    blockchain_hash: str
    mode: CastMode = CastMode.CONFIRMED

    @property
    def is_offline(self) -> bool:
        return self.mode == CastMode.OFFLINE_FALLBACK


class VoteLimit(PortalModel):
    """Administrative cap on a candidate's recorded vote count."""

    position_id: str
    candidate_id: str
    max_votes: int = Field(ge=0)
    is_active: bool = True


class ForcedWinner(PortalModel):
    """Administrative override fixing a position's outcome."""

    position_id: str
    candidate_id: str
    is_active: bool = True
    collect_remaining_votes: bool = False


class SuperuseradminSettings(PortalModel):
    """Process-wide override configuration."""

    vote_limits: List[VoteLimit] = Field(default_factory=list)
    forced_winners: List[ForcedWinner] = Field(default_factory=list)
    system_override_enabled: bool = False


@dataclass(frozen=True)
class CastResult:
    """Outcome of a successful vote cast, tagged with how it was recorded."""
    mode: CastMode
    receipt: VoteReceipt

    @property
    def is_offline(self) -> bool:
        return self.mode == CastMode.OFFLINE_FALLBACK


class LevelSwitchStatus(str, Enum):
    """Outcome of a level switch request."""
    UNCHANGED = "unchanged"
    SWITCHED = "switched"
    CONFIRMATION_REQUIRED = "confirmation_required"


@dataclass
class LevelSwitchResult:
    """
    Result of VotingSession.request_level_switch.

    Attributes:
        status: What happened to the request
        level: Level selected after the call
        requested_level: Level the caller asked for
        incomplete_positions: Active positions of the current level still unvoted
            (only filled when confirmation is required)
    """
    status: LevelSwitchStatus
    level: Optional[VotingLevel]
    requested_level: Optional[VotingLevel] = None
    incomplete_positions: List[Position] = field(default_factory=list)

    @property
    def needs_confirmation(self) -> bool:
        return self.status == LevelSwitchStatus.CONFIRMATION_REQUIRED


@dataclass
class PendingVote:
    """An offline-fallback vote waiting to be confirmed by the vote sink."""
    receipt_id: str
    user_id: str
    position_id: str
    candidate_id: str
    election_id: str
    attempts: int = 0

    def to_payload(self) -> Dict[str, str]:
        return {
            "positionId": self.position_id,
            "candidateId": self.candidate_id,
            "electionId": self.election_id,
        }
