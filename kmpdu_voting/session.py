"""
Voting session: ballot state, eligibility and vote casting for one user.

╔══════════════════════════════════════════════════════════════════════════════╗
║                     AVAILABILITY OVER CONSISTENCY                            ║
╚══════════════════════════════════════════════════════════════════════════════╝

A voter always gets a receipt, even when the portal cannot be reached:

1. REMOTE FIRST
   - cast_vote() submits to the vote sink, bounded by VOTE_CAST_TIMEOUT_SECONDS
   - A confirmed cast increments the candidate tally immediately

2. OFFLINE FALLBACK
   - Any sink failure or timeout is logged and downgraded, never raised
   - The receipt carries CastMode.OFFLINE_FALLBACK and OFFLINE-prefixed tokens
   - The vote only sets the voter's voted flag; the tally waits in the
     reconciliation queue until retry_offline_votes() gets a confirmation

3. NO CROSS-CLIENT GUARANTEE
   - Two sessions of the same member can both cast locally; the remote
     service is the only real arbiter

════════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging
import math
import secrets
import time
import uuid
from datetime import datetime
from fractions import Fraction
from typing import Any, Dict, List, Optional, Tuple

from prometheus_client import Counter, Histogram
from pydantic import ValidationError

from .config import settings
from .history_store import HistoryStoreError
from .interfaces import BallotSource, HistoryStore, VoteSink
from .models import (
    CastMode,
    CastResult,
    ForcedWinner,
    LevelSwitchResult,
    LevelSwitchStatus,
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
from .seed import seed_positions

logger = logging.getLogger(__name__)

# Prometheus metrics
votes_cast = Counter(
    'kmpdu_votes_cast_total',
    'Total number of votes cast',
    ['mode']
)

vote_rejections = Counter(
    'kmpdu_vote_rejections_total',
    'Total number of rejected vote casts',
    ['reason']
)

remote_failures = Counter(
    'kmpdu_remote_failures_total',
    'Total number of failed portal calls',
    ['operation']
)

ballot_fallbacks = Counter(
    'kmpdu_ballot_fallbacks_total',
    'Total number of times seed positions replaced the remote ballot',
    ['reason']
)

offline_votes_reconciled = Counter(
    'kmpdu_offline_votes_reconciled_total',
    'Total number of offline votes later confirmed by the portal'
)

vote_cast_latency = Histogram(
    'kmpdu_vote_cast_latency_seconds',
    'Time spent casting a vote, including the remote call',
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

CONFIRMED_HASH_PREFIX = "KMPDU-BLK-"
CONFIRMED_TOKEN_PREFIX = "KMPDU-VRF-"
OFFLINE_HASH_PREFIX = "KMPDU-BLK-OFFLINE-"
OFFLINE_TOKEN_PREFIX = "KMPDU-VRF-OFFLINE-"


class VotingError(Exception):
    """Base class for vote cast rejections. State is unchanged when raised."""
    pass


class IneligibleVoteError(VotingError):
    """The user may not vote on this position (or for this candidate)."""
    pass


class VotingSuspendedError(VotingError):
    """Emergency stop is active."""
    pass


class UnauthenticatedError(VotingError):
    """No user is signed in."""
    pass


def generate_token(prefix: str) -> str:
    """Illustrative token: prefix, nanosecond timestamp, random suffix. Not cryptographic proof."""
    return f"{prefix}{time.time_ns():X}-{secrets.token_hex(4).upper()}"


def parse_positions(payload: Any) -> List[Position]:
    """
    Parse a ballot payload into positions.

    Args:
        payload: A list of positions, or an object with a 'positions' list

    Returns:
        list: Parsed positions (empty for None)

    Raises:
        ValueError: Payload has an unexpected shape (pydantic ValidationError included)
    """
    if payload is None:
        return []
    if isinstance(payload, dict):
        payload = payload.get("positions", [])
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of positions, got {type(payload).__name__}")
    return [Position.model_validate(item) for item in payload]


def positions_from_elections(payload: Any) -> List[Position]:
    """Flatten elections that embed their positions; elections without positions contribute nothing."""
    if payload is None:
        return []
    if isinstance(payload, dict):
        payload = payload.get("elections", payload.get("data", []))
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of elections, got {type(payload).__name__}")

    positions = []
    for election in payload:
        if not isinstance(election, dict) or not isinstance(election.get("positions"), list):
            continue
        for item in election["positions"]:
            position = Position.model_validate(item)
            if position.election_id is None and election.get("id") is not None:
                position.election_id = str(election["id"])
            positions.append(position)
    return positions


class VotingSession:
    """Ballot state and vote casting for the signed-in user."""

    def __init__(
        self,
        ballot_source: Optional[BallotSource] = None,
        vote_sink: Optional[VoteSink] = None,
        history_store: Optional[HistoryStore] = None,
        notifications: Optional[NotificationCenter] = None,
        seed: Optional[List[Position]] = None,
        vote_timeout: Optional[float] = None,
        default_election_id: Optional[str] = None,
        forced_winner_min_share: Optional[float] = None
    ):
        """
        Initialize the session.

        Args:
            ballot_source: Object with async get_ballot(member_id) / get_elections()
            vote_sink: Object with async cast_votes(user_id, votes)
            history_store: Object with load/save/delete keyed by member id
            notifications: Notification centre (a fresh one when omitted)
            seed: Fallback and reset positions (the 2024 seed set when omitted)
            vote_timeout: Seconds to wait on the vote sink before falling back
            default_election_id: Election id sent for positions that carry none
            forced_winner_min_share: Minimum share granted to a forced winner
        """
        self.ballot_source = ballot_source
        self.vote_sink = vote_sink
        self.history_store = history_store
        self.notifications = notifications or NotificationCenter()
        self.vote_timeout = vote_timeout if vote_timeout is not None else settings.VOTE_CAST_TIMEOUT_SECONDS
        self.default_election_id = default_election_id or settings.DEFAULT_ELECTION_ID
        self.forced_winner_min_share = (
            forced_winner_min_share if forced_winner_min_share is not None
            else settings.FORCED_WINNER_MIN_SHARE
        )

        self._seed = [p.model_copy(deep=True) for p in (seed if seed is not None else seed_positions())]
        self.positions: List[Position] = self._seed_copy()
        self.user: Optional[User] = None
        self.selected_level: Optional[VotingLevel] = None
        self.superuseradmin_settings = SuperuseradminSettings()
        self.is_emergency_stop_active = False

        self._voted: Dict[str, bool] = {}
        self._receipts: List[VoteReceipt] = []
        self._pending_votes: List[PendingVote] = []
        self._in_flight: set = set()
        self._pending_level: Optional[VotingLevel] = None
        self._retrying: Dict[str, PendingVote] = {}

    def _seed_copy(self) -> List[Position]:
        return [p.model_copy(deep=True) for p in self._seed]

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def initialize(self, user: User) -> None:
        """Load the user's ballot and voted positions once their identity is known."""
        self.user = user
        self._voted = self._load_voted_positions(user)

        positions = await self._fetch_positions(user)
        self.positions = positions if positions is not None else self._seed_copy()
        logger.info(
            f"Session initialized for {user.member_id or user.id} ({user.role.value}): "
            f"{len(self.positions)} positions, {len(self._voted)} already voted"
        )

    def sign_out(self) -> None:
        self.user = None
        self._voted = {}
        self.selected_level = None
        self._pending_level = None

    async def refresh_results(self) -> bool:
        """Re-read the ballot. The current ledger is kept when the source fails."""
        if self.user is None:
            return False
        positions = await self._fetch_positions(self.user)
        if positions is None:
            return False
        self.positions = positions
        return True

    async def _fetch_positions(self, user: User) -> Optional[List[Position]]:
        """Positions from the ballot source, or None when seed data should be used."""
        if self.ballot_source is None:
            ballot_fallbacks.labels(reason='no_source').inc()
            return None

        try:
            if user.role == Role.MEMBER:
                payload = await self.ballot_source.get_ballot(user.member_id or user.id)
                positions = parse_positions(payload)
            else:
                payload = await self.ballot_source.get_elections()
                positions = positions_from_elections(payload)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Unexpected ballot response shape, using seed data: {e}")
            ballot_fallbacks.labels(reason='bad_shape').inc()
            return None
        except Exception as e:
            logger.warning(f"Failed to fetch ballot, using seed data: {e}")
            remote_failures.labels(operation='get_ballot').inc()
            ballot_fallbacks.labels(reason='unreachable').inc()
            return None

        if not positions:
            logger.info("Ballot source returned no positions, using seed data")
            ballot_fallbacks.labels(reason='empty').inc()
            return None
        return positions

    def _load_voted_positions(self, user: User) -> Dict[str, bool]:
        # The profile's map is authoritative when it is structurally present
        if isinstance(user.has_voted, dict):
            return {str(pid): True for pid, voted in user.has_voted.items() if voted is True}

        if not user.history_key or self.history_store is None:
            return {}

        try:
            history = self.history_store.load(user.history_key)
        except HistoryStoreError as e:
            logger.error(f"Failed to load vote history for {user.history_key}: {e}")
            return {}

        if history is None:
            return {}
        voted = history.get("votedPositions", {})
        if not isinstance(voted, dict):
            logger.error(f"Malformed vote history for {user.history_key}, ignoring it")
            return {}
        return {str(pid): True for pid, flag in voted.items() if flag is True}

    def _persist_history(self) -> None:
        if self.history_store is None or self.user is None or not self.user.history_key:
            return
        try:
            self.history_store.save(self.user.history_key, self._voted)
        except HistoryStoreError as e:
            logger.error(f"Failed to persist vote history for {self.user.history_key}: {e}")

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    @property
    def user_voted_positions(self) -> Dict[str, bool]:
        return dict(self._voted)

    @property
    def vote_receipts(self) -> Tuple[VoteReceipt, ...]:
        return tuple(self._receipts)

    @property
    def pending_offline_votes(self) -> List[PendingVote]:
        return list(self._pending_votes)

    def find_position(self, position_id: str) -> Optional[Position]:
        for position in self.positions:
            if position.id == position_id:
                return position
        return None

    def has_user_voted_for_position(self, position_id: str) -> bool:
        return self._voted.get(position_id) is True

    def can_user_vote_for_position(self, position_id: str) -> bool:
        """Single authorization gate for every vote attempt."""
        if self.user is None:
            return False

        position = self.find_position(position_id)
        if position is None:
            return False

        if self.has_user_voted_for_position(position_id):
            return False

        if position.status != PositionStatus.ACTIVE:
            return False

        if position.type == PositionType.BRANCH and position.branch != self.user.branch:
            return False

        return True

    # ------------------------------------------------------------------
    # Vote casting
    # ------------------------------------------------------------------

    async def cast_vote(self, position_id: str, candidate_id: str) -> CastResult:
        """
        Cast the signed-in user's vote.

        Gates are checked in order: emergency stop, authentication, eligibility.
        A failing remote call never raises; the vote is recorded in offline
        fallback mode instead and queued for reconciliation.

        Args:
            position_id: Position being voted on
            candidate_id: Chosen candidate of that position

        Returns:
            CastResult: Receipt tagged with CastMode.CONFIRMED or CastMode.OFFLINE_FALLBACK

        Raises:
            VotingSuspendedError: Emergency stop is active
            UnauthenticatedError: No user is signed in
            IneligibleVoteError: Position not votable by this user, or unknown candidate
        """
        if self.is_emergency_stop_active:
            vote_rejections.labels(reason='suspended').inc()
            raise VotingSuspendedError("VOTING SUSPENDED: Emergency Stop is Active")

        user = self.user
        if user is None:
            vote_rejections.labels(reason='unauthenticated').inc()
            raise UnauthenticatedError("User not authenticated")

        if not self.can_user_vote_for_position(position_id) or position_id in self._in_flight:
            vote_rejections.labels(reason='ineligible').inc()
            raise IneligibleVoteError("You cannot vote for this position")

        position = self.find_position(position_id)
        candidate = position.candidate(candidate_id)
        if candidate is None:
            vote_rejections.labels(reason='unknown_candidate').inc()
            raise IneligibleVoteError(f"Candidate {candidate_id} is not standing for {position.title}")

        # Snapshot before awaiting so the receipt reflects what the voter saw
        position_title = position.title
        candidate_name = candidate.name
        election_id = position.election_id or self.default_election_id
        voter_id = user.member_id or user.id
        payload = {
            "positionId": position_id,
            "candidateId": candidate_id,
            "electionId": election_id,
        }

        start_time = time.time()
        self._in_flight.add(position_id)
        try:
            mode, response = await self._submit_vote(voter_id, payload)
        finally:
            self._in_flight.discard(position_id)

        if mode == CastMode.CONFIRMED:
            blockchain_hash = response.get("blockchainHash") or generate_token(CONFIRMED_HASH_PREFIX)
            verification_token = response.get("verificationToken") or generate_token(CONFIRMED_TOKEN_PREFIX)
        else:
            blockchain_hash = generate_token(OFFLINE_HASH_PREFIX)
            verification_token = generate_token(OFFLINE_TOKEN_PREFIX)

        receipt = VoteReceipt(
            id=f"rcpt_{uuid.uuid4().hex[:12]}",
            position_id=position_id,
            position_title=position_title,
            candidate_id=candidate_id,
            candidate_name=candidate_name,
            timestamp=datetime.now(),
            verification_token=verification_token,
            blockchain_hash=blockchain_hash,
            mode=mode,
        )

        self._voted = {**self._voted, position_id: True}
        if mode == CastMode.CONFIRMED:
            self._apply_tally(position_id, candidate_id)
        else:
            self._pending_votes.append(PendingVote(
                receipt_id=receipt.id,
                user_id=voter_id,
                position_id=position_id,
                candidate_id=candidate_id,
                election_id=election_id,
            ))
        self._persist_history()
        self._receipts.append(receipt)

        if mode == CastMode.CONFIRMED:
            self.notifications.add(
                title="Vote Confirmed",
                message=f"Your vote for {position_title} has been confirmed.",
                type=NotificationType.SUCCESS,
            )
        else:
            self.notifications.add(
                title="Vote Recorded (Offline Mode)",
                message=(
                    f"Your vote for {position_title} has been recorded locally "
                    f"and will be confirmed once the portal is reachable."
                ),
                type=NotificationType.SUCCESS,
            )

        votes_cast.labels(mode=mode.value).inc()
        vote_cast_latency.observe(time.time() - start_time)
        logger.info(
            f"Vote cast: voter={voter_id}, position={position_id}, candidate={candidate_id}, "
            f"mode={mode.value}, receipt={receipt.id}"
        )
        return CastResult(mode=mode, receipt=receipt)

    async def _submit_vote(self, voter_id: str, payload: Dict[str, str]) -> Tuple[CastMode, Dict[str, Any]]:
        if self.vote_sink is None:
            logger.warning("No vote sink configured, recording vote offline")
            return CastMode.OFFLINE_FALLBACK, {}

        try:
            response = await asyncio.wait_for(
                self.vote_sink.cast_votes(voter_id, [payload]),
                timeout=self.vote_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Vote cast timed out after {self.vote_timeout}s, falling back to local simulation"
            )
            remote_failures.labels(operation='cast_votes_timeout').inc()
            return CastMode.OFFLINE_FALLBACK, {}
        except Exception as e:
            logger.warning(f"API vote failed, falling back to local simulation: {e}")
            remote_failures.labels(operation='cast_votes').inc()
            return CastMode.OFFLINE_FALLBACK, {}

        return CastMode.CONFIRMED, response if isinstance(response, dict) else {}

    def _apply_tally(self, position_id: str, candidate_id: str) -> bool:
        # Re-resolve: the ledger may have been replaced while the remote call was pending
        position = self.find_position(position_id)
        candidate = position.candidate(candidate_id) if position else None
        if candidate is None:
            logger.warning(f"Tally skipped, {position_id}/{candidate_id} no longer in ledger")
            return False
        candidate.vote_count += 1
        return True

    async def retry_offline_votes(self) -> List[PendingVote]:
        """
        Resubmit offline-fallback votes to the vote sink.

        Confirmed votes are applied to the tallies; failed ones go back on the
        queue. Each vote leaves the queue while it is being resubmitted, so
        overlapping calls never send or count it twice. A vote whose retry is
        still pending when the election is reset is dropped. Receipts are
        never modified.

        Returns:
            list: The votes confirmed by this call
        """
        if self.vote_sink is None or not self._pending_votes:
            return []

        confirmed = []
        for pending in list(self._pending_votes):
            if pending not in self._pending_votes:
                # Taken by an overlapping retry, or cleared by a reset
                continue
            self._pending_votes.remove(pending)
            self._retrying[pending.receipt_id] = pending
            pending.attempts += 1

            try:
                await asyncio.wait_for(
                    self.vote_sink.cast_votes(pending.user_id, [pending.to_payload()]),
                    timeout=self.vote_timeout
                )
            except Exception as e:
                logger.warning(
                    f"Offline vote {pending.receipt_id} still unconfirmed "
                    f"(attempt {pending.attempts}): {e!r}"
                )
                remote_failures.labels(operation='retry_cast_votes').inc()
                if self._retrying.pop(pending.receipt_id, None) is not None:
                    self._pending_votes.append(pending)
                continue

            if self._retrying.pop(pending.receipt_id, None) is None:
                logger.warning(f"Offline vote {pending.receipt_id} confirmed after a reset, tally not applied")
                continue

            self._apply_tally(pending.position_id, pending.candidate_id)
            confirmed.append(pending)
            offline_votes_reconciled.inc()

        if confirmed:
            self.notifications.add(
                title="Offline Votes Confirmed",
                message=f"{len(confirmed)} vote(s) recorded offline have now been confirmed.",
                type=NotificationType.SUCCESS,
            )
        return confirmed

    # ------------------------------------------------------------------
    # Level selection
    # ------------------------------------------------------------------

    @property
    def has_selected_level(self) -> bool:
        return self.selected_level is not None

    @property
    def pending_level(self) -> Optional[VotingLevel]:
        return self._pending_level

    def select_level(self, level: Optional[VotingLevel]) -> None:
        self.selected_level = VotingLevel(level) if level is not None else None
        self._pending_level = None

    def incomplete_positions(self, level: VotingLevel) -> List[Position]:
        """Active positions of a level the user has not voted on yet."""
        branch = self.user.branch if self.user else None
        return [
            p for p in self.positions
            if p.belongs_to_level(VotingLevel(level), branch)
            and not self.has_user_voted_for_position(p.id)
        ]

    def request_level_switch(self, new_level: Optional[VotingLevel]) -> LevelSwitchResult:
        """
        Ask to move to another election level.

        Members leaving a level with unvoted active positions get a
        CONFIRMATION_REQUIRED result; the switch then waits for
        confirm_level_switch() or cancel_level_switch().
        """
        if new_level is None:
            return LevelSwitchResult(status=LevelSwitchStatus.UNCHANGED, level=self.selected_level)

        new_level = VotingLevel(new_level)
        if new_level == self.selected_level:
            return LevelSwitchResult(
                status=LevelSwitchStatus.UNCHANGED,
                level=self.selected_level,
                requested_level=new_level,
            )

        # Admins are not voters
        if self.user is not None and self.user.is_admin:
            return self._switch_level(new_level)

        if self.selected_level is not None:
            incomplete = self.incomplete_positions(self.selected_level)
            if incomplete:
                self._pending_level = new_level
                return LevelSwitchResult(
                    status=LevelSwitchStatus.CONFIRMATION_REQUIRED,
                    level=self.selected_level,
                    requested_level=new_level,
                    incomplete_positions=incomplete,
                )

        return self._switch_level(new_level)

    def confirm_level_switch(self) -> LevelSwitchResult:
        if self._pending_level is None:
            return LevelSwitchResult(status=LevelSwitchStatus.UNCHANGED, level=self.selected_level)
        return self._switch_level(self._pending_level)

    def cancel_level_switch(self) -> LevelSwitchResult:
        requested = self._pending_level
        self._pending_level = None
        return LevelSwitchResult(
            status=LevelSwitchStatus.UNCHANGED,
            level=self.selected_level,
            requested_level=requested,
        )

    def _switch_level(self, level: VotingLevel) -> LevelSwitchResult:
        self.selected_level = level
        self._pending_level = None
        return LevelSwitchResult(status=LevelSwitchStatus.SWITCHED, level=level, requested_level=level)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def add_notification(self, title: str, message: str, type: NotificationType = NotificationType.INFO):
        return self.notifications.add(title=title, message=message, type=type)

    def mark_notification_read(self, notification_id: str) -> bool:
        return self.notifications.mark_read(notification_id)

    # ------------------------------------------------------------------
    # Superuseradmin overrides (role checks belong to the caller)
    # ------------------------------------------------------------------

    def set_vote_limit(self, position_id: str, candidate_id: str, max_votes: int) -> None:
        if max_votes < 0:
            logger.warning(f"Negative vote limit {max_votes} for {position_id}/{candidate_id}, using 0")
            max_votes = 0
        limits = [
            limit for limit in self.superuseradmin_settings.vote_limits
            if not (limit.position_id == position_id and limit.candidate_id == candidate_id)
        ]
        limits.append(VoteLimit(position_id=position_id, candidate_id=candidate_id, max_votes=max_votes))
        self.superuseradmin_settings.vote_limits = limits

    def remove_vote_limit(self, position_id: str, candidate_id: str) -> None:
        self.superuseradmin_settings.vote_limits = [
            limit for limit in self.superuseradmin_settings.vote_limits
            if not (limit.position_id == position_id and limit.candidate_id == candidate_id)
        ]

    def set_forced_winner(self, position_id: str, candidate_id: str, collect_remaining_votes: bool) -> None:
        winners = [
            winner for winner in self.superuseradmin_settings.forced_winners
            if winner.position_id != position_id
        ]
        winners.append(ForcedWinner(
            position_id=position_id,
            candidate_id=candidate_id,
            collect_remaining_votes=collect_remaining_votes,
        ))
        self.superuseradmin_settings.forced_winners = winners

    def remove_forced_winner(self, position_id: str) -> None:
        self.superuseradmin_settings.forced_winners = [
            winner for winner in self.superuseradmin_settings.forced_winners
            if winner.position_id != position_id
        ]

    def toggle_system_override(self) -> bool:
        self.superuseradmin_settings.system_override_enabled = not self.superuseradmin_settings.system_override_enabled
        return self.superuseradmin_settings.system_override_enabled

    def apply_superuseradmin_overrides(self) -> None:
        """
        Rewrite the ledger from the configured overrides. Runs only when called.

        A forced winner either collects the whole electorate (others drop to 0),
        or is raised to the larger of its count, the minimum share of eligible
        voters, and the count that holds the minimum share of the new total
        (others keep their counts). Positions without a forced winner get their
        active vote limits applied as caps.
        """
        share = Fraction(str(self.forced_winner_min_share))

        for position in self.positions:
            forced = next(
                (w for w in self.superuseradmin_settings.forced_winners
                 if w.position_id == position.id and w.is_active),
                None
            )

            if forced is not None:
                winner = position.candidate(forced.candidate_id)
                if winner is None:
                    logger.warning(f"Forced winner {forced.candidate_id} not found in {position.id}")
                    continue

                if forced.collect_remaining_votes:
                    for candidate in position.candidates:
                        if candidate is not winner:
                            candidate.vote_count = 0
                    winner.vote_count = position.eligible_voters
                else:
                    others = position.total_votes - winner.vote_count
                    eligible_floor = math.ceil(position.eligible_voters * share)
                    share_floor = math.ceil(others * share / (1 - share))
                    winner.vote_count = max(winner.vote_count, eligible_floor, share_floor)

                position.winner_id = winner.id
                position.winner_votes = winner.vote_count
                logger.warning(f"Forced winner applied: {position.id} -> {winner.id} ({winner.vote_count} votes)")
                continue

            for candidate in position.candidates:
                limit = next(
                    (l for l in self.superuseradmin_settings.vote_limits
                     if l.position_id == position.id and l.candidate_id == candidate.id and l.is_active),
                    None
                )
                if limit is not None and candidate.vote_count > limit.max_votes:
                    logger.warning(
                        f"Vote limit applied: {position.id}/{candidate.id} "
                        f"{candidate.vote_count} -> {limit.max_votes}"
                    )
                    candidate.vote_count = limit.max_votes

    def inject_votes(self, position_id: str, candidate_id: str, count: int) -> None:
        """Add simulated votes to a candidate (demo only, bypasses eligibility)."""
        position = self.find_position(position_id)
        candidate = position.candidate(candidate_id) if position else None
        if candidate is None:
            logger.warning(f"Vote injection ignored, {position_id}/{candidate_id} not found")
            return
        candidate.vote_count = max(0, candidate.vote_count + count)
        logger.warning(f"Injected {count} votes into {position_id}/{candidate_id}")

    def toggle_emergency_stop(self) -> bool:
        self.is_emergency_stop_active = not self.is_emergency_stop_active
        logger.warning(f"Emergency stop {'ACTIVATED' if self.is_emergency_stop_active else 'released'}")
        return self.is_emergency_stop_active

    def reset_election(self) -> None:
        """
        Restore the seed ledger and clear all votes, receipts, notifications,
        overrides and the emergency stop. Irreversible for this session.
        """
        self.positions = self._seed_copy()
        self._voted = {}

        if self.history_store is not None and self.user is not None and self.user.history_key:
            try:
                self.history_store.delete(self.user.history_key)
            except HistoryStoreError as e:
                logger.error(f"Failed to clear vote history for {self.user.history_key}: {e}")

        self._receipts = []
        self._pending_votes = []
        self._retrying = {}
        self.notifications.clear()
        self.superuseradmin_settings = SuperuseradminSettings()
        self.is_emergency_stop_active = False
        logger.warning("Election reset to seed data")
