"""Tests for superuseradmin overrides, vote injection and election reset."""

from datetime import datetime

import pytest

from kmpdu_voting import (
    Candidate,
    Position,
    PositionStatus,
    PositionType,
    SuperuseradminSettings,
    VoteLimit,
)


def small_position():
    return Position(
        id="pos_small",
        title="Branch Secretary",
        type=PositionType.BRANCH,
        branch="Nairobi Branch",
        candidates=[
            Candidate(id="c_high", name="Dr. High", vote_count=10),
            Candidate(id="c_low", name="Dr. Low", vote_count=5),
        ],
        eligible_voters=1000,
        status=PositionStatus.ACTIVE,
        start_time=datetime(2024, 12, 1, 8, 0),
        end_time=datetime(2024, 12, 5, 18, 0),
    )


@pytest.mark.asyncio
class TestForcedWinner:
    """set_forced_winner + apply_superuseradmin_overrides."""

    async def test_collect_remaining_votes(self, make_session, admin):
        """Test: Forced winner collecting remaining votes takes the whole electorate."""
        session = await make_session(admin)
        session.set_forced_winner("pos_001", "cand_001", collect_remaining_votes=True)

        session.apply_superuseradmin_overrides()

        position = session.find_position("pos_001")
        assert position.candidate("cand_001").vote_count == 12000
        assert position.candidate("cand_002").vote_count == 0
        assert position.candidate("cand_003").vote_count == 0
        assert position.total_votes == 12000
        assert position.percentage("cand_001") == 100.0
        assert position.winner_id == "cand_001"
        assert position.winner_votes == 12000

    async def test_minimum_share_keeps_other_counts(self, make_session, admin):
        """Test: Without collect, the forced winner reaches 60% and others keep their votes.

        pos_001 has 9400 votes; cand_002 holds 3180 so the others hold 6220.
        Holding 60% of the new total needs 6220 * 0.6 / 0.4 = 9330 votes,
        which beats the eligible floor of 0.6 * 12000 = 7200.
        """
        session = await make_session(admin)
        session.set_forced_winner("pos_001", "cand_002", collect_remaining_votes=False)

        session.apply_superuseradmin_overrides()

        position = session.find_position("pos_001")
        assert position.candidate("cand_002").vote_count == 9330
        assert position.candidate("cand_001").vote_count == 4250
        assert position.candidate("cand_003").vote_count == 1970
        assert position.total_votes == 15550
        assert position.percentage("cand_002") == pytest.approx(60.0)
        assert position.winner_id == "cand_002"

    async def test_eligible_floor_can_dominate(self, make_session, admin):
        session = await make_session(admin, seed=[small_position()])
        session.set_forced_winner("pos_small", "c_low", collect_remaining_votes=False)

        session.apply_superuseradmin_overrides()

        position = session.find_position("pos_small")
        assert position.candidate("c_low").vote_count == 600
        assert position.candidate("c_high").vote_count == 10
        assert position.percentage("c_low") >= 60.0

    async def test_custom_minimum_share(self, make_session, admin):
        session = await make_session(admin, seed=[small_position()], forced_winner_min_share=0.5)
        session.set_forced_winner("pos_small", "c_low", collect_remaining_votes=False)

        session.apply_superuseradmin_overrides()

        assert session.find_position("pos_small").candidate("c_low").vote_count == 500

    async def test_winner_already_above_share_is_untouched(self, make_session, admin):
        session = await make_session(admin)
        session.inject_votes("pos_002", "cand_004", 20000)
        session.set_forced_winner("pos_002", "cand_004", collect_remaining_votes=False)

        session.apply_superuseradmin_overrides()

        assert session.find_position("pos_002").candidate("cand_004").vote_count == 25120

    async def test_forced_winner_replaced_per_position(self, make_session, admin):
        session = await make_session(admin)
        session.set_forced_winner("pos_001", "cand_001", collect_remaining_votes=True)
        session.set_forced_winner("pos_001", "cand_003", collect_remaining_votes=True)

        winners = session.superuseradmin_settings.forced_winners
        assert len(winners) == 1
        assert winners[0].candidate_id == "cand_003"

    async def test_unknown_forced_candidate_leaves_position(self, make_session, admin, seed_dump, dump_positions):
        session = await make_session(admin)
        session.set_forced_winner("pos_001", "cand_999", collect_remaining_votes=True)

        session.apply_superuseradmin_overrides()

        assert dump_positions(session) == seed_dump

    async def test_removed_forced_winner_is_not_applied(self, make_session, admin, seed_dump, dump_positions):
        session = await make_session(admin)
        session.set_forced_winner("pos_001", "cand_001", collect_remaining_votes=True)
        session.remove_forced_winner("pos_001")

        session.apply_superuseradmin_overrides()

        assert session.superuseradmin_settings.forced_winners == []
        assert dump_positions(session) == seed_dump

    async def test_overrides_are_not_applied_until_requested(self, make_session, admin, seed_dump, dump_positions):
        session = await make_session(admin)
        session.set_forced_winner("pos_001", "cand_001", collect_remaining_votes=True)
        session.set_vote_limit("pos_002", "cand_004", 10)
        session.toggle_system_override()

        assert dump_positions(session) == seed_dump


@pytest.mark.asyncio
class TestVoteLimits:
    """set_vote_limit / remove_vote_limit."""

    async def test_limit_caps_count_and_total(self, make_session, admin):
        session = await make_session(admin)
        session.set_vote_limit("pos_002", "cand_004", 5000)

        session.apply_superuseradmin_overrides()

        position = session.find_position("pos_002")
        assert position.candidate("cand_004").vote_count == 5000
        assert position.candidate("cand_005").vote_count == 4280
        assert position.total_votes == 9280
        assert sum(position.percentages().values()) == pytest.approx(100.0)

    async def test_limit_above_count_changes_nothing(self, make_session, admin):
        session = await make_session(admin)
        session.set_vote_limit("pos_002", "cand_004", 6000)

        session.apply_superuseradmin_overrides()

        assert session.find_position("pos_002").candidate("cand_004").vote_count == 5120

    async def test_limit_is_upserted(self, make_session, admin):
        session = await make_session(admin)
        session.set_vote_limit("pos_002", "cand_004", 5000)
        session.set_vote_limit("pos_002", "cand_004", 4000)

        limits = session.superuseradmin_settings.vote_limits
        assert len(limits) == 1
        assert limits[0].max_votes == 4000

    async def test_negative_limit_is_clamped_to_zero(self, make_session, admin):
        session = await make_session(admin)

        session.set_vote_limit("pos_002", "cand_004", -1)
        session.apply_superuseradmin_overrides()

        assert session.superuseradmin_settings.vote_limits[0].max_votes == 0
        position = session.find_position("pos_002")
        assert position.candidate("cand_004").vote_count == 0
        assert position.total_votes == 4280

    async def test_removed_limit_is_not_applied(self, make_session, admin):
        session = await make_session(admin)
        session.set_vote_limit("pos_002", "cand_004", 5000)
        session.remove_vote_limit("pos_002", "cand_004")

        session.apply_superuseradmin_overrides()

        assert session.superuseradmin_settings.vote_limits == []
        assert session.find_position("pos_002").candidate("cand_004").vote_count == 5120

    async def test_inactive_limit_is_ignored(self, make_session, admin):
        session = await make_session(admin)
        session.superuseradmin_settings.vote_limits = [
            VoteLimit(position_id="pos_002", candidate_id="cand_004", max_votes=10, is_active=False)
        ]

        session.apply_superuseradmin_overrides()

        assert session.find_position("pos_002").candidate("cand_004").vote_count == 5120

    async def test_forced_winner_takes_precedence(self, make_session, admin):
        session = await make_session(admin)
        session.set_vote_limit("pos_001", "cand_001", 100)
        session.set_forced_winner("pos_001", "cand_001", collect_remaining_votes=True)

        session.apply_superuseradmin_overrides()

        assert session.find_position("pos_001").candidate("cand_001").vote_count == 12000


@pytest.mark.asyncio
class TestAdminControls:
    """inject_votes, toggles and reset_election."""

    async def test_inject_votes_adds_to_candidate_and_total(self, make_session, admin):
        session = await make_session(admin)

        session.inject_votes("pos_004", "cand_010", 50)

        position = session.find_position("pos_004")
        assert position.candidate("cand_010").vote_count == 1846
        assert position.total_votes == 3666

    async def test_inject_votes_never_goes_negative(self, make_session, admin):
        session = await make_session(admin)

        session.inject_votes("pos_004", "cand_010", -5000)

        assert session.find_position("pos_004").candidate("cand_010").vote_count == 0

    @pytest.mark.parametrize("position_id,candidate_id", [
        ("pos_999", "cand_001"),
        ("pos_001", "cand_999"),
        ("pos_001", "cand_009"),
    ])
    async def test_inject_votes_unknown_target_is_noop(
        self, make_session, admin, seed_dump, dump_positions, position_id, candidate_id
    ):
        session = await make_session(admin)

        session.inject_votes(position_id, candidate_id, 100)

        assert dump_positions(session) == seed_dump

    async def test_toggle_system_override(self, make_session, admin):
        session = await make_session(admin)

        assert session.toggle_system_override() is True
        assert session.superuseradmin_settings.system_override_enabled is True
        assert session.toggle_system_override() is False

    async def test_toggle_emergency_stop(self, make_session, admin):
        session = await make_session(admin)

        assert session.toggle_emergency_stop() is True
        assert session.is_emergency_stop_active is True
        assert session.toggle_emergency_stop() is False

    async def test_reset_election(
        self, make_session, member, history_store, vote_sink, seed_dump, dump_positions
    ):
        """Test: Reset restores the seed ledger and clears every user-visible trace.

        Flow:
        1. Confirmed vote, offline vote, injected votes and overrides
        2. Emergency stop activated
        3. reset_election()
        4. Ledger equals the seed; votes, receipts, notifications, queue,
           history, overrides and the stop are all cleared
        """
        session = await make_session(member)
        await session.cast_vote("pos_001", "cand_001")
        vote_sink.error = ConnectionError("portal down")
        await session.cast_vote("pos_004", "cand_009")
        session.inject_votes("pos_002", "cand_005", 900)
        session.set_vote_limit("pos_003", "cand_006", 10)
        session.set_forced_winner("pos_002", "cand_005", collect_remaining_votes=True)
        session.toggle_system_override()
        session.apply_superuseradmin_overrides()
        session.toggle_emergency_stop()
        assert history_store.documents

        session.reset_election()

        assert dump_positions(session) == seed_dump
        assert session.user_voted_positions == {}
        assert session.vote_receipts == ()
        assert session.pending_offline_votes == []
        assert session.notifications.notifications == []
        assert history_store.documents == {}
        assert session.superuseradmin_settings == SuperuseradminSettings()
        assert session.is_emergency_stop_active is False
        # Still signed in, and every position is open again
        assert session.user is member
        assert session.can_user_vote_for_position("pos_001") is True

    async def test_reset_uses_fresh_seed_copies(self, make_session, admin, seed_dump, dump_positions):
        session = await make_session(admin)
        session.reset_election()
        session.inject_votes("pos_001", "cand_001", 10)

        session.reset_election()

        assert dump_positions(session) == seed_dump
