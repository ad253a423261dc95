"""Result views over a ledger of positions (dashboard tallies and turnout)."""

from typing import Any, Dict, Iterable

from .models import Position, PositionStatus, PositionType


def tally_position(position: Position) -> Dict[str, Any]:
    """
    Tally one position for display.

    Rows are sorted by votes, then candidate name. leader is None on a tie or
    when nobody has votes; margin is the percentage gap between the top two.
    """
    total_votes = position.total_votes
    max_votes = max((c.vote_count for c in position.candidates), default=0)

    leaders = []
    if max_votes > 0:
        leaders = [c for c in position.candidates if c.vote_count == max_votes]

    results = []
    for candidate in position.candidates:
        results.append({
            "candidate": candidate,
            "votes": candidate.vote_count,
            "percent": position.percentage(candidate.id),
        })

    results.sort(
        key=lambda row: (-row["votes"], row["candidate"].name.lower(), row["candidate"].id)
    )

    margin = 0.0
    if len(results) >= 2:
        margin = results[0]["percent"] - results[1]["percent"]
    elif len(results) == 1:
        margin = results[0]["percent"]

    turnout = (total_votes / position.eligible_voters * 100) if position.eligible_voters > 0 else 0

    return {
        "position_id": position.id,
        "total_votes": total_votes,
        "eligible_voters": position.eligible_voters,
        "turnout": turnout,
        "results": results,
        "leader": leaders[0] if len(leaders) == 1 else None,
        "leaders": leaders,
        "is_tie": len(leaders) > 1,
        "margin": margin,
        "winner": position.candidate(position.winner_id) if position.winner_id else None,
    }


def election_stats(positions: Iterable[Position]) -> Dict[str, Any]:
    """
    Dashboard figures across a ledger.

    eligible_voters sums each position's electorate, so turnout is votes cast
    over ballot slots rather than over distinct members.
    """
    positions = list(positions)
    active = [p for p in positions if p.status == PositionStatus.ACTIVE]
    votes_cast = sum(p.total_votes for p in positions)
    eligible = sum(p.eligible_voters for p in positions)

    return {
        "total_positions": len(positions),
        "active_positions": len(active),
        "active_branches": len({p.branch for p in active if p.type == PositionType.BRANCH}),
        "total_votes_cast": votes_cast,
        "eligible_voters": eligible,
        "turnout_percentage": round(votes_cast / eligible * 100, 1) if eligible > 0 else 0.0,
    }
