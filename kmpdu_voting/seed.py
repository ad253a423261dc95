"""
Seed election data used when the ballot source is unreachable or empty.

The same data set is restored by VotingSession.reset_election(). Every call
returns fresh objects so callers can mutate them freely.
"""

from datetime import datetime
from typing import List

from .models import Candidate, Position, PositionStatus, PositionType, Role, User

ELECTION_START = datetime(2024, 12, 1, 8, 0, 0)
ELECTION_END = datetime(2024, 12, 5, 18, 0, 0)


def _candidates(rows) -> List[Candidate]:
    return [
        Candidate(id=cid, name=name, bio=bio, vote_count=votes)
        for cid, name, bio, votes in rows
    ]


def seed_positions() -> List[Position]:
    """Fixed national and Nairobi branch positions of the 2024 election."""
    secretary_general = _candidates([
        ("cand_001", "Dr. Davji Atellah", "Experienced union leader with 15 years of advocacy", 4250),
        ("cand_002", "Dr. Ouma Oluga", "Former branch secretary, champion of doctor welfare", 3180),
        ("cand_003", "Dr. Mercy Korir", "Public health specialist and policy advocate", 1970),
    ])
    chairman = _candidates([
        ("cand_004", "Dr. Simon Kigondu", "Senior consultant with leadership experience", 5120),
        ("cand_005", "Dr. Agnes Muthoni", "Pediatric specialist and hospital administrator", 4280),
    ])
    treasurer = _candidates([
        ("cand_006", "Dr. Peter Magana", "Financial management expert in healthcare", 3890),
        ("cand_007", "Dr. Faith Mueni", "Healthcare economist and budget specialist", 2950),
        ("cand_008", "Dr. John Kamau", "Former hospital CFO with audit experience", 2560),
    ])
    nairobi_chair = _candidates([
        ("cand_009", "Dr. Lucy Mwangi", "KNH consultant and branch activist", 1820),
        ("cand_010", "Dr. Michael Otieno", "Private practice owner and union organizer", 1796),
    ])

    def national(pid, title, candidates):
        return Position(
            id=pid,
            title=title,
            type=PositionType.NATIONAL,
            candidates=candidates,
            eligible_voters=12000,
            status=PositionStatus.ACTIVE,
            start_time=ELECTION_START,
            end_time=ELECTION_END,
        )

    return [
        national("pos_001", "Secretary General", secretary_general),
        national("pos_002", "National Chairman", chairman),
        national("pos_003", "National Treasurer", treasurer),
        Position(
            id="pos_004",
            title="Nairobi Branch Chairman",
            type=PositionType.BRANCH,
            branch="Nairobi Branch",
            candidates=nairobi_chair,
            eligible_voters=4520,
            status=PositionStatus.ACTIVE,
            start_time=ELECTION_START,
            end_time=ELECTION_END,
        ),
    ]


def seed_member() -> User:
    return User(
        id="usr_001",
        member_id="KMPDU-2024-00456",
        name="Dr. Sarah Wanjiku",
        role=Role.MEMBER,
        branch="Nairobi Branch",
    )


def seed_admin() -> User:
    return User(
        id="adm_001",
        member_id="KMPDU-ADM-001",
        name="James Ochieng",
        role=Role.ADMIN,
        branch="Headquarters",
    )
