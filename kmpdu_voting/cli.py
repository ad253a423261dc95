#!/usr/bin/env python3
"""
Inspect and maintain KMPDU election state from the command line.

Usage:
    kmpdu-vote-history show MEMBER_ID
    kmpdu-vote-history clear MEMBER_ID
    kmpdu-vote-history results [--member-id ID] [--api-url URL]

Environment Variables:
    REDIS_HOST / REDIS_PORT / REDIS_DB / REDIS_PASSWORD: Vote history store
    API_BASE_URL / API_TOKEN: Portal API used by 'results'
"""

import argparse
import asyncio
import sys

import redis

from .api_client import PortalApiClient
from .config import configure_logging, settings
from .history_store import HistoryStoreError, RedisHistoryStore
from .models import Role, User
from .results import election_stats, tally_position
from .session import VotingSession


def show_history(store, member_id: str) -> int:
    try:
        history = store.load(member_id)
    except HistoryStoreError as e:
        print(f"✗ Could not read vote history: {e}", file=sys.stderr)
        return 1

    if not history:
        print(f"No vote history for {member_id}")
        return 0

    voted = history.get("votedPositions") or {}
    print(f"Vote history for {member_id} (last updated {history.get('lastUpdated', 'unknown')}):")
    for position_id in sorted(voted):
        print(f"  ✓ {position_id}")
    return 0


def clear_history(store, member_id: str) -> int:
    try:
        store.delete(member_id)
    except HistoryStoreError as e:
        print(f"✗ Could not clear vote history: {e}", file=sys.stderr)
        return 1
    print(f"✓ Vote history cleared for {member_id}")
    return 0


async def print_results(client, member_id: str = None) -> int:
    if member_id:
        user = User(id=member_id, member_id=member_id, role=Role.MEMBER)
    else:
        user = User(id="cli", role=Role.ADMIN)

    session = VotingSession(ballot_source=client)
    await session.initialize(user)

    for position in session.positions:
        tally = tally_position(position)
        scope = position.branch or "National"
        print(f"\n{position.title} [{scope}] - {tally['total_votes']:,} votes, turnout {tally['turnout']:.1f}%")
        for row in tally["results"]:
            marker = "★" if tally["leader"] is row["candidate"] else " "
            print(f"  {marker} {row['candidate'].name:<30} {row['votes']:>8,}  {row['percent']:5.1f}%")

    stats = election_stats(session.positions)
    print(
        f"\nActive positions: {stats['active_positions']}  "
        f"Votes cast: {stats['total_votes_cast']:,}  Turnout: {stats['turnout_percentage']}%"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Inspect KMPDU vote history and results'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    show = subparsers.add_parser('show', help='Show a member\'s persisted vote history')
    show.add_argument('member_id')

    clear = subparsers.add_parser('clear', help='Clear a member\'s persisted vote history')
    clear.add_argument('member_id')

    results = subparsers.add_parser('results', help='Print current results from the portal')
    results.add_argument(
        '--member-id',
        help='Read the ballot of this member instead of all elections'
    )
    results.add_argument(
        '--api-url',
        default=settings.API_BASE_URL,
        help=f'Portal API base URL (default: {settings.API_BASE_URL})'
    )
    return parser


def main(argv=None, store=None, client=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging()

    if args.command == 'results':
        client = client or PortalApiClient(base_url=args.api_url)

        async def run():
            async with client:
                return await print_results(client, args.member_id)

        return asyncio.run(run())

    if store is None:
        store = RedisHistoryStore(client=redis.Redis.from_url(settings.redis_url, decode_responses=True))

    try:
        if args.command == 'show':
            return show_history(store, args.member_id)
        return clear_history(store, args.member_id)
    except KeyboardInterrupt:
        print("\n✗ Interrupted by user", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
