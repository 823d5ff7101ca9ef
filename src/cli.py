"""
Headless command line

Usage:
    # Play a full local match, every seat automated
    python -m src.cli simulate --seed 7 --players 3

    # Ask a server which rooms are open
    python -m src.cli rooms --url ws://localhost:8080/ws
"""

import argparse
import asyncio
import logging
import random
import sys
from dataclasses import replace

from src.core.config import TransportConfig
from src.core.logging_config import setup_logging
from src.core.shared_types import Phase
from src.network.transport import Identity, TransportClient
from src.services.match_service import MatchService
from src.tiles.session import GameSession

logger = logging.getLogger(__name__)

PLAYER_NAMES = ["Red", "Blue", "Green", "Yellow", "Black"]


def play_local_turn(session: GameSession, rng: random.Random) -> GameSession:
    """Same choices as an automated opponent, but through the local player's actions."""
    placements = sorted(session.possible_placements(), key=lambda p: (p.y, p.x))
    if not placements:
        return session.discard_tile()

    position = rng.choice(placements)
    rotation = rng.choice(session.valid_rotations(position.x, position.y))
    session = session.confirm_placement(position.x, position.y, rotation)

    options = session.available_features()
    if options and rng.random() > 0.5:
        return session.attach_meeple(rng.choice(options))
    return session.skip_meeple()


def cmd_simulate(args: argparse.Namespace) -> int:
    rng = random.Random(args.seed)
    session = GameSession.new_game(PLAYER_NAMES[: args.players], rng=rng)

    turns = 0
    while not session.is_over:
        if session.phase == Phase.PLAYER_TURN:
            session = play_local_turn(session, rng)
        else:
            session = session.play_opponent_turn(rng)
        turns += 1

    print(f"Game over after {turns} turns, {session.board.placed_count} tiles on the board")
    for player in session.players:
        print(f"  {player.name:<8} score {player.score:>3}  meeples left {player.meeples_remaining}")
    return 0


async def _list_rooms(config: TransportConfig, wait: float) -> int:
    transport = TransportClient(config)
    service = MatchService(transport, Identity(player_id="cli", name="cli"))
    await service.start()
    try:
        if not transport.is_connected:
            logger.error("Could not connect to %s", config.url)
            return 1
        await transport.list_rooms()
        await asyncio.sleep(wait)
    finally:
        await service.stop()

    if not service.rooms:
        print("No open rooms")
    for room in service.rooms:
        print(f"  {room.id:<12} {room.name:<20} {len(room.players)}/{room.max_players}  {room.status or ''}")
    return 0


def cmd_rooms(args: argparse.Namespace) -> int:
    config = TransportConfig.from_env()
    if args.url:
        config = replace(config, url=args.url)
    return asyncio.run(_list_rooms(config, args.wait))


def main() -> int:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    parser = argparse.ArgumentParser(description="Tile-laying game client core")
    subparsers = parser.add_subparsers(dest="command", required=True)

    simulate = subparsers.add_parser("simulate", parents=[common], help="Play a local match with automated players")
    simulate.add_argument("--seed", type=int, default=None)
    simulate.add_argument("--players", type=int, default=2, choices=range(2, 6))
    simulate.set_defaults(func=cmd_simulate)

    rooms = subparsers.add_parser("rooms", parents=[common], help="List the rooms open on a server")
    rooms.add_argument("--url", default=None, help="Overrides CARCASSONNE_WS_URL")
    rooms.add_argument("--wait", type=float, default=2.0, help="Seconds to wait for the answer")
    rooms.set_defaults(func=cmd_rooms)

    args = parser.parse_args()
    setup_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
