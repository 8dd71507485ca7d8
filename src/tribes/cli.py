"""Command-line interface for running Tribes games.

Examples:
    tribes new demo --tribes Ravagers Dustwalkers --ai Dustwalkers=Aggressive
    tribes resolve demo --actions orders.json
    tribes simulate demo --turns 10
    tribes show demo --tribe tribe-1

The orders file maps tribe ids to lists of action objects, e.g.
{"tribe-1": [{"action_type": "Rest", "start_location": "054.050"}]}.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from tribes.models.state import AIType, GameState
from tribes.services import GameNotFoundError, TurnService, new_game
from tribes.storage import get_game_repository

logger = logging.getLogger(__name__)


def _parse_ai(pairs: list[str]) -> dict[str, AIType]:
    ai_types = {}
    for pair in pairs:
        name, _, kind = pair.partition("=")
        ai_types[name] = AIType(kind or AIType.WANDERER.value)
    return ai_types


def _print_state(state: GameState, tribe_id: str | None = None) -> None:
    print(f"Turn {state.turn}, {len(state.tribes)} tribes, {len(state.journeys)} journeys in flight")
    for tribe in state.tribes:
        if tribe_id and tribe.id != tribe_id:
            continue
        res = tribe.global_resources
        kind = f"AI {tribe.ai_type.value}" if tribe.is_ai and tribe.ai_type else "player"
        print(
            f"  {tribe.id} {tribe.name} ({kind}): troops={tribe.total_troops()} "
            f"weapons={tribe.total_weapons()} food={res.food} scrap={res.scrap} morale={res.morale} "
            f"garrisons={sorted(tribe.garrisons)} techs={len(tribe.completed_techs)}"
        )
        if tribe_id:
            for result in tribe.last_turn_results:
                mark = "+" if result.success else "-"
                print(f"    {mark} [{result.action_type}] {result.message}")


def cmd_new(args: argparse.Namespace) -> int:
    repo = get_game_repository()
    if repo.load_game(args.game_id) is not None and not args.force:
        print(f"Error: game {args.game_id} already exists (use --force to overwrite)", file=sys.stderr)
        return 1
    state = new_game(args.tribes, radius=args.radius, seed=args.seed, ai_types=_parse_ai(args.ai))
    repo.save_game(args.game_id, state)
    print(f"Created game {args.game_id}")
    _print_state(state)
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    state = get_game_repository().load_game(args.game_id)
    if state is None:
        print(f"Error: game not found: {args.game_id}", file=sys.stderr)
        return 1
    if args.json:
        print(json.dumps(state.model_dump(mode="json"), indent=2))
    else:
        _print_state(state, args.tribe)
    return 0


def cmd_resolve(args: argparse.Namespace) -> int:
    orders = {}
    if args.actions:
        orders = json.loads(Path(args.actions).read_text(encoding="utf-8"))
    with TurnService(get_game_repository(), timeout=args.timeout) as service:
        try:
            result = service.advance(args.game_id, orders)
        except GameNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    if not result.success:
        print(f"Turn failed during {result.phase.value}: {result.error}", file=sys.stderr)
        return 2
    _print_state(result.state)
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    repo = get_game_repository()
    state = repo.load_game(args.game_id)
    if state is None:
        print(f"Error: game not found: {args.game_id}", file=sys.stderr)
        return 1
    players = [t.id for t in state.tribes if not t.is_ai]

    with TurnService(repo, timeout=args.timeout) as service:
        for _ in range(args.turns):
            # Human tribes pass so that their upkeep still runs
            result = service.advance(args.game_id, {tribe_id: [] for tribe_id in players})
            if not result.success:
                print(f"Turn failed during {result.phase.value}: {result.error}", file=sys.stderr)
                return 2
            state = result.state
    _print_state(state)
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    for game in get_game_repository().list_games():
        print(f"{game['id']}: turn {game['turn']}, {game['tribes']} tribes, updated {game['updated_at']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tribes",
        description="Run Tribes games from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    new = sub.add_parser("new", help="Create a new game")
    new.add_argument("game_id", help="Identifier for the game")
    new.add_argument("--tribes", nargs="+", required=True, help="Tribe names (2-6)")
    new.add_argument(
        "--ai",
        nargs="*",
        default=[],
        metavar="NAME=TYPE",
        help=f"Make a tribe AI-controlled; TYPE is one of {[t.value for t in AIType]}",
    )
    new.add_argument("--radius", type=int, default=6, help="Map radius in hexes (default: 6)")
    new.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    new.add_argument("--force", action="store_true", help="Overwrite an existing game")
    new.set_defaults(func=cmd_new)

    show = sub.add_parser("show", help="Print a game's state")
    show.add_argument("game_id")
    show.add_argument("--tribe", default=None, help="Only this tribe, with its last turn results")
    show.add_argument("--json", action="store_true", help="Dump the full snapshot as JSON")
    show.set_defaults(func=cmd_show)

    resolve = sub.add_parser("resolve", help="Resolve one turn")
    resolve.add_argument("game_id")
    resolve.add_argument("--actions", default=None, help="JSON file of orders per tribe id")
    resolve.add_argument("--timeout", type=float, default=None, help="Seconds before the turn is abandoned")
    resolve.set_defaults(func=cmd_resolve)

    simulate = sub.add_parser("simulate", help="Resolve several turns with AI orders only")
    simulate.add_argument("game_id")
    simulate.add_argument("--turns", type=int, default=10, help="Number of turns (default: 10)")
    simulate.add_argument("--timeout", type=float, default=None, help="Seconds before a turn is abandoned")
    simulate.set_defaults(func=cmd_simulate)

    games = sub.add_parser("list", help="List stored games")
    games.set_defaults(func=cmd_list)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
