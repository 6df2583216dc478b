"""Console commands for Grid Cup.

Each command maps to one :class:`~gridcup.service.TournamentService`
operation and prints its outcome.
"""

# Grid Cup
# Copyright (C) 2025  Grid Cup developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from gridcup.constants import DEFAULT_MAX_RACES, DEFAULT_STORE_DIR, PHASE_NAMES
from gridcup.exceptions import GridCupException
from gridcup.models.tournament import Tournament
from gridcup.service import TournamentService
from gridcup.simulation import RandomTournamentGenerator, SimulationConfig
from gridcup.storage import JsonTournamentStore
from gridcup.type_hints import StagedRow
from gridcup.utils import set_verbose, setup_logger
from gridcup.utils.tier_codec import map_display_name

logger = setup_logger(__name__)


# ANSI color codes for terminal output
class Colors:
    HEADER = "\033[95m"
    OKBLUE = "\033[94m"
    OKCYAN = "\033[96m"
    OKGREEN = "\033[92m"
    WARNING = "\033[93m"
    FAIL = "\033[91m"
    ENDC = "\033[0m"
    BOLD = "\033[1m"


# Command definitions with their options, used by help and completion
COMMANDS = {
    "create": {
        "description": "Create a tournament",
        "options": {
            "--name": "Tournament name",
            "--date": "Event date (any common format)",
            "--stations": "Stations per series",
            "--players": "Maximum number of players",
            "--races": f"Races, finale included (default: {DEFAULT_MAX_RACES})",
            "--tier-code": "Tier-list code for the map draw",
            "--tier-file": "File holding a tier-list code",
        },
    },
    "join": {
        "description": "Register a participant",
        "options": {
            "--name": "Display name",
            "--seed": "Initial seeding",
            "--chat-id": "Registration chat id",
        },
    },
    "leave": {"description": "Withdraw a participant", "options": {}},
    "seed": {"description": "Set or clear a participant's seeding", "options": {}},
    "close": {"description": "Close registration", "options": {}},
    "review": {
        "description": "Approve the grouping and promotion policy",
        "options": {
            "--increment": "Bonus points per series above the bottom one",
            "--threshold": "Racers promoted/relegated per series",
            "--finale": "Finale multipliers, comma separated (e.g. 3,2,1)",
            "--group": "Nicknames of one series, comma separated (repeatable)",
        },
    },
    "draw": {"description": "Draw the maps offered for the race", "options": {}},
    "select": {"description": "Select one of the offered maps", "options": {}},
    "stage": {
        "description": "Stage a series result (nickname:position[:score] ...)",
        "options": {},
    },
    "commit": {"description": "Commit the race in progress", "options": {}},
    "rewind": {"description": "Undo the last committed race", "options": {}},
    "standings": {"description": "Show the standings", "options": {}},
    "show": {"description": "Show the state of a tournament", "options": {}},
    "list": {"description": "List stored tournaments", "options": {}},
    "simulate": {
        "description": "Play a tournament with random results",
        "options": {
            "--players": "Number of players (default: 16)",
            "--stations": "Stations per series (default: 4)",
            "--races": f"Number of races (default: {DEFAULT_MAX_RACES})",
            "--seed": "Random seed for reproducibility",
            "--save": "Store the simulated tournament under this code",
        },
    },
}


# ========== Argument Parsing ==========


def parse_stage_entry(value: str) -> StagedRow:
    """Parse ``nickname:position[:score]``; a score marks a manual override.

    Raises:
        argparse.ArgumentTypeError: If the entry is malformed
    """
    parts = value.rsplit(":", 2)
    if len(parts) == 3 and not parts[1].strip().isdigit():
        # Nickname containing ':' without a score
        parts = [":".join(parts[:2]), parts[2]]
    if len(parts) < 2:
        raise argparse.ArgumentTypeError(
            f"Invalid entry '{value}'. Use NICKNAME:POSITION[:SCORE]"
        )
    try:
        position = int(parts[1])
        score = int(parts[2]) if len(parts) == 3 else None
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid entry '{value}'. Position and score must be numbers"
        )
    if score is None:
        return (parts[0], position)
    return (parts[0], position, True, score)


def parse_int_list(value: str) -> List[int]:
    """Parse a comma separated list of integers."""
    try:
        return [int(v) for v in value.split(",") if v.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Expected numbers separated by commas: {value}"
        )


def parse_name_list(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def create_parser() -> argparse.ArgumentParser:
    """Create the ``gridcup`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="gridcup",
        description="Run multi-race Grid Cup tournaments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode
  gridcup

  # Create a tournament for 16 players on 4 stations
  gridcup create CUP1 --name "Spring Cup" --date 2025-03-14 --stations 4 --players 16

  # Stage series 1 (bob gets a manual score of 7)
  gridcup stage CUP1 1 alice:1 bob:2:7 carol:3 dave:4

  # Play a random tournament
  gridcup simulate --players 12 --stations 4 --seed 42
        """,
    )
    parser.add_argument(
        "--interactive", "-i", action="store_true", help="Start in interactive mode"
    )
    parser.add_argument(
        "--store",
        default=DEFAULT_STORE_DIR,
        help=f"Directory holding tournament files (default: {DEFAULT_STORE_DIR})",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    create_cmd = subparsers.add_parser("create", help=COMMANDS["create"]["description"])
    create_cmd.add_argument("code")
    create_cmd.add_argument("--name", required=True)
    create_cmd.add_argument("--date", required=True)
    create_cmd.add_argument("--stations", type=int, required=True)
    create_cmd.add_argument("--players", type=int, required=True)
    create_cmd.add_argument("--races", type=int, default=DEFAULT_MAX_RACES)
    tiers = create_cmd.add_mutually_exclusive_group()
    tiers.add_argument("--tier-code")
    tiers.add_argument("--tier-file")
    create_cmd.set_defaults(func=run_create_command)

    join_parser = subparsers.add_parser("join", help=COMMANDS["join"]["description"])
    join_parser.add_argument("code")
    join_parser.add_argument("nickname")
    join_parser.add_argument("--name", default="")
    join_parser.add_argument("--seed", type=int)
    join_parser.add_argument("--chat-id", type=int)
    join_parser.set_defaults(func=run_join_command)

    leave_parser = subparsers.add_parser("leave", help=COMMANDS["leave"]["description"])
    leave_parser.add_argument("code")
    leave_parser.add_argument("nickname")
    leave_parser.set_defaults(func=run_leave_command)

    seed_parser = subparsers.add_parser("seed", help=COMMANDS["seed"]["description"])
    seed_parser.add_argument("code")
    seed_parser.add_argument("nickname")
    seed_parser.add_argument("seed", type=int, nargs="?")
    seed_parser.set_defaults(func=run_seed_command)

    close_parser = subparsers.add_parser("close", help=COMMANDS["close"]["description"])
    close_parser.add_argument("code")
    close_parser.set_defaults(func=run_close_command)

    review_parser = subparsers.add_parser(
        "review", help=COMMANDS["review"]["description"]
    )
    review_parser.add_argument("code")
    review_parser.add_argument("--increment", type=int, default=1)
    review_parser.add_argument("--threshold", type=int, default=1)
    review_parser.add_argument("--finale", type=parse_int_list)
    review_parser.add_argument(
        "--group", type=parse_name_list, action="append", dest="groups"
    )
    review_parser.set_defaults(func=run_review_command)

    draw_parser = subparsers.add_parser("draw", help=COMMANDS["draw"]["description"])
    draw_parser.add_argument("code")
    draw_parser.set_defaults(func=run_draw_command)

    select_parser = subparsers.add_parser(
        "select", help=COMMANDS["select"]["description"]
    )
    select_parser.add_argument("code")
    select_parser.add_argument(
        "map", nargs="?", help="Map id or its number in the offer; omit to clear"
    )
    select_parser.set_defaults(func=run_select_command)

    stage_parser = subparsers.add_parser("stage", help=COMMANDS["stage"]["description"])
    stage_parser.add_argument("code")
    stage_parser.add_argument("series", type=int)
    stage_parser.add_argument("entries", nargs="+", type=parse_stage_entry)
    stage_parser.set_defaults(func=run_stage_command)

    for name, func in (
        ("commit", run_commit_command),
        ("rewind", run_rewind_command),
        ("standings", run_standings_command),
        ("show", run_show_command),
    ):
        sub = subparsers.add_parser(name, help=COMMANDS[name]["description"])
        sub.add_argument("code")
        sub.set_defaults(func=func)

    list_parser = subparsers.add_parser("list", help=COMMANDS["list"]["description"])
    list_parser.set_defaults(func=run_list_command)

    sim_parser = subparsers.add_parser(
        "simulate", help=COMMANDS["simulate"]["description"]
    )
    sim_parser.add_argument("--players", type=int, default=16)
    sim_parser.add_argument("--stations", type=int, default=4)
    sim_parser.add_argument("--races", type=int, default=DEFAULT_MAX_RACES)
    sim_parser.add_argument("--seed", type=int)
    sim_parser.add_argument("--save")
    sim_parser.set_defaults(func=run_simulate_command)

    return parser


# ========== Output ==========


def print_lineups(tournament: Tournament) -> None:
    for series, members in tournament.lineups().items():
        names = ", ".join(f"{p.current_slot}.{p.display_name}" for p in members)
        print(f"  {Colors.OKCYAN}Series {series}{Colors.ENDC}: {names}")


def print_standings(tournament: Tournament) -> None:
    print(f"\n{Colors.BOLD}Standings - {tournament.name}{Colors.ENDC}")
    for rank, participant in tournament.get_standing_rows():
        print(
            f"  {rank:3}. {participant.display_name:20} "
            f"{participant.cumulative_points:5} pts"
        )
    print()


def print_tournament(tournament: Tournament) -> None:
    config = tournament.config
    phase = PHASE_NAMES[tournament.phase]
    print(f"\n{Colors.BOLD}{Colors.OKBLUE}{config.name} ({config.code}){Colors.ENDC}")
    print(f"  Date: {config.date}")
    print(
        f"  Players: {len(tournament.participants)}/{config.total_players}, "
        f"{config.station_count} stations, {config.series_count} series"
    )
    if tournament.is_complete:
        print(f"  {phase}")
    else:
        print(f"  Race {tournament.race}/{config.max_races}: {phase}")

    if not tournament.started:
        print("  Registration open")
        for participant in tournament.participants.values():
            seed = f" (seed {participant.seeding})" if participant.seeding else ""
            print(f"    {participant.display_name}{seed}")
    elif not tournament.reviewed:
        print("  Registration closed, grouping not approved")
        for index, group in enumerate(tournament.initial_grouping(), start=1):
            print(f"    Proposed series {index}: {', '.join(group)}")
    elif not tournament.is_complete:
        print_lineups(tournament)
        if tournament.pending_map_choices:
            offers = ", ".join(
                f"{i}.{map_display_name(m)}"
                for i, m in enumerate(tournament.pending_map_choices, start=1)
            )
            print(f"  Maps offered: {offers}")
            if tournament.selected_map:
                print(f"  Selected map: {map_display_name(tournament.selected_map)}")
        for row in tournament.staging_results:
            score = f" ({row.manual_score} pts)" if row.has_manual_score else ""
            print(
                f"    staged: series {row.series} P{row.finish_position} "
                f"{row.nickname}{score}"
            )
        upcoming = tournament.next_lineup()
        if upcoming:
            series, members = upcoming
            names = ", ".join(p.display_name for p in members)
            print(f"  Next up, series {series} in arrival order: {names}")
        missing = tournament.incomplete_series()
        if missing:
            print(f"  {Colors.WARNING}Waiting for series {missing}{Colors.ENDC}")
    print()


# ========== Commands ==========


def run_create_command(args: argparse.Namespace, service: TournamentService) -> int:
    tier_code = args.tier_code
    if args.tier_file:
        tier_code = Path(args.tier_file).read_text(encoding="utf-8").strip()
    tournament = service.create_tournament(
        args.code,
        args.name,
        args.date,
        args.stations,
        args.players,
        max_races=args.races,
        tier_code=tier_code,
    )
    print(f"{Colors.OKGREEN}Created tournament {tournament.code}{Colors.ENDC}")
    print_tournament(tournament)
    return 0


def run_join_command(args: argparse.Namespace, service: TournamentService) -> int:
    participant = service.add_participant(
        args.code, args.nickname, args.name, args.seed, args.chat_id
    )
    print(f"{Colors.OKGREEN}{participant.display_name} joined {args.code}{Colors.ENDC}")
    return 0


def run_leave_command(args: argparse.Namespace, service: TournamentService) -> int:
    participant = service.remove_participant(args.code, args.nickname)
    print(f"{participant.display_name} left {args.code}")
    return 0


def run_seed_command(args: argparse.Namespace, service: TournamentService) -> int:
    participant = service.set_seeding(args.code, args.nickname, args.seed)
    print(f"Seeding of {participant.display_name}: {participant.seeding or 'none'}")
    return 0


def run_close_command(args: argparse.Namespace, service: TournamentService) -> int:
    tournament = service.close_registration(args.code)
    print(f"{Colors.OKGREEN}Registration closed{Colors.ENDC}")
    print_tournament(tournament)
    return 0


def run_review_command(args: argparse.Namespace, service: TournamentService) -> int:
    tournament = service.set_grouping_policy(
        args.code, args.increment, args.threshold, args.finale, args.groups
    )
    print(f"{Colors.OKGREEN}Grouping approved{Colors.ENDC}")
    print_tournament(tournament)
    return 0


def run_draw_command(args: argparse.Namespace, service: TournamentService) -> int:
    offers = service.draw_maps(args.code)
    print(f"{Colors.BOLD}Maps offered:{Colors.ENDC}")
    for index, map_id in enumerate(offers, start=1):
        print(f"  {index}. {map_display_name(map_id)} [{map_id}]")
    return 0


def run_select_command(args: argparse.Namespace, service: TournamentService) -> int:
    map_id = args.map
    if map_id is not None and map_id.isdigit():
        # A number picks from the offer list
        offers = service.get_tournament(args.code).pending_map_choices
        index = int(map_id) - 1
        if 0 <= index < len(offers):
            map_id = offers[index]
    selected = service.select_map(args.code, map_id)
    if selected is None:
        print("Map selection cleared")
    else:
        print(f"Selected map: {map_display_name(selected)}")
    return 0


def run_stage_command(args: argparse.Namespace, service: TournamentService) -> int:
    staged = service.stage_series_result(args.code, args.series, args.entries)
    print(f"Staged {len(staged)} results for series {args.series}")
    return 0


def run_commit_command(args: argparse.Namespace, service: TournamentService) -> int:
    phase = service.commit(args.code)
    tournament = service.get_tournament(args.code)
    print(f"{Colors.OKGREEN}Committed {PHASE_NAMES[phase].lower()}{Colors.ENDC}")
    if tournament.is_complete:
        print_standings(tournament)
    else:
        print_tournament(tournament)
    return 0


def run_rewind_command(args: argparse.Namespace, service: TournamentService) -> int:
    restored = service.rewind(args.code)
    print(
        f"{Colors.WARNING}Rewound to race "
        f"{service.get_tournament(args.code).race}; "
        f"{len(restored)} results back in staging{Colors.ENDC}"
    )
    return 0


def run_standings_command(args: argparse.Namespace, service: TournamentService) -> int:
    print_standings(service.get_tournament(args.code))
    return 0


def run_show_command(args: argparse.Namespace, service: TournamentService) -> int:
    print_tournament(service.get_tournament(args.code))
    return 0


def run_list_command(args: argparse.Namespace, service: TournamentService) -> int:
    codes = service.list_codes()
    if not codes:
        print("No tournaments stored")
    for code in codes:
        print(f"  {code}")
    return 0


def run_simulate_command(args: argparse.Namespace, service: TournamentService) -> int:
    generator = RandomTournamentGenerator(
        SimulationConfig(
            num_players=args.players,
            station_count=args.stations,
            max_races=args.races,
            seed=args.seed,
        )
    )
    result = generator.generate_complete_tournament(args.save or "SIM")
    tournament = result["tournament"]
    for log in tournament.map_history:
        chosen = map_display_name(log.selected_map) if log.selected_map else "-"
        print(f"  Race {log.race_index}: {chosen}")
    print_standings(tournament)
    if args.save:
        service.store.create(tournament)
        print(f"Saved as {tournament.code}")
    return 0


# ========== Dispatch ==========


def create_service(store_dir: str) -> TournamentService:
    return TournamentService(JsonTournamentStore(store_dir))


def execute(
    argv: Sequence[str], service: Optional[TournamentService] = None
) -> int:
    """Parse ``argv`` and run the command.

    Returns:
        Exit code: 0 on success, 1 when the operation was refused, 2 on
        usage errors
    """
    parser = create_parser()
    try:
        args = parser.parse_args(list(argv))
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 2

    if args.verbose:
        set_verbose(True)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    if service is None:
        service = create_service(args.store)
    try:
        return args.func(args, service)
    except GridCupException as e:
        print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}", file=sys.stderr)
        logger.debug("Command refused", exc_info=True)
        return 1
    except OSError as e:
        print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}", file=sys.stderr)
        return 1
