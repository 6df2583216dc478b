"""Interactive console for race directors.

Every line is run as a ``gridcup`` command against the same service. The
console remembers the tournament picked with ``use CODE`` (or the last one
created): commands that take a tournament code may then leave it out, and
the prompt shows the race in progress.
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

import shlex
from typing import List, Optional, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import NestedCompleter, WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.styles import Style

from gridcup.exceptions import TournamentNotFoundException
from gridcup.service import TournamentService
from gridcup.utils import setup_logger

from .commands import COMMANDS, Colors, execute

logger = setup_logger(__name__)

EXIT_WORDS = ["exit", "quit", "q"]

# Commands whose first argument is a stored tournament code
CODE_COMMANDS = [cmd for cmd in COMMANDS if cmd not in ("create", "list", "simulate")]

# Order in which a race director meets the commands
COMMAND_GROUPS = [
    ("Registration", ["create", "join", "leave", "seed", "close", "review"]),
    ("Race day", ["draw", "select", "stage", "commit", "rewind"]),
    ("Results", ["standings", "show", "list", "simulate"]),
]


class ConsoleState:
    """Tournament the console is working on."""

    def __init__(self, service: TournamentService):
        self.service = service
        self.code: Optional[str] = None

    def status(self) -> Optional[str]:
        """Short state of the current tournament, None when there is none."""
        if self.code is None:
            return None
        try:
            tournament = self.service.get_tournament(self.code)
        except TournamentNotFoundException:
            logger.warning(f"Tournament {self.code} is gone, leaving it")
            self.code = None
            return None
        if not tournament.started:
            return "registration"
        if not tournament.reviewed:
            return "review"
        if tournament.is_complete:
            return "complete"
        max_races = tournament.config.max_races
        return f"race {tournament.race}/{max_races} {tournament.phase}"

    def prompt(self) -> str:
        status = self.status()
        if status is None:
            return "gridcup> "
        return f"gridcup[{self.code} {status}]> "

    def with_code(self, command: str, args: List[str]) -> List[str]:
        """Insert the current code when a code command was typed without one."""
        if command not in CODE_COMMANDS or self.code is None:
            return args
        if args and args[0] in self.service.list_codes():
            return args
        return [self.code] + args


def print_banner(state: ConsoleState):
    """Print the console banner and the stored tournaments."""
    title = "GRID CUP - race director console"
    print(f"\n{Colors.BOLD}{Colors.OKBLUE}{title}{Colors.ENDC}")
    codes = state.service.list_codes()
    if codes:
        print(f"Stored tournaments: {', '.join(codes)}")
        print(f"Type {Colors.BOLD}use CODE{Colors.ENDC} to pick one")
    else:
        print(f"No tournaments yet, start with {Colors.BOLD}create{Colors.ENDC}")
    print(
        f"Type {Colors.BOLD}help{Colors.ENDC} for commands, "
        f"{Colors.BOLD}exit{Colors.ENDC} to leave\n"
    )


def print_commands_list():
    """Print the commands in race-day order."""
    for title, commands in COMMAND_GROUPS:
        print(f"\n{Colors.BOLD}{title}{Colors.ENDC}")
        for cmd in commands:
            description = COMMANDS[cmd]["description"]
            print(f"  {Colors.OKGREEN}{cmd:10}{Colors.ENDC} {description}")
    print(f"\n{Colors.BOLD}Console{Colors.ENDC}")
    print(f"  {Colors.OKGREEN}{'use':10}{Colors.ENDC} Work on a tournament: use CODE")
    print(f"  {Colors.OKGREEN}{'help':10}{Colors.ENDC} help CMD shows its arguments")
    print()


def print_command_help(command: str, service: TournamentService):
    """Print the argument usage of one command."""
    if command not in COMMANDS:
        print(f"{Colors.FAIL}Unknown command: {command}{Colors.ENDC}")
        print_commands_list()
        return
    execute([command, "--help"], service)
    if command in CODE_COMMANDS:
        print("\nThe code can be left out after 'use CODE'.")
    print()


def create_completer(codes: Sequence[str] = ()) -> NestedCompleter:
    """Completer for commands, their options and stored tournament codes."""
    completions = {}
    for cmd, info in COMMANDS.items():
        words = list(info["options"].keys())
        if cmd in CODE_COMMANDS:
            words = list(codes) + words
        completer = WordCompleter(words) if words else None
        completions[cmd] = completer
        completions[f"/{cmd}"] = completer

    completions["use"] = WordCompleter(list(codes)) if codes else None
    completions["help"] = WordCompleter(list(COMMANDS.keys()))
    completions["/help"] = completions["help"]
    return NestedCompleter.from_nested_dict(completions)


def _use(state: ConsoleState, args: List[str]):
    if not args:
        state.code = None
        print("No tournament selected")
        return
    code = args[0]
    if code not in state.service.list_codes():
        print(f"{Colors.FAIL}Tournament not found: {code}{Colors.ENDC}")
        return
    state.code = code
    print(f"Working on {code}")


def handle_line(
    line: str, service: TournamentService, state: Optional[ConsoleState] = None
) -> bool:
    """Run one console line.

    Returns:
        False when the user asked to leave
    """
    if state is None:
        state = ConsoleState(service)
    user_input = line.strip()
    if not user_input:
        return True
    if user_input in EXIT_WORDS:
        return False

    try:
        parts = shlex.split(user_input)
    except ValueError as e:
        print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}")
        return True

    command, args = parts[0].lstrip("/"), parts[1:]
    if command in ["help", "?"]:
        if args:
            print_command_help(args[0].lstrip("/"), service)
        else:
            print_commands_list()
        return True
    if command == "use":
        _use(state, args)
        return True
    if command not in COMMANDS:
        print(f"{Colors.FAIL}Unknown command: {command}{Colors.ENDC}")
        print(f"Type {Colors.BOLD}help{Colors.ENDC} to see available commands")
        return True

    known = set(service.list_codes())
    exit_code = execute([command] + state.with_code(command, args), service)
    created = sorted(set(service.list_codes()) - known)
    if exit_code == 0 and len(created) == 1:
        state.code = created[0]
    return True


def run_interactive_mode(service: TournamentService) -> int:
    """Run the console until the user leaves."""
    state = ConsoleState(service)
    print_banner(state)

    style = Style.from_dict(
        {
            "prompt": "#00aa00 bold",
        }
    )
    session = PromptSession(history=InMemoryHistory(), style=style)

    while True:
        try:
            line = session.prompt(
                state.prompt(), completer=create_completer(service.list_codes())
            )
            if not handle_line(line, service, state):
                print(f"\n{Colors.OKGREEN}Goodbye!{Colors.ENDC}\n")
                break
        except KeyboardInterrupt:
            print(f"\n{Colors.WARNING}Use 'exit' or 'quit' to leave{Colors.ENDC}")
        except EOFError:
            print(f"\n{Colors.OKGREEN}Goodbye!{Colors.ENDC}\n")
            break
    return 0
