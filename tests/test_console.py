import argparse
import random

import pytest

from gridcup.console.commands import (
    COMMANDS,
    execute,
    parse_int_list,
    parse_stage_entry,
)
from gridcup.console.interactive import ConsoleState, create_completer, handle_line
from gridcup.service import TournamentService
from gridcup.storage import JsonTournamentStore


@pytest.fixture
def service(tmp_path):
    return TournamentService(JsonTournamentStore(tmp_path), rng=random.Random(1))


def _run(service, line):
    return execute(line.split(), service)


# ========== Argument Parsing ==========


@pytest.mark.parametrize(
    "entry, expected",
    [
        ("bob:2", ("bob", 2)),
        ("bob:2:7", ("bob", 2, True, 7)),
        ("team:bob:3", ("team:bob", 3)),
    ],
)
def test_parse_stage_entry(entry, expected):
    assert parse_stage_entry(entry) == expected


@pytest.mark.parametrize("entry", ["bob", "bob:x", "bob:2:x"])
def test_parse_stage_entry_rejects_malformed_entries(entry):
    with pytest.raises(argparse.ArgumentTypeError):
        parse_stage_entry(entry)


def test_parse_int_list():
    assert parse_int_list("3,2,1") == [3, 2, 1]
    with pytest.raises(argparse.ArgumentTypeError):
        parse_int_list("3,two")


# ========== Commands ==========


def test_qualifying_race_from_the_command_line(service, capsys):
    commands = [
        "create CUP --name Spring --date 2025-03-14 --stations 2 --players 4 --races 3",
        "join CUP a --seed 1",
        "join CUP b --seed 2",
        "join CUP c --seed 3",
        "join CUP d --seed 4",
        "close CUP",
        "review CUP --group a,c --group b,d",
        "stage CUP 1 a:1 c:2",
        "stage CUP 2 b:1 d:2:5",
        "commit CUP",
    ]
    for line in commands:
        assert _run(service, line) == 0

    out = capsys.readouterr().out
    assert "Committed qualifying" in out

    tournament = service.get_tournament("CUP")
    lineups = {s: [p.nickname for p in m] for s, m in tournament.lineups().items()}
    assert lineups == {1: ["a", "b"], 2: ["c", "d"]}
    assert tournament.participants["d"].cumulative_points == 5

    assert _run(service, "standings CUP") == 0
    rows = [
        line.split()[1]
        for line in capsys.readouterr().out.splitlines()
        if line.rstrip().endswith("pts")
    ]
    assert rows == ["d", "a", "b", "c"]


def test_refused_operation_exits_with_one(service, capsys):
    assert _run(service, "commit NOPE") == 1
    assert "Tournament not found" in capsys.readouterr().err


def test_usage_error_exits_with_two(service):
    assert _run(service, "stage CUP") == 2


def test_simulate_can_save_the_tournament(service, capsys):
    line = "simulate --players 6 --stations 3 --races 3 --seed 4 --save SIM1"
    assert _run(service, line) == 0
    assert "Standings" in capsys.readouterr().out
    assert service.get_tournament("SIM1").is_complete


# ========== Interactive Mode ==========


def test_completer_accepts_commands_with_and_without_slash():
    options = create_completer().options
    for command in COMMANDS:
        assert command in options
        assert f"/{command}" in options
    assert "/help" in options
    assert "use" in options


def test_completer_offers_stored_codes_to_code_commands():
    options = create_completer(["CUP", "OLD"]).options
    assert options["stage"].words[:2] == ["CUP", "OLD"]
    assert options["use"].words == ["CUP", "OLD"]
    assert "CUP" not in options["create"].words
    assert "--name" in options["create"].words
    assert options["list"] is None


def test_handle_line(service, capsys):
    assert handle_line("", service)
    assert handle_line("/list", service)
    assert "No tournaments stored" in capsys.readouterr().out
    assert handle_line("fly away", service)
    assert "Unknown command: fly" in capsys.readouterr().out
    assert handle_line("help stage", service)
    out = capsys.readouterr().out
    assert "usage: gridcup stage" in out
    assert "use CODE" in out
    assert handle_line("help", service)
    assert "Race day" in capsys.readouterr().out
    assert not handle_line("quit", service)


def test_console_remembers_the_tournament_in_use(service, capsys):
    state = ConsoleState(service)
    assert state.prompt() == "gridcup> "

    line = "create CUP --name Spring --date 2025-03-14 --stations 2 --players 4"
    assert handle_line(line + " --races 3", service, state)
    assert state.code == "CUP"
    assert state.prompt() == "gridcup[CUP registration]> "

    for line in ["join a", "join b", "join c", "join d", "close"]:
        assert handle_line(line, service, state)
    assert state.prompt() == "gridcup[CUP review]> "

    for line in ["review", "stage 1 a:2 b:1"]:
        assert handle_line(line, service, state)
    assert state.prompt() == "gridcup[CUP race 1/3 qualifying]> "
    capsys.readouterr()

    assert handle_line("show", service, state)
    assert "Next up, series 2 in arrival order: c, d" in capsys.readouterr().out

    assert handle_line("stage CUP 2 c:1 d:2", service, state)
    assert handle_line("commit", service, state)
    assert state.prompt() == "gridcup[CUP race 2/3 pre_finale]> "


def test_use_switches_between_stored_tournaments(service, capsys):
    service.create_tournament("CUP", "Spring Cup", "2025-03-14", 2, 4)
    state = ConsoleState(service)

    assert handle_line("use NOPE", service, state)
    assert "Tournament not found: NOPE" in capsys.readouterr().out
    assert state.code is None

    assert handle_line("/use CUP", service, state)
    assert state.code == "CUP"
    assert handle_line("join a", service, state)
    assert list(service.get_tournament("CUP").participants) == ["a"]

    service.delete_tournament("CUP")
    assert state.prompt() == "gridcup> "
    assert state.code is None

    assert handle_line("use", service, state)
    assert "No tournament selected" in capsys.readouterr().out
