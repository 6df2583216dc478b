import random

import pytest

from gridcup.exceptions import NothingToRewindException, TournamentStateException
from gridcup.models.maps import TierRow
from gridcup.models.participant import RaceResult
from gridcup.models.tournament import Tournament


def _tournament(names, stations=2, max_races=4):
    tournament = Tournament.create(
        "REW",
        "Rewind Cup",
        "2025-03-14",
        stations,
        len(names),
        max_races=max_races,
        tier_table=[
            TierRow("Facile", (1, 1, 1), tuple(f"m{i}" for i in range(12))),
            TierRow("Goat", (0, 0, 0), tuple(f"g{i}" for i in range(4))),
        ],
        rng=random.Random(11),
    )
    for seed, name in enumerate(names, start=1):
        tournament.add_participant(name, seeding=seed)
    tournament.close_registration()
    tournament.set_grouping_policy()
    return tournament


def _stage_reversed(tournament, manual=None):
    manual = manual or {}
    for series, members in tournament.lineups().items():
        rows = []
        for position, participant in enumerate(reversed(members), start=1):
            name = participant.nickname
            if name in manual:
                rows.append((name, position, True, manual[name]))
            else:
                rows.append((name, position))
        tournament.stage_series_result(series, rows)


def test_rewind_before_any_commit_is_refused():
    tournament = _tournament(["a", "b"])
    with pytest.raises(NothingToRewindException):
        tournament.rewind()


def test_rewind_restores_the_state_before_commit():
    tournament = _tournament(["a", "b", "c", "d", "e"])
    offers = tournament.draw_maps()
    tournament.select_map(offers[1])
    _stage_reversed(tournament, manual={"c": 9})
    snapshot = tournament.to_dict()

    tournament.commit()
    restored = tournament.rewind()

    assert tournament.to_dict() == snapshot
    assert [(r.series, r.finish_position) for r in restored] == [
        (1, 1),
        (1, 2),
        (2, 1),
        (2, 2),
        (3, 1),
    ]
    assert tournament.selected_map == offers[1]
    assert tournament.map_history == []


def test_rewind_keeps_the_order_series_were_staged_in():
    tournament = _tournament(["a", "b", "c", "d", "e"])
    lineups = tournament.lineups()
    for series in sorted(lineups, reverse=True):
        members = lineups[series]
        rows = [(p.nickname, i) for i, p in enumerate(members, start=1)]
        tournament.stage_series_result(series, rows)
    staged = [r.nickname for r in tournament.staging_results]
    assert staged == ["e", "c", "d", "a", "b"]
    snapshot = tournament.to_dict()

    tournament.commit()
    assert tournament.map_history[-1].staged_order == staged
    restored = tournament.rewind()

    assert [r.nickname for r in restored] == staged
    assert tournament.claimed_slots == [1, 2]
    assert tournament.to_dict() == snapshot


def test_rewind_without_a_staged_order_falls_back_to_series_order():
    tournament = _tournament(["a", "b", "c", "d"])
    tournament.stage_series_result(2, [("c", 1), ("d", 2)])
    tournament.stage_series_result(1, [("b", 1), ("a", 2)])
    tournament.commit()
    tournament.map_history[-1].staged_order = []

    restored = tournament.rewind()

    assert [(r.series, r.nickname) for r in restored] == [
        (1, "b"),
        (1, "a"),
        (2, "c"),
        (2, "d"),
    ]


def test_rewind_then_recommit_reproduces_the_commit():
    tournament = _tournament(["a", "b", "c", "d"])
    _stage_reversed(tournament)
    tournament.commit()
    _stage_reversed(tournament, manual={"b": 5})
    tournament.commit()
    committed = tournament.to_dict()

    tournament.rewind()
    tournament.commit()

    assert tournament.to_dict() == committed


def test_rewinding_every_race_returns_to_the_approved_grouping():
    tournament = _tournament(["a", "b", "c", "d", "e", "f"], max_races=3)
    initial = {
        p.nickname: (p.current_series, p.current_slot)
        for p in tournament.participants.values()
    }

    for _ in range(3):
        tournament.draw_maps()
        _stage_reversed(tournament)
        tournament.commit()
    assert tournament.is_complete

    for _ in range(3):
        tournament.rewind()

    assert tournament.race == 1
    assert all(p.cumulative_points == 0 for p in tournament.participants.values())
    assert all(p.history == [] for p in tournament.participants.values())
    assert {
        p.nickname: (p.current_series, p.current_slot)
        for p in tournament.participants.values()
    } == initial
    with pytest.raises(NothingToRewindException):
        tournament.rewind()


def test_rewind_refuses_inconsistent_histories():
    tournament = _tournament(["a", "b"])
    _stage_reversed(tournament)
    tournament.commit()
    tournament.participants["a"].apply_result(
        RaceResult(
            race_index=2,
            series=1,
            finish_position=1,
            next_series=1,
            next_slot=1,
            points_awarded=3,
        )
    )
    before = tournament.to_dict()

    with pytest.raises(TournamentStateException):
        tournament.rewind()

    assert tournament.to_dict() == before
