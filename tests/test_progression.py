import random

import pytest

from gridcup.exceptions import TournamentStateException
from gridcup.models.maps import TierRow
from gridcup.models.tournament import Tournament


def _tournament(
    names,
    stations,
    max_races=5,
    threshold=1,
    increment=1,
    finale=None,
    grouping=None,
):
    tournament = Tournament.create(
        "PROG",
        "Progression Cup",
        "2025-03-14",
        stations,
        len(names),
        max_races=max_races,
        rng=random.Random(3),
    )
    for seed, name in enumerate(names, start=1):
        tournament.add_participant(name, seeding=seed)
    tournament.close_registration()
    tournament.set_grouping_policy(increment, threshold, finale, grouping)
    return tournament


def _stage(tournament, series, names, manual=None):
    manual = manual or {}
    rows = []
    for position, name in enumerate(names, start=1):
        if name in manual:
            rows.append((name, position, True, manual[name]))
        else:
            rows.append((name, position))
    tournament.stage_series_result(series, rows)


def _stage_in_slot_order(tournament, manual=None):
    for series, members in tournament.lineups().items():
        _stage(tournament, series, [p.nickname for p in members], manual)


def _placement(tournament, name):
    participant = tournament.participants[name]
    return participant.current_series, participant.current_slot


def _points(tournament, name):
    return tournament.participants[name].cumulative_points


def _names(count):
    return [f"p{i:02d}" for i in range(1, count + 1)]


def _assert_full_lineups(tournament):
    for members in tournament.lineups().values():
        slots = sorted(p.current_slot for p in members)
        assert slots == list(range(1, len(members) + 1))


# ========== Qualifying ==========


def test_qualifying_pools_heat_winners_into_the_top_series():
    tournament = _tournament(["X", "Y", "Z", "W"], stations=2, max_races=3)
    assert tournament.lineups()[1][0].nickname == "X"

    _stage(tournament, 1, ["X", "Y"])
    _stage(tournament, 2, ["Z", "W"])
    assert tournament.commit() == "qualifying"

    assert _placement(tournament, "X") == (1, 1)
    assert _placement(tournament, "Z") == (1, 2)
    assert _placement(tournament, "Y") == (2, 1)
    assert _placement(tournament, "W") == (2, 2)
    assert all(p.cumulative_points == 0 for p in tournament.participants.values())
    assert tournament.race == 2
    assert tournament.phase == "pre_finale"
    assert tournament.staging_results == []


def test_qualifying_keeps_series_sizes_with_an_uneven_field():
    tournament = _tournament(["a", "b", "c", "d", "e"], stations=2)
    _stage(tournament, 1, ["a", "b"])
    _stage(tournament, 2, ["c", "d"])
    _stage(tournament, 3, ["e"])
    tournament.commit()

    lineups = {s: [p.nickname for p in m] for s, m in tournament.lineups().items()}
    assert lineups == {1: ["a", "c"], 2: ["e", "b"], 3: ["d"]}
    assert tournament.series_sizes() == [2, 2, 1]


# ========== Intermediate Races ==========


def test_intermediate_race_promotes_and_relegates():
    tournament = _tournament(_names(12), stations=4)
    tournament.race = 2
    _stage_in_slot_order(tournament)
    assert tournament.commit() == "intermediate"

    # Second series winner enters the top series in finishing order
    assert _placement(tournament, "p05") == (1, 1)
    assert _points(tournament, "p05") == 5
    # Last of the second series drops to the bottom series in finishing order
    assert _placement(tournament, "p08") == (3, 4)
    assert _points(tournament, "p08") == 2
    # Other movers and stayers start from the reverse of their finish
    assert _placement(tournament, "p04") == (2, 1)
    assert _points(tournament, "p04") == 3
    assert _placement(tournament, "p09") == (2, 4)
    assert _placement(tournament, "p01") == (1, 4)
    assert _points(tournament, "p01") == 6
    assert _placement(tournament, "p12") == (3, 1)
    assert _points(tournament, "p12") == 1

    assert tournament.series_sizes() == [4, 4, 4]
    _assert_full_lineups(tournament)


def test_threshold_zero_keeps_everyone_in_place_with_reversed_slots():
    tournament = _tournament(_names(8), stations=4, threshold=0)
    tournament.race = 2
    _stage_in_slot_order(tournament)
    tournament.commit()

    assert _placement(tournament, "p01") == (1, 4)
    assert _placement(tournament, "p04") == (1, 1)
    assert _placement(tournament, "p05") == (2, 4)
    assert tournament.series_sizes() == [4, 4]


def test_two_series_movers_keep_their_finishing_order():
    tournament = _tournament(_names(8), stations=4, threshold=2)
    tournament.race = 2
    _stage_in_slot_order(tournament)
    tournament.commit()

    assert _placement(tournament, "p05") == (1, 1)
    assert _placement(tournament, "p06") == (1, 2)
    assert _placement(tournament, "p03") == (2, 3)
    assert _placement(tournament, "p04") == (2, 4)
    assert _placement(tournament, "p01") == (1, 4)
    assert _placement(tournament, "p08") == (2, 1)
    _assert_full_lineups(tournament)


# ========== Pre-Finale and Finale ==========


def test_pre_finale_regroups_on_totals_with_seeding_tie_break():
    tournament = _tournament(["X", "Y", "Z", "W"], stations=2, max_races=3)
    _stage(tournament, 1, ["X", "Y"])
    _stage(tournament, 2, ["Z", "W"])
    tournament.commit()

    _stage(tournament, 1, ["Z", "X"])
    _stage(tournament, 2, ["W", "Y"])
    assert tournament.commit() == "pre_finale"

    assert [_points(tournament, n) for n in "ZXWY"] == [3, 2, 2, 1]
    assert _placement(tournament, "Z") == (1, 2)
    assert _placement(tournament, "X") == (1, 1)
    assert _placement(tournament, "W") == (2, 2)
    assert _placement(tournament, "Y") == (2, 1)
    assert tournament.phase == "finale"


def test_finale_multiplies_points_and_completes_the_tournament():
    tournament = _tournament(
        ["X", "Y", "Z", "W"], stations=2, max_races=2, finale=[2, 1]
    )
    _stage(tournament, 1, ["X", "Y"])
    _stage(tournament, 2, ["Z", "W"])
    tournament.commit()
    assert tournament.phase == "finale"

    _stage(tournament, 1, ["X", "Z"])
    _stage(tournament, 2, ["Y", "W"])
    assert tournament.commit() == "finale"

    assert [_points(tournament, n) for n in "XZYW"] == [4, 2, 2, 1]
    assert all(_placement(tournament, n) == (0, 0) for n in "XYZW")
    assert tournament.is_complete
    assert tournament.phase == "complete"
    assert [p.nickname for p in tournament.get_standings()] == ["X", "Y", "Z", "W"]
    assert [rank for rank, _ in tournament.get_standing_rows()] == [1, 2, 2, 4]


def test_complete_tournament_refuses_new_results():
    tournament = _tournament(["X", "Y"], stations=2, max_races=2)
    for _ in range(2):
        _stage_in_slot_order(tournament)
        tournament.commit()

    with pytest.raises(TournamentStateException):
        tournament.commit()
    with pytest.raises(TournamentStateException):
        tournament.stage_series_result(1, [("X", 1), ("Y", 2)])


# ========== Manual Overrides ==========


@pytest.mark.parametrize("race", [1, 2, 3, 4])
def test_manual_override_replaces_points_in_every_phase(race):
    tournament = _tournament(["X", "Y", "Z", "W"], stations=2, max_races=4)
    tournament.race = race
    _stage_in_slot_order(tournament, manual={"X": 7})
    tournament.commit()

    result = tournament.participants["X"].last_result
    assert result.points_awarded == 7
    assert result.is_manual_override
    assert _points(tournament, "X") == 7


def test_manual_flag_without_score_uses_the_formula():
    tournament = _tournament(["X", "Y", "Z", "W"], stations=2, max_races=4)
    tournament.race = 2
    tournament.stage_series_result(1, [("X", 1, True), ("Y", 2)])
    tournament.stage_series_result(2, [("Z", 1), ("W", 2)])
    tournament.commit()

    assert _points(tournament, "X") == 3
    assert tournament.participants["X"].last_result.is_manual_override


# ========== Commit Preconditions and Map Log ==========


def test_commit_requires_an_approved_grouping():
    tournament = Tournament.create("PROG", "Cup", "2025-03-14", 2, 2)
    tournament.add_participant("X")
    tournament.add_participant("Y")
    tournament.close_registration()
    with pytest.raises(TournamentStateException):
        tournament.commit()


def test_commit_logs_the_selected_map():
    tournament = _tournament(["X", "Y", "Z", "W"], stations=2)
    tournament.set_tier_table(
        [
            TierRow("Facile", (1, 1, 1), tuple(f"m{i}" for i in range(8))),
            TierRow("Goat", (0, 0, 0), tuple(f"g{i}" for i in range(4))),
        ]
    )
    offers = tournament.draw_maps()
    tournament.select_map(offers[2])
    _stage_in_slot_order(tournament)
    tournament.commit()

    log = tournament.map_history[-1]
    assert log.race_index == 1
    assert log.offered_maps == offers
    assert log.selected_map == offers[2]
    assert tournament.used_maps() == [offers[2]]
    assert tournament.pending_map_choices == []
    assert tournament.selected_map is None

    second = tournament.draw_maps()
    assert offers[2] not in second
    _stage_in_slot_order(tournament)
    tournament.commit()
    assert tournament.used_maps() == [offers[2]] + second


def test_commit_without_a_map_draw_logs_an_empty_race():
    tournament = _tournament(["X", "Y"], stations=2)
    _stage_in_slot_order(tournament)
    tournament.commit()

    assert tournament.map_history[-1].offered_maps == []
    assert tournament.map_history[-1].selected_map is None
    assert tournament.used_maps() == []
