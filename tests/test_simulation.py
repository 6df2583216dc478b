import pytest

from gridcup.controllers.tournament.grouping import chunk
from gridcup.simulation import (
    RandomTournamentGenerator,
    SimulationConfig,
    demo_tier_table,
)


def _expected_sizes(num_players, station_count):
    return [len(group) for group in chunk(list(range(num_players)), station_count)]


@pytest.mark.parametrize(
    "num_players, station_count, max_races",
    [(10, 4, 5), (12, 4, 6), (7, 3, 4), (4, 2, 2)],
)
def test_series_sizes_hold_after_every_commit(num_players, station_count, max_races):
    config = SimulationConfig(
        num_players=num_players,
        station_count=station_count,
        max_races=max_races,
        seed=17,
    )
    generator = RandomTournamentGenerator(config)
    tournament = generator.create_tournament()
    expected = _expected_sizes(num_players, station_count)
    assert tournament.series_sizes() == expected

    while tournament.race < max_races:
        generator.play_race(tournament)
        assert tournament.series_sizes() == expected
        for members in tournament.lineups().values():
            slots = [p.current_slot for p in members]
            assert len(set(slots)) == len(slots)
            assert all(1 <= s <= station_count for s in slots)

    generator.play_race(tournament)
    assert tournament.is_complete
    assert tournament.series_sizes() == []


def test_rewinding_a_simulated_tournament_replays_every_snapshot():
    config = SimulationConfig(num_players=10, station_count=4, seed=29)
    result = RandomTournamentGenerator(config).generate_complete_tournament()
    tournament = result["tournament"]
    snapshots = result["snapshots"]
    assert len(snapshots) == config.max_races

    for snapshot in reversed(snapshots):
        tournament.rewind()
        assert tournament.to_dict() == snapshot

    assert tournament.race == 1


def test_simulated_races_never_repeat_a_used_map():
    config = SimulationConfig(num_players=8, station_count=4, max_races=6, seed=3)
    tournament = RandomTournamentGenerator(config).generate_complete_tournament()[
        "tournament"
    ]

    used = []
    for log in tournament.map_history:
        assert len(log.offered_maps) == 4
        assert not set(log.offered_maps) & set(used)
        assert log.selected_map in log.offered_maps
        used.extend(log.used_maps)
    assert len(set(used)) == config.max_races


def test_every_participant_has_one_result_per_race():
    config = SimulationConfig(num_players=9, station_count=4, seed=8, manual_rate=0.5)
    tournament = RandomTournamentGenerator(config).generate_complete_tournament()[
        "tournament"
    ]
    for participant in tournament.participants.values():
        assert participant.races_played == config.max_races
        assert participant.cumulative_points == sum(
            r.points_awarded for r in participant.history
        )
        assert (participant.current_series, participant.current_slot) == (0, 0)


def test_same_seed_plays_the_same_tournament():
    config = SimulationConfig(num_players=8, station_count=4, seed=99)
    first = RandomTournamentGenerator(config).generate_complete_tournament()
    second = RandomTournamentGenerator(config).generate_complete_tournament()
    assert first["tournament"].to_dict() == second["tournament"].to_dict()


def test_demo_tier_table_has_weighted_fallback_and_banned_tiers():
    rows = {row.tier_name: row for row in demo_tier_table(maps_per_tier=2)}
    assert rows["Facile"].weights == (3.0, 1.0, 2.0)
    assert len(rows["Difficile"].map_pool) == 2
    assert rows["Goat"].is_fallback
    assert rows["Ban"].is_banned
    names = [m for row in rows.values() for m in row.map_pool]
    assert len(names) == len(set(names))
