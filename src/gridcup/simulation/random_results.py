"""Random Tournament Generator - simulated race results.

This module plays whole tournaments with random finishing orders, the way a
race director hitting "random results" on every series would, and is used
to exercise the progression engine end to end.
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

import random
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from gridcup.constants import (
    DEFAULT_MAX_RACES,
    DEFAULT_SERIES_INCREMENT,
    DEFAULT_SERIES_THRESHOLD,
    TIER_BANNED,
    TIER_FALLBACK,
    WEIGHTED_TIERS,
)
from gridcup.models.maps import TierRow
from gridcup.models.participant import Participant
from gridcup.models.tournament import Tournament
from gridcup.type_hints import StagedRow
from gridcup.utils import setup_logger

logger = setup_logger(__name__)

# Probability that a simulated row carries a manual score
MANUAL_SCORE_RATE = 0.2
MAX_MANUAL_SCORE = 99


@dataclass
class SimulationConfig:
    """Configuration for the random tournament generator."""

    num_players: int
    station_count: int
    max_races: int = DEFAULT_MAX_RACES
    series_increment: int = DEFAULT_SERIES_INCREMENT
    series_threshold: int = DEFAULT_SERIES_THRESHOLD
    manual_rate: float = MANUAL_SCORE_RATE
    seed: Optional[int] = None
    draw_maps: bool = True


class ResultSimulator:
    """Generates random finishing orders for a series."""

    def __init__(self, rng: random.Random, manual_rate: float = MANUAL_SCORE_RATE):
        self.random = rng
        self.manual_rate = manual_rate

    def random_series_result(self, members: Sequence[Participant]) -> List[StagedRow]:
        """One staged row per member, positions a random permutation.

        Each row independently gets a manual score in ``0..99`` with
        probability ``manual_rate``.
        """
        positions = list(range(1, len(members) + 1))
        self.random.shuffle(positions)

        rows: List[StagedRow] = []
        for participant, position in zip(members, positions):
            is_manual = self.random.random() < self.manual_rate
            manual_score = (
                self.random.randint(0, MAX_MANUAL_SCORE) if is_manual else None
            )
            rows.append((participant.nickname, position, is_manual, manual_score))
        return rows


def demo_tier_table(maps_per_tier: int = 6, fallback_maps: int = 8) -> List[TierRow]:
    """A tier table with generated map names.

    Weights follow the defaults of the tier-list page: easy maps favoured in
    qualifying, hard ones in the finale.
    """
    default_charts = [
        [3, 2, 4, 1],
        [1, 3, 2, 4],
        [2, 4, 3, 1],
    ]
    rows = []
    number = 0
    for column, tier_name in enumerate(WEIGHTED_TIERS):
        pool = []
        for _ in range(maps_per_tier):
            number += 1
            pool.append(f"{number:02d}-{tier_name} Track {number}.png")
        rows.append(
            TierRow(
                tier_name=tier_name,
                weights=tuple(float(chart[column]) for chart in default_charts),
                map_pool=tuple(pool),
            )
        )
    fallback = []
    for _ in range(fallback_maps):
        number += 1
        fallback.append(f"{number:02d}-Classic Track {number}.png")
    rows.append(TierRow(TIER_FALLBACK, map_pool=tuple(fallback)))
    rows.append(TierRow(TIER_BANNED, map_pool=(f"{number + 1:02d}-Banned Track.png",)))
    return rows


class RandomTournamentGenerator:
    """Plays complete tournaments with random results."""

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.random = (
            random.Random(config.seed) if config.seed is not None else random.Random()
        )
        self.result_simulator = ResultSimulator(self.random, config.manual_rate)

    def create_tournament(self, code: str = "SIM") -> Tournament:
        """A reviewed tournament with ``num_players`` registered racers.

        Roughly half of the racers get a seeding.
        """
        tournament = Tournament.create(
            code,
            f"Simulated cup ({self.config.num_players} players)",
            date.today(),
            self.config.station_count,
            self.config.num_players,
            max_races=self.config.max_races,
            tier_table=demo_tier_table() if self.config.draw_maps else None,
            rng=self.random,
        )
        seeds = list(range(1, self.config.num_players + 1))
        self.random.shuffle(seeds)
        for index in range(1, self.config.num_players + 1):
            seeding = seeds[index - 1] if self.random.random() < 0.5 else None
            tournament.add_participant(f"racer{index:02d}", f"Racer {index}", seeding)
        tournament.close_registration()
        tournament.set_grouping_policy(
            self.config.series_increment, self.config.series_threshold
        )
        return tournament

    def stage_random_race(self, tournament: Tournament) -> None:
        """Draw maps and stage random results for every series."""
        if self.config.draw_maps and tournament.tier_table:
            offers = tournament.draw_maps()
            tournament.select_map(self.random.choice(offers))
        for series in tournament.active_series():
            members = tournament.series_members(series)
            tournament.stage_series_result(
                series, self.result_simulator.random_series_result(members)
            )

    def play_race(self, tournament: Tournament) -> str:
        """Play one race with random results and commit it."""
        self.stage_random_race(tournament)
        return tournament.commit()

    def generate_complete_tournament(self, code: str = "SIM") -> Dict[str, Any]:
        """Play a tournament to completion.

        Returns:
            ``tournament``: the completed tournament, and ``snapshots``: the
            serialized tournament taken right before each commit, staged
            results included
        """
        logger.info(
            f"Simulating tournament: {self.config.num_players} players, "
            f"{self.config.station_count} stations, {self.config.max_races} races"
        )
        tournament = self.create_tournament(code)
        snapshots = []
        while not tournament.is_complete:
            self.stage_random_race(tournament)
            snapshots.append(tournament.to_dict())
            tournament.commit()

        logger.info("Tournament simulation complete")
        return {"tournament": tournament, "snapshots": snapshots}
