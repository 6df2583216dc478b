"""Race progression for tournaments.

This module turns the staged finishing positions of a race into committed
results: awarded points, the series and slot of every participant for the
next race, and the advance of the race counter.
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

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional

from gridcup.constants import (
    FINISHED_SERIES,
    FINISHED_SLOT,
    PHASE_COMPLETE,
    PHASE_FINALE,
    PHASE_INTERMEDIATE,
    PHASE_PRE_FINALE,
    PHASE_QUALIFYING,
)
from gridcup.exceptions import TournamentStateException
from gridcup.models.maps import RaceLog
from gridcup.models.participant import RaceResult, TemporaryResult
from gridcup.type_hints import Placement
from gridcup.utils import setup_logger

from .grouping import chunk, finale_grouping
from .staging_area import StagingArea

if TYPE_CHECKING:
    from gridcup.models.tournament import Tournament

logger = setup_logger(__name__)


@dataclass(frozen=True)
class PlannedResult:
    """Outcome of one staged row, computed before anything is applied."""

    row: TemporaryResult
    next_series: int
    next_slot: int
    points_awarded: int


class ProgressionEngine:
    """Commits races and moves the tournament through its phases.

    Phases, by race number:
    - qualifying (race 1): places the field by finishing position
    - intermediate: promotion and relegation between series
    - pre-finale (race ``max_races - 1``): re-partitions on total points
    - finale (race ``max_races``): multiplied points, no further movement
    - complete (after the finale)

    Every commit is planned in full and validated before the first
    participant is updated, so a rejected commit leaves the tournament
    untouched.
    """

    def __init__(self, staging: Optional[StagingArea] = None):
        self.staging = staging if staging is not None else StagingArea()

    # ========== Entry Point ==========

    def commit(self, tournament: "Tournament") -> str:
        """Commit the race in progress with the transition for its phase.

        Args:
            tournament: Tournament to advance

        Returns:
            The phase that was committed

        Raises:
            TournamentStateException: If the tournament cannot be advanced
            IncompleteStagingException: If a series has no complete result
        """
        phase = tournament.phase
        if phase == PHASE_QUALIFYING:
            self.commit_qualifying(tournament)
        elif phase == PHASE_INTERMEDIATE:
            self.commit_intermediate(tournament)
        elif phase == PHASE_PRE_FINALE:
            self.commit_finale_preparation(tournament)
        elif phase == PHASE_FINALE:
            self.commit_finale(tournament)
        else:
            raise TournamentStateException("The tournament is already complete")
        return phase

    def commit_qualifying(self, tournament: "Tournament") -> None:
        """Place the field after the qualifying race.

        Heat winners fill the top series first, then the second places and
        so on; qualifying awards no points unless overridden.
        """
        rows = self._prepare(tournament, PHASE_QUALIFYING)
        station_count = tournament.config.station_count

        pooled = sorted(rows, key=lambda r: (r.finish_position, r.series))
        plan = []
        for series_index, group in enumerate(chunk(pooled, station_count), start=1):
            for slot, row in enumerate(group, start=1):
                points = row.manual_score if row.has_manual_score else 0
                plan.append(PlannedResult(row, series_index, slot, points))
        self._apply(tournament, plan)

    def commit_intermediate(self, tournament: "Tournament") -> None:
        """Promote and relegate after an intermediate race."""
        rows = self._prepare(tournament, PHASE_INTERMEDIATE)
        plan = []
        for row in rows:
            series = tournament.participants[row.nickname].current_series
            next_series, next_slot = self.next_placement(
                tournament, series, row.finish_position
            )
            points = self.race_points(tournament, row, series)
            plan.append(PlannedResult(row, next_series, next_slot, points))
        self._apply(tournament, plan)

    def commit_finale_preparation(self, tournament: "Tournament") -> None:
        """Re-partition the field on total points for the finale."""
        rows = self._prepare(tournament, PHASE_PRE_FINALE)
        station_count = tournament.config.station_count

        awarded: Dict[str, int] = {}
        totals: Dict[str, int] = {}
        for row in rows:
            participant = tournament.participants[row.nickname]
            awarded[row.nickname] = self.race_points(
                tournament, row, participant.current_series
            )
            totals[row.nickname] = participant.cumulative_points + awarded[row.nickname]

        groups = finale_grouping(
            (tournament.participants[r.nickname] for r in rows), station_count, totals
        )
        # Best of each finale series starts from the last slot
        placement = {
            p.nickname: (series_index, station_count - index)
            for series_index, group in enumerate(groups, start=1)
            for index, p in enumerate(group)
        }

        plan = [
            PlannedResult(row, *placement[row.nickname], awarded[row.nickname])
            for row in rows
        ]
        self._apply(tournament, plan)

    def commit_finale(self, tournament: "Tournament") -> None:
        """Score the finale and close the tournament."""
        rows = self._prepare(tournament, PHASE_FINALE)
        station_count = tournament.config.station_count
        multipliers = tournament.config.finale_increment

        plan = []
        for row in rows:
            series = tournament.participants[row.nickname].current_series
            if row.has_manual_score:
                points = row.manual_score
            else:
                multiplier = (
                    multipliers[series - 1] if series <= len(multipliers) else 1
                )
                points = (station_count - row.finish_position + 1) * multiplier
            plan.append(PlannedResult(row, FINISHED_SERIES, FINISHED_SLOT, points))
        self._apply(tournament, plan)

    # ========== Scoring and Placement ==========

    def race_points(
        self, tournament: "Tournament", row: TemporaryResult, series: int
    ) -> int:
        """Points for an intermediate or pre-finale race.

        A manual override replaces the formula
        ``(stations - position + 1) + (series_count - series) * increment``.
        """
        if row.has_manual_score:
            return row.manual_score
        config = tournament.config
        return (config.station_count - row.finish_position + 1) + (
            config.series_count - series
        ) * config.series_increment

    def next_placement(
        self, tournament: "Tournament", series: int, finish_position: int
    ) -> Placement:
        """Series and slot after an intermediate race.

        The best ``series_threshold`` finishers move up one series and the
        worst move down, never leaving ``1..series_count``. Movers start
        from the reverse of their finishing order, except when entering the
        top series from the second one or the bottom series from the one
        above it, where they keep their finishing order.

        Returns:
            (next_series, next_slot)
        """
        config = tournament.config
        station_count = config.station_count
        threshold = config.series_threshold
        series_count = config.series_count

        next_series = series
        if finish_position <= threshold and series > 1:
            next_series = series - 1
        elif finish_position > station_count - threshold and series < series_count:
            next_series = series + 1

        keeps_order = threshold > 0 and (
            (next_series == 1 and series == 2)
            or (next_series == series_count and series == series_count - 1)
        )
        if keeps_order:
            next_slot = finish_position
        else:
            next_slot = station_count - finish_position + 1
        return next_series, next_slot

    # ========== Internals ==========

    def _prepare(
        self, tournament: "Tournament", expected_phase: str
    ) -> List[TemporaryResult]:
        """Check the tournament can commit ``expected_phase``.

        Returns:
            Staged rows sorted by series then finishing position
        """
        if not tournament.reviewed:
            raise TournamentStateException(
                "Cannot commit a race before the grouping is approved"
            )
        phase = tournament.phase
        if phase == PHASE_COMPLETE:
            raise TournamentStateException("The tournament is already complete")
        if phase != expected_phase:
            raise TournamentStateException(
                f"Race {tournament.race} is a {phase} race, not {expected_phase}"
            )
        self.staging.ensure_complete(tournament)
        return sorted(tournament.staging_results, key=TemporaryResult.sort_key)

    def _apply(self, tournament: "Tournament", plan: List[PlannedResult]) -> None:
        race = tournament.race
        for planned in plan:
            row = planned.row
            participant = tournament.participants[row.nickname]
            participant.apply_result(
                RaceResult(
                    race_index=race,
                    series=participant.current_series,
                    finish_position=row.finish_position,
                    next_series=planned.next_series,
                    next_slot=planned.next_slot,
                    points_awarded=planned.points_awarded,
                    is_manual_override=row.is_manual_override,
                    manual_score=row.manual_score,
                    starting_slot=participant.current_slot,
                )
            )
            logger.debug(
                f"{row.nickname}: P{row.finish_position} in series {row.series}, "
                f"+{planned.points_awarded} -> series {planned.next_series} "
                f"slot {planned.next_slot}"
            )

        tournament.map_history.append(
            RaceLog(
                race_index=race,
                offered_maps=list(tournament.pending_map_choices),
                selected_map=tournament.selected_map,
                claimed_slots=list(tournament.claimed_slots),
                staged_order=[r.nickname for r in tournament.staging_results],
            )
        )
        self.staging.clear(tournament)
        tournament.pending_map_choices = []
        tournament.selected_map = None
        tournament.race = race + 1

        logger.info(
            f"Committed race {race} of tournament {tournament.code}; "
            f"now at race {tournament.race} ({tournament.phase})"
        )
