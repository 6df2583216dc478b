"""Rewind of the last committed race.

This module restores a tournament to the state it had right before its most
recent commit, staged results included, so the race can be corrected and
committed again.
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

from typing import TYPE_CHECKING, List

from gridcup.exceptions import NothingToRewindException, TournamentStateException
from gridcup.models.maps import RaceLog
from gridcup.models.participant import TemporaryResult
from gridcup.utils import setup_logger

if TYPE_CHECKING:
    from gridcup.models.tournament import Tournament

logger = setup_logger(__name__)


class RewindManager:
    """Inverts exactly one committed race.

    For every participant the last result is popped, its points refunded and
    the series/slot it started from restored. The popped results become the
    staged results again and the race's map offers return to the pending
    slot.
    """

    def rewind(self, tournament: "Tournament") -> List[TemporaryResult]:
        """Undo the most recent commit.

        Args:
            tournament: Tournament to rewind

        Returns:
            The restored staged results

        Raises:
            NothingToRewindException: If no race has been committed
            TournamentStateException: If participant histories disagree
        """
        if tournament.race <= 1:
            raise NothingToRewindException("No committed race to rewind")
        self._check_consistent(tournament)

        race = tournament.race - 1
        restored: List[TemporaryResult] = []
        for participant in tournament.participants.values():
            result = participant.revert_last_result()
            restored.append(
                TemporaryResult(
                    nickname=participant.nickname,
                    series=result.series,
                    finish_position=result.finish_position,
                    is_manual_override=result.is_manual_override,
                    manual_score=result.manual_score,
                    starting_slot=result.starting_slot,
                )
            )
            logger.debug(
                f"Rewound {participant.nickname}: -{result.points_awarded} points, "
                f"back to series {result.series} slot {result.starting_slot}"
            )

        log = tournament.map_history.pop() if tournament.map_history else RaceLog(race)
        restored = self._staged_order(restored, log)

        tournament.staging_results = restored
        tournament.claimed_slots = list(log.claimed_slots)
        tournament.pending_map_choices = list(log.offered_maps)
        tournament.selected_map = log.selected_map
        tournament.race = race

        logger.info(f"Rewound tournament {tournament.code} to race {race}")
        return restored

    def _check_consistent(self, tournament: "Tournament") -> None:
        expected = tournament.race - 1
        lengths = {p.nickname: len(p.history) for p in tournament.participants.values()}
        bad = sorted(name for name, length in lengths.items() if length != expected)
        if bad:
            logger.error(
                f"Cannot rewind {tournament.code}: expected {expected} results, "
                f"mismatch for {bad}"
            )
            raise TournamentStateException(
                f"Inconsistent history for {', '.join(bad)}: "
                f"expected {expected} committed results each"
            )

    def _staged_order(
        self, restored: List[TemporaryResult], log: RaceLog
    ) -> List[TemporaryResult]:
        """Put restored rows back in the order they were staged.

        Logs written without a staged order fall back to series and
        position order, as do names the log does not list.
        """
        rows = sorted(restored, key=TemporaryResult.sort_key)
        if not log.staged_order:
            return rows
        rank = {name: index for index, name in enumerate(log.staged_order)}
        return sorted(rows, key=lambda r: rank.get(r.nickname, len(rank)))
