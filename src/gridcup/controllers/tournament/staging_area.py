"""Staging of race results.

This module holds the finishing positions of the race in progress until the
progression engine commits them. Results are entered one series at a time.
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

from typing import TYPE_CHECKING, List, Sequence

from gridcup.exceptions import (
    IncompleteStagingException,
    InvalidResultException,
    ParticipantNotFoundException,
    TournamentStateException,
)
from gridcup.models.participant import TemporaryResult
from gridcup.type_hints import StagedRow
from gridcup.utils import setup_logger

if TYPE_CHECKING:
    from gridcup.models.tournament import Tournament

logger = setup_logger(__name__)


class StagingArea:
    """Validates and stores staged results on a tournament.

    This class is responsible for:
    - Replacing the staged rows of one series at a time
    - Recording the claimed finishing slots in ascending order
    - Deciding whether every series in play has a complete result
    """

    def stage_series_result(
        self,
        tournament: "Tournament",
        series: int,
        rows: Sequence[StagedRow],
    ) -> List[TemporaryResult]:
        """Stage the results of one series, replacing earlier rows.

        Args:
            tournament: Tournament to stage into
            series: Series index (1-indexed)
            rows: (nickname, finish_position, is_manual_override, manual_score)
                tuples; the last two items are optional

        Returns:
            The staged rows of the series, in arrival order

        Raises:
            TournamentStateException: If results cannot be entered now
            ParticipantNotFoundException: If a nickname is not registered
            InvalidResultException: If a row is invalid for the series
        """
        if not tournament.reviewed:
            raise TournamentStateException(
                "Cannot stage results before the grouping is approved"
            )
        if tournament.is_complete:
            raise TournamentStateException("The tournament is already complete")

        members = tournament.series_members(series)
        if not members:
            raise InvalidResultException(f"Series {series} has no participants")
        member_names = {p.nickname for p in members}

        staged: List[TemporaryResult] = []
        seen_names = set()
        seen_positions = set()
        for row in rows:
            entry = self._build_row(tournament, series, row, len(members))
            if entry.nickname not in member_names:
                raise InvalidResultException(
                    f"{entry.nickname} does not race in series {series}"
                )
            if entry.nickname in seen_names:
                raise InvalidResultException(
                    f"{entry.nickname} appears twice in series {series}"
                )
            if entry.finish_position in seen_positions:
                raise InvalidResultException(
                    f"Position {entry.finish_position} is taken twice "
                    f"in series {series}"
                )
            seen_names.add(entry.nickname)
            seen_positions.add(entry.finish_position)
            staged.append(entry)

        staged.sort(key=lambda r: r.finish_position)
        claimed = [r.finish_position for r in staged]
        tournament.staging_results = [
            r for r in tournament.staging_results if r.series != series
        ] + staged
        tournament.claimed_slots = claimed

        logger.info(
            f"Staged {len(staged)}/{len(members)} results for series {series} "
            f"of race {tournament.race}"
        )
        return staged

    def _build_row(
        self, tournament: "Tournament", series: int, row: StagedRow, size: int
    ) -> TemporaryResult:
        if not isinstance(row, (tuple, list)) or len(row) < 2:
            raise InvalidResultException(
                f"Row {row!r} needs a nickname and a finishing position"
            )
        nickname, position = row[0], row[1]
        is_manual = bool(row[2]) if len(row) > 2 else False
        manual_score = row[3] if len(row) > 3 else None

        participant = tournament.participants.get(nickname)
        if participant is None:
            raise ParticipantNotFoundException(f"Unknown participant: {nickname}")

        if isinstance(position, bool) or not isinstance(position, int):
            raise InvalidResultException(
                f"Position of {nickname} must be an integer, got {position!r}"
            )
        if not 1 <= position <= size:
            raise InvalidResultException(
                f"Position {position} of {nickname} is outside 1..{size}"
            )

        if not is_manual:
            manual_score = None
        elif manual_score is not None:
            if isinstance(manual_score, bool) or not isinstance(manual_score, int):
                raise InvalidResultException(
                    f"Manual score of {nickname} must be an integer"
                )
            if manual_score < 0:
                raise InvalidResultException(
                    f"Manual score of {nickname} cannot be negative"
                )

        return TemporaryResult(
            nickname=nickname,
            series=series,
            finish_position=position,
            is_manual_override=is_manual,
            manual_score=manual_score,
            starting_slot=participant.current_slot,
        )

    def series_rows(
        self, tournament: "Tournament", series: int
    ) -> List[TemporaryResult]:
        """Staged rows of ``series`` in arrival order."""
        rows = [r for r in tournament.staging_results if r.series == series]
        return sorted(rows, key=lambda r: r.finish_position)

    def is_series_complete(self, tournament: "Tournament", series: int) -> bool:
        """Whether ``series`` has exactly one valid row per member.

        Positions must be a permutation of ``1..len(series)``.
        """
        members = {p.nickname for p in tournament.series_members(series)}
        rows = self.series_rows(tournament, series)
        if not members or len(rows) != len(members):
            return False
        if {r.nickname for r in rows} != members:
            return False
        return [r.finish_position for r in rows] == list(range(1, len(members) + 1))

    def incomplete_series(self, tournament: "Tournament") -> List[int]:
        """Series in play whose staged result is not complete."""
        return [
            series
            for series in tournament.active_series()
            if not self.is_series_complete(tournament, series)
        ]

    def ensure_complete(self, tournament: "Tournament") -> None:
        """Raise unless every series in play has a complete result.

        Raises:
            IncompleteStagingException: Listing the incomplete series
        """
        if not tournament.active_series():
            raise IncompleteStagingException("No series is in play", [])

        # Rows left over for participants who are no longer in that series
        staged_names = {r.nickname for r in tournament.staging_results}
        for nickname in staged_names:
            if nickname not in tournament.participants:
                raise IncompleteStagingException(
                    f"Staged result for unknown participant {nickname}", []
                )

        incomplete = self.incomplete_series(tournament)
        if incomplete:
            raise IncompleteStagingException(
                f"Results missing or invalid for series {incomplete}", incomplete
            )
        staged_total = len(tournament.staging_results)
        if staged_total != len(tournament.participants):
            raise IncompleteStagingException(
                f"{staged_total} staged results for "
                f"{len(tournament.participants)} participants",
                [],
            )

    def clear(self, tournament: "Tournament") -> None:
        """Empty the staging area."""
        tournament.staging_results = []
        tournament.claimed_slots = []
