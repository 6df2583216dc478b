"""Standings view: participants ranked by points."""

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

from typing import Iterable, List, Tuple

from gridcup.models.participant import Participant

from .grouping import points_order


def standings(participants: Iterable[Participant]) -> List[Participant]:
    """Participants ordered by cumulative points, best first."""
    return points_order(participants)


def standing_rows(participants: Iterable[Participant]) -> List[Tuple[int, Participant]]:
    """(rank, participant) pairs; equal points share a rank."""
    rows = []
    rank = 0
    previous = None
    for index, participant in enumerate(standings(participants), start=1):
        if participant.cumulative_points != previous:
            rank = index
            previous = participant.cumulative_points
        rows.append((rank, participant))
    return rows
