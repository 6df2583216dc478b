"""Partitioning of the field into series.

All functions here are pure: they take ordered sequences and return new
lists without touching the participants.
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

import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from gridcup.models.participant import Participant

T = TypeVar("T")

# Unseeded participants sort after every seeded one
_UNSEEDED = math.inf


def series_count_for(player_count: int, station_count: int) -> int:
    """Number of series needed to seat ``player_count`` racers."""
    if player_count <= 0:
        return 0
    return math.ceil(player_count / station_count)


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """Split ``items`` into consecutive chunks of at most ``size``.

    Order is preserved within and across chunks; only the last chunk can be
    shorter. An empty sequence gives an empty list.
    """
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def _seed_key(participant: Participant) -> float:
    return participant.seeding if participant.seeding is not None else _UNSEEDED


def seeding_order(participants: Iterable[Participant]) -> List[Participant]:
    """Order participants for the initial grouping.

    Ascending seeding, unseeded participants last; registration order is
    kept otherwise (the sort is stable).
    """
    return sorted(participants, key=_seed_key)


def points_key(participant: Participant, points: Optional[int] = None) -> Tuple:
    """Sort key for ranking on points, best first.

    Ties on points go to the lower seeding (unseeded last), then to the
    nickname.
    """
    total = participant.cumulative_points if points is None else points
    return (-total, _seed_key(participant), participant.nickname)


def points_order(
    participants: Iterable[Participant],
    points: Optional[Dict[str, int]] = None,
) -> List[Participant]:
    """Order participants by cumulative points, best first.

    Args:
        participants: Participants to rank
        points: Optional totals to rank on instead of ``cumulative_points``
            (keyed by nickname), used while a commit is being planned

    Returns:
        A new ranked list
    """
    if points is None:
        return sorted(participants, key=points_key)
    return sorted(participants, key=lambda p: points_key(p, points[p.nickname]))


def initial_grouping(
    participants: Iterable[Participant], station_count: int
) -> List[List[Participant]]:
    """Series for the qualifying race, chunked in seeding order."""
    return chunk(seeding_order(participants), station_count)


def finale_grouping(
    participants: Iterable[Participant],
    station_count: int,
    points: Optional[Dict[str, int]] = None,
) -> List[List[Participant]]:
    """Series for the finale, chunked in points order."""
    return chunk(points_order(participants, points), station_count)


def lineup(participants: Iterable[Participant], series: int) -> List[Participant]:
    """Members of ``series`` ordered by their starting slot."""
    members = [p for p in participants if p.current_series == series]
    return sorted(members, key=lambda p: p.current_slot)


def reorder_by_arrival(
    members: Sequence[Participant], claimed_slots: Sequence[int]
) -> List[Participant]:
    """Order a series line-up by the slots claimed in the previous series.

    Row ``k`` of the result holds the member whose starting slot equals
    ``claimed_slots[k]``. Members whose slot was not claimed keep their
    relative order after the matched ones.

    Args:
        members: Line-up of the series to reorder
        claimed_slots: Slot numbers in arrival order

    Returns:
        A new list holding every member exactly once
    """
    by_slot = {p.current_slot: p for p in members}
    ordered: List[Participant] = []
    seen = set()
    for slot in claimed_slots:
        participant = by_slot.get(slot)
        if participant is not None and participant.nickname not in seen:
            ordered.append(participant)
            seen.add(participant.nickname)
    ordered.extend(p for p in members if p.nickname not in seen)
    return ordered
