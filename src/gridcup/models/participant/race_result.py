"""Race result data class."""

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
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class RaceResult:
    """A committed result of one participant in one race.

    Attributes
    ----------
    race_index : int
        Race the result belongs to (1-indexed).
    series : int
        Series the participant raced in.
    finish_position : int
        Arrival position inside the series.
    next_series : int
        Series assigned for the following race (0 after the finale).
    next_slot : int
        Slot assigned for the following race (0 after the finale).
    points_awarded : int
        Points added to the participant's total by this race.
    is_manual_override : bool
        Whether the race director overrode the points.
    manual_score : int or None
        The override value, if one was given.
    starting_slot : int
        Slot the participant started this race from; restored on rewind.
    """

    race_index: int
    series: int
    finish_position: int
    next_series: int
    next_slot: int
    points_awarded: int
    is_manual_override: bool = False
    manual_score: Optional[int] = None
    starting_slot: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize race result to dictionary."""
        return {
            "race_index": self.race_index,
            "series": self.series,
            "finish_position": self.finish_position,
            "next_series": self.next_series,
            "next_slot": self.next_slot,
            "points_awarded": self.points_awarded,
            "is_manual_override": self.is_manual_override,
            "manual_score": self.manual_score,
            "starting_slot": self.starting_slot,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RaceResult":
        """Deserialize race result from dictionary.

        Older documents stored ``race``, ``serie``, ``position``,
        ``nextserie``, ``nextposition``, ``points``, ``manual`` and
        ``startingposition``; they are mapped to the current names here.
        """
        return cls(
            race_index=data.get("race_index", data.get("race", 0)),
            series=data.get("series", data.get("serie", 0)),
            finish_position=data.get("finish_position", data.get("position", 0)),
            next_series=data.get("next_series", data.get("nextserie", 0)),
            next_slot=data.get("next_slot", data.get("nextposition", 0)),
            points_awarded=data.get("points_awarded", data.get("points", 0)),
            is_manual_override=bool(
                data.get("is_manual_override", data.get("manual", False))
            ),
            manual_score=data.get("manual_score", data.get("manualScore")),
            starting_slot=data.get(
                "starting_slot", data.get("startingposition", 0)
            ),
        )
