"""Staged (uncommitted) result data class."""

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


@dataclass
class TemporaryResult:
    """A finishing position entered for the race in progress.

    Attributes
    ----------
    nickname : str
        Participant the row belongs to.
    series : int
        Series the participant raced in.
    finish_position : int
        Arrival position inside the series.
    is_manual_override : bool
        Whether the race director overrides the computed points.
    manual_score : int or None
        Points to award instead of the formula, when overriding.
    starting_slot : int
        Slot the participant started from.
    """

    nickname: str
    series: int
    finish_position: int
    is_manual_override: bool = False
    manual_score: Optional[int] = None
    starting_slot: int = 0

    @property
    def has_manual_score(self) -> bool:
        """True when the override replaces the points formula."""
        return self.is_manual_override and self.manual_score is not None

    def sort_key(self):
        return (self.series, self.finish_position)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize staged result to dictionary."""
        return {
            "nickname": self.nickname,
            "series": self.series,
            "finish_position": self.finish_position,
            "is_manual_override": self.is_manual_override,
            "manual_score": self.manual_score,
            "starting_slot": self.starting_slot,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TemporaryResult":
        """Deserialize staged result from dictionary.

        The manual override went through two renamings in stored data
        (``beer`` then ``manual`` for the flag, ``points`` then
        ``manualScore`` for the value). All of them are normalized here so
        the rest of the code only sees the current names.
        """
        is_manual = data.get("is_manual_override")
        if is_manual is None:
            is_manual = data.get("manual")
        if is_manual is None:
            is_manual = data.get("beer", False)

        if "manual_score" in data:
            manual_score = data["manual_score"]
        elif "manualScore" in data:
            manual_score = data["manualScore"]
        else:
            manual_score = data.get("points")

        return cls(
            nickname=data["nickname"],
            series=int(data.get("series", data.get("serie", 0))),
            finish_position=int(
                data.get("finish_position", data.get("position", 0))
            ),
            is_manual_override=bool(is_manual),
            manual_score=manual_score if is_manual else None,
            starting_slot=int(
                data.get("starting_slot", data.get("startingposition", 0)) or 0
            ),
        )
