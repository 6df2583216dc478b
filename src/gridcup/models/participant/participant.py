"""A racer registered in a tournament."""

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

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .race_result import RaceResult


@dataclass
class Participant:
    """
    A racer and the state carried from one race to the next.

    The nickname is the participant's key inside a tournament. Placement
    (``current_series``/``current_slot``) always describes the *next* race
    to be run; it is assigned by the grouping approval and then by every
    commit.

    Attributes
    ----------
    nickname : str
        Unique key of the participant within the tournament.
    display_name : str
        Name shown on line-ups and standings.
    seeding : int or None
        Optional initial rank, only used for the first grouping and for
        breaking ties on points.
    chat_id : int or None
        Identifier of the registration chat, kept for the registration bot.
    current_series : int
        Series for the next race (1 is the top series, 0 once finished or
        before the grouping is approved).
    current_slot : int
        Starting slot inside ``current_series``.
    cumulative_points : int
        Running total of awarded points.
    history : list of RaceResult
        Committed results, one per race played.

    Notes
    -----
    Only the progression engine and the rewind manager should call
    :meth:`apply_result` and :meth:`revert_last_result`.
    """

    nickname: str
    display_name: str = ""
    seeding: Optional[int] = None
    chat_id: Optional[int] = None

    current_series: int = 0
    current_slot: int = 0
    cumulative_points: int = 0
    history: List[RaceResult] = field(default_factory=list)

    def __post_init__(self):
        if not self.display_name:
            self.display_name = self.nickname

    @property
    def races_played(self) -> int:
        """Number of committed races."""
        return len(self.history)

    @property
    def last_result(self) -> Optional[RaceResult]:
        """Most recent committed result, if any."""
        return self.history[-1] if self.history else None

    def apply_result(self, result: RaceResult) -> None:
        """Append a committed result and move to its placement."""
        self.history.append(result)
        self.cumulative_points += result.points_awarded
        self.current_series = result.next_series
        self.current_slot = result.next_slot

    def revert_last_result(self) -> RaceResult:
        """Remove the most recent result and restore the pre-race state.

        Returns:
            The removed result

        Raises:
            IndexError: If the participant has no committed result
        """
        result = self.history.pop()
        self.cumulative_points -= result.points_awarded
        self.current_series = result.series
        self.current_slot = result.starting_slot
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Serialize participant to dictionary."""
        return {
            "nickname": self.nickname,
            "display_name": self.display_name,
            "seeding": self.seeding,
            "chat_id": self.chat_id,
            "current_series": self.current_series,
            "current_slot": self.current_slot,
            "cumulative_points": self.cumulative_points,
            "history": [r.to_dict() for r in self.history],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Participant":
        """Deserialize participant from dictionary.

        Documents saved by the first web front end used ``name``,
        ``chatId``, ``points``, ``nextserie``, ``nextposition`` and
        ``results``.
        """
        return cls(
            nickname=data["nickname"],
            display_name=data.get("display_name", data.get("name", "")) or "",
            seeding=data.get("seeding"),
            chat_id=data.get("chat_id", data.get("chatId")),
            current_series=data.get("current_series", data.get("nextserie", 0)) or 0,
            current_slot=data.get("current_slot", data.get("nextposition", 0)) or 0,
            cumulative_points=data.get("cumulative_points", data.get("points", 0))
            or 0,
            history=[
                RaceResult.from_dict(r)
                for r in data.get("history", data.get("results", []))
            ],
        )
