"""Data model for the map bookkeeping of a committed race."""

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


@dataclass
class RaceLog:
    """Maps offered and chosen for one committed race.

    Attributes
    ----------
    race_index : int
        Race the entry belongs to (1-indexed).
    offered_maps : list of str
        Maps drawn for the race, empty when no draw was made.
    selected_map : str or None
        Map picked by the race director, if any.
    claimed_slots : list of int
        Finishing slots claimed in the staging area at commit time.
    staged_order : list of str
        Nicknames in the order their rows sat in the staging area.
    """

    race_index: int
    offered_maps: List[str] = field(default_factory=list)
    selected_map: Optional[str] = None
    claimed_slots: List[int] = field(default_factory=list)
    staged_order: List[str] = field(default_factory=list)

    @property
    def used_maps(self) -> List[str]:
        """Maps that may not be drawn again.

        The chosen map when there is one, otherwise every offered map.
        """
        if self.selected_map is not None:
            return [self.selected_map]
        return list(self.offered_maps)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize race log to dictionary."""
        return {
            "race_index": self.race_index,
            "offered_maps": list(self.offered_maps),
            "selected_map": self.selected_map,
            "claimed_slots": list(self.claimed_slots),
            "staged_order": list(self.staged_order),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RaceLog":
        """Deserialize race log from dictionary."""
        return cls(
            race_index=data["race_index"],
            offered_maps=list(data.get("offered_maps", [])),
            selected_map=data.get("selected_map"),
            claimed_slots=list(data.get("claimed_slots", [])),
            staged_order=list(data.get("staged_order", [])),
        )
