"""Map tier data class."""

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
from typing import Any, Dict, Tuple

from gridcup.constants import PHASE_WEIGHT_INDEX, TIER_BANNED, TIER_FALLBACK
from gridcup.type_hints import DrawPhase, TierWeights


@dataclass(frozen=True)
class TierRow:
    """A difficulty bucket of maps.

    Attributes
    ----------
    tier_name : str
        Name of the tier. ``"Goat"`` is the fallback pool and ``"Ban"`` is
        never drawn.
    weights : tuple of float
        Selection weight for the qualifying, intermediate and finale phases.
    map_pool : tuple of str
        Map identifiers in this tier.
    """

    tier_name: str
    weights: TierWeights = (0.0, 0.0, 0.0)
    map_pool: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_fallback(self) -> bool:
        return self.tier_name == TIER_FALLBACK

    @property
    def is_banned(self) -> bool:
        return self.tier_name == TIER_BANNED

    def weight_for(self, phase: DrawPhase) -> float:
        """Weight of this tier in ``phase``; fallback and banned tiers weigh 0."""
        if self.is_fallback or self.is_banned:
            return 0.0
        return float(self.weights[PHASE_WEIGHT_INDEX[phase]])

    def to_dict(self) -> Dict[str, Any]:
        """Serialize tier to dictionary."""
        return {
            "tier_name": self.tier_name,
            "weights": list(self.weights),
            "map_pool": list(self.map_pool),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TierRow":
        """Deserialize tier from dictionary."""
        weights = list(data.get("weights", [0, 0, 0]))
        weights += [0] * (3 - len(weights))
        return cls(
            tier_name=data["tier_name"],
            weights=tuple(float(w) for w in weights[:3]),
            map_pool=tuple(data.get("map_pool", [])),
        )
