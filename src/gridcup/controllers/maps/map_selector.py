"""Weighted random map selection.

Maps are drawn from difficulty tiers with phase-specific weights, without
replacement and without repeating maps used by earlier races.
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

import random
from typing import Iterable, List, Optional, Sequence

from gridcup.constants import MAPS_PER_DRAW, MAX_DRAW_ATTEMPTS
from gridcup.exceptions import MapPoolExhaustedException
from gridcup.models.maps import TierRow
from gridcup.type_hints import DrawPhase
from gridcup.utils import setup_logger

logger = setup_logger(__name__)


class _TierPool:
    """Usable maps of one tier during a single draw."""

    def __init__(self, tier: TierRow, maps: List[str], weight: float):
        self.tier = tier
        self.maps = maps
        self.weight = weight if maps else 0.0


class MapSelector:
    """Draws the maps offered for a race.

    Each pick walks the weighted tiers in table order; a tier whose usable
    pool runs dry stops contributing weight. When no weighted tier can
    supply a map the remaining picks come uniformly from the fallback tier.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        maps_per_draw: int = MAPS_PER_DRAW,
        max_attempts: int = MAX_DRAW_ATTEMPTS,
    ):
        """Initialize the selector.

        Args:
            rng: Random source, a fresh ``random.Random`` when omitted
            maps_per_draw: Number of distinct maps offered per race
            max_attempts: Draws tried per pick before using the fallback tier
        """
        self.random = rng if rng is not None else random.Random()
        self.maps_per_draw = maps_per_draw
        self.max_attempts = max_attempts

    def draw(
        self,
        tier_table: Sequence[TierRow],
        phase: DrawPhase,
        used_maps: Iterable[str] = (),
    ) -> List[str]:
        """Draw ``maps_per_draw`` distinct maps for a race.

        Args:
            tier_table: Tier configuration, in table order
            phase: Phase of the race being prepared
            used_maps: Maps that may not be offered again

        Returns:
            The drawn map identifiers, in draw order

        Raises:
            MapPoolExhaustedException: If the fallback tier cannot complete
                the draw
        """
        excluded = set(used_maps)
        pools = [
            _TierPool(
                tier,
                [m for m in dict.fromkeys(tier.map_pool) if m not in excluded],
                tier.weight_for(phase),
            )
            for tier in tier_table
            if not tier.is_fallback and not tier.is_banned
        ]
        total_weight = sum(pool.weight for pool in pools)

        drawn: List[str] = []
        while len(drawn) < self.maps_per_draw and total_weight > 0:
            pool = self._pick_pool(pools, total_weight)
            if pool is None:
                logger.warning(
                    f"No weighted tier found after {self.max_attempts} attempts"
                )
                break
            map_id = pool.maps[self.random.randrange(len(pool.maps))]
            drawn.append(map_id)
            # A map listed in several tiers leaves all of them
            for other in pools:
                if map_id in other.maps:
                    other.maps.remove(map_id)
                    if not other.maps and other.weight > 0:
                        total_weight -= other.weight
                        other.weight = 0.0
                        logger.debug(f"Tier {other.tier.tier_name} exhausted")

        if len(drawn) < self.maps_per_draw:
            drawn.extend(
                self._draw_fallback(
                    tier_table, excluded | set(drawn), self.maps_per_draw - len(drawn)
                )
            )

        logger.info(f"Drew maps for {phase} race: {drawn}")
        return drawn

    def _pick_pool(
        self, pools: List[_TierPool], total_weight: float
    ) -> Optional[_TierPool]:
        """Locate the tier whose weight span contains a uniform draw."""
        for _ in range(self.max_attempts):
            value = self.random.random() * total_weight
            for pool in pools:
                if pool.weight <= 0:
                    continue
                if value < pool.weight:
                    if pool.maps:
                        return pool
                    break
                value -= pool.weight
        return None

    def _draw_fallback(
        self, tier_table: Sequence[TierRow], excluded: set, count: int
    ) -> List[str]:
        """Draw ``count`` maps uniformly from the fallback tier."""
        available: List[str] = []
        for tier in tier_table:
            if tier.is_fallback:
                available.extend(
                    m for m in tier.map_pool if m not in excluded and m not in available
                )

        if len(available) < count:
            logger.error(
                f"Fallback tier has {len(available)} usable maps, {count} needed"
            )
            raise MapPoolExhaustedException(
                f"Map pool exhausted: {count} more maps needed, "
                f"{len(available)} left in the fallback tier"
            )

        logger.info(f"Drawing {count} maps from the fallback tier")
        return self.random.sample(available, count)
