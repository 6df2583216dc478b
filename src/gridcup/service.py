"""Tournament service.

Every operation is one synchronous read-modify-write of a single tournament
document: load, apply the change through the aggregate, save with the
loaded version. Operations on the same code are serialized in-process, and
the store's version check refuses saves that raced with another process.
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
import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from gridcup.constants import (
    DEFAULT_MAX_RACES,
    DEFAULT_SERIES_INCREMENT,
    DEFAULT_SERIES_THRESHOLD,
)
from gridcup.exceptions import MapPoolExhaustedException
from gridcup.models.maps import TierRow
from gridcup.models.participant import Participant, TemporaryResult
from gridcup.models.tournament import Tournament
from gridcup.storage import JsonTournamentStore
from gridcup.type_hints import Grouping, StagedRow
from gridcup.utils import setup_logger
from gridcup.utils.tier_codec import decode_tier_list

logger = setup_logger(__name__)

T = TypeVar("T")


class TournamentService:
    """Operations on stored tournaments, addressed by code."""

    def __init__(
        self,
        store: Optional[JsonTournamentStore] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the service.

        Args:
            store: Document store, a store in the default directory when omitted
            rng: Random source handed to every loaded tournament's map draw
        """
        self.store = store if store is not None else JsonTournamentStore()
        self.rng = rng
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, code: str) -> threading.Lock:
        with self._locks_guard:
            if code not in self._locks:
                self._locks[code] = threading.Lock()
            return self._locks[code]

    def _update(self, code: str, operation: Callable[[Tournament], T]) -> T:
        """Load ``code``, apply ``operation`` and save the result.

        Nothing is saved when ``operation`` raises.
        """
        with self._lock_for(code):
            tournament = self.store.load(code, rng=self.rng)
            loaded_version = tournament.version
            result = operation(tournament)
            self.store.save(tournament, expected_version=loaded_version)
            return result

    # ========== Tournament Lifecycle ==========

    def create_tournament(
        self,
        code: str,
        name: str,
        date,
        station_count: int,
        total_players: int,
        max_races: int = DEFAULT_MAX_RACES,
        tier_table: Optional[Sequence[TierRow]] = None,
        tier_code: Optional[str] = None,
    ) -> Tournament:
        """Create and store a new tournament at race 1.

        Args:
            tier_table: Map tiers for the map draw
            tier_code: Tier-list code, decoded when no ``tier_table`` is given

        Raises:
            DuplicateTournamentException: If the code is taken
            InvalidConfigurationException: If a setting is invalid
            InvalidTierListException: If ``tier_code`` cannot be decoded
        """
        if tier_table is None and tier_code:
            tier_table = decode_tier_list(tier_code)
        tournament = Tournament.create(
            code,
            name,
            date,
            station_count,
            total_players,
            max_races=max_races,
            tier_table=tier_table,
            rng=self.rng,
        )
        with self._lock_for(tournament.code):
            return self.store.create(tournament)

    def get_tournament(self, code: str) -> Tournament:
        return self.store.load(code, rng=self.rng)

    def delete_tournament(self, code: str) -> None:
        with self._lock_for(code):
            self.store.delete(code)

    def list_codes(self) -> List[str]:
        return self.store.list_codes()

    def set_tier_list(self, code: str, tier_code: str) -> List[TierRow]:
        """Replace the map tiers of ``code`` with a decoded tier-list code."""
        tier_table = decode_tier_list(tier_code)
        self._update(code, lambda t: t.set_tier_table(tier_table))
        return tier_table

    # ========== Registration ==========

    def add_participant(
        self,
        code: str,
        nickname: str,
        display_name: str = "",
        seeding: Optional[int] = None,
        chat_id: Optional[int] = None,
    ) -> Participant:
        return self._update(
            code, lambda t: t.add_participant(nickname, display_name, seeding, chat_id)
        )

    def remove_participant(self, code: str, nickname: str) -> Participant:
        return self._update(code, lambda t: t.remove_participant(nickname))

    def set_seeding(
        self, code: str, nickname: str, seeding: Optional[int]
    ) -> Participant:
        return self._update(code, lambda t: t.set_seeding(nickname, seeding))

    def close_registration(self, code: str) -> Tournament:
        def operation(tournament: Tournament) -> Tournament:
            tournament.close_registration()
            return tournament

        return self._update(code, operation)

    def set_grouping_policy(
        self,
        code: str,
        series_increment: int = DEFAULT_SERIES_INCREMENT,
        series_threshold: int = DEFAULT_SERIES_THRESHOLD,
        finale_increment: Optional[List[int]] = None,
        grouping: Optional[Grouping] = None,
    ) -> Tournament:
        """Approve the grouping and promotion policy of ``code``."""

        def operation(tournament: Tournament) -> Tournament:
            tournament.set_grouping_policy(
                series_increment, series_threshold, finale_increment, grouping
            )
            return tournament

        return self._update(code, operation)

    # ========== Races ==========

    def stage_series_result(
        self, code: str, series: int, rows: Sequence[StagedRow]
    ) -> List[TemporaryResult]:
        return self._update(code, lambda t: t.stage_series_result(series, rows))

    def draw_maps(self, code: str) -> List[str]:
        """Draw and store the map offers for the race in progress."""
        try:
            return self._update(code, lambda t: t.draw_maps())
        except MapPoolExhaustedException:
            logger.error(
                f"Map pool of tournament {code} is exhausted; "
                f"the tier list needs more fallback maps"
            )
            raise

    def select_map(self, code: str, map_id: Optional[str]) -> Optional[str]:
        return self._update(code, lambda t: t.select_map(map_id))

    def commit(self, code: str) -> str:
        """Commit the race in progress; returns the committed phase."""
        return self._update(code, lambda t: t.commit())

    def rewind(self, code: str) -> List[TemporaryResult]:
        """Undo the last commit; returns the restored staged results."""
        return self._update(code, lambda t: t.rewind())

    def standings(self, code: str) -> List[Participant]:
        return self.get_tournament(code).get_standings()

    def standing_rows(self, code: str) -> List[Tuple[int, Participant]]:
        return self.get_tournament(code).get_standing_rows()
