"""Main Tournament class - orchestrates all tournament operations.

This is the aggregate root of one tournament: settings, participants,
staged results and map bookkeeping live here, and every operation goes
through the specialized managers it owns.
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
from typing import Any, Dict, List, Optional, Sequence, Tuple

from gridcup.constants import (
    DEFAULT_FINALE_MULTIPLIER,
    DEFAULT_MAX_RACES,
    DEFAULT_SERIES_INCREMENT,
    DEFAULT_SERIES_THRESHOLD,
    PHASE_COMPLETE,
    PHASE_FINALE,
    PHASE_INTERMEDIATE,
    PHASE_PRE_FINALE,
    PHASE_QUALIFYING,
)
from gridcup.exceptions import (
    DuplicateNicknameException,
    DuplicateSeedException,
    InvalidConfigurationException,
    InvalidMapChoiceException,
    ParticipantNotFoundException,
    TournamentFullException,
    TournamentStateException,
)
from gridcup.models.maps import RaceLog, TierRow
from gridcup.models.participant import Participant, TemporaryResult
from .tournament_config import TournamentConfig

from gridcup.controllers.maps import MapSelector
from gridcup.controllers.tournament import (
    ProgressionEngine,
    RewindManager,
    StagingArea,
    standing_rows,
    standings,
)
from gridcup.controllers.tournament.grouping import (
    initial_grouping,
    lineup,
    reorder_by_arrival,
    series_count_for,
)

from gridcup.type_hints import Grouping, Phase, StagedRow
from gridcup.utils import setup_logger
from gridcup.utils.tier_codec import decode_tier_list
from gridcup.utils.validation import (
    _raise_if_invalid,
    validate_event_date,
    validate_grouping_policy,
    validate_nickname,
    validate_seeding,
    validate_tournament_settings,
)

logger = setup_logger(__name__)


class Tournament:
    """Main tournament management class.

    This class coordinates all tournament operations through specialized managers:
    - StagingArea: validates and holds the results of the race in progress
    - ProgressionEngine: commits races and moves participants between series
    - RewindManager: undoes the last commit
    - MapSelector: draws the maps offered for each race

    Lifecycle: participants register until :meth:`close_registration`, the
    grouping is approved with :meth:`set_grouping_policy`, then each race is
    staged, optionally given a map, and committed until the finale.
    """

    def __init__(
        self,
        config: TournamentConfig,
        participants: Optional[Sequence[Participant]] = None,
        tier_table: Optional[Sequence[TierRow]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initialize a tournament.

        Args
        ----
        config: Tournament settings
        participants: Already registered participants
        tier_table: Map tiers used by the map draw
        rng: Random source for the map draw
        """
        self.config = config

        # Nickname -> participant, in registration order
        self.participants: Dict[str, Participant] = {
            p.nickname: p for p in (participants or [])
        }

        # Race in progress (1-indexed)
        self.race = 1
        self.staging_results: List[TemporaryResult] = []
        self.claimed_slots: List[int] = []

        # Maps
        self.tier_table: List[TierRow] = list(tier_table or [])
        self.map_history: List[RaceLog] = []
        self.pending_map_choices: List[str] = []
        self.selected_map: Optional[str] = None

        # Registration closed / grouping approved
        self.started = False
        self.reviewed = False

        # Bumped by the store on every save
        self.version = 0

        # Specialized managers
        self.staging_area = StagingArea()
        self.progression_engine = ProgressionEngine(self.staging_area)
        self.rewind_manager = RewindManager()
        self.map_selector = MapSelector(rng)

    @classmethod
    def create(
        cls,
        code: str,
        name: str,
        date,
        station_count: int,
        total_players: int,
        max_races: int = DEFAULT_MAX_RACES,
        tier_table: Optional[Sequence[TierRow]] = None,
        rng: Optional[random.Random] = None,
    ) -> "Tournament":
        """Create a validated, empty tournament.

        Raises:
            InvalidConfigurationException: If a setting is invalid
        """
        if not code or not str(code).strip():
            raise InvalidConfigurationException("Tournament code is required")
        if not name or not str(name).strip():
            raise InvalidConfigurationException("Tournament name is required")
        validate_tournament_settings(station_count, total_players, max_races)
        event_date = _raise_if_invalid(validate_event_date(date))

        series_count = series_count_for(total_players, station_count)
        config = TournamentConfig(
            code=str(code).strip(),
            name=str(name).strip(),
            date=event_date,
            station_count=station_count,
            total_players=total_players,
            max_races=max_races,
            series_count=series_count,
        )
        tournament = cls(config, tier_table=tier_table, rng=rng)
        logger.info(
            f"Created tournament {config.code} '{config.name}' on {config.date}: "
            f"{total_players} players, {station_count} stations, {max_races} races"
        )
        return tournament

    # ========== Properties ==========

    @property
    def code(self) -> str:
        """Get tournament code."""
        return self.config.code

    @property
    def name(self) -> str:
        """Get tournament name."""
        return self.config.name

    @property
    def phase(self) -> Phase:
        """Phase of the race in progress.

        The finale check comes first, so a two-race tournament goes from
        qualifying straight to the finale.
        """
        max_races = self.config.max_races
        if self.race > max_races:
            return PHASE_COMPLETE
        if self.race == max_races:
            return PHASE_FINALE
        if self.race == 1:
            return PHASE_QUALIFYING
        if self.race == max_races - 1:
            return PHASE_PRE_FINALE
        return PHASE_INTERMEDIATE

    @property
    def is_complete(self) -> bool:
        """Has the finale been committed?"""
        return self.race > self.config.max_races

    # ========== Series Views ==========

    def series_members(self, series: int) -> List[Participant]:
        """Participants placed in ``series``, ordered by starting slot."""
        if series < 1:
            return []
        return lineup(self.participants.values(), series)

    def active_series(self) -> List[int]:
        """Series that hold at least one participant, ascending."""
        series = {p.current_series for p in self.participants.values()}
        return sorted(s for s in series if s > 0)

    def lineups(self) -> Dict[int, List[Participant]]:
        """Line-up of every active series, keyed by series index."""
        return {series: self.series_members(series) for series in self.active_series()}

    def series_sizes(self) -> List[int]:
        """Number of participants in each active series."""
        return [len(members) for members in self.lineups().values()]

    def arrival_lineup(self, series: int) -> List[Participant]:
        """Line-up of ``series`` reordered by the current claimed slots."""
        return reorder_by_arrival(self.series_members(series), self.claimed_slots)

    def next_lineup(self) -> Optional[Tuple[int, List[Participant]]]:
        """Series after the last staged one, in arrival order.

        Returns:
            (series, line-up), or None when nothing is staged or the last
            staged series is the bottom one
        """
        if not self.staging_results:
            return None
        series = self.staging_results[-1].series + 1
        members = self.series_members(series)
        if not members:
            return None
        return series, reorder_by_arrival(members, self.claimed_slots)

    # ========== Participant Management ==========

    def get_participant(self, nickname: str) -> Participant:
        """Look up a participant by nickname.

        Raises:
            ParticipantNotFoundException: If the nickname is not registered
        """
        participant = self.participants.get(nickname)
        if participant is None:
            raise ParticipantNotFoundException(f"Unknown participant: {nickname}")
        return participant

    def add_participant(
        self,
        nickname: str,
        display_name: str = "",
        seeding: Optional[int] = None,
        chat_id: Optional[int] = None,
    ) -> Participant:
        """Register a participant.

        Args:
            nickname: Unique key of the participant
            display_name: Shown name, the nickname when empty
            seeding: Optional initial rank
            chat_id: Registration chat identifier

        Returns:
            The new participant

        Raises:
            TournamentStateException: If registration is closed
            TournamentFullException: If every place is taken
            DuplicateNicknameException: If the nickname is registered
            DuplicateSeedException: If another participant has the seeding
        """
        self._check_registration_open()
        nickname = _raise_if_invalid(validate_nickname(nickname))
        seeding = _raise_if_invalid(validate_seeding(seeding))

        if len(self.participants) >= self.config.total_players:
            logger.warning(f"Tournament {self.code} is full, {nickname} refused")
            raise TournamentFullException(
                f"Tournament is full ({self.config.total_players} players)"
            )
        if nickname in self.participants:
            raise DuplicateNicknameException(f"Nickname already taken: {nickname}")
        self._check_seed_free(seeding)

        participant = Participant(
            nickname=nickname,
            display_name=(display_name or "").strip(),
            seeding=seeding,
            chat_id=chat_id,
        )
        self.participants[nickname] = participant
        logger.info(
            f"Added participant: {participant.display_name} ({nickname}) "
            f"[{len(self.participants)}/{self.config.total_players}]"
        )
        return participant

    def remove_participant(self, nickname: str) -> Participant:
        """Withdraw a participant before registration closes.

        Raises:
            TournamentStateException: If registration is closed
            ParticipantNotFoundException: If the nickname is not registered
        """
        self._check_registration_open()
        participant = self.get_participant(nickname)
        del self.participants[nickname]
        logger.info(f"Removed participant: {participant.display_name} ({nickname})")
        return participant

    def set_seeding(self, nickname: str, seeding: Optional[int]) -> Participant:
        """Set or clear the initial seeding of a participant.

        Raises:
            TournamentStateException: If the grouping is already approved
            ParticipantNotFoundException: If the nickname is not registered
            DuplicateSeedException: If another participant has the seeding
        """
        if self.reviewed:
            raise TournamentStateException(
                "Seeding cannot change once the grouping is approved"
            )
        participant = self.get_participant(nickname)
        seeding = _raise_if_invalid(validate_seeding(seeding))
        self._check_seed_free(seeding, exclude=nickname)
        participant.seeding = seeding
        logger.info(f"Set seeding of {nickname} to {seeding}")
        return participant

    def close_registration(self) -> None:
        """Close registration; the grouping can be reviewed afterwards.

        Raises:
            TournamentStateException: If already closed or nobody registered
        """
        self._check_registration_open()
        if not self.participants:
            raise TournamentStateException(
                "Cannot close registration without participants"
            )
        self.started = True
        logger.info(
            f"Closed registration of {self.code} with "
            f"{len(self.participants)} participants"
        )

    def initial_grouping(self) -> Grouping:
        """Proposed grouping for the qualifying race, in seeding order."""
        return [
            [p.nickname for p in group]
            for group in initial_grouping(
                self.participants.values(), self.config.station_count
            )
        ]

    def set_grouping_policy(
        self,
        series_increment: int = DEFAULT_SERIES_INCREMENT,
        series_threshold: int = DEFAULT_SERIES_THRESHOLD,
        finale_increment: Optional[List[int]] = None,
        grouping: Optional[Grouping] = None,
    ) -> None:
        """Approve the grouping and the promotion policy.

        Args:
            series_increment: Bonus points per series above the bottom one
            series_threshold: Racers promoted and relegated per series
            finale_increment: Finale multiplier per series, all 1 when omitted
            grouping: Nicknames per series; the seeding grouping when omitted

        Raises:
            TournamentStateException: If registration is open or the
                grouping was already approved
            InvalidConfigurationException: If the policy or grouping is invalid
        """
        if not self.started:
            raise TournamentStateException(
                "Close registration before approving the grouping"
            )
        if self.reviewed:
            raise TournamentStateException("The grouping is already approved")

        station_count = self.config.station_count
        series_count = series_count_for(len(self.participants), station_count)
        if finale_increment is None:
            finale_increment = [DEFAULT_FINALE_MULTIPLIER] * series_count
        finale_increment = list(finale_increment)
        validate_grouping_policy(
            series_increment,
            series_threshold,
            finale_increment,
            station_count,
            series_count,
        )

        if grouping is None:
            grouping = self.initial_grouping()
        else:
            self._check_grouping(grouping, series_count)

        for series_index, group in enumerate(grouping, start=1):
            for slot, nickname in enumerate(group, start=1):
                participant = self.participants[nickname]
                participant.current_series = series_index
                participant.current_slot = slot

        self.config.series_count = series_count
        self.config.series_increment = series_increment
        self.config.series_threshold = series_threshold
        self.config.finale_increment = finale_increment
        self.reviewed = True
        logger.info(
            f"Approved grouping of {self.code}: {series_count} series, "
            f"increment {series_increment}, threshold {series_threshold}, "
            f"finale multipliers {finale_increment}"
        )

    def _check_grouping(self, grouping: Grouping, series_count: int) -> None:
        if len(grouping) != series_count:
            raise InvalidConfigurationException(
                f"Expected {series_count} series, got {len(grouping)}"
            )
        seen = set()
        for index, group in enumerate(grouping, start=1):
            if not group:
                raise InvalidConfigurationException(f"Series {index} is empty")
            if len(group) > self.config.station_count:
                raise InvalidConfigurationException(
                    f"Series {index} has {len(group)} racers for "
                    f"{self.config.station_count} stations"
                )
            for nickname in group:
                if nickname not in self.participants:
                    raise ParticipantNotFoundException(
                        f"Unknown participant: {nickname}"
                    )
                if nickname in seen:
                    raise InvalidConfigurationException(
                        f"{nickname} is placed in more than one series"
                    )
                seen.add(nickname)
        missing = [n for n in self.participants if n not in seen]
        if missing:
            raise InvalidConfigurationException(
                f"Participants without a series: {', '.join(missing)}"
            )

    def _check_registration_open(self) -> None:
        if self.started:
            raise TournamentStateException("Registration is closed")

    def _check_seed_free(
        self, seeding: Optional[int], exclude: Optional[str] = None
    ) -> None:
        if seeding is None:
            return
        for participant in self.participants.values():
            if participant.nickname != exclude and participant.seeding == seeding:
                raise DuplicateSeedException(
                    f"Seeding {seeding} is already held by {participant.nickname}"
                )

    # ========== Race Management ==========

    def stage_series_result(
        self, series: int, rows: Sequence[StagedRow]
    ) -> List[TemporaryResult]:
        """Stage the finishing positions of one series.

        See :meth:`StagingArea.stage_series_result`.
        """
        return self.staging_area.stage_series_result(self, series, rows)

    def incomplete_series(self) -> List[int]:
        """Series still missing a complete staged result."""
        return self.staging_area.incomplete_series(self)

    def commit(self) -> str:
        """Commit the race in progress.

        Returns:
            The phase that was committed
        """
        return self.progression_engine.commit(self)

    def rewind(self) -> List[TemporaryResult]:
        """Undo the last committed race.

        Returns:
            The restored staged results
        """
        return self.rewind_manager.rewind(self)

    # ========== Maps ==========

    def set_tier_table(self, tier_table: Sequence[TierRow]) -> None:
        """Replace the map tiers used by later draws."""
        self.tier_table = list(tier_table)
        logger.info(
            f"Loaded {len(self.tier_table)} map tiers for tournament {self.code}"
        )

    def used_maps(self) -> List[str]:
        """Maps used by committed races, in race order."""
        used: List[str] = []
        for log in self.map_history:
            used.extend(m for m in log.used_maps if m not in used)
        return used

    def draw_maps(self) -> List[str]:
        """Draw the maps offered for the race in progress.

        A new draw replaces the pending offers and clears the selection.

        Raises:
            TournamentStateException: Before the grouping is approved or once
                the tournament is complete
            MapPoolExhaustedException: If the tiers cannot supply enough maps
        """
        if not self.reviewed:
            raise TournamentStateException(
                "Cannot draw maps before the grouping is approved"
            )
        if self.is_complete:
            raise TournamentStateException("The tournament is already complete")

        offers = self.map_selector.draw(self.tier_table, self.phase, self.used_maps())
        self.pending_map_choices = offers
        self.selected_map = None
        return offers

    def select_map(self, map_id: Optional[str]) -> Optional[str]:
        """Choose one of the offered maps, or clear the choice with ``None``.

        Raises:
            InvalidMapChoiceException: If ``map_id`` was not offered
        """
        if map_id is not None and map_id not in self.pending_map_choices:
            raise InvalidMapChoiceException(
                f"{map_id} is not one of the offered maps {self.pending_map_choices}"
            )
        self.selected_map = map_id
        logger.info(f"Selected map for race {self.race}: {map_id}")
        return map_id

    # ========== Standings ==========

    def get_standings(self) -> List[Participant]:
        """Participants by cumulative points, best first."""
        return standings(self.participants.values())

    def get_standing_rows(self) -> List[Tuple[int, Participant]]:
        """(rank, participant) pairs, equal points sharing a rank."""
        return standing_rows(self.participants.values())

    # ========== Serialization ==========

    def to_dict(self) -> Dict[str, Any]:
        """Serialize tournament to dictionary."""
        return {
            "config": self.config.to_dict(),
            "participants": [p.to_dict() for p in self.participants.values()],
            "race": self.race,
            "staging_results": [r.to_dict() for r in self.staging_results],
            "claimed_slots": list(self.claimed_slots),
            "tier_table": [t.to_dict() for t in self.tier_table],
            "map_history": [log.to_dict() for log in self.map_history],
            "pending_map_choices": list(self.pending_map_choices),
            "selected_map": self.selected_map,
            "started": self.started,
            "reviewed": self.reviewed,
            "version": self.version,
        }

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], rng: Optional[random.Random] = None
    ) -> "Tournament":
        """Deserialize tournament from dictionary.

        Flat documents of the first web front end are accepted too: settings
        at the top level, ``temporaryResults``, ``stationsPositions``,
        ``selectedMap`` and a ``tierCode`` instead of a tier table.
        """
        config = TournamentConfig.from_dict(data.get("config", data))

        participants_data = data.get("participants", [])
        if isinstance(participants_data, dict):
            participants_data = list(participants_data.values())
        participants = [Participant.from_dict(p) for p in participants_data]

        if "tier_table" in data:
            tier_table = [TierRow.from_dict(t) for t in data["tier_table"]]
        elif data.get("tierCode"):
            tier_table = decode_tier_list(data["tierCode"])
        else:
            tier_table = []

        tournament = cls(config, participants, tier_table, rng)
        if not config.series_count:
            config.series_count = series_count_for(
                len(participants) or config.total_players, config.station_count
            )
        if not config.finale_increment:
            config.finale_increment = [DEFAULT_FINALE_MULTIPLIER] * config.series_count

        tournament.race = int(data.get("race", 1))
        tournament.staging_results = [
            TemporaryResult.from_dict(r)
            for r in data.get("staging_results", data.get("temporaryResults", []))
        ]
        tournament.claimed_slots = list(
            data.get("claimed_slots", data.get("stationsPositions", []))
        )
        tournament.map_history = [
            RaceLog.from_dict(log) for log in data.get("map_history", [])
        ]
        tournament.pending_map_choices = list(
            data.get("pending_map_choices", [])
        )
        tournament.selected_map = data.get("selected_map", data.get("selectedMap"))
        tournament.started = bool(data.get("started", False))
        tournament.reviewed = bool(data.get("reviewed", False))
        tournament.version = int(data.get("version", 0))
        return tournament

    def __repr__(self) -> str:
        return (
            f"Tournament(code={self.code!r}, race={self.race}, phase={self.phase!r}, "
            f"participants={len(self.participants)})"
        )
