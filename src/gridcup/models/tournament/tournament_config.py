"""TournamentConfig data class."""

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
from typing import Any, Dict, List

from gridcup.constants import (
    DEFAULT_FINALE_MULTIPLIER,
    DEFAULT_MAX_RACES,
    DEFAULT_SERIES_INCREMENT,
    DEFAULT_SERIES_THRESHOLD,
)


@dataclass
class TournamentConfig:
    """Tournament configuration settings.

    Attributes
    ----------
    code : str
        Unique key of the tournament document.
    name : str
        Tournament name.
    date : str
        Event date, ``YYYY-MM-DD``.
    station_count : int
        Capacity of one series (number of stations).
    total_players : int
        Maximum number of registered participants.
    max_races : int
        Number of races, the finale included.
    series_count : int
        Number of series in play.
    series_increment : int
        Bonus points for each series between a racer's series and the
        bottom one.
    series_threshold : int
        Number of finishers promoted and relegated in every series.
    finale_increment : list of int
        Finale points multiplier per series, series 1 first.
    """

    code: str
    name: str
    date: str
    station_count: int
    total_players: int
    max_races: int = DEFAULT_MAX_RACES
    series_count: int = 0
    series_increment: int = DEFAULT_SERIES_INCREMENT
    series_threshold: int = DEFAULT_SERIES_THRESHOLD
    finale_increment: List[int] = field(default_factory=list)

    def __post_init__(self):
        if not self.finale_increment and self.series_count:
            self.finale_increment = [DEFAULT_FINALE_MULTIPLIER] * self.series_count

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        return {
            "code": self.code,
            "name": self.name,
            "date": self.date,
            "station_count": self.station_count,
            "total_players": self.total_players,
            "max_races": self.max_races,
            "series_count": self.series_count,
            "series_increment": self.series_increment,
            "series_threshold": self.series_threshold,
            "finale_increment": list(self.finale_increment),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TournamentConfig":
        """Deserialize configuration from dictionary.

        Also reads the camelCase keys of documents written by the first web
        front end (``stations``, ``totalPlayers``, ``maxraces``,
        ``seriesIncrement``, ``seriesThreshold``, ``finaleincrement``).
        """
        finale = data.get("finale_increment", data.get("finaleincrement")) or []
        return cls(
            code=data["code"],
            name=data.get("name", "Untitled Tournament"),
            date=data.get("date", ""),
            station_count=int(data.get("station_count", data.get("stations"))),
            total_players=int(
                data.get("total_players", data.get("totalPlayers", 0)) or 0
            ),
            max_races=int(
                data.get("max_races", data.get("maxraces", DEFAULT_MAX_RACES))
                or DEFAULT_MAX_RACES
            ),
            series_count=int(data.get("series_count", 0) or 0),
            series_increment=int(
                data.get(
                    "series_increment",
                    data.get("seriesIncrement", DEFAULT_SERIES_INCREMENT),
                )
            ),
            series_threshold=int(
                data.get(
                    "series_threshold",
                    data.get("seriesThreshold", DEFAULT_SERIES_THRESHOLD),
                )
            ),
            finale_increment=[int(m) for m in finale],
        )
