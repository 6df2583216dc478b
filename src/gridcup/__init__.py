"""Grid Cup - multi-race tournament runner.

Racers are grouped into fixed-size series, race a sequence of races, move
between series by promotion and relegation and collect points toward one
standing.
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

from gridcup.models.tournament import Tournament, TournamentConfig
from gridcup.service import TournamentService
from gridcup.storage import JsonTournamentStore

__version__ = "0.1.0"

__all__ = [
    "JsonTournamentStore",
    "Tournament",
    "TournamentConfig",
    "TournamentService",
]
