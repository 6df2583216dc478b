"""Tournament controllers for Grid Cup.

Stateless managers operating on a :class:`~gridcup.models.tournament.Tournament`.
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

from .progression_engine import PlannedResult, ProgressionEngine
from .rewind_manager import RewindManager
from .staging_area import StagingArea
from .standings import standing_rows, standings

__all__ = [
    "ProgressionEngine",
    "PlannedResult",
    "RewindManager",
    "StagingArea",
    "standings",
    "standing_rows",
]
