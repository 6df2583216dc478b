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

# --- Constants ---
SAVE_FILE_EXTENSION = ".json"
DEFAULT_STORE_DIR = "tournaments"

# Tournament defaults
DEFAULT_MAX_RACES = 5
DEFAULT_SERIES_INCREMENT = 1
DEFAULT_SERIES_THRESHOLD = 1
DEFAULT_FINALE_MULTIPLIER = 1

# Phases (for display and tier weight lookup)
PHASE_QUALIFYING = "qualifying"
PHASE_INTERMEDIATE = "intermediate"
PHASE_PRE_FINALE = "pre_finale"
PHASE_FINALE = "finale"
PHASE_COMPLETE = "complete"

PHASE_NAMES = {
    PHASE_QUALIFYING: "Qualifying",
    PHASE_INTERMEDIATE: "Race",
    PHASE_PRE_FINALE: "Last race before the finale",
    PHASE_FINALE: "Finale",
    PHASE_COMPLETE: "Complete",
}

# Column of TierRow.weights used by each phase. The race that leads into the
# finale is still drawn with the intermediate weights.
PHASE_WEIGHT_INDEX = {
    PHASE_QUALIFYING: 0,
    PHASE_INTERMEDIATE: 1,
    PHASE_PRE_FINALE: 1,
    PHASE_FINALE: 2,
}

# Map draw
MAPS_PER_DRAW = 4
MAX_DRAW_ATTEMPTS = 10

# Tier names as written by the tier-list page
TIER_EASY = "Facile"
TIER_NORMAL = "Normale"
TIER_HARD = "Difficile"
TIER_EXTREME = "Adlitam"
TIER_FALLBACK = "Goat"  # zero weight, drawn only when every weighted pool is empty
TIER_BANNED = "Ban"  # never drawn

# Order of the chart points in a tier-list code
WEIGHTED_TIERS = [TIER_EASY, TIER_NORMAL, TIER_HARD, TIER_EXTREME]

# Chart rows in a tier-list code: qualifying, intermediate, finale
TIER_CHART_COUNT = 3

# Terminal placement assigned by the finale
FINISHED_SERIES = 0
FINISHED_SLOT = 0
