"""Exceptions for use in Grid Cup"""

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

from typing import List, Optional


# ========== Base Application Exception ==========


class GridCupException(Exception):
    """Base exception for all Grid Cup errors.

    All custom exceptions in the application inherit from this class, so
    callers can catch every application-specific error with one clause.
    """

    pass


# ========== Tournament Exceptions ==========


class TournamentException(GridCupException):
    """Base exception for tournament-related errors."""

    pass


class TournamentNotFoundException(TournamentException):
    """Raised when no tournament exists for the requested code."""

    pass


class DuplicateTournamentException(TournamentException):
    """Raised when creating a tournament with a code already in use."""

    pass


class TournamentStateException(TournamentException):
    """Raised when tournament is in an invalid state for the requested operation."""

    pass


class TournamentFullException(TournamentStateException):
    """Raised when registering a participant in a full tournament."""

    pass


class NothingToRewindException(TournamentStateException):
    """Raised when rewinding a tournament that has not committed any race."""

    pass


class IncompleteStagingException(TournamentException):
    """Raised when committing a race whose staged results are incomplete.

    Attributes
    ----------
    series : list of int
        Series (1-indexed) whose staged results are missing or invalid.
    """

    def __init__(self, message: str, series: Optional[List[int]] = None):
        super().__init__(message)
        self.series = list(series or [])


class ConcurrentModificationException(TournamentException):
    """Raised when saving a tournament that was modified since it was loaded."""

    pass


# ========== Participant Exceptions ==========


class ParticipantException(GridCupException):
    """Base exception for participant-related errors."""

    pass


class ParticipantNotFoundException(ParticipantException):
    """Raised when a nickname is not registered in the tournament."""

    pass


class DuplicateNicknameException(ParticipantException):
    """Raised when registering a nickname that already exists."""

    pass


class DuplicateSeedException(ParticipantException):
    """Raised when two participants would share the same seeding."""

    pass


# ========== Result Exceptions ==========


class ResultException(GridCupException):
    """Base exception for result recording errors."""

    pass


class InvalidResultException(ResultException):
    """Raised when a staged result is invalid (e.g., position out of range)."""

    pass


# ========== Map Exceptions ==========


class MapException(GridCupException):
    """Base exception for map selection errors."""

    pass


class MapPoolExhaustedException(MapException):
    """Raised when even the fallback tier cannot supply enough maps.

    This is a configuration defect of the tier table, not a runtime
    condition, and must be surfaced to the operator.
    """

    pass


class InvalidMapChoiceException(MapException):
    """Raised when selecting a map that was not offered for this race."""

    pass


class InvalidTierListException(MapException):
    """Raised when a tier-list code cannot be decoded."""

    pass


# ========== Configuration Exceptions ==========


class ConfigurationException(GridCupException):
    """Base exception for configuration errors."""

    pass


class InvalidConfigurationException(ConfigurationException):
    """Raised when tournament settings are invalid."""

    pass


# ========== File/Resource Exceptions ==========


class ResourceException(GridCupException):
    """Base exception for resource-related errors."""

    pass


class FileLoadException(ResourceException):
    """Raised when a file cannot be loaded."""

    pass


class FileSaveException(ResourceException):
    """Raised when a file cannot be saved."""

    pass
