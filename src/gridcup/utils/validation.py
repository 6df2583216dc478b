"""Validation utilities for Grid Cup.

This module provides reusable validation functions with consistent error handling.
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

from datetime import date, datetime
from typing import List, Optional, Union

from dateutil import parser as date_parser

from gridcup.exceptions import InvalidConfigurationException


class ValidationResult:
    """Result of a validation operation.

    Attributes:
        is_valid: Whether the validation passed
        error_message: Human-readable error message if invalid
        sanitized_value: Cleaned/normalized value if valid
    """

    def __init__(
        self,
        is_valid: bool,
        error_message: Optional[str] = None,
        sanitized_value=None,
    ):
        self.is_valid = is_valid
        self.error_message = error_message
        self.sanitized_value = sanitized_value

    def __bool__(self) -> bool:
        """Allow using result in boolean context: if result: ..."""
        return self.is_valid

    def __repr__(self) -> str:
        if self.is_valid:
            return f"ValidationResult(VALID, {self.sanitized_value!r})"
        return f"ValidationResult(INVALID, {self.error_message!r})"


def _raise_if_invalid(result: ValidationResult):
    if not result.is_valid:
        raise InvalidConfigurationException(result.error_message)
    return result.sanitized_value


# ========== Nickname Validation ==========


def validate_nickname(nickname: Optional[str]) -> ValidationResult:
    """Validate a participant nickname.

    Nicknames are the unique key of a participant, so surrounding whitespace
    is stripped and an empty value is rejected.
    """
    if nickname is None or not str(nickname).strip():
        return ValidationResult(False, "Nickname is required")
    return ValidationResult(True, sanitized_value=str(nickname).strip())


def validate_seeding(seeding: Optional[int]) -> ValidationResult:
    """Validate an optional initial seeding (a positive rank)."""
    if seeding is None or seeding == "":
        return ValidationResult(True, sanitized_value=None)
    try:
        value = int(seeding)
    except (TypeError, ValueError):
        return ValidationResult(False, f"Seeding must be a number: {seeding!r}")
    if value < 1:
        return ValidationResult(False, f"Seeding must be at least 1, got {value}")
    return ValidationResult(True, sanitized_value=value)


# ========== Date Validation ==========


def validate_event_date(value: Union[str, date, None]) -> ValidationResult:
    """Validate an event date and normalize it to ``YYYY-MM-DD``.

    Accepts anything python-dateutil can parse ("2025-03-14", "14 March 2025",
    "03/14/2025") as well as ``date``/``datetime`` objects.

    Example:
        >>> validate_event_date("14 March 2025").sanitized_value
        '2025-03-14'
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return ValidationResult(False, "Event date is required")
    if isinstance(value, datetime):
        return ValidationResult(True, sanitized_value=value.date().isoformat())
    if isinstance(value, date):
        return ValidationResult(True, sanitized_value=value.isoformat())
    if not isinstance(value, str):
        return ValidationResult(False, f"Invalid event date: {value!r}")
    try:
        parsed = date_parser.parse(value.strip())
    except (ValueError, OverflowError):
        return ValidationResult(False, f"Invalid event date: {value}")
    return ValidationResult(True, sanitized_value=parsed.date().isoformat())


# ========== Tournament Settings Validation ==========


def validate_positive(value, name: str) -> ValidationResult:
    """Validate that ``value`` is an integer of at least 1."""
    if isinstance(value, bool) or not isinstance(value, int):
        return ValidationResult(False, f"{name} must be an integer, got {value!r}")
    if value < 1:
        return ValidationResult(False, f"{name} must be at least 1, got {value}")
    return ValidationResult(True, sanitized_value=value)


def validate_tournament_settings(
    station_count: int, total_players: int, max_races: int
) -> None:
    """Validate creation settings and raise if any is invalid.

    Raises:
        InvalidConfigurationException: If a setting is invalid
    """
    _raise_if_invalid(validate_positive(station_count, "Station count"))
    _raise_if_invalid(validate_positive(total_players, "Total players"))
    _raise_if_invalid(validate_positive(max_races, "Number of races"))


def validate_grouping_policy(
    series_increment: int,
    series_threshold: int,
    finale_increment: List[int],
    station_count: int,
    series_count: int,
) -> None:
    """Validate the promotion/relegation policy approved at review.

    Args:
        series_increment: Bonus points per series distance from the bottom
        series_threshold: Finishers promoted/relegated per series
        finale_increment: One finale multiplier per series
        station_count: Capacity of one series
        series_count: Number of series in play

    Raises:
        InvalidConfigurationException: If the policy is invalid
    """
    if isinstance(series_increment, bool) or not isinstance(series_increment, int):
        raise InvalidConfigurationException(
            f"Series increment must be an integer, got {series_increment!r}"
        )
    if series_increment < 0:
        raise InvalidConfigurationException(
            f"Series increment cannot be negative, got {series_increment}"
        )

    max_threshold = station_count // 2
    if isinstance(series_threshold, bool) or not isinstance(series_threshold, int):
        raise InvalidConfigurationException(
            f"Series threshold must be an integer, got {series_threshold!r}"
        )
    if not 0 <= series_threshold <= max_threshold:
        raise InvalidConfigurationException(
            f"Series threshold must be between 0 and {max_threshold}, "
            f"got {series_threshold}"
        )

    if len(finale_increment) != series_count:
        raise InvalidConfigurationException(
            f"Expected {series_count} finale multipliers, got {len(finale_increment)}"
        )
    for multiplier in finale_increment:
        if isinstance(multiplier, bool) or not isinstance(multiplier, int):
            raise InvalidConfigurationException(
                f"Finale multiplier must be an integer, got {multiplier!r}"
            )
        if multiplier < 1:
            raise InvalidConfigurationException(
                f"Finale multiplier must be at least 1, got {multiplier}"
            )
