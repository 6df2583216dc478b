"""JSON file store for tournaments.

One document per tournament, ``<directory>/<code>.json``, holding
``Tournament.to_dict()``. Saves are atomic (temporary file then rename) and
guarded by the tournament ``version``: a save is refused when the stored
document has moved on since the tournament was loaded.
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

import json
import os
import random
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from gridcup.constants import DEFAULT_STORE_DIR, SAVE_FILE_EXTENSION
from gridcup.exceptions import (
    ConcurrentModificationException,
    DuplicateTournamentException,
    FileLoadException,
    FileSaveException,
    InvalidConfigurationException,
    TournamentNotFoundException,
)
from gridcup.models.tournament import Tournament
from gridcup.utils import setup_logger

logger = setup_logger(__name__)

# Codes become file names
_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class JsonTournamentStore:
    """Stores each tournament as a JSON document in a directory."""

    def __init__(self, directory: Union[str, Path] = DEFAULT_STORE_DIR):
        self.directory = Path(directory)

    def path_for(self, code: str) -> Path:
        """File holding the tournament ``code``.

        Raises:
            InvalidConfigurationException: If the code cannot be a file name
        """
        if not code or not _CODE_PATTERN.match(code):
            raise InvalidConfigurationException(
                f"Invalid tournament code {code!r}: use letters, digits, '-' or '_'"
            )
        return self.directory / f"{code}{SAVE_FILE_EXTENSION}"

    def exists(self, code: str) -> bool:
        return self.path_for(code).exists()

    def list_codes(self) -> List[str]:
        """Codes of every stored tournament, sorted."""
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*{SAVE_FILE_EXTENSION}"))

    def load_document(self, code: str) -> Dict[str, Any]:
        """Read the raw document of ``code``.

        Raises:
            TournamentNotFoundException: If no document exists
            FileLoadException: If the file cannot be read or parsed
        """
        path = self.path_for(code)
        if not path.exists():
            raise TournamentNotFoundException(f"Tournament not found: {code}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Could not read {path}: {e}")
            raise FileLoadException(f"Could not load tournament {code}: {e}") from e
        if not isinstance(data, dict):
            raise FileLoadException(f"Tournament file {path} is not a JSON object")
        return data

    def load(self, code: str, rng: Optional[random.Random] = None) -> Tournament:
        """Load the tournament ``code``.

        Raises:
            TournamentNotFoundException: If no document exists
            FileLoadException: If the document is unreadable or malformed
        """
        data = self.load_document(code)
        try:
            tournament = Tournament.from_dict(data, rng=rng)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed tournament document {code}: {e!r}")
            raise FileLoadException(
                f"Tournament {code} has a malformed document: {e!r}"
            ) from e
        logger.debug(f"Loaded tournament {code} at version {tournament.version}")
        return tournament

    def stored_version(self, code: str) -> Optional[int]:
        """Version of the stored document, ``None`` when there is none."""
        if not self.exists(code):
            return None
        return int(self.load_document(code).get("version", 0))

    def create(self, tournament: Tournament) -> Tournament:
        """Store a new tournament.

        Raises:
            DuplicateTournamentException: If the code is already stored
        """
        if self.exists(tournament.code):
            raise DuplicateTournamentException(
                f"Tournament already exists: {tournament.code}"
            )
        tournament.version = 0
        return self.save(tournament, expected_version=None)

    def save(
        self, tournament: Tournament, expected_version: Optional[int] = None
    ) -> Tournament:
        """Write ``tournament`` and bump its version.

        Args:
            tournament: Tournament to write
            expected_version: Version the caller loaded; ``None`` skips the
                check (first save)

        Raises:
            ConcurrentModificationException: If the stored version differs
                from ``expected_version``
            FileSaveException: If the file cannot be written
        """
        if expected_version is not None:
            current = self.stored_version(tournament.code)
            if current != expected_version:
                logger.warning(
                    f"Refused stale save of {tournament.code}: loaded version "
                    f"{expected_version}, stored version {current}"
                )
                raise ConcurrentModificationException(
                    f"Tournament {tournament.code} was modified concurrently "
                    f"(expected version {expected_version}, found {current})"
                )

        path = self.path_for(tournament.code)
        data = tournament.to_dict()
        data["version"] = tournament.version + 1
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{tournament.code}-", suffix=".tmp", dir=self.directory
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=4)
                os.replace(temp_name, path)
            except BaseException:
                if os.path.exists(temp_name):
                    os.unlink(temp_name)
                raise
        except OSError as e:
            logger.error(f"Could not write {path}: {e}")
            raise FileSaveException(
                f"Could not save tournament {tournament.code}: {e}"
            ) from e

        tournament.version = data["version"]
        logger.debug(
            f"Saved tournament {tournament.code} at version {tournament.version}"
        )
        return tournament

    def delete(self, code: str) -> None:
        """Delete the document of ``code``.

        Raises:
            TournamentNotFoundException: If no document exists
        """
        path = self.path_for(code)
        if not path.exists():
            raise TournamentNotFoundException(f"Tournament not found: {code}")
        try:
            path.unlink()
        except OSError as e:
            raise FileSaveException(f"Could not delete tournament {code}: {e}") from e
        logger.info(f"Deleted tournament {code}")
