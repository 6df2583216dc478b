"""Entry point of the ``gridcup`` command."""

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

import argparse
import sys
from typing import List, Optional

from gridcup.constants import DEFAULT_STORE_DIR
from gridcup.utils import set_verbose, setup_logger

from .commands import create_service, execute
from .interactive import run_interactive_mode

logger = setup_logger(__name__)


def _interactive_options(argv: List[str]) -> argparse.Namespace:
    """Global options given together with ``-i``."""
    parser = argparse.ArgumentParser(prog="gridcup", add_help=False)
    parser.add_argument("--interactive", "-i", action="store_true")
    parser.add_argument("--store", default=DEFAULT_STORE_DIR)
    parser.add_argument("--verbose", action="store_true")
    args, _ = parser.parse_known_args(argv)
    return args


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the gridcup CLI.

    Returns:
        Exit code
    """
    argv = list(sys.argv[1:] if argv is None else argv)

    # No arguments or -i: interactive mode
    if not argv or "--interactive" in argv or "-i" in argv:
        options = _interactive_options(argv)
        if options.verbose:
            set_verbose(True)
        try:
            return run_interactive_mode(create_service(options.store))
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            return 130

    try:
        return execute(argv)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
