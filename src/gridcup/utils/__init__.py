"""Shared utilities for Grid Cup."""

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

import logging

ROOT_LOGGER_NAME = "gridcup"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Return a logger attached to the shared ``gridcup`` handler.

    The stream handler is installed once on the package root logger; module
    loggers only propagate to it.

    Args:
        name: Logger name, usually ``__name__``
        level: Level for the package root logger on first setup

    Returns:
        The configured logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(level)
    return logging.getLogger(name)


def set_verbose(verbose: bool = True) -> None:
    """Switch the package loggers between DEBUG and INFO."""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(
        logging.DEBUG if verbose else logging.INFO
    )
