"""Tier-list codes.

A tier-list code is the portable form of a map tier configuration, as
produced by the tier-list authoring page: a JSON payload, zlib-compressed
and base64-encoded. The payload looks like::

    {
        "tiers": {"Facile": [{"id": 1, "src": "...", "alt": "01-Harbour.png"}], ...},
        "charts": [[3, 2, 4, 1], [1, 3, 2, 4], [2, 4, 3, 1]],
        "visiblePoints": [[true, true, true, true], ...],
        "timestamp": 1700000000000
    }

``charts`` holds one row per phase (qualifying, intermediate, finale) and
one column per weighted tier (``Facile``, ``Normale``, ``Difficile``,
``Adlitam``). A point hidden in ``visiblePoints`` weighs 0.
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

import base64
import binascii
import json
import time
import zlib
from typing import Any, Dict, List, Sequence

from gridcup.constants import TIER_CHART_COUNT, WEIGHTED_TIERS
from gridcup.exceptions import InvalidTierListException
from gridcup.models.maps import TierRow

from . import setup_logger

logger = setup_logger(__name__)


def decode_payload(code: str) -> Dict[str, Any]:
    """Decode a tier-list code into its JSON payload.

    Raises:
        InvalidTierListException: If the code is not base64, not zlib data or
            not a JSON object
    """
    if not code or not code.strip():
        raise InvalidTierListException("Tier-list code is empty")
    try:
        compressed = base64.b64decode(code.strip(), validate=True)
        payload = json.loads(zlib.decompress(compressed).decode("utf-8"))
    except (binascii.Error, zlib.error, ValueError) as e:
        logger.warning(f"Could not decode tier-list code: {e}")
        raise InvalidTierListException(f"Invalid tier-list code: {e}") from e
    if not isinstance(payload, dict):
        raise InvalidTierListException("Tier-list payload is not an object")
    return payload


def encode_payload(payload: Dict[str, Any]) -> str:
    """Encode a JSON payload into a tier-list code."""
    data = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(zlib.compress(data)).decode("ascii")


def _map_id(item: Any) -> str:
    if isinstance(item, str):
        return item
    if not isinstance(item, dict):
        raise InvalidTierListException(f"Invalid map entry: {item!r}")
    map_id = item.get("alt") or item.get("src")
    if not map_id:
        raise InvalidTierListException(f"Map entry without a name: {item!r}")
    return str(map_id)


def _chart_weights(payload: Dict[str, Any]) -> List[List[float]]:
    """Weights per phase row and weighted-tier column, hidden points zeroed."""
    charts = payload.get("charts")
    if not isinstance(charts, list) or len(charts) < TIER_CHART_COUNT:
        raise InvalidTierListException(
            f"Tier list needs {TIER_CHART_COUNT} weight charts"
        )
    visible = payload.get("visiblePoints") or []

    weights = []
    for row_index in range(TIER_CHART_COUNT):
        row = charts[row_index]
        if not isinstance(row, list) or len(row) < len(WEIGHTED_TIERS):
            raise InvalidTierListException(
                f"Chart {row_index} needs {len(WEIGHTED_TIERS)} points"
            )
        shown = visible[row_index] if row_index < len(visible) else []
        values = []
        for column in range(len(WEIGHTED_TIERS)):
            value = row[column]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidTierListException(
                    f"Chart {row_index} point {column} is not a number: {value!r}"
                )
            if value < 0:
                raise InvalidTierListException(
                    f"Chart {row_index} point {column} is negative: {value}"
                )
            is_shown = shown[column] if column < len(shown) else True
            values.append(float(value) if is_shown else 0.0)
        weights.append(values)
    return weights


def decode_tier_list(code: str) -> List[TierRow]:
    """Decode a tier-list code into tier rows.

    Weighted tiers take their phase weights from the charts; every other
    tier (the fallback and banned ones included) weighs 0.

    Args:
        code: Tier-list code

    Returns:
        One TierRow per tier of the payload, in payload order

    Raises:
        InvalidTierListException: If the code or its payload is malformed
    """
    payload = decode_payload(code)
    tiers = payload.get("tiers")
    if not isinstance(tiers, dict):
        raise InvalidTierListException("Tier-list payload has no tiers")
    weights = _chart_weights(payload)

    rows = []
    for tier_name, items in tiers.items():
        if not isinstance(items, list):
            raise InvalidTierListException(f"Tier {tier_name} is not a list")
        if tier_name in WEIGHTED_TIERS:
            column = WEIGHTED_TIERS.index(tier_name)
            tier_weights = tuple(weights[i][column] for i in range(TIER_CHART_COUNT))
        else:
            tier_weights = (0.0, 0.0, 0.0)
        rows.append(
            TierRow(
                tier_name=tier_name,
                weights=tier_weights,
                map_pool=tuple(_map_id(item) for item in items),
            )
        )

    logger.debug(
        "Decoded tier list: "
        + ", ".join(f"{r.tier_name}={len(r.map_pool)}" for r in rows)
    )
    return rows


def encode_tier_list(rows: Sequence[TierRow]) -> str:
    """Encode tier rows as a tier-list code.

    Map ids are written as the image ``alt``; weights of weighted tiers
    missing from ``rows`` are written as hidden zero points.
    """
    by_name = {row.tier_name: row for row in rows}
    charts = []
    visible = []
    for phase_row in range(TIER_CHART_COUNT):
        points = []
        shown = []
        for tier_name in WEIGHTED_TIERS:
            row = by_name.get(tier_name)
            weight = row.weights[phase_row] if row is not None else 0
            points.append(int(weight) if float(weight).is_integer() else weight)
            shown.append(row is not None)
        charts.append(points)
        visible.append(shown)

    item_id = 0
    tiers = {}
    for row in rows:
        items = []
        for map_id in row.map_pool:
            item_id += 1
            items.append({"id": item_id, "src": "", "alt": map_id})
        tiers[row.tier_name] = items

    return encode_payload(
        {
            "tiers": tiers,
            "charts": charts,
            "visiblePoints": visible,
            "timestamp": int(time.time() * 1000),
        }
    )


def map_display_name(map_id: str) -> str:
    """Human name of a map file: extension and numeric prefix removed.

    Example:
        >>> map_display_name("07-Rainbow Road.png")
        'Rainbow Road'
    """
    if not map_id:
        return "N/A"
    stem = map_id.rsplit(".", 1)[0] if map_id.rfind(".") > 0 else map_id
    if "-" in stem:
        return stem.split("-", 1)[1].strip()
    return stem
