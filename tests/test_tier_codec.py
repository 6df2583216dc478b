import base64
import json
import zlib

import pytest

from gridcup.exceptions import InvalidTierListException
from gridcup.models.maps import TierRow
from gridcup.utils.tier_codec import (
    decode_payload,
    decode_tier_list,
    encode_payload,
    encode_tier_list,
    map_display_name,
)


def _code(payload):
    data = json.dumps(payload).encode("utf-8")
    return base64.b64encode(zlib.compress(data)).decode("ascii")


def _item(alt, src=""):
    return {"id": 1, "src": src, "alt": alt}


def _payload(**overrides):
    payload = {
        "tiers": {
            "Facile": [_item("01-Luigi Circuit.png")],
            "Normale": [_item("02-Moo Moo Meadows.png")],
            "Difficile": [_item("03-Koopa Cape.png")],
            "Adlitam": [_item("04-Rainbow Road.png")],
            "Goat": [_item("05-Mario Circuit.png")],
            "Ban": [_item("06-Toad Factory.png")],
        },
        "charts": [[3, 2, 4, 1], [1, 3, 2, 4], [2, 4, 3, 1]],
        "visiblePoints": [
            [True, True, True, True],
            [True, False, True, True],
            [True, True, True, True],
        ],
        "timestamp": 1700000000000,
    }
    payload.update(overrides)
    return payload


def test_decode_tier_list_reads_chart_columns():
    rows = {r.tier_name: r for r in decode_tier_list(_code(_payload()))}

    assert rows["Facile"].weights == (3.0, 1.0, 2.0)
    assert rows["Normale"].weights == (2.0, 0.0, 4.0)
    assert rows["Adlitam"].weights == (1.0, 4.0, 1.0)
    assert rows["Facile"].map_pool == ("01-Luigi Circuit.png",)


def test_fallback_and_banned_tiers_weigh_nothing():
    rows = {r.tier_name: r for r in decode_tier_list(_code(_payload()))}
    assert rows["Goat"].weights == (0.0, 0.0, 0.0)
    assert rows["Ban"].weights == (0.0, 0.0, 0.0)
    assert rows["Goat"].is_fallback
    assert rows["Ban"].is_banned


def test_tier_order_follows_the_payload():
    names = [r.tier_name for r in decode_tier_list(_code(_payload()))]
    assert names == ["Facile", "Normale", "Difficile", "Adlitam", "Goat", "Ban"]


def test_map_without_alt_uses_its_source():
    payload = _payload(tiers={"Facile": [_item("", src="img/07-DK Pass.png")]})
    rows = decode_tier_list(_code(payload))
    assert rows[0].map_pool == ("img/07-DK Pass.png",)


def test_missing_visibility_shows_every_point():
    payload = _payload()
    del payload["visiblePoints"]
    rows = {r.tier_name: r for r in decode_tier_list(_code(payload))}
    assert rows["Normale"].weights == (2.0, 3.0, 4.0)


@pytest.mark.parametrize(
    "code",
    [
        "",
        "not base64 at all!",
        base64.b64encode(b"plain text").decode("ascii"),
        _code([1, 2, 3]),
    ],
)
def test_malformed_codes_are_rejected(code):
    with pytest.raises(InvalidTierListException):
        decode_payload(code)


@pytest.mark.parametrize(
    "overrides",
    [
        {"tiers": []},
        {"charts": [[1, 2, 3, 4]]},
        {"charts": [[1, 2], [1, 2], [1, 2]]},
        {"charts": [[1, 2, "x", 4], [1, 2, 3, 4], [1, 2, 3, 4]]},
        {"charts": [[1, 2, -3, 4], [1, 2, 3, 4], [1, 2, 3, 4]]},
        {"tiers": {"Facile": "01-Luigi Circuit.png"}},
        {"tiers": {"Facile": [{"id": 3}]}},
    ],
)
def test_malformed_payloads_are_rejected(overrides):
    with pytest.raises(InvalidTierListException):
        decode_tier_list(_code(_payload(**overrides)))


def test_encoded_tier_list_decodes_to_the_same_rows():
    rows = [
        TierRow("Facile", (3.0, 1.0, 2.0), ("a.png", "b.png")),
        TierRow("Difficile", (0.5, 2.0, 4.0), ("c.png",)),
        TierRow("Goat", (0.0, 0.0, 0.0), ("d.png",)),
    ]
    decoded = decode_tier_list(encode_tier_list(rows))
    assert decoded == rows


def test_encode_payload_is_readable_by_decode_payload():
    assert decode_payload(encode_payload({"tiers": {}})) == {"tiers": {}}


@pytest.mark.parametrize(
    "map_id, expected",
    [
        ("07-Rainbow Road.png", "Rainbow Road"),
        ("Rainbow Road", "Rainbow Road"),
        ("12-Yoshi Valley", "Yoshi Valley"),
        ("", "N/A"),
    ],
)
def test_map_display_name(map_id, expected):
    assert map_display_name(map_id) == expected
