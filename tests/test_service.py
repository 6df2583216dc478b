import json
import random

import pytest

from gridcup.exceptions import (
    ConcurrentModificationException,
    DuplicateTournamentException,
    FileLoadException,
    IncompleteStagingException,
    InvalidConfigurationException,
    InvalidMapChoiceException,
    TournamentNotFoundException,
)
from gridcup.models.maps import TierRow
from gridcup.service import TournamentService
from gridcup.storage import JsonTournamentStore
from gridcup.utils.tier_codec import encode_tier_list


def _tiers():
    return [
        TierRow("Facile", (1.0, 1.0, 1.0), tuple(f"m{i}.png" for i in range(10))),
        TierRow("Goat", (0.0, 0.0, 0.0), tuple(f"g{i}.png" for i in range(4))),
    ]


@pytest.fixture
def store(tmp_path):
    return JsonTournamentStore(tmp_path / "tournaments")


@pytest.fixture
def service(store):
    return TournamentService(store, rng=random.Random(5))


def _open_cup(service, names=("a", "b", "c", "d"), code="CUP"):
    service.create_tournament(
        code,
        "Spring Cup",
        "2025-03-14",
        2,
        len(names),
        max_races=3,
        tier_table=_tiers(),
    )
    for seed, name in enumerate(names, start=1):
        service.add_participant(code, name, seeding=seed)
    service.close_registration(code)
    service.set_grouping_policy(code)


# ========== Store ==========


def test_created_tournament_is_stored_at_version_one(service, store):
    tournament = service.create_tournament("CUP", "Spring Cup", "14 March 2025", 4, 8)

    assert tournament.version == 1
    assert store.exists("CUP")
    assert store.stored_version("CUP") == 1
    assert service.list_codes() == ["CUP"]
    assert service.get_tournament("CUP").config.date == "2025-03-14"


def test_duplicate_code_is_refused(service):
    service.create_tournament("CUP", "Spring Cup", "2025-03-14", 4, 8)
    with pytest.raises(DuplicateTournamentException):
        service.create_tournament("CUP", "Other Cup", "2025-03-14", 4, 8)


def test_unknown_code_is_not_found(service):
    with pytest.raises(TournamentNotFoundException):
        service.get_tournament("NOPE")
    with pytest.raises(TournamentNotFoundException):
        service.commit("NOPE")
    with pytest.raises(TournamentNotFoundException):
        service.delete_tournament("NOPE")


@pytest.mark.parametrize("code", ["", "../evil", "a b", "x/y"])
def test_codes_must_be_file_names(store, code):
    with pytest.raises(InvalidConfigurationException):
        store.path_for(code)


def test_every_update_bumps_the_version(service, store):
    _open_cup(service)
    assert store.stored_version("CUP") == 7


def test_stale_save_is_refused(service, store):
    service.create_tournament("CUP", "Spring Cup", "2025-03-14", 4, 8)
    first = store.load("CUP")
    second = store.load("CUP")

    first.add_participant("a")
    store.save(first, expected_version=1)

    second.add_participant("b")
    with pytest.raises(ConcurrentModificationException):
        store.save(second, expected_version=1)

    assert list(store.load("CUP").participants) == ["a"]


def test_save_leaves_no_temporary_files(service, store):
    _open_cup(service)
    files = [p.name for p in store.directory.iterdir()]
    assert files == ["CUP.json"]


def test_corrupt_documents_fail_to_load(store):
    store.directory.mkdir(parents=True)
    (store.directory / "BAD.json").write_text("{not json", encoding="utf-8")
    (store.directory / "LIST.json").write_text("[1, 2]", encoding="utf-8")
    (store.directory / "HALF.json").write_text('{"name": "x"}', encoding="utf-8")

    for code in ("BAD", "LIST", "HALF"):
        with pytest.raises(FileLoadException):
            store.load(code)


def test_delete_removes_the_document(service, store):
    service.create_tournament("CUP", "Spring Cup", "2025-03-14", 4, 8)
    service.delete_tournament("CUP")
    assert not store.exists("CUP")
    assert service.list_codes() == []


# ========== Operations ==========


def test_failed_operation_saves_nothing(service, store):
    _open_cup(service)
    version = store.stored_version("CUP")
    service.stage_series_result("CUP", 1, [("a", 1), ("b", 2)])

    with pytest.raises(IncompleteStagingException):
        service.commit("CUP")

    assert store.stored_version("CUP") == version + 1
    assert service.get_tournament("CUP").race == 1


def test_full_race_through_the_service(service, store):
    _open_cup(service)
    offers = service.draw_maps("CUP")
    assert len(offers) == 4
    service.select_map("CUP", offers[0])
    with pytest.raises(InvalidMapChoiceException):
        service.select_map("CUP", "not-offered.png")

    service.stage_series_result("CUP", 1, [("a", 2), ("b", 1)])
    service.stage_series_result("CUP", 2, [("c", 1), ("d", 2)])
    assert service.commit("CUP") == "qualifying"

    tournament = service.get_tournament("CUP")
    assert tournament.race == 2
    assert tournament.used_maps() == [offers[0]]
    placements = {
        p.nickname: (p.current_series, p.current_slot)
        for p in tournament.participants.values()
    }
    assert placements == {"b": (1, 1), "c": (1, 2), "a": (2, 1), "d": (2, 2)}

    restored = service.rewind("CUP")
    assert [r.nickname for r in restored] == ["b", "a", "c", "d"]
    tournament = service.get_tournament("CUP")
    assert tournament.race == 1
    assert tournament.selected_map == offers[0]


def test_standings_through_the_service(service):
    _open_cup(service)
    service.stage_series_result("CUP", 1, [("a", 1, True, 4), ("b", 2)])
    service.stage_series_result("CUP", 2, [("c", 1), ("d", 2, True, 2)])
    service.commit("CUP")

    assert [p.nickname for p in service.standings("CUP")] == ["a", "d", "b", "c"]
    assert [rank for rank, _ in service.standing_rows("CUP")] == [1, 2, 3, 3]


def test_tier_list_code_is_decoded_on_creation(service):
    tournament = service.create_tournament(
        "CUP", "Spring Cup", "2025-03-14", 4, 8, tier_code=encode_tier_list(_tiers())
    )
    assert [r.tier_name for r in tournament.tier_table] == ["Facile", "Goat"]

    service.set_tier_list("CUP", encode_tier_list(_tiers()[1:]))
    assert [r.tier_name for r in service.get_tournament("CUP").tier_table] == ["Goat"]


def test_stored_document_is_plain_json(service, store):
    _open_cup(service)
    with open(store.path_for("CUP"), encoding="utf-8") as f:
        data = json.load(f)
    assert data["config"]["code"] == "CUP"
    assert data["reviewed"] is True
    assert [p["nickname"] for p in data["participants"]] == ["a", "b", "c", "d"]
