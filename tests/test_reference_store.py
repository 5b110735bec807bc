"""
Tests for the persistent phone <-> reference token store.
"""

import json
import re
from unittest.mock import patch

import pytest

from figurine_bot.services.reference_store import REFS_FILENAME, ReferenceStore


def test_get_or_create_ref_is_16_hex_chars(tmp_path):
    store = ReferenceStore(tmp_path / REFS_FILENAME)
    ref = store.get_or_create_ref("5511999998888")
    assert re.fullmatch(r"[0-9a-f]{16}", ref)


def test_get_or_create_ref_is_idempotent(tmp_path):
    store = ReferenceStore(tmp_path / REFS_FILENAME)
    first = store.get_or_create_ref("5511999998888")
    second = store.get_or_create_ref("5511999998888")
    assert first == second
    assert len(store) == 1


def test_refs_are_unique_per_phone(tmp_path):
    store = ReferenceStore(tmp_path / REFS_FILENAME)
    refs = {store.get_or_create_ref(f"55119999900{i:02d}") for i in range(50)}
    assert len(refs) == 50


def test_ref_to_phone_round_trip(tmp_path):
    store = ReferenceStore(tmp_path / REFS_FILENAME)
    ref = store.get_or_create_ref("5511999998888")
    assert store.ref_to_phone(ref) == "5511999998888"
    assert store.phone_to_ref("5511999998888") == ref
    assert store.ref_to_phone("unknown") is None
    assert store.ref_to_phone(None) is None


def test_ref_persisted_before_return(tmp_path):
    path = tmp_path / REFS_FILENAME
    store = ReferenceStore(path)
    ref = store.get_or_create_ref("5511999998888")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["phoneToRef"] == {"5511999998888": ref}
    assert data["refToPhone"] == {ref: "5511999998888"}


def test_refs_survive_restart(tmp_path):
    path = tmp_path / REFS_FILENAME
    ref = ReferenceStore(path).get_or_create_ref("5511999998888")

    reloaded = ReferenceStore(path)
    assert reloaded.ref_to_phone(ref) == "5511999998888"
    assert reloaded.get_or_create_ref("5511999998888") == ref


def test_cached_ref_does_no_io(tmp_path):
    store = ReferenceStore(tmp_path / REFS_FILENAME)
    store.get_or_create_ref("5511999998888")
    with patch.object(store, "_save") as save:
        store.get_or_create_ref("5511999998888")
    save.assert_not_called()


def test_failed_save_caches_nothing(tmp_path):
    blocker = tmp_path / "data"
    blocker.write_text("not a directory", encoding="utf-8")
    store = ReferenceStore(blocker / REFS_FILENAME)

    with pytest.raises(OSError):
        store.get_or_create_ref("5511999998888")

    assert store.phone_to_ref("5511999998888") is None
    assert len(store) == 0
    # Still not cached: the next call tries to persist again
    with pytest.raises(OSError):
        store.get_or_create_ref("5511999998888")


def test_ref_created_after_failed_save_is_persisted(tmp_path):
    path = tmp_path / REFS_FILENAME
    store = ReferenceStore(path)
    with patch.object(store, "_save", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            store.get_or_create_ref("5511999998888")

    ref = store.get_or_create_ref("5511999998888")
    assert ReferenceStore(path).ref_to_phone(ref) == "5511999998888"


def test_collision_regenerates_token(tmp_path):
    store = ReferenceStore(tmp_path / REFS_FILENAME)
    with patch(
        "figurine_bot.services.reference_store.secrets.token_hex",
        side_effect=["aaaaaaaaaaaaaaaa", "aaaaaaaaaaaaaaaa", "bbbbbbbbbbbbbbbb"],
    ):
        first = store.get_or_create_ref("5511999990001")
        second = store.get_or_create_ref("5511999990002")
    assert first == "aaaaaaaaaaaaaaaa"
    assert second == "bbbbbbbbbbbbbbbb"


def test_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / REFS_FILENAME
    path.write_text("{not json", encoding="utf-8")
    store = ReferenceStore(path)
    assert len(store) == 0
