import json
from pathlib import Path

import pytest

from bdaystate.store import JsonFileStore, MemoryStore

CHANNEL = {"type": "channel", "common": {"name": "Anna"}, "native": {}}
STATE = {"type": "state", "common": {"name": "Age", "type": "number"}, "native": {}}


def test_set_object_not_exists_only_creates_once() -> None:
    store = MemoryStore()

    assert store.set_object_not_exists("month.03.anna", CHANNEL) is True
    assert store.set_object_not_exists("month.03.anna", {"type": "channel", "common": {"name": "Other"}}) is False
    assert store.get_object("month.03.anna")["common"]["name"] == "Anna"
    assert store.mutations == 1


def test_set_state_changed_skips_equal_values() -> None:
    store = MemoryStore()

    assert store.set_state_changed("month.03.anna.age", 34) is True
    assert store.set_state_changed("month.03.anna.age", 34) is False
    assert store.set_state_changed("month.03.anna.age", 35) is True
    assert store.get_state("month.03.anna.age") == 35
    assert store.mutations == 2


def test_list_channels_returns_only_channels_below_parent() -> None:
    store = MemoryStore()
    store.set_object_not_exists("month.03", CHANNEL)
    store.set_object_not_exists("month.03.anna", CHANNEL)
    store.set_object_not_exists("month.03.anna.age", STATE)
    store.set_object_not_exists("monthly", CHANNEL)
    store.set_object_not_exists("summary", CHANNEL)

    assert store.list_channels("month") == ["month.03", "month.03.anna"]


def test_recursive_delete() -> None:
    store = MemoryStore()
    store.set_object_not_exists("month.03.anna", CHANNEL)
    store.set_object_not_exists("month.03.anna.age", STATE)
    store.set_state_changed("month.03.anna.age", 34)
    store.set_object_not_exists("month.03.annabell", CHANNEL)

    store.delete_object("month.03.anna", recursive=True)

    assert store.get_object("month.03.anna") is None
    assert store.get_object("month.03.anna.age") is None
    assert store.get_state("month.03.anna.age") is None
    assert store.get_object("month.03.annabell") is not None


def test_non_recursive_delete_keeps_children() -> None:
    store = MemoryStore()
    store.set_object_not_exists("month.03.anna", CHANNEL)
    store.set_object_not_exists("month.03.anna.age", STATE)

    store.delete_object("month.03.anna")

    assert store.get_object("month.03.anna") is None
    assert store.get_object("month.03.anna.age") is not None


def test_copy_is_independent() -> None:
    store = MemoryStore()
    store.set_state_changed("next.text", "Anna (34)")

    copy = store.copy()
    copy.set_state_changed("next.text", "Ben (20)")

    assert store.get_state("next.text") == "Anna (34)"


def test_json_file_store_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "state" / "birthdays.json"
    store = JsonFileStore(path)
    store.set_object_not_exists("month.03.anna", CHANNEL)
    store.set_state_changed("month.03.anna.name", "Änna")
    store.save()

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["version"] == 1

    loaded = JsonFileStore(path)
    assert loaded.get_object("month.03.anna") == CHANNEL
    assert loaded.get_state("month.03.anna.name") == "Änna"
    assert loaded.mutations == 0
    assert list(tmp_path.joinpath("state").iterdir()) == [path]


def test_json_file_store_missing_file_starts_empty(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path / "absent.json")

    assert store.objects == {}
    assert store.states == {}


def test_failed_save_keeps_old_file_and_leaves_no_temp_file(tmp_path: Path) -> None:
    path = tmp_path / "birthdays.json"
    store = JsonFileStore(path)
    store.set_state_changed("next.text", "Anna (34)")
    store.save()
    saved = path.read_text(encoding="utf-8")

    store.set_state_changed("next.json", {"not", "serializable"})
    with pytest.raises(TypeError):
        store.save()

    assert path.read_text(encoding="utf-8") == saved
    assert list(tmp_path.iterdir()) == [path]
