import json

import pytest

from core.bookings import BookingStore, InputValidationError, PersistenceError


def test_append_persists_record(tmp_path):
    path = tmp_path / "bookings.json"
    store = BookingStore(path)

    record = store.append("Asha", "9999999999", preferred="evening", source="web")

    assert record.ref.startswith("BK")
    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved == [{
        "ref": record.ref,
        "name": "Asha",
        "phone": "9999999999",
        "preferred": "evening",
        "notes": "",
        "source": "web",
        "created_at": record.created_at,
    }]


def test_refs_are_unique_and_increasing(tmp_path):
    store = BookingStore(tmp_path / "bookings.json")
    refs = [store.append("Asha", "9999999999").ref for _ in range(5)]

    assert len(set(refs)) == 5
    assert [int(ref[2:]) for ref in refs] == sorted(int(ref[2:]) for ref in refs)
    assert len(store.load()) == 5


@pytest.mark.parametrize("name, phone", [("", "123"), ("Asha", None), (None, None)])
def test_missing_fields_are_rejected(tmp_path, name, phone):
    store = BookingStore(tmp_path / "bookings.json")
    with pytest.raises(InputValidationError):
        store.append(name, phone)
    assert not (tmp_path / "bookings.json").exists()


def test_corrupt_file_raises_persistence_error(tmp_path):
    path = tmp_path / "bookings.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        BookingStore(path).append("Asha", "9999999999")


@pytest.mark.parametrize("content", ["{}", '"text"', "42"])
def test_non_list_file_raises_persistence_error(tmp_path, content):
    path = tmp_path / "bookings.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(PersistenceError):
        BookingStore(path).append("Asha", "9999999999")


def test_numeric_phone_is_stored_as_text(tmp_path):
    record = BookingStore(tmp_path / "bookings.json").append("Asha", 9999999999)
    assert record.phone == "9999999999"
