from __future__ import annotations

import json
from pathlib import Path

import pytest

from patrimony.logging.error_log import ErrorLogBuffer
from patrimony.models.audit import AuditAction
from patrimony.models.registry import Location
from patrimony.services.import_service import ImportValidationError, import_file
from patrimony.sources.errors import EmptySourceError, UnsupportedSourceError
from patrimony.storage.base import DuplicateAssetTagError
from patrimony.storage.local_store import LocalStore

CSV = (
    "Chapa;Data;Nome\n"
    "1001;15/03/2024;Notebook\n"
    "1002;45366;Monitor\n"
    ";15/03/2024;No tag\n"
    "1003;2024-03-20;  Chair \n"
)


@pytest.fixture()
def store(temp_workdir: Path) -> LocalStore:
    return LocalStore(temp_workdir / "data")


def test_import_csv(store, write_csv, defaults, temp_workdir):
    path = write_csv("inventory.csv", CSV)
    error_log = ErrorLogBuffer(temp_workdir / "logs")

    result = import_file(path, store, location=" Room 5 ", defaults=defaults, error_log=error_log, batch_size=2)

    assert result.file_name == "inventory.csv"
    assert result.found == 3
    assert result.imported == 3
    assert result.skipped == 1
    assert result.header_detected is True
    stored = store.list_all()
    assert [(i.asset_tag, i.acquisition_date, i.name) for i in stored] == [
        (1001, "2024-03-15", "Notebook"),
        (1002, "2024-03-15", "Monitor"),
        (1003, "2024-03-20", "Chair"),
    ]
    assert {i.location for i in stored} == {"Room 5"}
    assert stored[0].description == "Imported from file: inventory.csv"
    assert all(i.id for i in stored)

    records = error_log.records
    assert [(r.row, r.error_type, r.sheet) for r in records] == [(4, "MISSING_ASSET_TAG", "<TEXT>")]
    log_path = error_log.flush()
    assert json.loads(log_path.read_text(encoding="utf-8").splitlines()[0])["file"] == "inventory.csv"


def test_import_writes_one_audit_entry(store, write_csv, defaults):
    import_file(write_csv("inv.csv", CSV), store, location="Lab", defaults=defaults, user_name="ana")
    audit = store.list_audit()
    assert len(audit) == 1
    assert audit[0].action is AuditAction.IMPORT
    assert audit[0].user_name == "ana"
    assert "Imported 3 items from inv.csv" in audit[0].details


def test_import_workbook(store, make_workbook, defaults):
    wb = make_workbook("inv.xlsx", {"Plan1": [["Chapa", "Data", "Nome"], [1001, 45366, "Notebook"]]})
    errors = ErrorLogBuffer()
    result = import_file(wb, store, location="Lab", defaults=defaults, error_log=errors)
    assert result.imported == 1
    assert store.get_by_asset_tag(1001).acquisition_date == "2024-03-15"


def test_workbook_skipped_rows_name_first_sheet(store, make_workbook, defaults):
    wb = make_workbook("inv.xlsx", {"Plan1": [[1001, 45366, "Notebook"], [1002, 45366, None]]})
    errors = ErrorLogBuffer()
    import_file(wb, store, location="Lab", defaults=defaults, error_log=errors)
    assert [(r.row, r.sheet, r.error_type) for r in errors.records] == [(2, "<FIRST_SHEET>", "MISSING_NAME")]


def test_existing_tag_rejects_whole_file(store, write_csv, defaults, item_factory):
    store.insert(item_factory(1002, "Existing"))
    with pytest.raises(DuplicateAssetTagError) as e:
        import_file(write_csv("inv.csv", CSV), store, location="Lab", defaults=defaults, batch_size=1)
    assert e.value.tags == [1002]
    assert [i.name for i in store.list_all()] == ["Existing"]
    assert store.list_audit() == []


def test_repeated_tag_in_file_rejected(store, write_csv, defaults):
    path = write_csv("dup.csv", "1001;15/03/2024;A\n1001;16/03/2024;B\n")
    with pytest.raises(DuplicateAssetTagError):
        import_file(path, store, location="Lab", defaults=defaults)
    assert store.list_all() == []


def test_explicit_no_header(store, write_csv, defaults):
    path = write_csv("inv.csv", "PC-1;15/03/2024;A\n1001;15/03/2024;B\n")
    result = import_file(path, store, location="Lab", defaults=defaults, has_header=False)
    assert result.header_detected is False
    assert result.skipped == 1
    assert result.imported == 1


def test_nothing_to_import_writes_no_audit(store, write_csv, defaults):
    result = import_file(write_csv("hdr.csv", "Chapa;Data;Nome\n"), store, location="Lab", defaults=defaults)
    assert result.found == 0 and result.imported == 0
    assert store.list_audit() == []


@pytest.mark.parametrize("location", ["", "   "])
def test_location_required(store, write_csv, defaults, location):
    with pytest.raises(ImportValidationError):
        import_file(write_csv("inv.csv", CSV), store, location=location, defaults=defaults)


def test_batch_size_must_be_positive(store, write_csv, defaults):
    with pytest.raises(ImportValidationError):
        import_file(write_csv("inv.csv", CSV), store, location="Lab", defaults=defaults, batch_size=0)


def test_source_errors_propagate(store, write_csv, defaults):
    with pytest.raises(EmptySourceError):
        import_file(write_csv("empty.csv", ""), store, location="Lab", defaults=defaults)
    with pytest.raises(UnsupportedSourceError):
        import_file(write_csv("inv.pdf", "x"), store, location="Lab", defaults=defaults)


def test_registered_location_required(store, write_csv, defaults):
    path = write_csv("inventory.csv", CSV)
    with pytest.raises(ImportValidationError, match="location not registered: Room 5"):
        import_file(path, store, location="Room 5", defaults=defaults, require_registered_location=True)
    assert store.list_all() == []

    store.insert_location(Location(id="", name="Room 5"))
    result = import_file(path, store, location=" room  5 ", defaults=defaults, require_registered_location=True)
    assert result.imported == 3
    assert {i.location for i in store.list_all()} == {"Room 5"}


def test_unregistered_location_allowed_by_default(store, write_csv, defaults):
    path = write_csv("inventory.csv", CSV)
    assert import_file(path, store, location="Anywhere", defaults=defaults).imported == 3
