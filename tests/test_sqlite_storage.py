from adapters.sqlite_storage import SQLiteStorage
from core.models import DedupRecord


def _storage(tmp_path) -> SQLiteStorage:
    storage = SQLiteStorage(str(tmp_path / "cursors.db"))
    storage.init_db()
    return storage


def test_missing_account_has_no_record(tmp_path) -> None:
    assert _storage(tmp_path).get("nasa") is None


def test_upsert_inserts_then_moves_cursor(tmp_path) -> None:
    storage = _storage(tmp_path)

    storage.upsert(DedupRecord(account_handle="nasa", last_seen_reference="https://x.com/nasa/status/1"))
    storage.upsert(DedupRecord(account_handle="nasa", last_seen_reference="https://x.com/nasa/status/2"))

    assert storage.get("nasa") == DedupRecord(account_handle="nasa", last_seen_reference="https://x.com/nasa/status/2")
    assert len(storage.list_records()) == 1


def test_records_survive_reopening_the_database(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.upsert(DedupRecord(account_handle="esa", last_seen_reference="https://x.com/esa/status/5"))
    storage.upsert(DedupRecord(account_handle="nasa", last_seen_reference="https://x.com/nasa/status/1"))

    reopened = _storage(tmp_path)

    assert [record.account_handle for record in reopened.list_records()] == ["esa", "nasa"]
    assert reopened.get("esa").last_seen_reference == "https://x.com/esa/status/5"
