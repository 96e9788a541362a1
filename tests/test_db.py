import json
from datetime import datetime

from auditdesk.db import AuditStore, coerce_transactions
from auditdesk.models import DocumentVerificationResult, Transaction
from auditdesk.risk import score_batch


def make_doc(doc_id, passed=None):
    return DocumentVerificationResult(id=doc_id, file_name=f"{doc_id}.png",
                                      uploaded_at=datetime(2025, 1, 10, 9, 0), cut_off_test_passed=passed)


def test_coerce_transactions_skips_junk_and_fills_ids():
    records = coerce_transactions([{"amount": 10}, "junk", 42, {"id": "T2", "amount": "oops"}])
    assert len(records) == 2
    assert records[0].id.startswith("TXN-")
    assert records[1].id == "T2"
    assert records[1].amount is None


def test_documents_are_append_only_newest_first():
    store = AuditStore(persist=False)
    store.append_document(make_doc("a"))
    store.append_document(make_doc("b"))
    assert [d.id for d in store.get_documents()] == ["b", "a"]


def test_getters_return_copies():
    store = AuditStore(persist=False).reset(seed=True)
    store.get_transactions().clear()
    assert len(store.get_transactions()) == 6


def test_replace_transactions_clears_analyzed_flag():
    store = AuditStore(persist=False).reset(seed=True)
    store.store_scored(score_batch(store.get_transactions()))
    assert store.analyzed
    store.replace_transactions([{"id": "T1", "amount": 5}])
    assert not store.analyzed
    assert [t.id for t in store.get_transactions()] == ["T1"]


def test_persistence_round_trip(tmp_path):
    path = tmp_path / "db.json"
    store = AuditStore(path=path, persist=True).reset(seed=True)
    store.store_scored(score_batch(store.get_transactions()))
    store.append_document(make_doc("a", False))

    reloaded = AuditStore(path=path, persist=True).load()
    assert reloaded.analyzed
    assert [t.risk_score for t in reloaded.get_transactions()] == [t.risk_score for t in store.get_transactions()]
    assert reloaded.get_documents()[0].cut_off_test_passed is False
    assert [e["action"] for e in reloaded.activity_log] == ["risk_analyzed", "document_verified"]


def test_corrupt_file_starts_fresh(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("{not json")
    store = AuditStore(path=path, persist=True).load()
    assert store.get_transactions() == []
    assert store.get_documents() == []


def test_snapshot_is_plain_json():
    store = AuditStore(persist=False).reset(seed=True)
    store.append_document(make_doc("a", True))
    snap = store.snapshot()
    json.dumps(snap)
    assert snap["transactions"][0]["id"] == "TXN-001"
    assert snap["documents"][0]["cutOffTestPassed"] is True


def test_in_memory_store_never_writes(tmp_path):
    path = tmp_path / "db.json"
    AuditStore(path=path, persist=False).reset(seed=True)
    assert not path.exists()


def test_store_accepts_records():
    store = AuditStore(persist=False)
    store.replace_transactions([Transaction(id="T1", amount="1")])
    assert store.get_transactions()[0].id == "T1"


def test_non_object_root_starts_fresh(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps([{"id": "TXN-001"}]))
    store = AuditStore(path=path, persist=True).load()
    assert store.get_transactions() == []
    assert store.analyzed is False
