"""
AuditDesk — Audit Store
Externally-owned mutable state: the transaction ledger, processed documents
(append-only, newest first) and the activity log. File-based JSON store.

The pure core (risk, cutoff, dashboard) never touches this module; callers
read records out, pass them in by value and write the returned records back.
"""
import json
import copy
import logging
import uuid
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from auditdesk import config
from auditdesk.models import DocumentVerificationResult, Transaction

logger = logging.getLogger(__name__)

# ============================================================
# EMPTY DB SCHEMA
# ============================================================
EMPTY_DB = {"transactions": [], "documents": [], "analyzed": False, "activity_log": []}

MAX_ACTIVITY_LOG = 500

# ============================================================
# DEMO LEDGER
# ============================================================
DEMO_TRANSACTIONS = [
    {"id": "TXN-001", "date": "2024-11-15", "customer": "Acme Corp", "amount": 5000.00, "description": "Consulting Services", "riskScore": 10},
    {"id": "TXN-002", "date": "2024-12-24", "customer": "Globex Inc", "amount": 9999.00, "description": "Software License", "riskScore": 0},
    {"id": "TXN-003", "date": "2024-12-31", "customer": "Soylent Corp", "amount": 250000.00, "description": "Bulk Purchase", "riskScore": 0},
    {"id": "TXN-004", "date": "2024-12-30", "customer": "Initech", "amount": 1234.56, "description": "Office Supplies", "riskScore": 0},
    {"id": "TXN-005", "date": "2025-01-02", "customer": "Umbrella Corp", "amount": 5000.00, "description": "Medical Supplies", "riskScore": 0},
    {"id": "TXN-006", "date": "2024-12-25", "customer": "Cyberdyne", "amount": 50000.00, "description": "R&D Hardware", "riskScore": 0},
]


def coerce_transactions(rows) -> list:
    """Turn raw dicts into Transaction records. Rows without an id get a generated one."""
    records = []
    for row in rows or []:
        if isinstance(row, Transaction):
            records.append(row)
            continue
        if not isinstance(row, dict):
            logger.warning(f"[DB] Skipping non-object transaction row: {row!r}")
            continue
        row = dict(row)
        if not row.get("id"):
            row["id"] = f"TXN-{uuid.uuid4().hex[:8].upper()}"
        try:
            records.append(Transaction.model_validate(row))
        except ValidationError as e:
            logger.warning(f"[DB] Skipping unreadable transaction {row.get('id')}: {e}")
    return records


class AuditStore:
    """Holds the audit context. Persisted to a JSON file when persist=True."""

    def __init__(self, path: Path = None, persist: bool = None):
        self.path = Path(path) if path else config.DB_PATH
        self.persist = config.PERSIST_DATA if persist is None else persist
        self._transactions = []
        self._documents = []
        self.analyzed = False
        self.activity_log = []

    # ── LOAD / SAVE ──
    def load(self):
        if not (self.persist and self.path.exists()):
            return self
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"[DB] Could not read {self.path}: {e}. Starting fresh.")
            return self
        if not isinstance(data, dict):
            logger.warning(f"[DB] {self.path} does not hold a JSON object. Starting fresh.")
            return self
        self._transactions = coerce_transactions(data.get("transactions", []))
        self._documents = []
        for d in data.get("documents", []):
            try:
                self._documents.append(DocumentVerificationResult.model_validate(d))
            except ValidationError as e:
                logger.warning(f"[DB] Dropping unreadable document record: {e}")
        self.analyzed = bool(data.get("analyzed", False))
        self.activity_log = list(data.get("activity_log", []))
        logger.info(f"[DB] Loaded {len(self._transactions)} transactions, {len(self._documents)} documents")
        return self

    def save(self):
        if not self.persist:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self.snapshot(), f, indent=2, default=str)

    def snapshot(self) -> dict:
        """Deep copy of the store as plain JSON data."""
        return copy.deepcopy({
            "transactions": [t.to_dict() for t in self._transactions],
            "documents": [d.to_dict() for d in self._documents],
            "analyzed": self.analyzed,
            "activity_log": self.activity_log,
        })

    # ── READ ──
    def get_transactions(self) -> list:
        return list(self._transactions)

    def get_documents(self) -> list:
        return list(self._documents)

    # ── WRITE ──
    def replace_transactions(self, records):
        self._transactions = coerce_transactions(records)
        self.analyzed = False
        self.log("transactions_loaded", count=len(self._transactions))
        self.save()
        return self.get_transactions()

    def store_scored(self, records):
        """Write back a scored ledger and mark the audit as analyzed."""
        self._transactions = list(records)
        self.analyzed = True
        flagged = sum(1 for t in records if t.risk_score > 0)
        self.log("risk_analyzed", count=len(records), flagged=flagged)
        self.save()
        return self.get_transactions()

    def append_document(self, result: DocumentVerificationResult):
        self._documents.insert(0, result)
        self.log("document_verified", documentId=result.id, fileName=result.file_name,
                 cutOffTestPassed=result.cut_off_test_passed)
        self.save()
        return result

    def log(self, action: str, **fields):
        self.activity_log.append({"id": str(uuid.uuid4())[:8], "action": action,
                                  "timestamp": datetime.now().isoformat(), **fields})
        if len(self.activity_log) > MAX_ACTIVITY_LOG:
            self.activity_log = self.activity_log[-MAX_ACTIVITY_LOG:]

    def reset(self, seed: bool = False):
        self._transactions = coerce_transactions(DEMO_TRANSACTIONS) if seed else []
        self._documents = []
        self.analyzed = False
        self.activity_log = []
        self.save()
        return self


# ============================================================
# PROCESS-WIDE STORE
# ============================================================
_store = None


def get_store() -> AuditStore:
    global _store
    if _store is None:
        _store = AuditStore().load()
        if config.RESET_ON_START or (config.SEED_DEMO and not _store.get_transactions() and not _store.activity_log):
            _store.reset(seed=config.SEED_DEMO)
    return _store


def set_store(store: AuditStore):
    """Swap the process-wide store. Used in testing."""
    global _store
    _store = store
    return _store
