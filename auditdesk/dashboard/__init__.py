"""
AuditDesk — Dashboard Aggregation

Risk bands and cut-off counts for the audit dashboard.

  high    score > 75
  medium  30 < score ≤ 75
  low     score ≤ 30

Bands always sum to the batch size. Failed cut-off tests (False) and
indeterminate ones (None) are counted separately: indeterminate means
"needs more data", not "error found".
"""

from collections import namedtuple
from decimal import Decimal

from auditdesk.policy import DEFAULT_POLICY

RiskBands = namedtuple("RiskBands", ["high", "medium", "low"])
CutoffCounts = namedtuple("CutoffCounts", ["passed", "failed", "indeterminate"])


def risk_band(score: int, policy: dict = None) -> str:
    policy = policy or DEFAULT_POLICY
    if score > policy["high_risk_threshold"]:
        return "high"
    if score > policy["medium_risk_threshold"]:
        return "medium"
    return "low"


def risk_bands(transactions, policy: dict = None) -> RiskBands:
    counts = {"high": 0, "medium": 0, "low": 0}
    for t in transactions:
        counts[risk_band(t.risk_score, policy)] += 1
    return RiskBands(**counts)


def cutoff_counts(documents) -> CutoffCounts:
    passed = sum(1 for d in documents if d.cut_off_test_passed is True)
    failed = sum(1 for d in documents if d.cut_off_test_passed is False)
    indeterminate = sum(1 for d in documents if d.cut_off_test_passed is None)
    return CutoffCounts(passed, failed, indeterminate)


def top_risks(transactions, limit: int = 5) -> list:
    """Highest scores first; ties keep ledger order. Unflagged transactions are left out."""
    flagged = [t for t in transactions if t.risk_score > 0]
    return sorted(flagged, key=lambda t: -t.risk_score)[:limit]


def total_amount(transactions) -> Decimal:
    return sum((t.amount for t in transactions if t.amount is not None), Decimal("0"))


def build_dashboard(store, policy: dict = None) -> dict:
    """Dashboard payload for the current store state."""
    txns = store.get_transactions()
    docs = store.get_documents()
    bands = risk_bands(txns, policy)
    cut = cutoff_counts(docs)
    return {
        "analyzed": store.analyzed,
        "transactions": {
            "total": len(txns),
            "totalAmount": float(total_amount(txns)),
            "highRisk": bands.high, "mediumRisk": bands.medium, "lowRisk": bands.low,
        },
        "topRisks": [t.to_dict() for t in top_risks(txns)],
        "documents": {
            "total": len(docs),
            "cutOffPassed": cut.passed,
            "cutOffFailed": cut.failed,
            "cutOffIndeterminate": cut.indeterminate,
        },
    }
