"""
AuditDesk — Heuristic Risk Flagging

4 deterministic AR risk rules. Zero LLM. Usable as a local pre-filter, as
the fallback when AI scoring is unavailable, or as a floor under AI scores.

Rules (default contributions):
  1. ROUND_NUMBER       — amount ≥ 1000 and a multiple of 1000      (40)
  2. WEEKEND_POSTING    — posted on Saturday or Sunday               (35)
  3. DUPLICATE_AMOUNT   — same amount as another transaction         (30)
  4. MAGNITUDE_OUTLIER  — amount > 3× the median amount of the batch (50)

Contributions are not summed. The final score is the highest triggered
contribution (capped at 100); the reason lists every rule tied at that
maximum, joined by "; " in rule order.

score_transactions() is pure and total: it never mutates its input and
never raises on malformed records. A missing amount or date simply
produces no signal for the rules that need it.
"""

from collections import Counter
from decimal import Decimal
from statistics import median

from auditdesk.models import RiskAssessment, Transaction
from auditdesk.policy import DEFAULT_POLICY

ROUND_NUMBER = "ROUND_NUMBER"
WEEKEND_POSTING = "WEEKEND_POSTING"
DUPLICATE_AMOUNT = "DUPLICATE_AMOUNT"
MAGNITUDE_OUTLIER = "MAGNITUDE_OUTLIER"

RULE_ORDER = (ROUND_NUMBER, WEEKEND_POSTING, DUPLICATE_AMOUNT, MAGNITUDE_OUTLIER)

RULE_REASONS = {
    ROUND_NUMBER: "Round-number amount",
    WEEKEND_POSTING: "Weekend posting",
    DUPLICATE_AMOUNT: "Duplicate amount with another transaction",
    MAGNITUDE_OUTLIER: "Magnitude outlier relative to batch",
}


def _dec(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _batch_stats(reference):
    """Amount counts and median over the reference set (missing amounts excluded)."""
    amounts = [t.amount for t in reference if t.amount is not None]
    return Counter(amounts), (median(amounts) if amounts else None), len(amounts)


def _signals(txn: Transaction, reference, stats, policy) -> dict:
    """Evaluate every rule for one transaction. Returns {rule: contribution} in rule order."""
    counts, batch_median, n_amounts = stats
    hits = {}
    amt = txn.amount

    # ── 1. ROUND NUMBER ──
    unit = _dec(policy["round_number_unit"])
    if amt is not None and unit > 0 and amt >= _dec(policy["round_number_min_amount"]) and amt % unit == 0:
        hits[ROUND_NUMBER] = policy["round_number_score"]

    # ── 2. WEEKEND POSTING ──
    if txn.date is not None and txn.date.weekday() >= 5:
        hits[WEEKEND_POSTING] = policy["weekend_score"]

    # ── 3. DUPLICATE AMOUNT ──
    if amt is not None and n_amounts > 1:
        own = 1 if any(r.id == txn.id and r.amount == amt for r in reference) else 0
        if counts[amt] - own >= 1:
            hits[DUPLICATE_AMOUNT] = policy["duplicate_amount_score"]

    # ── 4. MAGNITUDE OUTLIER ──
    if amt is not None and n_amounts > 1:
        if amt > _dec(policy["outlier_multiple"]) * batch_median:
            hits[MAGNITUDE_OUTLIER] = policy["outlier_score"]

    return hits


def combine(hits: dict):
    """Max of triggered contributions, capped at 100, with all tied reasons in rule order."""
    if not hits:
        return 0, None
    top = max(hits.values())
    score = max(0, min(100, int(top)))
    if score == 0:
        return 0, None
    reasons = [RULE_REASONS[rule] for rule in RULE_ORDER if hits.get(rule) == top]
    return score, "; ".join(reasons)


def score_transactions(transactions, reference_set=None, policy=None) -> list:
    """Score each transaction against the reference set (defaults to the batch itself)."""
    transactions = list(transactions or [])
    if not transactions:
        return []
    reference = list(reference_set) if reference_set is not None else transactions
    policy = {**DEFAULT_POLICY, **(policy or {})}
    stats = _batch_stats(reference)

    results = []
    for txn in transactions:
        hits = _signals(txn, reference, stats, policy)
        score, reason = combine(hits)
        results.append(RiskAssessment(
            transaction=txn.with_risk(score, reason, "heuristic"),
            score=score, reason=reason,
            signals=tuple(rule for rule in RULE_ORDER if rule in hits)))
    return results


def score_batch(transactions, policy=None) -> list:
    """Convenience: the scored Transaction records only."""
    return [a.transaction for a in score_transactions(transactions, policy=policy)]
