"""
AuditDesk — Risk Scoring Collaborators

Two interchangeable scorers and the policy that reconciles them:

  HeuristicRiskScorer  — the deterministic rules in auditdesk.risk
  ClaudeRiskScorer     — asks Claude to score the batch; returns None on
                         any failure so the heuristic result stands

analyze_risk() always computes the heuristic score, then applies the
active risk_source_policy (see auditdesk.policy):

  floor      max(AI, heuristic); on a tie both reasons are kept
  fallback   AI when it scored the transaction, heuristic otherwise
  heuristic  AI is never called

Every returned transaction records where its score came from in
riskSource: "heuristic", "ai" or "ai+heuristic".
"""
import json
import logging

import anthropic

from auditdesk.config import USE_REAL_API, PRIMARY_MODEL, AI_MAX_TOKENS
from auditdesk.extraction import get_client, parse_json_response, response_text
from auditdesk.policy import get_policy
from auditdesk.risk import score_transactions

logger = logging.getLogger(__name__)


# ============================================================
# RISK PROMPT
# ============================================================
RISK_PROMPT = """Act as an Accounts Receivable Audit Risk Model.
Analyze the following list of transactions for anomalies.
Look for:
1. Round number amounts (potential fraud/estimation).
2. Weekend postings (unusual activity).
3. High values relative to others.
4. Duplicate amounts.

Respond ONLY with a JSON array, one object per transaction, no markdown:
[{{"id": "TXN-001", "riskScore": 0-100, "riskReason": "short explanation or null"}}]

Input Data:
{transactions_json}"""


class HeuristicRiskScorer:
    source = "heuristic"

    async def score(self, transactions, policy=None):
        return {a.transaction.id: (a.score, a.reason)
                for a in score_transactions(transactions, policy=policy)}


class ClaudeRiskScorer:
    source = "ai"

    def __init__(self, client=None, model: str = PRIMARY_MODEL):
        self.client = client
        self.model = model

    async def score(self, transactions, policy=None):
        """Return {id: (score, reason)} for the transactions Claude scored, or None on failure."""
        if not transactions:
            return {}
        client = self.client or get_client()
        payload = json.dumps([{"id": t.id, "date": t.date.isoformat() if t.date else None,
                               "amount": float(t.amount) if t.amount is not None else None,
                               "customer": t.customer, "description": t.description}
                              for t in transactions], indent=2)
        try:
            msg = await client.messages.create(model=self.model, max_tokens=AI_MAX_TOKENS,
                messages=[{"role": "user", "content": RISK_PROMPT.format(transactions_json=payload)}])
            result = parse_json_response(response_text(msg))
        except (anthropic.APIError, ValueError) as e:
            logger.warning(f"[AI] Risk scoring unavailable, using heuristics: {e}")
            return None
        if not isinstance(result, list):
            logger.warning("[AI] Risk scoring returned a non-list response, using heuristics")
            return None

        known = {t.id for t in transactions}
        scores = {}
        for item in result:
            if not isinstance(item, dict) or item.get("id") not in known:
                continue
            try:
                score = max(0, min(100, int(round(float(item.get("riskScore"))))))
            except (TypeError, ValueError):
                continue
            reason = item.get("riskReason")
            scores[item["id"]] = (score, str(reason).strip() if reason else None)
        return scores


def get_ai_scorer():
    return ClaudeRiskScorer() if USE_REAL_API else None


def reconcile(heuristic, ai, mode: str):
    """Combine one transaction's (score, reason) pairs. Returns (score, reason, source)."""
    h_score, h_reason = heuristic
    if ai is None:
        return h_score, h_reason, "heuristic"
    a_score, a_reason = ai
    if mode == "fallback":
        return a_score, a_reason, "ai"
    if a_score > h_score:
        return a_score, a_reason, "ai"
    if h_score > a_score:
        return h_score, h_reason, "heuristic"
    reasons = [r for r in (a_reason, h_reason) if r]
    return a_score, "; ".join(dict.fromkeys(reasons)) or None, "ai+heuristic" if h_score else "ai"


async def analyze_risk(transactions, policy=None, scorer=None) -> list:
    """Score a ledger. Returns new Transaction records; the input is left untouched."""
    policy = policy or get_policy()
    transactions = list(transactions)
    assessments = score_transactions(transactions, policy=policy)
    mode = policy.get("risk_source_policy", "floor")

    ai_scores = None
    if mode != "heuristic":
        scorer = scorer or get_ai_scorer()
        if scorer is not None:
            ai_scores = await scorer.score(transactions, policy=policy)

    scored = []
    for txn, a in zip(transactions, assessments):
        ai = ai_scores.get(txn.id) if ai_scores else None
        score, reason, source = reconcile((a.score, a.reason), ai, mode)
        scored.append(txn.with_risk(score, reason, source))
    logger.info(f"[Risk] Scored {len(scored)} transactions (policy={mode}, ai={'yes' if ai_scores else 'no'})")
    return scored
