"""
AuditDesk — Reporting Assistant

Audit executive summary and auditor chat.

  ClaudeNarrator   — drafts the summary / answers chat with Claude
  OfflineNarrator  — deterministic markdown built from the same findings

Provider failures never raise to the caller. They return the fixed
messages below so the dashboard always has something to show.
"""
import json
import logging

import anthropic

from auditdesk.config import USE_REAL_API, REPORTING_MODEL, PRIMARY_MODEL, AI_MAX_TOKENS
from auditdesk.dashboard import cutoff_counts
from auditdesk.extraction import get_client, response_text
from auditdesk.policy import get_policy

logger = logging.getLogger(__name__)

SUMMARY_ERROR = "Error generating audit summary. Please check API configuration."
SUMMARY_EMPTY = "Unable to generate report."
CHAT_ERROR = "I'm having trouble connecting to the audit brain right now."


# ============================================================
# PROMPTS
# ============================================================
SUMMARY_PROMPT = """You are a Senior Audit Manager.
Write a concise Audit Executive Summary and Draft Journal Entries based on the following findings.

ANOMALY DETECTION FINDINGS:
Total Transactions Analyzed: {total}
High Risk Transactions Detected: {high_count}
Details of High Risk Items: {high_json}

DOCUMENT VERIFICATION FINDINGS:
{docs_json}

Please structure the response as follows:
1. **Executive Summary**: Brief overview of the AR audit health.
2. **Key Findings**: Bullet points of specific anomalies and cut-off errors.
3. **Recommended Adjustments**: Draft Journal Entries (Debits/Credits) for any material misstatements found (especially cut-off errors).
4. **Conclusion**: Final risk assessment (Low/Medium/High).

Use professional auditing tone. Format with Markdown."""

CHAT_SYSTEM = """You are an AI Audit Assistant.
You have access to the current audit context provided below.
Answer questions about specific transactions, risks, or accounting standards (IFRS/GAAP).
Context Data: {context}"""


def high_risk_items(transactions, policy=None) -> list:
    threshold = (policy or get_policy())["report_high_risk_threshold"]
    return [t for t in transactions if t.risk_score > threshold]


def overall_risk(high_count: int, failed_cutoffs: int) -> str:
    if failed_cutoffs or high_count >= 3:
        return "High"
    if high_count:
        return "Medium"
    return "Low"


# ============================================================
# NARRATORS
# ============================================================
class ClaudeNarrator:
    source = "claude_api"

    def __init__(self, client=None, summary_model: str = REPORTING_MODEL, chat_model: str = PRIMARY_MODEL):
        self.client = client
        self.summary_model = summary_model
        self.chat_model = chat_model

    async def draft_summary(self, transactions, documents, policy=None) -> str:
        high = high_risk_items(transactions, policy)
        prompt = SUMMARY_PROMPT.format(
            total=len(transactions), high_count=len(high),
            high_json=json.dumps([t.to_dict() for t in high], default=str),
            docs_json=json.dumps([d.to_dict() for d in documents], default=str))
        client = self.client or get_client()
        msg = await client.messages.create(model=self.summary_model, max_tokens=AI_MAX_TOKENS,
            messages=[{"role": "user", "content": prompt}])
        return response_text(msg).strip()

    async def answer(self, history, context_data: str) -> str:
        transcript = "\n".join(f"{m.role}: {m.text}" for m in history)
        client = self.client or get_client()
        msg = await client.messages.create(model=self.chat_model, max_tokens=AI_MAX_TOKENS,
            system=CHAT_SYSTEM.format(context=context_data),
            messages=[{"role": "user", "content": f"Chat History:\n{transcript}\n\nUser: {history[-1].text}"}])
        return response_text(msg).strip()


class OfflineNarrator:
    source = "offline"

    async def draft_summary(self, transactions, documents, policy=None) -> str:
        high = high_risk_items(transactions, policy)
        cut = cutoff_counts(documents)
        failed = [d for d in documents if d.cut_off_test_passed is False]

        lines = ["## Executive Summary", "",
                 f"{len(transactions)} AR transactions analyzed; {len(high)} high-risk item(s) identified. "
                 f"{len(documents)} supporting document(s) tested for cut-off: {cut.passed} verified, "
                 f"{cut.failed} potential cut-off error(s), {cut.indeterminate} awaiting data.",
                 "", "## Key Findings", ""]
        for t in high:
            amount = f"{t.amount:,.2f}" if t.amount is not None else "n/a"
            lines.append(f"- **{t.id}** {t.customer} ({amount}): score {t.risk_score}. {t.risk_reason or ''}".rstrip())
        for d in failed:
            lines.append(f"- **{d.file_name}**: {d.notes}")
        if not high and not failed:
            lines.append("- No material anomalies or cut-off errors detected.")

        lines += ["", "## Recommended Adjustments", ""]
        if failed:
            for d in failed:
                ref = d.extraction.invoice_number if d.extraction and d.extraction.invoice_number else d.file_name
                lines.append(f"- {ref}: review period of recognition. If revenue belongs to the other period, "
                             f"Dr Revenue / Cr Accounts Receivable (or the reverse) for the invoice amount.")
        else:
            lines.append("- No adjusting entries proposed.")

        lines += ["", "## Conclusion", "",
                  f"Overall risk assessment: **{overall_risk(len(high), cut.failed)}**."]
        return "\n".join(lines)

    async def answer(self, history, context_data: str) -> str:
        return ("The AI assistant is running offline. Current audit context:\n\n" + context_data.strip())


def get_narrator():
    return ClaudeNarrator() if USE_REAL_API else OfflineNarrator()


# ============================================================
# PUBLIC API
# ============================================================
async def generate_audit_summary(transactions, documents, narrator=None, policy=None) -> str:
    narrator = narrator or get_narrator()
    try:
        text = await narrator.draft_summary(list(transactions), list(documents), policy)
    except anthropic.APIError as e:
        logger.warning(f"[AI] Reporting error: {e}")
        return SUMMARY_ERROR
    return text or SUMMARY_EMPTY


async def chat_with_auditor(history, context_data: str, narrator=None) -> str:
    """Answer the last user message. Raises ValueError when there is nothing to answer."""
    history = list(history or [])
    if not history or history[-1].role != "user":
        raise ValueError("Chat history must end with a user message")
    narrator = narrator or get_narrator()
    try:
        text = await narrator.answer(history, context_data)
    except anthropic.APIError as e:
        logger.warning(f"[AI] Chat error: {e}")
        return CHAT_ERROR
    return text or CHAT_ERROR


def build_chat_context(store, policy=None) -> str:
    txns = store.get_transactions()
    docs = store.get_documents()
    high = high_risk_items(txns, policy)
    return "\n".join([
        f"Transactions: {len(txns)}",
        f"High Risk Items: {json.dumps([t.to_dict() for t in high], default=str)}",
        f"Documents Processed: {len(docs)}",
        f"Document Findings: {json.dumps([{'fileName': d.file_name, 'cutOffTestPassed': d.cut_off_test_passed, 'notes': d.notes} for d in docs])}",
    ])
