"""
AuditDesk — Document Extraction

Extracts cut-off relevant fields from an invoice or delivery-note image:
invoice number, invoice date, delivery date, total, customer and document
type.

  ClaudeDocumentExtractor   — Claude vision call, JSON-only response
  OfflineDocumentExtractor  — deterministic, reads dates and document
                              numbers from the file name (demo / no API key)

Extraction output is untrusted. The model layer degrades malformed fields
to None; only an unusable response (no JSON object at all) is an error.

Also home to the shared Claude plumbing (client construction, JSON
response cleanup) used by the scoring and reporting collaborators.
"""
import re
import json
import base64
import logging
import zlib

import anthropic
from pydantic import ValidationError

from auditdesk.config import (
    USE_REAL_API, PRIMARY_MODEL, AI_TIMEOUT_SECONDS, AI_MAX_RETRIES, AI_MAX_TOKENS,
    ALLOWED_MEDIA_TYPES,
)
from auditdesk.models import DocumentType, ExtractedDocumentData

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """The document could not be turned into extracted fields."""


# ============================================================
# PROMPTS
# ============================================================
EXTRACTION_PROMPT = """You are a financial document extraction AI working for an accounts-receivable auditor.
Extract the following fields from this invoice or delivery note image for cut-off testing.

Return ONLY valid JSON (no markdown, no explanation) with this exact structure:
{
  "invoiceNumber": "the invoice or delivery note number",
  "invoiceDate": "YYYY-MM-DD or null",
  "deliveryDate": "YYYY-MM-DD or null (date goods were delivered / received)",
  "totalAmount": 12500.00,
  "customerName": "customer / bill-to name",
  "lineItemsSummary": "one line summary of the goods or services, or null",
  "documentType": "Invoice" or "Delivery Note" or "Unknown"
}

RULES:
- Dates must be YYYY-MM-DD. If a date is not visible, use null. Never guess a date.
- totalAmount is numeric, no currency symbols.
- If a field is missing, return null or an empty string."""


# ============================================================
# CLAUDE PLUMBING
# ============================================================
def get_client() -> anthropic.AsyncAnthropic:
    return anthropic.AsyncAnthropic(timeout=AI_TIMEOUT_SECONDS, max_retries=AI_MAX_RETRIES)


def strip_code_fences(text: str) -> str:
    """Remove a ```json ... ``` wrapper if the model added one."""
    text = (text or "").strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text


def parse_json_response(text: str):
    """Parse a model response as JSON. Raises ValueError on anything unparseable."""
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ValueError("empty response")
    return json.loads(cleaned)


def response_text(msg) -> str:
    return "".join(getattr(block, "text", "") for block in (msg.content or []))


def build_content_block(content: bytes, media_type: str) -> dict:
    b64_data = base64.standard_b64encode(content).decode("utf-8")
    if media_type == "application/pdf":
        return {"type": "document", "source": {"type": "base64", "media_type": media_type, "data": b64_data}}
    return {"type": "image", "source": {"type": "base64", "media_type": media_type, "data": b64_data}}


# ============================================================
# EXTRACTORS
# ============================================================
class ClaudeDocumentExtractor:
    source = "claude_api"

    def __init__(self, client=None, model: str = PRIMARY_MODEL):
        self.client = client
        self.model = model

    async def extract(self, content: bytes, media_type: str, file_name: str) -> ExtractedDocumentData:
        client = self.client or get_client()
        block = build_content_block(content, media_type)
        try:
            msg = await client.messages.create(model=self.model, max_tokens=AI_MAX_TOKENS,
                messages=[{"role": "user", "content": [block, {"type": "text", "text": EXTRACTION_PROMPT}]}])
        except anthropic.APIError as e:
            logger.warning(f"[AI] Extraction call failed for {file_name}: {e}")
            raise ExtractionError(f"AI provider error: {e}") from e
        text = response_text(msg)
        if not text:
            raise ExtractionError("No response from AI")
        try:
            data = parse_json_response(text)
        except ValueError as e:
            raise ExtractionError(f"Unreadable AI response: {e}") from e
        return to_extracted(data)


_DATE_RE = re.compile(r"(?<!\d)(\d{4})[-_.](\d{2})[-_.](\d{2})(?!\d)")
_DOCNUM_RE = re.compile(r"\b((?:INV|DN|GRN)[-_]?\d+)", re.IGNORECASE)


class OfflineDocumentExtractor:
    """Deterministic stand-in for the AI extractor.

    The first date in the file name is the invoice date, the second the
    delivery date, e.g. ``INV-1001_2025-01-05_2024-12-20.png``.
    """
    source = "offline"

    async def extract(self, content: bytes, media_type: str, file_name: str) -> ExtractedDocumentData:
        stem = file_name.rsplit(".", 1)[0]
        dates = [f"{y}-{m}-{d}" for y, m, d in _DATE_RE.findall(stem)]
        lowered = stem.lower()
        if "delivery" in lowered or lowered.startswith(("dn", "grn")):
            doc_type = DocumentType.DELIVERY_NOTE
        elif "inv" in lowered:
            doc_type = DocumentType.INVOICE
        else:
            doc_type = DocumentType.UNKNOWN
        num = _DOCNUM_RE.search(stem)
        number = num.group(1).upper() if num else f"DOC-{zlib.crc32(content or b'') % 100000:05d}"
        return to_extracted({
            "invoiceNumber": number,
            "invoiceDate": dates[0] if dates else None,
            "deliveryDate": dates[1] if len(dates) > 1 else None,
            "totalAmount": None,
            "customerName": "",
            "documentType": doc_type,
        })


def to_extracted(data) -> ExtractedDocumentData:
    if not isinstance(data, dict):
        raise ExtractionError(f"Expected a JSON object, got {type(data).__name__}")
    try:
        return ExtractedDocumentData.model_validate(data)
    except ValidationError as e:
        raise ExtractionError(f"Extraction did not match the expected fields: {e}") from e


def get_extractor():
    return ClaudeDocumentExtractor() if USE_REAL_API else OfflineDocumentExtractor()


async def extract_document_data(content: bytes, media_type: str, file_name: str, extractor=None) -> ExtractedDocumentData:
    """Extract fields from one uploaded document. Raises ExtractionError on failure."""
    if media_type not in ALLOWED_MEDIA_TYPES:
        raise ExtractionError(f"Unsupported media type: {media_type}")
    if not content:
        raise ExtractionError("Empty file")
    extractor = extractor or get_extractor()
    result = await extractor.extract(content, media_type, file_name)
    logger.info(f"[AI] Extracted {file_name} via {getattr(extractor, 'source', 'custom')}: "
                f"type={result.document_type.value} invoice={result.invoice_date} delivery={result.delivery_date}")
    return result
