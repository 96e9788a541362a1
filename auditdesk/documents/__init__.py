"""
AuditDesk — Document Verification

One upload in, one DocumentVerificationResult out:
extraction → cut-off evaluation → immutable result record.

An extraction failure does not propagate. It is recorded as a result with
no extraction and an indeterminate cut-off, so the auditor still sees the
upload and why it could not be tested.
"""

import logging
import uuid
from datetime import datetime

from auditdesk.cutoff import evaluate_extraction
from auditdesk.extraction import ExtractionError, extract_document_data
from auditdesk.models import DocumentVerificationResult
from auditdesk.policy import get_fiscal_year_end

logger = logging.getLogger(__name__)


async def verify_document(content: bytes, media_type: str, file_name: str,
                          fiscal_year_end=None, extractor=None, now=None) -> DocumentVerificationResult:
    fye = fiscal_year_end or get_fiscal_year_end()
    doc_id = str(uuid.uuid4())[:8]
    uploaded_at = now or datetime.now()

    try:
        extracted = await extract_document_data(content, media_type, file_name, extractor=extractor)
    except ExtractionError as e:
        logger.warning(f"[Upload] {file_name}: extraction failed: {e}")
        return DocumentVerificationResult(
            id=doc_id, file_name=file_name, uploaded_at=uploaded_at,
            extraction=None, cut_off_test_passed=None,
            notes=f"Extraction failed: {e}")

    cutoff = evaluate_extraction(extracted, fye)
    logger.info(f"[Upload] {file_name}: cut-off passed={cutoff.passed} ({cutoff.notes})")
    return DocumentVerificationResult(
        id=doc_id, file_name=file_name, uploaded_at=uploaded_at,
        extraction=extracted, cut_off_test_passed=cutoff.passed,
        notes=cutoff.notes)
