"""
AuditDesk — Cut-off Evaluation Module

Fiscal-year cut-off test: was revenue booked in the same period the goods
were delivered? Compares a document's invoice date and delivery date to the
fiscal year end (FYE). The FYE is inclusive: a date on the FYE belongs to
the closing period.

Outcomes are tri-state:
  True  — both dates on the same side of the FYE ("Verified.")
  False — dates straddle the FYE (potential cut-off error)
  None  — indeterminate, a date is missing or unparseable

evaluate() never raises. Missing or malformed input always resolves to the
indeterminate outcome.
"""

from auditdesk.dates import parse_date
from auditdesk.models import CutoffResult

NOTE_VERIFIED = "Verified."
NOTE_DATES_MISSING = "Dates missing for cut-off test."
NOTE_DELIVERED_BEFORE_INVOICED_AFTER = "Potential Cut-off Error: Goods delivered before Year End, Invoiced after."
NOTE_INVOICED_BEFORE_DELIVERED_AFTER = "Potential Cut-off Error: Invoiced before Year End, Goods delivered after."


def evaluate(invoice_date, delivery_date, fiscal_year_end):
    """Classify one document's booking against the fiscal year end."""
    inv = parse_date(invoice_date)
    dlv = parse_date(delivery_date)
    fye = parse_date(fiscal_year_end)
    if inv is None or dlv is None or fye is None:
        return CutoffResult(passed=None, notes=NOTE_DATES_MISSING)

    if inv > fye and dlv <= fye:
        return CutoffResult(passed=False, notes=NOTE_DELIVERED_BEFORE_INVOICED_AFTER)
    if inv <= fye and dlv > fye:
        return CutoffResult(passed=False, notes=NOTE_INVOICED_BEFORE_DELIVERED_AFTER)
    return CutoffResult(passed=True, notes=NOTE_VERIFIED)


def evaluate_extraction(extraction, fiscal_year_end):
    """Evaluate an ExtractedDocumentData. A missing extraction is indeterminate."""
    if extraction is None:
        return evaluate(None, None, fiscal_year_end)
    return evaluate(extraction.invoice_date, extraction.delivery_date, fiscal_year_end)
