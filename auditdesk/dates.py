"""
AuditDesk — Date Parsing
Shared by the models, the cut-off evaluator and the policy engine.
"""

from datetime import date, datetime

ISO_DATE_LEN = 10


def parse_date(value):
    """Coerce a date, datetime or ISO string into a date. Anything else → None.

    Strings must be a bare ``YYYY-MM-DD`` or an ISO timestamp whose date part
    is followed by ``T`` or a space.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if len(text) < ISO_DATE_LEN:
        return None
    if len(text) > ISO_DATE_LEN and text[ISO_DATE_LEN] not in ("T", " "):
        return None
    try:
        return datetime.strptime(text[:ISO_DATE_LEN], "%Y-%m-%d").date()
    except ValueError:
        return None
