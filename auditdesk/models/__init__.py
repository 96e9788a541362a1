"""
Data models for AuditDesk.

Pydantic models used for validation, serialization and the API contract.
Core records are frozen: scoring and verification return new records
instead of mutating their inputs.

Field names serialize as camelCase (riskScore, invoiceDate, ...) and
input accepts either camelCase or snake_case. Input is treated as
untrusted: malformed values degrade to None / 0 instead of failing
validation, so a bad row never blocks a whole batch.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from auditdesk.dates import parse_date

CalendarDate = date


def parse_amount(value) -> Optional[Decimal]:
    """Coerce a numeric value to a non-negative Decimal. Anything else → None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def _clamp_score(value) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, min(100, score))


class AuditModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class DocumentType(str, Enum):
    INVOICE = "Invoice"
    DELIVERY_NOTE = "Delivery Note"
    UNKNOWN = "Unknown"

    @classmethod
    def coerce(cls, value) -> "DocumentType":
        if isinstance(value, cls):
            return value
        key = "".join(ch for ch in str(value or "").lower() if ch.isalpha())
        if key == "invoice":
            return cls.INVOICE
        if key in ("deliverynote", "delivery", "goodsreceipt", "grn"):
            return cls.DELIVERY_NOTE
        return cls.UNKNOWN


class Transaction(AuditModel):
    """One AR ledger entry. riskReason is only kept while riskScore > 0."""

    id: str
    date: Optional[CalendarDate] = None
    customer: str = ""
    amount: Optional[Decimal] = None
    description: str = ""
    risk_score: int = 0
    risk_reason: Optional[str] = None
    risk_source: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v):
        return "" if v is None else str(v)

    @field_validator("customer", "description", mode="before")
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v)

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v):
        return parse_date(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v):
        return parse_amount(v)

    @field_serializer("amount", when_used="json")
    def _amount_json(self, v):
        return None if v is None else float(v)

    @field_validator("risk_score", mode="before")
    @classmethod
    def _score(cls, v):
        return _clamp_score(v)

    @field_validator("risk_reason", mode="before")
    @classmethod
    def _reason(cls, v):
        if v is None:
            return None
        return str(v).strip() or None

    @model_validator(mode="after")
    def _reason_needs_score(self):
        if self.risk_score == 0 and self.risk_reason is not None:
            object.__setattr__(self, "risk_reason", None)
        return self

    def with_risk(self, score: int, reason: Optional[str], source: Optional[str] = None) -> "Transaction":
        """Return a copy carrying a new score. Validation re-runs so the invariants hold."""
        data = self.model_dump()
        data.update(risk_score=score, risk_reason=reason, risk_source=source)
        return Transaction.model_validate(data)


class ExtractedDocumentData(AuditModel):
    invoice_number: str = ""
    invoice_date: Optional[date] = None
    delivery_date: Optional[date] = None
    total_amount: Optional[Decimal] = None
    customer_name: str = ""
    line_items_summary: Optional[str] = None
    document_type: DocumentType = DocumentType.UNKNOWN

    @field_validator("invoice_number", "customer_name", mode="before")
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("invoice_date", "delivery_date", mode="before")
    @classmethod
    def _date(cls, v):
        return parse_date(v)

    @field_validator("total_amount", mode="before")
    @classmethod
    def _amount(cls, v):
        return parse_amount(v)

    @field_serializer("total_amount", when_used="json")
    def _amount_json(self, v):
        return None if v is None else float(v)

    @field_validator("document_type", mode="before")
    @classmethod
    def _doc_type(cls, v):
        return DocumentType.coerce(v)


class CutoffResult(AuditModel):
    passed: Optional[bool] = None
    notes: str = ""

    @property
    def indeterminate(self) -> bool:
        return self.passed is None


class DocumentVerificationResult(AuditModel):
    id: str
    file_name: str
    uploaded_at: datetime
    extraction: Optional[ExtractedDocumentData] = None
    cut_off_test_passed: Optional[bool] = None
    notes: str = ""


class RiskAssessment(AuditModel):
    transaction: Transaction
    score: int = 0
    reason: Optional[str] = None
    signals: Tuple[str, ...] = ()


class ChatMessage(AuditModel):
    role: str = Field(pattern="^(user|model)$")
    text: str
