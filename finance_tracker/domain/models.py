"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional

from finance_tracker.utils.date_utils import format_iso_date


class QuoteStatus(str, Enum):
    """Lifecycle status of a quote"""

    PENDING = "Pending"
    ACCEPTED = "Accepted"
    DECLINED = "Declined"
    CONVERTED = "Converted"


@dataclass
class Quote:
    """Price offered to a client for a job"""

    id: int
    client_id: int
    job_title: str
    amount: Decimal
    status: str = QuoteStatus.PENDING.value
    currency: str = "USD"
    job_description: str = ""
    valid_until: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Installment:
    """Single scheduled payment in a conversion plan"""

    amount: Decimal
    due_date: date
    description: str


@dataclass
class InstallmentPlan:
    """Ordered installments derived from a quote total"""

    source_total: Decimal
    installments: List[Installment]
    job_title: str
    start_date: date

    @property
    def count(self) -> int:
        return len(self.installments)

    @property
    def installments_total(self) -> Decimal:
        return sum((inst.amount for inst in self.installments), Decimal("0"))


@dataclass
class ReconciliationResult:
    """Outcome of checking installments against the quote total"""

    expected: Decimal
    actual: Decimal

    @property
    def ok(self) -> bool:
        return f"{self.expected:.2f}" == f"{self.actual:.2f}"

    @property
    def difference(self) -> Decimal:
        return self.expected - self.actual

    @property
    def message(self) -> str:
        if self.ok:
            return "Installments match quote amount"
        return (
            f"Total installment amount ({self.actual:.2f}) does not match "
            f"quote amount ({self.expected:.2f})"
        )


@dataclass
class RevenueRequest:
    """Revenue-creation payload for one installment"""

    client_id: int
    amount: Decimal
    date: date
    description: str
    category: str
    currency: str
    due_date: date
    quote_id: int
    account: Optional[str] = None
    is_paid: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "client_id": self.client_id,
            "amount": str(self.amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)),
            "date": format_iso_date(self.date),
            "description": self.description,
            "category": self.category,
            "account": self.account,
            "currency": self.currency,
            "due_date": format_iso_date(self.due_date),
            "is_paid": self.is_paid,
            "quote_id": self.quote_id,
        }


@dataclass
class InstallmentFailure:
    """Revenue creation that did not succeed"""

    index: int
    installment: Installment
    error: str


@dataclass
class ConversionResult:
    """Output of submitting a plan: created revenues, failures, new quote status"""

    quote_id: int
    quote_status: str
    installments_persisted: List[Dict[str, Any]] = field(default_factory=list)
    failures: List[InstallmentFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures


@dataclass
class StatusBucket:
    """Count and summed value of quotes in one status"""

    count: int
    value: Decimal


@dataclass
class QuoteConversionSummary:
    """Dashboard figure: share of quotes accepted"""

    conversion_rate: int
    accepted: StatusBucket
    declined: StatusBucket
    pending: StatusBucket
    total: StatusBucket
