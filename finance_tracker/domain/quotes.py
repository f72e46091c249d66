"""Quote status rules and conversion-rate summary"""

from decimal import Decimal
from typing import Iterable, List
from finance_tracker.domain.models import Quote, QuoteStatus, QuoteConversionSummary, StatusBucket

CONVERTIBLE_STATUSES = {QuoteStatus.PENDING.value, QuoteStatus.ACCEPTED.value}


def is_convertible(status: str) -> bool:
    """Pending and Accepted quotes may move to Converted"""
    return status in CONVERTIBLE_STATUSES


def _bucket(quotes: List[Quote], status: QuoteStatus) -> StatusBucket:
    matching = [q for q in quotes if q.status == status.value]
    return StatusBucket(
        count=len(matching),
        value=sum((q.amount for q in matching), Decimal("0")),
    )


def summarize_conversion_rate(quotes: Iterable[Quote]) -> QuoteConversionSummary:
    """
    Summarize quotes for the dashboard conversion figure.

    conversion_rate is the percentage of all quotes that are Accepted, rounded
    to a whole number. Converted quotes count toward the total count but not
    toward any value bucket.
    """
    quotes = list(quotes)

    accepted = _bucket(quotes, QuoteStatus.ACCEPTED)
    declined = _bucket(quotes, QuoteStatus.DECLINED)
    pending = _bucket(quotes, QuoteStatus.PENDING)

    total_count = len(quotes)
    # Half-up on the percentage, 2.5 -> 3
    conversion_rate = int(Decimal(accepted.count * 100) / total_count + Decimal("0.5")) if total_count else 0

    return QuoteConversionSummary(
        conversion_rate=conversion_rate,
        accepted=accepted,
        declined=declined,
        pending=pending,
        total=StatusBucket(
            count=total_count,
            value=accepted.value + declined.value + pending.value,
        ),
    )
