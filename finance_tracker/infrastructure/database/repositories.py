"""Data access layer for quotes and revenues"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from finance_tracker.infrastructure.database.models import QuoteRecord, RevenueRecord
from finance_tracker.domain.models import Quote, QuoteStatus
from finance_tracker.domain.exceptions import QuoteNotFoundError


class QuoteRepository:
    """Repository for quotes"""

    def __init__(self, db: Session):
        self.db = db

    def create_quote(
        self,
        job_title: str,
        job_description: str,
        amount: Decimal,
        client_id: int,
        currency: str = "USD",
        valid_until: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> QuoteRecord:
        """Persist a new quote; status always starts as Pending"""
        db_quote = QuoteRecord(
            job_title=job_title,
            job_description=job_description,
            amount=amount,
            client_id=client_id,
            status=QuoteStatus.PENDING.value,
            currency=currency,
            valid_until=valid_until,
            notes=notes,
        )
        self.db.add(db_quote)
        self.db.flush()  # Get ID without committing
        return db_quote

    def get_quote_by_id(self, quote_id: int) -> Optional[QuoteRecord]:
        return self.db.get(QuoteRecord, quote_id)

    def require_quote(self, quote_id: int) -> Quote:
        """
        Fetch a quote as a domain object.

        Raises:
            QuoteNotFoundError: No quote with this id
        """
        db_quote = self.get_quote_by_id(quote_id)
        if db_quote is None:
            raise QuoteNotFoundError(f"Quote {quote_id} not found")
        return to_domain_quote(db_quote)

    def list_quotes(self, status: Optional[str] = None) -> List[QuoteRecord]:
        """Fetch quotes, newest first; status "all" or None disables the filter"""
        query = self.db.query(QuoteRecord)
        if status and status != "all":
            query = query.filter(QuoteRecord.status == status)
        return query.order_by(QuoteRecord.created_at.desc(), QuoteRecord.id.desc()).all()

    def update_status(self, quote_id: int, status: str) -> Optional[QuoteRecord]:
        db_quote = self.get_quote_by_id(quote_id)
        if db_quote is None:
            return None
        db_quote.status = status
        self.db.flush()
        return db_quote


class RevenueRepository:
    """Repository for revenue records"""

    def __init__(self, db: Session):
        self.db = db

    def create_revenue(
        self,
        description: str,
        amount: Decimal,
        client_id: int,
        category: str,
        date: date,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
        currency: str = "USD",
        account: Optional[str] = None,
        is_paid: bool = False,
        quote_id: Optional[int] = None,
    ) -> RevenueRecord:
        db_revenue = RevenueRecord(
            description=description,
            amount=amount,
            client_id=client_id,
            category=category,
            date=date,
            due_date=due_date,
            notes=notes,
            currency=currency,
            account=account,
            is_paid=is_paid,
            quote_id=quote_id,
        )
        self.db.add(db_revenue)
        self.db.flush()
        return db_revenue

    def list_revenues(self, quote_id: Optional[int] = None) -> List[RevenueRecord]:
        """Fetch revenues, latest date first"""
        query = self.db.query(RevenueRecord)
        if quote_id is not None:
            query = query.filter(RevenueRecord.quote_id == quote_id)
        return query.order_by(RevenueRecord.date.desc(), RevenueRecord.id.asc()).all()


def to_domain_quote(record: QuoteRecord) -> Quote:
    """Map a stored quote onto the domain dataclass"""
    return Quote(
        id=record.id,
        client_id=record.client_id,
        job_title=record.job_title,
        amount=Decimal(str(record.amount)).quantize(Decimal("0.01")),
        status=record.status,
        currency=record.currency,
        job_description=record.job_description,
        valid_until=record.valid_until,
        notes=record.notes,
        created_at=record.created_at,
    )
