"""Quote endpoints: create, list, fetch, status update, conversion rate"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from finance_tracker.api.v1.schemas import (
    ConversionRateResponse,
    QuoteCreateRequest,
    QuoteResponse,
    QuoteStatusUpdate,
    StatusBucketSchema,
)
from finance_tracker.infrastructure.database.session import get_db
from finance_tracker.infrastructure.database.repositories import QuoteRepository, to_domain_quote
from finance_tracker.domain.quotes import summarize_conversion_rate

router = APIRouter()


@router.post("/quotes", response_model=QuoteResponse, status_code=201)
def create_quote(request_body: QuoteCreateRequest, db: Session = Depends(get_db)):
    """Create a quote in Pending status"""
    try:
        quote_repo = QuoteRepository(db)
        db_quote = quote_repo.create_quote(**request_body.model_dump())
        db.commit()
        db.refresh(db_quote)
        return db_quote

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error creating quote: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/quotes", response_model=List[QuoteResponse])
def list_quotes(
    status: Optional[str] = Query(None, description="Filter by status, 'all' for every quote"),
    db: Session = Depends(get_db),
):
    return QuoteRepository(db).list_quotes(status=status)


@router.get("/quotes/conversion-rate", response_model=ConversionRateResponse)
def get_conversion_rate(db: Session = Depends(get_db)):
    """
    Share of quotes that were accepted.

    Returns:
        Percentage plus count/value per Accepted, Declined, Pending and total
    """
    quotes = [to_domain_quote(q) for q in QuoteRepository(db).list_quotes()]
    summary = summarize_conversion_rate(quotes)

    def bucket(b):
        return StatusBucketSchema(count=b.count, value=b.value)

    return ConversionRateResponse(
        conversion_rate=summary.conversion_rate,
        accepted=bucket(summary.accepted),
        declined=bucket(summary.declined),
        pending=bucket(summary.pending),
        total=bucket(summary.total),
    )


@router.get("/quotes/{quote_id}", response_model=QuoteResponse)
def get_quote(quote_id: int, db: Session = Depends(get_db)):
    db_quote = QuoteRepository(db).get_quote_by_id(quote_id)
    if not db_quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return db_quote


@router.patch("/quotes/{quote_id}", response_model=QuoteResponse)
def update_quote_status(quote_id: int, request_body: QuoteStatusUpdate, db: Session = Depends(get_db)):
    """
    Set a quote's status.

    Any transition is accepted, including out of Converted; the conversion
    workflow relies on this endpoint to mark quotes Converted.
    """
    try:
        db_quote = QuoteRepository(db).update_status(quote_id, request_body.status)
        if not db_quote:
            raise HTTPException(status_code=404, detail="Quote not found")

        db.commit()
        db.refresh(db_quote)

    except HTTPException:
        raise

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error updating quote: {e}", extra={"quote_id": quote_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    logging.info("Quote status updated", extra={"quote_id": quote_id, "quote_status": request_body.status})
    return db_quote
