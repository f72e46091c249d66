"""Revenue endpoints: create and list income entries"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from finance_tracker.api.v1.schemas import RevenueCreateRequest, RevenueResponse
from finance_tracker.infrastructure.database.session import get_db
from finance_tracker.infrastructure.database.repositories import RevenueRepository

router = APIRouter()


@router.post("/revenues", response_model=RevenueResponse, status_code=201)
def create_revenue(request_body: RevenueCreateRequest, db: Session = Depends(get_db)):
    """Create a revenue record, optionally linked to the quote it was converted from"""
    try:
        db_revenue = RevenueRepository(db).create_revenue(**request_body.model_dump())
        db.commit()
        db.refresh(db_revenue)
        return db_revenue

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error creating revenue: {e}", extra={"quote_id": request_body.quote_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/revenues", response_model=List[RevenueResponse])
def list_revenues(
    quote_id: Optional[int] = Query(None, description="Only revenues created from this quote"),
    db: Session = Depends(get_db),
):
    return RevenueRepository(db).list_revenues(quote_id=quote_id)
