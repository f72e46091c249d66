"""Quote-to-revenue conversion: plan preview, resize and submission"""

import time
import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from finance_tracker.api.v1.schemas import (
    ConversionRequest,
    ConversionResponse,
    InstallmentFailureSchema,
    InstallmentSchema,
    PlanRequest,
    PlanResponse,
    ReconciliationSchema,
    ResizeRequest,
)
from finance_tracker.api.dependencies import get_display_currency, get_finance_client, get_request_id
from finance_tracker.config import settings
from finance_tracker.infrastructure.database.session import get_db
from finance_tracker.infrastructure.database.repositories import QuoteRepository
from finance_tracker.infrastructure.clients.finance_api import FinanceAPIClient
from finance_tracker.domain.models import Installment, InstallmentPlan, Quote
from finance_tracker.domain.installments import derive_plan, resize_plan, validate_reconciliation
from finance_tracker.domain.conversion import submit_plan
from finance_tracker.domain.exceptions import DomainException, FinanceAPIError, QuoteNotFoundError
from finance_tracker.infrastructure.observability.metrics import record_conversion, conversion_counter
from finance_tracker.infrastructure.observability.logging import log_conversion

router = APIRouter()


def _load_quote(db: Session, quote_id: int) -> Quote:
    try:
        return QuoteRepository(db).require_quote(quote_id)
    except QuoteNotFoundError as e:
        raise HTTPException(status_code=404, detail="Quote not found") from e


def _plan_from_rows(quote: Quote, rows, start_date: date | None) -> InstallmentPlan:
    installments = [
        Installment(amount=row.amount, due_date=row.due_date, description=row.description)
        for row in rows
    ]
    return InstallmentPlan(
        source_total=quote.amount,
        installments=installments,
        job_title=quote.job_title,
        start_date=start_date or installments[0].due_date,
    )


def _plan_response(quote: Quote, plan: InstallmentPlan) -> PlanResponse:
    reconciliation = validate_reconciliation(plan)
    return PlanResponse(
        quote_id=quote.id,
        source_total=plan.source_total,
        start_date=plan.start_date,
        installments=[
            InstallmentSchema(amount=inst.amount, due_date=inst.due_date, description=inst.description)
            for inst in plan.installments
        ],
        reconciliation=ReconciliationSchema(
            ok=reconciliation.ok,
            expected=reconciliation.expected,
            actual=reconciliation.actual,
            difference=reconciliation.difference,
            message=reconciliation.message,
        ),
    )


@router.post("/quotes/{quote_id}/installment-plan", response_model=PlanResponse)
def preview_plan(quote_id: int, request_body: PlanRequest, db: Session = Depends(get_db)):
    """
    Derive an installment plan for a quote without persisting anything.

    Returns:
        Plan rows plus the reconciliation outcome (100.00 / 3 shows a 0.01 gap)
    """
    quote = _load_quote(db, quote_id)
    try:
        plan = derive_plan(quote.amount, request_body.count, quote.job_title, request_body.start_date)
    except DomainException as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _plan_response(quote, plan)


@router.post("/quotes/{quote_id}/installment-plan/resize", response_model=PlanResponse)
def resize_installment_plan(quote_id: int, request_body: ResizeRequest, db: Session = Depends(get_db)):
    """
    Change the installment count of a plan the caller is editing.

    Growing keeps existing rows as they are; shrinking resets every kept
    row to total / new_count.
    """
    quote = _load_quote(db, quote_id)
    plan = _plan_from_rows(quote, request_body.installments, request_body.start_date)
    try:
        resized = resize_plan(plan, request_body.new_count, quote.amount, quote.job_title)
    except DomainException as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _plan_response(quote, resized)


@router.post("/quotes/{quote_id}/conversion", response_model=ConversionResponse)
async def convert_quote(
    quote_id: int,
    request_body: ConversionRequest,
    request: Request,
    db: Session = Depends(get_db),
    finance_client: FinanceAPIClient = Depends(get_finance_client),
    currency: str = Depends(get_display_currency),
):
    """
    Convert a quote into scheduled revenue entries.

    Flow:
    1. Load the quote and rebuild the submitted plan against its amount
    2. Reject plans whose total does not reconcile (422, nothing sent)
    3. Create one revenue per installment concurrently
    4. Mark the quote Converted, whether or not every creation succeeded
    5. Report partial failures as 502; successes are not rolled back
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        quote = _load_quote(db, quote_id)
        plan = _plan_from_rows(quote, request_body.installments, None)

        reconciliation = validate_reconciliation(plan)
        if not reconciliation.ok:
            conversion_counter.labels(outcome="mismatch").inc()
            logging.warning(
                f"Reconciliation mismatch: {reconciliation.message}",
                extra={"request_id": request_id, "quote_id": quote_id},
            )
            raise HTTPException(
                status_code=422,
                detail={
                    "message": reconciliation.message,
                    "expected": f"{reconciliation.expected:.2f}",
                    "actual": f"{reconciliation.actual:.2f}",
                    "difference": f"{reconciliation.difference:.2f}",
                },
            )

        result = await submit_plan(plan, quote, currency, finance_client, category=settings.revenue_category)

        duration_ms = (time.time() - start_time) * 1000
        record_conversion("converted" if result.complete else "partial", plan.count)
        log_conversion(
            request_id,
            quote_id,
            plan.count,
            len(result.installments_persisted),
            len(result.failures),
            duration_ms,
        )

        response = ConversionResponse(
            quote_id=result.quote_id,
            quote_status=result.quote_status,
            currency=currency,
            installments_persisted=result.installments_persisted,
            failures=[
                InstallmentFailureSchema(
                    index=f.index,
                    installment=InstallmentSchema(
                        amount=f.installment.amount,
                        due_date=f.installment.due_date,
                        description=f.installment.description,
                    ),
                    error=f.error,
                )
                for f in result.failures
            ],
        )

    except HTTPException:
        raise

    except FinanceAPIError as e:
        db.rollback()
        logging.error(f"Quote status update failed: {e}", extra={"request_id": request_id, "quote_id": quote_id})
        raise HTTPException(status_code=503, detail="Finance service unavailable")

    except DomainException as e:
        db.rollback()
        logging.warning(f"Invalid conversion request: {e}", extra={"request_id": request_id, "quote_id": quote_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id, "quote_id": quote_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    if not result.complete:
        raise HTTPException(status_code=502, detail=response.model_dump(mode="json"))

    return response
