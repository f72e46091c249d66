"""Quote-to-revenue conversion: submit a reconciled plan as revenue records"""

import asyncio
import logging
from typing import Any, Dict, Protocol
from finance_tracker.domain.models import (
    ConversionResult,
    Installment,
    InstallmentFailure,
    InstallmentPlan,
    Quote,
    QuoteStatus,
    RevenueRequest,
)
from finance_tracker.domain.exceptions import InvalidAmountError, UnreconciledPlanError
from finance_tracker.domain.installments import round_currency, validate_reconciliation
from finance_tracker.domain.quotes import is_convertible

logger = logging.getLogger(__name__)

DEFAULT_REVENUE_CATEGORY = "Sales"


class RevenueGateway(Protocol):
    """Revenue-creation and quote-status-update endpoints"""

    async def create_revenue(self, payload: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update_quote_status(self, quote_id: int, status: str) -> Dict[str, Any]: ...


def build_revenue_request(
    installment: Installment,
    quote: Quote,
    currency: str,
    category: str = DEFAULT_REVENUE_CATEGORY,
) -> RevenueRequest:
    """Revenue entry for one installment: unpaid, dated on its due date, linked to the quote"""
    return RevenueRequest(
        client_id=quote.client_id,
        amount=installment.amount,
        date=installment.due_date,
        description=installment.description,
        category=category,
        currency=currency,
        due_date=installment.due_date,
        quote_id=quote.id,
    )


async def submit_plan(
    plan: InstallmentPlan,
    quote: Quote,
    display_currency: str,
    gateway: RevenueGateway,
    category: str = DEFAULT_REVENUE_CATEGORY,
) -> ConversionResult:
    """
    Persist each installment as revenue, then mark the quote Converted.

    Flow:
    1. Refuse plans that do not reconcile with the quote total
    2. Issue every revenue creation concurrently and collect per-item outcomes
    3. Issue the status update to Converted, even if some creations failed

    Created revenues are never rolled back. A failing status update propagates
    (FinanceAPIError) after the creations have already been attempted.

    Raises:
        InvalidAmountError: An installment carries fractions of a cent
        UnreconciledPlanError: Plan total differs from the quote total
    """
    for index, inst in enumerate(plan.installments):
        if inst.amount != round_currency(inst.amount):
            raise InvalidAmountError(f"Installment {index + 1} amount {inst.amount} has more than 2 decimal places")

    reconciliation = validate_reconciliation(plan)
    if not reconciliation.ok:
        raise UnreconciledPlanError(reconciliation.expected, reconciliation.actual)

    if not is_convertible(quote.status):
        logger.warning(
            "Converting quote that is not pending or accepted",
            extra={"quote_id": quote.id, "quote_status": quote.status},
        )

    requests = [
        build_revenue_request(inst, quote, display_currency, category)
        for inst in plan.installments
    ]
    outcomes = await asyncio.gather(
        *(gateway.create_revenue(req.to_payload()) for req in requests),
        return_exceptions=True,
    )

    result = ConversionResult(quote_id=quote.id, quote_status=QuoteStatus.CONVERTED.value)
    for index, (installment, outcome) in enumerate(zip(plan.installments, outcomes)):
        if isinstance(outcome, BaseException):
            logger.warning(
                "Revenue creation failed",
                extra={"quote_id": quote.id, "installment_index": index, "error": str(outcome)},
            )
            result.failures.append(InstallmentFailure(index=index, installment=installment, error=str(outcome)))
        else:
            result.installments_persisted.append(outcome)

    await gateway.update_quote_status(quote.id, QuoteStatus.CONVERTED.value)

    return result
