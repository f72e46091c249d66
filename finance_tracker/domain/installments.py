"""Installment plan derivation and reconciliation for quote conversion"""

from dataclasses import replace
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Optional, Union
from finance_tracker.domain.models import Installment, InstallmentPlan, ReconciliationResult
from finance_tracker.domain.exceptions import InvalidAmountError, InvalidInstallmentCountError
from finance_tracker.utils.date_utils import add_months

CENT = Decimal("0.01")

AmountLike = Union[Decimal, str, int]


def parse_amount(value: AmountLike) -> Decimal:
    """Parse a textual or integer amount into a Decimal (floats are rejected)"""
    if isinstance(value, float):
        raise InvalidAmountError(f"Amount must be decimal text, got float {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as e:
        raise InvalidAmountError(f"Invalid amount: {value!r}") from e
    if not amount.is_finite():
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    return amount


def round_currency(value: AmountLike) -> Decimal:
    """Round to cents, half-up"""
    return parse_amount(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _base_amount(total: Decimal, count: int) -> Decimal:
    return round_currency(total / count)


def _description(index: int, count: int, job_title: str) -> str:
    title = job_title or "quote"
    if count == 1:
        return f"Payment for {title}"
    return f"Installment {index + 1} for {title}"


def _check_count(count: int) -> None:
    if count < 1:
        raise InvalidInstallmentCountError(f"Installment count must be at least 1, got {count}")


def derive_plan(
    total: AmountLike,
    count: int,
    job_title: str,
    start_date: Optional[date] = None,
) -> InstallmentPlan:
    """
    Split a quote total into equal monthly installments.

    Requirements:
    - Every installment gets round(total / count, 2), half-up
    - No remainder redistribution: 100.00 / 3 yields three 33.33 rows, which
      validate_reconciliation later reports as a 0.01 mismatch
    - Due dates are start_date plus i calendar months (clamped to month end)
    - A single installment is described as "Payment for {job_title}"

    Args:
        total: Quote amount, zero allowed
        count: Number of installments (>= 1)
        job_title: Quote job title used in descriptions
        start_date: First due date (default: today)

    Returns:
        Fresh InstallmentPlan; no side effects
    """
    _check_count(count)
    source_total = parse_amount(total)
    if source_total < 0:
        raise InvalidAmountError(f"Quote total must not be negative, got {source_total}")

    if start_date is None:
        start_date = date.today()

    amount = _base_amount(source_total, count)
    installments = [
        Installment(
            amount=amount,
            due_date=add_months(start_date, i),
            description=_description(i, count, job_title),
        )
        for i in range(count)
    ]

    return InstallmentPlan(
        source_total=source_total,
        installments=installments,
        job_title=job_title,
        start_date=start_date,
    )


def append_installments(
    plan: InstallmentPlan,
    new_count: int,
    total: Optional[AmountLike] = None,
    job_title: Optional[str] = None,
) -> InstallmentPlan:
    """
    Grow a plan to new_count installments.

    Existing rows keep their amounts, dates and descriptions. Only appended
    rows get round(total / new_count, 2), so existing amounts go stale until
    the plan is derived again.
    """
    current = plan.count
    if new_count < current:
        raise InvalidInstallmentCountError(
            f"Cannot append to {new_count} installments, plan already has {current}"
        )

    source_total = plan.source_total if total is None else parse_amount(total)
    title = plan.job_title if job_title is None else job_title
    amount = _base_amount(source_total, new_count)

    appended = [
        Installment(
            amount=amount,
            due_date=add_months(plan.start_date, i),
            description=f"Installment {i + 1} for {title or 'quote'}",
        )
        for i in range(current, new_count)
    ]

    return replace(
        plan,
        source_total=source_total,
        job_title=title,
        installments=[replace(inst) for inst in plan.installments] + appended,
    )


def recompute_and_truncate(
    plan: InstallmentPlan,
    new_count: int,
    total: Optional[AmountLike] = None,
) -> InstallmentPlan:
    """
    Shrink a plan to new_count installments.

    Trailing rows are dropped, then every remaining row's amount is reset to
    round(total / new_count, 2). Dates and descriptions of kept rows stay.
    """
    _check_count(new_count)
    if new_count > plan.count:
        raise InvalidInstallmentCountError(
            f"Cannot truncate to {new_count} installments, plan only has {plan.count}"
        )

    source_total = plan.source_total if total is None else parse_amount(total)
    amount = _base_amount(source_total, new_count)

    return replace(
        plan,
        source_total=source_total,
        installments=[replace(inst, amount=amount) for inst in plan.installments[:new_count]],
    )


def resize_plan(
    plan: InstallmentPlan,
    new_count: int,
    total: Optional[AmountLike] = None,
    job_title: Optional[str] = None,
) -> InstallmentPlan:
    """Grow via append_installments, shrink via recompute_and_truncate, same count is a no-op"""
    _check_count(new_count)
    if new_count > plan.count:
        return append_installments(plan, new_count, total, job_title)
    if new_count < plan.count:
        return recompute_and_truncate(plan, new_count, total)
    return plan


def edit_installment(
    plan: InstallmentPlan,
    index: int,
    amount: Optional[AmountLike] = None,
    due_date: Optional[date] = None,
    description: Optional[str] = None,
) -> InstallmentPlan:
    """Apply a user edit to one installment row"""
    if not 0 <= index < plan.count:
        raise IndexError(f"Installment index {index} out of range for {plan.count} installments")

    installments: List[Installment] = [replace(inst) for inst in plan.installments]
    row = installments[index]
    if amount is not None:
        row.amount = parse_amount(amount)
    if due_date is not None:
        row.due_date = due_date
    if description is not None:
        row.description = description

    return replace(plan, installments=installments)


def validate_reconciliation(plan: InstallmentPlan) -> ReconciliationResult:
    """
    Check that installments sum back to the quote total.

    Both sides are rounded to 2 decimal places and compared as fixed-precision
    text. A mismatch is returned, not raised; the plan is left untouched.
    """
    return ReconciliationResult(
        expected=round_currency(plan.source_total),
        actual=round_currency(plan.installments_total),
    )
