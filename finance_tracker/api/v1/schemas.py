"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

QuoteStatusLiteral = Literal["Pending", "Accepted", "Declined", "Converted"]


class QuoteCreateRequest(BaseModel):
    """Request body for POST /v1/quotes"""

    job_title: str = Field(..., min_length=1)
    job_description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    client_id: int = Field(..., gt=0)
    currency: str = "USD"
    valid_until: Optional[date] = None
    notes: Optional[str] = None


class QuoteStatusUpdate(BaseModel):
    """Request body for PATCH /v1/quotes/{quote_id}"""

    status: QuoteStatusLiteral


class QuoteResponse(BaseModel):
    """Quote as stored"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    job_title: str
    job_description: str
    amount: Decimal
    client_id: int
    status: str
    currency: str
    valid_until: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class StatusBucketSchema(BaseModel):
    count: int
    value: Decimal


class ConversionRateResponse(BaseModel):
    """Response for GET /v1/quotes/conversion-rate"""

    conversion_rate: int
    accepted: StatusBucketSchema
    declined: StatusBucketSchema
    pending: StatusBucketSchema
    total: StatusBucketSchema


class RevenueCreateRequest(BaseModel):
    """Request body for POST /v1/revenues"""

    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    client_id: int
    category: str = Field(..., min_length=1)
    date: date
    due_date: Optional[date] = None
    notes: Optional[str] = None
    currency: str = "USD"
    account: Optional[str] = None
    is_paid: bool = False
    quote_id: Optional[int] = None


class RevenueResponse(BaseModel):
    """Revenue record as stored"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    amount: Decimal
    client_id: int
    category: str
    date: date
    due_date: Optional[date] = None
    notes: Optional[str] = None
    currency: str
    account: Optional[str] = None
    is_paid: bool
    quote_id: Optional[int] = None


class InstallmentSchema(BaseModel):
    """Single installment row of a plan"""

    amount: Decimal = Field(..., ge=0)
    due_date: date
    description: str = ""


class SubmittedInstallmentSchema(InstallmentSchema):
    """Installment row submitted for conversion; amount must be positive"""

    amount: Decimal = Field(..., gt=0, decimal_places=2)


class PlanRequest(BaseModel):
    """Request body for POST /v1/quotes/{quote_id}/installment-plan"""

    count: int = Field(1, ge=1)
    start_date: Optional[date] = None


class ResizeRequest(BaseModel):
    """Request body for POST /v1/quotes/{quote_id}/installment-plan/resize"""

    installments: List[InstallmentSchema] = Field(..., min_length=1)
    new_count: int = Field(..., ge=1)
    start_date: Optional[date] = None


class ReconciliationSchema(BaseModel):
    ok: bool
    expected: Decimal
    actual: Decimal
    difference: Decimal
    message: str


class PlanResponse(BaseModel):
    """Installment plan preview"""

    quote_id: int
    source_total: Decimal
    start_date: date
    installments: List[InstallmentSchema]
    reconciliation: ReconciliationSchema


class ConversionRequest(BaseModel):
    """Request body for POST /v1/quotes/{quote_id}/conversion"""

    installments: List[SubmittedInstallmentSchema] = Field(..., min_length=1)


class InstallmentFailureSchema(BaseModel):
    index: int
    installment: InstallmentSchema
    error: str


class ConversionResponse(BaseModel):
    """Response for POST /v1/quotes/{quote_id}/conversion"""

    quote_id: int
    quote_status: str
    currency: str
    installments_persisted: List[dict]
    failures: List[InstallmentFailureSchema] = []
