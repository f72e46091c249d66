"""Dependency injection for FastAPI endpoints"""

from typing import Optional
from fastapi import Header, Request
from finance_tracker.config import settings
from finance_tracker.infrastructure.clients.finance_api import FinanceAPIClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_finance_client() -> FinanceAPIClient:
    """Provide revenue / quote endpoint client instance"""
    return FinanceAPIClient()


def get_display_currency(x_display_currency: Optional[str] = Header(None)) -> str:
    """Display currency stamped on converted revenues; a label, never converted"""
    return x_display_currency or settings.display_currency
