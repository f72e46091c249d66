"""HTTP client for the revenue-creation and quote-status-update endpoints"""

import httpx
from typing import Any, Dict
from finance_tracker.domain.exceptions import FinanceAPIError
from finance_tracker.config import settings
from finance_tracker.infrastructure.observability.metrics import finance_api_latency_histogram, finance_api_failure_counter


class FinanceAPIClient:
    """Client for the finance API used by the quote conversion workflow"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.finance_api_base).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def create_revenue(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create one revenue record.

        No retries: a failed creation is reported to the caller as-is.

        Raises:
            FinanceAPIError: On timeout, HTTP errors, or invalid response
        """
        return await self._send("create_revenue", "POST", "/v1/revenues", payload)

    async def update_quote_status(self, quote_id: int, status: str) -> Dict[str, Any]:
        """
        Set a quote's status.

        Raises:
            FinanceAPIError: On timeout, HTTP errors, or invalid response
        """
        return await self._send("update_quote_status", "PATCH", f"/v1/quotes/{quote_id}", {"status": status})

    async def _send(self, operation: str, method: str, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with finance_api_latency_histogram.labels(operation=operation).time():
                    response = await client.request(method, f"{self.base_url}{path}", json=payload)
                response.raise_for_status()
                data = response.json()
                if not isinstance(data, dict):
                    raise TypeError(f"expected JSON object, got {type(data).__name__}")
                return data

            except httpx.TimeoutException as e:
                finance_api_failure_counter.labels(operation=operation).inc()
                raise FinanceAPIError(f"Finance API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                finance_api_failure_counter.labels(operation=operation).inc()
                raise FinanceAPIError(f"Finance API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                finance_api_failure_counter.labels(operation=operation).inc()
                raise FinanceAPIError(f"Finance API unreachable: {e}") from e
            except (ValueError, TypeError) as e:
                finance_api_failure_counter.labels(operation=operation).inc()
                raise FinanceAPIError(f"Invalid response from finance API: {e}") from e
