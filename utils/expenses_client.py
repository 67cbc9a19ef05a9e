"""HTTP client the analytics service uses to read from the expenses service."""
import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from models.expense import Expense, ExpenseFilter
from utils.errors import UpstreamError, UpstreamTimeout, UpstreamUnavailable

logger = logging.getLogger(__name__)

EXPENSES_PATH = "/api/expenses"


def upstream_error_from_response(response: httpx.Response) -> UpstreamError:
    """Relay the expenses service's own error message, keeping 4xx statuses."""
    try:
        upstream_message = response.json().get("error")
    except (ValueError, AttributeError):
        upstream_message = None
    message = f"Expenses service error: {upstream_message or response.reason_phrase}"
    status_code = response.status_code if 400 <= response.status_code < 500 else 502
    return UpstreamError(message, status_code=status_code)


class ExpensesClient:
    """Reads expense records over HTTP with a bounded timeout and no retries.

    Failures surface as three distinct errors: ``UpstreamUnavailable`` when the
    service cannot be reached, ``UpstreamTimeout`` when the deadline passes and
    ``UpstreamError`` when it answers with an error (or an unreadable payload).
    """

    def __init__(self, base_url: str, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url
        self.timeout = timeout
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def fetch_expenses(self, filters: ExpenseFilter) -> List[Expense]:
        params = filters.to_query_params()
        logger.info(f"Calling expenses service: {self.base_url}{EXPENSES_PATH} {params or ''}")
        try:
            response = await self._client.get(EXPENSES_PATH, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"Expenses service timed out after {self.timeout}s: {e!r}")
            raise UpstreamTimeout() from e
        except httpx.TransportError as e:
            logger.error(f"Expenses service unreachable at {self.base_url}: {e!r}")
            raise UpstreamUnavailable() from e

        if response.is_error:
            error = upstream_error_from_response(response)
            logger.error(f"Expenses service answered {response.status_code}: {error.message}")
            raise error

        try:
            records = response.json().get("data") or []
            expenses = [Expense.model_validate(record) for record in records]
        except (ValueError, AttributeError, TypeError, PydanticValidationError) as e:
            logger.error(f"Malformed payload from expenses service: {e}")
            raise UpstreamError("Expenses service returned malformed data", status_code=502) from e

        logger.info(f"Retrieved {len(expenses)} expenses from expenses service")
        return expenses

    async def aclose(self) -> None:
        await self._client.aclose()
