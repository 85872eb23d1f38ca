"""Linked-transaction webhook client with exponential backoff retry logic"""

import httpx
import asyncio
import logging
from typing import Dict, Any
from savings_gateway.config import settings
from savings_gateway.domain.exceptions import LedgerAPIError
from savings_gateway.domain.models import LinkedTransactionEvent
from savings_gateway.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter

logger = logging.getLogger(__name__)


def build_payload(event: LinkedTransactionEvent, category: str | None = None) -> Dict[str, Any]:
    """Wire format of a savings deposit booked as an expense in the linked ledger"""
    return {
        "event": "SAVINGS_DEPOSIT",
        "type": "expense",
        "challenge_id": event.challenge_id,
        "week": event.week,
        "amount_cents": event.amount_cents,
        "account_ref": event.account_ref,
        "category": category or settings.savings_category,
        "description": event.description,
        "paid": True,
    }


class LedgerClient:
    """Client for booking challenge deposits in the external ledger"""

    def __init__(self, webhook_url: str | None = None, max_retries: int | None = None, backoff_base: float | None = None):
        self.webhook_url = webhook_url or settings.ledger_webhook_url
        self.max_retries = max_retries or settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base if backoff_base is None else backoff_base
        self.timeout = settings.http_timeout_seconds

    async def send_linked_transaction(self, event: LinkedTransactionEvent) -> None:
        """
        Create the linked transaction for a paid deposit, with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on 5xx responses and network failures
        - 4xx responses are permanent: no retry
        - Tracks latency histogram and failure counter

        Raises:
            LedgerAPIError: On a 4xx response, or after max_retries failed attempts
        """
        payload = build_payload(event)
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()
                    logger.warning(
                        f"Linked transaction attempt {attempt} failed: {e}",
                        extra={"challenge_id": event.challenge_id, "week": event.week},
                    )

                    if isinstance(e, httpx.HTTPStatusError) and e.response.status_code < 500:
                        raise LedgerAPIError(
                            f"Ledger rejected linked transaction for week {event.week}: {e.response.status_code}"
                        ) from e

                    if attempt >= self.max_retries:
                        # Final failure after all retries
                        raise LedgerAPIError(
                            f"Linked transaction for week {event.week} failed after {attempt} attempts"
                        ) from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
