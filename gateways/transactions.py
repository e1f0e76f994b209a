# gateways/transactions.py
from typing import Any, Dict, Iterable

import requests

from checkout.errors import GatewayError
from checkout.logger import get_logger
from checkout.models import Product

from . import API_BASE_URL, REQUEST_TIMEOUT, SESSION

logger = get_logger(__name__)

RECEIPT_FIELDS = ("transaction_id", "items_count", "total_amount")


class TransactionGateway:
    """Submits a finished cart to the transaction-recording service."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or SESSION
        self.timeout = timeout

    def submit(self, products: Iterable[Product]) -> Dict[str, Any]:
        items = [p.to_api() for p in products]
        url = f"{self.base_url}/api/purchase"
        logger.info("POST %s with %d items", url, len(items))
        try:
            r = self.session.post(url, json={"items": items}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Purchase request failed: %s", e)
            raise GatewayError(f"Purchase request failed: {e}") from e

        if not r.ok:
            logger.error("Purchase rejected with HTTP %d", r.status_code)
            raise GatewayError(
                f"Purchase failed (status: {r.status_code})", status=r.status_code
            )

        try:
            data = r.json()
        except ValueError as e:
            raise GatewayError(f"Purchase response is not JSON: {e}", status=r.status_code) from e

        if not isinstance(data, dict) or any(k not in data for k in RECEIPT_FIELDS):
            raise GatewayError(f"Malformed purchase response: {data!r}", status=r.status_code)

        return data
