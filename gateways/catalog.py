# gateways/catalog.py
from urllib.parse import quote

import requests

from checkout.errors import GatewayError, NotFound
from checkout.logger import get_logger
from checkout.models import Product

from . import API_BASE_URL, REQUEST_TIMEOUT, SESSION

logger = get_logger(__name__)


class CatalogGateway:
    """
    Product lookup against the catalog service.

    404 is a normal outcome (NotFound); everything else that is not a
    well-formed 2xx product becomes a GatewayError. No retries here.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or SESSION
        self.timeout = timeout

    def _url(self, code: str) -> str:
        return f"{self.base_url}/api/products/code/{quote(code, safe='')}"

    def lookup(self, code: str) -> Product:
        url = self._url(code)
        logger.debug("GET %s", url)
        try:
            r = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Catalog request failed for %s: %s", code, e)
            raise GatewayError(f"Catalog request failed: {e}") from e

        if r.status_code == 404:
            raise NotFound(code)
        if not r.ok:
            logger.error("Catalog returned HTTP %d for %s", r.status_code, code)
            raise GatewayError(
                f"Catalog returned HTTP {r.status_code}", status=r.status_code
            )

        try:
            payload = r.json()
        except ValueError as e:
            raise GatewayError(f"Catalog returned invalid JSON: {e}", status=r.status_code) from e

        return Product.from_api(payload)
