# checkout/purchase.py
import asyncio
import datetime
from typing import Any, Callable, Dict, Optional, Protocol, Sequence

import pytz

from .cart import CartStore
from .errors import GatewayError, UserCancelled
from .logger import get_logger
from .models import CartSummary, Product, Receipt
from .pricing import summarize
from .report import (
    build_confirmation_text,
    build_purchase_failed_text,
    build_receipt_text,
)
from .session import ScanSession

logger = get_logger(__name__)

Confirmer = Callable[[str], bool]
Notifier = Callable[[str], None]


class PurchaseSubmitter(Protocol):
    def submit(self, products: Sequence[Product]) -> Dict[str, Any]: ...


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).isoformat()


class PurchaseCoordinator:
    """
    Confirms and submits the cart.

    The cart is cleared and the session reset only after the transaction
    service accepts the purchase; on any failure the cart is left as it was
    so the user can press purchase again.
    """

    def __init__(
        self,
        cart: CartStore,
        session: ScanSession,
        gateway: PurchaseSubmitter,
        confirmer: Confirmer,
        notifier: Notifier,
    ):
        self.cart = cart
        self.session = session
        self.gateway = gateway
        self.confirmer = confirmer
        self.notifier = notifier
        self.last_error: Optional[GatewayError] = None
        self.in_flight = False

    def confirmation_message(self) -> str:
        return build_confirmation_text(summarize(self.cart.items()))

    def confirm(self) -> bool:
        # Anything other than an explicit True is a decline.
        return self.confirmer(self.confirmation_message()) is True

    async def require_confirmation(self) -> None:
        # The confirmer may block on user input; keep it off the event loop.
        if not await asyncio.to_thread(self.confirm):
            raise UserCancelled("Purchase confirmation declined")

    def _reject(self, error: GatewayError) -> None:
        self.last_error = error
        self.notifier(build_purchase_failed_text(error.message))

    def _build_receipt(self, data: Dict[str, Any], summary: CartSummary) -> Receipt:
        try:
            return Receipt(
                transaction_id=str(data["transaction_id"]),
                items_count=int(data["items_count"]),
                total_amount=int(data["total_amount"]),
                total_with_tax=summary.total_with_tax,
                local_total=summary.total,
                completed_at=now_utc_iso(),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayError(f"Malformed purchase response: {e}") from e

    async def submit(self) -> Optional[Receipt]:
        """
        Send the cart to the transaction service.

        Returns the receipt on success and None when the cart is empty or
        the submission failed.
        """
        products = self.cart.items()
        if not products:
            logger.debug("Submit on empty cart ignored.")
            return None

        if self.in_flight:
            logger.debug("Submit ignored; a purchase is already in flight.")
            return None

        summary = summarize(products)
        self.last_error = None
        self.in_flight = True
        self.session.begin_purchase()
        try:
            data = await asyncio.to_thread(self.gateway.submit, products)
            receipt = self._build_receipt(data, summary)
        except GatewayError as e:
            logger.error("Purchase of %d items failed: %s", summary.items_count, e)
            self._reject(e)
            return None
        finally:
            self.in_flight = False
            self.session.end_purchase()

        if receipt.total_mismatch:
            logger.warning(
                "Server total %d differs from terminal total %d for transaction %s.",
                receipt.total_amount, receipt.local_total, receipt.transaction_id,
            )
        logger.info(
            "Transaction %s recorded: %d items, %d excl. tax, %d incl. tax.",
            receipt.transaction_id, receipt.items_count,
            receipt.total_amount, receipt.total_with_tax,
        )

        self.notifier(build_receipt_text(receipt))
        self.cart.clear()
        self.session.reset()
        return receipt

    async def purchase(self) -> Optional[Receipt]:
        if self.cart.is_empty():
            logger.debug("Purchase pressed with an empty cart.")
            return None
        try:
            await self.require_confirmation()
        except UserCancelled as e:
            logger.info("%s; nothing submitted.", e)
            return None
        return await self.submit()
