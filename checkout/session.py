# checkout/session.py
import enum
from typing import Optional

from .cart import CartStore
from .errors import GatewayError, InvalidTransition, NotFound, PosError
from .logger import get_logger
from .models import PendingLookup, Product

logger = get_logger(__name__)


class SessionState(enum.Enum):
    SCANNING = "scanning"
    LOOKUP_PENDING = "lookup_pending"
    PRODUCT_READY = "product_ready"
    LOOKUP_FAILED = "lookup_failed"


class ScanSession:
    """
    Scanner and lookup state for one terminal.

    Decoded codes are accepted only while scanning (or after a failed
    lookup). Each accepted code gets a new sequence number; lookup results
    carrying any other number are stale and dropped.
    """

    def __init__(self) -> None:
        self.state = SessionState.SCANNING
        self.product: Optional[Product] = None
        self.error: Optional[PosError] = None
        self._seq = 0
        self._pending: Optional[PendingLookup] = None
        # Kept only so retry() can re-issue the failed code.
        self._retry_code: Optional[str] = None
        # Set while a purchase submission is awaiting the service.
        self.purchasing = False

    @property
    def seq(self) -> int:
        return self._seq

    @property
    def pending(self) -> Optional[PendingLookup]:
        return self._pending

    @property
    def decoder_enabled(self) -> bool:
        """Live scanning flag: true only while scanning and not purchasing."""
        return self.state is SessionState.SCANNING and not self.purchasing

    @property
    def accepts_decode(self) -> bool:
        """
        Whether on_decode would start a lookup. Unlike decoder_enabled this is
        also true after a failed lookup, so a decoder gating on it can re-scan.
        """
        if self.purchasing:
            return False
        return self.state in (SessionState.SCANNING, SessionState.LOOKUP_FAILED)

    @property
    def is_loading(self) -> bool:
        return self.state is SessionState.LOOKUP_PENDING

    @property
    def view(self) -> str:
        if self.state is SessionState.LOOKUP_PENDING:
            return "loading"
        if self.state is SessionState.LOOKUP_FAILED:
            return "error"
        if self.state is SessionState.PRODUCT_READY:
            return "product"
        return "idle"

    @property
    def error_message(self) -> str:
        if isinstance(self.error, NotFound):
            return str(self.error)
        if isinstance(self.error, GatewayError):
            return "API error"
        if self.error is not None:
            return "Unknown error"
        return ""

    def _begin(self, code: str) -> PendingLookup:
        self._seq += 1
        self._pending = PendingLookup(code=code, seq=self._seq)
        self.state = SessionState.LOOKUP_PENDING
        self.product = None
        self.error = None
        self._retry_code = None
        logger.info("Lookup #%d started for code %s; decoder paused.", self._seq, code)
        return self._pending

    def on_decode(self, code: str | None) -> Optional[PendingLookup]:
        """
        Handle a decoded barcode. Returns the lookup to issue, or None when
        the event is ignored.
        """
        code = (code or "").strip()
        if not code:
            logger.debug("Ignoring empty decode event.")
            return None
        if not self.accepts_decode:
            logger.debug("Ignoring decode of %s while %s.", code, self.state.value)
            return None
        return self._begin(code)

    def retry(self) -> Optional[PendingLookup]:
        if self.purchasing or self.state is not SessionState.LOOKUP_FAILED or not self._retry_code:
            logger.debug("Nothing to retry while %s.", self.state.value)
            return None
        return self._begin(self._retry_code)

    def _is_current(self, seq: int) -> bool:
        return (
            self.state is SessionState.LOOKUP_PENDING
            and self._pending is not None
            and self._pending.seq == seq
        )

    def resolve(self, seq: int, product: Product) -> bool:
        if not self._is_current(seq):
            logger.info("Discarding stale lookup result #%d (current #%d).", seq, self._seq)
            return False
        self.state = SessionState.PRODUCT_READY
        self.product = product
        self._pending = None
        logger.info("Lookup #%d found %s (price=%d).", seq, product.name, product.price)
        return True

    def fail(self, seq: int, error: PosError) -> bool:
        pending = self._pending
        if pending is None or not self._is_current(seq):
            logger.info("Discarding stale lookup failure #%d (current #%d).", seq, self._seq)
            return False
        self._retry_code = pending.code
        self.state = SessionState.LOOKUP_FAILED
        self.error = error
        self.product = None
        self._pending = None
        if isinstance(error, NotFound):
            logger.info("Lookup #%d: %s", seq, error)
        else:
            logger.warning("Lookup #%d failed: %s", seq, error)
        return True

    def add_to_cart(self, cart: CartStore) -> Product:
        if self.state is not SessionState.PRODUCT_READY or self.product is None:
            raise InvalidTransition(f"Cannot add to cart while {self.state.value}")
        if self.purchasing:
            raise InvalidTransition("Cannot add to cart while a purchase is in flight")
        product = self.product
        cart.add(product)
        self.product = None
        self.state = SessionState.SCANNING
        logger.debug("Decoder resumed after adding %s.", product.name)
        return product

    def begin_purchase(self) -> None:
        self.purchasing = True
        logger.debug("Decoder paused for purchase submission.")

    def end_purchase(self) -> None:
        self.purchasing = False

    def reset(self) -> None:
        # Bumping the sequence makes any in-flight lookup stale.
        self._seq += 1
        self.state = SessionState.SCANNING
        self.product = None
        self.error = None
        self._pending = None
        self._retry_code = None
        logger.debug("Session reset (seq=%d).", self._seq)
