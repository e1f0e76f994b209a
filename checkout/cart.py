# checkout/cart.py
from typing import Callable, List, Tuple

from .logger import get_logger
from .models import Product

logger = get_logger(__name__)

CartObserver = Callable[["CartStore"], None]


class CartStore:
    """
    Ordered list of products added during a session.

    Only append and full clear are supported. Observers are called after
    every mutation so totals can be recomputed.
    """

    def __init__(self) -> None:
        self._items: List[Product] = []
        self._observers: List[CartObserver] = []

    def subscribe(self, observer: CartObserver) -> None:
        self._observers.append(observer)

    def _notify(self) -> None:
        for observer in self._observers:
            observer(self)

    def add(self, product: Product) -> None:
        self._items.append(product)
        logger.info(
            "Added %s (id=%s, price=%d); cart now has %d items.",
            product.name, product.prd_id, product.price, len(self._items),
        )
        self._notify()

    def clear(self) -> None:
        # Swap in a fresh list so no observer sees a half-emptied cart.
        previous = len(self._items)
        self._items = []
        logger.info("Cart cleared (%d items removed).", previous)
        self._notify()

    def size(self) -> int:
        return len(self._items)

    def items(self) -> Tuple[Product, ...]:
        return tuple(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)
