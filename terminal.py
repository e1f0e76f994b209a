import asyncio
import sys
from typing import Callable, Optional, Protocol, Set

from checkout.cart import CartStore
from checkout.errors import GatewayError, InvalidTransition, NotFound
from checkout.logger import get_logger
from checkout.models import CartSummary, PendingLookup, Product, Receipt
from checkout.pricing import summarize
from checkout.purchase import Confirmer, Notifier, PurchaseCoordinator, PurchaseSubmitter
from checkout.report import build_cart_text, build_scan_panel_text
from checkout.session import ScanSession
from gateways import API_BASE_URL
from gateways.catalog import CatalogGateway
from gateways.transactions import TransactionGateway

logger = get_logger(__name__)


class ProductLookup(Protocol):
    def lookup(self, code: str) -> Product: ...


class Terminal:
    """
    One checkout terminal: decoder events and button presses come in, lookups
    and purchases go out. Everything runs on a single event loop; the blocking
    HTTP calls are pushed to worker threads and their results applied back on
    the loop.
    """

    def __init__(
        self,
        catalog: ProductLookup,
        transactions: PurchaseSubmitter,
        confirmer: Confirmer,
        notifier: Notifier,
    ):
        self.catalog = catalog
        self.cart = CartStore()
        self.session = ScanSession()
        self.coordinator = PurchaseCoordinator(
            self.cart, self.session, transactions, confirmer, notifier
        )
        self.summary: CartSummary = summarize(())
        self.cart.subscribe(self._recompute)
        self._tasks: Set[asyncio.Task] = set()

    def _recompute(self, cart: CartStore) -> None:
        self.summary = summarize(cart.items())
        logger.debug(
            "Cart totals: %d items, %d excl. tax, %d incl. tax.",
            self.summary.items_count, self.summary.total, self.summary.total_with_tax,
        )

    @property
    def decoder_enabled(self) -> bool:
        return self.session.decoder_enabled

    @property
    def accepts_decode(self) -> bool:
        return self.session.accepts_decode

    async def _run_lookup(self, pending: PendingLookup) -> None:
        try:
            product = await asyncio.to_thread(self.catalog.lookup, pending.code)
        except (NotFound, GatewayError) as e:
            self.session.fail(pending.seq, e)
            return
        self.session.resolve(pending.seq, product)

    def _spawn(self, pending: Optional[PendingLookup]) -> Optional[asyncio.Task]:
        if pending is None:
            return None
        task = asyncio.get_running_loop().create_task(self._run_lookup(pending))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def on_decode(self, code: str) -> Optional[asyncio.Task]:
        """Feed a decoded barcode; returns the lookup task if one was started."""
        return self._spawn(self.session.on_decode(code))

    def retry(self) -> Optional[asyncio.Task]:
        return self._spawn(self.session.retry())

    def add_to_cart(self) -> Optional[Product]:
        try:
            return self.session.add_to_cart(self.cart)
        except InvalidTransition as e:
            logger.debug("%s", e)
            return None

    def reset(self) -> None:
        self.session.reset()

    async def purchase(self) -> Optional[Receipt]:
        return await self.coordinator.purchase()

    async def drain(self) -> None:
        """Wait for any in-flight lookups."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    def render(self) -> str:
        return build_scan_panel_text(self.session) + "\n" + build_cart_text(self.summary)


def console_confirm(message: str) -> bool:
    print(message)
    answer = input("[y/N] ").strip().lower()
    return answer in ("y", "yes")


def console_notify(message: str) -> None:
    print(message)


async def run_console(
    terminal: Terminal,
    readline: Callable[[], str] = sys.stdin.readline,
) -> int:
    """
    Read one decoded code or button command per line until EOF or "quit".
    """
    print(terminal.render())
    while True:
        line = await asyncio.to_thread(readline)
        if not line:
            break
        text = line.strip()
        if not text:
            continue

        cmd = text.lower()
        if cmd == "quit":
            break
        elif cmd == "add":
            if terminal.add_to_cart() is None:
                print("Nothing to add.")
        elif cmd == "retry":
            task = terminal.retry()
            if task:
                await task
        elif cmd == "buy":
            await terminal.purchase()
        elif cmd == "reset":
            terminal.reset()
        elif cmd == "list":
            print(build_cart_text(terminal.summary))
            continue
        else:
            task = terminal.on_decode(text)
            if task is None:
                print("(scanner paused; code ignored)")
            else:
                await task

        print(terminal.render())

    await terminal.drain()
    return 0


def main() -> int:
    logger.info("Starting terminal against %s", API_BASE_URL)
    terminal = Terminal(
        CatalogGateway(),
        TransactionGateway(),
        console_confirm,
        console_notify,
    )
    return asyncio.run(run_console(terminal))


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        raise SystemExit(130)
    except Exception as e:
        logger.exception("Fatal terminal error: %s", e)
        raise SystemExit(2)
