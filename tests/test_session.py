"""Tests for the scan session state machine."""

from __future__ import annotations

import pytest

from checkout.cart import CartStore
from checkout.errors import GatewayError, InvalidTransition, NotFound
from checkout.models import Product
from checkout.session import ScanSession, SessionState


def test_initial_state_is_scanning() -> None:
    session = ScanSession()
    assert session.state is SessionState.SCANNING
    assert session.decoder_enabled
    assert session.view == "idle"


@pytest.mark.parametrize("code", ["", "   ", None])
def test_empty_decode_is_ignored(code: str | None) -> None:
    session = ScanSession()
    assert session.on_decode(code) is None
    assert session.state is SessionState.SCANNING
    assert session.seq == 0


def test_decode_starts_lookup_and_pauses_decoder() -> None:
    session = ScanSession()
    pending = session.on_decode("4901234567894")

    assert pending is not None
    assert pending.code == "4901234567894"
    assert pending.seq == 1
    assert session.state is SessionState.LOOKUP_PENDING
    assert not session.decoder_enabled
    assert session.is_loading
    assert session.view == "loading"


def test_decode_ignored_while_pending_or_ready(tea: Product) -> None:
    session = ScanSession()
    first = session.on_decode("A")
    assert session.on_decode("B") is None

    session.resolve(first.seq, tea)
    assert session.on_decode("C") is None
    assert session.state is SessionState.PRODUCT_READY
    assert session.product == tea


def test_add_to_cart_hands_product_over_and_resumes(tea: Product) -> None:
    session = ScanSession()
    cart = CartStore()
    pending = session.on_decode(tea.code)
    session.resolve(pending.seq, tea)

    assert session.add_to_cart(cart) == tea
    assert cart.items() == (tea,)
    assert session.product is None
    assert session.state is SessionState.SCANNING
    assert session.decoder_enabled


def test_add_to_cart_outside_product_ready_raises() -> None:
    session = ScanSession()
    with pytest.raises(InvalidTransition):
        session.add_to_cart(CartStore())


def test_not_found_moves_to_failed_and_keeps_cart(tea: Product) -> None:
    session = ScanSession()
    cart = CartStore()
    cart.add(tea)

    pending = session.on_decode("000")
    assert session.fail(pending.seq, NotFound("000"))

    assert session.state is SessionState.LOOKUP_FAILED
    assert isinstance(session.error, NotFound)
    assert session.error_message == "Product not found (code: 000)"
    assert session.view == "error"
    assert session.pending is None
    assert cart.items() == (tea,)


def test_gateway_failure_message() -> None:
    session = ScanSession()
    pending = session.on_decode("123")
    session.fail(pending.seq, GatewayError("boom", status=500))
    assert session.error_message == "API error"


def test_new_decode_from_failed_clears_error() -> None:
    session = ScanSession()
    pending = session.on_decode("000")
    session.fail(pending.seq, NotFound("000"))

    again = session.on_decode("111")
    assert again is not None
    assert again.seq == 2
    assert session.error is None
    assert session.state is SessionState.LOOKUP_PENDING


def test_retry_reissues_failed_code() -> None:
    session = ScanSession()
    pending = session.on_decode("123")
    session.fail(pending.seq, GatewayError("timeout"))

    retried = session.retry()
    assert retried is not None
    assert retried.code == "123"
    assert retried.seq == pending.seq + 1
    assert session.state is SessionState.LOOKUP_PENDING


def test_retry_outside_failed_is_noop() -> None:
    session = ScanSession()
    assert session.retry() is None
    assert session.state is SessionState.SCANNING


def test_stale_response_is_discarded(tea: Product, bread: Product) -> None:
    session = ScanSession()
    old = session.on_decode("A")
    session.fail(old.seq, GatewayError("slow server"))
    new = session.on_decode("B")

    assert not session.resolve(old.seq, tea)
    assert session.state is SessionState.LOOKUP_PENDING

    assert session.resolve(new.seq, bread)
    assert session.product == bread

    assert not session.fail(old.seq, NotFound("A"))
    assert session.state is SessionState.PRODUCT_READY


def test_reset_makes_in_flight_lookup_stale(tea: Product) -> None:
    session = ScanSession()
    pending = session.on_decode("A")
    session.reset()

    assert session.state is SessionState.SCANNING
    assert not session.resolve(pending.seq, tea)
    assert session.product is None
    assert session.view == "idle"


def test_failed_lookup_pauses_live_scan_but_accepts_new_codes() -> None:
    session = ScanSession()
    pending = session.on_decode("000")
    session.fail(pending.seq, NotFound("000"))

    assert not session.decoder_enabled
    assert session.accepts_decode
    assert session.on_decode("111") is not None


def test_add_to_cart_refused_while_purchasing(tea: Product) -> None:
    session = ScanSession()
    cart = CartStore()
    pending = session.on_decode(tea.code)
    session.resolve(pending.seq, tea)

    session.begin_purchase()
    with pytest.raises(InvalidTransition):
        session.add_to_cart(cart)
    assert session.retry() is None
    assert cart.is_empty()
    assert session.product == tea

    session.end_purchase()
    assert session.add_to_cart(cart) == tea
