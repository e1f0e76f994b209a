# checkout/report.py
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from .models import CartSummary, Receipt
from .session import ScanSession

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    trim_blocks=True,
    lstrip_blocks=True,
)

CURRENCY_SYMBOL = "¥"


def _amount_to_str(amount: int) -> str:
    return f"{CURRENCY_SYMBOL}{amount:,}"


env.filters["amount"] = _amount_to_str


def build_confirmation_text(summary: CartSummary) -> str:
    template = env.get_template("confirm.txt")
    return template.render(summary=summary)


def build_receipt_text(receipt: Receipt) -> str:
    template = env.get_template("receipt.txt")
    return template.render(receipt=receipt)


def build_purchase_failed_text(message: str) -> str:
    template = env.get_template("purchase_failed.txt")
    return template.render(message=message)


def build_cart_text(summary: CartSummary) -> str:
    template = env.get_template("cart.txt")
    return template.render(summary=summary)


def build_scan_panel_text(session: ScanSession) -> str:
    template = env.get_template("scan_panel.txt")
    return template.render(
        decoder_enabled=session.decoder_enabled,
        view=session.view,
        product=session.product,
        error_message=session.error_message,
    )
