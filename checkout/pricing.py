# checkout/pricing.py
import math
from typing import Dict, Iterable, List

from .models import CartLine, CartSummary, Product

TAX_RATE = 0.10


def compute_total(cart: Iterable[Product]) -> int:
    return sum(p.price for p in cart)


def compute_total_with_tax(total: int, rate: float = TAX_RATE) -> int:
    """
    Tax-inclusive total. Only the final figure is floored; the tax amount is
    never rounded on its own.
    """
    return math.floor(total * (1 + rate))


def compute_tax(total: int, rate: float = TAX_RATE) -> int:
    return compute_total_with_tax(total, rate) - total


def group_lines(cart: Iterable[Product]) -> List[CartLine]:
    """
    Group cart entries by product id, in order of first occurrence.
    Each entry contributes its own recorded price to the line subtotal.
    """
    counts: Dict[int, int] = {}
    subtotals: Dict[int, int] = {}
    first_seen: Dict[int, Product] = {}

    for p in cart:
        if p.prd_id not in first_seen:
            first_seen[p.prd_id] = p
            counts[p.prd_id] = 0
            subtotals[p.prd_id] = 0
        counts[p.prd_id] += 1
        subtotals[p.prd_id] += p.price

    return [
        CartLine(
            prd_id=prd_id,
            code=p.code,
            name=p.name,
            unit_price=p.price,
            count=counts[prd_id],
            subtotal=subtotals[prd_id],
        )
        for prd_id, p in first_seen.items()
    ]


def summarize(cart: Iterable[Product], rate: float = TAX_RATE) -> CartSummary:
    entries = list(cart)
    total = compute_total(entries)
    return CartSummary(
        items_count=len(entries),
        total=total,
        total_with_tax=compute_total_with_tax(total, rate),
        lines=tuple(group_lines(entries)),
    )
