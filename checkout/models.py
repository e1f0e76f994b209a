# checkout/models.py
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from .errors import GatewayError


@dataclass(frozen=True)
class Product:
    """
    Catalog record for one scannable item.
    Prices are integers in the smallest currency unit.
    """
    prd_id: int
    code: str
    name: str
    price: int

    @classmethod
    def from_api(cls, payload: Any) -> "Product":
        if not isinstance(payload, dict):
            raise GatewayError(f"Malformed product payload: {payload!r}")
        try:
            prd_id = payload["PRD_ID"]
            code = payload["CODE"]
            name = payload["NAME"]
            price = payload["PRICE"]
        except KeyError as e:
            raise GatewayError(f"Product payload missing field {e}") from e

        # bool is an int subclass; a catalog never sends one for these fields
        if not isinstance(prd_id, int) or isinstance(prd_id, bool):
            raise GatewayError(f"Invalid PRD_ID: {prd_id!r}")
        if not isinstance(price, int) or isinstance(price, bool) or price < 0:
            raise GatewayError(f"Invalid PRICE: {price!r}")
        if not isinstance(code, str) or not isinstance(name, str):
            raise GatewayError("CODE and NAME must be strings")

        return cls(prd_id=prd_id, code=code, name=name, price=price)

    def to_api(self) -> Dict[str, Any]:
        return {
            "PRD_ID": self.prd_id,
            "CODE": self.code,
            "NAME": self.name,
            "PRICE": self.price,
        }


@dataclass(frozen=True)
class CartLine:
    prd_id: int
    code: str
    name: str
    unit_price: int
    count: int
    subtotal: int


@dataclass(frozen=True)
class CartSummary:
    items_count: int
    total: int
    total_with_tax: int
    lines: Tuple[CartLine, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PendingLookup:
    code: str
    seq: int


@dataclass(frozen=True)
class Receipt:
    """
    Result of a successful purchase submission.
    total_amount is the server's pre-tax figure as reported; total_with_tax
    and local_total are computed on the terminal.
    """
    transaction_id: str
    items_count: int
    total_amount: int
    total_with_tax: int
    local_total: int
    completed_at: str

    @property
    def total_mismatch(self) -> bool:
        return self.total_amount != self.local_total
