"""Order totals under the storefront's fixed pricing policy.

Amounts are integer minor units of the order currency, so sums are exact.
The currency itself is only a label; nothing is converted.
"""

from dataclasses import dataclass
from typing import Iterable

from .domain import OrderItem

# Orders strictly above 100.00 ship free, everything else pays a flat 10.00.
SHIPPING_THRESHOLD_CENTS = 100_00
FLAT_SHIPPING_FEE_CENTS = 10_00
# No VAT is charged at the moment.
TAX_CENTS = 0


@dataclass(frozen=True)
class Totals:
    subtotal_cents: int
    shipping_cents: int
    tax_cents: int
    total_cents: int


def shipping_for(subtotal_cents: int) -> int:
    if subtotal_cents > SHIPPING_THRESHOLD_CENTS:
        return 0
    return FLAT_SHIPPING_FEE_CENTS


def compute_totals(items: Iterable[OrderItem]) -> Totals:
    """Derive subtotal, shipping, tax and total for a set of priced items."""
    subtotal = sum(item.line_total_cents for item in items)
    shipping = shipping_for(subtotal)
    tax = TAX_CENTS
    return Totals(
        subtotal_cents=subtotal,
        shipping_cents=shipping,
        tax_cents=tax,
        total_cents=subtotal + shipping + tax,
    )
