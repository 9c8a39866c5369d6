# storefront/domain/pricing.py
"""
Jedyne miejsce liczenia kwot zamowienia.

Wszystkie kwoty to Decimal zaokraglone do 0.01, total jest dokladna suma
subtotal + shipping_cost + tax, wiec nie ma bledow float.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple

from storefront.utils import settings

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingPolicy:
    free_shipping_threshold: Decimal
    shipping_flat_fee: Decimal
    tax_rate: Decimal

    @classmethod
    def from_settings(cls) -> "PricingPolicy":
        return cls(
            free_shipping_threshold=to_money(settings.FREE_SHIPPING_THRESHOLD),
            shipping_flat_fee=to_money(settings.SHIPPING_FLAT_FEE),
            tax_rate=Decimal(str(settings.TAX_RATE)),
        )


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    total_amount: Decimal


def compute_subtotal(lines: Iterable[Tuple[Decimal, int]]) -> Decimal:
    """lines to pary (unit_price, quantity)"""
    return sum((to_money(price) * qty for price, qty in lines), Decimal("0.00"))


def compute_shipping(subtotal: Decimal, policy: PricingPolicy) -> Decimal:
    # darmowa dostawa od progu wlacznie
    if subtotal >= policy.free_shipping_threshold:
        return Decimal("0.00")
    return policy.shipping_flat_fee


def compute_tax(subtotal: Decimal, policy: PricingPolicy) -> Decimal:
    return (subtotal * policy.tax_rate).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_totals(lines: Iterable[Tuple[Decimal, int]], policy: PricingPolicy) -> Totals:
    subtotal = to_money(compute_subtotal(lines))
    shipping_cost = to_money(compute_shipping(subtotal, policy))
    tax = compute_tax(subtotal, policy)
    return Totals(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        tax=tax,
        total_amount=subtotal + shipping_cost + tax,
    )
