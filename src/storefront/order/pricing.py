"""Order pricing.

Money is computed in ``Decimal`` with half-up rounding to cents. Each line
subtotal is rounded on its own, the rounded subtotals are summed, and the
final combination is rounded again.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from storefront.shipping.regions import calculate_shipping_fee

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def line_subtotal(quantity, unit_price) -> Decimal:
    return to_money(Decimal(str(quantity)) * Decimal(str(unit_price)))


@dataclass(frozen=True)
class OrderTotals:
    total_products_price: Decimal
    shipping_fees: Decimal
    discount_amount: Decimal
    final_total: Decimal

    def as_floats(self) -> dict:
        return {
            "total_products_price": float(self.total_products_price),
            "shipping_fees": float(self.shipping_fees),
            "discount_amount": float(self.discount_amount),
            "final_total": float(self.final_total),
        }


def price_order(lines, region, discount_amount=0) -> OrderTotals:
    """Totals for ``lines``, an iterable of ``(quantity, unit_price)`` pairs."""
    total_products_price = to_money(sum((line_subtotal(q, p) for q, p in lines), Decimal("0")))
    shipping_fees = to_money(calculate_shipping_fee(region, total_products_price))
    # Coupons are not issued yet; the discount always arrives as zero
    discount = to_money(discount_amount)
    return OrderTotals(
        total_products_price=total_products_price,
        shipping_fees=shipping_fees,
        discount_amount=discount,
        final_total=to_money(total_products_price + shipping_fees - discount),
    )
