"""Stock ledger: race-safe stock movements paired with their audit rows.

Callers must already be inside a unit of work (a command handler). A
decrement is one conditional update that only matches while the product
still holds at least the requested quantity, so two checkouts racing for
the last units cannot both succeed: the loser's update matches zero rows
and it fails with ``InsufficientStock``. Increments are unconditional.
No in-process lock serialises checkouts.
"""

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.catalogue.product import STOCK_PRECISION, Product, quantize_quantity
from storefront.errors import InsufficientStock, ProductUnavailable
from storefront.stock.transaction import StockReason, StockTransaction
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class StockLedger:
    def __init__(self):
        self.products = current_domain.repository_for(Product)
        self.transactions = current_domain.repository_for(StockTransaction)

    def reserve_stock(self, product_id, quantity, order_id):
        """Take ``quantity`` units of an active product for an order.

        Appends a ``purchase`` transaction with ``-quantity``. Returns the
        stock left on hand.
        """
        remaining = self._decrement(product_id, quantity)
        self.transactions.add(
            StockTransaction.record(
                product_id=product_id,
                quantity_change=-quantity,
                reason=StockReason.PURCHASE,
                related_order_id=order_id,
            )
        )
        logger.info("stock_reserved", product_id=str(product_id), quantity=quantity, order_id=str(order_id))
        return remaining

    def restore_stock(self, product_id, quantity, order_id):
        """Give back what an order took. Inactive products are restored too."""
        remaining = self._increment(product_id, quantity)
        self.transactions.add(
            StockTransaction.record(
                product_id=product_id,
                quantity_change=quantity,
                reason=StockReason.CANCELLATION,
                related_order_id=order_id,
            )
        )
        logger.info("stock_restored", product_id=str(product_id), quantity=quantity, order_id=str(order_id))
        return remaining

    def adjust_stock(self, product_id, quantity, reason, note=None):
        """Apply an administrator's correction (``admin_add`` or ``admin_remove``)."""
        reason = StockReason(reason)
        if reason not in (StockReason.ADMIN_ADD, StockReason.ADMIN_REMOVE):
            raise ValidationError({"reason": ["Only admin_add and admin_remove are manual adjustments"]})
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if quantize_quantity(quantity) != quantity:
            raise ValidationError({"quantity": [f"Quantity is limited to {STOCK_PRECISION} decimal places"]})

        if reason == StockReason.ADMIN_ADD:
            remaining = self._increment(product_id, quantity)
            change = quantity
        else:
            remaining = self._decrement(product_id, quantity, require_active=False)
            change = -quantity

        self.transactions.add(
            StockTransaction.adjustment(
                product_id=product_id,
                quantity_change=change,
                reason=reason,
                new_stock_quantity=remaining,
                note=note,
            )
        )
        logger.info("stock_adjusted", product_id=str(product_id), quantity_change=change, reason=reason.value)
        return remaining

    def record_opening_stock(self, product_id, quantity):
        """Log the stock a new product was created with."""
        if quantity:
            self.transactions.add(
                StockTransaction.record(
                    product_id=product_id,
                    quantity_change=quantity,
                    reason=StockReason.ADMIN_ADD,
                    note="Opening stock",
                )
            )

    def history(self, product_id):
        return self.transactions.for_product(product_id)

    # -------------------------------------------------------------------
    # Guarded updates
    # -------------------------------------------------------------------
    def _decrement(self, product_id, quantity, require_active=True):
        if self.products.take_stock(product_id, quantity, require_active=require_active):
            return self._on_hand(product_id)

        # Nothing matched; report why from the row as it stands
        product = self.products.find_any(product_id)
        if product is None or (require_active and not product.is_active):
            raise ProductUnavailable(product_id)
        logger.info("stock_short", product_id=str(product_id), requested=quantity, available=product.stock_quantity)
        raise InsufficientStock(product_id, product.name, product.stock_quantity, quantity, product.sale_type)

    def _increment(self, product_id, quantity):
        if not self.products.return_stock(product_id, quantity):
            raise ProductUnavailable(product_id)
        return self._on_hand(product_id)

    def _on_hand(self, product_id):
        return round(self.products.find_any(product_id).stock_quantity, STOCK_PRECISION)
