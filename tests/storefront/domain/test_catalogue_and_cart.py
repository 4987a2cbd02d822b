"""Tests for product quantity rules, checkout line merging and the Cart aggregate."""

import pytest
from protean.exceptions import ValidationError

from storefront.cart.cart import Cart
from storefront.catalogue.product import Product, SaleType
from storefront.order.placement import merge_items


class TestProductQuantities:
    def test_pieces_must_be_whole(self):
        product = Product.add(name="Bread", price=3.0, cost_price=2.0, sale_type=SaleType.PIECE.value)

        with pytest.raises(ValidationError):
            product.validate_quantity(1.5)

    def test_kilograms_may_be_fractional(self):
        product = Product.add(name="Apples", price=6.0, cost_price=4.0, sale_type=SaleType.KG.value)

        product.validate_quantity(0.75)

    def test_quantity_must_be_positive(self):
        product = Product.add(name="Apples", price=6.0, cost_price=4.0, sale_type=SaleType.KG.value)

        with pytest.raises(ValidationError):
            product.validate_quantity(0)

    def test_stock_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            Product.add(name="Apples", price=6.0, cost_price=4.0, stock_quantity=-1)


class TestMergeItems:
    def test_repeated_products_are_summed(self):
        merged = merge_items(
            [
                {"product_id": "p1", "quantity": 1},
                {"product_id": "p2", "quantity": 2},
                {"product_id": "p1", "quantity": 2},
            ]
        )

        assert merged == [{"product_id": "p1", "quantity": 3.0}, {"product_id": "p2", "quantity": 2.0}]

    def test_non_positive_quantity_is_rejected(self):
        with pytest.raises(ValidationError):
            merge_items([{"product_id": "p1", "quantity": 0}])

    def test_missing_product_is_rejected(self):
        with pytest.raises(ValidationError):
            merge_items([{"quantity": 1}])

    def test_non_numeric_quantity_is_rejected(self):
        with pytest.raises(ValidationError):
            merge_items([{"product_id": "p1", "quantity": "lots"}])


class TestCart:
    def test_adding_same_product_merges_quantity(self):
        cart = Cart.create(user_id="user-001")

        cart.add_item("p1", 1)
        cart.add_item("p1", 2)

        assert len(cart.items) == 1
        assert cart.quantity_of("p1") == 3

    def test_set_quantity_of_missing_item(self):
        cart = Cart.create(user_id="user-001")

        with pytest.raises(ValidationError):
            cart.set_quantity("p1", 2)

    def test_clear_removes_every_item(self):
        cart = Cart.create(user_id="user-001")
        cart.add_item("p1", 1)
        cart.add_item("p2", 1)

        cart.clear()

        assert len(cart.items) == 0
