"""Storefront: order placement and fulfillment on Protean."""
