"""Application settings read from the environment.

Protean's own settings (providers, brokers, processing mode) live in
domain.toml and are selected with PROTEAN_ENV.
"""

import os

CHECKOUT_TIMEOUT_SECONDS = float(os.getenv("STOREFRONT_CHECKOUT_TIMEOUT", "30"))

# Every order ships inside this city; the region picks the shipping tier.
DEFAULT_CITY = os.getenv("STOREFRONT_DEFAULT_CITY", "طولكرم")

STORE_NAME = os.getenv("STOREFRONT_STORE_NAME", "سوق الشلبي - Shalabi Market")
STORE_PHONE = os.getenv("STOREFRONT_STORE_PHONE", "+970-000-000-000")
STORE_CITY = os.getenv("STOREFRONT_STORE_CITY", "طولكرم، فلسطين")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
