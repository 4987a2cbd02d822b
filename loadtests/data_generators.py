"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the storefront's validation
rules (supported regions, positive quantities, whole pieces) and match the
field names expected by the API's Pydantic request schemas.
"""

import random

from faker import Faker

fake = Faker()

# Kept in step with storefront.shipping.regions.SUPPORTED_REGIONS
REGIONS = [
    "عتيل - جبل المصرية",
    "عتيل - عتيل",
    "ارتاح",
    "بلعا",
    "شويكة",
    "عنبتا",
    "مدينة طولكرم",
    "نور شمس",
]


def local_phone() -> str:
    """Palestinian mobile numbers: 059 or 056 followed by seven digits."""
    return f"05{random.choice('96')}{random.randint(1000000, 9999999)}"


def buyer_name() -> tuple[str, str]:
    return fake.first_name()[:100], fake.last_name()[:100]


def product_data(stock_quantity: float = 100, sale_type: str = "piece") -> dict:
    price = round(random.uniform(2, 60), 2)
    return {
        "name": f"{fake.word().title()} {fake.word()}"[:255],
        "description": fake.sentence()[:2000],
        "price": price,
        "cost_price": round(price * random.uniform(0.5, 0.9), 2),
        "sale_type": sale_type,
        "stock_quantity": stock_quantity,
    }


def shipping_fields(phone_number: str | None = None) -> dict:
    first, last = buyer_name()
    return {
        "first_name": first,
        "last_name": last,
        "phone_number": phone_number or local_phone(),
        "region": random.choice(REGIONS),
        "street": fake.street_address()[:255],
    }


def address_data(user_id: str) -> dict:
    return {"user_id": user_id, **shipping_fields(), "is_default": True}


def order_lines(product_ids: list[str], max_quantity: int = 3) -> list[dict]:
    picked = random.sample(product_ids, k=min(len(product_ids), random.randint(1, 3)))
    return [{"product_id": pid, "quantity": random.randint(1, max_quantity)} for pid in picked]
