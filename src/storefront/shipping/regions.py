"""Delivery regions and region-keyed shipping tiers.

Every supported region maps to a ``ShippingTier``; regions without their own
entry use ``DEFAULT_TIER``. Shipping is free only when the products total is
strictly above the tier's threshold.
"""

from dataclasses import dataclass
from decimal import Decimal

from protean.exceptions import ValidationError


@dataclass(frozen=True)
class ShippingTier:
    free_threshold: Decimal
    fee: Decimal


SUPPORTED_REGIONS = (
    "عتيل - جبل المصرية",
    "عتيل - عتيل",
    "ارتاح",
    "اكتابا",
    "الجاروشية",
    "المسقوفة",
    "النزلة الشرقية",
    "النزلة الغربية",
    "النزلة الوسطى",
    "باقة الشرقية",
    "بلعا",
    "دير الغصون",
    "زيتا",
    "شويكة",
    "صيدا",
    "عزبة الجراد",
    "عزبة الطياح",
    "عزبة شوفة",
    "عزبة ناصر",
    "علار",
    "عنبتا",
    "فرعون",
    "قفين",
    "كفر اللبد",
    "مدينة طولكرم",
    "نزلة عيسى",
    "نور شمس",
)

DEFAULT_FEE = Decimal("20")

DEFAULT_TIER = ShippingTier(free_threshold=Decimal("70"), fee=DEFAULT_FEE)

SHIPPING_TIERS = {
    "عتيل - جبل المصرية": ShippingTier(free_threshold=Decimal("30"), fee=DEFAULT_FEE),
    "عتيل - عتيل": ShippingTier(free_threshold=Decimal("50"), fee=DEFAULT_FEE),
}


def is_supported(region) -> bool:
    return region in SUPPORTED_REGIONS


def validate_region(region):
    if not is_supported(region):
        raise ValidationError({"region": ["Invalid region. Please select a supported region."]})


def tier_for(region) -> ShippingTier:
    return SHIPPING_TIERS.get(region, DEFAULT_TIER)


def calculate_shipping_fee(region, products_total) -> Decimal:
    tier = tier_for(region)
    if Decimal(str(products_total)) > tier.free_threshold:
        return Decimal("0")
    return tier.fee


def list_regions() -> list[str]:
    return list(SUPPORTED_REGIONS)


def quote_shipping(region, cart_total) -> dict:
    """Shipping fee and free-shipping threshold for a prospective cart."""
    validate_region(region)
    if cart_total is None or float(cart_total) < 0:
        raise ValidationError({"cart_total": ["cart_total must be a valid positive number"]})

    tier = tier_for(region)
    fee = calculate_shipping_fee(region, cart_total)
    total = (Decimal(str(cart_total)) + fee).quantize(Decimal("0.01"))
    return {
        "region": region,
        "cart_total": float(cart_total),
        "shipping_fees": float(fee),
        "free_threshold": float(tier.free_threshold),
        "final_total": float(total),
    }
