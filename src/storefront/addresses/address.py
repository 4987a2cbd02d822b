"""Saved delivery addresses of registered users.

Every address ships inside the store's city; the region picks the shipping
tier and must be one of the supported regions. A user has at most one
default address, and their first address becomes the default.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

from storefront.config import DEFAULT_CITY
from storefront.domain import storefront
from storefront.shipping.regions import is_supported


@storefront.aggregate
class Address:
    user_id = Identifier(required=True)
    first_name = String(required=True, max_length=100)
    last_name = String(max_length=100, default="")
    phone_number = String(required=True, max_length=20)
    city = String(max_length=100, default=DEFAULT_CITY)
    region = String(required=True, max_length=100)
    street = String(required=True, max_length=255)
    is_default = Boolean(default=False)
    created_at = DateTime()

    @invariant.post
    def region_must_be_supported(self):
        if not is_supported(self.region):
            raise ValidationError({"region": ["Invalid region. Please select a supported region."]})

    @classmethod
    def add(cls, user_id, first_name, phone_number, region, street, last_name=None, is_default=False):
        return cls(
            user_id=user_id,
            first_name=first_name,
            last_name=last_name or "",
            phone_number=phone_number,
            city=DEFAULT_CITY,
            region=region,
            street=street,
            is_default=is_default,
            created_at=datetime.now(UTC),
        )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name or ''}".strip()


@storefront.repository(part_of=Address)
class AddressRepository:
    def find_owned(self, address_id, user_id) -> Address | None:
        """The address, only if it belongs to ``user_id``."""
        return self._dao.query.filter(id=str(address_id), user_id=str(user_id)).all().first

    def for_user(self, user_id) -> list[Address]:
        addresses = self._dao.query.filter(user_id=str(user_id)).order_by("-created_at").all().items
        # Default first, then newest
        return sorted(addresses, key=lambda a: not a.is_default)

    def unset_default(self, user_id, except_id=None) -> int:
        """Clear the default flag on the user's other addresses. Returns how many changed."""
        changed = 0
        for address in self._dao.query.filter(user_id=str(user_id), is_default=True).all().items:
            if except_id is not None and str(address.id) == str(except_id):
                continue
            address.is_default = False
            self.add(address)
            changed += 1
        return changed

    def remove(self, address):
        self._dao.delete(address)
