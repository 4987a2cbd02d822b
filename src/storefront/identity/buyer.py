"""Buyer identities — registered users and guest sessions.

A guest is an ephemeral buyer; when a user registers and verifies the same
phone number, the guest's orders are claimed by the user.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String

from storefront.domain import storefront
from storefront.identity.events import UserVerified


class UserRole(Enum):
    CUSTOMER = "Customer"
    ADMIN = "Admin"


@storefront.aggregate
class User:
    phone_number = String(required=True, max_length=20, unique=True)
    name = String(max_length=100)
    role = String(choices=UserRole, default=UserRole.CUSTOMER.value)
    is_verified = Boolean(default=False)
    is_active = Boolean(default=True)
    registered_at = DateTime()
    verified_at = DateTime()

    @classmethod
    def register(cls, phone_number, name=None, role=UserRole.CUSTOMER.value):
        return cls(
            phone_number=phone_number,
            name=name,
            role=role,
            is_verified=False,
            is_active=True,
            registered_at=datetime.now(UTC),
        )

    def verify(self):
        if self.is_verified:
            raise ValidationError({"user": ["Account is already verified"]})
        self.is_verified = True
        self.verified_at = datetime.now(UTC)
        self.raise_(UserVerified(user_id=str(self.id), phone_number=self.phone_number, verified_at=self.verified_at))


@storefront.aggregate
class Guest:
    phone_number = String(max_length=20)
    name = String(max_length=100)
    created_at = DateTime()

    @classmethod
    def start_session(cls, phone_number=None, name=None):
        return cls(phone_number=phone_number, name=name, created_at=datetime.now(UTC))


@storefront.repository(part_of=User)
class UserRepository:
    def find_by_phone(self, phone_number) -> User | None:
        return self._dao.query.filter(phone_number=phone_number).all().first

    def find_verified_by_phone(self, phone_number) -> User | None:
        return self._dao.query.filter(phone_number=phone_number, is_verified=True, is_active=True).all().first


@storefront.repository(part_of=Guest)
class GuestRepository:
    def with_phone(self, phone_number) -> list[Guest]:
        return self._dao.query.filter(phone_number=phone_number).order_by("created_at").all().items

    def other_with_phone(self, phone_number, excluding_guest_id) -> Guest | None:
        """Another guest session already carrying ``phone_number``."""
        return next(
            (guest for guest in self.with_phone(phone_number) if str(guest.id) != str(excluding_guest_id)),
            None,
        )
