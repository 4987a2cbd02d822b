"""Checkout identity reconciliation.

Decides who owns an order being placed: the authenticated user, the guest
session, a registered user who checked out as a guest with their verified
phone, or an older guest session of the same shopper. The decision itself
is the pure function ``resolve_identity``; the guest record updates it asks
for are applied by ``IdentityReconciler`` inside the caller's transaction.
"""

from dataclasses import dataclass, field

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.errors import InvalidCheckoutIdentity
from storefront.identity.buyer import Guest, User
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CheckoutIdentity:
    user_id: str | None = None
    guest_id: str | None = None
    phone_number: str | None = None
    full_name: str | None = None

    def validate(self):
        # Exactly one owner; never guess between two
        if bool(self.user_id) == bool(self.guest_id):
            raise InvalidCheckoutIdentity()


@dataclass(frozen=True)
class KnownGuest:
    guest_id: str
    name: str | None = None


@dataclass(frozen=True)
class GuestUpdate:
    guest_id: str
    phone_number: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class ResolvedIdentity:
    user_id: str | None
    guest_id: str | None
    updates: tuple[GuestUpdate, ...] = field(default_factory=tuple)

    @property
    def is_registered(self):
        return self.user_id is not None


def resolve_identity(identity, matching_user_id=None, matching_guest=None):
    """Decide the (user_id, guest_id) owner of an order.

    ``matching_user_id`` is a verified user holding the checkout phone;
    ``matching_guest`` is a different guest session holding it. Both are
    only consulted for guest checkouts that supply a phone.
    """
    identity.validate()

    if identity.user_id or not identity.phone_number:
        return ResolvedIdentity(user_id=identity.user_id, guest_id=identity.guest_id)

    # The session's own record always follows the latest contact details
    updates = [GuestUpdate(identity.guest_id, phone_number=identity.phone_number, name=identity.full_name)]

    if matching_user_id:
        return ResolvedIdentity(user_id=str(matching_user_id), guest_id=None, updates=tuple(updates))

    if matching_guest and str(matching_guest.guest_id) != str(identity.guest_id):
        if identity.full_name and not matching_guest.name:
            updates.append(GuestUpdate(matching_guest.guest_id, name=identity.full_name))
        return ResolvedIdentity(user_id=None, guest_id=str(matching_guest.guest_id), updates=tuple(updates))

    return ResolvedIdentity(user_id=None, guest_id=identity.guest_id, updates=tuple(updates))


class IdentityReconciler:
    def __init__(self):
        self.users = current_domain.repository_for(User)
        self.guests = current_domain.repository_for(Guest)

    def reconcile(self, identity: CheckoutIdentity) -> ResolvedIdentity:
        identity.validate()

        if identity.user_id:
            return resolve_identity(identity)

        try:
            self.guests.get(identity.guest_id)
        except ObjectNotFoundError as exc:
            raise InvalidCheckoutIdentity() from exc

        matching_user_id = None
        matching_guest = None
        if identity.phone_number:
            user = self.users.find_verified_by_phone(identity.phone_number)
            if user is not None:
                matching_user_id = str(user.id)
            else:
                other = self.guests.other_with_phone(identity.phone_number, identity.guest_id)
                if other is not None:
                    matching_guest = KnownGuest(guest_id=str(other.id), name=other.name)

        resolution = resolve_identity(identity, matching_user_id, matching_guest)
        self.apply(resolution)

        if resolution.guest_id != identity.guest_id:
            logger.info(
                "checkout_identity_switched",
                guest_id=str(identity.guest_id),
                user_id=resolution.user_id,
                resolved_guest_id=resolution.guest_id,
            )
        return resolution

    def apply(self, resolution: ResolvedIdentity):
        for update in resolution.updates:
            guest = self.guests.get(update.guest_id)
            if update.phone_number:
                guest.phone_number = update.phone_number
            if update.name:
                guest.name = update.name
            self.guests.add(guest)
