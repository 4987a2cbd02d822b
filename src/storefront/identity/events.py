from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="User")
class UserVerified:
    __version__ = 1

    user_id = Identifier(required=True)
    phone_number = String(required=True)
    verified_at = DateTime(required=True)


@storefront.event(part_of="User")
class GuestOrdersClaimed:
    """A verified user took over the orders of guest sessions sharing their phone."""

    __version__ = 1

    user_id = Identifier(required=True)
    phone_number = String(required=True)
    order_count = Integer(required=True)
    claimed_at = DateTime(required=True)
