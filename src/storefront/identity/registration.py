"""Buyer identity lifecycle — guest sessions, registration and verification.

OTP delivery and token issuance belong to the authentication service; by the
time ``VerifyUser`` arrives the code has already been checked. Verifying a
user claims every order placed by guest sessions that carry the user's
phone number.
"""

from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.identity.buyer import Guest, User
from storefront.identity.events import GuestOrdersClaimed
from storefront.order.order import Order
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@storefront.command(part_of="Guest")
class CreateGuest:
    phone_number = String(max_length=20)
    name = String(max_length=100)


@storefront.command(part_of="User")
class RegisterUser:
    phone_number = String(required=True, max_length=20)
    name = String(max_length=100)


@storefront.command(part_of="User")
class VerifyUser:
    user_id = Identifier(required=True)


@storefront.command_handler(part_of=Guest)
class GuestSessionHandler:
    @handle(CreateGuest)
    def create_guest(self, command):
        guest = Guest.start_session(phone_number=command.phone_number, name=command.name)
        current_domain.repository_for(Guest).add(guest)
        return str(guest.id)


@storefront.command_handler(part_of=User)
class UserRegistrationHandler:
    @handle(RegisterUser)
    def register_user(self, command):
        repo = current_domain.repository_for(User)
        if repo.find_by_phone(command.phone_number) is not None:
            raise ValidationError({"phone_number": ["Phone number is already registered"]})

        user = User.register(phone_number=command.phone_number, name=command.name)
        repo.add(user)
        return str(user.id)

    @handle(VerifyUser)
    def verify_user(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        user.verify()

        guest_ids = [str(g.id) for g in current_domain.repository_for(Guest).with_phone(user.phone_number)]
        claimed = current_domain.repository_for(Order).reassign_guests_to_user(guest_ids, user.id)
        if claimed:
            user.raise_(
                GuestOrdersClaimed(
                    user_id=str(user.id),
                    phone_number=user.phone_number,
                    order_count=claimed,
                    claimed_at=datetime.now(UTC),
                )
            )
            logger.info("guest_orders_claimed", user_id=str(user.id), order_count=claimed)

        repo.add(user)
        return {"user_id": str(user.id), "claimed_orders": claimed}


def find_user(user_id) -> User | None:
    try:
        return current_domain.repository_for(User).get(user_id)
    except ObjectNotFoundError:
        return None


def find_guest(guest_id) -> Guest | None:
    try:
        return current_domain.repository_for(Guest).get(guest_id)
    except ObjectNotFoundError:
        return None
