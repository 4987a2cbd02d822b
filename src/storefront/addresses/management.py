"""Address book management — commands and handler."""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from storefront.addresses.address import Address
from storefront.domain import storefront
from storefront.errors import AddressNotFound


@storefront.command(part_of="Address")
class AddAddress:
    user_id = Identifier(required=True)
    first_name = String(required=True, max_length=100)
    last_name = String(max_length=100)
    phone_number = String(required=True, max_length=20)
    region = String(required=True, max_length=100)
    street = String(required=True, max_length=255)
    is_default = Boolean(default=False)


@storefront.command(part_of="Address")
class UpdateAddress:
    address_id = Identifier(required=True)
    user_id = Identifier(required=True)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone_number = String(max_length=20)
    region = String(max_length=100)
    street = String(max_length=255)
    is_default = Boolean()


@storefront.command(part_of="Address")
class RemoveAddress:
    address_id = Identifier(required=True)
    user_id = Identifier(required=True)


@storefront.command(part_of="Address")
class SetDefaultAddress:
    address_id = Identifier(required=True)
    user_id = Identifier(required=True)


def _owned(repo, address_id, user_id) -> Address:
    address = repo.find_owned(address_id, user_id)
    if address is None:
        raise AddressNotFound(address_id)
    return address


@storefront.command_handler(part_of=Address)
class AddressBookHandler:
    @handle(AddAddress)
    def add_address(self, command):
        repo = current_domain.repository_for(Address)
        is_first = not repo.for_user(command.user_id)
        if command.is_default:
            repo.unset_default(command.user_id)

        address = Address.add(
            user_id=command.user_id,
            first_name=command.first_name,
            last_name=command.last_name,
            phone_number=command.phone_number,
            region=command.region,
            street=command.street,
            is_default=bool(command.is_default) or is_first,
        )
        repo.add(address)
        return str(address.id)

    @handle(UpdateAddress)
    def update_address(self, command):
        repo = current_domain.repository_for(Address)
        address = _owned(repo, command.address_id, command.user_id)

        for name in ("first_name", "last_name", "phone_number", "region", "street"):
            value = getattr(command, name)
            if value is not None:
                setattr(address, name, value)

        if command.is_default and not address.is_default:
            repo.unset_default(command.user_id, except_id=address.id)
            address.is_default = True
        elif command.is_default is False:
            address.is_default = False

        repo.add(address)

    @handle(SetDefaultAddress)
    def set_default(self, command):
        repo = current_domain.repository_for(Address)
        address = _owned(repo, command.address_id, command.user_id)
        if address.is_default:
            return
        repo.unset_default(command.user_id, except_id=address.id)
        address.is_default = True
        repo.add(address)

    @handle(RemoveAddress)
    def remove_address(self, command):
        repo = current_domain.repository_for(Address)
        address = _owned(repo, command.address_id, command.user_id)
        was_default = address.is_default
        repo.remove(address)

        # Promote the newest remaining address
        if was_default:
            remaining = [a for a in repo.for_user(command.user_id) if str(a.id) != str(address.id)]
            if remaining:
                newest = max(remaining, key=lambda a: a.created_at)
                newest.is_default = True
                repo.add(newest)


def list_addresses(user_id) -> list[Address]:
    return current_domain.repository_for(Address).for_user(user_id)
