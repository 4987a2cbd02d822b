import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from storefront.addresses.management import (
    AddAddress,
    RemoveAddress,
    SetDefaultAddress,
    UpdateAddress,
    list_addresses,
)
from storefront.errors import AddressNotFound
from tests.storefront.builders import ATIL, IRTAH, register_user


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _add(user_id, street="Olive street", **kwargs):
    return _process(
        AddAddress(
            user_id=user_id,
            first_name="Lina",
            last_name="Odeh",
            phone_number="0599111222",
            region=kwargs.pop("region", ATIL),
            street=street,
            **kwargs,
        )
    )


def _default(user_id):
    return [str(a.id) for a in list_addresses(user_id) if a.is_default]


@pytest.fixture
def user_id():
    return register_user()


class TestAddressBook:
    def test_first_address_becomes_default(self, user_id):
        address_id = _add(user_id)

        assert _default(user_id) == [address_id]

    def test_new_default_replaces_the_old_one(self, user_id):
        _add(user_id)
        second = _add(user_id, street="Market road", is_default=True)

        assert _default(user_id) == [second]
        assert str(list_addresses(user_id)[0].id) == second

    def test_set_default(self, user_id):
        first = _add(user_id)
        second = _add(user_id, street="Market road")

        _process(SetDefaultAddress(address_id=second, user_id=user_id))

        assert _default(user_id) == [second]
        assert first not in _default(user_id)

    def test_set_default_among_several_leaves_one(self, user_id):
        first = _add(user_id)
        _add(user_id, street="Market road", is_default=True)
        third = _add(user_id, street="Mill lane")

        _process(SetDefaultAddress(address_id=third, user_id=user_id))
        _process(SetDefaultAddress(address_id=first, user_id=user_id))

        assert _default(user_id) == [first]

    def test_update_fields(self, user_id):
        address_id = _add(user_id)

        _process(UpdateAddress(address_id=address_id, user_id=user_id, street="New street", region=IRTAH))

        [address] = list_addresses(user_id)
        assert (address.street, address.region, address.first_name) == ("New street", IRTAH, "Lina")

    def test_unsupported_region(self, user_id):
        with pytest.raises(ValidationError):
            _add(user_id, region="Nablus")

    def test_removing_the_default_promotes_the_newest(self, user_id):
        first = _add(user_id)
        _add(user_id, street="Second")
        third = _add(user_id, street="Third")

        _process(RemoveAddress(address_id=first, user_id=user_id))

        assert _default(user_id) == [third]
        assert len(list_addresses(user_id)) == 2

    def test_other_users_address_is_not_found(self, user_id):
        address_id = _add(user_id)
        stranger = register_user(phone_number="0599000777")

        with pytest.raises(AddressNotFound):
            _process(UpdateAddress(address_id=address_id, user_id=stranger, street="Taken"))
        with pytest.raises(AddressNotFound):
            _process(RemoveAddress(address_id=address_id, user_id=stranger))
