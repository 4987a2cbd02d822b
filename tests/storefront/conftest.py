import pytest

from tests.storefront.builders import add_product, start_guest


@pytest.fixture
def product_id():
    return add_product()


@pytest.fixture
def guest_id():
    return start_guest()
