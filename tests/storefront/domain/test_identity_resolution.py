"""Tests for the checkout identity decision, without any persistence."""

import pytest

from storefront.errors import InvalidCheckoutIdentity
from storefront.identity.reconciler import CheckoutIdentity, GuestUpdate, KnownGuest, resolve_identity


class TestContract:
    def test_both_ids_are_rejected(self):
        with pytest.raises(InvalidCheckoutIdentity):
            resolve_identity(CheckoutIdentity(user_id="u-1", guest_id="g-1"))

    def test_neither_id_is_rejected(self):
        with pytest.raises(InvalidCheckoutIdentity):
            resolve_identity(CheckoutIdentity())


class TestRegisteredBuyer:
    def test_user_checkout_is_kept_as_is(self):
        resolved = resolve_identity(CheckoutIdentity(user_id="u-1", phone_number="0599000001"))

        assert (resolved.user_id, resolved.guest_id) == ("u-1", None)
        assert resolved.updates == ()


class TestGuestBuyer:
    def test_guest_without_phone_is_kept_and_untouched(self):
        resolved = resolve_identity(CheckoutIdentity(guest_id="g-1"))

        assert (resolved.user_id, resolved.guest_id) == (None, "g-1")
        assert resolved.updates == ()

    def test_guest_record_follows_supplied_contact_details(self):
        resolved = resolve_identity(CheckoutIdentity(guest_id="g-1", phone_number="0599000001", full_name="Ahmad"))

        assert resolved.guest_id == "g-1"
        assert resolved.updates == (GuestUpdate("g-1", phone_number="0599000001", name="Ahmad"),)

    def test_switches_to_verified_user_with_same_phone(self):
        resolved = resolve_identity(
            CheckoutIdentity(guest_id="g-1", phone_number="0599000001"),
            matching_user_id="u-7",
        )

        assert (resolved.user_id, resolved.guest_id) == ("u-7", None)
        assert resolved.is_registered
        # The session's own record is still brought up to date
        assert resolved.updates[0].guest_id == "g-1"

    def test_user_match_wins_over_guest_match(self):
        resolved = resolve_identity(
            CheckoutIdentity(guest_id="g-1", phone_number="0599000001"),
            matching_user_id="u-7",
            matching_guest=KnownGuest("g-2"),
        )

        assert resolved.user_id == "u-7"

    def test_repoints_to_older_guest_with_same_phone_and_backfills_name(self):
        resolved = resolve_identity(
            CheckoutIdentity(guest_id="g-1", phone_number="0599000001", full_name="Ahmad Saleh"),
            matching_guest=KnownGuest("g-2", name=None),
        )

        assert (resolved.user_id, resolved.guest_id) == (None, "g-2")
        assert GuestUpdate("g-2", name="Ahmad Saleh") in resolved.updates

    def test_existing_name_on_older_guest_is_kept(self):
        resolved = resolve_identity(
            CheckoutIdentity(guest_id="g-1", phone_number="0599000001", full_name="New Name"),
            matching_guest=KnownGuest("g-2", name="Old Name"),
        )

        assert resolved.guest_id == "g-2"
        assert all(update.guest_id != "g-2" for update in resolved.updates)

    def test_match_on_same_guest_is_not_a_switch(self):
        resolved = resolve_identity(
            CheckoutIdentity(guest_id="g-1", phone_number="0599000001"),
            matching_guest=KnownGuest("g-1"),
        )

        assert resolved.guest_id == "g-1"
        assert len(resolved.updates) == 1
