import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.errors import ProductUnavailable, ReviewNotFound
from storefront.order.placement import place_order
from storefront.order.status import change_order_status
from storefront.reviews.moderation import SetReviewVisibility, all_reviews
from storefront.reviews.writing import DeleteReview, EditReview, WriteReview, product_reviews
from tests.storefront.builders import deactivate, register_user, shipping


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _review(product_id, user_id, rating=4, comment="Fresh and firm"):
    return _process(WriteReview(product_id=product_id, user_id=user_id, rating=rating, comment=comment))


@pytest.fixture
def user_id():
    return register_user()


class TestWritingReviews:
    def test_review_is_public_at_once(self, user_id, product_id):
        review_id = _review(product_id, user_id, rating=5)

        listing = product_reviews(product_id)

        assert [r["review_id"] for r in listing["items"]] == [review_id]
        assert listing["items"][0]["verified_purchase"] is False
        assert (listing["average_rating"], listing["review_count"]) == (5, 1)

    def test_one_review_per_product(self, user_id, product_id):
        _review(product_id, user_id)

        with pytest.raises(ValidationError) as exc:
            _review(product_id, user_id, comment="Second thoughts")

        assert exc.value.messages == {"review": ["You have already reviewed this product"]}

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_is_one_to_five(self, user_id, product_id, rating):
        with pytest.raises(ValidationError):
            _review(product_id, user_id, rating=rating)

    def test_blank_comment_is_rejected(self, user_id, product_id):
        with pytest.raises(ValidationError):
            _review(product_id, user_id, comment="   ")

    def test_unknown_user(self, product_id):
        with pytest.raises(ObjectNotFoundError):
            _review(product_id, "missing")

    def test_inactive_product(self, user_id, product_id):
        deactivate(product_id)

        with pytest.raises(ProductUnavailable):
            _review(product_id, user_id)

    def test_delivered_order_marks_a_verified_purchase(self, user_id, product_id):
        order = place_order([{"product_id": product_id, "quantity": 1}], user_id=user_id, **shipping())
        change_order_status(order["order_id"], "Shipped")
        change_order_status(order["order_id"], "Delivered")

        _review(product_id, user_id)

        assert product_reviews(product_id)["items"][0]["verified_purchase"] is True

    def test_undelivered_order_is_not_a_verified_purchase(self, user_id, product_id):
        place_order([{"product_id": product_id, "quantity": 1}], user_id=user_id, **shipping())

        _review(product_id, user_id)

        assert product_reviews(product_id)["items"][0]["verified_purchase"] is False

    def test_average_over_several_reviewers(self, product_id):
        for phone, rating in (("0599000011", 5), ("0599000012", 4), ("0599000013", 2)):
            _review(product_id, register_user(phone_number=phone), rating=rating)

        listing = product_reviews(product_id)

        assert (listing["average_rating"], listing["review_count"]) == (3.67, 3)


class TestChangingReviews:
    def test_author_can_edit(self, user_id, product_id):
        review_id = _review(product_id, user_id, rating=2)

        _process(EditReview(review_id=review_id, user_id=user_id, rating=4, comment="Better this week"))

        review = product_reviews(product_id)["items"][0]
        assert (review["rating"], review["comment"], review["is_edited"]) == (4, "Better this week", True)

    def test_edit_needs_a_change(self, user_id, product_id):
        review_id = _review(product_id, user_id)

        with pytest.raises(ValidationError):
            _process(EditReview(review_id=review_id, user_id=user_id))

    def test_only_the_author_can_edit_or_delete(self, user_id, product_id):
        review_id = _review(product_id, user_id)
        stranger = register_user(phone_number="0599000055")

        with pytest.raises(ValidationError):
            _process(EditReview(review_id=review_id, user_id=stranger, rating=1))
        with pytest.raises(ValidationError):
            _process(DeleteReview(review_id=review_id, user_id=stranger))

        assert product_reviews(product_id)["items"][0]["rating"] == 4

    def test_author_can_delete(self, user_id, product_id):
        review_id = _review(product_id, user_id)

        _process(DeleteReview(review_id=review_id, user_id=user_id))

        assert product_reviews(product_id)["review_count"] == 0
        with pytest.raises(ReviewNotFound):
            _process(DeleteReview(review_id=review_id, user_id=user_id))


class TestModeration:
    def test_hidden_reviews_leave_the_public_listing_and_average(self, product_id):
        kept = _review(product_id, register_user(phone_number="0599000011"), rating=5)
        hidden = _review(product_id, register_user(phone_number="0599000012"), rating=1)

        result = _process(SetReviewVisibility(review_id=hidden, is_hidden=True))

        assert result == {"review_id": hidden, "is_hidden": True}
        listing = product_reviews(product_id)
        assert [r["review_id"] for r in listing["items"]] == [kept]
        assert (listing["average_rating"], listing["review_count"]) == (5, 1)

        admin_view = {r["review_id"]: r["is_hidden"] for r in all_reviews(product_id=product_id)["items"]}
        assert admin_view == {kept: False, hidden: True}

    def test_unhiding_restores_the_review(self, user_id, product_id):
        review_id = _review(product_id, user_id)
        _process(SetReviewVisibility(review_id=review_id, is_hidden=True))

        _process(SetReviewVisibility(review_id=review_id, is_hidden=False))

        assert product_reviews(product_id)["review_count"] == 1

    def test_unknown_review(self):
        with pytest.raises(ReviewNotFound):
            _process(SetReviewVisibility(review_id="missing", is_hidden=True))
