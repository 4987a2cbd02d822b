"""Writing reviews: a user's own WriteReview, EditReview and DeleteReview.

The one-review-per-product rule spans instances, so the handler enforces it
with a repository lookup. A review is marked as a verified purchase when the
author has a delivered order containing the product.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.errors import ProductUnavailable, ReviewNotFound
from storefront.identity.buyer import User
from storefront.order.order import Order
from storefront.reviews.review import Review
from storefront.utils.logging import get_logger
from storefront.utils.pagination import paged, paginate

logger = get_logger(__name__)


@storefront.command(part_of="Review")
class WriteReview:
    product_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True)
    comment = Text(required=True)


@storefront.command(part_of="Review")
class EditReview:
    review_id = Identifier(required=True)
    user_id = Identifier(required=True)  # Must match the author
    rating = Integer()
    comment = Text()


@storefront.command(part_of="Review")
class DeleteReview:
    review_id = Identifier(required=True)
    user_id = Identifier(required=True)


def load_review(repo, review_id) -> Review:
    try:
        return repo.get(review_id)
    except ObjectNotFoundError as exc:
        raise ReviewNotFound(review_id) from exc


def _authored(repo, review_id, user_id) -> Review:
    review = load_review(repo, review_id)
    if not review.is_by(user_id):
        raise ValidationError({"user_id": ["Only the review author can change this review"]})
    return review


@storefront.command_handler(part_of=Review)
class ReviewWritingHandler:
    @handle(WriteReview)
    def write_review(self, command):
        # Reviews come from registered users only
        current_domain.repository_for(User).get(command.user_id)
        if current_domain.repository_for(Product).find_active(command.product_id) is None:
            raise ProductUnavailable(command.product_id)

        repo = current_domain.repository_for(Review)
        if repo.by_user_for_product(command.user_id, command.product_id) is not None:
            raise ValidationError({"review": ["You have already reviewed this product"]})

        review = Review.write(
            product_id=command.product_id,
            user_id=command.user_id,
            rating=command.rating,
            comment=command.comment,
            verified_purchase=current_domain.repository_for(Order).has_delivered(
                command.user_id, command.product_id
            ),
        )
        repo.add(review)
        logger.info("review_written", review_id=str(review.id), product_id=str(command.product_id))
        return str(review.id)

    @handle(EditReview)
    def edit_review(self, command):
        repo = current_domain.repository_for(Review)
        review = _authored(repo, command.review_id, command.user_id)
        review.edit(rating=command.rating, comment=command.comment)
        repo.add(review)

    @handle(DeleteReview)
    def delete_review(self, command):
        repo = current_domain.repository_for(Review)
        review = _authored(repo, command.review_id, command.user_id)
        repo.remove(review)


def review_json(review) -> dict:
    return {
        "review_id": str(review.id),
        "product_id": str(review.product_id),
        "user_id": str(review.user_id),
        "rating": review.rating.score,
        "comment": review.comment,
        "verified_purchase": review.verified_purchase,
        "is_edited": review.is_edited,
        "created_at": review.created_at,
        "updated_at": review.updated_at,
    }


def product_reviews(product_id, page=1, limit=10) -> dict:
    """Visible reviews of a product, newest first, with the average rating."""
    repo = current_domain.repository_for(Review)
    page, limit, offset = paginate(page, limit)
    results = repo.visible_for_product(product_id, offset=offset, limit=limit)
    scores = repo.ratings_for_product(product_id)
    return {
        **paged([review_json(r) for r in results.items], results.total, page, limit),
        "average_rating": round(sum(scores) / len(scores), 2) if scores else None,
        "review_count": len(scores),
    }
