"""Review moderation: administrators hide and unhide reviews."""

from protean import handle
from protean.fields import Boolean, Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.reviews.review import Review
from storefront.reviews.writing import load_review, review_json
from storefront.utils.pagination import paged, paginate


@storefront.command(part_of="Review")
class SetReviewVisibility:
    review_id = Identifier(required=True)
    is_hidden = Boolean(required=True)


@storefront.command_handler(part_of=Review)
class ReviewModerationHandler:
    @handle(SetReviewVisibility)
    def set_visibility(self, command):
        repo = current_domain.repository_for(Review)
        review = load_review(repo, command.review_id)
        review.set_hidden(command.is_hidden)
        repo.add(review)
        return {"review_id": str(review.id), "is_hidden": review.is_hidden}


def all_reviews(product_id=None, page=1, limit=10) -> dict:
    """Every review including hidden ones, for the admin surface."""
    page, limit, offset = paginate(page, limit)
    results = current_domain.repository_for(Review).listing(product_id=product_id, offset=offset, limit=limit)
    items = [{**review_json(r), "is_hidden": r.is_hidden} for r in results.items]
    return paged(items, results.total, page, limit)
