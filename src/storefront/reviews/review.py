"""Review aggregate: a registered user's rating and comment on a product.

One review per user per product. Reviews are public as soon as they are
written; an administrator can hide one without deleting it, and its author
can edit or delete it at any time.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, Text, ValueObject

from storefront.domain import storefront


@storefront.value_object(part_of="Review")
class Rating:
    """A star rating from 1 to 5."""

    score = Integer(required=True)

    @invariant.post
    def score_must_be_in_range(self):
        if self.score is not None and (self.score < 1 or self.score > 5):
            raise ValidationError({"rating": ["Rating must be between 1 and 5"]})


@storefront.aggregate
class Review:
    product_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = ValueObject(Rating, required=True)
    comment = Text(required=True)
    verified_purchase = Boolean(default=False)
    is_hidden = Boolean(default=False)
    is_edited = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def comment_must_not_be_blank(self):
        if self.comment is not None and not self.comment.strip():
            raise ValidationError({"comment": ["Comment cannot be empty"]})

    @classmethod
    def write(cls, product_id, user_id, rating, comment, verified_purchase=False):
        now = datetime.now(UTC)
        return cls(
            product_id=product_id,
            user_id=user_id,
            rating=Rating(score=rating),
            comment=comment,
            verified_purchase=verified_purchase,
            created_at=now,
            updated_at=now,
        )

    def is_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def edit(self, rating=None, comment=None):
        if rating is None and comment is None:
            raise ValidationError({"review": ["Nothing to update"]})
        if rating is not None:
            self.rating = Rating(score=rating)
        if comment is not None:
            self.comment = comment
        self.is_edited = True
        self.updated_at = datetime.now(UTC)

    def set_hidden(self, hidden):
        self.is_hidden = bool(hidden)
        self.updated_at = datetime.now(UTC)


@storefront.repository(part_of=Review)
class ReviewRepository:
    def by_user_for_product(self, user_id, product_id) -> Review | None:
        return self._dao.query.filter(user_id=str(user_id), product_id=str(product_id)).all().first

    def visible_for_product(self, product_id, offset=0, limit=10):
        return (
            self._dao.query.filter(product_id=str(product_id), is_hidden=False)
            .order_by("-created_at")
            .offset(offset)
            .limit(limit)
            .all()
        )

    def ratings_for_product(self, product_id) -> list[int]:
        reviews = self._dao.query.filter(product_id=str(product_id), is_hidden=False).limit(None).all().items
        return [r.rating.score for r in reviews]

    def listing(self, product_id=None, offset=0, limit=10):
        query = self._dao.query
        if product_id:
            query = query.filter(product_id=str(product_id))
        return query.order_by("-created_at").offset(offset).limit(limit).all()

    def remove(self, review):
        self._dao.delete(review)
