"""
Review Service
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from charter.errors import AuthorizationError, ConflictError, NotFoundError
from charter.models import Resource, Review

logger = logging.getLogger(__name__)


class ReviewService:

    def __init__(self, session):
        self.session = session

    def list_reviews(self, resource_id: Optional[int] = None) -> List[Review]:
        query = self.session.query(Review)
        if resource_id is not None:
            query = query.filter(Review.resource_id == resource_id)
        return query.order_by(Review.created_at.desc()).all()

    def get_review(self, review_id: int) -> Review:
        review = self.session.get(Review, review_id)
        if review is None:
            raise NotFoundError('Review not found')
        return review

    def create_review(self, user, resource_id: int, rating: int, comment: Optional[str] = None,
                      images: Optional[list] = None) -> Review:
        resource = self.session.get(Resource, resource_id)
        if resource is None:
            raise NotFoundError('Tour not found')

        review = Review(resource_id=resource.id, user_id=user.id, rating=rating,
                        comment=comment, images=images or [])
        self.session.add(review)
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError('You have already reviewed this tour')

        self._recompute(resource)
        self.session.commit()
        logger.info(f"User {user.id} reviewed resource {resource.id} ({rating}/5)")
        return review

    def update_review(self, review_id: int, user, rating: Optional[int] = None,
                      comment: Optional[str] = None, images: Optional[list] = None) -> Review:
        review = self.get_review(review_id)
        if review.user_id != user.id:
            raise AuthorizationError('You can only edit your own reviews')

        if rating is not None:
            review.rating = rating
        if comment is not None:
            review.comment = comment
        if images is not None:
            review.images = images
        self.session.flush()

        self._recompute(review.resource)
        self.session.commit()
        return review

    def delete_review(self, review_id: int, user) -> None:
        review = self.get_review(review_id)
        if review.user_id != user.id and not user.is_admin:
            raise AuthorizationError('You can only delete your own reviews')

        resource = review.resource
        self.session.delete(review)
        self.session.flush()

        self._recompute(resource)
        self.session.commit()
        logger.info(f"Review {review_id} deleted by {user.id}")

    def _recompute(self, resource: Resource) -> None:
        average, total = (
            self.session.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.resource_id == resource.id)
            .one()
        )
        resource.total_reviews = total or 0
        resource.average_rating = (
            Decimal(str(average)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP) if average else Decimal('0')
        )
