from flask import request

from charter.api.reviews import reviews_bp
from charter.api.reviews.schemas import ReviewSchemas
from charter.extensions import db
from charter.services.review import ReviewService
from charter.utils.api_response import APIResponse
from charter.utils.decorators import login_required


@reviews_bp.route('', methods=['GET'])
def list_reviews():
    reviews = ReviewService(db.session).list_reviews()
    return APIResponse.success([r.to_dict() for r in reviews])


@reviews_bp.route('', methods=['POST'])
@login_required
def create_review(current_user):
    """
    Review a tour

    Request Body:
    {
        "tourId": 3,
        "rating": 5,
        "comment": "Unforgettable sunset flight",
        "images": []
    }
    """
    is_valid, errors, cleaned = ReviewSchemas.validate_review(request.get_json(silent=True))
    if not is_valid:
        return APIResponse.validation_error(errors)

    review = ReviewService(db.session).create_review(current_user, **cleaned)
    return APIResponse.created(review.to_dict(), 'Review submitted')


@reviews_bp.route('/<int:review_id>', methods=['PUT'])
@login_required
def update_review(current_user, review_id):
    is_valid, errors, cleaned = ReviewSchemas.validate_review(request.get_json(silent=True), partial=True)
    if not is_valid:
        return APIResponse.validation_error(errors)

    review = ReviewService(db.session).update_review(review_id, current_user, **cleaned)
    return APIResponse.success(review.to_dict(), 'Review updated')


@reviews_bp.route('/<int:review_id>', methods=['DELETE'])
@login_required
def delete_review(current_user, review_id):
    ReviewService(db.session).delete_review(review_id, current_user)
    return APIResponse.success(message='Review deleted')
