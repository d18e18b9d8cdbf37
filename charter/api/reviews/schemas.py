from typing import Any, Dict, Optional, Tuple

from charter.utils.validation import Validator


class ReviewSchemas:

    @staticmethod
    def validate_review(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[Dict], Optional[Dict]]:
        errors = {}
        cleaned = {}
        data = data or {}

        if not partial:
            tour_id = Validator.parse_int(data.get('tourId', data.get('resourceId')), minimum=1)
            if tour_id is None:
                errors['tourId'] = 'Tour is required'
            else:
                cleaned['resource_id'] = tour_id

        if 'rating' in data or not partial:
            rating = Validator.parse_int(data.get('rating'), minimum=1, maximum=5)
            if rating is None:
                errors['rating'] = 'Rating must be a whole number from 1 to 5'
            else:
                cleaned['rating'] = rating

        if 'comment' in data:
            cleaned['comment'] = Validator.sanitize_input(data.get('comment'), max_length=2000)

        if 'images' in data:
            images = data.get('images') or []
            if not isinstance(images, list):
                errors['images'] = 'Images must be a list of URLs'
            else:
                cleaned['images'] = [str(i) for i in images]

        if errors:
            return False, errors, None
        return True, None, cleaned
