"""
Catalogue validation schemas
Shared by the tour and fleet administration endpoints
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

from charter.models.enums import ResourceType
from charter.utils.validation import Validator

RESOURCE_TYPES = [t.value for t in ResourceType]


def _price(value) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price <= 0:
        return None
    return price.quantize(Decimal('0.01'))


class CatalogueSchemas:

    @staticmethod
    def validate_resource(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[Dict], Optional[Dict]]:
        """
        Validate a tour / fleet vehicle payload

        With ``partial`` only the fields present are checked (updates).
        """
        errors = {}
        cleaned = {}
        data = data or {}

        def present(key):
            return key in data or not partial

        if present('name'):
            name = Validator.sanitize_input(data.get('name'), max_length=150)
            if not name:
                errors['name'] = 'Name is required'
            else:
                cleaned['name'] = name

        if present('type'):
            resource_type = str(data.get('type') or '').lower()
            if resource_type not in RESOURCE_TYPES:
                errors['type'] = f"Type must be one of: {', '.join(RESOURCE_TYPES)}"
            else:
                cleaned['type'] = ResourceType(resource_type)

        if present('pricePerHour'):
            price = _price(data.get('pricePerHour'))
            if price is None:
                errors['pricePerHour'] = 'Price per hour must be a positive number'
            else:
                cleaned['price_per_hour'] = price

        if data.get('pricePerDay') is not None:
            price = _price(data.get('pricePerDay'))
            if price is None:
                errors['pricePerDay'] = 'Price per day must be a positive number'
            else:
                cleaned['price_per_day'] = price

        if present('capacity'):
            capacity = Validator.parse_int(data.get('capacity', 1), minimum=1, maximum=500)
            if capacity is None:
                errors['capacity'] = 'Capacity must be a whole number of at least 1'
            else:
                cleaned['capacity'] = capacity

        if 'currency' in data:
            currency = str(data.get('currency') or '').upper()
            if len(currency) != 3 or not currency.isalpha():
                errors['currency'] = 'Currency must be a 3-letter code'
            else:
                cleaned['currency'] = currency

        for field, key, limit in (('description', 'description', None),
                                  ('location', 'location', 150),
                                  ('imageUrl', 'image_url', 500)):
            if field in data:
                cleaned[key] = Validator.sanitize_input(data.get(field), max_length=limit) or None

        if 'features' in data:
            features = data.get('features') or []
            if not isinstance(features, list):
                errors['features'] = 'Features must be a list'
            else:
                cleaned['features'] = [str(f) for f in features]

        if 'specifications' in data:
            specifications = data.get('specifications') or {}
            if not isinstance(specifications, dict):
                errors['specifications'] = 'Specifications must be an object'
            else:
                cleaned['specifications'] = specifications

        if 'isActive' in data:
            cleaned['is_active'] = bool(data.get('isActive'))

        if errors:
            return False, errors, None
        return True, None, cleaned
