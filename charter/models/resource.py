from datetime import datetime, timezone
from decimal import Decimal
from charter.extensions import db
from charter.models.enums import ResourceType


class Resource(db.Model):
    """A bookable tour or fleet vehicle (helicopter, yacht, jet, supercar)"""
    __tablename__ = 'resources'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    type = db.Column(db.Enum(ResourceType), nullable=False, index=True)
    description = db.Column(db.Text)

    # Pricing
    price_per_hour = db.Column(db.Numeric(10, 2), nullable=False)
    price_per_day = db.Column(db.Numeric(10, 2))
    currency = db.Column(db.String(3), default='AED', nullable=False)

    capacity = db.Column(db.Integer, nullable=False, default=1)
    location = db.Column(db.String(150))
    image_url = db.Column(db.String(500))
    features = db.Column(db.JSON)  # ["Champagne service", ...]
    specifications = db.Column(db.JSON)  # {"length": "30m", ...}
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Review aggregates
    average_rating = db.Column(db.Numeric(3, 2), default=0)
    total_reviews = db.Column(db.Integer, default=0)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    bookings = db.relationship('Booking', backref='resource', lazy='dynamic')
    reviews = db.relationship('Review', backref='resource', lazy='dynamic', cascade='all, delete-orphan')

    def quote(self, duration_hours: int) -> Decimal:
        """Charter price for the given number of hours"""
        hourly_total = Decimal(self.price_per_hour) * duration_hours
        if self.price_per_day is not None and duration_hours >= 8:
            days, hours = divmod(duration_hours, 24)
            day_rate_total = Decimal(self.price_per_day) * (days + (1 if hours else 0))
            return min(hourly_total, day_rate_total)
        return hourly_total

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type.value,
            'description': self.description,
            'pricePerHour': float(self.price_per_hour),
            'pricePerDay': float(self.price_per_day) if self.price_per_day is not None else None,
            'currency': self.currency,
            'capacity': self.capacity,
            'location': self.location,
            'imageUrl': self.image_url,
            'features': self.features or [],
            'specifications': self.specifications or {},
            'isActive': self.is_active,
            'averageRating': float(self.average_rating or 0),
            'totalReviews': self.total_reviews or 0,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
