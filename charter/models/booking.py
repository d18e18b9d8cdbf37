from datetime import datetime, timedelta, timezone
from charter.extensions import db
from charter.models.enums import BookingStatus, PaymentStatus


class Booking(db.Model):
    __tablename__ = 'bookings'

    id = db.Column(db.Integer, primary_key=True)

    resource_id = db.Column(db.Integer, db.ForeignKey('resources.id'), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)

    # Contact details captured at checkout
    contact_name = db.Column(db.String(120))
    contact_email = db.Column(db.String(120))
    contact_phone = db.Column(db.String(20))

    # Schedule
    date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM
    duration = db.Column(db.Integer, nullable=False, default=1)  # hours
    party_size = db.Column(db.Integer, nullable=False, default=1)

    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(3), default='AED', nullable=False)

    status = db.Column(db.Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False)
    payment_status = db.Column(db.Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)

    special_requests = db.Column(db.Text)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))
    confirmed_at = db.Column(db.DateTime)
    cancelled_at = db.Column(db.DateTime)

    payments = db.relationship('PaymentIntent', backref='booking', lazy='dynamic')

    @property
    def end_time(self):
        start = datetime.strptime(self.start_time, '%H:%M')
        return (start + timedelta(hours=self.duration or 0)).strftime('%H:%M')

    @property
    def recipient_email(self):
        if self.contact_email:
            return self.contact_email
        return self.customer.email if self.customer else None

    @property
    def recipient_name(self):
        if self.contact_name:
            return self.contact_name
        return self.customer.full_name if self.customer else 'Guest'

    def to_dict(self):
        return {
            'id': self.id,
            'resourceId': self.resource_id,
            'resourceName': self.resource.name if self.resource else None,
            'userId': self.user_id,
            'contactName': self.contact_name,
            'contactEmail': self.contact_email,
            'contactPhone': self.contact_phone,
            'date': self.date.isoformat(),
            'startTime': self.start_time,
            'endTime': self.end_time,
            'duration': self.duration,
            'partySize': self.party_size,
            'totalPrice': float(self.total_price),
            'currency': self.currency,
            'status': self.status.value,
            'paymentStatus': self.payment_status.value,
            'specialRequests': self.special_requests,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'confirmedAt': self.confirmed_at.isoformat() if self.confirmed_at else None,
            'cancelledAt': self.cancelled_at.isoformat() if self.cancelled_at else None,
        }
