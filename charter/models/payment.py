from datetime import datetime, timezone
from charter.extensions import db
from charter.models.enums import IntentStatus


class PaymentIntent(db.Model):
    """A gateway-tracked charge, keyed by the provider-issued transaction id"""
    __tablename__ = 'payment_transactions'

    id = db.Column(db.String(255), primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey('bookings.id'), nullable=False, index=True)
    gateway_id = db.Column(db.String(20), nullable=False)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False)
    status = db.Column(db.Enum(IntentStatus), default=IntentStatus.PENDING, nullable=False)

    payment_method = db.Column(db.String(50))
    error_message = db.Column(db.Text)
    payment_metadata = db.Column(db.JSON)
    receipt_url = db.Column(db.String(500))

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))
    completed_at = db.Column(db.DateTime)

    events = db.relationship('PaymentEvent', backref='intent', lazy='dynamic',
                             order_by='PaymentEvent.id')

    def to_dict(self, client_secret=None):
        data = {
            'id': self.id,
            'amount': float(self.amount),
            'currency': self.currency,
            'status': self.status.value,
            'gatewayId': self.gateway_id,
            'bookingId': self.booking_id,
            'metadata': self.payment_metadata or {},
            'paymentMethod': self.payment_method,
            'receiptUrl': self.receipt_url,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'completedAt': self.completed_at.isoformat() if self.completed_at else None,
        }
        if client_secret is not None:
            data['clientSecret'] = client_secret
        return data


class PaymentEvent(db.Model):
    """Append-only record of every status an intent has entered"""
    __tablename__ = 'payment_events'
    __table_args__ = (
        db.UniqueConstraint('intent_id', 'status', name='uq_payment_event_intent_status'),
    )

    id = db.Column(db.Integer, primary_key=True)
    intent_id = db.Column(db.String(255), db.ForeignKey('payment_transactions.id'), nullable=False, index=True)
    status = db.Column(db.Enum(IntentStatus), nullable=False)
    source = db.Column(db.String(20), nullable=False, default='api')  # api, webhook
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    def to_dict(self):
        return {
            'status': self.status.value,
            'source': self.source,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
