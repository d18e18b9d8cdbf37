"""
Persistence seams for the payment and booking services.

The services only talk to these repositories, never to ``db.session``
directly, so the conditional updates that enforce the concurrency rules live
in one place.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import update

from charter.models import Booking, PaymentEvent, PaymentIntent
from charter.models.enums import BookingStatus, IntentStatus, PaymentStatus


class PaymentIntentRepository:

    def __init__(self, session):
        self.session = session

    def get(self, intent_id: str) -> Optional[PaymentIntent]:
        return self.session.get(PaymentIntent, intent_id)

    def list_for_booking(self, booking_id: int) -> List[PaymentIntent]:
        return (
            self.session.query(PaymentIntent)
            .filter_by(booking_id=booking_id)
            .order_by(PaymentIntent.created_at.desc())
            .all()
        )

    def list(self, status: Optional[IntentStatus] = None, gateway_id: Optional[str] = None) -> List[PaymentIntent]:
        query = self.session.query(PaymentIntent)
        if status is not None:
            query = query.filter(PaymentIntent.status == status)
        if gateway_id:
            query = query.filter(PaymentIntent.gateway_id == gateway_id)
        return query.order_by(PaymentIntent.created_at.desc()).all()

    def add(self, intent: PaymentIntent, source: str = 'api') -> PaymentIntent:
        self.session.add(intent)
        self.session.add(PaymentEvent(intent_id=intent.id, status=intent.status, source=source))
        return intent

    def compare_and_set_status(self, intent_id: str, expected: IntentStatus, new: IntentStatus,
                               **fields) -> bool:
        """
        Move an intent to ``new`` only if it is still in ``expected``.

        Returns False when another request changed the status first.
        """
        table = PaymentIntent.__table__
        values = dict(status=new, updated_at=datetime.now(timezone.utc), **fields)
        result = self.session.execute(
            update(table)
            .where(table.c.id == intent_id, table.c.status == expected)
            .values(**values)
        )
        intent = self.session.identity_map.get(self.session.identity_key(PaymentIntent, intent_id))
        if intent is not None:
            self.session.expire(intent)
        return result.rowcount == 1

    def record_event(self, intent_id: str, status: IntentStatus, source: str) -> PaymentEvent:
        event = PaymentEvent(intent_id=intent_id, status=status, source=source)
        self.session.add(event)
        return event


class BookingRepository:

    def __init__(self, session):
        self.session = session

    def get(self, booking_id) -> Optional[Booking]:
        return self.session.get(Booking, booking_id)

    def add(self, booking: Booking) -> Booking:
        self.session.add(booking)
        return booking

    def mark_paid(self, booking_id: int) -> bool:
        """
        Set payment_status=paid and confirm the booking unless it was cancelled.

        Returns True when the booking itself moved to confirmed.
        """
        table = Booking.__table__
        now = datetime.now(timezone.utc)
        confirmed = self.session.execute(
            update(table)
            .where(table.c.id == booking_id, table.c.status != BookingStatus.CANCELLED)
            .values(status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID,
                    confirmed_at=now, updated_at=now)
        ).rowcount == 1
        if not confirmed:
            self.session.execute(
                update(table)
                .where(table.c.id == booking_id)
                .values(payment_status=PaymentStatus.PAID, updated_at=now)
            )
        self._expire(booking_id)
        return confirmed

    def mark_refunded(self, booking_id: int) -> None:
        table = Booking.__table__
        self.session.execute(
            update(table)
            .where(table.c.id == booking_id)
            .values(payment_status=PaymentStatus.REFUNDED,
                    updated_at=datetime.now(timezone.utc))
        )
        self._expire(booking_id)

    def mark_cancelled(self, booking_id: int) -> bool:
        """
        Cancel a booking that is not already cancelled.

        Returns False if it was, so slot release happens exactly once.
        """
        table = Booking.__table__
        now = datetime.now(timezone.utc)
        result = self.session.execute(
            update(table)
            .where(table.c.id == booking_id, table.c.status != BookingStatus.CANCELLED)
            .values(status=BookingStatus.CANCELLED, cancelled_at=now, updated_at=now)
        )
        self._expire(booking_id)
        return result.rowcount == 1

    def mark_confirmed(self, booking_id: int) -> bool:
        table = Booking.__table__
        now = datetime.now(timezone.utc)
        result = self.session.execute(
            update(table)
            .where(table.c.id == booking_id, table.c.status == BookingStatus.PENDING)
            .values(status=BookingStatus.CONFIRMED, confirmed_at=now, updated_at=now)
        )
        self._expire(booking_id)
        return result.rowcount == 1

    def _expire(self, booking_id):
        booking = self.session.identity_map.get(self.session.identity_key(Booking, booking_id))
        if booking is not None:
            self.session.expire(booking)
