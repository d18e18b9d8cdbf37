"""
Booking Service
Creates, confirms and cancels bookings together with their slot reservations
"""

import logging
from datetime import date as date_type
from decimal import Decimal
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy import func

from charter.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from charter.extensions import db
from charter.models import Booking, Resource
from charter.models.enums import BookingStatus
from charter.repositories import BookingRepository
from charter.services.availability import AvailabilityService
from charter.utils.audit_logging import AuditLogger

logger = logging.getLogger(__name__)


def announce_cancellation(booking: Booking, dispatcher=None, actor_id: Optional[str] = None,
                          description: Optional[str] = None, timeout: Optional[float] = None):
    """Audit a committed cancellation, then tell the customer"""
    AuditLogger.log_action(actor_id, 'booking_cancelled', 'booking', booking.id,
                           description or f"Booking #{booking.id} cancelled")
    if dispatcher is not None:
        dispatcher.booking_cancellation(booking, timeout=timeout)


class BookingService:

    def __init__(self, session, availability: AvailabilityService, bookings: Optional[BookingRepository] = None,
                 dispatcher=None):
        self.session = session
        self.availability = availability
        self.bookings = bookings or BookingRepository(session)
        self.dispatcher = dispatcher

    # ==================== QUERIES ====================

    def get_booking(self, booking_id: int, user) -> Booking:
        booking = self.bookings.get(booking_id)
        if booking is None:
            raise NotFoundError('Booking not found')
        if not user.is_admin and booking.user_id != user.id:
            # Hide other customers' bookings entirely
            raise NotFoundError('Booking not found')
        return booking

    def list_bookings(self, user, status: Optional[str] = None) -> List[Booking]:
        query = self.session.query(Booking)
        if not user.is_admin:
            query = query.filter(Booking.user_id == user.id)
        if status:
            try:
                query = query.filter(Booking.status == BookingStatus(status))
            except ValueError:
                raise ValidationError(f"Invalid booking status '{status}'")
        return query.order_by(Booking.created_at.desc()).all()

    # ==================== CREATION ====================

    def create_booking(self, user, resource_id: int, day: date_type, start_time: str,
                       duration: int = 1, party_size: int = 1, contact_name: Optional[str] = None,
                       contact_email: Optional[str] = None, contact_phone: Optional[str] = None,
                       special_requests: Optional[str] = None) -> Booking:
        """
        Insert a pending booking and reserve its seats as one transaction.

        Raises ConflictError, leaving nothing behind, when the slot is full.
        """
        resource = self.session.get(Resource, resource_id)
        if resource is None or not resource.is_active:
            raise NotFoundError('Tour not found')
        if day < date_type.today():
            raise ValidationError('Booking date cannot be in the past')

        # Slots are committed here, before the booking transaction opens
        self.availability.ensure_slots(resource, day)
        if self.availability.get_slot(resource.id, day, start_time) is None:
            raise ValidationError(f"{start_time} is not a bookable time for this tour")

        booking = Booking(
            resource_id=resource.id,
            user_id=user.id,
            contact_name=contact_name or user.full_name,
            contact_email=contact_email or user.email,
            contact_phone=contact_phone or user.phone,
            date=day,
            start_time=start_time,
            duration=duration,
            party_size=party_size,
            total_price=resource.quote(duration),
            currency=resource.currency,
            status=BookingStatus.PENDING,
            special_requests=special_requests,
        )
        self.bookings.add(booking)
        self.session.flush()

        if not self.availability.reserve_slot(resource.id, day, start_time, party_size, commit=False):
            self.session.rollback()
            raise ConflictError('The selected time slot is fully booked')

        self.session.commit()
        logger.info(f"Created booking {booking.id} for resource {resource.id} on {day.isoformat()} {start_time}")
        return booking

    # ==================== STATUS CHANGES ====================

    def update_booking(self, booking_id: int, user, status: Optional[str] = None,
                       special_requests: Optional[str] = None) -> Booking:
        """Apply a status change and/or new special requests as one commit"""
        booking = self.get_booking(booking_id, user)

        new_status = None
        if status is not None:
            try:
                new_status = BookingStatus(status)
            except ValueError:
                raise ValidationError(f"Invalid booking status '{status}'")
            if new_status != BookingStatus.CANCELLED and not user.is_admin:
                raise AuthorizationError('Only administrators can change a booking to this status')
            if new_status == BookingStatus.CONFIRMED and booking.status == BookingStatus.CANCELLED:
                raise ConflictError('Cancelled bookings cannot be confirmed')
            if new_status == BookingStatus.PENDING and booking.status != BookingStatus.PENDING:
                raise ConflictError(f"Booking is already {booking.status.value}")

        if special_requests is not None:
            booking.special_requests = special_requests
            # Flushed so the conditional status updates below do not discard it
            self.session.flush()

        if new_status == BookingStatus.CANCELLED:
            return self.cancel_booking(booking, actor_id=user.id)
        if new_status == BookingStatus.CONFIRMED:
            return self.confirm_booking(booking)
        self.session.commit()
        return booking

    def confirm_booking(self, booking: Booking) -> Booking:
        if booking.status == BookingStatus.CONFIRMED:
            self.session.commit()
            return booking
        if not self.bookings.mark_confirmed(booking.id):
            self.session.rollback()
            raise ConflictError('Cancelled bookings cannot be confirmed')
        self.session.commit()
        logger.info(f"Booking {booking.id} confirmed")

        if self.dispatcher is not None:
            self.dispatcher.booking_confirmation(booking)
        return booking

    def cancel_booking(self, booking: Booking, actor_id: Optional[str] = None) -> Booking:
        """Cancel and give the seats back; repeated cancels do nothing"""
        if not self.bookings.mark_cancelled(booking.id):
            self.session.commit()
            logger.info(f"Booking {booking.id} already cancelled")
            return booking

        self.availability.release_slot(booking.resource_id, booking.date, booking.start_time,
                                       booking.party_size, commit=False)
        self.session.commit()
        logger.info(f"Booking {booking.id} cancelled")

        announce_cancellation(booking, self.dispatcher, actor_id=actor_id)
        return booking

    # ==================== REPORTING ====================

    def stats(self, start: Optional[date_type] = None, end: Optional[date_type] = None) -> Dict:
        query = self.session.query(Booking.status, func.count(Booking.id), func.sum(Booking.total_price))
        if start:
            query = query.filter(Booking.date >= start)
        if end:
            query = query.filter(Booking.date <= end)

        counts = {status: 0 for status in BookingStatus}
        revenue = Decimal('0')
        for status, count, total in query.group_by(Booking.status).all():
            counts[status] = count
            if status == BookingStatus.CONFIRMED and total is not None:
                revenue = Decimal(str(total))

        return {
            'total': sum(counts.values()),
            'confirmed': counts[BookingStatus.CONFIRMED],
            'pending': counts[BookingStatus.PENDING],
            'cancelled': counts[BookingStatus.CANCELLED],
            'revenue': float(revenue),
        }


def get_booking_service() -> BookingService:
    """Booking service bound to the current app's session and mailer"""
    return BookingService(
        db.session,
        AvailabilityService.from_config(db.session, current_app.config),
        dispatcher=current_app.extensions.get('notification_dispatcher'),
    )
