from datetime import date, timedelta
from decimal import Decimal

import pytest

from charter.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from charter.models import AvailabilitySlot, Booking
from charter.models.enums import BookingStatus
from charter.services.availability import AvailabilityService
from charter.services.booking import BookingService


@pytest.fixture
def service(db, dispatcher):
    return BookingService(db.session, AvailabilityService(db.session), dispatcher=dispatcher)


def _slot(db, resource_id, day, time):
    return db.session.query(AvailabilitySlot).filter_by(resource_id=resource_id, date=day, time=time).one()


def test_create_booking_reserves_seats(service, customer, helicopter, booking_date, db):
    booking = service.create_booking(customer, helicopter.id, booking_date, '10:00', duration=2, party_size=3)

    assert booking.status == BookingStatus.PENDING
    assert booking.total_price == Decimal('200.00')
    assert booking.end_time == '12:00'
    assert booking.contact_email == customer.email
    assert _slot(db, helicopter.id, booking_date, '10:00').current_bookings == 3


def test_day_rate_caps_long_charters(service, customer, yacht, booking_date):
    booking = service.create_booking(customer, yacht.id, booking_date, '08:00', duration=10, party_size=2)
    # 10 x 500 hourly would be 5000; one started day costs 3000
    assert booking.total_price == Decimal('3000.00')


def test_full_slot_rolls_back_booking(service, customer, helicopter, booking_date, db):
    service.create_booking(customer, helicopter.id, booking_date, '10:00', party_size=5)

    with pytest.raises(ConflictError):
        service.create_booking(customer, helicopter.id, booking_date, '10:00', party_size=2)

    assert db.session.query(Booking).count() == 1
    assert _slot(db, helicopter.id, booking_date, '10:00').current_bookings == 5


def test_create_booking_validation(service, customer, helicopter, booking_date):
    with pytest.raises(ValidationError):
        service.create_booking(customer, helicopter.id, date.today() - timedelta(days=1), '10:00')
    with pytest.raises(ValidationError):
        service.create_booking(customer, helicopter.id, booking_date, '10:15')
    with pytest.raises(NotFoundError):
        service.create_booking(customer, 999, booking_date, '10:00')


def test_cancel_releases_slot_once(service, customer, helicopter, booking_date, dispatcher, db):
    booking = service.create_booking(customer, helicopter.id, booking_date, '10:00', party_size=4)

    service.cancel_booking(booking)
    service.cancel_booking(booking)

    assert db.session.get(Booking, booking.id).status == BookingStatus.CANCELLED
    assert _slot(db, helicopter.id, booking_date, '10:00').current_bookings == 0
    assert dispatcher.templates() == ['booking_cancellation']


def test_customer_can_only_cancel(service, customer, helicopter, booking_date):
    booking = service.create_booking(customer, helicopter.id, booking_date, '10:00')

    with pytest.raises(AuthorizationError):
        service.update_booking(booking.id, customer, status='confirmed')

    updated = service.update_booking(booking.id, customer, status='cancelled')
    assert updated.status == BookingStatus.CANCELLED


def test_admin_confirms_booking(service, customer, admin, helicopter, booking_date, dispatcher):
    booking = service.create_booking(customer, helicopter.id, booking_date, '10:00')

    confirmed = service.update_booking(booking.id, admin, status='confirmed')

    assert confirmed.status == BookingStatus.CONFIRMED
    assert dispatcher.templates() == ['booking_confirmation']


def test_cancelled_booking_cannot_be_confirmed(service, customer, admin, helicopter, booking_date):
    booking = service.create_booking(customer, helicopter.id, booking_date, '10:00')
    service.cancel_booking(booking)

    with pytest.raises(ConflictError):
        service.update_booking(booking.id, admin, status='confirmed')


def test_customers_only_see_their_bookings(service, customer, other_customer, admin, helicopter, booking_date):
    booking = service.create_booking(customer, helicopter.id, booking_date, '10:00')
    service.create_booking(other_customer, helicopter.id, booking_date, '11:00')

    assert [b.id for b in service.list_bookings(customer)] == [booking.id]
    assert len(service.list_bookings(admin)) == 2
    with pytest.raises(NotFoundError):
        service.get_booking(booking.id, other_customer)


def test_stats_counts_and_confirmed_revenue(service, customer, admin, helicopter, booking_date):
    first = service.create_booking(customer, helicopter.id, booking_date, '10:00', duration=2)
    service.create_booking(customer, helicopter.id, booking_date, '11:00')
    third = service.create_booking(customer, helicopter.id, booking_date, '12:00')
    service.update_booking(first.id, admin, status='confirmed')
    service.cancel_booking(third)

    stats = service.stats()

    assert stats == {'total': 3, 'confirmed': 1, 'pending': 1, 'cancelled': 1, 'revenue': 200.0}
    assert service.stats(end=booking_date - timedelta(days=1))['total'] == 0
