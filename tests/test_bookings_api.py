from charter.models import AuditLog, AvailabilitySlot, Booking


def _book(client, headers, resource_id, day, **overrides):
    payload = {
        'resourceId': resource_id,
        'date': day.isoformat(),
        'startTime': '10:00',
        'duration': 2,
        'partySize': 2,
        'contactName': 'Jane Doe',
        'contactEmail': 'jane@example.com',
    }
    payload.update(overrides)
    return client.post('/api/bookings', json=payload, headers=headers)


def test_create_booking(client, customer, auth_headers, helicopter, booking_date):
    response = _book(client, auth_headers(customer), helicopter.id, booking_date)

    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['status'] == 'pending'
    assert data['paymentStatus'] == 'pending'
    assert data['totalPrice'] == 200.0
    assert data['endTime'] == '12:00'
    assert data['contactEmail'] == 'jane@example.com'


def test_fleet_book_endpoint(client, db, customer, auth_headers, yacht, booking_date):
    response = client.post(f'/api/fleet/{yacht.id}/book',
                           json={'date': booking_date.isoformat(), 'startTime': '12:00', 'partySize': 12},
                           headers=auth_headers(customer))

    assert response.status_code == 201
    slot = db.session.query(AvailabilitySlot).filter_by(resource_id=yacht.id, time='12:00').one()
    assert slot.current_bookings == 12


def test_full_slot_returns_conflict(client, customer, auth_headers, helicopter, booking_date):
    headers = auth_headers(customer)
    assert _book(client, headers, helicopter.id, booking_date, partySize=6).status_code == 201

    response = _book(client, headers, helicopter.id, booking_date, partySize=1)

    assert response.status_code == 409
    assert response.get_json()['success'] is False


def test_create_booking_validation(client, customer, auth_headers, helicopter, booking_date):
    response = _book(client, auth_headers(customer), helicopter.id, booking_date,
                     date='01/12/2026', startTime='ten', partySize=0, contactEmail='nope')

    assert response.status_code == 400
    assert set(response.get_json()['errors']) == {'date', 'startTime', 'partySize', 'contactEmail'}


def test_booking_requires_login(client, helicopter, booking_date):
    assert _book(client, {}, helicopter.id, booking_date).status_code == 401


def test_list_and_get_own_bookings(client, customer, other_customer, auth_headers, helicopter, booking_date):
    created = _book(client, auth_headers(customer), helicopter.id, booking_date).get_json()['data']

    mine = client.get('/api/bookings', headers=auth_headers(customer)).get_json()['data']
    theirs = client.get('/api/bookings', headers=auth_headers(other_customer)).get_json()['data']

    assert [b['id'] for b in mine] == [created['id']]
    assert theirs == []
    assert client.get(f"/api/bookings/{created['id']}", headers=auth_headers(customer)).status_code == 200
    assert client.get(f"/api/bookings/{created['id']}", headers=auth_headers(other_customer)).status_code == 404


def test_cancel_booking_releases_slot_and_audits(client, db, customer, auth_headers, helicopter,
                                                 booking_date, dispatcher):
    created = _book(client, auth_headers(customer), helicopter.id, booking_date).get_json()['data']

    response = client.put(f"/api/bookings/{created['id']}", json={'status': 'cancelled'},
                          headers=auth_headers(customer))

    assert response.status_code == 200
    assert response.get_json()['data']['status'] == 'cancelled'
    slot = db.session.query(AvailabilitySlot).filter_by(resource_id=helicopter.id, time='10:00').one()
    assert slot.current_bookings == 0
    assert db.session.query(AuditLog).filter_by(action='booking_cancelled').count() == 1
    assert dispatcher.templates() == ['booking_cancellation']


def test_customer_cannot_confirm(client, customer, auth_headers, helicopter, booking_date):
    created = _book(client, auth_headers(customer), helicopter.id, booking_date).get_json()['data']

    response = client.put(f"/api/bookings/{created['id']}", json={'status': 'confirmed'},
                          headers=auth_headers(customer))

    assert response.status_code == 403


def test_refused_status_change_leaves_booking_untouched(client, db, customer, admin, auth_headers, booking):
    forbidden = client.put('/api/bookings/42', json={'status': 'confirmed', 'specialRequests': 'Champagne'},
                           headers=auth_headers(customer))
    assert forbidden.status_code == 403
    assert db.session.get(Booking, 42).special_requests is None

    assert client.put('/api/bookings/42', json={'status': 'confirmed'}, headers=auth_headers(admin)).status_code == 200
    conflict = client.put('/api/bookings/42', json={'status': 'pending', 'specialRequests': 'Champagne'},
                          headers=auth_headers(admin))
    assert conflict.status_code == 409
    booking = db.session.get(Booking, 42)
    assert booking.special_requests is None
    assert booking.status.value == 'confirmed'


def test_special_requests_saved_with_cancellation(client, db, customer, auth_headers, booking):
    response = client.put('/api/bookings/42', json={'status': 'cancelled', 'specialRequests': 'Moved to next year'},
                          headers=auth_headers(customer))

    assert response.status_code == 200
    booking = db.session.get(Booking, 42)
    assert booking.status.value == 'cancelled'
    assert booking.special_requests == 'Moved to next year'

    only_notes = client.put('/api/bookings/42', json={'specialRequests': 'Window seat'},
                            headers=auth_headers(customer))
    assert only_notes.status_code == 200
    assert db.session.get(Booking, 42).special_requests == 'Window seat'


def test_update_requires_changes(client, customer, auth_headers, booking):
    response = client.put(f'/api/bookings/{booking.id}', json={}, headers=auth_headers(customer))
    assert response.status_code == 400


def test_admin_booking_stats(client, customer, admin, auth_headers, helicopter, booking_date):
    created = _book(client, auth_headers(customer), helicopter.id, booking_date).get_json()['data']
    client.put(f"/api/bookings/{created['id']}", json={'status': 'confirmed'}, headers=auth_headers(admin))

    response = client.get(f'/api/admin/bookings/stats?startDate={booking_date.isoformat()}',
                          headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.get_json()['data'] == {'total': 1, 'confirmed': 1, 'pending': 0, 'cancelled': 0,
                                           'revenue': 200.0}
    assert client.get('/api/admin/bookings/stats?endDate=soon', headers=auth_headers(admin)).status_code == 400
    assert client.get('/api/admin/bookings/stats', headers=auth_headers(customer)).status_code == 403
