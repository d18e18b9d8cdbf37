"""
Sample catalogue and admin account for development databases
"""

import logging
from decimal import Decimal

from charter.extensions import db
from charter.models import Resource, User
from charter.models.enums import ResourceType, UserRole

logger = logging.getLogger(__name__)

SAMPLE_FLEET = [
    {
        'name': 'Palm Jumeirah Helicopter Tour',
        'type': ResourceType.HELICOPTER,
        'description': 'A 30 minute flight over the Palm, Burj Al Arab and the Dubai Marina skyline.',
        'price_per_hour': Decimal('2400.00'),
        'capacity': 6,
        'location': 'Atlantis The Palm Helipad',
        'features': ['Window seats for every guest', 'Noise-cancelling headsets', 'Flight certificate'],
        'specifications': {'aircraft': 'Bell 407', 'duration': '30 minutes'},
    },
    {
        'name': 'Azimut 68 Sunset Cruise',
        'type': ResourceType.YACHT,
        'description': 'Private sunset cruise along the Dubai coastline with a dedicated crew.',
        'price_per_hour': Decimal('1800.00'),
        'price_per_day': Decimal('12000.00'),
        'capacity': 12,
        'location': 'Dubai Harbour',
        'features': ['Captain and crew', 'Soft drinks and canapés', 'Swimming stop'],
        'specifications': {'length': '68 ft', 'cabins': 3},
    },
    {
        'name': 'Gulfstream G450',
        'type': ResourceType.JET,
        'description': 'Long-range private jet for regional and intercontinental charters.',
        'price_per_hour': Decimal('36000.00'),
        'capacity': 14,
        'location': 'Al Maktoum International Airport',
        'features': ['Flight attendant', 'Full galley', 'Wi-Fi'],
        'specifications': {'range': '4,350 nm', 'cruise_speed': '476 kt'},
    },
    {
        'name': 'Lamborghini Huracán EVO',
        'type': ResourceType.SUPERCAR,
        'description': 'Self-drive supercar with delivery anywhere in Dubai.',
        'price_per_hour': Decimal('650.00'),
        'price_per_day': Decimal('4500.00'),
        'capacity': 1,
        'location': 'Downtown Dubai',
        'features': ['Free delivery', 'Full insurance', '250 km per day'],
        'specifications': {'engine': 'V10 5.2L', 'power': '640 hp'},
    },
]


def create_admin_user(email='admin@example.com', password='ChangeMe123'):
    user = User.query.filter_by(email=email).first()
    if user:
        return user, False

    user = User(email=email, first_name='Site', last_name='Admin', role=UserRole.ADMIN)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    logger.info(f"Created admin user {email}")
    return user, True


def create_sample_fleet():
    """Insert sample resources that are not present yet; returns how many were added"""
    created = 0
    for item in SAMPLE_FLEET:
        if Resource.query.filter_by(name=item['name']).first():
            continue
        db.session.add(Resource(**item))
        created += 1
    db.session.commit()
    return created
