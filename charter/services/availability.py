"""
Availability Service
Per-resource, per-date time slots with capacity counters
"""

import logging
from datetime import date as date_type
from typing import List, Optional, Tuple

from sqlalchemy import and_, case, func, update
from sqlalchemy.exc import IntegrityError

from charter.models import AvailabilitySlot, Resource
from charter.models.enums import ResourceType

logger = logging.getLogger(__name__)

# type -> (slot length in minutes, seats per slot); None means use resource.capacity
SLOT_TEMPLATES = {
    ResourceType.HELICOPTER: (30, 6),
    ResourceType.YACHT: (120, 12),
}
DEFAULT_SLOT_MINUTES = 60


class AvailabilityService:
    """
    Slot bookkeeping over the availability_slots table.

    Reservation is a single conditional UPDATE, so concurrent requests cannot
    both pass the capacity check.
    """

    def __init__(self, session, open_hour: int = 8, close_hour: int = 18):
        self.session = session
        self.open_hour = open_hour
        self.close_hour = close_hour

    @classmethod
    def from_config(cls, session, config):
        return cls(
            session,
            open_hour=int(config.get('AVAILABILITY_OPEN_HOUR', 8)),
            close_hour=int(config.get('AVAILABILITY_CLOSE_HOUR', 18)),
        )

    # ==================== SLOT GENERATION ====================

    @staticmethod
    def slot_template(resource: Resource) -> Tuple[int, int]:
        if resource.type in SLOT_TEMPLATES:
            return SLOT_TEMPLATES[resource.type]
        return DEFAULT_SLOT_MINUTES, max(1, resource.capacity or 1)

    def generate_times(self, interval_minutes: int) -> List[str]:
        times = []
        minute_of_day = self.open_hour * 60
        while minute_of_day < self.close_hour * 60:
            hours, minutes = divmod(minute_of_day, 60)
            times.append(f"{hours:02d}:{minutes:02d}")
            minute_of_day += interval_minutes
        return times

    def ensure_slots(self, resource: Resource, day: date_type) -> None:
        """
        Materialize the day's slots for a resource if they do not exist yet.

        Commits on its own; call it before adding pending rows to the session.
        """
        existing = self.session.query(AvailabilitySlot.id).filter_by(
            resource_id=resource.id, date=day).first()
        if existing:
            return

        interval, capacity = self.slot_template(resource)
        for time in self.generate_times(interval):
            self.session.add(AvailabilitySlot(
                resource_id=resource.id, date=day, time=time,
                max_capacity=capacity, current_bookings=0
            ))
        try:
            self.session.commit()
            logger.info(f"Generated slots for resource {resource.id} on {day.isoformat()}")
        except IntegrityError:
            # Another request generated the same day first
            self.session.rollback()

    def get_slots(self, resource: Resource, day: date_type) -> List[AvailabilitySlot]:
        self.ensure_slots(resource, day)
        return (
            self.session.query(AvailabilitySlot)
            .filter_by(resource_id=resource.id, date=day)
            .order_by(AvailabilitySlot.time)
            .all()
        )

    def get_slot(self, resource_id: int, day: date_type, time: str) -> Optional[AvailabilitySlot]:
        return self.session.query(AvailabilitySlot).filter_by(
            resource_id=resource_id, date=day, time=time).first()

    # ==================== CAPACITY ====================

    def check_availability(self, resource_id: int, day: date_type, time: str, party_size: int) -> bool:
        if party_size < 1:
            return False
        resource = self.session.get(Resource, resource_id)
        if resource is not None and resource.is_active:
            self.ensure_slots(resource, day)

        slot = self.get_slot(resource_id, day, time)
        if slot is None:
            return False
        return slot.current_bookings + party_size <= slot.max_capacity

    def reserve_slot(self, resource_id: int, day: date_type, time: str, party_size: int,
                     commit: bool = True) -> bool:
        """
        Atomically add ``party_size`` seats to a slot if they fit.

        With ``commit=False`` the caller owns the transaction, so a booking
        insert and the reservation succeed or roll back together.
        """
        if party_size < 1:
            return False

        table = AvailabilitySlot.__table__
        result = self.session.execute(
            update(table)
            .where(and_(
                table.c.resource_id == resource_id,
                table.c.date == day,
                table.c.time == time,
                table.c.current_bookings + party_size <= table.c.max_capacity,
            ))
            .values(current_bookings=table.c.current_bookings + party_size)
        )
        reserved = result.rowcount == 1
        self._expire_slots()

        if reserved:
            logger.info(f"Reserved {party_size} seat(s) on resource {resource_id} {day.isoformat()} {time}")
            if commit:
                self.session.commit()
        else:
            logger.info(f"Slot full or missing for resource {resource_id} {day.isoformat()} {time}")
        return reserved

    def release_slot(self, resource_id: int, day: date_type, time: str, party_size: int,
                     commit: bool = True) -> bool:
        """Give seats back, never dropping the counter below zero"""
        table = AvailabilitySlot.__table__
        remaining = table.c.current_bookings - party_size
        result = self.session.execute(
            update(table)
            .where(and_(
                table.c.resource_id == resource_id,
                table.c.date == day,
                table.c.time == time,
            ))
            .values(current_bookings=case((remaining < 0, 0), else_=remaining))
        )
        released = result.rowcount == 1
        self._expire_slots()

        if released:
            logger.info(f"Released {party_size} seat(s) on resource {resource_id} {day.isoformat()} {time}")
            if commit:
                self.session.commit()
        return released

    def blocked_dates(self, resource_id: int) -> List[str]:
        """Dates on which every slot of the resource is full"""
        open_slots = func.sum(case(
            (AvailabilitySlot.current_bookings < AvailabilitySlot.max_capacity, 1), else_=0))
        rows = (
            self.session.query(AvailabilitySlot.date)
            .filter(AvailabilitySlot.resource_id == resource_id)
            .group_by(AvailabilitySlot.date)
            .having(open_slots == 0)
            .order_by(AvailabilitySlot.date)
            .all()
        )
        return [row.date.isoformat() for row in rows]

    def _expire_slots(self):
        # Counters were changed in SQL, so cached slot rows are stale
        for obj in list(self.session.identity_map.values()):
            if isinstance(obj, AvailabilitySlot):
                self.session.expire(obj)
