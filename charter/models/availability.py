from charter.extensions import db


class AvailabilitySlot(db.Model):
    __tablename__ = 'availability_slots'
    __table_args__ = (
        db.UniqueConstraint('resource_id', 'date', 'time', name='uq_slot_resource_date_time'),
        db.CheckConstraint('current_bookings >= 0', name='ck_slot_non_negative'),
        db.CheckConstraint('current_bookings <= max_capacity', name='ck_slot_capacity'),
    )

    id = db.Column(db.Integer, primary_key=True)
    resource_id = db.Column(db.Integer, db.ForeignKey('resources.id'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.String(5), nullable=False)  # HH:MM

    max_capacity = db.Column(db.Integer, nullable=False)
    current_bookings = db.Column(db.Integer, nullable=False, default=0)

    @property
    def is_available(self):
        return self.current_bookings < self.max_capacity

    @property
    def remaining(self):
        return max(0, self.max_capacity - self.current_bookings)

    def to_dict(self):
        return {
            'time': self.time,
            'maxCapacity': self.max_capacity,
            'currentBookings': self.current_bookings,
            'remaining': self.remaining,
            'isAvailable': self.is_available,
        }
