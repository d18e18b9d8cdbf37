from charter.models.user import User
from charter.models.resource import Resource
from charter.models.booking import Booking
from charter.models.availability import AvailabilitySlot
from charter.models.payment import PaymentIntent, PaymentEvent
from charter.models.review import Review
from charter.models.audit_log import AuditLog
