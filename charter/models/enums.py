from enum import Enum


class UserRole(Enum):
    CUSTOMER = 'customer'
    ADMIN = 'admin'


class ResourceType(Enum):
    HELICOPTER = 'helicopter'
    YACHT = 'yacht'
    JET = 'jet'
    SUPERCAR = 'supercar'


class BookingStatus(Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'


class PaymentStatus(Enum):
    """Booking-level payment state, denormalized from the latest intent"""
    PENDING = 'pending'
    PAID = 'paid'
    REFUNDED = 'refunded'


class IntentStatus(Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'
    REFUNDED = 'refunded'
