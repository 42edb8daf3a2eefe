"""Domain Enums"""
from enum import Enum


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OUT_OF_SERVICE = "out_of_service"


class LedgerEntryKind(str, Enum):
    CHARGE = "charge"
    PAYMENT = "payment"
    ADJUSTMENT = "adjustment"


class StayAdjustmentType(str, Enum):
    EARLY_CHECKIN = "early_checkin"
    LATE_CHECKOUT = "late_checkout"


class ReservationTransition(str, Enum):
    CONFIRM = "confirm"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    EXPRESS_CHECK_OUT = "express_check_out"
    CANCEL = "cancel"
    NO_SHOW = "no_show"
    TRANSFER = "transfer"
    EARLY_CHECKIN = "early_checkin"
    LATE_CHECKOUT = "late_checkout"


class UserRole(str, Enum):
    IT_ADMIN = "it_admin"
    ADMIN = "admin"
    HOTEL_MANAGER = "hotel_manager"
    FRONT_DESK_STAFF = "front_desk_staff"
    ACCOUNTANT = "accountant"


# Statuses whose reservation holds an exclusive claim on its room interval
ACTIVE_STATUSES = frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN})


ADMIN_ROLES = frozenset({UserRole.IT_ADMIN, UserRole.ADMIN})
