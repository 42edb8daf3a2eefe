"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime
from typing import Optional
from decimal import Decimal
import random
import string

from domain.enums import (
    ReservationStatus, ReservationTransition, RoomStatus, LedgerEntryKind, ACTIVE_STATUSES
)
from domain.errors import InvalidTransition
from domain.state_machine import ReservationStateMachine
from domain.value_objects import StayInterval


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)
    confirmation_number: str

    # References to other contexts
    guest_id: UUID
    property_id: str
    room_type_id: str
    room_id: Optional[str] = None

    # Value Objects
    stay: StayInterval
    adults: int = Field(ge=1, default=1)
    children: int = Field(ge=0, default=0)

    # Status
    status: ReservationStatus = ReservationStatus.PENDING

    # Derived from the billing ledger, never set directly by callers
    total_amount: Decimal = Decimal("0")

    notes: Optional[str] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)
    created_by: str = "SYSTEM"
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        guest_id: UUID,
        property_id: str,
        room_type_id: str,
        stay: StayInterval,
        adults: int = 1,
        children: int = 0,
        confirmed: bool = False,
        room_id: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: str = "SYSTEM"
    ) -> "Reservation":
        """Create a new pending or confirmed reservation"""
        return Reservation(
            confirmation_number=Reservation.generate_confirmation_number(),
            guest_id=guest_id,
            property_id=property_id,
            room_type_id=room_type_id,
            room_id=room_id,
            stay=stay,
            adults=adults,
            children=children,
            status=ReservationStatus.CONFIRMED if confirmed else ReservationStatus.PENDING,
            notes=notes,
            created_by=created_by
        )

    # ==================== STATE TRANSITION METHODS ====================
    def confirm(self) -> None:
        self.status = ReservationStateMachine.validate(self.status, ReservationTransition.CONFIRM)
        self._touch()

    def check_in(self, room_id: str) -> None:
        """Mark guest as checked in to ``room_id``"""
        self.status = ReservationStateMachine.validate(self.status, ReservationTransition.CHECK_IN)
        self.room_id = room_id
        self.check_in_time = datetime.utcnow()
        self._touch()

    def check_out(self, express: bool = False, balance: Optional[Decimal] = None) -> None:
        transition = ReservationTransition.EXPRESS_CHECK_OUT if express else ReservationTransition.CHECK_OUT
        self.status = ReservationStateMachine.validate(self.status, transition, balance=balance)
        self.check_out_time = datetime.utcnow()
        self._touch()

    def cancel(self, reason: Optional[str] = None) -> None:
        self.status = ReservationStateMachine.validate(self.status, ReservationTransition.CANCEL)
        if reason:
            self.add_note(f"Cancelled: {reason}")
        self._touch()

    def mark_no_show(self, notes: Optional[str] = None) -> None:
        self.status = ReservationStateMachine.validate(self.status, ReservationTransition.NO_SHOW)
        if notes:
            self.add_note(f"No-show: {notes}")
        self._touch()

    def move_to_room(self, room_id: str) -> None:
        """Record an in-house room transfer"""
        ReservationStateMachine.validate(self.status, ReservationTransition.TRANSFER)
        self.room_id = room_id
        self._touch()

    def assign_room(self, room_id: Optional[str]) -> None:
        """Pre-assign (or clear) a room before arrival"""
        if self.status not in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
            raise InvalidTransition(f"Cannot assign a room to a reservation with status {self.status.value}")
        self.room_id = room_id
        self._touch()

    def add_note(self, text: str) -> None:
        """Append a line to the free-text notes"""
        self.notes = f"{self.notes}\n{text}" if self.notes else text

    def record_ledger_totals(self, total_amount: Decimal) -> None:
        self.total_amount = total_amount
        self._touch()

    # ==================== QUERY METHODS ====================
    def holds_room_claim(self) -> bool:
        """True when this reservation must own an interval in the inventory"""
        return self.room_id is not None and self.status in ACTIVE_STATUSES

    def get_nights(self) -> int:
        return self.stay.nights()

    @staticmethod
    def generate_confirmation_number() -> str:
        """Generate a guest-facing confirmation number"""
        return "RES-" + ''.join(random.choices(string.ascii_uppercase + string.digits, k=8))

    def _touch(self) -> None:
        # version is bumped by the repository when the change is committed
        self.modified_at = datetime.utcnow()


class RoomType(BaseModel):
    """Room type reference data"""
    room_type_id: str = Field(default_factory=lambda: str(uuid4()))
    property_id: str
    name: str
    description: Optional[str] = None
    max_occupancy: int = Field(ge=1, default=2)
    base_rate: Decimal = Field(ge=0, default=Decimal("0"))

    class Config:
        frozen = True


class Room(BaseModel):
    """Physical room. Occupancy is not stored here; ask the inventory index."""
    room_id: str = Field(default_factory=lambda: str(uuid4()))
    property_id: str
    room_number: str
    room_type_id: str
    floor: Optional[int] = None
    status: RoomStatus = RoomStatus.AVAILABLE
    notes: Optional[str] = None

    class Config:
        from_attributes = True

    def is_in_service(self) -> bool:
        return self.status == RoomStatus.AVAILABLE

    def sort_key(self) -> tuple:
        """Numeric room numbers sort numerically ahead of alphanumeric ones"""
        if self.room_number.isdigit():
            return (0, int(self.room_number), self.room_number)
        return (1, 0, self.room_number)


class LedgerEntry(BaseModel):
    """Append-only billing record"""
    entry_id: UUID = Field(default_factory=uuid4)
    reservation_id: UUID
    sequence: int = Field(ge=1)
    kind: LedgerEntryKind
    amount: Decimal
    note: str = ""
    posted_by: Optional[str] = None
    # sequence of the entry this one voids or reverses
    voids_sequence: Optional[int] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        frozen = True


class PropertySetting(BaseModel):
    """Per-property configuration value"""
    property_id: str
    key: str
    value: str
    updated_by: Optional[str] = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)
