"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional

from domain.enums import LedgerEntryKind, RoomStatus, StayAdjustmentType


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    guest_id: UUID
    property_id: str
    room_type_id: str
    arrival_date: date
    departure_date: date
    adults: int = Field(ge=1, le=10, default=1)
    children: int = Field(ge=0, le=10, default=0)
    confirmed: bool = True
    room_id: Optional[str] = None
    total_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = None


class AssignRoomRequest(BaseModel):
    """Assign room request DTO"""
    room_id: Optional[str] = None


class CheckInRequest(BaseModel):
    """Check-in request DTO"""
    room_id: Optional[str] = None


class CancelReservationRequest(BaseModel):
    """Cancel reservation request DTO"""
    reason: Optional[str] = None


class NoShowRequest(BaseModel):
    """No-show request DTO"""
    charge_no_show_fee: bool = True
    notes: Optional[str] = None


class WalkInRequest(BaseModel):
    """Walk-in request DTO"""
    guest_id: UUID
    property_id: str
    room_type_id: str
    nights: int = Field(ge=1, le=30, default=1)
    adults: int = Field(ge=1, le=10, default=1)
    children: int = Field(ge=0, le=10, default=0)
    room_id: Optional[str] = None
    deposit_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = None


class RoomTransferRequest(BaseModel):
    """Room transfer request DTO"""
    target_room_id: str = Field(min_length=1)
    reason: Optional[str] = None


class StayAdjustmentRequest(BaseModel):
    """Stay adjustment request DTO"""
    adjustment_type: StayAdjustmentType
    additional_charge: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = None


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    confirmation_number: str
    guest_id: UUID
    property_id: str
    room_type_id: str
    room_id: Optional[str] = None
    arrival_date: date
    departure_date: date
    nights: int
    adults: int
    children: int
    status: str
    total_amount: Decimal
    notes: Optional[str] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    created_at: datetime
    modified_at: datetime
    created_by: str
    version: int


class OperationResponse(BaseModel):
    """Front desk operation result DTO"""
    message: str
    reservation: ReservationResponse


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class CreateRoomTypeRequest(BaseModel):
    """Create room type request DTO"""
    room_type_id: Optional[str] = None
    name: str = Field(min_length=1)
    description: Optional[str] = None
    max_occupancy: int = Field(ge=1, default=2)
    base_rate: Decimal = Field(ge=0, default=Decimal("0"), max_digits=12, decimal_places=2)


class RoomTypeResponse(BaseModel):
    """Room type response DTO"""
    room_type_id: str
    property_id: str
    name: str
    description: Optional[str] = None
    max_occupancy: int
    base_rate: Decimal


class CreateRoomRequest(BaseModel):
    """Create room request DTO"""
    room_id: Optional[str] = None
    room_number: str = Field(min_length=1)
    room_type_id: str
    floor: Optional[int] = None


class UpdateRoomStatusRequest(BaseModel):
    """Room operational status request DTO"""
    status: RoomStatus
    notes: Optional[str] = None


class RoomResponse(BaseModel):
    """Room response DTO"""
    room_id: str
    property_id: str
    room_number: str
    room_type_id: str
    floor: Optional[int] = None
    status: str
    notes: Optional[str] = None
    occupied_by: Optional[UUID] = None


class CheckAvailabilityRequest(BaseModel):
    """Check availability request DTO"""
    room_type_id: str
    arrival_date: date
    departure_date: date


class AvailabilityResponse(BaseModel):
    """Availability response DTO"""
    room_type_id: str
    arrival_date: date
    departure_date: date
    available_count: int
    rooms: List[RoomResponse]


class InventoryRebuildResponse(BaseModel):
    """Inventory rebuild response DTO"""
    property_id: str
    claims: int


# ============================================================================
# LEDGER SCHEMAS
# ============================================================================

class PostLedgerEntryRequest(BaseModel):
    """Ledger posting request DTO. Payments are negative amounts."""
    kind: LedgerEntryKind
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    note: str = ""


class LedgerEntryResponse(BaseModel):
    """Ledger entry response DTO"""
    entry_id: UUID
    sequence: int
    kind: str
    amount: Decimal
    note: str
    posted_by: Optional[str] = None
    voids_sequence: Optional[int] = None
    timestamp: datetime


class VoidLedgerEntryRequest(BaseModel):
    """Void charge request DTO"""
    reason: str = Field(min_length=1)


class LedgerResponse(BaseModel):
    """Ledger response DTO"""
    reservation_id: UUID
    currency: str
    balance: Decimal
    total_charges: Decimal
    entries: List[LedgerEntryResponse]


# ============================================================================
# SETTINGS SCHEMAS
# ============================================================================

class UpdateSettingRequest(BaseModel):
    """Update setting request DTO"""
    key: str = Field(min_length=1)
    value: str


class SettingResponse(BaseModel):
    """Setting response DTO"""
    property_id: str
    key: str
    value: str
    updated_by: Optional[str] = None
    updated_at: datetime


# ============================================================================
# ERROR SCHEMA
# ============================================================================

class ErrorResponse(BaseModel):
    """Error payload; ``message`` is shown to staff verbatim"""
    error: str
    message: str
    details: Optional[dict] = None


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    property_id: Optional[str] = None
    disabled: bool
