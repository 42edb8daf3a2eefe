import logging
from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from uuid import UUID
from datetime import date, timedelta
from typing import List
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Reservation
    CreateReservationRequest, AssignRoomRequest, CheckInRequest, CancelReservationRequest,
    NoShowRequest, WalkInRequest, RoomTransferRequest, StayAdjustmentRequest,
    ReservationResponse, OperationResponse,
    # Rooms
    CreateRoomTypeRequest, RoomTypeResponse, CreateRoomRequest, UpdateRoomStatusRequest,
    RoomResponse, CheckAvailabilityRequest, AvailabilityResponse, InventoryRebuildResponse,
    # Ledger
    PostLedgerEntryRequest, VoidLedgerEntryRequest, LedgerEntryResponse, LedgerResponse,
    # Settings
    UpdateSettingRequest, SettingResponse,
    # Errors
    ErrorResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import get_current_active_user, get_user, require_property_access
from infrastructure.config import settings
from infrastructure.security import verify_password, create_access_token, ACCESS_TOKEN_EXPIRE_MINUTES
from domain.auth import User
from domain.errors import FrontDeskError

from application.billing import BillingLedger
from application.front_desk import FrontDeskOperationsService
from application.services import ReservationIntakeService, RoomService, ConfigurationService
from domain.inventory import InventoryRegistry
from infrastructure.repositories.in_memory_repositories import (
    InMemoryReservationRepository, InMemoryRoomRepository,
    InMemoryLedgerRepository, InMemorySettingsRepository
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Front desk reservation lifecycle and room inventory allocation",
    version="1.0.0"
)

ERROR_STATUS_CODES = {
    "NotFound": 404,
    "ValidationError": 422,
    "InvalidTransition": 409,
    "RoomUnavailable": 409,
    "BalanceNotZero": 409,
    "ConcurrentModification": 409,
    "Forbidden": 403,
}

# Documented on every route that runs a front desk operation
OPERATION_ERRORS = {
    status_code: {"model": ErrorResponse} for status_code in (403, 404, 409, 422)
}

# Initialize repositories
reservation_repo = InMemoryReservationRepository()
room_repo = InMemoryRoomRepository()
ledger_repo = InMemoryLedgerRepository()
settings_repo = InMemorySettingsRepository()

# Services hold the inventory index and per-reservation locks, so one
# instance is shared by every request
inventories = InventoryRegistry()
billing_ledger = BillingLedger(ledger_repo, reservation_repo)
intake_service = ReservationIntakeService(reservation_repo, room_repo, inventories, billing_ledger)
front_desk_service = FrontDeskOperationsService(
    reservation_repo, inventories, billing_ledger, intake_service, no_show_fee=settings.NO_SHOW_FEE
)
room_service = RoomService(room_repo, inventories)
configuration_service = ConfigurationService(settings_repo)

# Dependency injection
def get_front_desk_service() -> FrontDeskOperationsService:
    return front_desk_service

def get_intake_service() -> ReservationIntakeService:
    return intake_service

def get_room_service() -> RoomService:
    return room_service

def get_configuration_service() -> ConfigurationService:
    return configuration_service

def get_billing_ledger() -> BillingLedger:
    return billing_ledger

# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(FrontDeskError)
async def front_desk_error_handler(request: Request, exc: FrontDeskError):
    status_code = ERROR_STATUS_CODES.get(exc.kind, 400)
    logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())

@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body")
        problems.append(f"{field}: {error['msg']}" if field else error["msg"])
    return JSONResponse(
        status_code=422,
        content={"error": "ValidationError", "message": "; ".join(problems)}
    )

# ============================================================================
# HEALTH
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running", "properties": inventories.properties()}

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning("Failed login for %s", form_data.username)
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return UserResponse(
        user_id=current_user.user_id,
        username=current_user.username,
        email=current_user.email,
        full_name=current_user.full_name,
        role=current_user.role.value,
        property_id=current_user.property_id,
        disabled=current_user.disabled
    )

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@app.post("/api/properties/{property_id}/room-types", response_model=RoomTypeResponse, status_code=201, tags=["Rooms"])
async def create_room_type(
    property_id: str,
    request: CreateRoomTypeRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Register a room type"""
    require_property_access(property_id, current_user)
    room_type = await service.create_room_type(
        property_id=property_id,
        name=request.name,
        base_rate=request.base_rate,
        max_occupancy=request.max_occupancy,
        description=request.description,
        room_type_id=request.room_type_id
    )
    return RoomTypeResponse(**room_type.model_dump())

@app.get("/api/properties/{property_id}/room-types", response_model=List[RoomTypeResponse], tags=["Rooms"])
async def get_room_types(
    property_id: str,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get room types of a property"""
    require_property_access(property_id, current_user)
    room_types = await service.get_room_types(property_id)
    return [RoomTypeResponse(**t.model_dump()) for t in room_types]

@app.post("/api/properties/{property_id}/rooms", response_model=RoomResponse, status_code=201, tags=["Rooms"])
async def create_room(
    property_id: str,
    request: CreateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Register a physical room"""
    require_property_access(property_id, current_user)
    room = await service.create_room(
        property_id=property_id,
        room_number=request.room_number,
        room_type_id=request.room_type_id,
        floor=request.floor,
        room_id=request.room_id
    )
    return _room_to_response(room)

@app.get("/api/properties/{property_id}/rooms", response_model=List[RoomResponse], tags=["Rooms"])
async def get_rooms(
    property_id: str,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get rooms of a property, ordered by room number"""
    require_property_access(property_id, current_user)
    rooms = await service.get_rooms(property_id)
    occupants = await service.occupants(property_id, date.today())
    return [_room_to_response(r, occupants.get(r.room_id)) for r in rooms]

@app.patch("/api/rooms/{room_id}/status", response_model=RoomResponse, tags=["Rooms"])
async def update_room_status(
    room_id: str,
    request: UpdateRoomStatusRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Take a room out of service or return it to service"""
    stored = await room_repo.find_room(room_id)
    if stored is not None:
        require_property_access(stored.property_id, current_user)
    room = await service.update_room_status(room_id, request.status, request.notes)
    return _room_to_response(room)

@app.post("/api/properties/{property_id}/availability/check", response_model=AvailabilityResponse, tags=["Rooms"])
async def check_availability(
    property_id: str,
    request: CheckAvailabilityRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Rooms of a type free for the whole requested stay"""
    require_property_access(property_id, current_user)
    rooms = await service.available_rooms(
        property_id, request.room_type_id, request.arrival_date, request.departure_date
    )
    return AvailabilityResponse(
        room_type_id=request.room_type_id,
        arrival_date=request.arrival_date,
        departure_date=request.departure_date,
        available_count=len(rooms),
        rooms=[_room_to_response(r) for r in rooms]
    )

@app.post("/api/properties/{property_id}/inventory/rebuild", response_model=InventoryRebuildResponse, tags=["Rooms"])
async def rebuild_inventory(
    property_id: str,
    service: ReservationIntakeService = Depends(get_intake_service),
    current_user: User = Depends(get_current_active_user)
):
    """Reload room claims from stored reservations (administrators only)"""
    claims = await service.rebuild_inventory(current_user, property_id)
    return InventoryRebuildResponse(property_id=property_id, claims=claims)

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationIntakeService = Depends(get_intake_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create new reservation"""
    require_property_access(request.property_id, current_user)
    reservation = await service.create_reservation(
        guest_id=request.guest_id,
        property_id=request.property_id,
        room_type_id=request.room_type_id,
        arrival_date=request.arrival_date,
        departure_date=request.departure_date,
        adults=request.adults,
        children=request.children,
        confirmed=request.confirmed,
        room_id=request.room_id,
        total_amount=request.total_amount,
        notes=request.notes,
        created_by=current_user.username
    )
    return _reservation_to_response(reservation)

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by ID"""
    reservation = await _authorized_reservation(reservation_id, current_user)
    return _reservation_to_response(reservation)

@app.get("/api/reservations/confirmation/{confirmation_number}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation_by_confirmation_number(
    confirmation_number: str,
    service: ReservationIntakeService = Depends(get_intake_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by confirmation number"""
    reservation = await service.get_reservation_by_confirmation_number(confirmation_number)
    require_property_access(reservation.property_id, current_user)
    return _reservation_to_response(reservation)

@app.get("/api/properties/{property_id}/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_property_reservations(
    property_id: str,
    service: ReservationIntakeService = Depends(get_intake_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all reservations of a property"""
    require_property_access(property_id, current_user)
    reservations = await service.get_reservations_by_property(property_id)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/properties/{property_id}/arrivals/today", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_todays_arrivals(
    property_id: str,
    service: ReservationIntakeService = Depends(get_intake_service),
    current_user: User = Depends(get_current_active_user)
):
    """Reservations arriving today"""
    require_property_access(property_id, current_user)
    reservations = await service.get_arrivals(property_id, date.today())
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/properties/{property_id}/departures/today", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_todays_departures(
    property_id: str,
    service: ReservationIntakeService = Depends(get_intake_service),
    current_user: User = Depends(get_current_active_user)
):
    """Reservations departing today"""
    require_property_access(property_id, current_user)
    reservations = await service.get_departures(property_id, date.today())
    return [_reservation_to_response(r) for r in reservations]

# ============================================================================
# FRONT DESK OPERATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations/{reservation_id}/confirm", response_model=OperationResponse,
          tags=["Front Desk"], responses=OPERATION_ERRORS)
async def confirm_reservation(
    reservation_id: UUID,
    service: FrontDeskOperationsService = Depends(get_front_desk_service),
    current_user: User = Depends(get_current_active_user)
):
    """Confirm a pending reservation"""
    await _authorized_reservation(reservation_id, current_user)
    reservation = await service.confirm(reservation_id, performed_by=current_user.username)
    return _operation_response(f"Reservation {reservation.confirmation_number} confirmed", reservation)

@app.post("/api/reservations/{reservation_id}/assign-room", response_model=OperationResponse,
          tags=["Front Desk"], responses=OPERATION_ERRORS)
async def assign_room(
    reservation_id: UUID,
    request: AssignRoomRequest,
    service: FrontDeskOperationsService = Depends(get_front_desk_service),
    current_user: User = Depends(get_current_active_user)
):
    """Pre-assign a room before arrival; an empty room_id clears the assignment"""
    await _authorized_reservation(reservation_id, current_user)
    reservation = await service.assign_room(reservation_id, request.room_id, performed_by=current_user.username)
    return _operation_response(f"Room assignment updated for {reservation.confirmation_number}", reservation)

@app.post("/api/reservations/{reservation_id}/check-in", response_model=OperationResponse,
          tags=["Front Desk"], responses=OPERATION_ERRORS)
async def check_in(
    reservation_id: UUID,
    request: CheckInRequest,
    service: FrontDeskOperationsService = Depends(get_front_desk_service),
    current_user: User = Depends(get_current_active_user)
):
    """Check in a guest"""
    await _authorized_reservation(reservation_id, current_user)
    reservation = await service.check_in(
        reservation_id,
        room_id=request.room_id,
        business_date=date.today() if settings.ENFORCE_ARRIVAL_DATE else None,
        performed_by=current_user.username
    )
    return _operation_response(f"Guest checked in for {reservation.confirmation_number}", reservation)

@app.post("/api/reservations/{reservation_id}/check-out", response_model=OperationResponse,
          tags=["Front Desk"], responses=OPERATION_ERRORS)
async def check_out(
    reservation_id: UUID,
    service: FrontDeskOperationsService = Depends(get_front_desk_service),
    current_user: User = Depends(get_current_active_user)
):
    """Standard checkout"""
    await _authorized_reservation(reservation_id, current_user)
    reservation = await service.check_out(reservation_id, performed_by=current_user.username)
    return _operation_response(f"Guest checked out for {reservation.confirmation_number}", reservation)

@app.post("/api/reservations/{reservation_id}/express-checkout", response_model=OperationResponse,
          tags=["Front Desk"], responses=OPERATION_ERRORS)
async def express_check_out(
    reservation_id: UUID,
    service: FrontDeskOperationsService = Depends(get_front_desk_service),
    current_user: User = Depends(get_current_active_user)
):
    """Express checkout; the folio balance must be zero"""
    await _authorized_reservation(reservation_id, current_user)
    reservation = await service.express_check_out(reservation_id, performed_by=current_user.username)
    return _operation_response(f"Express checkout completed for {reservation.confirmation_number}", reservation)

@app.post("/api/reservations/{reservation_id}/cancel", response_model=OperationResponse,
          tags=["Front Desk"], responses=OPERATION_ERRORS)
async def cancel_reservation(
    reservation_id: UUID,
    request: CancelReservationRequest,
    service: FrontDeskOperationsService = Depends(get_front_desk_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel reservation"""
    await _authorized_reservation(reservation_id, current_user)
    reservation = await service.cancel(reservation_id, request.reason, performed_by=current_user.username)
    return _operation_response(f"Reservation {reservation.confirmation_number} cancelled", reservation)

@app.post("/api/reservations/{reservation_id}/no-show", response_model=OperationResponse,
          tags=["Front Desk"], responses=OPERATION_ERRORS)
async def mark_no_show(
    reservation_id: UUID,
    request: NoShowRequest,
    service: FrontDeskOperationsService = Depends(get_front_desk_service),
    current_user: User = Depends(get_current_active_user)
):
    """Mark a reservation as no-show"""
    await _authorized_reservation(reservation_id, current_user)
    reservation = await service.mark_no_show(
        reservation_id,
        charge_fee=request.charge_no_show_fee,
        notes=request.notes,
        performed_by=current_user.username
    )
    return _operation_response(f"Reservation {reservation.confirmation_number} marked as no-show", reservation)

@app.post("/api/reservations/{reservation_id}/stay-adjustment", response_model=OperationResponse,
          tags=["Front Desk"], responses=OPERATION_ERRORS)
async def apply_stay_adjustment(
    reservation_id: UUID,
    request: StayAdjustmentRequest,
    service: FrontDeskOperationsService = Depends(get_front_desk_service),
    current_user: User = Depends(get_current_active_user)
):
    """Record an early check-in or late check-out"""
    await _authorized_reservation(reservation_id, current_user)
    reservation = await service.apply_stay_adjustment(
        reservation_id,
        request.adjustment_type,
        additional_charge=request.additional_charge,
        notes=request.notes,
        performed_by=current_user.username
    )
    return _operation_response(f"Stay adjustment recorded for {reservation.confirmation_number}", reservation)

@app.post("/api/front-desk/reservations/{reservation_id}/transfer", response_model=OperationResponse,
          tags=["Front Desk"], responses=OPERATION_ERRORS)
async def transfer_room(
    reservation_id: UUID,
    request: RoomTransferRequest,
    service: FrontDeskOperationsService = Depends(get_front_desk_service),
    current_user: User = Depends(get_current_active_user)
):
    """Move an in-house guest to another room"""
    await _authorized_reservation(reservation_id, current_user)
    reservation = await service.transfer_room(
        reservation_id, request.target_room_id, request.reason, performed_by=current_user.username
    )
    return _operation_response(f"Guest transferred for {reservation.confirmation_number}", reservation)

@app.post("/api/front-desk/walk-in", response_model=OperationResponse, status_code=201,
          tags=["Front Desk"], responses=OPERATION_ERRORS)
async def walk_in(
    request: WalkInRequest,
    service: FrontDeskOperationsService = Depends(get_front_desk_service),
    current_user: User = Depends(get_current_active_user)
):
    """Book and check in a guest arriving without a reservation"""
    require_property_access(request.property_id, current_user)
    reservation = await service.walk_in(
        guest_id=request.guest_id,
        property_id=request.property_id,
        room_type_id=request.room_type_id,
        nights=request.nights,
        adults=request.adults,
        children=request.children,
        room_id=request.room_id,
        deposit_amount=request.deposit_amount,
        notes=request.notes,
        performed_by=current_user.username
    )
    return _operation_response(f"Walk-in guest checked in for {reservation.confirmation_number}", reservation)

# ============================================================================
# LEDGER ENDPOINTS
# ============================================================================

@app.get("/api/reservations/{reservation_id}/ledger", response_model=LedgerResponse, tags=["Billing"])
async def get_ledger(
    reservation_id: UUID,
    ledger: BillingLedger = Depends(get_billing_ledger),
    current_user: User = Depends(get_current_active_user)
):
    """Ledger history and balance"""
    await _authorized_reservation(reservation_id, current_user)
    return await _ledger_to_response(ledger, reservation_id)

@app.post("/api/reservations/{reservation_id}/ledger", response_model=LedgerResponse, status_code=201,
          tags=["Billing"], responses=OPERATION_ERRORS)
async def post_ledger_entry(
    reservation_id: UUID,
    request: PostLedgerEntryRequest,
    service: FrontDeskOperationsService = Depends(get_front_desk_service),
    ledger: BillingLedger = Depends(get_billing_ledger),
    current_user: User = Depends(get_current_active_user)
):
    """Post a charge, payment or adjustment"""
    await _authorized_reservation(reservation_id, current_user)
    await service.post_ledger_entry(
        reservation_id, request.kind, request.amount, request.note, performed_by=current_user.username
    )
    return await _ledger_to_response(ledger, reservation_id)

@app.post("/api/reservations/{reservation_id}/ledger/{sequence}/void", response_model=LedgerResponse,
          tags=["Billing"], responses=OPERATION_ERRORS)
async def void_ledger_entry(
    reservation_id: UUID,
    sequence: int,
    request: VoidLedgerEntryRequest,
    service: FrontDeskOperationsService = Depends(get_front_desk_service),
    ledger: BillingLedger = Depends(get_billing_ledger),
    current_user: User = Depends(get_current_active_user)
):
    """Void a posted charge"""
    await _authorized_reservation(reservation_id, current_user)
    await service.void_ledger_entry(reservation_id, sequence, request.reason, performed_by=current_user.username)
    return await _ledger_to_response(ledger, reservation_id)

# ============================================================================
# SETTINGS ENDPOINTS
# ============================================================================

@app.get("/api/properties/{property_id}/settings", response_model=List[SettingResponse], tags=["Settings"])
async def get_settings(
    property_id: str,
    service: ConfigurationService = Depends(get_configuration_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get property settings"""
    require_property_access(property_id, current_user)
    return [SettingResponse(**s.model_dump()) for s in await service.get_settings(property_id)]

@app.put("/api/properties/{property_id}/settings", response_model=SettingResponse, tags=["Settings"])
async def update_setting(
    property_id: str,
    request: UpdateSettingRequest,
    service: ConfigurationService = Depends(get_configuration_service),
    current_user: User = Depends(get_current_active_user)
):
    """Change a property setting (administrators only)"""
    setting = await service.update_setting(current_user, property_id, request.key, request.value)
    return SettingResponse(**setting.model_dump())

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

async def _authorized_reservation(reservation_id: UUID, user: User):
    """Load a reservation and check the user works at its property"""
    reservation = await intake_service.get_reservation(reservation_id)
    require_property_access(reservation.property_id, user)
    return reservation

def _reservation_to_response(reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        confirmation_number=reservation.confirmation_number,
        guest_id=reservation.guest_id,
        property_id=reservation.property_id,
        room_type_id=reservation.room_type_id,
        room_id=reservation.room_id,
        arrival_date=reservation.stay.arrival_date,
        departure_date=reservation.stay.departure_date,
        nights=reservation.get_nights(),
        adults=reservation.adults,
        children=reservation.children,
        status=reservation.status.value,
        total_amount=reservation.total_amount,
        notes=reservation.notes,
        check_in_time=reservation.check_in_time,
        check_out_time=reservation.check_out_time,
        created_at=reservation.created_at,
        modified_at=reservation.modified_at,
        created_by=reservation.created_by,
        version=reservation.version
    )

def _operation_response(message: str, reservation) -> OperationResponse:
    return OperationResponse(message=message, reservation=_reservation_to_response(reservation))

def _room_to_response(room, occupied_by=None) -> RoomResponse:
    """Convert Room entity to RoomResponse"""
    return RoomResponse(
        room_id=room.room_id,
        property_id=room.property_id,
        room_number=room.room_number,
        room_type_id=room.room_type_id,
        floor=room.floor,
        status=room.status.value,
        notes=room.notes,
        occupied_by=occupied_by
    )

async def _ledger_to_response(ledger: BillingLedger, reservation_id: UUID) -> LedgerResponse:
    entries = await ledger.history(reservation_id)
    return LedgerResponse(
        reservation_id=reservation_id,
        currency=settings.DEFAULT_CURRENCY,
        balance=await ledger.balance(reservation_id),
        total_charges=await ledger.total_charges(reservation_id),
        entries=[
            LedgerEntryResponse(
                entry_id=e.entry_id,
                sequence=e.sequence,
                kind=e.kind.value,
                amount=e.amount,
                note=e.note,
                posted_by=e.posted_by,
                voids_sequence=e.voids_sequence,
                timestamp=e.timestamp
            )
            for e in entries
        ]
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
