"""Application Services - booking intake, room inventory, configuration"""
import logging
from uuid import UUID
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Set

from application.billing import BillingLedger
from domain.auth import User
from domain.entities import Reservation, Room, RoomType, PropertySetting
from domain.enums import LedgerEntryKind, RoomStatus
from domain.errors import Forbidden, NotFound, ValidationError
from domain.inventory import InventoryRegistry
from domain.repositories import ReservationRepository, RoomRepository, SettingsRepository
from domain.value_objects import StayInterval

logger = logging.getLogger(__name__)


def build_interval(arrival_date: date, departure_date: date) -> StayInterval:
    """StayInterval with malformed ranges reported as ValidationError"""
    if departure_date <= arrival_date:
        raise ValidationError("Departure date must be after arrival date")
    return StayInterval(arrival_date=arrival_date, departure_date=departure_date)


class ReservationIntakeService:
    """Entry point for reservations produced by booking channels"""

    def __init__(
        self,
        repository: ReservationRepository,
        room_repo: RoomRepository,
        inventories: InventoryRegistry,
        ledger: BillingLedger
    ):
        self.repository = repository
        self.room_repo = room_repo
        self.inventories = inventories
        self.ledger = ledger

    async def create_reservation(
        self,
        guest_id: UUID,
        property_id: str,
        room_type_id: str,
        arrival_date: date,
        departure_date: date,
        adults: int = 1,
        children: int = 0,
        confirmed: bool = True,
        room_id: Optional[str] = None,
        total_amount: Optional[Decimal] = None,
        notes: Optional[str] = None,
        created_by: str = "SYSTEM"
    ) -> Reservation:
        """Create a pending or confirmed reservation.

        A confirmed reservation with a room claims that room right away. The
        room charge (given, or base rate x nights) opens the ledger.
        """
        stay = build_interval(arrival_date, departure_date)
        room_type = await self.get_room_type(property_id, room_type_id)
        if adults + children > room_type.max_occupancy:
            raise ValidationError(
                f"{room_type.name} sleeps at most {room_type.max_occupancy} guests"
            )
        if total_amount is None:
            total_amount = room_type.base_rate * stay.nights()
        if total_amount < 0:
            raise ValidationError("Total amount cannot be negative")

        reservation = Reservation.create(
            guest_id=guest_id,
            property_id=property_id,
            room_type_id=room_type_id,
            stay=stay,
            adults=adults,
            children=children,
            confirmed=confirmed,
            room_id=room_id,
            notes=notes,
            created_by=created_by
        )
        while await self.repository.find_by_confirmation_number(reservation.confirmation_number):
            reservation.confirmation_number = Reservation.generate_confirmation_number()

        index = self.inventories.for_property(property_id)
        if room_id is not None and index.room(room_id).room_type_id != room_type_id:
            raise ValidationError(f"Room {index.room(room_id).room_number} is not a {room_type.name} room")
        if reservation.holds_room_claim():
            index.reserve(room_id, reservation.reservation_id, stay)

        try:
            saved = await self.repository.save(reservation)
        except Exception:
            index.release(room_id, reservation.reservation_id)
            raise

        if total_amount > 0:
            await self.ledger.append(
                saved.reservation_id, LedgerEntryKind.CHARGE, total_amount,
                f"Room charges ({stay.nights()} nights)", posted_by=created_by
            )
            saved.record_ledger_totals(await self.ledger.total_charges(saved.reservation_id))
            saved = await self.repository.update(saved, saved.version)

        logger.info(
            "Reservation %s created for property %s (%s)",
            saved.confirmation_number, property_id, saved.status.value
        )
        return saved

    async def get_room_type(self, property_id: str, room_type_id: str) -> RoomType:
        room_type = await self.room_repo.find_room_type(room_type_id)
        if room_type is None or room_type.property_id != property_id:
            raise NotFound(f"Room type {room_type_id} not found for property {property_id}")
        return room_type

    async def get_reservation(self, reservation_id: UUID) -> Reservation:
        reservation = await self.repository.find_by_id(reservation_id)
        if reservation is None:
            raise NotFound(f"Reservation {reservation_id} not found")
        return reservation

    async def get_reservation_by_confirmation_number(self, confirmation_number: str) -> Reservation:
        reservation = await self.repository.find_by_confirmation_number(confirmation_number)
        if reservation is None:
            raise NotFound(f"Reservation {confirmation_number} not found")
        return reservation

    async def get_reservations_by_guest(self, guest_id: UUID) -> List[Reservation]:
        return await self.repository.find_by_guest_id(guest_id)

    async def get_reservations_by_property(self, property_id: str) -> List[Reservation]:
        reservations = await self.repository.find_by_property(property_id)
        return sorted(reservations, key=lambda r: (r.stay.arrival_date, r.confirmation_number))

    async def get_arrivals(self, property_id: str, on: date) -> List[Reservation]:
        return await self.repository.find_arrivals(property_id, on)

    async def get_departures(self, property_id: str, on: date) -> List[Reservation]:
        return await self.repository.find_departures(property_id, on)

    async def rebuild_inventory(self, user: User, property_id: str) -> int:
        """Reload the property's room claims from stored rooms and reservations.

        Recovers the index after a restart or a suspected drift. Returns the
        number of claims loaded.
        """
        if not user.is_admin():
            raise Forbidden("Only administrators can rebuild room inventory")

        index = self.inventories.for_property(property_id)
        for room in await self.room_repo.find_rooms_by_property(property_id):
            index.register_room(room)
        count = index.rebuild(await self.repository.find_by_property(property_id))
        logger.warning("Inventory for property %s rebuilt by %s: %d claims", property_id, user.username, count)
        return count


class RoomService:
    """Room reference data and availability queries"""

    def __init__(self, repository: RoomRepository, inventories: InventoryRegistry):
        self.repository = repository
        self.inventories = inventories

    async def create_room_type(
        self,
        property_id: str,
        name: str,
        base_rate: Decimal = Decimal("0"),
        max_occupancy: int = 2,
        description: Optional[str] = None,
        room_type_id: Optional[str] = None
    ) -> RoomType:
        fields = dict(property_id=property_id, name=name, base_rate=base_rate,
                      max_occupancy=max_occupancy, description=description)
        if room_type_id:
            fields["room_type_id"] = room_type_id
        room_type = RoomType(**fields)
        return await self.repository.save_room_type(room_type)

    async def get_room_types(self, property_id: str) -> List[RoomType]:
        return await self.repository.find_room_types_by_property(property_id)

    async def create_room(
        self,
        property_id: str,
        room_number: str,
        room_type_id: str,
        floor: Optional[int] = None,
        room_id: Optional[str] = None
    ) -> Room:
        room_type = await self.repository.find_room_type(room_type_id)
        if room_type is None or room_type.property_id != property_id:
            raise NotFound(f"Room type {room_type_id} not found for property {property_id}")

        fields = dict(property_id=property_id, room_number=room_number,
                      room_type_id=room_type_id, floor=floor)
        if room_id:
            fields["room_id"] = room_id
        room = Room(**fields)
        self.inventories.for_property(property_id).register_room(room)
        await self.repository.save_room(room)
        logger.info("Room %s registered for property %s", room_number, property_id)
        return room

    async def get_rooms(self, property_id: str) -> List[Room]:
        return self.inventories.for_property(property_id).rooms()

    async def occupants(self, property_id: str, day: date) -> Dict[str, UUID]:
        """room_id -> reservation holding the room on ``day``"""
        index = self.inventories.for_property(property_id)
        occupied = {}
        for room in index.rooms():
            reservation_id = index.occupant_on(room.room_id, day)
            if reservation_id is not None:
                occupied[room.room_id] = reservation_id
        return occupied

    async def update_room_status(
        self,
        room_id: str,
        status: RoomStatus,
        notes: Optional[str] = None,
        today: Optional[date] = None
    ) -> Room:
        """Change operational status. A room with a current or future claim stays in service."""
        stored = await self.repository.find_room(room_id)
        if stored is None:
            raise NotFound(f"Room {room_id} not found")
        index = self.inventories.for_property(stored.property_id)

        if status == RoomStatus.OUT_OF_SERVICE:
            today = today or date.today()
            pending = [c for c in index.claims_for(room_id) if c.interval.departure_date > today]
            if pending:
                raise ValidationError(
                    f"Room {stored.room_number} has {len(pending)} current or upcoming stay(s); "
                    "transfer them before taking the room out of service"
                )

        room = index.set_room_status(room_id, status, notes)
        await self.repository.save_room(room)
        logger.info("Room %s status set to %s", room.room_number, status.value)
        return room

    async def available_rooms(
        self,
        property_id: str,
        room_type_id: str,
        arrival_date: date,
        departure_date: date
    ) -> List[Room]:
        """Free rooms of a type for the interval, lowest room number first"""
        index = self.inventories.for_property(property_id)
        free: Set[str] = index.available_rooms(room_type_id, build_interval(arrival_date, departure_date))
        return [room for room in index.rooms(room_type_id) if room.room_id in free]


class ConfigurationService:
    """Per-property settings; writes are limited to administrators"""

    def __init__(self, repository: SettingsRepository):
        self.repository = repository

    async def get_settings(self, property_id: str) -> List[PropertySetting]:
        return await self.repository.find_by_property(property_id)

    async def get_setting(self, property_id: str, key: str, default: Optional[str] = None) -> Optional[str]:
        setting = await self.repository.find(property_id, key)
        return setting.value if setting else default

    async def update_setting(self, user: User, property_id: str, key: str, value: str) -> PropertySetting:
        if not user.is_admin():
            raise Forbidden("Only administrators can change system settings")
        if not key.strip():
            raise ValidationError("Setting key is required")

        setting = PropertySetting(property_id=property_id, key=key, value=value, updated_by=user.username)
        saved = await self.repository.save(setting)
        logger.info("Setting %s for property %s changed by %s", key, property_id, user.username)
        return saved
