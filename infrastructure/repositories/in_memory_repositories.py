"""In-Memory Repository Implementations

Stored objects are copied on the way in and on the way out, so a caller
mutating a loaded aggregate changes nothing until it calls ``update``.
"""
from typing import Optional, List, Dict, Tuple
from uuid import UUID
from datetime import date

from domain.repositories import (
    ReservationRepository, RoomRepository, LedgerRepository, SettingsRepository
)
from domain.entities import Reservation, Room, RoomType, LedgerEntry, PropertySetting
from domain.errors import ConcurrentModification, NotFound, ValidationError


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Reservation] = {}

    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory"""
        if reservation.reservation_id in self._storage:
            raise ValidationError(f"Reservation {reservation.reservation_id} already exists")
        for existing in self._storage.values():
            if existing.confirmation_number == reservation.confirmation_number:
                raise ValidationError(
                    f"Confirmation number {reservation.confirmation_number} is already in use"
                )
        self._storage[reservation.reservation_id] = reservation.model_copy(deep=True)
        return reservation.model_copy(deep=True)

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        reservation = self._storage.get(reservation_id)
        return reservation.model_copy(deep=True) if reservation else None

    async def find_by_confirmation_number(self, confirmation_number: str) -> Optional[Reservation]:
        """Find reservation by confirmation number"""
        for reservation in self._storage.values():
            if reservation.confirmation_number == confirmation_number:
                return reservation.model_copy(deep=True)
        return None

    async def find_by_guest_id(self, guest_id: UUID) -> List[Reservation]:
        """Find reservations by guest ID"""
        return [r.model_copy(deep=True) for r in self._storage.values() if r.guest_id == guest_id]

    async def find_by_property(self, property_id: str) -> List[Reservation]:
        return [r.model_copy(deep=True) for r in self._storage.values() if r.property_id == property_id]

    async def find_arrivals(self, property_id: str, on: date) -> List[Reservation]:
        return [
            r.model_copy(deep=True) for r in self._storage.values()
            if r.property_id == property_id and r.stay.arrival_date == on
        ]

    async def find_departures(self, property_id: str, on: date) -> List[Reservation]:
        return [
            r.model_copy(deep=True) for r in self._storage.values()
            if r.property_id == property_id and r.stay.departure_date == on
        ]

    async def update(self, reservation: Reservation, expected_version: int) -> Reservation:
        """Update reservation if nobody else has since committed a change"""
        stored = self._storage.get(reservation.reservation_id)
        if stored is None:
            raise NotFound(f"Reservation {reservation.reservation_id} not found")
        if stored.version != expected_version:
            raise ConcurrentModification(
                f"Reservation {stored.confirmation_number} was modified by another operation; reload and retry",
                details={"expected_version": expected_version, "current_version": stored.version},
            )
        committed = reservation.model_copy(update={"version": expected_version + 1}, deep=True)
        self._storage[reservation.reservation_id] = committed
        return committed.model_copy(deep=True)

    async def delete(self, reservation_id: UUID) -> bool:
        """Delete reservation"""
        if reservation_id in self._storage:
            del self._storage[reservation_id]
            return True
        return False


class InMemoryRoomRepository(RoomRepository):
    """In-memory implementation of RoomRepository"""

    def __init__(self):
        self._room_types: Dict[str, RoomType] = {}
        self._rooms: Dict[str, Room] = {}

    async def save_room_type(self, room_type: RoomType) -> RoomType:
        self._room_types[room_type.room_type_id] = room_type
        return room_type

    async def find_room_type(self, room_type_id: str) -> Optional[RoomType]:
        return self._room_types.get(room_type_id)

    async def find_room_types_by_property(self, property_id: str) -> List[RoomType]:
        return [t for t in self._room_types.values() if t.property_id == property_id]

    async def save_room(self, room: Room) -> Room:
        self._rooms[room.room_id] = room.model_copy(deep=True)
        return room

    async def find_room(self, room_id: str) -> Optional[Room]:
        room = self._rooms.get(room_id)
        return room.model_copy(deep=True) if room else None

    async def find_rooms_by_property(self, property_id: str) -> List[Room]:
        return [r.model_copy(deep=True) for r in self._rooms.values() if r.property_id == property_id]


class InMemoryLedgerRepository(LedgerRepository):
    """In-memory implementation of LedgerRepository"""

    def __init__(self):
        self._entries: Dict[UUID, List[LedgerEntry]] = {}

    async def append(self, entry: LedgerEntry) -> LedgerEntry:
        self._entries.setdefault(entry.reservation_id, []).append(entry)
        return entry

    async def find_by_reservation(self, reservation_id: UUID) -> List[LedgerEntry]:
        return list(self._entries.get(reservation_id, []))


class InMemorySettingsRepository(SettingsRepository):
    """In-memory implementation of SettingsRepository"""

    def __init__(self):
        self._storage: Dict[Tuple[str, str], PropertySetting] = {}

    async def find_by_property(self, property_id: str) -> List[PropertySetting]:
        return sorted(
            (s for (pid, _), s in self._storage.items() if pid == property_id),
            key=lambda s: s.key
        )

    async def find(self, property_id: str, key: str) -> Optional[PropertySetting]:
        return self._storage.get((property_id, key))

    async def save(self, setting: PropertySetting) -> PropertySetting:
        self._storage[(setting.property_id, setting.key)] = setting
        return setting
