"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List
from uuid import UUID
from datetime import date

from domain.entities import Reservation, Room, RoomType, LedgerEntry, PropertySetting


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Save a new reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_by_confirmation_number(self, confirmation_number: str) -> Optional[Reservation]:
        """Find reservation by confirmation number"""
        pass

    @abstractmethod
    async def find_by_guest_id(self, guest_id: UUID) -> List[Reservation]:
        """Find reservations by guest ID"""
        pass

    @abstractmethod
    async def find_by_property(self, property_id: str) -> List[Reservation]:
        """Find reservations for a property"""
        pass

    @abstractmethod
    async def find_arrivals(self, property_id: str, on: date) -> List[Reservation]:
        """Find reservations arriving on a date"""
        pass

    @abstractmethod
    async def find_departures(self, property_id: str, on: date) -> List[Reservation]:
        """Find reservations departing on a date"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation, expected_version: int) -> Reservation:
        """Replace the stored reservation if its version still equals expected_version"""
        pass

    @abstractmethod
    async def delete(self, reservation_id: UUID) -> bool:
        """Delete a reservation that was never handed to a guest"""
        pass


class RoomRepository(ABC):
    """Repository interface for rooms and room types"""

    @abstractmethod
    async def save_room_type(self, room_type: RoomType) -> RoomType:
        pass

    @abstractmethod
    async def find_room_type(self, room_type_id: str) -> Optional[RoomType]:
        pass

    @abstractmethod
    async def find_room_types_by_property(self, property_id: str) -> List[RoomType]:
        pass

    @abstractmethod
    async def save_room(self, room: Room) -> Room:
        pass

    @abstractmethod
    async def find_room(self, room_id: str) -> Optional[Room]:
        pass

    @abstractmethod
    async def find_rooms_by_property(self, property_id: str) -> List[Room]:
        pass


class LedgerRepository(ABC):
    """Repository interface for append-only ledger entries"""

    @abstractmethod
    async def append(self, entry: LedgerEntry) -> LedgerEntry:
        """Append an entry. Entries are never updated or deleted."""
        pass

    @abstractmethod
    async def find_by_reservation(self, reservation_id: UUID) -> List[LedgerEntry]:
        """Entries for a reservation in insertion order"""
        pass


class SettingsRepository(ABC):
    """Repository interface for per-property settings"""

    @abstractmethod
    async def find_by_property(self, property_id: str) -> List[PropertySetting]:
        pass

    @abstractmethod
    async def find(self, property_id: str, key: str) -> Optional[PropertySetting]:
        pass

    @abstractmethod
    async def save(self, setting: PropertySetting) -> PropertySetting:
        pass
