"""Room inventory index

The single source of truth for room occupancy within a property. Each room
keeps its claims sorted by arrival date; claims on the same room never
overlap. Every read and mutation runs under the index lock, so the overlap
check and the claim insertion are one atomic step for all callers.
"""
import bisect
import logging
import threading
from datetime import date
from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID

from domain.entities import Reservation, Room
from domain.enums import RoomStatus
from domain.errors import NotFound, RoomUnavailable, ValidationError
from domain.value_objects import RoomClaim, StayInterval

logger = logging.getLogger(__name__)


class RoomInventoryIndex:
    """Per-property room/interval claim index"""

    def __init__(self, property_id: str):
        self.property_id = property_id
        self._lock = threading.RLock()
        self._rooms: Dict[str, Room] = {}
        # room_id -> claims sorted by (arrival_date, departure_date)
        self._claims: Dict[str, List[RoomClaim]] = {}
        # reservation_id -> room_ids it holds claims on
        self._by_reservation: Dict[UUID, Set[str]] = {}

    # ==================== ROOM REGISTRY ====================
    def register_room(self, room: Room) -> Room:
        if room.property_id != self.property_id:
            raise ValidationError(
                f"Room {room.room_number} belongs to property {room.property_id}, not {self.property_id}"
            )
        with self._lock:
            for existing in self._rooms.values():
                if existing.room_number == room.room_number and existing.room_id != room.room_id:
                    raise ValidationError(f"Room number {room.room_number} already exists")
            self._rooms[room.room_id] = room
            self._claims.setdefault(room.room_id, [])
        return room

    def room(self, room_id: str) -> Room:
        with self._lock:
            room = self._rooms.get(room_id)
        if room is None:
            raise NotFound(f"Room {room_id} not found")
        return room

    def rooms(self, room_type_id: Optional[str] = None) -> List[Room]:
        """Rooms ordered by room number"""
        with self._lock:
            rooms = [
                r for r in self._rooms.values()
                if room_type_id is None or r.room_type_id == room_type_id
            ]
        return sorted(rooms, key=lambda r: r.sort_key())

    def set_room_status(self, room_id: str, status: RoomStatus, notes: Optional[str] = None) -> Room:
        with self._lock:
            room = self.room(room_id)
            room.status = status
            if notes is not None:
                room.notes = notes
        return room

    # ==================== QUERIES ====================
    def is_available(
        self,
        room_id: str,
        interval: StayInterval,
        exclude_reservation_id: Optional[UUID] = None
    ) -> bool:
        """True iff no other claim on the room overlaps ``interval``"""
        with self._lock:
            room = self.room(room_id)
            if not room.is_in_service():
                return False
            return self._conflict(room_id, interval, exclude_reservation_id) is None

    def available_rooms(
        self,
        room_type_id: str,
        interval: StayInterval,
        exclude_reservation_id: Optional[UUID] = None
    ) -> Set[str]:
        with self._lock:
            return {
                room.room_id for room in self._rooms.values()
                if room.room_type_id == room_type_id
                and room.is_in_service()
                and self._conflict(room.room_id, interval, exclude_reservation_id) is None
            }

    def claims_for(self, room_id: str) -> List[RoomClaim]:
        with self._lock:
            self.room(room_id)
            return list(self._claims[room_id])

    def claim_of(self, reservation_id: UUID) -> Optional[RoomClaim]:
        """The reservation's claim; while it holds two, the lower room number"""
        claims = self.claims_of(reservation_id)
        return claims[0] if claims else None

    def claims_of(self, reservation_id: UUID) -> List[RoomClaim]:
        with self._lock:
            room_ids = self._by_reservation.get(reservation_id, set())
            claims = [self._find(room_id, reservation_id) for room_id in room_ids]
        return sorted(claims, key=lambda c: self._rooms[c.room_id].sort_key())

    def occupant_on(self, room_id: str, day: date) -> Optional[UUID]:
        """Reservation holding the room on ``day``, if any"""
        with self._lock:
            for claim in self.claims_for(room_id):
                if claim.interval.contains(day):
                    return claim.reservation_id
        return None

    # ==================== MUTATIONS ====================
    def reserve(self, room_id: str, reservation_id: UUID, interval: StayInterval) -> RoomClaim:
        """Atomically check for overlap and record the claim.

        Reserving a room the reservation already holds replaces that claim.
        Claims on other rooms are left alone; a reservation moving rooms
        holds both until the caller releases the old one.
        """
        with self._lock:
            room = self.room(room_id)
            if not room.is_in_service():
                raise RoomUnavailable(f"Room {room.room_number} is out of service", details={"room_id": room_id})

            conflict = self._conflict(room_id, interval, reservation_id)
            if conflict is not None:
                logger.warning(
                    "Claim on room %s for %s rejected: overlaps reservation %s",
                    room.room_number, reservation_id, conflict.reservation_id
                )
                raise RoomUnavailable(
                    f"Room {room.room_number} is not available from "
                    f"{interval.arrival_date.isoformat()} to {interval.departure_date.isoformat()}",
                    details={"room_id": room_id},
                )

            self.release(room_id, reservation_id)
            claim = RoomClaim(room_id=room_id, reservation_id=reservation_id, interval=interval)
            self._insert(claim)
            logger.debug("Room %s claimed by %s for %s", room.room_number, reservation_id, interval)
            return claim

    def claim_first_available(
        self,
        room_ids: Iterable[str],
        reservation_id: UUID,
        interval: StayInterval
    ) -> RoomClaim:
        """Claim the first room in ``room_ids`` order that is free"""
        with self._lock:
            for room_id in room_ids:
                if self.is_available(room_id, interval, reservation_id):
                    return self.reserve(room_id, reservation_id, interval)
        raise RoomUnavailable(
            f"No rooms available from {interval.arrival_date.isoformat()} "
            f"to {interval.departure_date.isoformat()}"
        )

    def release(self, room_id: str, reservation_id: UUID) -> bool:
        """Remove the claim if present. Returns False when there was nothing to release."""
        with self._lock:
            claim = self._find(room_id, reservation_id)
            if claim is None:
                return False
            self._claims[room_id].remove(claim)
            held = self._by_reservation.get(reservation_id, set())
            held.discard(room_id)
            if not held:
                self._by_reservation.pop(reservation_id, None)
            logger.debug("Room %s released by %s", room_id, reservation_id)
            return True

    def rebuild(self, reservations: Iterable[Reservation]) -> int:
        """Reload claims from persisted reservations. Returns the number of claims."""
        with self._lock:
            for room_id in self._claims:
                self._claims[room_id] = []
            self._by_reservation.clear()
            count = 0
            for reservation in reservations:
                if reservation.property_id != self.property_id or not reservation.holds_room_claim():
                    continue
                self.reserve(reservation.room_id, reservation.reservation_id, reservation.stay)
                count += 1
            return count

    # ==================== INTERNALS ====================
    def _conflict(
        self,
        room_id: str,
        interval: StayInterval,
        exclude_reservation_id: Optional[UUID]
    ) -> Optional[RoomClaim]:
        claims = self._claims.get(room_id, [])
        # claims are sorted and disjoint, so only claims starting before our
        # departure can overlap and the latest such claim ends last
        end = bisect.bisect_left([c.interval.arrival_date for c in claims], interval.departure_date)
        for claim in reversed(claims[:end]):
            if claim.reservation_id == exclude_reservation_id:
                continue
            if claim.interval.overlaps(interval):
                return claim
            break
        return None

    def _insert(self, claim: RoomClaim) -> None:
        claims = self._claims[claim.room_id]
        keys = [(c.interval.arrival_date, c.interval.departure_date) for c in claims]
        position = bisect.bisect(keys, (claim.interval.arrival_date, claim.interval.departure_date))
        claims.insert(position, claim)
        self._by_reservation.setdefault(claim.reservation_id, set()).add(claim.room_id)

    def _find(self, room_id: str, reservation_id: UUID) -> Optional[RoomClaim]:
        for claim in self._claims.get(room_id, []):
            if claim.reservation_id == reservation_id:
                return claim
        return None


class InventoryRegistry:
    """One RoomInventoryIndex per property"""

    def __init__(self):
        self._lock = threading.Lock()
        self._indexes: Dict[str, RoomInventoryIndex] = {}

    def for_property(self, property_id: str) -> RoomInventoryIndex:
        with self._lock:
            index = self._indexes.get(property_id)
            if index is None:
                index = RoomInventoryIndex(property_id)
                self._indexes[property_id] = index
            return index

    def properties(self) -> List[str]:
        with self._lock:
            return sorted(self._indexes)
