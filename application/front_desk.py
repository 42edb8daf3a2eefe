"""Front desk operations

Each public method is one unit of work over a reservation, its room claim
and its ledger. Work happens on a copy of the reservation under a
per-reservation lock and is committed with a version-checked update. Room
claims follow a reserve -> commit -> release order: a new claim is taken
before the commit and the old one is given up only after the commit
succeeds, so a failed operation never leaves the source room free for
someone else to grab.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

from application.billing import BillingLedger
from application.services import ReservationIntakeService
from domain.entities import Reservation
from domain.enums import LedgerEntryKind, ReservationStatus, ReservationTransition, StayAdjustmentType
from domain.errors import FrontDeskError, InvalidTransition, NotFound, RoomUnavailable, ValidationError
from domain.inventory import InventoryRegistry, RoomInventoryIndex
from domain.repositories import ReservationRepository
from domain.state_machine import ReservationStateMachine
from infrastructure.locks import KeyedLock

logger = logging.getLogger(__name__)

_ADJUSTMENT_TRANSITIONS = {
    StayAdjustmentType.EARLY_CHECKIN: ReservationTransition.EARLY_CHECKIN,
    StayAdjustmentType.LATE_CHECKOUT: ReservationTransition.LATE_CHECKOUT,
}

_ADJUSTMENT_LABELS = {
    StayAdjustmentType.EARLY_CHECKIN: "Early check-in",
    StayAdjustmentType.LATE_CHECKOUT: "Late check-out",
}


class FrontDeskOperationsService:
    """Guest-facing operations: check-in, check-out, transfer, stay adjustments"""

    def __init__(
        self,
        reservation_repo: ReservationRepository,
        inventories: InventoryRegistry,
        ledger: BillingLedger,
        intake: ReservationIntakeService,
        no_show_fee: Decimal = Decimal("0")
    ):
        self.reservation_repo = reservation_repo
        self.inventories = inventories
        self.ledger = ledger
        self.intake = intake
        self.no_show_fee = no_show_fee
        self._locks = KeyedLock()

    # ==================== ARRIVAL ====================
    async def confirm(self, reservation_id: UUID, performed_by: Optional[str] = None) -> Reservation:
        """pending -> confirmed; a pre-assigned room becomes an exclusive claim"""
        async with self._locks.hold(reservation_id):
            reservation = await self._load(reservation_id)
            version = reservation.version
            index = self._index(reservation)

            acquired = None
            ReservationStateMachine.validate(reservation.status, ReservationTransition.CONFIRM)
            if reservation.room_id is not None:
                index.reserve(reservation.room_id, reservation.reservation_id, reservation.stay)
                acquired = reservation.room_id

            reservation.confirm()
            saved = await self._commit(reservation, version, index, acquired=acquired)

        logger.info("Reservation %s confirmed by %s", saved.confirmation_number, performed_by or "SYSTEM")
        return saved

    async def assign_room(
        self,
        reservation_id: UUID,
        room_id: Optional[str],
        performed_by: Optional[str] = None
    ) -> Reservation:
        """Pre-assign a room before arrival, or clear the assignment with ``None``"""
        async with self._locks.hold(reservation_id):
            reservation = await self._load(reservation_id)
            version = reservation.version
            index = self._index(reservation)
            current = self._claimed_room(index, reservation)
            if reservation.status not in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
                raise InvalidTransition(
                    f"Cannot assign a room to a reservation with status {reservation.status.value}"
                )

            acquired = None
            if room_id is not None and room_id != current:
                if reservation.status == ReservationStatus.CONFIRMED:
                    index.reserve(room_id, reservation.reservation_id, reservation.stay)
                    acquired = room_id
                elif not index.is_available(room_id, reservation.stay, reservation.reservation_id):
                    raise RoomUnavailable(
                        f"Room {index.room(room_id).room_number} is not available for this stay",
                        details={"room_id": room_id},
                    )

            reservation.assign_room(room_id)
            released = current if current != room_id else None
            saved = await self._commit(reservation, version, index, acquired=acquired, released=released)

        logger.info(
            "Reservation %s assigned to room %s by %s",
            saved.confirmation_number, room_id, performed_by or "SYSTEM"
        )
        return saved

    async def check_in(
        self,
        reservation_id: UUID,
        room_id: Optional[str] = None,
        business_date: Optional[date] = None,
        performed_by: Optional[str] = None
    ) -> Reservation:
        """Check a guest in.

        With ``room_id`` omitted the pre-assigned room is used; with no
        pre-assignment the lowest-numbered free room of the booked type is
        claimed. ``business_date``, when given, rejects arrivals in the future.
        """
        async with self._locks.hold(reservation_id):
            reservation = await self._load(reservation_id)
            version = reservation.version
            index = self._index(reservation)

            ReservationStateMachine.validate(reservation.status, ReservationTransition.CHECK_IN)
            if business_date is not None and reservation.stay.arrival_date > business_date:
                raise InvalidTransition(
                    f"Cannot check in before the arrival date {reservation.stay.arrival_date.isoformat()}"
                )

            current = self._claimed_room(index, reservation)
            target = room_id or reservation.room_id
            acquired = None
            if target is None:
                candidates = [room.room_id for room in index.rooms(reservation.room_type_id)]
                claim = index.claim_first_available(candidates, reservation.reservation_id, reservation.stay)
                target = acquired = claim.room_id
            elif target != current:
                index.reserve(target, reservation.reservation_id, reservation.stay)
                acquired = target

            reservation.check_in(target)
            released = current if current not in (None, target) else None
            saved = await self._commit(reservation, version, index, acquired=acquired, released=released)

        logger.info(
            "Reservation %s checked in to room %s by %s",
            saved.confirmation_number, index.room(target).room_number, performed_by or "SYSTEM"
        )
        return saved

    async def walk_in(
        self,
        guest_id: UUID,
        property_id: str,
        room_type_id: str,
        nights: int = 1,
        adults: int = 1,
        children: int = 0,
        room_id: Optional[str] = None,
        deposit_amount: Decimal = Decimal("0"),
        notes: Optional[str] = None,
        business_date: Optional[date] = None,
        performed_by: Optional[str] = None
    ) -> Reservation:
        """Book and check in a guest without a prior reservation.

        The stay starts on ``business_date`` (today by default). The room is
        ``room_id`` or the lowest-numbered free room of the type. Room charges
        and the deposit are posted once the guest is in the room. If any step
        fails the reservation is removed again, together with its claims and
        the effect of anything already posted.
        """
        deposit_amount = Decimal(deposit_amount)
        if nights < 1:
            raise ValidationError("A walk-in stays at least one night")
        if deposit_amount < 0:
            raise ValidationError("Deposit cannot be negative")

        arrival = business_date or date.today()
        room_type = await self.intake.get_room_type(property_id, room_type_id)
        reservation = await self.intake.create_reservation(
            guest_id=guest_id,
            property_id=property_id,
            room_type_id=room_type_id,
            arrival_date=arrival,
            departure_date=arrival + timedelta(days=nights),
            adults=adults,
            children=children,
            confirmed=True,
            total_amount=Decimal("0"),
            notes=_join("Walk-in", notes),
            created_by=performed_by or "SYSTEM"
        )
        reservation_id = reservation.reservation_id

        try:
            saved = await self.check_in(
                reservation_id, room_id=room_id, business_date=arrival, performed_by=performed_by
            )
            room_charge = room_type.base_rate * nights
            if room_charge > 0:
                saved = await self.post_ledger_entry(
                    reservation_id, LedgerEntryKind.CHARGE, room_charge,
                    f"Room charges ({nights} nights)", performed_by=performed_by
                )
            if deposit_amount > 0:
                saved = await self.post_ledger_entry(
                    reservation_id, LedgerEntryKind.PAYMENT, -deposit_amount,
                    "Walk-in deposit", performed_by=performed_by
                )
        except Exception:
            await self._discard(reservation_id, performed_by)
            raise

        logger.info(
            "Walk-in %s checked in to room %s by %s",
            saved.confirmation_number, saved.room_id, performed_by or "SYSTEM"
        )
        return saved

    # ==================== DEPARTURE ====================
    async def check_out(self, reservation_id: UUID, performed_by: Optional[str] = None) -> Reservation:
        """Standard checkout; an outstanding balance is left for collections"""
        return await self._depart(reservation_id, express=False, performed_by=performed_by)

    async def express_check_out(self, reservation_id: UUID, performed_by: Optional[str] = None) -> Reservation:
        """Checkout that requires the ledger balance to be exactly zero"""
        return await self._depart(reservation_id, express=True, performed_by=performed_by)

    async def _depart(self, reservation_id: UUID, express: bool, performed_by: Optional[str]) -> Reservation:
        async with self._locks.hold(reservation_id):
            reservation = await self._load(reservation_id)
            version = reservation.version
            index = self._index(reservation)

            balance = await self.ledger.balance(reservation_id) if express else None
            try:
                reservation.check_out(express=express, balance=balance)
            except FrontDeskError as e:
                logger.warning("Checkout of %s rejected: %s", reservation.confirmation_number, e.message)
                raise

            saved = await self._commit(
                reservation, version, index, released=self._claimed_room(index, reservation)
            )

        logger.info(
            "Reservation %s checked out%s by %s",
            saved.confirmation_number, " (express)" if express else "", performed_by or "SYSTEM"
        )
        return saved

    async def cancel(
        self,
        reservation_id: UUID,
        reason: Optional[str] = None,
        performed_by: Optional[str] = None
    ) -> Reservation:
        async with self._locks.hold(reservation_id):
            reservation = await self._load(reservation_id)
            version = reservation.version
            index = self._index(reservation)

            reservation.cancel(reason)
            saved = await self._commit(
                reservation, version, index, released=self._claimed_room(index, reservation)
            )

        logger.info("Reservation %s cancelled by %s: %s", saved.confirmation_number, performed_by or "SYSTEM", reason)
        return saved

    async def mark_no_show(
        self,
        reservation_id: UUID,
        charge_fee: bool = False,
        notes: Optional[str] = None,
        performed_by: Optional[str] = None
    ) -> Reservation:
        """Guest never arrived: release the room and optionally post the no-show fee"""
        async with self._locks.hold(reservation_id):
            reservation = await self._load(reservation_id)
            version = reservation.version
            index = self._index(reservation)

            ReservationStateMachine.validate(reservation.status, ReservationTransition.NO_SHOW)
            entry = None
            if charge_fee and self.no_show_fee > 0:
                entry = await self.ledger.append(
                    reservation_id, LedgerEntryKind.CHARGE, self.no_show_fee,
                    _join("No-show fee", notes), posted_by=performed_by
                )

            reservation.mark_no_show(notes)
            reservation.record_ledger_totals(await self.ledger.total_charges(reservation_id))
            saved = await self._commit(
                reservation, version, index,
                released=self._claimed_room(index, reservation), posted=entry, performed_by=performed_by
            )

        logger.info("Reservation %s marked no-show by %s", saved.confirmation_number, performed_by or "SYSTEM")
        return saved

    # ==================== IN-HOUSE ====================
    async def transfer_room(
        self,
        reservation_id: UUID,
        target_room_id: str,
        reason: Optional[str] = None,
        performed_by: Optional[str] = None
    ) -> Reservation:
        """Move an in-house guest to another room for the same stay interval.

        The target is claimed first; the source claim is released only after
        the reservation commit. A zero-amount ledger adjustment records the
        move and its reason.
        """
        async with self._locks.hold(reservation_id):
            reservation = await self._load(reservation_id)
            version = reservation.version
            index = self._index(reservation)

            ReservationStateMachine.validate(reservation.status, ReservationTransition.TRANSFER)
            source_room_id = reservation.room_id
            if target_room_id == source_room_id:
                raise ValidationError("Guest is already in the requested room")
            source = index.room(source_room_id)
            target = index.room(target_room_id)

            try:
                index.reserve(target_room_id, reservation.reservation_id, reservation.stay)
            except RoomUnavailable:
                logger.warning(
                    "Transfer of %s from %s to %s rejected: target unavailable",
                    reservation.confirmation_number, source.room_number, target.room_number
                )
                raise

            try:
                entry = await self.ledger.append(
                    reservation_id, LedgerEntryKind.ADJUSTMENT, Decimal("0"),
                    _join(f"Room transfer {source.room_number} -> {target.room_number}", reason),
                    posted_by=performed_by
                )
            except Exception:
                index.release(target_room_id, reservation.reservation_id)
                raise

            reservation.move_to_room(target_room_id)
            saved = await self._commit(
                reservation, version, index,
                acquired=target_room_id, released=source_room_id, posted=entry, performed_by=performed_by
            )

        logger.info(
            "Reservation %s transferred from room %s to %s by %s",
            saved.confirmation_number, source.room_number, target.room_number, performed_by or "SYSTEM"
        )
        return saved

    async def apply_stay_adjustment(
        self,
        reservation_id: UUID,
        kind: StayAdjustmentType,
        additional_charge: Decimal = Decimal("0"),
        notes: Optional[str] = None,
        performed_by: Optional[str] = None
    ) -> Reservation:
        """Record an early check-in (before arrival) or late check-out (in house)"""
        additional_charge = Decimal(additional_charge)
        if additional_charge < 0:
            raise ValidationError("Additional charge cannot be negative")

        async with self._locks.hold(reservation_id):
            reservation = await self._load(reservation_id)
            version = reservation.version

            ReservationStateMachine.validate(reservation.status, _ADJUSTMENT_TRANSITIONS[kind])
            label = _ADJUSTMENT_LABELS[kind]
            entry = None
            if additional_charge > 0:
                entry = await self.ledger.append(
                    reservation_id, LedgerEntryKind.CHARGE, additional_charge,
                    _join(label, notes), posted_by=performed_by
                )

            reservation.add_note(_join(label, notes))
            reservation.record_ledger_totals(await self.ledger.total_charges(reservation_id))
            saved = await self._commit(reservation, version, posted=entry, performed_by=performed_by)

        logger.info(
            "%s recorded for %s (charge %s) by %s",
            label, saved.confirmation_number, additional_charge, performed_by or "SYSTEM"
        )
        return saved

    # ==================== BILLING ====================
    async def post_ledger_entry(
        self,
        reservation_id: UUID,
        kind: LedgerEntryKind,
        amount: Decimal,
        note: str = "",
        performed_by: Optional[str] = None
    ) -> Reservation:
        """Post a charge (> 0), payment (< 0) or adjustment (any sign).

        Shares the reservation lock with express checkout, so a charge cannot
        slip in between the balance check and the checkout commit.
        """
        amount = Decimal(amount)
        if not amount.is_finite():
            raise ValidationError("Amount must be a finite number")
        if kind == LedgerEntryKind.CHARGE and amount <= 0:
            raise ValidationError("Charge amount must be positive")
        if kind == LedgerEntryKind.PAYMENT and amount >= 0:
            raise ValidationError("Payment amount must be negative")

        async with self._locks.hold(reservation_id):
            reservation = await self._load(reservation_id)
            version = reservation.version

            entry = await self.ledger.append(reservation_id, kind, amount, note, posted_by=performed_by)
            reservation.record_ledger_totals(await self.ledger.total_charges(reservation_id))
            return await self._commit(reservation, version, posted=entry, performed_by=performed_by)

    async def void_ledger_entry(
        self,
        reservation_id: UUID,
        sequence: int,
        reason: str,
        performed_by: Optional[str] = None
    ) -> Reservation:
        """Void a posted charge and refresh the reservation total"""
        async with self._locks.hold(reservation_id):
            reservation = await self._load(reservation_id)
            version = reservation.version

            entry = await self.ledger.void(reservation_id, sequence, reason, posted_by=performed_by)
            reservation.record_ledger_totals(await self.ledger.total_charges(reservation_id))
            saved = await self._commit(reservation, version, posted=entry, performed_by=performed_by)

        logger.info(
            "Charge #%d of %s voided by %s: %s",
            sequence, saved.confirmation_number, performed_by or "SYSTEM", reason
        )
        return saved

    # ==================== INTERNALS ====================
    async def _load(self, reservation_id: UUID) -> Reservation:
        reservation = await self.reservation_repo.find_by_id(reservation_id)
        if reservation is None:
            raise NotFound(f"Reservation {reservation_id} not found")
        return reservation

    def _index(self, reservation: Reservation) -> RoomInventoryIndex:
        return self.inventories.for_property(reservation.property_id)

    @staticmethod
    def _claimed_room(index: RoomInventoryIndex, reservation: Reservation) -> Optional[str]:
        claim = index.claim_of(reservation.reservation_id)
        return claim.room_id if claim else None

    async def _commit(
        self,
        reservation: Reservation,
        expected_version: int,
        index: Optional[RoomInventoryIndex] = None,
        acquired: Optional[str] = None,
        released: Optional[str] = None,
        posted=None,
        performed_by: Optional[str] = None
    ) -> Reservation:
        """Persist the reservation, then settle room claims.

        On failure the claim taken for this operation is dropped and any
        ledger entry it posted is reversed, leaving the pre-operation state.
        """
        try:
            saved = await self.reservation_repo.update(reservation, expected_version)
        except Exception:
            if acquired is not None:
                index.release(acquired, reservation.reservation_id)
            if posted is not None and posted.amount != 0:
                await self.ledger.append(
                    posted.reservation_id, posted.kind, -posted.amount,
                    f"Reversal of entry #{posted.sequence}", posted_by=performed_by,
                    voids_sequence=posted.sequence
                )
            raise

        if released is not None:
            index.release(released, reservation.reservation_id)
        return saved

    async def _discard(self, reservation_id: UUID, performed_by: Optional[str]) -> None:
        """Undo a half-finished walk-in: offset its entries, free its rooms, delete it"""
        async with self._locks.hold(reservation_id):
            reservation = await self._load(reservation_id)
            index = self._index(reservation)
            await self.ledger.reverse_all(reservation_id, "Walk-in rolled back", posted_by=performed_by)
            for claim in index.claims_of(reservation_id):
                index.release(claim.room_id, reservation_id)
            await self.reservation_repo.delete(reservation_id)

        logger.warning("Walk-in %s rolled back", reservation.confirmation_number)


def _join(label: str, text: Optional[str]) -> str:
    return f"{label}: {text}" if text else label
