"""Billing ledger - append-only charges and payments per reservation"""
import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from domain.entities import LedgerEntry
from domain.enums import LedgerEntryKind
from domain.errors import NotFound, ValidationError
from domain.repositories import LedgerRepository, ReservationRepository
from infrastructure.locks import KeyedLock

logger = logging.getLogger(__name__)

# Kinds that add to what the guest owes; payments settle it
_BILLED_KINDS = (LedgerEntryKind.CHARGE, LedgerEntryKind.ADJUSTMENT)


class BillingLedger:
    """Record keeping and balance computation. Never touches reservation status."""

    def __init__(self, ledger_repo: LedgerRepository, reservation_repo: ReservationRepository):
        self.ledger_repo = ledger_repo
        self.reservation_repo = reservation_repo
        self._locks = KeyedLock()

    async def append(
        self,
        reservation_id: UUID,
        kind: LedgerEntryKind,
        amount: Decimal,
        note: str = "",
        posted_by: Optional[str] = None,
        voids_sequence: Optional[int] = None
    ) -> LedgerEntry:
        """Append an entry; appends for one reservation are serialized"""
        await self._require_reservation(reservation_id)

        async with self._locks.hold(reservation_id):
            entries = await self.ledger_repo.find_by_reservation(reservation_id)
            entry = await self._append(entries, reservation_id, kind, amount, note, posted_by, voids_sequence)
        return entry

    async def void(
        self,
        reservation_id: UUID,
        sequence: int,
        reason: str,
        posted_by: Optional[str] = None
    ) -> LedgerEntry:
        """Cancel a charge by appending its negation.

        The original entry stays in the history; the new entry points back at
        it through ``voids_sequence``.
        """
        if not reason or not reason.strip():
            raise ValidationError("Void reason is required")
        await self._require_reservation(reservation_id)

        async with self._locks.hold(reservation_id):
            entries = await self.ledger_repo.find_by_reservation(reservation_id)
            original = next((e for e in entries if e.sequence == sequence), None)
            if original is None:
                raise NotFound(f"Ledger entry #{sequence} not found")
            if original.kind != LedgerEntryKind.CHARGE or original.voids_sequence is not None:
                raise ValidationError(f"Entry #{sequence} is not a charge and cannot be voided")
            if not _in_effect(original, entries):
                raise ValidationError(f"Charge #{sequence} is already voided")

            entry = await self._append(
                entries, reservation_id, original.kind, -original.amount,
                f"Void of entry #{sequence}: {reason.strip()}", posted_by, sequence
            )
        return entry

    async def reverse_all(self, reservation_id: UUID, note: str, posted_by: Optional[str] = None) -> List[LedgerEntry]:
        """Offset every entry still in effect so the balance returns to zero"""
        await self._require_reservation(reservation_id)

        reversals = []
        async with self._locks.hold(reservation_id):
            entries = await self.ledger_repo.find_by_reservation(reservation_id)
            for original in list(entries):
                if original.voids_sequence is not None or original.amount == 0:
                    continue
                if not _in_effect(original, entries):
                    continue
                entry = await self._append(
                    entries, reservation_id, original.kind, -original.amount,
                    f"{note} (entry #{original.sequence})", posted_by, original.sequence
                )
                entries.append(entry)
                reversals.append(entry)
        return reversals

    async def balance(self, reservation_id: UUID) -> Decimal:
        """Sum of all entries; zero when there are none"""
        entries = await self.ledger_repo.find_by_reservation(reservation_id)
        return sum((e.amount for e in entries), Decimal("0"))

    async def total_charges(self, reservation_id: UUID) -> Decimal:
        """Sum of charge and adjustment entries"""
        entries = await self.ledger_repo.find_by_reservation(reservation_id)
        return sum((e.amount for e in entries if e.kind in _BILLED_KINDS), Decimal("0"))

    async def history(self, reservation_id: UUID) -> List[LedgerEntry]:
        """Entries in insertion order"""
        entries = await self.ledger_repo.find_by_reservation(reservation_id)
        return sorted(entries, key=lambda e: e.sequence)

    async def _require_reservation(self, reservation_id: UUID) -> None:
        if await self.reservation_repo.find_by_id(reservation_id) is None:
            raise NotFound(f"Reservation {reservation_id} not found")

    async def _append(
        self,
        entries: List[LedgerEntry],
        reservation_id: UUID,
        kind: LedgerEntryKind,
        amount: Decimal,
        note: str,
        posted_by: Optional[str],
        voids_sequence: Optional[int]
    ) -> LedgerEntry:
        # caller holds the reservation lock
        entry = LedgerEntry(
            reservation_id=reservation_id,
            sequence=len(entries) + 1,
            kind=kind,
            amount=Decimal(amount),
            note=note,
            posted_by=posted_by,
            voids_sequence=voids_sequence
        )
        await self.ledger_repo.append(entry)
        logger.info(
            "Ledger %s #%d for %s: %s %s",
            kind.value, entry.sequence, reservation_id, entry.amount, note
        )
        return entry


def _in_effect(entry: LedgerEntry, entries: List[LedgerEntry]) -> bool:
    """False once a later entry voids it and that void has not been reversed itself"""
    return not any(
        e.voids_sequence == entry.sequence and _in_effect(e, entries)
        for e in entries
    )
