"""Reservation lifecycle rules

    pending -> confirmed -> checked_in -> checked_out
    pending / confirmed -> cancelled
    pending / confirmed -> no_show

checked_out, cancelled and no_show are terminal. Transfers and late
checkouts keep a checked_in reservation checked_in; early check-ins keep a
pending or confirmed reservation where it is.

The table only knows about statuses and the ledger balance. Room guards
(availability of a target room) are answered by RoomInventoryIndex and
enforced by the caller.
"""
from decimal import Decimal
from typing import Dict, FrozenSet, List, Optional, Tuple

from domain.enums import ReservationStatus, ReservationTransition
from domain.errors import BalanceNotZero, InvalidTransition, ValidationError

_PRE_ARRIVAL = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})
_IN_HOUSE = frozenset({ReservationStatus.CHECKED_IN})


class ReservationStateMachine:
    """Legal status transitions and their non-room guards"""

    # transition -> (allowed source statuses, resulting status or None to keep)
    TRANSITIONS: Dict[ReservationTransition, Tuple[FrozenSet[ReservationStatus], Optional[ReservationStatus]]] = {
        ReservationTransition.CONFIRM: (frozenset({ReservationStatus.PENDING}), ReservationStatus.CONFIRMED),
        ReservationTransition.CHECK_IN: (_PRE_ARRIVAL, ReservationStatus.CHECKED_IN),
        ReservationTransition.CHECK_OUT: (_IN_HOUSE, ReservationStatus.CHECKED_OUT),
        ReservationTransition.EXPRESS_CHECK_OUT: (_IN_HOUSE, ReservationStatus.CHECKED_OUT),
        ReservationTransition.CANCEL: (_PRE_ARRIVAL, ReservationStatus.CANCELLED),
        ReservationTransition.NO_SHOW: (_PRE_ARRIVAL, ReservationStatus.NO_SHOW),
        ReservationTransition.TRANSFER: (_IN_HOUSE, None),
        ReservationTransition.EARLY_CHECKIN: (_PRE_ARRIVAL, None),
        ReservationTransition.LATE_CHECKOUT: (_IN_HOUSE, None),
    }

    @classmethod
    def can(cls, status: ReservationStatus, transition: ReservationTransition) -> bool:
        sources, _ = cls.TRANSITIONS[transition]
        return status in sources

    @classmethod
    def allowed_transitions(cls, status: ReservationStatus) -> List[ReservationTransition]:
        """Transitions available from a status, in table order"""
        return [t for t, (sources, _) in cls.TRANSITIONS.items() if status in sources]

    @classmethod
    def target_status(cls, status: ReservationStatus, transition: ReservationTransition) -> ReservationStatus:
        _, target = cls.TRANSITIONS[transition]
        return target if target is not None else status

    @classmethod
    def validate(
        cls,
        status: ReservationStatus,
        transition: ReservationTransition,
        balance: Optional[Decimal] = None,
    ) -> ReservationStatus:
        """Check a requested transition and return the resulting status.

        Raises InvalidTransition when the table has no such edge from
        ``status`` and BalanceNotZero when an express checkout is requested
        with an outstanding balance. An express checkout without a balance is
        a ValidationError.
        """
        if not cls.can(status, transition):
            raise InvalidTransition(
                f"Cannot {transition.value.replace('_', ' ')} a reservation with status {status.value}",
                details={"status": status.value, "transition": transition.value},
            )

        if transition == ReservationTransition.EXPRESS_CHECK_OUT:
            if balance is None:
                raise ValidationError("Express checkout requires the current balance")
            if balance != 0:
                raise BalanceNotZero(
                    f"Express checkout requires a zero balance; outstanding balance is {balance:.2f}",
                    details={"balance": str(balance)},
                )

        return cls.target_status(status, transition)
