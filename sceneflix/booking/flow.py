# sceneflix/booking/flow.py
"""
One checkout attempt: (event, ticket type, quantity) -> booking record.

    SELECTING -> CONFIRMING -> CONFIRMED | FAILED
    FAILED -> CONFIRMING              (user-initiated retry)

A BookingFlow is built per attempt and only for a signed-in user; there
is no way back from CONFIRMED, so a second confirm() cannot insert a
second booking.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from supabase import AsyncClient

from sceneflix.auth.session import SessionStore
from sceneflix.db import bookings as bookings_db
from sceneflix.db import tickets as tickets_db
from sceneflix.errors import (
    GatewayError,
    InvalidStateTransitionError,
    TicketUnavailableError,
)
from sceneflix.models import BookingRecord, TicketOffering

from .state_machine import BookingState, BookingStateMachine

logger = logging.getLogger(__name__)

DEFAULT_TICKET_TYPE = "GA"
MIN_QUANTITY = 1


async def load_offerings(supabase: AsyncClient, event_id: str) -> list[TicketOffering]:
    """Ticket offerings of an event; [] on any fetch failure."""
    try:
        rows = await tickets_db.fetch_event_tickets(supabase, event_id)
    except GatewayError as e:
        logger.error("[booking] tickets fetch failed event_id=%s | %s", event_id, e)
        return []
    offerings: list[TicketOffering] = []
    for row in rows:
        try:
            offerings.append(TicketOffering.model_validate(row))
        except ValueError as e:
            logger.warning("[booking] SKIP malformed ticket id=%r | %s", row.get("id"), e)
    return offerings


def default_ticket_type(offerings: Sequence[TicketOffering]) -> str | None:
    if any(o.type == DEFAULT_TICKET_TYPE for o in offerings):
        return DEFAULT_TICKET_TYPE
    return offerings[0].type if offerings else None


@dataclass(frozen=True)
class BookingConfirmation:
    booking_id: str
    event_id: str
    ticket_type: str
    quantity: int
    total_price: float
    status: str


class BookingFlow:
    def __init__(
        self,
        supabase: AsyncClient,
        session: SessionStore,
        event_id: str,
        offerings: Sequence[TicketOffering],
        *,
        ticket_type: str | None = None,
        quantity: int = MIN_QUANTITY,
    ) -> None:
        # entry guard: anonymous visitors are sent to login instead
        session.require_user("checkout")

        self._supabase = supabase
        self._session = session
        self.event_id = event_id
        self._offerings: dict[str, TicketOffering] = {}
        for o in offerings:
            self._offerings.setdefault(o.type, o)

        self._ticket_type = ticket_type or default_ticket_type(offerings)
        self._quantity = max(MIN_QUANTITY, int(quantity))

        self._state = BookingState.SELECTING
        self._record: BookingRecord | None = None
        self._error: BaseException | None = None
        self._closed = False

    @classmethod
    def start(
        cls,
        supabase: AsyncClient,
        session: SessionStore,
        event_id: str,
        offerings: Sequence[TicketOffering],
        **kwargs: Any,
    ) -> "BookingFlow":
        return cls(supabase, session, event_id, offerings, **kwargs)

    @classmethod
    async def open(
        cls,
        supabase: AsyncClient,
        session: SessionStore,
        event_id: str,
        **kwargs: Any,
    ) -> "BookingFlow":
        """Gate on the session first, then load offerings and build the flow."""
        session.require_user("checkout")
        offerings = await load_offerings(supabase, event_id)
        return cls(supabase, session, event_id, offerings, **kwargs)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> BookingState:
        return self._state

    @property
    def ticket_type(self) -> str | None:
        return self._ticket_type

    @property
    def quantity(self) -> int:
        return self._quantity

    @property
    def offerings(self) -> list[TicketOffering]:
        return list(self._offerings.values())

    @property
    def offering(self) -> TicketOffering | None:
        if self._ticket_type is None:
            return None
        return self._offerings.get(self._ticket_type)

    @property
    def unit_price(self) -> float:
        o = self.offering
        return o.price if o else 0

    @property
    def total_price(self) -> float:
        return self.unit_price * self._quantity

    @property
    def record(self) -> BookingRecord | None:
        return self._record

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def confirmation(self) -> BookingConfirmation | None:
        if self._record is None:
            return None
        return BookingConfirmation(
            booking_id=self._record.id,
            event_id=self._record.event_id,
            ticket_type=self._ticket_type or "",
            quantity=self._record.quantity,
            total_price=self._record.total_price,
            status=self._record.status.value,
        )

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _ensure_selectable(self) -> None:
        if not BookingStateMachine.allows_selection(self._state):
            raise InvalidStateTransitionError(self._state.value, BookingState.SELECTING.value)

    def select_ticket_type(self, ticket_type: str) -> None:
        self._ensure_selectable()
        self._ticket_type = ticket_type

    def set_quantity(self, quantity: int) -> None:
        self._ensure_selectable()
        self._quantity = max(MIN_QUANTITY, int(quantity))

    def increment(self) -> None:
        self.set_quantity(self._quantity + 1)

    def decrement(self) -> None:
        self.set_quantity(self._quantity - 1)

    # ------------------------------------------------------------------
    # Confirmation
    # ------------------------------------------------------------------

    def close(self) -> None:
        """The consumer went away; late confirm results are not applied."""
        self._closed = True

    def _transition(self, to_state: BookingState) -> None:
        BookingStateMachine.validate_transition(self._state, to_state)
        self._state = to_state

    async def confirm(self) -> BookingRecord:
        if self._state is BookingState.CONFIRMED and self._record is not None:
            return self._record

        user = self._session.require_user("confirm booking")
        offering = self.offering
        if offering is None:
            raise TicketUnavailableError(self.event_id, self._ticket_type)

        self._transition(BookingState.CONFIRMING)
        self._error = None
        quantity = self._quantity
        total_price = offering.price * quantity

        try:
            row = await bookings_db.insert_booking(
                self._supabase,
                user_id=user.id,
                event_id=self.event_id,
                ticket_id=offering.id,
                quantity=quantity,
                total_price=total_price,
            )
            record = _record_from_row(row)
        except BaseException as e:
            # includes cancellation: the attempt must stay retryable
            self._transition(BookingState.FAILED)
            logger.error(
                "[booking] confirm failed event_id=%s | %s: %s",
                self.event_id, type(e).__name__, e,
            )
            if self._closed:
                logger.info("[booking] flow closed, failure not applied event_id=%s", self.event_id)
            else:
                self._error = e
            raise

        self._transition(BookingState.CONFIRMED)
        logger.info(
            "[booking] CONFIRMED booking_id=%s event_id=%s qty=%d total=%s",
            record.id, record.event_id, record.quantity, record.total_price,
        )
        if self._closed:
            logger.info("[booking] flow closed, confirmation not applied booking_id=%s", record.id)
        else:
            self._record = record
        return record


def _record_from_row(row: Mapping[str, Any]) -> BookingRecord:
    try:
        return BookingRecord.model_validate(row)
    except ValueError as e:
        raise GatewayError("bookings.insert", f"malformed booking row: {e}") from e
