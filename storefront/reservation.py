"""Table reservation wizard: date/time/table, customer data, confirmation."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterable

from storefront.api import ApiClient, ApiError
from storefront.checkout import InvalidTransition, Notifier
from storefront.config import SLOT_MEDIUM_CAPACITY
from storefront.models import ReservationRequest, Table, TimeSlot
from storefront.validation import not_empty

logger = logging.getLogger(__name__)

AvailabilityKey = tuple[str, int]
TablesKey = tuple[str, str, int]


class ReservationStep(IntEnum):
    DATE_TIME = 1
    CUSTOMER = 2
    CONFIRM = 3
    SUCCESS = 4


def slot_tier(is_available: bool, remaining_capacity: int | None) -> str:
    if not is_available:
        return "low"
    if remaining_capacity is not None and remaining_capacity <= SLOT_MEDIUM_CAPACITY:
        return "medium"
    return "high"


def slot_from_api(data: dict[str, Any]) -> TimeSlot:
    is_available = bool(data.get("is_available"))
    remaining = data.get("remaining_capacity")
    remaining_capacity = int(remaining) if remaining is not None else None
    return TimeSlot(
        time=str(data.get("time", "")),
        value=str(data.get("value") or data.get("time", "")),
        table_id=int(data.get("table_id") or 0),
        is_available=is_available,
        remaining_capacity=remaining_capacity,
        tier=slot_tier(is_available, remaining_capacity),
    )


def unique_slots(slots: Iterable[TimeSlot]) -> list[TimeSlot]:
    """First slot per value; later duplicates are dropped."""
    seen: set[str] = set()
    result = []
    for slot in slots:
        if slot.value in seen:
            continue
        seen.add(slot.value)
        result.append(slot)
    return result


def generate_display_code() -> str:
    """Cosmetic code for the success screen, not a reservation identifier."""
    return f"#RSV{random.randint(0, 9999)}"


@dataclass
class ReservationForm:
    date: str = ""
    guests: int = 0
    time: str = ""
    table_id: int = 0
    name: str = ""
    phone: str = ""
    email: str = ""
    zone: str = ""
    preferences: str = ""
    notes: str = ""

    def special_request(self) -> str:
        return f"{self.preferences} {self.notes} - Zone: {self.zone}"


class ReservationWizard:
    """
    Three steps plus a success pseudo-step.

    Remote lookups are keyed by the form values they were made for; a result
    whose key no longer matches the form is dropped, so a slow response never
    overwrites a newer selection.
    """

    def __init__(self, client: ApiClient, notifier: Notifier) -> None:
        self.client = client
        self.notifier = notifier
        self.step = ReservationStep.DATE_TIME
        self.form = ReservationForm()
        self.slots: list[TimeSlot] = []
        self.tables: list[Table] = []
        self.display_code: str | None = None

    # Step 1 ---------------------------------------------------------------

    def set_date(self, date: str, load: bool = True) -> None:
        """Change the date; the chosen time and table are dropped before any lookup."""
        self._require_step(ReservationStep.DATE_TIME)
        self.form.date = date
        self._reset_selection()
        if load:
            self.load_availability()

    def set_guests(self, guests: int, load: bool = True) -> None:
        self._require_step(ReservationStep.DATE_TIME)
        self.form.guests = guests
        self._reset_selection()
        if load:
            self.load_availability()

    def availability_key(self) -> AvailabilityKey | None:
        if not self.form.date or not self.form.guests:
            return None
        return (self.form.date, self.form.guests)

    def tables_key(self) -> TablesKey | None:
        if not self.form.date or not self.form.time or not self.form.guests:
            return None
        return (self.form.date, self.form.time, self.form.guests)

    def fetch_availability(self, key: AvailabilityKey) -> list[TimeSlot]:
        """Query slots for ``key``; failures yield an empty list."""
        date, guests = key
        try:
            rows = self.client.get_availability(date, guests)
            return [slot_from_api(row) for row in rows]
        except (ApiError, AttributeError, KeyError, TypeError, ValueError):
            logger.exception("Error fetching availability for %s", key)
            return []

    def apply_availability(self, key: AvailabilityKey, slots: Iterable[TimeSlot]) -> bool:
        if key != self.availability_key():
            logger.debug("Dropping stale availability for %s", key)
            return False
        self.slots = unique_slots(slots)
        return True

    def load_availability(self) -> None:
        key = self.availability_key()
        if key is None:
            self.slots = []
            return
        self.apply_availability(key, self.fetch_availability(key))

    def select_slot(self, slot: TimeSlot, load: bool = True) -> bool:
        """Pick a bookable slot with its default table, then look up the alternatives."""
        self._require_step(ReservationStep.DATE_TIME)
        if not slot.is_available:
            return False
        self.form.time = slot.value
        self.form.table_id = slot.table_id
        self.tables = []
        if load:
            self.load_tables()
        return True

    def fetch_tables(self, key: TablesKey) -> list[Table]:
        date, time, guests = key
        try:
            return self.client.get_available_tables(date, time, guests)
        except (ApiError, AttributeError, KeyError, TypeError, ValueError):
            logger.exception("Error fetching tables for %s", key)
            return []

    def apply_tables(self, key: TablesKey, tables: Iterable[Table]) -> bool:
        if key != self.tables_key():
            logger.debug("Dropping stale tables for %s", key)
            return False
        self.tables = list(tables)
        return True

    def load_tables(self) -> None:
        key = self.tables_key()
        if key is None:
            return
        self.apply_tables(key, self.fetch_tables(key))

    def select_table(self, table: Table) -> bool:
        self._require_step(ReservationStep.DATE_TIME)
        if table.is_blocked:
            return False
        self.form.table_id = table.id
        self.form.zone = table.location
        return True

    # Step 2 ---------------------------------------------------------------

    def update_customer(self, **values: str) -> None:
        for name in values:
            if name not in {"name", "phone", "email", "zone", "preferences", "notes"}:
                raise TypeError(f"Unknown reservation field: {name}")
        for name, value in values.items():
            setattr(self.form, name, value)

    # Navigation -----------------------------------------------------------

    def selected_slot_still_offered(self) -> bool:
        return any(slot.value == self.form.time and slot.is_available for slot in self.slots)

    def can_continue(self) -> bool:
        form = self.form
        if self.step == ReservationStep.DATE_TIME:
            return bool(
                form.date and form.time and form.guests and form.table_id and self.selected_slot_still_offered()
            )
        if self.step == ReservationStep.CUSTOMER:
            return not_empty(form.name) and not_empty(form.phone) and not_empty(form.email)
        return self.step == ReservationStep.CONFIRM

    def next_step(self) -> bool:
        if self.step not in (ReservationStep.DATE_TIME, ReservationStep.CUSTOMER):
            raise InvalidTransition(f"No next step from {self.step.name}")
        if not self.can_continue():
            return False
        self.step = ReservationStep(self.step + 1)
        return True

    def previous_step(self) -> None:
        if self.step not in (ReservationStep.CUSTOMER, ReservationStep.CONFIRM):
            raise InvalidTransition(f"No previous step from {self.step.name}")
        self.step = ReservationStep(self.step - 1)

    def submit(self) -> bool:
        self._require_step(ReservationStep.CONFIRM)
        form = self.form
        request = ReservationRequest(
            table_id=form.table_id,
            customer_name=form.name,
            customer_email=form.email,
            customer_phone=form.phone,
            reservation_date=form.date,
            reservation_time=form.time,
            party_size=form.guests,
            special_request=form.special_request(),
        )
        try:
            self.client.create_reservation(request)
        except ApiError as exc:
            logger.warning("Reservation failed: %s", exc.message)
            self.notifier.error("Reservation failed", exc.message or "Failed to create reservation")
            return False

        self.display_code = generate_display_code()
        self.step = ReservationStep.SUCCESS
        return True

    def start_over(self) -> None:
        self._require_step(ReservationStep.SUCCESS)
        self.step = ReservationStep.DATE_TIME
        self.form = ReservationForm()
        self.slots = []
        self.tables = []
        self.display_code = None

    def _reset_selection(self) -> None:
        self.form.time = ""
        self.form.table_id = 0
        self.tables = []

    def _require_step(self, step: ReservationStep) -> None:
        if self.step != step:
            raise InvalidTransition(f"Operation requires step {step.name}, wizard is at {self.step.name}")
