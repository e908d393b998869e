"""Reservation screen: the three wizard steps plus the success view."""

from __future__ import annotations

from datetime import date

from rich.text import Text
from textual import work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widgets import (
    Button,
    ContentSwitcher,
    Header,
    Input,
    OptionList,
    RadioButton,
    RadioSet,
    Static,
)
from textual.widgets.option_list import Option

from storefront.api import ApiClient
from storefront.checkout import Notifier
from storefront.data import PARTY_SIZE_OPTIONS, ZONE_OPTIONS
from storefront.models import Table, TimeSlot
from storefront.rendering import format_slot, format_table
from storefront.reservation import AvailabilityKey, ReservationStep, ReservationWizard, TablesKey
from storefront.validation import is_valid_email, is_valid_phone

_STEP_TITLES = {
    ReservationStep.DATE_TIME: "1. Date and time",
    ReservationStep.CUSTOMER: "2. Your details",
    ReservationStep.CONFIRM: "3. Confirm",
}

_CUSTOMER_INPUTS: tuple[tuple[str, str], ...] = (
    ("name", "Full name"),
    ("phone", "Phone"),
    ("email", "Email"),
    ("preferences", "Preferences (birthday, high chair...)"),
    ("notes", "Additional notes"),
)


class ReservationScreen(Screen[None]):
    """Table booking; lookups run in thread workers and stale results are dropped by the wizard."""

    BINDINGS = [("escape", "close", "Back to menu")]

    CSS = """
    #reservation-layout {
        height: 1fr;
        border: round $primary;
        padding: 1;
    }

    #reservation-steps {
        margin-bottom: 1;
    }

    .field-label {
        text-style: bold;
        margin-top: 1;
    }

    #res-slots, #res-tables {
        height: 8;
        border: tall $surface;
    }

    #reservation-buttons {
        height: auto;
        margin-top: 1;
    }
    """

    def __init__(self, client: ApiClient, notifier: Notifier) -> None:
        super().__init__()
        self.wizard = ReservationWizard(client, notifier)
        self._submitting = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="reservation-layout"):
            yield Static(id="reservation-steps")
            with ContentSwitcher(initial="step-1", id="reservation-switcher"):
                with VerticalScroll(id="step-1"):
                    yield Static("Date (YYYY-MM-DD), Enter to search", classes="field-label")
                    yield Input(placeholder=date.today().isoformat(), id="res-date")
                    yield Static(f"Guests (1-{PARTY_SIZE_OPTIONS[-1]}, {PARTY_SIZE_OPTIONS[-1]} = group)",
                                 classes="field-label")
                    yield Input(placeholder="2", type="integer", id="res-guests")
                    yield Static("Available times", classes="field-label")
                    yield OptionList(id="res-slots")
                    yield Static("Tables", classes="field-label")
                    yield OptionList(id="res-tables")
                with VerticalScroll(id="step-2"):
                    for field_name, placeholder in _CUSTOMER_INPUTS:
                        yield Input(placeholder=placeholder, id=f"res-{field_name}")
                    yield Static("Zone", classes="field-label")
                    with RadioSet(id="res-zone"):
                        for zone, label in ZONE_OPTIONS.items():
                            yield RadioButton(label, name=zone)
                with Vertical(id="step-3"):
                    yield Static(id="res-summary")
                with Vertical(id="step-4"):
                    yield Static(id="res-success")
            with Horizontal(id="reservation-buttons"):
                yield Button("Back", id="res-back")
                yield Button("Continue", variant="primary", id="res-next")

    def on_mount(self) -> None:
        self._refresh()

    def action_close(self) -> None:
        self.app.pop_screen()

    # Step 1 ---------------------------------------------------------------

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "res-date":
            self._apply_date(event.value.strip())
        elif event.input.id == "res-guests":
            self._apply_guests(event.value.strip())

    def _apply_date(self, value: str) -> None:
        try:
            chosen = date.fromisoformat(value)
        except ValueError:
            self.app.notify("Use the YYYY-MM-DD format", title="Date", severity="warning", timeout=3)
            return
        if chosen < date.today():
            self.app.notify("Choose today or a later date", title="Date", severity="warning", timeout=3)
            return
        self.wizard.set_date(chosen.isoformat(), load=False)
        self._after_search_change()

    def _apply_guests(self, value: str) -> None:
        try:
            guests = int(value)
        except ValueError:
            guests = 0
        if guests not in PARTY_SIZE_OPTIONS:
            self.app.notify("Choose between 1 and 9 guests", title="Guests", severity="warning", timeout=3)
            return
        self.wizard.set_guests(guests, load=False)
        self._after_search_change()

    def _after_search_change(self) -> None:
        self.wizard.slots = []
        self._refresh()
        key = self.wizard.availability_key()
        if key is not None:
            self._load_availability(key)

    @work(thread=True, group="availability")
    def _load_availability(self, key: AvailabilityKey) -> None:
        slots = self.wizard.fetch_availability(key)
        self.app.call_from_thread(self._availability_loaded, key, slots)

    def _availability_loaded(self, key: AvailabilityKey, slots: list[TimeSlot]) -> None:
        if self.wizard.apply_availability(key, slots):
            self._refresh()

    @work(thread=True, group="tables")
    def _load_tables(self, key: TablesKey) -> None:
        tables = self.wizard.fetch_tables(key)
        self.app.call_from_thread(self._tables_loaded, key, tables)

    def _tables_loaded(self, key: TablesKey, tables: list[Table]) -> None:
        if self.wizard.apply_tables(key, tables):
            self._refresh()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        option_id = event.option.id or ""
        if event.option_list.id == "res-slots":
            slot = next((s for s in self.wizard.slots if s.value == option_id), None)
            if slot is None or not self.wizard.select_slot(slot, load=False):
                return
            key = self.wizard.tables_key()
            if key is not None:
                self._load_tables(key)
        elif event.option_list.id == "res-tables":
            table = next((t for t in self.wizard.tables if str(t.id) == option_id), None)
            if table is None or not self.wizard.select_table(table):
                self.app.notify("That table is not available", title="Tables", severity="warning", timeout=3)
                return
        self._refresh()

    # Navigation -----------------------------------------------------------

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "res-back":
            if self.wizard.step in (ReservationStep.CUSTOMER, ReservationStep.CONFIRM):
                self.wizard.previous_step()
                self._refresh()
        elif event.button.id == "res-next":
            self._advance()

    def _advance(self) -> None:
        step = self.wizard.step
        if step == ReservationStep.SUCCESS:
            self.wizard.start_over()
            self._clear_inputs()
            self._refresh()
            return
        if step == ReservationStep.CONFIRM:
            if not self._submitting:
                self._submitting = True
                self._refresh()
                self._submit()
            return
        if step == ReservationStep.CUSTOMER:
            self._sync_customer()
            problem = self._contact_problem()
            if problem is not None:
                self.app.notify(problem, title="Your details", severity="warning", timeout=3)
                return
        if not self.wizard.next_step():
            message = (
                "Choose a date, guests, an available time and a table"
                if step == ReservationStep.DATE_TIME
                else "Please fill in your name, phone and email"
            )
            self.app.notify(message, title="Reservation", severity="warning", timeout=3)
            return
        self._refresh()

    def _contact_problem(self) -> str | None:
        form = self.wizard.form
        if form.email and not is_valid_email(form.email):
            return "Enter a valid email"
        if form.phone and not is_valid_phone(form.phone):
            return "Enter a valid phone number"
        return None

    def _sync_customer(self) -> None:
        values = {name: self.query_one(f"#res-{name}", Input).value.strip() for name, _ in _CUSTOMER_INPUTS}
        pressed = self.query_one("#res-zone", RadioSet).pressed_button
        if pressed is not None and pressed.name:
            values["zone"] = pressed.name
        self.wizard.update_customer(**values)

    @work(thread=True, exclusive=True, group="reservation-submit")
    def _submit(self) -> None:
        self.wizard.submit()
        self.app.call_from_thread(self._submitted)

    def _submitted(self) -> None:
        self._submitting = False
        self._refresh()

    def _clear_inputs(self) -> None:
        for input_id in ["res-date", "res-guests", *(f"res-{name}" for name, _ in _CUSTOMER_INPUTS)]:
            self.query_one(f"#{input_id}", Input).value = ""

    # Rendering ------------------------------------------------------------

    def _refresh(self) -> None:
        step = self.wizard.step
        self.query_one("#reservation-switcher", ContentSwitcher).current = f"step-{int(step)}"
        self.query_one("#reservation-steps", Static).update(self._steps_line(step))
        self.query_one("#res-back", Button).disabled = step not in (
            ReservationStep.CUSTOMER,
            ReservationStep.CONFIRM,
        )
        next_button = self.query_one("#res-next", Button)
        next_button.label = {
            ReservationStep.CONFIRM: "Confirm reservation",
            ReservationStep.SUCCESS: "New reservation",
        }.get(step, "Continue")
        next_button.disabled = self._submitting or (
            step == ReservationStep.DATE_TIME and not self.wizard.can_continue()
        )

        if step == ReservationStep.DATE_TIME:
            self._refresh_slots()
            self._refresh_tables()
        elif step == ReservationStep.CONFIRM:
            self.query_one("#res-summary", Static).update(self._summary())
        elif step == ReservationStep.SUCCESS:
            self.query_one("#res-success", Static).update(self._success())

    def _steps_line(self, current: ReservationStep) -> Text:
        text = Text()
        for step, title in _STEP_TITLES.items():
            if step > ReservationStep.DATE_TIME:
                text.append("  ›  ", style="dim")
            text.append(title, style="bold white" if step == current else "dim")
        return text

    def _refresh_slots(self) -> None:
        slots_widget = self.query_one("#res-slots", OptionList)
        slots_widget.clear_options()
        if not self.wizard.availability_key():
            return
        slots_widget.add_options(
            [
                Option(
                    format_slot(slot, selected=slot.value == self.wizard.form.time),
                    id=slot.value,
                    disabled=not slot.is_available,
                )
                for slot in self.wizard.slots
            ]
        )

    def _refresh_tables(self) -> None:
        tables_widget = self.query_one("#res-tables", OptionList)
        tables_widget.clear_options()
        tables_widget.add_options(
            [
                Option(
                    format_table(table, selected=table.id == self.wizard.form.table_id),
                    id=str(table.id),
                    disabled=table.is_blocked,
                )
                for table in self.wizard.tables
            ]
        )

    def _summary(self) -> Text:
        form = self.wizard.form
        guests = f"{form.guests}+" if form.guests == PARTY_SIZE_OPTIONS[-1] else str(form.guests)
        rows = [
            ("Date", form.date),
            ("Time", form.time),
            ("Guests", guests),
            ("Zone", ZONE_OPTIONS.get(form.zone, form.zone or "-")),
            ("Name", form.name),
            ("Phone", form.phone),
            ("Email", form.email),
        ]
        if form.preferences or form.notes:
            rows.append(("Requests", f"{form.preferences} {form.notes}".strip()))
        text = Text()
        for idx, (label, value) in enumerate(rows):
            if idx > 0:
                text.append("\n")
            text.append(f"{label:<10}", style="bold")
            text.append(value)
        if self._submitting:
            text.append("\n\nSending reservation...", style="dim")
        return text

    def _success(self) -> Text:
        text = Text()
        text.append("Reservation confirmed!\n\n", style="bold #5fbf72")
        text.append(f"Code {self.wizard.display_code}\n", style="bold")
        form = self.wizard.form
        text.append(f"{form.date} at {form.time} for {form.guests}. We will contact you at {form.email}.")
        return text
