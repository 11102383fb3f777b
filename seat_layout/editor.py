from __future__ import annotations

import inspect
import uuid
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from loguru import logger

from .envelope import build_layout, config_from_layout, config_from_seats
from .errors import CapacityLimitError, SeatLayoutError, SeatPositionError
from .forms import FormAction, SeatForm
from .generator import default_layout_config
from .grid import SeatGrid, regenerate
from .models import EditorMode, LayoutConfig, Seat, SeatLayout, SeatType, VesselType, coerce_vessel_type
from .notify import ChangeCallback, ChangeNotifier, TimerFactory, thread_timer
from .reconcile import reconcile
from .settings import Settings, get_settings
from .synth import new_seat

ConfirmFn = Callable[[str, str], bool]
AlertFn = Callable[[str, str], None]
SaveFn = Callable[[SeatLayout, list[Seat]], Union[Awaitable[None], None]]


class SaveOutcome(str, Enum):
    saved = "saved"
    failed = "failed"
    cancelled = "cancelled"
    busy = "busy"


def _decline(title: str, message: str) -> bool:
    return False


def _log_alert(title: str, message: str) -> None:
    logger.warning("{}: {}", title, message)


class LayoutEditor:
    """
    One vessel's seat-layout editing session.

    Holds the working LayoutConfig/SeatGrid pair, routes taps according to the
    current mode, and reports every mutation to its own ChangeNotifier.
    Dialogs are delegated to the host: ``confirm`` answers destructive or
    questionable actions, ``alert`` shows recoverable errors and ``seat_form``
    edits a single seat.
    """

    def __init__(
        self,
        vessel_id: str,
        seating_capacity: int,
        vessel_type: Any = VesselType.passenger,
        *,
        initial_layout: Optional[SeatLayout] = None,
        initial_seats: Optional[Sequence[Seat]] = None,
        on_change: Optional[ChangeCallback] = None,
        on_save: Optional[SaveFn] = None,
        on_cancel: Optional[Callable[[], None]] = None,
        seat_form: Optional[SeatForm] = None,
        confirm: Optional[ConfirmFn] = None,
        alert: Optional[AlertFn] = None,
        settings: Optional[Settings] = None,
        timer_factory: Optional[TimerFactory] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        if seating_capacity < 0:
            raise SeatLayoutError("seating capacity cannot be negative")
        self.vessel_id = vessel_id
        self.seating_capacity = int(seating_capacity)
        self.vessel_type = coerce_vessel_type(vessel_type)
        self.settings = settings or get_settings()

        self._on_save = on_save
        self._on_cancel = on_cancel
        self._seat_form = seat_form
        self._confirm = confirm or _decline
        self._alert = alert or _log_alert
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

        self.mode = EditorMode.view
        self.selection: set[str] = set()
        self.saving = False
        self.closed = False

        self.layout_id = initial_layout.id if initial_layout is not None else ""
        self._created_at = initial_layout.created_at if initial_layout is not None else None
        self.grid = self._open(initial_layout, list(initial_seats or []))

        self._notifier = ChangeNotifier(
            on_change,
            delay=self.settings.debounce_seconds,
            timer_factory=timer_factory or thread_timer,
        )
        self._notifier.prime(*self.snapshot())

    def _open(self, initial_layout: Optional[SeatLayout], seats: list[Seat]) -> SeatGrid:
        if initial_layout is not None:
            logger.debug("opening layout {} for vessel {}", initial_layout.id, self.vessel_id)
            return regenerate(config_from_layout(initial_layout), seats, settings=self.settings)
        if seats:
            logger.debug("opening {} seats without a layout record for vessel {}", len(seats), self.vessel_id)
            return regenerate(config_from_seats(seats), seats, settings=self.settings)
        return self._default_grid()

    def _default_grid(self) -> SeatGrid:
        config = default_layout_config(self.seating_capacity, self.vessel_type)
        return self._reconcile(SeatGrid(config), allow_grow=True)

    def _reconcile(self, grid: SeatGrid, *, allow_grow: bool) -> SeatGrid:
        return reconcile(
            grid,
            self.seating_capacity,
            vessel_id=self.vessel_id,
            layout_id=self.layout_id,
            allow_grow=allow_grow,
            id_factory=self._id_factory,
            settings=self.settings,
        )

    # -- state ---------------------------------------------------------------

    @property
    def config(self) -> LayoutConfig:
        return self.grid.config

    def seats(self) -> list[Seat]:
        return self.grid.seats()

    def active_seat_count(self) -> int:
        return self.grid.active_seat_count()

    def snapshot(self) -> tuple[SeatLayout, list[Seat]]:
        seats = self.grid.seats()
        layout = build_layout(
            layout_id=self.layout_id,
            vessel_id=self.vessel_id,
            config=self.grid.config,
            seats=seats,
            created_at=self._created_at,
        )
        return layout, seats

    @property
    def change_pending(self) -> bool:
        return self._notifier.pending

    def flush_changes(self) -> None:
        self._notifier.flush()

    def _ensure_open(self) -> None:
        if self.closed:
            raise SeatLayoutError("editing session is closed")

    def _commit(self, grid: SeatGrid) -> None:
        self.grid = grid
        ids = {seat.id for seat in grid.seats()}
        self.selection &= ids
        self._notifier.notify(*self.snapshot())

    # -- modes and taps --------------------------------------------------------

    def set_mode(self, mode: Any) -> None:
        self._ensure_open()
        mode = EditorMode(getattr(mode, "value", mode))
        if self.mode is EditorMode.arrange and mode is not EditorMode.arrange:
            self.selection.clear()
        logger.debug("editor mode {} -> {}", self.mode.value, mode.value)
        self.mode = mode

    def tap(self, row: int, column: int) -> bool:
        """Handle a tap on a cell. Returns True when grid or selection changed."""
        self._ensure_open()
        seat = self.grid.get(row, column)
        if self.mode is EditorMode.view:
            return False
        if self.mode is EditorMode.arrange:
            if seat is None:
                return False
            if seat.id in self.selection:
                self.selection.discard(seat.id)
            else:
                self.selection.add(seat.id)
            return True
        if seat is None:
            return self.add_seat(row, column)
        return self._open_seat_form(seat)

    def add_seat(self, row: int, column: int) -> bool:
        self._ensure_open()
        try:
            if self.grid.active_seat_count() >= self.seating_capacity:
                raise CapacityLimitError(self.seating_capacity)
            if not self.grid.is_available(row, column):
                raise SeatPositionError(f"cell R{row}C{column} is already occupied")
        except CapacityLimitError as e:
            self._alert("Capacity Limit", f"Cannot add more seats: {e}.")
            return False
        except SeatPositionError as e:
            self._alert("Seat Position", str(e))
            return False

        seat = new_seat(
            self.vessel_id,
            row,
            column,
            self.config,
            seat_id=self._id_factory(),
            layout_id=self.layout_id,
            settings=self.settings,
        )
        grid = self.grid.copy()
        grid.place(seat)
        self._commit(grid)
        return True

    def _open_seat_form(self, seat: Seat) -> bool:
        if self._seat_form is None:
            raise SeatLayoutError("no seat-edit form configured")
        result = self._seat_form(seat)
        if result.action is FormAction.delete:
            return self.delete_seat(result.seat_id or seat.id)
        if result.action is FormAction.saved and result.seat is not None:
            return self.apply_seat_edit(seat.id, result.seat)
        return False

    def apply_seat_edit(self, seat_id: str, edited: Seat) -> bool:
        """
        Replace a seat with the form's result. The edited classification is
        pinned (manually_edited) and mirrored into the config overrides.
        """
        self._ensure_open()
        current = self.grid.find(seat_id)
        if current is None:
            raise SeatPositionError(f"seat {seat_id} is not in this layout")

        edited = edited.model_copy(
            update={
                "id": current.id,
                "vessel_id": self.vessel_id,
                "position_y": edited.row_number,
                "manually_edited": True,
                "layout_id": current.layout_id,
                "created_at": current.created_at,
            }
        )
        if edited.is_active and not current.is_active and self.grid.active_seat_count() >= self.seating_capacity:
            self._alert("Capacity Limit", f"Cannot activate seat {edited.seat_number}: {CapacityLimitError(self.seating_capacity)}.")
            return False
        holder = next(
            (s for s in self.grid.seats() if s.seat_number == edited.seat_number and s.id != current.id),
            None,
        )
        if holder is not None:
            self._alert(
                "Seat Number",
                f"Seat number {edited.seat_number} is already used at R{holder.row_number}C{holder.position_x}.",
            )
            return False

        grid = self.grid.copy()
        grid.remove(current.row_number, current.position_x)
        try:
            grid.place(edited)
        except SeatPositionError as e:
            self._alert("Seat Position", str(e))
            return False

        config = self.config
        if edited.seat_number != current.seat_number:
            config = config.with_seat_override(current.seat_number, disabled=False, crew=False)
        config = config.with_seat_override(
            edited.seat_number,
            disabled=edited.is_disabled or edited.seat_type is SeatType.disabled,
            crew=edited.seat_type is SeatType.crew,
        )
        self._commit(regenerate(config, grid.seats(), settings=self.settings))
        return True

    def delete_seat(self, seat_id: str) -> bool:
        self._ensure_open()
        seat = self.grid.find(seat_id)
        if seat is None:
            return False
        grid = self.grid.copy()
        grid.remove(seat.row_number, seat.position_x)
        self.selection.discard(seat_id)
        self._commit(grid)
        return True

    def remove_selected(self) -> int:
        """Delete every selected seat after confirmation. Returns the number removed."""
        self._ensure_open()
        if not self.selection:
            return 0
        count = len(self.selection)
        if not self._confirm("Remove Seats", f"Remove {count} selected seat(s)? This cannot be undone."):
            return 0
        grid = self.grid.copy()
        removed = 0
        for seat_id in sorted(self.selection):
            seat = grid.find(seat_id)
            if seat is not None:
                grid.remove(seat.row_number, seat.position_x)
                removed += 1
        self.selection.clear()
        self._commit(grid)
        return removed

    # -- layout shape ------------------------------------------------------------

    def resize(self, rows: int, columns: int) -> None:
        self._ensure_open()
        config = self.config.resized(rows, columns)
        grid = regenerate(config, self.grid.seats(), settings=self.settings)
        if grid.active_seat_count() != self.seating_capacity:
            # Fill or trim inside the new bounds; the operator's shape is kept.
            grid = self._reconcile(grid, allow_grow=False)
        self._commit(grid)

    def toggle_aisle(self, column: int) -> None:
        self._ensure_open()
        self._commit(regenerate(self.config.toggle_aisle(column), self.grid.seats(), settings=self.settings))

    def toggle_row_aisle(self, row: int) -> None:
        self._ensure_open()
        self._commit(regenerate(self.config.toggle_row_aisle(row), self.grid.seats(), settings=self.settings))

    def toggle_premium_row(self, row: int) -> None:
        self._ensure_open()
        self._commit(regenerate(self.config.toggle_premium_row(row), self.grid.seats(), settings=self.settings))

    def set_capacity(self, seating_capacity: int) -> None:
        """The vessel's declared capacity changed outside the editor."""
        self._ensure_open()
        if seating_capacity < 0:
            raise SeatLayoutError("seating capacity cannot be negative")
        logger.debug("vessel {} capacity {} -> {}", self.vessel_id, self.seating_capacity, seating_capacity)
        self.seating_capacity = int(seating_capacity)
        self._commit(self._reconcile(self.grid, allow_grow=True))

    def reset_to_default(self) -> bool:
        self._ensure_open()
        if not self._confirm(
            "Reset Layout",
            "Replace the current layout with the default arrangement? All seat edits will be lost.",
        ):
            return False
        self.selection.clear()
        self._commit(self._default_grid())
        return True

    # -- session -----------------------------------------------------------------

    async def save(self) -> SaveOutcome:
        """
        Commit through ``on_save``. Only one save runs at a time; a failed save
        is reported through ``alert`` and leaves the working grid untouched.
        """
        self._ensure_open()
        if self.saving:
            logger.debug("save already in progress for vessel {}", self.vessel_id)
            return SaveOutcome.busy
        if self._on_save is None:
            raise SeatLayoutError("no save handler configured")

        active = self.active_seat_count()
        if active != self.seating_capacity and not self._confirm(
            "Capacity Mismatch",
            f"The layout has {active} active seats but the vessel capacity is {self.seating_capacity}. Save anyway?",
        ):
            return SaveOutcome.cancelled

        layout, seats = self.snapshot()
        self.saving = True
        try:
            result = self._on_save(layout, seats)
            if inspect.isawaitable(result):
                await result
        except Exception as e:  # noqa: BLE001
            logger.warning("saving layout for vessel {} failed: {}", self.vessel_id, e)
            self._alert("Update Failed", f"Failed to update seat layout: {e}")
            return SaveOutcome.failed
        finally:
            self.saving = False

        self._created_at = layout.created_at
        self._notifier.prime(layout, seats)
        logger.debug("saved layout for vessel {}", self.vessel_id)
        return SaveOutcome.saved

    def cancel(self) -> None:
        """Tear down the session without saving."""
        if self.closed:
            return
        self._notifier.cancel()
        self.selection.clear()
        self.closed = True
        if self._on_cancel is not None:
            self._on_cancel()
