from __future__ import annotations

import asyncio
import hashlib
import json
import threading
from functools import partial
from typing import Callable, Optional, Protocol, Sequence

from loguru import logger

from .models import Seat, SeatLayout

# Seat fields that make a change visible downstream.
PROJECTION_FIELDS = (
    "id",
    "seat_number",
    "row_number",
    "position_x",
    "position_y",
    "is_window",
    "is_aisle",
    "seat_type",
    "seat_class",
    "is_premium",
    "is_disabled",
    "price_multiplier",
    "manually_edited",
)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], Cancellable]
ChangeCallback = Callable[[SeatLayout, list[Seat]], None]


def thread_timer(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


def loop_timer(loop: asyncio.AbstractEventLoop) -> TimerFactory:
    """Timer factory that schedules on ``loop``, so callbacks run on the loop's thread."""

    def start(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return loop.call_later(delay, callback)

    return start


def snapshot_digest(layout: SeatLayout, seats: Sequence[Seat]) -> str:
    # layout_name and timestamps change on every build and are left out.
    payload = {
        "layout_data": layout.layout_data.model_dump(mode="json", by_alias=True),
        "seats": [seat.model_dump(mode="json", include=set(PROJECTION_FIELDS)) for seat in seats],
    }
    blob = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


class ChangeNotifier:
    """
    Debounced, de-duplicated delivery of (layout, seats) snapshots.

    Each notify() supersedes any pending one; the callback runs once the
    quiescence window passes with no newer snapshot, and only if the snapshot
    differs from the last one delivered. One notifier belongs to one editing
    session.

    The default ``thread_timer`` runs the callback on a timer thread. Hosts
    that keep all work on an asyncio loop pass ``loop_timer(loop)`` instead.
    """

    def __init__(self, callback: Optional[ChangeCallback], *, delay: float, timer_factory: TimerFactory = thread_timer):
        self._callback = callback
        self._delay = delay
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[Cancellable] = None
        self._generation = 0
        self._pending: Optional[tuple[SeatLayout, list[Seat], str]] = None
        self._last_digest: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def prime(self, layout: SeatLayout, seats: Sequence[Seat]) -> None:
        """Record a snapshot as already delivered (initial load, successful save)."""
        with self._lock:
            self._last_digest = snapshot_digest(layout, seats)

    def notify(self, layout: SeatLayout, seats: Sequence[Seat]) -> None:
        if self._callback is None:
            return
        digest = snapshot_digest(layout, seats)
        with self._lock:
            self._cancel_timer()
            if digest == self._last_digest:
                self._pending = None
                logger.debug("layout unchanged since last notification, suppressed")
                return
            self._pending = (layout, list(seats), digest)
            self._generation += 1
            self._timer = self._timer_factory(self._delay, partial(self._fire, self._generation))

    def flush(self) -> None:
        """Deliver the pending snapshot now instead of waiting for the window."""
        with self._lock:
            self._cancel_timer()
            generation = self._generation
        self._fire(generation)

    def cancel(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._pending = None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._pending is None:
                return
            layout, seats, digest = self._pending
            self._pending = None
            self._timer = None
            if digest == self._last_digest:
                return
            self._last_digest = digest
        logger.debug("emitting layout change for vessel {} ({} seats)", layout.vessel_id, len(seats))
        self._callback(layout, seats)
