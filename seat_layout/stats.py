from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel

from .models import Seat, SeatType


class LayoutStats(BaseModel):
    total_seats: int
    active_seats: int
    disabled_seats: int
    premium_seats: int
    crew_seats: int
    window_seats: int
    aisle_seats: int
    utilization_rate: float
    revenue_potential: float


def layout_stats(seats: Iterable[Seat]) -> LayoutStats:
    seats = list(seats)
    total = len(seats)
    active = [s for s in seats if s.is_active]
    return LayoutStats(
        total_seats=total,
        active_seats=len(active),
        disabled_seats=sum(1 for s in seats if s.is_disabled),
        premium_seats=sum(1 for s in seats if s.is_premium),
        crew_seats=sum(1 for s in seats if s.seat_type is SeatType.crew),
        window_seats=sum(1 for s in seats if s.is_window),
        aisle_seats=sum(1 for s in seats if s.is_aisle),
        utilization_rate=(len(active) / total * 100.0) if total else 0.0,
        revenue_potential=round(sum(s.price_multiplier for s in active), 4),
    )
