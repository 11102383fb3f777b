from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from .models import LayoutConfig, Seat, SeatClass, SeatType, utc_now
from .settings import Settings, get_settings


def letter_for(column: int) -> str:
    if column < 1:
        raise ValueError(f"column must be >= 1, got {column}")
    return chr(ord("A") + column - 1)


def seat_number_for(row: int, column: int) -> str:
    return f"{letter_for(column)}{row}"


def is_window_column(column: int, config: LayoutConfig) -> bool:
    return column == 1 or column == config.columns


def classify(seat_number: str, row: int, config: LayoutConfig, settings: Optional[Settings] = None) -> dict:
    """
    Position-derived classification for a seat that was never edited by hand.

    Disabled beats crew beats premium for the seat type; class and price follow
    the premium-row designation only.
    """
    settings = settings or get_settings()
    disabled = seat_number in config.disabled_seats
    crew = seat_number in config.crew_seats
    premium = row in config.premium_rows

    if disabled:
        seat_type = SeatType.disabled
    elif crew:
        seat_type = SeatType.crew
    elif premium:
        seat_type = SeatType.premium
    else:
        seat_type = SeatType.standard

    return {
        "seat_number": seat_number,
        "seat_type": seat_type,
        "is_disabled": disabled,
        "is_premium": premium,
        "seat_class": SeatClass.business if premium else SeatClass.economy,
        "price_multiplier": settings.price_multiplier_premium if premium else settings.price_multiplier_standard,
    }


def synthesize(seat: Seat, row: int, column: int, config: LayoutConfig, *, settings: Optional[Settings] = None) -> Seat:
    """
    Refresh the derived attributes of ``seat`` for the cell (row, column).

    Returns the same object when nothing changed, so regenerating a grid twice
    leaves every seat untouched.
    """
    update: dict = {
        "row_number": row,
        "position_x": column,
        "position_y": row,
        "is_window": is_window_column(column, config),
        "is_aisle": column in config.aisles,
    }
    if not seat.manually_edited:
        update.update(classify(seat_number_for(row, column), row, config, settings))

    changed = {k: v for k, v in update.items() if getattr(seat, k) != v}
    if not changed:
        return seat
    return seat.model_copy(update=changed)


def new_seat(
    vessel_id: str,
    row: int,
    column: int,
    config: LayoutConfig,
    *,
    seat_id: Optional[str] = None,
    layout_id: Optional[str] = None,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> Seat:
    now = now or utc_now()
    seat = Seat(
        id=seat_id or str(uuid.uuid4()),
        vessel_id=vessel_id,
        layout_id=layout_id or None,
        seat_number=seat_number_for(row, column),
        row_number=row,
        position_x=column,
        position_y=row,
        created_at=now,
        updated_at=now,
    )
    return synthesize(seat, row, column, config, settings=settings)
