from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from loguru import logger

from .errors import LayoutConfigError
from .models import MAX_COLUMNS, MAX_ROWS, FloorLayout, LayoutConfig, LayoutData, Seat, SeatLayout, SeatType, utc_now

LAYOUT_NAME_PREFIX = "Ferry Layout"
MAIN_DECK = "Main Deck"


def layout_name_for(when: datetime) -> str:
    return f"{LAYOUT_NAME_PREFIX} - {when:%Y-%m-%d}"


def build_layout_data(config: LayoutConfig, seats: Sequence[Seat]) -> LayoutData:
    # floors[0] is rebuilt from the config every time so it cannot drift.
    fields = config.config_fields()
    floor = FloorLayout(floor_number=1, floor_name=MAIN_DECK, is_active=True, seat_count=len(seats), **fields)
    return LayoutData(floors=[floor], **fields)


def build_layout(
    *,
    layout_id: str,
    vessel_id: str,
    config: LayoutConfig,
    seats: Sequence[Seat],
    created_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> SeatLayout:
    now = now or utc_now()
    return SeatLayout(
        id=layout_id,
        vessel_id=vessel_id,
        layout_name=layout_name_for(now),
        layout_data=build_layout_data(config, seats),
        is_active=True,
        created_at=created_at or now,
        updated_at=now,
    )


def config_from_layout(layout: SeatLayout) -> LayoutConfig:
    """Top-level fields are authoritative; a diverging floor mirror is only reported."""
    data = layout.layout_data
    config = data.to_config()
    if data.floors and data.floors[0].to_config() != config:
        logger.warning("layout {} floor mirror differs from its top-level config; using top-level", layout.id or "<new>")
    return config


def config_from_seats(seats: Sequence[Seat]) -> LayoutConfig:
    """Infer a config from seats saved without a layout record."""
    if not seats:
        raise LayoutConfigError("cannot infer a layout from an empty seat list")
    rows = max(s.row_number for s in seats)
    columns = max(s.position_x for s in seats)
    if rows > MAX_ROWS or columns > MAX_COLUMNS:
        raise LayoutConfigError(f"seats span {rows}x{columns}, beyond the {MAX_ROWS}x{MAX_COLUMNS} maximum")
    return LayoutConfig.from_dict(
        {
            "rows": rows,
            "columns": columns,
            "aisles": [s.position_x for s in seats if s.is_aisle and s.position_x >= 2],
            "row_aisles": [],
            "premium_rows": [s.row_number for s in seats if s.is_premium],
            "disabled_seats": [s.seat_number for s in seats if s.is_disabled],
            "crew_seats": [s.seat_number for s in seats if s.seat_type is SeatType.crew],
        }
    )
