from __future__ import annotations

import math
from typing import Any

from loguru import logger

from .models import MAX_COLUMNS, MAX_ROWS, LayoutConfig, VesselType, coerce_vessel_type

# A single centre aisle is only added for grids wider than this.
AISLE_MIN_COLUMNS = 4
PREFERRED_MAX_COLUMNS = 10

PREMIUM_ROWS_BY_TYPE: dict[VesselType, tuple[int, ...]] = {
    VesselType.luxury: (1, 2, 3),
    VesselType.mixed: (1, 2),
}
DEFAULT_PREMIUM_ROWS: tuple[int, ...] = (1,)


def optimal_dimensions(capacity: int) -> tuple[int, int]:
    """
    Pick (rows, columns) holding ``capacity`` seats.

    Candidates are ranked by: at most ten columns, a ferry-like shape
    (columns <= rows <= 2 * columns), fewest wasted cells, then the most
    balanced ratio. Capacities above the maximum grid get the maximum grid.
    """
    if capacity <= 0:
        return 1, 1
    max_cells = MAX_ROWS * MAX_COLUMNS
    if capacity > max_cells:
        logger.warning("capacity {} exceeds the {}-cell maximum grid", capacity, max_cells)
        capacity = max_cells

    best: tuple[int, int] = (MAX_ROWS, MAX_COLUMNS)
    best_key = None
    for columns in range(1, MAX_COLUMNS + 1):
        rows = math.ceil(capacity / columns)
        if rows > MAX_ROWS:
            continue
        key = (
            columns > PREFERRED_MAX_COLUMNS,
            not (columns <= rows <= 2 * columns),
            rows * columns - capacity,
            abs(rows - columns),
        )
        if best_key is None or key < best_key:
            best_key = key
            best = (rows, columns)
    return best


def default_aisles(columns: int) -> list[int]:
    if columns > AISLE_MIN_COLUMNS:
        return [math.ceil(columns / 2)]
    return []


def default_premium_rows(vessel_type: Any, rows: int) -> list[int]:
    preset = PREMIUM_ROWS_BY_TYPE.get(coerce_vessel_type(vessel_type), DEFAULT_PREMIUM_ROWS)
    return [r for r in preset if r <= rows]


def default_layout_config(capacity: int, vessel_type: Any = VesselType.passenger) -> LayoutConfig:
    rows, columns = optimal_dimensions(int(capacity))
    config = LayoutConfig(
        rows=rows,
        columns=columns,
        aisles=default_aisles(columns),
        row_aisles=[],
        premium_rows=default_premium_rows(vessel_type, rows),
    )
    logger.debug(
        "default layout for capacity {} ({}): {}x{}, aisles={}, premium_rows={}",
        capacity,
        coerce_vessel_type(vessel_type).value,
        rows,
        columns,
        config.aisles,
        config.premium_rows,
    )
    return config
