from __future__ import annotations

from typing import Callable, Optional

from loguru import logger

from .generator import optimal_dimensions
from .grid import SeatGrid, regenerate
from .models import MAX_COLUMNS, MAX_ROWS
from .settings import Settings
from .synth import new_seat, seat_number_for


def _is_override(grid: SeatGrid, row: int, column: int) -> bool:
    number = seat_number_for(row, column)
    return number in grid.config.disabled_seats or number in grid.config.crew_seats


def _fillable_cells(grid: SeatGrid) -> list[tuple[int, int]]:
    # Cells reserved as disabled/crew never receive a new standard seat.
    return [(r, c) for (r, c) in grid.empty_cells() if not _is_override(grid, r, c)]


def _grow(grid: SeatGrid, shortfall: int, settings: Optional[Settings]) -> Optional[SeatGrid]:
    """Enlarge the grid by at least ``shortfall`` cells, keeping every seat in place."""
    rows, columns = optimal_dimensions(grid.config.cell_count + shortfall)
    new_rows, new_columns = max(grid.rows, rows), max(grid.columns, columns)
    if (new_rows, new_columns) == (grid.rows, grid.columns):
        return None
    logger.debug("growing grid {}x{} -> {}x{}", grid.rows, grid.columns, new_rows, new_columns)
    return regenerate(grid.config.resized(new_rows, new_columns), grid.seats(), settings=settings)


def _trim(grid: SeatGrid, excess: int) -> None:
    # Highest row first, then highest column.
    active = sorted(
        (seat for seat in grid.seats() if seat.is_active),
        key=lambda s: (s.row_number, s.position_x),
        reverse=True,
    )
    for seat in active[:excess]:
        grid.remove(seat.row_number, seat.position_x)


def reconcile(
    grid: SeatGrid,
    target_capacity: int,
    *,
    vessel_id: str,
    layout_id: Optional[str] = None,
    allow_grow: bool = True,
    id_factory: Optional[Callable[[], str]] = None,
    settings: Optional[Settings] = None,
) -> SeatGrid:
    """
    Bring the grid's active seat count to ``target_capacity``.

    Surviving seats keep their id, position and classification. Missing seats
    are synthesized in row-major order over empty cells; when there are not
    enough cells and ``allow_grow`` is set, the grid is enlarged first with the
    default sizing rule. Excess active seats are removed in reverse spatial
    order. The input grid is not modified.
    """
    target = max(0, int(target_capacity))
    result = grid.copy()
    active = result.active_seat_count()

    if active > target:
        _trim(result, active - target)
        logger.debug("trimmed {} seats to reach capacity {}", active - target, target)
        return result
    if active == target:
        return result

    shortfall = target - active
    cells = _fillable_cells(result)
    while allow_grow and len(cells) < shortfall:
        grown = _grow(result, shortfall - len(cells), settings)
        if grown is None:
            break
        result = grown
        cells = _fillable_cells(result)

    if len(cells) < shortfall:
        if allow_grow:
            logger.warning(
                "capacity {} cannot be met inside a {}x{} grid; {} seats short",
                target,
                MAX_ROWS,
                MAX_COLUMNS,
                shortfall - len(cells),
            )
        else:
            logger.debug("grid {}x{} holds {} more seats, {} requested", result.rows, result.columns, len(cells), shortfall)

    for row, column in cells[:shortfall]:
        seat_id = id_factory() if id_factory else None
        result.place(
            new_seat(vessel_id, row, column, result.config, seat_id=seat_id, layout_id=layout_id, settings=settings)
        )
    return result
