from __future__ import annotations

from typing import Iterable, Iterator, Optional

from loguru import logger

from .errors import LayoutConfigError, SeatPositionError
from .models import LayoutConfig, Seat
from .settings import Settings
from .synth import synthesize


class SeatGrid:
    """
    A rows x columns matrix of cells, each either empty or holding a Seat.

    Coordinates are 1-based (row, column); storage is 0-based. A seat held in
    a cell always carries that cell's row_number/position_x.
    """

    def __init__(self, config: LayoutConfig, cells: Optional[list[list[Optional[Seat]]]] = None):
        self.config = config
        if cells is None:
            self.cells: list[list[Optional[Seat]]] = [
                [None for _ in range(config.columns)] for _ in range(config.rows)
            ]
        else:
            if len(cells) != config.rows or any(len(r) != config.columns for r in cells):
                raise LayoutConfigError("cell matrix does not match rows/columns")
            self.cells = cells

    @property
    def rows(self) -> int:
        return self.config.rows

    @property
    def columns(self) -> int:
        return self.config.columns

    def _validate_cell(self, row: int, column: int) -> None:
        if not (1 <= row <= self.rows and 1 <= column <= self.columns):
            raise SeatPositionError(f"cell out of bounds: row={row}, column={column}")

    def get(self, row: int, column: int) -> Optional[Seat]:
        self._validate_cell(row, column)
        return self.cells[row - 1][column - 1]

    def is_available(self, row: int, column: int) -> bool:
        return self.get(row, column) is None

    def place(self, seat: Seat, *, overwrite: bool = False) -> None:
        row, column = seat.row_number, seat.position_x
        self._validate_cell(row, column)
        occupant = self.cells[row - 1][column - 1]
        if occupant is not None and occupant.id != seat.id and not overwrite:
            raise SeatPositionError(f"cell R{row}C{column} is already occupied by seat {occupant.seat_number}")
        self.cells[row - 1][column - 1] = seat

    def remove(self, row: int, column: int) -> Optional[Seat]:
        self._validate_cell(row, column)
        seat = self.cells[row - 1][column - 1]
        self.cells[row - 1][column - 1] = None
        return seat

    def find(self, seat_id: str) -> Optional[Seat]:
        for seat in self.seats():
            if seat.id == seat_id:
                return seat
        return None

    def seats(self) -> list[Seat]:
        """Bound seats in row-major order."""
        return [seat for row in self.cells for seat in row if seat is not None]

    def empty_cells(self) -> Iterator[tuple[int, int]]:
        for r in range(self.rows):
            for c in range(self.columns):
                if self.cells[r][c] is None:
                    yield r + 1, c + 1

    def active_seat_count(self) -> int:
        return sum(1 for seat in self.seats() if seat.is_active)

    def copy(self) -> "SeatGrid":
        # Seats are immutable; only the matrix needs copying.
        return SeatGrid(self.config, [list(row) for row in self.cells])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SeatGrid):
            return NotImplemented
        return self.config == other.config and self.cells == other.cells


def regenerate(config: LayoutConfig, existing_seats: Iterable[Seat], *, settings: Optional[Settings] = None) -> SeatGrid:
    """
    Build the grid for ``config`` from the seats that already exist.

    A seat is bound to the cell matching its (row_number, position_x) and
    re-synthesized there; seats outside the grid are left out and cells with
    no seat stay empty. When two seats claim one cell the first one wins.
    """
    grid = SeatGrid(config)
    for seat in existing_seats:
        row, column = seat.row_number, seat.position_x
        if not (1 <= row <= config.rows and 1 <= column <= config.columns):
            logger.debug("seat {} at R{}C{} is outside the {}x{} grid", seat.seat_number, row, column, config.rows, config.columns)
            continue
        occupant = grid.cells[row - 1][column - 1]
        if occupant is not None:
            logger.warning("seats {} and {} share R{}C{}; keeping {}", occupant.id, seat.id, row, column, occupant.id)
            continue
        grid.cells[row - 1][column - 1] = synthesize(seat, row, column, config, settings=settings)
    return grid
