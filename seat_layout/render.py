from __future__ import annotations

from typing import Optional

from .grid import SeatGrid
from .models import Seat, SeatType
from .synth import letter_for


def _marker(seat: Seat) -> str:
    if seat.is_disabled or seat.seat_type is SeatType.disabled:
        return "x"
    if seat.seat_type is SeatType.crew:
        return "c"
    if seat.is_premium:
        return "*"
    return ""


def _cell(seat: Optional[Seat], width: int) -> str:
    if seat is None:
        return ".".center(width)
    t = f"{seat.seat_number}{_marker(seat)}"
    if len(t) > width:
        t = t[: max(0, width - 1)] + "…"
    return t.center(width)


def render_ascii(grid: SeatGrid, *, cell_width: int = 5) -> str:
    """
    Text picture of the grid: aisles show as ``|`` before their column and as
    a blank line before their row. Markers: ``*`` premium, ``c`` crew,
    ``x`` disabled, ``.`` empty cell.
    """
    cell_width = max(3, int(cell_width))
    aisles = set(grid.config.aisles)
    row_aisles = set(grid.config.row_aisles)

    def join(cells: list[str]) -> str:
        parts = []
        for c, text in enumerate(cells, start=1):
            if c in aisles:
                parts.append("|")
            parts.append(text)
        return " ".join(parts)

    header = " " * 4 + join([letter_for(c).center(cell_width) for c in range(1, grid.columns + 1)])
    lines = [header]
    for r in range(1, grid.rows + 1):
        if r in row_aisles:
            lines.append("")
        row_cells = [_cell(grid.cells[r - 1][c - 1], cell_width) for c in range(1, grid.columns + 1)]
        lines.append(f"{r}".rjust(3) + " " + join(row_cells))
    return "\n".join(lines)
