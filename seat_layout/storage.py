from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import SeatLayoutError
from .models import Seat, SeatLayout, VesselType


class SessionFile(BaseModel):
    """A vessel's layout and seats as kept on disk by the command line tool."""

    vessel_id: str
    vessel_type: VesselType = VesselType.passenger
    seating_capacity: int = Field(ge=0)
    layout: Optional[SeatLayout] = None
    seats: list[Seat] = Field(default_factory=list)


def load_session(path: str | Path) -> SessionFile:
    p = Path(path)
    if not p.exists():
        raise SeatLayoutError(f"layout file not found: {p}")

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise SeatLayoutError(f"failed to read layout JSON: {e}") from e

    try:
        return SessionFile.model_validate(data)
    except ValidationError as e:
        raise SeatLayoutError(f"invalid layout file: {e}") from e


def save_session(session: SessionFile, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(session.model_dump_json(indent=2, by_alias=True) + "\n", encoding="utf-8")


def maybe_init_session(
    path: str | Path,
    *,
    vessel_id: Optional[str] = None,
    seating_capacity: Optional[int] = None,
    vessel_type: VesselType = VesselType.passenger,
    overwrite: bool = False,
) -> SessionFile:
    """Load an existing file, or describe a new vessel whose layout is still to be generated."""
    p = Path(path)
    if p.exists() and not overwrite:
        return load_session(p)

    if vessel_id is None or seating_capacity is None:
        raise SeatLayoutError("vessel id and seating capacity are required to initialize a new layout")
    if seating_capacity < 0:
        raise SeatLayoutError("seating capacity cannot be negative")

    return SessionFile(vessel_id=vessel_id, vessel_type=vessel_type, seating_capacity=seating_capacity)
