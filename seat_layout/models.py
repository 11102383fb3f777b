from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import LayoutConfigError

MAX_ROWS = 50
MAX_COLUMNS = 20

CONFIG_FIELDS = frozenset(
    {"rows", "columns", "aisles", "row_aisles", "premium_rows", "disabled_seats", "crew_seats"}
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SeatType(str, Enum):
    standard = "standard"
    premium = "premium"
    crew = "crew"
    disabled = "disabled"


class SeatClass(str, Enum):
    economy = "economy"
    business = "business"
    first = "first"


class VesselType(str, Enum):
    passenger = "passenger"
    cargo = "cargo"
    mixed = "mixed"
    luxury = "luxury"
    speedboat = "speedboat"
    ferry = "ferry"


class EditorMode(str, Enum):
    view = "view"
    edit = "edit"
    arrange = "arrange"


def coerce_vessel_type(value: Any) -> VesselType:
    # Unknown categories get the plain passenger defaults.
    try:
        return VesselType(str(getattr(value, "value", value)).strip().lower())
    except ValueError:
        return VesselType.passenger


class Seat(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    vessel_id: str
    layout_id: Optional[str] = None

    seat_number: str
    row_number: int = Field(ge=1)
    position_x: int = Field(ge=1)
    position_y: int = Field(ge=1)  # mirrors row_number

    is_window: bool = False
    is_aisle: bool = False
    seat_type: SeatType = SeatType.standard
    seat_class: SeatClass = SeatClass.economy
    is_premium: bool = False
    is_disabled: bool = False
    price_multiplier: float = Field(default=1.0, ge=0)

    # Set when the seat-edit form produced this seat; classification then
    # survives re-synthesis.
    manually_edited: bool = False

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        """Counted against the vessel's declared capacity."""
        return not self.is_disabled and self.seat_type not in (SeatType.crew, SeatType.disabled)


class GridShape(BaseModel):
    """
    Grid dimensions and zone designations shared by the top-level layout
    config and each floor entry of the persisted layout data.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    rows: int = Field(ge=1, le=MAX_ROWS)
    columns: int = Field(ge=1, le=MAX_COLUMNS)
    # An aisle at column c renders immediately to the left of column c.
    aisles: list[int] = Field(default_factory=list)
    row_aisles: list[int] = Field(default_factory=list, alias="rowAisles")
    premium_rows: list[int] = Field(default_factory=list)
    # Overrides keyed by display seat number, independent of position.
    disabled_seats: list[str] = Field(default_factory=list)
    crew_seats: list[str] = Field(default_factory=list)

    @field_validator("aisles", "row_aisles", "premium_rows", mode="before")
    @classmethod
    def _sorted_unique_ints(cls, v: Any) -> list[int]:
        if v is None:
            return []
        return sorted({int(x) for x in v})

    @field_validator("disabled_seats", "crew_seats", mode="before")
    @classmethod
    def _sorted_unique_numbers(cls, v: Any) -> list[str]:
        if v is None:
            return []
        return sorted({str(x).strip() for x in v if str(x).strip()})

    @model_validator(mode="after")
    def _references_in_bounds(self) -> "GridShape":
        bad_aisles = [a for a in self.aisles if not 2 <= a <= self.columns]
        if bad_aisles:
            raise ValueError(f"aisle columns must be within 2..{self.columns}: {bad_aisles}")
        bad_row_aisles = [r for r in self.row_aisles if not 2 <= r <= self.rows]
        if bad_row_aisles:
            raise ValueError(f"row aisles must be within 2..{self.rows}: {bad_row_aisles}")
        bad_premium = [r for r in self.premium_rows if not 1 <= r <= self.rows]
        if bad_premium:
            raise ValueError(f"premium rows must be within 1..{self.rows}: {bad_premium}")
        return self

    @property
    def cell_count(self) -> int:
        return self.rows * self.columns

    def config_fields(self) -> dict:
        return self.model_dump(include=set(CONFIG_FIELDS))

    def to_config(self) -> "LayoutConfig":
        return LayoutConfig.from_dict(self.config_fields())


class LayoutConfig(GridShape):
    @classmethod
    def from_dict(cls, data: dict) -> "LayoutConfig":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise LayoutConfigError(f"invalid layout config: {e}") from e

    def _revised(self, **changes: Any) -> "LayoutConfig":
        return LayoutConfig.from_dict({**self.config_fields(), **changes})

    def to_config(self) -> "LayoutConfig":
        return self

    def resized(self, rows: int, columns: int) -> "LayoutConfig":
        if not 1 <= rows <= MAX_ROWS:
            raise LayoutConfigError(f"rows must be between 1 and {MAX_ROWS}")
        if not 1 <= columns <= MAX_COLUMNS:
            raise LayoutConfigError(f"columns must be between 1 and {MAX_COLUMNS}")
        return self._revised(
            rows=rows,
            columns=columns,
            aisles=[a for a in self.aisles if a <= columns],
            row_aisles=[r for r in self.row_aisles if r <= rows],
            premium_rows=[r for r in self.premium_rows if r <= rows],
        )

    def toggle_aisle(self, column: int) -> "LayoutConfig":
        if not 2 <= column <= self.columns:
            raise LayoutConfigError(f"aisle column must be between 2 and {self.columns}")
        return self._revised(aisles=sorted(set(self.aisles) ^ {column}))

    def toggle_row_aisle(self, row: int) -> "LayoutConfig":
        if not 2 <= row <= self.rows:
            raise LayoutConfigError(f"row aisle must be between 2 and {self.rows}")
        return self._revised(row_aisles=sorted(set(self.row_aisles) ^ {row}))

    def toggle_premium_row(self, row: int) -> "LayoutConfig":
        if not 1 <= row <= self.rows:
            raise LayoutConfigError(f"premium row must be between 1 and {self.rows}")
        return self._revised(premium_rows=sorted(set(self.premium_rows) ^ {row}))

    def with_seat_override(self, seat_number: str, *, disabled: bool, crew: bool) -> "LayoutConfig":
        disabled_seats = set(self.disabled_seats) - {seat_number}
        crew_seats = set(self.crew_seats) - {seat_number}
        if disabled:
            disabled_seats.add(seat_number)
        if crew:
            crew_seats.add(seat_number)
        return self._revised(disabled_seats=disabled_seats, crew_seats=crew_seats)


class FloorLayout(GridShape):
    floor_number: int = 1
    floor_name: str = "Main Deck"
    is_active: bool = True
    seat_count: int = Field(default=0, ge=0)


class LayoutData(GridShape):
    # Single-deck mirror of the top-level fields, kept for multi-deck consumers.
    floors: list[FloorLayout] = Field(default_factory=list)


class SeatLayout(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = ""
    vessel_id: str
    layout_name: str
    layout_data: LayoutData
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
