from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from seat_layout.errors import LayoutConfigError
from seat_layout.models import LayoutData, Seat, SeatClass, SeatLayout, SeatType, VesselType, utc_now


def _new_id() -> str:
    return str(uuid.uuid4())


class Vessel(SQLModel, table=True):
    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str
    vessel_type: VesselType = VesselType.passenger
    seating_capacity: int

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class SeatLayoutRecord(SQLModel, table=True):
    __tablename__ = "seat_layout"

    id: str = Field(default_factory=_new_id, primary_key=True)
    vessel_id: str = Field(index=True, foreign_key="vessel.id")
    layout_name: str
    # LayoutData as JSON (camelCase rowAisles, floors[0] mirror).
    layout_data_json: str
    is_active: bool = True

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_layout(self) -> SeatLayout:
        try:
            data = LayoutData.model_validate(json.loads(self.layout_data_json))
        except ValueError as e:  # bad JSON or failed validation
            raise LayoutConfigError(f"stored layout {self.id} is invalid: {e}") from e
        return SeatLayout(
            id=self.id,
            vessel_id=self.vessel_id,
            layout_name=self.layout_name,
            layout_data=data,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class SeatRecord(SQLModel, table=True):
    __tablename__ = "seat"

    id: str = Field(primary_key=True)
    vessel_id: str = Field(index=True, foreign_key="vessel.id")
    layout_id: Optional[str] = Field(default=None, index=True, foreign_key="seat_layout.id")

    seat_number: str
    row_number: int
    position_x: int
    position_y: int

    is_window: bool = False
    is_aisle: bool = False
    seat_type: SeatType = SeatType.standard
    seat_class: SeatClass = SeatClass.economy
    is_premium: bool = False
    is_disabled: bool = False
    price_multiplier: float = 1.0
    manually_edited: bool = False

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_seat(cls, seat: Seat) -> "SeatRecord":
        return cls(**seat.model_dump())

    def to_seat(self) -> Seat:
        return Seat.model_validate(self.model_dump())
