from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from seat_layout.models import Seat, SeatLayout, VesselType
from seat_layout.stats import LayoutStats

MAX_CAPACITY = 1000


class VesselCreate(BaseModel):
    name: str = Field(min_length=1)
    vessel_type: VesselType = VesselType.passenger
    seating_capacity: int = Field(ge=1, le=MAX_CAPACITY)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("vessel name is required")
        return v


class CapacityUpdate(BaseModel):
    seating_capacity: int = Field(ge=1, le=MAX_CAPACITY)


class LayoutSave(BaseModel):
    layout: SeatLayout
    seats: list[Seat]


class LayoutSnapshot(BaseModel):
    vessel_id: str
    seating_capacity: int
    layout: Optional[SeatLayout] = None
    seats: list[Seat]
    stats: LayoutStats
