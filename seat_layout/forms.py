from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field, field_validator

from .models import Seat, SeatClass, SeatType, utc_now


class SeatEdit(BaseModel):
    """
    Manual input from the seat-edit form.

    Hosts validate through this schema so the editor never receives a seat
    with a blank number or a non-positive row/column.
    """

    seat_number: str
    row_number: int = Field(ge=1)
    position_x: int = Field(ge=1)
    seat_type: SeatType = SeatType.standard
    seat_class: SeatClass = SeatClass.economy
    is_premium: bool = False
    is_disabled: bool = False
    price_multiplier: float = Field(default=1.0, ge=0, le=5)

    @field_validator("seat_number")
    @classmethod
    def _seat_number_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("seat number is required")
        return v

    @classmethod
    def from_seat(cls, seat: Seat) -> "SeatEdit":
        return cls.model_validate(seat.model_dump(include=set(cls.model_fields)))

    def apply_to(self, seat: Seat, *, now: Optional[datetime] = None) -> Seat:
        changes = self.model_dump()
        changes["position_y"] = self.row_number
        changes["updated_at"] = now or utc_now()
        return seat.model_copy(update=changes)


class FormAction(str, Enum):
    saved = "saved"
    delete = "delete"
    cancelled = "cancelled"


@dataclass(frozen=True)
class SeatFormResult:
    action: FormAction
    seat: Optional[Seat] = None
    seat_id: Optional[str] = None

    @classmethod
    def saved(cls, seat: Seat) -> "SeatFormResult":
        return cls(FormAction.saved, seat=seat)

    @classmethod
    def delete(cls, seat_id: str) -> "SeatFormResult":
        return cls(FormAction.delete, seat_id=seat_id)

    @classmethod
    def cancelled(cls) -> "SeatFormResult":
        return cls(FormAction.cancelled)


# Opens the form pre-filled with a seat and returns what the operator chose.
SeatForm = Callable[[Seat], SeatFormResult]
