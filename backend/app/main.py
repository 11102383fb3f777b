from __future__ import annotations

import csv
import io
import uuid
from typing import Optional, Sequence

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from loguru import logger
from sqlmodel import Session, delete, select

from seat_layout.envelope import build_layout, build_layout_data, config_from_layout
from seat_layout.errors import SeatLayoutError
from seat_layout.generator import default_layout_config
from seat_layout.grid import SeatGrid, regenerate
from seat_layout.log_config import configure_logging
from seat_layout.models import Seat, SeatLayout, utc_now
from seat_layout.reconcile import reconcile
from seat_layout.settings import get_settings
from seat_layout.stats import layout_stats

from .db import get_session, init_db
from .models import SeatLayoutRecord, SeatRecord, Vessel
from .schemas import CapacityUpdate, LayoutSave, LayoutSnapshot, VesselCreate


app = FastAPI(title="Ferry Seat Layout API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    configure_logging(get_settings().log_level)
    init_db()


def _session() -> Session:
    return get_session()


def _vessel_or_404(session: Session, vessel_id: str) -> Vessel:
    v = session.get(Vessel, vessel_id)
    if not v:
        raise HTTPException(status_code=404, detail="vessel not found")
    return v


def _vessel_dict(v: Vessel) -> dict:
    return {
        "id": v.id,
        "name": v.name,
        "vessel_type": v.vessel_type.value,
        "seating_capacity": v.seating_capacity,
    }


def _active_layout(session: Session, vessel_id: str) -> Optional[SeatLayoutRecord]:
    return session.exec(
        select(SeatLayoutRecord)
        .where(SeatLayoutRecord.vessel_id == vessel_id, SeatLayoutRecord.is_active == True)  # noqa: E712
        .order_by(SeatLayoutRecord.updated_at.desc())
    ).first()


def _vessel_seats(session: Session, vessel_id: str) -> list[Seat]:
    records = session.exec(
        select(SeatRecord).where(SeatRecord.vessel_id == vessel_id).order_by(SeatRecord.row_number, SeatRecord.position_x)
    ).all()
    return [r.to_seat() for r in records]


def _persist_layout(session: Session, vessel: Vessel, layout: SeatLayout, seats: Sequence[Seat]) -> SeatLayout:
    """
    Store ``layout`` as the vessel's only active layout and replace the
    vessel's seats with ``seats``.
    """
    now = utc_now()
    layout_id = layout.id or str(uuid.uuid4())

    for old in session.exec(
        select(SeatLayoutRecord).where(SeatLayoutRecord.vessel_id == vessel.id, SeatLayoutRecord.id != layout_id)
    ).all():
        if old.is_active:
            old.is_active = False
            old.updated_at = now
            session.add(old)

    record = session.get(SeatLayoutRecord, layout_id)
    if record is None:
        record = SeatLayoutRecord(id=layout_id, vessel_id=vessel.id, layout_name=layout.layout_name, layout_data_json="{}")
        record.created_at = layout.created_at
    record.layout_name = layout.layout_name
    record.layout_data_json = layout.layout_data.model_dump_json(by_alias=True)
    record.is_active = True
    record.updated_at = now
    session.add(record)
    # The layout row must exist before seats reference it.
    session.flush()

    keep = {seat.id for seat in seats}
    for old_seat in session.exec(select(SeatRecord).where(SeatRecord.vessel_id == vessel.id)).all():
        if old_seat.id not in keep:
            session.delete(old_seat)
    for seat in seats:
        session.merge(SeatRecord.from_seat(seat.model_copy(update={"vessel_id": vessel.id, "layout_id": layout_id})))

    session.commit()
    session.refresh(record)
    logger.info("stored layout {} for vessel {} ({} seats)", layout_id, vessel.id, len(seats))
    return record.to_layout()


def _store_grid(session: Session, vessel: Vessel, grid: SeatGrid, *, layout_id: str, created_at=None) -> SeatLayout:
    seats = grid.seats()
    layout = build_layout(layout_id=layout_id, vessel_id=vessel.id, config=grid.config, seats=seats, created_at=created_at)
    return _persist_layout(session, vessel, layout, seats)


def _default_grid(vessel: Vessel, capacity: int, layout_id: str) -> SeatGrid:
    return reconcile(
        SeatGrid(default_layout_config(capacity, vessel.vessel_type)),
        capacity,
        vessel_id=vessel.id,
        layout_id=layout_id,
    )


def _generate(session: Session, vessel: Vessel) -> SeatLayout:
    layout_id = str(uuid.uuid4())
    grid = _default_grid(vessel, vessel.seating_capacity, layout_id)
    return _store_grid(session, vessel, grid, layout_id=layout_id)


def _snapshot(session: Session, vessel: Vessel) -> LayoutSnapshot:
    record = _active_layout(session, vessel.id)
    seats = _vessel_seats(session, vessel.id)
    return LayoutSnapshot(
        vessel_id=vessel.id,
        seating_capacity=vessel.seating_capacity,
        layout=record.to_layout() if record else None,
        seats=seats,
        stats=layout_stats(seats),
    )


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.post("/vessels")
def create_vessel(payload: VesselCreate, session: Session = Depends(_session)) -> dict:
    v = Vessel(**payload.model_dump())
    session.add(v)
    session.commit()
    session.refresh(v)
    return _vessel_dict(v)


@app.get("/vessels")
def list_vessels(session: Session = Depends(_session)) -> list[dict]:
    vessels = session.exec(select(Vessel).order_by(Vessel.created_at.desc())).all()
    return [_vessel_dict(v) for v in vessels]


@app.get("/vessels/{vessel_id}")
def get_vessel(vessel_id: str, session: Session = Depends(_session)) -> dict:
    return _vessel_dict(_vessel_or_404(session, vessel_id))


@app.delete("/vessels/{vessel_id}")
def delete_vessel(vessel_id: str, session: Session = Depends(_session)) -> dict:
    v = _vessel_or_404(session, vessel_id)
    session.exec(delete(SeatRecord).where(SeatRecord.vessel_id == vessel_id))
    session.exec(delete(SeatLayoutRecord).where(SeatLayoutRecord.vessel_id == vessel_id))
    session.delete(v)
    session.commit()
    return {"deleted": True}


@app.put("/vessels/{vessel_id}/capacity")
def update_capacity(vessel_id: str, payload: CapacityUpdate, session: Session = Depends(_session)) -> LayoutSnapshot:
    v = _vessel_or_404(session, vessel_id)
    capacity = payload.seating_capacity

    # The vessel row and the reconciled layout are committed together.
    record = _active_layout(session, vessel_id)
    try:
        if record is None:
            layout_id, created_at = str(uuid.uuid4()), None
            grid = _default_grid(v, capacity, layout_id)
        else:
            layout = record.to_layout()
            layout_id, created_at = layout.id, layout.created_at
            grid = regenerate(config_from_layout(layout), _vessel_seats(session, vessel_id))
            grid = reconcile(grid, capacity, vessel_id=v.id, layout_id=layout_id)
    except SeatLayoutError as e:
        session.rollback()
        raise HTTPException(status_code=400, detail=str(e)) from e

    v.seating_capacity = capacity
    v.updated_at = utc_now()
    session.add(v)
    _store_grid(session, v, grid, layout_id=layout_id, created_at=created_at)
    return _snapshot(session, v)


@app.post("/vessels/{vessel_id}/layout/generate")
def generate_layout(vessel_id: str, session: Session = Depends(_session)) -> LayoutSnapshot:
    v = _vessel_or_404(session, vessel_id)
    try:
        _generate(session, v)
    except SeatLayoutError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return _snapshot(session, v)


@app.get("/vessels/{vessel_id}/layout")
def get_layout(vessel_id: str, session: Session = Depends(_session)) -> LayoutSnapshot:
    return _snapshot(session, _vessel_or_404(session, vessel_id))


@app.put("/vessels/{vessel_id}/layout")
def save_layout(vessel_id: str, payload: LayoutSave, session: Session = Depends(_session)) -> LayoutSnapshot:
    v = _vessel_or_404(session, vessel_id)
    if payload.layout.vessel_id and payload.layout.vessel_id != vessel_id:
        raise HTTPException(status_code=400, detail="layout belongs to another vessel")
    foreign = [s.id for s in payload.seats if s.vessel_id != vessel_id]
    if foreign:
        raise HTTPException(status_code=400, detail={"message": "seats belong to another vessel", "seat_ids": foreign[:50]})
    if len({s.id for s in payload.seats}) != len(payload.seats):
        raise HTTPException(status_code=400, detail="duplicate seat ids")

    try:
        config = config_from_layout(payload.layout)
        grid = regenerate(config, payload.seats)
    except SeatLayoutError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    seats = grid.seats()
    if len(seats) != len(payload.seats):
        raise HTTPException(status_code=400, detail="seats fall outside the layout grid or share a cell")

    layout = payload.layout.model_copy(
        update={"vessel_id": vessel_id, "layout_data": build_layout_data(config, seats), "is_active": True}
    )
    _persist_layout(session, v, layout, seats)
    return _snapshot(session, v)


@app.get("/vessels/{vessel_id}/seats.csv")
def export_seats_csv(vessel_id: str, session: Session = Depends(_session)) -> Response:
    v = _vessel_or_404(session, vessel_id)
    seats = _vessel_seats(session, vessel_id)

    out = io.StringIO()
    w = csv.writer(out)
    w.writerow(
        [
            "vessel",
            "seat_number",
            "row",
            "column",
            "seat_type",
            "seat_class",
            "is_window",
            "is_aisle",
            "is_premium",
            "is_disabled",
            "price_multiplier",
        ]
    )
    for s in seats:
        w.writerow(
            [
                v.name,
                s.seat_number,
                s.row_number,
                s.position_x,
                s.seat_type.value,
                s.seat_class.value,
                int(s.is_window),
                int(s.is_aisle),
                int(s.is_premium),
                int(s.is_disabled),
                s.price_multiplier,
            ]
        )

    return Response(
        content=out.getvalue(),
        media_type="text/csv",
        headers={"content-disposition": f'attachment; filename="vessel_{vessel_id}_seats.csv"'},
    )
