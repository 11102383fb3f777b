from __future__ import annotations

import argparse
import asyncio
import csv
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .editor import LayoutEditor, SaveOutcome
from .errors import SeatLayoutError
from .forms import SeatEdit, SeatFormResult
from .log_config import configure_logging
from .models import EditorMode, Seat, SeatClass, SeatType, VesselType
from .render import render_ascii
from .settings import get_settings
from .stats import layout_stats
from .storage import SessionFile, load_session, maybe_init_session, save_session


def _add_common_args(p: argparse.ArgumentParser) -> None:
    default_file = get_settings().default_file
    p.add_argument(
        "--file",
        default=default_file,
        help=f"Path to layout JSON file (default: {default_file})",
    )
    p.add_argument("--yes", action="store_true", help="Answer yes to every confirmation")


def _confirm(args: argparse.Namespace):
    def confirm(title: str, message: str) -> bool:
        if args.yes:
            return True
        if not sys.stdin.isatty():
            print(f"{title}: {message} (re-run with --yes to confirm)")
            return False
        return input(f"{title}: {message} [y/N] ").strip().lower() in ("y", "yes")

    return confirm


def _alert(title: str, message: str) -> None:
    print(f"{title}: {message}")


def _open_editor(args: argparse.Namespace, session: SessionFile, **kwargs) -> LayoutEditor:
    editor: Optional[LayoutEditor] = None

    def write(layout, seats) -> None:
        save_session(
            SessionFile(
                vessel_id=editor.vessel_id,
                vessel_type=editor.vessel_type,
                seating_capacity=editor.seating_capacity,
                layout=layout,
                seats=seats,
            ),
            args.file,
        )

    editor = LayoutEditor(
        session.vessel_id,
        session.seating_capacity,
        session.vessel_type,
        initial_layout=session.layout,
        initial_seats=session.seats,
        on_save=write,
        confirm=_confirm(args),
        alert=_alert,
        **kwargs,
    )
    return editor


def _commit(editor: LayoutEditor) -> int:
    outcome = asyncio.run(editor.save())
    if outcome is not SaveOutcome.saved:
        print(f"Layout not saved ({outcome.value})")
        return 1
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    session = maybe_init_session(
        args.file,
        vessel_id=args.vessel_id,
        seating_capacity=args.capacity,
        vessel_type=VesselType(args.vessel_type),
        overwrite=args.overwrite,
    )
    editor = _open_editor(args, session)
    rc = _commit(editor)
    if rc == 0:
        print(
            f"Initialized layout at {args.file} "
            f"({editor.config.rows} rows x {editor.config.columns} cols, {editor.active_seat_count()} seats)"
        )
    return rc


def cmd_show(args: argparse.Namespace) -> int:
    editor = _open_editor(args, load_session(args.file))
    print(render_ascii(editor.grid, cell_width=args.width))
    return 0


def cmd_add(args: argparse.Namespace) -> int:
    editor = _open_editor(args, load_session(args.file))
    editor.set_mode(EditorMode.edit)
    if editor.grid.get(args.row, args.col) is not None:
        raise SeatLayoutError(f"cell R{args.row}C{args.col} already holds a seat")
    if not editor.tap(args.row, args.col):
        return 1
    seat = editor.grid.get(args.row, args.col)
    rc = _commit(editor)
    if rc == 0:
        print(f"Added seat {seat.seat_number} at R{args.row}C{args.col}")
    return rc


def cmd_remove(args: argparse.Namespace) -> int:
    editor = _open_editor(args, load_session(args.file), seat_form=lambda seat: SeatFormResult.delete(seat.id))
    editor.set_mode(EditorMode.edit)
    seat = editor.grid.get(args.row, args.col)
    if seat is None:
        print(f"No seat at R{args.row}C{args.col}")
        return 1
    editor.tap(args.row, args.col)
    rc = _commit(editor)
    if rc == 0:
        print(f"Removed seat {seat.seat_number}")
    return rc


def cmd_clear(args: argparse.Namespace) -> int:
    editor = _open_editor(args, load_session(args.file))
    wanted = {n.strip() for n in args.seats.split(",") if n.strip()}
    editor.set_mode(EditorMode.arrange)
    for seat in editor.seats():
        if seat.seat_number in wanted:
            editor.tap(seat.row_number, seat.position_x)
    removed = editor.remove_selected()
    if removed == 0:
        print("No seats removed")
        return 1
    rc = _commit(editor)
    if rc == 0:
        print(f"Removed {removed} seat(s)")
    return rc


def _edit_form(args: argparse.Namespace):
    def form(seat: Seat) -> SeatFormResult:
        values = SeatEdit.from_seat(seat).model_dump()
        if args.number is not None:
            values["seat_number"] = args.number
        if args.seat_type is not None:
            values["seat_type"] = args.seat_type
            values["is_disabled"] = args.seat_type == SeatType.disabled.value
        if args.seat_class is not None:
            values["seat_class"] = args.seat_class
        if args.premium is not None:
            values["is_premium"] = args.premium
        if args.disabled is not None:
            values["is_disabled"] = args.disabled
        if args.price is not None:
            values["price_multiplier"] = args.price
        try:
            edit = SeatEdit.model_validate(values)
        except ValidationError as e:
            raise SeatLayoutError(f"invalid seat: {e.errors()[0]['msg']}") from e
        return SeatFormResult.saved(edit.apply_to(seat))

    return form


def cmd_edit(args: argparse.Namespace) -> int:
    editor = _open_editor(args, load_session(args.file), seat_form=_edit_form(args))
    editor.set_mode(EditorMode.edit)
    if editor.grid.get(args.row, args.col) is None:
        print(f"No seat at R{args.row}C{args.col}")
        return 1
    if not editor.tap(args.row, args.col):
        return 1
    rc = _commit(editor)
    if rc == 0:
        print(f"Updated seat at R{args.row}C{args.col}")
    return rc


def cmd_resize(args: argparse.Namespace) -> int:
    editor = _open_editor(args, load_session(args.file))
    editor.resize(args.rows, args.cols)
    rc = _commit(editor)
    if rc == 0:
        print(f"Resized to {args.rows} rows x {args.cols} cols ({editor.active_seat_count()} active seats)")
    return rc


def cmd_aisle(args: argparse.Namespace) -> int:
    editor = _open_editor(args, load_session(args.file))
    editor.toggle_aisle(args.col)
    rc = _commit(editor)
    if rc == 0:
        print(f"Aisles: {editor.config.aisles}")
    return rc


def cmd_row_aisle(args: argparse.Namespace) -> int:
    editor = _open_editor(args, load_session(args.file))
    editor.toggle_row_aisle(args.row)
    rc = _commit(editor)
    if rc == 0:
        print(f"Row aisles: {editor.config.row_aisles}")
    return rc


def cmd_premium(args: argparse.Namespace) -> int:
    editor = _open_editor(args, load_session(args.file))
    editor.toggle_premium_row(args.row)
    rc = _commit(editor)
    if rc == 0:
        print(f"Premium rows: {editor.config.premium_rows}")
    return rc


def cmd_capacity(args: argparse.Namespace) -> int:
    editor = _open_editor(args, load_session(args.file))
    editor.set_capacity(args.value)
    rc = _commit(editor)
    if rc == 0:
        print(
            f"Capacity set to {args.value} "
            f"({editor.config.rows} rows x {editor.config.columns} cols, {editor.active_seat_count()} active seats)"
        )
    return rc


def cmd_reset(args: argparse.Namespace) -> int:
    editor = _open_editor(args, load_session(args.file))
    if not editor.reset_to_default():
        print("Reset cancelled")
        return 1
    rc = _commit(editor)
    if rc == 0:
        print(f"Reset to default layout ({editor.config.rows} rows x {editor.config.columns} cols)")
    return rc


def cmd_stats(args: argparse.Namespace) -> int:
    session = load_session(args.file)
    stats = layout_stats(session.seats)
    print(f"Capacity: {session.seating_capacity}")
    for key, value in stats.model_dump().items():
        print(f"{key}: {value}")
    return 0


def cmd_export_csv(args: argparse.Namespace) -> int:
    session = load_session(args.file)
    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["seat_number", "row", "col", "seat_type", "seat_class", "window", "aisle", "price_multiplier"])
        for s in sorted(session.seats, key=lambda s: (s.row_number, s.position_x)):
            w.writerow(
                [
                    s.seat_number,
                    s.row_number,
                    s.position_x,
                    s.seat_type.value,
                    s.seat_class.value,
                    int(s.is_window),
                    int(s.is_aisle),
                    s.price_multiplier,
                ]
            )
    print(f"Exported {len(session.seats)} seats to {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="seat-layout", description="Vessel seat layout editor (CLI).")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create a layout file with the default arrangement for a vessel")
    _add_common_args(p_init)
    p_init.add_argument("--vessel-id", required=True)
    p_init.add_argument("--capacity", type=int, required=True)
    p_init.add_argument("--vessel-type", default=VesselType.passenger.value, choices=[t.value for t in VesselType])
    p_init.add_argument("--overwrite", action="store_true", help="Overwrite existing layout file")
    p_init.set_defaults(func=cmd_init)

    p_show = sub.add_parser("show", help="Print the seat map")
    _add_common_args(p_show)
    p_show.add_argument("--width", type=int, default=5, help="Cell width for display")
    p_show.set_defaults(func=cmd_show)

    p_add = sub.add_parser("add", help="Create a seat in an empty cell")
    _add_common_args(p_add)
    p_add.add_argument("--row", type=int, required=True)
    p_add.add_argument("--col", type=int, required=True)
    p_add.set_defaults(func=cmd_add)

    p_remove = sub.add_parser("remove", help="Delete the seat in a cell")
    _add_common_args(p_remove)
    p_remove.add_argument("--row", type=int, required=True)
    p_remove.add_argument("--col", type=int, required=True)
    p_remove.set_defaults(func=cmd_remove)

    p_clear = sub.add_parser("clear", help="Delete several seats by seat number (asks for confirmation)")
    _add_common_args(p_clear)
    p_clear.add_argument("--seats", required=True, help="Comma separated seat numbers, e.g. A1,B1")
    p_clear.set_defaults(func=cmd_clear)

    p_edit = sub.add_parser("edit", help="Edit a single seat")
    _add_common_args(p_edit)
    p_edit.add_argument("--row", type=int, required=True)
    p_edit.add_argument("--col", type=int, required=True)
    p_edit.add_argument("--number", help="New seat number")
    p_edit.add_argument("--seat-type", choices=[t.value for t in SeatType])
    p_edit.add_argument("--seat-class", choices=[c.value for c in SeatClass])
    p_edit.add_argument("--premium", dest="premium", action="store_true", default=None)
    p_edit.add_argument("--standard", dest="premium", action="store_false")
    p_edit.add_argument("--disable", dest="disabled", action="store_true", default=None)
    p_edit.add_argument("--enable", dest="disabled", action="store_false")
    p_edit.add_argument("--price", type=float, help="Price multiplier")
    p_edit.set_defaults(func=cmd_edit)

    p_resize = sub.add_parser("resize", help="Change the grid dimensions")
    _add_common_args(p_resize)
    p_resize.add_argument("--rows", type=int, required=True)
    p_resize.add_argument("--cols", type=int, required=True)
    p_resize.set_defaults(func=cmd_resize)

    p_aisle = sub.add_parser("aisle", help="Toggle a vertical aisle left of a column")
    _add_common_args(p_aisle)
    p_aisle.add_argument("--col", type=int, required=True)
    p_aisle.set_defaults(func=cmd_aisle)

    p_row_aisle = sub.add_parser("row-aisle", help="Toggle a horizontal aisle above a row")
    _add_common_args(p_row_aisle)
    p_row_aisle.add_argument("--row", type=int, required=True)
    p_row_aisle.set_defaults(func=cmd_row_aisle)

    p_premium = sub.add_parser("premium", help="Toggle a premium row")
    _add_common_args(p_premium)
    p_premium.add_argument("--row", type=int, required=True)
    p_premium.set_defaults(func=cmd_premium)

    p_capacity = sub.add_parser("capacity", help="Change the vessel's declared seating capacity")
    _add_common_args(p_capacity)
    p_capacity.add_argument("--value", type=int, required=True)
    p_capacity.set_defaults(func=cmd_capacity)

    p_reset = sub.add_parser("reset", help="Replace the layout with the default arrangement")
    _add_common_args(p_reset)
    p_reset.set_defaults(func=cmd_reset)

    p_stats = sub.add_parser("stats", help="Print layout statistics")
    _add_common_args(p_stats)
    p_stats.set_defaults(func=cmd_stats)

    p_export = sub.add_parser("export-csv", help="Export seats to a CSV file")
    _add_common_args(p_export)
    p_export.add_argument("--output", required=True)
    p_export.set_defaults(func=cmd_export_csv)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    configure_logging(get_settings().log_level)
    p = build_parser()
    args = p.parse_args(argv)
    try:
        return int(args.func(args))
    except SeatLayoutError as e:
        print(f"Error: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
