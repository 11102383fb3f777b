import asyncio
import itertools
import unittest

from seat_layout.editor import LayoutEditor, SaveOutcome
from seat_layout.errors import SeatLayoutError
from seat_layout.forms import SeatEdit, SeatFormResult
from seat_layout.models import EditorMode, SeatType, VesselType
from seat_layout.settings import Settings
from tests.fakes import FakeTimerFactory


class EditorTestCase(unittest.TestCase):
    def setUp(self):
        self.changes = []
        self.saved = []
        self.alerts = []
        self.confirms = []
        self.cancelled = 0
        self.answer = True
        self.form = lambda seat: SeatFormResult.cancelled()
        self.timers = FakeTimerFactory()

    def _confirm(self, title, message):
        self.confirms.append(title)
        return self.answer

    def _on_cancel(self):
        self.cancelled += 1

    def _save(self, layout, seats):
        self.saved.append((layout, seats))

    def editor(self, capacity=20, **kw):
        counter = itertools.count(1)
        opts = dict(
            on_change=lambda layout, seats: self.changes.append((layout, seats)),
            on_save=self._save,
            on_cancel=self._on_cancel,
            seat_form=lambda seat: self.form(seat),
            confirm=self._confirm,
            alert=lambda title, message: self.alerts.append(title),
            settings=Settings(),
            timer_factory=self.timers,
            id_factory=lambda: f"new-{next(counter)}",
        )
        opts.update(kw)
        return LayoutEditor("v1", capacity, VesselType.passenger, **opts)

    def edit_seat(self, **changes):
        def form(seat):
            edit = SeatEdit.from_seat(seat).model_copy(update=changes)
            return SeatFormResult.saved(edit.apply_to(seat))

        self.form = form


class TestOpening(EditorTestCase):
    def test_default_layout(self):
        e = self.editor(20)
        self.assertEqual((e.config.rows, e.config.columns), (5, 4))
        self.assertEqual(e.active_seat_count(), 20)
        self.assertIs(e.mode, EditorMode.view)
        self.assertFalse(e.change_pending)
        self.assertEqual(self.timers.timers, [])

    def test_reopen_saved_layout(self):
        first = self.editor(20)
        layout, seats = first.snapshot()
        again = self.editor(30, initial_layout=layout, initial_seats=seats)
        self.assertEqual(again.grid, first.grid)
        self.assertEqual(again.layout_id, layout.id)
        # No reconciliation on open.
        self.assertEqual(again.active_seat_count(), 20)
        self.assertFalse(again.change_pending)

    def test_open_seats_without_layout(self):
        _, seats = self.editor(12).snapshot()
        e = self.editor(12, initial_seats=seats)
        self.assertEqual((e.config.rows, e.config.columns), (4, 3))
        self.assertEqual(e.config.premium_rows, [1])
        self.assertEqual(e.active_seat_count(), 12)

    def test_negative_capacity(self):
        with self.assertRaises(SeatLayoutError):
            self.editor(-1)


class TestModes(EditorTestCase):
    def test_view_mode_ignores_taps(self):
        e = self.editor()
        self.assertFalse(e.tap(1, 1))
        self.assertEqual(e.selection, set())

    def test_delete_and_add_in_edit_mode(self):
        e = self.editor()
        e.set_mode(EditorMode.edit)
        self.form = lambda seat: SeatFormResult.delete(seat.id)
        deleted_id = e.grid.get(5, 4).id
        self.assertTrue(e.tap(5, 4))
        self.assertIsNone(e.grid.get(5, 4))
        self.assertEqual(e.active_seat_count(), 19)

        self.assertTrue(e.tap(5, 4))
        seat = e.grid.get(5, 4)
        self.assertEqual(seat.seat_number, "D5")
        self.assertNotEqual(seat.id, deleted_id)
        self.assertTrue(e.change_pending)

        self.timers.fire_all()
        self.assertEqual(len(self.changes), 1)
        layout, seats = self.changes[0]
        self.assertEqual(len(seats), 20)
        self.assertEqual(layout.layout_data.floors[0].seat_count, 20)

    def test_add_at_capacity_alerts(self):
        e = self.editor()
        self.assertFalse(e.add_seat(1, 1))
        self.assertEqual(self.alerts, ["Capacity Limit"])
        self.assertEqual(e.active_seat_count(), 20)

    def test_add_into_occupied_cell_alerts(self):
        e = self.editor()
        e.delete_seat(e.grid.get(1, 1).id)
        self.assertFalse(e.add_seat(1, 2))
        self.assertEqual(self.alerts, ["Seat Position"])

    def test_cancelled_form_changes_nothing(self):
        e = self.editor()
        e.set_mode(EditorMode.edit)
        self.assertFalse(e.tap(1, 1))
        self.assertFalse(e.change_pending)

    def test_arrange_selection_and_bulk_remove(self):
        e = self.editor()
        e.set_mode(EditorMode.arrange)
        e.tap(1, 1)
        e.tap(1, 2)
        e.tap(2, 2)
        e.tap(1, 1)
        self.assertEqual(len(e.selection), 2)
        self.assertEqual(e.remove_selected(), 2)
        self.assertEqual(self.confirms, ["Remove Seats"])
        self.assertEqual(e.active_seat_count(), 18)
        self.assertEqual(e.selection, set())

    def test_bulk_remove_declined(self):
        e = self.editor()
        self.answer = False
        e.set_mode(EditorMode.arrange)
        e.tap(3, 3)
        self.assertEqual(e.remove_selected(), 0)
        self.assertEqual(len(e.selection), 1)
        self.assertEqual(e.active_seat_count(), 20)

    def test_leaving_arrange_clears_selection(self):
        e = self.editor()
        e.set_mode(EditorMode.arrange)
        e.tap(1, 1)
        e.set_mode("edit")
        self.assertEqual(e.selection, set())


class TestSeatEdits(EditorTestCase):
    def setUp(self):
        super().setUp()
        self.e = self.editor()
        self.e.set_mode(EditorMode.edit)

    def test_manual_edit_survives_aisle_toggle(self):
        self.edit_seat(seat_number="VIP", seat_type=SeatType.premium, price_multiplier=3.0)
        self.assertTrue(self.e.tap(2, 1))
        self.e.toggle_aisle(2)
        seat = self.e.grid.get(2, 1)
        self.assertEqual((seat.seat_number, seat.price_multiplier), ("VIP", 3.0))
        self.assertTrue(seat.manually_edited)
        self.assertTrue(self.e.grid.get(2, 2).is_aisle)

    def test_crew_edit_updates_overrides(self):
        self.edit_seat(seat_type=SeatType.crew)
        self.e.tap(2, 1)
        self.assertEqual(self.e.config.crew_seats, ["A2"])
        self.assertEqual(self.e.active_seat_count(), 19)

    def test_move_into_occupied_cell_rejected(self):
        before = self.e.grid.copy()
        self.edit_seat(position_x=2)
        self.assertFalse(self.e.tap(2, 1))
        self.assertEqual(self.alerts, ["Seat Position"])
        self.assertEqual(self.e.grid, before)

    def test_move_into_empty_cell(self):
        moved_id = self.e.grid.get(5, 3).id
        self.e.delete_seat(self.e.grid.get(5, 4).id)
        self.edit_seat(position_x=4)
        self.assertTrue(self.e.tap(5, 3))
        self.assertIsNone(self.e.grid.get(5, 3))
        self.assertEqual(self.e.grid.get(5, 4).id, moved_id)

    def test_duplicate_seat_number_rejected(self):
        before = self.e.grid.copy()
        self.edit_seat(seat_number="B1", is_disabled=True)
        self.assertFalse(self.e.tap(1, 1))
        self.assertEqual(self.alerts, ["Seat Number"])
        self.assertEqual(self.e.grid, before)
        self.assertFalse(self.e.grid.get(1, 2).is_disabled)
        self.assertEqual(self.e.config.disabled_seats, [])

    def test_keeping_own_seat_number_is_allowed(self):
        self.edit_seat(seat_number="A1", price_multiplier=2.0)
        self.assertTrue(self.e.tap(1, 1))
        self.assertEqual(self.e.grid.get(1, 1).price_multiplier, 2.0)

    def test_move_out_of_bounds_rejected(self):
        self.edit_seat(row_number=9)
        self.assertFalse(self.e.tap(1, 1))
        self.assertEqual(self.alerts, ["Seat Position"])

    def test_reactivation_respects_capacity(self):
        self.edit_seat(is_disabled=True)
        self.e.tap(2, 1)
        self.assertEqual(self.e.active_seat_count(), 19)
        self.e.set_capacity(19)
        self.edit_seat(is_disabled=False, seat_type=SeatType.standard)
        self.assertFalse(self.e.tap(2, 1))
        self.assertEqual(self.alerts, ["Capacity Limit"])


class TestLayoutShape(EditorTestCase):
    def test_shrink_keeps_operator_shape(self):
        e = self.editor()
        e.resize(4, 4)
        self.assertEqual((e.config.rows, e.config.columns), (4, 4))
        self.assertEqual(e.active_seat_count(), 16)

    def test_same_size_reshape_refills(self):
        e = self.editor()
        e.resize(4, 5)
        self.assertEqual((e.config.rows, e.config.columns), (4, 5))
        self.assertEqual(e.active_seat_count(), 20)
        self.assertEqual(list(e.grid.empty_cells()), [])
        self.assertEqual(e.grid.get(1, 5).seat_number, "E1")

    def test_enlarge_does_not_add_seats_beyond_capacity(self):
        e = self.editor()
        e.resize(6, 4)
        self.assertEqual(e.active_seat_count(), 20)
        self.assertEqual(len(list(e.grid.empty_cells())), 4)

    def test_premium_row_toggle(self):
        e = self.editor()
        e.toggle_premium_row(2)
        self.assertTrue(all(s.is_premium for s in e.seats() if s.row_number == 2))
        self.assertEqual(e.grid.get(2, 1).price_multiplier, 1.5)

    def test_row_aisle_toggle(self):
        e = self.editor()
        e.toggle_row_aisle(3)
        self.assertEqual(e.config.row_aisles, [3])
        self.assertTrue(e.change_pending)

    def test_capacity_change(self):
        e = self.editor()
        e.set_capacity(24)
        self.assertEqual((e.config.rows, e.config.columns), (6, 4))
        self.assertEqual(e.active_seat_count(), 24)
        e.set_capacity(10)
        self.assertEqual(e.active_seat_count(), 10)

    def test_reset_to_default(self):
        e = self.editor()
        e.resize(3, 3)
        self.assertTrue(e.reset_to_default())
        self.assertEqual(self.confirms, ["Reset Layout"])
        self.assertEqual((e.config.rows, e.config.columns), (5, 4))
        self.assertEqual(e.active_seat_count(), 20)

    def test_reset_declined(self):
        e = self.editor()
        e.resize(3, 3)
        self.answer = False
        self.assertFalse(e.reset_to_default())
        self.assertEqual((e.config.rows, e.config.columns), (3, 3))


class TestSaveAndCancel(EditorTestCase):
    def test_save(self):
        e = self.editor()
        self.assertIs(asyncio.run(e.save()), SaveOutcome.saved)
        layout, seats = self.saved[0]
        self.assertEqual(len(seats), 20)
        self.assertTrue(layout.layout_name.startswith("Ferry Layout - "))
        self.assertEqual(self.confirms, [])

    def test_async_save_handler_is_awaited(self):
        calls = []

        async def on_save(layout, seats):
            await asyncio.sleep(0)
            calls.append(len(seats))

        e = self.editor(on_save=on_save)
        self.assertIs(asyncio.run(e.save()), SaveOutcome.saved)
        self.assertEqual(calls, [20])

    def test_second_save_while_busy(self):
        inner = []

        async def on_save(layout, seats):
            inner.append(await e.save())

        e = self.editor(on_save=on_save)
        self.assertIs(asyncio.run(e.save()), SaveOutcome.saved)
        self.assertEqual(inner, [SaveOutcome.busy])
        self.assertFalse(e.saving)

    def test_capacity_mismatch_needs_confirmation(self):
        e = self.editor()
        e.delete_seat(e.grid.get(1, 1).id)
        self.answer = False
        self.assertIs(asyncio.run(e.save()), SaveOutcome.cancelled)
        self.assertEqual(self.confirms, ["Capacity Mismatch"])
        self.assertEqual(self.saved, [])

        self.answer = True
        self.assertIs(asyncio.run(e.save()), SaveOutcome.saved)

    def test_failed_save_keeps_local_state(self):
        def on_save(layout, seats):
            raise RuntimeError("network down")

        e = self.editor(on_save=on_save)
        e.toggle_premium_row(2)
        before = e.grid.copy()
        self.assertIs(asyncio.run(e.save()), SaveOutcome.failed)
        self.assertEqual(self.alerts, ["Update Failed"])
        self.assertEqual(e.grid, before)
        self.assertFalse(e.saving)

    def test_save_without_handler(self):
        e = self.editor(on_save=None)
        with self.assertRaises(SeatLayoutError):
            asyncio.run(e.save())

    def test_cancel(self):
        e = self.editor()
        e.toggle_aisle(2)
        e.cancel()
        e.cancel()
        self.timers.fire_all()
        self.assertEqual(self.changes, [])
        self.assertEqual(self.cancelled, 1)
        with self.assertRaises(SeatLayoutError):
            e.tap(1, 1)


if __name__ == "__main__":
    unittest.main()
