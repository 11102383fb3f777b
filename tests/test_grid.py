import unittest

from seat_layout.errors import LayoutConfigError, SeatPositionError
from seat_layout.grid import SeatGrid, regenerate
from seat_layout.models import LayoutConfig
from seat_layout.settings import Settings
from seat_layout.synth import new_seat

SETTINGS = Settings()


def _full_grid(rows=3, columns=4, **kw):
    config = LayoutConfig(rows=rows, columns=columns, **kw)
    g = SeatGrid(config)
    for r in range(1, rows + 1):
        for c in range(1, columns + 1):
            g.place(new_seat("v1", r, c, config, seat_id=f"s{r}-{c}", settings=SETTINGS))
    return g


class TestSeatGrid(unittest.TestCase):
    def test_init(self):
        g = SeatGrid(LayoutConfig(rows=2, columns=3))
        self.assertEqual((g.rows, g.columns), (2, 3))
        self.assertTrue(g.is_available(1, 1))
        self.assertEqual(len(list(g.empty_cells())), 6)

    def test_cells_must_match_config(self):
        with self.assertRaises(LayoutConfigError):
            SeatGrid(LayoutConfig(rows=2, columns=2), [[None, None]])

    def test_place_occupied_raises(self):
        g = _full_grid(1, 1)
        intruder = new_seat("v1", 1, 1, g.config, seat_id="other", settings=SETTINGS)
        with self.assertRaises(SeatPositionError):
            g.place(intruder)
        g.place(intruder, overwrite=True)
        self.assertEqual(g.get(1, 1).id, "other")

    def test_out_of_bounds(self):
        g = SeatGrid(LayoutConfig(rows=2, columns=2))
        with self.assertRaises(SeatPositionError):
            g.get(3, 1)
        with self.assertRaises(SeatPositionError):
            g.remove(0, 1)

    def test_find_and_remove(self):
        g = _full_grid()
        self.assertEqual(g.find("s2-3").seat_number, "C2")
        removed = g.remove(2, 3)
        self.assertEqual(removed.id, "s2-3")
        self.assertIsNone(g.find("s2-3"))
        self.assertEqual(g.active_seat_count(), 11)

    def test_seats_are_row_major(self):
        g = _full_grid(2, 2)
        self.assertEqual([s.seat_number for s in g.seats()], ["A1", "B1", "A2", "B2"])

    def test_copy_is_independent(self):
        g = _full_grid()
        c = g.copy()
        c.remove(1, 1)
        self.assertIsNotNone(g.get(1, 1))
        self.assertNotEqual(g, c)


class TestRegenerate(unittest.TestCase):
    def test_idempotent(self):
        g = _full_grid(premium_rows=[1], aisles=[3])
        once = regenerate(g.config, g.seats(), settings=SETTINGS)
        twice = regenerate(once.config, once.seats(), settings=SETTINGS)
        self.assertEqual(once, twice)
        for a, b in zip(once.seats(), twice.seats()):
            self.assertIs(a, b)

    def test_drops_seats_outside_new_bounds(self):
        g = _full_grid(3, 4)
        smaller = regenerate(g.config.resized(2, 2), g.seats(), settings=SETTINGS)
        self.assertEqual(len(smaller.seats()), 4)
        self.assertEqual({s.id for s in smaller.seats()}, {"s1-1", "s1-2", "s2-1", "s2-2"})

    def test_first_seat_wins_a_shared_cell(self):
        config = LayoutConfig(rows=1, columns=1)
        a = new_seat("v1", 1, 1, config, seat_id="a", settings=SETTINGS)
        b = new_seat("v1", 1, 1, config, seat_id="b", settings=SETTINGS)
        g = regenerate(config, [a, b], settings=SETTINGS)
        self.assertEqual([s.id for s in g.seats()], ["a"])

    def test_aisle_change_reflags_seats(self):
        g = _full_grid(2, 4)
        g2 = regenerate(g.config.toggle_aisle(2), g.seats(), settings=SETTINGS)
        self.assertEqual([s.position_x for s in g2.seats() if s.is_aisle], [2, 2])
        self.assertEqual({s.id for s in g2.seats()}, {s.id for s in g.seats()})


if __name__ == "__main__":
    unittest.main()
