import unittest

from seat_layout.grid import SeatGrid
from seat_layout.models import LayoutConfig
from seat_layout.reconcile import reconcile
from seat_layout.render import render_ascii
from seat_layout.settings import Settings


class TestRender(unittest.TestCase):
    def test_render_markers_and_aisles(self):
        config = LayoutConfig(rows=3, columns=4, aisles=[3], row_aisles=[3], premium_rows=[1], crew_seats=["D2"])
        g = reconcile(SeatGrid(config), 10, vessel_id="v1", settings=Settings())
        lines = render_ascii(g).splitlines()
        self.assertIn("A", lines[0])
        self.assertIn("|", lines[0])
        self.assertIn("A1*", lines[1])
        self.assertIn(".", lines[2])
        self.assertEqual(lines[3], "")
        self.assertEqual(len(lines), 5)

    def test_long_labels_are_truncated(self):
        config = LayoutConfig(rows=10, columns=1, premium_rows=[10])
        g = reconcile(SeatGrid(config), 10, vessel_id="v1", settings=Settings())
        self.assertIn("A1\u2026", render_ascii(g, cell_width=3).splitlines()[-1])


if __name__ == "__main__":
    unittest.main()
