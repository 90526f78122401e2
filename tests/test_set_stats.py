"""
Tests for Set Review Statistics
"""

import unittest

from trainer.models import PuzzleRef, PuzzleSet
from trainer.set_stats import (
    current_run_stats,
    format_time,
    grade_band,
    overview_stats,
    progress_stats,
    puzzle_bands,
)


def make_set(**overrides):
    values = dict(
        id="s1",
        puzzles=[
            PuzzleRef(id="r2", puzzle_id="p2", order=1, grades=[6, 6], mistakes=[0, 0], time_taken=[3.0, 2.0]),
            PuzzleRef(id="r1", puzzle_id="p1", order=0, grades=[1, 2], mistakes=[3, 2], time_taken=[30.0, 25.0]),
            PuzzleRef(id="r3", puzzle_id="p3", order=2),
        ],
        cycles=2,
        times=[100.0, 90.0],
    )
    values.update(overrides)
    return PuzzleSet(**values)


class TestFormatting(unittest.TestCase):

    def test_format_time(self):
        """Test formatting seconds for display."""
        self.assertEqual(format_time(0), "0:00")
        self.assertEqual(format_time(65.9), "1:05")
        self.assertEqual(format_time(3725), "1:02:05")

    def test_grade_band(self):
        """Test mapping an average grade to its band."""
        self.assertEqual(grade_band(0), "unplayed")
        self.assertEqual(grade_band(2.5), "red")
        self.assertEqual(grade_band(3), "orange")
        self.assertEqual(grade_band(4.99), "orange")
        self.assertEqual(grade_band(5), "green")


class TestSetStats(unittest.TestCase):

    def test_puzzle_bands_in_set_order(self):
        """Test puzzle bands follow set order."""
        bands = puzzle_bands(make_set())
        self.assertEqual([b["PuzzleId"] for b in bands], ["p1", "p2", "p3"])
        self.assertEqual([b["band"] for b in bands], ["red", "green", "unplayed"])

    def test_overview(self):
        """Test the overview of a played set."""
        stats = {s.title: s.stat for s in overview_stats(make_set())}
        self.assertEqual(stats["Puzzles"], "3")
        self.assertEqual(stats["Cycles completed"], "2")
        self.assertEqual(stats["Best time"], "1:30")
        self.assertEqual(stats["Average grade"], "3.75")

    def test_overview_of_fresh_set(self):
        """Test the overview of a set never played."""
        stats = {s.title: s.stat for s in overview_stats(make_set(times=[], puzzles=[]))}
        self.assertEqual(stats["Best time"], "-")
        self.assertEqual(stats["Average grade"], "-")

    def test_faster_cycle_is_an_improvement(self):
        """Test a faster cycle counts as an improvement."""
        last_cycle = progress_stats(make_set())[0]
        self.assertEqual(last_cycle.stat, "1:30")
        self.assertEqual(last_cycle.change, "0:10")
        self.assertEqual(last_cycle.direction, "up")

    def test_slower_cycle(self):
        """Test a slower cycle is marked as going down."""
        last_cycle = progress_stats(make_set(times=[90.0, 120.0]))[0]
        self.assertEqual(last_cycle.direction, "down")

    def test_single_cycle_has_no_change(self):
        """Test a single cycle has no change to report."""
        last_cycle = progress_stats(make_set(times=[90.0]))[0]
        self.assertFalse(last_cycle.has_change)

    def test_per_puzzle_averages(self):
        """Test per puzzle averages."""
        stats = {s.title: s.stat for s in progress_stats(make_set())}
        self.assertEqual(stats["Mistakes per puzzle"], "1.25")
        self.assertEqual(stats["Time per puzzle"], "15.00s")

    def test_current_run(self):
        """Test the in progress run figures."""
        self.assertEqual(current_run_stats(make_set()), [])

        stats = {s.title: s.stat for s in current_run_stats(make_set(current_time=45.0, progression=2))}
        self.assertEqual(stats["Progression"], "2 / 3")
        self.assertEqual(stats["Time so far"], "0:45")
        self.assertEqual(stats["Time per puzzle"], "22.50s")


if __name__ == "__main__":
    unittest.main()
