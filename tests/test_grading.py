"""
Tests for Grade Calculation

Covers every rule of the grade table, first match wins.
All tests are deterministic - no clocks involved.
"""

import unittest

from trainer.grading import compute_grade


class TestComputeGrade(unittest.TestCase):
    """Grade table, checked top to bottom."""

    def test_cheating_is_always_grade_1(self):
        """Test a revealed solution always grades 1."""
        self.assertEqual(compute_grade(True, 0, 1.0, prior_streak=5), 1)

    def test_three_or_more_mistakes_is_grade_1(self):
        """Test three or more mistakes grade 1."""
        self.assertEqual(compute_grade(False, 3, 2.0), 1)
        self.assertEqual(compute_grade(False, 7, 2.0), 1)

    def test_two_mistakes_is_grade_2(self):
        """Test two mistakes grade 2."""
        self.assertEqual(compute_grade(False, 2, 1.0), 2)

    def test_one_mistake_and_slow_is_grade_2(self):
        """Test one mistake on a slow solve grades 2."""
        self.assertEqual(compute_grade(False, 1, 20.0), 2)
        self.assertEqual(compute_grade(False, 1, 45.5), 2)

    def test_one_mistake_is_grade_3(self):
        """Test one mistake grades 3."""
        self.assertEqual(compute_grade(False, 1, 3.0), 3)
        self.assertEqual(compute_grade(False, 1, 19.99), 3)

    def test_clean_but_slow_is_grade_3(self):
        """Test a clean but slow solve grades 3."""
        self.assertEqual(compute_grade(False, 0, 20.0), 3)

    def test_clean_and_steady_is_grade_4(self):
        """Test a clean solve at normal pace grades 4."""
        self.assertEqual(compute_grade(False, 0, 6.0), 4)
        self.assertEqual(compute_grade(False, 0, 19.99), 4)

    def test_fast_clean_solve_without_streak_is_grade_5(self):
        """Test a fast clean solve without a streak grades 5."""
        self.assertEqual(compute_grade(False, 0, 5.99, prior_streak=0), 5)
        self.assertEqual(compute_grade(False, 0, 2.0, prior_streak=1), 5)

    def test_fast_clean_solve_with_streak_is_grade_6(self):
        """Test a fast clean solve on a streak grades 6."""
        self.assertEqual(compute_grade(False, 0, 2.0, prior_streak=2), 6)
        self.assertEqual(compute_grade(False, 0, 0.0, prior_streak=10), 6)

    def test_zero_time_is_accepted(self):
        """Test a zero second solve is accepted."""
        self.assertEqual(compute_grade(False, 0, 0.0), 5)

    def test_negative_mistakes_rejected(self):
        """Test negative mistakes are rejected."""
        with self.assertRaises(ValueError):
            compute_grade(False, -1, 3.0)

    def test_grade_is_deterministic(self):
        """Test the same inputs always give the same grade."""
        args = (False, 1, 12.34, 3)
        self.assertEqual(compute_grade(*args), compute_grade(*args))

    def test_grade_always_in_range(self):
        """Test every grade falls between 1 and 6."""
        for cheat in (False, True):
            for mistakes in range(0, 5):
                for t in (0.0, 5.99, 6.0, 19.99, 20.0, 100.0):
                    for streak in (0, 1, 2, 3):
                        grade = compute_grade(cheat, mistakes, t, streak)
                        self.assertGreaterEqual(grade, 1)
                        self.assertLessEqual(grade, 6)


if __name__ == "__main__":
    unittest.main()
