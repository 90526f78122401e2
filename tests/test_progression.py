"""
Tests for Progression Tracking

Checks the deltas produced for a solved puzzle and a finished cycle, and
that the same change is mirrored onto the local set and user.
"""

import unittest

from trainer.models import PuzzleRef, PuzzleSet, ThemeCount, UserProfile
from trainer.progression import ProgressionTracker, truncate_time


def make_set(current_time=0.0):
    return PuzzleSet(
        id="set-1",
        user_id="user-1",
        puzzles=[
            PuzzleRef(id="r1", puzzle_id="p1", order=0),
            PuzzleRef(id="r2", puzzle_id="p2", order=1, streak=2),
        ],
        current_time=current_time,
    )


def make_user():
    return UserProfile(
        id="user-1",
        total_puzzle_solved=10,
        puzzle_solved_by_categories=[ThemeCount("fork", 4), ThemeCount("pin", 1)],
    )


class TestTruncateTime(unittest.TestCase):

    def test_truncates_instead_of_rounding(self):
        """Test times are truncated rather than rounded."""
        self.assertEqual(truncate_time(4.567), 4.56)
        self.assertEqual(truncate_time(4.999), 4.99)
        self.assertEqual(truncate_time(0.0), 0.0)


class TestPuzzleCommit(unittest.TestCase):

    def setUp(self):
        self.puzzle_set = make_set()
        self.user = make_user()
        self.tracker = ProgressionTracker(self.puzzle_set, self.user)

    def test_set_delta_for_clean_fast_solve(self):
        """Test the set delta of a clean fast solve."""
        ref = self.puzzle_set.puzzles[0]
        commit = self.tracker.commit_puzzle(ref, mistakes=0, elapsed=3.456, did_cheat=False, themes=["fork"])

        self.assertEqual(commit.time_taken, 3.45)
        self.assertEqual(commit.grade, 5)
        self.assertEqual(commit.streak, 1)
        self.assertEqual(commit.set_delta.to_dict(), {
            "$inc": {"puzzles.$.count": 1, "currentTime": 3.456, "progression": 1},
            "$push": {
                "puzzles.$.mistakes": [0],
                "puzzles.$.timeTaken": [3.45],
                "puzzles.$.grades": [5],
            },
            "$set": {"puzzles.$.played": True, "puzzles.$.streak": 1},
        })

    def test_mistakes_add_penalty_and_reset_streak(self):
        """Test mistakes add the time penalty and reset the streak."""
        ref = self.puzzle_set.puzzles[1]
        commit = self.tracker.commit_puzzle(ref, mistakes=2, elapsed=10.0, did_cheat=False, themes=[])

        self.assertEqual(commit.grade, 2)
        self.assertEqual(commit.streak, 0)
        self.assertAlmostEqual(commit.time_with_penalty, 16.0)
        self.assertEqual(commit.set_delta.assign["puzzles.$.streak"], 0)
        self.assertAlmostEqual(self.tracker.timer_sum, 16.0)

    def test_grade_uses_prior_streak(self):
        """Test grading uses the streak from before this solve."""
        # r2 already has a streak of 2: a fast clean solve earns the top grade
        ref = self.puzzle_set.puzzles[1]
        commit = self.tracker.commit_puzzle(ref, mistakes=0, elapsed=2.0, did_cheat=False, themes=[])
        self.assertEqual(commit.grade, 6)
        self.assertEqual(commit.streak, 3)

    def test_cheating_grades_one(self):
        """Test a revealed solution grades 1."""
        ref = self.puzzle_set.puzzles[0]
        commit = self.tracker.commit_puzzle(ref, mistakes=0, elapsed=1.0, did_cheat=True, themes=[])
        self.assertEqual(commit.grade, 1)
        self.assertTrue(commit.did_cheat)

    def test_local_state_mirrors_delta(self):
        """Test the local set copy matches the delta."""
        ref = self.puzzle_set.puzzles[0]
        self.tracker.commit_puzzle(ref, mistakes=1, elapsed=7.891, did_cheat=False, themes=[])

        self.assertTrue(ref.played)
        self.assertEqual(ref.count, 1)
        self.assertEqual(ref.mistakes, [1])
        self.assertEqual(ref.time_taken, [7.89])
        self.assertEqual(ref.grades, [3])
        self.assertEqual(self.puzzle_set.progression, 1)
        self.assertAlmostEqual(self.puzzle_set.current_time, 10.891)

    def test_progression_never_exceeds_length(self):
        """Test local progression never goes past the set length."""
        ref = self.puzzle_set.puzzles[0]
        for _ in range(5):
            self.tracker.commit_puzzle(ref, mistakes=0, elapsed=1.0, did_cheat=False, themes=[])
        self.assertEqual(self.puzzle_set.progression, self.puzzle_set.length)


class TestUserStats(unittest.TestCase):

    def setUp(self):
        self.user = make_user()
        self.tracker = ProgressionTracker(make_set(), self.user)

    def test_user_delta_increments_known_and_pushes_new(self):
        """Test the user delta increments known themes and pushes new ones."""
        delta = self.tracker.user_delta(["pin", "mateIn2", "short"])
        self.assertEqual(delta.inc, {"totalPuzzleSolved": 1, "puzzleSolvedByCategories.1.count": 1})
        self.assertEqual(delta.push, {
            "puzzleSolvedByCategories": [
                {"title": "mateIn2", "count": 1},
                {"title": "short", "count": 1},
            ],
        })

    def test_user_delta_without_themes(self):
        """Test a puzzle without themes only bumps the solved total."""
        delta = self.tracker.user_delta([])
        self.assertEqual(delta.to_dict(), {"$inc": {"totalPuzzleSolved": 1}})

    def test_duplicate_themes_counted_once(self):
        """Test a repeated theme is counted once."""
        delta = self.tracker.user_delta(["endgame", "endgame"])
        self.assertEqual(delta.push["puzzleSolvedByCategories"], [{"title": "endgame", "count": 1}])

    def test_theme_counts_include_this_solve(self):
        """Test theme counts include the solve being committed."""
        counts = self.tracker.theme_counts(["fork", "endgame"])
        self.assertEqual([(t.title, t.count) for t in counts], [("fork", 5), ("endgame", 1)])

    def test_commit_updates_local_user(self):
        """Test committing updates the local user copy."""
        ref = self.tracker.puzzle_set.puzzles[0]
        self.tracker.commit_puzzle(ref, mistakes=0, elapsed=1.0, did_cheat=False, themes=["fork", "endgame"])
        self.assertEqual(self.user.total_puzzle_solved, 11)
        titles = {t.title: t.count for t in self.user.puzzle_solved_by_categories}
        self.assertEqual(titles, {"fork": 5, "pin": 1, "endgame": 1})


class TestSetCommit(unittest.TestCase):

    def test_total_time_and_reset(self):
        """Test the cycle total time and the reset that follows."""
        puzzle_set = make_set(current_time=20.0)
        user = make_user()
        tracker = ProgressionTracker(puzzle_set, user)
        for ref in puzzle_set.puzzles:
            tracker.commit_puzzle(ref, mistakes=1, elapsed=5.0, did_cheat=False, themes=[])

        commit = tracker.commit_set()

        # 20 banked + 2 * (5 + 3 penalty) + 1
        self.assertAlmostEqual(commit.total_time, 37.0)
        self.assertEqual(commit.set_delta.to_dict(), {
            "$inc": {"cycles": 1},
            "$push": {"times": [commit.total_time]},
            "$set": {"puzzles.$[].played": False, "currentTime": 0, "progression": 0},
        })
        self.assertEqual(commit.user_delta.to_dict(), {"$inc": {"totalSetCompleted": 1}})

        self.assertEqual(puzzle_set.cycles, 1)
        self.assertEqual(puzzle_set.times, [commit.total_time])
        self.assertEqual(puzzle_set.current_time, 0.0)
        self.assertEqual(puzzle_set.progression, 0)
        self.assertFalse(any(ref.played for ref in puzzle_set.puzzles))
        self.assertEqual(user.total_set_completed, 1)
        # Histories survive the reset
        self.assertEqual(puzzle_set.puzzles[0].grades, [3])

    def test_empty_pass_still_adds_constant(self):
        """Test a cycle with no solves this session still adds the constant."""
        tracker = ProgressionTracker(make_set(), make_user(), completion_bonus=1.0)
        self.assertEqual(tracker.commit_set().total_time, 1.0)


if __name__ == "__main__":
    unittest.main()
