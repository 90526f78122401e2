"""
Tests for the session event bus, commit queue and set clock
"""

import unittest

from trainer.commits import CommitQueue
from trainer.errors import PersistenceFailure
from trainer.events import EventBus, EventKind
from trainer.timer import SetClock


class TestEventBus(unittest.TestCase):

    def test_subscribe_and_unsubscribe(self):
        """Test listeners stop receiving events once unsubscribed."""
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe(seen.append)

        bus.emit(EventKind.TIMER, running=True)
        unsubscribe()
        bus.emit(EventKind.TIMER, running=False)

        self.assertEqual(len(seen), 1)
        self.assertEqual(seen[0].data, {"running": True})

    def test_failing_listener_does_not_stop_others(self):
        """Test a failing listener does not stop the others."""
        bus = EventBus()
        seen = []

        def broken(event):
            raise RuntimeError("listener bug")

        bus.subscribe(broken)
        bus.subscribe(seen.append)
        with self.assertLogs("trainer.events", level="ERROR"):
            bus.emit(EventKind.NAVIGATE, destination="dashboard")
        self.assertEqual(len(seen), 1)

    def test_error_is_recorded_and_published(self):
        """Test errors are recorded and published as events."""
        bus = EventBus()
        seen = []
        bus.subscribe(seen.append)
        exc = PersistenceFailure("offline")

        bus.error(exc, context="puzzle commit r1")

        self.assertEqual(bus.errors, [exc])
        self.assertEqual(seen[0].kind, EventKind.ERROR)
        self.assertEqual(seen[0].data["context"], "puzzle commit r1")


class TestCommitQueue(unittest.IsolatedAsyncioTestCase):

    async def test_jobs_run_in_order_and_failures_reported(self):
        """Test commit jobs run in order and failures are reported."""
        done = []
        failures = []
        queue = CommitQueue(lambda exc, label: failures.append((label, exc)))

        async def ok(name):
            done.append(name)

        async def fail():
            raise PersistenceFailure("rejected")

        queue.submit("first", lambda: ok("first"))
        queue.submit("broken", fail)
        queue.submit("last", lambda: ok("last"))
        await queue.join()
        await queue.close()

        self.assertEqual(done, ["first", "last"])
        self.assertEqual([label for label, _ in failures], ["broken"])
        self.assertEqual(queue.pending, 0)


class TestSetClock(unittest.TestCase):

    def test_pause_and_resume(self):
        """Test the timer stops counting while paused."""
        now = [0.0]
        clock = SetClock(10.0, penalty_per_mistake=3.0, clock=lambda: now[0])

        clock.start()
        now[0] = 5.0
        clock.pause()
        now[0] = 50.0
        self.assertFalse(clock.running)
        self.assertEqual(clock.elapsed, 15.0)

        clock.resume()
        now[0] = 52.0
        self.assertEqual(clock.elapsed, 17.0)
        self.assertEqual(clock.display(2), 23.0)


if __name__ == "__main__":
    unittest.main()
