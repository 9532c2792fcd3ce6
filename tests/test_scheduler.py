import threading
import time
import unittest

from qrlocator.config import SchedulerConfig
from qrlocator.exceptions import FrameSourceError
from qrlocator.scheduling.runner import ScanRunner
from qrlocator.scheduling.scheduler import AdaptiveScanScheduler
from qrlocator.scheduling.state import (
    advance,
    backoff_policy,
    initial_state,
    record_sample,
    rolling_mean,
)


class FakeClock:
    def __init__(self, t=0.0):
        self.t = t

    def __call__(self):
        return self.t

    def advance(self, seconds):
        self.t += seconds


class TestScheduleState(unittest.TestCase):
    def setUp(self):
        self.cfg = SchedulerConfig()

    def test_history_is_bounded_fifo(self):
        state = initial_state(self.cfg, running=True)
        for i in range(12):
            state = record_sample(state, float(i), self.cfg.history_size)
        self.assertEqual(state.history, tuple(float(i) for i in range(2, 12)))

    def test_negative_samples_are_clamped(self):
        state = record_sample(initial_state(self.cfg), -5.0, 10)
        self.assertEqual(state.history, (0.0,))

    def test_mean_needs_min_samples(self):
        state = initial_state(self.cfg, running=True)
        for _ in range(4):
            state = record_sample(state, 500.0, 10)
        self.assertIsNone(rolling_mean(state, 5))
        state = record_sample(state, 500.0, 10)
        self.assertEqual(rolling_mean(state, 5), 500.0)

    def test_advance_when_idle_is_a_no_op(self):
        state = initial_state(self.cfg)
        new_state, wake = advance(state, 10.0, 50.0, self.cfg)
        self.assertIs(new_state, state)
        self.assertIsNone(wake)

    def test_advance_schedules_after_interval(self):
        state = initial_state(self.cfg, running=True)
        state, wake = advance(state, 10.0, 50.0, self.cfg)
        self.assertAlmostEqual(wake, 10.2)
        self.assertEqual(state.history, (50.0,))
        self.assertFalse(state.over_budget)

    def test_backoff_policy_lengthens_and_relaxes(self):
        cfg = SchedulerConfig(interval_ms=200, max_interval_ms=400, latency_budget_ms=100)
        policy = backoff_policy(factor=1.5, relax=0.5)
        state = initial_state(cfg, running=True)
        for _ in range(5):
            state, _ = advance(state, 0.0, 150.0, cfg, policy)
        self.assertEqual(state.interval_ms, 300.0)  # first adjustment at the 5th sample
        for _ in range(2):
            state, _ = advance(state, 0.0, 150.0, cfg, policy)
        self.assertEqual(state.interval_ms, 400.0)  # capped
        self.assertTrue(state.over_budget)
        for _ in range(10):
            state, _ = advance(state, 0.0, 10.0, cfg, policy)
        self.assertEqual(state.interval_ms, 200.0)
        self.assertFalse(state.over_budget)

    def test_backoff_policy_rejects_bad_arguments(self):
        with self.assertRaises(ValueError):
            backoff_policy(factor=0.5)


class TestAdaptiveScanScheduler(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.calls = 0

    def make(self, cycle=None, **kwargs):
        def default_cycle():
            self.calls += 1
        return AdaptiveScanScheduler(cycle or default_cycle, SchedulerConfig(), clock=self.clock, **kwargs)

    def test_ten_samples_of_150ms_flag_overrun(self):
        overruns = []
        sched = self.make(on_overrun=lambda state, mean: overruns.append(mean))
        sched.start()
        for _ in range(10):
            sched.record(150.0)
        self.assertEqual(len(sched.state.history), 10)
        self.assertEqual(rolling_mean(sched.state), 150.0)
        self.assertTrue(sched.state.over_budget)
        self.assertEqual(overruns[-1], 150.0)
        self.assertEqual(len(overruns), 6)  # from the 5th sample on
        self.assertEqual(sched.state.interval_ms, 200.0)  # default policy only monitors

    def test_tick_measures_cycle_duration(self):
        def cycle():
            self.clock.advance(0.15)
        sched = self.make(cycle)
        sched.start()
        wake = sched.tick()
        self.assertEqual(len(sched.state.history), 1)
        self.assertAlmostEqual(sched.state.history[0], 150.0)
        self.assertAlmostEqual(wake, 0.15 + 0.2)

    def test_start_twice_is_a_no_op(self):
        sched = self.make()
        self.assertTrue(sched.start())
        sched.record(20.0)
        self.assertFalse(sched.start())
        self.assertEqual(len(sched.state.history), 1)

    def test_stop_resets_state_and_blocks_cycles(self):
        sched = self.make()
        sched.start()
        sched.tick()
        sched.stop()
        self.assertFalse(sched.running)
        self.assertEqual(sched.state.history, ())
        self.assertEqual(sched.state.interval_ms, 200.0)
        self.clock.advance(1.0)
        self.assertFalse(sched.due())
        self.assertIsNone(sched.tick())
        self.assertEqual(self.calls, 1)

    def test_stop_during_cycle_discards_sample(self):
        holder = {}

        def cycle():
            holder["sched"].stop()
        sched = self.make(cycle)
        holder["sched"] = sched
        sched.start()
        self.assertIsNone(sched.tick())
        self.assertEqual(sched.state.history, ())

    def test_frame_source_failure_stops(self):
        def cycle():
            raise FrameSourceError("camera unplugged")
        sched = self.make(cycle)
        sched.start()
        self.assertIsNone(sched.tick())
        self.assertFalse(sched.running)

    def test_other_cycle_errors_keep_running(self):
        def cycle():
            raise RuntimeError("bad frame")
        sched = self.make(cycle)
        sched.start()
        self.assertIsNotNone(sched.tick())
        self.assertTrue(sched.running)

    def test_reentrant_tick_is_skipped(self):
        holder = {"inner": []}

        def cycle():
            self.calls += 1
            holder["inner"].append(holder["sched"].tick())
        sched = self.make(cycle)
        holder["sched"] = sched
        sched.start()
        sched.tick()
        self.assertEqual(self.calls, 1)
        self.assertEqual(len(holder["inner"]), 1)

    def test_simulated_second_of_scanning(self):
        sched = self.make()
        sched.start()
        step = 0.01
        while self.clock.t < 1.0:
            if sched.due():
                sched.tick()
            self.clock.advance(step)
        # t = 0.0, 0.2, 0.4, 0.6, 0.8 (+ float slack on the last step)
        self.assertIn(self.calls, (5, 6))

    def test_stop_waits_for_cycle_that_passed_running_check(self):
        claimed = threading.Event()
        release = threading.Event()
        stop_returned = threading.Event()
        seen = []

        def pausing_clock():
            # first reading after the running check is the cycle start
            if not claimed.is_set():
                claimed.set()
                release.wait(2.0)
            return 0.0

        def cycle():
            seen.append(stop_returned.is_set())

        sched = AdaptiveScanScheduler(cycle, SchedulerConfig())
        sched.start()
        sched.clock = pausing_clock
        worker = threading.Thread(target=sched.tick)
        worker.start()
        self.assertTrue(claimed.wait(2.0))

        def stopper():
            sched.stop()
            stop_returned.set()
        stopping = threading.Thread(target=stopper)
        stopping.start()
        stopping.join(0.1)
        self.assertTrue(stopping.is_alive())  # blocked on the claimed cycle

        release.set()
        stopping.join(2.0)
        worker.join(2.0)
        self.assertEqual(seen, [False])
        self.assertFalse(sched.running)
        self.assertEqual(sched.state.history, ())
        self.assertIsNone(sched.tick())
        self.assertEqual(seen, [False])


class TestScanRunner(unittest.TestCase):
    def test_no_cycle_after_stop(self):
        calls = []
        lock = threading.Lock()

        def cycle():
            with lock:
                calls.append(time.monotonic())

        sched = AdaptiveScanScheduler(cycle, SchedulerConfig(interval_ms=20))
        runner = ScanRunner(sched)
        self.assertTrue(runner.start())
        self.assertFalse(runner.start())

        deadline = time.monotonic() + 2.0
        while len(calls) < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        runner.stop(timeout=2.0)
        self.assertGreaterEqual(len(calls), 3)
        self.assertFalse(runner.alive)

        with lock:
            count = len(calls)
        time.sleep(0.1)  # five intervals
        self.assertEqual(len(calls), count)

    def test_runner_exits_when_source_fails(self):
        def cycle():
            raise FrameSourceError("gone")

        sched = AdaptiveScanScheduler(cycle, SchedulerConfig(interval_ms=10))
        runner = ScanRunner(sched)
        runner.start()
        deadline = time.monotonic() + 2.0
        while runner.alive and time.monotonic() < deadline:
            time.sleep(0.01)
        self.assertFalse(runner.alive)
        self.assertFalse(sched.running)
        runner.stop()

    def test_restart_refused_while_old_loop_lingers(self):
        entered = threading.Event()
        release = threading.Event()

        def cycle():
            entered.set()
            release.wait(2.0)

        sched = AdaptiveScanScheduler(cycle, SchedulerConfig(interval_ms=10))
        runner = ScanRunner(sched)
        runner.start()
        self.assertTrue(entered.wait(2.0))
        with self.assertLogs("qrlocator.scheduling", level="WARNING"):
            runner.stop(timeout=0.05)
        self.assertTrue(runner.alive)
        self.assertFalse(runner.start())

        release.set()
        runner.stop(timeout=2.0)
        self.assertFalse(runner.alive)
        self.assertTrue(runner.start())
        runner.stop(timeout=2.0)
        self.assertFalse(runner.alive)


if __name__ == "__main__":
    unittest.main()
