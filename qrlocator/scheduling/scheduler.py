import logging
import threading
import time
from typing import Callable, Optional

from qrlocator.config import SchedulerConfig
from qrlocator.exceptions import FrameSourceError
from qrlocator.scheduling.state import (
    AdjustmentPolicy,
    ScanScheduleState,
    advance,
    hold_interval,
    initial_state,
    rolling_mean,
)

logger = logging.getLogger(__name__)


class AdaptiveScanScheduler:
    """
    Runs `cycle` (one grab + detect + decode pass) at an interval that is
    re-evaluated after each cycle from the rolling mean of recent durations.

    Idle -> Running on start(), back to Idle on stop() or when the cycle
    raises FrameSourceError. start() while running is a no-op.

    The scheduler never sleeps: tick() runs one cycle and returns the clock
    time of the next one, so a driver (ScanRunner, a UI loop, or a test with
    a fake clock) decides how to wait.
    """

    def __init__(
        self,
        cycle: Callable[[], object],
        cfg: Optional[SchedulerConfig] = None,
        policy: AdjustmentPolicy = hold_interval,
        clock: Callable[[], float] = time.monotonic,
        on_overrun: Optional[Callable[[ScanScheduleState, float], None]] = None,
    ):
        self.cycle = cycle
        self.cfg = cfg or SchedulerConfig()
        self.policy = policy
        self.clock = clock
        self.on_overrun = on_overrun

        self._state_lock = threading.Condition()
        self._cycle_lock = threading.Lock()
        self._state = initial_state(self.cfg)
        self._next_wake: Optional[float] = None
        # ident of the thread whose cycle is between claim and completion
        self._in_flight: Optional[int] = None
        self.cycles_run = 0
        self.last_result = None

    @property
    def state(self) -> ScanScheduleState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state.running

    @property
    def next_wake(self) -> Optional[float]:
        return self._next_wake

    def start(self) -> bool:
        """Returns False if already running."""
        with self._state_lock:
            if self._state.running:
                logger.debug("Scheduler already running, start() ignored")
                return False
            self._state = initial_state(self.cfg, running=True)
            self._next_wake = self.clock()
            self.cycles_run = 0
        logger.info("Scan scheduler started (interval %.0f ms)", self.cfg.interval_ms)
        return True

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Back to Idle. A cycle already in flight on another thread is allowed
        to finish and stop() waits for it (up to `timeout` seconds), so once
        this returns no cycle is running or about to run.
        """
        me = threading.get_ident()
        with self._state_lock:
            was_running = self._state.running
            self._state = initial_state(self.cfg)
            self._next_wake = None
            settled = self._state_lock.wait_for(
                lambda: self._in_flight is None or self._in_flight == me, timeout
            )
        if was_running:
            logger.info("Scan scheduler stopped after %d cycles", self.cycles_run)
        if not settled:
            logger.warning("Scan cycle still running %.2f s after stop()", timeout)

    def due(self, now: Optional[float] = None) -> bool:
        now = self.clock() if now is None else now
        wake = self._next_wake
        return self.running and wake is not None and now >= wake

    def record(self, duration_ms: float, now: Optional[float] = None) -> Optional[float]:
        """
        Feed one measured cycle duration through the transition.
        Returns the next wake time, or None when not running.
        """
        now = self.clock() if now is None else now
        with self._state_lock:
            if not self._state.running:
                return None
            self._state, self._next_wake = advance(self._state, now, duration_ms, self.cfg, self.policy)
            state = self._state

        if state.over_budget:
            mean = rolling_mean(state, self.cfg.min_samples)
            logger.warning(
                "Performance warning: average scan time %.1f ms over %.0f ms budget (interval %.0f ms)",
                mean, self.cfg.latency_budget_ms, state.interval_ms,
            )
            if self.on_overrun is not None:
                self.on_overrun(state, mean)
        return self._next_wake

    def tick(self) -> Optional[float]:
        """
        Run one cycle now. Returns the next wake time, or None if the
        scheduler is (or became) idle. A tick that arrives while another
        cycle is still running is skipped.
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.debug("Previous scan cycle still running, tick skipped")
            return self._next_wake
        try:
            # check and claim atomically against stop()
            with self._state_lock:
                if not self._state.running:
                    return None
                self._in_flight = threading.get_ident()
            try:
                return self._run_cycle()
            finally:
                with self._state_lock:
                    self._in_flight = None
                    self._state_lock.notify_all()
        finally:
            self._cycle_lock.release()

    def _run_cycle(self) -> Optional[float]:
        started = self.clock()
        try:
            self.last_result = self.cycle()
        except FrameSourceError as ex:
            logger.error("Frame source failed, stopping scanner: %s", ex)
            self.stop()
            return None
        except Exception:
            logger.exception("Scan cycle failed")
        finished = self.clock()
        self.cycles_run += 1

        return self.record((finished - started) * 1000.0, now=finished)
