import logging
import threading
from typing import Optional

from qrlocator.scheduling.scheduler import AdaptiveScanScheduler

logger = logging.getLogger(__name__)


class ScanRunner:
    """
    Drives an AdaptiveScanScheduler from a single background thread.
    Cycles run back to back on that thread, so they can never overlap.
    stop() wakes the thread immediately instead of waiting out the interval.
    """
    def __init__(self, scheduler: AdaptiveScanScheduler):
        self.scheduler = scheduler
        self._wake = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        if self.alive or not self.scheduler.start():
            return False
        self._wake.clear()
        self._thread = threading.Thread(target=self._loop, name="qr-scan-loop", daemon=True)
        self._thread.start()
        return True

    def stop(self, timeout: Optional[float] = None) -> None:
        self._wake.set()
        self.scheduler.stop(timeout)
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)
        if thread.is_alive():
            logger.warning("Scan loop still alive after stop(timeout=%s)", timeout)
            return
        self._thread = None

    def _loop(self):
        clock = self.scheduler.clock
        while self.scheduler.running:
            wake = self.scheduler.next_wake
            if wake is None:
                break
            delay = wake - clock()
            if delay > 0 and self._wake.wait(delay):
                break
            if self.scheduler.tick() is None:
                break
        logger.debug("Scan loop exited")
