import time
from collections import deque


class FPS:
    """Frames per second averaged over the last `window` ticks."""
    def __init__(self, window=10):
        self.stamps = deque(maxlen=max(2, int(window)))
        self.value = 0.0

    def tick(self):
        now = time.monotonic()
        self.stamps.append(now)
        if len(self.stamps) >= 2:
            span = self.stamps[-1] - self.stamps[0]
            if span > 0:
                self.value = (len(self.stamps) - 1) / span
        return self.value
