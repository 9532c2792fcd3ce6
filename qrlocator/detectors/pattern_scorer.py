from functools import lru_cache
from typing import Tuple

import numpy as np

DARK = 0.0
LIGHT = 255.0
LIGHT_LEVEL = 128
VARIANCE_NORM = 128.0 * 128.0


def expected_finder_value(position: float, size: int) -> float:
    """
    Expected brightness at `position` along a finder marker of `size` px.
    The marker reads dark-light-dark-light-dark in 1:1:3:1:1 units.
    """
    pos = position / (size / 7.0)
    if pos < 1 or pos >= 6:
        return DARK
    if pos < 2:
        return LIGHT
    if pos < 5:
        return DARK
    return LIGHT


@lru_cache(maxsize=256)
def finder_profile(size: int) -> Tuple[np.ndarray, np.ndarray]:
    """Sample offsets along one midline and the brightness expected at each."""
    step = max(1, size // 7)
    offsets = np.arange(0, size, step, dtype=np.int64)
    expected = np.array([expected_finder_value(o, size) for o in offsets], dtype=np.float64)
    offsets.setflags(write=False)
    expected.setflags(write=False)
    return offsets, expected


def _as_rect(rect):
    if isinstance(rect, (tuple, list)):
        x, y, w, h = rect
        return int(x), int(y), int(w), int(h)
    return int(rect.x), int(rect.y), int(rect.width), int(rect.height)


class PatternScorer:
    """
    Heuristic "does this square look like a QR code" score in [0, 1].

    The score is the plain mean of five sub-scores:
      - finder marker match at the top-left, top-right and bottom-left corners
      - light quiet zone just outside the rectangle
      - luminance variance in the central data area
    A sub-check with nothing to sample scores 0 instead of being skipped,
    so tiny or image-clipped rectangles are pushed down.
    """

    def __init__(
        self,
        finder_fraction: float = 0.14,
        min_finder_size: int = 7,
        quiet_zone_fraction: float = 0.05,
        data_start: float = 0.2,
        data_end: float = 0.8,
        data_stride: int = 2,
    ):
        self.finder_fraction = float(finder_fraction)
        self.min_finder_size = int(min_finder_size)
        self.quiet_zone_fraction = float(quiet_zone_fraction)
        self.data_start = float(data_start)
        self.data_end = float(data_end)
        self.data_stride = max(1, int(data_stride))

    def score(self, luminance: np.ndarray, rect) -> float:
        """rect: a Region or an (x, y, width, height) tuple."""
        x, y, w, h = _as_rect(rect)
        return self.score_window(luminance, x, y, w, h)

    def score_window(self, luminance: np.ndarray, x: int, y: int, w: int, h: int) -> float:
        if w <= 0 or h <= 0:
            return 0.0

        side = min(w, h)
        finder = int(side * self.finder_fraction)

        total = 0.0
        total += self.finder_score(luminance, x, y, finder)
        total += self.finder_score(luminance, x + w - finder, y, finder)
        total += self.finder_score(luminance, x, y + h - finder, finder)
        total += self.quiet_zone_score(luminance, x, y, w, h)
        total += self.data_variation_score(luminance, x, y, w, h)

        return min(1.0, max(0.0, total / 5.0))

    def finder_score(self, luminance: np.ndarray, x: int, y: int, size: int) -> float:
        if size < self.min_finder_size:
            return 0.0

        img_h, img_w = luminance.shape[:2]
        offsets, expected = finder_profile(size)
        total = 0.0
        checks = 0

        # horizontal scan through the middle row
        mid_y = y + size // 2
        if 0 <= mid_y < img_h:
            cols = x + offsets
            ok = (cols >= 0) & (cols < img_w)
            if ok.any():
                samples = luminance[mid_y, cols[ok]].astype(np.float64)
                total += float(np.sum(1.0 - np.abs(samples - expected[ok]) / 255.0))
                checks += int(ok.sum())

        # vertical scan through the middle column
        mid_x = x + size // 2
        if 0 <= mid_x < img_w:
            rows = y + offsets
            ok = (rows >= 0) & (rows < img_h)
            if ok.any():
                samples = luminance[rows[ok], mid_x].astype(np.float64)
                total += float(np.sum(1.0 - np.abs(samples - expected[ok]) / 255.0))
                checks += int(ok.sum())

        return total / checks if checks > 0 else 0.0

    def quiet_zone_score(self, luminance: np.ndarray, x: int, y: int, w: int, h: int) -> float:
        img_h, img_w = luminance.shape[:2]
        border = max(1, int(min(w, h) * self.quiet_zone_fraction))

        # four strips around the rectangle; top/bottom include the corners
        strips = (
            (y - border, y, x - border, x + w + border),
            (y + h, y + h + border, x - border, x + w + border),
            (y, y + h, x - border, x),
            (y, y + h, x + w, x + w + border),
        )
        light = 0
        count = 0
        for r1, r2, c1, c2 in strips:
            r1, r2 = max(0, r1), min(img_h, r2)
            c1, c2 = max(0, c1), min(img_w, c2)
            if r2 <= r1 or c2 <= c1:
                continue
            patch = luminance[r1:r2, c1:c2]
            light += int(np.count_nonzero(patch > LIGHT_LEVEL))
            count += patch.size

        return light / count if count > 0 else 0.0

    def data_variation_score(self, luminance: np.ndarray, x: int, y: int, w: int, h: int) -> float:
        img_h, img_w = luminance.shape[:2]
        x1 = max(0, x + int(w * self.data_start))
        x2 = min(img_w, x + int(w * self.data_end))
        y1 = max(0, y + int(h * self.data_start))
        y2 = min(img_h, y + int(h * self.data_end))
        if x2 <= x1 or y2 <= y1:
            return 0.0

        patch = luminance[y1:y2:self.data_stride, x1:x2:self.data_stride]
        if patch.size == 0:
            return 0.0
        variance = float(np.var(patch, dtype=np.float64))
        return min(1.0, variance / VARIANCE_NORM)
