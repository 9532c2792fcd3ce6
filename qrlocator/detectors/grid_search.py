from typing import List, Optional, Sequence

import numpy as np

from qrlocator.detectors.pattern_scorer import PatternScorer
from qrlocator.models import HeuristicRegion

DEFAULT_SCALES = (0.1, 0.2, 0.3, 0.5, 0.7, 1.0)


class GridCandidateSearch:
    """
    Exhaustive fixed-grid search for QR-like squares.

    The image is cut into grid_size x grid_size cells of floor(W / grid) x
    floor(H / grid) px. Remainder pixels on the right and bottom edges are
    not searched. Inside every cell a square window is slid for each scale of
    the cell's shorter side, and every window scoring above the threshold is
    returned as a heuristic region in image coordinates.
    """

    def __init__(
        self,
        scorer: Optional[PatternScorer] = None,
        grid_size: int = 7,
        scales: Sequence[float] = DEFAULT_SCALES,
        step_fraction: float = 0.1,
        min_pattern_size: int = 21,
        confidence_threshold: float = 0.3,
    ):
        if grid_size < 1:
            raise ValueError("grid_size must be >= 1")
        self.scorer = scorer or PatternScorer()
        self.grid_size = int(grid_size)
        self.scales = tuple(float(s) for s in scales)
        self.step_fraction = float(step_fraction)
        self.min_pattern_size = int(min_pattern_size)
        self.confidence_threshold = float(confidence_threshold)

    @classmethod
    def from_config(cls, cfg, scorer: Optional[PatternScorer] = None):
        return cls(
            scorer=scorer,
            grid_size=cfg.grid_size,
            scales=cfg.scales,
            step_fraction=cfg.step_fraction,
            min_pattern_size=cfg.min_pattern_size,
            confidence_threshold=cfg.confidence_threshold,
        )

    def window_sizes(self, cell_w: int, cell_h: int) -> List[int]:
        min_side = min(cell_w, cell_h)
        sizes = []
        for scale in self.scales:
            size = int(min_side * scale)
            if size < self.min_pattern_size:
                continue
            sizes.append(size)
        return sizes

    def search(self, luminance: np.ndarray, grid_size: Optional[int] = None) -> List[HeuristicRegion]:
        grid = int(grid_size) if grid_size is not None else self.grid_size
        if grid < 1:
            raise ValueError("grid_size must be >= 1")

        height, width = luminance.shape[:2]
        cell_w = width // grid
        cell_h = height // grid
        if cell_w <= 0 or cell_h <= 0:
            return []

        sizes = self.window_sizes(cell_w, cell_h)
        regions = []
        for gy in range(grid):
            for gx in range(grid):
                start_x = gx * cell_w
                start_y = gy * cell_h
                for size in sizes:
                    regions.extend(self._scan_cell(luminance, start_x, start_y, cell_w, cell_h, size))
        return regions

    def _scan_cell(self, luminance, start_x, start_y, cell_w, cell_h, size):
        step = max(1, int(size * self.step_fraction))
        found = []
        for y in range(0, cell_h - size + 1, step):
            for x in range(0, cell_w - size + 1, step):
                conf = self.scorer.score_window(luminance, start_x + x, start_y + y, size, size)
                if conf > self.confidence_threshold:
                    found.append(HeuristicRegion(
                        x=start_x + x,
                        y=start_y + y,
                        width=size,
                        height=size,
                        confidence=conf,
                    ))
        return found
