import logging
from typing import List, Optional

import numpy as np

from qrlocator.config import DetectorConfig
from qrlocator.detectors.fallback import fallback_regions
from qrlocator.detectors.grid_search import GridCandidateSearch
from qrlocator.detectors.postprocess import expand_regions, non_max_suppression
from qrlocator.imaging.grayscale import to_luminance

logger = logging.getLogger(__name__)


class QRRegionDetector:
    """
    Finds candidate QR regions in a frame:
      grid search -> (fallback tiling if off / empty) -> NMS -> expansion
    """
    def __init__(self, cfg: Optional[DetectorConfig] = None, search: Optional[GridCandidateSearch] = None):
        self.cfg = cfg or DetectorConfig()
        self.search = search
        if self.search is None and self.cfg.enabled:
            self.search = GridCandidateSearch.from_config(self.cfg)

    def candidates(self, luminance: np.ndarray) -> List:
        """Raw candidates before suppression; fallback tiles if the search has nothing."""
        height, width = luminance.shape[:2]
        regions = []
        if self.search is not None:
            regions = self.search.search(luminance)

        if not regions:
            reason = "search disabled" if self.search is None else "no heuristic candidates"
            logger.debug("Using fallback tiling for %dx%d image (%s)", width, height, reason)
            regions = fallback_regions(width, height)
        return regions

    def detect(self, frame: np.ndarray) -> List:
        """
        Returns expanded candidate regions, highest confidence first.
        frame may be BGR, BGRA or already grayscale.
        """
        luminance = to_luminance(frame)
        height, width = luminance.shape[:2]

        regions = self.candidates(luminance)
        kept = non_max_suppression(regions, self.cfg.nms_iou_threshold)
        logger.debug("Candidates: %d raw, %d after NMS", len(regions), len(kept))
        return expand_regions(kept, width, height, self.cfg.expansion_fraction)
