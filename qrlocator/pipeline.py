import logging
import time
from typing import List, Optional

import numpy as np

from qrlocator.config import ScanConfig, load_config
from qrlocator.detectors.region_detector import QRRegionDetector
from qrlocator.imaging.grayscale import crop_region, enhance_contrast, to_luminance
from qrlocator.models import DecodedCode, ScanResult
from qrlocator.qr.qr_reader import QRReader, quadrants, to_frame_coordinates

logger = logging.getLogger(__name__)


class ScanPipeline:
    """
    One detect + decode pass over a frame.

    process_image: thorough, for stills. Every candidate region is contrast
        enhanced and decoded, then every code in the whole image and in each
        quadrant is collected as well.
    process_quick: real-time, for live frames. Only the best few regions are
        decoded, optionally after a direct full-frame attempt.
    """
    def __init__(self, cfg: Optional[ScanConfig] = None, config_path: Optional[str] = None,
                 reader=None, detector: Optional[QRRegionDetector] = None):
        if cfg is None:
            cfg = load_config(config_path) if config_path else ScanConfig()
        self.cfg = cfg
        self.detector = detector or QRRegionDetector(cfg.detector)
        # anything with .decode(pixels) -> DecodeResult | None and .decode_all(pixels) -> list
        self.reader = reader or QRReader()

    def locate(self, frame: np.ndarray) -> List:
        return self.detector.detect(frame)

    def process_image(self, frame: np.ndarray) -> ScanResult:
        start = time.perf_counter()
        luminance = to_luminance(frame)
        regions = self.detector.detect(luminance)

        codes: List[DecodedCode] = []
        for i, region in enumerate(regions):
            code = self._decode_region(luminance, region, i, enhance=True)
            if code is not None:
                self._add_unique(codes, code)

        if self.cfg.decode.try_full_image:
            for code in self._decode_all(luminance):
                self._add_unique(codes, code)

        if self.cfg.decode.try_quadrants:
            for x, y, w, h in quadrants(luminance.shape[1], luminance.shape[0]):
                for code in self._decode_all(luminance[y:y + h, x:x + w], origin=(x, y)):
                    self._add_unique(codes, code)

        elapsed = (time.perf_counter() - start) * 1000.0
        logger.info("Full scan: %d regions, %d codes in %.1f ms", len(regions), len(codes), elapsed)
        return ScanResult(mode="full", regions=regions, codes=codes, elapsed_ms=elapsed)

    def process_quick(self, frame: np.ndarray) -> ScanResult:
        start = time.perf_counter()
        luminance = to_luminance(frame)
        codes: List[DecodedCode] = []
        regions = []

        if self.cfg.realtime.strategy == "direct-then-heuristic":
            code = self._decode_direct(luminance)
            if code is not None:
                codes.append(code)

        if not codes:
            regions = self.detector.detect(luminance)
            for i, region in enumerate(regions[: self.cfg.realtime.max_regions]):
                code = self._decode_region(luminance, region, i, enhance=False)
                if code is not None:
                    self._add_unique(codes, code)

        elapsed = (time.perf_counter() - start) * 1000.0
        return ScanResult(mode="quick", regions=regions, codes=codes, elapsed_ms=elapsed)

    def _decode_region(self, luminance, region, index, enhance: bool) -> Optional[DecodedCode]:
        pixels = crop_region(luminance, region)
        if pixels.size == 0:
            return None
        if enhance:
            pixels = enhance_contrast(pixels, self.cfg.decode.contrast_factor)
        try:
            result = self.reader.decode(pixels)
        except Exception:
            logger.exception("QR decode failed in region %d (%s)", index, region.kind)
            return None
        if result is None:
            return None
        return to_frame_coordinates(result, region, confidence=region.confidence)

    def _decode_direct(self, luminance) -> Optional[DecodedCode]:
        try:
            result = self.reader.decode(luminance)
        except Exception:
            logger.exception("Direct QR decode failed")
            return None
        if result is None:
            return None
        return to_frame_coordinates(result, None, confidence=1.0)

    def _decode_all(self, pixels, origin=(0, 0)) -> List[DecodedCode]:
        try:
            results = self.reader.decode_all(pixels)
        except Exception:
            logger.exception("Multi QR decode failed at origin %s", origin)
            return []
        return [to_frame_coordinates(r, None, confidence=1.0, origin=origin) for r in results]

    @staticmethod
    def _add_unique(codes: List[DecodedCode], code: DecodedCode) -> None:
        if any(c.payload == code.payload for c in codes):
            return
        codes.append(code)
