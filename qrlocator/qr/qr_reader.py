from typing import List, Optional

import cv2
import numpy as np

from qrlocator.models import DecodedCode, DecodeResult, Point


class QRReader:
    """
    Uses OpenCV QRCodeDetector to decode QR codes from:
      - full frame (direct decode, one code or every code in view)
      - cropped candidate region (corners shifted back to frame coordinates)
    """
    def __init__(self):
        self.detector = cv2.QRCodeDetector()

    def decode(self, pixels: np.ndarray) -> Optional[DecodeResult]:
        """
        pixels: grayscale or BGR buffer.
        Returns DecodeResult or None when nothing could be read.
        """
        if pixels is None or pixels.size == 0:
            return None
        data, points, _ = self.detector.detectAndDecode(pixels)
        if points is None:
            return None
        return _result(data, points)

    def decode_all(self, pixels: np.ndarray) -> List[DecodeResult]:
        """Every readable code in the buffer, in detector order."""
        if pixels is None or pixels.size == 0:
            return []
        ok, texts, points, _ = self.detector.detectAndDecodeMulti(pixels)
        if not ok or points is None:
            return []

        results = []
        for data, quad in zip(texts, points):
            result = _result(data, quad)
            if result is not None:
                results.append(result)
        return results


def _result(data, points) -> Optional[DecodeResult]:
    if not data or not data.strip():
        return None
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) != 4:
        return None
    return DecodeResult(
        payload=data.strip(),
        corners=[Point(x=float(px), y=float(py)) for px, py in pts],
    )


def quadrants(width: int, height: int):
    """(x, y, w, h) of the four half-size tiles; odd remainder pixels are dropped."""
    hw, hh = width // 2, height // 2
    if hw == 0 or hh == 0:
        return []
    return [(0, 0, hw, hh), (hw, 0, hw, hh), (0, hh, hw, hh), (hw, hh, hw, hh)]


def to_frame_coordinates(result: DecodeResult, region=None, confidence: float = 1.0,
                         origin=(0, 0)) -> DecodedCode:
    """
    Shift a region-relative decode back into full-image coordinates.
    `origin` is used when the pixels came from a crop that is not a candidate region.
    """
    dx, dy = (region.x, region.y) if region is not None else origin
    return DecodedCode(
        payload=result.payload,
        corners=[Point(x=p.x + dx, y=p.y + dy) for p in result.corners],
        source_region=region,
        confidence=confidence,
    )
