import cv2
import numpy as np


def to_luminance(image: np.ndarray) -> np.ndarray:
    """
    Reduce an OpenCV image to a single-channel uint8 luminance buffer.
    Accepts HxW (already gray), HxWx3 (BGR) or HxWx4 (BGRA).
    Uses the BT.601 weights (0.299 R + 0.587 G + 0.114 B) via cv2.cvtColor.
    """
    if image.ndim == 2:
        return image if image.dtype == np.uint8 else np.clip(image, 0, 255).astype(np.uint8)
    if image.ndim != 3:
        raise ValueError(f"expected a 2D or 3D image, got shape {image.shape}")

    channels = image.shape[2]
    if channels == 1:
        return to_luminance(image[:, :, 0])
    if image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    raise ValueError(f"unsupported channel count: {channels}")


def enhance_contrast(image: np.ndarray, factor: float = 1.5) -> np.ndarray:
    """
    Linear contrast stretch around mid-gray: v' = factor * (v - 128) + 128,
    clipped to 0..255. Works on a copy, the input buffer is left untouched.
    """
    out = factor * (image.astype(np.float32) - 128.0) + 128.0
    return np.clip(out, 0, 255).astype(np.uint8)


def crop_region(image: np.ndarray, region) -> np.ndarray:
    """Return the pixels covered by region (a view, clipped to the image)."""
    h, w = image.shape[:2]
    x1 = min(max(0, int(region.x)), w)
    y1 = min(max(0, int(region.y)), h)
    x2 = min(w, x1 + int(region.width))
    y2 = min(h, y1 + int(region.height))
    return image[y1:y2, x1:x2]
