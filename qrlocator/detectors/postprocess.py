from typing import List, Sequence

from qrlocator.utils.geometry import clamp, iou


def non_max_suppression(regions: Sequence, iou_threshold: float = 0.4) -> List:
    """
    Greedy NMS. Highest confidence first (stable for ties); a region is kept
    only if its IoU with every region already kept is <= iou_threshold.
    """
    ordered = sorted(regions, key=lambda r: r.confidence, reverse=True)
    kept = []
    for cand in ordered:
        if all(iou(cand, k) <= iou_threshold for k in kept):
            kept.append(cand)
    return kept


def expand_regions(regions: Sequence, image_width: int, image_height: int, fraction: float = 0.1) -> List:
    """
    Pad every region by floor(min(w, h) * fraction) on all sides and clip to
    the image. Confidence and kind are carried through.
    """
    out = []
    for r in regions:
        pad = int(min(r.width, r.height) * fraction)
        x1 = clamp(r.x - pad, 0, image_width)
        y1 = clamp(r.y - pad, 0, image_height)
        x2 = clamp(r.x + r.width + pad, x1, image_width)
        y2 = clamp(r.y + r.height + pad, y1, image_height)
        out.append(r.model_copy(update={
            "x": x1,
            "y": y1,
            "width": x2 - x1,
            "height": y2 - y1,
        }))
    return out
