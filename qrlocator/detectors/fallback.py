from typing import List

from qrlocator.models import FallbackRegion

FALLBACK_CONFIDENCE = 0.5


def _tile_starts(extent: int, side: int, step: int) -> List[int]:
    # last tile is pulled back flush with the edge so nothing is left uncovered
    starts = []
    pos = 0
    while True:
        starts.append(pos)
        if pos + side >= extent:
            break
        pos = min(pos + step, extent - side)
    return starts


def fallback_regions(image_width: int, image_height: int, overlap: float = 0.2) -> List[FallbackRegion]:
    """
    Content-independent tiling of the whole image with overlapping squares of
    side min(W, H) / 3. Used when the grid search is off or finds nothing.
    """
    if image_width <= 0 or image_height <= 0:
        return []

    side = max(1, min(image_width, image_height) // 3)
    step = max(1, int(side - side * overlap))

    regions = []
    for y in _tile_starts(image_height, side, step):
        for x in _tile_starts(image_width, side, step):
            regions.append(FallbackRegion(
                x=x,
                y=y,
                width=side,
                height=side,
                confidence=FALLBACK_CONFIDENCE,
            ))
    return regions
