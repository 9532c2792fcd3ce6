def iou(a, b) -> float:
    """
    Intersection over Union of two axis-aligned boxes with x, y, width, height.
    Returns 0 for disjoint or zero-area boxes.
    """
    x1 = max(a.x, b.x)
    y1 = max(a.y, b.y)
    x2 = min(a.x + a.width, b.x + b.width)
    y2 = min(a.y + a.height, b.y + b.height)

    if x2 <= x1 or y2 <= y1:
        return 0.0

    inter = (x2 - x1) * (y2 - y1)
    union = a.width * a.height + b.width * b.height - inter
    if union <= 0:
        return 0.0
    return inter / union


def clamp(v, lo, hi):
    return max(lo, min(hi, v))
