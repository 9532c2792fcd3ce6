import cv2
import numpy as np

HEURISTIC_COLOR = (0, 200, 255)
FALLBACK_COLOR = (160, 160, 160)
CODE_COLOR = (0, 255, 0)


def draw_region(frame, region, thickness=1):
    color = HEURISTIC_COLOR if region.kind == "heuristic" else FALLBACK_COLOR
    x1, y1, x2, y2 = region.as_xyxy()
    cv2.rectangle(frame, (x1, y1), (x2, y2), color, thickness)
    cv2.putText(frame, f"{region.confidence:.2f}", (x1 + 4, y1 + 16),
                cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1, cv2.LINE_AA)


def draw_code(frame, code, color=CODE_COLOR):
    pts = np.array([[int(p.x), int(p.y)] for p in code.corners], dtype=np.int32)
    cv2.polylines(frame, [pts], True, color, 2)
    x, y = pts[0]
    label = code.payload if len(code.payload) <= 40 else code.payload[:37] + "..."
    cv2.putText(frame, label, (int(x), max(0, int(y) - 10)),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2, cv2.LINE_AA)


def annotate(frame, result, fps=None):
    annotated = frame.copy()
    for r in result.regions:
        draw_region(annotated, r)
    for c in result.codes:
        draw_code(annotated, c)
    if fps is not None:
        cv2.putText(annotated, f"FPS: {fps:.1f}", (20, 40),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.9, (255, 255, 255), 2, cv2.LINE_AA)
    return annotated
