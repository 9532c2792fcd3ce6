import cv2

from qrlocator.exceptions import FrameSourceError


class CameraSource:
    """Thin wrapper over cv2.VideoCapture; read() raises when the camera is gone."""

    def __init__(self, index=0, width=None, height=None, fps=None):
        self.cap = cv2.VideoCapture(int(index))
        if not self.cap.isOpened():
            raise FrameSourceError(f"Cannot open camera {index}. Try another index or check permissions.")
        if width:
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, int(width))
        if height:
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, int(height))
        if fps:
            self.cap.set(cv2.CAP_PROP_FPS, int(fps))

    @classmethod
    def from_config(cls, cam_cfg):
        return cls(index=cam_cfg.index, width=cam_cfg.width, height=cam_cfg.height, fps=cam_cfg.fps)

    def read(self):
        ok, frame = self.cap.read()
        if not ok or frame is None:
            raise FrameSourceError("Failed to read from camera.")
        return frame

    def release(self):
        self.cap.release()
