class QRLocatorError(Exception):
    """Base class for errors raised by qrlocator."""


class FrameSourceError(QRLocatorError):
    """The frame source can no longer deliver frames (camera gone, stream closed)."""


class ImageDecodeError(QRLocatorError):
    """Encoded image bytes could not be turned into a pixel buffer."""
