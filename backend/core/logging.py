import logging

from backend.core.config import settings
from qrlocator.utils.log import setup_logging as _configure_root


def setup_logging():
    _configure_root(settings.log_level)
    # keep uvicorn's access log from drowning out scan logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
