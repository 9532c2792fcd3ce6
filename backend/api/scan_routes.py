import logging
import os
from functools import lru_cache

import cv2
import numpy as np
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from backend.core.config import settings
from backend.models.scan import RegionsResponse, ScanResponse
from qrlocator.config import ScanConfig, load_config
from qrlocator.exceptions import ImageDecodeError
from qrlocator.pipeline import ScanPipeline

logger = logging.getLogger(__name__)

router = APIRouter()

@lru_cache(maxsize=1)
def get_pipeline() -> ScanPipeline:
    path = settings.scanner_config_path
    if os.path.exists(path):
        cfg = load_config(path)
    else:
        logger.warning("Scanner config %s not found, using defaults", path)
        cfg = ScanConfig()
    return ScanPipeline(cfg)

def decode_image(data: bytes) -> np.ndarray:
    if not data:
        raise ImageDecodeError("Empty request body")
    img = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if img is None:
        raise ImageDecodeError("Body is not a readable image")
    return img

async def _read_image(request: Request) -> np.ndarray:
    data = await request.body()
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Image too large")
    try:
        return decode_image(data)
    except ImageDecodeError as ex:
        raise HTTPException(status_code=400, detail=str(ex))

# ---- candidate regions only ----
@router.post("/regions", response_model=RegionsResponse)
async def locate_regions(request: Request, pipeline: ScanPipeline = Depends(get_pipeline)):
    img = await _read_image(request)
    h, w = img.shape[:2]
    regions = await run_in_threadpool(pipeline.locate, img)
    return RegionsResponse(width=w, height=h, regions=regions)

# ---- detect + decode ----
@router.post("/scan", response_model=ScanResponse)
async def scan_image(request: Request, pipeline: ScanPipeline = Depends(get_pipeline)):
    img = await _read_image(request)
    h, w = img.shape[:2]
    result = await run_in_threadpool(pipeline.process_image, img)
    return ScanResponse(
        width=w,
        height=h,
        elapsed_ms=result.elapsed_ms,
        regions=result.regions,
        codes=result.codes,
    )
