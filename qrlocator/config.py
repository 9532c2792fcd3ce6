from __future__ import annotations
from typing import List, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class DetectorConfig(BaseModel):
    enabled: bool = Field(default=True, description="Run the grid search; False forces the fallback tiling")
    grid_size: int = Field(default=7, ge=1)
    confidence_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    nms_iou_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    scales: List[float] = Field(default_factory=lambda: [0.1, 0.2, 0.3, 0.5, 0.7, 1.0])
    step_fraction: float = Field(default=0.1, gt=0.0, le=1.0)
    min_pattern_size: int = Field(default=21, ge=1, description="QR codes are at least 21x21 modules")
    expansion_fraction: float = Field(default=0.1, ge=0.0)

    @field_validator("scales")
    @classmethod
    def _check_scales(cls, v):
        if not v:
            raise ValueError("scales must not be empty")
        for s in v:
            if s <= 0 or s > 1:
                raise ValueError(f"scale {s} must be in (0, 1]")
        return v


class RealtimeConfig(BaseModel):
    strategy: Literal["heuristic-only", "direct-then-heuristic"] = "heuristic-only"
    max_regions: int = Field(default=3, ge=1)


class DecodeConfig(BaseModel):
    contrast_factor: float = Field(default=1.3, gt=0.0)
    try_full_image: bool = True
    try_quadrants: bool = Field(default=True, description="Also decode each image quadrant on stills")


class SchedulerConfig(BaseModel):
    interval_ms: float = Field(default=200.0, gt=0.0)
    history_size: int = Field(default=10, ge=1)
    min_samples: int = Field(default=5, ge=1, description="Samples needed before the rolling mean is trusted")
    latency_budget_ms: float = Field(default=100.0, gt=0.0)
    max_interval_ms: float = Field(default=1000.0, gt=0.0)

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.min_samples > self.history_size:
            raise ValueError(
                f"min_samples ({self.min_samples}) must not exceed history_size ({self.history_size})"
            )
        if self.max_interval_ms < self.interval_ms:
            raise ValueError(
                f"max_interval_ms ({self.max_interval_ms}) must be at least interval_ms ({self.interval_ms})"
            )
        return self


class CameraConfig(BaseModel):
    index: int = 0
    width: int = 1280
    height: int = 720
    fps: int = 30


class ScanConfig(BaseModel):
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    realtime: RealtimeConfig = Field(default_factory=RealtimeConfig)
    decode: DecodeConfig = Field(default_factory=DecodeConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    camera: CameraConfig = Field(default_factory=CameraConfig)


def load_yaml(path):
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_config(path="config/scanner.yaml") -> ScanConfig:
    data = load_yaml(path) or {}
    return ScanConfig.model_validate(data)
