from __future__ import annotations
from enum import Enum
from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class RegionKind(str, Enum):
    heuristic = "heuristic"
    fallback = "fallback"


class Region(BaseModel):
    """
    Axis-aligned candidate rectangle in full-image pixel coordinates.
    Use HeuristicRegion / FallbackRegion, never this base directly.
    """
    model_config = ConfigDict(frozen=True)

    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)
    confidence: float = Field(..., ge=0.0, le=1.0)

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.x + self.width, self.y + self.height


class HeuristicRegion(Region):
    kind: Literal["heuristic"] = "heuristic"


class FallbackRegion(Region):
    kind: Literal["fallback"] = "fallback"


CandidateRegion = Annotated[Union[HeuristicRegion, FallbackRegion], Field(discriminator="kind")]


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class DecodeResult(BaseModel):
    """What the decode capability hands back for one pixel buffer."""
    payload: str
    corners: List[Point] = Field(..., min_length=4, max_length=4)


class DecodedCode(BaseModel):
    payload: str
    # top-left, top-right, bottom-right, bottom-left in full-image coordinates
    corners: List[Point] = Field(..., min_length=4, max_length=4)
    # None when the code was found by a direct full-frame decode
    source_region: Optional[CandidateRegion] = None
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class ScanResult(BaseModel):
    mode: Literal["full", "quick"]
    regions: List[CandidateRegion] = Field(default_factory=list)
    codes: List[DecodedCode] = Field(default_factory=list)
    elapsed_ms: float = Field(default=0.0, ge=0.0)
