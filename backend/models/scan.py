from __future__ import annotations
from pydantic import BaseModel, Field
from typing import List

from qrlocator.models import CandidateRegion, DecodedCode

class RegionsResponse(BaseModel):
    width: int
    height: int
    regions: List[CandidateRegion] = Field(default_factory=list)

class ScanResponse(BaseModel):
    width: int
    height: int
    elapsed_ms: float
    regions: List[CandidateRegion] = Field(default_factory=list)
    codes: List[DecodedCode] = Field(default_factory=list)
