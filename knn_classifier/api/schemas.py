from __future__ import annotations
from typing import List, Optional

from pydantic import BaseModel, Field


class ClassifyRequest(BaseModel):
    features: List[float] = Field(min_length=1)


class NeighborsRequest(BaseModel):
    features: List[float] = Field(min_length=1)
    k: int


class Hit(BaseModel):
    label: str
    confidence: float = Field(description="Nearest-neighbor distance; lower is more similar")
    row_index: int


class ClassifyResponse(BaseModel):
    label: str
    confidence: float
    results: List[Hit]


class NeighborsResponse(BaseModel):
    results: List[Hit]


class InfoResponse(BaseModel):
    entries: int
    dimension: int
    k: int
    index: str
    metric: Optional[str] = None
