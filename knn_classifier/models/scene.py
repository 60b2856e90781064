"""
Scene records exchanged with the perception pipeline.
The classifier only reads bounding boxes and writes detections back.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

import numpy as np
from pydantic import BaseModel, Field


class BoundingBox(BaseModel):
    """Pixel rectangle (x, y = top-left corner)."""
    x: int
    y: int
    width: int = Field(ge=0)
    height: int = Field(ge=0)

    model_config = {"frozen": True}

    def clip(self, image_width: int, image_height: int) -> "BoundingBox":
        """Intersect with the image; may yield an empty box."""
        x0 = min(max(self.x, 0), image_width)
        y0 = min(max(self.y, 0), image_height)
        x1 = min(max(self.x + self.width, 0), image_width)
        y1 = min(max(self.y + self.height, 0), image_height)
        return BoundingBox(x=x0, y=y0, width=max(x1 - x0, 0), height=max(y1 - y0, 0))

    @property
    def empty(self) -> bool:
        return self.width == 0 or self.height == 0


class Detection(BaseModel):
    """Classification written back onto a region record."""
    name: str
    source: str
    confidence: float


class Region(BaseModel):
    """
    Candidate object region from the upstream detector.
    - has_points: False for clusters without 3-D support (never classified)
    - annotations: detections attached so far
    """
    id: str
    roi: BoundingBox
    has_points: bool = True
    annotations: List[Detection] = Field(default_factory=list)


@dataclass
class Scene:
    """Color image (H x W x 3, uint8) plus the regions detected in it."""
    image: np.ndarray
    regions: List[Region] = field(default_factory=list)


@dataclass
class AnnotatedScene:
    """Result of annotating a scene: updated region records and overlay image."""
    regions: List[Region]
    image: np.ndarray
    skipped: List[str] = field(default_factory=list)
