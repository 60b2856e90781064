from __future__ import annotations
from typing import Protocol

import numpy as np


class FeatureExtractor(Protocol):
    """
    Maps a color image region (H x W x 3, uint8) to a fixed-length feature vector.
    Implementations are synchronous; failures propagate to the caller.
    """
    def extract_feature(self, region: np.ndarray) -> np.ndarray:
        ...
