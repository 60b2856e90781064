from __future__ import annotations

import numpy as np


class ColorHistogramExtractor:
    """
    Local extractor: per-channel color histogram, normalized to sum 1.
    Produces histogram-like (non-negative) vectors of length bins * channels.
    """
    def __init__(self, bins: int = 8, channels: int = 3) -> None:
        if bins < 1 or channels < 1:
            raise ValueError("bins and channels must be >= 1")
        self.bins = bins
        self.channels = channels

    @property
    def dimension(self) -> int:
        return self.bins * self.channels

    def extract_feature(self, region: np.ndarray) -> np.ndarray:
        pixels = np.asarray(region)
        if pixels.ndim == 2:
            pixels = pixels[:, :, None]
        if pixels.ndim != 3 or pixels.shape[2] != self.channels:
            raise ValueError(f"expected H x W x {self.channels} region, got shape {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ValueError("empty image region")

        hists = [
            np.histogram(pixels[:, :, c], bins=self.bins, range=(0, 256))[0]
            for c in range(self.channels)
        ]
        feature = np.concatenate(hists).astype(np.float32)
        total = feature.sum()
        if total == 0:
            raise ValueError(f"no pixel values in [0, 256) for dtype {pixels.dtype}")
        return feature / total
