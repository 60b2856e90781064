from __future__ import annotations
import base64

import httpx
import numpy as np


class HttpFeatureExtractor:
    """Sends image regions to a remote feature-extraction service."""
    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self._client = client or httpx.Client(timeout=timeout)

    def extract_feature(self, region: np.ndarray) -> np.ndarray:
        pixels = np.ascontiguousarray(region, dtype=np.uint8)
        r = self._client.post(
            self.url,
            json={
                "shape": list(pixels.shape),
                "dtype": "uint8",
                "data": base64.b64encode(pixels.tobytes()).decode("ascii"),
            },
        )
        r.raise_for_status()
        payload = r.json()
        if not isinstance(payload, dict) or "features" not in payload:
            raise ValueError(f"feature service response has no 'features': {str(payload)[:200]}")
        return np.asarray(payload["features"], dtype=np.float32)
