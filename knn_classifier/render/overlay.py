"""
Inspection overlay: bounding box plus label text, drawn on a copy of the image.
"""

from __future__ import annotations

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from knn_classifier.models.scene import BoundingBox

BOX_COLOR = (255, 0, 0)
TEXT_COLOR = (255, 255, 200)
TEXT_OFFSET = 7


def draw_region(image: np.ndarray, box: BoundingBox, label: str) -> np.ndarray:
    """Return a new H x W x 3 uint8 image with `box` outlined and `label` centered above it."""
    canvas = Image.fromarray(np.ascontiguousarray(image, dtype=np.uint8)).convert("RGB")
    draw = ImageDraw.Draw(canvas)

    if not box.empty:
        draw.rectangle(
            [box.x, box.y, box.x + box.width - 1, box.y + box.height - 1],
            outline=BOX_COLOR,
        )

    font = ImageFont.load_default()
    left, top, right, bottom = draw.textbbox((0, 0), label, font=font)
    text_w, text_h = right - left, bottom - top
    x = box.x + (box.width - text_w) // 2
    y = max(box.y - TEXT_OFFSET - text_h, 0)
    draw.text((x, y), label, fill=TEXT_COLOR, font=font)

    return np.asarray(canvas)
