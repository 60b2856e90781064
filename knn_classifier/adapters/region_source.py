from __future__ import annotations
from typing import Protocol, Sequence

from knn_classifier.models.scene import Region, Scene


class RegionSource(Protocol):
    """Supplies candidate object regions for a scene, in detection order."""
    def candidate_regions(self, scene: Scene) -> Sequence[Region]:
        ...


class SceneRegions:
    """Regions already attached to the scene by the upstream detector."""
    def candidate_regions(self, scene: Scene) -> Sequence[Region]:
        return list(scene.regions)
