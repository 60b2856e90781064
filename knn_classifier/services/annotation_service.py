from __future__ import annotations
from typing import List, Optional
import logging

import httpx
import numpy as np

from knn_classifier.adapters.feature_extractors.base import FeatureExtractor
from knn_classifier.adapters.region_source import RegionSource, SceneRegions
from knn_classifier.models.scene import AnnotatedScene, Detection, Region, Scene
from knn_classifier.render.overlay import draw_region
from knn_classifier.services.classifier import Classifier

logger = logging.getLogger(__name__)

DETECTION_SOURCE = "KnnRegionClassifier"


class AnnotationService:
    """
    Classifies every candidate region of a scene:
    crop -> extract feature -> k-NN classify -> attach Detection (+ overlay).
    A region that fails is skipped with a warning; the rest of the scene proceeds.
    """

    def __init__(
        self,
        classifier: Classifier,
        extractor: FeatureExtractor,
        regions: Optional[RegionSource] = None,
        render: bool = True,
    ) -> None:
        self.classifier = classifier
        self.extractor = extractor
        self.regions = regions or SceneRegions()
        self.render = render

    def annotate(self, scene: Scene) -> AnnotatedScene:
        image = np.array(scene.image)
        height, width = image.shape[:2]
        annotated: List[Region] = []
        skipped: List[str] = []

        for region in self.regions.candidate_regions(scene):
            if not region.has_points:
                annotated.append(region)
                continue

            roi = region.roi.clip(width, height)
            if roi.empty:
                logger.warning(f"Region {region.id}: bounding box {region.roi} lies outside the image, skipping")
                skipped.append(region.id)
                annotated.append(region)
                continue

            crop = image[roi.y:roi.y + roi.height, roi.x:roi.x + roi.width]
            try:
                feature = self.extractor.extract_feature(crop)
                results = self.classifier.classify(feature)
            except (ValueError, httpx.HTTPError) as e:
                logger.warning(f"Region {region.id}: classification failed, skipping ({e})")
                skipped.append(region.id)
                annotated.append(region)
                continue

            logger.info(f"The closest {len(results)} neighbors for region {region.id} are:")
            for rank, hit in enumerate(results):
                logger.info(f"    {rank} - {hit.label} ({hit.row_index}) with a distance of: {hit.confidence:.6g}")

            top = results[0]
            detection = Detection(name=top.label, source=DETECTION_SOURCE, confidence=top.confidence)
            annotated.append(region.model_copy(update={"annotations": [*region.annotations, detection]}))
            if self.render:
                image = draw_region(image, roi, top.label)

        return AnnotatedScene(regions=annotated, image=image, skipped=skipped)
