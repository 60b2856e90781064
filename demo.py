#!/usr/bin/env python3
"""
End-to-end demo: writes a toy vector database to a temp dir, loads it,
classifies a few vectors, then annotates a synthetic scene.
"""

import sys
import tempfile
from pathlib import Path

import numpy as np

from knn_classifier.adapters.feature_extractors.histogram_extractor import ColorHistogramExtractor
from knn_classifier.core.config import ClassifierSettings
from knn_classifier.core.errors import ClassifierError
from knn_classifier.indexing.base import IndexParams, write_index_params
from knn_classifier.main import configure_logging
from knn_classifier.models.scene import BoundingBox, Region, Scene
from knn_classifier.services.annotation_service import AnnotationService
from knn_classifier.services.classifier import Classifier
from knn_classifier.storage.vector_database import dump_database


def print_section(title: str):
    """Print a formatted section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70 + "\n")


def print_step(step_num: int, description: str):
    """Print a formatted step."""
    print(f"Step {step_num}: {description}")


def solid(color, size=(32, 32)) -> np.ndarray:
    img = np.zeros((*size, 3), dtype=np.uint8)
    img[:, :] = color
    return img


def write_toy_database(data_dir: Path, extractor: ColorHistogramExtractor) -> ClassifierSettings:
    swatches = {
        "red_mug": (220, 30, 30),
        "red_mug_dim": (180, 20, 20),
        "green_box": (30, 200, 40),
        "blue_bowl": (20, 40, 210),
    }
    labels = list(swatches)
    matrix = np.stack([extractor.extract_feature(solid(c)) for c in swatches.values()])

    settings = ClassifierSettings(DATA_DIR=data_dir, K=2)
    dump_database(labels, matrix, settings.list_path(), settings.matrix_path(), settings.MATRIX_DATASET)
    write_index_params(settings.index_params_path(), IndexParams())
    return settings


def main() -> int:
    configure_logging("INFO")
    extractor = ColorHistogramExtractor(bins=8)

    with tempfile.TemporaryDirectory() as tmp:
        print_section("Vector database")
        print_step(1, f"Writing toy database to {tmp}")
        settings = write_toy_database(Path(tmp), extractor)

        print_step(2, "Loading database and building index")
        try:
            classifier = Classifier.from_settings(settings)
        except ClassifierError as e:
            print(f"   ✗ Initialization failed: {e}")
            return 1
        print(f"   ✓ {classifier.describe()}")

        print_section("Classify")
        query = extractor.extract_feature(solid((200, 25, 25)))
        for rank, hit in enumerate(classifier.classify(query)):
            print(f"   {rank} - {hit.label} (row {hit.row_index}) distance {hit.confidence:.4f}")

        print_section("Annotate scene")
        image = np.zeros((120, 200, 3), dtype=np.uint8)
        image[20:60, 20:60] = (210, 30, 30)
        image[30:90, 110:170] = (25, 45, 205)
        scene = Scene(
            image=image,
            regions=[
                Region(id="cluster0", roi=BoundingBox(x=20, y=20, width=40, height=40)),
                Region(id="cluster1", roi=BoundingBox(x=110, y=30, width=60, height=60)),
                Region(id="cluster2", roi=BoundingBox(x=0, y=0, width=5, height=5), has_points=False),
            ],
        )
        result = AnnotationService(classifier, extractor).annotate(scene)
        for region in result.regions:
            names = [f"{d.name} ({d.confidence:.4f})" for d in region.annotations] or ["-"]
            print(f"   {region.id}: {', '.join(names)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
