"""
Shared fixtures: persisted databases written to tmp_path with dump_database.
"""
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import pytest

from knn_classifier.core.config import ClassifierSettings
from knn_classifier.indexing.base import IndexParams, write_index_params
from knn_classifier.indexing.factory import build_index
from knn_classifier.services.classifier import Classifier
from knn_classifier.storage.vector_database import VectorDatabase, dump_database

FRUIT_LABELS = ["apple", "banana", "apple2"]
FRUIT_MATRIX = np.array(
    [
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.9, 0.1, 0.0],
    ],
    dtype=np.float32,
)
FRUIT_QUERY = [0.95, 0.05, 0.0]


def write_database(
    data_dir: Path,
    labels: Sequence[str],
    matrix: np.ndarray,
    k: int = 1,
    params: Optional[IndexParams] = None,
) -> ClassifierSettings:
    settings = ClassifierSettings(DATA_DIR=data_dir, K=k)
    dump_database(labels, matrix, settings.list_path(), settings.matrix_path(), settings.MATRIX_DATASET)
    write_index_params(settings.index_params_path(), params or IndexParams())
    return settings


def make_classifier(labels, matrix, k, params: Optional[IndexParams] = None) -> Classifier:
    db = VectorDatabase(labels, matrix)
    index = build_index(db.matrix_view(), params or IndexParams())
    clf = Classifier()
    clf.initialize(db, index, k, params=params)
    return clf


@pytest.fixture
def fruit_settings(tmp_path) -> ClassifierSettings:
    return write_database(tmp_path, FRUIT_LABELS, FRUIT_MATRIX, k=2)


@pytest.fixture
def fruit_classifier() -> Classifier:
    return make_classifier(FRUIT_LABELS, FRUIT_MATRIX, k=2)


@pytest.fixture
def histogram_matrix() -> np.ndarray:
    """200 non-negative, row-normalized 16-bin histograms."""
    rng = np.random.default_rng(7)
    data = rng.random((200, 16)).astype(np.float32)
    return data / data.sum(axis=1, keepdims=True)
