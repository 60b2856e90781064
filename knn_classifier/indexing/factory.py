"""
Builds the configured neighbor index over a database matrix view.
"""

from __future__ import annotations
import logging
import time

import numpy as np

from knn_classifier.core.errors import ConfigInvalidError
from knn_classifier.indexing.base import Index, IndexParams
from knn_classifier.indexing.kdtree import KDTreeIndex
from knn_classifier.indexing.linear import LinearIndex
from knn_classifier.indexing.metrics import get_metric

logger = logging.getLogger(__name__)


def build_index(matrix: np.ndarray, params: IndexParams) -> Index:
    """Construct the index named by `params.algorithm` under `params.metric`."""
    if matrix.ndim != 2:
        raise ConfigInvalidError(f"index needs an N x D matrix, got shape {matrix.shape}")
    metric = get_metric(params.metric)
    started = time.perf_counter()

    if params.algorithm == "kdtree":
        index: Index = KDTreeIndex(
            matrix,
            metric,
            trees=params.trees,
            leaf_max_size=params.leaf_max_size,
            checks=params.checks,
            seed=params.seed,
        )
    elif params.algorithm == "linear":
        index = LinearIndex(matrix, metric)
    else:
        raise ConfigInvalidError(f"unsupported index algorithm {params.algorithm!r}")

    logger.info(
        f"Built {params.algorithm} index ({metric.name}) over "
        f"{matrix.shape[0]}x{matrix.shape[1]} in {time.perf_counter() - started:.3f}s"
    )
    return index
