from __future__ import annotations
from typing import Optional

import numpy as np

from .base import Index, check_k, prepare_query
from .metrics import Metric
from knn_classifier.models.vectors import Neighbor, QueryResult


class LinearIndex(Index):
    """
    Exact k-NN by scanning every row with NumPy.
    Build  : O(1)    (borrows the matrix view)
    Search : O(ND)   (N row distances of length D)
    Space  : O(N)    per query
    """

    def __init__(self, matrix: np.ndarray, metric: Metric) -> None:
        # Read-only view; its base keeps the database buffer alive.
        self.matrix = matrix
        self.metric = metric
        self.size, self.dimension = matrix.shape

    def search(self, query: np.ndarray, k: int, checks: Optional[int] = None) -> QueryResult:
        # checks is accepted for interface parity; the scan is always exhaustive
        q = prepare_query(query, self.dimension)
        k = check_k(k, self.size)

        dists = self.metric.distances(self.matrix.astype(np.float64), q)
        # stable sort keeps construction order among equal distances
        order = np.argsort(dists, kind="stable")[:k]
        return [Neighbor(int(i), float(dists[i])) for i in order]
