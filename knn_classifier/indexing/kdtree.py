from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import heapq
import itertools

import numpy as np

from .base import CHECKS_UNLIMITED, DEFAULT_CHECKS, Index, check_k, prepare_query
from .metrics import Metric
from knn_classifier.models.vectors import Neighbor, QueryResult


class _Node:
    """Inner node (dim >= 0, split value, children) or leaf (rows)."""
    __slots__ = ("dim", "value", "left", "right", "rows")

    def __init__(self) -> None:
        self.dim = -1
        self.value = 0.0
        self.left: Optional[_Node] = None
        self.right: Optional[_Node] = None
        self.rows: Optional[np.ndarray] = None


class _ResultSet:
    """Bounded set of the k best (distance, row) pairs seen so far."""

    def __init__(self, k: int) -> None:
        self.k = k
        # max-heap on (distance, row) via negation
        self._heap: List[Tuple[float, int]] = []

    def full(self) -> bool:
        return len(self._heap) >= self.k

    def worst(self) -> float:
        return -self._heap[0][0] if self.full() else float("inf")

    def add(self, row: int, dist: float) -> None:
        item = (-dist, -row)
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, item)
        elif item > self._heap[0]:
            heapq.heapreplace(self._heap, item)

    def neighbors(self) -> QueryResult:
        hits = sorted((-d, -r) for d, r in self._heap)
        return [Neighbor(r, d) for d, r in hits]


class KDTreeIndex(Index):
    """
    Randomized k-d forest with best-bin-first search under an additive metric.
    - Build: each tree splits on a dimension drawn at random from the
      RAND_DIM highest-variance dimensions of a small sample, at the sample mean
    - Query: descend every tree, queue the unexplored branches by a lower
      bound on their distance, then pop branches until `checks` leaf points
      were examined and k candidates are held
    - Branch bounds track one offset per split dimension so pruning is exact
      when the budget is unlimited

    Build:  O(T·N·D·log N)   (T trees)
    Query:  O(checks·D + B·log B)   (B = queued branches)
    Space:  O(T·N) row indices; the matrix itself is borrowed
    """
    SAMPLE_MEAN = 100
    RAND_DIM = 5

    def __init__(
        self,
        matrix: np.ndarray,
        metric: Metric,
        trees: int = 4,
        leaf_max_size: int = 1,
        checks: int = DEFAULT_CHECKS,
        seed: int = 0,
    ) -> None:
        # Read-only view; its base keeps the database buffer alive.
        self.matrix = matrix
        self.metric = metric
        self.size, self.dimension = matrix.shape
        self.trees = trees
        self.leaf_max_size = leaf_max_size
        self.checks = checks

        rng = np.random.default_rng(seed)
        self._roots = [self._build_tree(rng.permutation(self.size), rng) for _ in range(trees)]

    # --------------- build ---------------
    def _build_tree(self, rows: np.ndarray, rng: np.random.Generator) -> _Node:
        root = _Node()
        stack = [(root, rows)]
        while stack:
            node, rows = stack.pop()
            if len(rows) <= self.leaf_max_size:
                node.rows = rows
                continue

            points = self.matrix[rows]
            dim, value = self._choose_split(points, rng)
            if dim < 0:
                # identical points cannot be separated
                node.rows = rows
                continue

            column = points[:, dim]
            mask = column < value
            left, right = rows[mask], rows[~mask]
            if len(left) == 0 or len(right) == 0:
                # mean did not separate the points: fall back to a median split
                order = np.argsort(column, kind="stable")
                half = len(rows) // 2
                left, right = rows[order[:half]], rows[order[half:]]
                value = float(column[order[half]])

            node.dim, node.value = dim, value
            node.left, node.right = _Node(), _Node()
            stack.append((node.right, right))
            stack.append((node.left, left))
        return root

    def _choose_split(self, points: np.ndarray, rng: np.random.Generator) -> Tuple[int, float]:
        sample = points[: self.SAMPLE_MEAN].astype(np.float64)
        var = sample.var(axis=0)
        mean = sample.mean(axis=0)
        if not var.any():
            sample = points.astype(np.float64)
            var = sample.var(axis=0)
            mean = sample.mean(axis=0)
            if not var.any():
                return -1, 0.0

        top = np.argsort(var, kind="stable")[::-1][: self.RAND_DIM]
        top = top[var[top] > 0]
        dim = int(top[rng.integers(len(top))])
        return dim, float(mean[dim])

    # --------------- search ---------------
    def search(self, query: np.ndarray, k: int, checks: Optional[int] = None) -> QueryResult:
        q = prepare_query(query, self.dimension)
        k = check_k(k, self.size)
        max_checks = self.checks if checks is None else checks
        if max_checks != CHECKS_UNLIMITED and max_checks < 1:
            raise ValueError(f"checks must be >= 1 or {CHECKS_UNLIMITED}, got {max_checks}")

        search = _Search(self, q, k, max_checks)
        for root in self._roots:
            search.descend(root, 0.0, {})

        while search.branches and not search.exhausted():
            mindist, _, node, offsets = heapq.heappop(search.branches)
            if search.result.full() and mindist > search.result.worst():
                break
            search.descend(node, mindist, offsets)

        return search.result.neighbors()


class _Search:
    """Per-query traversal state; nothing here is shared between queries."""

    def __init__(self, index: KDTreeIndex, q: np.ndarray, k: int, max_checks: int) -> None:
        self.index = index
        self.q = q
        self.max_checks = max_checks
        self.checks = 0
        self.result = _ResultSet(k)
        self.seen = np.zeros(index.size, dtype=bool)
        self.branches: List[Tuple[float, int, _Node, Dict[int, float]]] = []
        self._tie = itertools.count()

    def limited(self) -> bool:
        return self.max_checks != CHECKS_UNLIMITED

    def exhausted(self) -> bool:
        return self.limited() and self.checks >= self.max_checks and self.result.full()

    def descend(self, node: _Node, mindist: float, offsets: Dict[int, float]) -> None:
        bound = self.index.metric.bound
        while node.rows is None:
            d = node.dim
            value = float(self.q[d])
            if value < node.value:
                best, other = node.left, node.right
            else:
                best, other = node.right, node.left

            cut = bound(value, node.value)
            other_dist = mindist - offsets.get(d, 0.0) + cut
            if other_dist <= self.result.worst():
                other_offsets = dict(offsets)
                other_offsets[d] = cut
                heapq.heappush(self.branches, (other_dist, next(self._tie), other, other_offsets))
            node = best

        self._check_leaf(node.rows)

    def _check_leaf(self, rows: np.ndarray) -> None:
        if self.exhausted():
            return
        fresh = rows[~self.seen[rows]]
        if self.limited() and self.result.full():
            fresh = fresh[: max(self.max_checks - self.checks, 0)]
        if len(fresh) == 0:
            return

        self.seen[fresh] = True
        self.checks += len(fresh)
        points = self.index.matrix[fresh].astype(np.float64)
        dists = self.index.metric.distances(points, self.q)
        for row, dist in zip(fresh, dists):
            self.result.add(int(row), float(dist))
