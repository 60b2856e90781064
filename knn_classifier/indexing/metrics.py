from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np

from knn_classifier.core.errors import ConfigInvalidError


def _chi_square(rows: np.ndarray, q: np.ndarray) -> np.ndarray:
    # sum over components with a + b > 0 of (a - b)^2 / (a + b)
    total = rows + q
    diff = rows - q
    terms = np.divide(diff * diff, total, out=np.zeros_like(total), where=total > 0)
    return terms.sum(axis=1)


def _chi_square_bound(value: float, split: float) -> float:
    total = value + split
    if total <= 0:
        return 0.0
    diff = value - split
    return diff * diff / total


def _l2(rows: np.ndarray, q: np.ndarray) -> np.ndarray:
    diff = rows - q
    return np.einsum("ij,ij->i", diff, diff)


def _l2_bound(value: float, split: float) -> float:
    diff = value - split
    return diff * diff


def _hellinger(rows: np.ndarray, q: np.ndarray) -> np.ndarray:
    diff = np.sqrt(np.clip(rows, 0.0, None)) - np.sqrt(np.clip(q, 0.0, None))
    return np.einsum("ij,ij->i", diff, diff)


def _hellinger_bound(value: float, split: float) -> float:
    diff = np.sqrt(max(value, 0.0)) - np.sqrt(max(split, 0.0))
    return float(diff * diff)


@dataclass(frozen=True)
class Metric:
    """
    Additive distance: a sum of per-component terms.
    - distances(rows, q): distance of each row (M x D) to q (D,)
    - bound(q_d, split): smallest term any point across a split plane can add
      in that component; kd-tree pruning relies on it being a lower bound.
    Histogram metrics assume non-negative components.
    """
    name: str
    distances: Callable[[np.ndarray, np.ndarray], np.ndarray]
    bound: Callable[[float, float], float]

    def distance(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(self.distances(np.atleast_2d(a).astype(np.float64, copy=False),
                                    np.asarray(b, dtype=np.float64))[0])


CHI_SQUARE = Metric("chi_square", _chi_square, _chi_square_bound)
L2 = Metric("l2", _l2, _l2_bound)
HELLINGER = Metric("hellinger", _hellinger, _hellinger_bound)

METRICS: Dict[str, Metric] = {m.name: m for m in (CHI_SQUARE, L2, HELLINGER)}


def get_metric(name: str) -> Metric:
    try:
        return METRICS[name.lower()]
    except KeyError:
        raise ConfigInvalidError(
            f"unknown metric {name!r}; expected one of {sorted(METRICS)}"
        ) from None
