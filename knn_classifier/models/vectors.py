from __future__ import annotations
from dataclasses import dataclass
from typing import List, NamedTuple

import numpy as np


@dataclass(frozen=True)
class LabeledVector:
    """
    One database entry: a (not necessarily unique) label and its feature vector.
    The features array is a read-only row of the database matrix.
    """
    label: str
    features: np.ndarray


class Neighbor(NamedTuple):
    """A single k-NN hit: database row and its distance to the query."""
    row_index: int
    distance: float


# Ascending by distance, closest first.
QueryResult = List[Neighbor]


@dataclass(frozen=True)
class ClassificationResult:
    """
    Label resolved for one neighbor.
    confidence is the raw distance (dissimilarity, lower is better, unbounded).
    """
    label: str
    confidence: float
    row_index: int
