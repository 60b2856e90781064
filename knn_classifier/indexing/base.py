from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Protocol
import logging

import numpy as np
from pydantic import BaseModel, Field, ValidationError, field_validator

from knn_classifier.core.errors import (
    ConfigInvalidError,
    DimensionMismatchError,
    InvalidKError,
    SourceNotFoundError,
)
from knn_classifier.indexing.metrics import METRICS
from knn_classifier.models.vectors import QueryResult

logger = logging.getLogger(__name__)

# Search budget meaning "visit every leaf point" (exact search).
CHECKS_UNLIMITED = -1
DEFAULT_CHECKS = 512


class IndexParams(BaseModel):
    """
    How the neighbor index is built and searched.
    Persisted next to the database as JSON; fields may be overridden by settings.
    """
    algorithm: Literal["kdtree", "linear"] = "kdtree"
    metric: str = "chi_square"
    trees: int = Field(default=4, ge=1)
    leaf_max_size: int = Field(default=1, ge=1)
    checks: int = DEFAULT_CHECKS
    seed: int = 0

    model_config = {"extra": "forbid"}

    @field_validator("metric")
    @classmethod
    def validate_metric(cls, v: str) -> str:
        v = v.lower()
        if v not in METRICS:
            raise ValueError(f"unknown metric {v!r}; expected one of {sorted(METRICS)}")
        return v

    @field_validator("checks")
    @classmethod
    def validate_checks(cls, v: int) -> int:
        if v != CHECKS_UNLIMITED and v < 1:
            raise ValueError(f"checks must be >= 1 or {CHECKS_UNLIMITED} (unlimited)")
        return v


def load_index_params(path: Path | str, overrides: Optional[Dict[str, Any]] = None) -> IndexParams:
    """Read the persisted index params and apply non-empty overrides."""
    path = Path(path)
    if not path.is_file():
        raise SourceNotFoundError(f"index params not found: {path}")
    try:
        params = IndexParams.model_validate_json(path.read_text(encoding="utf-8"))
        if overrides:
            params = IndexParams.model_validate({**params.model_dump(), **overrides})
    except ValidationError as e:
        raise ConfigInvalidError(f"invalid index params in {path}: {e}") from e
    logger.info(f"Index params from {path}: {params.model_dump()}")
    return params


class Index(Protocol):
    """
    Interface for all neighbor indexes.
    Implementations are immutable after construction and support
    `search(query, k)` returning top-k (row_index, distance) pairs, closest first.
    """
    matrix: np.ndarray
    size: int
    dimension: int

    def search(self, query: np.ndarray, k: int, checks: Optional[int] = None) -> QueryResult:
        ...


def prepare_query(query: Any, dimension: int) -> np.ndarray:
    """Coerce a query to a flat float64 vector of the index dimension."""
    q = np.asarray(query, dtype=np.float64)
    if q.ndim != 1 or q.shape[0] != dimension:
        got = q.shape[0] if q.ndim == 1 else q.shape
        raise DimensionMismatchError(f"query dim {got} != index dim {dimension}")
    return q


def check_k(k: int, size: int) -> int:
    if not isinstance(k, (int, np.integer)) or isinstance(k, bool) or not 1 <= k <= size:
        raise InvalidKError(f"k must be in [1, {size}], got {k!r}")
    return int(k)


def write_index_params(path: Path | str, params: IndexParams) -> Path:
    path = Path(path)
    path.write_text(params.model_dump_json(indent=2), encoding="utf-8")
    return path
