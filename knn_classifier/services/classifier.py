from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging
import threading

import numpy as np

from knn_classifier.core.config import ClassifierSettings
from knn_classifier.core.errors import ConfigInvalidError, NotReadyError
from knn_classifier.indexing.base import Index, IndexParams, load_index_params
from knn_classifier.indexing.factory import build_index
from knn_classifier.models.vectors import ClassificationResult, QueryResult
from knn_classifier.storage.vector_database import VectorDatabase

logger = logging.getLogger(__name__)


class Classifier:
    """
    Nearest-neighbor classifier over a static vector database.
    Uninitialized -> Ready (once, via initialize). Ready classifiers hold only
    immutable state, so classify() needs no locking.
    """

    def __init__(self) -> None:
        self._database: Optional[VectorDatabase] = None
        self._index: Optional[Index] = None
        self._k = 0
        self._params: Optional[IndexParams] = None
        self._init_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: ClassifierSettings) -> "Classifier":
        """Load the database and index params, build the index and initialize."""
        database = VectorDatabase.from_settings(settings)
        params = load_index_params(settings.index_params_path(), settings.index_overrides())
        index = build_index(database.matrix_view(), params)
        classifier = cls()
        classifier.initialize(database, index, settings.K, params=params)
        return classifier

    def initialize(
        self,
        database: VectorDatabase,
        index: Index,
        k: int,
        params: Optional[IndexParams] = None,
    ) -> None:
        n = database.entry_count()
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or not 1 <= k <= n:
            raise ConfigInvalidError(f"k must be in [1, {n}], got {k!r}")
        if index.size != n or index.dimension != database.dimension() or not database.owns(index.matrix):
            raise ConfigInvalidError("index was not built over this database's matrix")

        with self._init_lock:
            if self._database is not None:
                raise ConfigInvalidError("classifier is already initialized")
            # the index borrows the database matrix; keep both reachable together
            self._index = index
            self._k = int(k)
            self._params = params
            # set last: readiness is keyed on the database
            self._database = database
        logger.info(f"Classifier ready: {n} entries, dim {database.dimension()}, k={k}")

    # --------------- state ---------------
    @property
    def is_ready(self) -> bool:
        return self._database is not None

    @property
    def k(self) -> int:
        return self._k

    @property
    def database(self) -> VectorDatabase:
        self._require_ready()
        return self._database

    def _require_ready(self) -> None:
        if self._database is None:
            raise NotReadyError("classifier is not initialized")

    # --------------- queries ---------------
    def neighbors(self, query: Any, k: int) -> List[ClassificationResult]:
        """k nearest entries for a per-call k, closest first."""
        self._require_ready()
        hits = self._index.search(query, k)
        return self._resolve(hits)

    def classify(self, query: Any) -> List[ClassificationResult]:
        """Exactly k results, closest first; element 0 is the decision."""
        return self.neighbors(query, self._k)

    def _resolve(self, hits: QueryResult) -> List[ClassificationResult]:
        return [
            ClassificationResult(
                label=self._database.label_at(row),
                confidence=dist,
                row_index=row,
            )
            for row, dist in hits
        ]

    def describe(self) -> Dict[str, Any]:
        self._require_ready()
        info: Dict[str, Any] = {
            "entries": self._database.entry_count(),
            "dimension": self._database.dimension(),
            "k": self._k,
            "index": type(self._index).__name__,
        }
        metric = getattr(self._index, "metric", None)
        if metric is not None:
            info["metric"] = metric.name
        if self._params is not None:
            info["params"] = self._params.model_dump()
        return info
