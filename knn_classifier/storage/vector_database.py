from __future__ import annotations
from pathlib import Path
from typing import List, Sequence, Tuple
import logging
import zipfile

import numpy as np

from knn_classifier.core.config import ClassifierSettings
from knn_classifier.core.errors import OutOfRangeError, SchemaMismatchError, SourceNotFoundError
from knn_classifier.models.vectors import LabeledVector

logger = logging.getLogger(__name__)

DEFAULT_DATASET = "training_data"


def _read_labels(path: Path) -> List[str]:
    labels: List[str] = []
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            label = line.rstrip("\r\n")
            if not label.strip():
                continue
            labels.append(label)
    return labels


def _read_matrix(path: Path, dataset: str) -> np.ndarray:
    try:
        loaded = np.load(path, allow_pickle=False)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        raise SchemaMismatchError(f"cannot read feature matrix {path}: {e}") from e

    if isinstance(loaded, np.ndarray):
        matrix = loaded
    else:
        with loaded as archive:
            if dataset not in archive.files:
                raise SchemaMismatchError(
                    f"dataset {dataset!r} not in {path} (has {archive.files})"
                )
            matrix = archive[dataset]

    if matrix.ndim != 2:
        raise SchemaMismatchError(f"feature matrix must be 2-D, got shape {matrix.shape}")
    return matrix


class VectorDatabase:
    """
    Load-once, read-many store of labeled feature vectors.
    - labels: one per row, order defines the row index
    - matrix: dense N x D float32, row i == features of entry i
    Nothing is mutable after construction; the matrix is flagged read-only and
    handed to index builders only as a view, which keeps this buffer alive for
    as long as any index references it.
    """

    def __init__(self, labels: Sequence[str], matrix: np.ndarray) -> None:
        matrix = np.asarray(matrix)
        if matrix.ndim != 2:
            raise SchemaMismatchError(f"feature matrix must be 2-D, got shape {matrix.shape}")
        if len(labels) != matrix.shape[0]:
            raise SchemaMismatchError(
                f"{len(labels)} labels but feature matrix has {matrix.shape[0]} rows"
            )

        self._labels: Tuple[str, ...] = tuple(str(label) for label in labels)
        self._matrix = np.array(matrix, dtype=np.float32, order="C", copy=True)
        self._matrix.flags.writeable = False

    @classmethod
    def load(
        cls,
        list_path: Path | str,
        matrix_path: Path | str,
        dataset: str = DEFAULT_DATASET,
    ) -> "VectorDatabase":
        list_path, matrix_path = Path(list_path), Path(matrix_path)
        for source in (list_path, matrix_path):
            if not source.is_file():
                raise SourceNotFoundError(f"database source not found: {source}")

        labels = _read_labels(list_path)
        matrix = _read_matrix(matrix_path, dataset)
        db = cls(labels, matrix)
        logger.info(
            f"Loaded {db.entry_count()} models (dim {db.dimension()}) "
            f"from {matrix_path.name}/{list_path.name}"
        )
        return db

    @classmethod
    def from_settings(cls, settings: ClassifierSettings) -> "VectorDatabase":
        return cls.load(settings.list_path(), settings.matrix_path(), settings.MATRIX_DATASET)

    # --------------- accessors ---------------
    def entry_count(self) -> int:
        return self._matrix.shape[0]

    def dimension(self) -> int:
        return self._matrix.shape[1]

    def __len__(self) -> int:
        return self.entry_count()

    def _check_row(self, row_index: int) -> int:
        if not 0 <= row_index < self.entry_count():
            raise OutOfRangeError(f"row {row_index} out of range [0, {self.entry_count()})")
        return row_index

    def label_at(self, row_index: int) -> str:
        return self._labels[self._check_row(row_index)]

    def entry_at(self, row_index: int) -> LabeledVector:
        row = self._check_row(row_index)
        return LabeledVector(label=self._labels[row], features=self._matrix[row])

    def labels(self) -> Tuple[str, ...]:
        return self._labels

    def matrix_view(self) -> np.ndarray:
        """Read-only N x D view for index builders."""
        view = self._matrix.view()
        view.flags.writeable = False
        return view

    def owns(self, matrix: np.ndarray) -> bool:
        """True if `matrix` is (a view of) this database's buffer."""
        return np.may_share_memory(matrix, self._matrix) and matrix.shape == self._matrix.shape


def dump_database(
    labels: Sequence[str],
    matrix: np.ndarray,
    list_path: Path | str,
    matrix_path: Path | str,
    dataset: str = DEFAULT_DATASET,
) -> Tuple[Path, Path]:
    """Write a label list and an .npz feature matrix that `VectorDatabase.load` reads."""
    list_path, matrix_path = Path(list_path), Path(matrix_path)
    list_path.write_text("".join(f"{label}\n" for label in labels), encoding="utf-8")
    with matrix_path.open("wb") as fh:
        np.savez(fh, **{dataset: np.asarray(matrix, dtype=np.float32)})
    return list_path, matrix_path
