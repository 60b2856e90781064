"""
Tests for loading and reading the persisted vector database.
"""
import numpy as np
import pytest

from knn_classifier.core.errors import OutOfRangeError, SchemaMismatchError, SourceNotFoundError
from knn_classifier.storage.vector_database import VectorDatabase, dump_database

from conftest import FRUIT_LABELS, FRUIT_MATRIX


class TestLoad:
    """Reading the label list and the feature matrix."""

    def test_labels_follow_non_blank_lines_in_order(self, tmp_path):
        """Blank and whitespace-only lines are skipped; order defines the row."""
        list_path = tmp_path / "list.txt"
        list_path.write_text("apple\n\nred mug\r\n   \napple2\n", encoding="utf-8")
        matrix_path = tmp_path / "data.npz"
        dump_database(["x", "y", "z"], np.eye(3), tmp_path / "unused.txt", matrix_path)

        db = VectorDatabase.load(list_path, matrix_path)

        assert db.entry_count() == 3
        assert [db.label_at(i) for i in range(3)] == ["apple", "red mug", "apple2"]

    def test_round_trip_through_dump(self, tmp_path):
        dump_database(FRUIT_LABELS, FRUIT_MATRIX, tmp_path / "l.txt", tmp_path / "m.npz")
        db = VectorDatabase.load(tmp_path / "l.txt", tmp_path / "m.npz")

        assert db.labels() == tuple(FRUIT_LABELS)
        assert db.dimension() == 3
        assert db.matrix_view().dtype == np.float32
        np.testing.assert_array_equal(db.matrix_view(), FRUIT_MATRIX)

    def test_schema_mismatch_on_row_count(self, tmp_path):
        """3 labels against a 4-row matrix must be refused."""
        (tmp_path / "l.txt").write_text("a\nb\nc\n", encoding="utf-8")
        np.savez(tmp_path / "m.npz", training_data=np.ones((4, 2), dtype=np.float32))

        with pytest.raises(SchemaMismatchError):
            VectorDatabase.load(tmp_path / "l.txt", tmp_path / "m.npz")

    def test_missing_list_file(self, tmp_path):
        np.savez(tmp_path / "m.npz", training_data=np.ones((1, 2), dtype=np.float32))
        with pytest.raises(SourceNotFoundError) as exc:
            VectorDatabase.load(tmp_path / "missing.txt", tmp_path / "m.npz")
        assert isinstance(exc.value, FileNotFoundError)

    def test_missing_matrix_file(self, tmp_path):
        (tmp_path / "l.txt").write_text("a\n", encoding="utf-8")
        with pytest.raises(SourceNotFoundError):
            VectorDatabase.load(tmp_path / "l.txt", tmp_path / "missing.npz")

    def test_missing_named_dataset(self, tmp_path):
        (tmp_path / "l.txt").write_text("a\n", encoding="utf-8")
        np.savez(tmp_path / "m.npz", other=np.ones((1, 2), dtype=np.float32))
        with pytest.raises(SchemaMismatchError):
            VectorDatabase.load(tmp_path / "l.txt", tmp_path / "m.npz")

    def test_custom_dataset_name(self, tmp_path):
        dump_database(["a"], np.ones((1, 2)), tmp_path / "l.txt", tmp_path / "m.npz", dataset="feats")
        db = VectorDatabase.load(tmp_path / "l.txt", tmp_path / "m.npz", dataset="feats")
        assert db.entry_count() == 1

    def test_plain_npy_matrix(self, tmp_path):
        (tmp_path / "l.txt").write_text("a\nb\n", encoding="utf-8")
        np.save(tmp_path / "m.npy", np.zeros((2, 5), dtype=np.float32))
        db = VectorDatabase.load(tmp_path / "l.txt", tmp_path / "m.npy")
        assert (db.entry_count(), db.dimension()) == (2, 5)

    def test_one_dimensional_matrix_rejected(self, tmp_path):
        (tmp_path / "l.txt").write_text("a\nb\n", encoding="utf-8")
        np.savez(tmp_path / "m.npz", training_data=np.zeros(2, dtype=np.float32))
        with pytest.raises(SchemaMismatchError):
            VectorDatabase.load(tmp_path / "l.txt", tmp_path / "m.npz")

    def test_unreadable_matrix(self, tmp_path):
        (tmp_path / "l.txt").write_text("a\n", encoding="utf-8")
        (tmp_path / "m.npz").write_bytes(b"not an archive")
        with pytest.raises(SchemaMismatchError):
            VectorDatabase.load(tmp_path / "l.txt", tmp_path / "m.npz")


class TestAccess:
    """Read-only accessors."""

    def test_label_at_out_of_range(self):
        db = VectorDatabase(FRUIT_LABELS, FRUIT_MATRIX)
        with pytest.raises(OutOfRangeError):
            db.label_at(3)
        with pytest.raises(IndexError):
            db.label_at(-1)

    def test_duplicate_labels_allowed(self):
        db = VectorDatabase(["cup", "cup"], np.ones((2, 2)))
        assert db.label_at(0) == db.label_at(1) == "cup"

    def test_entry_at(self):
        db = VectorDatabase(FRUIT_LABELS, FRUIT_MATRIX)
        entry = db.entry_at(2)
        assert entry.label == "apple2"
        np.testing.assert_allclose(entry.features, [0.9, 0.1, 0.0])

    def test_matrix_view_is_read_only(self):
        db = VectorDatabase(FRUIT_LABELS, FRUIT_MATRIX)
        view = db.matrix_view()
        with pytest.raises(ValueError):
            view[0, 0] = 5.0
        with pytest.raises(ValueError):
            db.entry_at(0).features[0] = 5.0

    def test_source_array_is_copied(self):
        matrix = FRUIT_MATRIX.copy()
        db = VectorDatabase(FRUIT_LABELS, matrix)
        matrix[0, 0] = 42.0
        assert db.matrix_view()[0, 0] == pytest.approx(1.0)

    def test_owns_its_views_only(self):
        db = VectorDatabase(FRUIT_LABELS, FRUIT_MATRIX)
        assert db.owns(db.matrix_view())
        assert not db.owns(FRUIT_MATRIX.copy())

    def test_view_keeps_buffer_alive(self):
        """An index-held view stays valid after the database object goes away."""
        db = VectorDatabase(FRUIT_LABELS, FRUIT_MATRIX)
        view = db.matrix_view()
        del db
        np.testing.assert_array_equal(view, FRUIT_MATRIX)
