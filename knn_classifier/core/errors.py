"""
Error taxonomy for the k-NN classifier.

Initialization errors (missing sources, schema/config problems) are fatal for the
process. Query errors are raised to the immediate caller and leave state untouched.
"""
from __future__ import annotations


class ClassifierError(Exception):
    """Base class for every error raised by the classifier core."""


# ---------------- initialization ----------------
class SourceNotFoundError(ClassifierError, FileNotFoundError):
    """A required persisted source (label list, matrix, index params) is missing."""


class SchemaMismatchError(ClassifierError):
    """Label list and feature matrix disagree (row count, dataset name, shape)."""


class ConfigInvalidError(ClassifierError):
    """Bad configuration: k outside [1, N], unknown metric, malformed params."""


# ---------------- per request ----------------
class DimensionMismatchError(ClassifierError, ValueError):
    """Query vector length does not match the database dimension."""


class InvalidKError(ClassifierError, ValueError):
    """Requested neighbor count is outside [1, N]."""


class OutOfRangeError(ClassifierError, IndexError):
    """Row index is not a valid database row."""


class NotReadyError(ClassifierError):
    """Query issued before the classifier was initialized."""
