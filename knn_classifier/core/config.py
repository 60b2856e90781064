from __future__ import annotations
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClassifierSettings(BaseSettings):
    """
    Source locations and query knobs for one classifier instance.
    Built once by the entry point and passed explicitly into the core.
    """
    DATA_DIR: Path = Path("data")
    LIST_FILE: str = "decaf_list.txt"
    MATRIX_FILE: str = "decaf_training_data.npz"
    INDEX_PARAMS_FILE: str = "decaf_index_params.json"
    MATRIX_DATASET: str = "training_data"

    K: int = 1

    # Overrides for the persisted index params (None -> use the file)
    INDEX_ALGORITHM: str | None = None  # "kdtree" | "linear"
    METRIC: str | None = None           # "chi_square" | "l2" | "hellinger"
    CHECKS: int | None = None
    TREES: int | None = Field(default=None, ge=1)

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="KNN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def list_path(self) -> Path:
        return self.DATA_DIR / self.LIST_FILE

    def matrix_path(self) -> Path:
        return self.DATA_DIR / self.MATRIX_FILE

    def index_params_path(self) -> Path:
        return self.DATA_DIR / self.INDEX_PARAMS_FILE

    def index_overrides(self) -> dict:
        """Non-empty override fields, keyed like IndexParams."""
        raw = {
            "algorithm": self.INDEX_ALGORITHM,
            "metric": self.METRIC,
            "checks": self.CHECKS,
            "trees": self.TREES,
        }
        return {key: value for key, value in raw.items() if value is not None}
