"""In-memory store holding the generated AI Builder datasets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
from sklearn.model_selection import train_test_split

from core.settings import dataset_seed
from datasets.ai_generators import GENERATORS
from datasets.ai_registry import AI_DATASET_REGISTRY, get_ai_dataset_info
from models.ai_schema import DatasetRow, ModelType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dataset:
    id: str
    name: str
    problem_type: ModelType
    rows: tuple[DatasetRow, ...]
    features: tuple[str, ...]
    target: str
    description: str = ""

    def info(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.problem_type.value,
            "features": list(self.features),
            "target": self.target,
            "n_samples": len(self.rows),
            "description": self.description,
        }


def load_ai_dataset(dataset_id: str, rng: np.random.Generator) -> Dataset:
    info = get_ai_dataset_info(dataset_id)
    generator = GENERATORS.get(dataset_id)
    if info is None or generator is None:
        raise ValueError(f"Unknown dataset: {dataset_id!r}")

    return Dataset(
        id=info["id"],
        name=info["name"],
        problem_type=ModelType(info["task"]),
        rows=tuple(generator(rng)),
        features=tuple(info["feature_names"]),
        target=info["target"],
        description=info.get("description", ""),
    )


def split_rows(
    dataset: Dataset,
    test_size: float = 0.2,
    random_state: int = 42,
) -> tuple[list[DatasetRow], list[DatasetRow]]:
    """Split a dataset's rows into train/test lists without touching the dataset."""
    train_rows, test_rows = train_test_split(
        list(dataset.rows), test_size=test_size, random_state=random_state,
    )
    return train_rows, test_rows


class DatasetStore:
    def __init__(self, seed: int | None = None) -> None:
        if seed is None:
            seed = dataset_seed()
        rng = np.random.default_rng(seed)
        self._datasets: dict[str, Dataset] = {}
        for meta in AI_DATASET_REGISTRY:
            dataset = load_ai_dataset(meta["id"], rng)
            self._datasets[dataset.id] = dataset
        logger.info("Generated %d synthetic datasets (seed=%s)", len(self._datasets), seed)

    def get_dataset(self, dataset_id: str) -> Dataset | None:
        return self._datasets.get(dataset_id)

    def get_all_datasets(self) -> list[Dataset]:
        return list(self._datasets.values())
