"""Nearest-centroid classifier over numeric feature vectors."""

from __future__ import annotations

from typing import Any, AsyncIterator, Sequence

import numpy as np

from core.ai_model_base import AIModel
from models.ai_schema import ClassificationRow, ModelType

UNKNOWN_LABEL = "unknown"


class ClassificationModel(AIModel):
    model_type = ModelType.classification
    step_delay = 0.2

    def _reset_parameters(self) -> None:
        self._centroids: dict[str, np.ndarray] = {}
        self._classes: list[str] = []

    def _validate_samples(self, samples: list[ClassificationRow]) -> None:
        self._require_uniform_features(samples)

    async def _fit(self, samples: list[ClassificationRow]) -> AsyncIterator[float]:
        # dict.fromkeys keeps first-seen order.
        self._classes = list(dict.fromkeys(s.label for s in samples))
        progress = 0.0
        for label in self._classes:
            members = np.array([s.features for s in samples if s.label == label], dtype=np.float64)
            self._centroids[label] = members.mean(axis=0)
            progress += 100 / len(self._classes)
            yield progress

    def _nearest(self, x: np.ndarray) -> str:
        best_label = self._classes[0]
        best_distance = float("inf")
        for label in self._classes:
            centroid = self._centroids[label]
            n = min(len(x), len(centroid))
            distance = float(np.sum((x[:n] - centroid[:n]) ** 2))
            if distance < best_distance:
                best_distance = distance
                best_label = label
        return best_label

    def _score(self, samples: list[ClassificationRow]) -> float:
        correct = sum(
            1 for s in samples if self._nearest(np.asarray(s.features, dtype=np.float64)) == s.label
        )
        return correct / len(samples) * 100

    def predict(self, input: Sequence[float]) -> str:
        if not self.is_trained or not self._classes:
            if not self._classes:
                return UNKNOWN_LABEL
            return self._rng.choice(self._classes)

        x = np.asarray(input, dtype=np.float64)
        self._common_length(x, self._centroids[self._classes[0]])
        return self._nearest(x)

    @property
    def classes(self) -> list[str]:
        return list(self._classes)

    def _export_payload(self) -> dict[str, Any]:
        return {
            "centroids": {label: centroid.tolist() for label, centroid in self._centroids.items()},
            "classes": list(self._classes),
        }
