"""Linear regression trained with per-sample (stochastic) gradient descent."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Sequence

import numpy as np

from core.ai_model_base import AIModel
from models.ai_schema import ModelType, RegressionRow

logger = logging.getLogger(__name__)

EPOCHS = 100
LEARNING_RATE = 0.01


class RegressionModel(AIModel):
    model_type = ModelType.regression
    step_delay = 0.05

    def _reset_parameters(self) -> None:
        self._weights: np.ndarray | None = None
        self._bias = 0.0

    def _validate_samples(self, samples: list[RegressionRow]) -> None:
        self._require_uniform_features(samples)

    async def _fit(self, samples: list[RegressionRow]) -> AsyncIterator[float]:
        X = np.array([s.features for s in samples], dtype=np.float64)
        y = np.array([s.target for s in samples], dtype=np.float64)
        self._weights = np.zeros(X.shape[1], dtype=np.float64)
        self._bias = 0.0

        for epoch in range(EPOCHS):
            # Large unscaled features can diverge; the accuracy check reports it.
            with np.errstate(over="ignore", invalid="ignore"):
                for x, target in zip(X, y):
                    error = float(target) - self._linear(x)
                    self._weights += LEARNING_RATE * error * x
                    self._bias += LEARNING_RATE * error
            yield (epoch + 1) / EPOCHS * 100

    def _linear(self, x: np.ndarray) -> float:
        return self._bias + float(np.dot(self._weights, x))

    def _score(self, samples: list[RegressionRow]) -> float:
        X = np.array([s.features for s in samples], dtype=np.float64)
        y = np.array([s.target for s in samples], dtype=np.float64)
        with np.errstate(over="ignore", invalid="ignore"):
            predictions = X @ self._weights + self._bias
            errors = np.abs(y - predictions)

        # Relative error is undefined for a zero target; those rows are skipped.
        mask = y != 0
        if not mask.any():
            return 0.0
        with np.errstate(over="ignore", invalid="ignore"):
            mean_relative_error = float(np.mean(errors[mask] / np.abs(y[mask])))
        if not np.isfinite(mean_relative_error):
            logger.warning("Regression model %s diverged during training; reporting 0%% accuracy", self.id)
            return 0.0
        return max(0.0, 100.0 - mean_relative_error * 100.0)

    def predict(self, input: Sequence[float]) -> float:
        if self._weights is None:
            return self._rng.random() * 100

        x = np.asarray(input, dtype=np.float64)
        n = self._common_length(x, self._weights)
        with np.errstate(over="ignore", invalid="ignore"):
            return self._bias + float(np.dot(self._weights[:n], x[:n]))

    def _export_payload(self) -> dict[str, Any]:
        weights = [] if self._weights is None else self._weights.tolist()
        return {"weights": weights, "bias": self._bias}
