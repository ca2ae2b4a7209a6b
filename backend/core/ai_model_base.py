"""Shared lifecycle for the AI Builder models.

Each variant implements ``_fit`` as an async generator that yields a progress
percentage at every checkpoint (epoch, class, item/user, row). ``train`` turns
those checkpoints into status updates, cooperative yields and optional
progress callbacks, and reverts the model to untrained if the run is stopped,
cancelled or fails.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Awaitable, Callable, ClassVar, Iterable, Sequence

from pydantic import BaseModel

from core.json_safe import json_safe
from core.settings import training_pacing
from models.ai_schema import ROW_SCHEMAS, ModelType

logger = logging.getLogger(__name__)

ProgressCallback = Callable[["AIModel"], Awaitable[None]]


class TrainingStopped(Exception):
    """Raised out of ``train`` when a stop was requested mid-run."""


class AIModel(ABC):
    model_type: ClassVar[ModelType]
    # Seconds to pause at each checkpoint before scaling by AI_TRAINING_PACING.
    step_delay: ClassVar[float] = 0.0

    def __init__(self, model_id: str, name: str, *, rng: random.Random | None = None) -> None:
        self.id = model_id
        self.name = name
        self.is_training = False
        self.is_trained = False
        self.accuracy = 0.0
        self.training_progress = 0.0
        self._rng = rng or random.Random()
        self._stop_requested = False
        self._reset_parameters()

    # ── Variant hooks ─────────────────────────────────

    @abstractmethod
    def _reset_parameters(self) -> None:
        ...

    @abstractmethod
    def _fit(self, samples: list[Any]) -> AsyncIterator[float]:
        ...

    @abstractmethod
    def _score(self, samples: list[Any]) -> float:
        ...

    @abstractmethod
    def predict(self, input: Any) -> Any:
        ...

    @abstractmethod
    def _export_payload(self) -> dict[str, Any]:
        ...

    def _validate_samples(self, samples: list[Any]) -> None:
        pass

    # ── Lifecycle ─────────────────────────────────────

    def parse_rows(self, rows: Iterable[Any]) -> list[Any]:
        schema: type[BaseModel] = ROW_SCHEMAS[self.model_type]
        samples = [row if isinstance(row, schema) else schema.model_validate(row) for row in rows]
        if not samples:
            raise ValueError(f"Cannot train a {self.model_type.value} model on an empty dataset")
        self._validate_samples(samples)
        return samples

    def request_stop(self) -> bool:
        if not self.is_training:
            return False
        self._stop_requested = True
        return True

    async def train(self, rows: Iterable[Any], on_progress: ProgressCallback | None = None) -> None:
        samples = self.parse_rows(rows)

        self._stop_requested = False
        self.is_training = True
        self.is_trained = False
        self.accuracy = 0.0
        self.training_progress = 0.0
        self._reset_parameters()
        delay = self.step_delay * training_pacing()

        try:
            async for progress in self._fit(samples):
                self.training_progress = max(self.training_progress, min(100.0, progress))
                if on_progress is not None:
                    await on_progress(self)
                await asyncio.sleep(delay)
                if self._stop_requested:
                    raise TrainingStopped(f"Training of model {self.id!r} was stopped")
            accuracy = self._score(samples)
        except BaseException:
            self._revert()
            raise

        # No await between these assignments: observers never see a trained
        # model with partial progress.
        self.accuracy = accuracy
        self.training_progress = 100.0
        self.is_trained = True
        self.is_training = False
        logger.info(
            "Trained %s model %s on %d rows (accuracy=%.1f)",
            self.model_type.value,
            self.id,
            len(samples),
            self.accuracy,
        )
        if on_progress is not None:
            await on_progress(self)

    def _revert(self) -> None:
        self._reset_parameters()
        self._stop_requested = False
        self.is_training = False
        self.is_trained = False
        self.accuracy = 0.0
        self.training_progress = 0.0

    def export(self) -> str:
        payload = {"type": self.model_type.value, **self._export_payload(), "accuracy": self.accuracy}
        return json.dumps(json_safe(payload))

    def status(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.model_type.value,
            "is_training": self.is_training,
            "is_trained": self.is_trained,
            "accuracy": self.accuracy,
            "training_progress": self.training_progress,
        }

    # ── Helpers shared by the vector models ───────────

    def _common_length(self, given: Sequence[Any], expected: Sequence[Any]) -> int:
        if len(given) != len(expected):
            logger.warning(
                "%s model %s received %d features but holds %d; truncating to %d",
                self.model_type.value,
                self.id,
                len(given),
                len(expected),
                min(len(given), len(expected)),
            )
        return min(len(given), len(expected))

    @staticmethod
    def _require_uniform_features(samples: list[Any]) -> None:
        expected = len(samples[0].features)
        for index, sample in enumerate(samples):
            if len(sample.features) != expected:
                raise ValueError(
                    f"Row {index} has {len(sample.features)} features, expected {expected}"
                )
