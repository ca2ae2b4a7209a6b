"""Model registry for the AI Builder.

Creates models by type, trains them against the built-in datasets and keeps a
per-model message log that WebSocket clients can follow, using the same
publish / wait_for_update pattern as the training job registries.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from core.ai_model_base import AIModel, TrainingStopped
from core.chatbot_model import ChatbotModel
from core.classification_model import ClassificationModel
from core.recommendation_model import RecommendationModel
from core.regression_model import RegressionModel
from datasets.ai_store import Dataset, DatasetStore
from models.ai_schema import ModelType

logger = logging.getLogger(__name__)


MODEL_CLASSES: dict[ModelType, type[AIModel]] = {
    ModelType.regression: RegressionModel,
    ModelType.classification: ClassificationModel,
    ModelType.recommendation: RecommendationModel,
    ModelType.chatbot: ChatbotModel,
}

TERMINAL_STATUSES = {"completed", "failed", "stopped"}
ACTIVE_STATUSES = {"queued", "training", "stopping"}


class NotFoundError(LookupError):
    pass


class ModelNotFoundError(NotFoundError):
    def __init__(self, model_id: str) -> None:
        super().__init__(f"Model {model_id!r} not found")
        self.model_id = model_id


class DatasetNotFoundError(NotFoundError):
    def __init__(self, dataset_id: str) -> None:
        super().__init__(f"Dataset {dataset_id!r} not found")
        self.dataset_id = dataset_id


class IncompatibleDatasetError(ValueError):
    pass


class ModelBusyError(RuntimeError):
    pass


@dataclass
class TrainingSession:
    model_id: str
    status: str = "idle"
    dataset_id: str | None = None
    messages: list[dict[str, Any]] = field(default_factory=list)
    task: asyncio.Task | None = None
    terminal: bool = False
    error: str | None = None
    condition: asyncio.Condition = field(default_factory=asyncio.Condition)

    @property
    def active(self) -> bool:
        return self.task is not None and not self.task.done()


def new_model_id() -> str:
    return f"model_{time.time_ns() // 1_000_000}_{uuid4().hex[:9]}"


class AIEngine:
    def __init__(self, datasets: DatasetStore | None = None, *, rng: random.Random | None = None) -> None:
        self._models: dict[str, AIModel] = {}
        self._sessions: dict[str, TrainingSession] = {}
        self._datasets = datasets or DatasetStore()
        self._rng = rng

    # ── Datasets ──────────────────────────────────────

    def get_dataset(self, dataset_id: str) -> Dataset | None:
        return self._datasets.get_dataset(dataset_id)

    def get_all_datasets(self) -> list[Dataset]:
        return self._datasets.get_all_datasets()

    # ── Models ────────────────────────────────────────

    def create_model(self, model_type: ModelType | str, name: str) -> str:
        model_type = ModelType(model_type)
        model_id = new_model_id()
        while model_id in self._models:
            model_id = new_model_id()

        model_rng = random.Random(self._rng.getrandbits(64)) if self._rng is not None else None
        self._models[model_id] = MODEL_CLASSES[model_type](model_id, name, rng=model_rng)
        self._sessions[model_id] = TrainingSession(model_id=model_id)
        logger.info("Created %s model %s (%r)", model_type.value, model_id, name)
        return model_id

    def get_model(self, model_id: str) -> AIModel | None:
        return self._models.get(model_id)

    def get_all_models(self) -> list[AIModel]:
        return list(self._models.values())

    def delete_model(self, model_id: str) -> bool:
        model = self._models.pop(model_id, None)
        if model is None:
            return False
        session = self._sessions.pop(model_id, None)
        model.request_stop()
        if session is not None and session.active:
            session.task.cancel()
        logger.info("Deleted model %s", model_id)
        return True

    def training_session(self, model_id: str) -> TrainingSession | None:
        return self._sessions.get(model_id)

    def clear(self) -> None:
        for session in self._sessions.values():
            if session.active and not session.task.get_loop().is_closed():
                session.task.cancel()
        self._models.clear()
        self._sessions.clear()

    # ── Training ──────────────────────────────────────

    def _prepare_training(self, model_id: str, dataset_id: str) -> tuple[AIModel, Dataset, TrainingSession]:
        model = self._models.get(model_id)
        if model is None:
            raise ModelNotFoundError(model_id)
        dataset = self._datasets.get_dataset(dataset_id)
        if dataset is None:
            raise DatasetNotFoundError(dataset_id)
        if dataset.problem_type != model.model_type:
            raise IncompatibleDatasetError(
                f"A {model.model_type.value} model cannot train on {dataset.name!r} "
                f"({dataset.problem_type.value} data)"
            )
        session = self._sessions[model_id]
        if model.is_training or session.status in ACTIVE_STATUSES:
            raise ModelBusyError(f"Model {model_id!r} is already training")
        return model, dataset, session

    async def train_model(self, model_id: str, dataset_id: str) -> None:
        """Train a model on a dataset, returning once training has finished.

        Raises ``ModelNotFoundError`` / ``DatasetNotFoundError`` before the
        model is touched. ``TrainingStopped`` propagates if a stop is
        requested mid-run; the model is then back to untrained.
        """
        model, dataset, session = self._prepare_training(model_id, dataset_id)
        await self._run_training(model, dataset, session)

    def start_training(self, model_id: str, dataset_id: str) -> asyncio.Task:
        """Schedule training on the running event loop and return its task."""
        model, dataset, session = self._prepare_training(model_id, dataset_id)
        self._reset_session(session, dataset.id, "queued")
        session.task = asyncio.create_task(self._train_in_background(model, dataset, session))
        return session.task

    async def _train_in_background(self, model: AIModel, dataset: Dataset, session: TrainingSession) -> None:
        try:
            await self._run_training(model, dataset, session)
        except Exception as exc:
            # Already logged and published to the session.
            logger.debug("Background training of model %s ended with %s", model.id, type(exc).__name__)

    async def _run_training(self, model: AIModel, dataset: Dataset, session: TrainingSession) -> None:
        self._reset_session(session, dataset.id, "training")
        await self._publish(session, {"type": "status", "status": "training", "dataset_id": dataset.id})
        logger.info("Training model %s on dataset %s", model.id, dataset.id)

        async def on_progress(trained: AIModel) -> None:
            await self._publish(
                session,
                {
                    "type": "training_progress",
                    "progress": trained.training_progress,
                    "is_trained": trained.is_trained,
                },
            )

        try:
            await model.train(dataset.rows, on_progress=on_progress)
        except TrainingStopped:
            logger.info("Training of model %s stopped", model.id)
            await self._publish(session, {"type": "stopped"})
            await self._mark_terminal(session, "stopped")
            raise
        except asyncio.CancelledError:
            session.messages.append({"model_id": session.model_id, "type": "stopped"})
            session.status = "stopped"
            session.terminal = True
            raise
        except Exception as exc:
            logger.exception("Training of model %s failed", model.id)
            await self._publish(session, {"type": "error", "error": str(exc)})
            await self._mark_terminal(session, "failed", error=str(exc))
            raise

        await self._publish(session, {"type": "training_done", "accuracy": model.accuracy})
        await self._mark_terminal(session, "completed")

    def request_stop(self, model_id: str) -> bool:
        model = self._models.get(model_id)
        if model is None:
            return False
        session = self._sessions[model_id]
        if model.request_stop():
            session.status = "stopping"
            return True
        if session.active:
            # Queued but not started yet.
            session.task.cancel()
            session.status = "stopped"
            session.terminal = True
            return True
        return False

    # ── Progress pub/sub ──────────────────────────────

    @staticmethod
    def _reset_session(session: TrainingSession, dataset_id: str, status: str) -> None:
        session.status = status
        session.dataset_id = dataset_id
        session.terminal = False
        session.error = None
        session.messages.clear()

    async def _publish(self, session: TrainingSession, message: dict[str, Any]) -> None:
        message = {"model_id": session.model_id, **message}
        async with session.condition:
            session.messages.append(message)
            session.condition.notify_all()

    async def _mark_terminal(self, session: TrainingSession, status: str, *, error: str | None = None) -> None:
        session.status = status
        session.terminal = True
        session.error = error
        async with session.condition:
            session.condition.notify_all()

    async def wait_for_update(
        self,
        model_id: str,
        last_index: int,
        timeout: float = 30.0,
    ) -> tuple[list[dict[str, Any]], bool]:
        session = self._sessions.get(model_id)
        if session is None:
            return [], True
        async with session.condition:
            if last_index < len(session.messages) or session.terminal:
                return session.messages[last_index:], session.terminal
            try:
                await asyncio.wait_for(session.condition.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                pass
            return session.messages[last_index:], session.terminal


ai_engine = AIEngine()
