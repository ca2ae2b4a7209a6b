from __future__ import annotations

import random

import pytest
from fastapi.testclient import TestClient

from core.ai_engine import AIEngine, ai_engine
from datasets.ai_store import DatasetStore
from main import app


@pytest.fixture
def progress_log():
    """An on_progress callback plus the (progress, is_trained) pairs it records."""
    snapshots: list[tuple[float, bool]] = []

    async def on_progress(model) -> None:
        snapshots.append((model.training_progress, model.is_trained))

    return snapshots, on_progress


@pytest.fixture
def client():
    ai_engine.clear()
    with TestClient(app) as test_client:
        yield test_client
    ai_engine.clear()


@pytest.fixture
def engine() -> AIEngine:
    return AIEngine(DatasetStore(seed=1234), rng=random.Random(42))


@pytest.fixture(autouse=True)
def _no_training_pacing(monkeypatch):
    monkeypatch.delenv("AI_TRAINING_PACING", raising=False)
