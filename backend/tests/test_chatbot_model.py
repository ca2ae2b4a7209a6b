from __future__ import annotations

import asyncio
import json
import random

from core.chatbot_model import (
    FALLBACK_MESSAGE,
    STILL_LEARNING_MESSAGE,
    ChatbotModel,
    extract_keywords,
)
from datasets.ai_store import DatasetStore


def _model(seed: int = 0) -> ChatbotModel:
    return ChatbotModel("bot_1", "Buddy", rng=random.Random(seed))


def test_untrained_bot_is_still_learning() -> None:
    assert _model().predict("hello") == STILL_LEARNING_MESSAGE


def test_hello_scenario() -> None:
    model = _model()
    asyncio.run(model.train([{"input": "hello there", "output": "hi!"}]))

    assert model.predict("hello") == "hi!"
    assert model.predict("HELLO friend") == "hi!"
    assert model.predict("xyz") == FALLBACK_MESSAGE
    assert model.predict("ok no") == FALLBACK_MESSAGE
    assert model.keywords == ["hello", "there"]


def test_keywords_skip_short_tokens() -> None:
    assert extract_keywords("How is it going") == ["how", "going"]
    assert extract_keywords("  Tell   me a JOKE ") == ["tell", "joke"]


def test_shared_keywords_pool_all_outputs() -> None:
    rows = [
        {"input": "good morning", "output": "Morning!"},
        {"input": "good night", "output": "Sleep well!"},
    ]
    seen = set()
    for seed in range(30):
        model = _model(seed)
        asyncio.run(model.train(rows))
        seen.add(model.predict("good"))
    assert seen == {"Morning!", "Sleep well!"}

    payload = json.loads(model.export())
    assert payload["responses"]["good"] == ["Morning!", "Sleep well!"]


def test_duplicate_keywords_in_one_input_are_kept() -> None:
    model = _model()
    asyncio.run(model.train([{"input": "hey hey there", "output": "yo"}]))

    assert json.loads(model.export())["responses"]["hey"] == ["yo", "yo"]


def test_progress_per_row_and_simulated_accuracy(progress_log) -> None:
    snapshots, on_progress = progress_log
    dataset = DatasetStore(seed=5).get_dataset("chatbot-training")
    model = _model()

    asyncio.run(model.train(dataset.rows, on_progress=on_progress))

    progress = [p for p, _ in snapshots]
    assert len(progress) == len(dataset.rows) + 1
    assert progress[0] == 10
    assert progress[-1] == 100
    assert 70 <= model.accuracy < 95
    assert model.predict("what is your name") != FALLBACK_MESSAGE


def test_export_shape() -> None:
    model = _model()
    asyncio.run(model.train([{"input": "hello there", "output": "hi!"}]))

    payload = json.loads(model.export())
    assert set(payload) == {"type", "responses", "keywords", "accuracy"}
    assert payload["type"] == "chatbot"
    assert payload["keywords"] == ["hello", "there"]
