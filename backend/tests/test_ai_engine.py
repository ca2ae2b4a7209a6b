from __future__ import annotations

import asyncio
import re

import pytest

from core.ai_engine import (
    DatasetNotFoundError,
    IncompatibleDatasetError,
    ModelBusyError,
    ModelNotFoundError,
    NotFoundError,
)
from core.ai_model_base import TrainingStopped
from core.chatbot_model import ChatbotModel
from core.regression_model import RegressionModel
from models.ai_schema import ModelType


BUILT_IN = [
    (ModelType.regression, "house-prices"),
    (ModelType.classification, "email-classification"),
    (ModelType.recommendation, "movie-recommendations"),
    (ModelType.chatbot, "chatbot-training"),
]


def test_create_model_returns_unique_ids(engine) -> None:
    first = engine.create_model(ModelType.regression, "Twin")
    second = engine.create_model(ModelType.regression, "Twin")

    assert first != second
    assert re.fullmatch(r"model_\d+_[0-9a-f]{9}", first)
    assert [m.id for m in engine.get_all_models()] == [first, second]


def test_create_model_picks_variant_by_type(engine) -> None:
    model_id = engine.create_model("chatbot", "Buddy")
    model = engine.get_model(model_id)

    assert isinstance(model, ChatbotModel)
    assert model.name == "Buddy"
    assert model.is_trained is False

    with pytest.raises(ValueError):
        engine.create_model("neural_net", "Nope")


def test_get_model_unknown_id_is_absent(engine) -> None:
    assert engine.get_model("model_0_missing") is None


@pytest.mark.parametrize(("model_type", "dataset_id"), BUILT_IN)
def test_train_model_on_built_in_datasets(engine, model_type, dataset_id) -> None:
    model_id = engine.create_model(model_type, "Learner")

    asyncio.run(engine.train_model(model_id, dataset_id))

    model = engine.get_model(model_id)
    assert model.is_trained is True
    assert model.is_training is False
    assert model.training_progress == 100
    assert 0 <= model.accuracy <= 100

    session = engine.training_session(model_id)
    assert session.status == "completed"
    assert session.terminal is True
    assert session.dataset_id == dataset_id
    assert session.messages[0]["type"] == "status"
    assert session.messages[-1] == {"model_id": model_id, "type": "training_done", "accuracy": model.accuracy}
    progress = [m["progress"] for m in session.messages if m["type"] == "training_progress"]
    assert progress == sorted(progress)
    assert progress[-1] == 100


def test_train_with_unknown_dataset_leaves_model_untouched(engine) -> None:
    model_id = engine.create_model(ModelType.regression, "Careful")
    model = engine.get_model(model_id)

    with pytest.raises(DatasetNotFoundError):
        asyncio.run(engine.train_model(model_id, "bogus-dataset"))

    assert model.is_trained is False
    assert model.training_progress == 0
    assert engine.training_session(model_id).messages == []


def test_train_with_unknown_model_is_not_found(engine) -> None:
    with pytest.raises(ModelNotFoundError):
        asyncio.run(engine.train_model("model_0_missing", "house-prices"))

    with pytest.raises(NotFoundError):
        asyncio.run(engine.train_model("model_0_missing", "bogus"))


def test_train_rejects_dataset_of_another_type(engine) -> None:
    model_id = engine.create_model(ModelType.chatbot, "Buddy")

    with pytest.raises(IncompatibleDatasetError):
        asyncio.run(engine.train_model(model_id, "house-prices"))

    assert engine.get_model(model_id).is_trained is False


def test_delete_model(engine) -> None:
    model_id = engine.create_model(ModelType.classification, "Temp")

    assert engine.delete_model(model_id) is True
    assert engine.get_model(model_id) is None
    assert engine.delete_model(model_id) is False
    assert engine.get_all_models() == []


def test_datasets_are_exposed(engine) -> None:
    ids = [d.id for d in engine.get_all_datasets()]
    assert ids == [dataset_id for _, dataset_id in BUILT_IN]
    assert engine.get_dataset("house-prices").problem_type == ModelType.regression
    assert engine.get_dataset("missing") is None


def test_background_training_can_be_stopped(engine) -> None:
    model_id = engine.create_model(ModelType.regression, "Stoppable")
    model = engine.get_model(model_id)

    async def scenario() -> None:
        task = engine.start_training(model_id, "house-prices")
        while not model.is_training:
            await asyncio.sleep(0)
        assert engine.request_stop(model_id) is True
        await task

    asyncio.run(scenario())

    session = engine.training_session(model_id)
    assert session.status == "stopped"
    assert session.terminal is True
    assert session.messages[-1]["type"] == "stopped"
    assert model.is_trained is False
    assert model.training_progress == 0
    assert engine.request_stop(model_id) is False


def test_direct_training_propagates_stop(engine) -> None:
    model_id = engine.create_model(ModelType.regression, "Stoppable")
    model = engine.get_model(model_id)

    async def scenario() -> None:
        training = asyncio.create_task(engine.train_model(model_id, "house-prices"))
        while not model.is_training:
            await asyncio.sleep(0)
        engine.request_stop(model_id)
        with pytest.raises(TrainingStopped):
            await training

    asyncio.run(scenario())
    assert model.is_trained is False


def test_second_training_request_is_busy(engine) -> None:
    model_id = engine.create_model(ModelType.chatbot, "Busy")

    async def scenario() -> None:
        task = engine.start_training(model_id, "chatbot-training")
        with pytest.raises(ModelBusyError):
            engine.start_training(model_id, "chatbot-training")
        await task

    asyncio.run(scenario())
    assert engine.get_model(model_id).is_trained is True


def test_delete_cancels_running_training(engine) -> None:
    model_id = engine.create_model(ModelType.regression, "Doomed")
    model = engine.get_model(model_id)
    assert isinstance(model, RegressionModel)

    async def scenario() -> None:
        task = engine.start_training(model_id, "house-prices")
        while model.training_progress < 5:
            await asyncio.sleep(0)
        assert engine.delete_model(model_id) is True
        await asyncio.gather(task, return_exceptions=True)
        assert task.cancelled()

    asyncio.run(scenario())
    assert model.is_training is False
    assert model.is_trained is False


def test_wait_for_update_replays_messages(engine) -> None:
    model_id = engine.create_model(ModelType.classification, "Watcher")

    async def scenario() -> tuple[list[dict], bool]:
        await engine.train_model(model_id, "email-classification")
        return await engine.wait_for_update(model_id, 0, timeout=0.1)

    messages, terminal = asyncio.run(scenario())
    assert terminal is True
    assert messages[-1]["type"] == "training_done"

    gone, terminal = asyncio.run(engine.wait_for_update("model_0_missing", 0, timeout=0.1))
    assert gone == []
    assert terminal is True


def test_retraining_resets_session_log(engine) -> None:
    model_id = engine.create_model(ModelType.chatbot, "Again")

    asyncio.run(engine.train_model(model_id, "chatbot-training"))
    first_count = len(engine.training_session(model_id).messages)
    asyncio.run(engine.train_model(model_id, "chatbot-training"))

    assert len(engine.training_session(model_id).messages) == first_count
    assert engine.get_model(model_id).is_trained is True


def test_background_failure_is_recorded_on_the_session(engine, monkeypatch, caplog) -> None:
    model_id = engine.create_model(ModelType.regression, "Fragile")
    model = engine.get_model(model_id)

    def explode(samples):
        raise RuntimeError("weights went sideways")

    monkeypatch.setattr(model, "_score", explode)

    async def scenario() -> None:
        await engine.start_training(model_id, "house-prices")

    with caplog.at_level("DEBUG", logger="core.ai_engine"):
        asyncio.run(scenario())

    assert "ended with RuntimeError" in caplog.text
    session = engine.training_session(model_id)
    assert session.status == "failed"
    assert session.error == "weights went sideways"
    assert session.messages[-1] == {"model_id": model_id, "type": "error", "error": "weights went sideways"}
    assert model.is_trained is False
    assert model.training_progress == 0
