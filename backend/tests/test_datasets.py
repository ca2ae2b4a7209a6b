from __future__ import annotations

import dataclasses

import numpy as np
import pytest
from pydantic import ValidationError

from datasets.ai_generators import CHATBOT_PAIRS, MOVIES, N_USERS, generate_emails
from datasets.ai_registry import get_ai_dataset_info, list_ai_datasets
from datasets.ai_store import DatasetStore, split_rows
from models.ai_schema import ModelType


@pytest.fixture(scope="module")
def store() -> DatasetStore:
    return DatasetStore(seed=7)


def test_store_holds_four_datasets_in_registry_order(store) -> None:
    assert [d.id for d in store.get_all_datasets()] == [
        "house-prices",
        "email-classification",
        "movie-recommendations",
        "chatbot-training",
    ]
    assert store.get_dataset("nope") is None


def test_house_prices_shape_and_ranges(store) -> None:
    dataset = store.get_dataset("house-prices")

    assert dataset.problem_type == ModelType.regression
    assert len(dataset.rows) == 100
    for row in dataset.rows:
        bedrooms, bathrooms, sqft, year_built = row.features
        assert 1 <= bedrooms <= 6
        assert 1 <= bathrooms <= 5
        assert 1000 <= sqft <= 4000
        assert 1980 <= year_built <= 2030
        assert row.target > 0


def test_house_prices_follow_pricing_formula(store) -> None:
    for row in store.get_dataset("house-prices").rows:
        bedrooms, bathrooms, sqft, year_built = row.features
        base = bedrooms * 50000 + bathrooms * 30000 + sqft * 150 - (2024 - year_built) * 1000 + 200000
        noise = row.target - base
        assert -1e-6 <= noise <= 50000 + 1e-6


def test_emails_are_spam_or_ham(store) -> None:
    dataset = store.get_dataset("email-classification")

    assert dataset.problem_type == ModelType.classification
    assert len(dataset.rows) == 50
    assert {row.label for row in dataset.rows} <= {"spam", "ham"}
    for row in dataset.rows:
        assert len(row.features) == 4
        assert 0 <= row.features[3] <= 100


def test_spam_rate_is_roughly_thirty_percent() -> None:
    rows = generate_emails(np.random.default_rng(0), n_samples=2000)
    spam = sum(row.label == "spam" for row in rows) / len(rows)
    assert 0.25 < spam < 0.35


def test_movie_ratings_shape_and_ranges(store) -> None:
    dataset = store.get_dataset("movie-recommendations")

    assert dataset.problem_type == ModelType.recommendation
    assert len(dataset.rows) == 200
    users = {f"user_{i}" for i in range(1, N_USERS + 1)}
    for row in dataset.rows:
        assert row.user_id in users
        assert row.item_id in MOVIES
        assert 1 <= row.rating <= 5
        assert len(row.features) == 5
        assert all(0 <= value < 1 for value in row.features)


def test_chatbot_pairs_are_fixed(store) -> None:
    dataset = store.get_dataset("chatbot-training")

    assert dataset.problem_type == ModelType.chatbot
    assert [(row.input, row.output) for row in dataset.rows] == CHATBOT_PAIRS
    assert dataset.rows[0].input == "Hello"


def test_same_seed_generates_same_rows() -> None:
    first = DatasetStore(seed=99).get_dataset("house-prices").rows
    second = DatasetStore(seed=99).get_dataset("house-prices").rows
    other = DatasetStore(seed=100).get_dataset("house-prices").rows

    assert first == second
    assert first != other


def test_dataset_seed_comes_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("AI_DATASET_SEED", "21")
    assert DatasetStore().get_dataset("email-classification").rows == (
        DatasetStore(seed=21).get_dataset("email-classification").rows
    )


def test_rows_and_datasets_are_immutable(store) -> None:
    dataset = store.get_dataset("house-prices")

    with pytest.raises(dataclasses.FrozenInstanceError):
        dataset.name = "Renamed"
    with pytest.raises(ValidationError):
        dataset.rows[0].target = 1.0
    assert isinstance(dataset.rows, tuple)


def test_split_rows_keeps_dataset_intact(store) -> None:
    dataset = store.get_dataset("email-classification")

    train_rows, test_rows = split_rows(dataset)

    assert len(train_rows) == 40
    assert len(test_rows) == 10
    assert sorted(map(id, train_rows + test_rows)) == sorted(map(id, dataset.rows))
    assert split_rows(dataset)[1] == test_rows
    assert len(dataset.rows) == 50


def test_info_describes_dataset(store) -> None:
    info = store.get_dataset("movie-recommendations").info()

    assert info["type"] == "recommendation"
    assert info["n_samples"] == 200
    assert info["features"] == ["action", "comedy", "drama", "scifi", "romance"]


def test_registry_lookup() -> None:
    assert [d["id"] for d in list_ai_datasets("chatbot")] == ["chatbot-training"]
    assert len(list_ai_datasets()) == 4
    assert get_ai_dataset_info(" House-Prices ")["task"] == "regression"
    assert get_ai_dataset_info("missing") is None
