"""Registry of the synthetic datasets available to the AI Builder."""

from __future__ import annotations

from typing import Any


AI_DATASET_REGISTRY: list[dict[str, Any]] = [
    {
        "id": "house-prices",
        "name": "House Prices",
        "task": "regression",
        "n_samples": 100,
        "feature_names": ["bedrooms", "bathrooms", "sqft", "year_built"],
        "target": "price",
        "description": "Made-up houses with a price that grows with rooms and size and drops with age.",
    },
    {
        "id": "email-classification",
        "name": "Email Classification",
        "task": "classification",
        "n_samples": 50,
        "feature_names": ["spam_words", "caps_ratio", "exclamations", "length"],
        "target": "label",
        "description": "Emails described by a few counts, each tagged as spam or ham.",
    },
    {
        "id": "movie-recommendations",
        "name": "Movie Recommendations",
        "task": "recommendation",
        "n_samples": 200,
        "feature_names": ["action", "comedy", "drama", "scifi", "romance"],
        "target": "rating",
        "description": "Twenty viewers rating five movies from 1 to 5 stars.",
    },
    {
        "id": "chatbot-training",
        "name": "Chatbot Training",
        "task": "chatbot",
        "n_samples": 10,
        "feature_names": ["input"],
        "target": "output",
        "description": "Friendly questions paired with the answers the chatbot should give.",
    },
]


def list_ai_datasets(task: str | None = None) -> list[dict[str, Any]]:
    """Return dataset metadata, optionally filtered by problem type."""
    if task is None:
        return AI_DATASET_REGISTRY
    return [d for d in AI_DATASET_REGISTRY if d["task"] == task]


def get_ai_dataset_info(dataset_id: str) -> dict[str, Any] | None:
    normalized = dataset_id.strip().lower()
    for d in AI_DATASET_REGISTRY:
        if d["id"] == normalized:
            return d
    return None
