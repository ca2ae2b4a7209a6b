"""Synthetic row generators for the built-in AI Builder datasets.

Only the shapes and value ranges are fixed; values change on every run unless
a seed is supplied.
"""

from __future__ import annotations

from typing import Any, Callable

import numpy as np

from models.ai_schema import ChatbotRow, ClassificationRow, RecommendationRow, RegressionRow

MOVIES = ["Action Movie", "Comedy Film", "Drama Series", "Sci-Fi Thriller", "Romance"]
N_USERS = 20
SPAM_RATE = 0.3

CHATBOT_PAIRS: list[tuple[str, str]] = [
    ("Hello", "Hi there! How can I help you today?"),
    ("How are you", "I'm doing great! Thanks for asking."),
    ("What is your name", "I'm your AI assistant created by the AI Builder!"),
    ("Goodbye", "Goodbye! Have a great day!"),
    ("Thank you", "You're welcome! Happy to help."),
    ("Help me", "I'm here to help! What do you need assistance with?"),
    ("What can you do", "I can answer questions and have conversations with you!"),
    ("Good morning", "Good morning! Hope you're having a wonderful day."),
    ("Tell me a joke", "Why don't scientists trust atoms? Because they make up everything!"),
    ("What time is it", "I don't have access to the current time, but you can check your device!"),
]


def generate_house_prices(rng: np.random.Generator, n_samples: int = 100) -> list[RegressionRow]:
    bedrooms = rng.uniform(1, 6, n_samples)
    bathrooms = rng.uniform(1, 5, n_samples)
    sqft = rng.uniform(1000, 4000, n_samples)
    year_built = rng.uniform(1980, 2030, n_samples)
    price = (
        bedrooms * 50000
        + bathrooms * 30000
        + sqft * 150
        + (2024 - year_built) * -1000
        + rng.uniform(0, 50000, n_samples)
        + 200000
    )
    features = np.column_stack([bedrooms, bathrooms, sqft, year_built])
    return [
        RegressionRow(features=row.tolist(), target=float(target))
        for row, target in zip(features, price)
    ]


def generate_emails(rng: np.random.Generator, n_samples: int = 50) -> list[ClassificationRow]:
    features = np.column_stack(
        [
            rng.uniform(0, 10, n_samples),
            rng.uniform(0, 5, n_samples),
            rng.uniform(0, 20, n_samples),
            rng.uniform(0, 100, n_samples),
        ]
    )
    labels = np.where(rng.random(n_samples) > 1 - SPAM_RATE, "spam", "ham")
    return [
        ClassificationRow(features=row.tolist(), label=str(label))
        for row, label in zip(features, labels)
    ]


def generate_movie_ratings(rng: np.random.Generator, n_samples: int = 200) -> list[RecommendationRow]:
    users = rng.integers(1, N_USERS + 1, n_samples)
    items = rng.integers(0, len(MOVIES), n_samples)
    ratings = rng.integers(1, 6, n_samples)
    genre_scores = rng.random((n_samples, 5))
    return [
        RecommendationRow(
            user_id=f"user_{int(user)}",
            item_id=MOVIES[int(item)],
            rating=int(rating),
            features=scores.tolist(),
        )
        for user, item, rating, scores in zip(users, items, ratings, genre_scores)
    ]


def generate_chatbot_pairs(rng: np.random.Generator) -> list[ChatbotRow]:
    return [ChatbotRow(input=question, output=answer) for question, answer in CHATBOT_PAIRS]


GENERATORS: dict[str, Callable[[np.random.Generator], list[Any]]] = {
    "house-prices": generate_house_prices,
    "email-classification": generate_emails,
    "movie-recommendations": generate_movie_ratings,
    "chatbot-training": generate_chatbot_pairs,
}
