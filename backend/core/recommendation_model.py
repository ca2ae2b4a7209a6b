"""Content-based recommender built from per-item and per-user profile vectors."""

from __future__ import annotations

from typing import Any, AsyncIterator, Mapping

import numpy as np

from core.ai_model_base import AIModel
from models.ai_schema import ModelType, RecommendationQuery, RecommendationRow

LIKED_RATING = 4
TOP_K = 5


class RecommendationModel(AIModel):
    model_type = ModelType.recommendation
    step_delay = 0.05

    def _reset_parameters(self) -> None:
        self._user_profiles: dict[str, np.ndarray] = {}
        self._item_profiles: dict[str, np.ndarray] = {}
        self._items: list[str] = []

    def _validate_samples(self, samples: list[RecommendationRow]) -> None:
        self._require_uniform_features(samples)

    async def _fit(self, samples: list[RecommendationRow]) -> AsyncIterator[float]:
        self._items = list(dict.fromkeys(s.item_id for s in samples))
        progress = 0.0
        for item in self._items:
            # Only the first row seen for an item defines its profile.
            first = next(s for s in samples if s.item_id == item)
            self._item_profiles[item] = np.asarray(first.features, dtype=np.float64)
            progress += 50 / len(self._items)
            yield progress

        users = list(dict.fromkeys(s.user_id for s in samples))
        for index, user in enumerate(users):
            liked = [s.features for s in samples if s.user_id == user and s.rating >= LIKED_RATING]
            if liked:
                self._user_profiles[user] = np.array(liked, dtype=np.float64).mean(axis=0)
            yield 50 + 50 / len(users) * (index + 1)

    def _score(self, samples: list[RecommendationRow]) -> float:
        # Not measured: the classroom UI shows an optimistic simulated figure.
        return 85 + self._rng.random() * 15

    def predict(self, input: RecommendationQuery | Mapping[str, Any]) -> list[str]:
        query = input if isinstance(input, RecommendationQuery) else RecommendationQuery.model_validate(input)
        profile = self._user_profiles.get(query.user_id)
        if not self.is_trained or profile is None:
            return self._items[:TOP_K]

        candidates = query.available_items if query.available_items is not None else self._items
        scored: list[tuple[str, float]] = []
        for item in candidates:
            item_profile = self._item_profiles.get(item)
            if item_profile is None:
                continue
            n = self._common_length(item_profile, profile)
            scored.append((item, float(np.dot(profile[:n], item_profile[:n]))))

        # sorted() is stable, so equal scores keep catalog order.
        scored = sorted(scored, key=lambda pair: pair[1], reverse=True)
        return [item for item, _ in scored[:TOP_K]]

    @property
    def items(self) -> list[str]:
        return list(self._items)

    def has_profile(self, user_id: str) -> bool:
        return user_id in self._user_profiles

    def _export_payload(self) -> dict[str, Any]:
        return {
            "userProfiles": {user: profile.tolist() for user, profile in self._user_profiles.items()},
            "itemProfiles": {item: profile.tolist() for item, profile in self._item_profiles.items()},
            "items": list(self._items),
        }
