"""Keyword-triggered canned-response chatbot."""

from __future__ import annotations

from typing import Any, AsyncIterator

from core.ai_model_base import AIModel
from models.ai_schema import ChatbotRow, ModelType

STILL_LEARNING_MESSAGE = "I'm still learning! Please train me first."
FALLBACK_MESSAGE = "I'm not sure how to respond to that. Can you try rephrasing?"
MIN_KEYWORD_LENGTH = 3


def extract_keywords(text: str) -> list[str]:
    return [word for word in text.lower().split() if len(word) >= MIN_KEYWORD_LENGTH]


class ChatbotModel(AIModel):
    model_type = ModelType.chatbot
    step_delay = 0.1

    def _reset_parameters(self) -> None:
        self._responses: dict[str, list[str]] = {}
        self._keywords: list[str] = []

    async def _fit(self, samples: list[ChatbotRow]) -> AsyncIterator[float]:
        for index, sample in enumerate(samples):
            for keyword in extract_keywords(sample.input):
                if keyword not in self._responses:
                    self._responses[keyword] = []
                    self._keywords.append(keyword)
                self._responses[keyword].append(sample.output)
            yield (index + 1) / len(samples) * 100

    def _score(self, samples: list[ChatbotRow]) -> float:
        return 70 + self._rng.random() * 25

    def predict(self, input: str) -> str:
        if not self.is_trained:
            return STILL_LEARNING_MESSAGE

        candidates: list[str] = []
        for keyword in extract_keywords(input):
            candidates.extend(self._responses.get(keyword, []))

        if not candidates:
            return FALLBACK_MESSAGE
        return self._rng.choice(candidates)

    @property
    def keywords(self) -> list[str]:
        return list(self._keywords)

    def _export_payload(self) -> dict[str, Any]:
        return {
            "responses": {keyword: list(outputs) for keyword, outputs in self._responses.items()},
            "keywords": list(self._keywords),
        }
