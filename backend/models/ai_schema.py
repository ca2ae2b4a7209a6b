"""Pydantic schemas for the AI Builder engine: dataset rows and API payloads."""

from __future__ import annotations

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


class ModelType(str, Enum):
    regression = "regression"
    classification = "classification"
    recommendation = "recommendation"
    chatbot = "chatbot"


# ── Dataset rows ──────────────────────────────────────


class _Row(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class RegressionRow(_Row):
    features: list[float]
    target: float


class ClassificationRow(_Row):
    features: list[float]
    label: str


class RecommendationRow(_Row):
    user_id: str = Field(alias="userId")
    item_id: str = Field(alias="itemId")
    rating: int
    features: list[float]


class ChatbotRow(_Row):
    input: str
    output: str


DatasetRow = Union[RegressionRow, ClassificationRow, RecommendationRow, ChatbotRow]

ROW_SCHEMAS: dict[ModelType, type[_Row]] = {
    ModelType.regression: RegressionRow,
    ModelType.classification: ClassificationRow,
    ModelType.recommendation: RecommendationRow,
    ModelType.chatbot: ChatbotRow,
}


class RecommendationQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    available_items: list[str] | None = Field(default=None, alias="availableItems")


# ── Request / response schemas ────────────────────────


class _ApiModel(BaseModel):
    model_config = ConfigDict(protected_namespaces=())


class CreateModelRequest(_ApiModel):
    model_type: ModelType
    name: str = Field(min_length=1, max_length=100)


class CreateModelResponse(_ApiModel):
    model_id: str


class TrainRequest(_ApiModel):
    dataset_id: str


class TrainResponse(_ApiModel):
    model_id: str
    dataset_id: str
    status: str


class ModelStatusResponse(_ApiModel):
    id: str
    name: str
    type: ModelType
    is_training: bool
    is_trained: bool
    accuracy: float
    training_progress: float
    dataset_id: str | None = None
    error: str | None = None


class PredictRequest(_ApiModel):
    input: Any


class PredictResponse(_ApiModel):
    model_id: str
    is_trained: bool
    prediction: Any


class EvaluationCase(_ApiModel):
    inputs: Any
    expected: Any
    label: str | None = None


class EvaluateRequest(_ApiModel):
    cases: list[EvaluationCase] | None = None
    dataset_id: str | None = None
    positive_label: str | None = None
    limit: int | None = Field(default=None, ge=1)


class ConfusionMatrixOut(_ApiModel):
    true_positive: int
    false_positive: int
    true_negative: int
    false_negative: int


class EvaluateResponse(_ApiModel):
    model_id: str
    threshold: float
    confusion_matrix: ConfusionMatrixOut
    metrics: dict[str, float]
    outcomes: list[dict[str, Any]]
