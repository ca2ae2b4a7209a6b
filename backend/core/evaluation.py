"""Evaluation adapter: runs a model's predict over test cases and keeps a
running confusion matrix at a fixed decision threshold.

Predictions and expected values are reduced to a scalar confidence signal:
numbers are used as-is, booleans map to 1/0, sequences use their first
element, and string labels map to 1 when they equal ``positive_label``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Iterable, Mapping

import numpy as np
from sklearn.metrics import accuracy_score, f1_score, precision_score, recall_score

from core.ai_model_base import AIModel

DECISION_THRESHOLD = 0.5


def to_signal(value: Any, positive_label: str | None = None) -> float:
    if isinstance(value, (bool, np.bool_)):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float, np.integer, np.floating)):
        return float(value)
    if isinstance(value, str):
        if positive_label is None:
            raise ValueError(f"Cannot score label {value!r} without a positive_label")
        return 1.0 if value == positive_label else 0.0
    if isinstance(value, (list, tuple, np.ndarray)) and len(value) > 0:
        return to_signal(value[0], positive_label)
    raise ValueError(f"Cannot derive a confidence signal from {value!r}")


@dataclass
class ConfusionMatrix:
    true_positive: int = 0
    false_positive: int = 0
    true_negative: int = 0
    false_negative: int = 0

    @property
    def total(self) -> int:
        return self.true_positive + self.false_positive + self.true_negative + self.false_negative

    @property
    def accuracy(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.true_positive + self.true_negative) / self.total * 100

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class EvaluationOutcome:
    inputs: Any
    expected: Any
    prediction: Any
    confidence: float
    is_correct: bool
    label: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class EvaluationSession:
    threshold: float = DECISION_THRESHOLD
    positive_label: str | None = None
    confusion: ConfusionMatrix = field(default_factory=ConfusionMatrix)
    log: list[EvaluationOutcome] = field(default_factory=list)

    def record(self, inputs: Any, expected: Any, prediction: Any, label: str | None = None) -> EvaluationOutcome:
        confidence = to_signal(prediction, self.positive_label)
        target = to_signal(expected, self.positive_label)
        predicted_positive = confidence > self.threshold
        actually_positive = target > self.threshold

        if actually_positive and predicted_positive:
            self.confusion.true_positive += 1
        elif not actually_positive and not predicted_positive:
            self.confusion.true_negative += 1
        elif predicted_positive:
            self.confusion.false_positive += 1
        else:
            self.confusion.false_negative += 1

        outcome = EvaluationOutcome(
            inputs=inputs,
            expected=expected,
            prediction=prediction,
            confidence=confidence,
            is_correct=predicted_positive == actually_positive,
            label=label,
        )
        self.log.append(outcome)
        return outcome

    def run(
        self,
        predict: Callable[[Any], Any],
        cases: Iterable[Mapping[str, Any]],
        coerce: Callable[[Any], Any] | None = None,
    ) -> list[EvaluationOutcome]:
        """Predict every case and record it. ``coerce`` shapes the raw inputs
        for ``predict``; the log keeps the raw inputs."""
        outcomes = []
        for case in cases:
            model_input = coerce(case["inputs"]) if coerce is not None else case["inputs"]
            outcomes.append(
                self.record(case["inputs"], case["expected"], predict(model_input), case.get("label"))
            )
        return outcomes

    @property
    def accuracy(self) -> float:
        return self.confusion.accuracy

    def metrics(self) -> dict[str, float]:
        if not self.log:
            return {"accuracy": 0.0, "precision": 0.0, "recall": 0.0, "f1": 0.0}
        y_true = [int(to_signal(o.expected, self.positive_label) > self.threshold) for o in self.log]
        y_pred = [int(o.confidence > self.threshold) for o in self.log]
        return {
            "accuracy": float(accuracy_score(y_true, y_pred)) * 100,
            "precision": float(precision_score(y_true, y_pred, zero_division=0)),
            "recall": float(recall_score(y_true, y_pred, zero_division=0)),
            "f1": float(f1_score(y_true, y_pred, zero_division=0)),
        }

    def reset(self) -> None:
        self.confusion = ConfusionMatrix()
        self.log.clear()


def evaluate_model(
    model: AIModel,
    cases: Iterable[Mapping[str, Any]],
    *,
    positive_label: str | None = None,
    threshold: float = DECISION_THRESHOLD,
    coerce: Callable[[Any], Any] | None = None,
) -> EvaluationSession:
    session = EvaluationSession(threshold=threshold, positive_label=positive_label)
    session.run(model.predict, cases, coerce=coerce)
    return session
