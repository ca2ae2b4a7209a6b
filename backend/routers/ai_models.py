"""REST API router for the AI Builder models (regression, classification,
recommendation, chatbot)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter, ValidationError

from core.ai_engine import (
    DatasetNotFoundError,
    IncompatibleDatasetError,
    ModelBusyError,
    ModelNotFoundError,
    ai_engine,
)
from core.ai_model_base import AIModel
from core.evaluation import evaluate_model
from core.json_safe import json_safe
from core.model_export import build_export_bundle, export_filename
from datasets.ai_store import split_rows
from models.ai_schema import (
    ClassificationRow,
    CreateModelRequest,
    CreateModelResponse,
    EvaluateRequest,
    EvaluateResponse,
    ModelStatusResponse,
    ModelType,
    PredictRequest,
    PredictResponse,
    RecommendationQuery,
    RegressionRow,
    TrainRequest,
    TrainResponse,
)

router = APIRouter(prefix="/api/ai", tags=["ai"])

_FEATURES = TypeAdapter(list[float])


def _get_model_or_404(model_id: str) -> AIModel:
    model = ai_engine.get_model(model_id)
    if model is None:
        raise HTTPException(404, f"Model {model_id!r} not found")
    return model


def _status(model: AIModel) -> ModelStatusResponse:
    session = ai_engine.training_session(model.id)
    return ModelStatusResponse(
        **model.status(),
        dataset_id=session.dataset_id if session is not None else None,
        error=session.error if session is not None else None,
    )


def _coerce_input(model: AIModel, raw: Any) -> Any:
    """Validate a predict payload into the shape the model variant expects."""
    if model.model_type in (ModelType.regression, ModelType.classification):
        return _FEATURES.validate_python(raw)
    if model.model_type == ModelType.recommendation:
        if isinstance(raw, str):
            raw = {"userId": raw}
        return RecommendationQuery.model_validate(raw)
    if not isinstance(raw, str):
        raise ValueError("Chatbot input must be a string")
    return raw


# ── Models ────────────────────────────────────────────


@router.post("/models", response_model=CreateModelResponse)
async def create_model(req: CreateModelRequest) -> CreateModelResponse:
    model_id = ai_engine.create_model(req.model_type, req.name)
    return CreateModelResponse(model_id=model_id)


@router.get("/models", response_model=list[ModelStatusResponse])
async def list_models() -> list[ModelStatusResponse]:
    return [_status(model) for model in ai_engine.get_all_models()]


@router.get("/models/{model_id}", response_model=ModelStatusResponse)
async def get_model(model_id: str) -> ModelStatusResponse:
    return _status(_get_model_or_404(model_id))


@router.delete("/models/{model_id}")
async def delete_model(model_id: str) -> dict[str, Any]:
    if not ai_engine.delete_model(model_id):
        raise HTTPException(404, f"Model {model_id!r} not found")
    return {"model_id": model_id, "deleted": True}


# ── Training ──────────────────────────────────────────


@router.post("/models/{model_id}/train", response_model=TrainResponse)
async def train_model(model_id: str, req: TrainRequest) -> TrainResponse:
    """Start training in the background; progress streams over the WebSocket."""
    try:
        ai_engine.start_training(model_id, req.dataset_id)
    except (ModelNotFoundError, DatasetNotFoundError) as exc:
        raise HTTPException(404, str(exc)) from exc
    except IncompatibleDatasetError as exc:
        raise HTTPException(400, str(exc)) from exc
    except ModelBusyError as exc:
        raise HTTPException(409, str(exc)) from exc
    return TrainResponse(model_id=model_id, dataset_id=req.dataset_id, status="queued")


@router.post("/models/{model_id}/stop")
async def stop_training(model_id: str) -> dict[str, Any]:
    _get_model_or_404(model_id)
    if not ai_engine.request_stop(model_id):
        raise HTTPException(409, "Model is not training")
    return {"model_id": model_id, "status": "stopping"}


# ── Prediction / export / evaluation ──────────────────


@router.post("/models/{model_id}/predict", response_model=PredictResponse)
async def predict(model_id: str, req: PredictRequest) -> PredictResponse:
    model = _get_model_or_404(model_id)
    try:
        model_input = _coerce_input(model, req.input)
    except (ValidationError, ValueError) as exc:
        raise HTTPException(400, f"Invalid input for a {model.model_type.value} model: {exc}") from exc

    prediction = model.predict(model_input)
    return PredictResponse(
        model_id=model_id,
        is_trained=model.is_trained,
        prediction=json_safe(prediction),
    )


@router.get("/models/{model_id}/export")
async def export_model(model_id: str) -> JSONResponse:
    model = _get_model_or_404(model_id)
    session = ai_engine.training_session(model_id)
    dataset = ai_engine.get_dataset(session.dataset_id) if session and session.dataset_id else None
    bundle = build_export_bundle(model, dataset)
    return JSONResponse(
        content=json_safe(bundle),
        headers={"Content-Disposition": f'attachment; filename="{export_filename(model)}"'},
    )


def _dataset_cases(model: AIModel, dataset_id: str, limit: int | None) -> list[dict[str, Any]]:
    """Cases drawn from a fixed 20% sample of a dataset's rows.

    Training always uses every row, so these rows are not held out: the
    result measures how well the model fits data it has seen.
    """
    dataset = ai_engine.get_dataset(dataset_id)
    if dataset is None:
        raise HTTPException(404, f"Dataset {dataset_id!r} not found")
    if dataset.problem_type != model.model_type:
        raise HTTPException(
            400,
            f"A {model.model_type.value} model cannot be evaluated on {dataset.name!r} "
            f"({dataset.problem_type.value} data)",
        )
    if dataset.problem_type not in (ModelType.regression, ModelType.classification):
        raise HTTPException(400, f"Send explicit cases to evaluate on {dataset.name!r}")

    _, sample_rows = split_rows(dataset)
    cases: list[dict[str, Any]] = []
    for row in sample_rows[:limit]:
        if isinstance(row, ClassificationRow):
            cases.append({"inputs": row.features, "expected": row.label, "label": row.label})
        elif isinstance(row, RegressionRow):
            cases.append({"inputs": row.features, "expected": row.target})
    return cases


@router.post("/models/{model_id}/evaluate", response_model=EvaluateResponse)
async def evaluate(model_id: str, req: EvaluateRequest) -> EvaluateResponse:
    model = _get_model_or_404(model_id)
    if not model.is_trained:
        raise HTTPException(400, "Model has not been trained yet")

    if req.cases is not None:
        cases = [case.model_dump() for case in req.cases[: req.limit]]
    elif req.dataset_id is not None:
        cases = _dataset_cases(model, req.dataset_id, req.limit)
    else:
        raise HTTPException(400, "Provide either cases or dataset_id")

    for index, case in enumerate(cases):
        try:
            _coerce_input(model, case["inputs"])
        except (ValidationError, ValueError) as exc:
            raise HTTPException(
                400, f"Case {index} has invalid inputs for a {model.model_type.value} model: {exc}"
            ) from exc

    try:
        session = evaluate_model(
            model,
            cases,
            positive_label=req.positive_label,
            coerce=lambda raw: _coerce_input(model, raw),
        )
    except (ValidationError, ValueError) as exc:
        raise HTTPException(400, f"Evaluation failed: {exc}") from exc

    return EvaluateResponse(
        model_id=model_id,
        threshold=session.threshold,
        confusion_matrix=session.confusion.as_dict(),
        metrics=session.metrics(),
        outcomes=[json_safe(outcome.as_dict()) for outcome in session.log],
    )
