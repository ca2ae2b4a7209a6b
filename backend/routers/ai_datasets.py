from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from core.ai_engine import ai_engine


router = APIRouter(prefix="/api/ai", tags=["ai-datasets"])


@router.get("/datasets")
async def list_datasets(task: str | None = None) -> dict[str, Any]:
    datasets = ai_engine.get_all_datasets()
    if task is not None:
        datasets = [d for d in datasets if d.problem_type.value == task]
    return {"datasets": [d.info() for d in datasets]}


@router.get("/datasets/{dataset_id}")
async def get_dataset_detail(dataset_id: str) -> dict[str, Any]:
    dataset = ai_engine.get_dataset(dataset_id)
    if dataset is None:
        raise HTTPException(404, f"Dataset {dataset_id!r} not found")
    return dataset.info()


@router.get("/datasets/{dataset_id}/preview")
async def preview_dataset(dataset_id: str, rows: int = 5) -> dict[str, Any]:
    """Return the first N rows of a dataset."""
    dataset = ai_engine.get_dataset(dataset_id)
    if dataset is None:
        raise HTTPException(404, f"Dataset {dataset_id!r} not found")
    n = max(0, min(rows, len(dataset.rows)))
    return {
        **dataset.info(),
        "samples": [row.model_dump(by_alias=True) for row in dataset.rows[:n]],
    }
