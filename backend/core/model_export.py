from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from core.ai_model_base import AIModel
from datasets.ai_store import Dataset

_WHITESPACE = re.compile(r"\s+")


def build_export_bundle(
    model: AIModel,
    dataset: Dataset | None,
    *,
    created_at: datetime | None = None,
) -> dict[str, Any]:
    """Downloadable record wrapping ``model.export()`` with display metadata."""
    return {
        "name": model.name,
        "type": model.model_type.value,
        "accuracy": model.accuracy,
        "exportedData": model.export(),
        "createdAt": (created_at or datetime.now(timezone.utc)).isoformat(),
        "dataset": dataset.name if dataset is not None else "Unknown",
    }


def export_filename(model: AIModel) -> str:
    stem = _WHITESPACE.sub("_", model.name.strip()) or "model"
    return f"{stem}_model.json"
