"""Environment-driven settings for the AI Builder engine.

Values are read on every call so that ``.env`` files loaded at startup and
``monkeypatch.setenv`` in tests are both honoured.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


def training_pacing() -> float:
    """Multiplier applied to each model's per-step training delay (0 disables pacing)."""
    raw = os.getenv("AI_TRAINING_PACING", "0").strip()
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid AI_TRAINING_PACING=%r", raw)
        return 0.0
    return max(0.0, value)


def dataset_seed() -> int | None:
    raw = os.getenv("AI_DATASET_SEED", "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid AI_DATASET_SEED=%r", raw)
        return None


def cors_origins() -> list[str]:
    raw = os.getenv("AI_CORS_ORIGINS", "*")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]
