"""JSON-safe conversion for model parameters and predictions.

- NaN, +Inf, -Inf -> None
- numpy scalars and arrays -> builtin numbers and lists
- datetime -> ISO-8601
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Mapping

import numpy as np


def _to_builtin(value: Any) -> Any:
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def json_safe(obj: Any) -> Any:
    if obj is None or isinstance(obj, str):
        return obj

    obj = _to_builtin(obj)

    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None

    if isinstance(obj, (bool, int, str)):
        return obj

    if isinstance(obj, Mapping):
        return {str(key): json_safe(value) for key, value in obj.items()}

    if isinstance(obj, np.ndarray):
        return [json_safe(value) for value in obj.tolist()]

    if isinstance(obj, (list, tuple)):
        return [json_safe(value) for value in obj]

    return str(obj)
