"""Numeric sanitization and JSON encoding for values produced by user or training code."""

from __future__ import annotations
import json
import math
from typing import Any

import numpy as np


def safe_float(val: Any) -> float:
    """float(val), with NaN, inf and unconvertible values mapped to 0.0."""
    try:
        f = float(val)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(f) or math.isinf(f):
        return 0.0
    return f


def safe_number(val: Any) -> float | int:
    """Like safe_float but keeps integral values as int (lot sizes)."""
    if isinstance(val, (bool, np.bool_)):
        return int(val)
    if isinstance(val, (int, np.integer)):
        return int(val)
    f = safe_float(val)
    return int(f) if f.is_integer() else f


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder for numpy scalars/arrays; non-finite floats are written as 0."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return safe_float(obj)
        if isinstance(obj, np.bool_):
            return bool(obj)
        if isinstance(obj, np.ndarray):
            return sanitize(obj.tolist())
        if hasattr(obj, "to_dict"):
            return sanitize(obj.to_dict())
        return super().default(obj)


def sanitize(obj: Any) -> Any:
    """Recursively replace NaN/inf floats with 0.0 inside lists and dicts."""
    if isinstance(obj, dict):
        return {k: sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [sanitize(v) for v in obj]
    if isinstance(obj, (float, np.floating)):
        return safe_float(obj)
    return obj


def to_json(obj: Any, **kwargs: Any) -> str:
    return json.dumps(sanitize(obj), cls=NumpyEncoder, **kwargs)
