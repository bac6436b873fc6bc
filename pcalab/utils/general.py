"""
General utility functions for the pcalab package.
"""

import numpy as np
import pandas as pd
from typing import Any


def as_2d_array(data: Any) -> np.ndarray:
    """
    Coerce input into a 2D float array of observations x features.

    A 1D input is treated as a single feature.

    Args:
        data: Array-like data

    Returns:
        2D numpy float array
    """
    arr = np.asarray(data, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise ValueError(f"Expected a 1D or 2D array, got {arr.ndim} dimensions")
    return arr


def to_serializable(obj: Any) -> Any:
    """
    Convert numpy and pandas values into plain Python for JSON output.

    Non-finite floats (NaN, inf) become None, since JSON has no token for them.

    Args:
        obj: Value to convert

    Returns:
        JSON-serializable value
    """
    if isinstance(obj, dict):
        return {str(k): to_serializable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_serializable(v) for v in obj]
    if isinstance(obj, pd.DataFrame):
        return {str(k): to_serializable(v) for k, v in obj.to_dict(orient='index').items()}
    if isinstance(obj, pd.Series):
        return {str(k): to_serializable(v) for k, v in obj.to_dict().items()}
    if isinstance(obj, np.ndarray):
        return to_serializable(obj.tolist())
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (float, np.floating)):
        value = float(obj)
        return value if np.isfinite(value) else None
    return obj
