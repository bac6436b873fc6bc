"""
Euclidean distances between observations.

This module wraps scipy's pairwise distance routines and provides
measures of how well a lower dimensional representation preserves
the distances of the original data.
"""

import logging
import numpy as np
from typing import Any, Dict
from scipy.spatial.distance import pdist, squareform

from pcalab.utils.general import as_2d_array

logger = logging.getLogger(__name__)


def distance_matrix(x: Any, square: bool = False) -> np.ndarray:
    """
    Compute Euclidean distances between all pairs of rows.

    Args:
        x: Data matrix (observations x features); 1D input is one feature
        square: Return the full symmetric matrix instead of the condensed form

    Returns:
        Condensed distance vector, or square distance matrix
    """
    x = as_2d_array(x)
    if not np.all(np.isfinite(x)):
        raise ValueError("Distance computation requires finite values")

    if x.shape[0] == 0:
        return np.zeros((0, 0)) if square else np.zeros(0)

    d = pdist(x, metric='euclidean')
    if square:
        return squareform(d)
    return d


def pairwise_distance(x: Any, i: int, j: int) -> float:
    """
    Distance between two rows of a data matrix.

    Args:
        x: Data matrix
        i: First row index
        j: Second row index

    Returns:
        Euclidean distance
    """
    x = as_2d_array(x)
    n = x.shape[0]
    for idx in (i, j):
        if not -n <= idx < n:
            raise IndexError(f"Row index {idx} out of range for {n} rows")
    return float(np.linalg.norm(x[i] - x[j]))


def max_distance_change(x: Any, z: Any) -> float:
    """
    Largest absolute change in pairwise distance between two representations.

    Args:
        x: Original data
        z: Transformed data (same number of rows)

    Returns:
        max |dist(x) - dist(z)|
    """
    dx = distance_matrix(x)
    dz = distance_matrix(z)
    if dx.shape != dz.shape:
        raise ValueError("Both representations must have the same number of rows")
    if dx.size == 0:
        return 0.0
    return float(np.max(np.abs(dx - dz)))


def distance_approximation(x: Any, z: Any) -> Dict[str, float]:
    """
    Summarize how well distances in z approximate distances in x.

    Typically z holds the first few principal components of x.

    Args:
        x: Original data
        z: Approximating representation (same number of rows)

    Returns:
        Dictionary with max_abs_error, sd_error and correlation
    """
    dx = distance_matrix(x)
    dz = distance_matrix(z)
    if dx.shape != dz.shape:
        raise ValueError("Both representations must have the same number of rows")
    if dx.size < 2:
        raise ValueError("Need at least 3 observations to summarize distance errors")

    diff = dx - dz
    if np.std(dx) == 0 or np.std(dz) == 0:
        corr = float('nan')
    else:
        corr = float(np.corrcoef(dx, dz)[0, 1])

    result = {
        'max_abs_error': float(np.max(np.abs(diff))),
        'sd_error': float(np.std(diff, ddof=1)),
        'correlation': corr
    }
    logger.debug(f"Distance approximation: {result}")
    return result
