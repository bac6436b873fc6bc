"""
Orthogonal transformations for pcalab.

This module provides rotation and orthogonal matrices, the change of
coordinates used for the twin heights example, and checks of the
properties these transformations preserve.
"""

import numpy as np
from typing import Any

from pcalab.utils.general import as_2d_array


def rotation_matrix(theta: float) -> np.ndarray:
    """
    Build the 2x2 matrix rotating the plane counter-clockwise by theta.

    Args:
        theta: Angle in radians

    Returns:
        Rotation matrix
    """
    c, s = np.cos(theta), np.sin(theta)
    return np.array([[c, -s],
                     [s, c]])


def is_orthogonal(m: Any, atol: float = 1e-8) -> bool:
    """
    Check whether a matrix satisfies m^T m = I.

    Args:
        m: Matrix to check
        atol: Absolute tolerance

    Returns:
        True if the matrix is square and orthogonal
    """
    m = np.asarray(m, dtype=float)
    if m.ndim != 2 or m.shape[0] != m.shape[1]:
        return False
    return bool(np.allclose(m.T @ m, np.eye(m.shape[0]), atol=atol))


def is_rotation(m: Any, atol: float = 1e-8) -> bool:
    """
    Check whether a matrix is a rotation (orthogonal with determinant 1).

    Args:
        m: Matrix to check
        atol: Absolute tolerance

    Returns:
        True if the matrix is a rotation
    """
    if not is_orthogonal(m, atol):
        return False
    return bool(np.isclose(np.linalg.det(np.asarray(m, dtype=float)), 1.0, atol=atol))


def orthogonal_inverse(m: Any, atol: float = 1e-8) -> np.ndarray:
    """
    Invert an orthogonal matrix by transposing it.

    Args:
        m: Orthogonal matrix
        atol: Absolute tolerance for the orthogonality check

    Returns:
        The inverse, m^T
    """
    m = np.asarray(m, dtype=float)
    if not is_orthogonal(m, atol):
        raise ValueError("Matrix is not orthogonal; use inverse_transform instead")
    return m.T.copy()


def twin_transform(orthogonal: bool = False) -> np.ndarray:
    """
    Get the change of basis used on pairs of twin heights.

    With orthogonal=False, x @ A gives the pair average and the
    difference twin1 - twin2. With orthogonal=True both columns are
    rescaled by sqrt(2) so that A is orthogonal and distances between
    pairs are preserved.

    Args:
        orthogonal: Whether to return the distance preserving version

    Returns:
        2x2 transformation matrix
    """
    if orthogonal:
        return np.array([[1.0, 1.0],
                         [1.0, -1.0]]) / np.sqrt(2)
    return np.array([[0.5, 1.0],
                     [0.5, -1.0]])


def transform(x: Any, a: Any) -> np.ndarray:
    """
    Apply a linear transformation to each row: z = x A.

    Args:
        x: Data matrix (observations x features)
        a: Square transformation matrix

    Returns:
        Transformed data
    """
    x = as_2d_array(x)
    a = np.asarray(a, dtype=float)
    if a.ndim != 2 or a.shape[0] != x.shape[1]:
        raise ValueError(f"Transformation of shape {a.shape} does not match {x.shape[1]} features")
    return x @ a


def inverse_transform(z: Any, a: Any) -> np.ndarray:
    """
    Undo z = x A, recovering x = z A^-1.

    Args:
        z: Transformed data
        a: Square, invertible transformation matrix

    Returns:
        Original data
    """
    z = as_2d_array(z)
    a = np.asarray(a, dtype=float)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise ValueError("Transformation matrix must be square to invert")
    try:
        # x A = z  <=>  A^T x^T = z^T
        return np.linalg.solve(a.T, z.T).T
    except np.linalg.LinAlgError as e:
        raise ValueError(f"Transformation matrix is singular: {e}") from e


def total_variability(x: Any) -> float:
    """
    Sum of squared entries of a data matrix.

    Orthogonal transformations leave this unchanged.

    Args:
        x: Data matrix

    Returns:
        Total variability
    """
    x = as_2d_array(x)
    return float(np.sum(x ** 2))


def variability_share(x: Any) -> np.ndarray:
    """
    Fraction of the total variability carried by each column.

    Args:
        x: Data matrix

    Returns:
        Array of per-column shares summing to 1
    """
    x = as_2d_array(x)
    col_ss = np.sum(x ** 2, axis=0)
    total = col_ss.sum()
    if total == 0:
        return np.zeros_like(col_ss)
    return col_ss / total
