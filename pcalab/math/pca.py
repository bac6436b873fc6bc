"""
PCA (Principal Component Analysis) implementation for pcalab.

This module provides two implementations of PCA: an iterative one using
power iteration with deflation, and an SVD based ``prcomp`` that returns
standard deviations, the rotation matrix and the component scores.
"""

import logging
import numpy as np
import pandas as pd
from typing import Any, Dict, List, Optional, Tuple

from pcalab.math.named_matrix import NamedMatrix
from pcalab.utils.general import as_2d_array

logger = logging.getLogger(__name__)


def normalize_vector(v: np.ndarray) -> np.ndarray:
    """
    Normalize a vector to unit length.

    Args:
        v: Vector to normalize

    Returns:
        Normalized vector
    """
    norm = np.linalg.norm(v)
    if norm == 0:
        return v
    return v / norm


def vector_length(v: np.ndarray) -> float:
    """
    Calculate the length (norm) of a vector.

    Args:
        v: Vector

    Returns:
        Vector length
    """
    return float(np.linalg.norm(v))


def proj_vec(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Project vector v onto vector u.

    Args:
        u: Vector to project onto
        v: Vector to project

    Returns:
        Projection of v onto u
    """
    if np.dot(u, u) == 0:
        return np.zeros_like(v)
    return np.dot(u, v) / np.dot(u, u) * u


def factor_matrix(data: np.ndarray, xs: np.ndarray) -> np.ndarray:
    """
    Factor out the vector xs from all rows of data.

    This removes the variance in the xs direction, so that the next
    power iteration finds the following principal component.

    Args:
        data: Matrix of data
        xs: Vector to factor out

    Returns:
        Matrix with xs factored out
    """
    if np.dot(xs, xs) == 0:
        return data

    # Same as subtracting proj_vec(xs, row) from every row
    return data - np.outer(data @ xs, xs) / np.dot(xs, xs)


def xtxr(data: np.ndarray, vec: np.ndarray) -> np.ndarray:
    """
    Calculate X^T * X * r where X is data and r is vec.

    Avoids forming the covariance matrix X^T X.

    Args:
        data: Data matrix X
        vec: Vector r

    Returns:
        Result of X^T * X * r
    """
    return data.T @ (data @ vec)


def align_signs(vectors: np.ndarray, axis: int = 0) -> np.ndarray:
    """
    Flip signs so the largest-magnitude entry of each vector is positive.

    Eigenvectors are only defined up to sign; this makes the choice
    deterministic across implementations.

    Args:
        vectors: 2D array of vectors
        axis: 0 if vectors are rows, 1 if they are columns

    Returns:
        Sign-aligned copy of the vectors
    """
    vectors = np.array(vectors, dtype=float)
    mat = vectors if axis == 0 else vectors.T
    for row in mat:
        if row.size and row[np.argmax(np.abs(row))] < 0:
            row *= -1
    return vectors


def power_iteration(data: np.ndarray,
                    iters: int = 100,
                    start_vector: Optional[np.ndarray] = None,
                    tol: float = 1e-12) -> np.ndarray:
    """
    Find the dominant eigenvector of X^T X using the power iteration method.

    Args:
        data: Data matrix X
        iters: Maximum number of iterations
        start_vector: Initial vector (defaults to ones)
        tol: Relative change in eigenvalue considered converged

    Returns:
        Unit length dominant eigenvector
    """
    n_cols = data.shape[1]

    if start_vector is None:
        start_vector = np.ones(n_cols)
    elif len(start_vector) < n_cols:
        padded = np.ones(n_cols)
        padded[:len(start_vector)] = start_vector
        start_vector = padded

    start_vector = normalize_vector(np.asarray(start_vector, dtype=float))
    last_eigval = 0.0

    for _ in range(iters):
        product_vector = xtxr(data, start_vector)

        # Eigenvalue estimate is the length of X^T X v for unit v
        eigval = vector_length(product_vector)
        if eigval == 0:
            break

        start_vector = normalize_vector(product_vector)

        if abs(eigval - last_eigval) <= tol * eigval:
            break

        last_eigval = eigval

    return normalize_vector(start_vector)


def rand_starting_vec(data: np.ndarray,
                      rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Generate a random starting vector for power iteration.

    Args:
        data: Data matrix
        rng: Random generator (a fresh default one if omitted)

    Returns:
        Random starting vector
    """
    rng = rng if rng is not None else np.random.default_rng()
    return rng.standard_normal(data.shape[1])


def powerit_pca(data: np.ndarray,
                n_comps: int,
                iters: int = 100,
                start_vectors: Optional[List[Optional[np.ndarray]]] = None,
                seed: Optional[int] = None) -> Dict[str, np.ndarray]:
    """
    Find the first n_comps principal components of the data matrix.

    Args:
        data: Data matrix
        n_comps: Number of components to find
        iters: Maximum number of iterations for power_iteration
        start_vectors: Initial vectors for warm start
        seed: Seed for the random starting vectors

    Returns:
        Dictionary with 'center' and 'comps' keys
    """
    data = as_2d_array(data)
    center = np.mean(data, axis=0)
    cntrd_data = data - center

    if start_vectors is None:
        start_vectors = []

    rng = np.random.default_rng(seed)

    n_comps = min(n_comps, min(cntrd_data.shape))

    pcs = []
    data_factored = cntrd_data.copy()

    for i in range(n_comps):
        if i < len(start_vectors) and start_vectors[i] is not None:
            start_vector = start_vectors[i]
        else:
            start_vector = rand_starting_vec(data_factored, rng)

        pc = power_iteration(data_factored, iters, start_vector)
        pcs.append(pc)

        if i < n_comps - 1:
            data_factored = factor_matrix(data_factored, pc)

    return {
        'center': center,
        'comps': align_signs(np.array(pcs), axis=0) if pcs else np.zeros((0, data.shape[1]))
    }


def wrapped_pca(data: np.ndarray,
                n_comps: int,
                iters: int = 100,
                start_vectors: Optional[List[np.ndarray]] = None,
                seed: Optional[int] = None) -> Dict[str, np.ndarray]:
    """
    Power iteration PCA that handles degenerate inputs.

    Args:
        data: Data matrix
        n_comps: Number of components to find
        iters: Maximum number of iterations
        start_vectors: Initial vectors for warm start
        seed: Seed for the random starting vectors

    Returns:
        Dictionary with 'center' and 'comps' keys
    """
    data = as_2d_array(data)
    n_rows, n_cols = data.shape

    # A single observation: its own direction is the only signal
    if n_rows == 1:
        return {
            'center': np.zeros(n_cols),
            'comps': np.vstack([normalize_vector(data[0])] + [np.zeros(n_cols)] * (n_comps - 1))
        }

    # A single feature: the only direction is the axis itself
    if n_cols == 1:
        return {
            'center': np.array([0.0]),
            'comps': np.array([[1.0]])
        }

    if start_vectors is not None:
        start_vectors = [v if not np.all(v == 0) else None for v in start_vectors]

    return powerit_pca(data, n_comps, iters, start_vectors, seed)


def prcomp(data: Any,
           center: bool = True,
           scale: bool = False,
           rank: Optional[int] = None) -> Dict[str, Any]:
    """
    Principal components via the singular value decomposition.

    The data is centered (and optionally scaled to unit variance), then
    decomposed as U S V^T. The rotation is V, the scores are U S and the
    component standard deviations are S / sqrt(n - 1).

    Args:
        data: Data matrix (observations x features)
        center: Subtract column means before decomposing
        scale: Divide columns by their standard deviation
        rank: Keep only the first rank components in rotation and x

    Returns:
        Dictionary with 'sdev', 'rotation', 'center', 'scale' and 'x'.
        'center' and 'scale' are None when not applied.
    """
    x = as_2d_array(data)
    n_rows, n_cols = x.shape

    if n_rows < 2:
        raise ValueError("PCA requires at least 2 observations")
    if n_cols < 1:
        raise ValueError("PCA requires at least 1 feature")
    if not np.all(np.isfinite(x)):
        raise ValueError("PCA requires finite values; remove or impute missing data first")

    center_vec = np.mean(x, axis=0) if center else None
    if center_vec is not None:
        x = x - center_vec

    scale_vec = None
    if scale:
        if center_vec is not None:
            scale_vec = np.std(x, axis=0, ddof=1)
        else:
            # Root mean square, as used when data is not centered
            scale_vec = np.sqrt(np.sum(x ** 2, axis=0) / (n_rows - 1))
        if np.any(scale_vec == 0):
            raise ValueError("Cannot rescale a constant/zero column to unit variance")
        x = x / scale_vec

    _, s, vt = np.linalg.svd(x, full_matrices=False)
    rotation = align_signs(vt.T, axis=1)
    scores = x @ rotation
    sdev = s / np.sqrt(n_rows - 1)

    if rank is not None:
        if rank < 1:
            raise ValueError(f"rank must be at least 1, got {rank}")
        rotation = rotation[:, :rank]
        scores = scores[:, :rank]

    logger.debug(f"prcomp on {n_rows}x{n_cols} data, leading sdev {sdev[:3]}")

    return {
        'sdev': sdev,
        'rotation': rotation,
        'center': center_vec,
        'scale': scale_vec,
        'x': scores
    }


def variance_explained(result: Dict[str, Any]) -> np.ndarray:
    """
    Proportion of total variance carried by each component.

    Args:
        result: Output of prcomp

    Returns:
        Array of proportions summing to 1
    """
    var = np.asarray(result['sdev'], dtype=float) ** 2
    total = var.sum()
    if total == 0:
        return np.zeros_like(var)
    return var / total


def pca_summary(result: Dict[str, Any]) -> pd.DataFrame:
    """
    Importance table of a PCA.

    Args:
        result: Output of prcomp

    Returns:
        DataFrame with rows 'Standard deviation', 'Proportion of Variance'
        and 'Cumulative Proportion', and one column per component
    """
    sdev = np.asarray(result['sdev'], dtype=float)
    prop = variance_explained(result)
    columns = [f"PC{i + 1}" for i in range(len(sdev))]
    return pd.DataFrame(
        [sdev, prop, np.cumsum(prop)],
        index=['Standard deviation', 'Proportion of Variance', 'Cumulative Proportion'],
        columns=columns
    )


def n_components_for_variance(result: Dict[str, Any], threshold: float) -> int:
    """
    Smallest number of components whose cumulative variance reaches threshold.

    Args:
        result: Output of prcomp
        threshold: Target proportion in (0, 1]

    Returns:
        Number of components
    """
    if not 0 < threshold <= 1:
        raise ValueError(f"threshold must be in (0, 1], got {threshold}")
    cumulative = np.cumsum(variance_explained(result))
    k = int(np.searchsorted(cumulative, threshold - 1e-12) + 1)
    return min(k, len(cumulative))


def pca_predict(result: Dict[str, Any], newdata: Any) -> np.ndarray:
    """
    Project new observations onto the components of a fitted PCA.

    The stored training center and scale are used.

    Args:
        result: Output of prcomp
        newdata: Data with the same features as the training data

    Returns:
        Scores of the new observations
    """
    x = as_2d_array(newdata)
    rotation = result['rotation']
    if x.shape[1] != rotation.shape[0]:
        raise ValueError(
            f"New data has {x.shape[1]} features, PCA was fit on {rotation.shape[0]}"
        )
    if result['center'] is not None:
        x = x - result['center']
    if result['scale'] is not None:
        x = x / result['scale']
    return x @ rotation


def pca_reconstruct(result: Dict[str, Any], k: Optional[int] = None) -> np.ndarray:
    """
    Approximate the original data from the first k components.

    With all components this reproduces the data up to rounding error.

    Args:
        result: Output of prcomp
        k: Number of components to use (defaults to all available)

    Returns:
        Reconstructed data in original units
    """
    scores = result['x']
    rotation = result['rotation']
    n_avail = rotation.shape[1]
    if k is None:
        k = n_avail
    if not 1 <= k <= n_avail:
        raise ValueError(f"k must be between 1 and {n_avail}, got {k}")

    approx = scores[:, :k] @ rotation[:, :k].T
    if result['scale'] is not None:
        approx = approx * result['scale']
    if result['center'] is not None:
        approx = approx + result['center']
    return approx


def pca_project_named_matrix(nmat: NamedMatrix,
                             n_comps: int = 2,
                             scale: bool = False) -> Tuple[Dict[str, Any], Dict[Any, np.ndarray]]:
    """
    Perform PCA on a NamedMatrix and project its rows.

    Args:
        nmat: NamedMatrix containing the data
        n_comps: Number of components to keep
        scale: Scale columns to unit variance

    Returns:
        Tuple of (pca_results, projections by row name)
    """
    pca_results = prcomp(nmat.values, center=True, scale=scale, rank=n_comps)
    pca_results['colnames'] = nmat.colnames()

    proj_dict = {name: proj for name, proj in zip(nmat.rownames(), pca_results['x'])}

    return pca_results, proj_dict
