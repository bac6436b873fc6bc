"""
Simulated heights of twin pairs.

Half the pairs are adults and half are children; within a pair the two
heights are strongly correlated.
"""

import logging
import numpy as np
from typing import List, Tuple

from pcalab.math.named_matrix import NamedMatrix

logger = logging.getLogger(__name__)


def simulate_twin_heights(n: int = 100,
                          seed: int = 1988,
                          adult_mean: float = 69.0,
                          child_mean: float = 55.0,
                          sd: float = 3.0,
                          rho: float = 0.9) -> Tuple[NamedMatrix, List[str]]:
    """
    Simulate n pairs of twin heights (in inches).

    The first n/2 rows are adult pairs centered at adult_mean, the rest are
    child pairs centered at child_mean. Both groups share the covariance
    sd^2 * [[1, rho], [rho, 1]].

    Args:
        n: Number of pairs, must be even
        seed: Random seed
        adult_mean: Mean height of adults
        child_mean: Mean height of children
        sd: Standard deviation of each twin's height
        rho: Correlation between twins

    Returns:
        Tuple of (NamedMatrix with columns twin1 and twin2, age group labels)
    """
    if n < 2 or n % 2 != 0:
        raise ValueError(f"n must be an even number of at least 2, got {n}")
    if sd <= 0:
        raise ValueError(f"sd must be positive, got {sd}")
    if not -1 <= rho <= 1:
        raise ValueError(f"rho must be between -1 and 1, got {rho}")

    rng = np.random.default_rng(seed)
    sigma = sd ** 2 * np.array([[1.0, rho],
                                [rho, 1.0]])
    half = n // 2

    adults = rng.multivariate_normal([adult_mean, adult_mean], sigma, size=half)
    children = rng.multivariate_normal([child_mean, child_mean], sigma, size=half)
    heights = np.vstack([adults, children])

    groups = ['adult'] * half + ['child'] * half
    logger.debug(f"Simulated {n} twin pairs with seed {seed}")

    return NamedMatrix(heights, rownames=list(range(n)), colnames=['twin1', 'twin2']), groups
