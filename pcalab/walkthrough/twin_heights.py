"""
Twin heights: orthogonal transformations and a first look at PCA.

Pairs of twin heights are nearly redundant, so a change of coordinates
to (average, difference) concentrates almost all the variability in one
dimension. Rescaling the transformation to be orthogonal makes it
preserve distances, which lets one coordinate approximate them.
"""

import logging
import numpy as np
from typing import Any, Dict

from pcalab.datasets.twins import simulate_twin_heights
from pcalab.math.distance import (
    pairwise_distance, max_distance_change, distance_approximation
)
from pcalab.math.linalg import (
    twin_transform, transform, inverse_transform, is_orthogonal,
    total_variability, variability_share
)
from pcalab.math.pca import prcomp, variance_explained
from pcalab.walkthrough.base import Example

logger = logging.getLogger(__name__)


class TwinHeightsExample(Example):
    """
    Simulated adult and child twin pairs.
    """

    name = 'twins'

    def _run(self) -> Dict[str, Any]:
        n = self.config.get('twins.n', 100)
        # Two pairs per age group, and three pairs to summarize distance errors
        if n < 4:
            raise ValueError(f"twins.n must be at least 4, got {n}")
        nmat, groups = simulate_twin_heights(
            n=n,
            seed=self.config.get('seed', 1988),
            adult_mean=self.config.get('twins.adult_mean', 69.0),
            child_mean=self.config.get('twins.child_mean', 55.0),
            sd=self.config.get('twins.sd', 3.0),
            rho=self.config.get('twins.rho', 0.9)
        )
        x = nmat.values
        first_child = groups.index('child')

        # Same group pairs are close, adult vs child pairs are far apart
        distances = {
            'adult_adult': pairwise_distance(x, 0, 1),
            'adult_child': pairwise_distance(x, 1, first_child)
        }

        # Average / difference coordinates
        a = twin_transform(orthogonal=False)
        z = transform(x, a)
        recovered = inverse_transform(z, a)

        # Orthogonal version keeps distances
        a_orth = twin_transform(orthogonal=True)
        z_orth = transform(x, a_orth)

        x_centered = x - x.mean(axis=0)
        z_centered = z_orth - z_orth.mean(axis=0)

        pca = prcomp(x)
        reconstructed = pca['x'] @ pca['rotation'].T

        logger.debug(f"Twin PCA rotation:\n{pca['rotation']}")

        return {
            'n': n,
            'distances': distances,
            'average_difference': {
                'transform': a,
                'max_inverse_error': float(np.max(np.abs(recovered - x))),
                'is_orthogonal': is_orthogonal(a),
                'max_distance_change': max_distance_change(x, z)
            },
            'orthogonal': {
                'transform': a_orth,
                'is_orthogonal': is_orthogonal(a_orth),
                'max_distance_change': max_distance_change(x, z_orth),
                'first_coordinate_distance': distance_approximation(x, z_orth[:, 0])
            },
            'variability': {
                'total_original': total_variability(x_centered),
                'total_transformed': total_variability(z_centered),
                'share_original': variability_share(x_centered),
                'share_transformed': variability_share(z_centered)
            },
            'pca': {
                'sdev': pca['sdev'],
                'rotation': pca['rotation'],
                'variance_explained': variance_explained(pca),
                'max_reconstruction_error': float(np.max(np.abs(x_centered - reconstructed)))
            }
        }
