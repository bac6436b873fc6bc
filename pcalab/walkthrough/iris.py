"""
Iris: PCA of four flower measurements.
"""

import logging
import numpy as np
import pandas as pd
from typing import Any, Dict

from pcalab.datasets.iris import load_iris
from pcalab.math.distance import distance_approximation
from pcalab.math.pca import (
    pca_project_named_matrix, pca_summary, variance_explained, wrapped_pca
)
from pcalab.walkthrough.base import Example

logger = logging.getLogger(__name__)


class IrisExample(Example):
    """
    Two principal components separate the species and preserve distances.
    """

    name = 'iris'

    def _run(self) -> Dict[str, Any]:
        n_pcs = self.config.get('iris.n_pcs', 2)
        scale = bool(self.config.get('iris.scale', False))

        nmat, species = load_iris()
        n_features = nmat.shape[1]
        if not 1 <= n_pcs <= n_features:
            raise ValueError(f"iris.n_pcs must be between 1 and {n_features}, got {n_pcs}")

        pca, projections = pca_project_named_matrix(nmat, n_comps=n_pcs, scale=scale)
        x = nmat.values

        pc_names = [f"PC{i + 1}" for i in range(n_pcs)]
        rotation = pd.DataFrame(pca['rotation'], index=pca['colnames'], columns=pc_names)

        scores = pd.DataFrame.from_dict(projections, orient='index', columns=pc_names)
        scores['species'] = species
        species_means = scores.groupby('species').mean()

        return {
            'n_observations': x.shape[0],
            'column_sds': dict(zip(nmat.colnames(), nmat.col_sds())),
            'importance': pca_summary(pca),
            'rotation': rotation,
            'n_pcs': n_pcs,
            'variance_explained': float(variance_explained(pca)[:n_pcs].sum()),
            'distance_approximation': distance_approximation(x, pca['x']),
            'species_means': species_means,
            'power_iteration': self._power_iteration_check(x, pca, n_pcs, scale)
        }

    def _power_iteration_check(self, x: np.ndarray, pca: Dict[str, Any],
                               n_pcs: int, scale: bool) -> Dict[str, float]:
        # Power iteration on the same (scaled) data finds the same directions
        if scale:
            x = x / pca['scale']
        power = wrapped_pca(x, n_pcs, iters=1000, seed=self.config.get('seed', 1988))
        diff = np.abs(power['comps'] - pca['rotation'].T)
        logger.debug(f"Power iteration vs SVD rotation difference: {diff.max():.2e}")
        return {'max_rotation_difference': float(diff.max())}
