"""
MNIST: k-nearest-neighbour classification on principal components.

The classifier is trained on the first k PC scores of the training
images. Test images are centered with the training means and rotated
with the training rotation, so both sets share one coordinate system.
"""

import logging
import numpy as np
from typing import Any, Dict

from pcalab.datasets.mnist import load_mnist
from pcalab.math.knn import KNN3, accuracy, confusion_matrix, class_summary
from pcalab.math.named_matrix import NamedMatrix
from pcalab.math.pca import (
    prcomp, pca_predict, pca_summary, n_components_for_variance
)
from pcalab.walkthrough.base import Example

logger = logging.getLogger(__name__)


class MnistExample(Example):
    """
    Digit classification with PCA followed by kNN.
    """

    name = 'mnist'

    def _run(self) -> Dict[str, Any]:
        source = self.config.get('mnist.source', 'digits')
        data = load_mnist(
            source=source,
            n_train=self.config.get('mnist.n_train'),
            n_test=self.config.get('mnist.n_test'),
            seed=self.config.get('seed', 1988)
        )

        train_images = data['train']['images']
        pixel_names = [f"px{i}" for i in range(train_images.shape[1])]
        x_train = NamedMatrix(train_images, colnames=pixel_names)
        x_test = NamedMatrix(data['test']['images'], colnames=pixel_names)

        if self.config.get('mnist.drop_nzv', False):
            x_train = x_train.drop_near_zero_variance()
            x_test = x_test.colname_subset(x_train.colnames())
            logger.info(f"Kept {x_train.shape[1]} of {len(pixel_names)} pixels")

        pca = prcomp(x_train.values)
        n_avail = pca['rotation'].shape[1]

        k_pcs = self.config.get('mnist.k_pcs')
        if k_pcs is None:
            k_pcs = n_components_for_variance(pca, self.config.get('mnist.variance_threshold', 0.8))
        k_pcs = int(min(k_pcs, n_avail))
        if k_pcs < 1:
            raise ValueError(f"mnist.k_pcs must be positive, got {k_pcs}")

        logger.info(f"Using {k_pcs} principal components")

        knn = KNN3(k=self.config.get('mnist.k_neighbors', 5))
        knn.fit(pca['x'][:, :k_pcs], data['train']['labels'])

        test_scores = pca_predict(pca, x_test.values)[:, :k_pcs]
        y_hat = knn.predict(test_scores)
        y_test = data['test']['labels']

        importance = pca_summary(pca)
        n_show = min(5, n_avail)

        acc = accuracy(y_hat, y_test)
        logger.info(f"Test accuracy with {k_pcs} PCs: {acc:.4f}")

        return {
            'source': source,
            'n_train': int(len(data['train']['labels'])),
            'n_test': int(len(y_test)),
            'n_pixels': int(x_train.shape[1]),
            'k_pcs': k_pcs,
            'k_neighbors': knn.k,
            'importance': importance.iloc[:, :n_show],
            'variance_explained_k': float(importance.loc['Cumulative Proportion'].iloc[k_pcs - 1]),
            'accuracy': acc,
            'confusion_matrix': confusion_matrix(y_hat, y_test),
            'by_class': class_summary(y_hat, y_test),
            'sdev': np.asarray(pca['sdev'][:n_show])
        }
