"""
Datasets used by the PCA walkthroughs.

Simulated twin heights, the iris measurements and MNIST digits.
"""

from pcalab.datasets.twins import simulate_twin_heights
from pcalab.datasets.iris import load_iris
from pcalab.datasets.mnist import load_mnist
