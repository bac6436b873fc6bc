"""
pcalab package for principal component analysis walkthroughs.

This is a Python reproduction of a PCA teaching chapter: orthogonal
transformations on simulated twin heights, PCA of the iris measurements
and k-nearest-neighbour classification of MNIST digits on PC scores.
"""

__version__ = '0.1.0'

from pcalab.components.config import Config, ConfigManager
from pcalab.walkthrough.manager import ExampleManager
