"""
Worked PCA examples.

Each example reproduces one section of the walkthrough and returns its
summary statistics as a JSON-serializable dictionary.
"""

from pcalab.walkthrough.twin_heights import TwinHeightsExample
from pcalab.walkthrough.iris import IrisExample
from pcalab.walkthrough.mnist import MnistExample
from pcalab.walkthrough.manager import ExampleManager
