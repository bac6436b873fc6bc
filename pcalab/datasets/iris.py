"""
Loader for Fisher's iris measurements.
"""

from typing import List, Tuple
from sklearn import datasets

from pcalab.math.named_matrix import NamedMatrix

IRIS_COLUMNS = ['Sepal.Length', 'Sepal.Width', 'Petal.Length', 'Petal.Width']


def load_iris() -> Tuple[NamedMatrix, List[str]]:
    """
    Load the 150 iris flowers bundled with scikit-learn.

    Returns:
        Tuple of (NamedMatrix of the four measurements in cm, species labels)
    """
    bunch = datasets.load_iris()
    species = [str(bunch.target_names[t]) for t in bunch.target]
    nmat = NamedMatrix(bunch.data, rownames=list(range(len(species))), colnames=IRIS_COLUMNS)
    return nmat, species
