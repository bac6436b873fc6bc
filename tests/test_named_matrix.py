"""
Tests for the named_matrix module.
"""

import pytest
import numpy as np
import pandas as pd
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pcalab.math.named_matrix import NamedMatrix, create_named_matrix


@pytest.fixture
def nmat():
    data = np.array([
        [1.0, 2.0, 3.0],
        [4.0, 5.0, 6.0],
        [7.0, 8.0, 9.0]
    ])
    return NamedMatrix(data, ['r1', 'r2', 'r3'], ['c1', 'c2', 'c3'])


class TestNamedMatrix:
    """Tests for the NamedMatrix class."""

    def test_init_empty(self):
        """Test creating an empty NamedMatrix."""
        empty = NamedMatrix()
        assert empty.rownames() == []
        assert empty.colnames() == []
        assert empty.shape == (0, 0)

    def test_init_with_data(self, nmat):
        """Test creating a NamedMatrix with data and names."""
        assert nmat.rownames() == ['r1', 'r2', 'r3']
        assert nmat.colnames() == ['c1', 'c2', 'c3']
        assert nmat.shape == (3, 3)
        assert np.array_equal(nmat.values[1], [4.0, 5.0, 6.0])

    def test_init_default_names(self):
        """Test default integer names."""
        m = NamedMatrix(np.zeros((2, 3)))
        assert m.rownames() == [0, 1]
        assert m.colnames() == [0, 1, 2]

    def test_init_one_dimensional(self):
        """A 1D array becomes a single column."""
        m = NamedMatrix(np.array([1.0, 2.0, 3.0]), colnames=['height'])
        assert m.shape == (3, 1)

    def test_init_with_dataframe(self):
        """Test creating a NamedMatrix from a DataFrame."""
        df = pd.DataFrame({'a': [1, 2], 'b': [3, 4]}, index=['x', 'y'])
        m = NamedMatrix(df)
        assert m.rownames() == ['x', 'y']
        assert m.colnames() == ['a', 'b']
        assert m.values.dtype == float

    def test_init_mismatched_names(self):
        """Names must match the data shape."""
        with pytest.raises(ValueError):
            NamedMatrix(np.zeros((2, 2)), rownames=['a', 'b', 'c'])

    def test_init_duplicate_names(self):
        """Names must be unique."""
        with pytest.raises(ValueError):
            NamedMatrix(np.zeros((2, 2)), rownames=['a', 'a'])

    def test_from_dataframe(self):
        """Only numeric columns are kept by default."""
        df = pd.DataFrame({
            'length': [1.0, 2.0, 3.0],
            'width': [0.5, 0.7, 0.9],
            'species': ['a', 'b', 'c']
        })
        m = NamedMatrix.from_dataframe(df)
        assert m.colnames() == ['length', 'width']

        with pytest.raises(KeyError):
            NamedMatrix.from_dataframe(df, columns=['depth'])

    def test_rowname_subset(self, nmat):
        """Test subsetting rows, ignoring unknown names."""
        subset = nmat.rowname_subset(['r3', 'r1', 'missing'])
        assert subset.rownames() == ['r3', 'r1']
        assert np.array_equal(subset.values[0], [7.0, 8.0, 9.0])

        # Original is unchanged
        assert nmat.shape == (3, 3)

    def test_colname_subset(self, nmat):
        """Test subsetting columns."""
        subset = nmat.colname_subset(['c2'])
        assert subset.colnames() == ['c2']
        assert np.array_equal(subset.values[:, 0], [2.0, 5.0, 8.0])

        empty = nmat.colname_subset(['zz'])
        assert empty.shape == (3, 0)

    def test_get_row_and_col(self, nmat):
        """Test row and column lookup by name."""
        assert np.array_equal(nmat.get_row_by_name('r2'), [4.0, 5.0, 6.0])
        assert np.array_equal(nmat.get_col_by_name('c3'), [3.0, 6.0, 9.0])

        with pytest.raises(KeyError):
            nmat.get_row_by_name('r9')
        with pytest.raises(KeyError):
            nmat.get_col_by_name('c9')

    def test_col_means_and_sds(self, nmat):
        """Test column summaries."""
        assert np.allclose(nmat.col_means(), [4.0, 5.0, 6.0])
        assert np.allclose(nmat.col_sds(), [3.0, 3.0, 3.0])

    def test_center(self, nmat):
        """Centering subtracts the column means."""
        centered = nmat.center()
        assert np.allclose(centered.values.mean(axis=0), 0.0)
        assert centered.rownames() == nmat.rownames()

        shifted = nmat.center(np.array([1.0, 2.0, 3.0]))
        assert np.array_equal(shifted.values[0], [0.0, 0.0, 0.0])

        with pytest.raises(ValueError):
            nmat.center(np.array([1.0, 2.0]))

    def test_near_zero_variance(self):
        """Constant and almost constant columns are flagged."""
        n = 100
        constant = np.zeros(n)
        rare = np.zeros(n)
        rare[0] = 1.0
        varied = np.arange(n, dtype=float)
        m = NamedMatrix(np.column_stack([constant, rare, varied]),
                        colnames=['constant', 'rare', 'varied'])

        assert m.near_zero_variance() == ['constant', 'rare']

        kept = m.drop_near_zero_variance()
        assert kept.colnames() == ['varied']

    def test_repr(self, nmat):
        """Test string representations."""
        assert repr(nmat) == "NamedMatrix(rows=3, cols=3)"
        assert "3 rows and 3 columns" in str(nmat)


def test_create_named_matrix():
    """Test the create_named_matrix helper with nested lists."""
    m = create_named_matrix([[1, 2], [3, 4]], ['a', 'b'], ['x', 'y'])
    assert isinstance(m, NamedMatrix)
    assert m.values.dtype == float
    assert np.array_equal(m.get_row_by_name('b'), [3.0, 4.0])
