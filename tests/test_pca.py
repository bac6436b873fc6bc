"""
Tests for the PCA module.
"""

import pytest
import numpy as np
import pandas as pd
import sys
import os
from sklearn.decomposition import PCA

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pcalab.math.pca import (
    normalize_vector, vector_length, proj_vec, factor_matrix, align_signs,
    power_iteration, powerit_pca, wrapped_pca, prcomp, pca_summary,
    variance_explained, n_components_for_variance, pca_predict,
    pca_reconstruct, pca_project_named_matrix
)
from pcalab.math.named_matrix import NamedMatrix


def make_low_rank_data(n_samples=100, n_features=10, seed=0):
    """Data with two dominant, well separated directions plus noise."""
    rng = np.random.default_rng(seed)
    comp1 = normalize_vector(rng.standard_normal(n_features))
    comp2 = rng.standard_normal(n_features)
    comp2 = normalize_vector(comp2 - proj_vec(comp1, comp2))

    weights1 = rng.standard_normal(n_samples) * 5.0
    weights2 = rng.standard_normal(n_samples) * 2.0
    data = np.outer(weights1, comp1) + np.outer(weights2, comp2)
    return data + rng.standard_normal((n_samples, n_features)) * 0.1


class TestPCAUtils:
    """Tests for the PCA utility functions."""

    def test_normalize_vector(self):
        """Test normalizing a vector to unit length."""
        v = np.array([3.0, 4.0])
        normalized = normalize_vector(v)

        assert np.isclose(np.linalg.norm(normalized), 1.0)
        assert np.isclose(normalized[0] / normalized[1], v[0] / v[1])

        zero_vec = np.zeros(3)
        assert np.array_equal(normalize_vector(zero_vec), zero_vec)

    def test_vector_length(self):
        """Test calculating vector length."""
        assert np.isclose(vector_length(np.array([3.0, 4.0])), 5.0)

    def test_proj_vec(self):
        """Test projecting one vector onto another."""
        u = np.array([1.0, 0.0])
        v = np.array([3.0, 4.0])

        assert np.allclose(proj_vec(u, v), [3.0, 0.0])

        zero_vec = np.zeros(2)
        assert np.array_equal(proj_vec(zero_vec, v), zero_vec)

    def test_factor_matrix(self):
        """Test factoring out a vector from a matrix."""
        data = np.array([
            [1.0, 2.0],
            [3.0, 4.0],
            [5.0, 6.0]
        ])

        result = factor_matrix(data, np.array([1.0, 0.0]))
        assert np.allclose(result[:, 0], 0.0)
        assert np.allclose(result[:, 1], data[:, 1])

        zero_vec = np.zeros(2)
        assert np.array_equal(factor_matrix(data, zero_vec), data)

    def test_align_signs(self):
        """Test that the largest entry of each vector becomes positive."""
        rows = np.array([[0.1, -0.9], [0.5, 0.2]])
        aligned = align_signs(rows, axis=0)
        assert np.allclose(aligned, [[-0.1, 0.9], [0.5, 0.2]])

        aligned_cols = align_signs(rows.T, axis=1)
        assert np.allclose(aligned_cols, aligned.T)


class TestPowerIteration:
    """Tests for the power iteration algorithm."""

    def test_power_iteration_simple(self):
        """Test power iteration on a rank one matrix."""
        data = np.array([
            [1.0, 2.0],
            [2.0, 4.0]
        ])

        result = power_iteration(data, iters=100)

        expected = normalize_vector(np.array([1.0, 2.0]))
        assert np.isclose(abs(np.dot(result, expected)), 1.0)

    def test_power_iteration_start_vector(self):
        """Test power iteration with a custom start vector."""
        data = np.array([
            [4.0, 1.0],
            [1.0, 4.0]
        ])

        result = power_iteration(data, iters=100, start_vector=np.array([1.0, 0.0]))

        assert np.isclose(np.linalg.norm(result), 1.0)
        expected = normalize_vector(np.array([1.0, 1.0]))
        assert np.isclose(abs(np.dot(result, expected)), 1.0, atol=1e-6)

    def test_power_iteration_with_zeros(self):
        """Test that power iteration returns a finite unit vector for zero data."""
        result = power_iteration(np.zeros((10, 5)), iters=10)

        assert np.isclose(np.linalg.norm(result), 1.0)
        assert not np.any(np.isnan(result))


class TestWrappedPCA:
    """Tests for the power iteration PCA wrappers."""

    def test_wrapped_pca_normal(self):
        """Test PCA on a dataset with two dominant components."""
        data = make_low_rank_data()

        result = wrapped_pca(data, n_comps=2, seed=1)

        assert result['center'].shape == (10,)
        assert result['comps'].shape == (2, 10)
        assert np.isclose(np.linalg.norm(result['comps'][0]), 1.0)
        assert np.isclose(np.linalg.norm(result['comps'][1]), 1.0)
        assert np.isclose(np.dot(result['comps'][0], result['comps'][1]), 0.0, atol=1e-8)

    def test_wrapped_pca_edge_cases(self):
        """Test PCA on a single row and a single column."""
        result_1row = wrapped_pca(np.array([[1.0, 2.0, 3.0]]), n_comps=2)

        assert result_1row['comps'].shape == (2, 3)
        assert result_1row['center'].shape == (3,)
        assert np.isclose(np.linalg.norm(result_1row['comps'][0]), 1.0)
        assert np.all(result_1row['comps'][1] == 0.0)

        result_1col = wrapped_pca(np.array([[1.0], [2.0], [3.0]]), n_comps=1)

        assert result_1col['comps'].shape == (1, 1)
        assert result_1col['comps'][0, 0] == 1.0

    def test_powerit_matches_prcomp(self):
        """Power iteration and SVD agree on well separated components."""
        data = make_low_rank_data()

        power = powerit_pca(data, n_comps=2, iters=500, seed=3)
        svd = prcomp(data)

        assert np.allclose(power['center'], svd['center'])
        for i in range(2):
            assert np.isclose(abs(np.dot(power['comps'][i], svd['rotation'][:, i])), 1.0, atol=1e-6)

    def test_powerit_limits_components(self):
        """Cannot find more components than the data dimension."""
        data = np.random.default_rng(0).standard_normal((3, 6))
        result = powerit_pca(data, n_comps=5, seed=0)
        assert result['comps'].shape == (3, 6)


class TestPrcomp:
    """Tests for the SVD based prcomp."""

    def test_prcomp_properties(self):
        """Rotation is orthonormal, sdev is sorted and scores match."""
        data = make_low_rank_data()
        result = prcomp(data)

        rotation = result['rotation']
        assert rotation.shape == (10, 10)
        assert np.allclose(rotation.T @ rotation, np.eye(10), atol=1e-10)

        sdev = result['sdev']
        assert np.all(sdev >= 0)
        assert np.all(np.diff(sdev) <= 1e-12)

        assert np.allclose(result['x'], (data - data.mean(axis=0)) @ rotation)
        assert np.allclose(np.std(result['x'], axis=0, ddof=1), sdev)
        assert result['scale'] is None

    def test_prcomp_matches_sklearn(self):
        """Components agree with scikit-learn up to sign."""
        data = make_low_rank_data(seed=5)
        result = prcomp(data)

        sk = PCA(n_components=3).fit(data)

        assert np.allclose(result['sdev'][:3] ** 2, sk.explained_variance_)
        for i in range(3):
            assert np.isclose(abs(np.dot(sk.components_[i], result['rotation'][:, i])), 1.0)

    def test_prcomp_sign_convention(self):
        """The largest entry of each rotation column is positive."""
        result = prcomp(make_low_rank_data(seed=2))
        for col in result['rotation'].T:
            assert col[np.argmax(np.abs(col))] > 0

    def test_prcomp_scale(self):
        """Scaling uses column standard deviations."""
        rng = np.random.default_rng(4)
        data = rng.standard_normal((50, 3)) * np.array([1.0, 10.0, 100.0])
        result = prcomp(data, scale=True)

        assert np.allclose(result['scale'], data.std(axis=0, ddof=1))
        # Unit variance columns: component variances sum to the feature count
        assert np.isclose(np.sum(result['sdev'] ** 2), 3.0)

    def test_prcomp_scale_constant_column(self):
        """A constant column cannot be scaled."""
        data = np.column_stack([np.arange(5.0), np.ones(5)])
        with pytest.raises(ValueError):
            prcomp(data, scale=True)

    def test_prcomp_rank(self):
        """rank truncates rotation and scores but keeps all sdev."""
        result = prcomp(make_low_rank_data(), rank=2)
        assert result['rotation'].shape == (10, 2)
        assert result['x'].shape == (100, 2)
        assert result['sdev'].shape == (10,)

        with pytest.raises(ValueError):
            prcomp(make_low_rank_data(), rank=0)

    def test_prcomp_invalid_input(self):
        """Too few rows or missing values are rejected."""
        with pytest.raises(ValueError):
            prcomp(np.array([[1.0, 2.0]]))

        with pytest.raises(ValueError):
            prcomp(np.array([[1.0, np.nan], [2.0, 3.0], [4.0, 5.0]]))

    def test_prcomp_wide_data(self):
        """More features than observations gives n components."""
        data = np.random.default_rng(1).standard_normal((4, 8))
        result = prcomp(data)
        assert result['rotation'].shape == (8, 4)
        assert np.isclose(result['sdev'][-1], 0.0, atol=1e-10)


class TestPCASummaries:
    """Tests for the importance table and derived quantities."""

    def test_pca_summary(self):
        """Importance table has the three summary rows."""
        result = prcomp(make_low_rank_data())
        table = pca_summary(result)

        assert isinstance(table, pd.DataFrame)
        assert list(table.index) == ['Standard deviation', 'Proportion of Variance',
                                     'Cumulative Proportion']
        assert list(table.columns[:2]) == ['PC1', 'PC2']
        assert np.isclose(table.loc['Cumulative Proportion'].iloc[-1], 1.0)
        assert np.allclose(table.loc['Standard deviation'].values, result['sdev'])

    def test_variance_explained(self):
        """Two dominant directions carry nearly all variance."""
        result = prcomp(make_low_rank_data())
        prop = variance_explained(result)

        assert np.isclose(prop.sum(), 1.0)
        assert prop[:2].sum() > 0.99

    def test_n_components_for_variance(self):
        """Smallest k reaching the threshold."""
        result = {'sdev': np.sqrt(np.array([6.0, 3.0, 1.0]))}

        assert n_components_for_variance(result, 0.5) == 1
        assert n_components_for_variance(result, 0.6) == 1
        assert n_components_for_variance(result, 0.61) == 2
        assert n_components_for_variance(result, 0.9) == 2
        assert n_components_for_variance(result, 1.0) == 3

        with pytest.raises(ValueError):
            n_components_for_variance(result, 0.0)


class TestProjection:
    """Tests for projecting and reconstructing data."""

    def test_pca_predict_training_data(self):
        """Predicting on the training data returns the scores."""
        data = make_low_rank_data()
        result = prcomp(data, scale=True)

        assert np.allclose(pca_predict(result, data), result['x'])

    def test_pca_predict_uses_training_center(self):
        """New data is centered with the training means."""
        data = np.array([[0.0, 0.0], [2.0, 0.0], [0.0, 2.0], [2.0, 2.0]])
        result = prcomp(data)

        projected = pca_predict(result, np.array([[1.0, 1.0]]))
        assert np.allclose(projected, 0.0)

        with pytest.raises(ValueError):
            pca_predict(result, np.zeros((1, 3)))

    def test_pca_reconstruct(self):
        """All components reproduce the data; fewer give an approximation."""
        data = make_low_rank_data()
        result = prcomp(data)

        assert np.allclose(pca_reconstruct(result), data)

        approx = pca_reconstruct(result, k=2)
        assert np.max(np.abs(approx - data)) < 1.0

        with pytest.raises(ValueError):
            pca_reconstruct(result, k=11)

    def test_pca_project_named_matrix(self):
        """Test PCA projection of a NamedMatrix."""
        data = np.array([
            [1.0, 2.0, 3.0],
            [4.0, 5.0, 6.5],
            [7.0, 8.5, 9.0],
            [2.0, 1.0, 0.0]
        ])
        rownames = ['p1', 'p2', 'p3', 'p4']
        colnames = ['c1', 'c2', 'c3']

        nmat = NamedMatrix(data, rownames, colnames)
        pca_results, proj_dict = pca_project_named_matrix(nmat)

        assert pca_results['center'].shape == (3,)
        assert pca_results['rotation'].shape == (3, 2)
        assert pca_results['colnames'] == colnames

        assert set(proj_dict.keys()) == set(rownames)
        for proj in proj_dict.values():
            assert proj.shape == (2,)
        assert np.allclose(proj_dict['p2'], pca_results['x'][1])
