"""
Tests for the consensus PCA engine.

Covers the iris reference values, block reconstruction, termination
modes, and error reporting.
"""

import numpy as np
import pytest

from consensus_pca import (
    CPCA,
    consensus_pca,
    ConfigurationError,
    ConvergenceError,
    DegenerateBlockError,
    NotFittedError,
    NumericalInstabilityError,
)
from consensus_pca.config import CPCAConfig
from consensus_pca.linalg import nipals


IRIS_EIGENVALUES = [20.853205, 11.67007, 4.676192, 1.756847]

IRIS_LOADINGS = [
    [0.521, 0.269, 0.58, 0.565],
    [0.377, 0.923, 0.024, 0.067],
    [0.72, 0.244, 0.142, 0.634],
    [0.261, 0.124, 0.801, 0.524],
]


class TestIrisSingleBlock:
    """Centered and scaled iris as one block reproduces classical PCA."""

    @pytest.fixture
    def model(self, iris):
        return CPCA(center=True, scale=True).fit(iris)

    def test_loadings(self, model):
        vectors = np.abs(model.get_loadings().eigenvectors.T)
        np.testing.assert_allclose(vectors, IRIS_LOADINGS, atol=1e-3)

    def test_loadings_orthonormal(self, model):
        V = model.get_loadings().eigenvectors
        np.testing.assert_allclose(V.T @ V, np.eye(4), atol=1e-4)

    def test_eigenvalues(self, model):
        eigenvalues = model.get_loadings().eigenvalues
        np.testing.assert_allclose(eigenvalues, IRIS_EIGENVALUES, atol=1e-6)

    def test_eigenvalues_descending(self, model):
        eigenvalues = model.get_loadings().eigenvalues
        assert np.all(np.diff(eigenvalues) < 0)

    def test_evd_initialization_matches(self, iris):
        model = CPCA(center=True, scale=True, method="evd").fit(iris)
        np.testing.assert_allclose(model.get_loadings().eigenvalues, IRIS_EIGENVALUES, atol=1e-6)

    def test_method_is_case_insensitive(self, iris):
        model = CPCA(center=True, scale=True, method="EVD").fit(iris)
        assert model.method == "evd"

    def test_single_block_loadings_equal_super_loadings(self, model):
        loadings = model.get_loadings()
        assert len(loadings.block_loadings) == 1
        np.testing.assert_array_equal(loadings.block_loadings[0], loadings.super_loadings)


class TestIrisBlocks:
    """Uncentered iris split into two blocks of two columns."""

    def test_relative_error_with_all_components(self, iris):
        model = CPCA(center=False, scale=False, blocks=2, n_components=4).fit(iris)
        error = model.get_data_by_blocks().relative_error
        np.testing.assert_allclose(error, [0.0, 0.0], atol=0.01)

    def test_first_rows_of_predicted_blocks(self, iris):
        model = CPCA(center=False, scale=False, blocks=2).fit(iris)
        predicted = model.get_data_by_blocks().predicted_blocks
        np.testing.assert_allclose(predicted[0][0], [5.1, 3.5], atol=0.01)
        np.testing.assert_allclose(predicted[1][0], [1.4, 0.2], atol=0.01)

    def test_explicit_widths_match_slice_width(self, iris):
        a = CPCA(center=False, blocks=2).fit(iris)
        b = CPCA(center=False, blocks=[2, 2]).fit(iris)
        np.testing.assert_array_equal(a.get_super_scores(), b.get_super_scores())

    def test_block_loading_shapes(self, iris):
        model = CPCA(center=False, blocks=[1, 3], n_components=3).fit(iris)
        loadings = model.get_loadings()
        assert [b.shape for b in loadings.block_loadings] == [(1, 3), (3, 3)]
        assert loadings.super_loadings.shape == (4, 3)
        np.testing.assert_array_equal(loadings.super_loadings[0], loadings.block_loadings[0][0])
        np.testing.assert_array_equal(loadings.super_loadings[1:], loadings.block_loadings[1])

    def test_eigenvalues_are_column_norms(self, iris):
        loadings = CPCA(center=False, blocks=[1, 3]).fit(iris).get_loadings()
        norms = np.linalg.norm(loadings.super_loadings, axis=0)
        np.testing.assert_allclose(loadings.eigenvalues, norms)
        np.testing.assert_allclose(np.linalg.norm(loadings.eigenvectors, axis=0), 1.0)


class TestFitInvariants:
    """Structural properties of every fit."""

    def test_superscores_unit_and_orthogonal(self, synthetic_blocks):
        X, sizes = synthetic_blocks
        model = CPCA(blocks=sizes, n_components=4).fit(X)
        S = model.get_super_scores()
        assert S.shape == (X.shape[0], 4)
        np.testing.assert_allclose(S.T @ S, np.eye(4), atol=1e-8)

    def test_superweights_shape(self, synthetic_blocks):
        X, sizes = synthetic_blocks
        model = CPCA(blocks=sizes, n_components=3).fit(X)
        weights = model.get_super_weights()
        assert len(weights) == 3
        assert all(w.shape == (len(sizes),) for w in weights)

    def test_block_sizes_cover_columns(self, synthetic_blocks):
        X, sizes = synthetic_blocks
        model = CPCA(blocks=sizes).fit(X)
        assert sum(model.block_sizes_) == X.shape[1]
        assert model.n_blocks == len(sizes)

    def test_default_component_count(self, synthetic_blocks):
        X, sizes = synthetic_blocks
        model = CPCA(blocks=sizes).fit(X)
        assert model.n_components_ == X.shape[1]

    def test_full_reconstruction_round_trip(self, iris):
        model = CPCA(center=True, scale=True).fit(iris)
        np.testing.assert_allclose(model.reconstruct(), model.data_, atol=1e-8)

    def test_multiblock_round_trip(self, synthetic_blocks):
        X, sizes = synthetic_blocks
        model = CPCA(blocks=sizes, method="evd").fit(X)
        np.testing.assert_allclose(model.reconstruct(), model.data_, atol=1e-8)

    def test_deflated_blocks_orthogonal_to_superscore(self, synthetic_blocks):
        X, sizes = synthetic_blocks
        model = CPCA(blocks=sizes, n_components=5, method="evd").fit(X)
        S = model.get_super_scores()
        residuals = model.get_blocks()

        for k in range(model.n_components_):
            t = S[:, k]
            for i in range(model.n_blocks):
                residuals[i] = residuals[i] - np.outer(t, model.loadings_[k][i])
                assert np.max(np.abs(t @ residuals[i])) < 1e-10

    def test_superweights_combine_block_scores_into_superscore(self, synthetic_blocks):
        X, sizes = synthetic_blocks
        model = CPCA(center=False, blocks=sizes, n_components=3).fit(X)
        S = model.get_super_scores()
        weights = model.get_super_weights()
        residuals = model.get_blocks()

        for k in range(model.n_components_):
            T = np.column_stack([
                nipals(b).raw_score / np.sqrt(b.shape[1]) for b in residuals
            ])
            np.testing.assert_allclose(T @ weights[k], S[:, k], atol=1e-8)
            for i in range(model.n_blocks):
                residuals[i] = residuals[i] - np.outer(S[:, k], model.loadings_[k][i])

    def test_residual_norms_decrease(self, synthetic_blocks):
        X, sizes = synthetic_blocks
        model = CPCA(blocks=sizes).fit(X)
        assert len(model.residual_norms_) == model.n_components_
        assert np.all(np.diff(model.residual_norms_) <= 1e-9)

    def test_input_not_modified(self, iris):
        X = iris.copy()
        CPCA(center=True, scale=True).fit(X)
        np.testing.assert_array_equal(X, iris)

    def test_getters_idempotent(self, synthetic_blocks):
        X, sizes = synthetic_blocks
        model = CPCA(blocks=sizes, n_components=3).fit(X)

        np.testing.assert_array_equal(model.get_super_scores(), model.get_super_scores())
        for a, b in zip(model.get_super_weights(), model.get_super_weights()):
            np.testing.assert_array_equal(a, b)

        first, second = model.get_loadings(), model.get_loadings()
        np.testing.assert_array_equal(first.super_loadings, second.super_loadings)
        np.testing.assert_array_equal(first.eigenvalues, second.eigenvalues)
        np.testing.assert_array_equal(first.eigenvectors, second.eigenvectors)

        first, second = model.get_data_by_blocks(), model.get_data_by_blocks()
        np.testing.assert_array_equal(first.relative_error, second.relative_error)
        for a, b in zip(first.predicted_blocks, second.predicted_blocks):
            np.testing.assert_array_equal(a, b)

    def test_getters_return_copies(self, iris):
        model = CPCA().fit(iris)
        scores = model.get_super_scores()
        scores[:] = 0
        assert np.any(model.get_super_scores() != 0)

    def test_parallel_blocks_match_serial(self, synthetic_blocks):
        X, sizes = synthetic_blocks
        serial = CPCA(center=False, blocks=sizes, n_components=3, n_jobs=1).fit(X)
        threaded = CPCA(center=False, blocks=sizes, n_components=3, n_jobs=2).fit(X)
        np.testing.assert_allclose(threaded.get_super_scores(), serial.get_super_scores())

    def test_factory(self, iris):
        model = consensus_pca(iris, blocks=[2, 2], n_components=2, center=False)
        assert model.get_super_scores().shape == (150, 2)

    def test_from_config(self, iris):
        config = CPCAConfig(scale=True, blocks=[2, 2], n_components=2)
        model = CPCA.from_config(config).fit(iris)
        assert model.block_sizes_ == [2, 2]
        assert model.n_components_ == 2


class TestNormStop:
    """Termination on the residual Frobenius norm."""

    def test_stops_at_rank(self, low_rank):
        model = CPCA(stop="norm", tolerance=1e-8).fit(low_rank)
        assert model.n_components_ == 2
        assert model.residual_norms_[-1] <= 1e-8

    def test_iris_converges_within_columns(self, iris):
        model = CPCA(stop="norm", tolerance=1e-8).fit(iris)
        assert model.n_components_ == 4

    def test_cap_raises_convergence_error(self, iris):
        with pytest.raises(ConvergenceError) as exc:
            CPCA(stop="norm", tolerance=1e-8, max_components=2).fit(iris)
        assert exc.value.component == 1

    def test_failed_fit_leaves_model_unfitted(self, iris):
        model = CPCA(stop="norm", tolerance=1e-8, max_components=1)
        with pytest.raises(ConvergenceError):
            model.fit(iris)
        with pytest.raises(NotFittedError):
            model.get_super_scores()


class TestErrors:
    """Configuration and numerical failures."""

    def test_blocks_must_sum_to_columns(self, iris):
        with pytest.raises(ConfigurationError):
            CPCA(blocks=[2, 3]).fit(iris)

    def test_configuration_error_is_value_error(self, iris):
        with pytest.raises(ValueError):
            CPCA(blocks=[1, 1]).fit(iris)

    @pytest.mark.parametrize("k", [0, 5, 2.5])
    def test_component_count_out_of_range(self, iris, k):
        with pytest.raises(ConfigurationError):
            CPCA(n_components=k).fit(iris)

    def test_unknown_method(self, iris):
        with pytest.raises(ConfigurationError):
            CPCA(method="random").fit(iris)

    def test_unknown_stop(self, iris):
        with pytest.raises(ConfigurationError):
            CPCA(stop="never").fit(iris)

    def test_rejects_vector(self):
        with pytest.raises(ConfigurationError):
            CPCA().fit(np.arange(5.0))

    def test_rejects_empty(self):
        with pytest.raises(ConfigurationError):
            CPCA().fit(np.empty((0, 3)))

    def test_rejects_nan(self, iris):
        X = iris.copy()
        X[3, 1] = np.nan
        with pytest.raises(ConfigurationError):
            CPCA().fit(X)

    def test_zero_block_is_degenerate(self):
        rng = np.random.default_rng(0)
        X = np.hstack([rng.standard_normal((20, 3)), np.zeros((20, 2))])
        with pytest.raises(DegenerateBlockError) as exc:
            CPCA(center=False, blocks=[3, 2]).fit(X)
        assert exc.value.block == 1
        assert exc.value.component == 0
        assert "block=1" in str(exc.value)

    def test_constant_column_cannot_be_scaled(self, iris):
        X = iris.copy()
        X[:, 2] = 1.0
        with pytest.raises(NumericalInstabilityError):
            CPCA(scale=True).fit(X)

    def test_cancelling_block_scores_give_zero_superscore(self):
        # Centered columns are [-1, 1] twice, so the ones start sums to zero
        X = np.array([[1.0, 2.0], [3.0, 4.0]])
        with pytest.raises(NumericalInstabilityError) as exc:
            CPCA(blocks=[1, 1]).fit(X)
        assert exc.value.component == 0
        assert exc.value.operation == "superscore"
        assert "operation=superscore" in str(exc.value)

    def test_zero_block_cannot_be_compared(self, iris):
        model = CPCA(center=False, blocks=2).fit(iris)
        model.data_[:, 2:] = 0.0
        with pytest.raises(NumericalInstabilityError) as exc:
            model.get_data_by_blocks()
        assert exc.value.block == 1
        assert exc.value.operation == "relative error"

    def test_not_fitted(self):
        with pytest.raises(NotFittedError):
            CPCA().get_loadings()
