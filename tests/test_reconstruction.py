import numpy as np
import pytest

from edmkit import (
    EmbeddingError,
    InvalidArgument,
    PointSetGenerator,
    ReconstructionConfig,
    ValidationError,
    align,
    double_center,
    eigh,
    reconstruct_pointset,
)


def _relative_residual(X, P):
    return np.linalg.norm(align(X, P) - P) / np.linalg.norm(P)


@pytest.mark.parametrize('dim, n', [(1, 3), (2, 4), (2, 12), (3, 10), (4, 9)])
def test_reconstruction_recovers_points_up_to_rigid_motion(dim, n):
    gen = PointSetGenerator(n, dim, seed=dim * 100 + n)

    X = reconstruct_pointset(gen.D, dim)

    assert X.shape == (dim, n)
    assert _relative_residual(X, gen.P) < 1e-6


def test_reconstruction_from_cached_decomposition_matches():
    gen = PointSetGenerator(8, 2, seed=3)
    S = eigh(double_center(gen.D))

    X = reconstruct_pointset(S, 2)

    assert _relative_residual(X, gen.P) < 1e-6
    np.testing.assert_allclose(np.abs(X), np.abs(reconstruct_pointset(gen.D, 2)), atol=1e-10)


def test_reconstruction_is_centered():
    gen = PointSetGenerator(7, 3, seed=4)

    X = reconstruct_pointset(gen.D, 3)

    np.testing.assert_allclose(X.mean(axis=1), 0.0, atol=1e-10)


def test_extra_dimensions_of_round_off_are_zero():
    gen = PointSetGenerator(6, 2, seed=5)

    X = reconstruct_pointset(gen.D, 5)

    np.testing.assert_allclose(X[2:], 0.0, atol=1e-6)


def _non_euclidean():
    # distances 1, 1, 3 violate the triangle inequality
    return np.array([[0.0, 1.0, 9.0], [1.0, 0.0, 1.0], [9.0, 1.0, 0.0]])


def test_negative_eigenvalues_raise_by_default():
    with pytest.raises(EmbeddingError):
        reconstruct_pointset(_non_euclidean(), 3)


def test_negative_eigenvalues_can_be_clamped():
    X = reconstruct_pointset(_non_euclidean(), 3, config=ReconstructionConfig(clamp_negative_eigenvalues=True))

    assert X.shape == (3, 3)
    np.testing.assert_array_equal(X[2], 0.0)


def test_leading_dimension_of_non_euclidean_matrix_is_fine():
    X = reconstruct_pointset(_non_euclidean(), 1)

    assert X.shape == (1, 3)


@pytest.mark.parametrize('dim', [0, -2, 7])
def test_reconstruction_rejects_bad_dimension(dim):
    with pytest.raises(InvalidArgument):
        reconstruct_pointset(PointSetGenerator(5, 2, seed=0).D, dim)


def test_reconstruction_validates_input():
    D = PointSetGenerator(5, 2, seed=0).D
    D[0, 0] = 1.0

    with pytest.raises(ValidationError):
        reconstruct_pointset(D, 2)
