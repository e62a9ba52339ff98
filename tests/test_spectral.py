import numpy as np
import pytest

from edmkit import InvalidArgument, SpectralDecomposition, eigh, lowrankapprox, svd


def test_svd_is_descending_and_exact():
    rng = np.random.default_rng(0)
    M = rng.normal(size=(7, 5))

    s = svd(M)

    assert np.all(np.diff(s.values) <= 0)
    np.testing.assert_allclose(s.reconstruct(), M, atol=1e-10)


def test_eigh_keeps_signs_with_negative_values_last():
    rng = np.random.default_rng(1)
    Q, _ = np.linalg.qr(rng.normal(size=(5, 5)))
    w = np.array([-3.0, 2.0, 0.5, -0.1, 4.0])
    M = Q @ np.diag(w) @ Q.T

    s = eigh(M)

    np.testing.assert_allclose(s.values, np.sort(w)[::-1], atol=1e-10)
    np.testing.assert_allclose(s.reconstruct(), M, atol=1e-10)


def test_eigh_rejects_rectangular():
    with pytest.raises(InvalidArgument):
        eigh(np.zeros((2, 3)))


def test_rank_truncate_keeps_leading_values():
    rng = np.random.default_rng(2)
    s = svd(rng.normal(size=(6, 6)))

    t = s.rank_truncate(2)

    assert isinstance(t, SpectralDecomposition)
    np.testing.assert_array_equal(t.values, s.values[:2])
    assert t.left.shape == (6, 2)
    assert t.right.shape == (2, 6)


def test_lowrankapprox_recovers_low_rank_matrix():
    rng = np.random.default_rng(3)
    M = rng.normal(size=(8, 2)) @ rng.normal(size=(2, 6))

    np.testing.assert_allclose(lowrankapprox(M, 2), M, atol=1e-10)
    np.testing.assert_allclose(lowrankapprox(svd(M), 2), M, atol=1e-10)


def test_lowrankapprox_clips_rank_to_available():
    rng = np.random.default_rng(4)
    M = rng.normal(size=(4, 3))

    np.testing.assert_allclose(lowrankapprox(svd(M), 10), M, atol=1e-10)


@pytest.mark.parametrize('r', [0, -1, None])
def test_lowrankapprox_rejects_non_positive_rank(r):
    with pytest.raises(InvalidArgument):
        lowrankapprox(svd(np.eye(3)), r)


def test_randomized_backend_on_large_low_rank_matrix():
    rng = np.random.default_rng(5)
    M = rng.normal(size=(600, 5)) @ rng.normal(size=(5, 600))

    s = svd(M, rank=5, backend="randomized", random_state=0)

    assert s.values.shape == (5,)
    assert np.all(np.diff(s.values) <= 0)
    np.testing.assert_allclose(s.reconstruct(), M, atol=1e-6 * np.abs(M).max())


def test_unknown_backend_is_rejected():
    with pytest.raises(InvalidArgument):
        svd(np.eye(3), backend="lapack")
