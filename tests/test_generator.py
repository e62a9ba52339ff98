import numpy as np

from edmkit import PointSetGenerator, squared_distance_matrix


def test_distance_matrix_matches_points():
    gen = PointSetGenerator(7, 3, seed=51)

    assert gen.P.shape == (3, 7)
    np.testing.assert_allclose(gen.D[1, 4], np.sum((gen.P[:, 1] - gen.P[:, 4]) ** 2))
    np.testing.assert_array_equal(gen.D, squared_distance_matrix(gen.P))


def test_same_seed_gives_same_points():
    np.testing.assert_array_equal(PointSetGenerator(5, 2, seed=3).P, PointSetGenerator(5, 2, seed=3).P)


def test_mask_is_symmetric_with_observed_diagonal():
    gen = PointSetGenerator(20, 2, seed=52)

    W = gen.generate_mask(0.6)

    assert W.dtype == np.bool_
    np.testing.assert_array_equal(W, W.T)
    assert np.all(np.diag(W))
    assert not np.all(W)


def test_sample_zeroes_missing_entries():
    D, W, D0 = PointSetGenerator(12, 2, seed=53).generate_sample(p_missing=0.5)

    np.testing.assert_array_equal(D0[~W], 0.0)
    np.testing.assert_array_equal(D0[W], D[W])


def test_noisy_distances_keep_structure():
    Dn = PointSetGenerator(9, 2, seed=54, sigma_distance=0.2).noisy_distances()

    np.testing.assert_array_equal(Dn, Dn.T)
    np.testing.assert_array_equal(np.diag(Dn), 0.0)


def test_sparse_outliers_hit_symmetric_pairs():
    gen = PointSetGenerator(15, 2, seed=55)

    Dc, hit = gen.sparse_outliers(fraction=0.2)

    np.testing.assert_array_equal(hit, hit.T)
    assert not np.any(np.diag(hit))
    assert np.all(Dc[hit] > gen.D[hit])
    np.testing.assert_array_equal(Dc[~hit], gen.D[~hit])


def test_random_rotation_is_proper():
    R = PointSetGenerator(4, 3, seed=56).random_rotation()

    np.testing.assert_allclose(R @ R.T, np.eye(3), atol=1e-12)
    assert np.isclose(np.linalg.det(R), 1.0)


def test_observations_cover_all_pairs_when_p_is_one():
    gen = PointSetGenerator(6, 2, seed=57)

    obs = gen.distance_observations(p=1.0)

    assert len(obs) == 15
    assert all(o.i < o.j for o in obs)
    np.testing.assert_allclose([o.distance for o in obs], [np.sqrt(gen.D[o.i, o.j]) for o in obs])


def test_pair_mask_drops_exact_share_of_pairs():
    gen = PointSetGenerator(5, 2, seed=58)

    W = gen.generate_pair_mask(0.3)

    np.testing.assert_array_equal(W, W.T)
    assert np.all(np.diag(W))
    assert np.count_nonzero(~W) == 6
