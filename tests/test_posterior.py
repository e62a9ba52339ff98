import numpy as np
import pytest

from edmkit import (
    DimensionMismatch,
    DistanceObservation,
    InvalidArgument,
    PointSetGenerator,
    PosteriorConfig,
    PosteriorStrategy,
    posterior,
)


def _problem(seed=41):
    gen = PointSetGenerator(10, 2, seed=seed, sigma_location=0.1, sigma_distance=0.01)
    locations = gen.noisy_locations()
    distances = gen.distance_observations(p=1.0)
    return gen, locations, distances


def test_map_estimate_improves_locations():
    gen, locations, distances = _problem()
    cfg = PosteriorConfig(sigma_location=0.1, sigma_distance=0.01)

    est = posterior(locations, distances, config=cfg)

    assert est.locations.shape == gen.P.shape
    assert np.linalg.norm(est.locations - gen.P) < np.linalg.norm(locations - gen.P)
    assert est.distance_residuals.shape == (len(distances),)
    assert np.max(np.abs(est.distance_residuals)) < 0.1


def test_map_covariance_is_symmetric():
    _, locations, distances = _problem(seed=42)

    est = posterior(locations, distances)

    assert est.covariance.shape == (20, 20)
    np.testing.assert_allclose(est.covariance, est.covariance.T)
    assert est.location_std.shape == (2, 10)
    assert np.all(est.location_std > 0)


def test_mle_fits_distances():
    _, locations, distances = _problem(seed=43)
    cfg = PosteriorConfig(sigma_location=0.1, sigma_distance=0.01, strategy=PosteriorStrategy.MLE)

    est = posterior(locations, distances, config=cfg)

    assert np.max(np.abs(est.distance_residuals)) < 0.05


def test_sampling_needs_a_sampler():
    _, locations, distances = _problem()

    with pytest.raises(InvalidArgument):
        posterior(locations, distances, config=PosteriorConfig(strategy=PosteriorStrategy.SAMPLE))


def test_sampling_delegates_to_sampler():
    _, locations, distances = _problem()
    calls = []
    chains = []

    def sampler(logp, grad, x0, nsamples):
        calls.append(nsamples)
        assert np.isfinite(logp(x0))
        assert grad(x0).shape == x0.shape
        rng = np.random.default_rng(0)
        chains.append(x0 + 0.01 * rng.normal(size=(nsamples, x0.size)))
        return chains[-1]

    cfg = PosteriorConfig(strategy=PosteriorStrategy.SAMPLE, nsamples=700)
    est = posterior(locations, distances, config=cfg, sampler=sampler)

    assert calls == [700]
    # 500 warm-up samples dropped
    assert est.samples.shape == (200, 2, 10)
    np.testing.assert_allclose(est.locations, locations, atol=0.01)
    np.testing.assert_array_equal(est.samples[0], chains[0][500].reshape(10, 2).T)


def test_observation_triples_are_accepted():
    locations = np.array([[0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
    distances = [(0, 1, 1.0), DistanceObservation(1, 2, np.sqrt(2.0))]

    est = posterior(locations, distances)

    np.testing.assert_allclose(est.distance_residuals, 0.0, atol=1e-4)


@pytest.mark.parametrize('distances', [[(0, 3, 1.0)], [(1, 1, 1.0)], [(0, 1, -1.0)]])
def test_bad_observations_are_rejected(distances):
    with pytest.raises(InvalidArgument):
        posterior(np.zeros((2, 3)), distances)


def test_locations_must_be_a_matrix():
    with pytest.raises(DimensionMismatch):
        posterior(np.zeros(4), [(0, 1, 1.0)])


def test_short_chains_keep_every_sample():
    _, locations, distances = _problem()

    def sampler(logp, grad, x0, nsamples):
        return np.tile(x0, (nsamples, 1))

    cfg = PosteriorConfig(strategy=PosteriorStrategy.SAMPLE, nsamples=300)
    est = posterior(locations, distances, config=cfg, sampler=sampler)

    assert est.samples.shape == (300, 2, 10)
