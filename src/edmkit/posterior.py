from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional, Sequence, Union
import logging
import numpy as np
from numpy.typing import NDArray
from scipy.optimize import minimize

from .BaseConfig import EDMConfig, PosteriorConfig, PosteriorStrategy, resolve_config
from .errors import DimensionMismatch, InvalidArgument, SolverDiagnostics

logger = logging.getLogger(__name__)

'''
Fusion of noisy point locations with noisy distance measurements. 

The model: the true locations are Gaussian around the measured ones with 
standard deviation sigma_location, and every measured (non-squared) 
distance is Gaussian around the distance between the true locations with 
standard deviation sigma_distance. MAP and MLE point estimates are 
computed here; full posterior sampling is delegated to an external 
sampler passed in by the caller. 
'''

class DistanceObservation(NamedTuple):
    i: int
    j: int
    distance: float # not squared


# Receives the log density, its gradient, the starting point and the
# number of samples; returns an (nsamples, N * dim) array.
Sampler = Callable[[Callable[[NDArray], float], Callable[[NDArray], NDArray], NDArray, int], NDArray]


@dataclass(frozen=True)
class PosteriorEstimate:
    locations: NDArray # dim x N
    covariance: NDArray # (N * dim) x (N * dim), point-major ordering
    distance_residuals: NDArray # predicted minus measured, one per observation
    diagnostics: SolverDiagnostics
    samples: Optional[NDArray] = None # (nsamples, dim, N) when sampled

    @property
    def location_std(self) -> NDArray:
        dim, N = self.locations.shape
        return np.sqrt(np.diag(self.covariance)).reshape(N, dim).T


class _NegLogDensity:
    def __init__(self, locations: NDArray, observations: Sequence[DistanceObservation], cfg: PosteriorConfig,
                 use_prior: bool):
        self.dim, self.N = locations.shape
        self.x0 = locations.T.ravel()
        self.I = np.array([o.i for o in observations], dtype=int)
        self.J = np.array([o.j for o in observations], dtype=int)
        self.d = np.array([o.distance for o in observations], dtype=float)
        self.sL2 = cfg.sigma_location ** 2
        self.sD2 = cfg.sigma_distance ** 2
        self.use_prior = use_prior

    def _diff(self, x: NDArray):
        Q = x.reshape(self.N, self.dim)
        diff = Q[self.I] - Q[self.J]
        return diff, np.linalg.norm(diff, axis=1)

    def residuals(self, x: NDArray) -> NDArray:
        return self._diff(x)[1] - self.d

    def __call__(self, x: NDArray) -> float:
        _, dh = self._diff(x)
        val = np.sum((dh - self.d) ** 2) / (2 * self.sD2)
        if self.use_prior:
            val += np.sum((x - self.x0) ** 2) / (2 * self.sL2)
        return float(val)

    def gradient(self, x: NDArray) -> NDArray:
        diff, dh = self._diff(x)
        # the distance is not differentiable at coincident points, use 0 there
        u = np.divide(diff, dh[:, np.newaxis], out=np.zeros_like(diff), where=dh[:, np.newaxis] > 0)
        g_obs = ((dh - self.d) / self.sD2)[:, np.newaxis] * u
        G = np.zeros((self.N, self.dim))
        np.add.at(G, self.I, g_obs)
        np.add.at(G, self.J, -g_obs)
        g = G.ravel()
        if self.use_prior:
            g = g + (x - self.x0) / self.sL2
        return g


def _check_inputs(locations, distances, cfg: PosteriorConfig):
    locations = np.asarray(locations, dtype=float)
    if locations.ndim != 2:
        raise DimensionMismatch(f"locations must be a dim x N matrix, got shape {locations.shape}")
    N = locations.shape[1]
    observations = [DistanceObservation(int(i), int(j), float(d)) for (i, j, d) in distances]
    for o in observations:
        if not (0 <= o.i < N and 0 <= o.j < N) or o.i == o.j:
            raise InvalidArgument(f"invalid point pair ({o.i}, {o.j}) for {N} points")
        if o.distance < 0:
            raise InvalidArgument(f"distance between {o.i} and {o.j} is negative: {o.distance}")
    if cfg.sigma_location <= 0 or cfg.sigma_distance <= 0:
        raise InvalidArgument("noise standard deviations must be positive")
    return locations, observations


def posterior(
    locations: NDArray,
    distances: Sequence,
    *,
    config: Union[PosteriorConfig, EDMConfig, None] = None,
    sampler: Optional[Sampler] = None,
) -> PosteriorEstimate:
    """Estimate the true locations from noisy locations and noisy distances.

    Args:
        locations: dim x N matrix of measured locations.
        distances: Sequence of (i, j, distance) triples, distances not squared.
        config: Noise levels and strategy, see PosteriorConfig.
        sampler: External posterior sampler, required for the SAMPLE strategy.
    """
    cfg = resolve_config(config, "posterior", PosteriorConfig)
    locations, observations = _check_inputs(locations, distances, cfg)
    dim, N = locations.shape

    if cfg.strategy is PosteriorStrategy.SAMPLE:
        if sampler is None:
            raise InvalidArgument("the SAMPLE strategy needs a sampler")
        return _sample(locations, observations, cfg, sampler)
    if cfg.strategy not in (PosteriorStrategy.MAP, PosteriorStrategy.MLE):
        raise InvalidArgument(f"unknown strategy {cfg.strategy!r}")

    f = _NegLogDensity(locations, observations, cfg, use_prior=cfg.strategy is PosteriorStrategy.MAP)
    options = {} if cfg.max_iter is None else {"maxiter": cfg.max_iter}
    res = minimize(f, f.x0, jac=f.gradient, method="BFGS", options=options)
    diagnostics = SolverDiagnostics(
        solver="BFGS",
        status="optimal" if res.success else str(res.message),
        objective=float(res.fun),
        iterations=int(res.nit),
        degraded=not res.success,
    )
    if diagnostics.degraded:
        logger.warning("%s estimate did not converge: %s", cfg.strategy.name, res.message)
    else:
        logger.info("%s estimate converged in %d iterations.", cfg.strategy.name, res.nit)

    C = np.asarray(res.hess_inv) + 0.1 * min(cfg.sigma_location, cfg.sigma_distance) ** 2 * np.eye(dim * N)
    return PosteriorEstimate(
        locations=res.x.reshape(N, dim).T,
        covariance=0.5 * (C + C.T),
        distance_residuals=f.residuals(res.x),
        diagnostics=diagnostics,
    )


def _sample(locations, observations, cfg: PosteriorConfig, sampler: Sampler) -> PosteriorEstimate:
    dim, N = locations.shape
    f = _NegLogDensity(locations, observations, cfg, use_prior=True)
    logger.info("Starting sampling (this might take a while)")
    chain = np.asarray(sampler(lambda x: -f(x), lambda x: -f.gradient(x), f.x0.copy(), cfg.nsamples), dtype=float)
    if chain.ndim != 2 or chain.shape[1] != dim * N:
        raise DimensionMismatch(f"sampler returned shape {chain.shape}, expected (nsamples, {dim * N})")
    # drop 500 warm-up samples when the chain is longer than that
    crop = 500 if len(chain) > 500 else 0
    kept = chain[crop:]
    mean = kept.mean(axis=0)
    cov = np.atleast_2d(np.cov(kept, rowvar=False)) if len(kept) > 1 else np.zeros((dim * N, dim * N))
    logger.info("Done")
    return PosteriorEstimate(
        locations=mean.reshape(N, dim).T,
        covariance=cov,
        distance_residuals=f.residuals(mean),
        diagnostics=SolverDiagnostics(solver="sampler", status="sampled", iterations=len(chain)),
        samples=kept.reshape(len(kept), N, dim).transpose(0, 2, 1),
    )
