from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import logging
import time
import numpy as np
from numpy.typing import NDArray

from .BaseConfig import RPCAConfig
from .DistanceMatrixSolver import DistanceMatrixSolver
from .errors import InvalidArgument, SolverDiagnostics
from .spectral import SpectralDecomposition, svd

logger = logging.getLogger(__name__)

'''
Robust PCA by principal component pursuit, solved with the inexact 
augmented Lagrange multiplier method from: 
Lin, Chen, Ma. "The Augmented Lagrange Multiplier Method for Exact 
Recovery of Corrupted Low-Rank Matrices." arXiv:1009.5055 (2010). 
'''

@dataclass(frozen=True)
class RPCAResult:
    low_rank: NDArray
    sparse: NDArray
    decomposition: SpectralDecomposition # SVD of low_rank
    diagnostics: SolverDiagnostics

    @property
    def degraded(self) -> bool:
        return self.diagnostics.degraded


def _soft_threshold(X: NDArray, tau: float) -> NDArray:
    return np.sign(X) * np.maximum(np.abs(X) - tau, 0.0)


class RobustPCA(DistanceMatrixSolver):
    '''
    Splits M into a low-rank part L and a sparse part S, M = L + S, by 
    minimizing ||L||_* + lam ||S||_1. With nonneg_low_rank the iterates 
    of L are projected onto the non-negative orthant. 
    '''
    def __init__(self, config: Optional[RPCAConfig] = None):
        super().__init__(config if config is not None else RPCAConfig())
        self.result_: Optional[RPCAResult] = None

    def fit(self, M: NDArray):
        cfg: RPCAConfig = self.config  # type: ignore
        M = np.asarray(M, dtype=float)
        if M.ndim != 2:
            raise InvalidArgument(f"expected a 2-D matrix, got shape {M.shape}")
        if cfg.rho <= 1:
            raise InvalidArgument(f"rho must exceed 1, got {cfg.rho}")
        m, n = M.shape
        lam = cfg.lam if cfg.lam is not None else 1.0 / np.sqrt(max(m, n))
        if lam <= 0:
            raise InvalidArgument(f"lam must be positive, got {lam}")

        L = np.zeros_like(M)
        S = np.zeros_like(M)
        d_norm = np.linalg.norm(M)
        if d_norm == 0:
            self._finish(L, S, "optimal", 0, 0.0)
            return self

        norm2 = np.linalg.norm(M, 2)
        Y = M / max(norm2, np.max(np.abs(M)) / lam)
        mu = cfg.mu if cfg.mu is not None else 1.25 / norm2
        mu_bar = mu * 1e7
        start = time.monotonic()
        status, err, k = "max_iter", np.inf, 0

        for k in range(1, cfg.max_iter + 1):
            S = _soft_threshold(M - L + Y / mu, lam / mu)
            if cfg.nonneg_sparse:
                S = np.maximum(S, 0.0)
            # singular value thresholding
            dec = svd(M - S + Y / mu, backend="numpy")
            L = (dec.left * np.maximum(dec.values - 1.0 / mu, 0.0)) @ dec.right
            if cfg.nonneg_low_rank:
                L = np.maximum(L, 0.0)
            Z = M - L - S
            Y = Y + mu * Z
            mu = min(mu * cfg.rho, mu_bar)
            err = np.linalg.norm(Z) / d_norm
            if err < cfg.conv_tol:
                status = "optimal"
                break
            if cfg.time_limit is not None and time.monotonic() - start > cfg.time_limit:
                status = "time_limit"
                break

        self._finish(L, S, status, k, float(err))
        return self

    def _finish(self, L: NDArray, S: NDArray, status: str, iterations: int, err: float):
        cfg: RPCAConfig = self.config  # type: ignore
        diagnostics = SolverDiagnostics(
            solver="rpca-ialm", status=status, objective=err, iterations=iterations, degraded=status != "optimal"
        )
        if diagnostics.degraded:
            logger.warning("RPCA stopped with status %s after %d iterations (residual %.3g).", status, iterations, err)
        else:
            logger.info("RPCA converged in %d iterations.", iterations)
        decomposition = svd(L, backend=cfg.svd_backend, random_state=cfg.random_state)
        self.result_ = RPCAResult(L, S, decomposition, diagnostics)
        self._fitted = True

    def predict(self) -> NDArray:
        self._check_fitted()
        return self.result_.low_rank.copy()


def rpca(M: NDArray, *, config: Optional[RPCAConfig] = None) -> RPCAResult:
    return RobustPCA(config).fit(M).result_
