from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Union
import logging
import numpy as np
from numpy.typing import NDArray
import cvxpy as cp

from .BaseConfig import EDMConfig, SDPConfig, resolve_config
from .DistanceMatrixSolver import DistanceMatrixSolver
from .errors import InvalidArgument, SolverDiagnostics, SolverFailure
from .spectral import SpectralDecomposition, svd
from .utils import mask_from_missing, _apply_scale, _invert_scale, centering_basis, gram_to_distance, project_distances
from .validation import validate

logger = logging.getLogger(__name__)

'''
Completion of partially observed squared distance matrices by 
semidefinite relaxation, Algorithm 5 from: 
Dokmanic, Parhizkar, Ranieri, Vetterli. "Euclidean Distance Matrices: 
Essential Theory, Algorithms and Applications." IEEE Signal Processing 
Magazine 32.6 (2015): 12-30. 
'''

@dataclass(frozen=True)
class CompletionResult:
    distances: NDArray
    decomposition: SpectralDecomposition # SVD of the Gram matrix V G V^T
    diagnostics: SolverDiagnostics
    fidelity: float # ||W * (D - D_completed)|| / ||D||

    @property
    def degraded(self) -> bool:
        return self.diagnostics.degraded


def _solver_options(cfg: SDPConfig) -> Dict[str, Any]:
    if cfg.solver.upper() == "SCS":
        opts: Dict[str, Any] = {"eps_abs": cfg.eps, "eps_rel": cfg.eps, "max_iters": cfg.max_iters}
        if cfg.time_limit is not None:
            opts["time_limit_secs"] = cfg.time_limit
        return opts
    if cfg.solver.upper() == "CLARABEL":
        opts = {"max_iter": cfg.max_iters}
        if cfg.time_limit is not None:
            opts["time_limit"] = cfg.time_limit
        return opts
    return {}


class SDPCompletion(DistanceMatrixSolver):
    '''
    Fills in the missing entries of a squared distance matrix by solving 

        maximize    trace(G) - lam * ||W * (E(V G V^T) - D)||_F
        subject to  G PSD, 

    where V is the centering basis and E maps a Gram matrix to squared 
    distances. The trace term favors configurations of low dimension. 
    '''
    def __init__(self, config: Optional[SDPConfig] = None):
        super().__init__(config if config is not None else SDPConfig())
        self.result_: Optional[CompletionResult] = None

    def fit(self, D: NDArray, W: Optional[NDArray] = None, *, missing_value: Optional[float] = None):
        cfg: SDPConfig = self.config  # type: ignore
        if not cfg.lam > 0:
            raise InvalidArgument(f"lam must be positive, got {cfg.lam}")
        D = np.asarray(D, dtype=float)
        if W is None:
            W = mask_from_missing(D, missing_value=missing_value)
        D, W = validate(D, W, tol=cfg.tol)

        n = D.shape[0]
        if n < 2:
            raise InvalidArgument(f"need at least 2 points to complete, got {n}")
        Dw, s = _apply_scale(D, W, scale=cfg.scale)

        V = centering_basis(n)
        e = np.ones((n, 1))
        G = cp.Variable((n - 1, n - 1), PSD=True)
        B = V @ G @ V.T
        d = cp.reshape(cp.diag(B), (n, 1), order="F")
        E = d @ e.T + e @ d.T - 2 * B
        fidelity = cp.norm(cp.multiply(W.astype(float), E - Dw), "fro")
        problem = cp.Problem(cp.Maximize(cp.trace(G) - cfg.lam * fidelity))

        try:
            problem.solve(solver=cfg.solver, verbose=cfg.verbose, **_solver_options(cfg))
        except cp.error.SolverError as exc:
            raise SolverFailure(f"{cfg.solver} failed: {exc}") from exc
        if G.value is None:
            raise SolverFailure(f"{cfg.solver} returned no solution (status {problem.status})")

        status = str(problem.status)
        stats = problem.solver_stats
        diagnostics = SolverDiagnostics(
            solver=cfg.solver,
            status=status,
            objective=None if problem.value is None else float(problem.value) * (s or 1.0),
            iterations=None if stats is None else stats.num_iters,
            degraded=status != cp.OPTIMAL,
        )
        if diagnostics.degraded:
            logger.warning("SDP completion finished with status %s; returning best available estimate.", status)

        Gs = 0.5 * (G.value + G.value.T)
        Bs = _invert_scale(V @ Gs @ V.T, s)
        D2 = project_distances(gram_to_distance(Bs), clip_negative=cfg.project_output)

        d_norm = np.linalg.norm(D)
        err = float(np.linalg.norm(W * (D - D2)) / d_norm) if d_norm > 0 else 0.0
        logger.info("Data fidelity (norm(W * (D - D2)) / norm(D)): %.3g", err)

        decomposition = svd(Bs, backend=cfg.svd_backend, random_state=cfg.random_state)
        self.result_ = CompletionResult(D2, decomposition, diagnostics, err)
        self._fitted = True
        return self

    def predict(self) -> NDArray:
        self._check_fitted()
        return self.result_.distances.copy()


def complete_distmat(
    D: NDArray, W: Optional[NDArray] = None, lam: Optional[float] = None, *, config: Union[SDPConfig, EDMConfig, None] = None
) -> CompletionResult:
    '''
    Complete the squared distance matrix D on the entries where the mask 
    W is false. Returns the completed matrix together with the SVD of 
    its Gram matrix, which reconstruct_pointset accepts directly. 
    '''
    cfg = resolve_config(config, "completion", SDPConfig)
    if lam is not None:
        cfg = replace(cfg, lam=lam)
    return SDPCompletion(cfg).fit(D, W).result_
