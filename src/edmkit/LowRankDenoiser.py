from __future__ import annotations
from dataclasses import replace
from typing import Optional, Union
import logging
import numpy as np
from numpy.typing import NDArray

from .BaseConfig import DenoiseConfig, EDMConfig, resolve_config
from .DistanceMatrixSolver import DistanceMatrixSolver
from .errors import InvalidArgument, SolverDiagnostics
from .RobustPCA import RobustPCA
from .spectral import lowrankapprox, svd
from .utils import project_distances

logger = logging.getLogger(__name__)


class LowRankDenoiser(DistanceMatrixSolver):
    '''
    Denoises a fully observed squared distance matrix by truncating it to 
    rank dim + 2, the largest rank an EDM of points in R^dim can have. 
    p = 2 assumes dense Gaussian errors and truncates the SVD of D directly. 
    p = 1 assumes large but sparse errors, which are first split off with 
    robust PCA; the truncation is then applied to the low-rank part. 
    '''
    def __init__(self, config: Optional[DenoiseConfig] = None):
        super().__init__(config if config is not None else DenoiseConfig())
        self._Y = None
        self.diagnostics_: Optional[SolverDiagnostics] = None

    def fit(self, D: NDArray, dim: int):
        cfg: DenoiseConfig = self.config  # type: ignore
        D = np.asarray(D, dtype=float)
        if D.ndim != 2 or D.shape[0] != D.shape[1]:
            raise InvalidArgument(f"expected a square matrix, got shape {D.shape}")
        if not isinstance(dim, (int, np.integer)) or dim < 1:
            raise InvalidArgument(f"dim must be a positive integer, got {dim!r}")
        r = dim + cfg.rank_margin

        if cfg.p == 2:
            s = svd(D, rank=r, backend=cfg.svd_backend, random_state=cfg.random_state)
            self.diagnostics_ = None
        elif cfg.p == 1:
            rpca_cfg = replace(cfg.rpca, nonneg_low_rank=True)
            res = RobustPCA(rpca_cfg).fit(D).result_
            s = res.decomposition
            self.diagnostics_ = res.diagnostics
            logger.info("RPCA removed %d sparse entries.", int(np.count_nonzero(res.sparse)))
        else:
            raise InvalidArgument(f"p must be 1 or 2, got {cfg.p!r}")

        Y = lowrankapprox(s, r)
        if cfg.project_output:
            Y = project_distances(Y, clip_negative=False)
        self._Y = Y
        self._fitted = True
        return self

    def predict(self) -> NDArray:
        self._check_fitted()
        return self._Y.copy()


def denoise_distmat(D: NDArray, dim: int, p: Optional[int] = None, *, config: Union[DenoiseConfig, EDMConfig, None] = None) -> NDArray:
    """Denoised version of the squared distance matrix D.

    Args:
        D: Noisy, fully observed squared distance matrix.
        dim: Dimension of the points that generated D.
        p: Error model. 2 assumes Gaussian errors, 1 assumes large sparse
            errors. Overrides ``config.p`` when given.
    """
    cfg = resolve_config(config, "denoise", DenoiseConfig)
    if p is not None:
        cfg = replace(cfg, p=p)
    return LowRankDenoiser(cfg).fit(D, dim).predict()
