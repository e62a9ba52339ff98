from __future__ import annotations
from typing import Optional, Union
import logging
import numpy as np
from numpy.typing import NDArray

from .BaseConfig import EDMConfig, ReconstructionConfig, resolve_config
from .errors import EmbeddingError, InvalidArgument
from .spectral import SpectralDecomposition, eigh
from .utils import double_center
from .validation import validate_distance_matrix

logger = logging.getLogger(__name__)


def _embed(S: SpectralDecomposition, dim: int, cfg: ReconstructionConfig) -> NDArray:
    n_values = len(S.values)
    if not isinstance(dim, (int, np.integer)) or dim < 1:
        raise InvalidArgument(f"dim must be a positive integer, got {dim!r}")
    if dim > n_values:
        raise InvalidArgument(f"dim={dim} exceeds the {n_values} available eigenvalues")

    top = S.rank_truncate(dim)
    values = top.values.copy()
    scale = float(np.max(np.abs(S.values))) if n_values else 0.0
    # round-off below the tolerance is not reported
    values[(values < 0) & (values >= -cfg.eig_tol * scale)] = 0.0
    negative = values < 0
    if np.any(negative):
        if not cfg.clamp_negative_eigenvalues:
            raise EmbeddingError(
                f"{int(negative.sum())} of the top {dim} eigenvalues are negative "
                f"(smallest {values.min():.3g}); the matrix is not a Euclidean distance "
                f"matrix in dimension {dim}"
            )
        logger.warning("Clamping %d negative eigenvalues to zero (smallest %.3g).", int(negative.sum()), values.min())
        values[negative] = 0.0
    return np.sqrt(values)[:, np.newaxis] * top.right


def reconstruct_pointset(
    D: Union[SpectralDecomposition, NDArray], dim: int, *, config: Union[ReconstructionConfig, EDMConfig, None] = None
) -> NDArray:
    """Recover a dim x N point set from a squared distance matrix.

    ``D`` is either a squared distance matrix, which is double-centered and
    eigendecomposed, or the decomposition of a Gram matrix returned by
    ``complete_distmat``. The points are recovered up to a rotation,
    reflection and translation; see ``procrustes`` for aligning the result
    to a set of anchors.

    Raises EmbeddingError when one of the top ``dim`` eigenvalues is negative
    beyond ``config.eig_tol``, unless ``config.clamp_negative_eigenvalues``
    is set.
    """
    cfg = resolve_config(config, "reconstruction", ReconstructionConfig)
    if isinstance(D, SpectralDecomposition):
        return _embed(D, dim, cfg)
    D = validate_distance_matrix(D)
    return _embed(eigh(double_center(D)), dim, cfg)
