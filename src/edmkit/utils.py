from __future__ import annotations
from typing import Optional, Tuple
import numpy as np
from numpy.typing import NDArray
from scipy.spatial.distance import pdist, squareform

from .errors import InvalidArgument, ValidationError


def mask_from_missing(D: NDArray, *, missing_value: Optional[float] = None) -> NDArray[np.bool_]:
    D = np.asarray(D, dtype=float)
    if missing_value is None:
        # treat NaN as missing
        W = ~np.isnan(D)
    else:
        W = ~(D == missing_value)
    if W.ndim == 2 and W.shape[0] == W.shape[1]:
        # self-distances are always known
        np.fill_diagonal(W, True)
    return W

def _apply_scale(D: NDArray, W: NDArray, *, scale: bool) -> Tuple[NDArray, Optional[float]]:
    Dw = np.where(W, D, 0.0)
    s = float(np.max(np.abs(Dw))) if scale and Dw.size else None
    if s and s > 0:
        Dw = Dw / s
    else:
        s = None
    return Dw, s

def _invert_scale(Y: NDArray, s: Optional[float]) -> NDArray:
    return Y * s if s else Y.copy()

def squared_distance_matrix(X: NDArray) -> NDArray:
    '''
    Pairwise squared Euclidean distances between the columns of the 
    dim x N point set X. 
    '''
    X = np.asarray(X, dtype=float)
    if X.ndim != 2:
        raise InvalidArgument(f"point set must be 2-D (dim x N), got shape {X.shape}")
    if X.shape[1] < 2:
        return np.zeros((X.shape[1], X.shape[1]))
    return squareform(pdist(X.T, "sqeuclidean"))

def gram_to_distance(B: NDArray) -> NDArray:
    """E_ij = B_ii + B_jj - 2 B_ij."""
    d = np.diag(B)
    return d[:, np.newaxis] + d[np.newaxis, :] - 2 * B

def centering_matrix(n: int) -> NDArray:
    return np.eye(n) - np.full((n, n), 1.0 / n)

def double_center(D: NDArray) -> NDArray:
    """Gram matrix -1/2 J D J of the centered configuration behind D."""
    D = np.asarray(D, dtype=float)
    J = centering_matrix(D.shape[0])
    return -0.5 * J @ D @ J

def centering_basis(n: int) -> NDArray:
    '''
    Orthonormal n x (n-1) basis V of the vectors orthogonal to ones(n). 
    Gram matrices V G V^T have zero row and column sums, so the 
    configuration they describe is centered. 
    '''
    if n < 2:
        raise ValidationError(f"need at least 2 points, got {n}")
    x = -1.0 / (n + np.sqrt(n))
    y = -1.0 / np.sqrt(n)
    return np.vstack([np.full((1, n - 1), y), np.full((n - 1, n - 1), x) + np.eye(n - 1)])

def project_distances(D: NDArray, *, clip_negative: bool) -> NDArray:
    """Symmetrize, zero the diagonal and optionally clip negatives."""
    P = 0.5 * (D + D.T)
    np.fill_diagonal(P, 0.0)
    if clip_negative:
        P = np.maximum(P, 0.0)
    return P
