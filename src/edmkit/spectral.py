from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union
import numpy as np
from numpy.typing import NDArray
from scipy.linalg import svd as dense_svd
from scipy.linalg import eigh as dense_eigh
from sklearn.utils.extmath import randomized_svd as skl_randomized_svd

from .BaseConfig import SVDBackend
from .errors import InvalidArgument


'''
Shared decomposition routines. Every routine returns values sorted 
in descending order, so truncating to rank r means keeping the 
first r values and vectors. 
'''

@dataclass(frozen=True)
class SpectralDecomposition:
    """Values in descending order with aligned vectors.

    ``left`` holds the left vectors column-wise and ``right`` holds the
    right vectors row-wise (i.e. ``M = left @ diag(values) @ right``).
    """
    values: NDArray
    left: NDArray
    right: NDArray

    def rank_truncate(self, r: int) -> "SpectralDecomposition":
        r = _check_rank(r, len(self.values))
        return SpectralDecomposition(self.values[:r], self.left[:, :r], self.right[:r, :])

    def reconstruct(self) -> NDArray:
        return (self.left * self.values) @ self.right


def _check_rank(r: int, available: int) -> int:
    if r is None or int(r) < 1:
        raise InvalidArgument(f"rank must be a positive integer, got {r!r}")
    return min(int(r), available)


def _sort_descending(values: NDArray, left: NDArray, right: NDArray) -> SpectralDecomposition:
    # stable, so ties keep the order the solver produced them in
    order = np.argsort(-values, kind="stable")
    return SpectralDecomposition(values[order], left[:, order], right[order, :])


def svd(
    M: NDArray, rank: Optional[int] = None, backend: SVDBackend = "auto", random_state: Optional[int] = None
) -> SpectralDecomposition:
    M = np.asarray(M, dtype=float)
    if M.ndim != 2:
        raise InvalidArgument(f"expected a 2-D matrix, got shape {M.shape}")
    m, n = M.shape
    k = min(rank or min(m, n), min(m, n))
    if backend == "auto":
        backend = "randomized" if (max(m, n) > 500 and k < min(m, n)//2) else "numpy"
    if backend == "randomized":
        U, s, Vt = skl_randomized_svd(M, n_components=k, random_state=random_state)
        return _sort_descending(s[:k], U[:, :k], Vt[:k, :])
    if backend != "numpy":
        raise InvalidArgument(f"unknown SVD backend {backend!r}")
    U, s, Vt = dense_svd(M, full_matrices=False)
    return _sort_descending(s, U, Vt).rank_truncate(k)


def eigh(M: NDArray) -> SpectralDecomposition:
    """Eigendecomposition of a symmetric matrix, largest eigenvalue first.

    Unlike singular values the eigenvalues keep their sign, so negative
    values (a non-Euclidean input) end up at the tail.
    """
    M = np.asarray(M, dtype=float)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise InvalidArgument(f"expected a square matrix, got shape {M.shape}")
    w, Q = dense_eigh(M)
    return _sort_descending(w, Q, Q.T)


def lowrankapprox(S: Union[SpectralDecomposition, NDArray], r: int, backend: SVDBackend = "auto") -> NDArray:
    '''
    Rank-r approximation U[:, :r] diag(s[:r]) Vt[:r, :]. A raw matrix 
    is decomposed first. 
    '''
    if not isinstance(S, SpectralDecomposition):
        S = svd(S, rank=r, backend=backend)
    return S.rank_truncate(r).reconstruct()
