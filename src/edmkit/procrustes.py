from __future__ import annotations
from dataclasses import dataclass
import numpy as np
from numpy.typing import NDArray

from .errors import DimensionMismatch
from .spectral import svd

# Solves the orthogonal Procrustes problem with translation: given two
# point sets (dim x N, one point per column) find R, t minimising
# ||R @ X + t - Y||_F. R may be a reflection.


@dataclass(frozen=True)
class RigidTransform:
    R: NDArray
    t: NDArray # column vector, dim x 1

    def apply(self, X: NDArray) -> NDArray:
        return self.R @ np.asarray(X, dtype=float) + self.t

    @property
    def is_reflection(self) -> bool:
        return bool(np.linalg.det(self.R) < 0)

    def __iter__(self):
        # allows R, t = procrustes(X, Y)
        return iter((self.R, self.t))


def normalise_expectations(X: NDArray, Y: NDArray):
    mX = X.mean(axis=1, keepdims=True)
    mY = Y.mean(axis=1, keepdims=True)
    return X - mX, Y - mY, mX, mY


def procrustes(X, Y) -> RigidTransform:
    """Find rotation R and translation t such that R @ X + t ~= Y."""
    X = np.asarray(X, dtype=float)
    Y = np.asarray(Y, dtype=float)
    if X.ndim != 2 or X.shape != Y.shape:
        raise DimensionMismatch(f"point sets must share a dim x N shape, got {X.shape} and {Y.shape}")
    Xb, Yb, mX, mY = normalise_expectations(X, Y)
    s = svd(Xb @ Yb.T, backend="numpy")
    R = s.right.T @ s.left.T
    return RigidTransform(R, mY - R @ mX)


def align(X, Y) -> NDArray:
    """Map X into the frame of Y."""
    return procrustes(X, Y).apply(X)
