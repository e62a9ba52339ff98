from __future__ import annotations
from typing import Optional, Tuple
import numpy as np
from numpy.typing import NDArray

from .errors import ValidationError

'''
Shape, symmetry and diagonal checks for squared distance matrices 
and their observation masks. The checks never correct the input. 
'''

def _check_square(M: NDArray, name: str) -> None:
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise ValidationError(f"{name} must be a square matrix, got shape {M.shape}")


def validate_distance_matrix(D, *, tol: float = 1e-8) -> NDArray:
    """Check that D is a symmetric, non-negative matrix with zero diagonal.

    ``tol`` is relative to the largest entry of D and only applies to the
    symmetry check; the diagonal must be exactly zero. Returns D as a
    float array.
    """
    D = np.asarray(D, dtype=float)
    _check_square(D, "distance matrix")
    if not np.all(np.isfinite(D)):
        raise ValidationError("distance matrix has non-finite entries")
    atol = tol * max(1.0, float(np.max(np.abs(D))) if D.size else 0.0)
    if not np.allclose(D, D.T, rtol=0.0, atol=atol):
        raise ValidationError("distance matrix is not symmetric")
    if np.any(D < 0):
        raise ValidationError("distance matrix has negative entries")
    if np.any(np.diag(D) != 0):
        raise ValidationError("distance matrix diagonal is not zero")
    return D


def validate_mask(W, shape: Optional[Tuple[int, int]] = None) -> NDArray[np.bool_]:
    W = np.asarray(W)
    _check_square(W, "mask")
    if shape is not None and W.shape != tuple(shape):
        raise ValidationError(f"mask shape {W.shape} does not match distance matrix shape {tuple(shape)}")
    if W.dtype != np.bool_:
        if not np.all((W == 0) | (W == 1)):
            raise ValidationError("mask entries must be 0 or 1")
        W = W.astype(bool)
    if not np.array_equal(W, W.T):
        raise ValidationError("mask is not symmetric")
    if not np.all(np.diag(W)):
        raise ValidationError("mask diagonal must be fully observed")
    return W


def validate(D, W=None, *, tol: float = 1e-8):
    '''
    Validate D, and W when given. Entries of D outside the mask are 
    ignored, so they may hold NaN or any placeholder. 
    '''
    D = np.asarray(D, dtype=float)
    _check_square(D, "distance matrix")
    if W is None:
        return validate_distance_matrix(D, tol=tol), None
    W = validate_mask(W, D.shape)
    return validate_distance_matrix(np.where(W, D, 0.0), tol=tol), W
