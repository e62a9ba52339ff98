from dataclasses import dataclass
from typing import Optional

'''
Error taxonomy for the distance matrix routines. 
Validation and argument errors are raised; a degraded solver 
status is returned as data in SolverDiagnostics. 
'''

class EDMError(Exception):
    """Base class for all errors raised by edmkit."""


class ValidationError(EDMError, ValueError):
    """Malformed distance matrix or mask."""


class InvalidArgument(EDMError, ValueError):
    """Out-of-domain parameter (noise model, regularization, rank...)."""


class DimensionMismatch(EDMError, ValueError):
    """Two arrays that must agree in shape do not."""


class EmbeddingError(EDMError):
    """Requested embedding needs eigenvalues that are negative beyond tolerance."""


class SolverFailure(EDMError):
    """The external solver returned no primal point at all."""


@dataclass(frozen=True)
class SolverDiagnostics:
    solver: str
    status: str
    objective: Optional[float] = None
    iterations: Optional[int] = None
    degraded: bool = False
