from typing import Optional
from numpy.typing import NDArray
from .BaseConfig import BaseConfig

'''
Base solver class and interface. 
Basic requirements for all solvers: fit, predict, check_fitted. 
'''

class DistanceMatrixSolver:
    """Abstract base class for distance matrix solvers."""
    def __init__(self, config: Optional[BaseConfig] = None):
        self.config = config if config is not None else BaseConfig()
        self._fitted = False

    def fit(self, D: NDArray, *args, **kwargs):
        raise NotImplementedError

    def predict(self) -> NDArray:
        raise NotImplementedError

    def _check_fitted(self):
        if not self._fitted:
            raise RuntimeError("Call fit() before predict().")
