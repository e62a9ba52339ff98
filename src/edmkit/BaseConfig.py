from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Literal

SVDBackend = Literal["auto", "numpy", "randomized"]

'''
Data classes holding the defaults of the different solvers. 
Functions take an optional config and fall back to a fresh 
instance, so no default lives in a module constant. 
'''

@dataclass
class BaseConfig:
    svd_backend: SVDBackend = "auto"
    random_state: Optional[int] = None
    tol: float = 1e-8 # Symmetry tolerance of the validator, relative to max |D|

@dataclass
class SDPConfig(BaseConfig):
    lam: float = 2.0 # Larger values weight data fidelity over low rank
    solver: str = "SCS"
    scale: bool = True # Solve on D / max|D|, the objective is homogeneous
    eps: float = 1e-6
    max_iters: int = 100_000
    time_limit: Optional[float] = None # Seconds, None = unbounded
    verbose: bool = False
    project_output: bool = True # Clip negative round-off in the completed matrix

@dataclass
class ReconstructionConfig:
    clamp_negative_eigenvalues: bool = False
    eig_tol: float = 1e-9 # Negative eigenvalues above -eig_tol * max|eig| count as zero

@dataclass
class RPCAConfig(BaseConfig):
    lam: Optional[float] = None # Sparsity weight, 1/sqrt(max(m, n)) when None
    mu: Optional[float] = None # Initial penalty, 1.25/||M||_2 when None
    rho: float = 1.5
    conv_tol: float = 1e-7 # Stop once ||M - L - S|| / ||M|| falls below this
    max_iter: int = 1000
    nonneg_low_rank: bool = True # Squared distances are non-negative
    nonneg_sparse: bool = False
    time_limit: Optional[float] = None

@dataclass
class DenoiseConfig(BaseConfig):
    p: int = 2 # 2: dense Gaussian noise, 1: sparse large errors
    rank_margin: int = 2 # An EDM of points in R^dim has rank at most dim + 2
    rpca: RPCAConfig = field(default_factory=RPCAConfig)
    project_output: bool = True

class PosteriorStrategy(Enum):
    SAMPLE = "sample"
    MAP = "map"
    MLE = "mle"

@dataclass
class PosteriorConfig:
    sigma_location: float = 0.3
    sigma_distance: float = 0.3
    strategy: PosteriorStrategy = PosteriorStrategy.MAP
    nsamples: int = 3000
    max_iter: Optional[int] = None

@dataclass
class EDMConfig:
    completion: SDPConfig = field(default_factory=SDPConfig)
    reconstruction: ReconstructionConfig = field(default_factory=ReconstructionConfig)
    denoise: DenoiseConfig = field(default_factory=DenoiseConfig)
    posterior: PosteriorConfig = field(default_factory=PosteriorConfig)

def resolve_config(config, section: str, default):
    '''
    Pick the config section a routine needs. Accepts None (defaults), 
    the section's own dataclass, or an EDMConfig holding all sections. 
    '''
    if config is None:
        return default()
    if isinstance(config, EDMConfig):
        return getattr(config, section)
    return config
