from .BaseConfig import (
    BaseConfig,
    SDPConfig,
    ReconstructionConfig,
    RPCAConfig,
    DenoiseConfig,
    PosteriorConfig,
    PosteriorStrategy,
    EDMConfig,
)
from .errors import (
    EDMError,
    ValidationError,
    InvalidArgument,
    DimensionMismatch,
    EmbeddingError,
    SolverFailure,
    SolverDiagnostics,
)
from .validation import validate, validate_distance_matrix, validate_mask
from .spectral import SpectralDecomposition, svd, eigh, lowrankapprox
from .utils import (
    squared_distance_matrix,
    gram_to_distance,
    double_center,
    centering_basis,
    mask_from_missing,
)
from .SDPCompletion import SDPCompletion, CompletionResult, complete_distmat
from .reconstruction import reconstruct_pointset
from .RobustPCA import RobustPCA, RPCAResult, rpca
from .LowRankDenoiser import LowRankDenoiser, denoise_distmat
from .procrustes import RigidTransform, procrustes, align
from .posterior import DistanceObservation, PosteriorEstimate, posterior
from .PointSetGenerator import PointSetGenerator

__all__ = [
    "BaseConfig", "SDPConfig", "ReconstructionConfig", "RPCAConfig", "DenoiseConfig",
    "PosteriorConfig", "PosteriorStrategy", "EDMConfig",
    "EDMError", "ValidationError", "InvalidArgument", "DimensionMismatch", "EmbeddingError",
    "SolverFailure", "SolverDiagnostics",
    "validate", "validate_distance_matrix", "validate_mask",
    "SpectralDecomposition", "svd", "eigh", "lowrankapprox",
    "squared_distance_matrix", "gram_to_distance", "double_center", "centering_basis", "mask_from_missing",
    "SDPCompletion", "CompletionResult", "complete_distmat",
    "reconstruct_pointset",
    "RobustPCA", "RPCAResult", "rpca",
    "LowRankDenoiser", "denoise_distmat",
    "RigidTransform", "procrustes", "align",
    "DistanceObservation", "PosteriorEstimate", "posterior",
    "PointSetGenerator",
]
