"""Factor covariance and Euler risk decomposition."""

from .covariance import factor_covariance, augmented_covariance, check_positive_semidefinite
from .decomposer import RiskDecomposer, RiskDecomposition

__all__ = [
    "factor_covariance",
    "augmented_covariance",
    "check_positive_semidefinite",
    "RiskDecomposer",
    "RiskDecomposition",
]
