"""
Utility functions.
"""

from .noise import NoiseGenerator

from .resampling import (
    cumulative_weights,
    systematic_select,
    effective_sample_size,
    normalize_weights,
)

from .metrics import compute_rmse

from .logging_config import (
    get_logger,
    setup_logging,
    set_level,
)

__all__ = [
    "NoiseGenerator",
    "cumulative_weights",
    "systematic_select",
    "effective_sample_size",
    "normalize_weights",
    "compute_rmse",
    "get_logger",
    "setup_logging",
    "set_level",
]
