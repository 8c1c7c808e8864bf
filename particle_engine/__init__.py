"""
Particle Filtering Engine.

A NumPy-based Sequential Monte Carlo library with:
- Generic state vectors (anything with len, indexing and +)
- Systematic resampling with anti-collapse jitter
- Weighted, truncated and MAP posterior estimates
"""

from . import models
from . import filters
from . import simulation
from . import utils

from .filters import ParticleFilter, FilterDegeneracyError, FilterNotInitializedError

__version__ = "0.1.0"
