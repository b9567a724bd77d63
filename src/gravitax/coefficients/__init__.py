"""Spherical harmonic coefficient storage, normalization and file loading.

- **Table**: :class:`CoefficientTable`, immutable triangular C/S storage
- **Normalization**: overflow-safe conversion between fully normalized and
  unnormalized conventions
- **Parsers**: ICGEM GFC reader returning :class:`GravityFieldData`
"""

from ._parsers import parse_gfc, read_gfc
from ._types import GravityFieldData
from .normalization import (
    denormalize,
    exact_normalization_factors,
    normalization_factors,
    normalize,
)
from .table import CoefficientTable

__all__ = [
    # Table
    "CoefficientTable",
    "GravityFieldData",
    # Normalization
    "normalization_factors",
    "exact_normalization_factors",
    "denormalize",
    "normalize",
    # Parsers
    "read_gfc",
    "parse_gfc",
]
