"""Spherical harmonic recursion kernels.

Three interchangeable algorithms evaluating the non-central part of a
spherical harmonic gravity field at a body-fixed position:

- **Cunningham**: V/W recursion, unnormalized coefficients, no partials
- **Droziner**: Droziner recursion, unnormalized coefficients, partials
  undefined
- **Balmino**: Helmholtz polynomials, normalized coefficients, position and
  parameter partials

All kernels are pure JAX functions of the position with static degree and
order, returning a :class:`KernelResult`.
"""

from ._types import HarmonicMethod, KernelResult
from .balmino import (
    balmino_acceleration,
    balmino_dacc_dae,
    balmino_jacobian,
    balmino_potential_gradient,
)
from .cunningham import cunningham_potential_gradient
from .droziner import POLAR_THRESHOLD, check_polar_distance, droziner_potential_gradient
from .helmholtz import HelmholtzPolynomial

__all__ = [
    # Types
    "HarmonicMethod",
    "KernelResult",
    # Cunningham
    "cunningham_potential_gradient",
    # Droziner
    "droziner_potential_gradient",
    "check_polar_distance",
    "POLAR_THRESHOLD",
    # Balmino
    "HelmholtzPolynomial",
    "balmino_potential_gradient",
    "balmino_acceleration",
    "balmino_jacobian",
    "balmino_dacc_dae",
]
