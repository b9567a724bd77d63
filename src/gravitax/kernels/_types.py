"""Type definitions shared by the harmonic recursion kernels.

- :class:`KernelResult`: acceleration and potential returned by every
  kernel.  Being a :class:`~typing.NamedTuple`, it is a JAX pytree.
- :class:`HarmonicMethod`: the closed set of recursion algorithms, with the
  coefficient convention each one consumes and whether it provides
  analytic partial derivatives.
"""

from __future__ import annotations

import enum
from typing import NamedTuple

from jax import Array


class KernelResult(NamedTuple):
    """Non-central gravity terms at one body-fixed position.

    Attributes:
        acceleration: Acceleration [m/s^2], shape ``(3,)``.
        potential: Potential [m^2/s^2], scalar.  Positive convention
            (``U = mu/r + ...``, ``a = grad U``).
    """

    acceleration: Array
    potential: Array


class HarmonicMethod(enum.Enum):
    """Spherical harmonic recursion algorithm.

    - ``CUNNINGHAM``: V/W auxiliary-function recursion on unnormalized
      coefficients (Montenbruck & Gill).  No partial derivatives.
    - ``DROZINER``: Droziner recursion on unnormalized coefficients.
      Partial derivatives are not defined and requesting them is an error.
    - ``BALMINO``: Helmholtz-polynomial recursion on fully normalized
      coefficients.  Provides position and parameter partials.
    """

    CUNNINGHAM = "cunningham"
    DROZINER = "droziner"
    BALMINO = "balmino"

    @property
    def normalized(self) -> bool:
        """Whether the method consumes fully normalized coefficients."""
        return self is HarmonicMethod.BALMINO

    @property
    def supports_jacobian(self) -> bool:
        """Whether the method provides analytic partial derivatives."""
        return self is HarmonicMethod.BALMINO
