"""Exception types raised by the gravity models.

Configuration problems (bad degree/order, mismatched tables, malformed
files) raise plain :class:`ValueError`.  The classes below mark the
call-time failures a caller may want to handle separately:

- :class:`JacobianUnavailableError`: the algorithm cannot provide partial
  derivatives at all (Droziner kernel, grid models).
- :class:`UnsupportedParameterError`: a derivative was requested with
  respect to a parameter the model does not own.
- :class:`DegenerateGeometryError`: the evaluation point is singular for
  the algorithm (origin, or the polar axis for Droziner).
"""

from __future__ import annotations


class JacobianUnavailableError(RuntimeError):
    """Partial derivatives are not defined for this gravity algorithm."""


class UnsupportedParameterError(ValueError):
    """The parameter is not one of the model's own parameters."""


class DegenerateGeometryError(ValueError):
    """The position is singular for the requested evaluation."""
