"""Type definitions for loaded gravity fields."""

from __future__ import annotations

from typing import NamedTuple

from gravitax.coefficients.table import CoefficientTable


class GravityFieldData(NamedTuple):
    """A coefficient table together with its reference constants.

    Attributes:
        model_name: Human-readable name of the gravity field.
        mu: Gravitational parameter [m^3/s^2].
        ae: Reference (equatorial) radius [m].
        table: The Stokes coefficients.
        tide_system: Tide system convention (e.g. ``"tide_free"``).
    """

    model_name: str
    mu: float
    ae: float
    table: CoefficientTable
    tide_system: str = "unknown"
