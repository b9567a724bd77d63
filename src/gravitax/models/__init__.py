"""Gravity models of a central body.

- **Point mass**: Newtonian central term and its Jacobian
- **Harmonic**: :class:`GravityModel`, spherical harmonic facade over the
  Cunningham, Droziner and Balmino kernels
- **Grid**: :class:`GridGravityModel`, interpolated tabulated field with an
  analytic backup
- **Variable**: :class:`VariableGravityModel`, time-varying coefficients
- **Force**: inertial-frame contribution via a rotation provider
"""

from .force import (
    AccelerationAccumulator,
    DirectBodyAttraction,
    Rz,
    earth_rotation,
)
from .grid import (
    GridData,
    GridGravityModel,
    GridInterpolation,
    GridKind,
    build_grid,
    grid_coordinates,
    interp_trilinear,
    longitude_in_window,
    normalize_longitude,
    read_cartesian_grid,
    read_spherical_grid,
)
from .harmonic import GravityModel
from .point_mass import accel_point_mass, jacobian_point_mass, potential_point_mass
from .variable import (
    CoefficientCorrection,
    TimeVaryingCoefficientProvider,
    VariableGravityModel,
)

__all__ = [
    # Point mass
    "accel_point_mass",
    "potential_point_mass",
    "jacobian_point_mass",
    # Harmonic
    "GravityModel",
    # Grid
    "GridKind",
    "GridInterpolation",
    "GridData",
    "GridGravityModel",
    "build_grid",
    "grid_coordinates",
    "interp_trilinear",
    "longitude_in_window",
    "normalize_longitude",
    "read_cartesian_grid",
    "read_spherical_grid",
    # Variable
    "CoefficientCorrection",
    "TimeVaryingCoefficientProvider",
    "VariableGravityModel",
    # Force
    "AccelerationAccumulator",
    "DirectBodyAttraction",
    "Rz",
    "earth_rotation",
]
