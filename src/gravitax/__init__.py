"""
gravitax evaluates the gravity field of a non-spherical central body from a spherical harmonic expansion, implemented in JAX.
"""

from .constants import (
    DEG2RAD,
    RAD2DEG,
    SECONDS_PER_DAY,
    DAYS_PER_JULIAN_YEAR,
    SECONDS_PER_JULIAN_YEAR,
    R_EARTH,
    GM_EARTH,
    OMEGA_EARTH,
    EGM96_EARTH_EQUATORIAL_RADIUS,
    EGM96_EARTH_MU,
    EGM96_EARTH_C20,
)

from .config import set_dtype, get_dtype

from .errors import (
    JacobianUnavailableError,
    UnsupportedParameterError,
    DegenerateGeometryError,
)

from .parameter import Parameter

from .coefficients import (
    CoefficientTable,
    GravityFieldData,
    read_gfc,
    normalization_factors,
    denormalize,
    normalize,
)

from .kernels import (
    HarmonicMethod,
    KernelResult,
    HelmholtzPolynomial,
)

from .models import (
    GravityModel,
    GridGravityModel,
    GridData,
    GridKind,
    GridInterpolation,
    read_cartesian_grid,
    read_spherical_grid,
    CoefficientCorrection,
    TimeVaryingCoefficientProvider,
    VariableGravityModel,
    AccelerationAccumulator,
    DirectBodyAttraction,
    earth_rotation,
)
