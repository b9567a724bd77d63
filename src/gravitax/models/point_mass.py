"""Newtonian point-mass gravity: the central term of the expansion.

All inputs and outputs use SI base units (metres, metres/second squared).

References:
    1. O. Montenbruck and E. Gill, *Satellite Orbits: Models, Methods
       and Applications*, 2012, p. 56.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from gravitax.config import get_dtype


def accel_point_mass(
    r_object: ArrayLike,
    r_body: ArrayLike,
    gm: float,
) -> Array:
    """Direct point-mass attraction of a body at *r_body*.

    ``a = -gm * d / |d|^3`` with ``d = r_object - r_body``.  Gravity models
    call it with the body at the origin to form the central (degree-0)
    term of the expansion.  No indirect (third-body) term is added.

    Args:
        r_object: Position of the attracted point [m].  Shape ``(3,)`` or
            ``(6,)``; extra state components are ignored.
        r_body: Position of the attracting body [m], shape ``(3,)``.
        gm: Gravitational parameter of the attracting body [m^3/s^2].

    Returns:
        Acceleration [m/s^2], shape ``(3,)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from gravitax.constants import R_EARTH, GM_EARTH
        from gravitax.models import accel_point_mass
        a = accel_point_mass(jnp.array([R_EARTH, 0.0, 0.0]), jnp.zeros(3), GM_EARTH)
        # a ~ [-9.80, 0, 0]
        ```
    """
    _float = get_dtype()
    d = jnp.asarray(r_object, dtype=_float)[:3] - jnp.asarray(r_body, dtype=_float)
    d_norm = jnp.linalg.norm(d)
    return -gm * d / d_norm**3


def potential_point_mass(r_object: ArrayLike, gm: float) -> Array:
    """Potential of a point mass at the origin, ``gm / |r|`` [m^2/s^2].

    Args:
        r_object: Position of the object [m], shape ``(3,)`` or ``(6,)``.
        gm: Gravitational parameter [m^3/s^2].

    Returns:
        Scalar potential (positive convention).
    """
    r = jnp.asarray(r_object, dtype=get_dtype())[:3]
    return gm / jnp.linalg.norm(r)


def jacobian_point_mass(r_object: ArrayLike, gm: float) -> Array:
    """Partial derivatives of the point-mass acceleration w.r.t. position.

    ``d(a)/d(r) = -gm / r^3 * (I - 3 r_hat r_hat^T)``

    Args:
        r_object: Position of the object [m], shape ``(3,)`` or ``(6,)``.
        gm: Gravitational parameter [m^3/s^2].

    Returns:
        Array: Jacobian, shape ``(3, 3)``.
    """
    _float = get_dtype()
    r = jnp.asarray(r_object, dtype=_float)[:3]
    r_norm = jnp.linalg.norm(r)
    r_hat = r / r_norm
    return (-gm / r_norm**3) * (jnp.eye(3, dtype=_float) - 3.0 * jnp.outer(r_hat, r_hat))
