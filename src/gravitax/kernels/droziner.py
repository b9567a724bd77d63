"""Droziner spherical harmonic kernel.

An alternative recursion on **unnormalized** coefficients, with round-off
behaviour different from the Cunningham kernel.  For degree *k* and order
*j* it propagates the auxiliary quantities

    B_kj = (ae/r)^k (k - j + 1) P_(k+1),j(u)
    A_kj, D_kj   (combinations of B_kj used by the horizontal components)

where ``u = z/r`` and ``P`` are the unnormalized associated Legendre
functions.  Each degree row is vectorised along the order; the
near-diagonal entries ``j = k - 1`` and ``j = k`` use their own closed
forms driven by the sectorial sequence ``beta_k = (ae/r)^k P_kk / cos(phi)``.

The horizontal components divide by the distance to the polar axis, so
positions on (or within :data:`POLAR_THRESHOLD` of) the axis are rejected
by :func:`check_polar_distance`.  Partial derivatives are not defined for
this algorithm.

References:
    1. A. Droziner, *An algorithm for recurrent calculation of gravitational
       acceleration*, Artificial Satellites 12, 1977.
"""

from __future__ import annotations

import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike

from gravitax.config import get_dtype
from gravitax.errors import DegenerateGeometryError
from gravitax.kernels._types import KernelResult

POLAR_THRESHOLD = 1.0e-3
"""Minimum distance from the polar axis [m] accepted by the Droziner kernel."""


def check_polar_distance(position: ArrayLike, threshold: float = POLAR_THRESHOLD) -> None:
    """Reject positions too close to the body's polar axis.

    Args:
        position: Body-fixed position [m] (concrete values, not traced).
        threshold: Minimum accepted distance from the z-axis [m].

    Raises:
        DegenerateGeometryError: If ``sqrt(x^2 + y^2) <= threshold``.
    """
    p = np.asarray(position, dtype=np.float64)[:3]
    r1 = float(np.hypot(p[0], p[1]))
    if r1 <= threshold:
        raise DegenerateGeometryError(
            f"Position is on the polar axis (distance {r1:.3e} m <= {threshold:.3e} m); "
            f"the Droziner recursion is singular there."
        )


def _longitude_terms(cos_l: Array, sin_l: Array, m_max: int) -> tuple[Array, Array]:
    """``cos(j lambda)`` and ``sin(j lambda)`` for ``j = 0..m_max``."""
    cos_j = [jnp.ones_like(cos_l)]
    sin_j = [jnp.zeros_like(sin_l)]
    for _ in range(m_max):
        c_prev = cos_j[-1]
        s_prev = sin_j[-1]
        cos_j.append(c_prev * cos_l - s_prev * sin_l)
        sin_j.append(s_prev * cos_l + c_prev * sin_l)
    return jnp.stack(cos_j), jnp.stack(sin_j)


def droziner_potential_gradient(
    position: ArrayLike,
    c: ArrayLike,
    s: ArrayLike,
    ae: float,
    mu: float,
    n_max: int,
    m_max: int,
) -> KernelResult:
    """Non-central acceleration and potential with the Droziner recursion.

    Degrees ``2..n_max`` and orders ``0..min(k, m_max)`` are summed; the
    central term is not included and degree-1 terms are not evaluated.  The
    caller is responsible for rejecting polar positions with
    :func:`check_polar_distance`.

    Args:
        position: Body-fixed position [m].  Shape ``(3,)`` or ``(6,)``
            (only first 3 elements used).
        c: Unnormalized C coefficients indexed ``[n, m]``.
        s: Unnormalized S coefficients, same layout as *c*.
        ae: Reference radius [m].
        mu: Gravitational parameter [m^3/s^2].
        n_max: Maximum degree (static).
        m_max: Maximum order (static, ``<= n_max``).

    Returns:
        KernelResult: Body-fixed acceleration [m/s^2] and potential
        [m^2/s^2].
    """
    _float = get_dtype()
    r_bf = jnp.asarray(position, dtype=_float)[:3]

    if n_max < 2:
        return KernelResult(jnp.zeros(3, dtype=_float), jnp.zeros((), dtype=_float))

    C = jnp.asarray(c, dtype=_float)[: n_max + 1, : m_max + 1]
    S = jnp.asarray(s, dtype=_float)[: n_max + 1, : m_max + 1]
    ae = jnp.asarray(ae, dtype=_float)
    mu = jnp.asarray(mu, dtype=_float)

    x, y, z = r_bf[0], r_bf[1], r_bf[2]
    r1 = jnp.sqrt(x * x + y * y)
    r2 = jnp.dot(r_bf, r_bf)
    r = jnp.sqrt(r2)

    ae_r = ae / r
    u = z / r
    q = r1 / r
    cos_j, sin_j = _longitude_terms(x / r1, y / r1, m_max)

    width = m_max + 1
    j = np.arange(width, dtype=np.float64)

    # Row k = 0 seeds the recursion with B_00 = u
    b_prev2 = jnp.zeros(width, dtype=_float)
    b_prev = b_prev2.at[0].set(u)
    beta = ae_r

    sum1 = jnp.zeros((), dtype=_float)
    sum2 = sum1
    sum3 = sum1
    pot = sum1

    for k in range(1, n_max + 1):
        general = j <= k - 2
        c1 = np.where(general, (2.0 * k + 1.0) / np.where(general, k - j, 1.0), 0.0)
        c2 = np.where(general, (k + j) / np.where(general, k - 1.0 - j, 1.0), 0.0)
        c3 = np.where(general, (k + 1.0) / np.where(general, k - j, 1.0), 0.0)
        below = j < k
        inv = np.where(below, 1.0 / np.where(below, k - j, 1.0), 0.0)

        # Potential uses (ae/r)^k P_kj, before B_(k-1) is overwritten
        p_row = ae_r * jnp.asarray(inv, dtype=_float) * b_prev

        b = ae_r * (
            u * jnp.asarray(c1, dtype=_float) * b_prev
            - ae_r * jnp.asarray(c2, dtype=_float) * b_prev2
        )
        a_plus = ae_r * jnp.asarray(c3, dtype=_float) * b_prev

        if k >= 2:
            beta = ae_r * (2.0 * k - 1.0) * q * beta

        # j = k - 1
        if k - 1 < width:
            b = b.at[k - 1].set(ae_r * (2.0 * k + 1.0) * u * b_prev[k - 1] - beta)
            a_plus = a_plus.at[k - 1].set(ae_r * (k + 1.0) * b_prev[k - 1])

        # j = k
        if k < width:
            b = b.at[k].set((2.0 * k + 1.0) * ae_r * q * b_prev[k - 1])
            a_plus = a_plus.at[k].set((k + 1.0) * q * beta)
            p_row = p_row.at[k].set(beta * q)

        a = a_plus - u * b
        d = a_plus * jnp.asarray(j / (k + 1.0), dtype=_float)

        if k >= 2:
            g = C[k] * cos_j + S[k] * sin_j
            h = C[k] * sin_j - S[k] * cos_j
            sum1 = sum1 + jnp.sum(a * g)
            sum2 = sum2 + jnp.sum(b * g)
            sum3 = sum3 + jnp.sum(d * h)
            pot = pot + jnp.sum(p_row * g)

        b_prev2, b_prev = b_prev, b

    # Assemble the acceleration
    mu_r3 = -mu / (r2 * r)
    x_dd = x * mu_r3
    y_dd = y * mu_r3
    f = 1.0 / (q * q)
    ax = f * (x_dd * sum1 - y_dd * sum3)
    ay = f * (y_dd * sum1 + x_dd * sum3)
    az = -mu * sum2 / r2

    return KernelResult(jnp.stack([ax, ay, az]), (mu / r) * pot)
