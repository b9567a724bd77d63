"""Cunningham (V/W auxiliary function) spherical harmonic kernel.

Evaluates the non-central part of the gravity field from **unnormalized**
coefficients using the recursively computed functions

    V_nm = (R/r)^(n+1) P_nm(sin phi) cos(m lambda)
    W_nm = (R/r)^(n+1) P_nm(sin phi) sin(m lambda)

built directly from body-fixed Cartesian coordinates.  The recursion is
vectorised along the order: each degree row of V and W is produced from
the two previous rows in a handful of array operations.  The degree loop is
a Python loop traced by JAX, so *n_max* and *m_max* are static.

This kernel provides no analytic partial derivatives and serves as the
reference the other kernels are validated against.

References:
    1. O. Montenbruck and E. Gill, *Satellite Orbits: Models, Methods
       and Applications*, 2012, p. 66-68.
    2. L. E. Cunningham, *On the computation of the spherical harmonic
       terms needed during the numerical integration of the orbital motion
       of an artificial satellite*, Celestial Mechanics 2, 1970.
"""

from __future__ import annotations

import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike

from gravitax.config import get_dtype
from gravitax.kernels._types import KernelResult


def _vw_rows(
    x0: Array,
    y0: Array,
    z0: Array,
    rho: Array,
    v00: Array,
    degree: int,
    order: int,
) -> tuple[list[Array], list[Array]]:
    """Rows ``V[n, 0..order]`` and ``W[n, 0..order]`` for ``n = 0..degree``.

    Rows are zero above the diagonal, which lets the general recursion
    also produce the sub-diagonal ``V[n, n-1]`` term.
    """
    width = order + 1
    m = np.arange(width, dtype=np.float64)

    zeros = jnp.zeros(width, dtype=v00.dtype)
    v_prev2 = zeros
    w_prev2 = zeros
    v_prev = zeros.at[0].set(v00)
    w_prev = zeros
    V = [v_prev]
    W = [w_prev]

    for n in range(1, degree + 1):
        below = m < n
        denom = np.where(below, n - m, 1.0)
        a = jnp.asarray(np.where(below, (2.0 * n - 1.0) / denom, 0.0), dtype=v00.dtype)
        b = jnp.asarray(np.where(below, (n + m - 1.0) / denom, 0.0), dtype=v00.dtype)

        v = z0 * a * v_prev - rho * b * v_prev2
        w = z0 * a * w_prev - rho * b * w_prev2

        # Sectorial terms
        if n < width:
            f = 2.0 * n - 1.0
            v = v.at[n].set(f * (x0 * v_prev[n - 1] - y0 * w_prev[n - 1]))
            w = w.at[n].set(f * (x0 * w_prev[n - 1] + y0 * v_prev[n - 1]))

        V.append(v)
        W.append(w)
        v_prev2, w_prev2, v_prev, w_prev = v_prev, w_prev, v, w

    return V, W


def cunningham_potential_gradient(
    position: ArrayLike,
    c: ArrayLike,
    s: ArrayLike,
    ae: float,
    mu: float,
    n_max: int,
    m_max: int,
) -> KernelResult:
    """Non-central acceleration and potential with the Cunningham recursion.

    Degrees ``2..n_max`` and orders ``0..min(n, m_max)`` are summed.  The
    central (degree 0) term is not included and degree-1 terms are not
    evaluated.

    Args:
        position: Body-fixed position [m].  Shape ``(3,)`` or ``(6,)``
            (only first 3 elements used).
        c: Unnormalized C coefficients indexed ``[n, m]``, at least
            ``(n_max + 1, m_max + 1)``.
        s: Unnormalized S coefficients, same layout as *c*.
        ae: Reference radius [m].
        mu: Gravitational parameter [m^3/s^2].
        n_max: Maximum degree (static).
        m_max: Maximum order (static, ``<= n_max``).

    Returns:
        KernelResult: Body-fixed acceleration [m/s^2] and potential
        [m^2/s^2].

    Examples:
        ```python
        import jax.numpy as jnp
        import numpy as np
        from gravitax.kernels import cunningham_potential_gradient
        c = np.zeros((3, 3)); c[2, 0] = -1.0826e-3
        res = cunningham_potential_gradient(
            jnp.array([7.0e6, 0.0, 0.0]), c, np.zeros((3, 3)),
            6.378e6, 3.986e14, 2, 0,
        )
        ```
    """
    _float = get_dtype()
    r_bf = jnp.asarray(position, dtype=_float)[:3]

    if n_max < 2:
        return KernelResult(jnp.zeros(3, dtype=_float), jnp.zeros((), dtype=_float))

    C = jnp.asarray(c, dtype=_float)[: n_max + 1, : m_max + 1]
    S = jnp.asarray(s, dtype=_float)[: n_max + 1, : m_max + 1]
    ae = jnp.asarray(ae, dtype=_float)
    mu = jnp.asarray(mu, dtype=_float)

    # Auxiliary quantities
    r_sqr = jnp.dot(r_bf, r_bf)
    rho = ae * ae / r_sqr
    x0 = ae * r_bf[0] / r_sqr
    y0 = ae * r_bf[1] / r_sqr
    z0 = ae * r_bf[2] / r_sqr

    V, W = _vw_rows(x0, y0, z0, rho, ae / jnp.sqrt(r_sqr), n_max + 1, m_max + 1)

    mm = np.arange(1, m_max + 1, dtype=np.float64)

    ax = jnp.zeros((), dtype=_float)
    ay = ax
    az = ax
    u = ax

    for n in range(2, n_max + 1):
        Cn = C[n]
        Sn = S[n]
        Vn1 = V[n + 1]
        Wn1 = W[n + 1]

        # Zonal terms
        ax = ax - Cn[0] * Vn1[1]
        ay = ay - Cn[0] * Wn1[1]
        az = az - (n + 1.0) * Cn[0] * Vn1[0]

        # Tesseral and sectorial terms, m = 1..m_max
        if m_max > 0:
            Cm = Cn[1:]
            Sm = Sn[1:]
            fac = jnp.asarray(0.5 * (n - mm + 1.0) * (n - mm + 2.0), dtype=_float)
            dz = jnp.asarray(n - mm + 1.0, dtype=_float)
            ax = ax + jnp.sum(
                0.5 * (-Cm * Vn1[2:] - Sm * Wn1[2:])
                + fac * (Cm * Vn1[:-2] + Sm * Wn1[:-2])
            )
            ay = ay + jnp.sum(
                0.5 * (-Cm * Wn1[2:] + Sm * Vn1[2:])
                + fac * (-Cm * Wn1[:-2] + Sm * Vn1[:-2])
            )
            az = az + jnp.sum(dz * (-Cm * Vn1[1:-1] - Sm * Wn1[1:-1]))

        u = u + jnp.sum(Cn * V[n][: m_max + 1] + Sn * W[n][: m_max + 1])

    acc = (mu / (ae * ae)) * jnp.stack([ax, ay, az])
    return KernelResult(acc, (mu / ae) * u)
