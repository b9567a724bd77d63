"""Balmino spherical harmonic kernel and its partial derivatives.

Works on **fully normalized** coefficients.  With ``t = r / |r|`` written
as ``(xi, eta, u)``, the potential of degree *n* is

    U_n = (mu / r) (ae / r)^n  sum_m  H_nm(u) (C_nm gamma_m + S_nm sigma_m)

where ``gamma_m + i sigma_m = (xi + i eta)^m``.  Treating ``xi, eta, u`` as
independent, the gradient splits into a radial derivative ``dU/dr`` and a
tangential part ``k = (1/r) grad_t U``; the acceleration is

    a = k + (dU/dr - t . k) t

This formulation has no singularity at the poles.  The Helmholtz
polynomials come from :class:`~gravitax.kernels.helmholtz.HelmholtzPolynomial`.

Partial derivatives are obtained by forward-mode differentiation
(``jax.jacfwd``) of the acceleration.  :func:`balmino_jacobian` takes its
own (degree, order), so the Jacobian may be truncated independently of the
acceleration.

References:
    1. G. Balmino, J.-P. Barriot and N. Vales, *Non-singular formulation of
       the gravity vector and gravity gradient tensor in spherical harmonics*,
       Manuscripta Geodaetica 15, 1990.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike

from gravitax.config import get_dtype
from gravitax.kernels._types import KernelResult
from gravitax.kernels.helmholtz import HelmholtzPolynomial


def _xi_eta_powers(xi: Array, eta: Array, m_max: int) -> tuple[Array, Array]:
    """Real and imaginary parts of ``(xi + i eta)^m`` for ``m = 0..m_max``."""
    gamma = [jnp.ones_like(xi)]
    sigma = [jnp.zeros_like(eta)]
    for _ in range(m_max):
        g_prev = gamma[-1]
        s_prev = sigma[-1]
        gamma.append(xi * g_prev - eta * s_prev)
        sigma.append(xi * s_prev + eta * g_prev)
    return jnp.stack(gamma), jnp.stack(sigma)


def balmino_potential_gradient(
    position: ArrayLike,
    c: ArrayLike,
    s: ArrayLike,
    ae: float,
    mu: float,
    n_max: int,
    m_max: int,
    helmholtz: HelmholtzPolynomial | None = None,
) -> KernelResult:
    """Non-central acceleration and potential with the Balmino recursion.

    Degrees ``2..n_max`` and orders ``0..min(n, m_max)`` are summed; the
    central term is not included and degree-1 terms are not evaluated.

    Args:
        position: Body-fixed position [m].  Shape ``(3,)`` or ``(6,)``
            (only first 3 elements used).
        c: Normalized C coefficients indexed ``[n, m]``.
        s: Normalized S coefficients, same layout as *c*.
        ae: Reference radius [m].
        mu: Gravitational parameter [m^3/s^2].
        n_max: Maximum degree (static).
        m_max: Maximum order (static, ``<= n_max``).
        helmholtz: Precomputed polynomial constants covering
            ``(n_max, m_max)``.  Built on the fly when omitted.

    Returns:
        KernelResult: Body-fixed acceleration [m/s^2] and potential
        [m^2/s^2].
    """
    _float = get_dtype()
    r_bf = jnp.asarray(position, dtype=_float)[:3]

    if n_max < 2:
        return KernelResult(jnp.zeros(3, dtype=_float), jnp.zeros((), dtype=_float))

    if helmholtz is None or helmholtz.degree < n_max or helmholtz.order < m_max:
        helmholtz = HelmholtzPolynomial(n_max, m_max)

    C = jnp.asarray(c, dtype=_float)[: n_max + 1, : m_max + 1]
    S = jnp.asarray(s, dtype=_float)[: n_max + 1, : m_max + 1]
    ae = jnp.asarray(ae, dtype=_float)
    mu = jnp.asarray(mu, dtype=_float)

    r = jnp.linalg.norm(r_bf)
    t = r_bf / r
    xi, eta, u = t[0], t[1], t[2]

    H, dH = helmholtz.compute(u)
    gamma, sigma = _xi_eta_powers(xi, eta, m_max)

    # (xi + i eta)^(m-1), scaled by m; zero for m = 0
    m = jnp.asarray(np.arange(m_max + 1, dtype=np.float64), dtype=_float)
    gamma_m1 = m * jnp.concatenate([jnp.zeros(1, dtype=_float), gamma[:-1]])
    sigma_m1 = m * jnp.concatenate([jnp.zeros(1, dtype=_float), sigma[:-1]])

    ae_r = ae / r
    asr = (mu / (r * r)) * ae_r  # (mu / r^2) (ae / r)^n, advanced per degree

    dr = jnp.zeros((), dtype=_float)
    kx = dr
    ky = dr
    kz = dr
    pot = dr

    for n in range(2, n_max + 1):
        asr = asr * ae_r
        Cn = C[n]
        Sn = S[n]
        hn = H[n][: m_max + 1]
        dhn = dH[n][: m_max + 1]
        cs = Cn * gamma + Sn * sigma
        v = jnp.sum(hn * cs)

        dr = dr - (n + 1.0) * asr * v
        kx = kx + asr * jnp.sum(hn * (Cn * gamma_m1 + Sn * sigma_m1))
        ky = ky - asr * jnp.sum(hn * (Cn * sigma_m1 - Sn * gamma_m1))
        kz = kz + asr * jnp.sum(dhn * cs)
        pot = pot + asr * v

    k = jnp.stack([kx, ky, kz])
    acc = k + (dr - jnp.dot(t, k)) * t
    return KernelResult(acc, r * pot)


def balmino_acceleration(
    position: ArrayLike,
    c: ArrayLike,
    s: ArrayLike,
    ae: float,
    mu: float,
    n_max: int,
    m_max: int,
    helmholtz: HelmholtzPolynomial | None = None,
) -> Array:
    """Acceleration part of :func:`balmino_potential_gradient`."""
    return balmino_potential_gradient(
        position, c, s, ae, mu, n_max, m_max, helmholtz
    ).acceleration


def balmino_jacobian(
    position: ArrayLike,
    c: ArrayLike,
    s: ArrayLike,
    ae: float,
    mu: float,
    n_max: int,
    m_max: int,
    helmholtz: HelmholtzPolynomial | None = None,
) -> Array:
    """Partial derivatives of the Balmino acceleration w.r.t. position.

    Evaluated at its own truncation ``(n_max, m_max)``, which may be lower
    than the degree and order used for the acceleration itself.

    Args:
        position: Body-fixed position [m], shape ``(3,)``.
        c: Normalized C coefficients indexed ``[n, m]``.
        s: Normalized S coefficients, same layout as *c*.
        ae: Reference radius [m].
        mu: Gravitational parameter [m^3/s^2].
        n_max: Maximum degree of the Jacobian (static).
        m_max: Maximum order of the Jacobian (static).
        helmholtz: Optional precomputed polynomial constants.

    Returns:
        Array: ``d(acc)/d(position)``, shape ``(3, 3)``, row *i* holding the
        gradient of acceleration component *i*.

    Examples:
        ```python
        import jax.numpy as jnp
        import numpy as np
        from gravitax.kernels import balmino_jacobian
        c = np.zeros((3, 3)); c[2, 0] = -4.84165371736e-4
        J = balmino_jacobian(
            jnp.array([7.0e6, 1.0e5, 2.0e5]), c, np.zeros((3, 3)),
            6378136.3, 3.986004415e14, 2, 0,
        )
        ```
    """
    _float = get_dtype()
    r_bf = jnp.asarray(position, dtype=_float)[:3]
    if n_max < 2:
        return jnp.zeros((3, 3), dtype=_float)

    def _acc(p):
        return balmino_acceleration(p, c, s, ae, mu, n_max, m_max, helmholtz)

    return jax.jacfwd(_acc)(r_bf)


def balmino_dacc_dae(
    position: ArrayLike,
    c: ArrayLike,
    s: ArrayLike,
    ae: float,
    mu: float,
    n_max: int,
    m_max: int,
    helmholtz: HelmholtzPolynomial | None = None,
) -> Array:
    """Partial derivative of the Balmino acceleration w.r.t. ``ae``.

    Returns:
        Array: ``d(acc)/d(ae)``, shape ``(3,)``.
    """
    _float = get_dtype()
    if n_max < 2:
        return jnp.zeros(3, dtype=_float)

    def _acc(radius):
        return balmino_acceleration(position, c, s, radius, mu, n_max, m_max, helmholtz)

    return jax.jacfwd(_acc)(jnp.asarray(ae, dtype=_float))
