"""Normalized Helmholtz polynomials and their first derivatives.

The Helmholtz polynomials ``H_nm(u)`` relate to the fully normalized
associated Legendre functions through

    Pbar_nm(sin phi) = cos^m(phi) * H_nm(u),     u = sin(phi) = z / r

so the longitude/latitude dependence ``cos^m(phi) e^(i m lambda)`` can be
carried by ``(xi + i eta)^m`` with ``xi = x/r``, ``eta = y/r``.  This
removes the polar singularity of the classical latitude formulation.

Recursion (column-wise, ``n > m``)::

    H_mm   = sqrt((2m + 1) / (2m)) H_(m-1)(m-1),   H_00 = 1, H_11 = sqrt(3)
    H_nm   = alpha_nm u H_(n-1)m - beta_nm H_(n-2)m
    H'_nm  = alpha_nm (H_(n-1)m + u H'_(n-1)m) - beta_nm H'_(n-2)m

with

    alpha_nm = sqrt((2n + 1)(2n - 1) / ((n - m)(n + m)))
    beta_nm  = sqrt((2n + 1)(n + m - 1)(n - m - 1) / ((2n - 3)(n + m)(n - m)))

:class:`HelmholtzPolynomial` precomputes ``alpha``, ``beta`` and the
diagonal constants once per (degree, order) as numpy arrays; evaluation is
a JAX-traceable row recursion vectorised along the order.

References:
    1. G. Balmino, J.-P. Barriot and N. Vales, *Non-singular formulation of
       the gravity vector and gravity gradient tensor in spherical harmonics*,
       Manuscripta Geodaetica 15, 1990.
"""

from __future__ import annotations

import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike


class HelmholtzPolynomial:
    """Precomputed recursion constants for normalized Helmholtz polynomials.

    This is a plain Python class (not a JAX pytree): the constants are
    static configuration fixed by the degree and order.

    Args:
        degree: Maximum degree.
        order: Maximum order (``<= degree``).

    Raises:
        ValueError: If *degree* or *order* is negative or ``order > degree``.

    Examples:
        ```python
        from gravitax.kernels import HelmholtzPolynomial
        helm = HelmholtzPolynomial(4, 4)
        H, dH = helm.compute(0.5)
        H[2][0]  # sqrt(5) * (3 u^2 - 1) / 2
        ```
    """

    def __init__(self, degree: int, order: int):
        if degree < 0 or order < 0:
            raise ValueError(
                f"Degree and order must be non-negative, got ({degree}, {order})."
            )
        if order > degree:
            raise ValueError(f"Order ({order}) cannot exceed degree ({degree}).")
        self.degree = degree
        self.order = order

        width = order + 1
        m = np.arange(width, dtype=np.float64)

        alpha = np.zeros((degree + 1, width), dtype=np.float64)
        beta = np.zeros((degree + 1, width), dtype=np.float64)
        for n in range(1, degree + 1):
            a_mask = m < n
            alpha[n, a_mask] = np.sqrt(
                (2.0 * n + 1.0) * (2.0 * n - 1.0) / ((n - m[a_mask]) * (n + m[a_mask]))
            )
            b_mask = m < n - 1
            mb = m[b_mask]
            beta[n, b_mask] = np.sqrt(
                (2.0 * n + 1.0) * (n + mb - 1.0) * (n - mb - 1.0)
                / ((2.0 * n - 3.0) * (n + mb) * (n - mb))
            )

        diag = np.ones(width, dtype=np.float64)
        if width > 1:
            diag[1] = np.sqrt(3.0)
        for k in range(2, width):
            diag[k] = np.sqrt((2.0 * k + 1.0) / (2.0 * k)) * diag[k - 1]

        self.alpha = alpha
        self.beta = beta
        self.diag = diag

    def compute(self, u: ArrayLike) -> tuple[list[Array], list[Array]]:
        """Evaluate ``H_nm(u)`` and ``dH_nm/du`` for all degrees.

        Args:
            u: Sine of the geocentric latitude, ``z / r``.

        Returns:
            tuple: ``(H, dH)``, lists of ``degree + 1`` rows of shape
            ``(order + 1,)``.  Entries with ``m > n`` are zero.
        """
        u = jnp.asarray(u)
        dtype = u.dtype
        width = self.order + 1

        zeros = jnp.zeros(width, dtype=dtype)
        h_prev2 = zeros
        dh_prev2 = zeros
        h_prev = zeros.at[0].set(1.0)
        dh_prev = zeros
        H = [h_prev]
        dH = [dh_prev]

        for n in range(1, self.degree + 1):
            a = jnp.asarray(self.alpha[n], dtype=dtype)
            b = jnp.asarray(self.beta[n], dtype=dtype)
            h = u * a * h_prev - b * h_prev2
            dh = a * (h_prev + u * dh_prev) - b * dh_prev2
            if n < width:
                h = h.at[n].set(self.diag[n])
                dh = dh.at[n].set(0.0)
            H.append(h)
            dH.append(dh)
            h_prev2, dh_prev2, h_prev, dh_prev = h_prev, dh_prev, h, dh

        return H, dH

    def __repr__(self) -> str:
        return f"HelmholtzPolynomial(degree={self.degree}, order={self.order})"
