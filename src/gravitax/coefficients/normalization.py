"""Conversion between fully normalized and unnormalized Stokes coefficients.

The unnormalized coefficient is the normalized one times

    N_nm = sqrt((2 - delta_m0) * (2n + 1) * (n - m)! / (n + m)!)

Computing the factorial ratio directly overflows a double beyond degree
~170.  :func:`normalization_factors` builds each row incrementally instead:
``f_n0 = 2n + 1`` and ``f_nm = f_n,m-1 / ((n - m + 1)(n + m))`` (with the
factor 2 entering at ``m = 1``), so only the final square root of a
well-scaled product is ever taken.

:func:`exact_normalization_factors` is an independent derivation using
exact integer factorials and rational arithmetic.  It is slow and only
meaningful where the result is representable as a double, and it exists as
the reference for cross-checking the incremental version.

All arrays are laid out ``[n, m]`` with shape ``(degree + 1, order + 1)``
and ``order <= degree``.
"""

from __future__ import annotations

import math
from fractions import Fraction

import numpy as np
from numpy.typing import ArrayLike


def _table_shape(table: ArrayLike) -> tuple[np.ndarray, int, int]:
    arr = np.asarray(table, dtype=np.float64)
    if arr.ndim != 2:
        raise ValueError(f"Coefficient array must be 2-D, got shape {arr.shape}.")
    degree = arr.shape[0] - 1
    order = arr.shape[1] - 1
    if degree < 0 or order < 0:
        raise ValueError(f"Coefficient array must not be empty, got shape {arr.shape}.")
    if order > degree:
        raise ValueError(
            f"Coefficient array has more orders ({order}) than degrees ({degree})."
        )
    return arr, degree, order


def normalization_factors(degree: int, order: int) -> np.ndarray:
    """Incremental normalization factors ``N_nm``.

    Args:
        degree: Maximum degree (>= 0).
        order: Maximum order (0 <= order <= degree).

    Returns:
        np.ndarray: Factors of shape ``(degree + 1, order + 1)``; entries
        with ``m > n`` are zero.

    Raises:
        ValueError: If *degree* or *order* is negative or ``order > degree``.
    """
    if degree < 0 or order < 0:
        raise ValueError(
            f"Degree and order must be non-negative, got ({degree}, {order})."
        )
    if order > degree:
        raise ValueError(f"Order ({order}) cannot exceed degree ({degree}).")

    factors = np.zeros((degree + 1, order + 1), dtype=np.float64)
    for n in range(degree + 1):
        width = min(n, order)
        row = np.empty(width + 1, dtype=np.float64)
        row[0] = 2.0 * n + 1.0
        if width > 0:
            m = np.arange(1, width + 1, dtype=np.float64)
            steps = 1.0 / ((n - m + 1.0) * (n + m))
            steps[0] *= 2.0
            row[1:] = row[0] * np.cumprod(steps)
        factors[n, : width + 1] = np.sqrt(row)
    return factors


def exact_normalization_factors(degree: int, order: int) -> np.ndarray:
    """Normalization factors from exact factorial ratios.

    Independent of :func:`normalization_factors`; intended as a
    cross-check reference.  Results underflow to zero where
    ``(n - m)! / (n + m)!`` is below the double range.

    Args:
        degree: Maximum degree (>= 0).
        order: Maximum order (0 <= order <= degree).

    Returns:
        np.ndarray: Factors of shape ``(degree + 1, order + 1)``.
    """
    factors = np.zeros((degree + 1, order + 1), dtype=np.float64)
    for n in range(degree + 1):
        for m in range(min(n, order) + 1):
            kron = 1 if m == 0 else 2
            ratio = Fraction(
                kron * (2 * n + 1) * math.factorial(n - m), math.factorial(n + m)
            )
            factors[n, m] = math.sqrt(float(ratio))
    return factors


def denormalize(table: ArrayLike) -> np.ndarray:
    """Convert fully normalized coefficients to unnormalized ones.

    Args:
        table: Normalized coefficients, shape ``(degree + 1, order + 1)``.

    Returns:
        np.ndarray: Unnormalized coefficients with the same shape.

    Raises:
        ValueError: If the array is not 2-D or has more columns than rows.

    Examples:
        ```python
        import numpy as np
        from gravitax.coefficients import denormalize
        c = np.zeros((3, 3)); c[2, 0] = -4.84165371736e-4
        denormalize(c)[2, 0]  # -J2 ~ -1.0826e-3
        ```
    """
    arr, degree, order = _table_shape(table)
    return arr * normalization_factors(degree, order)


def normalize(table: ArrayLike) -> np.ndarray:
    """Convert unnormalized coefficients to fully normalized ones.

    Inverse of :func:`denormalize`.  Entries whose factor underflows to zero
    (extreme orders at very high degree) are returned as zero.

    Args:
        table: Unnormalized coefficients, shape ``(degree + 1, order + 1)``.

    Returns:
        np.ndarray: Normalized coefficients with the same shape.

    Raises:
        ValueError: If the array is not 2-D or has more columns than rows.
    """
    arr, degree, order = _table_shape(table)
    factors = normalization_factors(degree, order)
    out = np.zeros_like(arr)
    np.divide(arr, factors, out=out, where=factors > 0.0)
    return out
