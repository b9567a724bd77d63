"""Construction and call-time checks shared by the gravity models."""

from __future__ import annotations

import numpy as np
from jax.typing import ArrayLike

from gravitax.errors import DegenerateGeometryError


def check_degree_order(degree: int, order: int, label: str) -> None:
    """Validate one (degree, order) pair.

    Args:
        degree: Maximum degree.
        order: Maximum order.
        label: Name of the pair used in error messages.

    Raises:
        ValueError: If either value is negative or ``order > degree``.
    """
    if degree < 0 or order < 0:
        raise ValueError(
            f"{label} degree and order must be non-negative, got "
            f"(degree={degree}, order={order})."
        )
    if order > degree:
        raise ValueError(
            f"{label} order (m={order}) cannot exceed {label.lower()} degree (n={degree})."
        )


def check_nested(
    inner_degree: int,
    inner_order: int,
    outer_degree: int,
    outer_order: int,
    inner_label: str,
    outer_label: str,
) -> None:
    """Validate that one truncation fits inside another.

    Raises:
        ValueError: If ``inner_degree > outer_degree`` or
            ``inner_order > outer_order``.
    """
    if inner_degree > outer_degree:
        raise ValueError(
            f"{inner_label} degree ({inner_degree}) cannot exceed "
            f"{outer_label.lower()} degree ({outer_degree})."
        )
    if inner_order > outer_order:
        raise ValueError(
            f"{inner_label} order ({inner_order}) cannot exceed "
            f"{outer_label.lower()} order ({outer_order})."
        )


def check_position(position: ArrayLike) -> np.ndarray:
    """Validate a body-fixed evaluation point.

    Args:
        position: Position [m], shape ``(3,)`` or ``(6,)``.

    Returns:
        np.ndarray: The first three components as float64.

    Raises:
        DegenerateGeometryError: If the position is the origin.
        ValueError: If the position has fewer than 3 components or is not
            finite.
    """
    p = np.asarray(position, dtype=np.float64).reshape(-1)
    if p.shape[0] < 3:
        raise ValueError(f"Position must have at least 3 components, got {p.shape[0]}.")
    p = p[:3]
    if not np.all(np.isfinite(p)):
        raise ValueError(f"Position must be finite, got {p}.")
    if not np.any(p):
        raise DegenerateGeometryError(
            "Gravity field cannot be evaluated at the body's centre of mass."
        )
    return p
