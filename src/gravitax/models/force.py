"""Gravity as a force-model contribution in an inertial frame.

The gravity models work in the body-fixed frame.  :class:`DirectBodyAttraction`
wraps one of them with a rotation provider, a callable returning the
inertial-to-body-fixed rotation matrix ``R`` at a date, so that

    a_inertial = R^T a_body(R r_inertial)
    J_inertial = R^T J_body R

Contributions are summed in an :class:`AccelerationAccumulator`.
:func:`earth_rotation` is a constant-rate rotation about the z-axis, enough
for tests and simple propagations; precise Earth orientation is out of
scope.
"""

from __future__ import annotations

from typing import Callable

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from gravitax.config import get_dtype
from gravitax.constants import OMEGA_EARTH
from gravitax.models.harmonic import GravityModel


def Rz(angle: float) -> Array:
    """Rotation matrix, for a rotation about the z-axis.

    Args:
        angle: Counter-clockwise angle of rotation [rad] as viewed looking
            back along the positive direction of the rotation axis.

    Returns:
        Array: Rotation matrix, shape ``(3, 3)``.

    References:

        1. O. Montenbruck, and E. Gill, *Satellite Orbits: Models, Methods and Applications*, 2012, p.27.
    """
    _float = get_dtype()
    c = jnp.cos(jnp.asarray(angle, dtype=_float))
    s = jnp.sin(jnp.asarray(angle, dtype=_float))
    zero = jnp.zeros((), dtype=_float)
    one = jnp.ones((), dtype=_float)

    return jnp.array([[ +c,   +s, zero],
                      [ -s,   +c, zero],
                      [zero, zero,  one]])


def earth_rotation(
    seconds: float,
    theta0: float = 0.0,
    omega: float = OMEGA_EARTH,
) -> Array:
    """Inertial-to-body-fixed rotation of a body spinning at a constant rate.

    Args:
        seconds: Time since the reference epoch [s].
        theta0: Rotation angle at the reference epoch [rad].
        omega: Rotation rate [rad/s].

    Returns:
        Array: ``Rz(theta0 + omega * seconds)``, shape ``(3, 3)``.
    """
    return Rz(theta0 + omega * float(seconds))


class AccelerationAccumulator:
    """Running sum of acceleration contributions in one frame.

    Examples:
        ```python
        from gravitax.models import AccelerationAccumulator
        acc = AccelerationAccumulator()
        acc.add_xyz_acceleration(0.0, 0.0, -9.8)
        acc.acceleration
        ```
    """

    def __init__(self):
        self._acc = jnp.zeros(3, dtype=get_dtype())

    @property
    def acceleration(self) -> Array:
        """Accumulated acceleration [m/s^2], shape ``(3,)``."""
        return self._acc

    def add_xyz_acceleration(self, x: float, y: float, z: float) -> None:
        """Add an acceleration given by its components."""
        self._acc = self._acc + jnp.array([x, y, z], dtype=self._acc.dtype)

    def add_acceleration(self, vector: ArrayLike, rotation: ArrayLike | None = None) -> None:
        """Add an acceleration vector.

        Args:
            vector: Acceleration [m/s^2], shape ``(3,)``.
            rotation: Optional matrix mapping *vector* into the accumulator
                frame.
        """
        v = jnp.asarray(vector, dtype=self._acc.dtype)[:3]
        if rotation is not None:
            v = jnp.asarray(rotation, dtype=self._acc.dtype) @ v
        self._acc = self._acc + v

    def reset(self) -> None:
        """Reset the accumulated acceleration to zero."""
        self._acc = jnp.zeros(3, dtype=self._acc.dtype)


class DirectBodyAttraction:
    """Gravity of a central body as an inertial-frame force contribution.

    Args:
        model: A :class:`GravityModel`, :class:`GridGravityModel` or
            :class:`VariableGravityModel`.  Only the latter two receive the
            date.
        rotation_provider: Callable ``date -> R`` returning the
            inertial-to-body-fixed rotation matrix.

    Examples:
        ```python
        import jax.numpy as jnp
        from gravitax.models import DirectBodyAttraction, earth_rotation
        force = DirectBodyAttraction(model, earth_rotation)
        a = force.compute_acceleration(jnp.array([7.0e6, 0.0, 0.0]), 60.0)
        ```
    """

    def __init__(self, model, rotation_provider: Callable[[object], ArrayLike]):
        self._model = model
        self._rotation_provider = rotation_provider
        self._dated = not isinstance(model, GravityModel)

    @property
    def model(self):
        return self._model

    def _rotation(self, date) -> Array:
        return jnp.asarray(self._rotation_provider(date), dtype=get_dtype())

    def _call(self, name: str, position: Array, date):
        method = getattr(self._model, name)
        if self._dated:
            return method(position, date)
        return method(position)

    def compute_acceleration(self, position: ArrayLike, date) -> Array:
        """Inertial acceleration at an inertial position.

        Args:
            position: Inertial position [m].  Shape ``(3,)`` or ``(6,)``.
            date: Date passed to the rotation provider (and dated models).

        Returns:
            Array: Inertial acceleration [m/s^2], shape ``(3,)``.
        """
        R = self._rotation(date)
        r_bf = R @ jnp.asarray(position, dtype=get_dtype())[:3]
        return R.T @ self._call("compute_acceleration", r_bf, date)

    def add_contribution(self, position: ArrayLike, date, accumulator: AccelerationAccumulator) -> None:
        """Add the inertial acceleration to *accumulator*."""
        accumulator.add_acceleration(self.compute_acceleration(position, date))

    def add_dacc_dstate(
        self,
        position: ArrayLike,
        date,
        dacc_dpos: ArrayLike,
        dacc_dvel: ArrayLike,
    ) -> tuple[Array, Array]:
        """Add the inertial position partials ``R^T J R`` to ``dacc_dpos``.

        Returns:
            tuple: Updated ``(dacc_dpos, dacc_dvel)``; ``dacc_dvel`` is
            unchanged.

        Raises:
            JacobianUnavailableError: If the wrapped model has no partials.
        """
        _float = get_dtype()
        R = self._rotation(date)
        r_bf = R @ jnp.asarray(position, dtype=_float)[:3]
        jac = self._call("compute_dacc_dpos", r_bf, date)
        return (
            jnp.asarray(dacc_dpos, dtype=_float) + R.T @ jac @ R,
            jnp.asarray(dacc_dvel, dtype=_float),
        )

    def __repr__(self) -> str:
        return f"DirectBodyAttraction(model={self._model!r})"
