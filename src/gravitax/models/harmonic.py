"""Spherical harmonic gravity model facade.

:class:`GravityModel` binds a coefficient table, the reference constants
``ae`` and ``mu``, a recursion algorithm (:class:`HarmonicMethod`) and the
truncation limits, and exposes acceleration, potential and partial
derivatives at a body-fixed position.

Positions and accelerations are expressed in the body-fixed frame of the
coefficient table; rotating to and from an inertial frame is the caller's
responsibility (see :class:`~gravitax.models.force.DirectBodyAttraction`).

The facade validates its inputs on the host, so its methods are called
eagerly.  For use inside ``jax.jit`` call the kernel functions in
:mod:`gravitax.kernels` directly.
"""

from __future__ import annotations

import logging

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from gravitax.coefficients import CoefficientTable
from gravitax.config import get_dtype
from gravitax.errors import JacobianUnavailableError, UnsupportedParameterError
from gravitax.kernels import (
    HarmonicMethod,
    HelmholtzPolynomial,
    KernelResult,
    balmino_dacc_dae,
    balmino_jacobian,
    balmino_potential_gradient,
    check_polar_distance,
    cunningham_potential_gradient,
    droziner_potential_gradient,
)
from gravitax.models._validation import check_degree_order, check_nested, check_position
from gravitax.models.point_mass import (
    accel_point_mass,
    jacobian_point_mass,
    potential_point_mass,
)
from gravitax.parameter import Parameter, resolve_value

logger = logging.getLogger(__name__)


class GravityModel:
    """Spherical harmonic gravity field of a central body.

    Args:
        table: Stokes coefficients, in either convention; converted to the
            convention required by *method* at construction.
        ae: Reference radius [m], a fixed float or a :class:`Parameter`.
        mu: Gravitational parameter [m^3/s^2], a fixed float or a
            :class:`Parameter`.
        degree: Maximum degree for the acceleration.  Defaults to the
            table's degree.
        order: Maximum order for the acceleration.  Defaults to the table's
            order (capped at *degree*).
        jacobian_degree: Maximum degree for the position partials.
            Defaults to *degree* for Balmino and 0 otherwise.  0 disables
            the partials (they add nothing).
        jacobian_order: Maximum order for the position partials.  Defaults
            to ``min(jacobian_degree, order)``.
        method: Recursion algorithm.
        central_term: Whether the degree-0 (point-mass) term is included.
            Set to ``False`` when the model is combined with a separate
            Newtonian attraction.
        multiplicative_factor: Factor *k* applied to the acceleration, the
            potential and all partial derivatives.

    Raises:
        ValueError: If a degree or order is negative, an order exceeds its
            degree, the table is smaller than requested, or the Jacobian
            truncation exceeds the acceleration truncation.

    Examples:
        ```python
        import jax.numpy as jnp
        from gravitax.coefficients import read_gfc
        from gravitax.models import GravityModel
        field = read_gfc("EGM96.gfc")
        model = GravityModel(field.table, field.ae, field.mu, degree=20, order=20)
        a = model.compute_acceleration(jnp.array([7.0e6, 0.0, 1.0e6]))
        ```
    """

    def __init__(
        self,
        table: CoefficientTable,
        ae: float | Parameter,
        mu: float | Parameter,
        degree: int | None = None,
        order: int | None = None,
        jacobian_degree: int | None = None,
        jacobian_order: int | None = None,
        method: HarmonicMethod | str = HarmonicMethod.BALMINO,
        central_term: bool = True,
        multiplicative_factor: float = 1.0,
    ):
        method = HarmonicMethod(method)

        if degree is None:
            degree = table.degree
        if order is None:
            order = min(table.order, degree)
        check_degree_order(degree, order, "Acceleration")
        table.check_bounds(degree, order)

        if jacobian_degree is None:
            jacobian_degree = degree if method.supports_jacobian else 0
        if jacobian_order is None:
            jacobian_order = min(jacobian_degree, order)
        check_degree_order(jacobian_degree, jacobian_order, "Jacobian")
        check_nested(
            jacobian_degree, jacobian_order, degree, order, "Jacobian", "Acceleration"
        )

        if table.normalized != method.normalized:
            logger.debug(
                "Converting %s coefficients for the %s kernel",
                "normalized" if table.normalized else "unnormalized",
                method.value,
            )
        converted = table.to_normalized() if method.normalized else table.to_unnormalized()

        self._table = converted.truncate(degree, order)
        self._method = method
        self._ae = ae
        self._mu = mu
        self._degree = degree
        self._order = order
        self._jacobian_degree = jacobian_degree
        self._jacobian_order = jacobian_order
        self._central_term = bool(central_term)
        self._k = float(multiplicative_factor)

        self._helmholtz = None
        self._jacobian_helmholtz = None
        if method is HarmonicMethod.BALMINO:
            self._helmholtz = HelmholtzPolynomial(degree, order)
            self._jacobian_helmholtz = HelmholtzPolynomial(jacobian_degree, jacobian_order)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def mu(self) -> float:
        """Current gravitational parameter [m^3/s^2]."""
        return resolve_value(self._mu)

    @property
    def ae(self) -> float:
        """Current reference radius [m]."""
        return resolve_value(self._ae)

    @property
    def method(self) -> HarmonicMethod:
        """Recursion algorithm used by the model."""
        return self._method

    @property
    def table(self) -> CoefficientTable:
        """Truncated coefficient table, in the method's convention."""
        return self._table

    @property
    def degree(self) -> int:
        return self._degree

    @property
    def order(self) -> int:
        return self._order

    @property
    def jacobian_degree(self) -> int:
        return self._jacobian_degree

    @property
    def jacobian_order(self) -> int:
        return self._jacobian_order

    @property
    def multiplicative_factor(self) -> float:
        return self._k

    @property
    def central_term(self) -> bool:
        """Whether the degree-0 term contributes to the results."""
        return self._central_term

    @central_term.setter
    def central_term(self, value: bool) -> None:
        self._central_term = bool(value)

    def get_parameters(self) -> list[Parameter]:
        """Parameters owned by the model (``ae`` and/or ``mu``)."""
        params = []
        for p in (self._ae, self._mu):
            if isinstance(p, Parameter) and not any(p is q for q in params):
                params.append(p)
        return params

    def get_c(self) -> list[list[float]]:
        """Truncated C coefficients as triangular degree rows."""
        return self._table.rows()[0]

    def get_s(self) -> list[list[float]]:
        """Truncated S coefficients as triangular degree rows."""
        return self._table.rows()[1]

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _position(self, position: ArrayLike) -> Array:
        p = check_position(position)
        if self._method is HarmonicMethod.DROZINER:
            check_polar_distance(p)
        return jnp.asarray(p, dtype=get_dtype())

    def _non_central(self, p: Array) -> KernelResult:
        c = self._table.c
        s = self._table.s
        if self._method is HarmonicMethod.BALMINO:
            return balmino_potential_gradient(
                p, c, s, self.ae, self.mu, self._degree, self._order, self._helmholtz
            )
        if self._method is HarmonicMethod.DROZINER:
            return droziner_potential_gradient(
                p, c, s, self.ae, self.mu, self._degree, self._order
            )
        return cunningham_potential_gradient(
            p, c, s, self.ae, self.mu, self._degree, self._order
        )

    def compute_acceleration(self, position: ArrayLike) -> Array:
        """Gravitational acceleration at a body-fixed position.

        Args:
            position: Body-fixed position [m].  Shape ``(3,)`` or ``(6,)``
                (only first 3 elements used).

        Returns:
            Acceleration in the body-fixed frame [m/s^2], shape ``(3,)``.

        Raises:
            DegenerateGeometryError: At the origin, or on the polar axis
                for the Droziner method.
        """
        p = self._position(position)
        mu = self.mu
        acc = self._non_central(p).acceleration
        if self._central_term:
            acc = acc + accel_point_mass(p, jnp.zeros(3, dtype=p.dtype), mu)
        return self._k * acc

    def compute_potential(self, position: ArrayLike) -> Array:
        """Gravitational potential at a body-fixed position.

        Uses the positive convention ``U = mu/r + ...``.

        Args:
            position: Body-fixed position [m].

        Returns:
            Scalar potential [m^2/s^2].
        """
        p = self._position(position)
        pot = self._non_central(p).potential
        if self._central_term:
            pot = pot + potential_point_mass(p, self.mu)
        return self._k * pot

    def compute_dacc_dpos(self, position: ArrayLike) -> Array:
        """Partial derivatives of the acceleration w.r.t. position.

        Truncated at ``(jacobian_degree, jacobian_order)``.  The result is
        zero when the method has no partials (Cunningham) or when the
        Jacobian degree is 0.

        Args:
            position: Body-fixed position [m].

        Returns:
            Array: Jacobian, shape ``(3, 3)``, scaled by the multiplicative
            factor.

        Raises:
            JacobianUnavailableError: For the Droziner method.
        """
        if self._method is HarmonicMethod.DROZINER:
            raise JacobianUnavailableError(
                "Jacobian is not defined for the Droziner gravity model."
            )
        p = self._position(position)
        if not self._method.supports_jacobian or self._jacobian_degree == 0:
            return jnp.zeros((3, 3), dtype=p.dtype)

        mu = self.mu
        jac = balmino_jacobian(
            p, self._table.c, self._table.s, self.ae, mu,
            self._jacobian_degree, self._jacobian_order, self._jacobian_helmholtz,
        )
        if self._central_term:
            jac = jac + jacobian_point_mass(p, mu)
        return self._k * jac

    def add_dacc_dstate(
        self,
        position: ArrayLike,
        dacc_dpos: ArrayLike,
        dacc_dvel: ArrayLike,
    ) -> tuple[Array, Array]:
        """Add this model's contribution to the state partial derivatives.

        The position block is accumulated (not overwritten).  The velocity
        block is returned unchanged: gravity does not depend on velocity.

        Args:
            position: Body-fixed position [m].
            dacc_dpos: Accumulated ``d(acc)/d(pos)``, shape ``(3, 3)``.
            dacc_dvel: Accumulated ``d(acc)/d(vel)``, shape ``(3, 3)``.

        Returns:
            tuple: Updated ``(dacc_dpos, dacc_dvel)``.

        Raises:
            JacobianUnavailableError: For the Droziner method.
        """
        _float = get_dtype()
        jac = self.compute_dacc_dpos(position)
        return jnp.asarray(dacc_dpos, dtype=_float) + jac, jnp.asarray(dacc_dvel, dtype=_float)

    def add_dacc_dparam(
        self,
        position: ArrayLike,
        parameter: Parameter,
        dacc_dparam: ArrayLike,
    ) -> Array:
        """Add the partial derivative of the acceleration w.r.t. a parameter.

        Only the model's own ``mu`` and ``ae`` Parameters are supported,
        matched by identity.  The Cunningham method provides no partials
        and adds nothing for them.

        Args:
            position: Body-fixed position [m].
            parameter: The parameter to differentiate against.
            dacc_dparam: Accumulated derivative, shape ``(3,)``.

        Returns:
            Array: Updated derivative, shape ``(3,)``.

        Raises:
            JacobianUnavailableError: For the Droziner method.
            UnsupportedParameterError: If *parameter* is not owned by the
                model.
        """
        if self._method is HarmonicMethod.DROZINER:
            raise JacobianUnavailableError(
                "Parameter derivatives are not defined for the Droziner gravity model."
            )
        if not any(parameter is p for p in self.get_parameters()):
            raise UnsupportedParameterError(
                f"{parameter!r} is not a parameter of this gravity model."
            )

        out = jnp.asarray(dacc_dparam, dtype=get_dtype())
        if not self._method.supports_jacobian:
            return out

        p = self._position(position)
        if parameter is self._mu:
            out = out + self.compute_acceleration(p) / self.mu
        if parameter is self._ae:
            d_ae = balmino_dacc_dae(
                p, self._table.c, self._table.s, self.ae, self.mu,
                self._degree, self._order, self._helmholtz,
            )
            out = out + self._k * d_ae
        return out

    def __repr__(self) -> str:
        return (
            f"GravityModel(method={self._method.value}, degree={self._degree}, "
            f"order={self._order}, jacobian=({self._jacobian_degree}, "
            f"{self._jacobian_order}), central_term={self._central_term}, "
            f"k={self._k})"
        )
