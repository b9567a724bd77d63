"""Time-varying spherical harmonic gravity.

A :class:`TimeVaryingCoefficientProvider` wraps a static normalized
coefficient table with per-coefficient corrections: a secular drift and
annual / semi-annual periodic terms.  For a date ``t`` years after the
reference epoch,

    dC_nm(t) = drift * t
             + sin1 * sin(2 pi t) + cos1 * cos(2 pi t)
             + sin2 * sin(4 pi t) + cos2 * cos(4 pi t)

and likewise for S.  Years are Julian (365.25 days).

:class:`VariableGravityModel` evaluates the corrected field with the
Balmino kernel.  The corrected coefficients are rebuilt on every call, so
results depend only on the inputs.

References:
    1. ICGEM, *Format of the gravity field models (gfc) with time variable
       coefficients*, GFZ Potsdam.
"""

from __future__ import annotations

import datetime
from typing import NamedTuple, Sequence

import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike

from gravitax.coefficients import CoefficientTable
from gravitax.config import get_dtype
from gravitax.constants import SECONDS_PER_JULIAN_YEAR
from gravitax.errors import UnsupportedParameterError
from gravitax.kernels import (
    HelmholtzPolynomial,
    balmino_dacc_dae,
    balmino_jacobian,
    balmino_potential_gradient,
)
from gravitax.models._validation import check_degree_order, check_nested, check_position
from gravitax.models.point_mass import (
    accel_point_mass,
    jacobian_point_mass,
    potential_point_mass,
)
from gravitax.parameter import Parameter, resolve_value

_TERMS = (
    "c_drift", "s_drift",
    "c_sin1", "c_cos1", "s_sin1", "s_cos1",
    "c_sin2", "c_cos2", "s_sin2", "s_cos2",
)


class CoefficientCorrection(NamedTuple):
    """Time-variable terms of one (normalized) Stokes coefficient pair.

    Attributes:
        n: Degree.
        m: Order.
        c_drift: Secular rate of C_nm [1/yr].
        s_drift: Secular rate of S_nm [1/yr].
        c_sin1: Annual sine amplitude of C_nm.
        c_cos1: Annual cosine amplitude of C_nm.
        s_sin1: Annual sine amplitude of S_nm.
        s_cos1: Annual cosine amplitude of S_nm.
        c_sin2: Semi-annual sine amplitude of C_nm.
        c_cos2: Semi-annual cosine amplitude of C_nm.
        s_sin2: Semi-annual sine amplitude of S_nm.
        s_cos2: Semi-annual cosine amplitude of S_nm.
    """

    n: int
    m: int
    c_drift: float = 0.0
    s_drift: float = 0.0
    c_sin1: float = 0.0
    c_cos1: float = 0.0
    s_sin1: float = 0.0
    s_cos1: float = 0.0
    c_sin2: float = 0.0
    c_cos2: float = 0.0
    s_sin2: float = 0.0
    s_cos2: float = 0.0


class TimeVaryingCoefficientProvider:
    """Static coefficient table plus time-variable corrections.

    Args:
        table: Static coefficients.  Converted to the normalized convention.
        reference_epoch: Epoch at which drift terms vanish.  A
            :class:`datetime.datetime` or a float in seconds.
        corrections: Correction terms.  Several corrections for the same
            (n, m) add up.

    Raises:
        ValueError: If a correction lies outside the static table or has
            ``m > n``.

    Examples:
        ```python
        import datetime
        from gravitax.coefficients import CoefficientTable
        from gravitax.models import CoefficientCorrection, TimeVaryingCoefficientProvider
        table = CoefficientTable.zeros(4, 4)
        ref = datetime.datetime(2005, 1, 1, tzinfo=datetime.timezone.utc)
        provider = TimeVaryingCoefficientProvider(
            table, ref, [CoefficientCorrection(2, 0, c_drift=1.16e-11)]
        )
        dc, ds = provider.corrections_at(ref + datetime.timedelta(days=365.25), 4, 4)
        ```
    """

    def __init__(
        self,
        table: CoefficientTable,
        reference_epoch: datetime.datetime | float,
        corrections: Sequence[CoefficientCorrection] = (),
    ):
        self._table = table.to_normalized()
        self._reference_epoch = reference_epoch

        shape = self._table.c.shape
        terms = {name: np.zeros(shape, dtype=np.float64) for name in _TERMS}
        for corr in corrections:
            corr = CoefficientCorrection(*corr)
            if corr.m < 0 or corr.m > corr.n:
                raise ValueError(
                    f"Correction (n={corr.n}, m={corr.m}) must satisfy 0 <= m <= n."
                )
            if corr.n > self._table.degree or corr.m > self._table.order:
                raise ValueError(
                    f"Correction (n={corr.n}, m={corr.m}) lies outside the static "
                    f"table ({self._table.degree}, {self._table.order})."
                )
            for name in _TERMS:
                terms[name][corr.n, corr.m] += getattr(corr, name)
        for arr in terms.values():
            arr.flags.writeable = False
        self._terms = terms
        self._corrections = tuple(CoefficientCorrection(*c) for c in corrections)

    @property
    def table(self) -> CoefficientTable:
        """Static normalized coefficient table."""
        return self._table

    @property
    def reference_epoch(self) -> datetime.datetime | float:
        return self._reference_epoch

    @property
    def corrections(self) -> tuple[CoefficientCorrection, ...]:
        return self._corrections

    def elapsed_years(self, date: datetime.datetime | float) -> float:
        """Julian years from the reference epoch to *date*.

        Args:
            date: A :class:`datetime.datetime`, or a float in seconds.
                Float dates share the origin of a float reference epoch;
                with a datetime reference they count seconds since it.

        Returns:
            float: Elapsed time in Julian years (negative before the epoch).

        Raises:
            ValueError: If *date* is a datetime but the reference epoch is
                not.
        """
        ref = self._reference_epoch
        if isinstance(date, datetime.datetime):
            if not isinstance(ref, datetime.datetime):
                raise ValueError(
                    "A datetime date requires a datetime reference epoch."
                )
            seconds = (date - ref).total_seconds()
        elif isinstance(ref, datetime.datetime):
            seconds = float(date)
        else:
            seconds = float(date) - float(ref)
        return seconds / SECONDS_PER_JULIAN_YEAR

    def corrections_at(
        self,
        date: datetime.datetime | float,
        degree: int,
        order: int,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Coefficient corrections at a date within a (degree, order) window.

        Args:
            date: Evaluation date (see :meth:`elapsed_years`).
            degree: Maximum corrected degree.
            order: Maximum corrected order.

        Returns:
            tuple: ``(dc, ds)`` arrays of shape ``(degree + 1, order + 1)``.

        Raises:
            ValueError: If the window exceeds the static table.
        """
        check_degree_order(degree, order, "Variable")
        self._table.check_bounds(degree, order)

        t = self.elapsed_years(date)
        w1 = 2.0 * np.pi * t
        w2 = 2.0 * w1
        sin1, cos1 = np.sin(w1), np.cos(w1)
        sin2, cos2 = np.sin(w2), np.cos(w2)

        window = (slice(0, degree + 1), slice(0, order + 1))
        terms = {name: arr[window] for name, arr in self._terms.items()}
        dc = (
            terms["c_drift"] * t
            + terms["c_sin1"] * sin1 + terms["c_cos1"] * cos1
            + terms["c_sin2"] * sin2 + terms["c_cos2"] * cos2
        )
        ds = (
            terms["s_drift"] * t
            + terms["s_sin1"] * sin1 + terms["s_cos1"] * cos1
            + terms["s_sin2"] * sin2 + terms["s_cos2"] * cos2
        )
        return dc, ds

    def table_at(
        self,
        date: datetime.datetime | float,
        degree: int,
        order: int,
        variable_degree: int | None = None,
        variable_order: int | None = None,
    ) -> CoefficientTable:
        """Corrected coefficient table at a date.

        Args:
            date: Evaluation date (see :meth:`elapsed_years`).
            degree: Degree of the returned table.
            order: Order of the returned table.
            variable_degree: Maximum corrected degree.  Defaults to *degree*.
            variable_order: Maximum corrected order.  Defaults to
                ``min(order, variable_degree)``.

        Returns:
            CoefficientTable: Normalized table of shape
            ``(degree + 1, order + 1)``.

        Raises:
            ValueError: If the static table is too small or the variable
                window exceeds ``(degree, order)``.
        """
        static = self._table.truncate(degree, order)
        if variable_degree is None:
            variable_degree = degree
        if variable_order is None:
            variable_order = min(order, variable_degree)
        check_nested(variable_degree, variable_order, degree, order, "Variable", "Static")

        dc_win, ds_win = self.corrections_at(date, variable_degree, variable_order)
        dc = np.zeros(static.c.shape, dtype=np.float64)
        ds = np.zeros(static.s.shape, dtype=np.float64)
        dc[: variable_degree + 1, : variable_order + 1] = dc_win
        ds[: variable_degree + 1, : variable_order + 1] = ds_win
        return static.with_corrections(dc, ds)

    def __repr__(self) -> str:
        return (
            f"TimeVaryingCoefficientProvider(table={self._table!r}, "
            f"reference_epoch={self._reference_epoch!r}, "
            f"corrections={len(self._corrections)})"
        )


class VariableGravityModel:
    """Gravity model with time-varying coefficients (Balmino kernel).

    Four (degree, order) pairs are configured: the static acceleration and
    Jacobian truncations, and the windows inside each where the
    time-variable corrections are applied.

    Args:
        provider: Static table and corrections.
        ae: Reference radius [m], a float or a :class:`Parameter`.
        mu: Gravitational parameter [m^3/s^2], a float or a
            :class:`Parameter`.
        degree: Acceleration degree.  Defaults to the table's degree.
        order: Acceleration order.  Defaults to the table's order (capped
            at *degree*).
        jacobian_degree: Jacobian degree.  Defaults to *degree*; 0 disables
            the partials.
        jacobian_order: Jacobian order.  Defaults to
            ``min(jacobian_degree, order)``.
        variable_degree: Degree up to which corrections apply to the
            acceleration.  Defaults to *degree*.
        variable_order: Order up to which corrections apply to the
            acceleration.  Defaults to ``min(variable_degree, order)``.
        variable_jacobian_degree: Degree up to which corrections apply to
            the Jacobian.  Defaults to ``min(variable_degree, jacobian_degree)``.
        variable_jacobian_order: Order up to which corrections apply to the
            Jacobian.  Defaults to ``min(variable_jacobian_degree,
            variable_order, jacobian_order)``.
        central_term: Whether the degree-0 term is included.
        multiplicative_factor: Factor applied to every output.

    Raises:
        ValueError: If any pair is invalid or the pairs are not nested
            (Jacobian inside acceleration, variable inside static, variable
            Jacobian inside both variable acceleration and static Jacobian).
    """

    def __init__(
        self,
        provider: TimeVaryingCoefficientProvider,
        ae: float | Parameter,
        mu: float | Parameter,
        degree: int | None = None,
        order: int | None = None,
        jacobian_degree: int | None = None,
        jacobian_order: int | None = None,
        variable_degree: int | None = None,
        variable_order: int | None = None,
        variable_jacobian_degree: int | None = None,
        variable_jacobian_order: int | None = None,
        central_term: bool = True,
        multiplicative_factor: float = 1.0,
    ):
        table = provider.table
        if degree is None:
            degree = table.degree
        if order is None:
            order = min(table.order, degree)
        if jacobian_degree is None:
            jacobian_degree = degree
        if jacobian_order is None:
            jacobian_order = min(jacobian_degree, order)
        if variable_degree is None:
            variable_degree = degree
        if variable_order is None:
            variable_order = min(variable_degree, order)
        if variable_jacobian_degree is None:
            variable_jacobian_degree = min(variable_degree, jacobian_degree)
        if variable_jacobian_order is None:
            variable_jacobian_order = min(
                variable_jacobian_degree, variable_order, jacobian_order
            )

        check_degree_order(degree, order, "Acceleration")
        table.check_bounds(degree, order)
        check_degree_order(jacobian_degree, jacobian_order, "Jacobian")
        check_nested(
            jacobian_degree, jacobian_order, degree, order, "Jacobian", "Acceleration"
        )
        check_degree_order(variable_degree, variable_order, "Variable")
        check_nested(
            variable_degree, variable_order, degree, order, "Variable", "Acceleration"
        )
        check_degree_order(
            variable_jacobian_degree, variable_jacobian_order, "Variable Jacobian"
        )
        check_nested(
            variable_jacobian_degree, variable_jacobian_order,
            variable_degree, variable_order, "Variable Jacobian", "Variable",
        )
        check_nested(
            variable_jacobian_degree, variable_jacobian_order,
            jacobian_degree, jacobian_order, "Variable Jacobian", "Jacobian",
        )

        self._provider = provider
        self._ae = ae
        self._mu = mu
        self._degree = degree
        self._order = order
        self._jacobian_degree = jacobian_degree
        self._jacobian_order = jacobian_order
        self._variable_degree = variable_degree
        self._variable_order = variable_order
        self._variable_jacobian_degree = variable_jacobian_degree
        self._variable_jacobian_order = variable_jacobian_order
        self._central_term = bool(central_term)
        self._k = float(multiplicative_factor)

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
    def provider(self) -> TimeVaryingCoefficientProvider:
        return self._provider

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
    def variable_degree(self) -> int:
        return self._variable_degree

    @property
    def variable_order(self) -> int:
        return self._variable_order

    @property
    def variable_jacobian_degree(self) -> int:
        return self._variable_jacobian_degree

    @property
    def variable_jacobian_order(self) -> int:
        return self._variable_jacobian_order

    @property
    def multiplicative_factor(self) -> float:
        return self._k

    @property
    def central_term(self) -> bool:
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

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _acceleration_table(self, date) -> CoefficientTable:
        return self._provider.table_at(
            date, self._degree, self._order, self._variable_degree, self._variable_order
        )

    def _jacobian_table(self, date) -> CoefficientTable:
        return self._provider.table_at(
            date,
            self._jacobian_degree,
            self._jacobian_order,
            self._variable_jacobian_degree,
            self._variable_jacobian_order,
        )

    def _evaluate(self, position: ArrayLike, date):
        p = jnp.asarray(check_position(position), dtype=get_dtype())
        table = self._acceleration_table(date)
        result = balmino_potential_gradient(
            p, table.c, table.s, self.ae, self.mu,
            self._degree, self._order, self._helmholtz,
        )
        return p, result

    def compute_acceleration(self, position: ArrayLike, date) -> Array:
        """Gravitational acceleration at a body-fixed position and date.

        Args:
            position: Body-fixed position [m].  Shape ``(3,)`` or ``(6,)``.
            date: Evaluation date (see
                :meth:`TimeVaryingCoefficientProvider.elapsed_years`).

        Returns:
            Acceleration in the body-fixed frame [m/s^2], shape ``(3,)``.
        """
        p, result = self._evaluate(position, date)
        acc = result.acceleration
        if self._central_term:
            acc = acc + accel_point_mass(p, jnp.zeros(3, dtype=p.dtype), self.mu)
        return self._k * acc

    def compute_potential(self, position: ArrayLike, date) -> Array:
        """Gravitational potential at a body-fixed position and date."""
        p, result = self._evaluate(position, date)
        pot = result.potential
        if self._central_term:
            pot = pot + potential_point_mass(p, self.mu)
        return self._k * pot

    def compute_dacc_dpos(self, position: ArrayLike, date) -> Array:
        """Partial derivatives of the acceleration w.r.t. position.

        Truncated at ``(jacobian_degree, jacobian_order)`` with corrections
        applied up to the variable Jacobian window.  Zero when the Jacobian
        degree is 0.

        Returns:
            Array: Jacobian, shape ``(3, 3)``.
        """
        p = jnp.asarray(check_position(position), dtype=get_dtype())
        if self._jacobian_degree == 0:
            return jnp.zeros((3, 3), dtype=p.dtype)

        mu = self.mu
        table = self._jacobian_table(date)
        jac = balmino_jacobian(
            p, table.c, table.s, self.ae, mu,
            self._jacobian_degree, self._jacobian_order, self._jacobian_helmholtz,
        )
        if self._central_term:
            jac = jac + jacobian_point_mass(p, mu)
        return self._k * jac

    def add_dacc_dstate(
        self,
        position: ArrayLike,
        date,
        dacc_dpos: ArrayLike,
        dacc_dvel: ArrayLike,
    ) -> tuple[Array, Array]:
        """Add the position partials to ``dacc_dpos``; ``dacc_dvel`` is unchanged.

        Returns:
            tuple: Updated ``(dacc_dpos, dacc_dvel)``.
        """
        _float = get_dtype()
        jac = self.compute_dacc_dpos(position, date)
        return jnp.asarray(dacc_dpos, dtype=_float) + jac, jnp.asarray(dacc_dvel, dtype=_float)

    def add_dacc_dparam(
        self,
        position: ArrayLike,
        date,
        parameter: Parameter,
        dacc_dparam: ArrayLike,
    ) -> Array:
        """Add the partial derivative of the acceleration w.r.t. ``mu`` or ``ae``.

        Raises:
            UnsupportedParameterError: If *parameter* is not owned by the
                model.
        """
        if not any(parameter is p for p in self.get_parameters()):
            raise UnsupportedParameterError(
                f"{parameter!r} is not a parameter of this gravity model."
            )

        out = jnp.asarray(dacc_dparam, dtype=get_dtype())
        if parameter is self._mu:
            out = out + self.compute_acceleration(position, date) / self.mu
        if parameter is self._ae:
            p = jnp.asarray(check_position(position), dtype=get_dtype())
            table = self._acceleration_table(date)
            d_ae = balmino_dacc_dae(
                p, table.c, table.s, self.ae, self.mu,
                self._degree, self._order, self._helmholtz,
            )
            out = out + self._k * d_ae
        return out

    def __repr__(self) -> str:
        return (
            f"VariableGravityModel(degree={self._degree}, order={self._order}, "
            f"jacobian=({self._jacobian_degree}, {self._jacobian_order}), "
            f"variable=({self._variable_degree}, {self._variable_order}), "
            f"variable_jacobian=({self._variable_jacobian_degree}, "
            f"{self._variable_jacobian_order}), k={self._k})"
        )
