"""Tests for the inertial-frame force contribution and accumulator."""

import datetime
import math

import jax.numpy as jnp
import numpy as np
import pytest
from numpy.testing import assert_allclose

from gravitax.coefficients import CoefficientTable
from gravitax.constants import EGM96_EARTH_EQUATORIAL_RADIUS, EGM96_EARTH_MU, OMEGA_EARTH
from gravitax.errors import JacobianUnavailableError
from gravitax.models import (
    AccelerationAccumulator,
    CoefficientCorrection,
    DirectBodyAttraction,
    GravityModel,
    GridGravityModel,
    Rz,
    TimeVaryingCoefficientProvider,
    VariableGravityModel,
    build_grid,
    earth_rotation,
)

AE = EGM96_EARTH_EQUATORIAL_RADIUS
MU = EGM96_EARTH_MU

R_TEST = np.array([6525.919e3, 1710.416e3, 2508.886e3])


def _identity(date):
    return np.eye(3)


# ===========================================================================
# Rotations
# ===========================================================================
class TestRotations:
    def test_rz_zero_is_identity(self):
        assert_allclose(Rz(0.0), np.eye(3), atol=0.0)

    def test_rz_quarter_turn(self):
        assert_allclose(Rz(math.pi / 2.0) @ jnp.array([1.0, 0.0, 0.0]), [0.0, -1.0, 0.0], atol=1e-15)

    def test_rz_orthonormal(self):
        R = np.asarray(Rz(0.7))
        assert_allclose(R.T @ R, np.eye(3), atol=1e-15)
        assert np.linalg.det(R) == pytest.approx(1.0, rel=1e-15)

    def test_earth_rotation(self):
        assert_allclose(earth_rotation(0.0), np.eye(3), atol=0.0)
        assert_allclose(earth_rotation(3600.0), Rz(OMEGA_EARTH * 3600.0), rtol=1e-15)
        assert_allclose(earth_rotation(10.0, theta0=0.5), Rz(0.5 + OMEGA_EARTH * 10.0), rtol=1e-15)


# ===========================================================================
# Accumulator
# ===========================================================================
class TestAccelerationAccumulator:
    def test_starts_at_zero(self):
        assert np.all(np.asarray(AccelerationAccumulator().acceleration) == 0.0)

    def test_add_xyz(self):
        acc = AccelerationAccumulator()
        acc.add_xyz_acceleration(1.0, 2.0, 3.0)
        acc.add_xyz_acceleration(0.5, 0.0, -1.0)
        assert_allclose(acc.acceleration, [1.5, 2.0, 2.0])

    def test_add_vector_with_rotation(self):
        acc = AccelerationAccumulator()
        acc.add_acceleration(jnp.array([1.0, 0.0, 0.0]), Rz(math.pi / 2.0))
        assert_allclose(acc.acceleration, [0.0, -1.0, 0.0], atol=1e-15)

    def test_add_6d_vector_uses_first_three(self):
        acc = AccelerationAccumulator()
        acc.add_acceleration(jnp.arange(6.0))
        assert_allclose(acc.acceleration, [0.0, 1.0, 2.0])

    def test_reset(self):
        acc = AccelerationAccumulator()
        acc.add_xyz_acceleration(1.0, 1.0, 1.0)
        acc.reset()
        assert np.all(np.asarray(acc.acceleration) == 0.0)


# ===========================================================================
# Direct body attraction
# ===========================================================================
class TestDirectBodyAttraction:
    def test_identity_rotation_passthrough(self, egm96_field):
        model = GravityModel(egm96_field.table, AE, MU)
        force = DirectBodyAttraction(model, _identity)
        assert_allclose(force.compute_acceleration(R_TEST, 0.0), model.compute_acceleration(R_TEST), rtol=1e-15)

    def test_rotated_frame(self, egm96_field):
        model = GravityModel(egm96_field.table, AE, MU)
        force = DirectBodyAttraction(model, earth_rotation)
        date = 5400.0
        R = np.asarray(earth_rotation(date))
        expected = R.T @ np.asarray(model.compute_acceleration(R @ R_TEST))
        assert_allclose(force.compute_acceleration(R_TEST, date), expected, rtol=1e-13)

    def test_central_field_is_rotation_invariant(self):
        model = GravityModel(CoefficientTable.zeros(2, 2), AE, MU)
        force = DirectBodyAttraction(model, earth_rotation)
        for date in (0.0, 1234.5, 43200.0):
            assert_allclose(force.compute_acceleration(R_TEST, date), model.compute_acceleration(R_TEST), rtol=1e-12)

    def test_accepts_6d_state(self, egm96_field):
        force = DirectBodyAttraction(GravityModel(egm96_field.table, AE, MU), earth_rotation)
        state = np.concatenate([R_TEST, [1.0e3, 7.0e3, 0.0]])
        assert_allclose(force.compute_acceleration(state, 60.0), force.compute_acceleration(R_TEST, 60.0), rtol=1e-15)

    def test_jacobian_matches_finite_difference(self, egm96_field):
        force = DirectBodyAttraction(GravityModel(egm96_field.table, AE, MU), earth_rotation)
        date = 900.0
        dpos, dvel = force.add_dacc_dstate(R_TEST, date, jnp.zeros((3, 3)), jnp.zeros((3, 3)))

        h = 10.0
        fd = np.zeros((3, 3))
        for i in range(3):
            dp = np.zeros(3)
            dp[i] = h
            a_plus = np.asarray(force.compute_acceleration(R_TEST + dp, date))
            a_minus = np.asarray(force.compute_acceleration(R_TEST - dp, date))
            fd[:, i] = (a_plus - a_minus) / (2.0 * h)
        dpos = np.asarray(dpos)
        assert_allclose(dpos, fd, rtol=0.0, atol=1e-7 * np.max(np.abs(dpos)))
        assert np.all(np.asarray(dvel) == 0.0)

    def test_jacobian_is_rotated_body_jacobian(self, egm96_field):
        model = GravityModel(egm96_field.table, AE, MU)
        force = DirectBodyAttraction(model, earth_rotation)
        date = 900.0
        R = np.asarray(earth_rotation(date))
        dpos, _ = force.add_dacc_dstate(R_TEST, date, jnp.eye(3), jnp.zeros((3, 3)))
        expected = np.eye(3) + R.T @ np.asarray(model.compute_dacc_dpos(R @ R_TEST)) @ R
        assert_allclose(dpos, expected, rtol=1e-12)

    def test_droziner_jacobian_unavailable(self, egm96_field):
        model = GravityModel(egm96_field.table, AE, MU, method="droziner")
        force = DirectBodyAttraction(model, earth_rotation)
        with pytest.raises(JacobianUnavailableError):
            force.add_dacc_dstate(R_TEST, 0.0, jnp.zeros((3, 3)), jnp.zeros((3, 3)))

    def test_variable_model_receives_date(self, egm96_field):
        ref = datetime.datetime(2005, 1, 1, tzinfo=datetime.timezone.utc)
        provider = TimeVaryingCoefficientProvider(
            egm96_field.table, ref, [CoefficientCorrection(2, 0, c_drift=1.0e-8)]
        )
        model = VariableGravityModel(provider, AE, MU)
        force = DirectBodyAttraction(model, earth_rotation)
        date = 3.0e7
        R = np.asarray(earth_rotation(date))
        expected = R.T @ np.asarray(model.compute_acceleration(R @ R_TEST, date))
        assert_allclose(force.compute_acceleration(R_TEST, date), expected, rtol=1e-13)

        dpos, _ = force.add_dacc_dstate(R_TEST, date, jnp.zeros((3, 3)), jnp.zeros((3, 3)))
        expected_jac = R.T @ np.asarray(model.compute_dacc_dpos(R @ R_TEST, date)) @ R
        assert_allclose(dpos, expected_jac, rtol=1e-12)

    def test_grid_model(self):
        axis = np.linspace(-8.0e6, 8.0e6, 5)
        x, y, z = np.meshgrid(axis, axis, axis, indexing="ij")
        coords = np.stack([x.ravel(), y.ravel(), z.ravel()], axis=1)
        acc = np.tile([0.0, 0.0, -1.0], (coords.shape[0], 1))
        model = GridGravityModel(build_grid("cartesian", coords, acc, MU))
        force = DirectBodyAttraction(model, earth_rotation)
        assert_allclose(force.compute_acceleration(R_TEST, 1.0e4), [0.0, 0.0, -1.0], atol=1e-15)

    def test_add_contribution(self, egm96_field):
        model = GravityModel(egm96_field.table, AE, MU)
        force = DirectBodyAttraction(model, earth_rotation)
        acc = AccelerationAccumulator()
        acc.add_xyz_acceleration(1.0e-6, 0.0, 0.0)
        force.add_contribution(R_TEST, 120.0, acc)
        expected = np.asarray(force.compute_acceleration(R_TEST, 120.0)) + np.array([1.0e-6, 0.0, 0.0])
        assert_allclose(acc.acceleration, expected, rtol=1e-15)

    def test_model_property_and_repr(self, egm96_field):
        model = GravityModel(egm96_field.table, AE, MU)
        force = DirectBodyAttraction(model, earth_rotation)
        assert force.model is model
        assert repr(force).startswith("DirectBodyAttraction(model=GravityModel(")
