"""Tests for the tabulated grid gravity model.

Grids are sampled from the analytic point-mass field so interpolation
errors can be measured exactly.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from gravitax.coefficients import CoefficientTable
from gravitax.constants import EGM96_EARTH_EQUATORIAL_RADIUS, EGM96_EARTH_MU
from gravitax.errors import DegenerateGeometryError, JacobianUnavailableError
from gravitax.models import (
    GravityModel,
    GridGravityModel,
    GridInterpolation,
    GridKind,
    build_grid,
    grid_coordinates,
    longitude_in_window,
    normalize_longitude,
    read_cartesian_grid,
    read_spherical_grid,
)

MU = EGM96_EARTH_MU

LATS = np.arange(-80.0, 81.0, 10.0)
LONS = np.arange(0.0, 360.0, 10.0)
REGIONAL_LONS = np.arange(-20.0, 21.0, 10.0)
RADII = np.array([6.9e6, 7.0e6, 7.1e6, 7.2e6])


def _point_mass(r):
    r = np.atleast_2d(r)
    rn = np.linalg.norm(r, axis=1)
    return -MU * r / rn[:, None] ** 3, MU / rn


def _spherical_to_cartesian(lat, lon, radius):
    lat = np.radians(lat)
    lon = np.radians(lon)
    return np.asarray(radius)[..., None] * np.stack(
        [np.cos(lat) * np.cos(lon), np.cos(lat) * np.sin(lon), np.sin(lat)], axis=-1
    )


def _spherical_samples(lons):
    lat, lon, rad = np.meshgrid(LATS, lons, RADII, indexing="ij")
    coords = np.stack([lat.ravel(), lon.ravel(), rad.ravel()], axis=1)
    acc, pot = _point_mass(_spherical_to_cartesian(coords[:, 0], coords[:, 1], coords[:, 2]))
    return coords, acc, pot


def _spherical_grid(lons=LONS, with_potential=True):
    coords, acc, pot = _spherical_samples(lons)
    return build_grid(
        GridKind.SPHERICAL, coords, acc, MU, pot if with_potential else None
    )


def _cartesian_grid():
    axis = np.linspace(6.5e6, 7.5e6, 6)
    zaxis = np.linspace(-5.0e5, 5.0e5, 5)
    x, y, z = np.meshgrid(axis, axis, zaxis, indexing="ij")
    coords = np.stack([x.ravel(), y.ravel(), z.ravel()], axis=1)
    acc, pot = _point_mass(coords)
    return build_grid("cartesian", coords, acc, MU, pot)


def _backup_model():
    return GravityModel(CoefficientTable.zeros(2, 2), EGM96_EARTH_EQUATORIAL_RADIUS, MU)


def _write_grid(path, rows, header="mu 3.986004415e14\n"):
    with open(path, "w") as f:
        f.write("# test grid\n")
        f.write(header)
        for row in rows:
            f.write(" ".join(f"{v:.17g}" for v in row) + "\n")
    return path


# ===========================================================================
# Grid construction
# ===========================================================================
class TestBuildGrid:
    def test_spherical_shape_and_wrap(self):
        grid = _spherical_grid()
        assert grid.kind is GridKind.SPHERICAL
        assert grid.axes[1][0] == 0.0
        assert grid.axes[1][-1] == 360.0
        assert grid.acceleration.shape == (len(LATS), len(LONS) + 1, len(RADII), 3)
        assert_array_equal(grid.acceleration[:, -1], grid.acceleration[:, 0])
        assert_array_equal(grid.potential[:, -1], grid.potential[:, 0])

    def test_partial_longitude_range_not_wrapped(self):
        grid = _spherical_grid(lons=np.arange(0.0, 100.0, 10.0))
        assert grid.axes[1][-1] == 90.0

    def test_negative_longitudes_normalized(self):
        grid = _spherical_grid(lons=np.arange(-180.0, 180.0, 10.0))
        assert grid.axes[1][0] == 0.0
        assert grid.axes[1][-1] == 360.0

    @pytest.mark.parametrize("lons", [np.arange(-180.0, 181.0, 10.0), np.arange(0.0, 361.0, 10.0)])
    def test_duplicate_seam_column_merged(self, lons):
        grid = _spherical_grid(lons=lons)
        reference = _spherical_grid()
        assert_array_equal(grid.axes[1], reference.axes[1])
        assert grid.acceleration.shape == reference.acceleration.shape
        assert_allclose(grid.acceleration, reference.acceleration, rtol=1e-12, atol=1e-12)
        assert_allclose(grid.potential, reference.potential, rtol=1e-12)
        assert_array_equal(grid.acceleration[:, -1], grid.acceleration[:, 0])

    def test_seam_columns_must_agree(self):
        coords, acc, pot = _spherical_samples(np.arange(0.0, 361.0, 10.0))
        acc[coords[:, 1] == 360.0] *= 1.001
        with pytest.raises(ValueError, match="disagree"):
            build_grid("spherical", coords, acc, MU, pot)

    def test_seam_potentials_must_agree(self):
        coords, acc, pot = _spherical_samples(np.arange(-180.0, 181.0, 10.0))
        pot[coords[:, 1] == 180.0] += 1.0
        with pytest.raises(ValueError, match="disagree"):
            build_grid("spherical", coords, acc, MU, pot)

    def test_prime_meridian_columns_contiguous(self):
        grid = _spherical_grid(lons=REGIONAL_LONS)
        assert_array_equal(grid.axes[1], [340.0, 350.0, 360.0, 370.0, 380.0])
        assert grid.acceleration.shape == (len(LATS), 5, len(RADII), 3)

    def test_read_only(self):
        grid = _spherical_grid()
        with pytest.raises(ValueError):
            grid.acceleration[0, 0, 0, 0] = 1.0

    def test_incomplete_grid_raises(self):
        coords = np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 1.0], [0.0, 1.0, 1.0], [1.0, 1.0, 2.0]])
        with pytest.raises(ValueError, match="complete regular grid"):
            build_grid("cartesian", coords, np.zeros((4, 3)), MU)

    def test_duplicate_nodes_raise(self):
        coords = np.array([[0.0, 0.0, 0.0]] * 7 + [[1.0, 1.0, 1.0]])
        with pytest.raises(ValueError):
            build_grid("cartesian", coords, np.zeros((8, 3)), MU)

    def test_single_node_axis_raises(self):
        coords = np.array([[0.0, y, z] for y in (0.0, 1.0) for z in (0.0, 1.0)])
        with pytest.raises(ValueError, match="at least 2 nodes"):
            build_grid("cartesian", coords, np.zeros((4, 3)), MU)

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError, match="accelerations must have shape"):
            build_grid("cartesian", np.zeros((8, 3)), np.zeros((8, 2)), MU)


class TestCoordinates:
    @pytest.mark.parametrize(
        "lon,expected", [(0.0, 0.0), (-170.0, 190.0), (360.0, 0.0), (725.0, 5.0), (-1e-20, 0.0)]
    )
    def test_normalize_longitude(self, lon, expected):
        assert normalize_longitude(lon) == expected

    @pytest.mark.parametrize(
        "lon,lon_0,expected",
        [(10.0, 340.0, 370.0), (-20.0, 340.0, 340.0), (700.0, 340.0, 340.0), (180.0, 340.0, 540.0), (5.0, 0.0, 5.0)],
    )
    def test_longitude_in_window(self, lon, lon_0, expected):
        assert longitude_in_window(lon, lon_0) == expected

    def test_spherical_coordinates(self):
        r = _spherical_to_cartesian(30.0, 200.0, 7.0e6)
        lat, lon, radius = grid_coordinates(r, GridKind.SPHERICAL)
        assert lat == pytest.approx(30.0, abs=1e-12)
        assert lon == pytest.approx(200.0, abs=1e-12)
        assert radius == pytest.approx(7.0e6, rel=1e-15)

    def test_cartesian_coordinates(self):
        assert_array_equal(grid_coordinates([1.0, 2.0, 3.0], GridKind.CARTESIAN), [1.0, 2.0, 3.0])


# ===========================================================================
# Interpolation
# ===========================================================================
class TestGridInterpolation:
    @pytest.mark.parametrize("i,j,k", [(0, 0, 0), (3, 7, 1), (16, 35, 3), (8, 36, 2)])
    def test_trilinear_exact_at_nodes(self, i, j, k):
        grid = _spherical_grid()
        model = GridGravityModel(grid)
        coords = (grid.axes[0][i], grid.axes[1][j], grid.axes[2][k])
        assert_array_equal(model.interpolate_acceleration(coords), grid.acceleration[i, j, k])
        assert float(model.interpolate_potential(coords)) == grid.potential[i, j, k]

    def test_tricubic_at_nodes(self):
        grid = _spherical_grid()
        model = GridGravityModel(grid, GridInterpolation.TRICUBIC)
        coords = (grid.axes[0][5], grid.axes[1][11], grid.axes[2][2])
        assert_allclose(
            model.interpolate_acceleration(coords), grid.acceleration[5, 11, 2], rtol=1e-12
        )

    def test_longitude_190_equals_minus_170(self):
        model = GridGravityModel(_spherical_grid())
        a1 = model.interpolate_acceleration((12.5, 190.0, 7.05e6))
        a2 = model.interpolate_acceleration((12.5, -170.0, 7.05e6))
        assert_array_equal(a1, a2)

    def test_longitude_equivalent_positions(self):
        model = GridGravityModel(_spherical_grid())
        a1 = model.compute_acceleration(_spherical_to_cartesian(12.5, 190.0, 7.05e6))
        a2 = model.compute_acceleration(_spherical_to_cartesian(12.5, -170.0, 7.05e6))
        assert_allclose(a1, a2, rtol=1e-12)

    @pytest.mark.parametrize("interpolation,tol", [("trilinear", 1e-2), ("tricubic", 1e-3)])
    def test_interior_accuracy(self, interpolation, tol):
        model = GridGravityModel(_spherical_grid(), interpolation)
        r = _spherical_to_cartesian(23.0, 355.0, 7.03e6)
        expected, _ = _point_mass(r)
        a = np.asarray(model.compute_acceleration(r))
        assert np.linalg.norm(a - expected[0]) < tol * np.linalg.norm(expected[0])

    def test_tricubic_more_accurate(self):
        grid = _spherical_grid()
        r = _spherical_to_cartesian(-33.0, 123.0, 7.13e6)
        expected, _ = _point_mass(r)
        err_lin = np.linalg.norm(np.asarray(GridGravityModel(grid).compute_acceleration(r)) - expected[0])
        err_cub = np.linalg.norm(
            np.asarray(GridGravityModel(grid, "tricubic").compute_acceleration(r)) - expected[0]
        )
        assert err_cub < err_lin

    def test_cartesian_grid(self):
        grid = _cartesian_grid()
        model = GridGravityModel(grid)
        node = (grid.axes[0][2], grid.axes[1][3], grid.axes[2][4])
        assert_array_equal(model.compute_acceleration(node), grid.acceleration[2, 3, 4])

        r = np.array([6.93e6, 7.11e6, 1.2e5])
        expected, pot = _point_mass(r)
        assert_allclose(model.compute_acceleration(r), expected[0], rtol=1e-2)
        assert float(model.compute_potential(r)) == pytest.approx(pot[0], rel=1e-3)

    def test_tricubic_needs_four_nodes(self):
        coords = np.array([[x, y, z] for x in (0.0, 1.0) for y in (0.0, 1.0) for z in (1.0, 2.0)])
        grid = build_grid("cartesian", coords, np.zeros((8, 3)), MU)
        with pytest.raises(ValueError, match="at least 4 grid nodes"):
            GridGravityModel(grid, GridInterpolation.TRICUBIC)

    def test_outside_coordinates_raise(self):
        model = GridGravityModel(_spherical_grid())
        with pytest.raises(ValueError, match="outside the grid"):
            model.interpolate_acceleration((85.0, 0.0, 7.0e6))


# ===========================================================================
# Model behaviour
# ===========================================================================
class TestGridGravityModel:
    def test_mu(self):
        assert GridGravityModel(_spherical_grid()).mu == MU

    def test_contains(self):
        model = GridGravityModel(_spherical_grid())
        assert model.contains(_spherical_to_cartesian(0.0, 359.5, 7.0e6))
        assert not model.contains(_spherical_to_cartesian(0.0, 0.0, 8.0e6))
        assert not model.contains(_spherical_to_cartesian(85.0, 0.0, 7.0e6))

    def test_backup_used_outside(self):
        backup = _backup_model()
        model = GridGravityModel(_spherical_grid(), backup=backup)
        r = _spherical_to_cartesian(10.0, 20.0, 8.0e6)
        assert_array_equal(model.compute_acceleration(r), backup.compute_acceleration(r))
        assert float(model.compute_potential(r)) == float(backup.compute_potential(r))

    def test_regional_grid_across_prime_meridian(self):
        backup = _backup_model()
        model = GridGravityModel(_spherical_grid(lons=REGIONAL_LONS), backup=backup)
        inside = _spherical_to_cartesian(12.5, 5.0, 7.05e6)
        far = _spherical_to_cartesian(12.5, 180.0, 7.05e6)
        assert model.contains(inside)
        assert model.contains(_spherical_to_cartesian(12.5, -15.0, 7.05e6))
        assert not model.contains(far)
        assert not model.contains(_spherical_to_cartesian(12.5, 25.0, 7.05e6))

        expected, _ = _point_mass(inside)
        a = np.asarray(model.compute_acceleration(inside))
        assert np.linalg.norm(a - expected[0]) < 1e-2 * np.linalg.norm(expected[0])
        assert_array_equal(model.compute_acceleration(far), backup.compute_acceleration(far))

    def test_regional_grid_nodes_exact(self):
        grid = _spherical_grid(lons=REGIONAL_LONS)
        model = GridGravityModel(grid)
        assert_array_equal(model.interpolate_acceleration((LATS[3], -10.0, RADII[1])), grid.acceleration[3, 1, 1])
        assert_array_equal(model.interpolate_acceleration((LATS[3], 10.0, RADII[1])), grid.acceleration[3, 3, 1])

    def test_regional_grid_without_backup_raises(self):
        model = GridGravityModel(_spherical_grid(lons=REGIONAL_LONS))
        with pytest.raises(ValueError, match="no backup model"):
            model.compute_acceleration(_spherical_to_cartesian(12.5, 180.0, 7.05e6))

    @pytest.mark.parametrize("lat,lon,tol", [(20.0, 30.0, 1e-5), (23.0, 34.0, 1e-2)])
    def test_continuous_across_radial_boundary(self, lat, lon, tol):
        backup = _backup_model()
        model = GridGravityModel(_spherical_grid(), backup=backup)
        inner = _spherical_to_cartesian(lat, lon, RADII[-1] - 1.0)
        outer = _spherical_to_cartesian(lat, lon, RADII[-1] + 1.0)
        assert model.contains(inner)
        assert not model.contains(outer)

        a_in = np.asarray(model.compute_acceleration(inner))
        a_out = np.asarray(model.compute_acceleration(outer))
        assert np.linalg.norm(a_in - a_out) < tol * np.linalg.norm(a_out)
        u_in = float(model.compute_potential(inner))
        u_out = float(model.compute_potential(outer))
        assert u_in == pytest.approx(u_out, rel=tol)

    def test_no_backup_outside_raises(self):
        model = GridGravityModel(_spherical_grid())
        with pytest.raises(ValueError, match="no backup model"):
            model.compute_acceleration(_spherical_to_cartesian(10.0, 20.0, 8.0e6))

    def test_origin_raises(self):
        model = GridGravityModel(_spherical_grid(), backup=_backup_model())
        with pytest.raises(DegenerateGeometryError):
            model.compute_acceleration([0.0, 0.0, 0.0])

    def test_potential_missing_raises(self):
        model = GridGravityModel(_spherical_grid(with_potential=False))
        with pytest.raises(ValueError, match="no potential samples"):
            model.compute_potential(_spherical_to_cartesian(0.0, 0.0, 7.0e6))

    def test_partials_unavailable(self):
        model = GridGravityModel(_spherical_grid())
        r = _spherical_to_cartesian(0.0, 0.0, 7.0e6)
        with pytest.raises(JacobianUnavailableError):
            model.compute_dacc_dpos(r)
        with pytest.raises(JacobianUnavailableError):
            model.add_dacc_dstate(r, np.zeros((3, 3)), np.zeros((3, 3)))
        with pytest.raises(JacobianUnavailableError):
            model.add_dacc_dparam(r, None, np.zeros(3))

    def test_no_parameters(self):
        assert GridGravityModel(_spherical_grid()).get_parameters() == []

    def test_date_ignored(self):
        model = GridGravityModel(_spherical_grid())
        r = _spherical_to_cartesian(5.0, 5.0, 7.0e6)
        assert_array_equal(model.compute_acceleration(r, 100.0), model.compute_acceleration(r))

    def test_repr(self):
        assert "spherical" in repr(GridGravityModel(_spherical_grid()))


# ===========================================================================
# File loading
# ===========================================================================
class TestReadGrid:
    def test_read_cartesian(self, tmp_path):
        rows = [
            (x, y, z, -x * 1e-6, -y * 1e-6, -z * 1e-6, 1.0)
            for x in (7.0e6, 7.1e6) for y in (-1.0e5, 1.0e5) for z in (-1.0e5, 1.0e5)
        ]
        grid = read_cartesian_grid(_write_grid(tmp_path / "cube.txt", rows))
        assert grid.kind is GridKind.CARTESIAN
        assert grid.mu == MU
        assert grid.acceleration.shape == (2, 2, 2, 3)
        assert grid.acceleration[1, 0, 1, 0] == pytest.approx(-7.1)
        assert grid.potential is not None

    def test_read_spherical_without_potential(self, tmp_path):
        lons = np.arange(0.0, 360.0, 90.0)
        rows = [
            (lat, lon, rad, 0.0, 0.0, -9.0)
            for lat in (-10.0, 10.0) for lon in lons for rad in (7.0e6, 7.1e6)
        ]
        grid = read_spherical_grid(_write_grid(tmp_path / "shell.txt", rows))
        assert grid.kind is GridKind.SPHERICAL
        assert grid.potential is None
        assert grid.acceleration.shape == (2, 5, 2, 3)

    def test_missing_mu(self, tmp_path):
        rows = [(x, y, z, 0.0, 0.0, 0.0) for x in (0, 1) for y in (0, 1) for z in (1, 2)]
        with pytest.raises(ValueError, match="missing 'mu'"):
            read_cartesian_grid(_write_grid(tmp_path / "g.txt", rows, header=""))

    def test_inconsistent_columns(self, tmp_path):
        rows = [(x, y, z, 0.0, 0.0, 0.0) for x in (0, 1) for y in (0, 1) for z in (1, 2)]
        rows[3] = rows[3] + (1.0,)
        with pytest.raises(ValueError, match="columns"):
            read_cartesian_grid(_write_grid(tmp_path / "g.txt", rows))

    def test_incomplete(self, tmp_path):
        rows = [(x, y, z, 0.0, 0.0, 0.0) for x in (0, 1) for y in (0, 1) for z in (1, 2)]
        with pytest.raises(ValueError, match="complete regular grid"):
            read_cartesian_grid(_write_grid(tmp_path / "g.txt", rows[:-1]))

    def test_malformed_line(self, tmp_path):
        path = tmp_path / "g.txt"
        path.write_text("mu 1.0\n0 0 0 a b c\n")
        with pytest.raises(ValueError, match="Malformed grid line 2"):
            read_cartesian_grid(path)

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            read_spherical_grid("/nonexistent/grid.txt")
