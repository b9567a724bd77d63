"""Tabulated (grid) gravity model.

Replaces the harmonic expansion with acceleration and potential samples
precomputed on a regular grid and interpolated at run time.  Two grid
geometries are supported:

- ``GridKind.CARTESIAN``: a cube of nodes in body-fixed x, y, z [m]
- ``GridKind.SPHERICAL``: a shell of nodes in latitude [deg],
  longitude [deg] and radius [m]

Stored accelerations are body-fixed Cartesian components in both cases.
Spherical longitudes live in one contiguous window ``[lon_0, lon_0 + 360)``
chosen when the grid is built, so 190 deg and -170 deg address the same node
and a regional grid spanning the prime meridian (say -20 to 20 deg) keeps
its columns adjacent.  A grid whose longitudes cover the whole circle gets a
wrap-around column at ``lon_0 + 360``; input that already lists both seam
columns (-180 and 180, or 0 and 360) is accepted when the two agree.

Outside the grid's bounding volume the model delegates to a backup
:class:`~gravitax.models.harmonic.GravityModel`.  Grid models provide no
partial derivatives.

Grid data is held in a :class:`GridData` named tuple, built from scattered
node samples by :func:`build_grid` or loaded from whitespace-separated
text files by :func:`read_cartesian_grid` / :func:`read_spherical_grid`.
"""

from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import NamedTuple

import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike
from scipy.interpolate import RegularGridInterpolator

from gravitax.config import get_dtype
from gravitax.errors import JacobianUnavailableError
from gravitax.models._validation import check_position
from gravitax.models.harmonic import GravityModel
from gravitax.parameter import Parameter

logger = logging.getLogger(__name__)

_WRAP_TOL = 1.0e-9


class GridKind(enum.Enum):
    """Geometry of a gravity grid."""

    CARTESIAN = "cartesian"
    SPHERICAL = "spherical"


class GridInterpolation(enum.Enum):
    """Interpolation scheme used between grid nodes.

    - ``TRILINEAR``: linear blend of the 8 corners of the enclosing cell.
    - ``TRICUBIC``: cubic spline through a 4-node stencil per axis.
    """

    TRILINEAR = "trilinear"
    TRICUBIC = "tricubic"


class GridData(NamedTuple):
    """Regular grid of gravity samples.

    Attributes:
        kind: Grid geometry.
        axes: Three strictly increasing node coordinate arrays.  Cartesian:
            x, y, z [m].  Spherical: latitude [deg], longitude [deg],
            radius [m].  Spherical longitudes start in ``[0, 360)`` and
            may run past 360 for grids crossing the prime meridian.
        acceleration: Body-fixed acceleration [m/s^2] at each node, shape
            ``(n1, n2, n3, 3)``.
        potential: Potential [m^2/s^2] at each node, shape
            ``(n1, n2, n3)``, or ``None`` when not tabulated.
        mu: Reference gravitational parameter of the grid [m^3/s^2].
    """

    kind: GridKind
    axes: tuple[np.ndarray, np.ndarray, np.ndarray]
    acceleration: np.ndarray
    potential: np.ndarray | None
    mu: float


# ---------------------------------------------------------------------------
# Coordinates
# ---------------------------------------------------------------------------


def normalize_longitude(lon: float) -> float:
    """Map a longitude in degrees into ``[0, 360)``."""
    lon = float(lon) % 360.0
    if lon >= 360.0:
        lon -= 360.0
    return lon


def longitude_in_window(lon: float, lon_0: float) -> float:
    """Map a longitude in degrees into ``[lon_0, lon_0 + 360)``."""
    lon = lon_0 + (float(lon) - lon_0) % 360.0
    if lon >= lon_0 + 360.0:
        lon -= 360.0
    return lon


def grid_coordinates(position: ArrayLike, kind: GridKind) -> np.ndarray:
    """Convert a body-fixed position into grid coordinates.

    Args:
        position: Body-fixed position [m], shape ``(3,)``.
        kind: Grid geometry.

    Returns:
        np.ndarray: ``(x, y, z)`` for Cartesian grids or
        ``(latitude, longitude, radius)`` (deg, deg, m) for spherical
        grids, longitude normalized into ``[0, 360)``.
    """
    p = np.asarray(position, dtype=np.float64)[:3]
    if kind is GridKind.CARTESIAN:
        return p.copy()
    radius = float(np.linalg.norm(p))
    lat = float(np.degrees(np.arctan2(p[2], np.hypot(p[0], p[1]))))
    lon = normalize_longitude(np.degrees(np.arctan2(p[1], p[0])))
    return np.array([lat, lon, radius])


# ---------------------------------------------------------------------------
# Grid construction and loading
# ---------------------------------------------------------------------------


def build_grid(
    kind: GridKind | str,
    coords: ArrayLike,
    acceleration: ArrayLike,
    mu: float,
    potential: ArrayLike | None = None,
) -> GridData:
    """Arrange scattered node samples into a regular grid.

    Args:
        kind: Grid geometry.
        coords: Node coordinates, shape ``(N, 3)``.  Spherical longitudes
            may be given in any range.
        acceleration: Body-fixed acceleration at each node, shape ``(N, 3)``.
        mu: Reference gravitational parameter [m^3/s^2].
        potential: Optional potential at each node, shape ``(N,)``.

    Returns:
        GridData: The regular grid.

    Raises:
        ValueError: If the nodes do not form a complete regular grid with
            at least 2 nodes per axis, or array shapes are inconsistent.
    """
    kind = GridKind(kind)
    coords = np.array(coords, dtype=np.float64)
    acc = np.asarray(acceleration, dtype=np.float64)
    if coords.ndim != 2 or coords.shape[1] != 3:
        raise ValueError(f"Grid coordinates must have shape (N, 3), got {coords.shape}.")
    if acc.shape != coords.shape:
        raise ValueError(
            f"Grid accelerations must have shape {coords.shape}, got {acc.shape}."
        )
    pot = None
    if potential is not None:
        pot = np.asarray(potential, dtype=np.float64)
        if pot.shape != (coords.shape[0],):
            raise ValueError(
                f"Grid potentials must have shape ({coords.shape[0]},), got {pot.shape}."
            )

    if kind is GridKind.SPHERICAL:
        coords, acc, pot = _drop_seam_column(coords, acc, pot)
        lon_0 = _longitude_origin(coords[:, 1])
        coords[:, 1] = [longitude_in_window(lon, lon_0) for lon in coords[:, 1]]

    axes = tuple(np.unique(coords[:, i]) for i in range(3))
    shape = tuple(len(a) for a in axes)
    if min(shape) < 2:
        raise ValueError(f"Grid needs at least 2 nodes per axis, got shape {shape}.")
    if int(np.prod(shape)) != coords.shape[0]:
        raise ValueError(
            f"{coords.shape[0]} samples do not form a complete regular grid "
            f"of shape {shape}."
        )

    idx = tuple(np.searchsorted(axes[i], coords[:, i]) for i in range(3))
    flat = np.ravel_multi_index(idx, shape)
    if np.unique(flat).shape[0] != coords.shape[0]:
        raise ValueError("Grid contains duplicate nodes.")

    acc_grid = np.empty(shape + (3,), dtype=np.float64)
    acc_grid[idx] = acc
    pot_grid = None
    if pot is not None:
        pot_grid = np.empty(shape, dtype=np.float64)
        pot_grid[idx] = pot

    if kind is GridKind.SPHERICAL:
        axes, acc_grid, pot_grid = _wrap_longitude(axes, acc_grid, pot_grid)

    for arr in (*axes, acc_grid, pot_grid):
        if arr is not None:
            arr.flags.writeable = False

    return GridData(kind=kind, axes=axes, acceleration=acc_grid, potential=pot_grid, mu=float(mu))


def _drop_seam_column(coords, acc, pot):
    """Remove a ``lon_0 + 360`` column that repeats the ``lon_0`` column.

    Raises:
        ValueError: If the two seam columns hold different nodes or
            different samples.
    """
    lons = np.unique(coords[:, 1])
    if lons.shape[0] < 3 or abs(lons[-1] - lons[0] - 360.0) > _WRAP_TOL:
        return coords, acc, pot

    seam = coords[:, 1] == lons[-1]
    first = coords[:, 1] == lons[0]
    a = np.lexsort((coords[seam, 2], coords[seam, 0]))
    b = np.lexsort((coords[first, 2], coords[first, 0]))
    if a.shape != b.shape or not np.array_equal(
        coords[seam][a][:, [0, 2]], coords[first][b][:, [0, 2]]
    ):
        raise ValueError(
            f"Longitude seam columns at {lons[0]} and {lons[-1]} deg hold different nodes."
        )

    pairs = [(acc[seam][a], acc[first][b])]
    if pot is not None:
        pairs.append((pot[seam][a], pot[first][b]))
    for x, y in pairs:
        scale = max(float(np.max(np.abs(y))), 1.0e-300)
        if not np.allclose(x, y, rtol=_WRAP_TOL, atol=_WRAP_TOL * scale):
            raise ValueError(
                f"Samples at longitudes {lons[0]} and {lons[-1]} deg disagree; "
                f"they must describe the same seam column."
            )

    logger.debug("Dropping duplicate seam column at longitude %s deg", lons[-1])
    keep = ~seam
    return coords[keep], acc[keep], None if pot is None else pot[keep]


def _longitude_origin(lons: np.ndarray) -> float:
    """Start of the contiguous longitude window holding every column.

    The window opens after the widest gap between neighbouring columns
    around the circle, so full-circle grids start at their smallest
    longitude in ``[0, 360)``.
    """
    lon = np.unique([normalize_longitude(v) for v in lons])
    if lon.shape[0] < 2:
        return 0.0
    gaps = np.diff(lon)
    k = int(np.argmax(gaps))
    if lon[0] + 360.0 - lon[-1] >= gaps[k] - _WRAP_TOL:
        return float(lon[0])
    return float(lon[k + 1])


def _wrap_longitude(axes, acc_grid, pot_grid):
    """Append a ``lon_0 + 360`` column when longitudes cover the full circle."""
    lon = axes[1]
    steps = np.diff(lon)
    step = steps[0]
    uniform = np.allclose(steps, step, rtol=0.0, atol=_WRAP_TOL)
    if not uniform or abs(lon[-1] + step - (lon[0] + 360.0)) > _WRAP_TOL:
        return axes, acc_grid, pot_grid

    lon = np.append(lon, lon[0] + 360.0)
    acc_grid = np.concatenate([acc_grid, acc_grid[:, :1]], axis=1)
    if pot_grid is not None:
        pot_grid = np.concatenate([pot_grid, pot_grid[:, :1]], axis=1)
    return (axes[0], lon, axes[2]), acc_grid, pot_grid


def _read_grid(filepath: str | Path, kind: GridKind) -> GridData:
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Gravity grid file not found: {filepath}")
    logger.info("Loading %s gravity grid from %s", kind.value, filepath)

    mu = None
    rows = []
    with open(filepath) as f:
        for lineno, line in enumerate(f, start=1):
            line = line.split("#", 1)[0].strip()
            if not line:
                continue
            parts = line.split()
            if parts[0].lower() == "mu":
                if len(parts) != 2:
                    raise ValueError(f"Malformed 'mu' header on line {lineno}: {line!r}")
                mu = float(parts[1])
                continue
            try:
                values = [float(p) for p in parts]
            except ValueError as exc:
                raise ValueError(f"Malformed grid line {lineno}: {line!r}") from exc
            rows.append(values)

    if mu is None:
        raise ValueError("Gravity grid file missing 'mu' header.")
    if not rows:
        raise ValueError("Gravity grid file contains no samples.")
    widths = {len(r) for r in rows}
    if len(widths) != 1 or widths.pop() not in (6, 7):
        raise ValueError(
            "Gravity grid samples must all have 6 columns (coordinates and "
            "acceleration) or all have 7 (with potential)."
        )

    data = np.array(rows, dtype=np.float64)
    potential = data[:, 6] if data.shape[1] == 7 else None
    grid = build_grid(kind, data[:, :3], data[:, 3:6], mu, potential)
    logger.info("Loaded gravity grid of shape %s", grid.acceleration.shape[:3])
    return grid


def read_cartesian_grid(filepath: str | Path) -> GridData:
    """Load a Cartesian gravity grid from a text file.

    The file holds a ``mu <value>`` header line and one sample per line::

        x  y  z  ax  ay  az  [potential]

    in metres, m/s^2 and m^2/s^2.  ``#`` starts a comment.

    Args:
        filepath: Path to the grid file.

    Returns:
        GridData: The loaded grid.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is malformed or the samples do not form a
            complete regular grid.
    """
    return _read_grid(filepath, GridKind.CARTESIAN)


def read_spherical_grid(filepath: str | Path) -> GridData:
    """Load a spherical-shell gravity grid from a text file.

    Same layout as :func:`read_cartesian_grid` with the first three
    columns being latitude [deg], longitude [deg] and radius [m].

    Args:
        filepath: Path to the grid file.

    Returns:
        GridData: The loaded grid.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is malformed or the samples do not form a
            complete regular grid.
    """
    return _read_grid(filepath, GridKind.SPHERICAL)


# ---------------------------------------------------------------------------
# Interpolation
# ---------------------------------------------------------------------------


def interp_trilinear(axes: tuple[Array, Array, Array], values: Array, q: Array) -> Array:
    """Trilinear interpolation on a regular grid.

    Exact at grid nodes.  Points outside the grid are extrapolated from the
    nearest boundary cell; callers check bounds first.

    Args:
        axes: Three increasing node coordinate arrays.
        values: Node values, shape ``(n1, n2, n3, ...)``.
        q: Query point, shape ``(3,)``.

    Returns:
        Array: Interpolated value, shape ``values.shape[3:]``.
    """
    idx = []
    frac = []
    for i in range(3):
        x = axes[i]
        k = jnp.clip(jnp.searchsorted(x, q[i], side="right") - 1, 0, x.shape[0] - 2)
        idx.append(k)
        frac.append((q[i] - x[k]) / (x[k + 1] - x[k]))

    result = jnp.zeros(values.shape[3:], dtype=values.dtype)
    for d0 in (0, 1):
        w0 = frac[0] if d0 else 1.0 - frac[0]
        for d1 in (0, 1):
            w1 = frac[1] if d1 else 1.0 - frac[1]
            for d2 in (0, 1):
                w2 = frac[2] if d2 else 1.0 - frac[2]
                corner = values[idx[0] + d0, idx[1] + d1, idx[2] + d2]
                result = result + (w0 * w1 * w2) * corner
    return result


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


class GridGravityModel:
    """Gravity model interpolating precomputed grid samples.

    Args:
        grid: The gravity samples.
        interpolation: Interpolation scheme.
        backup: Analytic model used outside the grid's bounding volume.

    Raises:
        ValueError: If tricubic interpolation is requested on a grid with
            fewer than 4 nodes along an axis.

    Examples:
        ```python
        from gravitax.models import GridGravityModel, read_cartesian_grid
        grid = read_cartesian_grid("cube.txt")
        model = GridGravityModel(grid)
        a = model.compute_acceleration([-1.0e4, -5.0e3, -1.0e4])
        ```
    """

    def __init__(
        self,
        grid: GridData,
        interpolation: GridInterpolation | str = GridInterpolation.TRILINEAR,
        backup: GravityModel | None = None,
    ):
        interpolation = GridInterpolation(interpolation)
        self._grid = grid
        self._interpolation = interpolation
        self._backup = backup
        self._lower = np.array([a[0] for a in grid.axes])
        self._upper = np.array([a[-1] for a in grid.axes])
        self._lon_0 = float(grid.axes[1][0])

        self._splines = None
        if interpolation is GridInterpolation.TRICUBIC:
            if min(len(a) for a in grid.axes) < 4:
                raise ValueError(
                    "Tricubic interpolation needs at least 4 grid nodes per axis."
                )
            acc_spline = RegularGridInterpolator(grid.axes, grid.acceleration, method="cubic")
            pot_spline = None
            if grid.potential is not None:
                pot_spline = RegularGridInterpolator(grid.axes, grid.potential, method="cubic")
            self._splines = (acc_spline, pot_spline)

    @property
    def mu(self) -> float:
        """Reference gravitational parameter embedded in the grid."""
        return self._grid.mu

    @property
    def grid(self) -> GridData:
        return self._grid

    @property
    def interpolation(self) -> GridInterpolation:
        return self._interpolation

    @property
    def backup(self) -> GravityModel | None:
        return self._backup

    def get_parameters(self) -> list[Parameter]:
        """Grid models own no parameters."""
        return []

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def contains(self, position: ArrayLike) -> bool:
        """Whether a body-fixed position lies inside the grid volume."""
        return self._inside(self._locate(check_position(position)))

    def _inside(self, q: np.ndarray) -> bool:
        return bool(np.all(q >= self._lower) and np.all(q <= self._upper))

    def _coords(self, coords: ArrayLike) -> np.ndarray:
        q = np.array(coords, dtype=np.float64).reshape(-1)[:3]
        if self._grid.kind is GridKind.SPHERICAL:
            q[1] = longitude_in_window(q[1], self._lon_0)
        return q

    def _locate(self, position: ArrayLike) -> np.ndarray:
        q = grid_coordinates(position, self._grid.kind)
        if self._grid.kind is GridKind.SPHERICAL:
            q[1] = longitude_in_window(q[1], self._lon_0)
        return q

    def interpolate_acceleration(self, coords: ArrayLike) -> Array:
        """Interpolate the acceleration at grid coordinates.

        Args:
            coords: ``(x, y, z)`` [m] for Cartesian grids or
                ``(latitude, longitude, radius)`` [deg, deg, m] for
                spherical grids; longitudes in any range.

        Returns:
            Body-fixed acceleration [m/s^2], shape ``(3,)``.

        Raises:
            ValueError: If the coordinates lie outside the grid.
        """
        q = self._coords(coords)
        if not self._inside(q):
            raise ValueError(f"Grid coordinates {q} lie outside the grid.")
        return self._interpolate(q, self._grid.acceleration, 0)

    def interpolate_potential(self, coords: ArrayLike) -> Array:
        """Interpolate the potential at grid coordinates.

        Args:
            coords: Grid coordinates, as for :meth:`interpolate_acceleration`.

        Returns:
            Scalar potential [m^2/s^2].

        Raises:
            ValueError: If the coordinates lie outside the grid or the grid
                holds no potential samples.
        """
        if self._grid.potential is None:
            raise ValueError("Gravity grid holds no potential samples.")
        q = self._coords(coords)
        if not self._inside(q):
            raise ValueError(f"Grid coordinates {q} lie outside the grid.")
        return self._interpolate(q, self._grid.potential, 1)

    def _interpolate(self, q: np.ndarray, values: np.ndarray, which: int) -> Array:
        _float = get_dtype()
        if self._interpolation is GridInterpolation.TRICUBIC:
            return jnp.asarray(self._splines[which](q[None, :])[0], dtype=_float)
        axes = tuple(jnp.asarray(a, dtype=_float) for a in self._grid.axes)
        return interp_trilinear(axes, jnp.asarray(values, dtype=_float), jnp.asarray(q, dtype=_float))

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _require_backup(self, q: np.ndarray) -> GravityModel:
        if self._backup is None:
            raise ValueError(
                f"Position (grid coordinates {q}) lies outside the gravity grid "
                f"and no backup model is configured."
            )
        logger.debug("Position outside gravity grid, using backup model")
        return self._backup

    def compute_acceleration(self, position: ArrayLike, date=None) -> Array:
        """Gravitational acceleration at a body-fixed position.

        Args:
            position: Body-fixed position [m].  Shape ``(3,)`` or ``(6,)``.
            date: Unused; grid samples are static.

        Returns:
            Acceleration in the body-fixed frame [m/s^2], shape ``(3,)``.

        Raises:
            DegenerateGeometryError: At the origin.
            ValueError: Outside the grid when no backup model is set.
        """
        p = check_position(position)
        q = self._locate(p)
        if not self._inside(q):
            return self._require_backup(q).compute_acceleration(p)
        return self._interpolate(q, self._grid.acceleration, 0)

    def compute_potential(self, position: ArrayLike, date=None) -> Array:
        """Gravitational potential at a body-fixed position.

        Args:
            position: Body-fixed position [m].
            date: Unused; grid samples are static.

        Returns:
            Scalar potential [m^2/s^2].

        Raises:
            ValueError: If the grid holds no potential samples, or outside
                the grid when no backup model is set.
        """
        p = check_position(position)
        q = self._locate(p)
        if not self._inside(q):
            return self._require_backup(q).compute_potential(p)
        if self._grid.potential is None:
            raise ValueError("Gravity grid holds no potential samples.")
        return self._interpolate(q, self._grid.potential, 1)

    def compute_dacc_dpos(self, position: ArrayLike, date=None) -> Array:
        """Not available for grid models.

        Raises:
            JacobianUnavailableError: Always.
        """
        raise JacobianUnavailableError("Jacobian is not defined for grid gravity models.")

    def add_dacc_dstate(self, position, dacc_dpos, dacc_dvel, date=None):
        """Not available for grid models.

        Raises:
            JacobianUnavailableError: Always.
        """
        raise JacobianUnavailableError("Jacobian is not defined for grid gravity models.")

    def add_dacc_dparam(self, position, parameter, dacc_dparam, date=None):
        """Not available for grid models.

        Raises:
            JacobianUnavailableError: Always.
        """
        raise JacobianUnavailableError(
            "Parameter derivatives are not defined for grid gravity models."
        )

    def __repr__(self) -> str:
        return (
            f"GridGravityModel(kind={self._grid.kind.value}, "
            f"shape={self._grid.acceleration.shape[:3]}, "
            f"interpolation={self._interpolation.value}, "
            f"backup={'yes' if self._backup is not None else 'no'})"
        )
