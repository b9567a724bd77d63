# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "gravitax"]
#
# [tool.uv.sources]
# gravitax = { path = ".." }
# ///
"""Compare the spherical harmonic kernels on a gravity field file.

Loads a GFC gravity field, evaluates the Cunningham, Droziner and Balmino
kernels at random points on a shell above the reference radius, and reports
their agreement and evaluation time.  Optionally tabulates the field on a
spherical grid and reports the trilinear/tricubic interpolation error.

Requires gravitax to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/compare_methods.py FIELD.gfc [OPTIONS]

Examples:
    # Bundled degree-4 EGM96 test field
    uv run examples/compare_methods.py tests/data/egm96_deg4.gfc

    # Higher degree field, 500 points, with grid interpolation check
    uv run examples/compare_methods.py EGM2008.gfc --degree 60 --points 500 --grid
"""

import sys
import time
from pathlib import Path
from typing import Annotated

import jax.numpy as jnp
import numpy as np
import typer

from gravitax import GravityModel, HarmonicMethod, read_gfc, set_dtype
from gravitax.models import GridGravityModel, GridInterpolation, build_grid

set_dtype(jnp.float64)


def _shell_points(n: int, radius: float, seed: int) -> np.ndarray:
    rng = np.random.default_rng(seed)
    v = rng.standard_normal((n, 3))
    v /= np.linalg.norm(v, axis=1)[:, None]
    # Keep clear of the poles for the Droziner kernel
    v[:, 2] = np.clip(v[:, 2], -0.99, 0.99)
    v /= np.linalg.norm(v, axis=1)[:, None]
    return radius * v


def _evaluate(model: GravityModel, points: np.ndarray) -> tuple[np.ndarray, float]:
    model.compute_acceleration(points[0])  # compile
    t0 = time.perf_counter()
    acc = np.stack([np.asarray(model.compute_acceleration(p)) for p in points])
    return acc, time.perf_counter() - t0


def _grid_check(reference: GravityModel, points: np.ndarray, radius: float, step: float) -> None:
    lats = np.arange(-85.0, 85.0 + step / 2, step)
    lons = np.arange(0.0, 360.0, step)
    radii = radius + np.array([-30.0e3, -10.0e3, 10.0e3, 30.0e3])
    lat, lon, rad = np.meshgrid(lats, lons, radii, indexing="ij")
    coords = np.stack([lat.ravel(), lon.ravel(), rad.ravel()], axis=1)

    la = np.radians(coords[:, 0])
    lo = np.radians(coords[:, 1])
    xyz = coords[:, 2:3] * np.stack(
        [np.cos(la) * np.cos(lo), np.cos(la) * np.sin(lo), np.sin(la)], axis=1
    )
    acc = np.stack([np.asarray(reference.compute_acceleration(p)) for p in xyz])
    grid = build_grid("spherical", coords, acc, reference.mu)
    print(f"  Grid shape: {grid.acceleration.shape[:3]} ({coords.shape[0]} samples)")

    truth = np.stack([np.asarray(reference.compute_acceleration(p)) for p in points])
    for interpolation in GridInterpolation:
        model = GridGravityModel(grid, interpolation, backup=reference)
        approx = np.stack([np.asarray(model.compute_acceleration(p)) for p in points])
        err = np.linalg.norm(approx - truth, axis=1) / np.linalg.norm(truth, axis=1)
        print(f"  {interpolation.value:>9}: max relative error {np.max(err):.2e}")


def main(
    field: Annotated[Path, typer.Argument(help="GFC gravity field file")],
    degree: Annotated[int | None, typer.Option(help="Truncation degree")] = None,
    points: Annotated[int, typer.Option(help="Number of evaluation points")] = 100,
    altitude: Annotated[float, typer.Option(help="Shell altitude in km")] = 500.0,
    seed: Annotated[int, typer.Option(help="Random seed")] = 0,
    grid: Annotated[bool, typer.Option(help="Also check grid interpolation")] = False,
    grid_step: Annotated[float, typer.Option(help="Grid spacing in degrees")] = 5.0,
) -> None:
    """Compare gravity kernels on one field."""
    try:
        gfc = read_gfc(field)
    except (FileNotFoundError, ValueError) as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)

    degree = gfc.table.degree if degree is None else degree
    print(f"Field: {gfc.model_name} (degree {gfc.table.degree}), using degree {degree}")

    radius = gfc.ae + altitude * 1e3
    pts = _shell_points(points, radius, seed)

    results = {}
    for method in HarmonicMethod:
        model = GravityModel(gfc.table, gfc.ae, gfc.mu, degree=degree, order=degree, method=method)
        acc, elapsed = _evaluate(model, pts)
        results[method] = acc
        print(f"  {method.value:>10}: {1e3 * elapsed / points:.3f} ms/point")

    reference = results[HarmonicMethod.BALMINO]
    scale = np.linalg.norm(reference, axis=1)
    for method, acc in results.items():
        if method is HarmonicMethod.BALMINO:
            continue
        err = np.linalg.norm(acc - reference, axis=1) / scale
        print(f"  {method.value} vs balmino: max relative difference {np.max(err):.2e}")

    if grid:
        print("\nGrid interpolation:")
        balmino = GravityModel(gfc.table, gfc.ae, gfc.mu, degree=degree, order=degree)
        _grid_check(balmino, pts, radius, grid_step)


if __name__ == "__main__":
    typer.run(main)
