"""Parser for ICGEM GFC gravity field files.

The ICGEM format has a free-form header terminated by ``end_of_head``
followed by one coefficient per line::

    gfc  n  m  C_nm  S_nm  [sigma_C  sigma_S]

ICGEM 2.0 ``gfct`` lines are read as static reference values; the
``dot``, ``trnd``, ``acos`` and ``asin`` time-variable terms are skipped.

Fortran-style ``D`` exponents (``0.1D-05``) are accepted.  Header keys
read: ``modelname``, ``earth_gravity_constant``, ``radius``,
``max_degree``, ``tide_system`` and ``norm``.

References:
    1. F. Barthelmes and C. Foerste, *The ICGEM-format*, GFZ Potsdam, 2011.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import numpy as np

from gravitax.coefficients._types import GravityFieldData
from gravitax.coefficients.table import CoefficientTable

logger = logging.getLogger(__name__)

# ``gfct`` lines carry the reference value of a time-variable coefficient
_COEFFICIENT_KEYS = ("gfc", "gfct")
_TIME_VARIABLE_KEYS = ("trnd", "dot", "acos", "asin")


def _to_float(token: str) -> float:
    return float(token.replace("D", "e").replace("d", "e"))


def read_gfc(filepath: str | Path) -> GravityFieldData:
    """Load a gravity field from an ICGEM GFC file.

    Args:
        filepath: Path to the ``.gfc`` file.

    Returns:
        GravityFieldData: Coefficients and reference constants.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If required header fields are missing or a coefficient
            line cannot be parsed.

    Examples:
        ```python
        from gravitax.coefficients import read_gfc
        field = read_gfc("EGM96.gfc")
        field.table.get(2, 0)
        ```
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Gravity model file not found: {filepath}")
    logger.info("Loading gravity field from %s", filepath)
    with open(filepath) as f:
        field = parse_gfc(f)
    logger.info(
        "Loaded %s: degree %d, order %d",
        field.model_name, field.table.degree, field.table.order,
    )
    return field


def parse_gfc(lines: Iterable[str]) -> GravityFieldData:
    """Parse ICGEM GFC content.

    Args:
        lines: Iterable of text lines (an open file works).

    Returns:
        GravityFieldData: Parsed gravity field.

    Raises:
        ValueError: If required header fields are missing or a coefficient
            line cannot be parsed.
    """
    model_name = "Unknown"
    gm = 0.0
    radius = 0.0
    n_max = -1
    tide_system = "unknown"
    normalization = "fully_normalized"

    # Read header
    in_header = True
    lines = iter(lines)
    for line in lines:
        line = line.strip()
        if line.startswith("end_of_head"):
            in_header = False
            break

        parts = line.split()
        if len(parts) < 2:
            continue

        key = parts[0].lower()
        value = parts[-1]

        if key == "modelname":
            model_name = value
        elif key == "earth_gravity_constant":
            gm = _to_float(value)
        elif key == "radius":
            radius = _to_float(value)
        elif key == "max_degree":
            n_max = int(value)
        elif key == "tide_system":
            tide_system = value
        elif key in ("norm", "normalization"):
            normalization = value

    if in_header:
        raise ValueError("GFC file missing 'end_of_head' marker.")
    if gm == 0.0:
        raise ValueError("GFC header missing 'earth_gravity_constant'.")
    if radius == 0.0:
        raise ValueError("GFC header missing 'radius'.")
    if n_max < 0:
        raise ValueError("GFC header missing 'max_degree'.")

    # Read coefficient data
    c = np.zeros((n_max + 1, n_max + 1), dtype=np.float64)
    s = np.zeros((n_max + 1, n_max + 1), dtype=np.float64)

    skipped = 0
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        parts = line.split()
        if not parts:
            continue
        key = parts[0].lower()
        if key in _TIME_VARIABLE_KEYS:
            skipped += 1
            continue
        if key not in _COEFFICIENT_KEYS:
            continue

        try:
            n = int(parts[1])
            m = int(parts[2])
            c_nm = _to_float(parts[3])
            s_nm = _to_float(parts[4])
        except (IndexError, ValueError) as exc:
            raise ValueError(
                f"Malformed GFC coefficient line {lineno} after header: {line!r}"
            ) from exc

        if m > n:
            raise ValueError(f"GFC coefficient with order > degree: (n={n}, m={m}).")
        if n <= n_max:
            c[n, m] = c_nm
            s[n, m] = s_nm

    if skipped:
        logger.debug("Skipped %d time-variable GFC lines (dot, trnd, acos, asin)", skipped)

    table = CoefficientTable(
        c, s, normalized=normalization.lower() != "unnormalized"
    )
    return GravityFieldData(
        model_name=model_name,
        mu=gm,
        ae=radius,
        table=table,
        tide_system=tide_system,
    )
