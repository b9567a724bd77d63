from pathlib import Path

import jax.numpy as jnp
import numpy as np
import pytest

from gravitax.coefficients import CoefficientTable, read_gfc
from gravitax.config import set_dtype

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture(autouse=True)
def _ensure_float64():
    """Set float64 precision before every test.

    test_config.py switches the dtype around; this fixture restores float64
    for every other test regardless of execution order.
    """
    set_dtype(jnp.float64)


@pytest.fixture()
def egm96_path() -> Path:
    """Path to the bundled EGM96 file truncated to degree/order 4."""
    return DATA_DIR / "egm96_deg4.gfc"


@pytest.fixture()
def egm96_field(egm96_path):
    """EGM96 degree/order 4 gravity field."""
    return read_gfc(egm96_path)


def kaula_table(degree: int, order: int, seed: int = 0) -> CoefficientTable:
    """Normalized table with random coefficients following Kaula's rule.

    ``C_20`` is set to the EGM96 value so the field looks Earth-like.
    """
    rng = np.random.default_rng(seed)
    n = np.arange(degree + 1, dtype=np.float64)[:, None]
    scale = 1.0e-5 / np.maximum(n, 1.0) ** 2
    c = rng.standard_normal((degree + 1, order + 1)) * scale
    s = rng.standard_normal((degree + 1, order + 1)) * scale
    c[0, :] = 0.0
    c[1, :] = 0.0
    s[:2, :] = 0.0
    c[0, 0] = 1.0
    if degree >= 2:
        c[2, 0] = -4.84165371736e-4
    return CoefficientTable(c, s, normalized=True)


@pytest.fixture()
def make_table():
    """Factory fixture building Kaula-rule coefficient tables."""
    return kaula_table
