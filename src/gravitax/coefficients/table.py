"""Immutable storage of spherical harmonic Stokes coefficients.

:class:`CoefficientTable` keeps C and S as dense ``(degree + 1, order + 1)``
float64 arrays indexed ``[n, m]``.  Entries above the diagonal (``m > n``)
and beyond the declared order are zero, so a rectangular-truncated table
(``order < degree``) behaves as if the missing coefficients were zero.

The arrays are marked read-only; every transformation returns a new table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike

from gravitax.coefficients.normalization import denormalize, normalize


def _as_dense(values: ArrayLike | Sequence[Sequence[float]], label: str) -> np.ndarray:
    """Convert a 2-D array or ragged triangular rows to a dense array."""
    if isinstance(values, np.ndarray):
        arr = values.astype(np.float64)
    else:
        rows = [np.atleast_1d(np.asarray(row, dtype=np.float64)) for row in values]
        if not rows:
            raise ValueError(f"{label} table must contain at least one row.")
        if any(row.ndim != 1 for row in rows):
            raise ValueError(f"{label} table rows must be one-dimensional.")
        width = max(row.shape[0] for row in rows)
        arr = np.zeros((len(rows), width), dtype=np.float64)
        for n, row in enumerate(rows):
            arr[n, : row.shape[0]] = row
    if arr.ndim != 2:
        raise ValueError(f"{label} table must be 2-D, got shape {arr.shape}.")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError(f"{label} table must not be empty, got shape {arr.shape}.")
    return arr


class CoefficientTable:
    """Triangular table of Stokes coefficients (C_nm, S_nm).

    Args:
        c: C coefficients, either a 2-D array indexed ``[n, m]`` or a list
            of rows (row *n* holding up to ``n + 1`` values).
        s: S coefficients, same layout and shape as *c*.
        normalized: Whether the coefficients are fully normalized.

    Raises:
        ValueError: If C and S have different shapes, are not 2-D, or have
            more orders than degrees.

    Examples:
        ```python
        from gravitax.coefficients import CoefficientTable
        table = CoefficientTable(
            [[1.0], [0.0, 0.0], [-4.84e-4, 0.0, 2.44e-6]],
            [[0.0], [0.0, 0.0], [0.0, 0.0, -1.40e-6]],
        )
        table.degree, table.order  # (2, 2)
        ```
    """

    def __init__(
        self,
        c: ArrayLike | Sequence[Sequence[float]],
        s: ArrayLike | Sequence[Sequence[float]],
        normalized: bool = True,
    ):
        c_arr = _as_dense(c, "C")
        s_arr = _as_dense(s, "S")
        if c_arr.shape != s_arr.shape:
            raise ValueError(
                f"C and S tables must have the same dimensions, got "
                f"{c_arr.shape} and {s_arr.shape}."
            )
        degree = c_arr.shape[0] - 1
        order = c_arr.shape[1] - 1
        if order > degree:
            raise ValueError(
                f"Coefficient table order ({order}) cannot exceed its degree ({degree})."
            )

        # Zero the unused upper triangle and S_n0
        mask = np.tril(np.ones((degree + 1, order + 1), dtype=bool))
        c_arr = np.where(mask, c_arr, 0.0)
        s_arr = np.where(mask, s_arr, 0.0)
        s_arr[:, 0] = 0.0

        c_arr.flags.writeable = False
        s_arr.flags.writeable = False
        self._c = c_arr
        self._s = s_arr
        self._normalized = bool(normalized)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def c(self) -> np.ndarray:
        """Read-only C array, shape ``(degree + 1, order + 1)``."""
        return self._c

    @property
    def s(self) -> np.ndarray:
        """Read-only S array, shape ``(degree + 1, order + 1)``."""
        return self._s

    @property
    def degree(self) -> int:
        """Maximum degree held by the table."""
        return self._c.shape[0] - 1

    @property
    def order(self) -> int:
        """Maximum order held by the table."""
        return self._c.shape[1] - 1

    @property
    def normalized(self) -> bool:
        """Whether the coefficients are fully normalized."""
        return self._normalized

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def from_file(cls, filepath: str | Path) -> CoefficientTable:
        """Load the coefficient table of an ICGEM GFC file.

        Args:
            filepath: Path to the ``.gfc`` file.

        Returns:
            CoefficientTable: The file's coefficients.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is malformed.
        """
        from gravitax.coefficients._parsers import read_gfc

        return read_gfc(filepath).table

    @classmethod
    def zeros(cls, degree: int, order: int, normalized: bool = True) -> CoefficientTable:
        """Table of the given size with all coefficients set to zero."""
        shape = (degree + 1, order + 1)
        return cls(np.zeros(shape), np.zeros(shape), normalized=normalized)

    # ------------------------------------------------------------------
    # Coefficient access
    # ------------------------------------------------------------------

    def check_bounds(self, degree: int, order: int) -> None:
        """Validate a requested truncation against the table.

        Args:
            degree: Requested maximum degree.
            order: Requested maximum order.

        Raises:
            ValueError: If either value is negative, ``order > degree``, or
                the table is smaller than requested.
        """
        if degree < 0 or order < 0:
            raise ValueError(
                f"Degree and order must be non-negative, got "
                f"(degree={degree}, order={order})."
            )
        if order > degree:
            raise ValueError(
                f"Order (m={order}) cannot exceed degree (n={degree})."
            )
        if degree > self.degree:
            raise ValueError(
                f"Requested degree (n={degree}) exceeds the table's degree "
                f"({self.degree})."
            )
        if order > self.order:
            raise ValueError(
                f"Requested order (m={order}) exceeds the table's order "
                f"({self.order})."
            )

    def get(self, n: int, m: int) -> tuple[float, float]:
        """Retrieve the (C_nm, S_nm) coefficients for degree *n*, order *m*.

        Args:
            n: Degree of the harmonic.
            m: Order of the harmonic.

        Returns:
            tuple[float, float]: (C_nm, S_nm) coefficient pair.

        Raises:
            ValueError: If (n, m) is outside the table.
        """
        if n < 0 or m < 0 or m > n or n > self.degree or m > self.order:
            raise ValueError(
                f"Requested (n={n}, m={m}) is outside the table "
                f"(degree={self.degree}, order={self.order})."
            )
        return float(self._c[n, m]), float(self._s[n, m])

    def rows(self) -> tuple[list[list[float]], list[list[float]]]:
        """Triangular row-major view of the table.

        Returns:
            tuple: ``(c_rows, s_rows)`` where row *n* holds the
            ``min(n, order) + 1`` coefficients of degree *n*.
        """
        c_rows = []
        s_rows = []
        for n in range(self.degree + 1):
            width = min(n, self.order) + 1
            c_rows.append(self._c[n, :width].tolist())
            s_rows.append(self._s[n, :width].tolist())
        return c_rows, s_rows

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------

    def truncate(self, degree: int, order: int) -> CoefficientTable:
        """Return a copy limited to the given degree and order.

        Args:
            degree: New maximum degree (<= current degree).
            order: New maximum order (<= *degree* and <= current order).

        Returns:
            CoefficientTable: The truncated table.

        Raises:
            ValueError: If validation fails.
        """
        self.check_bounds(degree, order)
        if degree == self.degree and order == self.order:
            return self
        return CoefficientTable(
            self._c[: degree + 1, : order + 1],
            self._s[: degree + 1, : order + 1],
            normalized=self._normalized,
        )

    def to_normalized(self) -> CoefficientTable:
        """Return the table in the fully normalized convention."""
        if self._normalized:
            return self
        return CoefficientTable(normalize(self._c), normalize(self._s), normalized=True)

    def to_unnormalized(self) -> CoefficientTable:
        """Return the table in the unnormalized convention."""
        if not self._normalized:
            return self
        return CoefficientTable(
            denormalize(self._c), denormalize(self._s), normalized=False
        )

    def with_corrections(self, dc: ArrayLike, ds: ArrayLike) -> CoefficientTable:
        """Return a new table with correction arrays added element-wise.

        Args:
            dc: C corrections, same shape as the table.
            ds: S corrections, same shape as the table.

        Returns:
            CoefficientTable: The corrected table, same convention.

        Raises:
            ValueError: If the correction shapes do not match.
        """
        dc = np.asarray(dc, dtype=np.float64)
        ds = np.asarray(ds, dtype=np.float64)
        if dc.shape != self._c.shape or ds.shape != self._s.shape:
            raise ValueError(
                f"Correction shapes {dc.shape}/{ds.shape} do not match the "
                f"table shape {self._c.shape}."
            )
        return CoefficientTable(self._c + dc, self._s + ds, normalized=self._normalized)

    def __repr__(self) -> str:
        convention = "normalized" if self._normalized else "unnormalized"
        return (
            f"CoefficientTable(degree={self.degree}, order={self.order}, "
            f"{convention})"
        )
