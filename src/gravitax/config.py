"""Module-wide floating-point precision configuration.

Provides ``set_dtype`` and ``get_dtype`` to control the float dtype used
throughout gravitax.  The default is ``jnp.float64``: high-degree harmonic
recursions and the agreement between the Cunningham, Droziner and Balmino
kernels depend on double precision.  JAX's 64-bit mode
(``jax_enable_x64``) is therefore enabled when this module is imported.

Call ``set_dtype`` **before** any JIT compilation, just like JAX's own
``jax.config.update("jax_enable_x64", True)``.  Under JIT, ``get_dtype()``
runs during tracing and its result is baked into the compiled program.
JAX retraces when input dtypes change, so passing float64 inputs after
``set_dtype(jnp.float64)`` triggers a correct retrace.

Host-side tables (normalization factors, Helmholtz constants, coefficient
storage) are always ``numpy.float64`` regardless of this setting.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

jax.config.update("jax_enable_x64", True)

_VALID_DTYPES = (jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64)

_dtype = jnp.float64


def set_dtype(dtype) -> None:
    """Set the module-wide float dtype for gravitax.

    Must be called **before** any ``jax.jit`` compilation.  In eager mode
    the change takes effect immediately.  Under JIT, ``get_dtype()`` runs
    during tracing and its value is baked into the compiled program.

    If *dtype* is ``jnp.float64``, JAX's 64-bit mode is (re-)enabled via
    ``jax.config.update("jax_enable_x64", True)``.

    Args:
        dtype: One of ``jnp.float16``, ``jnp.bfloat16``, ``jnp.float32``,
            or ``jnp.float64``.

    Raises:
        ValueError: If *dtype* is not a supported float type.
    """
    global _dtype
    if dtype not in _VALID_DTYPES:
        raise ValueError(
            f"Unsupported dtype {dtype}. Must be one of: "
            f"jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64"
        )
    if dtype == jnp.float64:
        jax.config.update("jax_enable_x64", True)
    _dtype = dtype


def get_dtype():
    """Return the current module-wide float dtype.

    Returns:
        The active float dtype (default ``jnp.float64``).
    """
    return _dtype
