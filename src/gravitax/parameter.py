"""Named mutable scalars used as model parameters.

A :class:`Parameter` is a small value box.  Models read its value at every
call, so updating ``param.value`` between two evaluations is seen by all
models sharing the same object.

Parameters compare by **identity**: two Parameters with the same name and
value are different parameters.  Gravity models rely on this when deciding
whether they own the parameter a partial derivative is requested for.
"""

from __future__ import annotations

import itertools

_ids = itertools.count()


class Parameter:
    """Named scalar with a mutable value and identity-based equality.

    Args:
        name: Human-readable name (e.g. ``"mu"``).  Not used for matching.
        value: Initial value.

    Examples:
        ```python
        from gravitax.parameter import Parameter
        mu = Parameter("mu", 3.986004415e14)
        mu.value = 3.986e14
        Parameter("mu", 1.0) == Parameter("mu", 1.0)  # False
        ```
    """

    __slots__ = ("name", "value", "_id")

    def __init__(self, name: str, value: float):
        self.name = name
        self.value = float(value)
        self._id = next(_ids)

    @property
    def id(self) -> int:
        """Monotonically assigned identifier, unique per instance."""
        return self._id

    def __repr__(self) -> str:
        return f"Parameter(name={self.name!r}, value={self.value!r}, id={self._id})"


def resolve_value(value: float | Parameter) -> float:
    """Return the current float value of a fixed number or a Parameter."""
    if isinstance(value, Parameter):
        return value.value
    return float(value)
