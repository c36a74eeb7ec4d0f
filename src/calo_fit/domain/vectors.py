"""Small helpers for 3-vectors held as read-only numpy arrays."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


def as_vector3(value: Any, name: str = "vector") -> NDArray[np.float64]:
    """Return ``value`` as a read-only float64 array of shape (3,).

    Raises:
        ValueError: If the value does not have exactly three finite components.
    """
    arr = np.array(value, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have 3 components, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} must be finite, got {arr.tolist()}")
    arr.flags.writeable = False
    return arr


def unit_vector(value: Any, name: str = "vector") -> NDArray[np.float64]:
    """Normalise ``value`` to unit length.

    Raises:
        ValueError: If the magnitude is zero (no direction to keep).
    """
    arr = np.array(value, dtype=np.float64).reshape(3)
    norm = float(np.linalg.norm(arr))
    if not np.isfinite(norm) or norm <= 0.0:
        raise ValueError(f"{name} has zero magnitude and cannot be normalised")
    out = arr / norm
    out.flags.writeable = False
    return out


def format_vector(value: Any) -> str:
    x, y, z = (float(c) for c in np.asarray(value, dtype=np.float64).reshape(3))
    return f"({x:.6g}, {y:.6g}, {z:.6g})"
