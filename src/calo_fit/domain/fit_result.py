"""Result record filled by the cluster line fit."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


def _zero_vector() -> NDArray[np.float64]:
    return np.zeros(3, dtype=np.float64)


@dataclass
class FitResult:
    """Outcome of one line fit, owned and reused by the caller.

    Every fit resets the record before doing any work, so a failed fit never
    leaves values from an earlier call behind. Fields are only meaningful when
    ``success`` is True.

    Attributes:
        direction: Unit direction of the fitted line
        intercept: Point on the line at the centroid's rotated-frame origin
        chi2: Mean chi2 per point of the transverse residuals
        rms: RMS perpendicular distance of the points from the line
        radial_direction_cosine: Cosine between direction and intercept
        success: Whether the last fit completed
    """

    direction: NDArray[np.float64] = field(default_factory=_zero_vector)
    intercept: NDArray[np.float64] = field(default_factory=_zero_vector)
    chi2: float = 0.0
    rms: float = 0.0
    radial_direction_cosine: float = 0.0
    success: bool = False

    def reset(self) -> None:
        self.direction = _zero_vector()
        self.intercept = _zero_vector()
        self.chi2 = 0.0
        self.rms = 0.0
        self.radial_direction_cosine = 0.0
        self.success = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "success": bool(self.success),
            "direction": [float(c) for c in self.direction],
            "intercept": [float(c) for c in self.intercept],
            "chi2": float(self.chi2),
            "rms": float(self.rms),
            "radial_direction_cosine": float(self.radial_direction_cosine),
        }


__all__ = ["FitResult"]
