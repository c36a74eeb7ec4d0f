"""Rotated fit frame for the cluster line fit.

The fit works in a frame where the initial direction estimate lies along a
canonical axis, so the line can be described as two 1D regressions of the
transverse coordinates (p, q) against the longitudinal coordinate r.

The rotation is the Rodrigues rotation by the opening angle between the
estimate and the canonical axis, built with ``scipy.spatial.transform``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
from scipy.spatial.transform import Rotation

from calo_fit.config import DEFAULT_FIT_CONFIG, FitConfig
from calo_fit.domain.vectors import as_vector3, unit_vector

if TYPE_CHECKING:
    from numpy.typing import NDArray


def rodrigues_matrix(
    direction: Any,
    chosen_axis: Any = (0.0, 0.0, 1.0),
    fallback_axis: Any = (1.0, 0.0, 0.0),
    parallel_cos_threshold: float = 0.99,
) -> NDArray[np.float64]:
    """Rotation matrix taking ``direction`` onto ``chosen_axis``.

    Parameters
    ----------
    direction : array-like
        Direction to rotate, shape (3,). Normalised internally.
    chosen_axis : array-like
        Target axis, shape (3,).
    fallback_axis : array-like
        Rotation axis used when ``|cos theta| > parallel_cos_threshold``; the
        cross product is ill-conditioned there.
    parallel_cos_threshold : float
        Threshold on ``|cos theta|`` selecting the fallback axis.

    Returns
    -------
    np.ndarray
        Orthonormal matrix R, shape (3, 3). ``R @ v`` maps into the fit frame,
        ``R.T @ v`` maps back.

    Notes
    -----
    With the fallback axis the rotation angle is still the opening angle, so
    nearly parallel directions are rotated only approximately onto the axis.
    Anti-parallel directions (theta = pi about an axis perpendicular to the
    chosen one) are mapped exactly.
    """
    d = unit_vector(direction, "direction")
    axis = unit_vector(chosen_axis, "chosen_axis")

    cos_theta = float(np.clip(np.dot(d, axis), -1.0, 1.0))
    theta = float(np.arccos(cos_theta))

    if abs(cos_theta) > parallel_cos_threshold:
        rotation_axis = unit_vector(fallback_axis, "fallback_axis")
    else:
        rotation_axis = unit_vector(np.cross(d, axis), "rotation_axis")

    matrix: NDArray[np.float64] = Rotation.from_rotvec(theta * rotation_axis).as_matrix()
    return matrix.astype(np.float64)


@dataclass(frozen=True)
class FitFrame:
    """Translation plus rotation into the (p, q, r) fit frame.

    Attributes:
        origin: Point mapped to the frame origin (the fit-point centroid)
        matrix: Rotation matrix R applied after translating by ``-origin``
    """

    origin: NDArray[np.float64]
    matrix: NDArray[np.float64]

    @classmethod
    def from_estimate(
        cls,
        origin: Any,
        direction: Any,
        config: FitConfig = DEFAULT_FIT_CONFIG,
    ) -> FitFrame:
        matrix = rodrigues_matrix(
            direction,
            chosen_axis=config.chosen_axis,
            fallback_axis=config.fallback_rotation_axis,
            parallel_cos_threshold=config.parallel_cos_threshold,
        )
        matrix.flags.writeable = False
        return cls(origin=as_vector3(origin, "origin"), matrix=matrix)

    def to_frame(self, positions: NDArray[np.float64]) -> NDArray[np.float64]:
        """Map global positions, shape (n, 3), to (p, q, r) rows."""
        local: NDArray[np.float64] = (np.asarray(positions, dtype=np.float64) - self.origin) @ self.matrix.T
        return local

    def direction_to_global(self, local_direction: Any) -> NDArray[np.float64]:
        out: NDArray[np.float64] = self.matrix.T @ np.asarray(local_direction, dtype=np.float64)
        return out

    def point_to_global(self, local_point: Any) -> NDArray[np.float64]:
        out: NDArray[np.float64] = self.origin + self.matrix.T @ np.asarray(local_point, dtype=np.float64)
        return out


__all__ = ["FitFrame", "rodrigues_matrix"]
