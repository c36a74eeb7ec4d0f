"""Fit point value type.

A FitPoint is one sample entering a cluster line fit: either a single
calorimeter hit or the aggregated centroid of one pseudolayer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from calo_fit.config import FLOAT32_EPSILON
from calo_fit.domain.vectors import as_vector3, unit_vector
from calo_fit.errors import StatusCode, StatusCodeError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from calo_fit.domain.cluster import CaloHitLike


def _checked_cell_size(cell_size: float, min_cell_size: float) -> float:
    # Zero-size cells have no position error, so the chi2 cannot be computed
    value = float(cell_size)
    if not np.isfinite(value) or value < min_cell_size:
        raise StatusCodeError(StatusCode.FAILURE, f"cell size {value} is below the minimum {min_cell_size}")
    return value


@dataclass(frozen=True, eq=False)
class FitPoint:
    """Immutable sample for the linear fit.

    The cell normal is stored at unit length. Use ``from_calo_hit`` or
    ``from_components`` to apply a configured minimum cell size.

    Attributes:
        position: Sample position (float64, shape (3,))
        cell_normal_vector: Unit cell normal (float64, shape (3,))
        cell_size: Characteristic cell length, used for the chi2 error
        energy: Sample energy, finite and non-negative
        pseudo_layer: Pseudolayer index, a non-negative integer

    Raises:
        StatusCodeError: INVALID_PARAMETER for a malformed position or normal,
            a zero normal, a negative or non-finite energy or a negative or
            fractional pseudolayer. FAILURE if ``cell_size`` is not above the
            float32 epsilon.
    """

    position: NDArray[np.float64]
    cell_normal_vector: NDArray[np.float64]
    cell_size: float
    energy: float
    pseudo_layer: int

    def __post_init__(self) -> None:
        try:
            position = as_vector3(self.position, "position")
            normal = unit_vector(self.cell_normal_vector, "cell_normal_vector")
        except ValueError as exc:
            raise StatusCodeError(StatusCode.INVALID_PARAMETER, str(exc)) from exc

        energy = float(self.energy)
        if not np.isfinite(energy) or energy < 0:
            raise StatusCodeError(StatusCode.INVALID_PARAMETER, f"energy must be non-negative, got {energy}")

        pseudo_layer = self.pseudo_layer
        if int(pseudo_layer) != pseudo_layer or pseudo_layer < 0:
            raise StatusCodeError(
                StatusCode.INVALID_PARAMETER, f"pseudo_layer must be a non-negative integer, got {pseudo_layer}"
            )

        cell_size = _checked_cell_size(self.cell_size, FLOAT32_EPSILON)

        object.__setattr__(self, "position", position)
        object.__setattr__(self, "cell_normal_vector", normal)
        object.__setattr__(self, "cell_size", cell_size)
        object.__setattr__(self, "energy", energy)
        object.__setattr__(self, "pseudo_layer", int(pseudo_layer))

    @classmethod
    def from_components(
        cls,
        position: Any,
        cell_normal_vector: Any,
        cell_size: float,
        energy: float,
        pseudo_layer: int,
        *,
        min_cell_size: float = FLOAT32_EPSILON,
    ) -> FitPoint:
        """Build a point, rejecting cells smaller than ``min_cell_size``."""
        return cls(
            position=position,
            cell_normal_vector=cell_normal_vector,
            cell_size=_checked_cell_size(cell_size, min_cell_size),
            energy=energy,
            pseudo_layer=pseudo_layer,
        )

    @classmethod
    def from_calo_hit(cls, hit: CaloHitLike, *, min_cell_size: float = FLOAT32_EPSILON) -> FitPoint:
        return cls.from_components(
            hit.position,
            hit.cell_normal_vector,
            hit.cell_length_scale,
            hit.input_energy,
            hit.pseudo_layer,
            min_cell_size=min_cell_size,
        )

    def sort_key(self) -> tuple[float, float, float, float]:
        # Descending z, then x, then y, then energy
        x, y, z = (float(c) for c in self.position)
        return (-z, -x, -y, -self.energy)

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, FitPoint):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __repr__(self) -> str:
        x, y, z = (float(c) for c in self.position)
        return (
            f"FitPoint(position=({x:.6g}, {y:.6g}, {z:.6g}), cell_size={self.cell_size:.6g}, "
            f"energy={self.energy:.6g}, pseudo_layer={self.pseudo_layer})"
        )


def fit_point_sort_key(point: FitPoint) -> tuple[float, float, float, float]:
    return point.sort_key()


def sort_fit_points(points: list[FitPoint]) -> list[FitPoint]:
    """Return ``points`` in the deterministic fit order (stable sort)."""
    return sorted(points, key=fit_point_sort_key)


__all__ = ["FitPoint", "fit_point_sort_key", "sort_fit_points"]
