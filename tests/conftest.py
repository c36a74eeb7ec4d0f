"""Shared fixtures for calo-fit tests."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import numpy as np
import pytest

from calo_fit.domain.cluster import CaloHit, Cluster
from calo_fit.domain.fit_point import FitPoint

HitFactory = Callable[..., CaloHit]


@pytest.fixture
def make_hit() -> HitFactory:
    """Factory for hits with unit cell size and energy by default."""

    def _make_hit(
        position: Sequence[float],
        pseudo_layer: int,
        normal: Sequence[float] = (0.0, 0.0, 1.0),
        cell_size: float = 1.0,
        energy: float = 1.0,
    ) -> CaloHit:
        return CaloHit(
            position=position,
            cell_normal_vector=normal,
            cell_length_scale=cell_size,
            input_energy=energy,
            pseudo_layer=pseudo_layer,
        )

    return _make_hit


@pytest.fixture
def make_point() -> Callable[..., FitPoint]:
    def _make_point(
        position: Sequence[float],
        pseudo_layer: int = 0,
        normal: Sequence[float] = (0.0, 0.0, 1.0),
        cell_size: float = 1.0,
        energy: float = 1.0,
    ) -> FitPoint:
        return FitPoint(
            position=position,
            cell_normal_vector=normal,
            cell_size=cell_size,
            energy=energy,
            pseudo_layer=pseudo_layer,
        )

    return _make_point


@pytest.fixture
def line_direction() -> np.ndarray:
    direction = np.array([1.0, 2.0, 3.0])
    return direction / np.linalg.norm(direction)


@pytest.fixture
def straight_cluster(make_hit: HitFactory, line_direction: np.ndarray) -> Cluster:
    """Six layers, one hit per layer, on a line through (10, 20, 30) along (1, 2, 3)."""
    start = np.array([10.0, 20.0, 30.0])
    return Cluster(
        make_hit(start + 5.0 * layer * line_direction, layer, normal=line_direction)
        for layer in range(6)
    )


@pytest.fixture
def layered_cluster(make_hit: HitFactory) -> Cluster:
    """Four occupied, non-contiguous layers (3, 5, 6, 9) with two hits each."""
    hits = []
    for layer in (3, 5, 6, 9):
        z = float(layer)
        hits.append(make_hit((0.5, 0.0, z), layer, energy=2.0))
        hits.append(make_hit((-0.5, 0.0, z), layer, energy=1.0))
    return Cluster(hits)
