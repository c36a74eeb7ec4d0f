"""Cluster line fits over different pseudolayer selections.

Each ``fit_*`` function selects fit points from a cluster, fits a straight
line with ``fit_points`` and reports a ``StatusCode``. The matching
``select_*`` function returns the selected points and raises
``StatusCodeError`` instead; it is useful when the caller wants to inspect or
combine selections before fitting.

Selections:
- start: first ``max_occupied_layers`` occupied layers (inner to outer)
- end: last ``max_occupied_layers`` occupied layers (outer to inner)
- full cluster: every hit
- layers: every hit with ``start_layer <= pseudo_layer <= end_layer``
- layer centroids: one aggregated point per occupied layer in a range

Example:
    >>> result = FitResult()
    >>> status = fit_start(cluster, 4, result)
    >>> if status.is_success:
    ...     print(result.direction, result.rms)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence

import numpy as np

from calo_fit.compute.linear_fit import fit_points
from calo_fit.config import DEFAULT_FIT_CONFIG, FLOAT32_EPSILON, FitConfig
from calo_fit.domain.cluster import CaloHitLike, ClusterLike
from calo_fit.domain.fit_point import FitPoint
from calo_fit.domain.fit_result import FitResult
from calo_fit.errors import StatusCode, StatusCodeError

logger = logging.getLogger(__name__)

HitsByLayer = Mapping[int, Sequence[CaloHitLike]]


def _checked_layers(cluster: ClusterLike) -> HitsByLayer:
    ordered = cluster.ordered_calo_hits
    n_layers = len(ordered)

    if n_layers == 0:
        raise StatusCodeError(StatusCode.NOT_INITIALIZED, "cluster has no hits")
    if n_layers < 2:
        raise StatusCodeError(
            StatusCode.OUT_OF_RANGE, f"a line fit needs two occupied layers, cluster has {n_layers}"
        )
    return ordered


def _hit_points(
    layer_items: list[tuple[int, Sequence[CaloHitLike]]],
    config: FitConfig,
) -> list[FitPoint]:
    return [
        FitPoint.from_calo_hit(hit, min_cell_size=config.min_cell_size)
        for _, hits in layer_items
        for hit in hits
    ]


def select_start_points(
    cluster: ClusterLike,
    max_occupied_layers: int,
    config: FitConfig | None = None,
) -> list[FitPoint]:
    """Hits from the first ``max_occupied_layers`` occupied layers."""
    config = config or DEFAULT_FIT_CONFIG
    if max_occupied_layers < 2:
        raise StatusCodeError(
            StatusCode.INVALID_PARAMETER, f"max_occupied_layers must be >= 2, got {max_occupied_layers}"
        )
    ordered = _checked_layers(cluster)
    keys = sorted(ordered)[:max_occupied_layers]
    return _hit_points([(k, ordered[k]) for k in keys], config)


def select_end_points(
    cluster: ClusterLike,
    max_occupied_layers: int,
    config: FitConfig | None = None,
) -> list[FitPoint]:
    """Hits from the last ``max_occupied_layers`` occupied layers, outermost first."""
    config = config or DEFAULT_FIT_CONFIG
    if max_occupied_layers < 2:
        raise StatusCodeError(
            StatusCode.INVALID_PARAMETER, f"max_occupied_layers must be >= 2, got {max_occupied_layers}"
        )
    ordered = _checked_layers(cluster)
    keys = sorted(ordered, reverse=True)[:max_occupied_layers]
    return _hit_points([(k, ordered[k]) for k in keys], config)


def select_full_cluster_points(
    cluster: ClusterLike,
    config: FitConfig | None = None,
) -> list[FitPoint]:
    config = config or DEFAULT_FIT_CONFIG
    ordered = _checked_layers(cluster)
    return _hit_points([(k, ordered[k]) for k in sorted(ordered)], config)


def select_layer_points(
    cluster: ClusterLike,
    start_layer: int,
    end_layer: int,
    config: FitConfig | None = None,
) -> list[FitPoint]:
    """Hits with ``start_layer <= pseudo_layer <= end_layer``."""
    config = config or DEFAULT_FIT_CONFIG
    if start_layer >= end_layer:
        raise StatusCodeError(
            StatusCode.INVALID_PARAMETER,
            f"start_layer ({start_layer}) must be below end_layer ({end_layer})",
        )
    ordered = _checked_layers(cluster)
    keys = [k for k in sorted(ordered) if start_layer <= k <= end_layer]
    return _hit_points([(k, ordered[k]) for k in keys], config)


def select_layer_centroid_points(
    cluster: ClusterLike,
    start_layer: int,
    end_layer: int,
    config: FitConfig | None = None,
) -> list[FitPoint]:
    """One point per occupied layer in ``[start_layer, end_layer]``.

    Position is the cluster's layer centroid, the normal is the normalised sum
    of the hit normals, and cell size and energy are averaged over the hits.

    Raises:
        StatusCodeError: FAILURE if a layer in range holds no hits or its
            normals cancel.
    """
    config = config or DEFAULT_FIT_CONFIG
    if start_layer >= end_layer:
        raise StatusCodeError(
            StatusCode.INVALID_PARAMETER,
            f"start_layer ({start_layer}) must be below end_layer ({end_layer})",
        )
    ordered = _checked_layers(cluster)

    points: list[FitPoint] = []
    for pseudo_layer in sorted(ordered):
        if pseudo_layer < start_layer:
            continue
        if pseudo_layer > end_layer:
            break

        hits = ordered[pseudo_layer]
        n_hits = len(hits)
        if n_hits == 0:
            raise StatusCodeError(StatusCode.FAILURE, f"occupied pseudolayer {pseudo_layer} has no hits")

        normal_sum = np.sum([np.asarray(h.cell_normal_vector, dtype=np.float64) for h in hits], axis=0)
        normal_norm = float(np.linalg.norm(normal_sum))
        if normal_norm < FLOAT32_EPSILON:
            raise StatusCodeError(StatusCode.FAILURE, f"cell normals cancel in pseudolayer {pseudo_layer}")

        cell_size_sum = sum(float(h.cell_length_scale) for h in hits)
        energy_sum = sum(float(h.input_energy) for h in hits)

        points.append(
            FitPoint.from_components(
                cluster.get_centroid(pseudo_layer),
                normal_sum / normal_norm,
                cell_size_sum / n_hits,
                energy_sum / n_hits,
                pseudo_layer,
                min_cell_size=config.min_cell_size,
            )
        )
    return points


def _fit_selection(
    select: Callable[[], list[FitPoint]],
    result: FitResult,
    config: FitConfig | None,
) -> StatusCode:
    result.reset()
    try:
        points = select()
    except StatusCodeError as exc:
        logger.debug("Fit point selection failed: %s", exc)
        result.success = False
        return exc.status_code
    return fit_points(points, result, config)


def fit_start(
    cluster: ClusterLike,
    max_occupied_layers: int,
    result: FitResult,
    config: FitConfig | None = None,
) -> StatusCode:
    """Fit the first ``max_occupied_layers`` occupied layers of a cluster."""
    return _fit_selection(lambda: select_start_points(cluster, max_occupied_layers, config), result, config)


def fit_end(
    cluster: ClusterLike,
    max_occupied_layers: int,
    result: FitResult,
    config: FitConfig | None = None,
) -> StatusCode:
    """Fit the last ``max_occupied_layers`` occupied layers of a cluster."""
    return _fit_selection(lambda: select_end_points(cluster, max_occupied_layers, config), result, config)


def fit_full_cluster(
    cluster: ClusterLike,
    result: FitResult,
    config: FitConfig | None = None,
) -> StatusCode:
    return _fit_selection(lambda: select_full_cluster_points(cluster, config), result, config)


def fit_layers(
    cluster: ClusterLike,
    start_layer: int,
    end_layer: int,
    result: FitResult,
    config: FitConfig | None = None,
) -> StatusCode:
    """Fit all hits in pseudolayers ``start_layer`` to ``end_layer`` inclusive."""
    return _fit_selection(
        lambda: select_layer_points(cluster, start_layer, end_layer, config), result, config
    )


def fit_layer_centroids(
    cluster: ClusterLike,
    start_layer: int,
    end_layer: int,
    result: FitResult,
    config: FitConfig | None = None,
) -> StatusCode:
    """Fit one centroid point per occupied pseudolayer in the range."""
    return _fit_selection(
        lambda: select_layer_centroid_points(cluster, start_layer, end_layer, config), result, config
    )


__all__ = [
    "fit_end",
    "fit_full_cluster",
    "fit_layer_centroids",
    "fit_layers",
    "fit_start",
    "select_end_points",
    "select_full_cluster_points",
    "select_layer_centroid_points",
    "select_layer_points",
    "select_start_points",
]
