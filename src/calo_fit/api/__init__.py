"""Public API facade for calo-fit.

Usage:
    >>> from calo_fit.api import Cluster, FitResult, fit_layers
    >>> result = FitResult()
    >>> status = fit_layers(cluster, 0, 9, result)
"""

from calo_fit.api.cluster_fit import (
    fit_end,
    fit_full_cluster,
    fit_layer_centroids,
    fit_layers,
    fit_start,
    select_end_points,
    select_full_cluster_points,
    select_layer_centroid_points,
    select_layer_points,
    select_start_points,
)
from calo_fit.compute.linear_fit import fit_points, perform_linear_fit
from calo_fit.config import DEFAULT_FIT_CONFIG, FitConfig
from calo_fit.domain import CaloHit, Cluster, FitPoint, FitResult
from calo_fit.errors import StatusCode, StatusCodeError

__all__ = [
    # types
    "CaloHit",
    "Cluster",
    "FitPoint",
    "FitResult",
    "FitConfig",
    "DEFAULT_FIT_CONFIG",
    "StatusCode",
    "StatusCodeError",
    # fits
    "fit_points",
    "perform_linear_fit",
    "fit_start",
    "fit_end",
    "fit_full_cluster",
    "fit_layers",
    "fit_layer_centroids",
    # selections
    "select_start_points",
    "select_end_points",
    "select_full_cluster_points",
    "select_layer_points",
    "select_layer_centroid_points",
]
