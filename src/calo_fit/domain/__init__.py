"""Domain models for calo-fit.

Hits, clusters, fit points and fit results. No fitting logic lives here.
"""

from calo_fit.domain.cluster import (
    CaloHit,
    CaloHitLike,
    Cluster,
    ClusterLike,
    OrderedCaloHitList,
)
from calo_fit.domain.fit_point import FitPoint, fit_point_sort_key, sort_fit_points
from calo_fit.domain.fit_result import FitResult

__all__ = [
    "CaloHit",
    "CaloHitLike",
    "Cluster",
    "ClusterLike",
    "OrderedCaloHitList",
    "FitPoint",
    "fit_point_sort_key",
    "sort_fit_points",
    "FitResult",
]
