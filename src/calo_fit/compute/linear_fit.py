"""Straight-line fit through a list of fit points.

This module contains ONLY numpy/scipy operations. The fit:

1. Orders the points deterministically (see ``FitPoint.sort_key``).
2. Estimates the line from the point centroid and the summed cell normals.
3. Rotates the points so the estimate lies along the canonical axis and
   regresses the transverse coordinates (p, q) against the longitudinal one (r).
4. Rotates the fitted line back and derives chi2, rms and the radial
   direction cosine.

The returned direction points away from the origin (positive radial cosine)
and then, when the layer ordering allows it, towards increasing pseudolayer.
The layer flip is applied after the radial flip and can override it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import numpy as np

from calo_fit.compute.rotation import FitFrame
from calo_fit.config import DEFAULT_FIT_CONFIG, FLOAT32_EPSILON, FitConfig
from calo_fit.domain.fit_point import FitPoint, sort_fit_points
from calo_fit.domain.fit_result import FitResult
from calo_fit.domain.vectors import as_vector3, format_vector
from calo_fit.errors import StatusCode, StatusCodeError

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

DOUBLE_EPSILON = float(np.finfo(np.float64).eps)


def fit_points(
    points: Sequence[FitPoint],
    result: FitResult,
    config: FitConfig | None = None,
) -> StatusCode:
    """Fit a straight line through ``points`` and write it into ``result``.

    Parameters
    ----------
    points : sequence of FitPoint
        At least two points. The sequence is not modified.
    result : FitResult
        Reset on entry; filled and flagged successful only on SUCCESS.
    config : FitConfig, optional
        Numerical tunables. Defaults to ``DEFAULT_FIT_CONFIG``.

    Returns
    -------
    StatusCode
        SUCCESS, INVALID_PARAMETER (fewer than two points) or FAILURE
        (cancelling cell normals, or all points at the same longitudinal
        coordinate in the fit frame).
    """
    config = config or DEFAULT_FIT_CONFIG
    result.reset()

    n_points = len(points)
    logger.debug("Number of points for fit: %d", n_points)

    if n_points < 2:
        return StatusCode.INVALID_PARAMETER

    try:
        ordered = sort_fit_points(list(points))
        positions = np.stack([p.position for p in ordered])
        normals = np.stack([p.cell_normal_vector for p in ordered])

        centroid = positions.sum(axis=0) * (1.0 / n_points)
        normal_sum = normals.sum(axis=0)
        normal_norm = float(np.linalg.norm(normal_sum))

        if normal_norm < FLOAT32_EPSILON:
            raise StatusCodeError(
                StatusCode.FAILURE,
                "cell normals cancel; no initial direction for the fit",
            )

        _perform_linear_fit(centroid, normal_sum / normal_norm, ordered, result, config)
    except StatusCodeError as exc:
        logger.warning("Linear fit to cluster failed: %s", exc)
        result.success = False
        return exc.status_code

    return StatusCode.SUCCESS


def perform_linear_fit(
    central_position: Any,
    central_direction: Any,
    points: Sequence[FitPoint],
    result: FitResult,
    config: FitConfig | None = None,
) -> StatusCode:
    """Fit ``points`` around a caller-supplied initial position and direction.

    ``fit_points`` calls this with the point centroid and the normalised sum
    of cell normals. Callers with a better estimate can supply their own.
    """
    config = config or DEFAULT_FIT_CONFIG
    result.reset()

    if len(points) < 2:
        return StatusCode.INVALID_PARAMETER

    try:
        _perform_linear_fit(
            as_vector3(central_position, "central_position"),
            as_vector3(central_direction, "central_direction"),
            sort_fit_points(list(points)),
            result,
            config,
        )
    except ValueError as exc:
        logger.warning("Linear fit rejected its initial estimate: %s", exc)
        result.success = False
        return StatusCode.INVALID_PARAMETER
    except StatusCodeError as exc:
        logger.warning("Linear fit to cluster failed: %s", exc)
        result.success = False
        return exc.status_code

    return StatusCode.SUCCESS


def _linear_regression(
    x: NDArray[np.float64],
    y: NDArray[np.float64],
    weights: NDArray[np.float64],
) -> tuple[float, float] | None:
    """Weighted least squares ``y = slope * x + offset``.

    Returns None when the denominator ``(sum w x)^2 - sum w * sum w x^2``
    vanishes, i.e. all x are equal.
    """
    sum_x = float(np.sum(x * weights))
    sum_y = float(np.sum(y * weights))
    sum_xy = float(np.sum(x * y * weights))
    sum_xx = float(np.sum(x * x * weights))
    sum_w = float(np.sum(weights))

    denominator = sum_x * sum_x - sum_w * sum_xx
    if abs(denominator) < DOUBLE_EPSILON:
        return None

    slope = (sum_x * sum_y - sum_w * sum_xy) / denominator
    offset = (sum_y - slope * sum_x) / sum_w
    return slope, offset


def _perform_linear_fit(
    central_position: NDArray[np.float64],
    central_direction: NDArray[np.float64],
    ordered: list[FitPoint],
    result: FitResult,
    config: FitConfig,
) -> None:
    logger.debug("Performing linear fit for cluster")
    logger.debug("  initial position: %s", format_vector(central_position))
    logger.debug("  initial direction: %s", format_vector(central_direction))

    try:
        frame = FitFrame.from_estimate(central_position, central_direction, config)
    except ValueError as exc:
        raise StatusCodeError(StatusCode.FAILURE, str(exc)) from exc

    positions = np.stack([p.position for p in ordered])
    local = frame.to_frame(positions)
    p, q, r = local[:, 0], local[:, 1], local[:, 2]
    # Unit weights; per-point weighting would go here
    weights = np.ones(len(ordered), dtype=np.float64)

    fit_p = _linear_regression(r, p, weights)
    fit_q = _linear_regression(r, q, weights)
    if fit_p is None or fit_q is None:
        logger.debug("  fit failed")
        raise StatusCodeError(
            StatusCode.FAILURE,
            "degenerate regression: all points share the same longitudinal coordinate",
        )

    a_p, b_p = fit_p
    a_q, b_q = fit_q

    magnitude = np.sqrt(1.0 + a_p * a_p + a_q * a_q)
    direction = frame.direction_to_global(np.array([a_p, a_q, 1.0]) / magnitude)
    intercept = frame.point_to_global(np.array([b_p, b_q, 0.0]))

    # Projectivity from the origin: direction should point away from it
    intercept_magnitude = float(np.linalg.norm(intercept))
    if intercept_magnitude > 0.0:
        radial_direction_cosine = float(np.dot(direction, intercept) / intercept_magnitude)
    else:
        logger.debug("  intercept at origin; radial direction cosine undefined, using 0")
        radial_direction_cosine = 0.0

    if radial_direction_cosine < 0.0:
        radial_direction_cosine = -radial_direction_cosine
        direction = -direction

    errors = np.array([pt.cell_size for pt in ordered], dtype=np.float64) / config.cell_size_error_divisor
    chi_p = (p - a_p * r - b_p) / errors
    chi_q = (q - a_q * r - b_q) / errors
    n_points = float(len(ordered))

    difference = positions - intercept
    rms_sum = float(np.sum(np.cross(direction, difference) ** 2))

    # Orientation: projection along the line should grow with pseudolayer
    along_line = difference @ direction
    layers = np.array([pt.pseudo_layer for pt in ordered], dtype=np.float64)
    layer_fit = _linear_regression(layers, along_line, weights)
    if layer_fit is not None and layer_fit[0] < 0.0:
        direction = -direction

    result.direction = direction
    result.intercept = intercept
    result.chi2 = float((np.sum(chi_p * chi_p) + np.sum(chi_q * chi_q)) / n_points)
    result.rms = float(np.sqrt(rms_sum / n_points))
    result.radial_direction_cosine = radial_direction_cosine
    result.success = True

    logger.debug("  fit successful")
    logger.debug("  final position: %s", format_vector(intercept))
    logger.debug("  final direction: %s", format_vector(direction))
    logger.debug("  chi2: %.6g, rms: %.6g", result.chi2, result.rms)
    logger.debug("  cos(dRdir): %.6g", radial_direction_cosine)


__all__ = ["DOUBLE_EPSILON", "fit_points", "perform_linear_fit"]
