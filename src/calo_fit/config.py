"""Numerical tunables for the cluster line fit.

``FitConfig`` is passed explicitly to the fitting functions; there is no
module-level mutable default. ``DEFAULT_FIT_CONFIG`` is frozen and shared.

Example:
    >>> config = FitConfig(cell_size_error_divisor=3.0)
    >>> status = fit_full_cluster(cluster, result, config=config)
"""

from __future__ import annotations

import logging
import math
import os
from typing import Any

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

Vector3 = tuple[float, float, float]

# Smallest cell size accepted for a fit point (single-precision epsilon)
FLOAT32_EPSILON = float(np.finfo(np.float32).eps)

_ENV_PREFIX = "CALO_FIT_"
_ENV_FIELDS: dict[str, str] = {
    "parallel_cos_threshold": "PARALLEL_COS_THRESHOLD",
    "cell_size_error_divisor": "CELL_SIZE_ERROR_DIVISOR",
    "min_cell_size": "MIN_CELL_SIZE",
    "log_level": "LOG_LEVEL",
}


class FitConfig(BaseModel):
    """Tunables for ``fit_points`` and the cluster selection helpers.

    Attributes:
        chosen_axis: Canonical axis the initial direction is rotated onto.
        fallback_rotation_axis: Rotation axis used when the initial direction
            is (anti-)parallel to ``chosen_axis``.
        parallel_cos_threshold: ``|cos theta|`` above which the fallback axis
            is used.
        cell_size_error_divisor: Converts a cell length scale into a per-point
            position uncertainty (length / sqrt(12) for a uniform distribution).
        min_cell_size: Fit points with a smaller cell size fail; never below
            the float32 epsilon.
        log_level: Level name applied by the command line entry point.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    chosen_axis: Vector3 = (0.0, 0.0, 1.0)
    fallback_rotation_axis: Vector3 = (1.0, 0.0, 0.0)
    parallel_cos_threshold: float = Field(default=0.99, gt=0.0, le=1.0)
    cell_size_error_divisor: float = Field(default=3.46, gt=0.0)
    min_cell_size: float = Field(default=FLOAT32_EPSILON, ge=FLOAT32_EPSILON)
    log_level: str = "WARNING"

    @field_validator("chosen_axis", "fallback_rotation_axis")
    @classmethod
    def _normalise_axis(cls, value: Vector3) -> Vector3:
        norm = math.sqrt(sum(float(c) * float(c) for c in value))
        if not math.isfinite(norm) or norm <= 0.0:
            raise ValueError("axis must be a finite, non-zero vector")
        return (float(value[0]) / norm, float(value[1]) / norm, float(value[2]) / norm)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        name = str(value).strip().upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"unknown log level: {value!r}")
        return name

    @property
    def log_level_number(self) -> int:
        return int(logging.getLevelName(self.log_level))

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides: Any) -> FitConfig:
        """Build a config from ``CALO_FIT_*`` environment variables.

        Explicit keyword overrides win over the environment; unset or empty
        variables fall back to the field defaults.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for field_name, suffix in _ENV_FIELDS.items():
            raw = env.get(_ENV_PREFIX + suffix)
            if raw is None or not raw.strip():
                continue
            values[field_name] = raw.strip()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


DEFAULT_FIT_CONFIG = FitConfig()

__all__ = ["DEFAULT_FIT_CONFIG", "FLOAT32_EPSILON", "FitConfig", "Vector3"]
