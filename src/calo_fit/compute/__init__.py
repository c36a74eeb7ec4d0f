"""Numerical core: fit frame rotation and the straight-line regression."""

from calo_fit.compute.linear_fit import fit_points, perform_linear_fit
from calo_fit.compute.rotation import FitFrame, rodrigues_matrix

__all__ = ["FitFrame", "fit_points", "perform_linear_fit", "rodrigues_matrix"]
