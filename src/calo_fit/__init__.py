"""calo-fit: straight-line fits to layered calorimeter clusters."""

from __future__ import annotations

__version__ = "0.3.0"

from calo_fit.api import *  # noqa: E402,F403
from calo_fit.api import __all__ as _api_all  # noqa: E402

__all__ = ["__version__", *_api_all]
