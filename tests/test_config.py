"""Tests for the fit configuration model."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from calo_fit.config import DEFAULT_FIT_CONFIG, FLOAT32_EPSILON, FitConfig


class TestFitConfig:
    def test_defaults(self) -> None:
        config = FitConfig()
        assert config.chosen_axis == (0.0, 0.0, 1.0)
        assert config.fallback_rotation_axis == (1.0, 0.0, 0.0)
        assert config.parallel_cos_threshold == 0.99
        assert config.cell_size_error_divisor == 3.46
        assert config.min_cell_size == FLOAT32_EPSILON
        assert config.log_level == "WARNING"
        assert config.log_level_number == logging.WARNING

    def test_default_instance_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            DEFAULT_FIT_CONFIG.cell_size_error_divisor = 1.0  # type: ignore[misc]

    def test_axes_are_normalised(self) -> None:
        config = FitConfig(chosen_axis=(0.0, 3.0, 4.0))
        assert config.chosen_axis == pytest.approx((0.0, 0.6, 0.8))

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"cell_size_error_divisor": 0.0},
            {"parallel_cos_threshold": 1.5},
            {"parallel_cos_threshold": 0.0},
            {"chosen_axis": (0.0, 0.0, 0.0)},
            {"min_cell_size": 0.0},
            {"log_level": "LOUD"},
            {"unknown_field": 1},
        ],
    )
    def test_rejects_invalid_values(self, kwargs) -> None:
        with pytest.raises(ValidationError):
            FitConfig(**kwargs)

    def test_log_level_is_case_insensitive(self) -> None:
        assert FitConfig(log_level="debug").log_level == "DEBUG"


class TestFromEnv:
    def test_reads_prefixed_variables(self) -> None:
        config = FitConfig.from_env(
            {
                "CALO_FIT_CELL_SIZE_ERROR_DIVISOR": "2.5",
                "CALO_FIT_PARALLEL_COS_THRESHOLD": "0.95",
                "CALO_FIT_LOG_LEVEL": "info",
                "UNRELATED": "x",
            }
        )
        assert config.cell_size_error_divisor == 2.5
        assert config.parallel_cos_threshold == 0.95
        assert config.log_level == "INFO"

    def test_empty_values_fall_back_to_defaults(self) -> None:
        config = FitConfig.from_env({"CALO_FIT_CELL_SIZE_ERROR_DIVISOR": "  "})
        assert config.cell_size_error_divisor == 3.46

    def test_overrides_win(self) -> None:
        config = FitConfig.from_env({"CALO_FIT_CELL_SIZE_ERROR_DIVISOR": "2.5"}, cell_size_error_divisor=4.0)
        assert config.cell_size_error_divisor == 4.0

    def test_none_overrides_are_ignored(self) -> None:
        config = FitConfig.from_env({"CALO_FIT_LOG_LEVEL": "ERROR"}, log_level=None)
        assert config.log_level == "ERROR"

    def test_uses_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("CALO_FIT_MIN_CELL_SIZE", "0.5")
        assert FitConfig.from_env().min_cell_size == 0.5
