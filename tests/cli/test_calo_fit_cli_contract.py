from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from calo_fit import __version__
from calo_fit.cli.fit_cli import cli


def _write_cluster(path: Path, hits: list[dict]) -> Path:
    path.write_text(json.dumps({"hits": hits}), encoding="utf-8")
    return path


def _axis_hits(n_layers: int = 4) -> list[dict]:
    return [
        {
            "position": [0.0, 0.0, float(layer)],
            "normal": [0.0, 0.0, 1.0],
            "cell_size": 1.0,
            "energy": 1.0,
            "pseudo_layer": layer,
        }
        for layer in range(n_layers)
    ]


@pytest.fixture
def cluster_path(tmp_path: Path) -> Path:
    return _write_cluster(tmp_path / "cluster.json", _axis_hits())


def test_fit_full_cluster_payload_contract(cluster_path: Path, tmp_path: Path) -> None:
    out_path = tmp_path / "fit.json"
    result = CliRunner().invoke(cli, ["fit", "--in", str(cluster_path), "--out", str(out_path)])

    assert result.exit_code == 0, result.output
    payload = json.loads(out_path.read_text(encoding="utf-8"))
    assert payload["schema_version"] == "cli.fit.v1"
    assert payload["status"] == "SUCCESS"
    assert payload["error"] is None
    assert payload["fit"]["success"] is True
    assert payload["fit"]["direction"] == pytest.approx([0.0, 0.0, 1.0], abs=1e-12)
    assert payload["fit"]["intercept"] == pytest.approx([0.0, 0.0, 1.5], abs=1e-12)
    assert payload["cluster"] == {
        "n_calo_hits": 4,
        "n_occupied_layers": 4,
        "inner_pseudo_layer": 0,
        "outer_pseudo_layer": 3,
    }


def test_fit_writes_stdout_by_default(cluster_path: Path) -> None:
    result = CliRunner().invoke(cli, ["fit", "--in", str(cluster_path), "--selection", "start", "--max-layers", "2"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["selection"]["name"] == "start"
    assert payload["selection"]["max_layers"] == 2
    assert payload["fit"]["intercept"] == pytest.approx([0.0, 0.0, 0.5], abs=1e-12)


@pytest.mark.parametrize(
    "args",
    [
        ["--selection", "end", "--max-layers", "3"],
        ["--selection", "layers", "--start-layer", "1", "--end-layer", "3"],
        ["--selection", "centroids", "--start-layer", "0", "--end-layer", "3"],
    ],
)
def test_other_selections_succeed(cluster_path: Path, args: list[str]) -> None:
    result = CliRunner().invoke(cli, ["fit", "--in", str(cluster_path), *args])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["status"] == "SUCCESS"


def test_window_selection_requires_max_layers(cluster_path: Path) -> None:
    result = CliRunner().invoke(cli, ["fit", "--in", str(cluster_path), "--selection", "end"])
    assert result.exit_code == 1
    assert "--max-layers" in result.output


def test_range_selection_requires_bounds(cluster_path: Path) -> None:
    result = CliRunner().invoke(cli, ["fit", "--in", str(cluster_path), "--selection", "layers", "--start-layer", "0"])
    assert result.exit_code == 1
    assert "--end-layer" in result.output


def test_failed_fit_reports_status_and_exit_code(tmp_path: Path) -> None:
    hits = [
        {"position": [float(x), 0.0, 0.0], "normal": [0.0, 0.0, 1.0], "cell_size": 1.0, "energy": 1.0, "pseudo_layer": x}
        for x in range(3)
    ]
    cluster_path = _write_cluster(tmp_path / "flat.json", hits)
    out_path = tmp_path / "fit.json"

    result = CliRunner().invoke(cli, ["fit", "--in", str(cluster_path), "--out", str(out_path)])

    assert result.exit_code == 2
    payload = json.loads(out_path.read_text(encoding="utf-8"))
    assert payload["status"] == "FAILURE"
    assert payload["fit"]["success"] is False
    assert payload["error"]["status"] == "FAILURE"


def test_invalid_argument_status(cluster_path: Path, tmp_path: Path) -> None:
    out_path = tmp_path / "fit.json"
    result = CliRunner().invoke(
        cli, ["fit", "--in", str(cluster_path), "--selection", "start", "--max-layers", "1", "--out", str(out_path)]
    )
    assert result.exit_code == 2
    assert json.loads(out_path.read_text(encoding="utf-8"))["status"] == "INVALID_PARAMETER"


def test_malformed_json_is_input_error(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    result = CliRunner().invoke(cli, ["fit", "--in", str(path)])
    assert result.exit_code == 1
    assert "is not valid JSON (line 1, column 2)" in result.output


def test_missing_file_is_input_error(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["fit", "--in", str(tmp_path / "missing.json")])
    assert result.exit_code == 1
    assert "Cluster file not found" in result.output


def test_non_object_document_is_input_error(tmp_path: Path) -> None:
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    result = CliRunner().invoke(cli, ["fit", "--in", str(path)])
    assert result.exit_code == 1
    assert "must hold a JSON object with a 'hits' list, got list" in result.output


def test_invalid_hit_is_input_error(tmp_path: Path) -> None:
    path = _write_cluster(tmp_path / "cluster.json", [{"position": [0, 0, 0]}])
    result = CliRunner().invoke(cli, ["fit", "--in", str(path)])
    assert result.exit_code == 1
    assert "Invalid cluster" in result.output


def test_error_divisor_option_changes_chi2(tmp_path: Path) -> None:
    hits = [
        {"position": [x, 0.0, z], "normal": [0.0, 0.0, 1.0], "cell_size": 1.0, "energy": 1.0, "pseudo_layer": int(z)}
        for x in (0.5, -0.5)
        for z in (0.0, 1.0)
    ]
    path = _write_cluster(tmp_path / "ladder.json", hits)
    result = CliRunner().invoke(cli, ["fit", "--in", str(path), "--cell-size-error-divisor", "2.0"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["fit"]["chi2"] == pytest.approx(1.0)


def test_invalid_env_config_is_input_error(cluster_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("CALO_FIT_CELL_SIZE_ERROR_DIVISOR", "-1")
    result = CliRunner().invoke(cli, ["fit", "--in", str(cluster_path)])
    assert result.exit_code == 1
    assert "Invalid fit configuration" in result.output


def test_version_option() -> None:
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
