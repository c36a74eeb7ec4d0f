from __future__ import annotations

import tomllib
from pathlib import Path

import calo_fit


def _load_project_table() -> dict[str, object]:
    pyproject_path = Path(__file__).resolve().parents[1] / "pyproject.toml"
    pyproject = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    return pyproject["project"]


def test_package_version_matches_pyproject() -> None:
    project = _load_project_table()
    assert calo_fit.__version__ == project["version"]


def test_extras_do_not_self_reference_package_name() -> None:
    project = _load_project_table()
    package_name = project["name"]
    for extra, deps in project["optional-dependencies"].items():
        assert not any(
            dep == package_name or dep.startswith(f"{package_name}[") for dep in deps
        ), extra


def test_test_extra_provides_pytest() -> None:
    project = _load_project_table()
    test_extra = project["optional-dependencies"]["test"]
    assert any(dep.startswith("pytest") for dep in test_extra)


def test_console_script_points_at_cli_group() -> None:
    project = _load_project_table()
    assert project["scripts"]["calo-fit"] == "calo_fit.cli.fit_cli:cli"
