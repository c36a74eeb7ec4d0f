"""`calo-fit fit` command: fit a straight line to a cluster stored as JSON.

Input format::

    {"hits": [{"position": [x, y, z], "normal": [nx, ny, nz],
               "cell_size": 10.0, "energy": 0.5, "pseudo_layer": 3}, ...]}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from calo_fit import __version__
from calo_fit.api.cluster_fit import (
    fit_end,
    fit_full_cluster,
    fit_layer_centroids,
    fit_layers,
    fit_start,
)
from calo_fit.cli.common_cli import (
    EXIT_FIT_FAILURE,
    EXIT_INPUT_ERROR,
    CaloFitCliError,
    configure_logging,
    load_cluster_document,
    resolve_fit_output_path,
    write_fit_payload,
)
from calo_fit.config import FitConfig
from calo_fit.domain.cluster import Cluster
from calo_fit.domain.fit_result import FitResult
from calo_fit.errors import StatusCode, StatusCodeError, make_error

SELECTIONS = ("full", "start", "end", "layers", "centroids")


def _run_selection(
    selection: str,
    cluster: Cluster,
    result: FitResult,
    config: FitConfig,
    max_layers: int | None,
    start_layer: int | None,
    end_layer: int | None,
) -> StatusCode:
    if selection == "full":
        return fit_full_cluster(cluster, result, config)

    if selection in {"start", "end"}:
        if max_layers is None:
            raise CaloFitCliError(f"--max-layers is required for --selection {selection}")
        fit = fit_start if selection == "start" else fit_end
        return fit(cluster, max_layers, result, config)

    if start_layer is None or end_layer is None:
        raise CaloFitCliError(f"--start-layer and --end-layer are required for --selection {selection}")
    fit = fit_layers if selection == "layers" else fit_layer_centroids
    return fit(cluster, start_layer, end_layer, result, config)


@click.group()
@click.version_option(version=__version__, package_name="calo-fit")
def cli() -> None:
    """calo-fit CLI for straight-line fits to calorimeter clusters."""
    pass


@cli.command("fit")
@click.option(
    "--in",
    "-i",
    "input_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Cluster JSON path.",
)
@click.option(
    "--selection",
    type=click.Choice(SELECTIONS, case_sensitive=False),
    default="full",
    show_default=True,
    help="Which hits enter the fit.",
)
@click.option("--max-layers", type=int, default=None, help="Occupied layers for start/end selections.")
@click.option("--start-layer", type=int, default=None, help="First pseudolayer for layers/centroids.")
@click.option("--end-layer", type=int, default=None, help="Last pseudolayer for layers/centroids.")
@click.option(
    "--cell-size-error-divisor",
    type=float,
    default=None,
    help="Override the cell size to position error conversion.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Diagnostic log level (defaults to CALO_FIT_LOG_LEVEL or WARNING).",
)
@click.option(
    "-o",
    "--out",
    "output_path_arg",
    type=str,
    default="-",
    show_default=True,
    help="JSON output path; '-' writes to stdout.",
)
def fit_command(
    input_path: Path,
    selection: str,
    max_layers: int | None,
    start_layer: int | None,
    end_layer: int | None,
    cell_size_error_divisor: float | None,
    log_level: str | None,
    output_path_arg: str,
) -> None:
    """Fit a straight line to a cluster and emit schema-stable JSON."""
    out_path = resolve_fit_output_path(output_path_arg)

    try:
        config = FitConfig.from_env(
            cell_size_error_divisor=cell_size_error_divisor,
            log_level=log_level,
        )
    except ValidationError as exc:
        raise CaloFitCliError(f"Invalid fit configuration: {exc}", exit_code=EXIT_INPUT_ERROR) from exc
    configure_logging(config.log_level_number)

    payload = load_cluster_document(input_path)
    try:
        cluster = Cluster.from_dict(payload)
    except (ValueError, StatusCodeError) as exc:
        raise CaloFitCliError(f"Invalid cluster in {input_path}: {exc}") from exc

    selection = selection.lower()
    result = FitResult()
    status = _run_selection(selection, cluster, result, config, max_layers, start_layer, end_layer)

    output: dict[str, Any] = {
        "schema_version": "cli.fit.v1",
        "status": status.value,
        "fit": result.to_dict(),
        "selection": {
            "name": selection,
            "max_layers": max_layers,
            "start_layer": start_layer,
            "end_layer": end_layer,
        },
        "cluster": {
            "n_calo_hits": cluster.n_calo_hits,
            "n_occupied_layers": cluster.n_occupied_layers,
            "inner_pseudo_layer": cluster.inner_pseudo_layer,
            "outer_pseudo_layer": cluster.outer_pseudo_layer,
        },
        "error": None,
    }
    if not status.is_success:
        output["error"] = make_error(
            status, f"{selection} fit did not succeed", input=str(input_path)
        ).model_dump(mode="json")

    write_fit_payload(output, out_path)

    if not status.is_success:
        raise CaloFitCliError(f"Fit failed with status {status.value}", exit_code=EXIT_FIT_FAILURE)


__all__ = ["cli", "fit_command"]
