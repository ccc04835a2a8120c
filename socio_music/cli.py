# socio_music/cli.py
import logging
import sys

import click
from pydantic import ValidationError
from rich import print

from .config import BIN_COUNT, CLUSTER_COUNT, N_ESTIMATORS, RANDOM_SEED, TRAIN_FRACTION
from .pipeline import run_from_csv
from .reporting.reporting import print_report, save_json
from .settings import RunConfig

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log every pipeline stage.")
def main(verbose: bool):
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s - %(name)s - %(message)s",
    )


@main.command()
@click.argument("data_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--sep", default=",", show_default=True, help="Field delimiter of the input file.")
@click.option("--train-fraction", default=TRAIN_FRACTION, type=float, show_default=True)
@click.option("--bins", "bin_count", default=BIN_COUNT, type=int, show_default=True,
              help="Equal-width bins per socio-political column.")
@click.option("--clusters", "cluster_count", default=CLUSTER_COUNT, type=int, show_default=True)
@click.option("--seed", default=RANDOM_SEED, type=int, show_default=True)
@click.option("--cluster-feature", default=None, type=str,
              help="Column to cluster countries on (default: most important socio feature).")
@click.option("--trees", "n_estimators", default=N_ESTIMATORS, type=int, show_default=True,
              help="Number of trees in the random forest.")
@click.option("--report", "report_path", default=None, type=click.Path(dir_okay=False),
              help="Write the full report as JSON.")
def run(data_path, sep, train_fraction, bin_count, cluster_count, seed, cluster_feature, n_estimators, report_path):
    """Run the full analysis on DATA_PATH."""
    try:
        cfg = RunConfig(
            train_fraction=train_fraction,
            bin_count=bin_count,
            cluster_count=cluster_count,
            seed=seed,
            cluster_feature=cluster_feature,
            n_estimators=n_estimators,
        )
    except ValidationError as e:
        raise click.BadParameter(str(e))

    try:
        report = run_from_csv(data_path, cfg, sep=sep)
    except ValueError as e:
        logger.error("Pipeline aborted: %s", e)
        print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    print_report(report)
    if report_path:
        save_json(report.to_dict(), report_path)
        print(f"[green]Report written to {report_path}[/green]")


if __name__ == "__main__":
    main()
