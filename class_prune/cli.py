"""Click CLI with scan, graph, analyze, and prune subcommands."""

from __future__ import annotations

import functools
import logging
from pathlib import Path

import click

from class_prune.config import ConfigError, config_from_dict, load_config
from class_prune.exporter import write_report
from class_prune.models import LivenessMode, PruneConfig, ResolutionStrategy
from class_prune.pipeline import build_graph, run_analysis, run_prune, run_scan
from class_prune.workers import PoolTimeoutError

_STRATEGY_CHOICES = [s.value for s in ResolutionStrategy]
_MODE_CHOICES = [m.value for m in LivenessMode]

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S", force=True)


def _pipeline_options(func):
    """Options shared by every command that builds the graph."""
    @click.argument("source_dir", type=click.Path(exists=True, file_okay=False, path_type=Path), default=".")
    @click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
                  help="JSON file with default settings")
    @click.option("--strategy", type=click.Choice(_STRATEGY_CHOICES), help="Simple-name resolution strategy")
    @click.option("--mode", type=click.Choice(_MODE_CHOICES), help="Liveness filter mode")
    @click.option("--reserved", multiple=True, help="Namespace never deleted (repeatable)")
    @click.option("--exclude", multiple=True, help="Extra library namespace prefix to ignore (repeatable)")
    @click.option("--workers", type=click.IntRange(min=1), help="Worker threads (default: CPU count)")
    @click.option("--timeout", type=click.FloatRange(min=0, min_open=True), help="Seconds allowed per parallel stage")
    @click.option("-v", "--verbose", count=True, help="-v for info, -vv for debug logging")
    @functools.wraps(func)
    def wrapper(source_dir, config_file, strategy, mode, reserved, exclude, workers, timeout, verbose, **kwargs):
        _configure_logging(verbose)
        try:
            data = load_config(config_file) if config_file else {}
            overrides = {
                "source_dir": str(source_dir),
                "strategy": strategy,
                "mode": mode,
                "workers": workers,
                "timeout": timeout,
            }
            if reserved:
                overrides["reserved_prefixes"] = list(reserved)
            data.update({k: v for k, v in overrides.items() if v is not None})
            config = config_from_dict(data)
        except ConfigError as e:
            raise click.ClickException(str(e))
        if exclude:
            config.excluded_prefixes.extend(exclude)
        return func(config, **kwargs)
    return wrapper


def _progress(stage: str, current: int, total: int) -> None:
    if current == 0:
        click.echo(f"  {stage}...", err=True)


@click.group()
@click.version_option(version="0.1.0")
def cli():
    """class-prune: find and delete Java classes that only the targets use."""


@cli.command()
@_pipeline_options
def scan(config: PruneConfig):
    """List every top-level type found in SOURCE_DIR."""
    try:
        result = run_scan(config)
    except PoolTimeoutError as e:
        raise click.ClickException(str(e))

    if not result.units:
        click.echo("No Java types found.")
        return

    click.echo(f"\nFound {len(result.units)} type(s) in {len(result.source_files)} file(s):\n")
    by_namespace: dict[str, list] = {}
    for unit in result.units:
        by_namespace.setdefault(unit.namespace or "(default package)", []).append(unit)

    for namespace, units in sorted(by_namespace.items()):
        click.echo(click.style(namespace, fg="cyan"))
        for unit in units:
            click.echo(
                f"  {click.style(unit.kind.value, fg='yellow'):>20}  "
                f"{unit.simple_name}  "
                f"{click.style(str(unit.file_path), dim=True)}"
            )
        click.echo()

    for name, paths in sorted(result.duplicates.items()):
        click.echo(click.style(f"Duplicate: {name} in {', '.join(map(str, paths))}", fg="yellow"))
    for path in result.skipped_files:
        click.echo(click.style(f"Skipped (parse error): {path}", fg="red"))


@cli.command()
@_pipeline_options
@click.option("--unit", "-u", "unit_name", required=True, help="Fully qualified type name")
def graph(config: PruneConfig, unit_name: str):
    """Show what a type references, what references it, and its closure."""
    from class_prune.analysis import DependencyGraphBuilder

    try:
        build = build_graph(config)
    except PoolTimeoutError as e:
        raise click.ClickException(str(e))

    g = build.graph
    if unit_name not in g.nodes:
        raise click.ClickException(f"{unit_name} is not a cataloged type")

    builder = DependencyGraphBuilder()
    closure = builder.resolve_transitive(g, [unit_name]).all_transitive

    click.echo(click.style(unit_name, fg="cyan") + f"  {g.nodes[unit_name].file_path}")
    click.echo("\nReferences:")
    for name in sorted(g.dependencies(unit_name)) or ["(none)"]:
        click.echo(f"  -> {name}")
    click.echo("\nReferenced by:")
    for name in sorted(g.referencers(unit_name)) or ["(none)"]:
        click.echo(f"  <- {name}")
    click.echo(f"\nTransitive closure: {len(closure)} type(s)")
    for name in sorted(closure - {unit_name}):
        click.echo(f"  {name}")

    cycles = builder.detect_cycles(g, within=closure)
    if cycles:
        click.echo("\nCycles:")
        for cycle in cycles:
            click.echo("  " + " -> ".join(cycle))


def _echo_analysis(result) -> None:
    click.echo(f"\nDeletable: {len(result.deletable)} type(s)")
    for name, path in sorted(result.deletable.items()):
        suffix = " (by file name)" if name in result.by_name else ""
        click.echo(f"  {click.style(name, fg='red')}  {click.style(str(path), dim=True)}{suffix}")

    if result.retained:
        click.echo(f"\nKept (still used elsewhere): {len(result.retained)}")
        for name, users in sorted(result.retained.items()):
            click.echo(f"  {click.style(name, fg='green')}  used by {', '.join(sorted(users)) or '-'}")
    for name in sorted(result.excluded):
        click.echo(click.style(f"  reserved, never deleted: {name}", fg="yellow"))
    for name, users in sorted(result.broken_referencers.items()):
        click.echo(click.style(
            f"Warning: target {name} is still referenced by {', '.join(sorted(users))}", fg="yellow",
        ))
    for name in sorted(result.unresolved_targets):
        click.echo(click.style(f"Warning: target {name} not found", fg="yellow"))


@cli.command()
@_pipeline_options
@click.option("--target", "-t", "targets", multiple=True, required=True, help="Type to delete (repeatable)")
@click.option("--report", "report_path", type=click.Path(dir_okay=False, path_type=Path), help="Write a JSON report")
def analyze(config: PruneConfig, targets: tuple[str, ...], report_path: Path | None):
    """Print the deletable set for the given targets without deleting anything."""
    try:
        result = run_analysis(config, targets, progress=_progress)
    except (PoolTimeoutError, ValueError) as e:
        raise click.ClickException(str(e))

    _echo_analysis(result)
    if report_path:
        write_report(report_path, config, result)
        click.echo(f"\nReport written to {report_path}")


@cli.command()
@_pipeline_options
@click.option("--target", "-t", "targets", multiple=True, required=True, help="Type to delete (repeatable)")
@click.option("--report", "report_path", type=click.Path(dir_okay=False, path_type=Path), help="Write a JSON report")
@click.option("--dry-run", is_flag=True, help="Show what would be deleted")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Do not ask for confirmation")
def prune(
    config: PruneConfig,
    targets: tuple[str, ...],
    report_path: Path | None,
    dry_run: bool,
    assume_yes: bool,
):
    """Delete the targets and every type only they use."""
    def confirm(result) -> bool:
        _echo_analysis(result)
        if not result.deletable:
            click.echo("\nNothing to delete.")
            return False
        if not dry_run and not assume_yes:
            click.confirm(f"\nDelete {len(result.deletable)} type(s)?", abort=True)
        return True

    try:
        result, report = run_prune(config, targets, dry_run=dry_run, progress=_progress, confirm=confirm)
    except (PoolTimeoutError, ValueError) as e:
        raise click.ClickException(str(e))
    if report is None:
        return

    verb = "Would delete" if dry_run else "Deleted"
    click.echo()
    for path in report.deleted if not dry_run else report.attempted:
        if path not in report.missing:
            click.echo(f"  {verb} {path}")
    for path in report.missing:
        click.echo(click.style(f"  Already gone: {path}", dim=True))
    for path, err in report.failed.items():
        click.echo(click.style(f"  Failed: {path}: {err}", fg="red"))

    click.echo(
        f"\nDone! {len(report.deleted)} of {len(report.attempted)} file(s) deleted"
        + (" (dry run)" if dry_run else "")
    )
    if report_path:
        write_report(report_path, config, result, report)
        click.echo(f"Report written to {report_path}")


def main():
    cli()


if __name__ == "__main__":
    main()
