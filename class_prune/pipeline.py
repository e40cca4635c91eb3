"""Pipeline orchestrator: scan -> extract -> graph -> liveness -> delete."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from class_prune.analysis import DependencyGraph, DependencyGraphBuilder, LivenessAnalyzer
from class_prune.exporter import delete_units
from class_prune.extractor import extract_dependencies
from class_prune.models import AnalysisResult, DeletionReport, PruneConfig, ScanResult
from class_prune.scanner import ParseCache, UnitCatalog, scan_directory

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


@dataclass
class GraphBuild:
    """Everything produced before the liveness stage."""
    catalog: UnitCatalog
    scan: ScanResult
    graph: DependencyGraph
    source_files: list[Path] = field(default_factory=list)


def run_scan(config: PruneConfig, progress: ProgressCallback | None = None) -> ScanResult:
    """Stage 1: catalog the source directory."""
    if progress:
        progress("Scanning", 0, 1)
    _, result = scan_directory(config)
    if progress:
        progress("Scanning", 1, 1)
    return result


def build_graph(config: PruneConfig, progress: ProgressCallback | None = None) -> GraphBuild:
    """Stages 1-3: scan, extract references, assemble the frozen graph."""
    cache = ParseCache()
    try:
        if progress:
            progress("Scanning", 0, 1)
        catalog, scan = scan_directory(config, cache)
        if progress:
            progress("Scanning", 1, 1)
            progress("Extracting", 0, 1)
        references = extract_dependencies(catalog, config, cache)
        if progress:
            progress("Extracting", 1, 1)
    finally:
        cache.clear()

    graph = DependencyGraphBuilder().build(catalog.units(), references)
    return GraphBuild(catalog=catalog, scan=scan, graph=graph, source_files=scan.source_files)


def run_analysis(
    config: PruneConfig,
    targets: Iterable[str],
    progress: ProgressCallback | None = None,
    build: GraphBuild | None = None,
) -> AnalysisResult:
    """Stages 1-4: compute the deletable set for ``targets``."""
    targets = list(targets)
    if not targets:
        raise ValueError("At least one target is required")
    if build is None:
        build = build_graph(config, progress)
    if progress:
        progress("Analyzing", 0, 1)
    result = LivenessAnalyzer(build.graph, config).analyze(targets, build.source_files)
    if progress:
        progress("Analyzing", 1, 1)
    return result


def run_prune(
    config: PruneConfig,
    targets: Iterable[str],
    dry_run: bool = False,
    progress: ProgressCallback | None = None,
    confirm: Callable[[AnalysisResult], bool] | None = None,
) -> tuple[AnalysisResult, DeletionReport | None]:
    """Run the full pipeline, deleting files unless ``dry_run``.

    ``confirm`` sees the analysis before anything is removed; when it
    returns False nothing is deleted and the report is None.
    """
    result = run_analysis(config, targets, progress)
    if confirm is not None and not confirm(result):
        logger.info("Deletion declined; nothing removed")
        return result, None
    if progress:
        progress("Deleting", 0, 1)
    report = delete_units(result.deletable, dry_run=dry_run)
    if progress:
        progress("Deleting", 1, 1)
    logger.info(
        "Deletion: %d attempted, %d deleted, %d missing, %d failed",
        len(report.attempted), len(report.deleted), len(report.missing), len(report.failed),
    )
    return result, report
