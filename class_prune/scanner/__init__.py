"""Scanner stage: walk the tree, parse files in parallel, build the catalog."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from class_prune.models import PruneConfig, ScanResult
from class_prune.scanner.base import SourceWalker, find_file_for_name, is_qualified_name, path_for_name
from class_prune.scanner.catalog import UnitCatalog
from class_prune.scanner.java_parser import ParseCache, ParsedSource, SourceParseError
from class_prune.scanner.java_scanner import JavaScanner
from class_prune.workers import run_in_pool

logger = logging.getLogger(__name__)


def scan_directory(
    config: PruneConfig,
    cache: ParseCache | None = None,
) -> tuple[UnitCatalog, ScanResult]:
    """Catalog every top-level type below ``config.source_dir``.

    Unparsable files are skipped. The returned catalog is frozen.
    """
    cache = cache if cache is not None else ParseCache()
    files = SourceWalker(config.skip_dirs).walk(config.source_dir)
    catalog = UnitCatalog()
    scanner = JavaScanner()
    skipped: list[Path] = []
    skipped_lock = threading.Lock()

    def scan_one(path: Path) -> None:
        try:
            parsed = cache.parse(path)
        except SourceParseError as e:
            logger.warning("Skipping %s (%s)", path, e.reason)
            with skipped_lock:
                skipped.append(path)
            return
        for unit in scanner.scan(parsed):
            catalog.add(unit)

    logger.info("Scanning %d source file(s) under %s", len(files), config.source_dir)
    run_in_pool(scan_one, files, workers=config.workers, timeout=config.timeout, stage="scan")
    catalog.freeze()

    result = ScanResult(
        units=catalog.units(),
        source_files=list(files),
        skipped_files=sorted(skipped),
        duplicates={k: list(v) for k, v in catalog.duplicates.items()},
    )
    logger.info(
        "Cataloged %d unit(s) from %d file(s), %d skipped",
        len(result.units), len(files), len(skipped),
    )
    return catalog, result


__all__ = [
    "JavaScanner",
    "ParseCache",
    "ParsedSource",
    "SourceParseError",
    "SourceWalker",
    "UnitCatalog",
    "find_file_for_name",
    "is_qualified_name",
    "path_for_name",
    "scan_directory",
]
