"""Extractor stage: per-file reference extraction on the worker pool."""

from __future__ import annotations

import logging
from pathlib import Path

from class_prune.extractor.java_extractor import (
    JavaDependencyExtractor,
    referenced_type_names,
    type_names,
)
from class_prune.models import PruneConfig
from class_prune.scanner.catalog import UnitCatalog
from class_prune.scanner.java_parser import ParseCache, SourceParseError
from class_prune.scanner.java_scanner import JavaScanner
from class_prune.workers import ConcurrentMap, run_in_pool

logger = logging.getLogger(__name__)


def extract_dependencies(
    catalog: UnitCatalog,
    config: PruneConfig,
    cache: ParseCache | None = None,
) -> dict[str, set[str]]:
    """Unit name -> names of the cataloged units it references.

    Every cataloged unit whose file parses gets an entry, possibly empty.
    When a name is declared twice only the file the catalog kept is used.
    """
    cache = cache if cache is not None else ParseCache()
    extractor = JavaDependencyExtractor(catalog, config)
    scanner = JavaScanner()
    results: ConcurrentMap[str, set[str]] = ConcurrentMap()

    files: dict[Path, None] = {}
    for unit in catalog.units():
        files.setdefault(unit.file_path, None)

    def extract_one(path: Path) -> None:
        try:
            parsed = cache.parse(path)
        except SourceParseError as e:
            logger.warning("Skipping extraction for %s (%s)", path, e.reason)
            return
        for name, declaration in scanner.declarations(parsed).items():
            unit = catalog.get(name)
            if unit is None or unit.file_path != path:
                logger.debug("Ignoring shadowed declaration of %s in %s", name, path)
                continue
            refs = extractor.extract(unit, declaration)
            results.put(name, refs)
            logger.debug("%s -> %s", name, sorted(refs))

    run_in_pool(
        extract_one, list(files), workers=config.workers,
        timeout=config.timeout, stage="extract",
    )
    results.freeze()
    return results.snapshot()


__all__ = [
    "JavaDependencyExtractor",
    "extract_dependencies",
    "referenced_type_names",
    "type_names",
]
