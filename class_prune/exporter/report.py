"""Generate the JSON report of an analysis / prune run."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from class_prune.models import AnalysisResult, DeletionReport, PruneConfig


def build_report(
    config: PruneConfig,
    result: AnalysisResult,
    deletion: DeletionReport | None = None,
) -> dict:
    report = {
        "version": "1.0",
        "generated": datetime.now().isoformat(),
        "source_directory": str(config.source_dir),
        "strategy": config.strategy.value,
        "mode": config.mode.value,
        "targets": sorted(result.targets),
        "deletable": [
            {
                "name": name,
                "file": str(path),
                "by_name": name in result.by_name,
            }
            for name, path in sorted(result.deletable.items())
        ],
        "retained": {name: sorted(users) for name, users in sorted(result.retained.items())},
        "excluded": sorted(result.excluded),
        "unresolved_targets": sorted(result.unresolved_targets),
        "broken_referencers": {
            name: sorted(users) for name, users in sorted(result.broken_referencers.items())
        },
        "reachable": len(result.reachable),
        "iterations": result.iterations,
    }
    if deletion is not None:
        report["deletion"] = {
            "dry_run": deletion.dry_run,
            "attempted": len(deletion.attempted),
            "deleted": [str(p) for p in deletion.deleted],
            "missing": [str(p) for p in deletion.missing],
            "failed": {str(p): err for p, err in deletion.failed.items()},
        }
    return report


def write_report(
    path: Path,
    config: PruneConfig,
    result: AnalysisResult,
    deletion: DeletionReport | None = None,
) -> Path:
    """Write the report as pretty-printed JSON and return its path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(build_report(config, result, deletion), indent=2) + "\n",
        encoding="utf-8",
    )
    return path
