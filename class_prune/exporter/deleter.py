"""Delete the files that own the units of a deletable set."""

from __future__ import annotations

import logging
from pathlib import Path

from class_prune.models import DeletionReport

logger = logging.getLogger(__name__)


def delete_units(deletable: dict[str, Path], dry_run: bool = False) -> DeletionReport:
    """Remove every file listed in ``deletable``, once per file.

    Missing files are reported, not raised; an I/O failure on one file is
    logged and the rest still get deleted.
    """
    report = DeletionReport(dry_run=dry_run)
    seen: set[Path] = set()

    for name in sorted(deletable):
        path = Path(deletable[name])
        if path in seen:
            continue
        seen.add(path)
        report.attempted.append(path)

        if not path.exists():
            logger.info("Already gone: %s (%s)", path, name)
            report.missing.append(path)
            continue
        if dry_run:
            logger.info("Would delete %s (%s)", path, name)
            continue
        try:
            path.unlink()
        except FileNotFoundError:
            report.missing.append(path)
        except OSError as e:
            logger.error("Failed to delete %s: %s", path, e)
            report.failed[path] = str(e)
        else:
            logger.info("Deleted %s (%s)", path, name)
            report.deleted.append(path)

    return report
