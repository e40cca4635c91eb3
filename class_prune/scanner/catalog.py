"""Unit catalog: every declared top-level type and the file that owns it."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from class_prune.models import Unit
from class_prune.workers import ConcurrentMap

logger = logging.getLogger(__name__)


class UnitCatalog:
    """Thread-safe name -> Unit registry populated by the scan workers.

    Duplicate declarations resolve to the last write and are recorded in
    :attr:`duplicates`. After :meth:`freeze` the catalog is read-only and
    simple-name lookups become available.
    """

    def __init__(self):
        self._units: ConcurrentMap[str, Unit] = ConcurrentMap()
        self._dup_lock = threading.Lock()
        self.duplicates: dict[str, list[Path]] = {}
        self._by_simple_name: dict[str, list[str]] = {}

    def add(self, unit: Unit) -> None:
        previous = self._units.put(unit.qualified_name, unit)
        if previous is not None and previous.file_path != unit.file_path:
            logger.warning(
                "Duplicate declaration of %s in %s and %s; keeping %s",
                unit.qualified_name, previous.file_path, unit.file_path, unit.file_path,
            )
            with self._dup_lock:
                paths = self.duplicates.setdefault(unit.qualified_name, [previous.file_path])
                paths.append(unit.file_path)

    def freeze(self) -> None:
        self._units.freeze()
        index: dict[str, list[str]] = {}
        for name, unit in self._units.snapshot().items():
            index.setdefault(unit.simple_name, []).append(name)
        for names in index.values():
            names.sort()
        self._by_simple_name = index

    @property
    def frozen(self) -> bool:
        return self._units.frozen

    def get(self, name: str) -> Unit | None:
        return self._units.get(name)

    def location(self, name: str) -> Path | None:
        unit = self._units.get(name)
        return unit.file_path if unit else None

    def find_by_simple_name(self, simple_name: str) -> list[str]:
        """Qualified names whose last segment is ``simple_name``."""
        if not self.frozen:
            raise RuntimeError("simple-name lookup needs a frozen catalog")
        return list(self._by_simple_name.get(simple_name, []))

    def units(self) -> list[Unit]:
        return sorted(self._units.snapshot().values(), key=lambda u: u.qualified_name)

    def names(self) -> set[str]:
        return set(self._units.snapshot())

    def __contains__(self, name: object) -> bool:
        return name in self._units

    def __len__(self) -> int:
        return len(self._units)

    @classmethod
    def from_units(cls, units: list[Unit]) -> "UnitCatalog":
        catalog = cls()
        for unit in units:
            catalog.add(unit)
        catalog.freeze()
        return catalog
