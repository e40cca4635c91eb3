"""Liveness analysis: which units can go once the targets are deleted.

The deletable set is built in two phases. First the reachability closure
``A`` of the targets is computed over outgoing references. Then every
candidate in ``A`` is checked for users outside the deletion closure:

* ``SINGLE_PASS`` checks each candidate once against ``A`` plus the
  targets. Cheap, but a candidate used only by another candidate that is
  itself retained still gets deleted.
* ``FIXPOINT`` starts from ``A`` and evicts candidates with outside users
  round by round until nothing changes. An evicted unit becomes an outside
  user of everything it references, so those are checked again in the
  next round. Within a round all checks see the closure as it was when the
  round started.

Units that share a file count as users of each other, because deletion
works on whole files. Targets are always deleted unless they fall under a
reserved namespace or share a file with a unit that must stay.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from class_prune.analysis.dependency_graph import DependencyGraphBuilder
from class_prune.analysis.graph_models import DependencyGraph
from class_prune.models import AnalysisResult, LivenessMode, PruneConfig, under_namespace
from class_prune.scanner.base import find_file_for_name, is_qualified_name

logger = logging.getLogger(__name__)


class LivenessAnalyzer:
    """Computes the deletable set over a frozen dependency graph."""

    def __init__(self, graph: DependencyGraph, config: PruneConfig):
        if not graph.frozen:
            raise ValueError("liveness analysis needs a frozen graph")
        self.graph = graph
        self.config = config
        self.mode = config.mode
        self.reserved_prefixes = list(config.reserved_prefixes)
        self._by_file: dict[Path, set[str]] = {}
        for name, unit in graph.nodes.items():
            self._by_file.setdefault(unit.file_path, set()).add(name)

    def analyze(
        self,
        targets: Iterable[str],
        source_files: list[Path] | None = None,
    ) -> AnalysisResult:
        targets = {t.strip() for t in targets if t and t.strip()}
        if not targets:
            raise ValueError("At least one target is required")

        seed = {t for t in targets if t in self.graph.nodes}
        absent = targets - seed
        reach = DependencyGraphBuilder().resolve_transitive(self.graph, seed).all_transitive
        logger.info(
            "%d target(s) in catalog, %d absent; closure holds %d unit(s)",
            len(seed), len(absent), len(reach),
        )

        if self.mode == LivenessMode.SINGLE_PASS:
            closure, retained, rounds = self._single_pass(seed, reach, targets)
        else:
            closure, retained, rounds = self._converge(seed, reach)

        result = AnalysisResult(
            targets=targets,
            reachable=set(reach),
            retained=retained,
            iterations=rounds,
        )

        for name in sorted(reach | absent):
            if self._is_reserved(name):
                result.excluded.add(name)
        for name in sorted(closure):
            if name not in result.excluded:
                result.deletable[name] = self.graph.nodes[name].file_path

        for name in sorted(seed & set(result.deletable)):
            users = self.graph.referencers(name) - closure - {name}
            if users:
                logger.warning(
                    "Target %s is still referenced by %s",
                    name, ", ".join(sorted(users)),
                )
                result.broken_referencers[name] = users

        self._resolve_by_name(absent, result, source_files)
        logger.info(
            "Deletable: %d unit(s); retained: %d; excluded: %d",
            len(result.deletable), len(result.retained), len(result.excluded),
        )
        return result

    # ── closure filters ──────────────────────────────────────

    def _single_pass(
        self,
        seed: set[str],
        reach: set[str],
        targets: set[str],
    ) -> tuple[set[str], dict[str, set[str]], int]:
        scope = reach | targets
        closure = set(seed)
        retained: dict[str, set[str]] = {}
        for name in sorted(reach - seed):
            blockers = self._outside_users(name, scope)
            if blockers:
                retained[name] = blockers
            else:
                closure.add(name)

        closure -= {n for n in closure if self._is_reserved(n)}
        for name in sorted(closure):
            held = self._siblings(name) - closure
            if held:
                retained[name] = held
        closure = {n for n in closure if n not in retained}
        return closure, retained, 1

    def _converge(
        self,
        seed: set[str],
        reach: set[str],
    ) -> tuple[set[str], dict[str, set[str]], int]:
        pinned = {n for n in reach if self._is_reserved(n)}
        total_rounds = 0
        while True:
            closure, retained, rounds = self._fixpoint(seed, reach, pinned)
            total_rounds += rounds
            held = {n for n in closure if self._siblings(n) - closure}
            if not held:
                return closure, retained, total_rounds
            for name in sorted(held):
                logger.warning(
                    "Keeping %s: its file also declares %s",
                    name, ", ".join(sorted(self._siblings(name) - closure)),
                )
            pinned |= held

    def _fixpoint(
        self,
        seed: set[str],
        reach: set[str],
        pinned: set[str],
    ) -> tuple[set[str], dict[str, set[str]], int]:
        closure = reach - pinned
        retained: dict[str, set[str]] = {
            n: self._siblings(n) - closure for n in pinned if not self._is_reserved(n)
        }
        dirty = reach - seed - pinned
        rounds = 0

        while dirty:
            rounds += 1
            evicted: dict[str, set[str]] = {}
            for name in sorted(dirty):
                if name not in closure:
                    continue
                blockers = self._outside_users(name, closure)
                if blockers:
                    evicted[name] = blockers

            dirty = set()
            for name, blockers in evicted.items():
                closure.discard(name)
                retained[name] = blockers
            for name in evicted:
                dirty |= (self.graph.dependencies(name) | self._siblings(name)) & closure
            dirty -= seed
            logger.debug("Round %d: evicted %d, rechecking %d", rounds, len(evicted), len(dirty))

        return closure, retained, rounds

    def _outside_users(self, name: str, scope: set[str]) -> set[str]:
        users = self.graph.referencers(name) | self._siblings(name)
        return {u for u in users if u != name and u not in scope}

    def _siblings(self, name: str) -> set[str]:
        unit = self.graph.nodes.get(name)
        if unit is None:
            return set()
        return self._by_file.get(unit.file_path, set()) - {name}

    def _is_reserved(self, name: str) -> bool:
        return under_namespace(name, self.reserved_prefixes)

    # ── targets outside the catalog ──────────────────────────

    def _resolve_by_name(
        self,
        absent: set[str],
        result: AnalysisResult,
        source_files: list[Path] | None,
    ) -> None:
        root = Path(self.config.source_dir)
        for name in sorted(absent):
            if name in result.excluded:
                continue
            if not is_qualified_name(name):
                logger.warning("Ignoring target %r: not a qualified type name", name)
                result.unresolved_targets.add(name)
                continue
            path = find_file_for_name(name, root, source_files)
            if path is None:
                logger.warning("Target %s not found in catalog or on disk", name)
                result.unresolved_targets.add(name)
                continue
            if not path.resolve().is_relative_to(root.resolve()):
                logger.warning("Not deleting %s for target %s: outside %s", path, name, root)
                result.unresolved_targets.add(name)
                continue
            owners = self._by_file.get(path, set())
            if owners - set(result.deletable):
                logger.warning(
                    "Not deleting %s for target %s: it declares %s",
                    path, name, ", ".join(sorted(owners - set(result.deletable))),
                )
                result.unresolved_targets.add(name)
                continue
            result.deletable[name] = path
            result.by_name.add(name)
