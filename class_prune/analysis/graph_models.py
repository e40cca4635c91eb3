"""Data models for the dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field

from class_prune.models import Unit


class GraphIntegrityError(AssertionError):
    """The reverse map is not the exact transpose of the forward map."""


@dataclass
class DependencyGraph:
    nodes: dict[str, Unit] = field(default_factory=dict)
    forward: dict[str, set[str]] = field(default_factory=dict)  # source -> {targets}
    reverse: dict[str, set[str]] = field(default_factory=dict)  # target -> {sources}
    frozen: bool = False

    def add_edge(self, source: str, target: str) -> None:
        if self.frozen:
            raise RuntimeError("graph is frozen")
        self.forward.setdefault(source, set()).add(target)
        self.forward.setdefault(target, set())

    def build_reverse(self) -> None:
        """Freeze the forward map and derive its transpose."""
        self.frozen = True
        reverse: dict[str, set[str]] = {name: set() for name in self.forward}
        for source, targets in self.forward.items():
            for target in targets:
                reverse.setdefault(target, set()).add(source)
        self.reverse = reverse

    def check_transpose(self) -> None:
        for source, targets in self.forward.items():
            for target in targets:
                if source not in self.reverse.get(target, ()):
                    raise GraphIntegrityError(f"{source} -> {target} missing from reverse map")
        for target, sources in self.reverse.items():
            for source in sources:
                if target not in self.forward.get(source, ()):
                    raise GraphIntegrityError(f"reverse {target} <- {source} has no forward edge")

    def referencers(self, name: str) -> set[str]:
        return self.reverse.get(name, set())

    def dependencies(self, name: str) -> set[str]:
        return self.forward.get(name, set())

    @property
    def edge_count(self) -> int:
        return sum(len(t) for t in self.forward.values())


@dataclass
class TransitiveDeps:
    roots: set[str]
    direct: set[str] = field(default_factory=set)
    all_transitive: set[str] = field(default_factory=set)  # includes roots
