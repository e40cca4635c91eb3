"""Data models for the class-prune pipeline."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from pathlib import Path


class UnitKind(enum.Enum):
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    RECORD = "record"


class ResolutionStrategy(enum.Enum):
    """How an unqualified type name is mapped to a cataloged unit."""
    CATALOG_SEARCH = "catalog-search"
    NAMESPACE_QUALIFY = "namespace-qualify"


class LivenessMode(enum.Enum):
    SINGLE_PASS = "single-pass"
    FIXPOINT = "fixpoint"


@dataclass(frozen=True)
class Unit:
    """A top-level type declared somewhere in the project."""
    qualified_name: str
    file_path: Path
    namespace: str = ""
    kind: UnitKind = UnitKind.CLASS
    line_number: int = 1

    @property
    def simple_name(self) -> str:
        return self.qualified_name.rsplit(".", 1)[-1]


@dataclass
class ScanResult:
    """Result from the scanner stage."""
    units: list[Unit] = field(default_factory=list)
    source_files: list[Path] = field(default_factory=list)
    skipped_files: list[Path] = field(default_factory=list)
    duplicates: dict[str, list[Path]] = field(default_factory=dict)


@dataclass
class AnalysisResult:
    """Result from the liveness stage, handed to the deleter."""
    targets: set[str] = field(default_factory=set)
    deletable: dict[str, Path] = field(default_factory=dict)
    reachable: set[str] = field(default_factory=set)
    by_name: set[str] = field(default_factory=set)
    excluded: set[str] = field(default_factory=set)
    retained: dict[str, set[str]] = field(default_factory=dict)  # unit -> blocking referencers
    unresolved_targets: set[str] = field(default_factory=set)
    broken_referencers: dict[str, set[str]] = field(default_factory=dict)  # target -> outside users
    iterations: int = 0


@dataclass
class DeletionReport:
    """Result from the deletion stage."""
    attempted: list[Path] = field(default_factory=list)
    deleted: list[Path] = field(default_factory=list)
    missing: list[Path] = field(default_factory=list)
    failed: dict[Path, str] = field(default_factory=dict)
    dry_run: bool = False


DEFAULT_EXCLUDED_PREFIXES = [
    "java.", "javax.", "jdk.", "sun.", "com.sun.", "org.w3c.", "org.xml.",
]

DEFAULT_RESERVED_PREFIXES = ["com.example.tools"]


@dataclass
class PruneConfig:
    """Configuration for the prune pipeline."""
    source_dir: Path = field(default_factory=lambda: Path("."))
    skip_dirs: list[str] = field(default_factory=lambda: [
        ".git", ".idea", ".gradle", ".mvn", "target", "build", "out",
        "node_modules", "*.egg-info",
    ])
    excluded_prefixes: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_PREFIXES))
    reserved_prefixes: list[str] = field(default_factory=lambda: list(DEFAULT_RESERVED_PREFIXES))
    strategy: ResolutionStrategy = ResolutionStrategy.CATALOG_SEARCH
    mode: LivenessMode = LivenessMode.FIXPOINT
    workers: int = 0  # 0 -> env or cpu count
    timeout: float = 0  # seconds per pool stage; 0 -> env or 60

    def __post_init__(self):
        if not self.workers:
            self.workers = int(os.getenv("CLASS_PRUNE_WORKERS", "0")) or os.cpu_count() or 1
        if not self.timeout:
            self.timeout = float(os.getenv("CLASS_PRUNE_TIMEOUT", "60"))


def under_namespace(name: str, prefixes: list[str]) -> bool:
    """True if ``name`` falls under any of the dotted ``prefixes``.

    A prefix ending in ``.`` matches by plain string prefix; otherwise it
    must match a whole package segment (``a.b`` covers ``a.b.C`` but not
    ``a.bc.C``).
    """
    for prefix in prefixes:
        if not prefix:
            continue
        if prefix.endswith("."):
            if name.startswith(prefix):
                return True
        elif name == prefix or name.startswith(prefix + "."):
            return True
    return False
