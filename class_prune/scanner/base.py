"""Source tree walker shared by the scanner and the by-name target lookup."""

from __future__ import annotations

import fnmatch
import re
from pathlib import Path

JAVA_EXTENSIONS: tuple[str, ...] = (".java",)

_QUALIFIED_NAME = re.compile(r"[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*")


class SourceWalker:
    """Enumerates source files under a root, honouring skip patterns."""

    extensions: tuple[str, ...] = JAVA_EXTENSIONS

    def __init__(self, skip_dirs: list[str] | None = None):
        self.skip_dirs = skip_dirs if skip_dirs is not None else [
            ".git", ".idea", ".gradle", "target", "build", "out",
        ]

    def walk(self, directory: Path) -> list[Path]:
        """Recursively list source files below ``directory``.

        Raises ``ValueError`` if ``directory`` is not a directory; a walk
        failure is fatal for the whole run.
        """
        if not directory.is_dir():
            raise ValueError(f"Not a directory: {directory}")
        files: list[Path] = []
        for path in sorted(directory.rglob("*")):
            if path.is_dir():
                continue
            if self._should_skip(path.relative_to(directory)):
                continue
            if path.suffix in self.extensions:
                files.append(path)
        return files

    def _should_skip(self, path: Path) -> bool:
        for part in path.parts[:-1]:
            for pattern in self.skip_dirs:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return False


def is_qualified_name(name: str) -> bool:
    """True for dot-separated Java identifiers such as ``a.b.Foo``."""
    return _QUALIFIED_NAME.fullmatch(name) is not None


def path_for_name(qualified_name: str, extension: str = ".java") -> Path:
    """``a.b.Foo`` -> ``a/b/Foo.java``."""
    return Path(*qualified_name.split(".")).with_suffix(extension)


def find_file_for_name(
    qualified_name: str,
    root: Path,
    candidates: list[Path] | None = None,
) -> Path | None:
    """Locate the file that should hold ``qualified_name`` by path convention.

    Checks ``root/a/b/Foo.java`` first, then any of ``candidates`` whose
    path ends with ``a/b/Foo.java`` (covers ``src/main/java`` layouts).
    Anything that is not a qualified type name maps to no file.
    """
    if not is_qualified_name(qualified_name):
        return None
    relative = path_for_name(qualified_name)
    direct = root / relative
    if direct.is_file():
        return direct
    suffix = relative.parts
    for path in candidates or []:
        if path.parts[-len(suffix):] == suffix:
            return path
    return None
