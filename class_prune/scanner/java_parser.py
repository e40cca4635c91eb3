"""Tree-sitter parsing of Java sources, with a per-run tree cache."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path

from tree_sitter_language_pack import get_parser

from class_prune.workers import ConcurrentMap

_GRAMMAR = "java"

# Parsers are not safe to share between threads
_local = threading.local()


class SourceParseError(Exception):
    """A source file could not be read or did not parse cleanly."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass
class ParsedSource:
    path: Path
    source_bytes: bytes
    tree: object

    @property
    def root(self):
        return self.tree.root_node


def _get_parser():
    parser = getattr(_local, "parser", None)
    if parser is None:
        parser = get_parser(_GRAMMAR)
        _local.parser = parser
    return parser


def parse_source(path: Path, source_bytes: bytes) -> ParsedSource:
    tree = _get_parser().parse(source_bytes)
    if tree.root_node.has_error:
        line = _first_error_line(tree.root_node)
        raise SourceParseError(path, f"syntax error near line {line}")
    return ParsedSource(path=path, source_bytes=source_bytes, tree=tree)


def parse_file(path: Path) -> ParsedSource:
    try:
        source_bytes = path.read_bytes()
    except OSError as e:
        raise SourceParseError(path, f"unreadable: {e}") from e
    return parse_source(path, source_bytes)


def _first_error_line(root) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return root.start_point[0] + 1


class ParseCache:
    """Keeps parsed trees between the scan and extraction stages."""

    def __init__(self):
        self._trees: ConcurrentMap[Path, ParsedSource] = ConcurrentMap()

    def parse(self, path: Path) -> ParsedSource:
        cached = self._trees.get(path)
        if cached is not None:
            return cached
        parsed = parse_file(path)
        return self._trees.setdefault(path, parsed)

    def clear(self) -> None:
        self._trees.clear()

    def __len__(self) -> int:
        return len(self._trees)
