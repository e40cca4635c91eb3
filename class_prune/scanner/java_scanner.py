"""Finds top-level type declarations and the package of a Java file."""

from __future__ import annotations

from class_prune.models import Unit, UnitKind
from class_prune.scanner.java_parser import ParsedSource

# Top-level node type -> UnitKind
_DECLARATION_TYPES: dict[str, UnitKind] = {
    "class_declaration": UnitKind.CLASS,
    "interface_declaration": UnitKind.INTERFACE,
    "annotation_type_declaration": UnitKind.INTERFACE,
    "enum_declaration": UnitKind.ENUM,
    "record_declaration": UnitKind.RECORD,
}


def node_text(node) -> str:
    """Node text with whitespace removed (qualified names may span lines)."""
    if node is None or node.text is None:
        return ""
    return "".join(node.text.decode("utf-8", errors="replace").split())


def package_name(root) -> str:
    for child in root.children:
        if child.type == "package_declaration":
            for part in child.named_children:
                if part.type in ("scoped_identifier", "identifier"):
                    return node_text(part)
    return ""


def top_level_declarations(root) -> list:
    return [child for child in root.children if child.type in _DECLARATION_TYPES]


def declaration_name(node) -> str | None:
    name_node = node.child_by_field_name("name")
    if name_node is not None and name_node.text:
        return name_node.text.decode("utf-8")
    for child in node.children:
        if child.type == "identifier" and child.text:
            return child.text.decode("utf-8")
    return None


def qualify(namespace: str, simple_name: str) -> str:
    return f"{namespace}.{simple_name}" if namespace else simple_name


class JavaScanner:
    """Turns a parsed compilation unit into catalog units."""

    def scan(self, parsed: ParsedSource) -> list[Unit]:
        root = parsed.root
        namespace = package_name(root)
        units: list[Unit] = []
        for node in top_level_declarations(root):
            name = declaration_name(node)
            if not name:
                continue
            units.append(Unit(
                qualified_name=qualify(namespace, name),
                file_path=parsed.path,
                namespace=namespace,
                kind=_DECLARATION_TYPES[node.type],
                line_number=node.start_point[0] + 1,
            ))
        return units

    def declarations(self, parsed: ParsedSource) -> dict[str, object]:
        """Qualified name -> declaration node for each top-level type."""
        root = parsed.root
        namespace = package_name(root)
        found: dict[str, object] = {}
        for node in top_level_declarations(root):
            name = declaration_name(node)
            if name:
                found[qualify(namespace, name)] = node
        return found
