"""Collects the project types a top-level Java declaration refers to."""

from __future__ import annotations

from class_prune.models import PruneConfig, ResolutionStrategy, Unit, under_namespace
from class_prune.scanner.catalog import UnitCatalog
from class_prune.scanner.java_scanner import node_text, qualify

_TYPE_NODES = {
    "type_identifier", "scoped_type_identifier", "generic_type", "array_type",
    "annotated_type", "integral_type", "floating_point_type", "boolean_type",
    "void_type",
}

_PRIMITIVE_NODES = {"integral_type", "floating_point_type", "boolean_type", "void_type"}

_ANNOTATION_NODES = {"annotation", "marker_annotation"}

# Declarations whose type sits in the ``type`` field
_TYPE_FIELD_OWNERS = {
    "field_declaration",
    "constant_declaration",
    "local_variable_declaration",
    "formal_parameter",
    "method_declaration",
    "annotation_type_element_declaration",
    "object_creation_expression",
    "array_creation_expression",
    "enhanced_for_statement",
    "resource",  # try-with-resources
}

# Nodes whose type children are unlabelled
_TYPE_CHILD_OWNERS = {
    "superclass",
    "type_list",  # implements / extends lists
    "spread_parameter",
    "catch_type",
    "throws",
    "type_bound",
    "cast_expression",
    "instanceof_expression",
    "class_literal",
}

# Names that look like types but never are project units
_IGNORED_NAMES = {"var"}


def _type_roots(node) -> list:
    if node.type in _TYPE_FIELD_OWNERS:
        type_node = node.child_by_field_name("type")
        return [type_node] if type_node is not None else []
    if node.type in _TYPE_CHILD_OWNERS:
        return [c for c in node.named_children if c.type in _TYPE_NODES]
    return []


def _scoped_name(node, pending: list) -> str:
    """Dotted name of a scoped type; type arguments go onto ``pending``."""
    parts: list[str] = []
    for child in node.named_children:
        if child.type == "type_identifier":
            parts.append(node_text(child))
        elif child.type == "scoped_type_identifier":
            parts.append(_scoped_name(child, pending))
        elif child.type == "generic_type":
            for inner in child.named_children:
                if inner.type == "type_identifier":
                    parts.append(node_text(inner))
                elif inner.type == "scoped_type_identifier":
                    parts.append(_scoped_name(inner, pending))
                else:
                    pending.append(inner)
    return ".".join(p for p in parts if p)


def type_names(type_node) -> list[str]:
    """Every named (non-primitive) type inside a type expression.

    ``Map<String, List<Foo>>[]`` gives ``Map``, ``String``, ``List``, ``Foo``.
    """
    names: list[str] = []
    stack = [type_node]
    while stack:
        node = stack.pop()
        if node.type in _PRIMITIVE_NODES or node.type in _ANNOTATION_NODES:
            continue
        if node.type == "type_identifier":
            names.append(node_text(node))
        elif node.type == "scoped_type_identifier":
            names.append(_scoped_name(node, stack))
        else:
            stack.extend(reversed(node.named_children))
    return [n for n in names if n]


def referenced_type_names(declaration) -> set[str]:
    """Raw type names mentioned in type positions anywhere in ``declaration``."""
    found: set[str] = set()
    stack = [declaration]
    while stack:
        node = stack.pop()
        for type_node in _type_roots(node):
            found.update(type_names(type_node))
        stack.extend(node.named_children)
    return found


class JavaDependencyExtractor:
    """Resolves the raw type names of a unit against the catalog."""

    def __init__(self, catalog: UnitCatalog, config: PruneConfig):
        self.catalog = catalog
        self.strategy = config.strategy
        self.excluded_prefixes = list(config.excluded_prefixes)

    def extract(self, unit: Unit, declaration) -> set[str]:
        resolved: set[str] = set()
        for name in referenced_type_names(declaration):
            target = self.resolve(name, unit)
            if target is not None:
                resolved.add(target)
        return resolved

    def resolve(self, name: str, unit: Unit) -> str | None:
        """Map a type name seen inside ``unit`` to a cataloged unit, or None."""
        if name in _IGNORED_NAMES or under_namespace(name, self.excluded_prefixes):
            return None

        if "." in name:
            return name if name in self.catalog else None

        if self.strategy == ResolutionStrategy.CATALOG_SEARCH:
            matches = self.catalog.find_by_simple_name(name)
            if len(matches) == 1:
                candidate = matches[0]
            else:
                candidate = qualify(unit.namespace, name)
        else:
            candidate = qualify(unit.namespace, name)

        if candidate in self.catalog and not under_namespace(candidate, self.excluded_prefixes):
            return candidate
        return None
