"""Graph construction and liveness analysis."""

from class_prune.analysis.dependency_graph import DependencyGraphBuilder
from class_prune.analysis.graph_models import DependencyGraph, GraphIntegrityError, TransitiveDeps
from class_prune.analysis.liveness import LivenessAnalyzer

__all__ = [
    "DependencyGraph",
    "DependencyGraphBuilder",
    "GraphIntegrityError",
    "LivenessAnalyzer",
    "TransitiveDeps",
]
