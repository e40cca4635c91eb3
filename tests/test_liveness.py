"""Tests for the liveness analyzer (deletable-set computation)."""

from pathlib import Path

import pytest

from class_prune.analysis import DependencyGraphBuilder, LivenessAnalyzer
from class_prune.models import LivenessMode, PruneConfig, Unit

ROOT = Path("/fake")


# ── Helpers ───────────────────────────────────────────────────

def _graph(edges: dict[str, set[str]], extra=(), files: dict[str, str] | None = None):
    """Build a frozen graph; ``files`` maps unit -> shared file name."""
    files = files or {}
    names = set(edges) | {t for ts in edges.values() for t in ts} | set(extra)
    units = [
        Unit(n, ROOT / files.get(n, f"{n.replace('.', '/')}.java"), n.rpartition(".")[0])
        for n in sorted(names)
    ]
    return DependencyGraphBuilder().build(units, edges)


def _analyze(edges, targets, mode=LivenessMode.FIXPOINT, extra=(), files=None, **config):
    graph = _graph(edges, extra=extra, files=files)
    analyzer = LivenessAnalyzer(graph, PruneConfig(source_dir=ROOT, mode=mode, **config))
    return analyzer.analyze(targets), graph


def _assert_sound_and_safe(result, graph):
    """Every deleted unit is reachable; no survivor points into the set."""
    deleted = set(result.deletable) - result.by_name
    assert deleted <= result.reachable
    for name in deleted - result.targets:
        for user in graph.referencers(name):
            assert user == name or user in deleted, f"{user} still uses {name}"


MODES = list(LivenessMode)


# ── End-to-end scenarios ──────────────────────────────────────

class TestScenarios:
    @pytest.mark.parametrize("mode", MODES)
    def test_exclusive_chain_deleted(self, mode):
        result, graph = _analyze({"A": {"B"}, "B": {"C"}}, ["A"], mode)
        assert set(result.deletable) == {"A", "B", "C"}
        _assert_sound_and_safe(result, graph)

    @pytest.mark.parametrize("mode", MODES)
    def test_external_user_blocks(self, mode):
        result, graph = _analyze({"A": {"B"}, "X": {"B"}}, ["A"], mode)
        assert set(result.deletable) == {"A"}
        assert result.retained == {"B": {"X"}}
        _assert_sound_and_safe(result, graph)

    @pytest.mark.parametrize("mode", MODES)
    def test_cycle_terminates(self, mode):
        result, graph = _analyze({"A": {"B"}, "B": {"A"}}, ["A"], mode)
        assert set(result.deletable) == {"A", "B"}
        _assert_sound_and_safe(result, graph)

    def test_cycle_with_external_tail_single_pass(self):
        # B's users are A and C, both in the closure, so one pass admits B
        # even though C ends up retained.
        edges = {"A": {"B"}, "B": {"C"}, "C": {"B"}, "Ext": {"C"}}
        result, _ = _analyze(edges, ["A"], LivenessMode.SINGLE_PASS)
        assert set(result.deletable) == {"A", "B"}
        assert result.retained == {"C": {"Ext"}}

    def test_cycle_with_external_tail_fixpoint(self):
        # C is kept for Ext, and C still uses B, so B has to stay as well.
        edges = {"A": {"B"}, "B": {"C"}, "C": {"B"}, "Ext": {"C"}}
        result, graph = _analyze(edges, ["A"], LivenessMode.FIXPOINT)
        assert set(result.deletable) == {"A"}
        assert result.retained == {"C": {"Ext"}, "B": {"C"}}
        assert result.iterations == 2
        _assert_sound_and_safe(result, graph)

    @pytest.mark.parametrize("mode", MODES)
    def test_absent_target_has_no_edges(self, mode, tmp_path):
        path = tmp_path / "gone" / "Ghost.java"
        path.parent.mkdir()
        path.write_text("not java at all {")
        graph = _graph({"A": {"B"}})
        config = PruneConfig(source_dir=tmp_path, mode=mode)
        result = LivenessAnalyzer(graph, config).analyze(["gone.Ghost"])
        assert result.deletable == {"gone.Ghost": path}
        assert result.by_name == {"gone.Ghost"}
        assert result.reachable == set()

    def test_path_like_target_never_resolved(self, tmp_path):
        victim = tmp_path / "victim.java"
        victim.write_text("class victim {}")
        root = tmp_path / "root"
        root.mkdir()
        graph = _graph({"A": {"B"}})
        result = LivenessAnalyzer(graph, PruneConfig(source_dir=root)).analyze([str(tmp_path / "victim")])
        assert result.deletable == {}
        assert result.unresolved_targets == {str(tmp_path / "victim")}

    def test_candidate_outside_root_refused(self, tmp_path):
        outside = tmp_path / "elsewhere" / "p" / "Ghost.java"
        outside.parent.mkdir(parents=True)
        outside.write_text("package p; class Ghost {}")
        root = tmp_path / "root"
        root.mkdir()
        graph = _graph({"A": {"B"}})
        result = LivenessAnalyzer(graph, PruneConfig(source_dir=root)).analyze(["p.Ghost"], [outside])
        assert result.deletable == {}
        assert result.unresolved_targets == {"p.Ghost"}

    def test_absent_target_without_file(self):
        result, _ = _analyze({"A": {"B"}}, ["nope.Missing"])
        assert result.deletable == {}
        assert result.unresolved_targets == {"nope.Missing"}


# ── Edge cases ────────────────────────────────────────────────

class TestEdgeCases:
    @pytest.mark.parametrize("mode", MODES)
    def test_self_loop_is_not_external(self, mode):
        result, _ = _analyze({"A": {"B"}, "B": {"B"}}, ["A"], mode)
        assert set(result.deletable) == {"A", "B"}

    def test_dead_cycle_behind_target_removed(self):
        # Single pass and fixpoint agree: the B<->C cycle only hangs off A
        result, graph = _analyze({"A": {"B"}, "B": {"C"}, "C": {"B"}}, ["A"])
        assert set(result.deletable) == {"A", "B", "C"}
        _assert_sound_and_safe(result, graph)

    def test_orphans_untouched(self):
        result, _ = _analyze({"A": {"B"}}, ["A"], extra=["Orphan"])
        assert "Orphan" not in result.deletable

    def test_target_used_externally_still_deleted(self):
        result, _ = _analyze({"X": {"A"}, "A": {"B"}}, ["A"])
        assert set(result.deletable) == {"A", "B"}
        assert result.broken_referencers == {"A": {"X"}}

    def test_multiple_targets_share_dependency(self):
        result, graph = _analyze({"A": {"S"}, "B": {"S"}}, ["A", "B"])
        assert set(result.deletable) == {"A", "B", "S"}
        _assert_sound_and_safe(result, graph)

    def test_one_target_keeps_shared_dependency_if_other_survives(self):
        result, _ = _analyze({"A": {"S"}, "B": {"S"}}, ["A"])
        assert set(result.deletable) == {"A"}

    def test_long_conditional_chain(self):
        # D is blocked by Ext; that blocks C, then B, round by round
        edges = {"A": {"B", "C", "D"}, "B": {"C"}, "C": {"D"}, "D": {"B"}, "Ext": {"D"}}
        result, graph = _analyze(edges, ["A"])
        assert set(result.deletable) == {"A"}
        _assert_sound_and_safe(result, graph)

    def test_empty_targets_rejected(self):
        graph = _graph({"A": set()})
        with pytest.raises(ValueError):
            LivenessAnalyzer(graph, PruneConfig()).analyze(["  "])

    def test_unfrozen_graph_rejected(self):
        from class_prune.analysis import DependencyGraph
        with pytest.raises(ValueError):
            LivenessAnalyzer(DependencyGraph(), PruneConfig())


# ── Reserved namespace ────────────────────────────────────────

class TestReservedNamespace:
    @pytest.mark.parametrize("mode", MODES)
    def test_reserved_unit_never_deleted(self, mode):
        edges = {"app.A": {"tools.Util"}}
        result, _ = _analyze(edges, ["app.A"], mode, reserved_prefixes=["tools"])
        assert set(result.deletable) == {"app.A"}
        assert result.excluded == {"tools.Util"}

    def test_reserved_target_never_deleted(self):
        result, _ = _analyze({"tools.T": set()}, ["tools.T"], reserved_prefixes=["tools"])
        assert result.deletable == {}
        assert result.excluded == {"tools.T"}

    def test_reserved_unit_keeps_its_dependencies(self):
        edges = {"app.A": {"tools.Util", "app.B"}, "tools.Util": {"app.B"}}
        result, graph = _analyze(edges, ["app.A"], reserved_prefixes=["tools"])
        assert set(result.deletable) == {"app.A"}
        assert result.retained["app.B"] == {"tools.Util"}

    def test_prefix_matches_whole_segments(self):
        edges = {"app.A": {"toolsx.Util"}}
        result, _ = _analyze(edges, ["app.A"], reserved_prefixes=["tools"])
        assert set(result.deletable) == {"app.A", "toolsx.Util"}


# ── Shared files ──────────────────────────────────────────────

class TestSharedFiles:
    def test_sibling_outside_closure_keeps_candidate(self):
        files = {"B": "Shared.java", "Other": "Shared.java"}
        result, _ = _analyze({"A": {"B"}}, ["A"], extra=["Other"], files=files)
        assert set(result.deletable) == {"A"}
        assert result.retained["B"] == {"Other"}

    def test_siblings_both_in_closure_deleted(self):
        files = {"B": "Shared.java", "C": "Shared.java"}
        result, _ = _analyze({"A": {"B", "C"}}, ["A"], files=files)
        assert set(result.deletable) == {"A", "B", "C"}

    def test_target_with_live_sibling_is_held(self):
        files = {"A": "Shared.java", "Other": "Shared.java"}
        result, graph = _analyze({"A": {"B"}, "X": {"Other"}}, ["A"], files=files)
        assert result.deletable == {}
        assert result.retained["A"] == {"Other"}
        assert result.retained["B"] == {"A"}


# ── Properties ────────────────────────────────────────────────

GRAPHS = [
    {"A": {"B", "C"}, "B": {"D"}, "C": {"D"}, "D": {"E"}, "X": {"C"}},
    {"A": {"B"}, "B": {"C"}, "C": {"A", "D"}, "D": set(), "Y": {"D"}},
    {"A": {"A", "B"}, "B": {"C", "B"}, "C": {"D"}, "D": {"B"}, "Z": {"A"}},
    {"A": {"B"}, "B": {"C"}, "C": {"D"}, "D": {"E"}, "E": {"B"}, "W": {"E"}},
]


class TestProperties:
    @pytest.mark.parametrize("edges", GRAPHS)
    def test_fixpoint_sound_and_safe(self, edges):
        result, graph = _analyze(edges, ["A"])
        assert "A" in result.deletable
        _assert_sound_and_safe(result, graph)

    @pytest.mark.parametrize("edges", GRAPHS)
    def test_deterministic(self, edges):
        first, _ = _analyze(edges, ["A"])
        second, _ = _analyze(edges, ["A"])
        assert first.deletable == second.deletable
        assert first.retained == second.retained

    @pytest.mark.parametrize("edges", GRAPHS)
    def test_fixpoint_never_larger_than_single_pass(self, edges):
        fixed, _ = _analyze(edges, ["A"], LivenessMode.FIXPOINT)
        single, _ = _analyze(edges, ["A"], LivenessMode.SINGLE_PASS)
        assert set(fixed.deletable) <= set(single.deletable)

    @pytest.mark.parametrize("edges", GRAPHS)
    def test_deletable_within_closure(self, edges):
        result, _ = _analyze(edges, ["A"], LivenessMode.SINGLE_PASS)
        assert set(result.deletable) <= result.reachable
