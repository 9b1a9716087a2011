"""
tests/test_scheduler.py
-----------------------
Unit testy dla modułu ftbdd.scheduler.
"""

import pytest

from ftbdd.combinator import Combinator
from ftbdd.errors import DependencyCycleError, UnresolvedDependencyError
from ftbdd.evaluator import evaluate
from ftbdd.loader import TreeState, load_sub_trees
from ftbdd.scheduler import DependencyScheduler, find_cycle


def _base(event_id, p=0.1, label=""):
    return (event_id, p, "", "", label)


def _ref(tree_id, label=""):
    return (tree_id, 0.0, "", "", label)


class TestDependencyScheduler:
    def test_example_order_and_probability(self, example_pages):
        forest = load_sub_trees(example_pages)
        order = DependencyScheduler(forest).run()
        assert [t.name for t in order] == ["SUB", "TOP"]
        assert evaluate(forest.by_id[2].root) == pytest.approx(0.154)

    def test_all_trees_computed(self, example_pages):
        forest = load_sub_trees(example_pages)
        DependencyScheduler(forest).run()
        assert all(t.state is TreeState.COMPUTED for t in forest.sub_trees)

    def test_reference_declared_before_target(self, page_factory):
        """Kolejność stron nie musi odpowiadać kolejności zależności."""
        pages = [
            page_factory(1, "TOP", 1, [_ref(2), _ref(3)]),
            page_factory(2, "MID", 0, [_ref(3), _base(1001)]),
            page_factory(3, "LEAF", 1, [_base(1002), _base(1003)]),
        ]
        forest = load_sub_trees(pages)
        scheduler = DependencyScheduler(forest)
        order = scheduler.run()
        assert [t.name for t in order] == ["LEAF", "MID", "TOP"]
        assert scheduler.failures == {}

    def test_single_reference_tree_shares_root(self, page_factory):
        pages = [
            page_factory(1, "ALIAS", 0, [_ref(2)]),
            page_factory(2, "LEAF", 1, [_base(1001), _base(1002)]),
        ]
        forest = load_sub_trees(pages)
        DependencyScheduler(forest).run()
        assert forest.by_id[1].root is forest.by_id[2].root

    def test_chain_needs_at_most_n_passes(self, page_factory):
        n = 12
        pages = [page_factory(k, f"T{k}", k % 2, [_ref(k + 1), _base(1001 + k)]) for k in range(n - 1)]
        pages.append(page_factory(n - 1, f"T{n - 1}", 0, [_base(1001 + n), _base(1002 + n)]))
        forest = load_sub_trees(pages)
        scheduler = DependencyScheduler(forest)
        scheduler.run()
        assert scheduler.passes <= n
        assert all(t.computed for t in forest.sub_trees)
        assert [t.id for t in scheduler.order] == list(range(n - 1, -1, -1))

    def test_second_run_keeps_order_and_passes(self, page_factory):
        """Ponowne run() nie przestawia kolejności obliczenia ani nie sumuje przebiegów."""
        pages = [
            page_factory(1, "TOP", 1, [_base(1001), _ref(2)]),
            page_factory(2, "SUB", 0, [_base(1002), _base(1003)]),
        ]
        scheduler = DependencyScheduler(load_sub_trees(pages))
        first = [t.name for t in scheduler.run()]
        passes = scheduler.passes
        assert first == ["SUB", "TOP"]
        assert [t.name for t in scheduler.run()] == first
        assert scheduler.passes == passes == 1

    def test_shared_sub_tree(self, page_factory):
        """Poddrzewo wskazywane dwukrotnie, zdarzenie liczone raz."""
        pages = [
            page_factory(1, "COMMON", 1, [_base(1001, 0.5), _base(1002, 0.5)]),
            page_factory(2, "A", 0, [_ref(1), _base(1003, 0.5)]),
            page_factory(3, "TOP", 0, [_ref(1), _ref(2)]),
        ]
        forest = load_sub_trees(pages)
        DependencyScheduler(forest).run()
        # TOP = COMMON·(COMMON·1003) = COMMON·1003
        assert evaluate(forest.by_id[3].root) == pytest.approx(0.75 * 0.5)


class TestSchedulerErrors:
    def test_unresolved_reference(self, page_factory):
        pages = [page_factory(1, "TOP", 1, [_base(1001), _ref(42)])]
        forest = load_sub_trees(pages)
        with pytest.raises(UnresolvedDependencyError) as info:
            DependencyScheduler(forest).run()
        assert info.value.member_id == 42
        assert info.value.position == 1
        assert "ID=42" in str(info.value)
        assert isinstance(info.value, KeyError)

    def test_cycle_detected(self, page_factory):
        pages = [
            page_factory(1, "A", 0, [_ref(2), _base(1001)]),
            page_factory(2, "B", 1, [_ref(3), _base(1002)]),
            page_factory(3, "C", 0, [_ref(1), _base(1003)]),
            page_factory(4, "LEAF", 0, [_base(1004), _base(1005)]),
        ]
        forest = load_sub_trees(pages)
        scheduler = DependencyScheduler(forest)
        with pytest.raises(DependencyCycleError, match="cykl") as info:
            scheduler.run()
        assert sorted(name for _, name in info.value.cycle) == ["A", "B", "C"]

    def test_self_reference_is_cycle(self, page_factory):
        pages = [page_factory(1, "SELF", 1, [_ref(1), _base(1001)])]
        with pytest.raises(DependencyCycleError) as info:
            DependencyScheduler(load_sub_trees(pages)).run()
        assert info.value.cycle == [(1, "SELF")]

    def test_find_cycle_empty(self):
        assert find_cycle([], {}) == []

    def test_allocation_failure_marks_dependents(self, page_factory):
        pages = [
            page_factory(1, "A", 0, [_base(1001), _base(1002)]),
            page_factory(2, "B", 1, [_ref(1), _base(1003), _base(1004)]),
            page_factory(3, "C", 0, [_ref(2), _base(1005)]),
        ]
        forest = load_sub_trees(pages, combinator=Combinator(max_nodes=2))
        scheduler = DependencyScheduler(forest)
        with pytest.warns(UserWarning, match="nie zostało obliczone"):
            order = scheduler.run()
        assert [t.name for t in order] == ["A"]
        assert forest.by_id[2].state is TreeState.FAILED
        assert "limit 2" in scheduler.failures[2]
        assert forest.by_id[3].state is TreeState.FAILED
        assert "'B'" in scheduler.failures[3]

    def test_allocation_failure_during_load(self, page_factory):
        pages = [
            page_factory(1, "BIG", 0, [_base(1001), _base(1002), _base(1003)]),
            page_factory(2, "TOP", 1, [_ref(1), _base(1004)]),
        ]
        with pytest.warns(UserWarning, match="nie zostało obliczone"):
            forest = load_sub_trees(pages, combinator=Combinator(max_nodes=1))
            scheduler = DependencyScheduler(forest)
            scheduler.run()
        assert set(scheduler.failures) == {1, 2}
        assert scheduler.order == []
