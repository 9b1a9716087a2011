"""
tests/conftest.py
-----------------
Wspólne fixtures: budowanie stron wejściowych oraz losowe wyrażenia
drzew błędów z referencyjnym obliczeniem metodą pełnego przeglądu.
"""

from __future__ import annotations

import itertools
import random

import pandas as pd
import pytest

from ftbdd.base_events import BaseEvent
from ftbdd.combinator import Combinator
from ftbdd.loader import SubTreePage
from ftbdd.nodes import Gate, Terminal

ROW_COLUMNS = ["ID", "Probability", "Description", "Guidance", "Label"]


def make_page(tree_id: int, name: str, gate: int, rows: list[tuple]) -> SubTreePage:
    """Strona poddrzewa; wiersze jako krotki (ID, p, opis, wskazówka, etykieta)."""
    return SubTreePage(
        parameters={
            "Description": f"Poddrzewo {name}",
            "ID": tree_id,
            "LogicalType": gate,
            "LogicalTypeDesc": "AND" if gate == 0 else "OR",
            "TreeName": name,
        },
        rows=pd.DataFrame(rows, columns=ROW_COLUMNS),
    )


@pytest.fixture
def page_factory():
    return make_page


@pytest.fixture
def example_pages() -> list[SubTreePage]:
    """
    Przykład referencyjny: TOP = OR(1001, SUB), SUB = AND(1002, 1003).
    p(1001)=0.1, p(1002)=0.2, p(1003)=0.3  →  PS = 0.1 + 0.9·0.06 = 0.154
    """
    return [
        make_page(
            1,
            "SUB",
            0,
            [
                (1002, 0.2, "Pompa A", "Sprawdź pompę A", "PA"),
                (1003, 0.3, "Pompa B", "Sprawdź pompę B", "PB"),
            ],
        ),
        make_page(
            2,
            "TOP",
            1,
            [
                (1001, 0.1, "Zasilanie", "Sprawdź zasilacz", "PS1"),
                (1, 0.0, "Obie pompy", "", "SUB"),
            ],
        ),
    ]


# ---------------------------------------------------------------------------
# Losowe wyrażenia i pełny przegląd
# ---------------------------------------------------------------------------


class Expression:
    """Wyrażenie AND/OR nad zdarzeniami bazowymi: ("base", id) albo (Gate, [dzieci])."""

    def __init__(self, tree, events: dict[int, BaseEvent]) -> None:
        self.tree = tree
        self.events = events

    def truth(self, state: dict[int, bool], node=None) -> bool:
        node = self.tree if node is None else node
        if node[0] == "base":
            return state[node[1]]
        values = [self.truth(state, child) for child in node[1]]
        return all(values) if node[0] is Gate.AND else any(values)

    def build(self, combinator: Combinator, node=None):
        node = self.tree if node is None else node
        if node[0] == "base":
            return Terminal(self.events[node[1]])
        return combinator.fold([self.build(combinator, c) for c in node[1]], node[0])

    def used_ids(self, node=None) -> set[int]:
        node = self.tree if node is None else node
        if node[0] == "base":
            return {node[1]}
        return set().union(*(self.used_ids(c) for c in node[1]))

    def brute_force(self, overrides: dict[int, float] | None = None) -> float:
        """Pr[top] jako suma prawdopodobieństw stanów, w których top = True."""
        overrides = overrides or {}
        ids = sorted(self.used_ids())
        probs = {i: overrides.get(i, self.events[i].probability) for i in ids}
        total = 0.0
        for bits in itertools.product((False, True), repeat=len(ids)):
            state = dict(zip(ids, bits))
            weight = 1.0
            for i, failed in state.items():
                weight *= probs[i] if failed else 1.0 - probs[i]
            if self.truth(state):
                total += weight
        return total


def random_expression(rng: random.Random, n_bases: int = 6, depth: int = 3) -> Expression:
    events = {
        1001 + i: BaseEvent(1001 + i, round(rng.uniform(0.0, 1.0), 4), label=f"B{i}")
        for i in range(n_bases)
    }
    ids = list(events)

    def grow(level: int):
        if level == 0 or rng.random() < 0.3:
            return ("base", rng.choice(ids))
        gate = rng.choice([Gate.AND, Gate.OR])
        return (gate, [grow(level - 1) for _ in range(rng.randint(2, 3))])

    root = grow(depth)
    if root[0] == "base":
        root = (Gate.OR, [root, ("base", rng.choice(ids))])
    return Expression(root, events)


@pytest.fixture
def expression_factory():
    return random_expression
