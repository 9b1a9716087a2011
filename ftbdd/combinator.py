"""
combinator.py
-------------
Łączenie dwóch diagramów BDD bramką AND/OR (operacja "apply" oparta
na rozwinięciu Shannona).

Przypadki (a, b — operandy, g — bramka):
┌──────────────────────────────────────┬────────────────────────────────────┐
│ Operandy                             │ Wynik                              │
├──────────────────────────────────────┼────────────────────────────────────┤
│ stała                                │ AND: 0·x=0, 1·x=x; OR: 1+x=1, 0+x=x│
│ Terminal(i), Terminal(i)             │ Terminal(i)   (a·a = a, a+a = a)   │
│ Terminal(i), Terminal(j), i < j      │ AND: ITE(i, j, 0)  OR: ITE(i, 1, j)│
│ Terminal(b), Internal(t), b < t      │ AND: ITE(b, t, 0)  OR: ITE(b, 1, t)│
│ Terminal(b), Internal(t), b == t     │ AND: ITE(b, t.high, 0)             │
│                                      │ OR:  ITE(b, 1, t.low)              │
│ Terminal(b), Internal(t), b > t      │ ITE(t, g(t.high, b), g(t.low, b))  │
│ Internal(p), Internal(q), p == q     │ ITE(p, g(highs), g(lows))          │
│ Internal(p), Internal(q), p < q      │ ITE(p, g(p.high, q), g(p.low, q))  │
└──────────────────────────────────────┴────────────────────────────────────┘

Wyniki są zapamiętywane w tablicy memo kluczowanej tożsamością operandów,
więc powtarzające się podstruktury nie mnożą węzłów.
"""

from __future__ import annotations

from typing import Sequence

from .base_events import BaseEvent
from .errors import AllocationFailureError
from .nodes import (
    FALSE,
    TRUE,
    Constant,
    Gate,
    Internal,
    Node,
    Terminal,
    cofactors,
)

# Znaczniki zadań na jawnym stosie
_EXPAND = 0
_BUILD = 1


class Combinator:
    """
    Arena węzłów BDD wraz z operacją łączenia.

    Wszystkie węzły utworzone przez kombinator są przechowywane w arenie
    i zwalniane razem z nią (brak zwalniania pojedynczych węzłów w trakcie
    obliczeń).

    Parametry
    ----------
    max_nodes : int, opcjonalnie
        Maksymalna liczba węzłów, jaką kombinator może utworzyć.
        None = bez limitu.
    memoize : bool
        Czy zapamiętywać wyniki łączenia par węzłów. Domyślnie True.

    Przykład
    --------
    >>> comb = Combinator()
    >>> root = comb.combine(Terminal(a), Terminal(b), Gate.AND)
    """

    def __init__(self, max_nodes: int | None = None, memoize: bool = True) -> None:
        self.max_nodes = max_nodes
        self.memoize = memoize
        self._arena: list[Internal] = []
        self._memo: dict[tuple[Node, Node, Gate], Node] = {}

    # ------------------------------------------------------------------
    # Arena
    # ------------------------------------------------------------------

    @property
    def nodes_created(self) -> int:
        """Liczba węzłów Internal utworzonych przez kombinator."""
        return len(self._arena)

    def make_node(self, var: BaseEvent, high: Node, low: Node) -> Internal:
        if self.max_nodes is not None and len(self._arena) >= self.max_nodes:
            raise AllocationFailureError(
                f"Przekroczono limit {self.max_nodes} węzłów BDD."
            )
        node = Internal(var, high, low)
        self._arena.append(node)
        return node

    def clear(self) -> None:
        """Zwalnia całą arenę i tablicę memo."""
        self._arena.clear()
        self._memo.clear()

    # ------------------------------------------------------------------
    # Jeden krok rozwinięcia
    # ------------------------------------------------------------------

    def _step(self, a: Node, b: Node, gate: Gate):
        """
        Zwraca (True, węzeł) gdy wynik jest znany od razu albo
        (False, (zmienna, (high_a, high_b), (low_a, low_b))) gdy trzeba
        rozwinąć oba kofaktory.
        """
        # Stałe
        if isinstance(a, Constant) or isinstance(b, Constant):
            return True, _constant_rule(a, b, gate)

        if isinstance(a, Terminal) and isinstance(b, Terminal):
            return True, self._terminal_terminal(a, b, gate)

        if isinstance(a, Terminal) or isinstance(b, Terminal):
            term, other = (a, b) if isinstance(a, Terminal) else (b, a)
            base = term.base
            if base.id < other.var.id:
                if gate is Gate.AND:
                    return True, self.make_node(base, other, FALSE)
                return True, self.make_node(base, TRUE, other)
            if base.id == other.var.id:
                if gate is Gate.AND:
                    return True, self.make_node(base, other.high, FALSE)
                return True, self.make_node(base, TRUE, other.low)
            return False, (other.var, (other.high, term), (other.low, term))

        # Oba węzły wewnętrzne
        if a.var.id == b.var.id:
            return False, (a.var, (a.high, b.high), (a.low, b.low))
        small, big = (a, b) if a.var.id < b.var.id else (b, a)
        high, low = cofactors(small)
        return False, (small.var, (high, big), (low, big))

    def _terminal_terminal(self, a: Terminal, b: Terminal, gate: Gate) -> Node:
        if a.base.id == b.base.id:
            return a
        small, big = (a, b) if a.base.id < b.base.id else (b, a)
        if gate is Gate.AND:
            return self.make_node(small.base, big, FALSE)
        return self.make_node(small.base, TRUE, big)

    # ------------------------------------------------------------------
    # Memo
    # ------------------------------------------------------------------

    def _lookup(self, a: Node, b: Node, gate: Gate) -> Node | None:
        if not self.memoize:
            return None
        hit = self._memo.get((a, b, gate))
        if hit is None:
            hit = self._memo.get((b, a, gate))
        return hit

    def _remember(self, a: Node, b: Node, gate: Gate, result: Node) -> None:
        if self.memoize:
            self._memo[(a, b, gate)] = result

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------

    def combine(self, a: Node, b: Node, gate: Gate | int) -> Node:
        """
        Zwraca BDD reprezentujące ``a gate b`` z zachowaniem kolejności zmiennych.

        Parametry
        ----------
        a, b : Node
            Korzenie łączonych diagramów.
        gate : Gate lub int
            Bramka AND (0) lub OR (1).

        Zwraca
        -------
        Node
            Korzeń nowego diagramu.

        Rzuca
        ------
        AllocationFailureError
            Gdy przekroczono limit węzłów areny.
        """
        gate = Gate.parse(gate)
        work: list[tuple] = [(_EXPAND, a, b)]
        results: list[Node] = []

        while work:
            task = work.pop()
            if task[0] == _BUILD:
                _, var, x, y = task
                low = results.pop()
                high = results.pop()
                node = self.make_node(var, high, low)
                self._remember(x, y, gate, node)
                results.append(node)
                continue

            _, x, y = task
            hit = self._lookup(x, y, gate)
            if hit is not None:
                results.append(hit)
                continue

            finished, payload = self._step(x, y, gate)
            if finished:
                self._remember(x, y, gate, payload)
                results.append(payload)
                continue

            var, (high_x, high_y), (low_x, low_y) = payload
            work.append((_BUILD, var, x, y))
            work.append((_EXPAND, low_x, low_y))
            work.append((_EXPAND, high_x, high_y))

        return results.pop()

    def fold(self, members: Sequence[Node], gate: Gate | int) -> Node:
        """
        Łączy listę korzeni od lewej: g(g(g(m0, m1), m2), ...).

        Rzuca
        ------
        ValueError
            Gdy lista jest pusta.
        """
        if not members:
            raise ValueError("Nie można połączyć pustej listy elementów poddrzewa.")
        if len(members) == 1:
            return members[0]
        root = self.combine(members[0], members[1], gate)
        for member in members[2:]:
            root = self.combine(root, member, gate)
        return root


def _constant_rule(a: Node, b: Node, gate: Gate) -> Node:
    absorbing = gate is Gate.OR
    for node in (a, b):
        if isinstance(node, Constant) and node.value is absorbing:
            return TRUE if absorbing else FALSE
    # Drugi operand to element neutralny bramki
    return b if isinstance(a, Constant) else a


def combine(a: Node, b: Node, gate: Gate | int) -> Node:
    """Skrót: łączenie dwóch diagramów w nowej, jednorazowej arenie."""
    return Combinator().combine(a, b, gate)
