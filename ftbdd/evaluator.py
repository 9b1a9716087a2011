"""
evaluator.py
------------
Prawdopodobieństwo zdarzenia szczytowego dla diagramu BDD.

Wzór (rozwinięcie Shannona) dla węzła ITE(v, high, low):
    PS = p_v · PS(high) + (1 − p_v) · PS(low)

    PS(TRUE) = 1,  PS(FALSE) = 0,  PS(Terminal(b)) = p_b

Funkcja jest czysta: hipotetyczne prawdopodobieństwa zdarzeń bazowych
przekazuje się mapą ``overrides`` zamiast modyfikować zdarzenia.
"""

from __future__ import annotations

from typing import Mapping

from .base_events import BaseEvent, validate_probability
from .nodes import Constant, Node, Terminal
from .traversal import iter_postorder


def effective_probability(
    base: BaseEvent,
    overrides: Mapping[int, float] | None = None,
) -> float:
    """Prawdopodobieństwo zdarzenia z uwzględnieniem nadpisań."""
    if overrides and base.id in overrides:
        return overrides[base.id]
    return base.probability


def evaluate(root: Node, overrides: Mapping[int, float] | None = None) -> float:
    """
    Oblicza Pr[zdarzenie szczytowe] dla diagramu o korzeniu ``root``.

    Parametry
    ----------
    root : Node
        Korzeń diagramu BDD.
    overrides : Mapping[int, float], opcjonalnie
        Prawdopodobieństwa zastępujące wartości zdarzeń bazowych (klucz: ID).

    Zwraca
    -------
    float
        Prawdopodobieństwo awarii systemu [0..1].

    Rzuca
    ------
    ValueError
        Gdy któreś nadpisanie leży poza zakresem [0, 1].

    Przykład
    --------
    >>> evaluate(root)                  # wartości bieżące
    >>> evaluate(root, {1001: 1.0})     # zdarzenie 1001 pewne
    """
    if overrides:
        for event_id, value in overrides.items():
            validate_probability(value, f"nadpisania zdarzenia {event_id}")

    ps: dict[int, float] = {}
    for node in iter_postorder(root):
        if isinstance(node, Constant):
            value = 1.0 if node.value else 0.0
        elif isinstance(node, Terminal):
            value = effective_probability(node.base, overrides)
        else:
            p = effective_probability(node.var, overrides)
            value = p * ps[id(node.high)] + (1.0 - p) * ps[id(node.low)]
        ps[id(node)] = value
    return ps[id(root)]
