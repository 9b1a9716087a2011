"""
nodes.py
--------
Reprezentacja węzłów diagramu BDD (Binary Decision Diagram).

Rodzaje węzłów:
┌──────────────────────────┬──────────────────────────────────────────────┐
│ Węzeł                    │ Znaczenie                                    │
├──────────────────────────┼──────────────────────────────────────────────┤
│ TRUE / FALSE             │ stała 1 / 0                                  │
│ Terminal(b)              │ zdarzenie bazowe b  ≡ ITE(b, 1, 0)           │
│ Internal(v, high, low)   │ ITE(v, high, low): v uszkodzone → high,      │
│                          │ v sprawne → low                              │
└──────────────────────────┴──────────────────────────────────────────────┘

Niezmiennik kolejności: na każdej ścieżce od korzenia ID zmiennych
testowanych w węzłach Internal rosną ściśle.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from .base_events import BaseEvent


# ---------------------------------------------------------------------------
# Bramka logiczna
# ---------------------------------------------------------------------------


class Gate(IntEnum):
    """Bramka poddrzewa (kodowanie jak w kolumnie LogicalType)."""

    AND = 0
    OR = 1

    @classmethod
    def parse(cls, value: object) -> "Gate":
        """Akceptuje 0/1 lub nazwy "AND"/"OR" (bez rozróżniania wielkości liter)."""
        if isinstance(value, str):
            name = value.strip().upper()
            if name in cls.__members__:
                return cls[name]
            if name.isdigit():
                value = int(name)
        try:
            return cls(int(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            raise ValueError(
                f"Nieznany typ bramki: {value!r}. Dozwolone: 0=AND, 1=OR."
            ) from None


# ---------------------------------------------------------------------------
# Węzły
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Constant:
    """Stała logiczna. Istnieją tylko dwie instancje: TRUE i FALSE."""

    value: bool

    def __repr__(self) -> str:
        return "TRUE" if self.value else "FALSE"


TRUE = Constant(True)
FALSE = Constant(False)


@dataclass(frozen=True, eq=False)
class Terminal:
    """Liść BDD wskazujący zdarzenie bazowe."""

    base: BaseEvent

    @property
    def var(self) -> BaseEvent:
        return self.base

    def __repr__(self) -> str:
        return f"Terminal({self.base.id})"


@dataclass(frozen=True, eq=False)
class Internal:
    """
    Węzeł ITE(var, high, low).

    Parametry
    ----------
    var : BaseEvent
        Zmienna testowana w węźle.
    high : Node
        Gałąź "then" — zdarzenie var wystąpiło.
    low : Node
        Gałąź "else" — zdarzenie var nie wystąpiło.

    Rzuca
    ------
    ValueError
        Gdy dziecko testuje zmienną o ID nie większym niż var.id.
    """

    var: BaseEvent
    high: "Node"
    low: "Node"

    def __post_init__(self) -> None:
        for branch in (self.high, self.low):
            child_var = variable_of(branch)
            if child_var is not None and child_var.id <= self.var.id:
                raise ValueError(
                    f"Naruszona kolejność zmiennych BDD: węzeł {self.var.id} "
                    f"ma dziecko testujące zmienną {child_var.id}."
                )

    def __repr__(self) -> str:
        return f"Internal({self.var.id}, {self.high!r}, {self.low!r})"


Node = Union[Constant, Terminal, Internal]


# ---------------------------------------------------------------------------
# Funkcje pomocnicze
# ---------------------------------------------------------------------------


def constant(value: bool) -> Constant:
    return TRUE if value else FALSE


def is_constant(node: Node) -> bool:
    return isinstance(node, Constant)


def is_terminal(node: Node) -> bool:
    return isinstance(node, Terminal)


def variable_of(node: Node) -> BaseEvent | None:
    """Zmienna testowana w węźle; None dla stałych."""
    if isinstance(node, Constant):
        return None
    return node.var


def cofactors(node: Terminal | Internal) -> tuple[Node, Node]:
    """Zwraca (high, low). Dla liścia Terminal(b) jest to (TRUE, FALSE)."""
    if isinstance(node, Terminal):
        return TRUE, FALSE
    return node.high, node.low


def node_label(node: Node) -> str:
    """Etykieta węzła w zrzucie struktury: ID zmiennej albo 1/0 dla stałych."""
    if isinstance(node, Constant):
        return "1" if node.value else "0"
    return str(node.var.id)
