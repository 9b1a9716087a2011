"""
traversal.py
------------
Przechodzenie diagramów BDD z jawnym stosem (bez rekurencji Pythona).

Głębokie, niezrównoważone drzewa błędów dają BDD o ścieżkach dłuższych
niż domyślny limit rekurencji interpretera, dlatego wszystkie przejścia
w pakiecie korzystają z funkcji tego modułu.
"""

from __future__ import annotations

import sys
from typing import Iterator, TextIO

from .base_events import BaseEvent
from .nodes import Constant, Internal, Node, Terminal, node_label


def _children(node: Node) -> tuple[Node, ...]:
    if isinstance(node, Internal):
        return node.high, node.low
    return ()


def iter_preorder(root: Node) -> Iterator[Node]:
    """
    Zwraca każdy unikalny węzeł raz, w kolejności pre-order (high przed low).

    Węzły współdzielone w DAG-u są odwiedzane tylko przy pierwszym spotkaniu.
    """
    seen: set[int] = set()
    stack: list[Node] = [root]
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        yield node
        # low na stos pierwszy, by high zdjąć wcześniej
        for child in reversed(_children(node)):
            if id(child) not in seen:
                stack.append(child)


def iter_postorder(root: Node) -> Iterator[Node]:
    """Zwraca każdy unikalny węzeł raz, dzieci zawsze przed rodzicem."""
    done: set[int] = set()
    stack: list[tuple[Node, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if id(node) in done:
            continue
        if expanded:
            done.add(id(node))
            yield node
            continue
        stack.append((node, True))
        for child in reversed(_children(node)):
            if id(child) not in done:
                stack.append((child, False))


def collect_base_events(root: Node) -> list[BaseEvent]:
    """Unikalne zdarzenia bazowe diagramu w kolejności odkrycia."""
    events: dict[int, BaseEvent] = {}
    for node in iter_preorder(root):
        if isinstance(node, Constant):
            continue
        events.setdefault(node.var.id, node.var)
    return list(events.values())


def count_nodes(root: Node) -> int:
    """Liczba unikalnych węzłów osiągalnych z korzenia (łącznie ze stałymi)."""
    return sum(1 for _ in iter_preorder(root))


def dump_structure(root: Node, stream: TextIO | None = None) -> None:
    """
    Wypisuje strukturę ITE: jeden wiersz "zmienna then else" na węzeł.

    Dzieci będące stałymi wypisywane są jako 1 / 0, pozostałe jako ID
    testowanej zmiennej. Liść Terminal(b) ma postać "b 1 0".
    """
    stream = stream if stream is not None else sys.stdout
    if isinstance(root, Constant):
        print(node_label(root), file=stream)
        return
    for node in iter_preorder(root):
        if isinstance(node, Internal):
            print(
                f"{node.var.id} {node_label(node.high)} {node_label(node.low)}",
                file=stream,
            )
        elif isinstance(node, Terminal):
            print(f"{node.base.id} 1 0", file=stream)
