"""
scheduler.py
------------
Kolejność łączenia poddrzew zależnych od innych poddrzew.

Stany poddrzewa:
    PENDING  → czeka na obliczenie poddrzew, do których się odwołuje
    READY    → wszystkie odwołania są obliczone, trwa łączenie
    COMPUTED → korzeń BDD gotowy
    FAILED   → łączenie nie powiodło się albo zależy od poddrzewa FAILED

Każdy przebieg obejmuje wszystkie poddrzewa PENDING w kolejności wczytania.
Dla acyklicznego grafu N poddrzew wystarcza co najwyżej N przebiegów;
przebieg bez postępu oznacza cykl i kończy się DependencyCycleError.
"""

from __future__ import annotations

import warnings

from .errors import AllocationFailureError, DependencyCycleError, UnresolvedDependencyError
from .loader import BaseMember, FaultTreeForest, SubTree, TreeState
from .nodes import Node


def resolve_references(forest: FaultTreeForest) -> None:
    """
    Sprawdza, czy każde odwołanie wskazuje wczytane poddrzewo.

    Rzuca
    ------
    UnresolvedDependencyError
        Dla pierwszego odwołania bez odpowiadającego poddrzewa.
    """
    by_id = forest.by_id
    for tree in forest.sub_trees:
        for ref in tree.references:
            if ref.tree_id not in by_id:
                raise UnresolvedDependencyError(tree.name, tree.id, ref.position, ref.tree_id)


def find_cycle(pending: list[SubTree], by_id: dict[int, SubTree]) -> list[tuple[int, str]]:
    """Zwraca jeden cykl (lista (ID, nazwa)) wśród zablokowanych poddrzew."""
    if not pending:
        return []
    waiting = {tree.id for tree in pending}
    path: list[int] = []
    index: dict[int, int] = {}
    current = pending[0].id
    while current not in index:
        index[current] = len(path)
        path.append(current)
        tree = by_id[current]
        current = next(ref.tree_id for ref in tree.references if ref.tree_id in waiting)
    return [(tree_id, by_id[tree_id].name) for tree_id in path[index[current]:]]


class DependencyScheduler:
    """
    Oblicza korzenie BDD poddrzew w kolejności zależności.

    Parametry
    ----------
    forest : FaultTreeForest
        Las zwrócony przez ``load_sub_trees``.

    Atrybuty (dostępne po ``run()``)
    ---------------------------------
    order : list[SubTree]
        Poddrzewa COMPUTED w kolejności obliczenia (najpierw te
        z samych zdarzeń bazowych, w kolejności wczytania).
    passes : int
        Liczba przebiegów ostatniego wywołania, które obliczało poddrzewa.
        Ponowne ``run()`` bez oczekujących poddrzew nie zmienia ``order``
        ani ``passes``.
    failures : dict[int, str]
        ID poddrzewa → powód niepowodzenia (łącznie z pominiętymi zależnymi).

    Przykład
    --------
    >>> scheduler = DependencyScheduler(forest)
    >>> for tree in scheduler.run():
    ...     print(tree.name, evaluate(tree.root))
    """

    def __init__(self, forest: FaultTreeForest) -> None:
        self.forest = forest
        self.order: list[SubTree] = []
        self.passes = 0
        self.failures: dict[int, str] = {}

    def _member_nodes(self, tree: SubTree, by_id: dict[int, SubTree]) -> list[Node]:
        nodes: list[Node] = []
        for member in tree.members:
            if isinstance(member, BaseMember):
                nodes.append(member.node)
            else:
                nodes.append(by_id[member.tree_id].root)
        return nodes

    def _mark_failed(self, tree: SubTree, reason: str) -> None:
        tree.state = TreeState.FAILED
        tree.error = reason
        self.failures[tree.id] = reason
        warnings.warn(
            f"Poddrzewo '{tree.name}' (ID={tree.id}) nie zostało obliczone: {reason}",
            UserWarning,
            stacklevel=3,
        )

    def _compute(self, tree: SubTree, by_id: dict[int, SubTree]) -> None:
        failed = [ref for ref in tree.references if by_id[ref.tree_id].state is TreeState.FAILED]
        if failed:
            dep = by_id[failed[0].tree_id]
            self._mark_failed(
                tree, f"zależy od nieobliczonego poddrzewa '{dep.name}' (ID={dep.id})."
            )
            return

        tree.state = TreeState.READY
        try:
            tree.root = self.forest.combinator.fold(self._member_nodes(tree, by_id), tree.gate)
        except AllocationFailureError as exc:
            self._mark_failed(tree, str(exc))
            return
        tree.state = TreeState.COMPUTED
        self.order.append(tree)

    def run(self) -> list[SubTree]:
        """
        Wykonuje przebiegi aż do obliczenia wszystkich poddrzew.

        Zwraca
        -------
        list[SubTree]
            Poddrzewa COMPUTED w kolejności obliczenia.

        Rzuca
        ------
        UnresolvedDependencyError
            Gdy odwołanie wskazuje nieistniejące poddrzewo.
        DependencyCycleError
            Gdy przebieg nie oblicza żadnego poddrzewa, a zostały oczekujące.
        """
        resolve_references(self.forest)
        by_id = self.forest.by_id

        # Kolejne wywołanie zachowuje dotychczasową kolejność obliczenia
        known = {tree.id for tree in self.order}
        self.order += [
            tree for tree in self.forest.sub_trees if tree.computed and tree.id not in known
        ]
        self.failures = {
            tree.id: tree.error or ""
            for tree in self.forest.sub_trees
            if tree.state is TreeState.FAILED
        }
        pending = [tree for tree in self.forest.sub_trees if tree.state is TreeState.PENDING]
        if pending:
            self.passes = 0

        while pending:
            self.passes += 1
            progress = 0
            for tree in pending:
                ready = all(
                    by_id[ref.tree_id].state in (TreeState.COMPUTED, TreeState.FAILED)
                    for ref in tree.references
                )
                if ready:
                    self._compute(tree, by_id)
                    progress += 1

            pending = [tree for tree in pending if tree.state is TreeState.PENDING]
            if not progress and pending:
                raise DependencyCycleError(find_cycle(pending, by_id))

        return self.order
