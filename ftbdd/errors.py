"""
errors.py
---------
Hierarchia wyjątków kalkulatora drzew błędów.

Każdy wyjątek dziedziczy po ``FaultTreeError`` oraz po wbudowanym typie,
którym reszta pakietu sygnalizuje dany rodzaj problemu (``KeyError`` dla
brakujących elementów, ``ValueError`` dla błędnych wartości).
"""

from __future__ import annotations


class FaultTreeError(Exception):
    """Bazowy wyjątek pakietu ftbdd."""


class AllocationFailureError(FaultTreeError, MemoryError):
    """Przekroczono budżet węzłów BDD podczas łączenia poddrzew."""


class UnresolvedDependencyError(FaultTreeError, KeyError):
    """Poddrzewo odwołuje się do ID, dla którego nie wczytano poddrzewa."""

    def __init__(self, tree_name: str, tree_id: int, position: int, member_id: int) -> None:
        self.tree_name = tree_name
        self.tree_id = tree_id
        self.position = position
        self.member_id = member_id
        super().__init__(
            f"Brak poddrzewa o ID={member_id} wskazanego przez element "
            f"#{position} poddrzewa '{tree_name}' (ID={tree_id})."
        )

    def __str__(self) -> str:
        # KeyError domyślnie zwraca repr argumentu
        return str(self.args[0])


class InconsistentGateGroupError(FaultTreeError, ValueError):
    """Elementy poddrzewa nie mają jednej, spójnej bramki logicznej."""


class DependencyCycleError(FaultTreeError, ValueError):
    """Zależności między poddrzewami tworzą cykl."""

    def __init__(self, cycle: list[tuple[int, str]]) -> None:
        self.cycle = cycle
        path = " -> ".join(f"'{name}' (ID={tree_id})" for tree_id, name in cycle)
        if cycle:
            path += f" -> '{cycle[0][1]}' (ID={cycle[0][0]})"
        super().__init__(f"Wykryto cykl zależności poddrzew: {path}")


class OutOfRangeIdError(FaultTreeError, ValueError):
    """ID poddrzewa lub zdarzenia bazowego leży w niewłaściwym zakresie."""
