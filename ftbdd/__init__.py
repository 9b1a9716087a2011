"""
Fault Tree BDD Package
Obliczanie prawdopodobieństwa awarii oraz wskaźników ważności (MIF / DIF)
dla wielopoziomowych drzew błędów z użyciem diagramów BDD.
"""

from .pipeline import FaultTreePipeline, ResultPage

from .errors import (
    FaultTreeError,
    AllocationFailureError,
    UnresolvedDependencyError,
    InconsistentGateGroupError,
    DependencyCycleError,
    OutOfRangeIdError,
)
from .base_events import BASE_ID_THRESHOLD, BaseEvent, BaseEventStore
from .nodes import Gate, TRUE, FALSE, Terminal, Internal
from .combinator import Combinator, combine
from .evaluator import evaluate
from .sensitivity import analyse_sensitivity, SensitivityReport, BaseSensitivity
from .loader import load_sub_trees, pages_from_frames, SubTree, SubTreePage
from .scheduler import DependencyScheduler

__all__ = [
    # Moduł 1: zdarzenia bazowe i węzły BDD
    "BASE_ID_THRESHOLD",
    "BaseEvent",
    "BaseEventStore",
    "Gate",
    "TRUE",
    "FALSE",
    "Terminal",
    "Internal",
    # Moduł 2: łączenie diagramów
    "Combinator",
    "combine",
    # Moduł 3: prawdopodobieństwo i wrażliwość
    "evaluate",
    "analyse_sensitivity",
    "SensitivityReport",
    "BaseSensitivity",
    # Moduł 4: las poddrzew
    "load_sub_trees",
    "pages_from_frames",
    "SubTree",
    "SubTreePage",
    "DependencyScheduler",
    "FaultTreePipeline",
    "ResultPage",
    # Błędy
    "FaultTreeError",
    "AllocationFailureError",
    "UnresolvedDependencyError",
    "InconsistentGateGroupError",
    "DependencyCycleError",
    "OutOfRangeIdError",
]
