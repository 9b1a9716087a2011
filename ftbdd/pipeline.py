"""
pipeline.py
-----------
Zintegrowany pipeline analizy drzewa błędów łączący wszystkie kroki:

    1. Load              – strony bazy danych → las poddrzew + zdarzenia bazowe
    2. Forced Elements   – elementy wymuszone jako sprawne (p=0) / uszkodzone (p=1)
    3. Schedule          – łączenie poddrzew w BDD w kolejności zależności
    4. Sensitivity       – PS systemu oraz MIF / DIF per zdarzenie bazowe
    5. Result Pages      – jedna strona wynikowa na obliczone poddrzewo

Wymagane dane wejściowe
-----------------------
pages : strony z parametrami (Description, ID, LogicalType, LogicalTypeDesc,
        TreeName) oraz tabelą wierszy (ID, Probability, Description,
        Guidance, Label)
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, TextIO

import pandas as pd

from .base_events import BASE_ID_THRESHOLD
from .combinator import Combinator
from .loader import FaultTreeForest, SubTree, SubTreePage, load_sub_trees
from .scheduler import DependencyScheduler
from .sensitivity import OUTPUT_COLUMNS, SensitivityReport, analyse_sensitivity
from .traversal import dump_structure


# ---------------------------------------------------------------------------
# Strona wynikowa
# ---------------------------------------------------------------------------


@dataclass
class ResultPage:
    """Wynik dla jednego poddrzewa: parametry + tabela wskaźników."""

    parameters: dict[str, Any]
    rows: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=OUTPUT_COLUMNS))
    system_probability: float | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Klasa główna
# ---------------------------------------------------------------------------


class FaultTreePipeline:
    """
    Pipeline obliczający PS, MIF i DIF dla lasu poddrzew błędów.

    Parametry
    ----------
    pages : iterowalne stron (SubTreePage lub krotka (parametry, DataFrame))
        Strony bazy danych drzew błędów, po jednej na poddrzewo.
    failed_sub_trees : lista nazw, opcjonalnie
        Nazwy poddrzew (TreeName), dla których liczone są wskaźniki.
        Domyślnie wszystkie.
    good_elements : lista etykiet, opcjonalnie
        Zdarzenia bazowe (Label) wymuszone jako sprawne — p = 0.
    bad_elements : lista etykiet, opcjonalnie
        Zdarzenia bazowe (Label) wymuszone jako uszkodzone — p = 1.
    verbose : bool
        Wypisuje strukturę ITE każdego obliczonego poddrzewa oraz wskaźniki
        zdarzeń poddrzew wybranych w failed_sub_trees.
    stream : TextIO, opcjonalnie
        Strumień diagnostyczny dla trybu verbose. Domyślnie sys.stdout.
    max_nodes : int, opcjonalnie
        Limit węzłów BDD (AllocationFailureError po przekroczeniu).
    threshold : int
        Próg ID zdarzeń bazowych. Domyślnie 1000.

    Przykład
    --------
    >>> pipeline = FaultTreePipeline(pages, bad_elements=["PS1"])
    >>> results = pipeline.run_pipeline()
    >>> for tree_id, page in results.items():
    ...     print(page.parameters["TreeName"], page.system_probability)
    """

    def __init__(
        self,
        pages: Iterable[SubTreePage | tuple[Mapping[str, Any], pd.DataFrame]],
        failed_sub_trees: Iterable[str] | None = None,
        good_elements: Iterable[str] | None = None,
        bad_elements: Iterable[str] | None = None,
        *,
        verbose: bool = False,
        stream: TextIO | None = None,
        max_nodes: int | None = None,
        threshold: int = BASE_ID_THRESHOLD,
    ) -> None:
        self._pages = list(pages)
        self.failed_sub_trees = set(failed_sub_trees) if failed_sub_trees else None
        self.good_elements = list(good_elements or [])
        self.bad_elements = list(bad_elements or [])
        self.verbose = verbose
        self._stream = stream
        self.max_nodes = max_nodes
        self.threshold = threshold

        conflict = set(self.good_elements) & set(self.bad_elements)
        if conflict:
            raise ValueError(
                f"Elementy {sorted(conflict)} podano jednocześnie jako "
                f"sprawne i uszkodzone."
            )

        # Pośrednie obiekty (dostępne po run_pipeline)
        self._forest: FaultTreeForest | None = None
        self._scheduler: DependencyScheduler | None = None
        self._overrides: dict[int, float] = {}
        self._results: dict[int, ResultPage] | None = None

    # ------------------------------------------------------------------
    # Właściwości dostępu do obiektów pośrednich
    # ------------------------------------------------------------------

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    @property
    def forest(self) -> FaultTreeForest:
        """Las poddrzew po wczytaniu."""
        if self._forest is None:
            raise RuntimeError("Wywołaj najpierw run_pipeline().")
        return self._forest

    @property
    def scheduler(self) -> DependencyScheduler:
        """Harmonogram z kolejnością obliczeń i listą niepowodzeń."""
        if self._scheduler is None:
            raise RuntimeError("Wywołaj najpierw run_pipeline().")
        return self._scheduler

    @property
    def overrides(self) -> dict[int, float]:
        """Wymuszone prawdopodobieństwa (ID zdarzenia → 0.0 / 1.0)."""
        return dict(self._overrides)

    # ------------------------------------------------------------------
    # Kroki pipeline'u
    # ------------------------------------------------------------------

    def _step1_load(self) -> FaultTreeForest:
        """Krok 1: wczytanie stron i połączenie poddrzew z samych zdarzeń bazowych."""
        forest = load_sub_trees(
            self._pages,
            threshold=self.threshold,
            combinator=Combinator(max_nodes=self.max_nodes),
        )
        if self.verbose:
            print(
                f"Total Bases: {len(forest.base_events)}, "
                f"Total ITEs: {forest.reference_count()}",
                file=self.stream,
            )
        return forest

    def _step2_forced_elements(self, forest: FaultTreeForest) -> dict[int, float]:
        """Krok 2: mapa nadpisań dla elementów sprawnych / uszkodzonych."""
        return forest.base_events.forced_overrides(self.good_elements, self.bad_elements)

    def _step3_schedule(self, forest: FaultTreeForest) -> DependencyScheduler:
        """Krok 3: łączenie pozostałych poddrzew w kolejności zależności."""
        scheduler = DependencyScheduler(forest)
        scheduler.run()
        return scheduler

    def _selected(self, tree: SubTree) -> bool:
        return self.failed_sub_trees is None or tree.name in self.failed_sub_trees

    def _dump_tree(self, tree: SubTree) -> None:
        print(
            f"\nSub-tree Name: {tree.name}, ID: {tree.id}, ITE Structure:",
            file=self.stream,
        )
        dump_structure(tree.root, self.stream)

    def _step4_sensitivity(self, tree: SubTree) -> SensitivityReport:
        """Krok 4: PS systemu oraz MIF / DIF dla jednego poddrzewa."""
        report = analyse_sensitivity(tree.root, self._overrides)

        if self.verbose:
            for item in report.bases:
                dif = f"{item.DIF:.6f}" if item.DIF is not None else "N/A"
                print(
                    f"Base {item.base.id}: prob={item.probability:.6f}, "
                    f"ps={item.ps:.6f}, pes={item.pes:.6f}, "
                    f"MIF={item.MIF:.6f}, DIF={dif}",
                    file=self.stream,
                )
        return report

    def _step5_result_pages(
        self, forest: FaultTreeForest, scheduler: DependencyScheduler
    ) -> dict[int, ResultPage]:
        """
        Krok 5: strony wynikowe.

        Poddrzewa obliczone — w kolejności obliczenia, z tabelą wskaźników.
        Poddrzewa nieobliczone — strona z polem ``error`` i pustą tabelą.
        """
        results: dict[int, ResultPage] = {}
        for tree in scheduler.order:
            # Struktura ITE wypisywana dla każdego obliczonego poddrzewa
            if self.verbose:
                self._dump_tree(tree)
            if not self._selected(tree):
                continue
            report = self._step4_sensitivity(tree)
            results[tree.id] = ResultPage(
                parameters=tree.parameters(),
                rows=report.to_frame(),
                system_probability=report.system_probability,
            )

        for tree in forest.sub_trees:
            if tree.id in scheduler.failures and self._selected(tree):
                results[tree.id] = ResultPage(
                    parameters=tree.parameters(),
                    error=scheduler.failures[tree.id],
                )
        return results

    # ------------------------------------------------------------------
    # Główna metoda
    # ------------------------------------------------------------------

    def run_pipeline(self) -> dict[int, ResultPage]:
        """
        Uruchamia pełny pipeline.

        Zwraca
        -------
        dict[int, ResultPage]
            Klucz: ID poddrzewa. Wartość: strona wynikowa z parametrami
            (TreeName, Description, LogicalType, LogicalTypeDesc, ID),
            tabelą (BaseID, Label, Probability, DIF, MIF, PS, PES,
            Description, Guidance) oraz PS systemu.

        Raises
        ------
        KeyError
            Gdy brakuje parametru lub kolumny w danych wejściowych.
        FaultTreeError
            Błędy strukturalne lasu (nierozwiązane odwołanie, cykl,
            niespójna bramka, ID poza zakresem) przerywają całe obliczenie.
        """
        # Krok 1: wczytanie
        forest = self._step1_load()
        self._forest = forest

        # Krok 2: elementy wymuszone
        self._overrides = self._step2_forced_elements(forest)

        # Krok 3: harmonogram
        scheduler = self._step3_schedule(forest)
        self._scheduler = scheduler

        # Krok 4/5: wskaźniki i strony wynikowe
        self._results = self._step5_result_pages(forest, scheduler)
        return self._results

    def results_frame(self) -> pd.DataFrame:
        """
        Wszystkie strony wynikowe w jednej tabeli.

        Kolumny parametrów poddrzewa (TreeName, TreeID, LogicalType,
        LogicalTypeDesc, TreeDescription) poprzedzają kolumny wskaźników.
        """
        if self._results is None:
            raise RuntimeError("Wywołaj najpierw run_pipeline().")

        frames = []
        for page in self._results.values():
            if not page.ok or page.rows.empty:
                continue
            df = page.rows.copy()
            df.insert(0, "TreeDescription", page.parameters["Description"])
            df.insert(0, "LogicalTypeDesc", page.parameters["LogicalTypeDesc"])
            df.insert(0, "LogicalType", page.parameters["LogicalType"])
            df.insert(0, "TreeID", page.parameters["ID"])
            df.insert(0, "TreeName", page.parameters["TreeName"])
            frames.append(df)

        if not frames:
            return pd.DataFrame(
                columns=["TreeName", "TreeID", "LogicalType", "LogicalTypeDesc",
                         "TreeDescription", *OUTPUT_COLUMNS]
            )
        return pd.concat(frames, ignore_index=True)
