"""
sensitivity.py
--------------
Analiza wrażliwości poddrzewa: wskaźniki ważności zdarzeń bazowych.

Dla każdego zdarzenia bazowego b występującego w diagramie:
    PS    = Pr[top]                      (bieżące prawdopodobieństwa)
    ps1   = Pr[top | p_b = 1]
    ps0   = Pr[top | p_b = 0]            (kolumna PES)
    MIF   = ps1 − ps0                    (Marginal Importance Factor)
    DIF   = p + p·(1 − p)·MIF / PS       (Diagnostic Importance Factor)

Gdy PS = 0, DIF nie jest określony → None (NaN w tabeli wynikowej).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Mapping

import pandas as pd

from .base_events import BaseEvent
from .evaluator import effective_probability, evaluate
from .nodes import Node
from .traversal import collect_base_events

# ---------------------------------------------------------------------------
# Kolumny tabeli wynikowej
# ---------------------------------------------------------------------------

OUTPUT_COLUMNS: list[str] = [
    "BaseID",
    "Label",
    "Probability",
    "DIF",
    "MIF",
    "PS",
    "PES",
    "Description",
    "Guidance",
]


# ---------------------------------------------------------------------------
# Wyniki
# ---------------------------------------------------------------------------


@dataclass
class BaseSensitivity:
    """Wskaźniki ważności jednego zdarzenia bazowego w jednym poddrzewie."""

    base: BaseEvent
    probability: float   # efektywne p (z uwzględnieniem wymuszeń)
    ps: float            # Pr[top | p = 1]
    pes: float           # Pr[top | p = 0]
    MIF: float = field(init=False)
    DIF: float | None = None

    def __post_init__(self) -> None:
        self.MIF = self.ps - self.pes

    def to_dict(self) -> dict:
        return {
            "BaseID": self.base.id,
            "Label": self.base.label,
            "Probability": self.probability,
            "DIF": self.DIF if self.DIF is not None else math.nan,
            "MIF": self.MIF,
            "PS": self.ps,
            "PES": self.pes,
            "Description": self.base.description,
            "Guidance": self.base.guidance,
        }


@dataclass
class SensitivityReport:
    """Wynik analizy wrażliwości jednego diagramu."""

    system_probability: float
    bases: list[BaseSensitivity]

    def __getitem__(self, base_id: int) -> BaseSensitivity:
        for item in self.bases:
            if item.base.id == base_id:
                return item
        raise KeyError(f"Zdarzenie bazowe {base_id} nie występuje w diagramie.")

    def to_frame(self) -> pd.DataFrame:
        """Tabela z kolumnami OUTPUT_COLUMNS, jeden wiersz na zdarzenie bazowe."""
        return pd.DataFrame(
            [item.to_dict() for item in self.bases],
            columns=OUTPUT_COLUMNS,
        )


# ---------------------------------------------------------------------------
# Obliczenia
# ---------------------------------------------------------------------------


def compute_dif(probability: float, mif: float, system_probability: float) -> float | None:
    """DIF = p + p·(1 − p)·MIF / PS; None gdy PS = 0."""
    if system_probability <= 0.0:
        return None
    return probability + probability * (1.0 - probability) * mif / system_probability


def analyse_sensitivity(
    root: Node,
    overrides: Mapping[int, float] | None = None,
) -> SensitivityReport:
    """
    Oblicza MIF i DIF dla każdego zdarzenia bazowego diagramu.

    Zdarzenia nie są modyfikowane: każda perturbacja to osobne wywołanie
    ``evaluate`` z rozszerzoną mapą nadpisań.

    Parametry
    ----------
    root : Node
        Korzeń diagramu poddrzewa.
    overrides : Mapping[int, float], opcjonalnie
        Stałe nadpisania prawdopodobieństw (np. elementy wymuszone jako
        sprawne lub uszkodzone).

    Zwraca
    -------
    SensitivityReport
        PS systemu oraz lista BaseSensitivity w kolejności odkrycia zdarzeń.

    Przykład
    --------
    >>> report = analyse_sensitivity(root)
    >>> print(report.system_probability, report[1001].MIF)
    """
    base_overrides = dict(overrides or {})
    system_ps = evaluate(root, base_overrides)

    results: list[BaseSensitivity] = []
    for base in collect_base_events(root):
        p = effective_probability(base, base_overrides)
        ps1 = evaluate(root, {**base_overrides, base.id: 1.0})
        ps0 = evaluate(root, {**base_overrides, base.id: 0.0})
        item = BaseSensitivity(base=base, probability=p, ps=ps1, pes=ps0)
        item.DIF = compute_dif(p, item.MIF, system_ps)
        results.append(item)

    return SensitivityReport(system_probability=system_ps, bases=results)
