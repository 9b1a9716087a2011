"""
base_events.py
--------------
Magazyn zdarzeń bazowych (liści drzewa błędów).

Zdarzenie bazowe jest identyfikowane globalnie przez ID. Pierwsze wystąpienie
danego ID w całym lesie poddrzew jest kanoniczne — kolejne odwołania
współdzielą ten sam obiekt. ID wyznacza również kolejność zmiennych w BDD.

Konwencja identyfikatorów (zgodna z bazą danych drzew błędów):
    ID >  BASE_ID_THRESHOLD  →  zdarzenie bazowe
    ID <= BASE_ID_THRESHOLD  →  odwołanie do innego poddrzewa
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass
from typing import Iterable, Iterator

from .errors import OutOfRangeIdError

# ---------------------------------------------------------------------------
# Stałe
# ---------------------------------------------------------------------------

BASE_ID_THRESHOLD: int = 1000


def validate_probability(value: float, what: str) -> float:
    """Sprawdza, czy prawdopodobieństwo leży w przedziale [0, 1]."""
    value = float(value)
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise ValueError(
            f"Prawdopodobieństwo dla {what} wynosi {value}, "
            f"czyli jest poza zakresem [0, 1]."
        )
    return value


# ---------------------------------------------------------------------------
# Zdarzenie bazowe
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BaseEvent:
    """Liść drzewa błędów z przypisanym prawdopodobieństwem awarii."""

    id: int
    probability: float
    label: str = ""
    description: str = ""
    guidance: str = ""

    def __post_init__(self) -> None:
        validate_probability(self.probability, f"zdarzenia bazowego {self.id}")


# ---------------------------------------------------------------------------
# Magazyn
# ---------------------------------------------------------------------------


class BaseEventStore:
    """
    Płaska tabela unikalnych zdarzeń bazowych, deduplikowana po ID.

    Przykład
    --------
    >>> store = BaseEventStore()
    >>> a = store.add(1001, 0.1, label="PS1")
    >>> store.add(1001, 0.1) is a
    True
    """

    def __init__(self, threshold: int = BASE_ID_THRESHOLD) -> None:
        self.threshold = threshold
        self._events: dict[int, BaseEvent] = {}

    def add(
        self,
        event_id: int,
        probability: float,
        label: str = "",
        description: str = "",
        guidance: str = "",
    ) -> BaseEvent:
        """
        Rejestruje zdarzenie bazowe lub zwraca istniejące o tym samym ID.

        Rzuca
        ------
        OutOfRangeIdError
            Gdy ID nie przekracza progu zdarzeń bazowych.
        ValueError
            Gdy prawdopodobieństwo leży poza [0, 1].
        """
        event_id = int(event_id)
        if event_id <= self.threshold:
            raise OutOfRangeIdError(
                f"ID zdarzenia bazowego {event_id} nie przekracza progu "
                f"{self.threshold} i koliduje z przestrzenią ID poddrzew."
            )

        existing = self._events.get(event_id)
        if existing is not None:
            if float(probability) != existing.probability:
                warnings.warn(
                    f"Zdarzenie bazowe {event_id} wystąpiło ponownie z "
                    f"prawdopodobieństwem {float(probability)}; zachowano "
                    f"pierwszą wartość {existing.probability}.",
                    UserWarning,
                    stacklevel=3,
                )
            return existing

        event = BaseEvent(
            id=event_id,
            probability=float(probability),
            label=label,
            description=description,
            guidance=guidance,
        )
        self._events[event_id] = event
        return event

    def get(self, event_id: int) -> BaseEvent:
        return self._events[event_id]

    def find_by_label(self, label: str) -> BaseEvent | None:
        """Zwraca pierwsze zdarzenie o podanej etykiecie (lub None)."""
        for event in self._events.values():
            if event.label == label:
                return event
        return None

    def forced_overrides(
        self,
        good_elements: Iterable[str] = (),
        bad_elements: Iterable[str] = (),
    ) -> dict[int, float]:
        """
        Buduje mapę nadpisań prawdopodobieństw dla wymuszonych elementów.

        Elementy "dobre" dostają prawdopodobieństwo awarii 0.0, "złe" — 1.0.
        Elementy wskazywane są etykietą (kolumna Label).

        Rzuca
        ------
        ValueError
            Gdy ta sama etykieta jest jednocześnie dobra i zła.
        """
        good = list(good_elements)
        bad = list(bad_elements)
        conflict = set(good) & set(bad)
        if conflict:
            raise ValueError(
                f"Elementy {sorted(conflict)} podano jednocześnie jako "
                f"sprawne i uszkodzone."
            )

        overrides: dict[int, float] = {}
        for labels, value in ((good, 0.0), (bad, 1.0)):
            for label in labels:
                event = self.find_by_label(label)
                if event is None:
                    warnings.warn(
                        f"Nie znaleziono zdarzenia bazowego o etykiecie '{label}'.",
                        UserWarning,
                        stacklevel=2,
                    )
                    continue
                overrides[event.id] = value
        return overrides

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    def __iter__(self) -> Iterator[BaseEvent]:
        return iter(self._events.values())

    def __len__(self) -> int:
        return len(self._events)
