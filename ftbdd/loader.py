"""
loader.py
---------
Wczytywanie lasu poddrzew błędów ze "stron" bazy danych.

Każda strona opisuje jedno poddrzewo:

    parametry : Description, ID, LogicalType (0=AND / 1=OR),
                LogicalTypeDesc, TreeName
    wiersze   : ID, Probability, Description, Guidance, Label

Wiersz o ID > BASE_ID_THRESHOLD to zdarzenie bazowe, pozostałe wiersze
to odwołania do innych poddrzew (po parametrze ID). Poddrzewa złożone
wyłącznie ze zdarzeń bazowych są łączone w BDD już podczas wczytywania.
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Union

import pandas as pd

from .base_events import BASE_ID_THRESHOLD, BaseEvent, BaseEventStore
from .combinator import Combinator
from .errors import AllocationFailureError, InconsistentGateGroupError, OutOfRangeIdError
from .nodes import Gate, Node, Terminal

# ---------------------------------------------------------------------------
# Stałe domyślne
# ---------------------------------------------------------------------------

_REQUIRED_PARAMETERS = {"Description", "ID", "LogicalType", "LogicalTypeDesc", "TreeName"}
_REQUIRED_COLUMNS = {"ID", "Probability"}
_OPTIONAL_TEXT_COLUMNS = ("Description", "Guidance", "Label")


# ---------------------------------------------------------------------------
# Model danych
# ---------------------------------------------------------------------------


class TreeState(Enum):
    PENDING = "pending"
    READY = "ready"
    COMPUTED = "computed"
    FAILED = "failed"


@dataclass(frozen=True)
class BaseMember:
    """Element poddrzewa będący zdarzeniem bazowym."""

    base: BaseEvent
    node: Terminal


@dataclass(frozen=True)
class TreeReference:
    """Element poddrzewa wskazujący inne poddrzewo (po jego ID)."""

    tree_id: int
    position: int
    label: str = ""


Member = Union[BaseMember, TreeReference]


@dataclass
class SubTree:
    """Poddrzewo z jedną bramką AND/OR i uporządkowaną listą elementów."""

    id: int
    name: str
    gate: Gate
    description: str = ""
    gate_description: str = ""
    members: list[Member] = field(default_factory=list)
    state: TreeState = TreeState.PENDING
    root: Node | None = None
    error: str | None = None

    @property
    def all_base(self) -> bool:
        return all(isinstance(m, BaseMember) for m in self.members)

    @property
    def references(self) -> list[TreeReference]:
        return [m for m in self.members if isinstance(m, TreeReference)]

    @property
    def computed(self) -> bool:
        return self.state is TreeState.COMPUTED

    def parameters(self) -> dict[str, Any]:
        """Parametry identyfikujące poddrzewo (jak na stronie wejściowej)."""
        return {
            "TreeName": self.name,
            "Description": self.description,
            "LogicalType": int(self.gate),
            "LogicalTypeDesc": self.gate_description,
            "ID": self.id,
        }


@dataclass
class SubTreePage:
    """Jedna strona wejściowa: parametry poddrzewa + tabela elementów."""

    parameters: Mapping[str, Any]
    rows: pd.DataFrame


@dataclass
class FaultTreeForest:
    """Wczytany las poddrzew wraz ze wspólnym magazynem zdarzeń bazowych."""

    base_events: BaseEventStore
    sub_trees: list[SubTree]
    combinator: Combinator

    @property
    def by_id(self) -> dict[int, SubTree]:
        return {tree.id: tree for tree in self.sub_trees}

    def reference_count(self) -> int:
        """Liczba unikalnych ID poddrzew, do których istnieją odwołania."""
        return len({ref.tree_id for tree in self.sub_trees for ref in tree.references})


# ---------------------------------------------------------------------------
# Walidacja
# ---------------------------------------------------------------------------


def _check_parameters(parameters: Mapping[str, Any], index: int) -> None:
    missing = _REQUIRED_PARAMETERS - set(parameters)
    if missing:
        raise KeyError(
            f"Strona {index} nie zawiera parametrów: {sorted(missing)}. "
            f"Dostępne parametry: {sorted(parameters)}"
        )


def _check_columns(df: pd.DataFrame, required: set[str], name: str) -> None:
    missing = required - set(df.columns)
    if missing:
        raise KeyError(
            f"Tabela '{name}' nie zawiera kolumn: {sorted(missing)}. "
            f"Dostępne kolumny: {sorted(df.columns)}"
        )


def _parse_gate(parameters: Mapping[str, Any], rows: pd.DataFrame, name: str) -> Gate:
    """Ustala bramkę poddrzewa i sprawdza jej spójność."""
    try:
        gate = Gate.parse(parameters["LogicalType"])
    except ValueError as exc:
        raise InconsistentGateGroupError(f"Poddrzewo '{name}': {exc}") from None

    desc = str(parameters.get("LogicalTypeDesc") or "").strip().upper()
    if desc in Gate.__members__ and Gate[desc] is not gate:
        raise InconsistentGateGroupError(
            f"Poddrzewo '{name}': LogicalType={int(gate)} ({gate.name}) "
            f"nie zgadza się z LogicalTypeDesc='{parameters['LogicalTypeDesc']}'."
        )

    # Opcjonalna bramka per wiersz musi być jedna dla całej grupy
    if "LogicalType" in rows.columns:
        try:
            row_gates = {Gate.parse(v) for v in rows["LogicalType"].dropna()}
        except ValueError as exc:
            raise InconsistentGateGroupError(f"Poddrzewo '{name}': {exc}") from None
        if row_gates - {gate}:
            raise InconsistentGateGroupError(
                f"Poddrzewo '{name}' zawiera elementy z różnymi bramkami: "
                f"{sorted(g.name for g in row_gates | {gate})}."
            )
    return gate


def _text(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value)


# ---------------------------------------------------------------------------
# Wczytywanie
# ---------------------------------------------------------------------------


def _as_page(page: SubTreePage | tuple) -> SubTreePage:
    if isinstance(page, SubTreePage):
        return page
    parameters, rows = page
    return SubTreePage(parameters=parameters, rows=rows)


def load_sub_trees(
    pages: Iterable[SubTreePage | tuple[Mapping[str, Any], pd.DataFrame]],
    *,
    threshold: int = BASE_ID_THRESHOLD,
    combinator: Combinator | None = None,
    id_col: str = "ID",
    probability_col: str = "Probability",
) -> FaultTreeForest:
    """
    Buduje las poddrzew z listy stron wejściowych.

    Parametry
    ----------
    pages : iterowalne SubTreePage lub krotek (parametry, DataFrame)
        Strony bazy danych drzew błędów, po jednej na poddrzewo.
    threshold : int
        Próg ID: wiersze o ID > threshold to zdarzenia bazowe.
    combinator : Combinator, opcjonalnie
        Arena węzłów BDD. Domyślnie tworzona nowa, bez limitu.
    id_col, probability_col : str
        Nazwy kolumn z ID i prawdopodobieństwem.

    Zwraca
    -------
    FaultTreeForest
        Las poddrzew; poddrzewa złożone z samych zdarzeń bazowych mają
        już obliczony korzeń BDD (stan COMPUTED).

    Rzuca
    ------
    KeyError
        Gdy brakuje parametru strony lub wymaganej kolumny.
    OutOfRangeIdError
        Gdy ID poddrzewa leży poza przestrzenią ID poddrzew lub się powtarza.
    InconsistentGateGroupError
        Gdy bramka poddrzewa jest nieznana lub niespójna.
    ValueError
        Gdy prawdopodobieństwo zdarzenia bazowego leży poza [0, 1].
    """
    combinator = combinator if combinator is not None else Combinator()
    store = BaseEventStore(threshold=threshold)
    sub_trees: list[SubTree] = []
    seen_ids: set[int] = set()

    for index, raw_page in enumerate(pages):
        page = _as_page(raw_page)
        parameters = page.parameters
        _check_parameters(parameters, index)
        name = _text(parameters["TreeName"])

        rows = page.rows
        if rows is None or rows.empty:
            warnings.warn(
                f"Poddrzewo '{name}' nie zawiera elementów i zostanie pominięte.",
                UserWarning,
                stacklevel=2,
            )
            continue
        _check_columns(rows, {id_col, probability_col}, name)

        tree_id = int(parameters["ID"])
        if tree_id < 0 or tree_id > threshold:
            raise OutOfRangeIdError(
                f"ID poddrzewa '{name}' = {tree_id} leży poza zakresem "
                f"[0, {threshold}] zarezerwowanym dla poddrzew."
            )
        if tree_id in seen_ids:
            raise OutOfRangeIdError(
                f"ID poddrzewa {tree_id} ('{name}') występuje więcej niż raz."
            )
        seen_ids.add(tree_id)

        tree = SubTree(
            id=tree_id,
            name=name,
            gate=_parse_gate(parameters, rows, name),
            description=_text(parameters["Description"]),
            gate_description=_text(parameters["LogicalTypeDesc"]),
        )

        for position, row in enumerate(rows.to_dict("records")):
            member_id = int(row[id_col])
            text = {col: _text(row.get(col)) for col in _OPTIONAL_TEXT_COLUMNS}
            if member_id > threshold:
                base = store.add(
                    member_id,
                    row[probability_col],
                    label=text["Label"],
                    description=text["Description"],
                    guidance=text["Guidance"],
                )
                tree.members.append(BaseMember(base=base, node=Terminal(base)))
            else:
                if member_id < 0:
                    raise OutOfRangeIdError(
                        f"Element #{position} poddrzewa '{name}' ma ujemne ID {member_id}."
                    )
                tree.members.append(
                    TreeReference(tree_id=member_id, position=position, label=text["Label"])
                )

        if tree.all_base:
            try:
                tree.root = combinator.fold([m.node for m in tree.members], tree.gate)
                tree.state = TreeState.COMPUTED
            except AllocationFailureError as exc:
                tree.state = TreeState.FAILED
                tree.error = str(exc)
                warnings.warn(
                    f"Poddrzewo '{name}' (ID={tree_id}) nie zostało obliczone: {exc}",
                    UserWarning,
                    stacklevel=2,
                )

        sub_trees.append(tree)

    return FaultTreeForest(base_events=store, sub_trees=sub_trees, combinator=combinator)


def pages_from_frames(
    trees_df: pd.DataFrame,
    rows_df: pd.DataFrame,
    *,
    tree_col: str = "TreeID",
) -> Iterator[SubTreePage]:
    """
    Składa strony z dwóch płaskich tabel.

    Parametry
    ----------
    trees_df : pd.DataFrame
        Jeden wiersz na poddrzewo, kolumny = parametry strony
        (Description, ID, LogicalType, LogicalTypeDesc, TreeName).
    rows_df : pd.DataFrame
        Jeden wiersz na element poddrzewa; kolumna ``tree_col`` wskazuje
        ID poddrzewa, do którego należy element.
    tree_col : str
        Nazwa kolumny łączącej elementy z poddrzewami.

    Zwraca
    -------
    Iterator[SubTreePage]
        Strony w kolejności wierszy ``trees_df``; kolejność elementów
        zachowuje kolejność wierszy ``rows_df``.

    Przykład
    --------
    >>> forest = load_sub_trees(pages_from_frames(trees_df, rows_df))
    """
    _check_columns(trees_df, _REQUIRED_PARAMETERS, "trees_df")
    _check_columns(rows_df, _REQUIRED_COLUMNS | {tree_col}, "rows_df")

    groups = {
        int(key): group.drop(columns=[tree_col]).reset_index(drop=True)
        for key, group in rows_df.groupby(tree_col, sort=False)
    }
    empty = rows_df.iloc[0:0].drop(columns=[tree_col])

    for parameters in trees_df.to_dict("records"):
        rows = groups.get(int(parameters["ID"]), empty)
        yield SubTreePage(parameters=parameters, rows=rows)
