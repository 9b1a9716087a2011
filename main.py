"""
main.py – Demo Kalkulatora Drzew Błędów (BDD)
==============================================
Uruchom: python main.py
"""

import pandas as pd

from ftbdd import (
    Combinator,
    FaultTreePipeline,
    FaultTreeError,
    Gate,
    Terminal,
    BaseEvent,
    analyse_sensitivity,
    evaluate,
    pages_from_frames,
)

# ---------------------------------------------------------------------------
# Przykładowa baza danych drzewa błędów (symulacja)
# ---------------------------------------------------------------------------

TREES = pd.DataFrame(
    {
        "Description": [
            "Utrata zasilania układu chłodzenia",
            "Awaria obu pomp",
            "Awaria zaworów obejścia",
            "Awaria sterowania",
        ],
        "ID": [1, 2, 3, 4],
        "LogicalType": [1, 0, 1, 1],
        "LogicalTypeDesc": ["OR", "AND", "OR", "OR"],
        "TreeName": ["TOP", "PUMPS", "VALVES", "CONTROL"],
    }
)

ROWS = pd.DataFrame(
    [
        # TreeID, ID, Probability, Description, Guidance, Label
        (1, 1001, 0.010, "Zasilacz główny",     "Sprawdź napięcie wyjściowe",  "PS1"),
        (1, 2,    0.0,   "Pompy",               "",                            "PUMPS"),
        (1, 4,    0.0,   "Sterowanie",          "",                            "CONTROL"),
        (2, 1002, 0.050, "Pompa A",             "Sprawdź łożyska pompy A",     "PA"),
        (2, 1003, 0.050, "Pompa B",             "Sprawdź łożyska pompy B",     "PB"),
        (2, 3,    0.0,   "Zawory obejścia",     "",                            "VALVES"),
        (3, 1004, 0.020, "Zawór V1",            "Sprawdź cewkę V1",            "V1"),
        (3, 1005, 0.020, "Zawór V2",            "Sprawdź cewkę V2",            "V2"),
        (4, 1006, 0.001, "Sterownik PLC",       "Sprawdź diagnostykę PLC",     "PLC"),
        (4, 1001, 0.010, "Zasilacz główny",     "Sprawdź napięcie wyjściowe",  "PS1"),
    ],
    columns=["TreeID", "ID", "Probability", "Description", "Guidance", "Label"],
)


def print_separator(char: str = "─", width: int = 80) -> None:
    print(char * width)


def print_page(page) -> None:
    params = page.parameters
    print(
        f"\n🌳 {params['TreeName']} (ID={params['ID']}, {params['LogicalTypeDesc']}) "
        f"– {params['Description']}"
    )
    if not page.ok:
        print(f"  [!] {page.error}")
        return
    print(f"  PS systemu = {page.system_probability:.6e}\n")
    header = (
        f"  {'BaseID':>6} | {'Etykieta':<8} | {'p':>9} | "
        f"{'MIF':>10} | {'DIF':>10} | {'Wskazówka'}"
    )
    print(header)
    print("  " + "─" * 76)
    for _, row in page.rows.iterrows():
        dif = "N/A" if pd.isna(row["DIF"]) else f"{row['DIF']:.6f}"
        print(
            f"  {row['BaseID']:>6} | {row['Label']:<8} | {row['Probability']:>9.4f} | "
            f"{row['MIF']:>10.6f} | {dif:>10} | {row['Guidance']}"
        )


def run_demo() -> None:
    print()
    print("=" * 80)
    print("  KALKULATOR DRZEW BŁĘDÓW – BDD / MIF / DIF")
    print("=" * 80)

    # ------------------------------------------------------------------
    # 1. Pojedynczy diagram: TOP = OR(1001, AND(1002, 1003))
    # ------------------------------------------------------------------
    print("\n📊 PRZYKŁAD ELEMENTARNY: OR(1001, AND(1002, 1003))\n")
    b1 = BaseEvent(1001, 0.1, label="PS1")
    b2 = BaseEvent(1002, 0.2, label="PA")
    b3 = BaseEvent(1003, 0.3, label="PB")
    comb = Combinator()
    root = comb.combine(
        Terminal(b1), comb.combine(Terminal(b2), Terminal(b3), Gate.AND), Gate.OR
    )
    print(f"  PS = {evaluate(root):.4f}   (oczekiwane 0.1 + 0.9·0.06 = 0.154)")
    print(f"  Węzły BDD utworzone przez kombinator: {comb.nodes_created}\n")

    report = analyse_sensitivity(root)
    print(f"  {'Zdarzenie':<10} | {'MIF':>8} | {'DIF':>8}")
    print_separator(width=34)
    for item in report.bases:
        print(f"  {item.base.label:<10} | {item.MIF:>8.4f} | {item.DIF:>8.4f}")

    # ------------------------------------------------------------------
    # 2. Pipeline: las poddrzew z tabel bazy danych
    # ------------------------------------------------------------------
    print()
    print("=" * 80)
    print("  PIPELINE – LAS PODDRZEW (PS / MIF / DIF)")
    print("=" * 80)

    try:
        pipeline = FaultTreePipeline(pages_from_frames(TREES, ROWS))
        results = pipeline.run_pipeline()
        print(f"\nSukces! Obliczono {len(results)} poddrzew "
              f"w {pipeline.scheduler.passes} przebiegach.")
        for page in results.values():
            print_page(page)

        # --------------------------------------------------------------
        # 3. Diagnoza: zasilacz PS1 uszkodzony, pompa A sprawna
        # --------------------------------------------------------------
        print()
        print("=" * 80)
        print("  DIAGNOZA – PS1 uszkodzony, PA sprawna")
        print("=" * 80)

        diagnosis = FaultTreePipeline(
            pages_from_frames(TREES, ROWS),
            failed_sub_trees=["TOP"],
            good_elements=["PA"],
            bad_elements=["PS1"],
        )
        for page in diagnosis.run_pipeline().values():
            print_page(page)

        print("\n📋 Ranking DIF dla TOP (najbardziej prawdopodobne przyczyny):\n")
        frame = pipeline.results_frame()
        top = frame[frame["TreeName"] == "TOP"].sort_values("DIF", ascending=False)
        for _, row in top.iterrows():
            print(f"  {row['Label']:<8} DIF={row['DIF']:.6f}  – {row['Description']}")

    except FaultTreeError as e:
        print(f"\n[!] Błąd drzewa błędów: {e}")

    print()
    print("=" * 80)
    print("  Koniec analizy drzewa błędów.")
    print("=" * 80)
    print()


if __name__ == "__main__":
    run_demo()
