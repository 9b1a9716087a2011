"""
tests/test_sensitivity.py
-------------------------
Unit testy dla modułu ftbdd.sensitivity.
Wartości referencyjne: TOP = OR(1001, AND(1002, 1003)), p = 0.1 / 0.2 / 0.3.
"""

import math
import random

import pytest

from ftbdd.base_events import BaseEvent
from ftbdd.combinator import Combinator
from ftbdd.nodes import Gate, Terminal
from ftbdd.sensitivity import OUTPUT_COLUMNS, analyse_sensitivity, compute_dif


@pytest.fixture
def bases():
    return [
        BaseEvent(1001, 0.1, label="PS1", description="Zasilanie", guidance="Sprawdź zasilacz"),
        BaseEvent(1002, 0.2, label="PA"),
        BaseEvent(1003, 0.3, label="PB"),
    ]


@pytest.fixture
def top(bases):
    comb = Combinator()
    sub = comb.combine(Terminal(bases[1]), Terminal(bases[2]), Gate.AND)
    return comb.combine(sub, Terminal(bases[0]), Gate.OR)


class TestAnalyseSensitivity:
    def test_system_probability(self, top):
        assert analyse_sensitivity(top).system_probability == pytest.approx(0.154)

    def test_mif(self, top):
        report = analyse_sensitivity(top)
        assert report[1001].MIF == pytest.approx(0.94)
        assert report[1002].MIF == pytest.approx(0.27)
        assert report[1003].MIF == pytest.approx(0.18)

    def test_ps_and_pes(self, top):
        report = analyse_sensitivity(top)
        assert report[1002].ps == pytest.approx(0.37)
        assert report[1002].pes == pytest.approx(0.1)

    def test_dif(self, top):
        report = analyse_sensitivity(top)
        expected = 0.1 + 0.1 * 0.9 * 0.94 / 0.154
        assert report[1001].DIF == pytest.approx(expected)
        assert report[1001].DIF == pytest.approx(0.649350649, rel=1e-6)

    def test_discovery_order(self, top):
        report = analyse_sensitivity(top)
        assert [item.base.id for item in report.bases] == [1001, 1002, 1003]

    def test_unknown_base_raises_key_error(self, top):
        with pytest.raises(KeyError):
            analyse_sensitivity(top)[1999]

    def test_events_are_not_modified(self, top, bases):
        analyse_sensitivity(top, {1001: 1.0})
        assert [b.probability for b in bases] == [0.1, 0.2, 0.3]

    def test_forced_element_changes_probability_column(self, top):
        report = analyse_sensitivity(top, {1001: 0.0})
        assert report.system_probability == pytest.approx(0.06)
        assert report[1001].probability == 0.0
        # MIF nie zależy od p samego zdarzenia
        assert report[1001].MIF == pytest.approx(0.94)
        assert report[1001].DIF == pytest.approx(0.0)

    def test_zero_system_probability_gives_undefined_dif(self, bases):
        root = Combinator().combine(Terminal(bases[0]), Terminal(bases[1]), Gate.AND)
        report = analyse_sensitivity(root, {1001: 0.0})
        assert report.system_probability == 0.0
        assert all(item.DIF is None for item in report.bases)
        frame = report.to_frame()
        assert frame["DIF"].isna().all()


class TestToFrame:
    def test_columns_and_rows(self, top):
        frame = analyse_sensitivity(top).to_frame()
        assert list(frame.columns) == OUTPUT_COLUMNS
        assert list(frame["BaseID"]) == [1001, 1002, 1003]
        assert list(frame["Label"]) == ["PS1", "PA", "PB"]

    def test_text_columns_copied_from_event(self, top):
        row = analyse_sensitivity(top).to_frame().iloc[0]
        assert row["Description"] == "Zasilanie"
        assert row["Guidance"] == "Sprawdź zasilacz"


class TestComputeDif:
    def test_formula(self):
        assert compute_dif(0.5, 0.4, 0.2) == pytest.approx(0.5 + 0.25 * 0.4 / 0.2)

    def test_zero_ps(self):
        assert compute_dif(0.5, 0.4, 0.0) is None

    def test_certain_event(self):
        """p = 1 → DIF = 1 niezależnie od MIF."""
        assert compute_dif(1.0, 0.7, 0.9) == pytest.approx(1.0)


class TestAgainstTruthTable:
    @pytest.mark.parametrize("seed", range(15))
    def test_mif_matches_brute_force(self, seed, expression_factory):
        rng = random.Random(3000 + seed)
        expr = expression_factory(rng, n_bases=rng.randint(2, 7))
        root = expr.build(Combinator())
        report = analyse_sensitivity(root)
        ps = expr.brute_force()
        assert report.system_probability == pytest.approx(ps, abs=1e-12)
        for item in report.bases:
            ps1 = expr.brute_force({item.base.id: 1.0})
            ps0 = expr.brute_force({item.base.id: 0.0})
            assert item.MIF == pytest.approx(ps1 - ps0, abs=1e-12)
            if ps > 0:
                p = item.base.probability
                assert item.DIF == pytest.approx(p + p * (1 - p) * (ps1 - ps0) / ps)
            else:
                assert item.DIF is None or math.isnan(item.DIF)
