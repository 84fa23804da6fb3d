"""Tests for the interactive Plotly figures (blackjack_lab/analysis/plotly_lookup.py)."""

from __future__ import annotations

import os

import plotly.graph_objects as go
import pytest

from blackjack_lab.analysis.plotly_lookup import (
    build_advice_figure,
    build_casino_lookup_figure,
    build_lab_comparison_figure,
    build_strategy_lookup_figure,
    save_lookup_html,
)
from blackjack_lab.analysis.simulator import run_batch_simulation
from blackjack_lab.engine.deck import build_shoe_without
from blackjack_lab.strategy.advisor import get_strategy_advice
from tests.conftest import hand


@pytest.fixture(scope="module")
def runs():
    return [run_batch_simulation(d, 200, seed=3, return_history=True) for d in ('easy', 'pro')]


@pytest.fixture(scope="module")
def advice():
    player, dealer = hand('6S', '5H'), hand('6D', '9C*')
    shoe = build_shoe_without(player, dealer, rng=0)
    return get_strategy_advice(player, dealer, shoe, chips=1000, bet=100, trials=300, rng=1)


class TestStrategyLookup:
    def test_two_heatmaps(self):
        fig = build_strategy_lookup_figure()
        assert isinstance(fig, go.Figure)
        assert len(fig.data) == 2
        assert all(isinstance(t, go.Heatmap) for t in fig.data)

    def test_panel_shapes(self):
        hard, soft = build_strategy_lookup_figure().data
        assert len(hard.z) == 17 and len(hard.z[0]) == 10
        assert len(soft.z) == 9
        assert list(hard.x) == ['2', '3', '4', '5', '6', '7', '8', '9', '10', 'A']

    def test_hover_text(self):
        hard = build_strategy_lookup_figure().data[0]
        # Row for total 16 (index 11), column for upcard 10 (index 8).
        text = hard.text[11][8]
        assert "Total: <b>16</b>" in text
        assert "HIT" in text

    def test_no_deviation_labels_on_basic(self):
        hard = build_strategy_lookup_figure().data[0]
        assert not any("Deviation" in t for row in hard.text for t in row)


class TestCasinoLookup:
    def test_deviation_flagged(self):
        hard = build_casino_lookup_figure(4.0).data[0]
        # 15 v 10 stands at tc ≥ 4 where the chart hits.
        text = hard.text[10][8]
        assert "STAND" in text
        assert "Deviation (basic: HIT)" in text

    def test_title_mentions_count(self):
        fig = build_casino_lookup_figure(-2.0)
        assert "-2.0" in fig.layout.title.text


class TestLabComparison:
    def test_bars_and_lines(self, runs):
        fig = build_lab_comparison_figure(runs)
        bars = [t for t in fig.data if isinstance(t, go.Bar)]
        lines = [t for t in fig.data if isinstance(t, go.Scatter)]
        assert len(bars) == 2
        assert len(lines) == 2
        assert list(bars[0].x) == ['Random', 'Basic Strategy']

    def test_without_history(self):
        fig = build_lab_comparison_figure([run_batch_simulation('pro', 20, seed=1)])
        assert not any(isinstance(t, go.Scatter) for t in fig.data)


class TestAdviceFigure:
    def test_stacked_outcomes(self, advice):
        fig = build_advice_figure(advice)
        assert fig.layout.barmode == "stack"
        assert [t.name for t in fig.data] == ["Win", "Push", "Lose"]
        assert len(fig.data[0].x) == 3

    def test_recommended_marked(self, advice):
        fig = build_advice_figure(advice)
        marked = [x for x in fig.data[0].x if "★" in x]
        assert marked == [f"{advice.recommended.value.upper()} ★"]


class TestSaveHtml:
    def test_writes_file(self, tmp_path):
        path = os.path.join(tmp_path, "lookup.html")
        save_lookup_html(build_strategy_lookup_figure(), path)
        with open(path, encoding="utf-8") as fh:
            assert "<html>" in fh.read().lower()
