"""Interactive Plotly figures for the strategy charts, lab runs and advice.

Public functions:

    build_strategy_lookup_figure(can_double)
        — Hard/soft basic-strategy chart; hover shows the hand state and action.
    build_casino_lookup_figure(tc)
        — Counting-policy chart at true count *tc*; hover flags every cell
          that deviates from basic strategy.
    build_lab_comparison_figure(stats_list)
        — Win rate and EV bars per policy, plus bankroll lines when the runs
          carry chip history.
    build_advice_figure(advice)
        — Stacked win / push / lose bars for each simulated action.
    save_lookup_html(fig, path)
        — Export any figure to a self-contained HTML file.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from blackjack_lab.analysis.heat_maps import (
    ACTION_LETTERS,
    UPCARD_LABELS,
    build_basic_strategy_matrix,
    build_casino_matrix,
)
from blackjack_lab.analysis.simulator import LabStats
from blackjack_lab.strategy.advisor import StrategyAdvice, action_ev
from blackjack_lab.strategy.basic_strategy import HARD_TOTALS, SOFT_TOTALS

# ─── Constants ────────────────────────────────────────────────────────────────

_ACTION_NAMES: dict[str, str] = {"S": "STAND", "H": "HIT", "D": "DOUBLE"}

# Stepped colorscale over codes 0 / 1 / 2: STAND red, HIT green, DOUBLE blue.
_ACTION_COLORSCALE: list[list] = [
    [0.0, "#d62728"],
    [0.333, "#d62728"],
    [0.334, "#2ca02c"],
    [0.666, "#2ca02c"],
    [0.667, "#1f77b4"],
    [1.0, "#1f77b4"],
]

_OUTCOME_COLORS: dict[str, str] = {"Win": "#2ca02c", "Push": "#999999", "Lose": "#d62728"}


# ─── Hover text builders ──────────────────────────────────────────────────────


def _build_hover(
    data: np.ndarray,
    totals: Sequence[int],
    is_soft: bool,
    reference: np.ndarray | None = None,
) -> list[list[str]]:
    """Hover strings for one chart panel.

    When *reference* is given, cells whose action differs from it are
    labelled as count deviations.
    """
    type_label = "Soft" if is_soft else "Hard"
    rows: list[list[str]] = []
    for r, total in enumerate(totals):
        row: list[str] = []
        for c, up in enumerate(UPCARD_LABELS):
            letter = ACTION_LETTERS[float(data[r, c])]
            lines = [
                f"Total: <b>{total}</b> ({type_label})",
                f"Dealer upcard: {up}",
                f"Action: <b>{_ACTION_NAMES[letter]}</b>",
            ]
            if reference is not None and reference[r, c] != data[r, c]:
                base = _ACTION_NAMES[ACTION_LETTERS[float(reference[r, c])]]
                lines.append(f"Deviation (basic: {base})")
            row.append("<br>".join(lines))
        rows.append(row)
    return rows


# ─── Trace builder ────────────────────────────────────────────────────────────


def _make_heatmap_trace(
    data: np.ndarray,
    totals: Sequence[int],
    hover_text: list[list[str]],
    *,
    name: str,
    showscale: bool = True,
) -> go.Heatmap:
    return go.Heatmap(
        z=data.tolist(),
        x=UPCARD_LABELS,
        y=[str(t) for t in totals],
        colorscale=_ACTION_COLORSCALE,
        zmin=0.0,
        zmax=2.0,
        text=hover_text,
        hovertemplate="%{text}<extra></extra>",
        showscale=showscale,
        colorbar={
            "title": "Action",
            "tickvals": [0, 1, 2],
            "ticktext": ["STAND", "HIT", "DOUBLE"],
        },
        name=name,
    )


def _chart_figure(
    hard: np.ndarray,
    soft: np.ndarray,
    title: str,
    reference: tuple[np.ndarray, np.ndarray] | None = None,
) -> go.Figure:
    ref_hard, ref_soft = reference if reference is not None else (None, None)
    fig = make_subplots(
        rows=1,
        cols=2,
        subplot_titles=["Hard totals", "Soft totals"],
        horizontal_spacing=0.12,
    )
    fig.add_trace(
        _make_heatmap_trace(
            hard, HARD_TOTALS, _build_hover(hard, HARD_TOTALS, False, ref_hard), name="Hard"
        ),
        row=1,
        col=1,
    )
    fig.add_trace(
        _make_heatmap_trace(
            soft,
            SOFT_TOTALS,
            _build_hover(soft, SOFT_TOTALS, True, ref_soft),
            name="Soft",
            showscale=False,
        ),
        row=1,
        col=2,
    )
    fig.update_layout(title_text=title, title_font_size=15, height=560, width=900)
    fig.update_yaxes(title_text="Player total", col=1)
    fig.update_xaxes(title_text="Dealer upcard")
    return fig


# ─── Public figure builders ───────────────────────────────────────────────────


def build_strategy_lookup_figure(can_double: bool = True) -> go.Figure:
    """Interactive basic-strategy chart (hard + soft panels)."""
    hard, soft = build_basic_strategy_matrix(can_double)
    suffix = "" if can_double else " (no double)"
    return _chart_figure(hard, soft, f"Basic Strategy Lookup{suffix}")


def build_casino_lookup_figure(tc: float) -> go.Figure:
    """Interactive counting-policy chart at true count *tc*.

    Hover text marks each cell where the count changes the basic-strategy
    action.
    """
    hard, soft = build_casino_matrix(tc)
    return _chart_figure(
        hard,
        soft,
        f"Card-Counting Policy — true count {tc:+.1f}",
        reference=build_basic_strategy_matrix(),
    )


def build_lab_comparison_figure(stats_list: Sequence[LabStats]) -> go.Figure:
    """Win rate and EV bars for each policy.

    If every run carries ``chips_history`` a second row plots the bankroll
    paths on shared axes.
    """
    labels = [s.label for s in stats_list]
    with_history = bool(stats_list) and all(s.chips_history is not None for s in stats_list)

    n_rows = 2 if with_history else 1
    titles = ["Win rate", "EV (% of wagered)"]
    if with_history:
        titles.append("Bankroll by hand")
    specs: list[list] = [[{}, {}]]
    if with_history:
        specs.append([{"colspan": 2}, None])
    fig = make_subplots(rows=n_rows, cols=2, subplot_titles=titles, specs=specs)

    fig.add_trace(
        go.Bar(
            x=labels,
            y=[s.win_rate * 100 for s in stats_list],
            text=[f"{s.win_rate:.1%}" for s in stats_list],
            name="Win rate",
            marker_color="#2ca02c",
        ),
        row=1,
        col=1,
    )
    fig.add_trace(
        go.Bar(
            x=labels,
            y=[s.ev for s in stats_list],
            text=[f"{s.ev:+.2f}%" for s in stats_list],
            name="EV",
            marker_color=["#2ca02c" if s.ev >= 0 else "#d62728" for s in stats_list],
        ),
        row=1,
        col=2,
    )

    if with_history:
        for s in stats_list:
            fig.add_trace(
                go.Scatter(
                    x=np.arange(len(s.chips_history)),
                    y=s.chips_history,
                    mode="lines",
                    name=s.label,
                ),
                row=2,
                col=1,
            )
        fig.update_xaxes(title_text="Hand", row=2, col=1)
        fig.update_yaxes(title_text="Chips", row=2, col=1)

    fig.update_layout(
        title_text="Simulation Lab — policy comparison",
        title_font_size=15,
        height=420 * n_rows,
        width=900,
        showlegend=with_history,
    )
    return fig


def build_advice_figure(advice: StrategyAdvice) -> go.Figure:
    """Stacked outcome bars for each simulated action, recommended one marked."""
    results = [advice.hit_result, advice.stand_result]
    if advice.double_result is not None:
        results.append(advice.double_result)

    names = [r.action.value.upper() for r in results]
    names = [
        f"{n} ★" if r.action == advice.recommended else n for n, r in zip(names, results)
    ]

    fig = go.Figure()
    for outcome, rates in (
        ("Win", [r.win_rate for r in results]),
        ("Push", [r.push_rate for r in results]),
        ("Lose", [r.lose_rate for r in results]),
    ):
        fig.add_trace(
            go.Bar(
                x=names,
                y=[v * 100 for v in rates],
                name=outcome,
                marker_color=_OUTCOME_COLORS[outcome],
                hovertemplate=f"{outcome}: %{{y:.1f}}%<extra></extra>",
            )
        )

    evs = ", ".join(f"{r.action.value} {action_ev(r):+.3f}" for r in results)
    fig.update_layout(
        barmode="stack",
        title_text=f"Simulated outcomes (EV: {evs})",
        title_font_size=13,
        yaxis_title="% of trials",
        height=400,
        width=620,
    )
    return fig


# ─── HTML export ──────────────────────────────────────────────────────────────


def save_lookup_html(fig: go.Figure, path: str) -> None:
    """Save a figure to an HTML file (Plotly JS loaded from the CDN)."""
    fig.write_html(path, include_plotlyjs="cdn")


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    from blackjack_lab.analysis.simulator import SimulationLab

    print("Building interactive lookup figures …")
    save_lookup_html(build_strategy_lookup_figure(), "basic_strategy_lookup.html")
    save_lookup_html(build_casino_lookup_figure(4.0), "casino_lookup_tc4.html")

    lab = SimulationLab(hand_count=2000, seed=42, return_history=True)
    save_lookup_html(build_lab_comparison_figure(lab.run_all()), "lab_comparison.html")
    print("Saved: basic_strategy_lookup.html, casino_lookup_tc4.html, lab_comparison.html")
