"""Strategy heat maps and bankroll charts (matplotlib).

Data builders return NumPy matrices usable programmatically or by the plot
helpers:

    build_basic_strategy_matrix(can_double)  — (hard, soft) action codes
    build_casino_matrix(tc, can_double)      — same, with count deviations

Plot functions:

    plot_strategy_heatmaps(hard, soft, title, ...)  — 1×2 figure
    plot_basic_strategy_heatmaps(...)               — basic-strategy wrapper
    plot_casino_heatmaps(tc, ...)                   — counting-policy wrapper
    plot_bankroll_trajectories(stats_list, ...)     — chip paths per policy

Matrix convention:
    hard : shape (17, 10), rows = totals 5–21
    soft : shape (9, 10),  rows = totals 13–21
    cols : dealer upcard 2–10, A
    values: 0.0 = STAND, 1.0 = HIT, 2.0 = DOUBLE
"""

from __future__ import annotations

from typing import Sequence

import matplotlib
import matplotlib.colors
import matplotlib.figure
import matplotlib.pyplot as plt
import numpy as np

from blackjack_lab.analysis.simulator import LabStats
from blackjack_lab.engine.game_state import PlayerAction
from blackjack_lab.strategy.ai_player import casino_action
from blackjack_lab.strategy.basic_strategy import (
    DEALER_UPCARDS,
    HARD_TOTALS,
    SOFT_TOTALS,
    basic_strategy_action,
)

# ─── Constants ────────────────────────────────────────────────────────────────

ACTION_CODES: dict[PlayerAction, float] = {
    PlayerAction.STAND: 0.0,
    PlayerAction.HIT: 1.0,
    PlayerAction.DOUBLE: 2.0,
}
ACTION_LETTERS: dict[float, str] = {0.0: "S", 1.0: "H", 2.0: "D"}

UPCARD_LABELS: list[str] = [str(u) for u in DEALER_UPCARDS[:-1]] + ["A"]
_ACTION_COLORS: list[str] = ["#d62728", "#2ca02c", "#1f77b4"]


def _make_action_cmap() -> matplotlib.colors.ListedColormap:
    """Red=STAND, green=HIT, blue=DOUBLE."""
    return matplotlib.colors.ListedColormap(_ACTION_COLORS)


_ACTION_CMAP: matplotlib.colors.Colormap = _make_action_cmap()


# ─── Data builders ────────────────────────────────────────────────────────────


def _build_matrices(decide) -> tuple[np.ndarray, np.ndarray]:
    hard = np.empty((len(HARD_TOTALS), len(DEALER_UPCARDS)))
    soft = np.empty((len(SOFT_TOTALS), len(DEALER_UPCARDS)))
    for c, up in enumerate(DEALER_UPCARDS):
        for r, total in enumerate(HARD_TOTALS):
            hard[r, c] = ACTION_CODES[decide(total, False, up)]
        for r, total in enumerate(SOFT_TOTALS):
            soft[r, c] = ACTION_CODES[decide(total, True, up)]
    return hard, soft


def build_basic_strategy_matrix(can_double: bool = True) -> tuple[np.ndarray, np.ndarray]:
    """Return (hard, soft) basic-strategy action codes.

    Examples:
        >>> hard, soft = build_basic_strategy_matrix()
        >>> hard.shape, soft.shape
        ((17, 10), (9, 10))
    """
    return _build_matrices(
        lambda total, soft, up: basic_strategy_action(total, soft, up, can_double)
    )


def build_casino_matrix(tc: float, can_double: bool = True) -> tuple[np.ndarray, np.ndarray]:
    """Return (hard, soft) action codes for the counting policy at true count *tc*."""
    return _build_matrices(lambda total, soft, up: casino_action(total, soft, up, can_double, tc))


# ─── Rendering helper ─────────────────────────────────────────────────────────


def _render_panel(
    ax: matplotlib.axes.Axes,
    data: np.ndarray,
    totals: Sequence[int],
) -> matplotlib.image.AxesImage:
    """Draw one chart panel with S/H/D cell annotations; caller sets titles."""
    im = ax.imshow(data, cmap=_ACTION_CMAP, vmin=-0.5, vmax=2.5, aspect="auto")

    ax.set_xticks(range(len(UPCARD_LABELS)))
    ax.set_xticklabels(UPCARD_LABELS, fontsize=8)
    ax.set_yticks(range(len(totals)))
    ax.set_yticklabels([str(t) for t in totals], fontsize=8)

    for r in range(data.shape[0]):
        for c in range(data.shape[1]):
            ax.text(
                c,
                r,
                ACTION_LETTERS[float(data[r, c])],
                ha="center",
                va="center",
                fontsize=8,
                color="white",
                fontweight="bold",
            )
    return im


# ─── Public plot functions ────────────────────────────────────────────────────


def plot_strategy_heatmaps(
    hard_data: np.ndarray,
    soft_data: np.ndarray,
    title: str,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot hard and soft strategy charts as a 1×2 figure.

    Args:
        hard_data: (17, 10) action codes for hard totals 5–21.
        soft_data: (9, 10) action codes for soft totals 13–21.
        title:     Figure suptitle.
        show:      If True, call plt.show() after rendering.
        save_path: If not None, save the figure to this path first.

    Returns:
        matplotlib.figure.Figure.
    """
    fig, (ax_hard, ax_soft) = plt.subplots(1, 2, figsize=(11, 7))
    fig.suptitle(title, fontsize=13, fontweight="bold")

    _render_panel(ax_hard, hard_data, HARD_TOTALS)
    _render_panel(ax_soft, soft_data, SOFT_TOTALS)

    for ax, name in ((ax_hard, "Hard totals"), (ax_soft, "Soft totals")):
        ax.set_title(name, fontsize=10)
        ax.set_xlabel("Dealer upcard", fontsize=9)
        ax.set_ylabel("Player total", fontsize=9)

    plt.tight_layout()

    if save_path is not None:
        fig.savefig(save_path, bbox_inches="tight", dpi=120)
    if show:
        plt.show()

    return fig


def plot_basic_strategy_heatmaps(
    can_double: bool = True,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    hard, soft = build_basic_strategy_matrix(can_double)
    suffix = "" if can_double else "  (no double)"
    return plot_strategy_heatmaps(
        hard, soft, f"Basic Strategy{suffix}", show=show, save_path=save_path
    )


def plot_casino_heatmaps(
    tc: float,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    hard, soft = build_casino_matrix(tc)
    return plot_strategy_heatmaps(
        hard, soft, f"Card-Counting Policy  (true count {tc:+.1f})", show=show, save_path=save_path
    )


def plot_bankroll_trajectories(
    stats_list: Sequence[LabStats],
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot each policy's chip count per hand on shared axes.

    Raises:
        ValueError: If any LabStats was produced without return_history=True.
    """
    fig, ax = plt.subplots(figsize=(10, 5))
    for s in stats_list:
        if s.chips_history is None:
            raise ValueError(
                f"{s.label}: no chips_history; run the batch with return_history=True."
            )
        ax.plot(np.arange(len(s.chips_history)), s.chips_history, label=s.label, linewidth=1.2)

    if stats_list:
        ax.axhline(stats_list[0].starting_chips, color="grey", linestyle="--", linewidth=0.8)
    ax.set_title("Bankroll by hand", fontsize=12, fontweight="bold")
    ax.set_xlabel("Hand", fontsize=9)
    ax.set_ylabel("Chips", fontsize=9)
    ax.legend(fontsize=9)
    plt.tight_layout()

    if save_path is not None:
        fig.savefig(save_path, bbox_inches="tight", dpi=120)
    if show:
        plt.show()

    return fig


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    from blackjack_lab.analysis.simulator import SimulationLab

    matplotlib.use("Agg")
    print("Generating strategy charts …")
    plot_basic_strategy_heatmaps(show=False, save_path="basic_strategy.png")
    plot_casino_heatmaps(4.0, show=False, save_path="casino_tc4.png")

    lab = SimulationLab(hand_count=2000, seed=42, return_history=True)
    plot_bankroll_trajectories(lab.run_all(), show=False, save_path="bankroll.png")
    print("Saved: basic_strategy.png, casino_tc4.png, bankroll.png")
