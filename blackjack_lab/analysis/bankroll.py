"""Bankroll and variance analysis for simulation-lab runs.

Works on the per-hand net results a batch run records with
``return_history=True`` (units = base bets, so a lost doubled hand is -2.0
and a natural is +1.5).

Provides:
- Distribution statistics (mean, std, skewness, kurtosis, percentiles)
- Risk-of-ruin and required bankroll (gambler's ruin approximation)
- Horizon projections via CLT (expected profit + confidence intervals)
- Bootstrap drawdown analysis and the realised drawdown of a chip path

Usage (standalone report):
    PYTHONPATH=. python -m blackjack_lab.analysis.bankroll [hands]
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy import stats

# ─── Dataclasses ──────────────────────────────────────────────────────────────


@dataclass
class VarianceStats:
    """Descriptive statistics for a per-hand net-result distribution.

    Attributes:
        mean:        Mean net result per hand (base bets).
        std:         Sample standard deviation.
        variance:    Sample variance (std**2).
        skewness:    Fisher skewness.
        kurtosis:    Excess kurtosis (normal = 0).
        percentiles: Keys 'p1', 'p5', 'p25', 'p50', 'p75', 'p95', 'p99'.
        n_hands:     Number of hands in the sample.
    """

    mean: float
    std: float
    variance: float
    skewness: float
    kurtosis: float
    percentiles: dict[str, float]
    n_hands: int


@dataclass
class BankrollRequirement:
    """Bankroll needed to survive indefinitely at a given confidence level."""

    survival_prob: float
    required_bankroll: float
    edge: float
    std: float
    method: str = "gambler_ruin_approx"


@dataclass
class HorizonProjection:
    """Expected profit and its CLT interval after ``n_hands`` hands."""

    n_hands: int
    expected_profit: float
    ci_low: float
    ci_high: float
    prob_positive: float


@dataclass
class DrawdownStats:
    """Max-drawdown distribution over bootstrapped trajectories (base bets)."""

    mean_max_drawdown: float
    median_max_drawdown: float
    p95_max_drawdown: float
    n_trajectories: int


# ─── Computation functions ────────────────────────────────────────────────────

_PERCENTILES = [1, 5, 25, 50, 75, 95, 99]


def compute_variance_stats(net_results: np.ndarray) -> VarianceStats:
    """Descriptive statistics for per-hand net results.

    Raises:
        ValueError: With fewer than two hands (no sample variance).
    """
    n = len(net_results)
    if n < 2:
        raise ValueError(f"Need at least 2 hands for variance statistics; got {n}.")
    mean = float(np.mean(net_results))
    std = float(np.std(net_results, ddof=1))
    pct_values = np.percentile(net_results, _PERCENTILES)
    return VarianceStats(
        mean=mean,
        std=std,
        variance=std**2,
        skewness=float(stats.skew(net_results)),
        kurtosis=float(stats.kurtosis(net_results)),
        percentiles={f"p{p}": float(v) for p, v in zip(_PERCENTILES, pct_values)},
        n_hands=n,
    )


def risk_of_ruin(bankroll: float, edge: float, std: float) -> float:
    """Gambler's ruin approximation: RoR = exp(-2 * edge * bankroll / variance).

    Returns 1.0 for a non-positive edge (ruin is certain eventually) and
    0.0 for a positive edge with zero variance.
    """
    if edge <= 0:
        return 1.0
    variance = std**2
    if variance == 0:
        return 0.0
    return float(math.exp(-2.0 * edge * bankroll / variance))


def required_bankroll(
    edge: float,
    std: float,
    survival_prob: float,
) -> BankrollRequirement:
    """Solve the ruin formula for the bankroll giving *survival_prob*.

        B = -variance * ln(1 - survival_prob) / (2 * edge)

    Raises:
        ValueError: If edge <= 0 or survival_prob is outside (0, 1).
    """
    if edge <= 0:
        raise ValueError(
            f"required_bankroll() requires a positive edge; got edge={edge:.6f}. "
            "A losing game needs an infinite bankroll to survive."
        )
    if not 0.0 < survival_prob < 1.0:
        raise ValueError(f"survival_prob must be in (0, 1); got {survival_prob}.")
    b = -(std**2) * math.log(1.0 - survival_prob) / (2.0 * edge)
    return BankrollRequirement(
        survival_prob=survival_prob,
        required_bankroll=b,
        edge=edge,
        std=std,
    )


def compute_horizon_projections(
    edge: float,
    std: float,
    horizons: list[int] | None = None,
    confidence: float = 0.95,
) -> list[HorizonProjection]:
    """CLT profit projections: profit after N hands ~ N(N*edge, N*variance).

    Horizons default to [100, 500, 1000, 5000, 10000].
    """
    if horizons is None:
        horizons = [100, 500, 1000, 5000, 10_000]

    z = stats.norm.ppf((1.0 + confidence) / 2.0)
    projections = []
    for n in horizons:
        expected = n * edge
        margin = z * std * math.sqrt(n)
        if std > 0:
            prob_pos = float(stats.norm.cdf(math.sqrt(n) * edge / std))
        else:
            prob_pos = 1.0 if edge > 0 else 0.0
        projections.append(
            HorizonProjection(
                n_hands=n,
                expected_profit=expected,
                ci_low=expected - margin,
                ci_high=expected + margin,
                prob_positive=prob_pos,
            )
        )
    return projections


def max_drawdown(chips_history: np.ndarray) -> float:
    """Largest peak-to-trough fall along a bankroll path (same units as input).

    An empty or single-point path has no drawdown.
    """
    path = np.asarray(chips_history, dtype=np.float64)
    if path.size < 2:
        return 0.0
    running_max = np.maximum.accumulate(path)
    return float(np.max(running_max - path))


def compute_drawdown_stats(
    net_results: np.ndarray,
    n_trajectories: int = 1000,
    trajectory_length: int = 500,
    seed: int = 0,
) -> DrawdownStats:
    """Bootstrap trajectories from the observed net results and summarise
    their max drawdowns."""
    rng = np.random.default_rng(seed)
    samples = rng.choice(net_results, size=(n_trajectories, trajectory_length), replace=True)
    cumsum = np.cumsum(samples, axis=1)
    running_max = np.maximum.accumulate(np.maximum(cumsum, 0.0), axis=1)
    drawdowns = np.max(running_max - cumsum, axis=1)

    return DrawdownStats(
        mean_max_drawdown=float(np.mean(drawdowns)),
        median_max_drawdown=float(np.median(drawdowns)),
        p95_max_drawdown=float(np.percentile(drawdowns, 95)),
        n_trajectories=n_trajectories,
    )


# ─── Output functions ─────────────────────────────────────────────────────────


def print_variance_report(
    vstats: VarianceStats,
    bankroll_reqs: list[BankrollRequirement],
    projections: list[HorizonProjection],
    drawdown: DrawdownStats,
    *,
    label: str = "",
) -> str:
    """Format and print a variance and bankroll report.

    Returns:
        The formatted report string (also printed to stdout).
    """
    header = f"Variance & Bankroll Report{' — ' + label if label else ''}"
    pct = vstats.percentiles
    lines = [
        "=" * 70,
        header,
        "=" * 70,
        "",
        "── Distribution Statistics ─────────────────────────────────────────",
        f"  Hands simulated : {vstats.n_hands:>10,}",
        f"  Mean EV / hand  : {vstats.mean:>+10.4f} bets  ({vstats.mean * 100:+.2f}%)",
        f"  Std deviation   : {vstats.std:>10.4f} bets",
        f"  Variance        : {vstats.variance:>10.4f}",
        f"  Skewness        : {vstats.skewness:>10.4f}",
        f"  Excess kurtosis : {vstats.kurtosis:>10.4f}",
        "",
        "  Percentiles (bets):",
        "    " + "  ".join(f"{k}={v:.2f}" for k, v in pct.items()),
        "",
        "── Bankroll Requirements ────────────────────────────────────────────",
    ]
    if not bankroll_reqs:
        lines.append("  Edge ≤ 0: no finite bankroll survives indefinitely.")
    for req in bankroll_reqs:
        lines.append(
            f"  Survival {req.survival_prob * 100:.0f}%   : "
            f"{req.required_bankroll:>8.1f} bets  ({req.method})"
        )
    lines += [
        "",
        "── Horizon Projections (CLT, 95% CI) ───────────────────────────────",
        f"  {'Hands':>8}  {'E[profit]':>10}  {'CI low':>10}  {'CI high':>10}  {'P(+)':>6}",
        f"  {'-' * 8}  {'-' * 10}  {'-' * 10}  {'-' * 10}  {'-' * 6}",
    ]
    for p in projections:
        lines.append(
            f"  {p.n_hands:>8,}  {p.expected_profit:>+10.2f}  "
            f"{p.ci_low:>+10.2f}  {p.ci_high:>+10.2f}  {p.prob_positive:>5.1%}"
        )
    lines += [
        "",
        "── Drawdown Analysis (bootstrap) ────────────────────────────────────",
        f"  Trajectories    : {drawdown.n_trajectories:,}",
        f"  Mean max DD     : {drawdown.mean_max_drawdown:.2f} bets",
        f"  Median max DD   : {drawdown.median_max_drawdown:.2f} bets",
        f"  p95 max DD      : {drawdown.p95_max_drawdown:.2f} bets",
        "",
    ]
    report = "\n".join(lines)
    print(report)
    return report


# ─── __main__ ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import sys

    from blackjack_lab.analysis.simulator import run_batch_simulation
    from blackjack_lab.strategy.ai_player import AiDifficulty

    n_hands = int(sys.argv[1]) if len(sys.argv) > 1 else 10_000
    print(f"Blackjack Variance & Bankroll Analysis — {n_hands:,} hands per policy\n")

    for difficulty in AiDifficulty:
        result = run_batch_simulation(
            difficulty, n_hands, starting_chips=10**9, seed=42, return_history=True
        )
        assert result.net_results is not None

        vs = compute_variance_stats(result.net_results)
        reqs = (
            [required_bankroll(vs.mean, vs.std, sp) for sp in (0.90, 0.95, 0.99)]
            if vs.mean > 0
            else []
        )
        projections = compute_horizon_projections(vs.mean, vs.std)
        dd = compute_drawdown_stats(result.net_results, n_trajectories=500)
        print_variance_report(vs, reqs, projections, dd, label=result.label)
