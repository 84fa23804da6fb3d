"""Plain-text reports for lab runs and strategy advice.

    print_lab_results(stats_list)  : side-by-side policy table + best policy
    print_strategy_advice(advice)  : recommendation, count and per-action odds
    print_table_state(state)       : one-line-per-field table summary
"""

from __future__ import annotations

from typing import Sequence

from blackjack_lab.analysis.simulator import LabStats
from blackjack_lab.engine.cards import hand_to_str
from blackjack_lab.engine.game_state import TableState
from blackjack_lab.strategy.advisor import StrategyAdvice, action_ev


def print_lab_results(stats_list: Sequence[LabStats]) -> None:
    """Print one row per policy and name the policy with the best EV."""
    print("=" * 78)
    print("Simulation Lab Results")
    print("=" * 78)
    if not stats_list:
        print("  (no results)")
        print()
        return

    print(
        f"  {'Policy':<14}  {'Hands':>6}  {'W':>5}  {'L':>5}  {'P':>5}  {'BJ':>4}"
        f"  {'Win %':>6}  {'EV %':>7}  {'Peak':>8}  {'Final':>8}"
    )
    print(
        f"  {'-' * 14}  {'-' * 6}  {'-' * 5}  {'-' * 5}  {'-' * 5}  {'-' * 4}"
        f"  {'-' * 6}  {'-' * 7}  {'-' * 8}  {'-' * 8}"
    )
    for s in stats_list:
        print(
            f"  {s.label:<14}  {s.hands_played:>6,}  {s.wins:>5}  {s.losses:>5}"
            f"  {s.pushes:>5}  {s.blackjacks:>4}  {s.win_rate * 100:>5.1f}%"
            f"  {s.ev:>+6.2f}%  {s.peak_chips:>8,}  {s.final_chips:>8,}"
        )

    best = max(stats_list, key=lambda s: s.ev)
    print()
    print(f"  Best EV: {best.label} ({best.ev:+.2f}%)")
    print()


def print_strategy_advice(advice: StrategyAdvice) -> None:
    """Print the recommendation, the count, and each simulated action."""
    print("=" * 56)
    print(f"Recommended: {advice.recommended.value.upper()}")
    print("=" * 56)
    agree = "agrees" if advice.agrees_with_basic_strategy else "differs"
    print(f"  Basic strategy: {advice.basic_strategy.value.upper()} ({agree})")
    print(
        f"  Count: running {advice.running_count:+d}, true {advice.true_count:+.1f}"
        f"  → {advice.deck_advantage.value} advantage"
    )
    print()
    print(f"  {'Action':<7}  {'Win':>6}  {'Push':>6}  {'Lose':>6}  {'Bust':>6}  {'EV':>7}")
    print(f"  {'-' * 7}  {'-' * 6}  {'-' * 6}  {'-' * 6}  {'-' * 6}  {'-' * 7}")
    results = [advice.hit_result, advice.stand_result]
    if advice.double_result is not None:
        results.append(advice.double_result)
    for r in results:
        print(
            f"  {r.action.value.upper():<7}  {r.win_rate:>6.1%}  {r.push_rate:>6.1%}"
            f"  {r.lose_rate:>6.1%}  {r.bust_rate:>6.1%}  {action_ev(r):>+7.3f}"
        )
    print()


def print_table_state(state: TableState) -> None:
    print(f"  Phase  : {state.phase.name}")
    print(f"  Player : {hand_to_str(state.player_hand) or '-'}")
    print(f"  Dealer : {hand_to_str(state.dealer_hand) or '-'}")
    print(f"  Chips  : {state.chips:,}  (bet {state.bet:,}, stake {state.stake:,})")
    if state.result is not None:
        print(f"  Result : {state.result.value}")
    print(
        f"  Record : {state.stats.wins}W {state.stats.losses}L {state.stats.pushes}P"
        f" ({state.stats.blackjacks} BJ)"
    )
