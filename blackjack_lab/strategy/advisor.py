"""
Strategy advisor: one recommendation per request, with supporting numbers.

Steps:
    1. Hi-Lo running / true count over the cards seen so far.
    2. Basic-strategy lookup as a baseline reference.
    3. Monte Carlo simulation of HIT, STAND and (when legal) DOUBLE.
    4. Recommend the action with the highest simulated EV, where
       EV = win_rate - lose_rate and DOUBLE's EV is doubled for the doubled
       stake. Exact ties resolve DOUBLE > HIT > STAND.

The basic-strategy action is reported alongside but never overrides the
simulated choice.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from blackjack_lab.engine.cards import Card
from blackjack_lab.engine.counting import DeckAdvantage, count_snapshot
from blackjack_lab.engine.deck import RngLike, Shoe, make_rng
from blackjack_lab.engine.game_state import PlayerAction
from blackjack_lab.engine.hand import calculate_full_score, calculate_hand_state
from blackjack_lab.engine.rules import can_double_down

from .basic_strategy import basic_strategy_action
from .outcome_simulator import (
    DEFAULT_TRIALS,
    SimulationResult,
    simulate_double,
    simulate_hit,
    simulate_stand,
)


@dataclass(frozen=True)
class StrategyAdvice:
    """Recommendation plus the simulated results behind it.

    Attributes:
        recommended:    Action with the highest simulated EV.
        basic_strategy: Table action for the same state (reference only).
        hit_result:     Simulated HIT outcomes.
        stand_result:   Simulated STAND outcomes.
        double_result:  Simulated DOUBLE outcomes, or None when doubling is
                        not allowed.
        running_count:  Hi-Lo running count of the cards seen.
        true_count:     Running count per estimated deck remaining.
        deck_advantage: PLAYER (tc ≥ 2), DEALER (tc ≤ -2) or NEUTRAL.
    """

    recommended: PlayerAction
    basic_strategy: PlayerAction
    hit_result: SimulationResult
    stand_result: SimulationResult
    double_result: SimulationResult | None
    running_count: int
    true_count: float
    deck_advantage: DeckAdvantage

    @property
    def agrees_with_basic_strategy(self) -> bool:
        return self.recommended == self.basic_strategy


def action_ev(result: SimulationResult) -> float:
    """Simulated EV in units of the original bet."""
    if result.action == PlayerAction.DOUBLE:
        return result.ev * 2
    return result.ev


def choose_action(
    hit_result: SimulationResult,
    stand_result: SimulationResult,
    double_result: SimulationResult | None = None,
) -> PlayerAction:
    """Pick the highest-EV action; exact ties go DOUBLE, then HIT, then STAND."""
    candidates = [hit_result, stand_result]
    if double_result is not None:
        candidates.insert(0, double_result)
    best = max(candidates, key=action_ev)
    return best.action


def get_strategy_advice(
    player_hand: Sequence[Card],
    dealer_hand: Sequence[Card],
    shoe: Shoe,
    chips: int,
    bet: int,
    *,
    dealt_cards: Sequence[Card] | None = None,
    trials: int = DEFAULT_TRIALS,
    rng: RngLike = None,
) -> StrategyAdvice:
    """Produce a StrategyAdvice for the current decision.

    Args:
        player_hand: Player's cards.
        dealer_hand: Dealer's cards; face-down cards stay hidden.
        shoe:        Current shoe (its size drives the true count, its cards
                     feed the trial decks).
        chips:       Chips left behind the current bet (double eligibility).
        bet:         Current bet.
        dealt_cards: Cards seen so far this shoe. Defaults to the player's
                     cards plus the dealer's face-up cards.
        trials:      Monte Carlo trials per action.
        rng:         Generator, seed, or None.

    Returns:
        StrategyAdvice.
    """
    rng = make_rng(rng)

    if dealt_cards is None:
        dealt_cards = tuple(player_hand) + tuple(c for c in dealer_hand if c.face_up)
    count = count_snapshot(dealt_cards, len(shoe))

    player = calculate_full_score(player_hand)
    upcard = calculate_hand_state(dealer_hand).score
    double_ok = can_double_down(player_hand, chips, bet)
    baseline = basic_strategy_action(player.score, player.is_soft, upcard, double_ok)

    hit_result = simulate_hit(player_hand, dealer_hand, shoe, trials, rng)
    stand_result = simulate_stand(player_hand, dealer_hand, shoe, trials, rng)
    double_result = (
        simulate_double(player_hand, dealer_hand, shoe, trials, rng) if double_ok else None
    )

    return StrategyAdvice(
        recommended=choose_action(hit_result, stand_result, double_result),
        basic_strategy=baseline,
        hit_result=hit_result,
        stand_result=stand_result,
        double_result=double_result,
        running_count=count.running_count,
        true_count=count.true_count,
        deck_advantage=count.advantage,
    )
