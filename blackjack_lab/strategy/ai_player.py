"""
AI player policies.

Three difficulty tiers choose one PlayerAction from the hand state:

    easy    : one uniform draw r; double if r < 0.1 and doubling is
              allowed, else hit if r < 0.5, else stand.
    pro     : the basic-strategy table, no simulation.
    casino  : basic strategy plus simplified true-count deviations on hard
              totals:
                  16 v 10   stand if tc ≥ 0, else hit
                  15 v 10   stand if tc ≥ 4, else hit
                  12 v 3    stand if tc ≥ 2, else hit
                  12 v 2    stand if tc ≥ 3, else hit
                  11        always double when allowed
                  10 v 10   double if tc ≥ 4, else hit   (when allowed)
                  10 v A    double if tc ≥ 4, else hit   (when allowed)

The casino thresholds are a fixed house policy, not the full Illustrious 18.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from blackjack_lab.engine.cards import Card
from blackjack_lab.engine.counting import remaining_decks, running_count, true_count
from blackjack_lab.engine.deck import RngLike, make_rng
from blackjack_lab.engine.game_state import PlayerAction
from blackjack_lab.engine.hand import calculate_full_score, calculate_hand_state
from blackjack_lab.engine.rules import can_double_down

from .basic_strategy import basic_strategy_action

RANDOM_DOUBLE_PROB: float = 0.1
RANDOM_HIT_PROB: float = 0.5


class AiDifficulty(Enum):
    EASY = 'easy'
    PRO = 'pro'
    CASINO = 'casino'


DIFFICULTY_LABELS: dict[AiDifficulty, str] = {
    AiDifficulty.EASY: 'Random',
    AiDifficulty.PRO: 'Basic Strategy',
    AiDifficulty.CASINO: 'Card Counting',
}


def parse_difficulty(value: AiDifficulty | str) -> AiDifficulty:
    """Accept an AiDifficulty or its string value ('easy', 'pro', 'casino').

    Raises:
        ValueError: For an unknown difficulty name.
    """
    if isinstance(value, AiDifficulty):
        return value
    try:
        return AiDifficulty(value)
    except ValueError:
        names = ", ".join(d.value for d in AiDifficulty)
        raise ValueError(f"Unknown AI difficulty {value!r}; expected one of {names}.") from None


# ─── Policies ─────────────────────────────────────────────────────────────────

def random_action(can_double: bool, rng: RngLike = None) -> PlayerAction:
    roll = make_rng(rng).random()
    if can_double and roll < RANDOM_DOUBLE_PROB:
        return PlayerAction.DOUBLE
    return PlayerAction.HIT if roll < RANDOM_HIT_PROB else PlayerAction.STAND


def casino_action(
    player_score: int,
    is_soft: bool,
    dealer_upcard: int,
    can_double: bool,
    tc: float,
) -> PlayerAction:
    """Basic strategy with the count-driven deviations listed above.

    Examples:
        >>> casino_action(16, False, 10, True, 0.0)
        <PlayerAction.STAND: 'stand'>
        >>> casino_action(16, False, 10, True, -0.1)
        <PlayerAction.HIT: 'hit'>
        >>> casino_action(10, False, 11, True, 4.0)
        <PlayerAction.DOUBLE: 'double'>
    """
    if not is_soft:
        if player_score == 16 and dealer_upcard == 10:
            return PlayerAction.STAND if tc >= 0 else PlayerAction.HIT
        if player_score == 15 and dealer_upcard == 10:
            return PlayerAction.STAND if tc >= 4 else PlayerAction.HIT
        if player_score == 12 and dealer_upcard == 3:
            return PlayerAction.STAND if tc >= 2 else PlayerAction.HIT
        if player_score == 12 and dealer_upcard == 2:
            return PlayerAction.STAND if tc >= 3 else PlayerAction.HIT
        if player_score == 11 and can_double:
            return PlayerAction.DOUBLE
        if player_score == 10 and dealer_upcard in (10, 11) and can_double:
            return PlayerAction.DOUBLE if tc >= 4 else PlayerAction.HIT

    return basic_strategy_action(player_score, is_soft, dealer_upcard, can_double)


def get_ai_action(
    difficulty: AiDifficulty | str,
    player_hand: Sequence[Card],
    dealer_hand: Sequence[Card],
    dealt_cards: Sequence[Card],
    remaining_shoe_size: int,
    chips: int,
    bet: int,
    rng: RngLike = None,
) -> PlayerAction:
    """Return the action the AI at *difficulty* takes.

    Args:
        difficulty:          Policy tier.
        player_hand:         AI player's cards (scored in full).
        dealer_hand:         Dealer's cards; only face-up cards are used.
        dealt_cards:         Cards seen so far this shoe (read only).
        remaining_shoe_size: Cards left in the shoe.
        chips:               Chips behind the current bet.
        bet:                 Current bet.
        rng:                 Randomness for the easy tier.
    """
    difficulty = parse_difficulty(difficulty)
    player = calculate_full_score(player_hand)
    upcard = calculate_hand_state(dealer_hand).score
    double_ok = can_double_down(player_hand, chips, bet)

    if difficulty == AiDifficulty.EASY:
        return random_action(double_ok, rng)

    if difficulty == AiDifficulty.PRO:
        return basic_strategy_action(player.score, player.is_soft, upcard, double_ok)

    tc = true_count(running_count(dealt_cards), remaining_decks(remaining_shoe_size))
    return casino_action(player.score, player.is_soft, upcard, double_ok, tc)
