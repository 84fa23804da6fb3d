"""
Dealer policy, double-down eligibility, result determination and payouts.

Result precedence (evaluated top to bottom, full scores of both hands):
    1. Both blackjack        → push
    2. Player blackjack      → player_blackjack
    3. Dealer blackjack      → dealer_blackjack
    4. Player bust (>21)     → player_bust
    5. Dealer bust (>21)     → dealer_bust
    6. Higher total wins     → player_win / dealer_win
    7. Equal totals          → push

Payout convention: the amount handed back to the player, original stake
included. Net profit is ``payout - bet``.
"""

from __future__ import annotations

import math
from enum import Enum, auto
from typing import Sequence

from .cards import Card
from .hand import calculate_full_score

# ─── Table constants ──────────────────────────────────────────────────────────

DEALER_STAND_TOTAL: int = 17

INITIAL_CHIPS: int = 10_000
MIN_BET: int = 100
BET_STEP: int = 100
MAX_BET_RATIO: float = 0.5


class GameResult(Enum):
    PLAYER_BLACKJACK = 'playerBlackjack'
    DEALER_BLACKJACK = 'dealerBlackjack'
    PLAYER_BUST = 'playerBust'
    DEALER_BUST = 'dealerBust'
    PLAYER_WIN = 'playerWin'
    DEALER_WIN = 'dealerWin'
    PUSH = 'push'


class Outcome(Enum):
    WIN = auto()
    LOSS = auto()
    PUSH = auto()


_WINNING_RESULTS = frozenset({
    GameResult.PLAYER_BLACKJACK,
    GameResult.PLAYER_WIN,
    GameResult.DEALER_BUST,
})
_LOSING_RESULTS = frozenset({
    GameResult.DEALER_BLACKJACK,
    GameResult.PLAYER_BUST,
    GameResult.DEALER_WIN,
})


# ─── Dealer / player rules ────────────────────────────────────────────────────

def dealer_should_hit(dealer_hand: Sequence[Card]) -> bool:
    """Dealer draws while the full total is below 17 (stands on all 17s)."""
    return calculate_full_score(dealer_hand).score < DEALER_STAND_TOTAL


def can_double_down(player_hand: Sequence[Card], chips: int, bet: int) -> bool:
    """Doubling needs an untouched two-card hand and chips to match the bet.

    Examples:
        >>> from blackjack_lab.engine.cards import str_to_card
        >>> two = (str_to_card('6S'), str_to_card('5H'))
        >>> can_double_down(two, chips=100, bet=100)
        True
        >>> can_double_down(two, chips=99, bet=100)
        False
    """
    return len(player_hand) == 2 and chips >= bet


# ─── Settlement ───────────────────────────────────────────────────────────────

def determine_result(
    player_hand: Sequence[Card],
    dealer_hand: Sequence[Card],
) -> GameResult:
    """Classify a completed hand. Exactly one result applies."""
    player = calculate_full_score(player_hand)
    dealer = calculate_full_score(dealer_hand)

    if player.is_blackjack and dealer.is_blackjack:
        return GameResult.PUSH
    if player.is_blackjack:
        return GameResult.PLAYER_BLACKJACK
    if dealer.is_blackjack:
        return GameResult.DEALER_BLACKJACK
    if player.is_bust:
        return GameResult.PLAYER_BUST
    if dealer.is_bust:
        return GameResult.DEALER_BUST
    if player.score > dealer.score:
        return GameResult.PLAYER_WIN
    if dealer.score > player.score:
        return GameResult.DEALER_WIN
    return GameResult.PUSH


def calculate_payout(result: GameResult, bet: int) -> int:
    """Return the chips handed back for a result, stake included.

    Examples:
        >>> calculate_payout(GameResult.PLAYER_BLACKJACK, 100)
        250
        >>> calculate_payout(GameResult.PLAYER_BLACKJACK, 15)
        37
        >>> calculate_payout(GameResult.DEALER_BUST, 100)
        200
        >>> calculate_payout(GameResult.PUSH, 100)
        100
        >>> calculate_payout(GameResult.PLAYER_BUST, 100)
        0
    """
    if result == GameResult.PLAYER_BLACKJACK:
        return math.floor(bet * 2.5)
    if result in (GameResult.PLAYER_WIN, GameResult.DEALER_BUST):
        return bet * 2
    if result == GameResult.PUSH:
        return bet
    return 0


def result_outcome(result: GameResult) -> Outcome:
    """Collapse the seven results into win / loss / push."""
    if result in _WINNING_RESULTS:
        return Outcome.WIN
    if result in _LOSING_RESULTS:
        return Outcome.LOSS
    return Outcome.PUSH


def net_profit(result: GameResult, bet: int) -> int:
    return calculate_payout(result, bet) - bet


# ─── Betting limits ───────────────────────────────────────────────────────────

def max_bet(chips: int) -> int:
    """Largest allowed bet: half the stack, rounded down to the bet step,
    but never below the table minimum.

    Examples:
        >>> max_bet(10_000)
        5000
        >>> max_bet(250)
        100
    """
    capped = int(chips * MAX_BET_RATIO) // BET_STEP * BET_STEP
    return max(MIN_BET, capped)


def validate_bet(bet: int, chips: int) -> None:
    """Raise ValueError unless *bet* is a legal wager for a stack of *chips*."""
    if bet <= 0:
        raise ValueError(f"Bet must be positive; got {bet}.")
    if bet > chips:
        raise ValueError(f"Bet {bet} exceeds available chips {chips}.")
