"""
Hi-Lo card counting.

    2-6      → +1
    7-9      →  0
    10-A     → -1

The running count is the sum over every card the caller has seen. The
caller owns the dealt-card history; these functions only read it.

True count = running count / estimated decks remaining, where decks
remaining is floored at half a deck to avoid blow-up near exhaustion.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from .cards import Card
from .deck import DECK_SIZE

HI_LO_VALUES: dict[str, int] = {
    '2': 1, '3': 1, '4': 1, '5': 1, '6': 1,
    '7': 0, '8': 0, '9': 0,
    '10': -1, 'J': -1, 'Q': -1, 'K': -1, 'A': -1,
}

MIN_REMAINING_DECKS: float = 0.5
ADVANTAGE_THRESHOLD: float = 2.0


class DeckAdvantage(Enum):
    PLAYER = 'player'
    NEUTRAL = 'neutral'
    DEALER = 'dealer'


@dataclass(frozen=True)
class CountSnapshot:
    running_count: int
    true_count: float
    remaining_decks: float
    advantage: DeckAdvantage


def hi_lo_value(rank: str) -> int:
    return HI_LO_VALUES[rank]


def running_count(dealt_cards: Sequence[Card]) -> int:
    """Sum of Hi-Lo values over the seen cards.

    Examples:
        >>> from blackjack_lab.engine.cards import str_to_card
        >>> running_count([str_to_card(s) for s in ('2S', '5H', 'KD', '8C')])
        1
    """
    return sum(HI_LO_VALUES[card.rank] for card in dealt_cards)


def remaining_decks(shoe_size: int) -> float:
    """Estimated decks left in a shoe of *shoe_size* cards (floored at 0.5).

    Examples:
        >>> remaining_decks(52)
        1.0
        >>> remaining_decks(10)
        0.5
    """
    return max(shoe_size / DECK_SIZE, MIN_REMAINING_DECKS)


def true_count(running: int, decks: float) -> float:
    """Running count per deck, rounded half-up to one decimal.

    Examples:
        >>> true_count(3, 1.0)
        3.0
        >>> true_count(1, 0.75)
        1.3
        >>> true_count(-1, 0.8)
        -1.2
        >>> true_count(5, 0)
        0.0
    """
    if decks <= 0:
        return 0.0
    return math.floor(running / decks * 10 + 0.5) / 10


def deck_advantage(tc: float) -> DeckAdvantage:
    if tc >= ADVANTAGE_THRESHOLD:
        return DeckAdvantage.PLAYER
    if tc <= -ADVANTAGE_THRESHOLD:
        return DeckAdvantage.DEALER
    return DeckAdvantage.NEUTRAL


def count_snapshot(dealt_cards: Sequence[Card], shoe_size: int) -> CountSnapshot:
    """Running count, true count and advantage in one call."""
    rc = running_count(dealt_cards)
    decks = remaining_decks(shoe_size)
    tc = true_count(rc, decks)
    return CountSnapshot(
        running_count=rc,
        true_count=tc,
        remaining_decks=decks,
        advantage=deck_advantage(tc),
    )
