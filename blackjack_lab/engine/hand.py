"""
Hand evaluation: best total, soft/bust/blackjack flags.

Every Ace starts at 11. While the total exceeds 21 and an Ace is still
counted as 11, that Ace is demoted to 1 (total -= 10). A hand is soft while
at least one Ace is still counted as 11.

Two entry points share the arithmetic:
    calculate_hand_state  : only face-up cards (what the table can see)
    calculate_full_score  : every card, as if all were turned over
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .cards import Card


@dataclass(frozen=True)
class HandState:
    """Derived view of a hand. Recomputed on demand, never stored."""

    score: int
    is_soft: bool
    is_bust: bool
    is_blackjack: bool
    card_count: int


def compute_score(cards: Sequence[Card]) -> tuple[int, bool]:
    """Return (best total, is_soft) for the given cards, ignoring face state.

    Examples:
        >>> from blackjack_lab.engine.cards import str_to_card
        >>> compute_score([str_to_card('AS'), str_to_card('6H')])
        (17, True)
        >>> compute_score([str_to_card(s) for s in ('AS', 'AH', 'AD')])
        (13, True)
        >>> compute_score([str_to_card(s) for s in ('KS', 'QH', '5D')])
        (25, False)
    """
    total = 0
    aces = 0
    for card in cards:
        total += card.value
        if card.is_ace:
            aces += 1

    while total > 21 and aces > 0:
        total -= 10
        aces -= 1

    return total, aces > 0


def _state_of(cards: Sequence[Card]) -> HandState:
    score, soft = compute_score(cards)
    return HandState(
        score=score,
        is_soft=soft,
        is_bust=score > 21,
        is_blackjack=len(cards) == 2 and score == 21,
        card_count=len(cards),
    )


def calculate_hand_state(cards: Sequence[Card]) -> HandState:
    """Score only the face-up cards (e.g. the dealer's exposed upcard)."""
    return _state_of([c for c in cards if c.face_up])


def calculate_full_score(cards: Sequence[Card]) -> HandState:
    """Score every card as if all were face up."""
    return _state_of(list(cards))


def score_hand(cards: Sequence[Card], visible_only: bool = False) -> HandState:
    """Score a hand; ``visible_only`` restricts scoring to face-up cards.

    Examples:
        >>> from blackjack_lab.engine.cards import str_to_card
        >>> dealer = (str_to_card('10S'), str_to_card('AD', face_up=False))
        >>> score_hand(dealer, visible_only=True).score
        10
        >>> score_hand(dealer).is_blackjack
        True
    """
    if visible_only:
        return calculate_hand_state(cards)
    return calculate_full_score(cards)


def is_bust(total: int) -> bool:
    return total > 21
