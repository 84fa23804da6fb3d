"""
Shared pytest fixtures for the blackjack lab tests.

Provides convenience wrappers around str_to_card for building known hands
and stacked shoes.
"""

from __future__ import annotations

import pytest

from blackjack_lab.engine.cards import Card, str_to_card
from blackjack_lab.engine.deck import create_deck, remove_known_cards


def hand(*card_strs: str) -> tuple[Card, ...]:
    """Build a hand tuple from human-readable card strings.

    A trailing '*' marks a face-down card.

    Examples:
        >>> [str(c) for c in hand('AS', 'KD')]
        ['AS', 'KD']
        >>> hand('10H', '7C*')[1].face_up
        False
    """
    return tuple(
        str_to_card(s[:-1], face_up=False) if s.endswith('*') else str_to_card(s)
        for s in card_strs
    )


def stacked_shoe(*top: str) -> tuple[Card, ...]:
    """A full deck with the given cards moved to the front, in order."""
    front = hand(*top)
    return front + remove_known_cards(create_deck(), front)


@pytest.fixture
def fresh_deck() -> tuple[Card, ...]:
    """Return a full, ordered 52-card deck."""
    return create_deck()


@pytest.fixture
def h():
    """Expose the hand() helper as a fixture for convenience."""
    return hand
