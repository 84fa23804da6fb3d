"""
Shoe creation, shuffling and card drawing.

A shoe is an immutable tuple of Cards consumed from the front. Every
operation returns a new tuple; nothing is modified in place, so hand and
shoe snapshots can be shared freely between the game loop, the advisor and
the simulators.

Randomness always comes from a ``numpy.random.Generator``. Functions accept
``rng`` as a Generator, an integer seed, or None (fresh OS entropy).
"""

from __future__ import annotations

from typing import Iterable, Union

import numpy as np

from .cards import RANK_NAMES, SUIT_NAMES, Card

Shoe = tuple[Card, ...]
RngLike = Union[np.random.Generator, int, None]

DECK_SIZE: int = 52


def make_rng(rng: RngLike = None) -> np.random.Generator:
    """Return *rng* unchanged if it is a Generator, else seed a new one.

    Examples:
        >>> g = make_rng(7)
        >>> make_rng(g) is g
        True
    """
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def create_deck() -> Shoe:
    """Return an ordered, face-up 52-card deck (suit-major, rank-minor).

    Examples:
        >>> len(create_deck())
        52
        >>> str(create_deck()[0])
        '2H'
    """
    return tuple(Card(rank, suit) for suit in SUIT_NAMES for rank in RANK_NAMES)


def shuffle_cards(cards: Iterable[Card], rng: RngLike = None) -> Shoe:
    """Return the cards in a uniformly random order.

    ``Generator.permutation`` is an unbiased Fisher-Yates shuffle.
    """
    pool = tuple(cards)
    order = make_rng(rng).permutation(len(pool))
    return tuple(pool[i] for i in order)


def create_shuffled_shoe(rng: RngLike = None) -> Shoe:
    """Return a freshly shuffled 52-card shoe.

    Examples:
        >>> shoe = create_shuffled_shoe(42)
        >>> len(shoe), len({c.key for c in shoe})
        (52, 52)
    """
    return shuffle_cards(create_deck(), rng)


def draw_card(
    shoe: Shoe,
    face_up: bool = True,
    rng: RngLike = None,
) -> tuple[Card, Shoe]:
    """Draw the front card of the shoe.

    Drawing from an empty shoe is not an error: a fresh 52-card shoe is
    shuffled and the card is drawn from it, leaving 51.

    Args:
        shoe:    Current shoe.
        face_up: Whether the drawn card lies face up.
        rng:     Randomness for the implicit reshuffle.

    Returns:
        (card, remaining_shoe)

    Examples:
        >>> card, rest = draw_card(create_deck())
        >>> str(card), len(rest)
        ('2H', 51)
        >>> _, rest = draw_card(())
        >>> len(rest)
        51
    """
    if len(shoe) == 0:
        shoe = create_shuffled_shoe(rng)
    return shoe[0].flipped(face_up), shoe[1:]


def cards_remaining(shoe: Shoe) -> int:
    return len(shoe)


def remove_known_cards(cards: Iterable[Card], known: Iterable[Card]) -> Shoe:
    """Return *cards* without any card whose (rank, suit) appears in *known*.

    Face-up state is ignored when matching.
    """
    excluded = {c.key for c in known}
    return tuple(c for c in cards if c.key not in excluded)


def build_shoe_without(*hands: Iterable[Card], rng: RngLike = None) -> Shoe:
    """Return a shuffled shoe with every card of the given hands removed.

    Useful for building states where specific hands have been dealt.

    Examples:
        >>> from blackjack_lab.engine.cards import str_to_card
        >>> player = (str_to_card('AS'), str_to_card('KD'))
        >>> len(build_shoe_without(player, rng=0))
        50
    """
    known = [card for hand in hands for card in hand]
    return shuffle_cards(remove_known_cards(create_deck(), known), rng)
