"""
Card constants, the immutable Card value, and human-readable I/O helpers.

A card is a frozen (rank, suit, face_up) triple. ``face_up`` only controls
visibility to the scoring functions that respect it; "turning a card over"
always produces a new Card via ``Card.flipped``.

String form (used at I/O boundaries and in tests):
    <rank><suit letter>   e.g. 'AS', '10H', '7C', 'KD'
"""

from __future__ import annotations

from dataclasses import dataclass, replace

RANK_NAMES: list[str] = ['2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K', 'A']
SUIT_NAMES: list[str] = ['hearts', 'diamonds', 'clubs', 'spades']

# Suit letter used in the compact string form
SUIT_CODES: dict[str, str] = {'H': 'hearts', 'D': 'diamonds', 'C': 'clubs', 'S': 'spades'}
SUIT_LETTERS: dict[str, str] = {name: code for code, name in SUIT_CODES.items()}

SUIT_SYMBOLS: dict[str, str] = {
    'hearts': '♥',
    'diamonds': '♦',
    'clubs': '♣',
    'spades': '♠',
}

# Ace is counted 11 here; scoring demotes it to 1 when the hand would bust.
RANK_VALUES: dict[str, int] = {
    '2': 2, '3': 3, '4': 4, '5': 5, '6': 6, '7': 7, '8': 8, '9': 9,
    '10': 10, 'J': 10, 'Q': 10, 'K': 10, 'A': 11,
}

RANK_ACE: str = 'A'
TEN_VALUE_RANKS: frozenset[str] = frozenset({'10', 'J', 'Q', 'K'})


@dataclass(frozen=True)
class Card:
    """A single playing card.

    Examples:
        >>> Card('A', 'spades').value
        11
        >>> str(Card('10', 'hearts'))
        '10H'
    """

    rank: str
    suit: str
    face_up: bool = True

    def __post_init__(self) -> None:
        if self.rank not in RANK_VALUES:
            raise ValueError(f"Unknown rank {self.rank!r}.")
        if self.suit not in SUIT_LETTERS:
            raise ValueError(f"Unknown suit {self.suit!r}.")

    @property
    def value(self) -> int:
        return RANK_VALUES[self.rank]

    @property
    def is_ace(self) -> bool:
        return self.rank == RANK_ACE

    @property
    def key(self) -> tuple[str, str]:
        """Identity of the physical card, ignoring which way up it lies."""
        return (self.rank, self.suit)

    def flipped(self, face_up: bool = True) -> Card:
        """Return a copy of this card lying face up (or down)."""
        if self.face_up == face_up:
            return self
        return replace(self, face_up=face_up)

    def __str__(self) -> str:
        return self.rank + SUIT_LETTERS[self.suit]


def card_value(rank: str) -> int:
    """Return the point value of a rank, counting an Ace as 11.

    Examples:
        >>> card_value('K')
        10
        >>> card_value('A')
        11
    """
    return RANK_VALUES[rank]


def card_to_str(card: Card) -> str:
    """Convert a card to its compact string form.

    Examples:
        >>> card_to_str(Card('A', 'spades'))
        'AS'
    """
    return str(card)


def str_to_card(s: str, face_up: bool = True) -> Card:
    """Parse a compact card string.

    The format is <rank><suit> where suit is the last character
    ('C', 'D', 'H' or 'S') and rank is '2'-'10', 'J', 'Q', 'K' or 'A'.

    Raises:
        ValueError: If either part is not recognised.

    Examples:
        >>> str_to_card('10C')
        Card(rank='10', suit='clubs', face_up=True)
        >>> str_to_card('KD', face_up=False).face_up
        False
    """
    suit_char = s[-1:].upper()
    rank_str = s[:-1].upper()
    if suit_char not in SUIT_CODES:
        raise ValueError(f"Cannot parse card {s!r}: unknown suit {suit_char!r}.")
    if rank_str not in RANK_VALUES:
        raise ValueError(f"Cannot parse card {s!r}: unknown rank {rank_str!r}.")
    return Card(rank_str, SUIT_CODES[suit_char], face_up)


def hand_to_str(cards: tuple[Card, ...]) -> str:
    """Render a hand, showing face-down cards as '??'.

    Examples:
        >>> hand_to_str((str_to_card('AS'), str_to_card('KD', face_up=False)))
        'AS ??'
    """
    return ' '.join(str(c) if c.face_up else '??' for c in cards)
