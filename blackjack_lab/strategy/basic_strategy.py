"""
Static basic-strategy table.

Keyed on (player total, soft/hard, dealer upcard value, double allowed).
Dealer upcard values run 2–11 with the Ace counted as 11, which is what
scoring the dealer's face-up cards yields.

Hard totals:
    17+     stand
    13–16   stand vs 2–6, hit vs 7+
    12      stand vs 4–6, else hit
    11      double (hit if doubling is not allowed)
    10      double vs 2–9, else hit
    9       double vs 3–6, else hit
    ≤8      hit

Soft totals:
    19+     stand
    18      hit vs 9+, double vs 3–6, else stand
    17      double vs 3–6, else hit
    15–16   double vs 4–6, else hit
    13–14   double vs 5–6, else hit
    other   hit

Wherever the table says double but doubling is not allowed, the fallback
listed after "else" applies (soft 18 stands).
"""

from __future__ import annotations

from blackjack_lab.engine.game_state import PlayerAction

DEALER_UPCARDS: list[int] = [2, 3, 4, 5, 6, 7, 8, 9, 10, 11]
HARD_TOTALS: list[int] = list(range(5, 22))
SOFT_TOTALS: list[int] = list(range(13, 22))


def basic_strategy_action(
    player_score: int,
    is_soft: bool,
    dealer_upcard: int,
    can_double: bool,
) -> PlayerAction:
    """Return the basic-strategy action for one hand state.

    Examples:
        >>> basic_strategy_action(16, False, 10, True)
        <PlayerAction.HIT: 'hit'>
        >>> basic_strategy_action(11, False, 6, True)
        <PlayerAction.DOUBLE: 'double'>
        >>> basic_strategy_action(18, True, 5, False)
        <PlayerAction.STAND: 'stand'>
    """
    if is_soft:
        return _soft_action(player_score, dealer_upcard, can_double)
    return _hard_action(player_score, dealer_upcard, can_double)


def _soft_action(score: int, up: int, can_double: bool) -> PlayerAction:
    if score >= 19:
        return PlayerAction.STAND
    if score == 18:
        if up >= 9:
            return PlayerAction.HIT
        if 3 <= up <= 6 and can_double:
            return PlayerAction.DOUBLE
        return PlayerAction.STAND
    if score == 17:
        return _double_or_hit(3 <= up <= 6 and can_double)
    if 15 <= score <= 16:
        return _double_or_hit(4 <= up <= 6 and can_double)
    if 13 <= score <= 14:
        return _double_or_hit(5 <= up <= 6 and can_double)
    return PlayerAction.HIT


def _hard_action(score: int, up: int, can_double: bool) -> PlayerAction:
    if score >= 17:
        return PlayerAction.STAND
    if 13 <= score <= 16:
        return PlayerAction.HIT if up >= 7 else PlayerAction.STAND
    if score == 12:
        return PlayerAction.STAND if 4 <= up <= 6 else PlayerAction.HIT
    if score == 11:
        return _double_or_hit(can_double)
    if score == 10:
        return _double_or_hit(up <= 9 and can_double)
    if score == 9:
        return _double_or_hit(3 <= up <= 6 and can_double)
    return PlayerAction.HIT


def _double_or_hit(double: bool) -> PlayerAction:
    return PlayerAction.DOUBLE if double else PlayerAction.HIT


def build_strategy_table(
    can_double: bool = True,
) -> dict[tuple[int, bool, int], PlayerAction]:
    """Return the full chart keyed on (total, is_soft, dealer_upcard).

    Covers hard totals 5–21 and soft totals 13–21 against upcards 2–A.
    """
    table: dict[tuple[int, bool, int], PlayerAction] = {}
    for up in DEALER_UPCARDS:
        for total in HARD_TOTALS:
            table[(total, False, up)] = basic_strategy_action(total, False, up, can_double)
        for total in SOFT_TOTALS:
            table[(total, True, up)] = basic_strategy_action(total, True, up, can_double)
    return table
