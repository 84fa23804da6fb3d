"""
Table state and the live single-player hand flow.

Implements the hand flow the game loop drives one action at a time:
    BETTING → (deal) → PLAYER_TURN → (hit / double / stand) →
    DEALER_TURN → (play_dealer) → RESULT → (deal) → ...

Key rules modelled here:
    - Deal order is player, dealer (up), player, dealer (hole, face down).
    - The shoe is replaced by a fresh one before a deal once fewer than 20
      cards remain; the count history is cleared with it.
    - A player blackjack settles at once. If the dealer shows a 10-value
      card or an Ace the hole card is turned first and a dealer blackjack
      pushes.
    - Hitting to 21 moves straight to the dealer's turn; busting settles.
    - Doubling draws exactly one card and doubles the stake.

Every transition returns a new TableState; nothing is mutated in place.
``dealt_cards`` is the append-only history of cards seen face up, in the
order they became visible, for the counting model to read.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, auto

from .cards import Card, hand_to_str
from .deck import RngLike, Shoe, create_shuffled_shoe, draw_card, make_rng
from .hand import calculate_full_score, calculate_hand_state
from .rules import (
    INITIAL_CHIPS,
    MIN_BET,
    GameResult,
    Outcome,
    calculate_payout,
    can_double_down,
    dealer_should_hit,
    determine_result,
    max_bet,
    result_outcome,
    validate_bet,
)

RESHUFFLE_THRESHOLD: int = 20


# ─── Enumerations ─────────────────────────────────────────────────────────────

class Phase(Enum):
    BETTING = auto()
    PLAYER_TURN = auto()
    DEALER_TURN = auto()
    RESULT = auto()


class PlayerAction(Enum):
    HIT = 'hit'
    STAND = 'stand'
    DOUBLE = 'double'


# ─── State types ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GameStats:
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    blackjacks: int = 0
    hands_played: int = 0

    def record(self, result: GameResult) -> GameStats:
        """Return the stats with one more settled hand counted."""
        outcome = result_outcome(result)
        return GameStats(
            wins=self.wins + (outcome == Outcome.WIN),
            losses=self.losses + (outcome == Outcome.LOSS),
            pushes=self.pushes + (outcome == Outcome.PUSH),
            blackjacks=self.blackjacks + (result == GameResult.PLAYER_BLACKJACK),
            hands_played=self.hands_played + 1,
        )


@dataclass(frozen=True)
class TableState:
    """Immutable snapshot of the table between two player actions."""

    phase: Phase
    shoe: Shoe
    player_hand: tuple[Card, ...] = ()
    dealer_hand: tuple[Card, ...] = ()
    chips: int = INITIAL_CHIPS
    bet: int = MIN_BET
    stake: int = 0
    result: GameResult | None = None
    stats: GameStats = field(default_factory=GameStats)
    dealt_cards: tuple[Card, ...] = ()

    def __str__(self) -> str:
        return (
            f"{self.phase.name} | Player: {hand_to_str(self.player_hand)} | "
            f"Dealer: {hand_to_str(self.dealer_hand)} | "
            f"Chips: {self.chips:,} | Stake: {self.stake:,}"
            + (f" | {self.result.value}" if self.result is not None else "")
        )


def _require_phase(state: TableState, phase: Phase, action: str) -> None:
    if state.phase != phase:
        raise ValueError(f"Cannot {action} during {state.phase.name}; expected {phase.name}.")


# ─── Transitions ──────────────────────────────────────────────────────────────

def new_table(
    chips: int = INITIAL_CHIPS,
    bet: int = MIN_BET,
    rng: RngLike = None,
) -> TableState:
    """Return a fresh table in the betting phase with a shuffled shoe."""
    return TableState(phase=Phase.BETTING, shoe=create_shuffled_shoe(rng), chips=chips, bet=bet)


def place_bet(state: TableState, bet: int) -> TableState:
    """Change the wager for the next hand (between hands only)."""
    if state.phase not in (Phase.BETTING, Phase.RESULT):
        raise ValueError(f"Cannot change the bet during {state.phase.name}.")
    validate_bet(bet, state.chips)
    if bet > max_bet(state.chips):
        raise ValueError(f"Bet {bet} exceeds the table maximum {max_bet(state.chips)}.")
    return replace(state, bet=bet)


def deal(state: TableState, rng: RngLike = None) -> TableState:
    """Deal a new hand and settle it at once on a player blackjack."""
    if state.phase not in (Phase.BETTING, Phase.RESULT):
        raise ValueError(f"Cannot deal during {state.phase.name}.")
    validate_bet(state.bet, state.chips)
    rng = make_rng(rng)

    shoe = state.shoe
    dealt = state.dealt_cards
    if len(shoe) < RESHUFFLE_THRESHOLD:
        shoe = create_shuffled_shoe(rng)
        dealt = ()

    p1, shoe = draw_card(shoe, True, rng)
    d1, shoe = draw_card(shoe, True, rng)
    p2, shoe = draw_card(shoe, True, rng)
    d2, shoe = draw_card(shoe, False, rng)

    player_hand = (p1, p2)
    dealer_hand = (d1, d2)
    dealt = dealt + (p1, d1, p2)
    chips = state.chips - state.bet

    dealt_state = replace(
        state,
        phase=Phase.PLAYER_TURN,
        shoe=shoe,
        player_hand=player_hand,
        dealer_hand=dealer_hand,
        chips=chips,
        stake=state.bet,
        result=None,
        dealt_cards=dealt,
    )

    if not calculate_full_score(player_hand).is_blackjack:
        return dealt_state

    # Player blackjack: the hole card only matters when the upcard could
    # complete a dealer blackjack, but it is turned over either way.
    upcard = calculate_hand_state(dealer_hand).score
    revealed = _reveal_dealer(dealt_state)
    if upcard in (10, 11):
        result = determine_result(player_hand, revealed.dealer_hand)
    else:
        result = GameResult.PLAYER_BLACKJACK
    return _settle(revealed, result)


def hit(state: TableState, rng: RngLike = None) -> TableState:
    """Draw one card for the player."""
    _require_phase(state, Phase.PLAYER_TURN, "hit")
    card, shoe = draw_card(state.shoe, True, rng)
    player_hand = state.player_hand + (card,)
    next_state = replace(
        state,
        shoe=shoe,
        player_hand=player_hand,
        dealt_cards=state.dealt_cards + (card,),
    )

    player = calculate_full_score(player_hand)
    if player.is_bust:
        return _settle(_reveal_dealer(next_state), GameResult.PLAYER_BUST)
    if player.score == 21:
        return replace(next_state, phase=Phase.DEALER_TURN)
    return next_state


def stand(state: TableState) -> TableState:
    _require_phase(state, Phase.PLAYER_TURN, "stand")
    return replace(state, phase=Phase.DEALER_TURN)


def double_down(state: TableState, rng: RngLike = None) -> TableState:
    """Double the stake, draw exactly one card, and end the player's turn."""
    _require_phase(state, Phase.PLAYER_TURN, "double down")
    if not can_double_down(state.player_hand, state.chips, state.stake):
        raise ValueError("Doubling requires a two-card hand and chips to match the bet.")

    card, shoe = draw_card(state.shoe, True, rng)
    player_hand = state.player_hand + (card,)
    next_state = replace(
        state,
        shoe=shoe,
        player_hand=player_hand,
        chips=state.chips - state.stake,
        stake=state.stake * 2,
        dealt_cards=state.dealt_cards + (card,),
    )

    if calculate_full_score(player_hand).is_bust:
        return _settle(_reveal_dealer(next_state), GameResult.PLAYER_BUST)
    return replace(next_state, phase=Phase.DEALER_TURN)


def play_dealer(state: TableState, rng: RngLike = None) -> TableState:
    """Turn the hole card, draw to 17, and settle the hand."""
    _require_phase(state, Phase.DEALER_TURN, "play the dealer")
    state = _reveal_dealer(state)

    shoe = state.shoe
    dealer_hand = state.dealer_hand
    dealt = state.dealt_cards
    if not calculate_full_score(dealer_hand).is_blackjack:
        while dealer_should_hit(dealer_hand):
            card, shoe = draw_card(shoe, True, rng)
            dealer_hand = dealer_hand + (card,)
            dealt = dealt + (card,)

    state = replace(state, shoe=shoe, dealer_hand=dealer_hand, dealt_cards=dealt)
    return _settle(state, determine_result(state.player_hand, dealer_hand))


def player_action(state: TableState, action: PlayerAction, rng: RngLike = None) -> TableState:
    """Apply a PlayerAction; convenient for AI-driven seats."""
    if action == PlayerAction.HIT:
        return hit(state, rng)
    if action == PlayerAction.DOUBLE:
        return double_down(state, rng)
    return stand(state)


# ─── Internal helpers ─────────────────────────────────────────────────────────

def _reveal_dealer(state: TableState) -> TableState:
    """Turn every face-down dealer card over and record it as seen."""
    hidden = tuple(c.flipped(True) for c in state.dealer_hand if not c.face_up)
    if not hidden:
        return state
    return replace(
        state,
        dealer_hand=tuple(c.flipped(True) for c in state.dealer_hand),
        dealt_cards=state.dealt_cards + hidden,
    )


def _settle(state: TableState, result: GameResult) -> TableState:
    payout = calculate_payout(result, state.stake)
    return replace(
        state,
        phase=Phase.RESULT,
        result=result,
        chips=state.chips + payout,
        stats=state.stats.record(result),
    )
