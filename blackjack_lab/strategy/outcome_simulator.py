"""
Monte Carlo outcome simulator for the three player actions.

Estimates win / lose / push / bust frequencies for HIT, STAND and DOUBLE
from the current player hand, the dealer's visible cards and the unseen
cards, by playing many independent trial hands.

Per trial:
    1. Shuffle the unseen pool: the remaining shoe plus any face-down dealer
       card, minus every card the player can see. The pool is taken from the
       live shoe, not rebuilt from a full deck. With fewer than 10 unseen
       cards a fresh 52-card deck filtered against the known cards is used
       instead.
    2. HIT / DOUBLE draw one player card; a bust is recorded as bust + loss
       and the trial ends.
    3. The dealer starts from its face-up cards only (the hole card is drawn
       again from the trial shoe, so it never leaks) and draws while
       ``dealer_should_hit``.
    4. Totals are compared: dealer bust or higher player total wins.

Rates are ``count / trials``. Bust is a subset of lose. HIT and DOUBLE share
mechanics (one card, then stand); the advisor weights DOUBLE by the doubled
stake. Trials are independent, so counting order does not matter.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from blackjack_lab.engine.cards import Card
from blackjack_lab.engine.deck import (
    RngLike,
    Shoe,
    create_shuffled_shoe,
    draw_card,
    make_rng,
    remove_known_cards,
    shuffle_cards,
)
from blackjack_lab.engine.game_state import PlayerAction
from blackjack_lab.engine.hand import HandState, calculate_full_score
from blackjack_lab.engine.rules import dealer_should_hit

DEFAULT_TRIALS: int = 3000
MIN_TRIAL_SHOE: int = 10


# ─── Result type ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SimulationResult:
    """Outcome frequencies for one action over ``trials`` trial hands.

    Attributes:
        action:    The simulated action.
        win_rate:  Fraction of trials won (dealer bust or higher total).
        lose_rate: Fraction of trials lost, player busts included.
        push_rate: Fraction of trials tied.
        bust_rate: Fraction of trials where the player busted.
        trials:    Number of trials behind the rates (0 = degenerate run).
    """

    action: PlayerAction
    win_rate: float
    lose_rate: float
    push_rate: float
    bust_rate: float
    trials: int

    @property
    def ev(self) -> float:
        """Expected net result per unit staked, ignoring the 3:2 bonus."""
        return self.win_rate - self.lose_rate

    @property
    def win_rate_ci95(self) -> float:
        """Half-width of the 95% normal-approximation interval on win_rate."""
        if self.trials <= 0:
            return 0.0
        p = self.win_rate
        return 1.96 * math.sqrt(p * (1.0 - p) / self.trials)

    def __str__(self) -> str:
        return (
            f"{self.action.value.upper():<6} | "
            f"win {self.win_rate:6.1%} | lose {self.lose_rate:6.1%} | "
            f"push {self.push_rate:6.1%} | bust {self.bust_rate:6.1%} | "
            f"EV {self.ev:+.3f} | trials {self.trials:,}"
        )


# ─── Trial shoe construction ──────────────────────────────────────────────────


def known_cards(
    player_hand: Sequence[Card],
    dealer_hand: Sequence[Card],
) -> tuple[Card, ...]:
    """Cards the player can see: their own hand and the dealer's face-up cards."""
    return tuple(player_hand) + tuple(c for c in dealer_hand if c.face_up)


def unseen_pool(
    player_hand: Sequence[Card],
    dealer_hand: Sequence[Card],
    shoe: Shoe,
) -> Shoe:
    """Remaining shoe plus the dealer's hidden cards, minus every known card."""
    hidden = tuple(c.flipped(True) for c in dealer_hand if not c.face_up)
    return remove_known_cards(tuple(shoe) + hidden, known_cards(player_hand, dealer_hand))


def build_trial_shoe(pool: Shoe, known: Sequence[Card], rng: RngLike = None) -> Shoe:
    """Shuffle the unseen pool, or fall back to a filtered fresh deck when it
    holds fewer than MIN_TRIAL_SHOE cards."""
    if len(pool) < MIN_TRIAL_SHOE:
        return remove_known_cards(create_shuffled_shoe(rng), known)
    return shuffle_cards(pool, rng)


def play_dealer_out(
    dealer_cards: Sequence[Card],
    shoe: Shoe,
    rng: RngLike = None,
) -> tuple[HandState, Shoe]:
    """Draw for the dealer until the hit policy says stand.

    Running out of cards reshuffles a fresh deck (via ``draw_card``).
    """
    hand = [c.flipped(True) for c in dealer_cards]
    while dealer_should_hit(hand):
        card, shoe = draw_card(shoe, True, rng)
        hand.append(card)
    return calculate_full_score(hand), shoe


# ─── Core trial loop ──────────────────────────────────────────────────────────


def _run_trials(
    action: PlayerAction,
    player_hand: Sequence[Card],
    dealer_hand: Sequence[Card],
    shoe: Shoe,
    trials: int,
    rng: RngLike,
    draw_player_card: bool,
) -> SimulationResult:
    if trials <= 0:
        return SimulationResult(action, 0.0, 0.0, 0.0, 0.0, 0)

    rng = make_rng(rng)
    player_hand = tuple(player_hand)
    known = known_cards(player_hand, dealer_hand)
    pool = unseen_pool(player_hand, dealer_hand, shoe)
    dealer_visible = tuple(c for c in dealer_hand if c.face_up)
    current = calculate_full_score(player_hand)

    wins = losses = pushes = busts = 0
    for _ in range(trials):
        trial_shoe = build_trial_shoe(pool, known, rng)

        player = current
        if draw_player_card:
            card, trial_shoe = draw_card(trial_shoe, True, rng)
            player = calculate_full_score(player_hand + (card,))
        if player.is_bust:
            if draw_player_card:
                busts += 1
            losses += 1
            continue

        dealer, _ = play_dealer_out(dealer_visible, trial_shoe, rng)
        if dealer.is_bust or player.score > dealer.score:
            wins += 1
        elif player.score < dealer.score:
            losses += 1
        else:
            pushes += 1

    return SimulationResult(
        action=action,
        win_rate=wins / trials,
        lose_rate=losses / trials,
        push_rate=pushes / trials,
        bust_rate=busts / trials,
        trials=trials,
    )


# ─── Public simulators ────────────────────────────────────────────────────────


def simulate_hit(
    player_hand: Sequence[Card],
    dealer_hand: Sequence[Card],
    shoe: Shoe,
    trials: int = DEFAULT_TRIALS,
    rng: RngLike = None,
) -> SimulationResult:
    """Take one card, then let the dealer play out."""
    return _run_trials(PlayerAction.HIT, player_hand, dealer_hand, shoe, trials, rng, True)


def simulate_stand(
    player_hand: Sequence[Card],
    dealer_hand: Sequence[Card],
    shoe: Shoe,
    trials: int = DEFAULT_TRIALS,
    rng: RngLike = None,
) -> SimulationResult:
    """Stand on the current total and let the dealer play out."""
    return _run_trials(PlayerAction.STAND, player_hand, dealer_hand, shoe, trials, rng, False)


def simulate_double(
    player_hand: Sequence[Card],
    dealer_hand: Sequence[Card],
    shoe: Shoe,
    trials: int = DEFAULT_TRIALS,
    rng: RngLike = None,
) -> SimulationResult:
    """Double down: exactly one card, then stand.

    Legality (two cards, enough chips) is the caller's check.
    """
    return _run_trials(PlayerAction.DOUBLE, player_hand, dealer_hand, shoe, trials, rng, True)


# ─── __main__ ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    from blackjack_lab.engine.cards import str_to_card
    from blackjack_lab.engine.deck import build_shoe_without

    player = (str_to_card('10S'), str_to_card('6H'))
    dealer = (str_to_card('10D'), str_to_card('7C', face_up=False))
    shoe = build_shoe_without(player, dealer, rng=0)

    print("Player 10-6 vs dealer 10 — 3,000 trials per action\n")
    for fn in (simulate_hit, simulate_stand, simulate_double):
        print(fn(player, dealer, shoe, rng=42))
