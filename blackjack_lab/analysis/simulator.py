"""
Batch simulator for AI-vs-dealer strategy comparison.

Plays many complete hands for one AI policy against a persistent shoe and
aggregates win rate, EV and the bankroll path into a LabStats record.

Hand flow (mirrors the live table):
    - Shoe replaced, and the count history cleared, when < 20 cards remain.
    - Deal player, dealer (up), player, dealer (hole, face down).
    - Player blackjack settles at once: push against a dealer blackjack,
      otherwise 3:2.
    - Player turn driven by the AI policy; doubling is only taken as the
      first decision (a later DOUBLE plays as a hit).
    - Dealer turns the hole card and draws below 17.
    - Standard payout on the hand's wager.

Bankroll bookkeeping:
    bet = min(base_bet, chips); the run stops once the bet would be 0.
    A doubled hand deducts and records the full doubled wager, so
    final_chips == starting_chips - total_bet + total_payout always holds.

SimulationLab runs several policies as an explicit work queue
(CONFIG → RUNNING → DONE). Each ``step()`` runs exactly one policy batch;
a cancellation token is checked between batches, never inside one.

Usage:
    PYTHONPATH=. python -m blackjack_lab.analysis.simulator [hands]
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto

import numpy as np

from blackjack_lab.engine.cards import Card
from blackjack_lab.engine.deck import RngLike, Shoe, create_shuffled_shoe, draw_card, make_rng
from blackjack_lab.engine.game_state import RESHUFFLE_THRESHOLD, PlayerAction
from blackjack_lab.engine.hand import calculate_full_score
from blackjack_lab.engine.rules import (
    GameResult,
    Outcome,
    calculate_payout,
    dealer_should_hit,
    determine_result,
    result_outcome,
)
from blackjack_lab.strategy.ai_player import (
    DIFFICULTY_LABELS,
    AiDifficulty,
    get_ai_action,
    parse_difficulty,
)

DEFAULT_BASE_BET: int = 100
DEFAULT_STARTING_CHIPS: int = 10_000
DEFAULT_LAB_HANDS: int = 1000

# ─── Result types ─────────────────────────────────────────────────────────────


@dataclass
class ShoeState:
    """The lab's persistent shoe and the face-up cards seen from it.

    Owned by the batch loop. The AI policy only ever receives a tuple
    snapshot of ``dealt_cards``.
    """

    shoe: Shoe
    dealt_cards: list[Card] = field(default_factory=list)

    def reshuffle_if_low(self, rng: np.random.Generator) -> None:
        if len(self.shoe) < RESHUFFLE_THRESHOLD:
            self.shoe = create_shuffled_shoe(rng)
            self.dealt_cards = []

    def draw(self, rng: np.random.Generator, face_up: bool = True) -> Card:
        card, self.shoe = draw_card(self.shoe, face_up, rng)
        if face_up:
            self.dealt_cards.append(card)
        return card

    def reveal(self, card: Card) -> Card:
        """Turn a face-down card over and record it as seen."""
        shown = card.flipped(True)
        self.dealt_cards.append(shown)
        return shown


@dataclass(frozen=True)
class LabHandResult:
    """One simulated hand. ``wager`` is the final stake (doubled if doubled)."""

    result: GameResult
    is_blackjack: bool
    player_score: int
    dealer_score: int
    wager: int
    payout: int

    @property
    def outcome(self) -> Outcome:
        return result_outcome(self.result)

    @property
    def net(self) -> int:
        return self.payout - self.wager


@dataclass
class LabStats:
    """Aggregate statistics from one policy's batch run.

    Attributes:
        difficulty:     Policy tier that played.
        label:          Human-readable policy name.
        hands_played:   Hands completed (≤ requested; fewer if broke).
        wins:           Hands won, blackjacks included.
        losses:         Hands lost.
        pushes:         Hands tied.
        blackjacks:     Winning naturals.
        total_bet:      Total chips wagered (doubles counted in full).
        total_payout:   Total chips handed back, stakes included.
        win_rate:       wins / hands_played.
        ev:             (total_payout - total_bet) / total_bet * 100.
        peak_chips:     Highest bankroll reached (≥ starting_chips).
        final_chips:    Bankroll after the last hand.
        starting_chips: Bankroll before the first hand.
        chips_history:  Bankroll after each hand, starting value first
                        (int64, length hands_played + 1), or None unless
                        requested with return_history=True.
        net_results:    Per-hand net result in base-bet units (float64,
                        length hands_played), or None unless requested.
    """

    difficulty: AiDifficulty
    label: str
    hands_played: int
    wins: int
    losses: int
    pushes: int
    blackjacks: int
    total_bet: int
    total_payout: int
    win_rate: float
    ev: float
    peak_chips: int
    final_chips: int
    starting_chips: int = DEFAULT_STARTING_CHIPS
    chips_history: np.ndarray | None = None
    net_results: np.ndarray | None = None

    def __str__(self) -> str:
        sign = "+" if self.ev >= 0 else ""
        return (
            f"{self.label:<14} | Hands: {self.hands_played:,} | "
            f"Win rate: {self.win_rate:.1%} | EV: {sign}{self.ev:.2f}% | "
            f"Peak: {self.peak_chips:,} | Final: {self.final_chips:,}"
        )


# ─── Single hand ──────────────────────────────────────────────────────────────


def simulate_one_hand(
    difficulty: AiDifficulty | str,
    shoe_state: ShoeState,
    bet: int,
    chips: int,
    rng: RngLike = None,
) -> LabHandResult:
    """Play one complete hand for an AI player.

    Args:
        difficulty: AI policy tier.
        shoe_state: Persistent shoe; advanced in place.
        bet:        Initial wager (already taken from the bankroll).
        chips:      Chips left behind the wager (limits doubling).
        rng:        Generator, seed, or None.

    Returns:
        LabHandResult for the hand.
    """
    difficulty = parse_difficulty(difficulty)
    rng = make_rng(rng)
    shoe_state.reshuffle_if_low(rng)

    player: list[Card] = [shoe_state.draw(rng)]
    dealer: list[Card] = [shoe_state.draw(rng)]
    player.append(shoe_state.draw(rng))
    dealer.append(shoe_state.draw(rng, face_up=False))

    # ── Immediate blackjack ───────────────────────────────────────────────────
    if calculate_full_score(player).is_blackjack:
        dealer[1] = shoe_state.reveal(dealer[1])
        dealer_state = calculate_full_score(dealer)
        result = GameResult.PUSH if dealer_state.is_blackjack else GameResult.PLAYER_BLACKJACK
        return LabHandResult(
            result=result,
            is_blackjack=True,
            player_score=21,
            dealer_score=dealer_state.score,
            wager=bet,
            payout=calculate_payout(result, bet),
        )

    # ── Player turn ───────────────────────────────────────────────────────────
    wager = bet
    first_action = True
    while True:
        player_state = calculate_full_score(player)
        if player_state.is_bust or player_state.score == 21:
            break

        action = get_ai_action(
            difficulty,
            tuple(player),
            tuple(dealer),
            tuple(shoe_state.dealt_cards),
            len(shoe_state.shoe),
            chips,
            wager,
            rng,
        )
        if action == PlayerAction.STAND:
            break

        player.append(shoe_state.draw(rng))
        if action == PlayerAction.DOUBLE and first_action:
            wager = bet * 2
            break
        first_action = False

    # ── Dealer turn ───────────────────────────────────────────────────────────
    dealer[1] = shoe_state.reveal(dealer[1])
    player_state = calculate_full_score(player)
    if not player_state.is_bust:
        while dealer_should_hit(dealer):
            dealer.append(shoe_state.draw(rng))

    result = determine_result(player, dealer)
    return LabHandResult(
        result=result,
        is_blackjack=False,
        player_score=player_state.score,
        dealer_score=calculate_full_score(dealer).score,
        wager=wager,
        payout=calculate_payout(result, wager),
    )


# ─── Batch run ────────────────────────────────────────────────────────────────


def run_batch_simulation(
    difficulty: AiDifficulty | str,
    total_hands: int,
    base_bet: int = DEFAULT_BASE_BET,
    starting_chips: int = DEFAULT_STARTING_CHIPS,
    *,
    seed: RngLike = None,
    return_history: bool = False,
) -> LabStats:
    """Play up to *total_hands* hands for one policy and aggregate the results.

    Args:
        difficulty:     AI policy tier (enum or 'easy' / 'pro' / 'casino').
        total_hands:    Hands to attempt.
        base_bet:       Flat bet per hand, capped at the remaining bankroll.
        starting_chips: Opening bankroll.
        seed:           Generator, seed, or None for a non-deterministic run.
        return_history: If True, attach the bankroll path and per-hand net
                        results to the LabStats.

    Returns:
        LabStats for the run.

    Raises:
        ValueError: If total_hands is negative or base_bet is not positive.
    """
    difficulty = parse_difficulty(difficulty)
    if total_hands < 0:
        raise ValueError(f"total_hands must be non-negative; got {total_hands}.")
    if base_bet <= 0:
        raise ValueError(f"base_bet must be positive; got {base_bet}.")

    rng = make_rng(seed)
    shoe_state = ShoeState(create_shuffled_shoe(rng))

    chips = starting_chips
    peak_chips = starting_chips
    wins = losses = pushes = blackjacks = 0
    total_bet = total_payout = 0
    history: list[int] = [starting_chips]
    nets: list[float] = []

    for _ in range(total_hands):
        bet = min(base_bet, chips)
        if bet <= 0:
            break

        chips -= bet
        hand = simulate_one_hand(difficulty, shoe_state, bet, chips, rng)
        chips -= hand.wager - bet

        total_bet += hand.wager
        total_payout += hand.payout
        chips += hand.payout
        peak_chips = max(peak_chips, chips)

        outcome = hand.outcome
        if outcome == Outcome.WIN:
            wins += 1
            if hand.is_blackjack:
                blackjacks += 1
        elif outcome == Outcome.LOSS:
            losses += 1
        else:
            pushes += 1

        if return_history:
            history.append(chips)
            nets.append(hand.net / base_bet)

    hands_played = wins + losses + pushes
    return LabStats(
        difficulty=difficulty,
        label=DIFFICULTY_LABELS[difficulty],
        hands_played=hands_played,
        wins=wins,
        losses=losses,
        pushes=pushes,
        blackjacks=blackjacks,
        total_bet=total_bet,
        total_payout=total_payout,
        win_rate=wins / hands_played if hands_played > 0 else 0.0,
        ev=(total_payout - total_bet) / total_bet * 100.0 if total_bet > 0 else 0.0,
        peak_chips=peak_chips,
        final_chips=chips,
        starting_chips=starting_chips,
        chips_history=np.array(history, dtype=np.int64) if return_history else None,
        net_results=np.array(nets, dtype=np.float64) if return_history else None,
    )


# ─── Multi-policy lab runner ──────────────────────────────────────────────────


class LabPhase(Enum):
    CONFIG = auto()
    RUNNING = auto()
    DONE = auto()


@dataclass
class SimulationLab:
    """Cancellable, incremental runner for several policies.

    Each ``step()`` pops one pending policy, runs its whole batch, stores the
    LabStats and returns control to the caller. ``cancel()`` may be called
    from any thread; it takes effect at the next step boundary, drops the
    remaining queue and returns the lab to CONFIG (completed results are
    kept).

    Each policy gets its own child seed spawned from ``seed``, so a seeded
    lab is reproducible regardless of which policies are selected.
    """

    difficulties: list[AiDifficulty] = field(default_factory=lambda: list(AiDifficulty))
    hand_count: int = DEFAULT_LAB_HANDS
    base_bet: int = DEFAULT_BASE_BET
    starting_chips: int = DEFAULT_STARTING_CHIPS
    seed: int | None = None
    return_history: bool = False
    phase: LabPhase = LabPhase.CONFIG
    results: list[LabStats] = field(default_factory=list)
    progress: int = 0
    _pending: deque = field(default_factory=deque, repr=False)
    _cancel: threading.Event = field(default_factory=threading.Event, repr=False)
    _generation: int = field(default=0, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    # ── Configuration (CONFIG phase only) ─────────────────────────────────────

    def set_hand_count(self, count: int) -> None:
        if self.phase != LabPhase.CONFIG:
            return
        if count <= 0:
            raise ValueError(f"hand_count must be positive; got {count}.")
        self.hand_count = count

    def toggle_difficulty(self, difficulty: AiDifficulty | str) -> None:
        """Add or remove a policy; the last selected policy cannot be removed."""
        if self.phase != LabPhase.CONFIG:
            return
        difficulty = parse_difficulty(difficulty)
        if difficulty in self.difficulties:
            if len(self.difficulties) > 1:
                self.difficulties.remove(difficulty)
        else:
            self.difficulties.append(difficulty)

    # ── Execution ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Queue every selected policy and enter RUNNING."""
        tiers = list(AiDifficulty)
        child_seeds = np.random.SeedSequence(self.seed).spawn(len(tiers))
        with self._lock:
            # A batch still running from an earlier run sees the old token.
            self._cancel.set()
            self._cancel = threading.Event()
            self._generation += 1
            self._pending = deque((d, child_seeds[tiers.index(d)]) for d in self.difficulties)
            self.results = []
            self.progress = 0
            self.phase = LabPhase.RUNNING

    def step(self) -> LabStats | None:
        """Run the next pending policy batch. Returns its LabStats, or None
        when nothing ran (not running, cancelled, or queue empty).

        A batch whose run was cancelled or reset while it executed is
        discarded; its result never reaches ``results``.
        """
        with self._lock:
            if self.phase != LabPhase.RUNNING:
                return None
            if self._cancel.is_set():
                self._pending.clear()
                self.progress = 0
                self.phase = LabPhase.CONFIG
                return None
            if not self._pending:
                self.progress = 100
                self.phase = LabPhase.DONE
                return None
            difficulty, child_seed = self._pending.popleft()
            generation, cancel = self._generation, self._cancel

        stats = run_batch_simulation(
            difficulty,
            self.hand_count,
            self.base_bet,
            self.starting_chips,
            seed=np.random.default_rng(child_seed),
            return_history=self.return_history,
        )

        with self._lock:
            if generation != self._generation or cancel.is_set():
                return None
            self.results.append(stats)
            total = len(self.results) + len(self._pending)
            self.progress = round(len(self.results) / total * 100)
            if not self._pending:
                self.phase = LabPhase.DONE
        return stats

    def cancel(self) -> None:
        self._cancel.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    def reset(self) -> None:
        """Cancel anything in flight and return to a clean CONFIG state."""
        with self._lock:
            self._cancel.set()
            self._generation += 1
            self._pending.clear()
            self.results = []
            self.progress = 0
            self.phase = LabPhase.CONFIG

    def run_all(self) -> list[LabStats]:
        """Start and step until the queue drains or a cancel lands."""
        self.start()
        self._drain(self._generation)
        return list(self.results)

    def start_background(self) -> threading.Thread:
        """Start and drain the queue on a daemon thread."""
        self.start()
        thread = threading.Thread(target=self._drain, args=(self._generation,), daemon=True)
        thread.start()
        return thread

    def _drain(self, generation: int) -> None:
        while self.phase == LabPhase.RUNNING and self._generation == generation:
            self.step()


# ─── __main__ ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import sys

    n_hands = int(sys.argv[1]) if len(sys.argv) > 1 else 10_000
    print(f"Blackjack Simulation Lab — {n_hands:,} hands per policy\n")
    lab = SimulationLab(hand_count=n_hands, seed=42)
    for stats in lab.run_all():
        print(stats)
