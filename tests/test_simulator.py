"""
Tests for blackjack_lab/analysis/simulator.py

Covers:
    - simulate_one_hand(): blackjack settlement, doubling, shoe bookkeeping
    - run_batch_simulation(): chip conservation, counts, history, broke stop
    - SimulationLab: phase machine, cancellation, difficulty toggling,
      reset or cancel landing while a background batch runs
    - Relative checks: basic strategy beats random play
"""

from __future__ import annotations

import threading
from unittest.mock import patch

import numpy as np
import pytest

import blackjack_lab.analysis.simulator as simulator_module
from blackjack_lab.analysis.simulator import (
    LabPhase,
    LabStats,
    ShoeState,
    SimulationLab,
    run_batch_simulation,
    simulate_one_hand,
)
from blackjack_lab.engine.game_state import RESHUFFLE_THRESHOLD
from blackjack_lab.engine.rules import GameResult, Outcome
from blackjack_lab.strategy.ai_player import AiDifficulty
from tests.conftest import stacked_shoe


@pytest.fixture(scope="module")
def pro_run() -> LabStats:
    return run_batch_simulation('pro', 1000, 100, 10_000, seed=42, return_history=True)


@pytest.fixture(scope="module")
def easy_run() -> LabStats:
    return run_batch_simulation('easy', 3000, 100, 10**7, seed=7)


# ─── Single hand ──────────────────────────────────────────────────────────────


class TestSimulateOneHand:
    def test_player_blackjack(self):
        state = ShoeState(stacked_shoe('AS', '7C', 'KD', '9H'))
        hand_result = simulate_one_hand('pro', state, 100, 9_900, 0)
        assert hand_result.result == GameResult.PLAYER_BLACKJACK
        assert hand_result.is_blackjack
        assert hand_result.payout == 250
        assert hand_result.net == 150
        assert hand_result.outcome == Outcome.WIN

    def test_both_blackjack_push(self):
        state = ShoeState(stacked_shoe('AS', 'AH', 'KD', 'QC'))
        hand_result = simulate_one_hand('pro', state, 100, 9_900, 0)
        assert hand_result.result == GameResult.PUSH
        assert hand_result.payout == 100

    def test_pro_doubles_eleven(self):
        state = ShoeState(stacked_shoe('6S', '6C', '5D', '10H', '9D'))
        hand_result = simulate_one_hand('pro', state, 100, 9_900, 0)
        assert hand_result.wager == 200
        assert hand_result.player_score == 20
        assert hand_result.result == GameResult.PLAYER_WIN
        assert hand_result.payout == 400

    def test_no_double_without_chips(self):
        state = ShoeState(stacked_shoe('6S', '6C', '5D', '10H', '9D', '2C'))
        hand_result = simulate_one_hand('pro', state, 100, 50, 0)
        assert hand_result.wager == 100

    def test_dealt_cards_record_hole_after_reveal(self):
        state = ShoeState(stacked_shoe('10S', '7C', '9D', 'KH'))
        simulate_one_hand('pro', state, 100, 9_900, 0)
        seen = [str(c) for c in state.dealt_cards]
        assert seen[:3] == ['10S', '7C', '9D']
        assert 'KH' in seen
        assert len(state.shoe) == 48

    def test_reshuffles_low_shoe(self):
        state = ShoeState(stacked_shoe()[: RESHUFFLE_THRESHOLD - 1], list(stacked_shoe()[:5]))
        simulate_one_hand('pro', state, 100, 9_900, 0)
        assert len(state.shoe) > RESHUFFLE_THRESHOLD
        assert len(state.dealt_cards) < 15


# ─── Batch run ────────────────────────────────────────────────────────────────


class TestRunBatchSimulation:
    def test_chip_conservation(self, pro_run):
        assert pro_run.final_chips == 10_000 - pro_run.total_bet + pro_run.total_payout

    def test_counts_add_up(self, pro_run):
        assert pro_run.wins + pro_run.losses + pro_run.pushes == pro_run.hands_played
        assert pro_run.hands_played == 1000
        assert pro_run.blackjacks <= pro_run.wins

    def test_win_rate_and_ev(self, pro_run):
        assert pro_run.win_rate == pytest.approx(pro_run.wins / pro_run.hands_played)
        expected_ev = (pro_run.total_payout - pro_run.total_bet) / pro_run.total_bet * 100
        assert pro_run.ev == pytest.approx(expected_ev)

    def test_peak_at_least_start(self, pro_run):
        assert pro_run.peak_chips >= 10_000
        assert pro_run.peak_chips >= pro_run.final_chips

    def test_history(self, pro_run):
        assert isinstance(pro_run.chips_history, np.ndarray)
        assert len(pro_run.chips_history) == pro_run.hands_played + 1
        assert pro_run.chips_history[0] == 10_000
        assert pro_run.chips_history[-1] == pro_run.final_chips
        assert pro_run.chips_history.max() == pro_run.peak_chips
        assert len(pro_run.net_results) == pro_run.hands_played
        assert pro_run.net_results.sum() * 100 == pytest.approx(
            pro_run.final_chips - 10_000
        )

    def test_total_bet_counts_doubles(self, pro_run):
        assert pro_run.total_bet >= 100 * pro_run.hands_played

    def test_history_off_by_default(self, easy_run):
        assert easy_run.chips_history is None
        assert easy_run.net_results is None

    def test_reproducible(self):
        a = run_batch_simulation('casino', 200, seed=5)
        b = run_batch_simulation('casino', 200, seed=5)
        assert (a.final_chips, a.wins, a.total_bet) == (b.final_chips, b.wins, b.total_bet)

    def test_stops_when_broke(self):
        stats = run_batch_simulation('easy', 5000, 100, 300, seed=1)
        assert stats.hands_played < 5000
        assert stats.final_chips == 0
        assert stats.final_chips == 300 - stats.total_bet + stats.total_payout

    def test_bet_capped_by_chips(self):
        stats = run_batch_simulation('pro', 1, 500, 150, seed=0)
        assert stats.total_bet in (150, 300)

    def test_zero_hands(self):
        stats = run_batch_simulation('pro', 0)
        assert stats.hands_played == 0
        assert stats.win_rate == 0.0
        assert stats.ev == 0.0
        assert stats.final_chips == stats.peak_chips == 10_000

    def test_negative_hands_raise(self):
        with pytest.raises(ValueError):
            run_batch_simulation('pro', -1)

    def test_unknown_difficulty_raises(self):
        with pytest.raises(ValueError):
            run_batch_simulation('expert', 10)

    def test_basic_strategy_beats_random(self, easy_run):
        pro = run_batch_simulation('pro', 3000, 100, 10**7, seed=7)
        assert pro.ev > easy_run.ev

    def test_str(self, pro_run):
        text = str(pro_run)
        assert 'Basic Strategy' in text
        assert 'Win rate' in text


# ─── SimulationLab ────────────────────────────────────────────────────────────


class TestSimulationLab:
    def test_defaults(self):
        lab = SimulationLab()
        assert lab.phase == LabPhase.CONFIG
        assert lab.hand_count == 1000
        assert lab.difficulties == list(AiDifficulty)

    def test_toggle_keeps_one(self):
        lab = SimulationLab(difficulties=[AiDifficulty.PRO])
        lab.toggle_difficulty('pro')
        assert lab.difficulties == [AiDifficulty.PRO]
        lab.toggle_difficulty('easy')
        assert lab.difficulties == [AiDifficulty.PRO, AiDifficulty.EASY]
        lab.toggle_difficulty(AiDifficulty.PRO)
        assert lab.difficulties == [AiDifficulty.EASY]

    def test_set_hand_count(self):
        lab = SimulationLab()
        lab.set_hand_count(50)
        assert lab.hand_count == 50
        with pytest.raises(ValueError):
            lab.set_hand_count(0)

    def test_step_runs_one_policy(self):
        lab = SimulationLab(hand_count=50, seed=1)
        lab.start()
        assert lab.phase == LabPhase.RUNNING
        first = lab.step()
        assert first is not None
        assert first.difficulty == AiDifficulty.EASY
        assert len(lab.results) == 1
        assert lab.progress == 33
        lab.step()
        lab.step()
        assert lab.phase == LabPhase.DONE
        assert lab.progress == 100
        assert lab.step() is None

    def test_config_locked_while_running(self):
        lab = SimulationLab(hand_count=20, seed=1)
        lab.start()
        lab.set_hand_count(999)
        lab.toggle_difficulty('pro')
        assert lab.hand_count == 20
        assert len(lab.difficulties) == 3

    def test_cancel_between_batches(self):
        lab = SimulationLab(hand_count=50, seed=1)
        lab.start()
        lab.step()
        lab.cancel()
        assert lab.step() is None
        assert lab.phase == LabPhase.CONFIG
        assert lab.progress == 0
        assert len(lab.results) == 1

    def test_run_all_reproducible(self):
        a = SimulationLab(hand_count=100, seed=3).run_all()
        b = SimulationLab(hand_count=100, seed=3).run_all()
        assert [s.final_chips for s in a] == [s.final_chips for s in b]
        assert [s.difficulty for s in a] == list(AiDifficulty)

    def test_policy_seed_independent_of_selection(self):
        full = SimulationLab(hand_count=100, seed=3).run_all()
        only_casino = SimulationLab(hand_count=100, seed=3)
        only_casino.toggle_difficulty('easy')
        only_casino.toggle_difficulty('pro')
        (casino,) = only_casino.run_all()
        assert casino.final_chips == full[-1].final_chips
        assert casino.chips_history == full[-1].chips_history

    def test_restart_clears_cancel(self):
        lab = SimulationLab(hand_count=20, seed=1)
        lab.cancel()
        assert len(lab.run_all()) == 3

    def test_background_thread(self):
        lab = SimulationLab(hand_count=50, seed=2)
        thread = lab.start_background()
        assert isinstance(thread, threading.Thread)
        thread.join(timeout=60)
        assert lab.phase == LabPhase.DONE
        assert len(lab.results) == 3

    def test_reset(self):
        lab = SimulationLab(hand_count=20, seed=1)
        lab.run_all()
        lab.reset()
        assert lab.phase == LabPhase.CONFIG
        assert lab.results == []
        assert lab.progress == 0


class TestSimulationLabInFlight:
    """Reset / cancel landing while a background batch is still running."""

    @staticmethod
    def _gated_batch(started: threading.Event, release: threading.Event):
        real = simulator_module.run_batch_simulation

        def batch(*args, **kwargs):
            started.set()
            release.wait(timeout=30)
            return real(*args, **kwargs)

        return batch

    def _run_interrupted(self, interrupt):
        started, release = threading.Event(), threading.Event()
        lab = SimulationLab(hand_count=50, seed=1)
        with patch.object(
            simulator_module, "run_batch_simulation", self._gated_batch(started, release)
        ):
            thread = lab.start_background()
            assert started.wait(timeout=30)
            interrupt(lab)
            release.set()
            thread.join(timeout=60)
        assert not thread.is_alive()
        return lab

    def test_reset_during_batch_stays_in_config(self):
        lab = self._run_interrupted(SimulationLab.reset)
        assert lab.phase == LabPhase.CONFIG
        assert lab.results == []
        assert lab.progress == 0

    def test_cancel_during_batch_drops_result(self):
        lab = self._run_interrupted(SimulationLab.cancel)
        assert lab.phase == LabPhase.CONFIG
        assert lab.results == []
        assert lab.progress == 0

    def test_restart_after_reset_ignores_old_batch(self):
        started, release = threading.Event(), threading.Event()
        lab = SimulationLab(hand_count=50, seed=1)
        with patch.object(
            simulator_module, "run_batch_simulation", self._gated_batch(started, release)
        ):
            old = lab.start_background()
            assert started.wait(timeout=30)
            lab.reset()
        # The new run uses the real batch function; the old one is still parked.
        results = lab.run_all()
        release.set()
        old.join(timeout=60)
        assert len(results) == 3
        assert lab.results == results
        assert lab.phase == LabPhase.DONE
