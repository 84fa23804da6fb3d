"""Tests for blackjack_lab/strategy/advisor.py: action choice and advice assembly."""

from __future__ import annotations

import pytest

from blackjack_lab.engine.counting import DeckAdvantage
from blackjack_lab.engine.deck import build_shoe_without
from blackjack_lab.engine.game_state import PlayerAction
from blackjack_lab.strategy.advisor import (
    StrategyAdvice,
    action_ev,
    choose_action,
    get_strategy_advice,
)
from blackjack_lab.strategy.outcome_simulator import SimulationResult
from tests.conftest import hand


def result(action: PlayerAction, win: float, lose: float) -> SimulationResult:
    return SimulationResult(action, win, lose, 1.0 - win - lose, 0.0, 1000)


class TestChooseAction:
    def test_highest_ev_wins(self):
        hit = result(PlayerAction.HIT, 0.3, 0.6)
        stand = result(PlayerAction.STAND, 0.4, 0.5)
        assert choose_action(hit, stand) == PlayerAction.STAND

    def test_double_ev_is_doubled(self):
        dbl = result(PlayerAction.DOUBLE, 0.55, 0.40)
        hit = result(PlayerAction.HIT, 0.60, 0.32)
        # double 2 * 0.15 = 0.30 > hit 0.28
        assert action_ev(dbl) == pytest.approx(0.30)
        assert choose_action(hit, result(PlayerAction.STAND, 0.1, 0.9), dbl) == PlayerAction.DOUBLE

    def test_negative_double_ev_doubles_loss(self):
        dbl = result(PlayerAction.DOUBLE, 0.40, 0.50)
        hit = result(PlayerAction.HIT, 0.40, 0.55)
        assert action_ev(dbl) == pytest.approx(-0.20)
        assert choose_action(hit, result(PlayerAction.STAND, 0.1, 0.9), dbl) == PlayerAction.HIT

    def test_ties_prefer_double_then_hit(self):
        hit = result(PlayerAction.HIT, 0.4, 0.4)
        stand = result(PlayerAction.STAND, 0.4, 0.4)
        dbl = result(PlayerAction.DOUBLE, 0.4, 0.4)
        assert choose_action(hit, stand, dbl) == PlayerAction.DOUBLE
        assert choose_action(hit, stand) == PlayerAction.HIT


class TestGetStrategyAdvice:
    def test_stand_on_20_vs_6(self):
        player, dealer = hand('10S', 'KH'), hand('6D', '9C*')
        shoe = build_shoe_without(player, dealer, rng=0)
        advice = get_strategy_advice(player, dealer, shoe, chips=1000, bet=100, trials=1000, rng=1)
        assert isinstance(advice, StrategyAdvice)
        assert advice.recommended == PlayerAction.STAND
        assert advice.basic_strategy == PlayerAction.STAND
        assert advice.agrees_with_basic_strategy

    def test_double_11_vs_6(self):
        player, dealer = hand('6S', '5H'), hand('6D', '9C*')
        shoe = build_shoe_without(player, dealer, rng=0)
        advice = get_strategy_advice(player, dealer, shoe, chips=1000, bet=100, trials=2000, rng=1)
        assert advice.double_result is not None
        assert advice.recommended == PlayerAction.DOUBLE

    def test_no_double_without_chips(self):
        player, dealer = hand('6S', '5H'), hand('6D', '9C*')
        shoe = build_shoe_without(player, dealer, rng=0)
        advice = get_strategy_advice(player, dealer, shoe, chips=50, bet=100, trials=200, rng=1)
        assert advice.double_result is None
        assert advice.recommended != PlayerAction.DOUBLE
        assert advice.basic_strategy == PlayerAction.HIT

    def test_count_defaults_to_visible_cards(self):
        player, dealer = hand('2S', '3H'), hand('4D', 'KC*')
        shoe = build_shoe_without(player, dealer, rng=0)
        advice = get_strategy_advice(player, dealer, shoe, chips=1000, bet=100, trials=100, rng=1)
        assert advice.running_count == 3
        assert advice.true_count == pytest.approx(3.3)
        assert advice.deck_advantage == DeckAdvantage.PLAYER

    def test_explicit_dealt_cards(self):
        player, dealer = hand('10S', '9H'), hand('KD', '7C*')
        shoe = build_shoe_without(player, dealer, rng=0)
        seen = hand('10S', '9H', 'KD', 'QS', 'JH', 'AC')
        advice = get_strategy_advice(
            player, dealer, shoe, chips=1000, bet=100, dealt_cards=seen, trials=100, rng=1
        )
        assert advice.running_count == -5
        assert advice.deck_advantage == DeckAdvantage.DEALER
