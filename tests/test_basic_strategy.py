"""Tests for blackjack_lab/strategy/basic_strategy.py: the static chart."""

from __future__ import annotations

import pytest

from blackjack_lab.engine.game_state import PlayerAction
from blackjack_lab.strategy.basic_strategy import (
    DEALER_UPCARDS,
    HARD_TOTALS,
    SOFT_TOTALS,
    basic_strategy_action,
    build_strategy_table,
)

H, S, D = PlayerAction.HIT, PlayerAction.STAND, PlayerAction.DOUBLE


class TestHardTotals:
    @pytest.mark.parametrize("up", DEALER_UPCARDS)
    def test_seventeen_plus_stands(self, up):
        for total in (17, 18, 19, 20, 21):
            assert basic_strategy_action(total, False, up, True) == S

    @pytest.mark.parametrize(
        "total, up, expected",
        [
            (16, 6, S),
            (16, 7, H),
            (13, 2, S),
            (13, 10, H),
            (12, 3, H),
            (12, 4, S),
            (12, 6, S),
            (12, 7, H),
            (11, 11, D),
            (10, 9, D),
            (10, 10, H),
            (9, 2, H),
            (9, 3, D),
            (9, 6, D),
            (9, 7, H),
            (8, 6, H),
            (5, 5, H),
        ],
    )
    def test_chart(self, total, up, expected):
        assert basic_strategy_action(total, False, up, True) == expected

    def test_double_falls_back_to_hit(self):
        assert basic_strategy_action(11, False, 6, False) == H
        assert basic_strategy_action(10, False, 5, False) == H


class TestSoftTotals:
    @pytest.mark.parametrize(
        "total, up, expected",
        [
            (19, 6, S),
            (20, 11, S),
            (18, 2, S),
            (18, 3, D),
            (18, 6, D),
            (18, 7, S),
            (18, 9, H),
            (18, 11, H),
            (17, 2, H),
            (17, 3, D),
            (17, 7, H),
            (16, 3, H),
            (16, 4, D),
            (15, 6, D),
            (14, 4, H),
            (14, 5, D),
            (13, 6, D),
            (13, 7, H),
        ],
    )
    def test_chart(self, total, up, expected):
        assert basic_strategy_action(total, True, up, True) == expected

    def test_soft_18_stands_without_double(self):
        assert basic_strategy_action(18, True, 4, False) == S

    def test_soft_17_hits_without_double(self):
        assert basic_strategy_action(17, True, 4, False) == H


class TestStrategyTable:
    def test_covers_every_state(self):
        table = build_strategy_table()
        assert len(table) == (len(HARD_TOTALS) + len(SOFT_TOTALS)) * len(DEALER_UPCARDS)

    def test_no_double_without_permission(self):
        assert D not in build_strategy_table(can_double=False).values()

    def test_matches_function(self):
        table = build_strategy_table()
        assert table[(16, False, 10)] == H
        assert table[(11, False, 6)] == D
