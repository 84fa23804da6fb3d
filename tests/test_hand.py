"""Tests for blackjack_lab/engine/hand.py: totals, soft/bust/blackjack flags."""

from __future__ import annotations

import pytest

from blackjack_lab.engine.hand import (
    calculate_full_score,
    calculate_hand_state,
    compute_score,
    is_bust,
    score_hand,
)
from tests.conftest import hand


class TestComputeScore:
    @pytest.mark.parametrize(
        "cards, expected",
        [
            (('10S', '7H'), (17, False)),
            (('AS', '6H'), (17, True)),
            (('AS', '6H', '10D'), (17, False)),
            (('AS', 'AH'), (12, True)),
            (('AS', 'AH', 'AD'), (13, True)),
            (('AS', 'AH', 'AD', 'AC'), (14, True)),
            (('AS', 'AH', 'AD', 'AC', '7S'), (21, True)),
            (('AS', 'AH', 'AD', 'AC', '7S', '10H'), (21, False)),
            (('KS', 'QH', '5D'), (25, False)),
            ((), (0, False)),
        ],
    )
    def test_totals(self, cards, expected):
        assert compute_score(hand(*cards)) == expected


class TestHandState:
    def test_blackjack_two_cards(self):
        state = calculate_full_score(hand('AS', 'KD'))
        assert state.is_blackjack
        assert state.score == 21
        assert state.is_soft

    def test_three_card_21_is_not_blackjack(self):
        state = calculate_full_score(hand('7S', '7H', '7D'))
        assert state.score == 21
        assert not state.is_blackjack

    def test_bust(self):
        state = calculate_full_score(hand('KS', 'QH', '5D'))
        assert state.is_bust
        assert state.card_count == 3

    def test_visible_excludes_face_down(self):
        dealer = hand('10S', 'AD*')
        assert calculate_hand_state(dealer).score == 10
        assert calculate_hand_state(dealer).card_count == 1
        assert calculate_full_score(dealer).is_blackjack

    def test_face_down_ace_upcard_scores_eleven(self):
        assert calculate_hand_state(hand('AS', '9D*')).score == 11

    def test_score_hand_switch(self):
        dealer = hand('6S', '10D*')
        assert score_hand(dealer, visible_only=True).score == 6
        assert score_hand(dealer).score == 16

    def test_is_bust(self):
        assert is_bust(22)
        assert not is_bust(21)
