"""Tests for settlement of finished hands."""

import pytest

from cardroom.engine import TableRules
from cardroom.engine.settlement import balance_delta, determine_result, hand_total, settle
from cardroom.state import HandResult, PlayerState


def test_hand_total_is_flat_sum():
    assert hand_total([]) == 0
    assert hand_total([1, 10]) == 11
    assert hand_total((5, 5, 5, 6)) == 21


@pytest.mark.parametrize(
    "player,dealer,expected",
    [
        (22, 17, HandResult.LOSE),  # player bust
        (22, 23, HandResult.LOSE),  # player bust beats nothing, even a dealer bust
        (18, 20, HandResult.LOSE),
        (19, 19, HandResult.PUSH),
        (21, 21, HandResult.PUSH),
        (20, 18, HandResult.WIN),
        (12, 24, HandResult.WIN),  # dealer bust
        (0, 17, HandResult.LOSE),  # player stood without drawing
    ],
)
def test_determine_result(player, dealer, expected):
    assert determine_result(player, dealer) is expected


def test_balance_delta_default_policy():
    rules = TableRules()
    assert balance_delta(HandResult.WIN, 25, rules) == 50
    assert balance_delta(HandResult.PUSH, 25, rules) == 25
    assert balance_delta(HandResult.LOSE, 25, rules) == 0


def test_balance_delta_legacy_double_debit():
    rules = TableRules(debit_lost_bets_twice=True)
    assert balance_delta(HandResult.LOSE, 25, rules) == -25
    assert balance_delta(HandResult.WIN, 25, rules) == 50
    assert balance_delta(HandResult.PUSH, 25, rules) == 25


def test_settle_returns_outcome_per_player_in_order():
    players = [
        PlayerState(id="win", hand=(10, 9), balance=80, current_bet=20, active=False),
        PlayerState(id="push", hand=(10, 8), balance=90, current_bet=10, active=False),
        PlayerState(id="bust", hand=(10, 8, 5), balance=50, current_bet=50, active=False),
    ]

    outcomes = settle((10, 8), players)

    assert [o.player_id for o in outcomes] == ["win", "push", "bust"]
    assert [o.result for o in outcomes] == [
        HandResult.WIN,
        HandResult.PUSH,
        HandResult.LOSE,
    ]
    assert [o.balance_delta for o in outcomes] == [40, 10, 0]
    assert all(o.dealer_total == 18 for o in outcomes)
    assert outcomes[2].player_total == 23


def test_settle_conserves_chips():
    """Balance before the bet equals balance after settlement plus net winnings."""
    start = 100
    for player_total, dealer_total in [(20, 18), (18, 18), (17, 19), (23, 17)]:
        bet = 30
        player = PlayerState(
            id="p",
            hand=(player_total,),
            balance=start - bet,
            current_bet=bet,
            active=False,
        )
        outcome = settle((dealer_total,), [player])[0]
        final = player.balance + outcome.balance_delta

        expected_net = {
            HandResult.WIN: bet,
            HandResult.PUSH: 0,
            HandResult.LOSE: -bet,
        }[outcome.result]
        assert final == start + expected_net
