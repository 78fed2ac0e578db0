"""Tests for the bet validator: rule order, amounts, selections."""

from decimal import Decimal

import pytest

from betmarket.core.brackets import SCORE_BRACKETS, bracket_label, is_valid_bracket
from betmarket.core.domain import Game, WagerDraft
from betmarket.core.errors import ErrorKind
from betmarket.core.validator import Accepted, Rejected, has_money_scale, parse_amount, validate


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _win_game(status="live"):
    return Game(id="G1", type="win", status=status, team_a="Lions", team_b="Tigers")


def _score_game(status="live"):
    return Game(id="G2", type="score", status=status, team="Lions")


def _validate(game, amount, prediction, balance="100", **kwargs):
    return validate(game, WagerDraft(amount=amount, prediction=prediction),
                    Decimal(balance), user_id="user1", **kwargs)


# ---------------------------------------------------------------------------
# Happy paths
# ---------------------------------------------------------------------------

def test_win_bet_accepted():
    result = _validate(_win_game(), "30", "Lions")
    assert isinstance(result, Accepted)
    req = result.request
    assert req.amount == Decimal("30")
    assert req.team == "Lions"
    assert req.market == "win"
    assert req.user_id == "user1"
    assert req.predicted_percentage == 50


def test_score_bet_accepted_with_game_team():
    result = _validate(_score_game(), "25.50", "3")
    assert isinstance(result, Accepted)
    assert result.request.bracket == 3
    assert result.request.team == "Lions"
    assert result.request.amount == Decimal("25.50")


def test_stake_equal_to_balance_is_allowed():
    assert isinstance(_validate(_win_game(), "100", "Tigers"), Accepted)


@pytest.mark.parametrize("amount", ["12.5", "12.50", "12.500", "7"])
def test_whole_cent_amounts_accepted(amount):
    result = _validate(_win_game(), amount, "Lions")
    assert isinstance(result, Accepted)
    assert result.request.amount == Decimal(amount)


def test_oversized_amount_is_not_a_money_value():
    assert not has_money_scale(Decimal("1e40"))


def test_selection_is_trimmed():
    result = _validate(_win_game(), "10", "  Lions ")
    assert result.request.team == "Lions"


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("status", ["completed", "upcoming", "cancelled", ""])
def test_non_live_game_rejected_even_for_valid_draft(status):
    result = _validate(_win_game(status=status), "30", "Lions")
    assert result == Rejected(ErrorKind.MARKET_CLOSED)
    assert result.message == "This game is not live."


@pytest.mark.parametrize("amount", ["", "abc", "0", "-5", "0.00", "NaN", "inf", None, "0.001", "0.004", "1.999"])
def test_invalid_amount(amount):
    result = _validate(_win_game(), amount, "Lions")
    assert isinstance(result, Rejected)
    assert result.reason is ErrorKind.INVALID_AMOUNT


def test_insufficient_balance():
    result = _validate(_win_game(), "150", "Lions", balance="100")
    assert result.reason is ErrorKind.INSUFFICIENT_BALANCE
    assert result.message == "Insufficient balance"


@pytest.mark.parametrize("prediction", ["", "   "])
def test_win_market_needs_selection(prediction):
    result = _validate(_win_game(), "10", prediction)
    assert result.reason is ErrorKind.NO_SELECTION


def test_unknown_team_rejected_when_enforced():
    result = _validate(_win_game(), "10", "Bears")
    assert result.reason is ErrorKind.INVALID_SELECTION


def test_unknown_team_allowed_when_not_enforced():
    result = _validate(_win_game(), "10", "Bears", enforce_team_membership=False)
    assert isinstance(result, Accepted)
    assert result.request.team == "Bears"


@pytest.mark.parametrize("prediction", ["", "abc", "2.5", "0", "12", "-1"])
def test_score_market_bad_bracket(prediction):
    result = _validate(_score_game(), "10", prediction)
    assert result.reason is ErrorKind.INVALID_SELECTION


# ---------------------------------------------------------------------------
# Rule order: first failure wins
# ---------------------------------------------------------------------------

def test_closed_beats_bad_amount():
    result = _validate(_win_game(status="completed"), "abc", "")
    assert result.reason is ErrorKind.MARKET_CLOSED


def test_bad_amount_beats_missing_selection():
    result = _validate(_win_game(), "-1", "")
    assert result.reason is ErrorKind.INVALID_AMOUNT


def test_balance_beats_missing_selection():
    result = _validate(_win_game(), "500", "", balance="100")
    assert result.reason is ErrorKind.INSUFFICIENT_BALANCE


# ---------------------------------------------------------------------------
# Parsing and bracket table
# ---------------------------------------------------------------------------

def test_parse_amount_accepts_numbers():
    assert parse_amount(30) == Decimal("30")
    assert parse_amount(" 12.5 ") == Decimal("12.5")
    assert parse_amount(True) is None


def test_bracket_table():
    assert len(SCORE_BRACKETS) == 11
    assert SCORE_BRACKETS[0] == "0 - 50"
    assert SCORE_BRACKETS[-1] == "241+"
    assert is_valid_bracket(1) and is_valid_bracket(11)
    assert not is_valid_bracket(0) and not is_valid_bracket(12)


def test_bracket_label_falls_back_to_first():
    assert bracket_label(4) == "101 - 120"
    assert bracket_label(None) == "0 - 50"
    assert bracket_label(12) == "0 - 50"
