"""Unit tests for balance movement generation"""

import random
import re
import pytest
from datetime import datetime
from energy_gateway.domain.exceptions import InsufficientFundsError
from energy_gateway.domain.movements import build_movement, ensure_sufficient_funds, generate_reference_id

NOW = datetime(2024, 1, 15, 10, 30, 0)


def test_reference_id_format():
    reference = generate_reference_id("deposit", NOW, random.Random(1))
    assert re.fullmatch(r"DEP_20240115103000_\d{4}", reference)


def test_reference_prefix_per_type():
    rng = random.Random(7)
    assert generate_reference_id("withdrawal", NOW, rng).startswith("WIT_")
    assert generate_reference_id("investment", NOW, rng).startswith("INV_")
    assert generate_reference_id("yield", NOW, rng).startswith("YLD_")


def test_deposit_is_credited_and_completed():
    movement = build_movement("deposit", user_id=3, amount=500, now=NOW)

    assert movement.amount == 500
    assert movement.status == "completed"
    assert movement.description == "Deposit"
    assert movement.created_at == NOW
    assert movement.metadata == {}


def test_withdrawal_is_debited_and_pending():
    movement = build_movement("withdrawal", user_id=3, amount=200, now=NOW, description="Rent")

    assert movement.amount == -200
    assert movement.status == "pending"
    assert movement.description == "Rent"


def test_investment_is_debited():
    movement = build_movement("investment", user_id=3, amount=1000, now=NOW, metadata={"product_id": 9})

    assert movement.amount == -1000
    assert movement.status == "completed"
    assert movement.metadata == {"product_id": 9}


def test_funds_check_allows_exact_balance():
    ensure_sufficient_funds(100, 100, "withdrawal")


def test_funds_check_rejects_overdraw():
    with pytest.raises(InsufficientFundsError) as exc_info:
        ensure_sufficient_funds(100, 150, "withdrawal")

    error = exc_info.value
    assert error.message == "Insufficient funds"
    assert error.current_balance == 100
    assert error.amount_field == "requested_amount"


def test_funds_check_investment_wording():
    with pytest.raises(InsufficientFundsError) as exc_info:
        ensure_sufficient_funds(0, 50, "investment")

    assert exc_info.value.message == "Insufficient funds for the investment"
    assert exc_info.value.amount_field == "investment_amount"
