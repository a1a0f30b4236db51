"""Balance movement generation for deposits, withdrawals, investments and yields"""

import random
from datetime import datetime
from typing import Any, Dict, Optional
from energy_gateway.domain.exceptions import InsufficientFundsError
from energy_gateway.domain.models import (
    BalanceMovement,
    COMPLETED,
    DEPOSIT,
    INVESTMENT,
    PENDING,
    WITHDRAWAL,
    YIELD,
)

REFERENCE_PREFIXES = {
    DEPOSIT: "DEP",
    WITHDRAWAL: "WIT",
    INVESTMENT: "INV",
    YIELD: "YLD",
}

DEFAULT_DESCRIPTIONS = {
    DEPOSIT: "Deposit",
    WITHDRAWAL: "Withdrawal",
    INVESTMENT: "Investment in energy product",
    YIELD: "Energy asset yield",
}

# Withdrawals need processing; everything else settles immediately
INITIAL_STATUS = {
    DEPOSIT: COMPLETED,
    WITHDRAWAL: PENDING,
    INVESTMENT: COMPLETED,
    YIELD: COMPLETED,
}

DEBIT_TYPES = (WITHDRAWAL, INVESTMENT)


def generate_reference_id(transaction_type: str, now: datetime, rng: Optional[random.Random] = None) -> str:
    """
    Build a human-readable movement reference.

    Example:
        deposit at 2024-01-15 10:30:00 → DEP_20240115103000_0042
    """
    rng = rng or random
    suffix = str(rng.randint(1, 9999)).zfill(4)
    return f"{REFERENCE_PREFIXES[transaction_type]}_{now.strftime('%Y%m%d%H%M%S')}_{suffix}"


def ensure_sufficient_funds(current_balance: float, amount: float, transaction_type: str) -> None:
    """
    Raises:
        InsufficientFundsError: When the debit exceeds the current balance
    """
    if current_balance >= amount:
        return

    if transaction_type == INVESTMENT:
        raise InsufficientFundsError(
            "Insufficient funds for the investment",
            current_balance=current_balance,
            amount=amount,
            amount_field="investment_amount",
        )
    raise InsufficientFundsError("Insufficient funds", current_balance=current_balance, amount=amount)


def build_movement(
    transaction_type: str,
    user_id: int,
    amount: float,
    now: datetime,
    description: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    rng: Optional[random.Random] = None,
) -> BalanceMovement:
    """
    Turn a requested movement into the row to persist.

    Debits (withdrawals, investments) are stored as negative amounts so that
    a user's balance is the plain sum of their rows.
    """
    signed_amount = -amount if transaction_type in DEBIT_TYPES else amount

    return BalanceMovement(
        user_id=user_id,
        amount=signed_amount,
        transaction_type=transaction_type,
        description=description or DEFAULT_DESCRIPTIONS[transaction_type],
        status=INITIAL_STATUS[transaction_type],
        reference_id=generate_reference_id(transaction_type, now, rng),
        metadata=metadata or {},
        created_at=now,
    )
