"""Domain-specific exceptions"""

from typing import Any, Dict, List, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """User-correctable input error, reported with field-level messages"""

    def __init__(self, errors: Dict[str, List[str]], message: str = "The given data was invalid."):
        super().__init__(message)
        self.message = message
        self.errors = errors

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})


class NotFoundError(DomainException):
    """Referenced entity does not exist"""

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InsufficientFundsError(DomainException):
    """Debit larger than the user's current balance"""

    def __init__(self, message: str, current_balance: float, amount: float, amount_field: str = "requested_amount"):
        super().__init__(message)
        self.message = message
        self.current_balance = current_balance
        self.amount = amount
        self.amount_field = amount_field


class InvalidTransitionError(DomainException):
    """Status transition rejected by its guard"""

    pass


class InfrastructureError(DomainException):
    """Storage or query failure"""

    def __init__(self, message: str, filters: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.filters = filters or {}
