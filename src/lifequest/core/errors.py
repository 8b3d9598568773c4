"""
Domain exceptions for LifeQuest.

Raised by the engine for bad input and rule violations; boundary layers (the
bot handlers) translate them into user-facing replies. ``StoreError`` never
leaves a store: stores catch it, log it and fall back to their soft-fail
return value.
"""

from __future__ import annotations

from typing import Any


class LifeQuestError(Exception):
    """
    Base exception for all LifeQuest domain errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        error_code: Optional code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        self.message: str = message
        self.details: dict[str, Any] = details or {}
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"


class ValidationError(LifeQuestError):
    """Bad input: blank title or name, non-positive amount or cost."""

    def __init__(self, message: str, field: str | None = None, value: Any = None) -> None:
        details: dict[str, Any] = {}
        if field is not None:
            details["field"] = field
            details["value"] = value
        super().__init__(message, details)
        self.field = field


class InsufficientFundsError(LifeQuestError):
    """A purchase costs more coins than the current balance."""

    def __init__(self, balance: int, cost: int) -> None:
        super().__init__(
            f"Not enough coins: need {cost}, have {balance}",
            {"balance": balance, "cost": cost, "shortfall": cost - balance},
        )
        self.balance = balance
        self.cost = cost


class NotFoundError(LifeQuestError):
    """Lookup of a quest or purchase id that does not exist."""

    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind.capitalize()} not found", {"kind": kind, "id": item_id})
        self.kind = kind
        self.item_id = item_id


class StoreError(LifeQuestError):
    """A persistence collaborator failed to load, save or subscribe."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(f"Store {operation} failed: {reason}", {"operation": operation})
        self.operation = operation
