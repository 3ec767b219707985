"""Rewards error kinds.

Services raise these; the HTTP layer maps them to responses in
edurewards.middleware.error_handler.
"""

from __future__ import annotations


class RewardsError(Exception):
    """Base class for all rewards/ranking failures."""

    status_code = 500
    public_message = "Something went wrong. Please try again."


class AlreadyRecorded(RewardsError):
    """The (user, content) pair or request was already rewarded."""

    status_code = 409
    public_message = "Already rewarded."


class InsufficientBalance(RewardsError):
    """A debit would take the balance below zero."""

    status_code = 400
    public_message = "Not enough points to redeem."

    def __init__(self, user_id: str, required: int, available: int) -> None:
        super().__init__(f"user {user_id} needs {required} points, has {available}")
        self.user_id = user_id
        self.required = required
        self.available = available


class UserNotFound(RewardsError):
    status_code = 404
    public_message = "User not found."

    def __init__(self, user_id: str) -> None:
        super().__init__(f"user {user_id} not found")
        self.user_id = user_id


class RequestNotFound(RewardsError):
    status_code = 404
    public_message = "Point request not found."


class StorageFailure(RewardsError):
    """The persistence layer failed or timed out."""

    status_code = 503


class OracleFailure(RewardsError):
    """The ranking oracle was unreachable or returned a malformed ranking."""

    status_code = 503
