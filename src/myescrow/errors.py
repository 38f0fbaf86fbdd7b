"""Domain error taxonomy.

Services raise these; ``middleware.error_handler`` maps them to responses
in one place. Each error carries a stable HTTP status.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that surface to the client."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message}


class ValidationError(AppError):
    """Malformed or out-of-range input."""

    status_code = 400

    def __init__(self, message: str, issues: list[dict[str, str]] | None = None) -> None:
        super().__init__(message)
        self.issues = issues or []

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.issues:
            payload["issues"] = self.issues
        return payload


class AuthenticationError(AppError):
    """Missing, invalid or expired token, or bad credentials."""

    status_code = 401


class NotFoundError(AppError):
    """Unknown reference or user. Also used for ownership mismatches."""

    status_code = 404


class ConflictError(AppError):
    status_code = 409


class InsufficientFundsError(AppError):
    status_code = 400


class DeliveryError(AppError):
    """Outbound email could not be delivered."""

    status_code = 500
