"""
Domain error types raised by the store and the ballot validator.

Routes let these propagate; main.py maps each one to an HTTP status code.
"""

from typing import Any, Dict, Optional


class ElectoraError(Exception):
    """Base exception for all Electora errors"""

    status_code: int = 500

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __str__(self):
        base_msg = super().__str__()
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base_msg} (context: {context_str})"
        return base_msg


class NotFoundError(ElectoraError):
    """Election or user does not exist"""

    status_code = 404


class ValidationError(ElectoraError):
    """Missing or malformed fields, including ballots that don't fit the contest type"""

    status_code = 400


class InvalidTransitionError(ValidationError):
    """Status change not allowed by the election lifecycle"""


class ElectionClosedError(ElectoraError):
    """Election is not accepting votes (not active, or past its end date)"""

    status_code = 400


class DuplicateVoteError(ElectoraError):
    status_code = 400


class VoterNotAllowedError(ElectoraError):
    status_code = 403
