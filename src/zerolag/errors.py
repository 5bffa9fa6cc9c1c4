"""Domain error taxonomy.

Every error carries the HTTP status the global handler answers with and a short
human-readable message that is returned to the caller verbatim.
"""

from __future__ import annotations


class ZeroLagError(Exception):
    """Base class for errors reported to API callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(ZeroLagError):
    """A required field is missing or empty."""

    status_code = 400


class ValidationError(ZeroLagError):
    """A business rule rejected the request (non-positive stake, past deadline, ...)."""

    status_code = 400


class NotFound(ZeroLagError):
    """Unknown task, proof or file."""

    status_code = 404


class ChallengeNotFound(NotFound):
    """No challenge is on record for the identity.

    Answers 400 rather than 404: the auth contract treats it as a bad request.
    """

    status_code = 400


class ChallengeExpired(ZeroLagError):
    status_code = 400


class SignatureMismatch(ZeroLagError):
    """The recovered signer is not the claimed identity."""

    status_code = 401


class VerificationFailed(ZeroLagError):
    """Signature recovery itself blew up (malformed signature bytes)."""

    status_code = 500


class AlreadyPending(ZeroLagError):
    status_code = 409


class AlreadyReviewed(ZeroLagError):
    status_code = 409


class TaskNotActive(ZeroLagError):
    status_code = 409


class Forbidden(ZeroLagError):
    status_code = 403


class StorageError(ZeroLagError):
    """The backing store failed; the current call cannot complete."""

    status_code = 503


class ChainError(ZeroLagError):
    """A staking-contract call failed or no contract is configured."""

    status_code = 502
