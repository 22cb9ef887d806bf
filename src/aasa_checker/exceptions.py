"""
Exception classes for the AASA checker.

Every pipeline stage raises a subclass of AASACheckerError. Each carries the
FailureReason it maps to, so the orchestrator can turn it into a
VerificationError without inspecting messages.
"""

from typing import Optional

from .enums import FailureReason


class AASACheckerError(Exception):
    """Base exception for all AASA checker errors."""

    reason: Optional[FailureReason] = None

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
        reason: Optional[FailureReason] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        if reason is not None:
            self.reason = reason
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "reason": self.reason.value if self.reason else None,
            "details": self.details,
        }


class FetchError(AASACheckerError):
    """Raised when retrieving or classifying the manifest fails."""

    pass


class SignatureVerificationError(AASACheckerError):
    """Raised when the signed envelope cannot be verified or read."""

    reason = FailureReason.SIGNATURE_VERIFICATION_FAILED


class VerificationTimeoutError(AASACheckerError):
    """Raised when the verification tool does not finish in time."""

    reason = FailureReason.TIMEOUT


class ManifestDecodeError(AASACheckerError):
    """Raised when a payload is not well-formed JSON."""

    reason = FailureReason.INVALID_JSON


class DomainNormalizationError(AASACheckerError):
    """Raised when a domain cannot be reduced to a resolvable host name."""

    reason = FailureReason.BAD_DNS

