"""
Data models for the AASA checker.

This module defines the fetched manifest, the verification result and the
structured verification error returned to callers.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .enums import ContentKind, FailureReason


@dataclass(frozen=True)
class FetchedManifest:
    """Manifest body exactly as transported, plus how it was delivered."""

    domain: str
    url: str
    status_code: int
    content_type: str
    kind: ContentKind
    body: bytes = field(repr=False)


@dataclass
class VerificationResult:
    """Successful verification of a domain's manifest."""

    encrypted: bool
    document: Any
    structurally_valid: bool
    identifier_found: Optional[bool] = None  # None when no bundle identifier given

    def to_dict(self) -> dict:
        return {
            "encrypted": self.encrypted,
            "document": self.document,
            "structurally_valid": self.structurally_valid,
            "identifier_found": self.identifier_found,
        }


@dataclass(frozen=True)
class VerificationError:
    """
    Structured failure of a domain check.

    Built from a single FailureReason, so exactly one flag is true and all
    others are explicitly false.
    """

    reason: FailureReason
    message: str = ""
    http_status_code: Optional[int] = None

    @property
    def bad_dns(self) -> bool:
        return self.reason is FailureReason.BAD_DNS

    @property
    def https_failure(self) -> bool:
        return self.reason is FailureReason.HTTPS_FAILURE

    @property
    def server_error(self) -> bool:
        return self.reason is FailureReason.SERVER_ERROR

    @property
    def redirects(self) -> bool:
        return self.reason is FailureReason.REDIRECTS

    @property
    def bad_content_type(self) -> bool:
        return self.reason is FailureReason.BAD_CONTENT_TYPE

    @property
    def signature_verification_failed(self) -> bool:
        return self.reason is FailureReason.SIGNATURE_VERIFICATION_FAILED

    @property
    def invalid_json(self) -> bool:
        return self.reason is FailureReason.INVALID_JSON

    @property
    def timeout(self) -> bool:
        return self.reason is FailureReason.TIMEOUT

    def flags(self) -> dict[str, bool]:
        """Every failure flag, keyed by name."""
        return {r.value: r is self.reason for r in FailureReason}

    def to_dict(self) -> dict:
        data: dict = dict(self.flags())
        data["message"] = self.message
        if self.http_status_code is not None:
            data["http_status_code"] = self.http_status_code
        return data


@dataclass
class CheckOutcome:
    """Outcome of one domain check: either a result or an error."""

    domain: str
    result: Optional[VerificationResult] = None
    error: Optional[VerificationError] = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "ok": self.ok,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error.to_dict() if self.error else None,
            "duration_ms": self.duration_ms,
        }
