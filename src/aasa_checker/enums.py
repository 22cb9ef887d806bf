"""
Enumeration types for the AASA checker.

These enums provide type-safe constants for failure reasons, content
classification and logging levels throughout the system.
"""

from enum import Enum


class FailureReason(Enum):
    """Primary reason a domain check failed. Exactly one per failure."""

    BAD_DNS = "bad_dns"
    HTTPS_FAILURE = "https_failure"
    SERVER_ERROR = "server_error"
    REDIRECTS = "redirects"
    BAD_CONTENT_TYPE = "bad_content_type"
    SIGNATURE_VERIFICATION_FAILED = "signature_verification_failed"
    INVALID_JSON = "invalid_json"
    TIMEOUT = "timeout"


class ContentKind(Enum):
    """How the manifest body was delivered."""

    ENVELOPE = "envelope"
    JSON = "json"


class DetailsShape(Enum):
    """Layout of the applinks.details collection."""

    ARRAY = "array"
    MAPPING = "mapping"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
