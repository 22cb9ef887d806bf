"""
AASA Checker - apple-app-site-association manifest validator.

This package fetches a domain's apple-app-site-association manifest, verifies
its transport and signed envelope, validates its structure and checks whether
it authorizes a given application identifier.
"""

__version__ = "0.1.0"
__author__ = "AASA Checker Team"

from aasa_checker.exceptions import (
    AASACheckerError,
    FetchError,
    SignatureVerificationError,
    VerificationTimeoutError,
    ManifestDecodeError,
    DomainNormalizationError,
)
from aasa_checker.enums import (
    FailureReason,
    ContentKind,
    DetailsShape,
    LogLevel,
)
from aasa_checker.models import (
    FetchedManifest,
    VerificationResult,
    VerificationError,
    CheckOutcome,
)
from aasa_checker.domain_normalizer import normalize_domain
from aasa_checker.manifest import (
    ArrayDetails,
    MappingDetails,
    parse_details,
    is_structurally_valid,
    build_identifier_pattern,
    is_identifier_present,
)
from aasa_checker.manifest_decoder import decode_manifest
from aasa_checker.config import (
    HTTPConfig,
    VerifierConfig,
    LoggingConfig,
    CheckerConfig,
    create_default_config,
    load_config_from_env,
    load_config_from_file,
    save_config_to_file,
)
from aasa_checker.audit_logger import (
    AuditLogger,
    LogEntry,
)
from aasa_checker.content_fetcher import (
    ContentFetcher,
    classify_content_type,
    manifest_url,
)
from aasa_checker.signature_verifier import (
    EnvelopeVerifier,
    OpenSSLEnvelopeVerifier,
)
from aasa_checker.orchestrator import (
    DomainAssociationChecker,
    check_domain,
)
from aasa_checker.self_test import (
    SelfTest,
    SelfTestResult,
    ToolCheckResult,
    ConfigValidationResult,
    run_self_test,
)
from aasa_checker.cli import (
    main as cli_main,
    create_parser,
)

__all__ = [
    # Exceptions
    "AASACheckerError",
    "FetchError",
    "SignatureVerificationError",
    "VerificationTimeoutError",
    "ManifestDecodeError",
    "DomainNormalizationError",
    # Enums
    "FailureReason",
    "ContentKind",
    "DetailsShape",
    "LogLevel",
    # Models
    "FetchedManifest",
    "VerificationResult",
    "VerificationError",
    "CheckOutcome",
    # Domain normalization
    "normalize_domain",
    # Manifest structure
    "ArrayDetails",
    "MappingDetails",
    "parse_details",
    "is_structurally_valid",
    "build_identifier_pattern",
    "is_identifier_present",
    "decode_manifest",
    # Configuration
    "HTTPConfig",
    "VerifierConfig",
    "LoggingConfig",
    "CheckerConfig",
    "create_default_config",
    "load_config_from_env",
    "load_config_from_file",
    "save_config_to_file",
    # Logging
    "AuditLogger",
    "LogEntry",
    # Pipeline
    "ContentFetcher",
    "classify_content_type",
    "manifest_url",
    "EnvelopeVerifier",
    "OpenSSLEnvelopeVerifier",
    "DomainAssociationChecker",
    "check_domain",
    # Self-Test
    "SelfTest",
    "SelfTestResult",
    "ToolCheckResult",
    "ConfigValidationResult",
    "run_self_test",
    # CLI
    "cli_main",
    "create_parser",
]
