"""
Property-based tests for AuditLogger.
"""

import json
from io import StringIO

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from aasa_checker.audit_logger import AuditLogger, LogEntry
from aasa_checker.config import LoggingConfig
from aasa_checker.enums import LogLevel


component_strategy = st.sampled_from(["ContentFetcher", "OpenSSLEnvelopeVerifier", "DomainAssociationChecker"])
message_strategy = st.text(min_size=1, max_size=80)
level_strategy = st.sampled_from(list(LogLevel))

SEVERITY_ORDER = [LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARN, LogLevel.ERROR]


class TestLevelFiltering:
    """Entries below the minimum level are dropped; all others are emitted."""

    @given(minimum=level_strategy, level=level_strategy, message=message_strategy)
    @settings(max_examples=100)
    def test_filtering(self, minimum: LogLevel, level: LogLevel, message: str) -> None:
        stream = StringIO()
        logger = AuditLogger(output_format="json", output_stream=stream, level=minimum)

        entry = logger.log(level, "ContentFetcher", message)

        if SEVERITY_ORDER.index(level) >= SEVERITY_ORDER.index(minimum):
            assert isinstance(entry, LogEntry)
            assert logger.entries == [entry]
            assert stream.getvalue().count("\n") == 1
        else:
            assert entry is None
            assert logger.entries == []
            assert stream.getvalue() == ""

    def test_from_config(self) -> None:
        logger = AuditLogger.from_config(LoggingConfig(level="warn", output_format="json"), StringIO())

        assert logger.level is LogLevel.WARN
        assert logger.output_format == "json"
        assert logger.info("X", "dropped") is None
        assert logger.warn("X", "kept") is not None

    def test_from_config_rejects_unknown_level(self) -> None:
        with pytest.raises(ValueError):
            AuditLogger.from_config(LoggingConfig(level="verbose"))

    def test_rejects_unknown_format(self) -> None:
        with pytest.raises(ValueError):
            AuditLogger(output_format="xml")


class TestOutputFormats:
    """JSON lines parse back to the entry; text lines carry level and component."""

    @given(component=component_strategy, message=message_strategy, level=level_strategy)
    @settings(max_examples=100)
    def test_json_line_matches_entry(self, component: str, message: str, level: LogLevel) -> None:
        stream = StringIO()
        logger = AuditLogger(output_format="json", output_stream=stream, level=LogLevel.DEBUG)

        entry = logger.log(level, component, message, {"domain": "example.com"})
        parsed = json.loads(stream.getvalue())

        assert parsed["timestamp"] == entry.timestamp
        assert parsed["level"] == level.value
        assert parsed["component"] == component
        assert parsed["message"] == message
        assert parsed["data"] == {"domain": "example.com"}

    def test_text_line(self) -> None:
        stream = StringIO()
        logger = AuditLogger(output_format="text", output_stream=stream)

        logger.info("ContentFetcher", "Fetched manifest", {"status_code": 200})
        line = stream.getvalue().strip()

        assert " INFO [ContentFetcher] Fetched manifest " in line
        assert line.endswith('{"status_code": 200}')

    def test_both_formats(self) -> None:
        stream = StringIO()
        logger = AuditLogger(output_format="both", output_stream=stream)

        logger.warn("X", "careful")
        lines = stream.getvalue().splitlines()

        assert len(lines) == 2
        assert json.loads(lines[0])["level"] == "warn"
        assert "WARN [X] careful" in lines[1]


class TestErrorLogging:
    """log_error attaches the exception and request context."""

    def test_error_context(self) -> None:
        logger = AuditLogger(output_format="json", output_stream=StringIO())

        entry = logger.log_error(
            "ContentFetcher",
            "Fetch failed",
            error=ConnectionError("refused"),
            request_url="https://example.com/apple-app-site-association",
            additional_data={"reason": "https_failure"},
        )

        assert entry.level is LogLevel.ERROR
        assert entry.data == {
            "reason": "https_failure",
            "error_message": "refused",
            "error_type": "ConnectionError",
            "request_url": "https://example.com/apple-app-site-association",
        }

    def test_additional_data_is_not_mutated(self) -> None:
        logger = AuditLogger(output_format="json", output_stream=StringIO())
        extra = {"domain": "example.com"}

        logger.log_error("X", "failed", error=RuntimeError("boom"), additional_data=extra)

        assert extra == {"domain": "example.com"}


class TestSensitiveDataMasking:
    """Values under sensitive-looking keys never reach the output."""

    @given(
        key=st.sampled_from(["token", "api_key", "Authorization", "session_cookie", "client_secret"]),
        secret=st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789", min_size=12, max_size=40).map(
            lambda s: "s3cr3t-" + s
        ),
    )
    @settings(max_examples=100)
    def test_secrets_are_masked(self, key: str, secret: str) -> None:
        stream = StringIO()
        logger = AuditLogger(output_format="both", output_stream=stream)

        entry = logger.info("X", "request", {key: secret, "nested": {key: secret}, "items": [{key: secret}]})

        assert secret not in stream.getvalue()
        assert entry.data[key] == AuditLogger.MASK_VALUE
        assert entry.data["nested"][key] == AuditLogger.MASK_VALUE
        assert entry.data["items"][0][key] == AuditLogger.MASK_VALUE

    def test_ordinary_keys_are_kept(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        data = {"domain": "example.com", "bundle_identifier": "com.foo.App", "http_status_code": 404}

        assert logger.mask_sensitive_data(data) == data

    def test_clear_entries(self) -> None:
        logger = AuditLogger(output_stream=StringIO())
        logger.info("X", "one")
        logger.clear_entries()
        assert logger.entries == []
