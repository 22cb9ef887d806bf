"""
Property-based tests for configuration loading and saving.
"""

import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

from hypothesis import given, settings
from hypothesis import strategies as st

from aasa_checker.config import (
    CheckerConfig,
    HTTPConfig,
    LoggingConfig,
    VerifierConfig,
    create_default_config,
    load_config_from_env,
    load_config_from_file,
    save_config_to_file,
)


# Strategies for generating valid configuration objects

@st.composite
def checker_config_strategy(draw) -> CheckerConfig:
    """Generate valid CheckerConfig objects."""
    return CheckerConfig(
        http=HTTPConfig(
            timeout=draw(st.floats(min_value=0.1, max_value=120.0)),
            user_agent=draw(st.text(
                alphabet="abcdefghijklmnopqrstuvwxyz0123456789-/. ",
                min_size=1,
                max_size=40,
            )),
            verify_tls=draw(st.booleans()),
        ),
        verifier=VerifierConfig(
            openssl_path=draw(st.sampled_from(["openssl", "/usr/bin/openssl", "/opt/homebrew/bin/openssl"])),
            timeout=draw(st.floats(min_value=0.1, max_value=120.0)),
            temp_dir=draw(st.one_of(st.none(), st.just(Path("/tmp/aasa")))),
            verify_signer=draw(st.booleans()),
        ),
        logging=LoggingConfig(
            level=draw(st.sampled_from(["debug", "info", "warn", "error"])),
            output_format=draw(st.sampled_from(["json", "text", "both"])),
        ),
        max_concurrency=draw(st.integers(min_value=1, max_value=100)),
    )


class TestConfigFileRoundTrip:
    """Saving then loading a configuration yields an equal configuration."""

    @given(config=checker_config_strategy())
    @settings(max_examples=100)
    def test_save_then_load(self, config: CheckerConfig) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "nested" / "config.json"

            assert save_config_to_file(config, path)
            loaded = load_config_from_file(path)

        assert loaded == config


class TestConfigFileErrors:
    """Unreadable files give None instead of raising."""

    def test_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            assert load_config_from_file(Path(temp_dir) / "absent.json") is None

    def test_malformed_json(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            assert load_config_from_file(path) is None

    def test_wrong_types(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.json"
            path.write_text(json.dumps({"http": {"timeout": "soon"}}), encoding="utf-8")
            assert load_config_from_file(path) is None

    @given(
        section=st.sampled_from([("http", "verify_tls"), ("verifier", "verify_signer")]),
        value=st.one_of(st.sampled_from(["false", "true", "", "0"]), st.integers(), st.none()),
    )
    @settings(max_examples=50)
    def test_non_boolean_flags_are_rejected(self, section, value) -> None:
        name, key = section
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.json"
            path.write_text(json.dumps({name: {key: value}}), encoding="utf-8")
            assert load_config_from_file(path) is None

    def test_boolean_flags_are_read(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.json"
            path.write_text(
                json.dumps({"http": {"verify_tls": False}, "verifier": {"verify_signer": True}}),
                encoding="utf-8",
            )
            config = load_config_from_file(path)

        assert config.http.verify_tls is False
        assert config.verifier.verify_signer is True

    def test_empty_object_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.json"
            path.write_text("{}", encoding="utf-8")
            assert load_config_from_file(path) == create_default_config()


class TestEnvironmentConfig:
    """Environment variables (and .env files) override defaults."""

    def test_environment_values(self) -> None:
        env = {
            "AASA_HTTP_TIMEOUT": "3.5",
            "AASA_VERIFY_TIMEOUT": "7",
            "AASA_OPENSSL_PATH": "/usr/local/bin/openssl",
            "AASA_LOG_LEVEL": "DEBUG",
            "AASA_LOG_FORMAT": "json",
            "AASA_MAX_CONCURRENCY": "4",
        }
        with tempfile.TemporaryDirectory() as temp_dir:
            with patch.dict(os.environ, env, clear=True):
                config = load_config_from_env(Path(temp_dir) / "absent.env")

        assert config.http.timeout == 3.5
        assert config.verifier.timeout == 7.0
        assert config.verifier.openssl_path == "/usr/local/bin/openssl"
        assert config.logging.level == "debug"
        assert config.logging.output_format == "json"
        assert config.max_concurrency == 4

    def test_invalid_numbers_fall_back_to_defaults(self) -> None:
        env = {"AASA_HTTP_TIMEOUT": "fast", "AASA_MAX_CONCURRENCY": "many"}
        with tempfile.TemporaryDirectory() as temp_dir:
            with patch.dict(os.environ, env, clear=True):
                config = load_config_from_env(Path(temp_dir) / "absent.env")

        defaults = create_default_config()
        assert config.http.timeout == defaults.http.timeout
        assert config.max_concurrency == defaults.max_concurrency

    def test_dotenv_file_is_read(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            dotenv = Path(temp_dir) / ".env"
            dotenv.write_text("AASA_VERIFY_TIMEOUT=2.5\nAASA_OPENSSL_PATH=/bin/fake-openssl\n", encoding="utf-8")
            with patch.dict(os.environ, {}, clear=True):
                config = load_config_from_env(dotenv)

        assert config.verifier.timeout == 2.5
        assert config.verifier.openssl_path == "/bin/fake-openssl"

    def test_process_environment_wins_over_dotenv(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            dotenv = Path(temp_dir) / ".env"
            dotenv.write_text("AASA_VERIFY_TIMEOUT=2.5\n", encoding="utf-8")
            with patch.dict(os.environ, {"AASA_VERIFY_TIMEOUT": "9"}, clear=True):
                config = load_config_from_env(dotenv)

        assert config.verifier.timeout == 9.0
