"""
Configuration for the AASA checker.

This module defines the configuration dataclasses (HTTP transport, envelope
verification, logging) and how they are created from defaults, a JSON file
or the process environment.
"""

import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from . import __version__


DEFAULT_USER_AGENT = f"aasa-checker/{__version__}"

LOG_LEVELS = ("debug", "info", "warn", "error")
LOG_FORMATS = ("json", "text", "both")


@dataclass
class HTTPConfig:
    """Manifest retrieval settings."""

    timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    verify_tls: bool = True


@dataclass
class VerifierConfig:
    """Signed envelope verification settings."""

    openssl_path: str = "openssl"
    timeout: float = 10.0
    temp_dir: Optional[Path] = None  # None -> system temp directory
    verify_signer: bool = False  # False mirrors `openssl smime -noverify`


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class CheckerConfig:
    """Main configuration combining all sub-configurations."""

    http: HTTPConfig = field(default_factory=HTTPConfig)
    verifier: VerifierConfig = field(default_factory=VerifierConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    max_concurrency: int = 10


def create_default_config() -> CheckerConfig:
    """Create a configuration with default settings."""
    return CheckerConfig()


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def load_config_from_env(dotenv_path: Optional[Path] = None) -> CheckerConfig:
    """
    Build a configuration from environment variables.

    A ``.env`` file is loaded first (without overriding variables already set).
    Unparseable numeric values fall back to their defaults.
    """
    load_dotenv(dotenv_path)

    defaults = create_default_config()
    temp_dir = os.getenv("AASA_TEMP_DIR")

    return CheckerConfig(
        http=HTTPConfig(
            timeout=_float_env("AASA_HTTP_TIMEOUT", defaults.http.timeout),
            user_agent=os.getenv("AASA_USER_AGENT", defaults.http.user_agent),
        ),
        verifier=VerifierConfig(
            openssl_path=os.getenv("AASA_OPENSSL_PATH", defaults.verifier.openssl_path),
            timeout=_float_env("AASA_VERIFY_TIMEOUT", defaults.verifier.timeout),
            temp_dir=Path(temp_dir) if temp_dir else None,
        ),
        logging=LoggingConfig(
            level=os.getenv("AASA_LOG_LEVEL", defaults.logging.level).lower(),
            output_format=os.getenv("AASA_LOG_FORMAT", defaults.logging.output_format).lower(),
        ),
        max_concurrency=_int_env("AASA_MAX_CONCURRENCY", defaults.max_concurrency),
    )


def _bool_value(section: dict, key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise TypeError(f"{key} must be true or false, got {value!r}")
    return value


def load_config_from_file(config_path: Path) -> Optional[CheckerConfig]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        CheckerConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        http_data = data.get("http", {})
        http = HTTPConfig(
            timeout=float(http_data.get("timeout", 10.0)),
            user_agent=http_data.get("user_agent", DEFAULT_USER_AGENT),
            verify_tls=_bool_value(http_data, "verify_tls", True),
        )

        verifier_data = data.get("verifier", {})
        temp_dir = verifier_data.get("temp_dir")
        verifier = VerifierConfig(
            openssl_path=verifier_data.get("openssl_path", "openssl"),
            timeout=float(verifier_data.get("timeout", 10.0)),
            temp_dir=Path(temp_dir) if temp_dir else None,
            verify_signer=_bool_value(verifier_data, "verify_signer", False),
        )

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", "info"),
            output_format=logging_data.get("output_format", "text"),
        )

        return CheckerConfig(
            http=http,
            verifier=verifier,
            logging=logging_config,
            max_concurrency=int(data.get("max_concurrency", 10)),
        )

    except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None
    except FileNotFoundError:
        return None


def save_config_to_file(config: CheckerConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    Returns:
        True if successful, False otherwise
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "http": {
                "timeout": config.http.timeout,
                "user_agent": config.http.user_agent,
                "verify_tls": config.http.verify_tls,
            },
            "verifier": {
                "openssl_path": config.verifier.openssl_path,
                "timeout": config.verifier.timeout,
                "temp_dir": str(config.verifier.temp_dir) if config.verifier.temp_dir else None,
                "verify_signer": config.verifier.verify_signer,
            },
            "logging": {
                "level": config.logging.level,
                "output_format": config.logging.output_format,
            },
            "max_concurrency": config.max_concurrency,
        }

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        return True

    except (OSError, TypeError) as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False
