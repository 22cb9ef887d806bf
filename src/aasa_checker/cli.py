"""
Command-line interface for the AASA checker.

Commands:
- check: Check one domain's apple-app-site-association manifest
- check-list: Check many domains from a file, concurrently
- self-test: Validate configuration and the verification tool
- config: Show or initialize a configuration file
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .audit_logger import AuditLogger
from .config import (
    CheckerConfig,
    create_default_config,
    load_config_from_env,
    load_config_from_file,
    save_config_to_file,
)
from .enums import LogLevel
from .models import CheckOutcome
from .orchestrator import DomainAssociationChecker
from .self_test import run_self_test


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

DEFAULT_CONFIG_PATH = Path.home() / ".aasa_checker" / "config.json"


def outcome_passed(outcome: CheckOutcome) -> bool:
    """A check passes when the manifest is valid and, if asked, authorizes the app."""
    if not outcome.ok:
        return False
    result = outcome.result
    return result.structurally_valid and result.identifier_found is not False


def format_outcome(outcome: CheckOutcome) -> str:
    """Human-readable multi-line summary of one outcome."""
    lines = [f"{outcome.domain}: {'PASS' if outcome_passed(outcome) else 'FAIL'}"]
    if outcome.error:
        lines.append(f"  error: {outcome.error.reason.value}")
        if outcome.error.message:
            lines.append(f"  detail: {outcome.error.message}")
    elif outcome.result:
        result = outcome.result
        lines.append(f"  signed: {'yes' if result.encrypted else 'no'}")
        lines.append(f"  structure valid: {'yes' if result.structurally_valid else 'no'}")
        if result.identifier_found is not None:
            lines.append(f"  app identifier found: {'yes' if result.identifier_found else 'no'}")
    lines.append(f"  duration: {outcome.duration_ms:.1f}ms")
    return "\n".join(lines)


def resolve_config(config_path: Optional[str]) -> Optional[CheckerConfig]:
    """Config from an explicit file, otherwise from the environment / .env."""
    if config_path:
        return load_config_from_file(Path(config_path))
    return load_config_from_env()


def create_logger(config: CheckerConfig, verbose: bool) -> Optional[AuditLogger]:
    """Verbose runs log everything; otherwise only the configured level and up."""
    try:
        if verbose:
            return AuditLogger(output_format=config.logging.output_format, level=LogLevel.DEBUG)
        return AuditLogger.from_config(config.logging)
    except ValueError as e:
        print(f"Warning: invalid logging config ({e}), using defaults", file=sys.stderr)
        return AuditLogger(level=LogLevel.DEBUG if verbose else LogLevel.INFO)


async def check_single_domain(
    domain: str,
    config: CheckerConfig,
    bundle_identifier: Optional[str] = None,
    team_identifier: Optional[str] = None,
    allow_unencrypted: bool = False,
    as_json: bool = False,
    verbose: bool = False,
) -> int:
    """Check one domain and print the outcome. Returns the exit code."""
    logger = create_logger(config, verbose)

    async with DomainAssociationChecker(config=config, logger=logger) as checker:
        outcome = await checker.check(
            domain,
            bundle_identifier=bundle_identifier,
            team_identifier=team_identifier,
            allow_unencrypted=allow_unencrypted,
        )

    if as_json:
        print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_outcome(outcome))

    return EXIT_OK if outcome_passed(outcome) else EXIT_FAILED


async def check_domain_list(
    domains_file: Path,
    config: CheckerConfig,
    bundle_identifier: Optional[str] = None,
    team_identifier: Optional[str] = None,
    allow_unencrypted: bool = False,
    output_file: Optional[Path] = None,
    as_json: bool = False,
    verbose: bool = False,
) -> int:
    """Check every domain listed in a file (one per line, '#' comments)."""
    try:
        with open(domains_file, "r", encoding="utf-8") as f:
            domains = [
                line.strip() for line in f
                if line.strip() and not line.lstrip().startswith("#")
            ]
    except FileNotFoundError:
        print(f"Error: File not found: {domains_file}", file=sys.stderr)
        return EXIT_USAGE
    except OSError as e:
        print(f"Error reading file: {e}", file=sys.stderr)
        return EXIT_USAGE

    if not domains:
        print("Error: No domains found in file", file=sys.stderr)
        return EXIT_USAGE

    logger = create_logger(config, verbose)

    async with DomainAssociationChecker(config=config, logger=logger) as checker:
        outcomes = await checker.check_many(
            domains,
            bundle_identifier=bundle_identifier,
            team_identifier=team_identifier,
            allow_unencrypted=allow_unencrypted,
        )

    passed = sum(1 for outcome in outcomes if outcome_passed(outcome))
    results = [outcome.to_dict() for outcome in outcomes]

    if as_json:
        print(json.dumps(results, indent=2, ensure_ascii=False))
    else:
        for outcome in outcomes:
            print(format_outcome(outcome))
        print(f"\nSummary: {passed}/{len(outcomes)} domain(s) passed")

    if output_file:
        try:
            output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(output_file, "w", encoding="utf-8") as f:
                json.dump(results, f, indent=2, ensure_ascii=False)
            print(f"Results written to: {output_file}")
        except OSError as e:
            print(f"Error writing results: {e}", file=sys.stderr)

    return EXIT_OK if passed == len(outcomes) else EXIT_FAILED


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the 'check' command."""
    config = resolve_config(args.config)
    if config is None:
        print(f"Error: Could not load config from {args.config}", file=sys.stderr)
        return EXIT_USAGE

    return asyncio.run(check_single_domain(
        domain=args.domain,
        config=config,
        bundle_identifier=args.bundle_id,
        team_identifier=args.team_id,
        allow_unencrypted=args.allow_unencrypted,
        as_json=args.json,
        verbose=args.verbose,
    ))


def cmd_check_list(args: argparse.Namespace) -> int:
    """Handle the 'check-list' command."""
    config = resolve_config(args.config)
    if config is None:
        print(f"Error: Could not load config from {args.config}", file=sys.stderr)
        return EXIT_USAGE

    return asyncio.run(check_domain_list(
        domains_file=Path(args.file),
        config=config,
        bundle_identifier=args.bundle_id,
        team_identifier=args.team_id,
        allow_unencrypted=args.allow_unencrypted,
        output_file=Path(args.output) if args.output else None,
        as_json=args.json,
        verbose=args.verbose,
    ))


def cmd_self_test(args: argparse.Namespace) -> int:
    """Handle the 'self-test' command."""
    config = resolve_config(args.config)
    if config is None:
        print(f"Error: Could not load config from {args.config}", file=sys.stderr)
        return EXIT_USAGE

    result = asyncio.run(run_self_test(config=config, print_output=True))
    return EXIT_OK if result.success else EXIT_FAILED


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH

    if args.action == "show":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"No configuration found at: {config_path}")
            print("Use 'config init' to create a default configuration.")
            return EXIT_FAILED

        print(f"Configuration from: {config_path}")
        print(f"  HTTP timeout: {config.http.timeout}s")
        print(f"  openssl: {config.verifier.openssl_path}")
        print(f"  Verify timeout: {config.verifier.timeout}s")
        print(f"  Verify signer: {config.verifier.verify_signer}")
        print(f"  Max concurrency: {config.max_concurrency}")
        print(f"  Log level: {config.logging.level}")
        return EXIT_OK

    if args.action == "init":
        if config_path.exists() and not args.force:
            print(f"Configuration already exists at: {config_path}")
            print("Use --force to overwrite.")
            return EXIT_FAILED

        if save_config_to_file(create_default_config(), config_path):
            print(f"Configuration created at: {config_path}")
            return EXIT_OK
        return EXIT_FAILED

    return EXIT_USAGE


def _add_check_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--bundle-id", "-b",
        help="Application bundle identifier to look for (e.g., com.foo.App)",
    )
    parser.add_argument(
        "--team-id", "-t",
        help="Team identifier prefix (only used with --bundle-id)",
    )
    parser.add_argument(
        "--allow-unencrypted", "-u",
        action="store_true",
        help="Accept unsigned JSON manifests",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file (default: environment / .env)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging to stderr",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="aasa-checker",
        description="Validate a domain's apple-app-site-association manifest",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser(
        "check",
        help="Check a single domain",
    )
    check_parser.add_argument(
        "domain",
        help="Domain to check (e.g., example.com or https://example.com/path)",
    )
    _add_check_arguments(check_parser)
    check_parser.set_defaults(func=cmd_check)

    check_list_parser = subparsers.add_parser(
        "check-list",
        help="Check multiple domains from a file",
    )
    check_list_parser.add_argument(
        "file",
        help="Path to file containing domains (one per line)",
    )
    check_list_parser.add_argument(
        "--output", "-o",
        help="Path to write results as JSON",
    )
    _add_check_arguments(check_list_parser)
    check_list_parser.set_defaults(func=cmd_check_list)

    self_test_parser = subparsers.add_parser(
        "self-test",
        help="Validate configuration and the openssl tool",
    )
    self_test_parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    self_test_parser.set_defaults(func=cmd_self_test)

    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
