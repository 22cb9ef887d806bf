"""
Verification orchestrator for the AASA checker.

This module sequences the pipeline for one domain:

    Fetching -> Classifying -> Decoding (plain)
                            -> Verifying signature -> Decoding (verified)

and turns every stage failure into a VerificationError with exactly one
reason flag set. Nothing raised inside a stage escapes ``check``.
"""

import asyncio
import time
from typing import Iterable, Optional

from .audit_logger import AuditLogger
from .config import CheckerConfig, create_default_config
from .content_fetcher import ContentFetcher
from .domain_normalizer import normalize_domain
from .enums import ContentKind, FailureReason
from .exceptions import AASACheckerError, ManifestDecodeError
from .manifest_decoder import decode_manifest
from .models import CheckOutcome, FetchedManifest, VerificationError, VerificationResult
from .signature_verifier import EnvelopeVerifier, OpenSSLEnvelopeVerifier


class DomainAssociationChecker:
    """
    Checks that a domain publishes a valid app-site-association manifest.

    Holds one reusable HTTP client; independent checks may run concurrently.
    """

    COMPONENT = "DomainAssociationChecker"

    def __init__(
        self,
        config: Optional[CheckerConfig] = None,
        fetcher: Optional[ContentFetcher] = None,
        verifier: Optional[EnvelopeVerifier] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the checker.

        Args:
            config: Checker configuration (defaults if omitted)
            fetcher: Manifest fetcher; built from config.http if omitted
            verifier: Envelope verifier; OpenSSL-backed if omitted
            logger: Optional logger shared with the default components
        """
        self._config = config or create_default_config()
        self._logger = logger
        self._fetcher = fetcher or ContentFetcher(self._config.http, logger=logger)
        self._verifier = verifier or OpenSSLEnvelopeVerifier(self._config.verifier, logger=logger)

    async def __aenter__(self) -> "DomainAssociationChecker":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._fetcher.close()

    async def check(
        self,
        domain: str,
        bundle_identifier: Optional[str] = None,
        team_identifier: Optional[str] = None,
        allow_unencrypted: bool = False,
    ) -> CheckOutcome:
        """
        Run the full verification pipeline for one domain.

        Args:
            domain: Domain, optionally with scheme and path
            bundle_identifier: Application bundle identifier to look for
            team_identifier: Team prefix; only used with a bundle identifier
            allow_unencrypted: Accept plain JSON manifests

        Returns:
            CheckOutcome holding either a VerificationResult or a VerificationError
        """
        start_time = time.perf_counter()
        host = domain
        fetching = True

        try:
            host = normalize_domain(domain)
            self._log_info(
                f"Starting check for {host}",
                {
                    "raw_domain": domain,
                    "domain": host,
                    "bundle_identifier": bundle_identifier,
                    "team_identifier": team_identifier,
                    "allow_unencrypted": allow_unencrypted,
                },
            )

            manifest = await self._fetcher.fetch(host, allow_unencrypted)
            fetching = False
            result = await self._evaluate(manifest, bundle_identifier, team_identifier)

        except AASACheckerError as e:
            error = self._to_verification_error(e)
            self._log_error(f"Check failed for {host}: {e.message}", e, {"reason": error.reason.value})
            return CheckOutcome(domain=host, error=error, duration_ms=self._elapsed_ms(start_time))

        except Exception as e:
            # Anything unforeseen still leaves as data, never as an exception
            reason = FailureReason.HTTPS_FAILURE if fetching else FailureReason.SIGNATURE_VERIFICATION_FAILED
            self._log_error(f"Unexpected error while checking {host}", e, {"reason": reason.value})
            return CheckOutcome(
                domain=host,
                error=VerificationError(reason=reason, message=str(e)),
                duration_ms=self._elapsed_ms(start_time),
            )

        duration_ms = self._elapsed_ms(start_time)
        self._log_info(
            f"Check completed for {host}",
            {
                "domain": host,
                "encrypted": result.encrypted,
                "structurally_valid": result.structurally_valid,
                "identifier_found": result.identifier_found,
                "duration_ms": duration_ms,
            },
        )
        return CheckOutcome(domain=host, result=result, duration_ms=duration_ms)

    async def check_many(
        self,
        domains: Iterable[str],
        bundle_identifier: Optional[str] = None,
        team_identifier: Optional[str] = None,
        allow_unencrypted: bool = False,
    ) -> list[CheckOutcome]:
        """Check several domains concurrently, preserving input order."""
        semaphore = asyncio.Semaphore(max(1, self._config.max_concurrency))

        async def bounded(domain: str) -> CheckOutcome:
            async with semaphore:
                return await self.check(
                    domain,
                    bundle_identifier=bundle_identifier,
                    team_identifier=team_identifier,
                    allow_unencrypted=allow_unencrypted,
                )

        return list(await asyncio.gather(*(bounded(d) for d in domains)))

    async def _evaluate(
        self,
        manifest: FetchedManifest,
        bundle_identifier: Optional[str],
        team_identifier: Optional[str],
    ) -> VerificationResult:
        if manifest.kind is ContentKind.JSON:
            try:
                return decode_manifest(
                    manifest.body,
                    bundle_identifier,
                    team_identifier,
                    encrypted=False,
                )
            except ManifestDecodeError as e:
                # Served as JSON but may still be a signed envelope
                self._log_info(
                    f"{manifest.domain} is not plain JSON, trying signature verification",
                    {"domain": manifest.domain, "content_type": manifest.content_type, "error": e.message},
                )

        payload = await self._verifier.verify_envelope(manifest.body)
        return decode_manifest(
            payload,
            bundle_identifier,
            team_identifier,
            encrypted=True,
        )

    def _to_verification_error(self, error: AASACheckerError) -> VerificationError:
        reason = error.reason or FailureReason.SIGNATURE_VERIFICATION_FAILED
        return VerificationError(
            reason=reason,
            message=error.message,
            http_status_code=error.details.get("http_status_code"),
        )

    def _elapsed_ms(self, start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000

    def _log_info(self, message: str, data: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.info(self.COMPONENT, message, data)

    def _log_error(self, message: str, error: Optional[BaseException] = None, data: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.log_error(self.COMPONENT, message, error=error, additional_data=data)


async def check_domain(
    domain: str,
    bundle_identifier: Optional[str] = None,
    team_identifier: Optional[str] = None,
    allow_unencrypted: bool = False,
    config: Optional[CheckerConfig] = None,
    logger: Optional[AuditLogger] = None,
) -> CheckOutcome:
    """Check a single domain with a short-lived checker."""
    async with DomainAssociationChecker(config=config, logger=logger) as checker:
        return await checker.check(
            domain,
            bundle_identifier=bundle_identifier,
            team_identifier=team_identifier,
            allow_unencrypted=allow_unencrypted,
        )
