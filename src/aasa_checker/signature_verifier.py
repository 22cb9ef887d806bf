"""
Signed envelope verification.

A signed manifest is a DER-encoded PKCS#7 / CMS SignedData structure with the
JSON manifest as its encapsulated content. Verification checks the signature
over that content and returns it. By default the signer's certificate chain
is NOT validated (``openssl smime -noverify``): the check is about envelope
integrity, not about who signed it.
"""

import asyncio
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Protocol, runtime_checkable

from .audit_logger import AuditLogger
from .config import VerifierConfig
from .exceptions import SignatureVerificationError, VerificationTimeoutError


@runtime_checkable
class EnvelopeVerifier(Protocol):
    """Anything that can unwrap a signed envelope into its payload."""

    async def verify_envelope(self, data: bytes) -> bytes:
        """
        Verify ``data`` and return the enclosed payload.

        Raises:
            SignatureVerificationError: If the envelope does not verify
            VerificationTimeoutError: If verification takes too long
        """
        ...


class OpenSSLEnvelopeVerifier:
    """
    Envelope verifier backed by the ``openssl smime`` command.

    openssl reads the envelope from a file, so every call writes the bytes to
    its own uniquely named temporary file and removes it afterwards, whatever
    the outcome. Concurrent calls for the same domain never share a file.
    """

    COMPONENT = "SignatureVerifier"
    TEMP_PREFIX = "aasa-"
    TEMP_SUFFIX = ".p7m"

    def __init__(
        self,
        config: Optional[VerifierConfig] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._config = config or VerifierConfig()
        self._logger = logger

    def build_command(self, path: str) -> list[str]:
        command = [
            self._config.openssl_path,
            "smime",
            "-verify",
            "-inform", "DER",
        ]
        if not self._config.verify_signer:
            command.append("-noverify")
        command.extend(["-in", path])
        return command

    async def verify_envelope(self, data: bytes) -> bytes:
        try:
            with self._scoped_temp_file(data) as path:
                return await self._run_openssl(path)
        except OSError as e:
            raise SignatureVerificationError(
                code="io_error",
                message=f"Could not stage envelope for verification: {e}",
                details={"error": str(e)},
            ) from e

    @contextmanager
    def _scoped_temp_file(self, data: bytes) -> Iterator[str]:
        """Write ``data`` to a fresh temporary file, removed on every exit path."""
        directory = str(self._config.temp_dir) if self._config.temp_dir else None
        fd, path = tempfile.mkstemp(
            prefix=self.TEMP_PREFIX,
            suffix=self.TEMP_SUFFIX,
            dir=directory,
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            yield path
        finally:
            self._remove(path)

    def _remove(self, path: str) -> None:
        try:
            Path(path).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            # Cleanup problems never replace the verification outcome
            if self._logger:
                self._logger.warn(
                    self.COMPONENT,
                    f"Failed to remove temporary envelope file: {e}",
                    {"path": path},
                )

    async def _run_openssl(self, path: str) -> bytes:
        command = self.build_command(path)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SignatureVerificationError(
                code="tool_unavailable",
                message=f"Could not run {self._config.openssl_path}: {e}",
                details={"command": command[0]},
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self._config.timeout,
            )
        except asyncio.TimeoutError as e:
            await self._terminate(process)
            raise VerificationTimeoutError(
                code="timeout",
                message=f"Envelope verification timed out after {self._config.timeout}s",
                details={"timeout": self._config.timeout},
            ) from e
        except BaseException:
            # Cancellation and interrupts must not leave openssl running
            await self._terminate(process)
            raise

        if process.returncode != 0:
            diagnostic = stderr.decode("utf-8", errors="replace").strip()
            if self._logger:
                self._logger.debug(
                    self.COMPONENT,
                    "openssl rejected envelope",
                    {"returncode": process.returncode, "stderr": diagnostic},
                )
            raise SignatureVerificationError(
                code="verification_failed",
                message=f"Envelope verification failed: {diagnostic or 'no diagnostic'}",
                details={"returncode": process.returncode, "stderr": diagnostic},
            )

        return stdout

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await asyncio.shield(process.wait())
