"""
Domain normalization.

Reduces user input such as ``https://Example.com/foo/bar`` to the bare host
that the manifest is fetched from (``example.com``).
"""

import re

import idna

from .exceptions import DomainNormalizationError


SCHEME_PATTERN = re.compile(r"^\s*https?://", re.IGNORECASE)

# Characters that can never appear in a host name (RFC 1035, RFC 5891).
# ':' stays allowed for an explicit port.
FORBIDDEN_CHARS_PATTERN = re.compile(
    r'[\x00-\x1f\x7f'
    r'\s'
    r'!@#$%^&*()+=\[\]{}|\\;"\'<>,?`~]'
)


def strip_scheme_and_path(domain: str) -> str:
    """Remove a leading http(s) scheme and everything from the first '/'."""
    host = SCHEME_PATTERN.sub("", domain.strip())
    return host.split("/", 1)[0]


def normalize_domain(domain: str) -> str:
    """
    Convert a domain (optionally with scheme and path) to the fetch host.

    The result is lowercase, IDNA-encoded when it contains non-ASCII
    characters, and carries neither scheme nor path.

    Raises:
        DomainNormalizationError: If nothing resolvable is left
    """
    if not domain or not domain.strip():
        raise DomainNormalizationError(
            code="empty_input",
            message="Domain input is empty",
            details={"raw_input": domain},
        )

    host = strip_scheme_and_path(domain).rstrip(".").lower()
    if not host:
        raise DomainNormalizationError(
            code="empty_host",
            message=f"No host name in {domain!r}",
            details={"raw_input": domain},
        )

    forbidden = FORBIDDEN_CHARS_PATTERN.findall(host)
    if forbidden:
        raise DomainNormalizationError(
            code="forbidden_chars",
            message="Domain contains forbidden characters",
            details={"raw_input": domain, "forbidden_chars": forbidden},
        )

    if any(ord(c) > 127 for c in host):
        name, sep, port = host.partition(":")
        try:
            name = idna.encode(name, uts46=True).decode("ascii")
        except idna.IDNAError as e:
            raise DomainNormalizationError(
                code="idna_error",
                message=f"IDNA encoding failed: {e}",
                details={"raw_input": domain, "idna_error": str(e)},
            ) from e
        host = f"{name}{sep}{port}"

    return host
