"""
Manifest decoding.

Turns payload bytes into a VerificationResult: JSON parsing first, then the
structural check and, when a bundle identifier is given, the identifier check.
"""

import json
from typing import Optional

from .exceptions import ManifestDecodeError
from .manifest import is_identifier_present, is_structurally_valid
from .models import VerificationResult


def decode_manifest(
    payload: bytes,
    bundle_identifier: Optional[str] = None,
    team_identifier: Optional[str] = None,
    encrypted: bool = False,
) -> VerificationResult:
    """
    Decode and evaluate a manifest payload.

    Args:
        payload: Raw JSON bytes (plain body or verified envelope content)
        bundle_identifier: Application to look for, if any
        team_identifier: Optional team prefix for the bundle identifier
        encrypted: Whether the payload came out of a signed envelope

    Returns:
        VerificationResult; identifier_found is None without a bundle identifier

    Raises:
        ManifestDecodeError: If the payload is not well-formed JSON
    """
    try:
        document = json.loads(payload)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, UnicodeDecodeError and nesting too deep for the parser
        raise ManifestDecodeError(
            code="invalid_json",
            message=f"Manifest is not valid JSON: {e}",
            details={"payload_size": len(payload), "encrypted": encrypted},
        ) from e

    structurally_valid = is_structurally_valid(document)

    identifier_found = None
    if bundle_identifier:
        identifier_found = structurally_valid and is_identifier_present(
            document, bundle_identifier, team_identifier
        )

    return VerificationResult(
        encrypted=encrypted,
        document=document,
        structurally_valid=structurally_valid,
        identifier_found=identifier_found,
    )
