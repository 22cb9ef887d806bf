"""
Domain association manifest structure.

The ``applinks.details`` collection comes in two shapes::

    [{"appID": "ABCDE12345.com.foo.App", "paths": ["*"]}]     # array
    {"ABCDE12345.com.foo.App": {"paths": ["*"]}}              # mapping

Both are modeled as variants of AppLinkDetails exposing the same two
queries: whether every entry is well formed, and whether an identifier
pattern is authorized. Everything here is pure.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional, Pattern, Union

from .enums import DetailsShape


def _has_paths(entry: Any) -> bool:
    return isinstance(entry, dict) and isinstance(entry.get("paths"), list)


@dataclass(frozen=True)
class ArrayDetails:
    """Details given as a list of ``{appID, paths}`` entries."""

    entries: tuple

    shape = DetailsShape.ARRAY

    def is_well_formed(self) -> bool:
        return all(
            _has_paths(entry) and isinstance(entry.get("appID"), str)
            for entry in self.entries
        )

    def authorizes(self, pattern: Pattern[str]) -> bool:
        for entry in self.entries:
            if not isinstance(entry, dict):
                continue
            app_id = entry.get("appID")
            if isinstance(app_id, str) and pattern.search(app_id) and _has_paths(entry):
                return True
        return False


@dataclass(frozen=True)
class MappingDetails:
    """Details given as a mapping from app identifier to ``{paths}``."""

    entries: tuple  # (app_id, value) pairs, in document order

    shape = DetailsShape.MAPPING

    def is_well_formed(self) -> bool:
        return all(_has_paths(value) for _, value in self.entries)

    def authorizes(self, pattern: Pattern[str]) -> bool:
        return any(
            pattern.search(app_id) and _has_paths(value)
            for app_id, value in self.entries
        )


AppLinkDetails = Union[ArrayDetails, MappingDetails]


class _UnknownDetails:
    """Details of a type that is neither list nor mapping."""

    shape = None

    def is_well_formed(self) -> bool:
        return False

    def authorizes(self, pattern: Pattern[str]) -> bool:
        return False


def parse_details(document: Any) -> Optional[Union[AppLinkDetails, _UnknownDetails]]:
    """
    Extract ``applinks.details`` as a tagged variant.

    Returns None when the top-level keys are missing or empty.
    """
    if not isinstance(document, dict):
        return None
    applinks = document.get("applinks")
    if not applinks or not isinstance(applinks, dict):
        return None
    details = applinks.get("details")
    if isinstance(details, list):
        return ArrayDetails(tuple(details))
    if isinstance(details, dict):
        return MappingDetails(tuple(details.items()))
    # An empty list or mapping is handled above; any other falsy value is absent.
    if not details:
        return None
    return _UnknownDetails()


def is_structurally_valid(document: Any) -> bool:
    """Whole-document structural check; there is no partial validity."""
    details = parse_details(document)
    return details is not None and details.is_well_formed()


def build_identifier_pattern(
    bundle_identifier: str,
    team_identifier: Optional[str] = None,
) -> Pattern[str]:
    """
    Pattern matching app identifiers that end with the bundle identifier.

    With a team identifier the match must be ``<team>.<bundle>`` at the end.
    Both identifiers are matched literally.
    """
    expression = re.escape(bundle_identifier) + "$"
    if team_identifier:
        expression = re.escape(team_identifier) + r"\." + expression
    return re.compile(expression)


def is_identifier_present(
    document: Any,
    bundle_identifier: str,
    team_identifier: Optional[str] = None,
) -> bool:
    """True if any details entry authorizes the given application."""
    details = parse_details(document)
    if details is None:
        return False
    return details.authorizes(build_identifier_pattern(bundle_identifier, team_identifier))
