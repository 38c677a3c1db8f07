"""Ordering helpers for sorting and grouping findings.

Every comparator returns a negative, zero or positive integer and is meant to be
used through ``functools.cmp_to_key``.
"""

from __future__ import annotations

import re
from functools import cmp_to_key
from typing import Hashable, Iterable, List, Optional, Sequence, TypeVar

import semver

from vulnissues.models.vulnerability import SEVERITY_ORDER

T = TypeVar("T", bound=Hashable)

# semver only knows three numeric parts, so ``1.2.3.4`` is read as ``1.2.3-4``
# (the fourth part becomes a pre-release identifier).
_FOUR_PART_VERSION_RE = re.compile(r"(\d+\.\d+\.\d+)\.(.*)")
_COERCE_RE = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def compare_text(a: str, b: str) -> int:
    """Case-insensitive comparison, ascending."""
    a, b = a.lower(), b.lower()
    return (a > b) - (a < b)


def compare_severity(a: str, b: str) -> int:
    """Severity comparison, most severe first.

    Two equal values, or two values outside the known levels, compare equal.
    An unknown value sorts after every known level.
    """
    if a == b:
        return 0
    rank_a = SEVERITY_ORDER.index(a) if a in SEVERITY_ORDER else None
    rank_b = SEVERITY_ORDER.index(b) if b in SEVERITY_ORDER else None
    if rank_a is None and rank_b is None:
        return 0
    if rank_a is None:
        return 1
    if rank_b is None:
        return -1
    return _sign(rank_a - rank_b)


def normalize_four_part_version(version: str) -> str:
    match = _FOUR_PART_VERSION_RE.search(version)
    return f"{match.group(1)}-{match.group(2)}" if match else version


def _clean(version: str) -> Optional[semver.Version]:
    cleaned = version.strip().lstrip("=v").strip()
    try:
        return semver.Version.parse(cleaned)
    except (ValueError, TypeError):
        return None


def _coerce(version: str) -> Optional[semver.Version]:
    match = _COERCE_RE.search(version)
    if not match:
        return None
    major, minor, patch = (int(part or 0) for part in match.groups())
    return semver.Version(major, minor, patch)


def parse_version(version: str) -> Optional[semver.Version]:
    """Parse a version string into the nearest semantic version, or None."""
    normalized = normalize_four_part_version(version)
    return _clean(normalized) or _coerce(normalized)


def compare_version(a: str, b: str) -> int:
    """Semantic version comparison, highest version first.

    Strings that cannot be read as a version at all are compared as plain text.
    """
    parsed_a = parse_version(a)
    parsed_b = parse_version(b)
    if parsed_a is None or parsed_b is None:
        return (a < b) - (a > b)
    return _sign(parsed_b.compare(parsed_a))


def sort_versions(versions: Iterable[str]) -> List[str]:
    return sorted(versions, key=cmp_to_key(compare_version))


def compare_version_array(a: Sequence[str], b: Sequence[str]) -> int:
    """Compare version lists after sorting each highest-first.

    Only the shared prefix is compared, so ``["1.2.3"]`` and ``["1.2.3", "2.0.0"]``
    differ on the first slot (2.0.0 vs 1.2.3) while ``["1.2.3"]`` and
    ``["1.2.3", "1.0.0"]`` compare equal.
    """
    sorted_a = sort_versions(a)
    sorted_b = sort_versions(b)
    for version_a, version_b in zip(sorted_a, sorted_b):
        result = compare_version(version_a, version_b)
        if result != 0:
            return result
    return 0


def compare_text_array(a: Sequence[str], b: Sequence[str]) -> int:
    """Compare the concatenation of each list, case-insensitive, ascending."""
    return compare_text("".join(a), "".join(b))


def capitalize(value: object) -> str:
    """Uppercase the first character of a string; non-strings give ''."""
    if not isinstance(value, str):
        return ""
    return value[:1].upper() + value[1:]


def uniq(items: Iterable[T]) -> List[T]:
    """Drop repeats, keeping first-seen order."""
    return list(dict.fromkeys(items))
