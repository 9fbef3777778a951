# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Core semantic-version parsing and comparison for Bundlecast.

This module is format-agnostic: it does NOT look at bundles or requests.
It only parses and compares version strings consistently, so the range
matcher and the catalog validator agree on what a version is.

Two entry points turn strings into SemVer values:

- parse_semver(): strict "MAJOR.MINOR.PATCH[-pre][+build]" parsing, used
  for the concrete bounds inside range expressions.
- coerce_version(): lenient extraction of the first numeric run, used for
  app versions reported by devices ("1.0" -> 1.0.0, "v2" -> 2.0.0,
  "1.2.3 (45)" -> 1.2.3).

Ordering follows SemVer 2.0 precedence: numeric core first, a release
sorts after any of its prereleases, numeric prerelease identifiers sort
before alphanumeric ones, and build metadata is ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

# ----------------------------
# Shared DTO
# ----------------------------


@dataclass(frozen=True)
class SemVer:
    """A concrete semantic version.

    Attributes:
        major: Major version number.
        minor: Minor version number.
        patch: Patch version number.
        prerelease: Dot-separated prerelease identifiers (empty for a
            release). Build metadata is not kept; it never affects order.

    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            return f"{core}-{'.'.join(self.prerelease)}"
        return core

    @property
    def core(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)


# ----------------------------
# Parsing
# ----------------------------

_MAX_COMPONENT = 16  # digits; guards against absurd inputs

_SEMVER_RE = re.compile(
    r"""
    ^\s*[v=]*\s*
    (?P<major>0|[1-9]\d*)\.
    (?P<minor>0|[1-9]\d*)\.
    (?P<patch>0|[1-9]\d*)
    (?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?
    (?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?
    \s*$
    """,
    re.VERBOSE,
)

_COERCE_RE = re.compile(
    r"(?:^|[^\d])(\d{1,%d})(?:\.(\d{1,%d}))?(?:\.(\d{1,%d}))?(?:$|[^\d])"
    % (_MAX_COMPONENT, _MAX_COMPONENT, _MAX_COMPONENT)
)


def _split_prerelease(pre: str | None) -> tuple[str, ...]:
    if not pre:
        return ()
    return tuple(pre.split("."))


def parse_semver(text: str) -> SemVer:
    """Parse a strict semantic version.

    A leading "v" or "=" is tolerated (e.g., "v1.2.3").

    Args:
        text: Version string such as "1.2.3" or "2.0.0-rc.1+build.5".

    Returns:
        The parsed version.

    Raises:
        ValueError: If the string is not a full MAJOR.MINOR.PATCH version.

    """
    m = _SEMVER_RE.match(text)
    if not m:
        raise ValueError(f"not a semantic version: {text!r}")
    return SemVer(
        int(m.group("major")),
        int(m.group("minor")),
        int(m.group("patch")),
        _split_prerelease(m.group("pre")),
    )


def coerce_version(text: str | None) -> SemVer | None:
    """Coerce a loosely formatted version into its closest SemVer.

    Takes the first run of up to three dot-separated numbers and fills the
    missing parts with zeros. Prerelease and build suffixes are dropped.

    Args:
        text: Version-like string reported by a client (e.g., "1.0").

    Returns:
        The coerced version, or None if the string has no digits.

    Example:
        >>> str(coerce_version("1.0"))
        '1.0.0'
        >>> str(coerce_version("v3.4.5-beta"))
        '3.4.5'
        >>> coerce_version("latest") is None
        True

    """
    if not text:
        return None
    m = _COERCE_RE.search(text)
    if not m:
        return None
    return SemVer(
        int(m.group(1)),
        int(m.group(2) or 0),
        int(m.group(3) or 0),
    )


# ----------------------------
# Comparison
# ----------------------------


def _prerelease_key(pre: tuple[str, ...]) -> tuple:
    """Encode prerelease identifiers for tuple comparison.

    (1,) for releases so they sort after every prerelease; otherwise
    (0, tokens) where numeric tokens are (0, int) and text tokens
    (1, str), matching SemVer 2.0 identifier precedence.
    """
    if not pre:
        return (1,)
    tokens: list[tuple[int, object]] = []
    for ident in pre:
        if ident.isdigit():
            tokens.append((0, int(ident)))
        else:
            tokens.append((1, ident))
    return (0, tuple(tokens))


def semver_key(v: SemVer) -> tuple:
    """Compute a sortable key for a version (SemVer 2.0 precedence)."""
    return (v.major, v.minor, v.patch, _prerelease_key(v.prerelease))


def compare_semver(a: SemVer, b: SemVer) -> int:
    """Compare two versions.

    Returns:
        -1 if a < b, 0 if equal, 1 if a > b.
    """
    ka = semver_key(a)
    kb = semver_key(b)
    return (ka > kb) - (ka < kb)
