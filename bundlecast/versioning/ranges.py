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

"""Target app version matching for Bundlecast.

A bundle's targetAppVersion is a semantic-version range expression. A
device reports its app version as a loose string, which is coerced to the
closest concrete version before matching.

Range Expression Table:

| Expression         | Matches                                        |
|--------------------|------------------------------------------------|
| ``*``              | any app version                                |
| ``1.2.3``          | exactly 1.2.3                                  |
| ``1.2`` / ``1.2.x``| >=1.2.0 <1.3.0                                 |
| ``1`` / ``1.x.x``  | >=1.0.0 <2.0.0                                 |
| ``1.2.3 - 1.2.7``  | >=1.2.3 <=1.2.7                                |
| ``>=1.2.3 <1.2.7`` | >=1.2.3 <1.2.7 (comparators are conjunctive)   |
| ``>= 5.7.0, <= 5.7.4`` | commas and operator spacing are accepted   |
| ``~1.2.3``         | >=1.2.3 <1.3.0                                 |
| ``^1.2.3``         | >=1.2.3 <2.0.0 (``^0.2.3`` -> <0.3.0)          |
| ``1.x || 3.x``     | either alternative                             |

Matching is fail-closed: an expression that cannot be parsed, or an app
version with no digits, never matches. semver_satisfies() never raises,
so a bad catalog row cannot take down resolution.

Example:
    >>> from bundlecast.versioning import semver_satisfies
    >>> semver_satisfies("1.x.x", "1.12")
    True
    >>> semver_satisfies(">= 5.7.0 <= 5.7.4", "5.7.5")
    False
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterable

from .keys import SemVer, coerce_version, semver_key

# ----------------------------
# Comparator model
# ----------------------------

Operator = str  # one of "<", "<=", ">", ">=", "="


@dataclass(frozen=True)
class Comparator:
    """A primitive comparator such as ``>=1.2.0``."""

    op: Operator
    version: SemVer

    def test(self, v: SemVer) -> bool:
        kv = semver_key(v)
        kc = semver_key(self.version)
        if self.op == "=":
            return kv == kc
        if self.op == ">":
            return kv > kc
        if self.op == ">=":
            return kv >= kc
        if self.op == "<":
            return kv < kc
        return kv <= kc


# No coerced version satisfies "<0.0.0-0"
_NOTHING: tuple[Comparator, ...] = (Comparator("<", SemVer(0, 0, 0, ("0",))),)
_ANYTHING: tuple[Comparator, ...] = ()


@dataclass(frozen=True)
class _Partial:
    """A possibly incomplete version; None marks a wildcard/missing part."""

    major: int | None
    minor: int | None
    patch: int | None
    prerelease: tuple[str, ...] = ()

    def floor(self) -> SemVer:
        return SemVer(
            self.major or 0, self.minor or 0, self.patch or 0, self.prerelease
        )


# ----------------------------
# Tokenizing
# ----------------------------

_WILDCARD = {"x", "X", "*"}

_PARTIAL_RE = re.compile(
    r"""
    ^[v=]*
    (?P<major>\d+|[xX*])
    (?:\.(?P<minor>\d+|[xX*])
    (?:\.(?P<patch>\d+|[xX*])
    (?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?
    (?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?
    )?)?$
    """,
    re.VERBOSE,
)

_OPERATOR_RE = re.compile(r"^(<=|>=|<|>|=|~>|~|\^)?(.*)$")

# Glue operators to their operand: ">= 5.7.0" -> ">=5.7.0"
_OP_SPACING_RE = re.compile(r"(<=|>=|<|>|=|~>|~|\^)\s+")

_HYPHEN_RE = re.compile(r"^\s*(\S+)\s+-\s+(\S+)\s*$")


def _parse_partial(text: str) -> _Partial:
    m = _PARTIAL_RE.match(text)
    if not m:
        raise ValueError(f"invalid version in range: {text!r}")

    parts: list[int | None] = []
    wildcard_seen = False
    for name in ("major", "minor", "patch"):
        raw = m.group(name)
        # Everything after a wildcard is a wildcard too ("1.x.3" == "1.x")
        if raw is None or raw in _WILDCARD or wildcard_seen:
            wildcard_seen = True
            parts.append(None)
        else:
            parts.append(int(raw))

    pre = m.group("pre")
    prerelease = tuple(pre.split(".")) if pre and parts[2] is not None else ()
    return _Partial(parts[0], parts[1], parts[2], prerelease)


# ----------------------------
# Desugaring into primitive comparators
# ----------------------------


def _x_range(op: str, p: _Partial) -> tuple[Comparator, ...]:
    """Expand a plain or operator-prefixed (possibly partial) version."""
    if p.major is None:
        if op in ("<", ">"):
            return _NOTHING
        return _ANYTHING

    complete = p.minor is not None and p.patch is not None
    if complete:
        return (Comparator(op or "=", p.floor()),)

    if p.minor is None:
        upper = SemVer(p.major + 1, 0, 0)
    else:
        upper = SemVer(p.major, p.minor + 1, 0)
    lower = SemVer(p.major, p.minor or 0, 0)

    if op in ("", "="):
        return (Comparator(">=", lower), Comparator("<", upper))
    if op == ">":
        return (Comparator(">=", upper),)
    if op == ">=":
        return (Comparator(">=", lower),)
    if op == "<":
        return (Comparator("<", lower),)
    # "<="
    return (Comparator("<", upper),)


def _tilde(p: _Partial) -> tuple[Comparator, ...]:
    if p.major is None:
        return _ANYTHING
    if p.minor is None:
        return (
            Comparator(">=", SemVer(p.major, 0, 0)),
            Comparator("<", SemVer(p.major + 1, 0, 0)),
        )
    return (
        Comparator(">=", p.floor()),
        Comparator("<", SemVer(p.major, p.minor + 1, 0)),
    )


def _caret(p: _Partial) -> tuple[Comparator, ...]:
    if p.major is None:
        return _ANYTHING
    lower = Comparator(">=", p.floor())
    if p.minor is None:
        return (lower, Comparator("<", SemVer(p.major + 1, 0, 0)))
    if p.patch is None:
        if p.major == 0:
            return (lower, Comparator("<", SemVer(0, p.minor + 1, 0)))
        return (lower, Comparator("<", SemVer(p.major + 1, 0, 0)))
    if p.major != 0:
        return (lower, Comparator("<", SemVer(p.major + 1, 0, 0)))
    if p.minor != 0:
        return (lower, Comparator("<", SemVer(0, p.minor + 1, 0)))
    return (lower, Comparator("<", SemVer(0, 0, p.patch + 1)))


def _hyphen(low: _Partial, high: _Partial) -> tuple[Comparator, ...]:
    comparators: list[Comparator] = []
    if low.major is not None:
        comparators.append(Comparator(">=", low.floor()))

    if high.major is None:
        pass
    elif high.minor is None:
        comparators.append(Comparator("<", SemVer(high.major + 1, 0, 0)))
    elif high.patch is None:
        comparators.append(Comparator("<", SemVer(high.major, high.minor + 1, 0)))
    else:
        comparators.append(Comparator("<=", high.floor()))
    return tuple(comparators)


def _parse_comparator_token(token: str) -> tuple[Comparator, ...]:
    m = _OPERATOR_RE.match(token)
    assert m is not None  # the pattern matches any string
    op = m.group(1) or ""
    operand = m.group(2)
    if not operand:
        raise ValueError(f"operator without version: {token!r}")

    partial = _parse_partial(operand)
    if op in ("~", "~>"):
        return _tilde(partial)
    if op == "^":
        return _caret(partial)
    return _x_range(op, partial)


def _parse_alternative(text: str) -> tuple[Comparator, ...]:
    hyphen = _HYPHEN_RE.match(text)
    if hyphen:
        return _hyphen(_parse_partial(hyphen.group(1)), _parse_partial(hyphen.group(2)))

    normalized = _OP_SPACING_RE.sub(r"\1", text.replace(",", " "))
    comparators: list[Comparator] = []
    for token in normalized.split():
        comparators.extend(_parse_comparator_token(token))
    return tuple(comparators)


def parse_range(expression: str) -> tuple[tuple[Comparator, ...], ...]:
    """Parse a range expression into alternatives of comparator sets.

    Args:
        expression: Range such as ">=1.2.3 <2.0.0 || ^3.0.0".

    Returns:
        One tuple of comparators per ``||`` alternative. An empty comparator
        tuple matches every version.

    Raises:
        ValueError: If any part of the expression cannot be parsed.

    """
    if not isinstance(expression, str) or not expression.strip():
        raise ValueError(f"empty range expression: {expression!r}")
    return tuple(_parse_alternative(alt.strip()) for alt in expression.split("||"))


# ----------------------------
# Public API
# ----------------------------


def _set_matches(comparators: tuple[Comparator, ...], v: SemVer) -> bool:
    if not all(c.test(v) for c in comparators):
        return False
    if not v.prerelease:
        return True
    # A prerelease only matches when a comparator in the same set names a
    # prerelease of the same major.minor.patch.
    return any(
        c.version.prerelease and c.version.core == v.core for c in comparators
    )


def version_satisfies(version: SemVer, expression: str) -> bool:
    """Check a concrete version against a range expression (fail-closed)."""
    try:
        alternatives = parse_range(expression)
    except ValueError:
        return False
    return any(_set_matches(alt, version) for alt in alternatives)


def semver_satisfies(target_app_version: str | None, app_version: str | None) -> bool:
    """Decide whether a bundle's target version expression accepts an app version.

    The app version is coerced first ("1.0" -> 1.0.0). This is a pure
    function of its two inputs and never raises.

    Args:
        target_app_version: The bundle's range expression.
        app_version: The version reported by the device.

    Returns:
        True if the coerced app version satisfies the expression, False for
        non-matching, malformed, or missing input.

    """
    if target_app_version is None:
        return False
    coerced = coerce_version(app_version)
    if coerced is None:
        return False
    return version_satisfies(coerced, target_app_version)


def is_valid_range(expression: str | None) -> bool:
    """Return True if the expression parses as a range."""
    if expression is None:
        return False
    try:
        parse_range(expression)
    except ValueError:
        return False
    return True


def filter_compatible_app_versions(
    target_app_versions: Iterable[str | None], app_version: str
) -> list[str]:
    """Narrow distinct target version expressions to those matching an app version.

    Hosts use this to pre-filter before fetching bundles: enumerate the
    distinct targetAppVersion values for a platform, keep the compatible
    ones, and query only bundles whose expression is in the result.

    Args:
        target_app_versions: Target version expressions (duplicates and
            None are ignored).
        app_version: The version reported by the device.

    Returns:
        Compatible expressions, distinct, sorted in descending string order.

    """
    compatible = {
        v for v in target_app_versions if v and semver_satisfies(v, app_version)
    }
    return sorted(compatible, reverse=True)
