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

"""Semantic-version parsing and target app version matching for Bundlecast.

Modules:
    keys
        SemVer parsing, lenient coercion of device-reported versions, and
        SemVer 2.0 precedence ordering.
    ranges
        Range expression parsing (x-ranges, hyphen, tilde, caret,
        comparator lists) and the fail-closed matcher used by the
        candidate filter.

Example:
    Matching a bundle target against a device:
        ```python
        from bundlecast.versioning import semver_satisfies

        semver_satisfies("1.2.x", "1.2.5")   # True
        semver_satisfies("~1.2.3", "1.3.0")  # False
        semver_satisfies("not a range", "1.0")  # False (fail closed)
        ```

    Pre-filtering distinct target versions before a catalog query:
        ```python
        from bundlecast.versioning import filter_compatible_app_versions

        filter_compatible_app_versions(["1.0", "1.x.x", "2.0"], "1.0.3")
        # ["1.x.x", "1.0"]
        ```
"""

from .keys import SemVer, coerce_version, compare_semver, parse_semver, semver_key
from .ranges import (
    filter_compatible_app_versions,
    is_valid_range,
    parse_range,
    semver_satisfies,
    version_satisfies,
)

__all__ = [
    "SemVer",
    "coerce_version",
    "compare_semver",
    "parse_semver",
    "semver_key",
    "filter_compatible_app_versions",
    "is_valid_range",
    "parse_range",
    "semver_satisfies",
    "version_satisfies",
]
