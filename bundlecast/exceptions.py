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

"""Exception hierarchy for Bundlecast.

This module defines a custom exception hierarchy that allows library users
to distinguish between different types of errors:

- ConfigError: Configuration-related errors (YAML parse, missing fields)
- RequestValidationError: Malformed update-check requests rejected at the
  request-construction boundary
- CatalogError: Bundle catalog content that violates its documented shape
- NetworkError: Remote catalog or signing endpoint failures

All exceptions inherit from BundlecastError, allowing users to catch all
Bundlecast errors with a single except clause if needed.

Note:
    The resolution engine never raises for business outcomes. "No eligible
    bundle" is a normal result (None or a rollback), not an error.

Example:
    Rejecting a malformed request before it reaches the engine:
        ```python
        from bundlecast.exceptions import RequestValidationError
        from bundlecast.resolution import build_update_request

        try:
            request = build_update_request(platform="ios", bundle_id=bundle_id)
        except RequestValidationError as e:
            print(f"Bad request: {e}")
        ```

    Catching all Bundlecast errors:
        ```python
        from bundlecast.exceptions import BundlecastError

        try:
            info = resolve_app_update(catalog, request)
        except BundlecastError as e:
            print(f"Bundlecast error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "BundlecastError",
    "ConfigError",
    "RequestValidationError",
    "CatalogError",
    "NetworkError",
]


class BundlecastError(Exception):
    """Base exception for all Bundlecast errors.

    All Bundlecast-specific exceptions inherit from this class, allowing
    users to catch all Bundlecast errors with a single except clause.
    """

    pass


class ConfigError(BundlecastError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Missing or empty configuration files
    - Unknown catalog source types or storage resolver settings
    """

    pass


class RequestValidationError(BundlecastError):
    """Raised when an update-check request is malformed.

    This exception is raised by the request-construction layer when:

    - The platform is missing or not a supported platform
    - The current bundle id is missing
    - Both or neither of app version and fingerprint hash are given

    Example:
        Catching request errors in an adapter:
            ```python
            from bundlecast.exceptions import RequestValidationError

            try:
                request = request_from_mapping(query_params)
            except RequestValidationError as e:
                return {"code": 400, "message": str(e)}
            ```
    """

    pass


class CatalogError(BundlecastError):
    """Raised when bundle catalog data violates its documented shape.

    This exception is raised when there are problems with:

    - Bundle records missing required fields (id, platform, channel)
    - Fields with the wrong type (non-boolean enabled, non-list device ids)
    - Rollout percentages outside 0-100
    - Catalog files or responses that are not a list of bundles
    """

    pass


class NetworkError(BundlecastError):
    """Raised for network-related errors.

    This exception is raised when there are problems with:

    - Fetching a remote catalog (HTTP errors, connection timeouts)
    - Calling a signing endpoint to resolve a storage URI
    """

    pass
