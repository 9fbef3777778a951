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

"""Update request shapes for Bundlecast.

A device asks for updates using one of two mutually exclusive
compatibility strategies:

- AppVersionRequest: the device reports its running app version and
  bundles are matched by their targetAppVersion range.
- FingerprintRequest: the device reports its native build fingerprint and
  bundles are matched by exact fingerprintHash equality.

Both carry the same common fields. build_update_request() is the only
place defaults are applied and the only place malformed requests are
rejected; the engine assumes whatever it receives is well-formed.

Example:
    Build a request from adapter input:
        ```python
        from bundlecast.resolution.request import build_update_request

        request = build_update_request(
            platform="ios",
            bundle_id="00000000-0000-0000-0000-000000000000",
            app_version="1.0.3",
        )
        request.channel  # "production"
        ```
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

from bundlecast.catalog.models import (
    DEFAULT_CHANNEL,
    NIL_BUNDLE_ID,
    PLATFORMS,
    Platform,
)
from bundlecast.exceptions import RequestValidationError


@dataclass(frozen=True)
class AppVersionRequest:
    """Update request matched by semantic app version.

    Attributes:
        platform: Device platform.
        bundle_id: Installed bundle id, or NIL_BUNDLE_ID for none.
        app_version: App version string reported by the device.
        channel: Catalog partition to resolve against.
        min_bundle_id: Floor below which bundles are never considered.
        device_id: Device identifier for rollout, or None.

    """

    platform: Platform
    bundle_id: str
    app_version: str
    channel: str = DEFAULT_CHANNEL
    min_bundle_id: str = NIL_BUNDLE_ID
    device_id: str | None = None


@dataclass(frozen=True)
class FingerprintRequest:
    """Update request matched by native build fingerprint.

    Attributes:
        platform: Device platform.
        bundle_id: Installed bundle id, or NIL_BUNDLE_ID for none.
        fingerprint_hash: Native build fingerprint reported by the device.
        channel: Catalog partition to resolve against.
        min_bundle_id: Floor below which bundles are never considered.
        device_id: Device identifier for rollout, or None.

    """

    platform: Platform
    bundle_id: str
    fingerprint_hash: str
    channel: str = DEFAULT_CHANNEL
    min_bundle_id: str = NIL_BUNDLE_ID
    device_id: str | None = None


UpdateRequest = Union[AppVersionRequest, FingerprintRequest]


def _blank(value: str | None) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def build_update_request(
    *,
    platform: str | None,
    bundle_id: str | None,
    app_version: str | None = None,
    fingerprint_hash: str | None = None,
    channel: str | None = None,
    min_bundle_id: str | None = None,
    device_id: str | None = None,
) -> UpdateRequest:
    """Validate raw request fields and build the matching request shape.

    Args:
        platform: "ios" or "android".
        bundle_id: Installed bundle id (NIL_BUNDLE_ID for a fresh install).
        app_version: App version; mutually exclusive with fingerprint_hash.
        fingerprint_hash: Native fingerprint; mutually exclusive with
            app_version.
        channel: Channel name. Defaults to "production".
        min_bundle_id: Bundle id floor. Defaults to NIL_BUNDLE_ID.
        device_id: Device identifier. Empty strings are treated as absent.

    Returns:
        An AppVersionRequest or a FingerprintRequest.

    Raises:
        RequestValidationError: If the platform is missing or unknown, the
            bundle id is missing, or not exactly one of app_version and
            fingerprint_hash is given.

    Example:
        >>> req = build_update_request(
        ...     platform="android", bundle_id=NIL_BUNDLE_ID, fingerprint_hash="abc"
        ... )
        >>> type(req).__name__
        'FingerprintRequest'

    """
    if _blank(platform):
        raise RequestValidationError("Missing required field: platform")
    if platform not in PLATFORMS:
        raise RequestValidationError(
            f"Unknown platform {platform!r} (expected one of: {', '.join(PLATFORMS)})"
        )
    if _blank(bundle_id):
        raise RequestValidationError("Missing required field: bundleId")

    has_version = not _blank(app_version)
    has_fingerprint = not _blank(fingerprint_hash)
    if has_version and has_fingerprint:
        raise RequestValidationError(
            "Request must specify either appVersion or fingerprintHash, not both"
        )
    if not has_version and not has_fingerprint:
        raise RequestValidationError(
            "Request must specify one of appVersion or fingerprintHash"
        )

    common: dict[str, Any] = {
        "platform": platform,
        "bundle_id": bundle_id,
        "channel": channel if not _blank(channel) else DEFAULT_CHANNEL,
        "min_bundle_id": min_bundle_id if not _blank(min_bundle_id) else NIL_BUNDLE_ID,
        "device_id": device_id if not _blank(device_id) else None,
    }

    if has_version:
        return AppVersionRequest(app_version=app_version, **common)
    return FingerprintRequest(fingerprint_hash=fingerprint_hash, **common)


# (parameter, camelCase key, snake_case key)
_REQUEST_KEYS: tuple[tuple[str, str, str], ...] = (
    ("platform", "platform", "platform"),
    ("bundle_id", "bundleId", "bundle_id"),
    ("app_version", "appVersion", "app_version"),
    ("fingerprint_hash", "fingerprintHash", "fingerprint_hash"),
    ("channel", "channel", "channel"),
    ("min_bundle_id", "minBundleId", "min_bundle_id"),
    ("device_id", "deviceId", "device_id"),
)


def request_from_mapping(data: Mapping[str, Any]) -> UpdateRequest:
    """Build a request from a camelCase or snake_case mapping.

    Useful for adapters that collect request fields from headers, query
    parameters, or JSON bodies.

    Args:
        data: Raw request fields.

    Returns:
        The validated request.

    Raises:
        RequestValidationError: If the fields do not form a valid request.

    """
    kwargs: dict[str, Any] = {}
    for param, camel, snake in _REQUEST_KEYS:
        value = data.get(camel)
        if value is None:
            value = data.get(snake)
        if value is not None and not isinstance(value, str):
            raise RequestValidationError(
                f"Field {camel!r} must be a string, got {type(value).__name__}"
            )
        kwargs[param] = value
    return build_update_request(**kwargs)
