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

"""Bundle catalog data model for Bundlecast.

A bundle is a published unit of app code plus the metadata used to decide
which devices receive it. Bundles are immutable once published; the
catalog only ever changes by adding bundles or by explicit admin edits
(e.g., disabling a bad bundle).

Bundle ids are time-ordered tokens (UUIDv7 in production). Plain string
comparison of two ids matches their creation order, so "newer" always
means "lexicographically greater" and the engine never needs wall-clock
timestamps. Any generator satisfying that contract works for fixtures,
including zero-padded counters.

Records arrive in two key styles:

- camelCase (JSON wire shape): ``shouldForceUpdate``, ``targetAppVersion``
- snake_case (database row shape): ``should_force_update``,
  ``target_app_version``

bundle_from_dict() accepts either and raises CatalogError for records
that violate the documented shape, rather than guessing.

Example:
    Build a bundle from a JSON record:
        ```python
        from bundlecast.catalog.models import bundle_from_dict

        bundle = bundle_from_dict({
            "id": "0195a408-8f13-7d9b-8df4-123456789abc",
            "platform": "ios",
            "channel": "production",
            "enabled": True,
            "shouldForceUpdate": False,
            "targetAppVersion": "1.x.x",
            "storageUri": "s3://bundles/ios/bundle.zip",
        })
        ```
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Literal, Mapping

from bundlecast.exceptions import CatalogError

Platform = Literal["ios", "android"]

PLATFORMS: tuple[str, ...] = ("ios", "android")

# Sentinel id: "no bundle installed" on requests, "revert to built-in code"
# on rollback responses. Sorts before every real time-ordered id.
NIL_BUNDLE_ID = "00000000-0000-0000-0000-000000000000"

DEFAULT_CHANNEL = "production"


@dataclass(frozen=True)
class Bundle:
    """A published bundle in the catalog.

    Attributes:
        id: Time-ordered unique identifier; string order is creation order.
        platform: Target platform ("ios" or "android").
        channel: Catalog partition; bundles never cross channels.
        enabled: Disabled bundles are invisible to resolution.
        should_force_update: Advisory flag copied into UPDATE responses.
        target_app_version: Semantic-version range expression, or None when
            the bundle targets a native build fingerprint instead.
        fingerprint_hash: Exact native build fingerprint, or None when the
            bundle targets app versions.
        rollout_percentage: Share of devices (0-100) eligible for UPDATE.
        target_device_ids: Explicit device allow-list; when non-empty it
            replaces percentage rollout for this bundle.
        storage_uri: Opaque storage reference, resolved into a download URL
            by a storage resolver.
        file_hash: Integrity hash of the bundle archive (passthrough).
        message: Release message (passthrough).
        git_commit_hash: Source commit (passthrough).

    """

    id: str
    platform: Platform
    channel: str
    enabled: bool = True
    should_force_update: bool = False
    target_app_version: str | None = None
    fingerprint_hash: str | None = None
    rollout_percentage: int = 100
    target_device_ids: tuple[str, ...] | None = None
    storage_uri: str | None = None
    file_hash: str | None = None
    message: str | None = None
    git_commit_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase wire representation of this bundle."""
        return {
            "id": self.id,
            "platform": self.platform,
            "channel": self.channel,
            "enabled": self.enabled,
            "shouldForceUpdate": self.should_force_update,
            "targetAppVersion": self.target_app_version,
            "fingerprintHash": self.fingerprint_hash,
            "rolloutPercentage": self.rollout_percentage,
            "targetDeviceIds": (
                list(self.target_device_ids)
                if self.target_device_ids is not None
                else None
            ),
            "storageUri": self.storage_uri,
            "fileHash": self.file_hash,
            "message": self.message,
            "gitCommitHash": self.git_commit_hash,
        }


# -------------------------------
# Record parsing
# -------------------------------

# (attribute, camelCase key, snake_case key)
_FIELD_KEYS: tuple[tuple[str, str, str], ...] = (
    ("should_force_update", "shouldForceUpdate", "should_force_update"),
    ("target_app_version", "targetAppVersion", "target_app_version"),
    ("fingerprint_hash", "fingerprintHash", "fingerprint_hash"),
    ("rollout_percentage", "rolloutPercentage", "rollout_percentage"),
    ("target_device_ids", "targetDeviceIds", "target_device_ids"),
    ("storage_uri", "storageUri", "storage_uri"),
    ("file_hash", "fileHash", "file_hash"),
    ("git_commit_hash", "gitCommitHash", "git_commit_hash"),
)


def _pick(record: Mapping[str, Any], camel: str, snake: str) -> Any:
    if camel in record:
        return record[camel]
    return record.get(snake)


def _optional_str(value: Any, field: str, bundle_id: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise CatalogError(
            f"Bundle {bundle_id!r}: {field} must be a string or null, "
            f"got {type(value).__name__}"
        )
    return value


def _parse_bool(value: Any, field: str, bundle_id: str, default: bool) -> bool:
    if value is None:
        return default
    # SQLite and some drivers hand back 0/1 for booleans
    if isinstance(value, int) and not isinstance(value, bool) and value in (0, 1):
        return bool(value)
    if not isinstance(value, bool):
        raise CatalogError(
            f"Bundle {bundle_id!r}: {field} must be a boolean, got {value!r}"
        )
    return value


def parse_rollout_percentage(value: Any, bundle_id: str = "?") -> int:
    """Normalize a rollout percentage, treating null as 100.

    Args:
        value: Raw percentage from a catalog record.
        bundle_id: Bundle id used in error messages.

    Returns:
        The percentage as an int in 0-100.

    Raises:
        CatalogError: If the value is not an integer in 0-100.

    """
    if value is None:
        return 100
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise CatalogError(
            f"Bundle {bundle_id!r}: rolloutPercentage must be an integer, "
            f"got {value!r}"
        )
    if not 0 <= value <= 100:
        raise CatalogError(
            f"Bundle {bundle_id!r}: rolloutPercentage must be between 0 and 100, "
            f"got {value}"
        )
    return value


def parse_target_device_ids(
    value: Any, bundle_id: str = "?"
) -> tuple[str, ...] | None:
    """Normalize a device allow-list.

    Lists keep their string entries (non-string entries are dropped).
    Strings are decoded as JSON arrays, which is how some databases store
    the column. Null stays null.

    Args:
        value: Raw allow-list from a catalog record.
        bundle_id: Bundle id used in error messages.

    Returns:
        A tuple of device ids, or None when no allow-list is set.

    Raises:
        CatalogError: If the value is neither a list, a JSON array string,
            nor null.

    """
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = json.loads(value)
        except json.JSONDecodeError as err:
            raise CatalogError(
                f"Bundle {bundle_id!r}: targetDeviceIds is not valid JSON: {err}"
            ) from err
    if not isinstance(value, (list, tuple)):
        raise CatalogError(
            f"Bundle {bundle_id!r}: targetDeviceIds must be a list, "
            f"got {type(value).__name__}"
        )
    return tuple(v for v in value if isinstance(v, str))


def bundle_from_dict(record: Mapping[str, Any]) -> Bundle:
    """Build a Bundle from a camelCase or snake_case record.

    Args:
        record: A mapping from a catalog file, HTTP response, or database row.

    Returns:
        The parsed, immutable bundle.

    Raises:
        CatalogError: If required fields are missing or any field has the
            wrong type.

    """
    if not isinstance(record, Mapping):
        raise CatalogError(
            f"Bundle record must be a mapping, got {type(record).__name__}"
        )

    bundle_id = record.get("id")
    if not isinstance(bundle_id, str) or not bundle_id:
        raise CatalogError(f"Bundle record is missing a string 'id': {record!r}")

    platform = record.get("platform")
    if platform not in PLATFORMS:
        raise CatalogError(
            f"Bundle {bundle_id!r}: platform must be one of "
            f"{', '.join(PLATFORMS)}, got {platform!r}"
        )

    channel = record.get("channel")
    if not isinstance(channel, str) or not channel:
        raise CatalogError(f"Bundle {bundle_id!r}: missing string 'channel'")

    raw = {attr: _pick(record, camel, snake) for attr, camel, snake in _FIELD_KEYS}

    return Bundle(
        id=bundle_id,
        platform=platform,
        channel=channel,
        enabled=_parse_bool(record.get("enabled"), "enabled", bundle_id, True),
        should_force_update=_parse_bool(
            raw["should_force_update"], "shouldForceUpdate", bundle_id, False
        ),
        target_app_version=_optional_str(
            raw["target_app_version"], "targetAppVersion", bundle_id
        ),
        fingerprint_hash=_optional_str(
            raw["fingerprint_hash"], "fingerprintHash", bundle_id
        ),
        rollout_percentage=parse_rollout_percentage(
            raw["rollout_percentage"], bundle_id
        ),
        target_device_ids=parse_target_device_ids(
            raw["target_device_ids"], bundle_id
        ),
        storage_uri=_optional_str(raw["storage_uri"], "storageUri", bundle_id),
        file_hash=_optional_str(raw["file_hash"], "fileHash", bundle_id),
        message=_optional_str(record.get("message"), "message", bundle_id),
        git_commit_hash=_optional_str(
            raw["git_commit_hash"], "gitCommitHash", bundle_id
        ),
    )
