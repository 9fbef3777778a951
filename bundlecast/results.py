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

"""Public API return types for Bundlecast.

This module defines dataclasses for return values from public API functions:
update decisions from the resolution engine, enriched decisions from the
orchestration layer, and catalog validation results.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from bundlecast.core import resolve_app_update
        from bundlecast.results import AppUpdateInfo

        info: AppUpdateInfo | None = resolve_app_update(catalog, request)
        if info is not None:
            print(info.status, info.file_url)
        ```

Note:
    Only public API return types belong in this module. Domain types
    (like Bundle or CandidateSet) remain co-located with their related
    logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from bundlecast.catalog.models import NIL_BUNDLE_ID

UpdateStatus = Literal["UPDATE", "ROLLBACK"]


@dataclass(frozen=True)
class UpdateInfo:
    """A non-empty resolution decision.

    Attributes:
        id: Target bundle id (NIL_BUNDLE_ID for a rollback to built-in code).
        message: Bundle release message.
        should_force_update: Bundle flag for UPDATE; always True for ROLLBACK.
        status: "UPDATE" or "ROLLBACK".
        storage_uri: Storage reference of the target bundle.
        file_hash: Integrity hash of the target bundle archive.
    """

    id: str
    message: str | None
    should_force_update: bool
    status: UpdateStatus
    storage_uri: str | None
    file_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase wire representation."""
        return {
            "id": self.id,
            "message": self.message,
            "shouldForceUpdate": self.should_force_update,
            "status": self.status,
            "storageUri": self.storage_uri,
            "fileHash": self.file_hash,
        }


# Directs the client back to the code embedded in its binary.
INIT_BUNDLE_ROLLBACK_UPDATE_INFO = UpdateInfo(
    id=NIL_BUNDLE_ID,
    message=None,
    should_force_update=True,
    status="ROLLBACK",
    storage_uri=None,
    file_hash=None,
)


@dataclass(frozen=True)
class AppUpdateInfo(UpdateInfo):
    """An update decision enriched with a downloadable URL.

    Attributes:
        file_url: URL resolved from storage_uri, or None when there is
            nothing to download or the storage reference did not resolve.
    """

    file_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase wire representation."""
        data = super().to_dict()
        data["fileUrl"] = self.file_url
        return data


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating a catalog file.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages (empty if valid).
        warnings: List of warning messages.
        bundle_count: Number of bundle records in the catalog.
        catalog_path: String path to the validated catalog file.
    """

    status: str
    errors: list[str]
    warnings: list[str]
    bundle_count: int
    catalog_path: str
