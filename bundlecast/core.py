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

"""Core orchestration for Bundlecast.

This module wires the pure resolution engine to its collaborators: a
catalog to query and a storage resolver to turn the winning bundle's
storage reference into a download URL. All I/O happens strictly before or
after the decision step.

Workflow:

1. For app-version requests, enumerate the distinct target version
   expressions and keep only those compatible with the device. If none
   are compatible, the bundle query is skipped entirely.
2. Query the catalog and hand the bundles to get_update_info().
3. If there is a decision and it is not the rollback to built-in code,
   resolve the storage URI exactly once.

Design Principles:

- The engine stays pure; this layer owns I/O ordering
- Collaborators are injected, never looked up globally
- Functions return structured data (dataclasses) for easy testing
- Error handling uses exceptions; CLI layer formats for user display

Example:
    Programmatic usage:
        ```python
        from bundlecast.catalog import InMemoryCatalog, load_catalog_file
        from bundlecast.core import resolve_app_update
        from bundlecast.resolution import build_update_request
        from bundlecast.storage import PassthroughResolver

        catalog = InMemoryCatalog(load_catalog_file("catalog.yaml"))
        request = build_update_request(
            platform="ios", bundle_id=installed, app_version="1.0.3"
        )
        info = resolve_app_update(catalog, request, PassthroughResolver())
        ```

"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from bundlecast.catalog.base import BundleCatalog, InMemoryCatalog
from bundlecast.catalog.models import NIL_BUNDLE_ID, Bundle
from bundlecast.catalog.sources import fetch_catalog_http, load_catalog_file
from bundlecast.exceptions import ConfigError
from bundlecast.logging import get_global_logger
from bundlecast.resolution.engine import get_update_info
from bundlecast.resolution.request import (
    AppVersionRequest,
    FingerprintRequest,
    UpdateRequest,
)
from bundlecast.results import AppUpdateInfo
from bundlecast.storage.resolvers import StorageUriResolver
from bundlecast.versioning import filter_compatible_app_versions


def _query_bundles(catalog: BundleCatalog, request: UpdateRequest) -> list[Bundle]:
    logger = get_global_logger()

    if isinstance(request, AppVersionRequest):
        target_versions = catalog.get_target_app_versions(
            request.platform, request.min_bundle_id
        )
        compatible = filter_compatible_app_versions(
            target_versions, request.app_version
        )
        logger.verbose(
            "RESOLVE",
            f"{len(compatible)} of {len(target_versions)} target version(s) "
            f"compatible with {request.app_version}",
        )
        if not compatible:
            return []
        return list(
            catalog.get_bundles(
                request.platform,
                request.channel,
                request.min_bundle_id,
                target_app_versions=compatible,
            )
        )

    if isinstance(request, FingerprintRequest):
        return list(
            catalog.get_bundles(
                request.platform,
                request.channel,
                request.min_bundle_id,
                fingerprint_hash=request.fingerprint_hash,
            )
        )

    raise TypeError(f"Unsupported request type: {type(request).__name__}")


def resolve_app_update(
    catalog: BundleCatalog,
    request: UpdateRequest,
    storage_resolver: StorageUriResolver | None = None,
) -> AppUpdateInfo | None:
    """Resolve an update decision and its download URL.

    Args:
        catalog: Catalog to query.
        request: A validated request (see build_update_request()).
        storage_resolver: Resolver for the winning bundle's storage URI.
            When None, file_url is always None.

    Returns:
        None when the device is up to date, otherwise the decision with
        file_url filled in.

    Raises:
        NetworkError: If the storage resolver cannot reach its backend.

    """
    logger = get_global_logger()

    logger.step(1, 3, "Querying catalog...")
    bundles = _query_bundles(catalog, request)

    logger.step(2, 3, "Resolving update decision...")
    info = get_update_info(bundles, request)
    if info is None:
        logger.verbose("RESOLVE", "No update")
        return None

    logger.step(3, 3, "Resolving download URL...")
    file_url: str | None = None
    if info.id != NIL_BUNDLE_ID and info.storage_uri and storage_resolver is not None:
        file_url = storage_resolver.resolve(info.storage_uri)
        logger.verbose("STORAGE", f"Resolved {info.storage_uri} -> {file_url}")

    logger.verbose("RESOLVE", f"{info.status} -> {info.id}")
    return AppUpdateInfo(
        id=info.id,
        message=info.message,
        should_force_update=info.should_force_update,
        status=info.status,
        storage_uri=info.storage_uri,
        file_hash=info.file_hash,
        file_url=file_url,
    )


def load_catalog_from_config(config: Mapping[str, Any]) -> InMemoryCatalog:
    """Materialize the catalog described by a service config.

    Args:
        config: Merged config from load_service_config().

    Returns:
        An in-memory snapshot of the configured catalog.

    Raises:
        ConfigError: If the catalog section is incomplete.
        CatalogError: If the catalog cannot be read or parsed.
        NetworkError: If an HTTP catalog cannot be fetched.

    """
    catalog_cfg = config.get("catalog") or {}
    catalog_type = catalog_cfg.get("type", "file")

    if catalog_type == "file":
        path = catalog_cfg.get("path")
        if not path:
            raise ConfigError("catalog.path is required for a file catalog")
        return InMemoryCatalog(load_catalog_file(Path(path)))

    if catalog_type == "http":
        url = catalog_cfg.get("url")
        if not url:
            raise ConfigError("catalog.url is required for an http catalog")
        return InMemoryCatalog(
            fetch_catalog_http(
                url,
                bundles_path=catalog_cfg.get("bundles_path"),
                headers=catalog_cfg.get("headers"),
                timeout=catalog_cfg.get("timeout", 30),
            )
        )

    raise ConfigError(f"Unknown catalog type: {catalog_type!r}")
