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

"""Catalog query interface for Bundlecast.

The engine never talks to a database. Hosts provide a BundleCatalog that
returns bundles for a (platform, channel) pair and may push cheap filters
(enabled flag, id floor, strategy field) down into their query. Whatever
they push down must keep exactly the candidate filter's semantics, since
the engine re-applies the full filter on whatever it is given.

Protocol-based typing means any object with the right methods works; no
inheritance is required.

Example:
    Wrap a list of bundles:
        ```python
        from bundlecast.catalog import InMemoryCatalog, load_catalog_file

        catalog = InMemoryCatalog(load_catalog_file("catalog.yaml"))
        bundles = catalog.get_bundles("ios", "production")
        ```

    Implement a database-backed catalog:
        ```python
        class SqlCatalog:
            def get_bundles(self, platform, channel, min_bundle_id=NIL_BUNDLE_ID,
                            *, target_app_versions=None, fingerprint_hash=None):
                ...  # SELECT ... WHERE platform = ? AND channel = ? ...

            def get_target_app_versions(self, platform, min_bundle_id=NIL_BUNDLE_ID):
                ...  # SELECT DISTINCT target_app_version ...
        ```
"""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from bundlecast.logging import get_global_logger

from .models import NIL_BUNDLE_ID, Bundle


class BundleCatalog(Protocol):
    """Protocol for catalog query capabilities."""

    def get_bundles(
        self,
        platform: str,
        channel: str,
        min_bundle_id: str = NIL_BUNDLE_ID,
        *,
        target_app_versions: Sequence[str] | None = None,
        fingerprint_hash: str | None = None,
    ) -> Sequence[Bundle]:
        """Return bundles for a platform and channel.

        Args:
            platform: Device platform.
            channel: Catalog channel.
            min_bundle_id: Only bundles with id >= this are returned.
            target_app_versions: When given, only bundles whose
                targetAppVersion expression is in this list.
            fingerprint_hash: When given, only bundles with this exact
                fingerprint.

        Returns:
            Matching bundles in any order.

        """
        ...

    def get_target_app_versions(
        self, platform: str, min_bundle_id: str = NIL_BUNDLE_ID
    ) -> Sequence[str]:
        """Return the distinct targetAppVersion expressions for a platform."""
        ...


class InMemoryCatalog:
    """BundleCatalog over an in-memory snapshot.

    The snapshot is copied into a tuple on construction, so later changes
    to the caller's list do not leak into resolutions.
    """

    def __init__(self, bundles: Iterable[Bundle]) -> None:
        self._bundles: tuple[Bundle, ...] = tuple(bundles)

    @property
    def bundles(self) -> tuple[Bundle, ...]:
        return self._bundles

    def __len__(self) -> int:
        return len(self._bundles)

    def get_bundles(
        self,
        platform: str,
        channel: str,
        min_bundle_id: str = NIL_BUNDLE_ID,
        *,
        target_app_versions: Sequence[str] | None = None,
        fingerprint_hash: str | None = None,
    ) -> tuple[Bundle, ...]:
        targets = set(target_app_versions) if target_app_versions is not None else None
        result = tuple(
            b
            for b in self._bundles
            if b.platform == platform
            and b.channel == channel
            and b.enabled
            and b.id >= min_bundle_id
            and (targets is None or b.target_app_version in targets)
            and (fingerprint_hash is None or b.fingerprint_hash == fingerprint_hash)
        )
        get_global_logger().debug(
            "CATALOG",
            f"Query {platform}/{channel} (floor {min_bundle_id}): "
            f"{len(result)} bundle(s)",
        )
        return result

    def get_target_app_versions(
        self, platform: str, min_bundle_id: str = NIL_BUNDLE_ID
    ) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for b in self._bundles:
            if (
                b.platform == platform
                and b.id >= min_bundle_id
                and b.target_app_version is not None
            ):
                seen.setdefault(b.target_app_version, None)
        return tuple(seen)
