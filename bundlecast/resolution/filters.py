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

"""Candidate filtering for update resolution.

Narrows a catalog snapshot to the bundles a request may ever see. A bundle
is a candidate iff all of the following hold:

- its platform equals the request platform
- its channel equals the request channel
- it is enabled
- its strategy field is set and matches (targetAppVersion range for
  app-version requests, exact fingerprintHash for fingerprint requests)
- its id is >= the request's minBundleId

The floor is applied here, before selection, so bundles below it are never
visible as rollback targets either.
"""

from __future__ import annotations

from typing import Iterable

from bundlecast.catalog.models import Bundle
from bundlecast.versioning import semver_satisfies

from .request import AppVersionRequest, FingerprintRequest, UpdateRequest


def matches_strategy(bundle: Bundle, request: UpdateRequest) -> bool:
    """Check a bundle's compatibility field against the request strategy."""
    if isinstance(request, AppVersionRequest):
        if bundle.target_app_version is None:
            return False
        return semver_satisfies(bundle.target_app_version, request.app_version)
    if isinstance(request, FingerprintRequest):
        if bundle.fingerprint_hash is None:
            return False
        return bundle.fingerprint_hash == request.fingerprint_hash
    raise TypeError(f"Unsupported request type: {type(request).__name__}")


def is_candidate(bundle: Bundle, request: UpdateRequest) -> bool:
    """Return True if the bundle passes every eligibility rule for the request."""
    return (
        bundle.platform == request.platform
        and bundle.channel == request.channel
        and bundle.enabled
        and bundle.id >= request.min_bundle_id
        and matches_strategy(bundle, request)
    )


def filter_candidates(
    bundles: Iterable[Bundle], request: UpdateRequest
) -> list[Bundle]:
    """Narrow bundles to those eligible for a request.

    The input may be the whole catalog or an already narrowed query result;
    re-applying rules that a query pushed down is harmless.

    Args:
        bundles: Catalog snapshot (any order). Not mutated.
        request: A validated update request.

    Returns:
        Eligible bundles, in input order.

    """
    return [b for b in bundles if is_candidate(b, request)]
