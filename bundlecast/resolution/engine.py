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

"""Update decision engine for Bundlecast.

get_update_info() maps a request and a catalog snapshot to one of three
outcomes:

- None: the device keeps its current code
- UPDATE: apply a newer bundle (gated by rollout eligibility)
- ROLLBACK: revert to an older bundle, or to the built-in code when no
  older bundle remains (never gated by rollout)

Decision table (after filtering and selection):

| Installed bundle         | Condition                       | Outcome              |
|--------------------------|---------------------------------|----------------------|
| nil id                   | latest exists and eligible      | UPDATE(latest)       |
| nil id                   | otherwise                       | None                 |
| still a candidate        | latest newer and eligible       | UPDATE(latest)       |
| still a candidate        | otherwise                       | None                 |
| gone                     | newer candidate exists          | UPDATE(oldest newer) if eligible, else None |
| gone                     | older candidate exists          | ROLLBACK(newest older) |
| gone                     | installed id <= floor           | None                 |
| gone                     | otherwise                       | ROLLBACK(nil)        |

The function is pure: no clock, no randomness, no I/O. It is safe to call
from any number of threads against the same snapshot as long as nobody
mutates the snapshot during the call.

Example:
    ```python
    from bundlecast.resolution import build_update_request, get_update_info

    request = build_update_request(
        platform="ios", bundle_id=NIL_BUNDLE_ID, app_version="1.0"
    )
    info = get_update_info(bundles, request)
    if info is None:
        ...  # up to date
    ```
"""

from __future__ import annotations

from typing import Iterable

from bundlecast.catalog.models import NIL_BUNDLE_ID, Bundle
from bundlecast.logging import get_global_logger
from bundlecast.policy.rollout import is_bundle_eligible
from bundlecast.results import INIT_BUNDLE_ROLLBACK_UPDATE_INFO, UpdateInfo

from .filters import filter_candidates
from .request import UpdateRequest
from .selector import select_candidates


def _make_update(bundle: Bundle) -> UpdateInfo:
    return UpdateInfo(
        id=bundle.id,
        message=bundle.message,
        should_force_update=bundle.should_force_update,
        status="UPDATE",
        storage_uri=bundle.storage_uri,
        file_hash=bundle.file_hash,
    )


def _make_rollback(bundle: Bundle) -> UpdateInfo:
    return UpdateInfo(
        id=bundle.id,
        message=bundle.message,
        should_force_update=True,
        status="ROLLBACK",
        storage_uri=bundle.storage_uri,
        file_hash=bundle.file_hash,
    )


def _gated_update(bundle: Bundle, request: UpdateRequest) -> UpdateInfo | None:
    logger = get_global_logger()
    if is_bundle_eligible(bundle, request.device_id):
        logger.debug("RESOLVE", f"UPDATE -> {bundle.id}")
        return _make_update(bundle)
    logger.debug(
        "RESOLVE",
        f"Device {request.device_id!r} not in rollout for {bundle.id}; no update",
    )
    return None


def get_update_info(
    bundles: Iterable[Bundle], request: UpdateRequest
) -> UpdateInfo | None:
    """Decide whether a device should update, roll back, or stay put.

    Args:
        bundles: Catalog snapshot or query result, in any order. Not mutated.
        request: A validated request (see build_update_request()).

    Returns:
        None when no action is needed, otherwise the UPDATE or ROLLBACK
        decision. A rollback to built-in code is
        INIT_BUNDLE_ROLLBACK_UPDATE_INFO.

    """
    logger = get_global_logger()

    candidates = filter_candidates(bundles, request)
    selected = select_candidates(candidates, request.bundle_id)
    logger.debug(
        "RESOLVE",
        f"{len(candidates)} candidate(s) for {request.platform}/{request.channel}, "
        f"installed={request.bundle_id}",
    )

    if request.bundle_id == NIL_BUNDLE_ID:
        if selected.latest is None:
            logger.debug("RESOLVE", "No bundle installed and no candidates")
            return None
        return _gated_update(selected.latest, request)

    if selected.current is not None:
        latest = selected.latest
        assert latest is not None  # current is itself a candidate
        if latest.id > selected.current.id:
            return _gated_update(latest, request)
        logger.debug("RESOLVE", f"Up to date at {selected.current.id}")
        return None

    logger.debug("RESOLVE", f"Installed bundle {request.bundle_id} no longer resolves")

    if selected.update_candidate is not None:
        return _gated_update(selected.update_candidate, request)

    if selected.rollback_candidate is not None:
        logger.debug("RESOLVE", f"ROLLBACK -> {selected.rollback_candidate.id}")
        return _make_rollback(selected.rollback_candidate)

    if request.bundle_id <= request.min_bundle_id:
        logger.debug("RESOLVE", "Installed bundle is at or below the floor")
        return None

    logger.debug("RESOLVE", "ROLLBACK -> built-in bundle")
    return INIT_BUNDLE_ROLLBACK_UPDATE_INFO
