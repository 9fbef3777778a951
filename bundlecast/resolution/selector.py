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

"""Candidate selection for update resolution.

Given the filtered candidates and the installed bundle id, picks four
optional references in a single pass:

- latest: the greatest id
- current: the bundle whose id equals the installed id
- update_candidate: the smallest id strictly greater than the installed id
- rollback_candidate: the greatest id strictly less than the installed id

Ids are unique and string order is time order, so plain string comparison
is all that is needed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from bundlecast.catalog.models import Bundle


@dataclass(frozen=True)
class CandidateSet:
    """Selection result over a set of candidates.

    Attributes:
        latest: Newest candidate, or None when there are no candidates.
        current: Candidate matching the installed bundle id, if present.
        update_candidate: Oldest candidate newer than the installed bundle.
        rollback_candidate: Newest candidate older than the installed bundle.

    """

    latest: Bundle | None = None
    current: Bundle | None = None
    update_candidate: Bundle | None = None
    rollback_candidate: Bundle | None = None


def select_candidates(candidates: Iterable[Bundle], bundle_id: str) -> CandidateSet:
    """Pick latest / current / update / rollback references in one pass.

    Args:
        candidates: Filtered bundles in any order.
        bundle_id: The device's installed bundle id.

    Returns:
        The selected references.

    """
    latest: Bundle | None = None
    current: Bundle | None = None
    update: Bundle | None = None
    rollback: Bundle | None = None

    for bundle in candidates:
        if latest is None or bundle.id > latest.id:
            latest = bundle

        if bundle.id == bundle_id:
            current = bundle
        elif bundle.id > bundle_id:
            if update is None or bundle.id < update.id:
                update = bundle
        elif rollback is None or bundle.id > rollback.id:
            rollback = bundle

    return CandidateSet(
        latest=latest,
        current=current,
        update_candidate=update,
        rollback_candidate=rollback,
    )
