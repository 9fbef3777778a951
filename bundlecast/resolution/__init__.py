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

"""Bundle resolution for Bundlecast.

This package turns an update request and a catalog snapshot into a
decision. Data flows one way:

    request + bundles -> filters -> selector -> rollout gate -> engine

Modules:

request : module
    AppVersionRequest / FingerprintRequest shapes and request validation.
filters : module
    Candidate filtering (platform, channel, enabled, strategy, floor).
selector : module
    Single-pass latest / current / update / rollback selection.
engine : module
    The decision state machine (get_update_info).

Example:
    from bundlecast.resolution import build_update_request, get_update_info

    request = build_update_request(
        platform="android", bundle_id=installed_id, fingerprint_hash="abc123"
    )
    info = get_update_info(bundles, request)

"""

from .engine import get_update_info
from .filters import filter_candidates, is_candidate, matches_strategy
from .request import (
    AppVersionRequest,
    FingerprintRequest,
    UpdateRequest,
    build_update_request,
    request_from_mapping,
)
from .selector import CandidateSet, select_candidates

__all__ = [
    "AppVersionRequest",
    "CandidateSet",
    "FingerprintRequest",
    "UpdateRequest",
    "build_update_request",
    "filter_candidates",
    "get_update_info",
    "is_candidate",
    "matches_strategy",
    "request_from_mapping",
    "select_candidates",
]
