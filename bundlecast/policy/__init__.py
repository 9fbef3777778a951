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

"""Deployment policy for Bundlecast.

Modules:

rollout : module
    Percentage-based and device-targeted rollout eligibility.

Public API:

hash_device_id : function
    Stable rollout bucket in [0, 100) for a device id.
is_device_eligible : function
    Apply percentage / allow-list rules to an identified device.
is_bundle_eligible : function
    Apply a bundle's rollout policy to a request's (optional) device id.

Example:
    from bundlecast.policy import is_bundle_eligible

    if is_bundle_eligible(bundle, request.device_id):
        ...

"""

from .rollout import hash_device_id, is_bundle_eligible, is_device_eligible

__all__ = ["hash_device_id", "is_bundle_eligible", "is_device_eligible"]
