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

"""Gradual rollout eligibility for Bundlecast.

Decides whether a device may receive a bundle as an UPDATE. Rollout never
gates ROLLBACK; a device whose bundle disappeared must always be able to
recover.

Policy, in priority order:

1. No device id -> eligible (legacy clients that do not send one).
2. Non-empty target device list -> eligible iff the device is listed
   (percentage is ignored).
3. Percentage null or >= 100 -> eligible; <= 0 -> not eligible.
4. Otherwise bucket the device id into [0, 100) and compare
   ``bucket < percentage``.

Bucketing uses the 32-bit ``hash * 31 + code_unit`` string hash over
UTF-16 code units, reduced with a truncated remainder and made positive.
It is bit-compatible with the buckets already assigned by deployed
servers, so migrating does not reshuffle which devices are in a rollout.
Clients re-poll on a schedule, so the bucket must depend on the device id
alone: no salt, no clock, no process state.

Example:
    Check a device against a 25% rollout:
        ```python
        from bundlecast.policy.rollout import is_device_eligible

        is_device_eligible("device-1", rollout_percentage=25)
        ```
"""

from __future__ import annotations

from typing import Iterable

from bundlecast.catalog.models import Bundle

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def hash_device_id(device_id: str) -> int:
    """Map a device id to a stable bucket in [0, 100).

    Args:
        device_id: Device identifier as sent by the client.

    Returns:
        The device's rollout bucket.

    Example:
        >>> hash_device_id("abc")
        54

    """
    h = 0
    data = device_id.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & _INT32_MASK
    if h & _INT32_SIGN:
        h -= 1 << 32
    # Truncated remainder then abs: same as abs(h) % 100
    return abs(h) % 100


def is_device_eligible(
    device_id: str,
    rollout_percentage: int | None = None,
    target_device_ids: Iterable[str] | None = None,
) -> bool:
    """Decide whether an identified device falls inside a rollout.

    Args:
        device_id: Device identifier (must be present; see
            is_bundle_eligible() for the no-device-id rule).
        rollout_percentage: Share of devices 0-100; None means 100.
        target_device_ids: Explicit allow-list; when non-empty it replaces
            the percentage entirely.

    Returns:
        True if the device may receive the bundle as an UPDATE.

    """
    targets = tuple(target_device_ids or ())
    if targets:
        return device_id in targets

    if rollout_percentage is None or rollout_percentage >= 100:
        return True
    if rollout_percentage <= 0:
        return False

    return hash_device_id(device_id) < rollout_percentage


def is_bundle_eligible(bundle: Bundle, device_id: str | None) -> bool:
    """Apply a bundle's rollout policy to a (possibly anonymous) device.

    Args:
        bundle: Candidate bundle for an UPDATE.
        device_id: Device identifier from the request, or None.

    Returns:
        True if the UPDATE may be surfaced to this device.

    """
    if not device_id:
        return True
    return is_device_eligible(
        device_id, bundle.rollout_percentage, bundle.target_device_ids
    )
