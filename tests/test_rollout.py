"""
Tests for bundlecast.policy.rollout module.

Tests rollout eligibility including:
- Stable bucket assignment compatible with deployed servers
- Percentage thresholds and their boundaries
- Device allow-lists overriding percentages
- Anonymous devices always being eligible
"""

from __future__ import annotations

import pytest

from bundlecast.policy import hash_device_id, is_bundle_eligible, is_device_eligible


class TestHashDeviceId:
    """Tests for device bucket hashing."""

    @pytest.mark.parametrize(
        "device_id,bucket",
        [
            ("abc", 54),
            ("device-0", 65),
            ("device-1", 66),
            ("device-B", 83),
            ("dev-x", 4),
            ("dev-y", 5),
            ("test-device-123", 94),  # negative int32 hash
            ("user-1", 25),
            ("user-2", 24),
            ("", 0),
        ],
    )
    def test_known_buckets(self, device_id, bucket):
        """Test buckets match the values assigned by existing deployments."""
        assert hash_device_id(device_id) == bucket

    def test_hash_uses_utf16_code_units(self):
        """Test that characters outside the BMP hash as surrogate pairs."""
        # U+1F600 -> 0xD83D 0xDE00 -> 0xD83D * 31 + 0xDE00 = 1772899
        assert hash_device_id("\U0001F600") == 99

    def test_bucket_range(self):
        """Test that buckets always fall in [0, 100)."""
        for i in range(500):
            assert 0 <= hash_device_id(f"device-{i}") < 100

    def test_deterministic(self):
        """Test that the same id always lands in the same bucket."""
        buckets = {hash_device_id("device-special") for _ in range(50)}
        assert len(buckets) == 1

    def test_roughly_uniform(self):
        """Test that buckets spread across the range for many devices."""
        buckets = {hash_device_id(f"00000000-aaaa-{i:08d}") for i in range(2000)}
        assert len(buckets) > 80


class TestIsDeviceEligible:
    """Tests for percentage and allow-list rules."""

    def test_null_or_full_percentage_is_eligible(self):
        """Test that None and >= 100 admit every device."""
        assert is_device_eligible("device-1", None)
        assert is_device_eligible("device-1", 100)

    def test_zero_percentage_is_ineligible(self):
        """Test that 0 admits no device."""
        assert not is_device_eligible("device-1", 0)

    def test_percentage_boundary(self):
        """Test that eligibility is bucket < percentage."""
        # device-1 is in bucket 66
        assert not is_device_eligible("device-1", 25)
        assert not is_device_eligible("device-1", 66)
        assert is_device_eligible("device-1", 67)

    def test_target_device_ids_override_percentage(self):
        """Test that a non-empty allow-list ignores the percentage."""
        assert is_device_eligible("dev-x", 0, ["dev-x"])
        assert not is_device_eligible("dev-y", 100, ["dev-x"])

    def test_empty_target_device_ids_fall_back_to_percentage(self):
        """Test that an empty allow-list behaves like no allow-list."""
        assert is_device_eligible("device-1", 100, [])
        assert not is_device_eligible("device-1", 0, [])

    def test_percentage_share(self):
        """Test that about the requested share of devices is eligible."""
        eligible = sum(
            is_device_eligible(f"user-{i}-{i * 7919}", 30) for i in range(2000)
        )
        assert 400 < eligible < 800


class TestIsBundleEligible:
    """Tests for applying a bundle's rollout policy to a request."""

    def test_anonymous_device_always_eligible(self, make_bundle):
        """Test that a missing device id is always eligible."""
        bundle = make_bundle(1, rollout_percentage=0, target_device_ids=("dev-x",))
        assert is_bundle_eligible(bundle, None)
        assert is_bundle_eligible(bundle, "")

    def test_uses_bundle_policy(self, make_bundle):
        """Test that the bundle's percentage and allow-list are applied."""
        gated = make_bundle(1, rollout_percentage=0)
        targeted = make_bundle(2, target_device_ids=("dev-x",))
        assert not is_bundle_eligible(gated, "device-1")
        assert is_bundle_eligible(targeted, "dev-x")
        assert not is_bundle_eligible(targeted, "dev-y")
