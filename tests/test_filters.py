"""
Tests for bundlecast.resolution.filters and selector modules.

Tests candidate filtering and selection including:
- Platform, channel, and enabled rules
- Strategy matching (version range and fingerprint)
- The minimum bundle id floor
- Single-pass latest / current / update / rollback selection
"""

from __future__ import annotations

from conftest import bid

from bundlecast.catalog.models import NIL_BUNDLE_ID
from bundlecast.resolution import (
    build_update_request,
    filter_candidates,
    select_candidates,
)


def version_request(**overrides):
    fields = {"platform": "ios", "bundle_id": NIL_BUNDLE_ID, "app_version": "1.0"}
    fields.update(overrides)
    return build_update_request(**fields)


def fingerprint_request(**overrides):
    fields = {"platform": "ios", "bundle_id": NIL_BUNDLE_ID, "fingerprint_hash": "fp"}
    fields.update(overrides)
    return build_update_request(**fields)


class TestFilterCandidates:
    """Tests for filter_candidates."""

    def test_platform_channel_enabled(self, make_bundle):
        """Test that only enabled bundles on the same platform and channel pass."""
        bundles = [
            make_bundle(1),
            make_bundle(2, platform="android"),
            make_bundle(3, channel="beta"),
            make_bundle(4, enabled=False),
        ]
        result = filter_candidates(bundles, version_request())
        assert [b.id for b in result] == [bid(1)]

    def test_version_strategy_requires_target_version(self, make_bundle):
        """Test that bundles without targetAppVersion are invisible to version requests."""
        bundles = [
            make_bundle(1, target_app_version=None, fingerprint_hash="fp"),
            make_bundle(2, target_app_version="1.x.x"),
            make_bundle(3, target_app_version="2.x.x"),
        ]
        result = filter_candidates(bundles, version_request())
        assert [b.id for b in result] == [bid(2)]

    def test_fingerprint_strategy_exact_match(self, make_bundle):
        """Test that fingerprint requests match by exact equality only."""
        bundles = [
            make_bundle(1, target_app_version="*"),
            make_bundle(2, target_app_version=None, fingerprint_hash="fp"),
            make_bundle(3, target_app_version=None, fingerprint_hash="FP"),
        ]
        result = filter_candidates(bundles, fingerprint_request())
        assert [b.id for b in result] == [bid(2)]

    def test_floor_is_inclusive(self, make_bundle):
        """Test that ids below the floor are dropped and the floor itself kept."""
        bundles = [make_bundle(1), make_bundle(2), make_bundle(3)]
        result = filter_candidates(bundles, version_request(min_bundle_id=bid(2)))
        assert [b.id for b in result] == [bid(2), bid(3)]

    def test_input_not_mutated(self, make_bundle):
        """Test that the catalog snapshot is left untouched."""
        bundles = [make_bundle(2), make_bundle(1, enabled=False)]
        snapshot = list(bundles)
        filter_candidates(bundles, version_request())
        assert bundles == snapshot


class TestSelectCandidates:
    """Tests for select_candidates."""

    def test_empty(self):
        """Test that nothing is selected from no candidates."""
        selected = select_candidates([], bid(5))
        assert selected.latest is None
        assert selected.current is None
        assert selected.update_candidate is None
        assert selected.rollback_candidate is None

    def test_all_references(self, make_bundle):
        """Test latest, current, nearest newer, and nearest older."""
        bundles = [make_bundle(n) for n in (7, 2, 5, 9, 3)]
        selected = select_candidates(bundles, bid(5))
        assert selected.latest.id == bid(9)
        assert selected.current.id == bid(5)
        assert selected.update_candidate.id == bid(7)
        assert selected.rollback_candidate.id == bid(3)

    def test_missing_current(self, make_bundle):
        """Test selection when the installed bundle is not a candidate."""
        bundles = [make_bundle(n) for n in (1, 8, 6)]
        selected = select_candidates(bundles, bid(4))
        assert selected.current is None
        assert selected.update_candidate.id == bid(6)
        assert selected.rollback_candidate.id == bid(1)

    def test_order_independent(self, make_bundle):
        """Test that input order does not change the selection."""
        bundles = [make_bundle(n) for n in (1, 3, 5, 7)]
        forward = select_candidates(bundles, bid(4))
        backward = select_candidates(list(reversed(bundles)), bid(4))
        assert forward == backward

    def test_nil_installed(self, make_bundle):
        """Test that every candidate is newer than the nil id."""
        bundles = [make_bundle(n) for n in (2, 4)]
        selected = select_candidates(bundles, NIL_BUNDLE_ID)
        assert selected.latest.id == bid(4)
        assert selected.update_candidate.id == bid(2)
        assert selected.rollback_candidate is None
