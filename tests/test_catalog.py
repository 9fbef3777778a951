"""
Tests for bundlecast.catalog module.

Tests catalog handling including:
- Bundle record parsing (camelCase and snake_case)
- Rollout field normalization
- In-memory catalog queries
- File and HTTP catalog sources
"""

from __future__ import annotations

import pytest
import requests
import requests_mock

from conftest import bid

from bundlecast.catalog import (
    InMemoryCatalog,
    expand_env_headers,
    fetch_catalog_http,
    load_catalog_file,
    parse_catalog_document,
)
from bundlecast.catalog.models import (
    NIL_BUNDLE_ID,
    bundle_from_dict,
    parse_rollout_percentage,
    parse_target_device_ids,
)
from bundlecast.exceptions import CatalogError, NetworkError

CATALOG_URL = "https://ota.example.com/api/bundles"


class TestBundleFromDict:
    """Tests for parsing bundle records."""

    def test_camel_case_record(self, sample_catalog_records):
        """Test parsing the JSON wire shape."""
        bundle = bundle_from_dict(sample_catalog_records[1])
        assert bundle.id == bid(2)
        assert bundle.should_force_update is True
        assert bundle.target_app_version == "1.0"
        assert bundle.storage_uri == "s3://bundles/ios/2.zip"
        assert bundle.rollout_percentage == 100
        assert bundle.target_device_ids is None

    def test_snake_case_record(self):
        """Test parsing a database-row shaped record."""
        bundle = bundle_from_dict(
            {
                "id": bid(1),
                "platform": "android",
                "channel": "beta",
                "enabled": 1,
                "should_force_update": 0,
                "fingerprint_hash": "fp",
                "rollout_percentage": 25,
                "target_device_ids": '["dev-x", "dev-y"]',
                "storage_uri": "s3://b/1.zip",
                "git_commit_hash": "abc123",
            }
        )
        assert bundle.enabled is True
        assert bundle.should_force_update is False
        assert bundle.fingerprint_hash == "fp"
        assert bundle.rollout_percentage == 25
        assert bundle.target_device_ids == ("dev-x", "dev-y")
        assert bundle.git_commit_hash == "abc123"

    def test_defaults(self):
        """Test defaults for optional fields."""
        bundle = bundle_from_dict({"id": bid(1), "platform": "ios", "channel": "production"})
        assert bundle.enabled is True
        assert bundle.should_force_update is False
        assert bundle.target_app_version is None
        assert bundle.storage_uri is None

    def test_to_dict_is_camel_case(self, sample_catalog_records):
        """Test that to_dict gives the wire shape back."""
        bundle = bundle_from_dict(sample_catalog_records[0])
        data = bundle.to_dict()
        assert data["targetAppVersion"] == "1.x.x"
        assert data["shouldForceUpdate"] is False
        assert data["fileHash"] == "hash-1"
        assert bundle_from_dict(data) == bundle

    def test_missing_id_raises(self):
        """Test that a record without an id is rejected."""
        with pytest.raises(CatalogError, match="id"):
            bundle_from_dict({"platform": "ios", "channel": "production"})

    def test_unknown_platform_raises(self):
        """Test that an unsupported platform is rejected."""
        with pytest.raises(CatalogError, match="platform"):
            bundle_from_dict({"id": bid(1), "platform": "web", "channel": "production"})

    def test_missing_channel_raises(self):
        """Test that a record without a channel is rejected."""
        with pytest.raises(CatalogError, match="channel"):
            bundle_from_dict({"id": bid(1), "platform": "ios"})

    def test_non_boolean_enabled_raises(self):
        """Test that a string flag is rejected rather than guessed."""
        with pytest.raises(CatalogError, match="enabled"):
            bundle_from_dict(
                {"id": bid(1), "platform": "ios", "channel": "p", "enabled": "yes"}
            )

    def test_non_string_target_version_raises(self):
        """Test that a numeric targetAppVersion is rejected."""
        with pytest.raises(CatalogError, match="targetAppVersion"):
            bundle_from_dict(
                {"id": bid(1), "platform": "ios", "channel": "p", "targetAppVersion": 1.0}
            )

    def test_non_mapping_raises(self):
        """Test that a non-mapping record is rejected."""
        with pytest.raises(CatalogError, match="mapping"):
            bundle_from_dict(["not", "a", "record"])  # type: ignore[arg-type]


class TestRolloutFields:
    """Tests for rollout field normalization."""

    def test_percentage_null_is_full(self):
        """Test that a null percentage means everyone."""
        assert parse_rollout_percentage(None) == 100

    def test_percentage_integral_float(self):
        """Test that 50.0 is accepted as 50."""
        assert parse_rollout_percentage(50.0) == 50

    @pytest.mark.parametrize("value", [-1, 101, 12.5, "50", True])
    def test_percentage_invalid(self, value):
        """Test that out-of-range or non-integer percentages are rejected."""
        with pytest.raises(CatalogError):
            parse_rollout_percentage(value)

    def test_device_ids_list(self):
        """Test that non-string entries are dropped."""
        assert parse_target_device_ids(["a", 3, "b"]) == ("a", "b")

    def test_device_ids_json_string(self):
        """Test that JSON array strings are decoded."""
        assert parse_target_device_ids('["a"]') == ("a",)

    def test_device_ids_blank_string(self):
        """Test that a blank string means no allow-list."""
        assert parse_target_device_ids("  ") is None

    def test_device_ids_invalid(self):
        """Test that invalid JSON and non-lists are rejected."""
        with pytest.raises(CatalogError, match="JSON"):
            parse_target_device_ids("[not json")
        with pytest.raises(CatalogError, match="list"):
            parse_target_device_ids({"a": 1})


class TestInMemoryCatalog:
    """Tests for InMemoryCatalog queries."""

    def test_get_bundles_filters(self, make_bundle):
        """Test filtering by platform, channel, enabled flag, and floor."""
        catalog = InMemoryCatalog(
            [
                make_bundle(1),
                make_bundle(2),
                make_bundle(3, enabled=False),
                make_bundle(4, platform="android"),
                make_bundle(5, channel="beta"),
            ]
        )
        result = catalog.get_bundles("ios", "production", bid(2))
        assert [b.id for b in result] == [bid(2)]

    def test_get_bundles_target_versions(self, make_bundle):
        """Test the targetAppVersion push-down filter."""
        catalog = InMemoryCatalog(
            [
                make_bundle(1, target_app_version="1.x"),
                make_bundle(2, target_app_version="2.x"),
            ]
        )
        result = catalog.get_bundles("ios", "production", target_app_versions=["2.x"])
        assert [b.id for b in result] == [bid(2)]
        assert catalog.get_bundles("ios", "production", target_app_versions=[]) == ()

    def test_get_bundles_fingerprint(self, make_bundle):
        """Test the fingerprint push-down filter."""
        catalog = InMemoryCatalog(
            [
                make_bundle(1, target_app_version=None, fingerprint_hash="a"),
                make_bundle(2, target_app_version=None, fingerprint_hash="b"),
            ]
        )
        result = catalog.get_bundles("ios", "production", fingerprint_hash="b")
        assert [b.id for b in result] == [bid(2)]

    def test_get_target_app_versions(self, make_bundle):
        """Test distinct expressions in first-seen order, ignoring channel."""
        catalog = InMemoryCatalog(
            [
                make_bundle(1, target_app_version="1.x"),
                make_bundle(2, target_app_version="2.x", channel="beta"),
                make_bundle(3, target_app_version="1.x"),
                make_bundle(4, target_app_version=None, fingerprint_hash="fp"),
                make_bundle(5, target_app_version="3.x", platform="android"),
            ]
        )
        assert catalog.get_target_app_versions("ios") == ("1.x", "2.x")
        assert catalog.get_target_app_versions("ios", bid(2)) == ("2.x", "1.x")

    def test_snapshot_is_copied(self, make_bundle):
        """Test that later changes to the source list do not leak in."""
        source = [make_bundle(1)]
        catalog = InMemoryCatalog(source)
        source.append(make_bundle(2))
        assert len(catalog) == 1
        assert catalog.bundles == (make_bundle(1),)


class TestCatalogFiles:
    """Tests for loading catalogs from files."""

    def test_load_yaml_mapping(self, create_yaml_file, sample_catalog_records):
        """Test a YAML document with a 'bundles' key."""
        path = create_yaml_file("catalog.yaml", {"bundles": sample_catalog_records})
        bundles = load_catalog_file(path)
        assert [b.id for b in bundles] == [bid(1), bid(2), bid(3), bid(4)]

    def test_load_json_list(self, create_json_file, sample_catalog_records):
        """Test a JSON document that is a bare list."""
        path = create_json_file("catalog.json", sample_catalog_records)
        bundles = load_catalog_file(str(path))
        assert len(bundles) == 4
        assert bundles[3].fingerprint_hash == "fp-android"

    def test_empty_file_is_empty_catalog(self, tmp_test_dir):
        """Test that an empty file loads as no bundles."""
        path = tmp_test_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_catalog_file(path) == ()

    def test_missing_file_raises(self, tmp_test_dir):
        """Test that a missing file raises CatalogError."""
        with pytest.raises(CatalogError, match="not found"):
            load_catalog_file(tmp_test_dir / "nope.yaml")

    def test_invalid_yaml_raises(self, tmp_test_dir):
        """Test that unparseable YAML raises CatalogError."""
        path = tmp_test_dir / "bad.yaml"
        path.write_text("bundles: [unclosed", encoding="utf-8")
        with pytest.raises(CatalogError, match="parsing"):
            load_catalog_file(path)

    def test_wrong_shape_raises(self):
        """Test documents that are neither a list nor a 'bundles' mapping."""
        with pytest.raises(CatalogError, match="bundles"):
            parse_catalog_document({"items": []})
        with pytest.raises(CatalogError, match="list"):
            parse_catalog_document("just a string")

    def test_null_bundles_is_empty(self):
        """Test that 'bundles: null' is an empty catalog."""
        assert parse_catalog_document({"bundles": None}) == ()


class TestExpandEnvHeaders:
    """Tests for environment header expansion."""

    def test_expands_set_variable(self, monkeypatch):
        """Test that ${NAME} values come from the environment."""
        monkeypatch.setenv("BUNDLECAST_TEST_TOKEN", "secret")
        headers = expand_env_headers(
            {"Authorization": "${BUNDLECAST_TEST_TOKEN}", "X-Retry": 3}
        )
        assert headers == {"Authorization": "secret", "X-Retry": "3"}

    def test_drops_unset_variable(self, monkeypatch):
        """Test that headers with unset variables are dropped."""
        monkeypatch.delenv("BUNDLECAST_MISSING_TOKEN", raising=False)
        assert expand_env_headers({"Authorization": "${BUNDLECAST_MISSING_TOKEN}"}) == {}

    def test_none(self):
        """Test that no headers expand to an empty mapping."""
        assert expand_env_headers(None) == {}


class TestFetchCatalogHttp:
    """Tests for fetching catalogs over HTTP."""

    def test_fetch_list(self, sample_catalog_records):
        """Test a response that is the bundle list itself."""
        with requests_mock.Mocker() as m:
            m.get(CATALOG_URL, json=sample_catalog_records)
            bundles = fetch_catalog_http(CATALOG_URL)
        assert len(bundles) == 4

    def test_fetch_with_bundles_path(self, sample_catalog_records):
        """Test extracting the list with a JSONPath expression."""
        with requests_mock.Mocker() as m:
            m.get(CATALOG_URL, json={"data": {"bundles": sample_catalog_records[:2]}})
            bundles = fetch_catalog_http(CATALOG_URL, bundles_path="data.bundles")
        assert [b.id for b in bundles] == [bid(1), bid(2)]

    def test_fetch_sends_expanded_headers(self, monkeypatch):
        """Test that ${NAME} headers are sent expanded."""
        monkeypatch.setenv("BUNDLECAST_TEST_TOKEN", "Bearer abc")
        with requests_mock.Mocker() as m:
            m.get(CATALOG_URL, json=[])
            fetch_catalog_http(
                CATALOG_URL, headers={"Authorization": "${BUNDLECAST_TEST_TOKEN}"}
            )
            assert m.last_request.headers["Authorization"] == "Bearer abc"

    def test_http_error_raises(self):
        """Test that an error status raises NetworkError."""
        with requests_mock.Mocker() as m:
            m.get(CATALOG_URL, status_code=503, reason="Service Unavailable")
            with pytest.raises(NetworkError, match="503"):
                fetch_catalog_http(CATALOG_URL)

    def test_connection_error_raises(self):
        """Test that a connection failure raises NetworkError."""
        with requests_mock.Mocker() as m:
            m.get(CATALOG_URL, exc=requests.exceptions.ConnectTimeout)
            with pytest.raises(NetworkError, match="Failed to fetch"):
                fetch_catalog_http(CATALOG_URL)

    def test_invalid_json_raises(self):
        """Test that a non-JSON body raises CatalogError."""
        with requests_mock.Mocker() as m:
            m.get(CATALOG_URL, text="<html>oops</html>")
            with pytest.raises(CatalogError, match="Invalid JSON"):
                fetch_catalog_http(CATALOG_URL)

    def test_unmatched_bundles_path_raises(self):
        """Test that a JSONPath matching nothing raises CatalogError."""
        with requests_mock.Mocker() as m:
            m.get(CATALOG_URL, json={"data": {}})
            with pytest.raises(CatalogError, match="did not match"):
                fetch_catalog_http(CATALOG_URL, bundles_path="data.bundles")

    def test_malformed_record_raises(self):
        """Test that a bad record in the response raises CatalogError."""
        with requests_mock.Mocker() as m:
            m.get(CATALOG_URL, json=[{"id": NIL_BUNDLE_ID, "platform": "web"}])
            with pytest.raises(CatalogError, match="platform"):
                fetch_catalog_http(CATALOG_URL)
