"""
Tests for catalog validation module.

This module tests the validation functionality that checks catalog syntax
and bundle records without serving them.
"""

from __future__ import annotations

from conftest import bid

from bundlecast.validation import validate_catalog


class TestValidateCatalog:
    """Tests for validate_catalog function."""

    def test_valid_catalog(self, create_yaml_file, sample_catalog_records):
        """Test that the sample catalog passes validation."""
        path = create_yaml_file("catalog.yaml", {"bundles": sample_catalog_records})

        result = validate_catalog(path)

        assert result.status == "valid"
        assert result.bundle_count == 4
        assert result.errors == []
        assert result.warnings == []
        assert result.catalog_path == str(path)

    def test_valid_json_list(self, create_json_file, sample_catalog_records):
        """Test that a bare JSON list is accepted."""
        path = create_json_file("catalog.json", sample_catalog_records)
        result = validate_catalog(path)
        assert result.status == "valid"
        assert result.bundle_count == 4

    def test_missing_file(self, tmp_path):
        """Test that a missing file is reported as an error."""
        result = validate_catalog(tmp_path / "nonexistent.yaml")

        assert result.status == "invalid"
        assert result.bundle_count == 0
        assert any("not found" in e for e in result.errors)

    def test_invalid_yaml(self, tmp_path):
        """Test that a syntax error is reported as an error."""
        path = tmp_path / "catalog.yaml"
        path.write_text("bundles: [unclosed")

        result = validate_catalog(path)

        assert result.status == "invalid"
        assert any("parsing" in e for e in result.errors)

    def test_missing_bundles_key(self, create_yaml_file):
        """Test that a mapping without 'bundles' is an error."""
        path = create_yaml_file("catalog.yaml", {"items": []})

        result = validate_catalog(path)

        assert result.status == "invalid"
        assert "Missing required field: bundles" in result.errors

    def test_bundles_not_a_list(self, create_yaml_file):
        """Test that a non-list 'bundles' is an error."""
        path = create_yaml_file("catalog.yaml", {"bundles": {"id": bid(1)}})

        result = validate_catalog(path)

        assert result.status == "invalid"
        assert "Field 'bundles' must be a list" in result.errors

    def test_empty_catalog_warns(self, create_yaml_file):
        """Test that an empty bundle list is valid with a warning."""
        path = create_yaml_file("catalog.yaml", {"bundles": []})

        result = validate_catalog(path)

        assert result.status == "valid"
        assert result.warnings == ["Catalog contains no bundles"]

    def test_bad_records_collected(self, create_yaml_file, sample_catalog_records):
        """Test that every bad record is reported, not just the first."""
        records = sample_catalog_records + [
            {"id": bid(8), "platform": "web", "channel": "production"},
            {"id": bid(9), "platform": "ios", "channel": "production",
             "rolloutPercentage": 150, "targetAppVersion": "*"},
        ]
        path = create_yaml_file("catalog.yaml", {"bundles": records})

        result = validate_catalog(path)

        assert result.status == "invalid"
        assert result.bundle_count == 6
        assert len(result.errors) == 2
        assert result.errors[0].startswith("bundles[4]:")
        assert "platform" in result.errors[0]
        assert result.errors[1].startswith("bundles[5]:")
        assert "rolloutPercentage" in result.errors[1]

    def test_duplicate_ids(self, create_yaml_file, sample_catalog_records):
        """Test that duplicate bundle ids are errors."""
        records = sample_catalog_records + [dict(sample_catalog_records[0])]
        path = create_yaml_file("catalog.yaml", {"bundles": records})

        result = validate_catalog(path)

        assert result.status == "invalid"
        assert any("Duplicate bundle id" in e and "bundles[0]" in e for e in result.errors)

    def test_strategy_field_warnings(self, create_yaml_file):
        """Test warnings for bundles with both or neither strategy field."""
        records = [
            {"id": bid(1), "platform": "ios", "channel": "production",
             "targetAppVersion": "1.x", "fingerprintHash": "fp"},
            {"id": bid(2), "platform": "ios", "channel": "production"},
        ]
        path = create_yaml_file("catalog.yaml", records)

        result = validate_catalog(path)

        assert result.status == "valid"
        assert len(result.warnings) == 2
        assert "both" in result.warnings[0]
        assert "neither" in result.warnings[1]

    def test_invalid_range_warns(self, create_yaml_file):
        """Test that an unparseable targetAppVersion is a warning."""
        records = [
            {"id": bid(1), "platform": "ios", "channel": "production",
             "targetAppVersion": "latest"},
        ]
        path = create_yaml_file("catalog.yaml", records)

        result = validate_catalog(path)

        assert result.status == "valid"
        assert len(result.warnings) == 1
        assert "not a valid version range" in result.warnings[0]
