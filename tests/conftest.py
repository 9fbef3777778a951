"""
Pytest configuration and shared fixtures for Bundlecast tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from bundlecast.catalog.models import Bundle
from bundlecast.logging import SilentLogger, set_global_logger


def bid(n: int) -> str:
    """
    Build a time-ordered bundle id from a counter.

    Zero-padded counters sort the same way as creation order, which is all
    the engine relies on. bid(0) is the nil id.
    """
    return f"00000000-0000-0000-0000-{n:012d}"


@pytest.fixture(autouse=True)
def silent_global_logger():
    """Reset the global logger so CLI tests do not leak verbose output."""
    set_global_logger(SilentLogger())
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def make_bundle():
    """
    Factory fixture for building bundles with sensible defaults.

    Usage:
        bundle = make_bundle(1, target_app_version="1.x.x", enabled=False)
    """

    def _make(n: int, **overrides: Any) -> Bundle:
        fields: dict[str, Any] = {
            "id": bid(n),
            "platform": "ios",
            "channel": "production",
            "enabled": True,
            "should_force_update": False,
            "target_app_version": "*",
            "fingerprint_hash": None,
            "rollout_percentage": 100,
            "target_device_ids": None,
            "storage_uri": f"s3://bundles/ios/{bid(n)}.zip",
            "file_hash": f"hash-{n}",
            "message": f"bundle {n}",
            "git_commit_hash": None,
        }
        fields.update(overrides)
        return Bundle(**fields)

    return _make


@pytest.fixture
def sample_catalog_records() -> list[dict[str, Any]]:
    """
    Provide sample catalog records in the camelCase wire shape.

    Covers both strategies and a disabled bundle.
    """
    return [
        {
            "id": bid(1),
            "platform": "ios",
            "channel": "production",
            "enabled": True,
            "shouldForceUpdate": False,
            "targetAppVersion": "1.x.x",
            "fingerprintHash": None,
            "storageUri": "https://cdn.example.com/ios/1.zip",
            "fileHash": "hash-1",
            "message": "first",
        },
        {
            "id": bid(2),
            "platform": "ios",
            "channel": "production",
            "enabled": True,
            "shouldForceUpdate": True,
            "targetAppVersion": "1.0",
            "fingerprintHash": None,
            "storageUri": "s3://bundles/ios/2.zip",
            "fileHash": "hash-2",
            "message": "second",
        },
        {
            "id": bid(3),
            "platform": "ios",
            "channel": "production",
            "enabled": False,
            "shouldForceUpdate": False,
            "targetAppVersion": "1.x.x",
            "fingerprintHash": None,
            "storageUri": "s3://bundles/ios/3.zip",
            "message": "disabled",
        },
        {
            "id": bid(4),
            "platform": "android",
            "channel": "production",
            "enabled": True,
            "shouldForceUpdate": False,
            "targetAppVersion": None,
            "fingerprintHash": "fp-android",
            "storageUri": "s3://bundles/android/4.zip",
            "message": "android fingerprint",
        },
    ]


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("test.yaml", {"key": "value"})
    """

    def _create(filename: str, data: Any) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def create_json_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary JSON files.

    Usage:
        json_path = create_json_file("catalog.json", [{"id": ...}])
    """

    def _create(filename: str, data: Any) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _create
