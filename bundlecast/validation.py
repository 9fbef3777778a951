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

"""Catalog validation module.

This module checks a catalog file for problems before it is served. The
engine itself fails closed on odd data (an unparseable version range never
matches), which keeps devices safe but hides mistakes; validation surfaces
them for CI/CD pipelines and release tooling.

Validation Checks:

- YAML/JSON syntax is valid
- The document is a bundle list or a mapping with a "bundles" list
- Each bundle record has a valid shape (errors)
- Bundle ids are unique (errors)
- Each bundle sets exactly one of targetAppVersion / fingerprintHash
  (warnings)
- targetAppVersion parses as a version range (warnings)

Example:
    Validate a catalog and handle results:
        ```python
        from pathlib import Path
        from bundlecast.validation import validate_catalog

        result = validate_catalog(Path("catalog.yaml"))
        if result.status == "valid":
            print(f"Catalog is valid with {result.bundle_count} bundle(s)")
        else:
            for error in result.errors:
                print(f"Error: {error}")
        ```

"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from bundlecast.catalog.models import bundle_from_dict
from bundlecast.catalog.sources import read_catalog_document
from bundlecast.exceptions import CatalogError
from bundlecast.logging import get_global_logger
from bundlecast.results import ValidationResult
from bundlecast.versioning import is_valid_range

__all__ = ["validate_catalog"]


def _invalid(errors: list[str], warnings: list[str], path: Path) -> ValidationResult:
    return ValidationResult(
        status="invalid",
        errors=errors,
        warnings=warnings,
        bundle_count=0,
        catalog_path=str(path),
    )


def validate_catalog(catalog_path: Path) -> ValidationResult:
    """Validate a catalog file without serving it.

    Args:
        catalog_path: Path to the YAML or JSON catalog file.

    Returns:
        Validation result. Never raises for catalog content problems;
            every problem is reported in errors or warnings.

    """
    logger = get_global_logger()
    catalog_path = Path(catalog_path)
    errors: list[str] = []
    warnings: list[str] = []

    logger.verbose("VALIDATION", f"Validating catalog: {catalog_path}")

    try:
        document = read_catalog_document(catalog_path)
    except CatalogError as err:
        errors.append(str(err))
        return _invalid(errors, warnings, catalog_path)

    logger.verbose("VALIDATION", "[OK] Syntax is valid")

    records: Any = document
    if isinstance(document, Mapping):
        if "bundles" not in document:
            errors.append("Missing required field: bundles")
            return _invalid(errors, warnings, catalog_path)
        records = document["bundles"]
    if records is None:
        records = []
    if not isinstance(records, list):
        errors.append("Field 'bundles' must be a list")
        return _invalid(errors, warnings, catalog_path)

    if not records:
        warnings.append("Catalog contains no bundles")

    seen_ids: dict[str, int] = {}
    for idx, record in enumerate(records):
        prefix = f"bundles[{idx}]"

        try:
            bundle = bundle_from_dict(record)
        except CatalogError as err:
            errors.append(f"{prefix}: {err}")
            continue

        if bundle.id in seen_ids:
            errors.append(
                f"{prefix}: Duplicate bundle id {bundle.id!r} "
                f"(first seen at bundles[{seen_ids[bundle.id]}])"
            )
        else:
            seen_ids[bundle.id] = idx

        has_version = bundle.target_app_version is not None
        has_fingerprint = bundle.fingerprint_hash is not None
        if has_version and has_fingerprint:
            warnings.append(
                f"{prefix}: Sets both targetAppVersion and fingerprintHash; "
                f"each request strategy only looks at one"
            )
        elif not has_version and not has_fingerprint:
            warnings.append(
                f"{prefix}: Sets neither targetAppVersion nor fingerprintHash; "
                f"no request will ever match it"
            )

        if has_version and not is_valid_range(bundle.target_app_version):
            warnings.append(
                f"{prefix}: targetAppVersion {bundle.target_app_version!r} "
                f"is not a valid version range; it will never match"
            )

    status = "valid" if not errors else "invalid"
    if status == "valid":
        logger.verbose("VALIDATION", f"[OK] {len(records)} bundle(s) are valid")
    else:
        logger.verbose("VALIDATION", f"[ERROR] Catalog has {len(errors)} error(s)")

    return ValidationResult(
        status=status,
        errors=errors,
        warnings=warnings,
        bundle_count=len(records),
        catalog_path=str(catalog_path),
    )
