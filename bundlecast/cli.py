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

"""Command-line interface for Bundlecast.

This module provides the main CLI entry point for the bundlecast tool,
offering commands to resolve update decisions against a catalog, validate
catalogs, and inspect version and rollout matching.

Commands:

    resolve: Resolve the update decision for a device
    validate: Validate a catalog file
    versions: List target versions compatible with an app version
    bucket: Show a device's rollout bucket and eligibility

Example:
    Resolve against a catalog file:
        ```bash
        $ bundlecast resolve --catalog catalog.yaml --platform ios \\
            --app-version 1.0.3
        ```

    Resolve using a service config, JSON output:
        ```bash
        $ bundlecast resolve --config bundlecast.yaml --platform android \\
            --bundle-id 0195a408-... --fingerprint-hash abc123 --json
        ```

    Validate a catalog:
        ```bash
        $ bundlecast validate catalog.yaml
        ```

    Check which bucket a device lands in:
        ```bash
        $ bundlecast bucket device-1 --percentage 25
        ```

Exit Codes:

- 0: Success
- 1: Error (configuration, catalog, request, or validation failure)

Note:
    The CLI uses argparse for command parsing (stdlib, zero dependencies).
    Each command has its own handler function (cmd_<command>).
    Verbose mode shows full tracebacks on errors for debugging.
    Debug mode implies verbose mode and traces every resolution step.

"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys
import traceback

from bundlecast import __version__
from bundlecast.catalog.base import InMemoryCatalog
from bundlecast.catalog.models import NIL_BUNDLE_ID
from bundlecast.catalog.sources import load_catalog_file
from bundlecast.config.loader import load_service_config
from bundlecast.core import load_catalog_from_config, resolve_app_update
from bundlecast.exceptions import BundlecastError
from bundlecast.logging import get_logger, set_global_logger
from bundlecast.policy.rollout import hash_device_id, is_device_eligible
from bundlecast.resolution.request import build_update_request
from bundlecast.storage.resolvers import (
    PassthroughResolver,
    StorageUriResolver,
    build_storage_resolver,
)
from bundlecast.validation import validate_catalog
from bundlecast.versioning import filter_compatible_app_versions


def _configure_logger(args: argparse.Namespace) -> None:
    logger = get_logger(
        verbose=getattr(args, "verbose", False), debug=getattr(args, "debug", False)
    )
    set_global_logger(logger)


def _report_error(args: argparse.Namespace, err: Exception) -> int:
    print(f"Error: {err}")
    if getattr(args, "verbose", False) or getattr(args, "debug", False):
        traceback.print_exc()
    return 1


def _open_catalog(
    args: argparse.Namespace,
) -> tuple[InMemoryCatalog, StorageUriResolver, str | None]:
    """Load the catalog, storage resolver, and default channel from CLI flags.

    Raises:
        BundlecastError: If neither --config nor --catalog is usable.
    """
    if args.config:
        config = load_service_config(Path(args.config))
        catalog = load_catalog_from_config(config)
        resolver = build_storage_resolver(config.get("storage"))
        return catalog, resolver, config["defaults"].get("channel")
    if args.catalog:
        catalog = InMemoryCatalog(load_catalog_file(Path(args.catalog)))
        return catalog, PassthroughResolver(), None
    raise BundlecastError("One of --config or --catalog is required")


def cmd_resolve(args: argparse.Namespace) -> int:
    """Handler for 'bundlecast resolve' command.

    Builds an update request from the flags, loads the catalog, and prints
    the decision (UPDATE, ROLLBACK, or no update).

    Args:
        args: Parsed command-line arguments containing request fields,
            catalog location, and output flags.

    Returns:
        Exit code (0 for success, 1 for failure). "No update" is a
            successful outcome.

    """
    _configure_logger(args)

    try:
        catalog, resolver, config_channel = _open_catalog(args)
        request = build_update_request(
            platform=args.platform,
            bundle_id=args.bundle_id,
            app_version=args.app_version,
            fingerprint_hash=args.fingerprint_hash,
            channel=args.channel or config_channel,
            min_bundle_id=args.min_bundle_id,
            device_id=args.device_id,
        )
        info = resolve_app_update(catalog, request, resolver)
    except BundlecastError as err:
        return _report_error(args, err)

    if args.json:
        print(json.dumps(info.to_dict() if info is not None else None, indent=2))
        return 0

    print("=" * 70)
    print("RESOLUTION RESULTS")
    print("=" * 70)
    print(f"Platform:        {request.platform}")
    print(f"Channel:         {request.channel}")
    print(f"Installed:       {request.bundle_id}")
    if info is None:
        print("Decision:        NO UPDATE")
    else:
        print(f"Decision:        {info.status}")
        print(f"Bundle ID:       {info.id}")
        print(f"Force Update:    {info.should_force_update}")
        print(f"Message:         {info.message or '-'}")
        print(f"Storage URI:     {info.storage_uri or '-'}")
        print(f"File URL:        {info.file_url or '-'}")
    print("=" * 70)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'bundlecast validate' command.

    Validates catalog syntax and bundle records without serving anything.

    Args:
        args: Parsed command-line arguments containing the catalog path
            and verbose flag.

    Returns:
        Exit code (0 for valid catalog, 1 for invalid).

    """
    _configure_logger(args)

    catalog_path = Path(args.catalog).resolve()

    print(f"Validating catalog: {catalog_path}")
    print()

    result = validate_catalog(catalog_path)

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"Catalog:       {result.catalog_path}")
    print(f"Status:        {result.status.upper()}")
    print(f"Bundle Count:  {result.bundle_count}")
    print()

    if result.warnings:
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  [WARNING] {warning}")
        print()

    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  [X] {error}")
        print()

    print("=" * 70)

    if result.status == "valid":
        print()
        print("[SUCCESS] Catalog is valid!")
        return 0

    print()
    print(f"[FAILED] Catalog validation failed with {len(result.errors)} error(s).")
    return 1


def cmd_versions(args: argparse.Namespace) -> int:
    """Handler for 'bundlecast versions' command.

    Lists the distinct target version expressions in the catalog that
    accept the given app version.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    _configure_logger(args)

    try:
        catalog, _, _ = _open_catalog(args)
    except BundlecastError as err:
        return _report_error(args, err)

    targets = catalog.get_target_app_versions(
        args.platform, args.min_bundle_id or NIL_BUNDLE_ID
    )
    compatible = filter_compatible_app_versions(targets, args.app_version)

    if args.json:
        print(json.dumps(compatible, indent=2))
        return 0

    print(
        f"{len(compatible)} of {len(targets)} target version(s) compatible "
        f"with {args.platform} {args.app_version}:"
    )
    for expression in compatible:
        print(f"  {expression}")
    return 0


def cmd_bucket(args: argparse.Namespace) -> int:
    """Handler for 'bundlecast bucket' command.

    Prints the device's rollout bucket and, when --percentage is given,
    whether the device falls inside that rollout.

    Returns:
        Exit code (always 0).

    """
    _configure_logger(args)

    bucket = hash_device_id(args.device_id)
    print(f"Device ID:   {args.device_id}")
    print(f"Bucket:      {bucket}")
    if args.percentage is not None:
        eligible = is_device_eligible(args.device_id, args.percentage)
        print(f"Rollout:     {args.percentage}%")
        print(f"Eligible:    {'yes' if eligible else 'no'}")
    return 0


def _add_log_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def _add_catalog_flags(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--config",
        default=None,
        help="Path to a bundlecast service config YAML",
    )
    source.add_argument(
        "--catalog",
        default=None,
        help="Path to a catalog YAML/JSON file",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the bundlecast CLI."""
    parser = argparse.ArgumentParser(
        prog="bundlecast",
        description="Bundlecast - OTA bundle resolution and rollout engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"bundlecast {__version__}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'resolve' command
    parser_resolve = subparsers.add_parser(
        "resolve",
        help="Resolve the update decision for a device",
        description="Decide whether a device should update, roll back, or keep its bundle.",
    )
    _add_catalog_flags(parser_resolve)
    parser_resolve.add_argument(
        "--platform", required=True, help="Device platform (ios or android)"
    )
    parser_resolve.add_argument(
        "--bundle-id",
        default=NIL_BUNDLE_ID,
        help="Installed bundle id (default: nil id, no bundle installed)",
    )
    strategy = parser_resolve.add_mutually_exclusive_group(required=True)
    strategy.add_argument("--app-version", default=None, help="App version")
    strategy.add_argument(
        "--fingerprint-hash", default=None, help="Native build fingerprint"
    )
    parser_resolve.add_argument(
        "--channel",
        default=None,
        help="Channel (default: from config, else production)",
    )
    parser_resolve.add_argument(
        "--min-bundle-id", default=None, help="Bundle id floor (default: nil id)"
    )
    parser_resolve.add_argument(
        "--device-id", default=None, help="Device id for rollout evaluation"
    )
    parser_resolve.add_argument(
        "--json", action="store_true", help="Print the decision as JSON"
    )
    _add_log_flags(parser_resolve)
    parser_resolve.set_defaults(func=cmd_resolve)

    # 'validate' command
    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate a catalog file",
        description="Check a catalog for syntax errors, malformed bundles, and duplicate ids.",
    )
    parser_validate.add_argument("catalog", help="Path to the catalog YAML/JSON file")
    parser_validate.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show validation progress and details",
    )
    parser_validate.set_defaults(func=cmd_validate)

    # 'versions' command
    parser_versions = subparsers.add_parser(
        "versions",
        help="List target versions compatible with an app version",
        description="Show which targetAppVersion expressions in a catalog accept an app version.",
    )
    _add_catalog_flags(parser_versions)
    parser_versions.add_argument(
        "--platform", required=True, help="Device platform (ios or android)"
    )
    parser_versions.add_argument("--app-version", required=True, help="App version")
    parser_versions.add_argument(
        "--min-bundle-id", default=None, help="Bundle id floor (default: nil id)"
    )
    parser_versions.add_argument(
        "--json", action="store_true", help="Print the list as JSON"
    )
    _add_log_flags(parser_versions)
    parser_versions.set_defaults(func=cmd_versions)

    # 'bucket' command
    parser_bucket = subparsers.add_parser(
        "bucket",
        help="Show a device's rollout bucket",
        description="Compute the stable rollout bucket (0-99) for a device id.",
    )
    parser_bucket.add_argument("device_id", help="Device identifier")
    parser_bucket.add_argument(
        "--percentage",
        type=int,
        default=None,
        help="Rollout percentage to test eligibility against",
    )
    _add_log_flags(parser_bucket)
    parser_bucket.set_defaults(func=cmd_bucket)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the bundlecast CLI.

    This function is registered as the 'bundlecast' console script in
    pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
