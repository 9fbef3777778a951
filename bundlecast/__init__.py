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

"""
Bundlecast - OTA bundle resolution and rollout engine

A Python library and CLI that decides, for a mobile device polling for
over-the-air code updates, whether it should keep its current JavaScript
bundle, apply a newer one, or roll back.

Bundlecast provides:
  - A pure, deterministic decision engine (UPDATE / ROLLBACK / no update)
  - Two compatibility strategies: semantic app-version ranges and native
    build fingerprints
  - Channel isolation and minimum bundle id floors
  - Staged rollout by percentage or explicit device allow-lists
  - Catalog loading from YAML/JSON files and HTTP endpoints
  - Pluggable storage URI resolution (passthrough, CDN base URLs, signing
    endpoints)

Quick Start
-----------
Resolve a decision against a catalog file:

    $ bundlecast resolve --catalog catalog.yaml --platform ios --app-version 1.0

Validate a catalog:

    $ bundlecast validate catalog.yaml

For full CLI documentation:

    $ bundlecast --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    Orchestration: catalog query, decision, storage resolution.
catalog : package
    Bundle model, catalog query protocol, file/HTTP sources.
resolution : package
    Request shapes, candidate filter and selector, decision engine.
versioning : package
    Semantic version parsing and range matching.
policy : package
    Rollout eligibility.
storage : package
    Storage URI resolvers.
config : package
    YAML service configuration loading.

Public API
----------
The engine is the primary interface; the CLI is a thin adapter:

    from bundlecast.resolution import build_update_request, get_update_info
    from bundlecast.core import resolve_app_update
    from bundlecast.catalog import InMemoryCatalog, load_catalog_file
    from bundlecast.validation import validate_catalog

For more details, see the individual module docstrings.
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Bundlecast - OTA bundle resolution and rollout engine"

# Re-export commonly used functions for convenience
from bundlecast.catalog import NIL_BUNDLE_ID, Bundle, InMemoryCatalog, load_catalog_file
from bundlecast.config import load_service_config
from bundlecast.core import resolve_app_update
from bundlecast.resolution import build_update_request, get_update_info
from bundlecast.results import AppUpdateInfo, UpdateInfo
from bundlecast.validation import validate_catalog

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "NIL_BUNDLE_ID",
    "AppUpdateInfo",
    "Bundle",
    "InMemoryCatalog",
    "UpdateInfo",
    "build_update_request",
    "get_update_info",
    "load_catalog_file",
    "load_service_config",
    "resolve_app_update",
    "validate_catalog",
]
