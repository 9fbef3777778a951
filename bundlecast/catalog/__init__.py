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

"""Bundle catalog for Bundlecast.

Modules:

models : module
    The Bundle dataclass, the nil bundle id, and record parsing.
base : module
    The BundleCatalog query protocol and InMemoryCatalog.
sources : module
    Loading catalog snapshots from YAML/JSON files and HTTP endpoints.

Example:
    from bundlecast.catalog import InMemoryCatalog, load_catalog_file

    catalog = InMemoryCatalog(load_catalog_file("catalog.yaml"))
    versions = catalog.get_target_app_versions("ios")

"""

from .base import BundleCatalog, InMemoryCatalog
from .models import (
    DEFAULT_CHANNEL,
    NIL_BUNDLE_ID,
    PLATFORMS,
    Bundle,
    Platform,
    bundle_from_dict,
    parse_rollout_percentage,
    parse_target_device_ids,
)
from .sources import (
    expand_env_headers,
    fetch_catalog_http,
    load_catalog_file,
    parse_catalog_document,
)

__all__ = [
    "DEFAULT_CHANNEL",
    "NIL_BUNDLE_ID",
    "PLATFORMS",
    "Bundle",
    "BundleCatalog",
    "InMemoryCatalog",
    "Platform",
    "bundle_from_dict",
    "expand_env_headers",
    "fetch_catalog_http",
    "load_catalog_file",
    "parse_catalog_document",
    "parse_rollout_percentage",
    "parse_target_device_ids",
]
