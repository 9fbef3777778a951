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

"""Configuration loading for Bundlecast.

A single YAML file describes the catalog source, storage resolution, and
request defaults. The loader deep-merges it over built-in defaults (dicts
merge recursively, lists and scalars are replaced) and resolves relative
paths against the config file location.

Public API:

- load_service_config: Load, merge, and validate a service config

Example:
    Basic usage:

        from pathlib import Path
        from bundlecast.config import load_service_config

        config = load_service_config(Path("bundlecast.yaml"))
        print(config["catalog"]["path"])

"""

from .loader import DEFAULT_CONFIG, load_service_config

__all__ = ["DEFAULT_CONFIG", "load_service_config"]
