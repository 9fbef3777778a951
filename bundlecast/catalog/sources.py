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

"""Catalog sources for Bundlecast.

Materializes a catalog snapshot from a file or an HTTP endpoint. Both
sources hand back a tuple of Bundle objects ready for InMemoryCatalog.

Supported Shapes:
    A catalog document is either a list of bundle records, or a mapping
    with a "bundles" key holding that list. Records may use camelCase or
    snake_case keys (see bundle_from_dict()).

    ```yaml
    bundles:
      - id: 0195a408-8f13-7d9b-8df4-000000000001
        platform: ios
        channel: production
        enabled: true
        targetAppVersion: "1.x.x"
        storageUri: s3://bundles/ios/0001.zip
    ```

HTTP Source Configuration:
    ```yaml
    catalog:
      type: http
      url: "https://ota.example.com/api/bundles"
      bundles_path: "data.bundles"          # JSONPath to the bundle list
      headers:
        Authorization: "Bearer ${OTA_TOKEN}"
      timeout: 30
    ```

    Header values of the form ``${NAME}`` are read from the environment.
    A ``.env`` file in the working directory is loaded first, so tokens
    can live outside the config file.

Error Handling:
    - CatalogError: Missing file, unparseable document, wrong shape, or a
      malformed bundle record
    - NetworkError: Connection failures, timeouts, HTTP error statuses
    - Errors are chained with 'from err' for better debugging
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping

from dotenv import load_dotenv
from jsonpath_ng import parse as jsonpath_parse
import requests
import yaml

from bundlecast.exceptions import CatalogError, NetworkError
from bundlecast.logging import get_global_logger

from .models import Bundle, bundle_from_dict


def parse_catalog_document(data: Any, source: str = "<catalog>") -> tuple[Bundle, ...]:
    """Turn a decoded catalog document into bundles.

    Args:
        data: A list of bundle records or a mapping with a "bundles" list.
        source: Where the document came from, for error messages.

    Returns:
        The parsed bundles, in document order.

    Raises:
        CatalogError: If the document or any record has the wrong shape.

    """
    if isinstance(data, Mapping):
        if "bundles" not in data:
            raise CatalogError(f"Catalog {source} has no 'bundles' key")
        data = data["bundles"]
    if data is None:
        return ()
    if not isinstance(data, list):
        raise CatalogError(
            f"Catalog {source} must contain a list of bundles, "
            f"got {type(data).__name__}"
        )
    return tuple(bundle_from_dict(record) for record in data)


def read_catalog_document(path: Path) -> Any:
    """Read a YAML or JSON catalog file without interpreting it.

    JSON is a subset of YAML, so a single safe YAML parser handles both.

    Raises:
        CatalogError: If the file is missing or cannot be parsed.

    """
    if not path.exists():
        raise CatalogError(f"Catalog file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise CatalogError(f"Error parsing catalog {path}: {err}") from err


def load_catalog_file(path: Path | str) -> tuple[Bundle, ...]:
    """Load a catalog snapshot from a YAML or JSON file.

    Args:
        path: Path to the catalog file.

    Returns:
        The bundles in the file.

    Raises:
        CatalogError: If the file is missing, unparseable, or malformed.

    Example:
        >>> bundles = load_catalog_file("catalog.yaml")
        >>> len(bundles)
        3

    """
    path = Path(path)
    logger = get_global_logger()
    logger.verbose("CATALOG", f"Loading catalog: {path}")

    data = read_catalog_document(path)
    bundles = parse_catalog_document(data, str(path))

    logger.verbose("CATALOG", f"Loaded {len(bundles)} bundle(s)")
    return bundles


def expand_env_headers(headers: Mapping[str, Any] | None) -> dict[str, str]:
    """Expand ``${NAME}`` header values from the environment.

    Headers whose variable is unset are dropped with a verbose warning
    rather than sent with an empty value.

    Args:
        headers: Raw header mapping from configuration.

    Returns:
        Headers with environment references replaced.

    """
    logger = get_global_logger()
    expanded: dict[str, str] = {}
    for key, value in (headers or {}).items():
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_var = value[2:-1]
            env_value = os.environ.get(env_var)
            if not env_value:
                logger.verbose(
                    "CATALOG", f"Warning: Environment variable {env_var} not set"
                )
            else:
                expanded[key] = env_value
        else:
            expanded[key] = str(value)
    return expanded


def fetch_catalog_http(
    url: str,
    *,
    bundles_path: str | None = None,
    headers: Mapping[str, Any] | None = None,
    timeout: int | float = 30,
) -> tuple[Bundle, ...]:
    """Fetch a catalog snapshot from a JSON HTTP endpoint.

    Args:
        url: Endpoint returning the catalog as JSON.
        bundles_path: JSONPath to the bundle list inside the response.
            When None, the response itself is the catalog document.
        headers: Request headers; ``${NAME}`` values are expanded from the
            environment (after loading a local .env file).
        timeout: Request timeout in seconds.

    Returns:
        The bundles in the response.

    Raises:
        NetworkError: If the request fails or returns an error status.
        CatalogError: If the response is not JSON, the path matches
            nothing, or the catalog is malformed.

    """
    logger = get_global_logger()
    load_dotenv()
    expanded_headers = expand_env_headers(headers)

    logger.verbose("CATALOG", f"Fetching catalog: GET {url}")
    try:
        response = requests.get(url, headers=expanded_headers, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.HTTPError as err:
        raise NetworkError(
            f"Catalog request failed: {response.status_code} {response.reason}"
        ) from err
    except requests.exceptions.RequestException as err:
        raise NetworkError(f"Failed to fetch catalog from {url}: {err}") from err

    logger.verbose("CATALOG", f"Catalog response: {response.status_code} OK")

    try:
        json_data = response.json()
    except (json.JSONDecodeError, ValueError) as err:
        raise CatalogError(
            f"Invalid JSON catalog response. Response: {response.text[:200]}"
        ) from err

    logger.debug("CATALOG", f"JSON response: {json.dumps(json_data)[:2000]}")

    if bundles_path:
        try:
            expr = jsonpath_parse(bundles_path)
        except Exception as err:
            raise CatalogError(
                f"Invalid bundles_path JSONPath {bundles_path!r}: {err}"
            ) from err
        matches = expr.find(json_data)
        if not matches:
            raise CatalogError(
                f"bundles_path {bundles_path!r} did not match anything in catalog response"
            )
        document = matches[0].value
    else:
        document = json_data

    bundles = parse_catalog_document(document, url)
    logger.verbose("CATALOG", f"Fetched {len(bundles)} bundle(s)")
    return bundles
