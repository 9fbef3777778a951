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

"""Storage URI resolution for Bundlecast.

A bundle's storageUri is an opaque reference (``s3://bucket/key``,
``r2://...``, ``https://cdn/...``). After a decision is reached, the
orchestration layer turns it into a URL the device can download from.
Resolvers are plain objects passed in by the host; the engine itself
never sees them.

Resolver Types:

| Resolver                   | Behavior                                          |
|----------------------------|---------------------------------------------------|
| PassthroughResolver        | http(s) URIs unchanged, anything else -> None     |
| BaseUrlResolver            | ``scheme://bucket/key`` -> ``{base_url}/key``     |
| SchemeRouterResolver       | dispatch on URI scheme to another resolver        |
| SignedUrlEndpointResolver  | POST the URI to a signing service, read fileUrl   |

Configuration (``storage:`` section of the service config):
    ```yaml
    storage:
      passthrough: true                  # http(s) URIs returned as-is
      base_urls:
        s3: "https://cdn.example.com"    # s3://bucket/key -> cdn/key
      signing:
        endpoint: "https://sign.example.com/url"
        schemes: [r2]
        headers:
          Authorization: "Bearer ${SIGNING_TOKEN}"
        timeout: 10
    ```

Example:
    ```python
    from bundlecast.storage import BaseUrlResolver

    resolver = BaseUrlResolver("s3", "https://cdn.example.com")
    resolver.resolve("s3://bundles/ios/a.zip")
    # "https://cdn.example.com/ios/a.zip"
    ```
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Protocol
from urllib.parse import urlsplit

from dotenv import load_dotenv
import requests

from bundlecast.catalog.sources import expand_env_headers
from bundlecast.exceptions import ConfigError, NetworkError
from bundlecast.logging import get_global_logger


class StorageUriResolver(Protocol):
    """Protocol for storage URI resolvers."""

    def resolve(self, storage_uri: str) -> str | None:
        """Turn a storage reference into a download URL.

        Args:
            storage_uri: Opaque storage reference from a bundle.

        Returns:
            A download URL, or None if this resolver cannot handle the URI.

        """
        ...


def _scheme(storage_uri: str) -> str:
    return urlsplit(storage_uri).scheme.lower()


class PassthroughResolver:
    """Return http and https URIs unchanged."""

    def resolve(self, storage_uri: str) -> str | None:
        if _scheme(storage_uri) in ("http", "https"):
            return storage_uri
        return None


class BaseUrlResolver:
    """Map ``scheme://bucket/key`` to ``{base_url}/key``.

    The bucket (URI host) is dropped; the base URL is expected to already
    point at it, as a CDN in front of a bucket usually does.
    """

    def __init__(self, scheme: str, base_url: str) -> None:
        self.scheme = scheme.lower()
        self.base_url = base_url.rstrip("/")

    def resolve(self, storage_uri: str) -> str | None:
        parts = urlsplit(storage_uri)
        if parts.scheme.lower() != self.scheme:
            return None
        key = parts.path.lstrip("/")
        if not key:
            return None
        return f"{self.base_url}/{key}"


class SchemeRouterResolver:
    """Dispatch to a resolver chosen by URI scheme."""

    def __init__(
        self,
        routes: Mapping[str, StorageUriResolver],
        fallback: StorageUriResolver | None = None,
    ) -> None:
        self.routes = {k.lower(): v for k, v in routes.items()}
        self.fallback = fallback

    def resolve(self, storage_uri: str) -> str | None:
        resolver = self.routes.get(_scheme(storage_uri), self.fallback)
        if resolver is None:
            get_global_logger().verbose(
                "STORAGE", f"No resolver for storage URI scheme: {storage_uri}"
            )
            return None
        return resolver.resolve(storage_uri)


class SignedUrlEndpointResolver:
    """Ask a signing service for a short-lived download URL.

    The storage URI is POSTed as ``{"storageUri": ...}`` and the service
    answers ``{"fileUrl": ...}``.

    Raises:
        NetworkError: From resolve(), if the service is unreachable or
            returns an error status or an unexpected body.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        headers: Mapping[str, Any] | None = None,
        timeout: int | float = 10,
    ) -> None:
        self.endpoint = endpoint
        self.headers = dict(headers or {})
        self.timeout = timeout

    def resolve(self, storage_uri: str) -> str | None:
        logger = get_global_logger()
        load_dotenv()
        headers = expand_env_headers(self.headers)

        logger.verbose("STORAGE", f"Signing storage URI via {self.endpoint}")
        try:
            response = requests.post(
                self.endpoint,
                headers=headers,
                json={"storageUri": storage_uri},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as err:
            raise NetworkError(
                f"Signing request failed: {response.status_code} {response.reason}"
            ) from err
        except requests.exceptions.RequestException as err:
            raise NetworkError(f"Failed to call signing endpoint: {err}") from err

        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError) as err:
            raise NetworkError(
                f"Invalid JSON from signing endpoint. Response: {response.text[:200]}"
            ) from err

        if not isinstance(body, dict):
            raise NetworkError("Signing endpoint returned a non-object response")
        file_url = body.get("fileUrl")
        if file_url is not None and not isinstance(file_url, str):
            raise NetworkError("Signing endpoint returned a non-string fileUrl")
        return file_url


def build_storage_resolver(config: Mapping[str, Any] | None) -> StorageUriResolver:
    """Build a resolver from the ``storage:`` configuration section.

    Args:
        config: The storage section (may be None or empty).

    Returns:
        A SchemeRouterResolver covering every configured scheme.

    Raises:
        ConfigError: If the section has the wrong shape.

    """
    config = config or {}
    if not isinstance(config, Mapping):
        raise ConfigError("storage section must be a mapping")

    routes: dict[str, StorageUriResolver] = {}

    if config.get("passthrough", True):
        passthrough = PassthroughResolver()
        routes["http"] = passthrough
        routes["https"] = passthrough

    base_urls = config.get("base_urls") or {}
    if not isinstance(base_urls, Mapping):
        raise ConfigError("storage.base_urls must be a mapping of scheme to URL")
    for scheme, base_url in base_urls.items():
        if not isinstance(base_url, str) or not base_url:
            raise ConfigError(f"storage.base_urls.{scheme} must be a non-empty string")
        routes[str(scheme).lower()] = BaseUrlResolver(str(scheme), base_url)

    signing = config.get("signing")
    if signing:
        if not isinstance(signing, Mapping) or not signing.get("endpoint"):
            raise ConfigError("storage.signing requires an 'endpoint'")
        schemes = signing.get("schemes") or []
        if not isinstance(schemes, list) or not schemes:
            raise ConfigError("storage.signing.schemes must be a non-empty list")
        signer = SignedUrlEndpointResolver(
            signing["endpoint"],
            headers=signing.get("headers"),
            timeout=signing.get("timeout", 10),
        )
        for scheme in schemes:
            routes[str(scheme).lower()] = signer

    get_global_logger().debug(
        "STORAGE", f"Storage schemes: {', '.join(sorted(routes)) or '(none)'}"
    )
    return SchemeRouterResolver(routes)
