"""NuGet v3 flat-container client.

Asks the registry which versions of a package it already hosts. The
flat-container listing is a static JSON document per package id:
``{source}/v3-flatcontainer/{id}/index.json`` → ``{"versions": [...]}``.
"""

from __future__ import annotations

import requests

from .errors import RemoteQueryError

DEFAULT_TIMEOUT = 30.0


def index_url(source: str, package_name: str) -> str:
    """Build the flat-container index URL for a package.

    Package ids are lower-cased; the flat container only serves lower-case
    paths.
    """
    return f"{source.rstrip('/')}/v3-flatcontainer/{package_name.lower()}/index.json"


def fetch_remote_versions(
    source: str, package_name: str, *, timeout: float = DEFAULT_TIMEOUT
) -> set[str]:
    """Return the set of versions the registry knows for a package.

    A 404 means the package was never published and yields an empty set.

    Raises:
        RemoteQueryError: On transport errors, any status other than 200/404,
            or a body that is not ``{"versions": [str, ...]}``.
    """
    url = index_url(source, package_name)
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise RemoteQueryError(
            f"unable to determine remote version for '{package_name}': {exc}"
        ) from exc

    if response.status_code == 404:
        return set()
    if response.status_code != 200:
        raise RemoteQueryError(
            f"unable to determine remote version for '{package_name}': "
            f"HTTP {response.status_code} from {url}"
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise RemoteQueryError(
            f"unable to determine remote version for '{package_name}': "
            f"invalid JSON from {url}: {exc}"
        ) from exc

    versions = payload.get("versions") if isinstance(payload, dict) else None
    if not isinstance(versions, list):
        raise RemoteQueryError(
            f"unable to determine remote version for '{package_name}': "
            f"no 'versions' list in response from {url}"
        )
    return {str(v) for v in versions}
