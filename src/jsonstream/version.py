"""Version of the installed jsonstream distribution."""

from __future__ import annotations

from importlib import metadata


def get_jsonstream_version() -> str:
    """Read the version from package metadata; source checkouts report ``"dev"``."""
    try:
        return metadata.version("jsonstream")
    except metadata.PackageNotFoundError:
        return "dev"


__all__ = ["get_jsonstream_version"]
