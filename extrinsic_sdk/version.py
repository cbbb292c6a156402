"""
Package version lookup.

An installed distribution reports its own version. A source checkout has no
distribution metadata, so the version declared in pyproject.toml is used.
"""
import importlib.metadata
import pathlib

import tomli

DIST_NAME = "extrinsic-sdk"
FALLBACK_VERSION = "0.1.0"
PYPROJECT = pathlib.Path(__file__).resolve().parents[1] / "pyproject.toml"


def _pyproject_version(path=PYPROJECT) -> str:
    try:
        with open(path, "rb") as f:
            project = tomli.load(f).get("project", {})
    except (OSError, tomli.TOMLDecodeError):
        return FALLBACK_VERSION
    return project.get("version", FALLBACK_VERSION)


def get_version() -> str:
    try:
        return importlib.metadata.version(DIST_NAME)
    except importlib.metadata.PackageNotFoundError:
        return _pyproject_version()


__version__ = get_version()
