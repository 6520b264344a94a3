"""Build version information.

Release builds overwrite GIT_COMMIT; the version comes from the
installed distribution metadata.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("accel-dra")
except PackageNotFoundError:
    __version__ = "dev"

GIT_COMMIT = "unknown"


def get_version() -> str:
    return __version__


def get_full_version() -> str:
    """Version with git commit, e.g. ``0.1.0-3f2a9c1``."""
    return f"{__version__}-{GIT_COMMIT}"
