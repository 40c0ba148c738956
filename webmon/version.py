"""Version information for webmon."""

import os

__version__ = "0.3.0"
__version_info__ = (0, 3, 0)

# Build info from environment (set by Docker build args)
BUILD_DATE = os.getenv("APP_BUILD_DATE")
GIT_COMMIT = os.getenv("APP_GIT_COMMIT")


def get_version_info() -> dict:
    """Get detailed version information."""
    return {
        "version": __version__,
        "build_date": BUILD_DATE,
        "git_commit": GIT_COMMIT,
    }
