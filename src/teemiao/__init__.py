"""
Teemiao - Convenient tools for building other applications

Currently provides ``build-info``, which records the git revision and build
time of a checkout as JSON for release pipelines and diagnostics.
"""

import sys

__version__ = "0.1.0"
__author__ = "Qian Qiao"

from .build_info import BuildInfo, generate_build_info
from .errors import (
    BuildInfoError,
    ConfigError,
    HeadUnresolvable,
    NoCommitsYet,
    OutputPathInvalid,
    RepositoryNotFound,
    RepositoryOpenFailed,
    SerializationFailed,
    ShorteningFailed,
    TeemiaoError,
    WriteFailed,
)


def get_version_info() -> str:
    """Get detailed version string."""
    python = sys.version.split()[0]
    return f"teemiao {__version__} (Python {python})"


__all__ = [
    'BuildInfo',
    'BuildInfoError',
    'ConfigError',
    'HeadUnresolvable',
    'NoCommitsYet',
    'OutputPathInvalid',
    'RepositoryNotFound',
    'RepositoryOpenFailed',
    'SerializationFailed',
    'ShorteningFailed',
    'TeemiaoError',
    'WriteFailed',
    'generate_build_info',
    'get_version_info',
]
