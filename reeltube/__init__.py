"""
ReelTube CLI

Command-line client for uploading media to ReelTube using the
multipart upload API.
"""

__version__ = '0.3.0'

# Overridden by release builds
COMMIT = 'none'
BUILD_DATE = 'unknown'


def version_info() -> str:
    """Version, commit and build date as a single line."""
    return f"Version: {__version__}, Commit: {COMMIT}, Build date: {BUILD_DATE}"
