"""Repositories for the base tables and the hooks that feed the refresh orchestrator"""

from .hooks import install_refresh_hooks
from .licenses import LicenseRecordStore, session_scope
from .zips import ZipGeoRepository

__all__ = [
    "LicenseRecordStore",
    "ZipGeoRepository",
    "install_refresh_hooks",
    "session_scope",
]
