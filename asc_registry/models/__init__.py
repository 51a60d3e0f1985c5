"""Database models for the ASC registry base tables"""

from .licenses import RawLicense
from .zips import ZipGeo

__all__ = [
    "RawLicense",
    "ZipGeo",
]
