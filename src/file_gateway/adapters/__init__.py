"""
Adapter layer for the File Gateway.

Contains the local filesystem storage used for uploaded images.
"""
from file_gateway.adapters.storage import LocalImageStorage, StoredFile

__all__ = ["LocalImageStorage", "StoredFile"]
