"""
Configuration management for the File Gateway.

Contains the Pydantic settings model and the cached settings accessor.
"""
from file_gateway.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
