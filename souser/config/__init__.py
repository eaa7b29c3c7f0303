"""Configuration module for the SOC user administration tool."""
from .settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
