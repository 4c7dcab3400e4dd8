"""Configuration module for the Tenable VM client."""
from .settings import TenableConfig, ConfigurationError, load_settings

__all__ = ["TenableConfig", "ConfigurationError", "load_settings"]
