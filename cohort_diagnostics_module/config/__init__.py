"""Configuration package for runtime settings and module metadata."""

from .settings import ModuleSettings, SettingsLoadError, config_load_module_metadata, config_load_settings

__all__ = ["ModuleSettings", "SettingsLoadError", "config_load_settings", "config_load_module_metadata"]
