from .settings import KeyringType, Settings, SettingsValidationError, load_settings, settings

__all__ = ["KeyringType", "Settings", "SettingsValidationError", "load_settings", "settings"]
