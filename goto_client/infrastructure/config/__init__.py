"""Configuration package."""

from .settings import AppSettings, get_settings, reload_settings

__all__ = ['AppSettings', 'get_settings', 'reload_settings']
