"""Data models for work catalog."""

from .config import Config, LoggingConfig, QueryDefaults, load_config, resolve_data_dir, save_config

__all__ = ["Config", "LoggingConfig", "QueryDefaults", "load_config", "resolve_data_dir", "save_config"]
