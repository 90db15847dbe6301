"""Configuration model for work catalog."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..exceptions import ConfigurationError

DATA_DIR_ENV = "WORK_CATALOG_DATA_DIR"


@dataclass
class QueryDefaults:
    """Defaults applied to queries that don't set them."""
    strict: Optional[bool] = None  # None: exact lax, listings per scheme
    max_workers: int = 1  # worker threads for batch resolution


@dataclass
class LoggingConfig:
    """Configuration for log output."""
    level: str = "WARNING"


@dataclass
class Config:
    """Main configuration model."""
    data_dir: Optional[Path] = None
    catalogs_dir: str = "catalogs"
    composers_dir: str = "composers"
    index_file: str = "index/catalog.json"
    queries: QueryDefaults = field(default_factory=QueryDefaults)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def default(cls) -> "Config":
        """Create a default configuration."""
        return cls()


def _dataclass_to_dict(obj):
    """Convert dataclass to dict recursively."""
    from dataclasses import is_dataclass, fields
    if is_dataclass(obj):
        return {f.name: _dataclass_to_dict(getattr(obj, f.name)) for f in fields(obj)}
    elif isinstance(obj, Path):
        return str(obj)
    elif isinstance(obj, dict):
        return {key: _dataclass_to_dict(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_dataclass_to_dict(item) for item in obj]
    else:
        return obj


def _dict_to_dataclass(data, dataclass_type):
    """Convert dict to dataclass recursively."""
    from dataclasses import is_dataclass, fields
    if not is_dataclass(dataclass_type):
        return data
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected an object for {dataclass_type.__name__}, got {type(data).__name__}")

    field_types = {f.name: f.type for f in fields(dataclass_type)}

    kwargs = {}
    for field_name, field_type in field_types.items():
        if field_name not in data:
            continue
        value = data[field_name]
        if hasattr(field_type, '__dataclass_fields__'):
            kwargs[field_name] = _dict_to_dataclass(value, field_type)
        elif field_type in (Path, Optional[Path]) and value is not None:
            kwargs[field_name] = Path(value).expanduser()
        else:
            kwargs[field_name] = value

    return dataclass_type(**kwargs)


def default_config_path() -> Path:
    """Location of the user configuration file."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "work-catalog" / "config.json"


def load_config(config_path: Path) -> Config:
    """Load configuration from JSON file."""
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid config file {config_path}: {e.msg} at line {e.lineno}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e

    return _dict_to_dataclass(config_data, Config)


def save_config(config: Config, config_path: Path) -> None:
    """Save configuration to JSON file."""
    config_dict = _dataclass_to_dict(config)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config_dict, f, indent=2)


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    save_config(Config.default(), config_path)


def resolve_data_dir(cli_arg: Optional[Path], config: Config) -> Path:
    """Pick the data directory.

    Order: command-line flag, environment variable, config file, then the
    current or parent directory if it holds a catalogs folder.
    """
    if cli_arg is not None:
        return cli_arg

    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir)

    if config.data_dir is not None:
        return config.data_dir

    current = Path.cwd()
    for candidate in (current, current.parent):
        if (candidate / config.catalogs_dir).is_dir():
            return candidate
    return current
