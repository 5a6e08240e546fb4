from pathlib import Path
from typing import Optional, Union
from platformdirs import user_config_path

CONFIG_FILE_NAME = "config.toml"
CWD_CONFIG_FILE_NAME = "xmlnorm.toml"


def get_app_config_dir() -> Path:
    """Returns the application config directory under XDG config home."""
    return user_config_path("xmlnorm")


def get_cwd_config_file() -> Path:
    """Returns path to xmlnorm.toml in current working directory."""
    return Path.cwd() / CWD_CONFIG_FILE_NAME


def resolve_config_file(path_arg: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolves the configuration file path.
    Priority:
    1. path_arg (if provided)
    2. $XDG_CONFIG_HOME/xmlnorm/config.toml (if exists)
    3. ./xmlnorm.toml (if exists)
    4. $XDG_CONFIG_HOME/xmlnorm/config.toml (fallback)
    """
    if path_arg:
        return Path(path_arg)

    app_config = get_app_config_dir() / CONFIG_FILE_NAME
    if app_config.exists():
        return app_config

    cwd_config = get_cwd_config_file()
    if cwd_config.exists():
        return cwd_config

    return app_config
