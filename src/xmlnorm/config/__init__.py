from .models import NormalizerConfig
from .loader import ConfigManager
from .paths import resolve_config_file

__all__ = [
    "NormalizerConfig",
    "ConfigManager",
    "resolve_config_file",
]
