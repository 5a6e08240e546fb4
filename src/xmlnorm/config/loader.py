import os
import copy
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

from pydantic import ValidationError

try:
    import tomllib # Python 3.11+
except ImportError:
    import tomli as tomllib # Fallback for Python < 3.11

from .models import NormalizerConfig

logger = logging.getLogger(__name__)

NORMALIZE_SECTION = "normalize"


class ConfigManager:
    def __init__(self, config_file_path: Union[str, Path] = "xmlnorm.toml"):
        self.config_file_path = str(config_file_path)
        self._raw_config: Dict[str, Any] = self._load_raw_config()

    def _load_raw_config(self) -> Dict[str, Any]:
        if not os.path.exists(self.config_file_path):
            logger.warning(
                "Configuration file '%s' not found. Using default normalizer settings.",
                self.config_file_path,
            )
            return {}
        try:
            with open(self.config_file_path, "rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Error decoding TOML file '{self.config_file_path}': {e}") from e

    def _set_nested_value(self, data_dict: Dict[str, Any], path_str: str, value_str: str) -> None:
        keys = path_str.split('.')
        current_level = data_dict
        for key in keys[:-1]:
            current_level = current_level.setdefault(key, {})
            if not isinstance(current_level, dict):
                raise ValueError(f"Cannot set nested value: '{key}' in path '{path_str}' is not a dictionary.")

        coerced_value: Any
        if value_str.lower() == "true":
            coerced_value = True
        elif value_str.lower() == "false":
            coerced_value = False
        else:
            try:
                coerced_value = int(value_str)
            except ValueError:
                coerced_value = value_str

        current_level[keys[-1]] = coerced_value

    def _apply_cli_overrides(self, config_dict: Dict[str, Any], overrides: Optional[List[str]]) -> Dict[str, Any]:
        if not overrides:
            return config_dict

        modified_config_dict = copy.deepcopy(config_dict)

        for override_entry in overrides:
            if '=' not in override_entry:
                logger.warning(
                    "Invalid override format '%s'. Skipping. Expected 'path.to.key=value'.",
                    override_entry,
                )
                continue

            path_str, value_str = override_entry.split('=', 1)
            try:
                self._set_nested_value(modified_config_dict, path_str.strip(), value_str.strip())
            except ValueError as e:
                logger.warning("Could not apply override '%s': %s. Skipping.", override_entry, e)

        return modified_config_dict

    def get_normalizer_config(self, overrides: Optional[List[str]] = None, **explicit: Optional[bool]) -> NormalizerConfig:
        '''
        Builds the NormalizerConfig from the [normalize] table.

        Precedence, lowest first: model defaults, config file, ``--set``
        overrides, explicit keyword values that are not None.
        '''
        merged = self._apply_cli_overrides(self._raw_config, overrides)
        settings = dict(merged.get(NORMALIZE_SECTION, {}))
        settings.update({k: v for k, v in explicit.items() if v is not None})
        try:
            return NormalizerConfig(**settings)
        except ValidationError as e:
            raise ValueError(
                f"Invalid [{NORMALIZE_SECTION}] settings in '{self.config_file_path}': {e}"
            ) from e
