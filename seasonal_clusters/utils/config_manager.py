"""
Configuration management utilities.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
import yaml

logger = logging.getLogger(__name__)

PACKAGE_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
DEFAULT_CONFIG_NAME = "clustering.yaml"
DEFAULT_SCHEMA_NAME = "clustering_schema.json"


class ConfigManager:
    """
    Manages loading, validation, and merging of clustering configurations.
    """

    def __init__(self, config_dir: Optional[str] = None, schema_dir: Optional[str] = None):
        self.config_dir = Path(config_dir) if config_dir else PACKAGE_CONFIG_DIR
        self.schema_dir = Path(schema_dir) if schema_dir else self.config_dir / "schemas"

    def load_config(self, config_name: str, schema_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Load a configuration file (YAML or JSON).
        Optionally validate against a schema.

        Args:
            config_name: Name of config file (e.g. 'clustering.yaml')
            schema_name: Name of schema file (e.g. 'clustering_schema.json')

        Returns:
            Loaded configuration dictionary
        """
        config_path = self.config_dir / config_name

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            if config_path.suffix in (".yaml", ".yml"):
                config = yaml.safe_load(f) or {}
            elif config_path.suffix == ".json":
                config = json.load(f)
            else:
                raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

        if schema_name:
            self.validate_config(config, schema_name)

        return config

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """Read a JSON schema from the schema directory."""
        schema_path = self.schema_dir / schema_name
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema file not found: {schema_path}")
        with open(schema_path, "r") as f:
            return json.load(f)

    def validate_config(self, config: Dict[str, Any], schema_name: str) -> None:
        """
        Validate configuration against a schema.

        Args:
            config: Configuration dictionary
            schema_name: Name of schema file

        Raises:
            ValueError: With the dotted path of the first violation
        """
        schema = self.load_schema(schema_name)

        try:
            jsonschema.validate(instance=config, schema=schema)
        except jsonschema.exceptions.ValidationError as e:
            path_str = " -> ".join(str(p) for p in e.path) if e.path else "root"
            error_msg = f"Configuration validation failed at '{path_str}': {e.message}"
            logger.error(error_msg)
            raise ValueError(error_msg) from e

        logger.debug(f"Configuration validated against {schema_name}")

    def load_pipeline_config(
        self,
        overrides: Optional[Dict[str, Any]] = None,
        config_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Build the effective pipeline configuration.

        The packaged defaults are merged with an optional user file and then
        with in-memory overrides; the result is validated as a whole.

        Args:
            config_path: Optional YAML/JSON file with user settings
            overrides: Optional dictionary applied last

        Returns:
            Validated configuration dictionary
        """
        defaults = ConfigManager().load_config(DEFAULT_CONFIG_NAME)
        config = defaults

        if config_path:
            path = Path(config_path)
            user_config = ConfigManager(config_dir=str(path.parent)).load_config(path.name)
            config = self.merge_configs(config, user_config)

        if overrides:
            config = self.merge_configs(config, overrides)

        ConfigManager().validate_config(config, DEFAULT_SCHEMA_NAME)
        k_min = self.get_value(config, "selection.k_min")
        k_max = self.get_value(config, "selection.k_max")
        if k_min > k_max:
            raise ValueError(
                f"Configuration validation failed at 'selection': "
                f"k_min ({k_min}) is greater than k_max ({k_max})"
            )
        return config

    def merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two configurations.

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        merged = base.copy()
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self.merge_configs(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get_value(self, config: Dict[str, Any], path: str, default: Any = None) -> Any:
        """
        Get a value from configuration using dot notation.

        Args:
            config: Configuration dictionary
            path: Dot-separated path (e.g., 'clustering.seed')
            default: Default value if path not found

        Returns:
            Value at path or default
        """
        current = config
        for key in path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def set_value(self, config: Dict[str, Any], path: str, value: Any) -> None:
        """
        Set a value in configuration using dot notation.
        Creates intermediate dictionaries if they don't exist.

        Args:
            config: Configuration dictionary (modified in-place)
            path: Dot-separated path
            value: Value to set
        """
        keys = path.split('.')
        current = config

        for key in keys[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value
