"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import yaml
from dotenv import load_dotenv

DEFAULT_OUTPUT_DIRECTORY = './notion-export'
MAX_PAGE_SIZE = 100

# Environment variables recognized on top of the YAML file
ENVIRONMENT_OVERRIDES = {
    'NOTION_TOKEN': 'notion.token',
    'OUTPUT_DIR': 'export.output_directory',
    'ROOT_PAGE_ID': 'export.root_page_id',
}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        return cls._substitute_env_vars_recursive(config_data)

    @staticmethod
    def load_env_file(env_path: Optional[str] = None) -> bool:
        """
        Load a ``.env`` file into the process environment.

        Variables already set in the environment win over the file.

        Returns:
            True if a file was found and loaded
        """
        if env_path:
            return load_dotenv(env_path, override=False)
        return load_dotenv(override=False)

    @classmethod
    def apply_environment(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Overlay NOTION_TOKEN, OUTPUT_DIR and ROOT_PAGE_ID onto a configuration.

        Args:
            config: Base configuration dictionary

        Returns:
            New configuration dictionary with environment values applied
        """
        merged = copy.deepcopy(config)

        for env_name, path in ENVIRONMENT_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                set_nested(merged, path, value)

        return merged

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration with CLI arguments.
        CLI arguments take precedence over environment and config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        for section in ('notion', 'export', 'media', 'advanced', 'logging'):
            if not isinstance(merged.get(section), dict):
                merged[section] = {}

        if getattr(args, 'output_dir', None):
            merged['export']['output_directory'] = args.output_dir

        if getattr(args, 'root_page_id', None):
            merged['export']['root_page_id'] = args.root_page_id

        if getattr(args, 'report_path', None):
            merged['export']['report_path'] = args.report_path

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        if getattr(args, 'no_images', False):
            merged['media']['download_images'] = False

        verbose = getattr(args, 'verbose', 0)
        if verbose:
            merged['logging']['level'] = 'DEBUG' if verbose >= 2 else 'INFO'

        return merged

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Optional fields left as an unsubstituted ``${VAR}`` are cleared in place.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        cls._validate_required_field(config, 'notion.token')

        base_url = get_nested(config, 'notion.base_url')
        if base_url:
            cls._validate_url(base_url, 'notion.base_url')

        root_page_id = get_nested(config, 'export.root_page_id')
        if isinstance(root_page_id, str) and cls.ENV_VAR_PATTERN.search(root_page_id):
            set_nested(config, 'export.root_page_id', None)

        output_dir = get_nested(config, 'export.output_directory', DEFAULT_OUTPUT_DIRECTORY)
        if not output_dir or not isinstance(output_dir, str):
            raise ValueError("export.output_directory must be a non-empty path")
        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"export.output_directory '{output_dir}' is not a directory")

        max_depth = get_nested(config, 'export.max_depth', 100)
        if not isinstance(max_depth, int) or max_depth < 1:
            raise ValueError("export.max_depth must be a positive integer")

        timeout = get_nested(config, 'advanced.request_timeout', 30)
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("advanced.request_timeout must be a positive number")

        max_retries = get_nested(config, 'advanced.max_retries', 3)
        if not isinstance(max_retries, int) or max_retries < 0:
            raise ValueError("advanced.max_retries must be a non-negative integer")

        page_size = get_nested(config, 'advanced.page_size', MAX_PAGE_SIZE)
        if not isinstance(page_size, int) or not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"advanced.page_size must be an integer between 1 and {MAX_PAGE_SIZE}")

        rate_limit = get_nested(config, 'advanced.rate_limit', 0.0)
        if not isinstance(rate_limit, (int, float)) or rate_limit < 0:
            raise ValueError("advanced.rate_limit must be a non-negative number")

        max_redirects = get_nested(config, 'media.max_redirects', 5)
        if not isinstance(max_redirects, int) or max_redirects < 0:
            raise ValueError("media.max_redirects must be a non-negative integer")

        hosts = get_nested(config, 'media.hosts', ['notion.so'])
        if not isinstance(hosts, list) or not all(isinstance(h, str) and h for h in hosts):
            raise ValueError("media.hosts must be a list of domain names")

        download_images = get_nested(config, 'media.download_images', True)
        if not isinstance(download_images, bool):
            raise ValueError("media.download_images must be a boolean")

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            var_name = match.group(1)
            env_value = os.getenv(var_name)
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config_section: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config_section, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        parsed = urlparse(url)
        if not parsed.scheme or parsed.scheme not in ['http', 'https']:
            raise ValueError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ValueError(f"{field_name} missing hostname: {url}")


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "notion.token")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def set_nested(config: dict, path: str, value: Any) -> None:
    """Set a nested configuration value using dot notation, creating sections as needed."""
    keys = path.split('.')
    section = config

    for key in keys[:-1]:
        if not isinstance(section.get(key), dict):
            section[key] = {}
        section = section[key]

    section[keys[-1]] = value


__all__ = ['ConfigLoader', 'get_nested', 'set_nested', 'DEFAULT_OUTPUT_DIRECTORY']
