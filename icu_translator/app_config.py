"""Application configuration module for the ICU translator."""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Dict, Optional, Any

import yaml
from dotenv import load_dotenv

from icu_translator.input_parsers import INPUT_FORMATS, INPUT_FORMAT_ARB
from icu_translator.language_sets import (
    Arrangement,
    DEFAULT_ARRANGEMENTS,
    build_arrangements,
    validate_arrangement
)
from icu_translator.logging_config import setup_logger


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    project_root: str

    # Model configuration
    model_name: str
    max_model_tokens: int
    temperature: float
    request_timeout: float

    # Input defaults
    default_input_format: str
    default_arrangement: str
    arrangements: Dict[str, Arrangement]

    # Credential for the translation service; None when not configured
    openai_api_key: Optional[str]


def _compute_project_root() -> str:
    """Compute the project root directory."""
    script_real_path = os.path.realpath(__file__)
    script_dir = os.path.dirname(script_real_path)
    return os.path.abspath(os.path.join(script_dir, os.pardir))


def _dotenv_path(project_root: str) -> Optional[str]:
    """Return the .env file to load, from the project root or the docker directory."""
    for candidate in (os.path.join(project_root, '.env'), os.path.join(project_root, 'docker', '.env')):
        if os.path.exists(candidate):
            return candidate
    return None


def _load_yaml_config(project_root: str) -> Dict[str, Any]:
    """Load the YAML configuration file, falling back to defaults on any problem."""
    default_config_path = os.path.join(project_root, 'config.yaml')
    config_file = os.environ.get('ICU_TRANSLATOR_CONFIG_FILE', default_config_path)

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    config = {}
    try:
        if not os.path.exists(config_file):
            print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
                  file=sys.stderr)
            print(f"Tip: Create a config.yaml file in '{project_root}' or set ICU_TRANSLATOR_CONFIG_FILE.",
                  file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except OSError as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _setup_logger_from_config(config: Dict[str, Any]) -> logging.Logger:
    """Set up logger based on configuration."""
    log_config = config.get('logging', {})
    log_level_str = log_config.get('log_level', 'INFO').upper()
    log_file_path = log_config.get('log_file_path', 'logs/icu_translator.log')
    log_to_console = log_config.get('log_to_console', True)
    return setup_logger(log_level_str, log_file_path, log_to_console)


def load_app_config() -> AppConfig:
    """
    Load application configuration from the YAML file and environment variables.

    A missing ``OPENAI_API_KEY`` does not stop loading; the translation client
    reports it as a configuration error when a translation is requested.

    Returns:
        AppConfig: The loaded application configuration.
    """
    project_root = _compute_project_root()

    dotenv_path = _dotenv_path(project_root)
    if dotenv_path:
        load_dotenv(dotenv_path)

    config = _load_yaml_config(project_root)
    logger = _setup_logger_from_config(config)

    if dotenv_path:
        logger.info("Loaded environment variables from: %s", dotenv_path)
    else:
        logger.info("No .env file found in '%s'. Relying on system environment variables if any.", project_root)

    arrangement_list = config.get('arrangements')
    arrangements = build_arrangements(arrangement_list) if arrangement_list else dict(DEFAULT_ARRANGEMENTS)

    default_input_format = config.get('default_input_format', INPUT_FORMAT_ARB)
    if default_input_format not in INPUT_FORMATS:
        logger.warning("Unknown default_input_format '%s', using '%s'.", default_input_format, INPUT_FORMAT_ARB)
        default_input_format = INPUT_FORMAT_ARB
    default_arrangement = validate_arrangement(
        default_input_format, config.get('default_arrangement'), arrangements
    )

    model_name = os.environ.get('ICU_TRANSLATOR_MODEL', config.get('model_name', 'gpt-4o-mini'))

    openai_api_key = os.environ.get('OPENAI_API_KEY') or None
    if not openai_api_key:
        logger.warning("OPENAI_API_KEY environment variable not found. Translation requests will fail.")
    elif not openai_api_key.startswith('sk-'):
        logger.warning("Warning: OPENAI_API_KEY does not start with 'sk-'. This may be invalid.")

    return AppConfig(
        project_root=project_root,
        model_name=model_name,
        max_model_tokens=int(config.get('max_model_tokens', 16000)),
        temperature=float(config.get('temperature', 0.3)),
        request_timeout=float(config.get('request_timeout', 120.0)),
        default_input_format=default_input_format,
        default_arrangement=default_arrangement,
        arrangements=arrangements,
        openai_api_key=openai_api_key
    )
