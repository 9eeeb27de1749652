"""
Configuration management.

Settings are resolved once at startup (defaults, then an optional YAML file,
then the environment / .env file) and passed explicitly into the analyzer,
converter and executor constructors as immutable config objects.
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from schema_analyzer.exceptions import ConfigError
from schema_analyzer.models import REGION_COLUMN

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5
DEFAULT_OUTPUT_DIR = 'tmp'

_YAML_KEYS = ('url', 'database', 'concurrency', 'region_column', 'output_dir')


@dataclass(frozen=True)
class Settings:
    """Process-level defaults for CLI options."""

    url: Optional[str] = None
    database: Optional[str] = None
    concurrency: int = DEFAULT_CONCURRENCY
    region_column: str = REGION_COLUMN
    output_dir: str = DEFAULT_OUTPUT_DIR


@dataclass(frozen=True)
class AnalyzerConfig:
    db_url: str
    database: str = ''
    region_column: str = REGION_COLUMN

    def __post_init__(self):
        _require_url(self.db_url)


@dataclass(frozen=True)
class ConverterConfig:
    db_url: str
    database: str = ''
    region_column: str = REGION_COLUMN

    def __post_init__(self):
        _require_url(self.db_url)


@dataclass(frozen=True)
class ExecutorConfig:
    """
    Batch executor settings.

    Attributes:
        database: Database selected on each batch connection before pre_sql
        concurrency: Number of workers (and minimum connection pool size)
        pre_sql: Statement run on the connection before each batch
        until_zero_rows: Re-run each statement until it affects zero rows
        max_iterations: Cap for the until_zero_rows loop (None = unlimited)
        pool_timeout: Seconds a worker waits for a pooled connection
    """

    db_url: str = ''
    database: str = ''
    concurrency: int = DEFAULT_CONCURRENCY
    pre_sql: str = ''
    until_zero_rows: bool = False
    max_iterations: Optional[int] = None
    pool_timeout: float = 30

    def __post_init__(self):
        _require_url(self.db_url)
        if self.concurrency < 1:
            raise ConfigError(f"concurrency must be at least 1, got {self.concurrency}")
        if self.max_iterations is not None and self.max_iterations < 1:
            raise ConfigError(f"max_iterations must be at least 1, got {self.max_iterations}")


def _require_url(url: Optional[str]):
    if not url:
        raise ConfigError("database URL required: pass --url or set CRDB_URL in .env or environment")


def _load_yaml(config_file: str) -> dict:
    if not os.path.exists(config_file):
        raise ConfigError(f"Config file not found: {config_file}")

    with open(config_file, 'r') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_file} must contain a mapping")

    unknown = set(data) - set(_YAML_KEYS)
    if unknown:
        logger.warning(f"Ignoring unknown config keys in {config_file}: {', '.join(sorted(unknown))}")

    return {k: data[k] for k in _YAML_KEYS if k in data}


def load_settings(config_file: Optional[str] = None) -> Settings:
    """
    Resolve settings from defaults, an optional YAML file and the environment.

    Environment variables (CRDB_URL, CRDB_DATABASE) win over the YAML file.

    Raises:
        ConfigError: on a missing or malformed config file
    """
    settings = Settings()

    if config_file:
        values = _load_yaml(config_file)
        if 'concurrency' in values:
            try:
                values['concurrency'] = int(values['concurrency'])
            except (TypeError, ValueError):
                raise ConfigError(f"concurrency must be an integer, got {values['concurrency']!r}")
        settings = replace(settings, **values)
        logger.debug(f"Loaded config from {config_file}")

    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file)
        logger.debug(f"Loaded environment from {env_file}")

    overrides = {}
    if os.getenv('CRDB_URL'):
        overrides['url'] = os.getenv('CRDB_URL')
    if os.getenv('CRDB_DATABASE'):
        overrides['database'] = os.getenv('CRDB_DATABASE')

    return replace(settings, **overrides)
