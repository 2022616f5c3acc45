"""
Configuration-related commands for the CityRank CLI.

This module provides commands for viewing, initializing and validating
CityRank configuration files.
"""

import json
import os
from pathlib import Path
from typing import Optional

import click
import yaml

from CityRank.config import get_config, validate_config
from CityRank.utils.logging import get_logger

# Get logger for this module
logger = get_logger(__name__)


def config_show(format_type: str = 'yaml', section: Optional[str] = None) -> int:
    """
    Display the current active configuration.

    Args:
        format_type: Output format (yaml or json)
        section: Optional section to display (e.g., 'search', 'geolocation')

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    config = get_config()

    if section:
        config_data = config.get(section)
        if config_data is None:
            click.echo(f"Error: Section '{section}' not found in configuration", err=True)
            return 1
    else:
        config_data = config.get_all()

    if format_type.lower() == 'json':
        click.echo(json.dumps(config_data, indent=2))
    else:
        click.echo(yaml.dump(config_data, default_flow_style=False, sort_keys=False))

    return 0


def config_init(output_path: Optional[str] = None) -> int:
    """
    Create a template configuration file with explanatory comments.

    Args:
        output_path: Path where to create the template file

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    path = Path(output_path or os.path.join(os.getcwd(), 'cityrank.yml'))

    if path.exists():
        click.confirm(f"File {path} already exists. Overwrite?", abort=True)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(CONFIG_TEMPLATE)

    click.echo(f"Configuration template created at: {path}")
    return 0


def config_validate(config_path: str) -> int:
    """
    Validate a configuration file.

    Args:
        config_path: Path to the configuration file to validate

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    path = Path(config_path)

    if not path.exists():
        click.echo(f"Error: Configuration file not found: {path}", err=True)
        return 1

    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() in ('.yaml', '.yml'):
                config_data = yaml.safe_load(f)
            elif path.suffix.lower() == '.json':
                config_data = json.load(f)
            else:
                click.echo(f"Error: Unsupported file format: {path.suffix}", err=True)
                return 1
    except (yaml.YAMLError, ValueError) as e:
        click.echo(f"Error: Could not parse {path}: {e}", err=True)
        return 1

    errors = validate_config(config_data or {})

    if not errors:
        click.echo(f"Configuration file is valid: {path}")
        return 0

    click.echo("Configuration validation errors:")
    for section, section_errors in errors.items():
        for error in section_errors:
            click.echo(f"  - {section}: {error}")
    return 1


CONFIG_TEMPLATE = """# CityRank Configuration File
# Values left out fall back to the built-in defaults.

database:
  # Database type: 'sqlite' or 'postgresql'
  type: sqlite
  sqlite:
    # Path to the SQLite database file (null for ~/.cityrank/data/cities.db)
    path: null
  postgresql:
    host: localhost
    port: 5432
    database: cities_db
    user: postgres
    password: postgres
  # Connection timeout in seconds
  timeout: 30

search:
  # Blend of the three ranking factors
  weights:
    population: 0.2
    text: 0.7
    distance: 0.1
  # Text scorer: 'levenshtein' or 'trigram'
  text_scorer: levenshtein
  # Storage pre-filter: 'substring' or 'trigram'
  prefilter: substring
  trigram_threshold: 0.3
  population:
    # Population scored as 1.0 (null to use the largest city in the data)
    reference_max: 10000000
  proximity:
    # Distance at which proximity stops counting
    max_distance_km: 1000
    # Proximity score when the client location is unknown
    neutral_score: 0.5
  candidates:
    # Most populous matches ranked per search
    window: 5000
  limits:
    default: 10
    max: 100

geolocation:
  enabled: true
  # {ip} is replaced with the client address
  url: http://ip-api.com/json/{ip}
  timeout: 3.0
  # Used for local addresses and failed lookups
  default_location:
    lat: 50.6333
    lon: 3.0667
  # Seconds a resolved address stays cached
  cache_ttl: 86400

cache:
  filters_ttl: 86400
  states_ttl: 86400

logging:
  # debug, info, warning, error, critical
  level: info
  # json or text
  format: text
  # Log file path (null for console only)
  file: null

api:
  host: 0.0.0.0
  port: 3000
  debug: false

data:
  # Field separator of the city export
  separator: "\\t"
  batch_size: 5000
"""
