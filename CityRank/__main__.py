#!/usr/bin/env python3
"""
Main entry point for the CityRank package when run as a module.

Example:
    $ python -m CityRank search "pari"
    $ python -m CityRank import data/cities_data.txt
    $ python -m CityRank server --port 3000
"""

import sys

from CityRank.exceptions import CityRankError
from CityRank.utils.logging import get_logger

# Get a logger for this module
logger = get_logger(__name__)


def main():
    """Main entry point for the CityRank package."""
    from CityRank.cli.commands import main as cli_main
    try:
        cli_main()
    except CityRankError as e:
        logger.error(f"{e.error_code} - {e.message}")
        print(f"Error: {e.user_message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
