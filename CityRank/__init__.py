"""
CityRank - ranked, location-aware city name autocomplete.

Cities matching a query are ranked by a weighted blend of text similarity,
population and proximity to the client, and served through a Flask API and a
command-line interface.

Usage Examples:
    # Ranked search through the service facade
    from CityRank import CityService
    with CityService("sqlite:///cities.db") as service:
        page, _ = service.search_cities("pari")

    # Starting the API server
    from CityRank import start_server
    start_server(host='localhost', port=3000)

    # Setting the log level
    from CityRank import set_log_level
    set_log_level('debug')
"""

__version__ = '1.0.0'

from CityRank.config import get_config
from CityRank.utils.logging import get_logger, set_log_level, configure_logging, configure_from_settings

logger = get_logger(__name__)


def initialize_config() -> bool:
    """
    Load a configuration file from the standard locations, if one exists.

    Returns:
        bool: True if a config file was found and loaded, False if using defaults
    """
    logger.debug("Initializing configuration system")
    loaded = get_config().load_config()
    configure_from_settings(get_config().get("logging"))
    return loaded


from CityRank.services.city_service import CityService
from CityRank.api.server import create_app, start_server

__all__ = ['CityService', 'create_app', 'start_server', 'initialize_config',
           'set_log_level', 'configure_logging', 'get_config']
