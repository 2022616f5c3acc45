"""
API module for the CityRank package.

Flask application serving ranked city search, the filter lists and states
by country.

Key Components:
- create_app: Application factory
- start_server: Function to start the API server
"""

from CityRank.api.server import create_app, start_server

__all__ = ['create_app', 'start_server']
