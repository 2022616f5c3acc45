"""
WSGI entry point for the CityRank API.

    $ gunicorn CityRank.deployment.wsgi:app
"""
from CityRank import initialize_config
from CityRank.api.server import create_app

initialize_config()

# Create the Flask application
app = create_app()
