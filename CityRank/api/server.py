"""
API server module for the CityRank package.

This module provides the Flask application serving the city autocomplete
endpoints: ranked search, filter lists and states by country.
"""

import time
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response, current_app, g, jsonify, request
import werkzeug.exceptions

from CityRank.exceptions import CityRankError, StorageUnavailableError
from CityRank.geolocation import normalize_ip
from CityRank.services.city_service import CityService
from CityRank.utils import elapsed_ms
from CityRank.utils.logging import get_logger

# Get a logger for this module
logger = get_logger(__name__)

TRUE_VALUES = ('true', '1', 'yes')


def format_error(error: str, status_code: int, details: Optional[str] = None,
                 error_code: Optional[str] = None) -> Tuple[Dict[str, Any], int]:
    """
    Build an error body.

    Returns:
        Tuple of (response_dict, status_code)
    """
    response: Dict[str, Any] = {'error': error}
    if details is not None:
        response['details'] = details
    if error_code:
        response['error_code'] = error_code
    return response, status_code


def get_client_ip() -> Optional[str]:
    """First ``X-Forwarded-For`` entry, else the transport remote address."""
    forwarded = request.headers.get('X-Forwarded-For')
    if forwarded:
        return normalize_ip(forwarded)
    return normalize_ip(request.remote_addr)


def get_city_service() -> CityService:
    """
    Get the CityService instance of the current application.

    Raises:
        StorageUnavailableError: If the service could not be initialized
    """
    city_service = current_app.config.get('CITY_SERVICE_INSTANCE')
    if city_service is not None:
        return city_service

    try:
        city_service = CityService(db_uri=current_app.config.get('DATABASE_URI'))
    except CityRankError as e:
        raise StorageUnavailableError(
            message=f"City service unavailable: {e.message}",
            cause=e.cause or e
        )

    current_app.config['CITY_SERVICE_INSTANCE'] = city_service
    current_app.config['INITIALIZED'] = True
    return city_service


def create_app(db_uri: Optional[str] = None, debug: bool = False,
               city_service: Optional[CityService] = None) -> Flask:
    """
    Create and configure a Flask application instance.

    Args:
        db_uri: Optional database URI to use for the app
        debug: Enable debug mode with additional error information
        city_service: Pre-built service, mainly for tests

    Returns:
        A configured Flask application
    """
    app = Flask(__name__)
    app.config.update(DEBUG=debug, DATABASE_URI=db_uri)

    app.json.sort_keys = False
    app.json.ensure_ascii = False

    if city_service is None:
        try:
            start_time = time.perf_counter()
            city_service = CityService(db_uri=db_uri)
            row_count = city_service.get_table_info().get('row_count', 0)
            logger.info(f"Connected to database with {row_count} city records in {elapsed_ms(start_time)}")
        except CityRankError as e:
            # Retried lazily on the first request
            logger.error(f"Failed to initialize city service: {e.message}")
            city_service = None

    app.config['CITY_SERVICE_INSTANCE'] = city_service
    app.config['INITIALIZED'] = city_service is not None

    @app.before_request
    def before_request() -> None:
        """Set up request context with timing information."""
        g.start_time = time.perf_counter()

    @app.after_request
    def after_request(response: Response) -> Response:
        """Log request information and add timing headers."""
        if hasattr(g, 'start_time'):
            duration_ms = (time.perf_counter() - g.start_time) * 1000
            response.headers['X-Request-Duration-Ms'] = str(int(duration_ms))

            logger.info(
                f"Request: {request.method} {request.full_path.rstrip('?')} | "
                f"Status: {response.status_code} | "
                f"Duration: {duration_ms:.2f}ms"
            )

        return response

    @app.errorhandler(CityRankError)
    def handle_cityrank_error(error: CityRankError) -> Tuple[Dict[str, Any], int]:
        """Handle CityRank exceptions."""
        if error.status_code >= 500:
            logger.error(f"CityRank Error: {error.error_code} - {error.message}")
        else:
            logger.warning(f"CityRank Error: {error.error_code} - {error.message}")

        include_details = debug or isinstance(error, StorageUnavailableError)
        return error.to_dict(include_details=include_details), error.status_code

    @app.errorhandler(werkzeug.exceptions.HTTPException)
    def handle_http_error(error: werkzeug.exceptions.HTTPException) -> Tuple[Dict[str, Any], int]:
        return format_error(error.name, error.code, details=error.description if debug else None)

    @app.errorhandler(Exception)
    def handle_exception(error: Exception) -> Tuple[Dict[str, Any], int]:
        """Handle generic exceptions."""
        logger.error(f"Unhandled exception: {str(error)}", exc_info=True)
        return format_error(
            'An unexpected error occurred.',
            500,
            details=str(error) if debug else None,
            error_code='CR-SYS-5000'
        )

    register_routes(app)

    return app


def register_routes(app: Flask) -> None:
    """
    Register API routes with the Flask application.

    Args:
        app: Flask application instance
    """
    @app.route('/health', methods=['GET'])
    def health() -> Response:
        """Service status and cache statistics."""
        city_service = app.config.get('CITY_SERVICE_INSTANCE')
        body: Dict[str, Any] = {
            'status': 'ok' if city_service is not None else 'degraded',
            'service': 'CityRank API',
            'initialized': app.config.get('INITIALIZED', False),
            'timestamp': time.time(),
        }
        if city_service is not None:
            body['database'] = city_service.db_manager.db_type
            body['caches'] = city_service.cache_stats()
        return jsonify(body)

    @app.route('/cities', methods=['GET'])
    def search_cities() -> Response:
        """
        Ranked city search.

        Query parameters:
            query: Search text (required)
            offset: Results to skip (default 0)
            limit: Page size (default 10, capped at the configured maximum)
            country_code: Optional exact country filter
            state_code: Optional exact state filter
            useLocation: ``true`` to blend in proximity to the client IP location
        """
        start_time = time.perf_counter()
        use_location = request.args.get('useLocation', 'false').lower() in TRUE_VALUES

        page, _ = get_city_service().search_cities(
            query=request.args.get('query'),
            offset=request.args.get('offset') or None,
            limit=request.args.get('limit') or None,
            country_code=request.args.get('country_code'),
            state_code=request.args.get('state_code'),
            client_ip=get_client_ip() if use_location else None,
            use_location=use_location,
        )

        return jsonify({
            'data': [result.to_dict(include_debug=use_location) for result in page.results],
            'pagination': page.pagination(),
            'debug': {'requestTime': elapsed_ms(start_time)},
        })

    @app.route('/cities/filters', methods=['GET'])
    def get_filters() -> Response:
        """Distinct countries and states grouped by country."""
        start_time = time.perf_counter()
        filters, cache_hit = get_city_service().get_filters()

        return jsonify({
            'countries': filters['countries'],
            'states': filters['states'],
            'debug': {
                'executionTime': elapsed_ms(start_time),
                'countriesCount': len(filters['countries']),
                'statesCount': sum(len(states) for states in filters['states'].values()),
                'cacheHit': cache_hit,
            },
        })

    @app.route('/cities/states/<country_code>', methods=['GET'])
    def get_states(country_code: str) -> Response:
        """States of one country."""
        start_time = time.perf_counter()
        states, cache_hit = get_city_service().get_states_for_country(country_code)

        return jsonify({
            'data': states,
            'debug': {
                'executionTime': elapsed_ms(start_time),
                'cacheHit': cache_hit,
                'statesCount': len(states),
            },
        })


def start_server(host: str = '0.0.0.0', port: int = 3000,
                 db_uri: Optional[str] = None, debug: bool = False) -> None:
    """
    Start the API server with Flask's threaded development server.

    Args:
        host: Host address to bind to
        port: Port to listen on
        db_uri: Database URI for city data
        debug: Whether to run in debug mode
    """
    app = create_app(db_uri, debug)

    if not app.config.get('INITIALIZED', False):
        logger.warning("City service is not initialized; requests will retry the database connection")

    logger.info(f"Starting CityRank API server on {host}:{port} (debug: {debug})")
    app.run(host=host, port=port, debug=debug, threaded=True)
