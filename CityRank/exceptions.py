"""
Custom exceptions for the CityRank package.

Every exception carries a technical message for the logs, a user-facing
message for API responses, a stable error code and the HTTP status to use
when it reaches the API layer.
"""

from typing import Optional, Dict, Any
import sys
import traceback


class CityRankError(Exception):
    """Base exception for all CityRank errors."""

    status_code = 500
    error_code = "CR-GENERIC-ERROR"
    user_message = "An unexpected error occurred."

    def __init__(
        self,
        message: str = None,
        user_message: str = None,
        error_code: str = None,
        status_code: int = None,
        context: Dict[str, Any] = None,
        cause: Exception = None,
    ):
        self.message = message or self.__class__.__doc__ or "An error occurred."
        super().__init__(self.message)

        self.user_message = user_message or self.__class__.user_message
        self.error_code = error_code or self.__class__.error_code
        self.status_code = status_code or self.__class__.status_code
        self.context = context or {}
        self.cause = cause

        self.traceback = traceback.format_exc() if sys.exc_info()[0] else None

    def to_dict(self, include_details: bool = False) -> Dict[str, Any]:
        """Convert the exception to a dictionary for API responses."""
        error_dict = {
            "error": self.user_message,
            "error_code": self.error_code,
            "status_code": self.status_code,
        }

        if include_details:
            error_dict["details"] = str(self.cause) if self.cause else self.message

        return error_dict


# Storage errors - 1000 range
class DatabaseError(CityRankError):
    """Base exception for storage-related errors."""
    status_code = 500
    error_code = "CR-DB-1000"
    user_message = "A database error occurred."


class StorageUnavailableError(DatabaseError):
    """Raised when the city store cannot be reached or a query fails."""
    error_code = "CR-DB-1001"
    user_message = "An error occurred while searching for cities"


class ConfigurationError(DatabaseError):
    """Raised when the database configuration is invalid."""
    error_code = "CR-DB-1002"
    user_message = "The database is incorrectly configured."


# Data errors - 2000 range
class DataImportError(CityRankError):
    """Raised when a city data file cannot be imported."""
    status_code = 400
    error_code = "CR-DATA-2001"
    user_message = "Unable to import the city data file. Please check the data format."


# API errors - 3000 range
class APIError(CityRankError):
    """Base exception for request validation errors."""
    status_code = 400
    error_code = "CR-API-3000"
    user_message = "Invalid request."


class QueryRequiredError(APIError):
    """Raised when a search is attempted without a query string."""
    error_code = "CR-API-3001"
    user_message = "Query parameter is required"


class InvalidParameterError(APIError):
    """Raised when a request parameter has an invalid value."""
    error_code = "CR-API-3002"
    user_message = "Invalid parameters provided. Please check your request."


# Geolocation errors - never surfaced to clients, collapsed into the fallback location
class GeolocationUnavailableError(CityRankError):
    """Raised when the IP geolocation upstream cannot be reached."""
    status_code = 502
    error_code = "CR-GEO-5001"
    user_message = "Geolocation service unavailable."


class MalformedUpstreamResponseError(GeolocationUnavailableError):
    """Raised when the IP geolocation upstream answers without usable coordinates."""
    error_code = "CR-GEO-5002"
    user_message = "Geolocation service returned an unusable response."


# System errors - 4000 range
class ConfigError(CityRankError):
    """Raised when the application configuration is invalid."""
    status_code = 500
    error_code = "CR-SYS-4001"
    user_message = "The system is incorrectly configured. Please contact support."
