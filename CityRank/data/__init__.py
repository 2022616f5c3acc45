"""
Data management module for the CityRank package.

This module provides the storage collaborator of the ranking engine:
database connections, schema management, bulk import and query repositories.
"""

from CityRank.data.database import DatabaseManager
from CityRank.data.schema import SchemaManager
from CityRank.data.importer import CityDataImporter
from CityRank.data.repositories import (
    BaseRepository,
    CityRepository,
    RegionRepository
)

__all__ = [
    'DatabaseManager',
    'SchemaManager',
    'CityDataImporter',
    'BaseRepository',
    'CityRepository',
    'RegionRepository'
]
