"""
Schema management module for the CityRank package.

Creates the ``cities`` table and the indexes the candidate queries rely on.
"""

from typing import Any, Dict, List

from CityRank.data.database import DatabaseManager, scalar
from CityRank.exceptions import StorageUnavailableError
from CityRank.utils.logging import get_logger

# Get a logger for this module
logger = get_logger(__name__)

CITY_TABLE = 'cities'

CITY_COLUMNS = [
    'geoname_id', 'city_name', 'country_code', 'state_code',
    'state_name', 'latitude', 'longitude', 'population'
]

_CREATE_CITY_TABLE = f'''
CREATE TABLE IF NOT EXISTS {CITY_TABLE} (
    geoname_id INTEGER PRIMARY KEY,
    city_name VARCHAR(200) NOT NULL,
    country_code CHAR(2) NOT NULL,
    state_code VARCHAR(10),
    state_name VARCHAR(100),
    latitude DECIMAL(10, 6) NOT NULL,
    longitude DECIMAL(10, 6) NOT NULL,
    population INTEGER
)
'''

_CITY_INDEXES = [
    f'CREATE INDEX IF NOT EXISTS idx_city_name_lower ON {CITY_TABLE} (LOWER(city_name))',
    f'CREATE INDEX IF NOT EXISTS idx_country_code ON {CITY_TABLE} (country_code)',
    f'CREATE INDEX IF NOT EXISTS idx_state_code ON {CITY_TABLE} (state_code)',
    f'CREATE INDEX IF NOT EXISTS idx_population ON {CITY_TABLE} (population)',
    f'CREATE INDEX IF NOT EXISTS idx_country_state ON {CITY_TABLE} (country_code, state_code)',
]


class SchemaManager:
    """
    A class to manage the database schema for CityRank.

    This class handles the creation of the ``cities`` table and its indexes
    on both supported back ends.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.db_manager = db_manager
        self.city_table_name = CITY_TABLE

    def ensure_schema_exists(self) -> None:
        """Create the ``cities`` table and its indexes if they are missing."""
        if self.db_manager.table_exists(self.city_table_name):
            logger.debug(f"Table {self.city_table_name} already exists.")
        else:
            logger.info(f"Table {self.city_table_name} does not exist. Creating schema.")

        with self.db_manager.cursor() as cursor:
            cursor.execute(_CREATE_CITY_TABLE)
            for statement in _CITY_INDEXES:
                cursor.execute(statement)

        if self.db_manager.db_type == 'postgresql':
            self._ensure_trigram_index()

    def _ensure_trigram_index(self) -> None:
        """
        Enable ``pg_trgm`` and add a GIN trigram index on the city name.

        Requires extension privileges; without them the trigram pre-filter
        still works through a sequential scan if the extension already exists.
        """
        try:
            with self.db_manager.cursor() as cursor:
                cursor.execute('CREATE EXTENSION IF NOT EXISTS pg_trgm')
                cursor.execute(
                    f'CREATE INDEX IF NOT EXISTS idx_city_name_trgm '
                    f'ON {self.city_table_name} USING GIN (LOWER(city_name) gin_trgm_ops)'
                )
            logger.info("pg_trgm trigram index is ready")
        except StorageUnavailableError as e:
            logger.warning(f"Could not create the trigram index: {e.message}")

    def get_table_info(self) -> Dict[str, Any]:
        """
        Describe the ``cities`` table.

        Returns:
            Dictionary with the database type, table name, columns and row count
        """
        info: Dict[str, Any] = {
            'db_type': self.db_manager.db_type,
            'table': self.city_table_name,
            'exists': self.db_manager.table_exists(self.city_table_name),
            'columns': [],
            'row_count': 0,
        }
        if not info['exists']:
            return info

        with self.db_manager.cursor() as cursor:
            if self.db_manager.db_type == 'sqlite':
                cursor.execute(f'PRAGMA table_info({self.city_table_name})')
                columns: List[Dict[str, Any]] = [
                    {'name': row['name'], 'type': row['type']} for row in cursor.fetchall()
                ]
            else:
                cursor.execute(
                    'SELECT column_name, data_type FROM information_schema.columns '
                    'WHERE table_name = %s ORDER BY ordinal_position',
                    (self.city_table_name,)
                )
                columns = [
                    {'name': row['column_name'], 'type': row['data_type']} for row in cursor.fetchall()
                ]

            cursor.execute(f'SELECT COUNT(*) AS count FROM {self.city_table_name}')
            info['row_count'] = scalar(cursor.fetchone())

        info['columns'] = columns
        return info
