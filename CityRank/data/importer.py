"""
Data importer module for the CityRank package.

Loads the tab-separated city export (one row per GeoNames city, with a header
line) into the ``cities`` table.
"""

import os
import time
from typing import Any, Dict, List, Optional

import pandas as pd

from CityRank.data.database import DatabaseManager
from CityRank.data.schema import CITY_COLUMNS, CITY_TABLE
from CityRank.exceptions import DataImportError
from CityRank.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = ['geoname_id', 'city_name', 'country_code', 'latitude', 'longitude']
TEXT_FIELDS = ['city_name', 'country_code', 'state_code', 'state_name']


class CityDataImporter:
    """
    A class to import city data into the CityRank database.

    Rows are cleaned on the way in (trimmed text, blank state fields and
    zero populations stored as NULL) and upserted on
    ``geoname_id``, so importing the same file twice leaves one copy of
    each city.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.db_manager = db_manager
        self.table_name = CITY_TABLE

    def import_file(self, path: str, sep: str = '\t', batch_size: int = 5000,
                    encoding: Optional[str] = None) -> int:
        """
        Import city data from a delimited file.

        Args:
            path: Path to the export file
            sep: Field separator
            batch_size: Number of records to insert in each batch
            encoding: File encoding; UTF-8 with an ISO-8859-1 fallback when None

        Returns:
            Number of records imported

        Raises:
            DataImportError: If the file is missing or lacks required columns
        """
        if not os.path.exists(path):
            raise DataImportError(
                message=f"City data file not found at {path}",
                user_message="City data file not found.",
                context={"path": path}
            )

        logger.info(f"Importing city data from {path}")
        start_time = time.time()

        df = self._read_file(path, sep, encoding)
        df = self._clean(df)
        total_imported = self._import_dataframe(df, batch_size)

        logger.info(f"Imported {total_imported} cities in {time.time() - start_time:.2f} seconds")
        return total_imported

    def _read_file(self, path: str, sep: str, encoding: Optional[str]) -> pd.DataFrame:
        read_options = dict(sep=sep, dtype=str, keep_default_na=False, na_values=[''])
        try:
            if encoding:
                df = pd.read_csv(path, encoding=encoding, **read_options)
            else:
                try:
                    df = pd.read_csv(path, encoding='utf-8', **read_options)
                except UnicodeDecodeError:
                    logger.warning("UTF-8 encoding failed, trying with ISO-8859-1")
                    df = pd.read_csv(path, encoding='ISO-8859-1', **read_options)
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise DataImportError(
                message=f"Could not parse city data file {path}: {e}",
                context={"path": path},
                cause=e
            )

        df.columns = [str(column).strip().lower() for column in df.columns]
        missing_columns = [column for column in CITY_COLUMNS if column not in df.columns]
        if missing_columns:
            raise DataImportError(
                message=f"City data file is missing required columns: {', '.join(missing_columns)}",
                context={"path": path, "missing_columns": missing_columns}
            )

        return df[CITY_COLUMNS]

    def _clean(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Normalize raw rows.

        Text is trimmed, blank optional fields become NULL, codes are
        upper-cased, numbers are parsed and rows missing a required field
        are dropped.
        """
        df = df.copy()

        for column in TEXT_FIELDS:
            stripped = df[column].str.strip()
            df[column] = stripped.where(stripped != '')
        df['country_code'] = df['country_code'].str.upper()
        df['state_code'] = df['state_code'].str.upper()

        df['geoname_id'] = pd.to_numeric(df['geoname_id'], errors='coerce')
        df['latitude'] = pd.to_numeric(df['latitude'], errors='coerce')
        df['longitude'] = pd.to_numeric(df['longitude'], errors='coerce')

        population = pd.to_numeric(df['population'], errors='coerce')
        df['population'] = population.where(population > 0)

        original_count = len(df)
        df = df.dropna(subset=REQUIRED_FIELDS)
        if len(df) < original_count:
            logger.warning(f"Removed {original_count - len(df)} rows with missing required values")

        df = df.drop_duplicates(subset=['geoname_id'], keep='last')
        df['geoname_id'] = df['geoname_id'].astype('int64')

        return df

    def _import_dataframe(self, df: pd.DataFrame, batch_size: int) -> int:
        records = [self._to_params(row) for row in df.to_dict(orient='records')]
        total_imported = 0

        for i in range(0, len(records), batch_size):
            batch = records[i:i + batch_size]
            self._import_batch(batch)
            total_imported += len(batch)
            logger.info(f"Imported {min(i + batch_size, len(records))}/{len(records)} cities")

        return total_imported

    @staticmethod
    def _to_params(row: Dict[str, Any]) -> tuple:
        def clean(value: Any) -> Any:
            return None if value is None or pd.isna(value) else value

        population = clean(row['population'])
        return (
            int(row['geoname_id']),
            row['city_name'],
            row['country_code'],
            clean(row['state_code']),
            clean(row['state_name']),
            float(row['latitude']),
            float(row['longitude']),
            int(population) if population is not None else None,
        )

    def _import_batch(self, batch: List[tuple]) -> None:
        placeholders = ', '.join([self.db_manager.placeholder] * len(CITY_COLUMNS))
        updates = ', '.join(f"{column} = excluded.{column}" for column in CITY_COLUMNS[1:])
        query = (
            f"INSERT INTO {self.table_name} ({', '.join(CITY_COLUMNS)}) VALUES ({placeholders}) "
            f"ON CONFLICT (geoname_id) DO UPDATE SET {updates}"
        )

        with self.db_manager.cursor() as cursor:
            cursor.executemany(query, batch)
