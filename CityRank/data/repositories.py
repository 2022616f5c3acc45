"""
Repository classes for reading city data.

CityRepository serves the candidate query of the ranking path;
RegionRepository serves the distinct country and state lists.
"""

from typing import Any, Dict, List, Optional, Tuple

from CityRank.data.database import DatabaseManager, scalar
from CityRank.data.schema import CITY_COLUMNS, CITY_TABLE
from CityRank.models import City, SearchFilters
from CityRank.utils.logging import get_logger

logger = get_logger(__name__)

PREFILTER_SUBSTRING = 'substring'
PREFILTER_TRIGRAM = 'trigram'


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input only matches literally."""
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


class BaseRepository:
    """
    Base repository class for city data.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.db_manager = db_manager
        self.table_name = CITY_TABLE

    @property
    def placeholder(self) -> str:
        return self.db_manager.placeholder

    @staticmethod
    def _row_to_dict(row: Any) -> Dict[str, Any]:
        """Convert a row from either driver to a plain dictionary."""
        return dict(row) if isinstance(row, dict) else {key: row[key] for key in row.keys()}


class CityRepository(BaseRepository):
    """
    Repository for the candidate query of the search path.
    """

    def _build_where(self, query: str, filters: SearchFilters, prefilter: str,
                     trigram_threshold: float) -> Tuple[str, List[Any]]:
        p = self.placeholder
        lower = self.db_manager.lower_function
        conditions = [f"{lower}(city_name) LIKE {p} ESCAPE '\\'"]
        params: List[Any] = [f"%{escape_like(query.lower())}%"]

        if prefilter == PREFILTER_TRIGRAM:
            conditions[0] = f"({conditions[0]} OR similarity({lower}(city_name), {p}) >= {p})"
            params.extend([query.lower(), trigram_threshold])

        if filters.country_code:
            conditions.append(f"country_code = {p}")
            params.append(filters.country_code)
        if filters.state_code:
            conditions.append(f"state_code = {p}")
            params.append(filters.state_code)

        return ' AND '.join(conditions), params

    def find_candidates(self, query: str, filters: Optional[SearchFilters] = None,
                        max_candidates: int = 1000, prefilter: str = PREFILTER_SUBSTRING,
                        trigram_threshold: float = 0.3) -> Tuple[List[City], int]:
        """
        Fetch the cities eligible for scoring.

        Args:
            query: Raw search text; matched case-insensitively
            filters: Optional exact country/state filters
            max_candidates: Maximum number of rows returned
            prefilter: ``substring``, or ``trigram`` for substring-or-similarity matching
            trigram_threshold: Minimum similarity accepted by the trigram pre-filter

        Returns:
            Tuple of (candidates ordered by population, total number of matching rows)

        Raises:
            StorageUnavailableError: If the store cannot be queried
        """
        filters = filters or SearchFilters()
        where, params = self._build_where(query.strip(), filters, prefilter, trigram_threshold)

        with self.db_manager.cursor() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM {self.table_name} WHERE {where}", params)
            total = int(scalar(cursor.fetchone()) or 0)

            if total == 0:
                return [], 0

            cursor.execute(
                f"SELECT {', '.join(CITY_COLUMNS)} FROM {self.table_name} WHERE {where} "
                f"ORDER BY population IS NULL, population DESC, geoname_id "
                f"LIMIT {self.placeholder}",
                params + [max_candidates]
            )
            rows = cursor.fetchall()

        candidates = [City.from_row(self._row_to_dict(row)) for row in rows]
        logger.debug(f"Found {total} matches for '{query}', fetched {len(candidates)} candidates")
        return candidates, total

    def get_max_population(self) -> Optional[int]:
        """Largest population in the table, or None when no city has one."""
        with self.db_manager.cursor() as cursor:
            cursor.execute(f"SELECT MAX(population) AS max_population FROM {self.table_name}")
            value = scalar(cursor.fetchone())
        return int(value) if value is not None else None


class RegionRepository(BaseRepository):
    """
    Repository for the distinct country and state lists.
    """

    def get_countries(self) -> List[Dict[str, str]]:
        """Distinct country codes, sorted."""
        with self.db_manager.cursor() as cursor:
            cursor.execute(
                f"SELECT DISTINCT country_code FROM {self.table_name} "
                f"WHERE country_code IS NOT NULL ORDER BY country_code"
            )
            rows = cursor.fetchall()
        return [{'code': self._row_to_dict(row)['country_code']} for row in rows]

    def get_states_by_country(self) -> Dict[str, List[Dict[str, str]]]:
        """
        Distinct states grouped by country code.

        Returns:
            Mapping of country code to ``[{code, name}]`` ordered by state name
        """
        with self.db_manager.cursor() as cursor:
            cursor.execute(
                f"SELECT DISTINCT country_code, state_code, state_name FROM {self.table_name} "
                f"WHERE state_code IS NOT NULL AND state_name IS NOT NULL "
                f"ORDER BY country_code, state_name"
            )
            rows = cursor.fetchall()

        states: Dict[str, List[Dict[str, str]]] = {}
        for row in rows:
            record = self._row_to_dict(row)
            states.setdefault(record['country_code'], []).append(
                {'code': record['state_code'], 'name': record['state_name']}
            )
        return states

    def get_states_for_country(self, country_code: str) -> List[Dict[str, str]]:
        """Distinct ``{code, name}`` states of one country, ordered by name."""
        with self.db_manager.cursor() as cursor:
            cursor.execute(
                f"SELECT DISTINCT state_code, state_name FROM {self.table_name} "
                f"WHERE country_code = {self.placeholder} AND state_code IS NOT NULL "
                f"ORDER BY state_name",
                (country_code.upper(),)
            )
            rows = cursor.fetchall()

        return [
            {'code': record['state_code'], 'name': record['state_name']}
            for record in map(self._row_to_dict, rows)
        ]
