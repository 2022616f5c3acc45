"""
Shared test data: a small tab-separated city export and helpers to load it.
"""

import os

HEADER = ['geoname_id', 'city_name', 'country_code', 'state_code', 'state_name',
          'latitude', 'longitude', 'population']

CITY_ROWS = [
    ['2988507', 'Paris', 'fr', '11', 'Île-de-France', '48.85341', '2.3488', '2138551'],
    ['4717560', 'Paris', 'US', 'TX', 'Texas', '33.66094', '-95.55551', '24782'],
    ['3023645', 'Cormeilles-en-Parisis', 'FR', '11', 'Île-de-France', '48.97111', '2.20491', '23616'],
    ['2990969', 'Lille', 'FR', '32', 'Hauts-de-France', '50.63297', '3.05858', '234475'],
    ['2995469', 'Marseille', 'FR', '93', "Provence-Alpes-Côte d'Azur", '43.29695', '5.38107', '870731'],
    ['2950159', 'Berlin', 'DE', '16', 'Berlin', '52.52437', '13.41053', '3426354'],
    ['2911298', 'Hamburg', 'DE', '04', 'Hamburg', '53.57532', '10.01534', '1845229'],
    ['3117735', 'Madrid', 'ES', '29', 'Madrid', '40.4165', '-3.70256', '3255944'],
    ['2643743', 'London', 'GB', 'ENG', 'England', '51.50853', '-0.12574', '8961989'],
    ['6058560', 'London', 'CA', 'ON', 'Ontario', '42.98339', '-81.23304', '346765'],
    ['4298960', 'London', 'US', 'KY', 'Kentucky', '37.12898', '-84.08326', '7993'],
    ['4517009', 'London', 'US', 'OH', 'Ohio', '39.88645', '-83.44825', '9904'],
    ['5367815', 'London', 'US', 'CA', 'California', '36.47606', '-119.44318', '1869'],
    ['4119617', 'London', 'US', 'AR', 'Arkansas', '35.32897', '-93.25296', '1046'],
    ['2643741', 'City of London', 'GB', 'ENG', 'England', '51.51279', '-0.09184', '8071'],
    ['2643736', 'Londonderry', 'GB', 'NIR', 'Northern Ireland', '54.9981', '-7.30934', '83652'],
    ['4839416', 'New London', 'US', 'CT', 'Connecticut', '41.35565', '-72.09952', '27179'],
    ['1006984', 'East London', 'ZA', '05', 'Eastern Cape', '-33.01529', '27.91162', '478676'],
    ['2643734', 'London Colney', 'GB', 'ENG', 'England', '51.7263', '-0.29969', '8526'],
    ['4899966', 'London Mills', 'US', 'IL', 'Illinois', '40.71115', '-90.26623', '0'],
    ['6691831', 'Vatican City', 'VA', ' ', '', '41.90268', '12.45414', '829'],
    ['9999999', 'Nowhere', 'FR', '11', 'Île-de-France', '', '2.0', '10'],
]

# Rows that survive cleaning (the last row has no latitude)
VALID_ROW_COUNT = len(CITY_ROWS) - 1
LONDON_MATCHES = 12


def write_city_file(directory: str, rows=None, name: str = 'cities_data.txt') -> str:
    """Write a tab-separated export with a header line and return its path."""
    path = os.path.join(directory, name)
    with open(path, 'w', encoding='utf-8') as f:
        f.write('\t'.join(HEADER) + '\n')
        for row in rows if rows is not None else CITY_ROWS:
            f.write('\t'.join(row) + '\n')
    return path


def sqlite_uri(directory: str) -> str:
    return f"sqlite:///{os.path.join(directory, 'cities.db')}"
