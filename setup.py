from setuptools import setup, find_packages
import os
import re

# Import version from CityRank/__init__.py
with open(os.path.join('CityRank', '__init__.py'), 'r') as f:
    version = re.search(r"__version__\s*=\s*'(.*)'", f.read()).group(1)

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="CityRank",
    version=version,
    description="Ranked, location-aware city name autocomplete with a Flask API and CLI",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        "pandas>=1.3.0",
        "flask>=2.2.0",
        "psycopg2-binary>=2.9.0",
        "click>=8.0.0",
        "pyyaml>=5.4",
        "rapidfuzz>=2.0.0",
        "requests>=2.25.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cityrank=CityRank.__main__:main",
        ],
    },
)
