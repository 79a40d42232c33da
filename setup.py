"""
pgledger: project an append-only ledger into PostgreSQL

pgledger writes ledger blocks, transactions and actions into PostgreSQL with bulk COPY,
translates entity-mutating actions into prepared-statement executions and keeps a sync
checkpoint so the database always reflects a committed prefix of the ledger.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh.readlines() if line.strip() and not line.startswith("#")]

# Get version from the package
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '.'))
from pgledger.units.version import get_version, VERSION

setup(
    name="pgledger",
    version=get_version(VERSION),
    description="Write pipeline projecting a ledger into PostgreSQL",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=['pgledger', 'pgledger.*'], exclude=['tests*']),
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "hypothesis>=6.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "pgledger=pgledger.cli:pgledger",
        ],
    },
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    keywords="ledger, blockchain, postgresql, copy",
)
