"""
Version utility functions for pgledger.

Two versions live here. VERSION is the package release, formatted per PEP 440.
SCHEMA_VERSION is the layout marker written to the ``stats`` table and checked at
startup: a database written by an older layout is rejected, never migrated.
"""

from typing import Tuple, Optional


VERSION = (1, 0, 0, "final", 0)

# Stored under the "version" key of the stats table
SCHEMA_VERSION = "1.0.0"


def get_version(version: Optional[Tuple[int, int, int, str, int]] = None) -> str:
    """
    Return a PEP 440-compliant version number from VERSION.
    
    Args:
        version: Version tuple (major, minor, micro, releaselevel, serial)
                If not provided, uses the global VERSION tuple
        
    Returns:
        PEP 440-compliant version string
    """
    major, minor, micro, releaselevel, serial = version or VERSION
    
    version_str = f"{major}.{minor}"
    if micro is not None:
        version_str += f".{micro}"
    
    # Add release level if not final
    if releaselevel != "final":
        if releaselevel == "dev":
            version_str += ".dev"
        else:
            version_str += f"-{releaselevel}"
        if serial > 0:
            version_str += str(serial)
    
    return version_str


def is_schema_compatible(stored: Optional[str], running: str = SCHEMA_VERSION) -> bool:
    """
    Check a stored schema version against the running one.

    The comparison is a plain string comparison, so "1.0.0" accepts "1.0.0" and
    "1.1.0" but rejects "0.9.9".

    Args:
        stored: Version string read from the stats table, None when absent
        running: Version string of the running software

    Returns:
        True when the stored version is present and not older than the running one
    """
    if stored is None:
        return False
    return stored >= running
