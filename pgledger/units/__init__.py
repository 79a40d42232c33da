from .version import (
    VERSION,
    SCHEMA_VERSION,
    get_version,
    is_schema_compatible
)

__all__ = [
    'VERSION',
    'SCHEMA_VERSION',
    'get_version',
    'is_schema_compatible'
]
