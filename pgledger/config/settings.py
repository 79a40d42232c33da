"""
Configuration settings for pgledger.

This module provides the configuration for the ledger-to-PostgreSQL write pipeline:
connection strings, the commit mode of a block, and logging. Every value can be
overridden from the environment; validate_config() reports problems without raising
so that the command line can print all of them at once.
"""

import os
import re
from typing import Dict, Any, List
from urllib.parse import urlparse


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Pipeline configuration settings"""
    
    FRAMEWORK_NAME = "pgledger"
    
    # Database settings
    DATABASE_URL = os.getenv("PGLEDGER_DATABASE_URL", "postgresql://postgres@localhost:5432/pgledger")
    # Database used to CREATE / DROP the ledger database itself
    MAINTENANCE_DATABASE_URL = os.getenv("PGLEDGER_MAINTENANCE_URL", "postgresql://postgres@localhost:5432/postgres")
    DATABASE_NAME = os.getenv("PGLEDGER_DATABASE_NAME", "pgledger")
    
    # Write pipeline settings
    ATOMIC_BLOCK_COMMIT = _env_flag("PGLEDGER_ATOMIC_BLOCK_COMMIT")  # COPY and statement log in one transaction
    
    # Logging settings
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_STATEMENT_LIMIT = 500  # characters of SQL kept in log lines and error messages
    
    @classmethod
    def get_database_config(cls) -> Dict[str, Any]:
        """Get database configuration"""
        return {
            "url": cls.DATABASE_URL,
            "maintenance_url": cls.MAINTENANCE_DATABASE_URL,
            "name": cls.DATABASE_NAME
        }
    
    @classmethod
    def get_pipeline_config(cls) -> Dict[str, Any]:
        """Get write pipeline configuration"""
        return {
            "atomic_block_commit": cls.ATOMIC_BLOCK_COMMIT
        }
    
    @classmethod
    def get_logging_config(cls) -> Dict[str, Any]:
        """Get logging configuration"""
        return {
            "level": cls.LOG_LEVEL,
            "format": cls.LOG_FORMAT,
            "statement_limit": cls.LOG_STATEMENT_LIMIT
        }
    
    @classmethod
    def validate_config(cls) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []
        
        for name in ("DATABASE_URL", "MAINTENANCE_DATABASE_URL"):
            scheme = urlparse(getattr(cls, name)).scheme
            if scheme not in ("postgresql", "postgres"):
                errors.append(f"{name} must be a postgresql:// URL")
        
        if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]{0,62}", cls.DATABASE_NAME or ""):
            errors.append("DATABASE_NAME must be a plain identifier of at most 63 characters")
        
        if cls.LOG_LEVEL.upper() not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            errors.append("LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")
        
        if cls.LOG_STATEMENT_LIMIT <= 0:
            errors.append("LOG_STATEMENT_LIMIT must be positive")
        
        return errors


settings = Settings()
