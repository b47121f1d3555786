"""
FastAPI dependency-injection helpers.
"""

from functools import lru_cache

from config.settings import Config
from core.sql_validator import SqlValidator
from db.connection import DatabaseClient
from db.query import QueryService
from db.query_store import QueryStore


@lru_cache(maxsize=1)
def get_query_service() -> QueryService:
    """Build the process-wide query service from configuration."""
    config = Config.load()
    return QueryService(
        store=QueryStore(config.app.queries_dir),
        db=DatabaseClient(config.db),
        validator=SqlValidator(),
        max_sql_length=config.app.max_sql_length,
    )
