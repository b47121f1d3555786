import logging
from typing import Any, Dict, List, Optional

import pandas as pd
import sqlalchemy
from sqlalchemy.engine import Engine

from config.settings import DatabaseConfig

logger = logging.getLogger(__name__)


class DatabaseClient:
    """
    Thin wrapper around a SQLAlchemy engine.

    Keeps driver and pooling details away from the service and API layers.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._engine: Optional[Engine] = None

    @property
    def engine(self) -> Engine:
        """Lazy-load the engine on first use."""
        if self._engine is None:
            kwargs: Dict[str, Any] = {}
            if not self.config.is_sqlite:
                kwargs = {
                    "pool_size": self.config.pool_size,
                    "max_overflow": self.config.max_overflow,
                    "pool_pre_ping": True,
                }
            self._engine = sqlalchemy.create_engine(self.config.connection_string, **kwargs)
        return self._engine

    def fetch_records(self, query: str) -> List[Dict[str, Any]]:
        """
        Run an already validated SELECT and return its rows.

        The transaction is never committed, so the connection is rolled
        back when it is returned to the pool.

        Args:
            query: SQL text, passed to the driver unmodified

        Returns:
            One dict per row, JSON-ready
        """
        with self.engine.connect() as conn:
            df = pd.read_sql_query(sqlalchemy.text(query), conn)
        return _to_records(df)

    def test_connection(self) -> bool:
        """Verify database connectivity."""
        try:
            with self.engine.connect() as conn:
                conn.execute(sqlalchemy.text("SELECT 1"))
            return True
        except Exception as exc:
            logger.warning("Database connection failed: %s", exc)
            return False

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


def _to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    out = df.copy()
    datetime_cols = out.select_dtypes(include=["datetime64[ns]", "datetime64[ns, UTC]"]).columns
    for col in datetime_cols:
        out[col] = out[col].astype(str)
    out = out.astype(object)
    return out.where(out.notna(), None).to_dict(orient="records")
