"""
Stored query lookup.

Maps a query identifier to the text of ``<identifier>.sql`` inside the
configured queries directory.
"""

import logging
import re
from pathlib import Path
from typing import List, Union

from core.errors import QueryNotFoundError

logger = logging.getLogger(__name__)

# Identifiers become file names; anything else could escape the directory
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")


class QueryStore:
    """Read-only view over a directory of ``.sql`` files."""

    def __init__(self, queries_dir: Union[Path, str]):
        self.queries_dir = Path(queries_dir)

    def path_for(self, identifier: str) -> Path:
        if not IDENTIFIER_PATTERN.match(identifier or ""):
            raise QueryNotFoundError(identifier)
        return self.queries_dir / f"{identifier}.sql"

    def load_query(self, identifier: str) -> str:
        """
        Return the SQL text stored under an identifier.

        Raises:
            QueryNotFoundError: if the identifier is malformed or has no file
        """
        path = self.path_for(identifier)
        logger.info("Loading query from file: %s", path.name)
        if not path.is_file():
            logger.error("Query file not found: %s", path.name)
            raise QueryNotFoundError(identifier)
        return path.read_text(encoding="utf-8")

    def list_queries(self) -> List[str]:
        """Return the file names of all stored queries, sorted."""
        if not self.queries_dir.is_dir():
            raise FileNotFoundError(f"Queries directory not found: {self.queries_dir}")
        return sorted(p.name for p in self.queries_dir.glob("*.sql") if p.is_file())
