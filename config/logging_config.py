"""
Logging setup shared by the API and the query service.
"""

import logging

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s  %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger; all module loggers inherit it."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    # SQLAlchemy echoes every statement at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
