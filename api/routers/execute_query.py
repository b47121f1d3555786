"""
Execute-query endpoints: run a stored query, list stored queries, validate SQL.
"""

import logging
import time

from fastapi import APIRouter, Depends, Response, status

from api.dependencies import get_query_service
from api.models.requests import ValidateSqlRequest
from api.models.responses import QueryResponse, ValidationResponse
from core.errors import QueryNotFoundError
from db.query import QueryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/execute-query", tags=["execute-query"])


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _failure(response: Response, code: int, message: str, start: float) -> QueryResponse:
    response.status_code = code
    logger.info("Status code: %s", code)
    return QueryResponse(
        success=False,
        error=message,
        code=code,
        execution_time_ms=_elapsed_ms(start),
    )


@router.get("", response_model=QueryResponse)
def list_queries(
    response: Response,
    service: QueryService = Depends(get_query_service),
):
    """List the stored query files."""
    start = time.perf_counter()
    try:
        names = service.list_queries()
    except OSError:
        logger.exception("Failed to list stored queries")
        return _failure(response, status.HTTP_500_INTERNAL_SERVER_ERROR, "Error while loading files", start)

    return QueryResponse(success=True, data=list(names), execution_time_ms=_elapsed_ms(start))


@router.post("/validate", response_model=ValidationResponse)
def validate_sql(
    body: ValidateSqlRequest,
    service: QueryService = Depends(get_query_service),
):
    """Validate free-text SQL without executing it."""
    return ValidationResponse.from_result(service.validate_sql(body.sql))


@router.get("/{query_identifier}", response_model=QueryResponse)
def execute_query(
    query_identifier: str,
    response: Response,
    service: QueryService = Depends(get_query_service),
):
    """Run the stored query named ``query_identifier``."""
    start = time.perf_counter()
    logger.info("Executing query: %s", query_identifier)
    try:
        rows = service.run_saved_query(query_identifier)
    except QueryNotFoundError:
        return _failure(response, status.HTTP_404_NOT_FOUND, "Query not found", start)
    except ValueError as exc:
        return _failure(response, status.HTTP_400_BAD_REQUEST, str(exc), start)
    except Exception:
        logger.exception("Query %s failed", query_identifier)
        return _failure(response, status.HTTP_500_INTERNAL_SERVER_ERROR, "Error while executing query", start)

    elapsed = _elapsed_ms(start)
    logger.info("Query %s returned %d rows in %d ms", query_identifier, len(rows), elapsed)
    return QueryResponse(success=True, data=rows, execution_time_ms=elapsed)
