"""Pydantic request schemas."""

from typing import Optional
from pydantic import BaseModel


class ValidateSqlRequest(BaseModel):
    sql: Optional[str] = None
