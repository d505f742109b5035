from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ApiResponse(BaseModel):
    success: bool = True
    message: str | None = None
    data: Any = None


class PaginationOut(BaseModel):
    total: int
    page: int
    limit: int
    pages: int
